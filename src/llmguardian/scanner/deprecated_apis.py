"""Deprecated APIs that LLMs commonly suggest from stale training data."""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class DeprecatedAPI:
    package: str
    pattern: re.Pattern[str]
    replacement: str
    reason: str
    deprecated_since: str = ""
    migration_guide: str = ""


def _api(package: str, pattern: str, replacement: str, reason: str, since: str = "", guide: str = "") -> DeprecatedAPI:
    return DeprecatedAPI(package, re.compile(pattern), replacement, reason, since, guide)


DEPRECATED_APIS: list[DeprecatedAPI] = [
    # Stripe
    _api(
        "stripe",
        r"stripe\.charges\.create",
        "stripe.paymentIntents.create()",
        "Charges API replaced by Payment Intents API for better flow control",
        "2019-02",
        "https://stripe.com/docs/payments/payment-intents/migration",
    ),
    _api(
        "stripe",
        r"stripe\.tokens\.create",
        "stripe.paymentMethods.create()",
        "Tokens API replaced by Payment Methods API for better security",
        "2019-02",
        "https://stripe.com/docs/payments/payment-methods",
    ),
    # OpenAI
    _api(
        "openai",
        r"openai\.Completion\.create",
        "client.chat.completions.create()",
        "Completion API replaced by Chat Completions API",
        "2023-03",
        "https://platform.openai.com/docs/guides/text-generation",
    ),
    _api(
        "openai",
        r"openai\.ChatCompletion\.create",
        "client.chat.completions.create()",
        "Module-level ChatCompletion removed in openai>=1.0",
        "2023-11",
    ),
    _api(
        "openai",
        r"""engine\s*=\s*["']text-davinci-003["']""",
        'model="gpt-4o-mini"',
        "text-davinci-003 has been shut down",
        "2023-07",
    ),
    _api(
        "openai",
        r"openai\.FineTune\.",
        "openai.fine_tuning.jobs",
        "FineTune API replaced by fine_tuning API",
        "2023-08",
    ),
    # React
    _api(
        "react",
        r"React\.FC<",
        "function Component(props: Props)",
        "React.FC discouraged due to implicit children and worse TypeScript inference",
        "2020-08",
    ),
    _api(
        "react",
        r"componentWillMount|componentWillReceiveProps|componentWillUpdate",
        "Use hooks (useEffect, useState) or getDerivedStateFromProps",
        "Unsafe lifecycle methods removed in React 17+",
        "2018-03",
        "https://reactjs.org/blog/2018/03/27/update-on-async-rendering.html",
    ),
    _api(
        "react",
        r"ReactDOM\.render\(",
        "ReactDOM.createRoot(container).render()",
        "Legacy render replaced by createRoot in React 18",
        "2022-03",
        "https://react.dev/blog/2022/03/08/react-18-upgrade-guide",
    ),
    # Node core
    _api(
        "node",
        r"""require\(['"]url['"]\)\.parse""",
        "new URL(urlString)",
        "url.parse() deprecated in favor of URL constructor",
        "2018-10",
    ),
    _api(
        "node",
        r"""require\(['"]crypto['"]\)\.createCipher\(""",
        "crypto.createCipheriv()",
        "createCipher uses weak IV generation, use createCipheriv",
        "2017-06",
    ),
    # Mongoose
    _api(
        "mongoose",
        r"mongoose\.connect\([^,]+,\s*\{.*useNewUrlParser.*\}",
        "mongoose.connect(uri)",
        "useNewUrlParser and useUnifiedTopology options removed in Mongoose 6",
        "2021-05",
    ),
    _api(
        "mongoose",
        r"\.exec\(function\s*\(err,",
        "await Model.find().exec()",
        "Callback pattern deprecated in favor of promises",
        "2019-01",
    ),
    # Express
    _api(
        "express",
        r"bodyParser\.",
        "express.json() and express.urlencoded()",
        "body-parser is now built into Express",
        "2019-02",
    ),
    # Moment
    _api(
        "moment",
        r"""import.*\bmoment\b|require\(['"]moment['"]\)""",
        "Use date-fns or dayjs",
        "Moment.js is no longer maintained, use modern alternatives",
        "2020-09",
        "https://momentjs.com/docs/#/-project-status/",
    ),
    # Zod
    _api(
        "zod",
        r"\.refineSync\(",
        ".superRefine() or .transform()",
        "refineSync removed in Zod 3.23+",
        "2023-09",
    ),
    # Python standard library
    _api(
        "datetime",
        r"datetime\.utcnow\(\)",
        "datetime.now(timezone.utc)",
        "datetime.utcnow() is deprecated since Python 3.12",
        "2023-10",
    ),
    _api(
        "asyncio",
        r"asyncio\.get_event_loop\(\)\.run_until_complete",
        "asyncio.run()",
        "Implicit event loop creation is deprecated",
        "2021-10",
    ),
]


def find_deprecated_apis(code: str, package: str | None = None) -> list[DeprecatedAPI]:
    """Return every table entry whose pattern matches ``code``."""
    candidates = (
        [api for api in DEPRECATED_APIS if api.package == package]
        if package
        else DEPRECATED_APIS
    )
    return [api for api in candidates if api.pattern.search(code)]
