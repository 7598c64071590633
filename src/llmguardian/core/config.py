"""Configuration management for LLM Guardian (llm-guardian.toml parsing + defaults)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]

CONFIG_FILENAME = "llm-guardian.toml"
DEFAULT_BACKUP_SUFFIX = ".llm-guardian-backup"
DEFAULT_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py"]


@dataclass
class ScanConfig:
    analyzers: list[str] = field(
        default_factory=lambda: [
            "hallucination",
            "code-quality",
            "security",
            "performance",
        ]
    )
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    max_file_lines: int = 600
    max_function_lines: int = 150
    warn_any_count: int = 3
    registry_url: str = "https://registry.npmjs.org"
    registry_ttl_seconds: float = 300.0
    offline: bool = False
    max_workers: int = 4


@dataclass
class FixConfig:
    categories: list[str] = field(default_factory=lambda: ["hallucination", "code-quality"])
    max_concurrency: int = 3
    min_confidence: float = 0.0
    context_lines: int = 3
    create_backups: bool = True
    backup_suffix: str = DEFAULT_BACKUP_SUFFIX
    engine: str = "claude-cli"
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 2000
    timeout_seconds: float = 15.0


@dataclass
class ValidateConfig:
    type_check: bool = True
    tests: bool = True
    lint: bool = False
    timeout_seconds: float = 30.0
    commands: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class GuardianConfig:
    """Complete LLM Guardian configuration."""

    exclude: list[str] = field(
        default_factory=lambda: [
            "node_modules/",
            ".git/",
            "dist/",
            "build/",
            "coverage/",
            ".venv/",
            "venv/",
            "__pycache__/",
        ]
    )
    scan: ScanConfig = field(default_factory=ScanConfig)
    fix: FixConfig = field(default_factory=FixConfig)
    validate: ValidateConfig = field(default_factory=ValidateConfig)


def load_config(project_path: Path | None = None) -> GuardianConfig:
    """Load configuration from llm-guardian.toml if present, otherwise return defaults."""
    config = GuardianConfig()

    if project_path is None:
        project_path = Path.cwd()

    config_file = project_path / CONFIG_FILENAME
    if not config_file.exists():
        return config

    with open(config_file, "rb") as f:
        data = tomllib.load(f)

    if "general" in data:
        gen = data["general"]
        if "exclude" in gen:
            config.exclude = gen["exclude"]

    if "scan" in data:
        s = data["scan"]
        for attr in (
            "analyzers",
            "extensions",
            "max_file_lines",
            "max_function_lines",
            "warn_any_count",
            "registry_url",
            "registry_ttl_seconds",
            "offline",
            "max_workers",
        ):
            if attr in s:
                setattr(config.scan, attr, s[attr])

    if "fix" in data:
        fx = data["fix"]
        for attr in (
            "categories",
            "max_concurrency",
            "min_confidence",
            "context_lines",
            "create_backups",
            "backup_suffix",
            "engine",
            "timeout_seconds",
        ):
            if attr in fx:
                setattr(config.fix, attr, fx[attr])
        ai = fx.get("ai", {})
        if "model" in ai:
            config.fix.model = ai["model"]
        if "max_tokens" in ai:
            config.fix.max_tokens = ai["max_tokens"]

    if "validate" in data:
        v = data["validate"]
        for attr in ("type_check", "tests", "lint", "timeout_seconds"):
            if attr in v:
                setattr(config.validate, attr, v[attr])
        if "commands" in v:
            config.validate.commands = {
                name: list(cmd) for name, cmd in v["commands"].items()
            }

    return config


def default_config_toml() -> str:
    """Render the default configuration as an editable llm-guardian.toml."""
    cfg = GuardianConfig()

    def _list(values: list[str]) -> str:
        return "[" + ", ".join(f'"{v}"' for v in values) + "]"

    return f"""\
[general]
exclude = {_list(cfg.exclude)}

[scan]
analyzers = {_list(cfg.scan.analyzers)}
extensions = {_list(cfg.scan.extensions)}
max_file_lines = {cfg.scan.max_file_lines}
max_function_lines = {cfg.scan.max_function_lines}
warn_any_count = {cfg.scan.warn_any_count}
registry_url = "{cfg.scan.registry_url}"
registry_ttl_seconds = {cfg.scan.registry_ttl_seconds}
offline = false

[fix]
categories = {_list(cfg.fix.categories)}
max_concurrency = {cfg.fix.max_concurrency}
min_confidence = {cfg.fix.min_confidence}
context_lines = {cfg.fix.context_lines}
create_backups = true
backup_suffix = "{cfg.fix.backup_suffix}"
engine = "{cfg.fix.engine}"
timeout_seconds = {cfg.fix.timeout_seconds}

[fix.ai]
model = "{cfg.fix.model}"
max_tokens = {cfg.fix.max_tokens}

[validate]
type_check = true
tests = true
lint = false
timeout_seconds = {cfg.validate.timeout_seconds}

# [validate.commands]
# type-check = ["mypy", "src"]
# test = ["pytest", "-q"]
"""
