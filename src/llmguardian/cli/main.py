"""Click CLI entry point for LLM Guardian."""

from __future__ import annotations

import logging

import click

from llmguardian._version import __version__


@click.group()
@click.version_option(version=__version__, prog_name="llm-guardian")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """LLM Guardian - catch LLM mistakes before they reach prod.

    Check staged changes for hallucinated packages, deprecated APIs and
    risky patterns, and optionally fix them with snapshot-backed rollback.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Import and register subcommands
from llmguardian.cli.check_cmd import check  # noqa: E402
from llmguardian.cli.config_cmd import config  # noqa: E402
from llmguardian.cli.rollback_cmd import rollback  # noqa: E402

cli.add_command(check)
cli.add_command(rollback)
cli.add_command(config)


if __name__ == "__main__":
    cli()
