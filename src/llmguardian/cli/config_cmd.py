"""llm-guardian config command."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from llmguardian.core.config import CONFIG_FILENAME, default_config_toml, load_config
from llmguardian.core.output import console, error_console


@click.command()
@click.option("--init", "init", is_flag=True, help=f"Write a default {CONFIG_FILENAME}")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def config(init: bool, force: bool):
    """Show or initialize the project configuration."""
    project_path = Path.cwd()
    config_file = project_path / CONFIG_FILENAME

    if init:
        if config_file.exists() and not force:
            error_console.print(f"[red]{CONFIG_FILENAME} already exists. Use --force to overwrite.[/red]")
            sys.exit(2)
        config_file.write_text(default_config_toml())
        console.print(f"[green]Created {CONFIG_FILENAME}[/green]")
        return

    try:
        cfg = load_config(project_path)
    except Exception as e:
        error_console.print(f"[red]Could not load {CONFIG_FILENAME}: {e}[/red]")
        sys.exit(2)

    source = CONFIG_FILENAME if config_file.exists() else "defaults"
    console.print(f"\n[bold]Configuration[/bold] [dim]({source})[/dim]\n")
    console.print(f"  Analyzers:       {', '.join(cfg.scan.analyzers)}")
    console.print(f"  Extensions:      {', '.join(cfg.scan.extensions)}")
    console.print(f"  Registry:        {'offline' if cfg.scan.offline else cfg.scan.registry_url}")
    console.print(f"  Fix categories:  {', '.join(cfg.fix.categories)}")
    console.print(f"  Engine:          {cfg.fix.engine}")
    console.print(f"  Min confidence:  {cfg.fix.min_confidence}")
    console.print(f"  Snapshots:       {cfg.fix.backup_suffix if cfg.fix.create_backups else 'disabled'}")
    checks = [n for n, on in (("type-check", cfg.validate.type_check), ("test", cfg.validate.tests), ("lint", cfg.validate.lint)) if on]
    console.print(f"  Validation:      {', '.join(checks) or 'none'}")
    console.print()
