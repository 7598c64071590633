"""llm-guardian rollback command."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from llmguardian.core.config import load_config
from llmguardian.core.output import (
    console,
    get_progress,
    print_restore_summary,
    print_snapshot_list,
)
from llmguardian.fix.undo import Restorer, filter_snapshots


@click.command()
@click.option("--list", "list_only", is_flag=True, help="List snapshot files without restoring")
@click.option("--file", "target_file", type=str, default=None, help="Restore only this file")
@click.option("--cleanup", is_flag=True, help="Delete snapshots after a successful restore")
def rollback(list_only: bool, target_file: str | None, cleanup: bool):
    """Restore files from the snapshots written by `check --fix`."""
    project_path = Path.cwd()
    config = load_config(project_path)
    restorer = Restorer(suffix=config.fix.backup_suffix)

    snapshots = restorer.find_snapshots(project_path)
    if not snapshots:
        console.print("[yellow]No snapshot files found[/yellow]")
        console.print("[dim]Tip: run `llm-guardian check --fix` to create snapshots[/dim]")
        return

    if list_only:
        print_snapshot_list(snapshots, project_path)
        return

    if target_file:
        snapshots = filter_snapshots(snapshots, target_file)
        if not snapshots:
            console.print(f"[yellow]No snapshot found for: {target_file}[/yellow]")
            sys.exit(1)

    with get_progress() as progress:
        progress.add_task(f"Restoring {len(snapshots)} file(s) from snapshot...", total=None)
        summary = restorer.restore(snapshots, cleanup=cleanup)

    print_restore_summary(summary, cleanup)
    if summary.failed:
        sys.exit(2)
