"""Rich terminal formatting for LLM Guardian output."""

from __future__ import annotations

import os
from dataclasses import asdict
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Prompt

from llmguardian.core.models import (
    AnalysisReport,
    Finding,
    PatchResult,
    RestoreSummary,
    ReviewDecision,
    Severity,
    Snapshot,
    ValidationReport,
    patch_statistics,
)

console = Console()
error_console = Console(stderr=True)


SEVERITY_ICONS = {
    Severity.CRITICAL: "[red]●[/red]",
    Severity.HIGH: "[bright_red]●[/bright_red]",
    Severity.MEDIUM: "[yellow]●[/yellow]",
    Severity.LOW: "[blue]●[/blue]",
}

SEVERITY_COLORS = {
    Severity.CRITICAL: "red",
    Severity.HIGH: "bright_red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}

DECISION_KEYS = {
    "y": ReviewDecision.APPROVE,
    "n": ReviewDecision.REJECT,
    "a": ReviewDecision.APPROVE_REST,
    "r": ReviewDecision.REJECT_REST,
    "q": ReviewDecision.ABORT,
}


def relative(path: str, root: Path | None = None) -> str:
    """Display a path relative to ``root`` (default: cwd) when possible."""
    if not path:
        return path
    try:
        return os.path.relpath(path, root or Path.cwd())
    except ValueError:
        return path


def format_finding(finding: Finding, root: Path | None = None) -> str:
    """Format a single finding for terminal output."""
    icon = SEVERITY_ICONS.get(finding.severity, "●")
    fix_label = " [dim](fix available)[/dim]" if finding.fix is not None else ""

    if finding.is_pipeline_error:
        location = "  [dim](analyzer error)[/dim]"
    else:
        location = f"  {relative(finding.file_path, root)}:{finding.line}"

    text = f"  {icon} [bold]{finding.id}[/bold]  {finding.message}{location}{fix_label}"
    if finding.evidence and not finding.is_pipeline_error:
        text += f"\n     [dim]{finding.evidence}[/dim]"
    if finding.suggestion:
        text += f"\n     [cyan]-> {finding.suggestion}[/cyan]"
    return text


def print_analysis_report(report: AnalysisReport, root: Path | None = None) -> None:
    """Print the findings of a check run as a report card."""
    border = "red" if report.has_blocking_findings else "yellow" if report.findings else "green"
    lines = [""]

    if not report.findings:
        lines.append("  [green]✅ No issues found[/green]")
    else:
        ordered = sorted(report.findings, key=lambda f: f.severity.rank)
        for finding in ordered:
            lines.append(format_finding(finding, root))
            lines.append("")

    lines.append(
        f"  [red]{report.critical_count} critical[/red] | "
        f"[bright_red]{report.high_count} high[/bright_red] | "
        f"[yellow]{report.medium_count} medium[/yellow] | "
        f"[blue]{report.low_count} low[/blue]"
    )
    lines.append(
        f"  [dim]{report.files_analyzed} files | "
        f"{len(report.results)} analyzers | {report.duration_ms}ms[/dim]"
    )
    if report.failed_analyzers:
        lines.append(f"  [red]Failed analyzers: {', '.join(report.failed_analyzers)}[/red]")

    console.print(Panel(
        "\n".join(lines),
        title="[bold]LLM Guardian Report[/bold]",
        border_style=border,
        padding=(0, 1),
    ))


def report_to_dict(report: AnalysisReport, root: Path | None = None) -> dict[str, Any]:
    """Convert a report to a JSON-serializable dict for ``check --json``."""

    def finding_dict(f: Finding) -> dict[str, Any]:
        data = {
            "id": f.id,
            "severity": f.severity.value,
            "category": f.category,
            "file_path": relative(f.file_path, root),
            "line": f.line,
            "column": f.column,
            "message": f.message,
            "suggestion": f.suggestion,
            "evidence": f.evidence,
            "metadata": f.metadata,
            "fix": None,
        }
        if f.fix is not None:
            data["fix"] = {
                "kind": f.fix.kind.value,
                "search": f.fix.search,
                "replace": f.fix.replace,
                "confidence": f.fix.confidence,
                "explanation": f.fix.explanation,
            }
        return data

    payload = {
        "summary": {
            "files_analyzed": report.files_analyzed,
            "duration_ms": report.duration_ms,
            "critical": report.critical_count,
            "high": report.high_count,
            "medium": report.medium_count,
            "low": report.low_count,
            "failed_analyzers": report.failed_analyzers,
        },
        "findings": [finding_dict(f) for f in report.findings],
    }
    return payload


def print_fix_preview(finding: Finding, index: int, total: int, root: Path | None = None) -> None:
    """Show one proposed fix before asking for a decision."""
    fix = finding.fix
    if fix is None:
        return

    confidence = fix.effective_confidence
    color = "green" if confidence >= 0.8 else "yellow" if confidence >= 0.5 else "red"
    filled = round(confidence * 12)
    bar = "█" * filled + "░" * (12 - filled)

    lines = [
        f"  Confidence: [{color}]{bar}[/{color}] {confidence:.0%}",
        "",
        f"  {finding.message}",
        f"  {relative(finding.file_path, root)}:{finding.line}",
        "",
    ]
    lines.extend(f"  [red]- {line}[/red]" for line in fix.search.splitlines() or [""])
    lines.extend(f"  [green]+ {line}[/green]" for line in fix.replace.splitlines() or [""])
    if fix.explanation:
        lines.append("")
        lines.append(f"  [dim]{fix.explanation}[/dim]")

    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]Fix {index + 1}/{total}: {finding.id}[/bold]",
        border_style=color,
        padding=(0, 1),
    ))


def prompt_decision(finding: Finding, index: int, total: int) -> ReviewDecision:
    """Interactive review decision backed by a rich prompt."""
    print_fix_preview(finding, index, total)
    answer = Prompt.ask(
        "  Apply? (y)es / (n)o / (a)ll remaining / (r)eject remaining / (q)uit",
        choices=list(DECISION_KEYS),
        default="n",
        console=console,
    )
    return DECISION_KEYS[answer]


def print_patch_results(results: list[PatchResult], dry_run: bool = False, root: Path | None = None) -> None:
    """Print per-finding patch outcomes and a summary line."""
    for r in results:
        location = relative(r.file_path, root)
        if r.success:
            console.print(
                f"  [green]✅ {r.finding_id}[/green]  {location} "
                f"[dim]({r.change_stats.lines_changed} lines)[/dim]"
            )
        else:
            console.print(f"  [red]❌ {r.finding_id}[/red]  {location}  {r.error}")

    stats = patch_statistics(results)
    console.print()
    verb = "would be applied" if dry_run else "applied"
    if stats.successful:
        console.print(
            f"  [green]{stats.successful} fixes {verb}[/green] "
            f"across {stats.files_modified} files ({stats.lines_modified} lines)."
        )
    if stats.failed:
        console.print(f"  [red]{stats.failed} fixes failed.[/red]")
    if stats.successful and not dry_run:
        console.print("  [dim]Run `llm-guardian rollback` to restore the originals.[/dim]")
    console.print()


def print_validation_report(report: ValidationReport) -> None:
    if report.all_passed:
        verdict = "[green bold]PASS[/green bold]"
        border = "green"
    else:
        verdict = "[red bold]FAIL[/red bold]"
        border = "red"

    lines = ["", f"  Verdict:  {verdict}  ({report.files_validated} files)", ""]
    for outcome in report.outcomes:
        if outcome.passed:
            lines.append(f"  [green]✅ {outcome.procedure_name}[/green]  [dim]{outcome.duration_ms}ms[/dim]")
        else:
            lines.append(f"  [red]❌ {outcome.procedure_name}[/red]  {outcome.error or ''}")
    for name in report.skipped:
        lines.append(f"  [dim]- {name} (not configured)[/dim]")
    if not report.all_passed:
        lines.append("")
        lines.append("  Undo: [bold]llm-guardian rollback[/bold]")

    console.print(Panel(
        "\n".join(lines),
        title="[bold]Validation[/bold]",
        border_style=border,
        padding=(0, 1),
    ))


def print_snapshot_list(snapshots: list[Snapshot], root: Path | None = None) -> None:
    console.print("\n[bold]Snapshot files[/bold]\n")
    for snap in snapshots:
        console.print(f"  [cyan]•[/cyan] [bold]{relative(snap.original, root)}[/bold]")
        console.print(f"    [dim]Size: {snap.size / 1024:.2f} KB[/dim]")
        console.print(f"    [dim]Modified: {snap.modified_time:%Y-%m-%d %H:%M:%S}[/dim]")
    console.print(f"\n[dim]Total: {len(snapshots)} snapshot file(s)[/dim]")
    console.print("[dim]Use `llm-guardian rollback` to restore all[/dim]")
    console.print("[dim]Use `llm-guardian rollback --file <path>` to restore one file[/dim]\n")


def print_restore_summary(summary: RestoreSummary, cleanup: bool) -> None:
    if summary.restored:
        console.print(f"[green]✅ Restored {summary.restored} file(s) from snapshot[/green]")
        if cleanup:
            console.print(f"[dim]   Deleted {summary.restored} snapshot file(s)[/dim]")
        else:
            console.print("[dim]   Snapshots preserved (use --cleanup to delete)[/dim]")
    for error in summary.errors:
        error_console.print(f"[red]Failed to restore {error}[/red]")
    if summary.failed:
        console.print(f"[yellow]{summary.failed} file(s) failed to restore[/yellow]")


def result_dicts(results: list[PatchResult]) -> list[dict[str, Any]]:
    return [asdict(r) for r in results]


def get_progress() -> Progress:
    """Create a spinner for long-running stages."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )
