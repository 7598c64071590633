"""llm-guardian check command."""

from __future__ import annotations

import json
import sys
from dataclasses import replace
from pathlib import Path

import click

from llmguardian.core.config import load_config
from llmguardian.core.files import GitError
from llmguardian.core.models import enrichment_statistics
from llmguardian.core.output import (
    console,
    error_console,
    get_progress,
    print_analysis_report,
    print_patch_results,
    print_validation_report,
    prompt_decision,
    report_to_dict,
    result_dicts,
)
from llmguardian.fix.engine import GuardianPipeline
from llmguardian.fix.review import approve_all, reviewable
from llmguardian.scanner.analyzers import ANALYZER_NAMES

EXIT_OK = 0
EXIT_BLOCKING = 1
EXIT_ERROR = 2


@click.command()
@click.option("--all", "all_files", is_flag=True, help="Check every tracked file, not just staged ones")
@click.option("--analyzers", type=str, default=None, help=f"Comma-separated subset of: {', '.join(ANALYZER_NAMES)}")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
@click.option("--suggest", is_flag=True, help="Ask the suggestion engine for fixes")
@click.option("--fix", "apply", is_flag=True, help="Apply available fixes (implies --suggest)")
@click.option("--confidence", type=click.FloatRange(0.0, 1.0), default=None, help="Minimum fix confidence to apply")
@click.option("--interactive", "-i", is_flag=True, help="Review each fix before applying")
@click.option("--validate", is_flag=True, help="Run type-check/tests after applying fixes")
@click.option("--offline", is_flag=True, help="Skip package registry lookups")
@click.option("--dry-run", is_flag=True, help="Show what would change without writing files")
@click.option("--engine", type=click.Choice(["claude-cli", "anthropic", "none"]), default=None, help="Suggestion engine")
def check(
    all_files: bool,
    analyzers: str | None,
    as_json: bool,
    suggest: bool,
    apply: bool,
    confidence: float | None,
    interactive: bool,
    validate: bool,
    offline: bool,
    dry_run: bool,
    engine: str | None,
):
    """Check staged (or all) files for LLM-introduced issues."""
    project_path = Path.cwd()
    try:
        config = load_config(project_path)
    except Exception as e:
        error_console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(EXIT_ERROR)

    if offline:
        config.scan.offline = True
    if engine:
        config.fix.engine = engine
    names = [a.strip() for a in analyzers.split(",") if a.strip()] if analyzers else None

    pipeline = GuardianPipeline(project_path, config)
    try:
        sys.exit(_run(pipeline, names, all_files, as_json, suggest or apply, apply,
                      confidence, interactive, validate, dry_run))
    except (GitError, ValueError) as e:
        error_console.print(f"[red]Error: {e}[/red]")
        sys.exit(EXIT_ERROR)
    finally:
        pipeline.close()


def _run(
    pipeline: GuardianPipeline,
    names: list[str] | None,
    all_files: bool,
    as_json: bool,
    suggest: bool,
    apply: bool,
    confidence: float | None,
    interactive: bool,
    validate: bool,
    dry_run: bool,
) -> int:
    root = pipeline.project_path
    files = pipeline.collect_files(all_files=all_files)
    if not files:
        if as_json:
            click.echo(json.dumps({"summary": {"files_analyzed": 0}, "findings": []}))
        else:
            hint = "" if all_files else " (use --all to check every tracked file)"
            console.print(f"[yellow]No files to check{hint}[/yellow]")
        return EXIT_OK

    with get_progress() as progress:
        progress.add_task(f"Analyzing {len(files)} file(s)...", total=None)
        report = pipeline.analyze(files, names)

    findings = report.findings
    if suggest:
        with get_progress() as progress:
            progress.add_task("Generating fix suggestions...", total=None)
            findings = pipeline.enrich(findings, files)
        report = replace(report, findings=findings)

    if as_json:
        payload = report_to_dict(report, root)
        if apply:
            payload["patches"] = result_dicts(pipeline.apply(findings, dry_run=dry_run, min_confidence=confidence))
        click.echo(json.dumps(payload, indent=2, default=str))
        return EXIT_BLOCKING if report.has_blocking_findings else EXIT_OK

    print_analysis_report(report, root)
    if suggest:
        stats = enrichment_statistics(findings)
        console.print(
            f"  [dim]{stats.with_fix} of {stats.total} findings have a fix "
            f"(avg confidence {stats.avg_confidence:.0%})[/dim]\n"
        )

    if not apply:
        return EXIT_BLOCKING if report.has_blocking_findings else EXIT_OK

    candidates = reviewable(findings)
    if not candidates:
        console.print("  No fixes available to apply.\n")
        return EXIT_BLOCKING if report.has_blocking_findings else EXIT_OK

    review = pipeline.review(candidates, prompt_decision if interactive else approve_all)
    if review.cancelled:
        console.print("\n  [yellow]Review aborted. No changes applied.[/yellow]\n")
        return EXIT_BLOCKING if report.has_blocking_findings else EXIT_OK
    candidates = review.approved

    results = pipeline.apply(candidates, dry_run=dry_run, min_confidence=confidence)
    print_patch_results(results, dry_run=dry_run, root=root)

    fixed = {(r.file_path, r.finding_id) for r in results if r.success}
    remaining_blocking = any(
        f.severity.is_blocking and (f.file_path, f.id) not in fixed for f in findings
    )

    if validate and not dry_run and fixed:
        verdict = pipeline.validate(results)
        print_validation_report(verdict)
        if not verdict.all_passed:
            return EXIT_BLOCKING

    return EXIT_BLOCKING if remaining_blocking else EXIT_OK
