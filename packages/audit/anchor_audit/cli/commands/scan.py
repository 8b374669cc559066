"""Scan command implementation."""

from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console

from anchor_core.models.diagnostic import Diagnostic, filter_by_severity
from anchor_core.models.risk import Severity

from anchor_audit.analyzer import AnchorAnalyzer, SEED_SCOPES
from anchor_audit.config.ignore import (
    AuditConfig, IgnoreManager, load_baseline, filter_by_baseline, save_baseline
)
from anchor_audit.rules.engine import RuleEngine
from anchor_audit.scanners.rust_scanner import RustScanner
from anchor_audit.cli.formatters.terminal import format_scan_results

console = Console(stderr=True)

SEVERITY_CHOICES = ['error', 'warning', 'info']


def run_scan(
    path: Path,
    output_format: str = "terminal",
    output_path: Optional[Path] = None,
    min_severity: Optional[str] = None,
    fail_on_severity: Optional[str] = None,
    baseline_path: Optional[Path] = None,
    save_baseline_path: Optional[Path] = None,
    rules_dir: Optional[Path] = None,
    seed_scope: Optional[str] = None,
    include_instruction_handlers: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    no_color: bool = False
) -> int:
    """
    Run the analysis.

    Command-line values take precedence over .anchor-audit.yaml, which
    takes precedence over defaults.

    Returns exit code: 0 unless ``fail_on_severity`` (or ``scan.fail_on``)
    is set and a non-suppressed diagnostic at or above it was reported.
    """
    show_progress = not quiet and output_format == "terminal"

    ignore_manager = IgnoreManager()
    config_loaded = ignore_manager.load(path)
    config = ignore_manager.config or AuditConfig()

    if verbose and config_loaded and output_format == "terminal":
        console.print(f"[dim]Loaded config from: {ignore_manager.loaded_from}[/dim]")

    rule_engine = RuleEngine()
    custom_rules_dirs: Optional[List[Path]] = None
    if rules_dir:
        custom_rules_dirs = [rules_dir]
        if show_progress:
            console.print(f"[dim]Loading custom rules from: {rules_dir}[/dim]")
    rule_engine.load_rules(additional_dirs=custom_rules_dirs)

    analyzer = AnchorAnalyzer(
        engine=rule_engine,
        heuristics=config.heuristics,
        seed_scope=seed_scope or config.seed_scope,
        include_instruction_handlers=include_instruction_handlers or config.include_instruction_handlers,
    )
    scanner = RustScanner(analyzer=analyzer, exclude_patterns=ignore_manager.get_exclude_patterns())

    if show_progress:
        console.print("[dim]Scanning Rust files...[/dim]")

    results = scanner.scan(path)
    scanned_files = len(results)

    all_diagnostics: List[Diagnostic] = []
    for result in results:
        all_diagnostics.extend(result.diagnostics)

    all_diagnostics = [ignore_manager.apply_to_diagnostic(d) for d in all_diagnostics]

    if baseline_path and baseline_path.exists():
        baseline = load_baseline(baseline_path)
        all_diagnostics = filter_by_baseline(all_diagnostics, baseline)
        if show_progress:
            console.print(f"[dim]Filtered by baseline: {baseline_path}[/dim]")

    min_sev = Severity.from_string(min_severity or config.scan.min_severity)
    all_diagnostics = filter_by_severity(all_diagnostics, min_sev)

    if save_baseline_path:
        save_baseline(all_diagnostics, save_baseline_path)
        if show_progress:
            console.print(f"[dim]Saved baseline to: {save_baseline_path}[/dim]")

    if output_format == "terminal":
        format_scan_results(
            all_diagnostics,
            str(path),
            scanned_files,
            verbose=verbose,
            quiet=quiet,
            no_color=no_color
        )
    elif output_format == "json":
        from anchor_audit.cli.formatters.json import format_json
        json_output = format_json(all_diagnostics, str(path), scanned_files)
        if output_path:
            output_path.write_text(json_output, encoding="utf-8")
        else:
            click.echo(json_output)
    elif output_format == "sarif":
        from anchor_audit.cli.formatters.sarif import SARIFFormatter
        formatter = SARIFFormatter(rule_definitions=rule_engine.rules)
        if output_path:
            formatter.save(all_diagnostics, output_path)
            if not quiet:
                console.print(f"[dim]SARIF output saved to: {output_path}[/dim]")
        else:
            click.echo(formatter.format_to_string(all_diagnostics))

    fail_on = fail_on_severity or config.scan.fail_on
    if not fail_on:
        return 0

    threshold = Severity.from_string(fail_on)
    if any(d.is_actionable(threshold) for d in all_diagnostics):
        return 1
    return 0


@click.command()
@click.argument('path', type=click.Path(exists=True), default='.')
@click.option('--format', '-f', 'output_format',
              type=click.Choice(['terminal', 'json', 'sarif']),
              default='terminal', help='Output format')
@click.option('--output', '-o', type=click.Path(), help='Output file path (json/sarif)')
@click.option('--severity', '-s', type=click.Choice(SEVERITY_CHOICES),
              default=None, help='Minimum severity to report')
@click.option('--fail-on', type=click.Choice(SEVERITY_CHOICES), default=None,
              help='Exit with code 1 if diagnostics at this level are found')
@click.option('--baseline', type=click.Path(),
              help='Baseline file - only report new diagnostics')
@click.option('--save-baseline', type=click.Path(),
              help='Save current diagnostics as baseline')
@click.option('--rules-dir', type=click.Path(exists=True, file_okay=False),
              help='Directory of YAML rule files overriding builtin rule metadata')
@click.option('--seed-scope', type=click.Choice(list(SEED_SCOPES)), default=None,
              help='Check seed prefix collisions per file or across the project')
@click.option('--include-instruction-handlers', is_flag=True, default=False,
              help='Also check handler/handle_* functions outside the #[program] module')
@click.option('--no-color', is_flag=True, default=False,
              help='Disable colored output (for CI/CD environments)')
@click.pass_context
def scan(ctx: click.Context, path: str, output_format: str, output: Optional[str],
         severity: Optional[str], fail_on: Optional[str],
         baseline: Optional[str], save_baseline: Optional[str],
         rules_dir: Optional[str], seed_scope: Optional[str],
         include_instruction_handlers: bool, no_color: bool):
    """
    Scan Anchor program sources for security issues.

    PATH is the directory or .rs file to scan. Defaults to current directory.

    Examples:

        anchor-audit scan programs/

        anchor-audit scan . --format sarif --output results.sarif

        anchor-audit scan . --fail-on error

        anchor-audit scan . --seed-scope project

        anchor-audit scan . --save-baseline baseline.json
    """
    ctx.ensure_object(dict)
    exit_code = run_scan(
        path=Path(path),
        output_format=output_format,
        output_path=Path(output) if output else None,
        min_severity=severity,
        fail_on_severity=fail_on,
        baseline_path=Path(baseline) if baseline else None,
        save_baseline_path=Path(save_baseline) if save_baseline else None,
        rules_dir=Path(rules_dir) if rules_dir else None,
        seed_scope=seed_scope,
        include_instruction_handlers=include_instruction_handlers,
        verbose=ctx.obj.get('verbose', False),
        quiet=ctx.obj.get('quiet', False),
        no_color=no_color
    )

    ctx.exit(exit_code)
