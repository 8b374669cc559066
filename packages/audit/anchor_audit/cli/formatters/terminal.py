"""Terminal formatter with Rich output."""

from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from anchor_core.models.diagnostic import Diagnostic
from anchor_core.models.risk import Severity


class TerminalFormatter:
    """
    Rich terminal output formatter for scan results.

    Diagnostics are printed in emission order as
    ``[SEVERITY] message (file:line)``. Info diagnostics are hidden unless
    ``verbose`` is set.
    """

    SEVERITY_COLORS = {
        Severity.ERROR: "red bold",
        Severity.WARNING: "yellow bold",
        Severity.INFO: "cyan bold",
    }

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        no_color: bool = False,
        console: Optional[Console] = None
    ):
        self.verbose = verbose
        self.quiet = quiet
        self.no_color = no_color
        self.console = console or Console(no_color=no_color, highlight=False)

    def format_diagnostics(
        self,
        diagnostics: List[Diagnostic],
        scan_path: str,
        scanned_files: int = 0
    ):
        """Format and display diagnostics."""
        visible = [d for d in diagnostics if not d.suppressed]
        if not self.verbose:
            visible = [d for d in visible if d.severity >= Severity.WARNING]

        if self.quiet and not visible:
            return

        if not self.quiet:
            self._print_header(scan_path, scanned_files)

        for diagnostic in visible:
            self._print_diagnostic(diagnostic)

        if self.quiet:
            return

        if not any(d.severity >= Severity.WARNING for d in visible):
            self.console.print("[green]No warnings or errors found.[/green]")
        self._print_summary(diagnostics)

    def _print_header(self, scan_path: str, scanned_files: int):
        header = Text()
        header.append("Anchor Audit Report\n", style="bold")
        header.append(f"Scanned: {scan_path}", style="dim")
        if scanned_files:
            header.append(f"\nFiles analyzed: {scanned_files}", style="dim")
        self.console.print(Panel(header, border_style="cyan"))
        self.console.print()

    def _print_diagnostic(self, diagnostic: Diagnostic):
        color = self.SEVERITY_COLORS[diagnostic.severity]
        label = escape(f"[{diagnostic.severity.label}]")
        self.console.print(
            f"[{color}]{label}[/{color}] {escape(diagnostic.message)} "
            f"[dim]({escape(diagnostic.file)}:{diagnostic.line})[/dim]",
            soft_wrap=True,
        )
        if self.verbose and diagnostic.remediation:
            self.console.print(
                f"    [dim]Fix:[/dim] {escape(diagnostic.remediation.description)}",
                soft_wrap=True,
            )

    def _print_summary(self, diagnostics: List[Diagnostic]):
        counts: Dict[Severity, int] = {s: 0 for s in (Severity.ERROR, Severity.WARNING, Severity.INFO)}
        suppressed = 0
        for d in diagnostics:
            if d.suppressed:
                suppressed += 1
            else:
                counts[d.severity] += 1

        parts = [
            f"[{self.SEVERITY_COLORS[s]}]{s.label}: {counts[s]}[/{self.SEVERITY_COLORS[s]}]"
            for s in counts
        ]
        if suppressed:
            parts.append(f"[dim]SUPPRESSED: {suppressed}[/dim]")

        self.console.print()
        self.console.print(f"[bold]Summary:[/bold] {' | '.join(parts)}")
        if counts[Severity.INFO] and not self.verbose:
            self.console.print("[dim]Info diagnostics hidden, use --verbose to show[/dim]")


def format_scan_results(
    diagnostics: List[Diagnostic],
    scan_path: str,
    scanned_files: int = 0,
    verbose: bool = False,
    quiet: bool = False,
    no_color: bool = False
):
    """Convenience function to format scan results."""
    formatter = TerminalFormatter(verbose=verbose, quiet=quiet, no_color=no_color)
    formatter.format_diagnostics(diagnostics, scan_path, scanned_files)
