"""Console reporter using Rich library for formatted CLI output.

Shows per-case results while the probe runs and a summary table at
the end.
"""

from rich import box
from rich.console import Console
from rich.rule import Rule
from rich.table import Table

from upload_signer.reporters.base import Reporter
from upload_signer.models import CaseResult, ProbeReport, ResultStatus

STATUS_LABELS = {
    ResultStatus.PASS: "[green][PASS][/green]",
    ResultStatus.FAIL: "[red][FAIL][/red]",
    ResultStatus.ERROR: "[yellow][ERROR][/yellow]",
    ResultStatus.INFO: "[blue][INFO][/blue]",
}


class ConsoleReporter(Reporter):
    """Rich-based console reporter for CLI output.

    Args:
        quiet: If True, suppress per-case output (only show summary)
        console: Console to print to; a new one is created by default
    """

    def __init__(self, quiet: bool = False, console: Console = None):
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = console or Console(legacy_windows=True)
        self.quiet = quiet

    def on_case_start(self, case_id: str) -> None:
        """Currently a no-op for console reporter."""
        pass

    def on_case_complete(self, result: CaseResult) -> None:
        """Display a status indicator with case details."""
        if self.quiet:
            return

        self.console.print(f"  {STATUS_LABELS[result.status]}: {result.case_name}")

        if result.error_message and result.status != ResultStatus.PASS:
            self.console.print(f"     [dim]{result.error_message}[/dim]")

    def on_run_complete(self, report: ProbeReport) -> None:
        """Display a summary table of every case."""
        if not report.cases:
            self.console.print("[yellow]No results to display.[/yellow]")
            return

        self.console.print()
        self.console.print(
            Rule(f"[bold]Upload Probe: {report.bucket}[/bold]", style="magenta", characters="-")
        )

        table = Table(
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
            box=box.ASCII,
        )
        table.add_column("Case", style="cyan", no_wrap=True)
        table.add_column("Expected", justify="center", no_wrap=True)
        table.add_column("Actual", justify="center", no_wrap=True)
        table.add_column("Status", justify="center", no_wrap=True)

        for result in report.cases.values():
            table.add_row(
                result.case_name,
                result.expected,
                result.actual,
                STATUS_LABELS[result.status],
            )

        self.console.print(table)

        if report.all_passed:
            verdict = "[bold green]PASSED[/bold green]"
        else:
            verdict = "[bold red]FAILED[/bold red]"
        self.console.print(f"{verdict} in {report.duration_seconds:.1f}s")
        self.console.print()
