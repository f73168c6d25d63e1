"""Rich console output utilities for the persona-kit CLI."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from personas.document import PersonaDocument
from personas.validate import ValidationResult
from routing.router import RoutingDecision
from schemas.quality_report import FindingSeverity, QualityReport, QualityStatus

console = Console()
error_console = Console(stderr=True)

SEVERITY_STYLES = {
    FindingSeverity.ERROR: "red",
    FindingSeverity.WARNING: "yellow",
    FindingSeverity.INFO: "blue",
}

STATUS_STYLES = {
    QualityStatus.CLEAN: "green",
    QualityStatus.FIXED: "green",
    QualityStatus.ISSUES_FOUND: "yellow",
    QualityStatus.NEEDS_REVIEW: "magenta",
}


def print_success(message: str, stderr: bool = False) -> None:
    """Print a success message."""
    (error_console if stderr else console).print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str, stderr: bool = False) -> None:
    """Print a warning message (to stderr when stdout carries JSON)."""
    (error_console if stderr else console).print(f"[yellow]![/yellow] {message}")


def print_info(message: str, stderr: bool = False) -> None:
    """Print an info message."""
    (error_console if stderr else console).print(f"[blue]→[/blue] {message}")


def print_json(data: Any) -> None:
    """Print formatted JSON."""
    console.print_json(json.dumps(data, indent=2, default=str))


def print_config(config: dict[str, Any]) -> None:
    """Print configuration sections as a table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value")

    for section, values in config.items():
        for key, value in values.items():
            table.add_row(f"{section}.{key}", str(value))

    console.print(table)


def print_personas(personas: list[PersonaDocument]) -> None:
    """Print personas as a table."""
    if not personas:
        print_info("No personas found.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Model")
    table.add_column("Priority", justify="right")
    table.add_column("Examples", justify="right")
    table.add_column("Source", style="dim")

    for doc in personas:
        table.add_row(
            doc.name,
            doc.model or "-",
            str(doc.priority),
            str(len(doc.examples)),
            str(doc.source or "-"),
        )

    console.print(table)


def print_persona_detail(doc: PersonaDocument) -> None:
    """Print a persona's summary, methodology and examples."""
    meta = [f"[bold]version:[/bold] {doc.version}"]
    if doc.model:
        meta.append(f"[bold]model:[/bold] {doc.model}")
    if doc.tools:
        meta.append(f"[bold]tools:[/bold] {', '.join(doc.tools)}")
    if doc.keywords:
        meta.append(f"[bold]keywords:[/bold] {', '.join(doc.keywords)}")
    meta.append(f"[bold]tokens:[/bold] ~{doc.estimated_tokens}")

    console.print(Panel(
        f"{doc.summary}\n\n" + "\n".join(meta),
        title=f"[bold cyan]{doc.name}[/bold cyan]",
        border_style="cyan",
    ))

    steps = doc.methodology()
    if steps:
        console.print("[bold]Methodology[/bold]")
        for number, text in steps:
            console.print(f"  {number}. {text}")
        console.print()

    if doc.examples:
        tree = Tree("[bold]Examples[/bold]")
        for example in doc.examples:
            branch = tree.add(example.context or "[dim](no context)[/dim]")
            for turn in example.turns:
                branch.add(f"[bold]{turn.role}:[/bold] {turn.content}")
        console.print(tree)


def print_validation(result: ValidationResult) -> None:
    """Print one validation result."""
    if result.is_valid:
        print_success(f"{result.name}: valid")
    else:
        print_error(f"{result.name}: {len(result.errors)} error(s)")

    for error in result.errors:
        console.print(f"    [red]error[/red] {error}")
    for warning in result.warnings:
        console.print(f"    [yellow]warning[/yellow] {warning}")


def print_routing(decision: RoutingDecision) -> None:
    """Print a routing decision and candidate scores."""
    if decision.routed:
        print_success(f"Routed to [bold cyan]{decision.persona}[/bold cyan]")
    else:
        print_warning("No persona selected")
    console.print(f"  [dim]{decision.reason}[/dim]")

    if decision.candidates:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Persona", style="cyan")
        table.add_column("Score", justify="right")
        for name, score in decision.candidates:
            table.add_row(name, f"{score:.2f}")
        console.print(table)


def print_report(report: QualityReport) -> None:
    """Print a quality report."""
    style = STATUS_STYLES.get(report.status, "white")
    counts = report.counts
    console.print(Panel(
        f"{report.summary or 'No summary.'}\n\n"
        f"[bold]findings:[/bold] {counts.total} "
        f"([red]{counts.errors} errors[/red], "
        f"[yellow]{counts.warnings} warnings[/yellow], {counts.info} info), "
        f"{counts.fixed} fixed",
        title=f"[bold {style}]{report.status.value}[/bold {style}]",
        border_style=style,
    ))

    if report.findings:
        table = Table(show_header=True, header_style="bold")
        table.add_column("File", style="cyan")
        table.add_column("Line", justify="right")
        table.add_column("Category")
        table.add_column("Severity")
        table.add_column("Message")
        table.add_column("Fixed", justify="center")

        for finding in report.findings:
            sev_style = SEVERITY_STYLES.get(finding.severity, "white")
            table.add_row(
                finding.file_path,
                str(finding.line) if finding.line is not None else "-",
                finding.category.value,
                f"[{sev_style}]{finding.severity.value}[/{sev_style}]",
                finding.message,
                "[green]✓[/green]" if finding.fixed else "",
            )
        console.print(table)

    if report.review_flags:
        console.print("[bold magenta]Needs human review[/bold magenta]")
        for flag in report.review_flags:
            where = f"{flag.file_path}:{flag.line}" if flag.line else flag.file_path
            console.print(f"  [magenta]?[/magenta] {where}: {flag.question}")
            for option in flag.options:
                console.print(f"      - {option}")
