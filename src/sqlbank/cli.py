"""
CLI for sqlbank.

Provides command-line access to building the HTML site, maintaining tables
of contents, linting, exporting and searching a SQL question bank.

Usage:
    sqlbank build README.md -o site
    sqlbank toc README.md --write
    sqlbank lint content/ --strict
    sqlbank stats README.md
    sqlbank export README.md -o bank.json
    sqlbank search "window function" --tier advanced
"""

import functools
import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sqlbank import __version__
from sqlbank.config import SqlBankConfig, get_settings
from sqlbank.errors import SqlBankError
from sqlbank.logging import configure_logging
from sqlbank.model import Difficulty
from sqlbank.orchestrator import BankOrchestrator

console = Console()
err_console = Console(stderr=True)

DEFAULT_CONFIG_NAMES = ("sqlbank.yaml", "sqlbank.yml")

content_argument = click.argument(
    "content",
    required=False,
    type=click.Path(exists=True, path_type=Path),
)


def handle_errors(func):
    """Turn SqlBankError into a one-line message and exit code 2."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SqlBankError as e:
            err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            raise SystemExit(2) from e

    return wrapper


def _load_config(config_path: Path | None) -> SqlBankConfig:
    if config_path is None:
        config_path = get_settings().config_file
    if config_path is None:
        for name in DEFAULT_CONFIG_NAMES:
            if Path(name).is_file():
                config_path = Path(name)
                break
    if config_path is None:
        return SqlBankConfig()
    return SqlBankConfig.from_yaml(config_path)


def _orchestrator(ctx: click.Context, content: Path | None, output_dir: Path | None = None) -> BankOrchestrator:
    config: SqlBankConfig = ctx.obj["config"]
    return BankOrchestrator(content_path=content, output_dir=output_dir, config=config)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML configuration file (default: ./sqlbank.yaml if present).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (default from SQLBANK_LOG_LEVEL).",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "console"]),
    help="Log output format (default from SQLBANK_LOG_FORMAT).",
)
@click.pass_context
@handle_errors
def cli(ctx: click.Context, config_path: Path | None, log_level: str | None, log_format: str | None):
    """SQL question bank tooling.

    Load a Markdown question bank, keep its tables of contents current,
    check its structure, and render it as a static HTML site.
    """
    settings = get_settings()
    configure_logging(
        level=(log_level or settings.log_level).upper(),
        json_format=(log_format or settings.log_format) == "json",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = _load_config(config_path)


@cli.command()
@content_argument
@click.option(
    "--output-dir", "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to write the site to (default from config: site).",
)
@click.pass_context
@handle_errors
def build(ctx: click.Context, content: Path | None, output_dir: Path | None):
    """Render the question bank as a static HTML site.

    Examples:
        sqlbank build README.md
        sqlbank build content/ -o public
    """
    console.print("\n[bold blue]📚 Building site[/bold blue]\n")

    orchestrator = _orchestrator(ctx, content, output_dir)
    results = orchestrator.build_site()

    table = Table()
    table.add_column("Page", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Status", justify="center")

    for page, size in results.items():
        status = "✅" if size > 0 else "❌"
        size_str = f"{size:,} bytes" if size > 0 else "-"
        table.add_row(escape(page), size_str, status)

    console.print(table)
    console.print(f"\nWrote site to [bold]{orchestrator.output_dir}[/bold]")

    if orchestrator.errors:
        for error in orchestrator.errors:
            err_console.print(f"  ❌ {escape(error)}")
        ctx.exit(1)


@cli.command()
@content_argument
@click.option("--write", "-w", is_flag=True, help="Rewrite the TOC block in each file.")
@click.option("--check", is_flag=True, help="Exit 1 if any TOC block is out of date.")
@click.pass_context
@handle_errors
def toc(ctx: click.Context, content: Path | None, write: bool, check: bool):
    """Generate tables of contents from headings.

    Prints the TOC for each file by default. With --write, replaces the
    block between <!-- toc --> and <!-- tocstop --> (adding it when
    missing). With --check, exits 1 when a marked block is out of date;
    files without markers pass, as in lint rule SB007.
    """
    orchestrator = _orchestrator(ctx, content)

    if check:
        current = orchestrator.check_toc()
        for path, is_current in current.items():
            if is_current:
                console.print(f"  [green]current[/green] {escape(path)}")
            else:
                console.print(f"  [yellow]out of date[/yellow] {escape(path)}")
        if not all(current.values()):
            ctx.exit(1)
        return

    if write:
        changed = orchestrator.write_toc()
        for path, is_changed in changed.items():
            if is_changed:
                console.print(f"  [yellow]updated[/yellow] {escape(path)}")
            else:
                console.print(f"  [green]current[/green] {escape(path)}")
        if orchestrator.errors:
            ctx.exit(1)
        return

    tocs = orchestrator.render_toc()
    many = len(tocs) > 1
    for path, markdown in tocs.items():
        if many:
            click.echo(f"<!-- {path} -->")
        click.echo(markdown, nl=False)
        if many:
            click.echo()


@cli.command()
@content_argument
@click.option("--strict", is_flag=True, help="Treat warnings as failures.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_errors
def lint(ctx: click.Context, content: Path | None, strict: bool, as_json: bool):
    """Check document structure.

    Checks that TOC links resolve, SQL blocks read as SQL, sibling headings
    have distinct anchors, fences are closed, and topics are not empty.
    """
    orchestrator = _orchestrator(ctx, content)
    report = orchestrator.lint()

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        console.print("\n[bold blue]🔍 Linting question bank[/bold blue]\n")
        for issue in report.issues:
            color = "red" if issue.severity.value == "error" else "yellow"
            console.print(
                f"  [{color}]{issue.code}[/{color}] {escape(str(issue.path))}:{issue.line} "
                f"[dim]{issue.rule}[/dim] {escape(issue.message)}",
                highlight=False,
            )
        if report.issues:
            console.print()
        summary = (
            f"{report.files_checked} files checked: "
            f"{len(report.errors)} errors, {len(report.warnings)} warnings"
        )
        if report.ok and not (strict and report.warnings):
            console.print(f"[bold green]✅ {summary}[/bold green]")
        else:
            console.print(f"[bold red]❌ {summary}[/bold red]")

    if not report.ok or (strict and report.warnings):
        ctx.exit(1)


@cli.command()
@content_argument
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_errors
def stats(ctx: click.Context, content: Path | None, as_json: bool):
    """Show counts of categories, topics and snippets."""
    orchestrator = _orchestrator(ctx, content)
    bank_stats = orchestrator.get_stats()

    if as_json:
        click.echo(json.dumps(bank_stats, indent=2))
        return

    console.print("\n[bold blue]📊 Question Bank Statistics[/bold blue]\n")

    table = Table(title="Content")
    table.add_column("Item", style="cyan")
    table.add_column("Count", justify="right")
    for key in ("documents", "categories", "topics", "snippets", "headings", "code_blocks", "links"):
        table.add_row(key.replace("_", " ").capitalize(), str(bank_stats[key]))
    console.print(table)

    tiers = Table(title="Topics by tier")
    tiers.add_column("Tier", style="cyan")
    tiers.add_column("Topics", justify="right")
    for tier, count in bank_stats["topics_by_tier"].items():
        tiers.add_row(tier.capitalize(), str(count))
    console.print(tiers)


@cli.command()
@content_argument
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: <output-dir>/bank.json).",
)
@click.pass_context
@handle_errors
def export(ctx: click.Context, content: Path | None, output: Path | None):
    """Export the parsed question bank as JSON."""
    orchestrator = _orchestrator(ctx, content)
    path = orchestrator.export_json(output)
    console.print(f"✅ Exported to {path}")


@cli.command()
@click.argument("query")
@content_argument
@click.option(
    "--tier", "-t",
    type=click.Choice([t.value for t in Difficulty], case_sensitive=False),
    help="Only search one difficulty tier.",
)
@click.option("--limit", "-n", type=int, default=20, show_default=True, help="Maximum results.")
@click.pass_context
@handle_errors
def search(ctx: click.Context, query: str, content: Path | None, tier: str | None, limit: int):
    """Find questions by keyword.

    Every word of QUERY must appear in the topic title or text.
    """
    orchestrator = _orchestrator(ctx, content)
    hits = orchestrator.search(query, tier=Difficulty(tier.lower()) if tier else None)

    if not hits:
        console.print(f"No questions match {escape(repr(query))}")
        ctx.exit(1)

    table = Table(title=f"Results for {escape(repr(query))}")
    table.add_column("Question", style="cyan")
    table.add_column("Category")
    table.add_column("Tier")
    table.add_column("Location", style="dim")
    for hit in hits[:limit]:
        table.add_row(
            escape(hit.topic.title),
            escape(hit.category.name),
            hit.category.tier.value,
            escape(f"{hit.document.path}#{hit.topic.anchor}"),
        )
    console.print(table)
    if len(hits) > limit:
        console.print(f"... and {len(hits) - limit} more")


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
