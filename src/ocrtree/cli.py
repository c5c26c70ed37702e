"""ocrtree CLI."""

from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ocrtree.exceptions import OcrTreeError
from ocrtree.logger import configure_logging
from ocrtree.models import Dimensions
from ocrtree.reader import OcrFormat, parse_ocr_pages
from ocrtree.session import OcrSession

app = typer.Typer(
    name="ocrtree",
    help="Parse hOCR and ALTO files into a unified document tree",
    add_completion=False,
)
console = Console()


class OutputMode(str, Enum):
    TEXT = "text"
    JSON = "json"


def parse_reference_size(value: str) -> Dimensions:
    """Parse a ``WIDTHxHEIGHT`` reference size."""
    try:
        width, height = (float(v) for v in value.lower().split("x"))
        return Dimensions(width=width, height=height)
    except ValueError:
        raise typer.BadParameter(f"Expected WIDTHxHEIGHT, got {value!r}")


def _reference_sizes(values: Optional[list[str]]) -> Optional[list[Dimensions]]:
    if not values:
        return None
    return [parse_reference_size(v) for v in values]


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level, defaults to OCRTREE_LOG_LEVEL"),
) -> None:
    configure_logging(log_level)


@app.command()
def parse(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="hOCR or ALTO file"),
    fmt: OcrFormat = typer.Option(..., "--format", "-f", help="Markup format"),
    reference_size: Optional[list[str]] = typer.Option(
        None, "--reference-size", "-r", help="Reference size per page as WIDTHxHEIGHT"
    ),
    output: OutputMode = typer.Option(OutputMode.TEXT, help="Print page text or JSON"),
) -> None:
    """Print the text or the full tree of every page."""
    session = OcrSession().initialize()
    try:
        for idx, page in enumerate(
            parse_ocr_pages(path, fmt, _reference_sizes(reference_size), session=session)
        ):
            if output == OutputMode.JSON:
                console.print_json(page.model_dump_json())
                continue
            console.rule(f"Page {idx + 1}")
            console.print(page.text, markup=False, highlight=False)
    except OcrTreeError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command()
def stats(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="hOCR or ALTO file"),
    fmt: OcrFormat = typer.Option(..., "--format", "-f", help="Markup format"),
    reference_size: Optional[list[str]] = typer.Option(
        None, "--reference-size", "-r", help="Reference size per page as WIDTHxHEIGHT"
    ),
) -> None:
    """Show element counts and features per page."""
    session = OcrSession().initialize()
    table = Table(title=str(path))
    for column in ("Page", "Size", "Blocks", "Paragraphs", "Lines", "Words", "Features"):
        table.add_column(column)

    try:
        for idx, page in enumerate(
            parse_ocr_pages(path, fmt, _reference_sizes(reference_size), session=session)
        ):
            table.add_row(
                page.id or str(idx + 1),
                f"{page.width:g}x{page.height:g}",
                str(len(page.blocks)),
                str(len(page.paragraphs)),
                str(len(page.lines)),
                str(len(page.words)),
                ", ".join(f.value for f in page.features),
            )
    except OcrTreeError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)

    console.print(table)


if __name__ == "__main__":
    app()
