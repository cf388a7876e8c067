"""formint CLI."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table as RichTable

from formint.exceptions import FormintError, PageImageError
from formint.logging_config import setup_logging
from formint.models import ProcessingResult, ValidationRuleType, round_half_up
from formint.pipeline import DocumentRunner, FieldSynthesizer
from formint.providers import CAPABILITIES, get_provider
from formint.review import (
    OverlayRenderer,
    PDFPageImages,
    RenderConfig,
    ReviewSession,
    Viewport,
    open_page_images,
)

app = typer.Typer(
    name="formint",
    help="Synthesize reviewable form fields from document-analysis block graphs",
    add_completion=False,
)
console = Console()


def _parse_pages(pages: Optional[str]) -> Optional[list[int]]:
    if not pages:
        return None
    try:
        numbers = [int(p) for p in pages.split(",") if p.strip()]
    except ValueError:
        raise typer.BadParameter(f"Expected comma-separated page numbers, got {pages!r}")
    if any(number < 1 for number in numbers):
        raise typer.BadParameter(f"Page numbers start at 1, got {pages!r}")
    return numbers


def _parse_size(size: str) -> tuple[int, int]:
    try:
        width, height = (int(v) for v in size.lower().split("x"))
    except ValueError:
        raise typer.BadParameter(f"Expected WIDTHxHEIGHT, got {size!r}")
    return (width, height)


def _run(source: str, provider: Optional[str], timeout: Optional[float], pages: Optional[str]) -> ProcessingResult:
    try:
        runner = DocumentRunner(provider=get_provider(provider), timeout=timeout)
        result = runner.run(source, pages=_parse_pages(pages))
    except FormintError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    for warning in result.metadata.warnings:
        console.print(f"[yellow]{escape(warning)}[/yellow]")
    return result


def _session(
    result: ProcessingResult,
    image: Optional[str],
    language: Optional[str],
    units: Optional[str],
) -> ReviewSession:
    try:
        synthesizer = FieldSynthesizer(threshold_units=units, language=language)
    except FormintError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    images = open_page_images(image) if image else None
    return ReviewSession.from_result(result, synthesizer=synthesizer, images=images)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level (default from settings)"),
) -> None:
    """Configure logging for every command."""
    setup_logging(log_level)


@app.command()
def extract(
    source: str = typer.Argument(..., help="Saved provider response (JSON block graph)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the result JSON here"),
    provider: Optional[str] = typer.Option(None, help="Provider id (default from settings)"),
    timeout: Optional[float] = typer.Option(None, help="Per-page timeout in seconds"),
    pages: Optional[str] = typer.Option(None, help="Comma-separated page numbers"),
    tables: bool = typer.Option(False, "--tables", help="Print reconstructed tables as markdown"),
) -> None:
    """Extract form elements and tables from a block graph."""
    console.print(f"[bold blue]Extracting:[/bold blue] {source}")
    result = _run(source, provider, timeout, pages)

    summary = RichTable(title="Pages")
    summary.add_column("Page", justify="right")
    summary.add_column("Elements", justify="right")
    summary.add_column("Tables", justify="right")
    summary.add_column("Confidence", justify="right")
    summary.add_column("Status")
    for number, outcome in sorted(result.pages.items()):
        status = "[green]ok[/green]" if outcome.ok else f"[red]{escape(outcome.error or '')}[/red]"
        summary.add_row(
            str(number), str(len(outcome.elements)), str(len(outcome.tables)), f"{outcome.confidence}%", status
        )
    console.print(summary)

    if tables:
        for table in result.tables:
            merged = sum(1 for cell in table.iter_cells() if cell.is_merged)
            console.print(
                f"[bold]{table.id}[/bold] [dim](page {table.page_number}, "
                f"{table.rows}x{table.columns}, {merged} merged cells)[/dim]"
            )
            console.print(table.to_markdown() or "[dim]empty[/dim]", markup=False)

    payload = result.model_dump(mode="json", by_alias=True)
    if output:
        Path(output).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[dim]Wrote {output}[/dim]")
    else:
        console.print_json(data=payload)


@app.command()
def fields(
    source: str = typer.Argument(..., help="Saved provider response (JSON block graph)"),
    image: Optional[str] = typer.Option(None, help="Page image or PDF used to scale thresholds"),
    language: Optional[str] = typer.Option(None, help="Display language for labels"),
    units: Optional[str] = typer.Option(None, help="Threshold units: pixels or raw"),
    as_json: bool = typer.Option(False, "--json", help="Print fields and sections as JSON"),
) -> None:
    """Synthesize form fields and sections."""
    result = _run(source, None, None, None)
    session = _session(result, image, language, units)

    if as_json:
        console.print_json(
            data={
                "fields": [f.model_dump(mode="json", by_alias=True) for f in session.fields],
                "sections": [s.model_dump(mode="json", by_alias=True) for s in session.sections],
            }
        )
        return

    table = RichTable(title=f"Fields ({len(session.fields)})")
    for column in ("Id", "Label", "Name", "Type", "Page", "Req", "PHI", "Verify", "Default", "Help"):
        table.add_column(column)
    for generated in session.fields:
        table.add_row(
            generated.id,
            generated.label,
            generated.name,
            generated.type.value,
            str(generated.page_number or ""),
            "*" if generated.required else "",
            "PHI" if generated.is_phi_field else "",
            "yes" if generated.has_rule(ValidationRuleType.CUSTOM) else "",
            generated.default_value,
            generated.help_text,
        )
    console.print(table)

    for section in session.sections:
        console.print(f"[bold]{section.name}[/bold] [dim]({section.id})[/dim]: {', '.join(section.field_ids)}")


@app.command()
def overlay(
    source: str = typer.Argument(..., help="Saved provider response (JSON block graph)"),
    image: str = typer.Argument(..., help="Page image or PDF"),
    output: str = typer.Option("overlay.png", "--output", "-o", help="Output PNG path"),
    page: int = typer.Option(1, help="1-indexed page number"),
    canvas: Optional[str] = typer.Option(None, help="Fit into a WIDTHxHEIGHT canvas"),
    confidence: bool = typer.Option(False, help="Draw confidence badges"),
) -> None:
    """Draw element boxes over a page image."""
    result = _run(source, None, None, None)
    renderer = OverlayRenderer(RenderConfig(show_confidence=confidence))
    session = _session(result, image, None, None)
    session.renderer = renderer

    if not session.navigate_to_page(page):
        console.print(f"[bold red]Error:[/bold red] page {page} was not processed")
        raise typer.Exit(code=1)

    page_image = session.page_image(page)
    if page_image is None:
        console.print(f"[bold red]Error:[/bold red] {escape(session.image_errors.get(page, 'no image'))}")
        raise typer.Exit(code=1)

    elements = session.elements_for_page(page)
    if canvas:
        rendered = session.draw(_parse_size(canvas))
        if rendered is None:
            console.print("[bold red]Error:[/bold red] page could not be drawn")
            raise typer.Exit(code=1)
    else:
        rendered = renderer.render(page_image, elements)
    rendered.save(output)
    console.print(f"[bold blue]Overlay:[/bold blue] {len(elements)} elements -> {output}")


@app.command()
def hit(
    source: str = typer.Argument(..., help="Saved provider response (JSON block graph)"),
    x: float = typer.Argument(..., help="Display X coordinate"),
    y: float = typer.Argument(..., help="Display Y coordinate"),
    page: int = typer.Option(1, help="1-indexed page number"),
    image: Optional[str] = typer.Option(None, help="Page image or PDF (reference size if omitted)"),
    canvas: Optional[str] = typer.Option(None, help="Canvas WIDTHxHEIGHT (image drawn at natural size if omitted)"),
) -> None:
    """Report the element under a display point."""
    result = _run(source, None, None, None)
    session = _session(result, image, None, None)
    if not session.navigate_to_page(page):
        console.print(f"[bold red]Error:[/bold red] page {page} was not processed")
        raise typer.Exit(code=1)

    size = session.page_size(page)
    viewport = Viewport.fit(size, _parse_size(canvas)) if canvas else Viewport.identity(size)
    element = session.click(x, y, viewport)
    point = viewport.to_normalized(x, y)
    if point is not None:
        console.print(f"[dim]page point: ({point[0]:.4f}, {point[1]:.4f})[/dim]")
    if element is None:
        console.print("[dim]No selection[/dim]")
        return
    console.print(
        f"[bold]{element.id}[/bold] {element.type.value} {element.text!r} "
        f"({round_half_up(element.confidence)}%)"
    )
    box = element.bounding_box.to_pixels(*size)
    console.print(
        f"[dim]page pixels: left={box.left:.1f} top={box.top:.1f} "
        f"width={box.width:.1f} height={box.height:.1f}[/dim]"
    )


@app.command()
def render(
    pdf: str = typer.Argument(..., help="PDF to render"),
    output_dir: str = typer.Option("pages", "--output-dir", "-o", help="Directory for page PNGs"),
    scale: Optional[float] = typer.Option(None, help="Zoom relative to 72 DPI (default from settings)"),
    pages: Optional[str] = typer.Option(None, help="Comma-separated page numbers"),
) -> None:
    """Render PDF pages to PNG review images."""
    images = PDFPageImages(pdf, scale)
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    table = RichTable(title="Rendered pages")
    for column in ("Page", "Size", "Scale", "Bytes", "Path"):
        table.add_column(column)
    try:
        page_numbers = _parse_pages(pages) or list(range(1, images.page_count() + 1))
        for number in page_numbers:
            info = images.render_page(number, out / f"page_{number}.png")
            width, height = info.size
            table.add_row(str(number), f"{width}x{height}", f"{info.scale}", str(info.file_size_bytes), info.image_path)
    except PageImageError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    console.print(table)


@app.command()
def providers() -> None:
    """List document-analysis providers and their capabilities."""
    table = RichTable(title="Providers")
    for column in ("Id", "Name", "Tables", "Forms", "Handwriting", "Max pages", "File types"):
        table.add_column(column)
    for capabilities in CAPABILITIES.values():
        table.add_row(
            capabilities.id,
            capabilities.name,
            "yes" if capabilities.supports_tables else "",
            "yes" if capabilities.supports_form_extraction else "",
            "yes" if capabilities.supports_handwriting else "",
            str(capabilities.max_pages),
            " ".join(capabilities.file_types),
        )
    console.print(table)


if __name__ == "__main__":
    app()
