"""
ConceptForge command-line interface.

Commands
--------
    conceptforge generate notes.md                 # Markdown to stdout
    conceptforge generate - < notes.md             # Read stdin
    conceptforge generate notes.md --format json -o map.json
    conceptforge generate notes.md --style academic --max-concepts 10 \\
        --disable-stage enrichment
    conceptforge styles                            # List style presets
    conceptforge serve --port 8000                 # Start the HTTP API
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from conceptforge.cli.console import (
    ErrorRenderer,
    get_console,
    set_verbose_mode,
    tip,
    warn,
)
from conceptforge.core.config import (
    DEFAULT_STYLE,
    STAGE_NAMES,
    STYLE_PRESETS,
    AppConfig,
    PipelineConfig,
)
from conceptforge.core.config_loaders import load_config
from conceptforge.core.exceptions import ConceptForgeError, InvalidInputError
from conceptforge.core.logging import configure_logging
from conceptforge.core.pipeline import ConceptMapPipeline
from conceptforge.enrichment.enrichers import get_default_enricher
from conceptforge.shared.text_utils import read_text_with_fallback

OUTPUT_FORMATS = ("markdown", "json")

app = typer.Typer(
    name="conceptforge",
    help="Turn free-form text into concept maps (Markdown + Mermaid)",
    add_completion=False,
    pretty_exceptions_enable=False,
)


def _app_config(ctx: typer.Context) -> AppConfig:
    return ctx.obj if isinstance(ctx.obj, AppConfig) else AppConfig()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML config file (default: ./conceptforge.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show tracebacks and debug logs"),
    version: bool = typer.Option(False, "--version", "-v", help="Show version and exit"),
) -> None:
    """ConceptForge - text to concept maps."""
    if version:
        from conceptforge import __version__

        typer.echo(f"ConceptForge {__version__}")
        raise typer.Exit()

    set_verbose_mode(verbose)
    try:
        config = load_config(config_path)
    except ConceptForgeError as e:
        ErrorRenderer.render(e, context="While loading configuration")
        raise typer.Exit(1)

    configure_logging(
        level="DEBUG" if verbose else config.logging.level,
        log_file=config.logging.file_path,
        console=config.logging.console,
    )
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _read_source(source: str) -> str:
    """Read text from a file path or stdin ("-")."""
    if source == "-":
        return typer.get_text_stream("stdin").read()
    path = Path(source)
    if not path.is_file():
        raise InvalidInputError(
            f"File not found: {source}",
            how_to_fix=["Check the path", "Use '-' to read from stdin"],
        )
    return read_text_with_fallback(path)


def _build_options(
    max_concepts: Optional[int],
    style: Optional[str],
    disabled_stages: List[str],
    no_examples: bool,
    no_definitions: bool,
) -> dict:
    options: dict = {
        "maxConcepts": max_concepts,
        "style": style,
        "stages": {name: False for name in disabled_stages},
    }
    if no_examples:
        options["includeExamples"] = False
    if no_definitions:
        options["includeDefinitions"] = False
    return options


@app.command("generate")
def generate_command(
    ctx: typer.Context,
    source: str = typer.Argument("-", help="Input text file, or '-' for stdin"),
    max_concepts: Optional[int] = typer.Option(
        None, "--max-concepts", "-n", help="Keep at most N concepts"
    ),
    style: Optional[str] = typer.Option(
        None, "--style", "-s", help=f"Style preset (default: {DEFAULT_STYLE})"
    ),
    disable_stage: List[str] = typer.Option(
        [], "--disable-stage", "-d", help=f"Disable a stage: {', '.join(STAGE_NAMES)}"
    ),
    no_examples: bool = typer.Option(False, "--no-examples", help="Omit examples"),
    no_definitions: bool = typer.Option(
        False, "--no-definitions", help="Omit definitions"
    ),
    output_format: str = typer.Option(
        "markdown", "--format", "-f", help="Output format: markdown or json"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write to file instead of stdout"
    ),
    glossary: Optional[Path] = typer.Option(
        None, "--glossary", help="YAML glossary used for enrichment"
    ),
) -> None:
    """Generate a concept map from text."""
    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter(
            f"must be one of {', '.join(OUTPUT_FORMATS)}", param_hint="--format"
        )

    app_config = _app_config(ctx)
    try:
        text = _read_source(source)
        config = PipelineConfig.from_options(
            _build_options(max_concepts, style, disable_stage, no_examples, no_definitions),
            base=app_config.pipeline,
        )
        enricher = get_default_enricher(glossary)
        result = ConceptMapPipeline(config, enricher).run(text)
    except ConceptForgeError as e:
        ErrorRenderer.render(e, context=f"While processing {source}")
        raise typer.Exit(1)

    for warning in result.metadata.warnings:
        warn(warning.get("message", warning.get("type", "")))

    if output_format == "json":
        rendered = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    else:
        rendered = result.content

    if output is not None:
        output.write_text(rendered, encoding="utf-8")
        get_console().print(
            f"[green]Wrote[/green] {output} "
            f"({result.metadata.concept_count} concepts, "
            f"{result.metadata.relationship_count} relationships)"
        )
        return

    typer.echo(rendered)
    if not result.concepts:
        tip("Try a longer text with more distinct terms")


@app.command("styles")
def styles_command() -> None:
    """List available style presets."""
    table = Table(title="Style Presets")
    table.add_column("Name", style="cyan")
    table.add_column("Font")
    table.add_column("Level colors")
    table.add_column("Default", justify="center")

    for name in sorted(STYLE_PRESETS):
        preset = STYLE_PRESETS[name]
        table.add_row(
            name,
            preset.font_family,
            " ".join(preset.node_colors),
            "*" if name == DEFAULT_STYLE else "",
        )

    get_console().print(table)


@app.command("serve")
def serve_command(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port"),
) -> None:
    """Start the HTTP API server."""
    from conceptforge.api.main import run_server

    config = _app_config(ctx)
    if host:
        config.api.host = host
    if port:
        config.api.port = port
    run_server(config)


def cli_main() -> None:
    """Entry point for console_scripts."""
    app()


if __name__ == "__main__":
    cli_main()
