# magnet_schema/cli.py
"""
CLI interface for magnet-schema.

Thin presentation layer over the builder, validator and equality modules.
Documents go to stdout; errors and logs go to stderr.
"""

import importlib
import json
from pathlib import Path
from typing import Any

import typer
import yaml

from magnet_schema.builder import SchemaBuilder
from magnet_schema.config.loader import get_config_path, load_config
from magnet_schema.config.schema import MagnetConfig
from magnet_schema.equality import document_diff
from magnet_schema.errors import ConfigError, SchemaError
from magnet_schema.introspect import shape_of
from magnet_schema.logging_config import configure_logging
from magnet_schema.shapes import SHAPE_TYPES
from magnet_schema.validator import (
    collmod_command,
    create_collection_command,
    dumps,
    to_validator,
)

app = typer.Typer(
    name="magnet-schema",
    help="Derive MongoDB $jsonSchema validators from Python types.",
    no_args_is_help=True,
)


def _load(config_path: Path | None) -> MagnetConfig:
    """Load config and set up stderr logging, exiting on a bad config file."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    configure_logging(config.log_level)
    return config


def _resolve_target(target: str) -> Any:
    """Import ``module:QualName`` and return the named object."""
    module_name, sep, qualname = target.partition(":")
    if not sep or not module_name or not qualname:
        raise ValueError(f"target must look like 'module:QualName', got '{target}'")

    obj: Any = importlib.import_module(module_name)
    for attr in qualname.split("."):
        obj = getattr(obj, attr)
    return obj


@app.command()
def derive(
    target: str = typer.Argument(..., help="Type to derive from, as module:QualName"),
    validator: bool = typer.Option(
        None, "--validator/--raw", help="Wrap the schema in {\"$jsonSchema\": ...}"
    ),
    collection: str = typer.Option(None, "--collection", help="Emit a create command for this collection"),
    collmod: bool = typer.Option(False, "--collmod", help="Emit collMod instead of create"),
    indent: int = typer.Option(None, "--indent", min=0, max=8, help="JSON indentation (0 = compact)"),
    config_path: Path = typer.Option(None, "--config", help="Config file to use"),
):
    """Derive the schema for a Python type (or a shape object)."""
    config = _load(config_path)
    output = config.output

    if collmod and not collection:
        typer.echo("Error: --collmod requires --collection", err=True)
        raise typer.Exit(1)

    try:
        obj = _resolve_target(target)
    except (ImportError, AttributeError, ValueError) as e:
        typer.echo(f"Error: cannot load {target}: {e}", err=True)
        raise typer.Exit(1)

    try:
        shape = obj if isinstance(obj, SHAPE_TYPES) else shape_of(obj, config=config.derive)
        schema = SchemaBuilder(config.derive).build(shape)
    except SchemaError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if collection:
        command = collmod_command if collmod else create_collection_command
        document = command(
            collection, schema, output.validation_level, output.validation_action
        )
    elif output.wrap_validator if validator is None else validator:
        document = to_validator(schema)
    else:
        document = schema

    typer.echo(dumps(document, output.indent if indent is None else indent))


@app.command()
def compare(
    left: Path = typer.Argument(..., help="First JSON document"),
    right: Path = typer.Argument(..., help="Second JSON document"),
    unordered: list[str] = typer.Option(
        [], "--unordered", help="Keyword whose array value ignores order (repeatable)"
    ),
):
    """Compare two JSON documents, ignoring key order. Exit 1 if they differ."""
    from rich.console import Console
    from rich.markup import escape

    documents = []
    for path in (left, right):
        try:
            documents.append(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError) as e:
            typer.echo(f"Error: cannot read {path}: {e}", err=True)
            raise typer.Exit(2)

    differences = document_diff(*documents, unordered_keys=unordered)
    if not differences:
        typer.echo("Documents are equal.")
        return

    console = Console(highlight=False, soft_wrap=True)
    console.print(f"[bold]{len(differences)} difference(s):[/bold]")
    for line in differences:
        console.print(f"  [red]{escape(line)}[/red]")
    raise typer.Exit(1)


@app.command("config")
def show_config(
    config_path: Path = typer.Option(None, "--config", help="Config file to use"),
):
    """Show the config file path and the effective settings."""
    config = _load(config_path)
    typer.echo(f"# {config_path or get_config_path()}")
    typer.echo(
        yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False),
        nl=False,
    )
