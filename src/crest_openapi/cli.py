"""CLI entry point for crest-openapi."""

import json
import logging
from pathlib import Path

import click
import yaml

from crest_openapi.config import ENV_PREFIX, TransformOptions
from crest_openapi.descriptor.loader import DescriptorLoadError, load_descriptor
from crest_openapi.descriptor.models import ApiDescription
from crest_openapi.openapi.models import Swagger
from crest_openapi.transform.errors import TransformerError
from crest_openapi.transform.transformer import execute


def _load_all(doc_path: Path, external: tuple[Path, ...]) -> tuple[ApiDescription, list[ApiDescription]]:
    """Load the descriptor and its external descriptors."""
    try:
        description = load_descriptor(doc_path)
        externals = [load_descriptor(p) for p in external]
    except DescriptorLoadError as e:
        raise click.ClickException(str(e)) from e
    return description, externals


def _transform(description: ApiDescription, externals: list[ApiDescription], options: TransformOptions) -> Swagger:
    try:
        return execute(description, *externals, options=options)
    except TransformerError as e:
        raise click.ClickException(str(e)) from e


def _render(swagger: Swagger, fmt: str) -> str:
    data = swagger.to_dict()
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _output_format(output: Path, fmt: str) -> str:
    if fmt != "auto":
        return fmt
    return "yaml" if output.suffix.lower() in (".yaml", ".yml") else "json"


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log transformation details.")
def main(verbose: bool):
    """crest-openapi: convert CREST API descriptors into OpenAPI 2.0 documents."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the OpenAPI document.")
@click.option("-e", "--external", multiple=True, type=click.Path(exists=True, path_type=Path), help="External descriptor used to resolve qualified references (repeatable).")
@click.option("--title", envvar=ENV_PREFIX + "TITLE", default=None, help="API title.")
@click.option("--host", envvar=ENV_PREFIX + "HOST", default=None, help="Host name or IP address, with optional port.")
@click.option("--base-path", envvar=ENV_PREFIX + "BASE_PATH", default=None, help="Base path on the host.")
@click.option("--secure/--insecure", envvar=ENV_PREFIX + "SECURE", default=False, help="Serve over HTTPS.")
@click.option("--format", "fmt", default="auto", type=click.Choice(["auto", "json", "yaml"]), help="Output format.")
def transform(doc_path: Path, output: Path, external: tuple[Path, ...], title: str | None, host: str | None,
              base_path: str | None, secure: bool, fmt: str):
    """Transform an API descriptor into an OpenAPI 2.0 document."""
    click.echo(f"Loading {doc_path}...")
    description, externals = _load_all(doc_path, external)
    if externals:
        click.echo(f"Registered {len(externals)} external descriptor(s).")

    options = TransformOptions(title=title, host=host, base_path=base_path, secure=secure)
    swagger = _transform(description, externals, options)
    click.echo(f"Built {len(swagger.paths)} paths and {len(swagger.definitions)} definitions.")

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(_render(swagger, _output_format(output, fmt)), encoding="utf-8")
    click.echo(f"OpenAPI document saved to {output}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("-e", "--external", multiple=True, type=click.Path(exists=True, path_type=Path), help="External descriptor used to resolve qualified references (repeatable).")
def check(doc_path: Path, external: tuple[Path, ...]):
    """Check that a descriptor transforms cleanly, without writing output."""
    description, externals = _load_all(doc_path, external)
    swagger = _transform(description, externals, TransformOptions())
    click.echo(f"OK: {len(swagger.paths)} paths, {len(swagger.definitions)} definitions.")
