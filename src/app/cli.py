import asyncio
import json
from typing import Optional

import typer

from config.logging import configure_logging
from config.settings import get_settings
from pipeline.graph import run_job

app = typer.Typer(help="Import a products file into the catalog and publish it.")


@app.callback()
def main() -> None:
    """Catalog products importer."""


@app.command()
def run(
    resource: Optional[str] = typer.Option(None, "--resource", "-r", help="CSV or JSON-lines products file"),
    max_products: Optional[int] = typer.Option(None, "--max-products", min=0),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", min=1),
) -> None:
    """Run the full import job once."""
    overrides = {
        "products_resource": resource,
        "max_products": max_products,
        "chunk_size": chunk_size,
    }
    settings = get_settings().model_copy(update={k: v for k, v in overrides.items() if v is not None})
    configure_logging(settings)
    summary = asyncio.run(run_job(settings))
    typer.echo(json.dumps(summary, indent=2))


if __name__ == "__main__":
    app()
