"""Command-line interface for randomdraw."""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from randomdraw.config import SamplerConfig
from randomdraw.datasources import get_store
from randomdraw.errors import SamplingError
from randomdraw.introspect import describe
from randomdraw.sampler import RandomSampler

app = typer.Typer(
    name="randomdraw",
    help="Uniform random row samples from SQL tables and views",
    add_completion=False,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command(name="sample")
def sample_cmd(
    database: Annotated[str, typer.Argument(help="Connection string or SQLite file path")],
    relation: Annotated[str, typer.Argument(help="Table or view to sample from")],
    n: Annotated[
        Optional[int],
        typer.Option("--rows", "-n", help="Number of rows (default 1000 keyed, 25 keyless)"),
    ] = None,
    key: Annotated[
        Optional[str],
        typer.Option("--key", "-k", help="Integer key column; omit for positional sampling"),
    ] = None,
    gaps: Annotated[
        Optional[float],
        typer.Option("--gaps", "-g", help="Oversampling factor for key gaps"),
    ] = None,
    seed: Annotated[
        Optional[int],
        typer.Option("--seed", help="Random seed for reproducible draws"),
    ] = None,
    max_iterations: Annotated[
        Optional[int],
        typer.Option("--max-iterations", help="Upper bound on candidate batches"),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table, csv, json)"),
    ] = "table",
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path"),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit with code 1 if fewer rows than requested"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every sampling iteration"),
    ] = False,
) -> None:
    """Draw a uniform random sample of rows."""
    _configure_logging(verbose)

    if format not in ("table", "csv", "json"):
        typer.echo(f"Error: Unknown format: {format}", err=True)
        raise typer.Exit(1)

    try:
        config = SamplerConfig().with_overrides(seed=seed, max_iterations=max_iterations)
        store = get_store(database)
        with store:
            result = RandomSampler(store, config).sample(
                relation, n, key_column=key, gaps=gaps
            )
    except (SamplingError, ValueError, ImportError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if format == "json":
        text = json.dumps(result.to_dicts(), indent=2, default=str)
    elif format == "csv":
        text = result.to_polars().write_csv()
    else:
        text = str(result.to_polars())

    if output:
        output.write_text(text)
        typer.echo(f"Sample written to {output}")
    else:
        typer.echo(text)

    typer.echo(
        f"{len(result)}/{result.requested} rows ({result.status.value}, "
        f"{result.iterations} iterations)",
        err=True,
    )

    if strict and not result.is_complete:
        raise typer.Exit(1)


@app.command(name="columns")
def columns_cmd(
    database: Annotated[str, typer.Argument(help="Connection string or SQLite file path")],
    relation: Annotated[str, typer.Argument(help="Table or view to describe")],
) -> None:
    """List a relation's columns in declaration order."""
    try:
        store = get_store(database)
        with store:
            handle = describe(store, relation)
    except (SamplingError, ImportError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    for column in handle.columns:
        typer.echo(f"{column.position}\t{column.name}\t{column.data_type or '-'}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
