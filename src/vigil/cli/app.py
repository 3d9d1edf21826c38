"""Main CLI application."""

import typer

from vigil.cli.commands import daemon, paths, results, tools, triggers, watch

app = typer.Typer(
    name="vigil",
    help="Vigil - poll a condition, then act on it",
    no_args_is_help=True,
)

daemon.register(app)
watch.register(app)
triggers.register(app)
results.register(app)
tools.register(app)
paths.register(app)


@app.command()
def version() -> None:
    """Show the installed Vigil version."""
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as package_version

    try:
        typer.echo(f"vigil {package_version('vigil')}")
    except PackageNotFoundError:
        typer.echo("vigil (not installed)")


if __name__ == "__main__":
    app()
