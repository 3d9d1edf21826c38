"""Path display command."""

import typer

from vigil.cli.console import console, create_table


def register(app: typer.Typer) -> None:
    """Register the paths command."""

    @app.command()
    def paths() -> None:
        """Show where Vigil keeps its files."""
        from vigil.config.paths import get_all_paths

        table = create_table(
            "Vigil Paths",
            [
                ("Name", "cyan"),
                ("Path", {"overflow": "fold"}),
                ("Exists", ""),
            ],
        )
        for name, path in get_all_paths().items():
            exists = "[green]yes[/green]" if path.exists() else "[dim]no[/dim]"
            table.add_row(name, str(path), exists)
        console.print(table)
