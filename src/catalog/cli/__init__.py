"""CLI commands for the product catalog.

Provides command-line interface using Typer:
- catalog serve: Run the API server
- catalog init-db: Create the products table and seed sample data
- catalog flush-cache: Delete every cached product entry

Usage:
    catalog --help
    catalog serve --port 5000
    catalog flush-cache
"""

import typer

from catalog.cli.maintenance import flush_cache, init_database
from catalog.cli.serve import app as serve_app

# Main CLI application
app = typer.Typer(
    name="catalog",
    help="Product catalog: PostgreSQL behind a Redis read-through cache",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.command("init-db")(init_database)
app.command("flush-cache")(flush_cache)


@app.callback()
def callback() -> None:
    """Product catalog: PostgreSQL behind a Redis read-through cache."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
