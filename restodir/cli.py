"""Database management commands."""

import click
from flask import Flask
from flask.cli import with_appcontext

from restodir.database import create_tables, drop_tables


@click.command("init-db")
@with_appcontext
def init_db_command() -> None:
    """Create all database tables."""
    create_tables()
    click.echo("Database tables created.")


@click.command("drop-db")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@with_appcontext
def drop_db_command(yes: bool) -> None:
    """Drop all database tables."""
    if not yes and not click.confirm("Drop all restaurant data?"):
        click.echo("Aborted.")
        return
    drop_tables()
    click.echo("Database tables dropped.")


def register_commands(app: Flask) -> None:
    """Register CLI commands with the application."""
    app.cli.add_command(init_db_command)
    app.cli.add_command(drop_db_command)
