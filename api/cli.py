"""
Maintenance commands, run as e.g. `flask --app api init-db`.
"""
import click

from .context import get_context


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create the users and refresh_tokens tables."""
        get_context().storage.reload()
        click.echo("Database tables created.")

    @app.cli.command("purge-tokens")
    def purge_tokens():
        """Delete refresh-token records whose expiry has passed."""
        count = get_context().store.purge_expired_refresh_records()
        click.echo(f"Purged {count} expired refresh token(s).")
