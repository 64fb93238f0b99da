"""Flask CLI commands for Spendle."""

from __future__ import annotations

import json

import click


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("spendle-create-user")
    @click.option("--username", prompt=True, help="Login name for the new account")
    @click.password_option(help="Password (prompted when omitted)")
    def spendle_create_user(username: str, password: str) -> None:
        """Create a local account."""

        from .errors import SpendleError
        from .extensions import get_session_factory
        from .services.auth import create_user

        try:
            user = create_user(
                username=username, password=password, session_factory=get_session_factory()
            )
        except SpendleError as exc:
            raise click.ClickException(exc.message) from exc
        click.echo(f"Created user {user.username} (id={user.id})")

    @app.cli.command("spendle-materialize")
    @click.option("--username", required=True, help="Account whose templates are imported")
    @click.option(
        "--if-due",
        is_flag=True,
        default=False,
        help="Skip when this month was already processed",
    )
    def spendle_materialize(username: str, if_due: bool) -> None:
        """Import this month's recurring transactions for a user."""

        from .domain.identity import StaticIdentity
        from .errors import SpendleError
        from .extensions import get_context
        from .services.auth import get_user_by_username
        from .services.materialize import RecurringProcessor

        ctx = get_context()
        user = get_user_by_username(username, ctx.session_factory)
        if user is None:
            raise click.ClickException(f"Unknown user: {username}")

        # The CLI has no browser session; the marker lives in the database
        processor = RecurringProcessor(ctx, ctx.settings_repo)
        identity = StaticIdentity(user.id)
        try:
            result = processor.run_if_due(identity) if if_due else processor.import_now(identity)
        except SpendleError as exc:
            raise click.ClickException(exc.message) from exc

        if result is None:
            click.echo("Recurring transactions already processed this month.")
            return
        click.echo(json.dumps(result.to_dict(), indent=2))
