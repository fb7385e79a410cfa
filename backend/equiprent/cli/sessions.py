"""Flask CLI commands for refresh-session housekeeping."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from equiprent.api.deps import get_session_service

LOGGER = logging.getLogger(__name__)


@click.group("sessions")
def sessions_cli() -> None:
    """Inspect and clean up refresh-token sessions."""


@sessions_cli.command("purge")
@with_appcontext
def purge_command() -> None:
    """Delete every expired refresh session."""
    purged = get_session_service().purge_expired()
    LOGGER.info("Purged %d expired refresh sessions", purged)
    click.echo(f"Purged {purged} expired session(s).")


@sessions_cli.command("list")
@click.argument("user_id", type=int)
@with_appcontext
def list_command(user_id: int) -> None:
    """Print the active sessions of USER_ID, newest first."""
    sessions = get_session_service().list_sessions(user_id)
    if not sessions:
        click.echo("  (no active sessions)")
        return
    for session in sessions:
        click.echo(
            f"  #{session.id:<6} created={session.created_at.isoformat()}"
            f"  expires={session.expires_at.isoformat()}"
            f"  ip={session.ip or '-'}  agent={session.user_agent or '-'}"
        )
