"""Flask CLI commands (``flask sessions ...``)."""

from __future__ import annotations

from flask import Flask

from .sessions import sessions_cli


def init_app(app: Flask) -> None:
    app.cli.add_command(sessions_cli)
