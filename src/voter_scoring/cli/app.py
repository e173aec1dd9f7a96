"""Typer CLI root application."""

import typer

from voter_scoring.core.config import get_settings
from voter_scoring.core.logging import setup_logging

app = typer.Typer(name="voter-scoring", help="Voter participation score CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from voter_scoring.cli.score_cmd import score_app

    app.add_typer(score_app, name="score", help="Participation score commands")


_register_subcommands()
