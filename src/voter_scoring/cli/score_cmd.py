"""Participation score CLI commands: full recomputation, single voter, cohort average."""

import asyncio
import contextlib
import signal
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

import typer

if TYPE_CHECKING:
    from voter_scoring.lib.participation_score import VoterStatus

score_app = typer.Typer()


def _parse_as_of(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        msg = f"--as-of must be YYYY-MM-DD, got {value!r}"
        raise typer.BadParameter(msg) from e


@score_app.command("run")
def run_scores(
    batch_size: int | None = typer.Option(None, "--batch-size", help="Voters per batch", min=1),  # noqa: B008
    as_of: str | None = typer.Option(None, "--as-of", help="Evaluation date (YYYY-MM-DD), defaults to today"),
    bulk: bool = typer.Option(True, "--bulk/--per-row", help="Try the bulk update first"),  # noqa: FBT001
) -> None:
    """Recompute and store participation scores for every voter."""
    exit_code = asyncio.run(_run_scores(batch_size, _parse_as_of(as_of), bulk))
    if exit_code:
        raise typer.Exit(code=exit_code)


@score_app.command("show")
def show_score(
    registration_number: str = typer.Argument(..., help="Voter registration number"),  # noqa: B008
    as_of: str | None = typer.Option(None, "--as-of", help="Evaluation date (YYYY-MM-DD), defaults to today"),
) -> None:
    """Compute one voter's participation score live."""
    exit_code = asyncio.run(_show_score(registration_number, _parse_as_of(as_of)))
    if exit_code:
        raise typer.Exit(code=exit_code)


@score_app.command("average")
def average_scores(
    county: str | None = typer.Option(None, "--county", help="Limit to specific county"),
    status: str | None = typer.Option(None, "--status", help="Limit to Active or Inactive voters"),
) -> None:
    """Average the stored participation scores of a cohort."""
    from voter_scoring.lib.participation_score import VoterStatus

    voter_status: VoterStatus | None = None
    if status is not None:
        try:
            voter_status = VoterStatus(status.strip().capitalize())
        except ValueError as e:
            msg = f"--status must be Active or Inactive, got {status!r}"
            raise typer.BadParameter(msg) from e
    asyncio.run(_average_scores(county, voter_status))


async def _run_scores(batch_size: int | None, as_of: date | None, bulk: bool) -> int:
    """Async implementation of the full score run; returns the process exit code."""
    from voter_scoring.core.config import get_settings
    from voter_scoring.core.database import dispose_engine, get_session_factory, init_engine
    from voter_scoring.lib.participation_score import FatalRunError
    from voter_scoring.services.score_update_service import run_score_update

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows event loops
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)

    try:
        factory = get_session_factory()
        async with factory() as session:
            typer.echo("Recomputing participation scores...")
            try:
                stats = await run_score_update(
                    session,
                    settings,
                    as_of=as_of,
                    batch_size=batch_size,
                    bulk=bulk,
                    stop_event=stop_event,
                )
            except FatalRunError as e:
                typer.echo(f"Score run aborted: {e}", err=True)
                return 1

            typer.echo(f"\nScore run {stats.status.replace('_', ' ')}:")
            typer.echo(f"  Processed:       {stats.processed}")
            typer.echo(f"  Updated:         {stats.updated}")
            typer.echo(f"  Errors:          {stats.errored}")
            typer.echo(f"  Failed batches:  {stats.failed_batches}")
            return 1 if stats.cancelled else 0
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)
        await dispose_engine()


async def _show_score(registration_number: str, as_of: date | None) -> int:
    """Async implementation of the single-voter score lookup."""
    from voter_scoring.core.config import get_settings
    from voter_scoring.core.database import dispose_engine, get_session_factory, init_engine
    from voter_scoring.lib.participation_score import ValidationError, score_label
    from voter_scoring.services.score_summary_service import get_voter_score

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            try:
                score = await get_voter_score(
                    session,
                    registration_number,
                    as_of=as_of or datetime.now(UTC).date(),
                    config=settings.scoring_config(),
                    lookback_years=settings.score_history_lookback_years,
                )
            except ValidationError as e:
                typer.echo(f"Cannot score voter {registration_number}: {e}", err=True)
                return 1
            if score is None:
                typer.echo(f"Voter not found: {registration_number}", err=True)
                return 1
            typer.echo(f"Voter {registration_number}: {score:.1f} ({score_label(score)})")
            return 0
    finally:
        await dispose_engine()


async def _average_scores(county: str | None, status: "VoterStatus | None") -> None:
    """Async implementation of the cohort average."""
    from voter_scoring.core.config import get_settings
    from voter_scoring.core.database import dispose_engine, get_session_factory, init_engine
    from voter_scoring.lib.participation_score import score_label
    from voter_scoring.services.score_summary_service import get_cohort_score

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            average, count = await get_cohort_score(session, county=county, status=status)
            if average is None:
                typer.echo("No scored voters match the given filters.")
                return
            typer.echo(f"Average participation score: {average:.1f} ({score_label(average)})")
            typer.echo(f"Voters:                      {count}")
    finally:
        await dispose_engine()
