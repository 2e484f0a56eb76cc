"""CLI entry point for the options journal."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import click
from sqlalchemy.ext.asyncio import AsyncSession

from .core.config import Settings, load_settings
from .core.enums import ExportFormat
from .core.errors import JournalError
from .service import JournalService

T = TypeVar("T")


def _format_for(path: Path, explicit: str | None) -> ExportFormat:
    if explicit:
        return ExportFormat(explicit)
    return ExportFormat.JSON if path.suffix.lower() == ".json" else ExportFormat.CSV


async def _with_session(
    settings: Settings, fn: Callable[[AsyncSession], Awaitable[T]],
) -> T:
    from .storage.db.connection import Database

    db = Database.from_config(settings.database)
    try:
        if settings.database.create_tables:
            await db.create_all()
        async with db.session() as session:
            return await fn(session)
    finally:
        await db.dispose()


def _run_session(ctx: click.Context, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
    try:
        return asyncio.run(_with_session(ctx.obj, fn))
    except JournalError as e:
        raise click.ClickException(str(e)) from e


def _run(ctx: click.Context, fn: Callable[[JournalService], Awaitable[T]]) -> T:
    return _run_session(ctx, lambda session: fn(JournalService(session, settings=ctx.obj)))


@click.group()
@click.option("--config", default=None, help="TOML config file path")
@click.option("--db", "db_url", default=None, help="Database URL override")
@click.pass_context
def main(ctx: click.Context, config: str | None, db_url: str | None) -> None:
    """Options trading journal."""
    overrides: dict[str, Any] = {"database": {"use_null_pool": True}}
    if db_url:
        overrides["database"]["url"] = db_url
    try:
        ctx.obj = load_settings(config, overrides)
    except JournalError as e:
        raise click.ClickException(str(e)) from e


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the HTTP API."""
    import uvicorn

    from .api.app import create_app
    from .observability.logger import setup_logging

    settings: Settings = ctx.obj
    # The server keeps its engine for the whole process
    settings.database.use_null_pool = False
    setup_logging(settings.observability.log_level, settings.observability.log_format)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database tables."""
    from .storage.db.connection import Database

    async def _create() -> None:
        db = Database.from_config(ctx.obj.database)
        try:
            await db.create_all()
        finally:
            await db.dispose()

    asyncio.run(_create())
    click.echo("Database initialised")


@main.command("create-user")
@click.option("--email", required=True)
@click.option("--password", required=True, prompt=True, hide_input=True)
@click.option("--name", default=None)
@click.pass_context
def create_user(ctx: click.Context, email: str, password: str, name: str | None) -> None:
    """Register a user and print its id."""
    from .api.auth import Authenticator
    from .storage.db.repos import UserRepo

    settings: Settings = ctx.obj
    auth = Authenticator(settings.auth)

    async def _create(session: AsyncSession) -> int:
        user = await UserRepo(session).create(email, auth.hash_password(password), name)
        return user.id

    click.echo(f"Created user {_run_session(ctx, _create)}")


@main.command("init-tags")
@click.option("--extended", is_flag=True, help="Also add the finer-grained catalogue tags")
@click.pass_context
def init_tags(ctx: click.Context, extended: bool) -> None:
    """Seed the mistake tag catalogue."""
    added = _run(ctx, lambda s: s.seed_tags(extended=extended))
    click.echo(f"Added {added} mistake tags")


@main.command("import-trades")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--user", "user_id", required=True, type=int, help="Owner user id")
@click.option("--format", "fmt", type=click.Choice([f.value for f in ExportFormat]), default=None)
@click.pass_context
def import_trades(ctx: click.Context, file: Path, user_id: int, fmt: str | None) -> None:
    """Import trades from a CSV or JSON export."""
    text = file.read_text(encoding="utf-8")
    count = _run(ctx, lambda s: s.import_text(user_id, text, _format_for(file, fmt)))
    click.echo(f"Imported {count} trades")


@main.command("export-trades")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--user", "user_id", required=True, type=int, help="Owner user id")
@click.option("--format", "fmt", type=click.Choice([f.value for f in ExportFormat]), default=None)
@click.pass_context
def export_trades(ctx: click.Context, file: Path, user_id: int, fmt: str | None) -> None:
    """Export a user's trades to CSV or JSON."""
    body = _run(ctx, lambda s: s.export_trades(user_id, _format_for(file, fmt)))
    file.write_text(body, encoding="utf-8")
    click.echo(f"Exported trades to {file}")


@main.command("recompute-rollups")
@click.option("--user", "user_id", required=True, type=int)
@click.pass_context
def recompute_rollups(ctx: click.Context, user_id: int) -> None:
    """Rebuild every daily rollup for a user."""
    count = _run(ctx, lambda s: s.recompute_all_rollups(user_id))
    click.echo(f"Recomputed {count} daily rollups")


@main.command("fix-tags")
@click.option("--user", "user_id", required=True, type=int)
@click.pass_context
def fix_tags(ctx: click.Context, user_id: int) -> None:
    """Canonicalise duplicate and variant labels on a user's trades."""
    count = _run(ctx, lambda s: s.fix_tags(user_id))
    click.echo(f"Fixed labels on {count} trades")


if __name__ == "__main__":
    main()
