"""CLI commands for Debut."""

import asyncio
import sys

import click
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine


@click.group()
@click.version_option(package_name="debut")
def cli():
    """Debut - appearance dates for posts."""
    pass


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8080, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option("--workers", default=1, type=int, help="Number of worker processes")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
def serve(host, port, reload, workers, log_level):
    """Run the Debut server."""
    from hypercorn.config import Config
    from hypercorn.run import run

    config = Config()
    config.application_path = "debut.asgi:create_asgi_app()"
    config.bind = [f"{host}:{port}"]
    config.workers = 1 if reload else workers
    config.loglevel = log_level.upper()
    config.include_server_header = False
    config.use_reloader = reload
    run(config)


async def _with_session(callback):
    """Run ``callback(session)`` against the configured database."""
    from debut.config import get_settings
    from debut.db import models  # noqa: F401
    from debut.db.base import Base

    settings = get_settings()
    engine = create_async_engine(settings.db.url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        session_maker = async_sessionmaker(engine, expire_on_commit=False)
        async with session_maker() as session:
            return await callback(session)
    finally:
        await engine.dispose()


def _load_plugin(site_name):
    from debut.appearance.site import AppearanceDateSite
    from debut.bootstrap import AppearanceDatePlugin
    from debut.config import get_settings
    from debut.lib.hooks import HookRegistry

    try:
        site = AppearanceDateSite.from_settings(get_settings(), site_name)
    except KeyError as e:
        raise click.BadParameter(str(e.args[0]), param_hint="--site")

    plugin = AppearanceDatePlugin(site, HookRegistry())
    plugin.register_admin_hooks()
    return plugin


site_option = click.option("--site", default=None, help="Named site from app.yaml (default: DEBUT_SITE or main site)")


@cli.command()
@site_option
def install(site):
    """Create the appearance date table for a site."""
    plugin = _load_plugin(site)
    installed = asyncio.run(_with_session(plugin.site.provisioner.ensure_installed))
    if not installed:
        click.echo(f"Could not create {plugin.site.table.name}", err=True)
        sys.exit(1)
    click.echo(f"Installed {plugin.site.table.name}")


@cli.command()
@site_option
@click.confirmation_option(prompt="Drop the appearance date table and all stored dates?")
def uninstall(site):
    """Drop the appearance date table and clear the installed flag."""
    from debut.lib.hooks import APPEARANCE_UNINSTALL

    plugin = _load_plugin(site)

    async def _uninstall(session):
        await plugin.registry.do_action(APPEARANCE_UNINSTALL, session)

    asyncio.run(_with_session(_uninstall))
    click.echo(f"Dropped {plugin.site.table.name}")


@cli.command()
@site_option
@click.argument("post_id", type=int)
def show(site, post_id):
    """Print the appearance date of a post."""
    from debut.appearance.schema import format_appearance_date

    plugin = _load_plugin(site)

    async def _show(session):
        if not await plugin.site.provisioner.is_installed(session):
            return None
        return await plugin.site.get_appearance_date(session, post_id)

    date = asyncio.run(_with_session(_show))
    click.echo(format_appearance_date(date) if date else "none")


@cli.command("set-date")
@site_option
@click.argument("post_id", type=int)
@click.argument("date", required=False, default="")
def set_date(site, post_id, date):
    """Set a post's appearance date (YYYY-MM-DD HH:MM:SS); omit DATE to clear it."""
    plugin = _load_plugin(site)

    async def _set(session):
        if not await plugin.site.provisioner.ensure_installed(session):
            return False
        return await plugin.site.set_appearance_date(session, post_id, date or None)

    if asyncio.run(_with_session(_set)):
        click.echo("Saved" if date else "Cleared")
    else:
        click.echo("Nothing changed", err=True)
        sys.exit(1)
