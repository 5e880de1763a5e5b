"""Tradeboard CLI — set up the database, bootstrap accounts, run the server.

Usage:
    tradeboard init-db                                   # Create tables
    tradeboard create-company "Acme Builders"            # Prints the company id
    tradeboard create-user boss@acme.com -c <id> --admin
    tradeboard seed                                      # Demo company + data
    tradeboard serve --reload                            # Run the API
    tradeboard ping                                      # Is a server up?
    tradeboard login boss@acme.com                      # Print a bearer token

Database commands take --database-url (or TRADEBOARD_DATABASE_URL);
ping/login talk HTTP to a running server at --api-url (or TRADEBOARD_API_URL).
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import os
import sys
import uuid
from typing import Awaitable, Callable, Optional, TypeVar

import click
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard import __version__
from tradeboard.config import Settings, settings
from tradeboard.db.engine import build_engine, build_session_factory
from tradeboard.db.models import Base, Role
from tradeboard.errors import AppError
from tradeboard.log_config import configure_logging
from tradeboard.services import bootstrap

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5001"


def _api_url(api_url: Optional[str]) -> str:
    url = api_url or os.environ.get("TRADEBOARD_API_URL", DEFAULT_API_URL)
    return url.rstrip("/")


def _client(api_url: Optional[str]) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at a Tradeboard server."""
    return httpx.AsyncClient(base_url=_api_url(api_url), timeout=10.0)


def _settings(database_url: Optional[str]) -> Settings:
    if database_url:
        return settings.model_copy(update={"database_url": database_url})
    return settings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro: Awaitable[T]) -> T:
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop: normal CLI invocation
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _with_session(
    app_settings: Settings, fn: Callable[[AsyncSession], Awaitable[T]]
) -> T:
    """Open an engine for one command, hand `fn` a session, dispose after."""
    engine = build_engine(app_settings.database_url)
    try:
        async with build_session_factory(engine)() as session:
            return await fn(session)
    finally:
        await engine.dispose()


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _db_command(app_settings: Settings, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
    """Run a database command, reporting AppErrors as a one-line failure."""
    configure_logging(app_settings)
    try:
        return _run(_with_session(app_settings, fn))
    except AppError as e:
        _fail(e.message)


database_url_option = click.option(
    "--database-url",
    envvar="TRADEBOARD_DATABASE_URL",
    help="SQLAlchemy async URL (defaults to TRADEBOARD_DATABASE_URL).",
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="tradeboard")
def main():
    """Tradeboard — clients, projects and tasks for trade companies."""


# ---------------------------------------------------------------------------
# tradeboard init-db
# ---------------------------------------------------------------------------


@main.command("init-db")
@database_url_option
@click.option("--drop", is_flag=True, help="Drop all tables first (destroys data).")
def init_db(database_url: Optional[str], drop: bool):
    """Create all tables that do not exist yet."""
    app_settings = _settings(database_url)
    configure_logging(app_settings)

    async def _init():
        engine = build_engine(app_settings.database_url)
        try:
            async with engine.begin() as conn:
                if drop:
                    await conn.run_sync(Base.metadata.drop_all)
                await conn.run_sync(Base.metadata.create_all)
        finally:
            await engine.dispose()

    _run(_init())
    click.secho("Database initialised.", fg="green")


# ---------------------------------------------------------------------------
# tradeboard create-company
# ---------------------------------------------------------------------------


@main.command("create-company")
@click.argument("name")
@database_url_option
def create_company(name: str, database_url: Optional[str]):
    """Create a company (tenant) and print its id."""
    company = _db_command(
        _settings(database_url), lambda db: bootstrap.create_company(db, name)
    )
    click.echo(str(company.id))


# ---------------------------------------------------------------------------
# tradeboard create-user
# ---------------------------------------------------------------------------


@main.command("create-user")
@click.argument("email")
@click.option("--company-id", "-c", required=True, type=click.UUID, help="Company UUID")
@click.option("--name", "-n", help="Display name")
@click.option("--admin", is_flag=True, help="Give the user the ADMIN role")
@click.password_option(help="Password (prompted when omitted)")
@database_url_option
def create_user(
    email: str,
    company_id: uuid.UUID,
    name: Optional[str],
    admin: bool,
    password: str,
    database_url: Optional[str],
):
    """Create a user in a company. The only way to make the first admin."""
    if len(password) < 8:
        _fail("Password must be at least 8 characters.")
    app_settings = _settings(database_url)
    role = Role.ADMIN if admin else Role.USER

    user = _db_command(
        app_settings,
        lambda db: bootstrap.create_account(
            db,
            email=email.strip(),
            password=password,
            company_id=company_id,
            name=name,
            role=role,
            bcrypt_rounds=app_settings.bcrypt_rounds,
        ),
    )
    click.secho(f"Created {role.value} {user.email} ({user.id})", fg="green")


# ---------------------------------------------------------------------------
# tradeboard seed
# ---------------------------------------------------------------------------


@main.command()
@click.option("--password", default="changeme123", show_default=True,
              help="Password for both demo accounts")
@click.option("--company-name", default="Acme Builders", show_default=True)
@click.option("--email-domain", default="acme.com", show_default=True)
@database_url_option
def seed(password: str, company_name: str, email_domain: str,
         database_url: Optional[str]):
    """Load a demo company with an admin, a user, clients, projects and tasks."""
    app_settings = _settings(database_url)
    demo = _db_command(
        app_settings,
        lambda db: bootstrap.seed_demo(
            db,
            password=password,
            company_name=company_name,
            email_domain=email_domain,
            bcrypt_rounds=app_settings.bcrypt_rounds,
        ),
    )
    click.secho(f"Seeded company {demo.company.name} ({demo.company.id})", fg="green")
    click.echo(f"  admin: {demo.admin.email} / {password}")
    click.echo(f"  user:  {demo.user.email} / {password}")
    click.echo(f"  {len(demo.projects)} projects, {len(demo.tasks)} tasks")


# ---------------------------------------------------------------------------
# tradeboard serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: TRADEBOARD_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: TRADEBOARD_PORT)")
@click.option("--reload", is_flag=True, help="Restart on code changes (development)")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "tradeboard.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# tradeboard ping / login (HTTP against a running server)
# ---------------------------------------------------------------------------


api_url_option = click.option("--api-url", help="Server base URL (or TRADEBOARD_API_URL)")


@main.command()
@api_url_option
def ping(api_url: Optional[str]):
    """Check a running server's health endpoint."""

    async def _ping():
        async with _client(api_url) as c:
            r = await c.get(f"{settings.api_prefix}/health")
            return r.status_code, r.json()

    try:
        status_code, body = _run(_ping())
    except httpx.HTTPError as e:
        _fail(f"Cannot reach {_api_url(api_url)}: {e}")

    color = "green" if body.get("status") == "UP" else "yellow"
    click.secho(f"{body.get('status')} (HTTP {status_code})", fg=color)
    click.echo(f"  version:  {body.get('version')}")
    click.echo(f"  database: {body.get('database')}")


@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False, help="Password (prompted when omitted)")
@api_url_option
def login(email: str, password: str, api_url: Optional[str]):
    """Log in and print the bearer token (for curl and friends)."""

    async def _login():
        async with _client(api_url) as c:
            return await c.post(
                f"{settings.api_prefix}/auth/login",
                json={"email": email, "password": password},
            )

    try:
        r = _run(_login())
    except httpx.HTTPError as e:
        _fail(f"Cannot reach {_api_url(api_url)}: {e}")

    if r.status_code != 200:
        _fail(r.json().get("message", f"HTTP {r.status_code}"))
    click.echo(r.json()["accessToken"])


if __name__ == "__main__":
    main()
