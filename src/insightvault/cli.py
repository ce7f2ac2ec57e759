"""Command line interface for InsightVault."""

import asyncio
from urllib.parse import urlparse, urlunparse

import click
import uvicorn
from pymongo.errors import DuplicateKeyError, PyMongoError

from insightvault.core.config import settings
from insightvault.core.database import close_db, create_client, init_db
from insightvault.core.logging import get_logger, setup_logging
from insightvault.core.security import MAX_PASSWORD_BYTES, hash_password
from insightvault.models.user import Role
from insightvault.repositories.users import UserRepository

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


def mask_url(url: str) -> str:
    """Hide the password part of a connection string."""
    parsed = urlparse(url)
    if not parsed.password:
        return url
    userinfo, _, hosts = parsed.netloc.rpartition("@")
    username = userinfo.split(":", 1)[0]
    return urlunparse(parsed._replace(netloc=f"{username}:***@{hosts}"))


@click.group()
@click.version_option(version=settings.app.version)
def main():
    """InsightVault - personal data records API."""
    setup_logging(settings, cli_mode=True)


@main.command()
@click.option("--host", default=settings.app.host, help="Host to bind to")
@click.option("--port", default=settings.app.port, help="Port to bind to")
@click.option("--workers", default=settings.app.workers, help="Number of worker processes")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host: str, port: int, workers: int, reload: bool):
    """Start the InsightVault API server."""
    logger.info("Starting InsightVault server", host=host, port=port, workers=workers, reload=reload)

    uvicorn.run(
        "insightvault.api.main:app",
        host=host,
        port=port,
        workers=workers if not reload else 1,
        reload=reload,
        log_level=settings.logging.level.lower(),
    )


@main.command("init-db")
def init_database():
    """Check connectivity and create collection indexes."""
    click.echo("Initializing database...")

    async def _init():
        client = create_client(settings.database)
        try:
            await init_db(client[settings.database.name])
        finally:
            await close_db(client)

    try:
        asyncio.run(_init())
    except PyMongoError as e:
        raise click.ClickException(f"Database initialization failed: {e}")
    click.echo("Database initialized successfully!")


@main.command("create-admin")
@click.argument("email")
@click.option("--name", default="Administrator", help="Display name for a new account")
@click.password_option(help="Password for a new account, or the new password for an existing one")
def create_admin(email: str, name: str, password: str):
    """Create an administrator account, or promote an existing user."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise click.BadParameter(f"must be at least {MIN_PASSWORD_LENGTH} characters", param_hint="password")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise click.BadParameter(f"must be at most {MAX_PASSWORD_BYTES} bytes", param_hint="password")

    password_hash = hash_password(password, rounds=settings.security.bcrypt_rounds)

    async def _create() -> str:
        client = create_client(settings.database)
        try:
            users = UserRepository(client[settings.database.name])
            existing = await users.get_by_email(email)
            if existing is None:
                user = await users.create(email, password_hash, name=name, role=Role.ADMIN)
                return f"Created administrator {user.email} ({user.id})"
            await users.set_role(existing.id, Role.ADMIN)
            await users.set_password(existing.id, password_hash)
            await users.set_active(existing.id, True)
            return f"Promoted {existing.email} ({existing.id}) to administrator"
        finally:
            await close_db(client)

    try:
        message = asyncio.run(_create())
    except DuplicateKeyError:
        raise click.ClickException(f"A user with email {email} was created concurrently, try again")
    except PyMongoError as e:
        raise click.ClickException(f"Could not create administrator: {e}")
    click.echo(message)


@main.command()
def config():
    """Show current configuration."""
    click.echo("InsightVault Configuration:")
    click.echo(f"  Version: {settings.app.version}")
    click.echo(f"  Environment: {settings.app.environment}")
    click.echo(f"  Debug: {settings.app.debug}")
    click.echo(f"  Host: {settings.app.host}")
    click.echo(f"  Port: {settings.app.port}")
    click.echo(f"  Database URL: {mask_url(settings.database.url)}")
    click.echo(f"  Database Name: {settings.database.name}")
    click.echo(f"  Token Algorithm: {settings.security.algorithm}")
    click.echo(f"  Token Lifetime (minutes): {settings.security.access_token_expire_minutes}")
    click.echo(f"  Log Level: {settings.logging.level}")


if __name__ == "__main__":
    main()
