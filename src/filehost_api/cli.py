import logging
from datetime import timedelta

import click

from filehost_api.auth import CredentialVerifier
from filehost_api.database.local import init_db as init_record_store
from filehost_api.settings import get_settings

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """Operator commands for the file hosting API"""
    pass


@cli.command()
def show_config():
    """Show current configuration (secrets are never printed)"""
    settings = get_settings()

    click.echo("Current Configuration:")
    for key, value in settings.public_summary().items():
        click.echo(f"  {key}: {value}")


@cli.command()
def init_db():
    """Create the record store collections and indexes"""
    settings = get_settings()
    store = init_record_store(settings)
    try:
        click.echo(f"Record store initialized ({settings.record_store_backend})")
    finally:
        store.close()


@cli.command()
@click.option("--owner-id", required=True, help="Identity to put in the token")
@click.option(
    "--expires-minutes",
    type=click.IntRange(min=1),
    default=None,
    help="Token lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES",
)
def issue_token(owner_id, expires_minutes):
    """Mint a development bearer token signed with the configured secret"""
    settings = get_settings()
    minutes = expires_minutes or settings.access_token_expire_minutes
    verifier = CredentialVerifier.from_settings(settings)
    click.echo(verifier.issue(owner_id, expires_in=timedelta(minutes=minutes)))


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, type=int, show_default=True)
def serve(host, port):
    """Run the API with uvicorn"""
    import uvicorn

    from filehost_api.main import create_app

    uvicorn.run(create_app(get_settings()), host=host, port=port)


if __name__ == "__main__":
    cli()
