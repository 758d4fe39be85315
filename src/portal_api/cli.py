# cli.py
import asyncio
import logging

import click

from portal_api.adapters.connection import parse_connection_string
from portal_api.gateway import StorageGateway
from portal_api.logging_config import configure_logging
from portal_api.settings import get_settings

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """CLI commands for the portal storage gateway"""
    pass


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()
    connection = parse_connection_string(settings.storage_connection_string)

    print("Current Configuration:")
    print(f"  App Name: {settings.app_name}")
    print(f"  Log Level: {settings.log_level}")
    print(f"  CORS Origins: {', '.join(settings.cors_origins)}")
    print("  Storage Connection:")
    for key, value in connection.describe().items():
        print(f"    {key}: {value}")


@cli.command()
def dequeue_one():
    """Take one message off the order queue and print it"""
    settings = get_settings()
    configure_logging(settings.log_level)
    gateway = StorageGateway.from_settings(settings)

    message = asyncio.run(gateway.dequeue_one_message())
    if message is None:
        print("No message")
    else:
        print(message)


if __name__ == "__main__":
    cli()
