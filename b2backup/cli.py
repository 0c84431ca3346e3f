# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
b2backup command line.

    b2backup backup                 one dump + upload + cleanup
    b2backup run                    periodic backups (every BACKUP_INTERVAL_HOURS)
    b2backup upload PATH [--name]   upload an existing file
    b2backup restore [--file NAME]  pg_restore a local archive
"""

import asyncio
import logging
import sys
from pathlib import Path

import click
import structlog

from b2backup.env import (
    DEFAULT_ENV_FILE,
    create_backup_config_from_env,
    create_transfer_config_from_env,
    load_env_file,
)
from b2backup.exceptions import B2BackupError

logger = structlog.get_logger()


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output to stderr through a console renderer."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _run(coro) -> None:
    """Run a coroutine, turning package errors into a clean exit."""
    try:
        asyncio.run(coro)
    except B2BackupError as e:
        logger.error("command_failed", error=str(e))
        raise click.exceptions.Exit(1) from e
    except KeyboardInterrupt:
        logger.info("interrupted")


@click.group()
@click.option(
    "--env-file",
    default=DEFAULT_ENV_FILE,
    show_default=True,
    help="dotenv file loaded before reading the environment",
)
@click.option(
    "--log-level",
    default="INFO",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
def cli(env_file: str, log_level: str) -> None:
    """Back up a PostgreSQL database to Backblaze B2."""
    configure_logging(log_level)
    load_env_file(env_file)


@cli.command()
def backup() -> None:
    """Dump the database, upload the archive, delete the local copy."""
    from b2backup.b2.uploader import create_http_client
    from b2backup.backup.manager import run_backup_cycle

    async def main() -> None:
        config = create_backup_config_from_env()
        async with create_http_client(config.transfer) as http:
            result = await run_backup_cycle(config, http)
        click.echo(f"{result.object_name} {result.upload.file_id}")

    _run(main())


@cli.command()
def run() -> None:
    """Run backups periodically until interrupted."""
    from b2backup.backup.scheduler import run_backup_loop

    async def main() -> None:
        config = create_backup_config_from_env()
        await run_backup_loop(config)

    _run(main())


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--name", default=None, help="Destination file name (default: file's name)")
def upload(path: Path, name: str | None) -> None:
    """Upload an existing file to the configured bucket."""
    from b2backup.b2.uploader import create_http_client, upload_file

    async def main() -> None:
        config = create_transfer_config_from_env()
        async with create_http_client(config) as http:
            result = await upload_file(http, config, path, name or path.name)
        click.echo(f"{result.file_name} {result.file_id}")

    _run(main())


@cli.command()
@click.option("--file", "file_name", default=None, help="Archive name (default: RESTORE_FILE_NAME)")
def restore(file_name: str | None) -> None:
    """Restore the database from an archive in the backup directory."""
    from b2backup.backup.restore import restore_database

    async def main() -> None:
        config = create_backup_config_from_env()
        if file_name:
            config = config.with_updates(restore_file_name=file_name)
        restored = await restore_database(config)
        click.echo(str(restored))

    _run(main())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
