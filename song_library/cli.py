"""
Command-line interface for song-library.

This module implements the CLI using Click, with rich-click for help
formatting and colors.

Commands:
    song-library serve                       Run the public API
    song-library serve --with-mock-provider  Also run the mock provider
    song-library mock-provider               Run only the mock provider
    song-library migrate                     Create or extend the database schema

Options (all commands):
    --config <path>                          Config file (default: ./config.yaml)

Exit Codes:
    0   success
    1   configuration or unexpected error
    2   database error
    130 interrupted
"""

import sys
import threading
from pathlib import Path
from typing import Optional

import rich_click as click

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.MAX_WIDTH = 100

from song_library import __version__
from song_library.api import create_app, create_mock_provider_app
from song_library.core import (
    Config,
    ConfigError,
    SongDatabase,
    SongLibraryError,
    StorageError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from song_library.songs import EnrichmentSource, ExternalProvider, SongResolver

logger = get_logger(__name__)


config_option = click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml if present)"
)


@click.group()
@click.version_option(__version__, prog_name="song-library")
def cli() -> None:
    """
    song-library: song metadata lookup service.

    \b
    Looks up songs in a local SQLite store, backfills unknown songs from
    an external metadata provider and overlays a static enrichment file.
    """


def _open_database(config: Config, migrate_on_open: bool = True) -> SongDatabase:
    return SongDatabase(
        config.database.path,
        max_open_connections=config.database.max_open_connections,
        max_idle_connections=config.database.max_idle_connections,
        connection_max_lifetime=config.database.connection_max_lifetime,
        migrate_on_open=migrate_on_open,
    )


def _start_mock_provider(config: Config, enrichment: EnrichmentSource) -> threading.Thread:
    mock_app = create_mock_provider_app(enrichment)
    thread = threading.Thread(
        target=mock_app.run,
        kwargs={
            "host": config.mock_provider.host,
            "port": config.mock_provider.port,
            "threaded": True,
            "use_reloader": False,
        },
        name="mock-provider",
        daemon=True,
    )
    thread.start()
    logger.info(
        f"Mock provider listening on http://{config.mock_provider.host}:{config.mock_provider.port}/info"
    )
    return thread


def _run_command(config_path: Optional[Path], command) -> None:
    """
    Load configuration, set up logging and run command(config).

    Translates errors into messages and exit codes, and always shuts
    logging down.
    """
    try:
        config = load_config(config_path)
        setup_logging(config.logging.directory, config.logging.level)
        command(config)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except StorageError as e:
        click.echo(f"Database error: {e.message}", err=True)
        logger.error(f"Database error: {e.message}", exc_info=True)
        sys.exit(2)

    except SongLibraryError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(1)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    finally:
        shutdown_logging()


@cli.command()
@config_option
@click.option("--host", type=str, default=None, help="Override server.host")
@click.option("--port", type=int, default=None, help="Override server.port")
@click.option(
    "--with-mock-provider",
    is_flag=True,
    help="Also serve the mock external provider from the enrichment file"
)
def serve(
    config_path: Optional[Path],
    host: Optional[str],
    port: Optional[int],
    with_mock_provider: bool
) -> None:
    """Run the public song API."""

    def command(config: Config) -> None:
        database = _open_database(config)
        logger.info(f"Database ready at {config.database.path}")

        enrichment = EnrichmentSource(config.enrichment.path)
        provider = ExternalProvider(
            config.provider.base_url,
            timeout=config.provider.timeout,
            user_agent=config.provider.user_agent,
        )
        resolver = SongResolver(database, provider, enrichment)

        if with_mock_provider:
            _start_mock_provider(config, enrichment)

        app = create_app(database, resolver)
        bind_host = host or config.server.host
        bind_port = port or config.server.port

        logger.info(f"Starting the main server on {bind_host}:{bind_port}...")
        try:
            app.run(host=bind_host, port=bind_port, threaded=True, use_reloader=False)
        finally:
            database.close()

    _run_command(config_path, command)


@cli.command("mock-provider")
@config_option
def mock_provider(config_path: Optional[Path]) -> None:
    """Run only the mock external provider."""

    def command(config: Config) -> None:
        app = create_mock_provider_app(EnrichmentSource(config.enrichment.path))
        logger.info(f"Serving enrichment file {config.enrichment.path} as the external provider")
        app.run(
            host=config.mock_provider.host,
            port=config.mock_provider.port,
            threaded=True,
            use_reloader=False,
        )

    _run_command(config_path, command)


@cli.command()
@config_option
def migrate(config_path: Optional[Path]) -> None:
    """Create the songs table and add missing columns."""

    def command(config: Config) -> None:
        database = _open_database(config, migrate_on_open=False)
        try:
            added = database.migrate()
        finally:
            database.close()

        if added:
            click.echo(f"Added columns: {', '.join(added)}")
        else:
            click.echo(f"Schema is current: {config.database.path}")

    _run_command(config_path, command)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
