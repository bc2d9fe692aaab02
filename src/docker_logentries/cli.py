"""Command line entry point"""

import asyncio
import sys
from typing import Dict, Optional, Tuple

import click

from docker_logentries import __version__
from docker_logentries.core.config import Settings
from docker_logentries.core.exceptions import (
    ConfigurationError,
    ForwarderError,
    InvalidPortError,
    NoChannelEnabledError,
)
from docker_logentries.core.logging import logger
from docker_logentries.core.logging_config import setup_logging
from docker_logentries.services.docker_client import create_docker_client
from docker_logentries.services.forwarder import enabled_channels, run_forwarder
from docker_logentries.services.token_resolver import resolve_tokens


def parse_add(values: Tuple[str, ...]) -> Optional[Dict[str, str]]:
    """Parse repeated KEY=VALUE options; None when none were given"""
    if not values:
        return None
    
    fields = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not key or not sep:
            raise ConfigurationError(
                f"Invalid --add value '{value}', expected KEY=VALUE",
                "INVALID_OPTION",
                {"option": "add"}
            )
        fields[key] = val
    return fields


def parse_port(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        # TODO: accept service names such as "https" via socket.getservbyname
        raise InvalidPortError(value)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option('--token', '-t', help='Token used for every channel without its own token')
@click.option('--logstoken', '-l', help='Token for container logs')
@click.option('--statstoken', '-k', help='Token for container stats')
@click.option('--eventstoken', '-e', help='Token for Docker events')
@click.option('--secure', '-s', is_flag=True, default=None, help='Use TLS to the collector')
@click.option('--json', '-j', 'parse_json', is_flag=True, default=None, help='Parse log lines as JSON')
@click.option('--newline/--no-newline', default=None, help='Split container output on newlines')
@click.option('--stats/--no-stats', default=None, help='Forward container stats')
@click.option('--logs/--no-logs', default=None, help='Forward container logs')
@click.option('--dockerEvents/--no-dockerEvents', 'docker_events', default=None,
              help='Forward Docker events')
@click.option('--statsinterval', '-i', type=int, help='Seconds between stats samples')
@click.option('--add', '-a', multiple=True, metavar='KEY=VALUE',
              help='Static field added to every record (repeatable)')
@click.option('--matchByImage', 'match_by_image', metavar='REGEXP', help='Only forward matching images')
@click.option('--matchByName', 'match_by_name', metavar='REGEXP', help='Only forward matching container names')
@click.option('--skipByImage', 'skip_by_image', metavar='REGEXP', help='Skip matching images')
@click.option('--skipByName', 'skip_by_name', metavar='REGEXP', help='Skip matching container names')
@click.option('--server', metavar='HOSTNAME', help='Collector host name')
@click.option('--port', metavar='PORT', help='Collector port (default 80, or 443 with --secure)')
@click.option('--connect-timeout', type=float, help='Seconds to wait for each connection attempt')
@click.option('--log-level', default='INFO', show_default=True,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False))
def main(add, port, log_level, **options):
    """
    Forward Docker logs, stats and events to Logentries.
    
    All REGEXP values are Python regular expressions without surrounding
    slashes, searched anywhere in the container name or image.
    """
    setup_logging(log_level)
    logger.info(f"Starting logentries exporter v{__version__} ...")
    
    try:
        settings = Settings.load(
            add=parse_add(add),
            port=parse_port(port),
            **options
        )
        settings = resolve_tokens(settings)
        if not enabled_channels(settings):
            # Fail before touching Docker or the network
            raise NoChannelEnabledError()
        
        client = create_docker_client()
        asyncio.run(run_forwarder(settings, client))
    except ForwarderError as e:
        logger.error(e.message)
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")


if __name__ == "__main__":
    main()
