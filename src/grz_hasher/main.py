"""
CLI entry point for computing resumable checksums.
"""

import importlib.metadata
import logging

import click

from .cli.dump_config import dump_config
from .commands.algorithms import algorithms
from .commands.checksum import checksum
from .constants import PACKAGE_ROOT
from .digests import supported_algorithms
from .logging import setup_cli_logging

log = logging.getLogger(PACKAGE_ROOT + ".cli")


class OrderedGroup(click.Group):
    """
    A click Group that keeps track of the order in which commands are added.
    """

    def list_commands(self, ctx):
        """Return the list of commands in the order they were added."""
        return list(self.commands.keys())


def build_cli():
    """
    Factory for building the CLI application.
    """

    @click.group(
        cls=OrderedGroup,
        help="Compute MD5, SHA-1, SHA-256, SHA-512 and CRC-32 checksums that can be stopped and resumed.",
    )
    @click.version_option(
        version=importlib.metadata.version("grz-hasher"),
        prog_name="grz-hasher",
        message=f"%(prog)s v%(version)s (algorithms: {', '.join(supported_algorithms())})",
    )
    @click.option("--log-file", metavar="FILE", type=str, help="Path to log file")
    @click.option(
        "--log-level",
        default="INFO",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
        help="Set the log level (default: INFO)",
    )
    def cli(log_file: str | None = None, log_level: str = "INFO"):
        """
        Command-line interface function for setting up logging.

        :param log_file: Path to the log file. If provided, a file logger will be added.
        :param log_level: Log level for the logger. It should be one of the following:
                           DEBUG, INFO, WARNING, ERROR, CRITICAL.
        """
        setup_cli_logging(log_file, log_level.upper())
        log.debug("Logging setup complete.")

    cli.add_command(checksum)
    cli.add_command(algorithms)
    cli.add_command(dump_config, name="dump-config")

    return cli


def main():
    """
    Main entry point for the CLI application.
    """
    cli = build_cli()
    cli()


if __name__ == "__main__":
    main()
