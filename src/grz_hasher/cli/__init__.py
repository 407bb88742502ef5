"""
Common click options for the CLI commands.
"""

from pathlib import Path

import click
import platformdirs

from ..digests import supported_algorithms

DEFAULT_CONFIG_PATH = Path(platformdirs.user_config_dir("grz-hasher")) / "config.yaml"

# Aliases for path types for click options
# Naming convention: {DIR,FILE}_{Read,Write}_{Exists,Create}
FILE_R_E = click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True, path_type=Path)
FILE_RW_C = click.Path(
    exists=False,
    file_okay=True,
    dir_okay=False,
    readable=True,
    writable=True,
    resolve_path=True,
    path_type=Path,
)

config_file = click.option(
    "--config-file",
    "config_file",
    metavar="PATH",
    type=FILE_R_E,
    multiple=True,
    help=f"Path to a YAML config file; may be given multiple times, later files take precedence. "
    f"'{DEFAULT_CONFIG_PATH}' is always loaded first if it exists.",
)

algorithms = click.option(
    "-a",
    "--alg",
    "algorithms",
    metavar="ALGORITHM",
    multiple=True,
    type=click.Choice(supported_algorithms(), case_sensitive=False),
    help="Hash algorithm to compute; may be given multiple times (default: from config, else all).",
)

timeout = click.option(
    "--timeout",
    metavar="SECONDS",
    type=click.FloatRange(min=0),
    default=None,
    help="Stop after this many seconds; use with --session-file to resume later.",
)

buffer_size = click.option(
    "--buffer-size",
    metavar="BYTES",
    type=int,
    default=None,
    help="Size of the chunks read from the source.",
)

session_file = click.option(
    "--session-file",
    metavar="PATH",
    type=FILE_RW_C,
    default=None,
    help="Resume from this session file if it exists, and save the session there when stopped.",
)

progress = click.option("--progress/--no-progress", default=True, show_default=True, help="Show a progress bar.")

output_json = click.option("--json", "output_json", is_flag=True, help="Output JSON for machine-readability.")


def config_files_from_ctx(ctx: click.Context) -> list[Path]:
    """Collect the default config file (if present) followed by the --config-file values of the command."""
    config_files = list(ctx.params.get("config_file") or ())
    if DEFAULT_CONFIG_PATH.is_file():
        config_files.insert(0, DEFAULT_CONFIG_PATH)
    return config_files
