"""Command for listing the supported hash algorithms."""

import json

import click

from ..cli import output_json
from ..digests import supported_algorithms


@click.command()
@output_json
def algorithms(output_json):
    """
    List the supported hash algorithms.
    """
    names = supported_algorithms()
    if output_json:
        click.echo(json.dumps(names))
    else:
        for name in names:
            click.echo(name)
