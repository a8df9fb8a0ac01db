"""
CLI commands for the Tradebook importer
"""

import click

from .. import __version__
from .import_trades import import_command


@click.group()
@click.version_option(__version__, prog_name='tradebook')
def main():
    """Tradebook trade import tools"""


main.add_command(import_command)

__all__ = [
    'main',
    'import_command',
]
