"""
Trade import CLI

Imports a broker export, prints a summary with every error and warning, and
optionally writes the reconstructed trades to CSV or JSON.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from ..importer.detector import import_file
from ..importer.export import export_trades, summarize_trades
from ..utils.config import ConfigManager
from ..utils.structured_logging import configure_structured_logging

logger = logging.getLogger(__name__)


@click.command('import')
@click.argument('file_path', type=click.Path(dir_okay=False))
@click.option('--format', 'import_format', default='auto',
              type=click.Choice(['auto', 'fills', 'round-trip']),
              help='Export layout (default: auto-detect)')
@click.option('--output', '-o', 'output_path', default=None,
              help='Write imported trades to this file')
@click.option('--fmt', 'export_format', default=None,
              type=click.Choice(['csv', 'json']),
              help='Output format (default: export.format from config)')
@click.option('--config-dir', default='config',
              help='Config directory (default: config)')
@click.option('--json-logs', is_flag=True, default=False,
              help='Emit structured JSON logs')
@click.option('--verbose', '-v', is_flag=True, default=False,
              help='Verbose output')
def import_command(file_path: str, import_format: str, output_path: Optional[str],
                   export_format: Optional[str], config_dir: str, json_logs: bool,
                   verbose: bool):
    """
    Import trades from a broker CSV export

    Examples:
        tradebook import fills.csv
        tradebook import fills.csv --output exports/trades.csv
        tradebook import trades.csv --format round-trip --fmt json -o trades.json
    """
    try:
        config = ConfigManager(config_dir).get_importer_config()
    except ValueError as e:
        raise click.UsageError(f"Invalid configuration: {e}")

    log_config = config['logging']
    configure_structured_logging(
        log_level='DEBUG' if verbose else log_config['level'],
        log_file=log_config.get('log_file'),
        json_format=json_logs or log_config['json_format'],
    )

    format_hint = None if import_format == 'auto' else import_format

    try:
        result = import_file(file_path, format_hint=format_hint, config=config)
    except FileNotFoundError as e:
        raise click.UsageError(str(e))

    summary = summarize_trades(result.successful_trades)
    click.echo(f"Imported {summary['trades']} trades from {Path(file_path).name}")
    if summary['trades']:
        click.echo(f"   • Symbols: {summary['symbols']}")
        click.echo(f"   • Contracts: {summary['contracts']:,}")
        click.echo(f"   • Winners / losers: {summary['winners']} / {summary['losers']}")
        click.echo(f"   • Net profit: {summary['total_profit']:,.2f}")
        click.echo(f"   • Fees: {summary['total_fees']:,.2f}")

    if result.errors:
        click.echo(f"{len(result.errors)} errors/warnings:")
        for message in result.errors:
            click.echo(f"   - {message}")

    if output_path and result.successful_trades:
        fmt = export_format or config['export']['format']
        written = export_trades(result.successful_trades, output_path, fmt)
        click.echo(f"Trades written to {written}")

    if not result.successful_trades and result.errors:
        sys.exit(1)
