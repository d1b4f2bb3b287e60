#!/usr/bin/env python3
"""
BannerScan CLI - Command Line Interface
Usage: bannerscan <host> <startPort> <endPort>
"""

import re
import click
import asyncio
import sys
import logging
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, MofNCompleteColumn

from bannerscan.core.scanner import (
    Scanner, ScanOptions, ScanRequest, ScanReport, ScanConfigError
)
from bannerscan.utils.output import OutputFormatter, RULE

console = Console()
logger = logging.getLogger(__name__)

PORT_ARGUMENT = re.compile(r"[+-]?[0-9]+")


def setup_logging(verbose: int):
    """Setup logging based on verbosity level"""
    if verbose == 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def parse_time(time_str: str) -> float:
    """Parse time string with units (ms, s, m, h)"""
    if not time_str:
        return 0

    time_str = time_str.strip()

    if time_str.endswith('ms'):
        return float(time_str[:-2]) / 1000
    elif time_str.endswith('s'):
        return float(time_str[:-1])
    elif time_str.endswith('m'):
        return float(time_str[:-1]) * 60
    elif time_str.endswith('h'):
        return float(time_str[:-1]) * 3600
    else:
        # Default to seconds
        return float(time_str)


def parse_port_argument(name: str, value: str) -> Optional[int]:
    """Return the port as an int, or None after echoing the bad value"""
    # optional sign and ASCII digits only; no whitespace or underscores
    if PORT_ARGUMENT.fullmatch(value):
        return int(value)
    console.print(f"Invalid {name}: {value}", markup=False, highlight=False, soft_wrap=True)
    return None


def create_scan_options(ctx_params: dict) -> ScanOptions:
    """Create ScanOptions from click context parameters"""
    options = ScanOptions()

    if ctx_params.get('connect_timeout'):
        options.connect_timeout = parse_time(ctx_params['connect_timeout'])

    if ctx_params.get('banner_timeout'):
        options.banner_timeout = parse_time(ctx_params['banner_timeout'])

    if ctx_params.get('generic_timeout'):
        options.generic_timeout = parse_time(ctx_params['generic_timeout'])

    if ctx_params.get('parallelism') is not None:
        options.parallelism = ctx_params['parallelism']

    return options


def display_header(request: ScanRequest):
    console.print(f"Scanning host {request.host} ports {request.start}-{request.end}...",
                  markup=False, highlight=False, soft_wrap=True)
    console.print("Detailed scan with service detection enabled")
    console.print(RULE + "\n")


async def run_scan(scanner: Scanner, request: ScanRequest, show_progress: bool) -> ScanReport:
    """Run the scan, advancing a progress bar as records arrive"""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
        disable=not show_progress,
    ) as progress:
        task = progress.add_task("Scanning...", total=request.size)
        return await scanner.scan(
            request,
            on_result=lambda record: progress.advance(task),
        )


@click.command()
@click.argument('host')
@click.argument('start_port')
@click.argument('end_port')
@click.option('-f', '--format', 'fmt', type=click.Choice(['text', 'table', 'json']),
              default='text', show_default=True, help='Report format')
@click.option('--open-only', is_flag=True, help='Only list open ports in the report')
@click.option('--parallelism', type=click.IntRange(min=0),
              help='Maximum concurrent probes (0 = one unthrottled task per port)')
@click.option('--connect-timeout', help='Connect timeout (e.g. 2s, 500ms)')
@click.option('--banner-timeout', help='Banner read timeout (e.g. 3s)')
@click.option('--generic-timeout', help='Timeout for the generic line read (e.g. 500ms)')
@click.option('--no-progress', is_flag=True, help='Disable the progress bar')
@click.option('-v', '--verbose', count=True, help='Increase verbosity level')
def main(host, start_port, end_port, **options):
    """
    BannerScan - scan HOST from START_PORT to END_PORT (inclusive)

    Examples:
      bannerscan localhost 20 1024
      bannerscan -f table --open-only 192.168.1.10 1 65535
    """
    setup_logging(options.get('verbose', 0))

    start = parse_port_argument('startPort', start_port)
    if start is None:
        return
    end = parse_port_argument('endPort', end_port)
    if end is None:
        return

    try:
        request = ScanRequest(host=host, start=start, end=end)
        scan_options = create_scan_options(options)
    except (ScanConfigError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}", soft_wrap=True)
        return

    fmt = options['fmt']
    if fmt != 'json':
        display_header(request)
        logger.info(f"Scan started at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    scanner = Scanner(scan_options)
    show_progress = not options.get('no_progress') and fmt != 'json'

    try:
        report = asyncio.run(run_scan(scanner, request, show_progress))
    except KeyboardInterrupt:
        console.print("\n[bold red]Scan interrupted by user[/bold red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {str(e)}")
        logger.exception("Scan failed")
        sys.exit(1)

    formatter = OutputFormatter(report, scan_options, open_only=options.get('open_only', False))
    formatter.print(console, fmt)


if __name__ == '__main__':
    main()
