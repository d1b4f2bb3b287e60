"""
Output formatting utilities for BannerScan
Supports the normal text report, a rich table and JSON
"""

import json
from datetime import datetime
from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from bannerscan import __version__
from bannerscan.core.scanner import PortRecord, ScanOptions, ScanReport

RULE = "=" * 60


class OutputFormatter:
    """Format scan reports in various output formats"""

    def __init__(self, report: ScanReport, options: Optional[ScanOptions] = None,
                 open_only: bool = False):
        self.report = report
        self.options = options or ScanOptions()
        self.open_only = open_only
        self.generated = datetime.now()
        self.version = __version__

    def _listed(self) -> List[PortRecord]:
        return [r for r in self.report if r.open or not self.open_only]

    @staticmethod
    def format_record(record: PortRecord) -> str:
        """One human-readable line per port"""
        if not record.open:
            return f"Port {record.port} is CLOSED"

        line = f"Port {record.port} is OPEN"
        if record.service:
            line += f" - Service: {record.service}"
        if record.banner:
            line += f" - Banner: {record.banner}"
        return line

    def format_normal(self) -> str:
        """Per-port lines followed by the summary block"""
        lines = [self.format_record(r) for r in self._listed()]

        lines.append("")
        lines.append(RULE)
        lines.append("SCAN SUMMARY:")
        lines.append(f"Total ports scanned: {len(self.report)}")
        lines.append(f"Open ports: {self.report.open_count}")
        lines.append(f"Closed ports: {self.report.closed_count}")
        if self.report.open_ports:
            lines.append(f"Open ports list: {self.report.open_ports}")
        lines.append(f"Scan time: {self.report.elapsed:.2f}s")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> Dict:
        return {
            'scanner': 'bannerscan',
            'version': self.version,
            'generated': self.generated.isoformat(),
            'host': self.report.host,
            'elapsed': round(self.report.elapsed, 4),
            'timeouts': {
                'connect': self.options.connect_timeout,
                'banner': self.options.banner_timeout,
                'generic': self.options.generic_timeout,
            },
            'summary': {
                'total': len(self.report),
                'open': self.report.open_count,
                'closed': self.report.closed_count,
                'open_ports': self.report.open_ports,
            },
            'ports': [
                {
                    'port': r.port,
                    'state': 'open' if r.open else 'closed',
                    'service': r.service,
                    'banner': r.banner,
                }
                for r in self._listed()
            ],
        }

    def format_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def build_table(self) -> Table:
        table = Table(title=f"[bold]{self.report.host}[/bold]")
        table.add_column("Port", style="cyan", no_wrap=True)
        table.add_column("State", style="green")
        table.add_column("Service", style="yellow")
        table.add_column("Banner", style="magenta")

        for record in self._listed():
            state = "open" if record.open else "closed"
            state_style = "green" if record.open else "red"
            table.add_row(
                f"{record.port}/tcp",
                f"[{state_style}]{state}[/{state_style}]",
                escape(record.service),
                escape(record.banner),
            )
        return table

    def build_summary(self) -> Panel:
        open_list = ", ".join(str(p) for p in self.report.open_ports) or "none"
        summary = (
            f"Scan Summary:\n"
            f"├─ Ports: {self.report.open_count}/{len(self.report)} open, "
            f"{self.report.closed_count} closed\n"
            f"├─ Open: {open_list}\n"
            f"└─ Time: {self.report.elapsed:.2f}s"
        )
        return Panel(summary, title="[bold]Scan Complete[/bold]", style="green")

    def print(self, console: Console, fmt: str = "text"):
        """Render the report to the console in the requested format"""
        if fmt == "json":
            console.print_json(self.format_json())
        elif fmt == "table":
            if self._listed():
                console.print(self.build_table())
            console.print(self.build_summary())
        elif fmt == "text":
            console.print(self.format_normal(), markup=False, highlight=False, soft_wrap=True, end="")
        else:
            raise ValueError(f"Unsupported format: {fmt}")
