"""
BannerScan Core Scanner Engine
Concurrent TCP connect scanner with per-port banner negotiation
"""

import asyncio
import time
import logging
from typing import Callable, Iterator, List, Optional, Tuple
from dataclasses import dataclass, field

from bannerscan.core.services import lookup
from bannerscan.scanners.banner import BannerNegotiator

logger = logging.getLogger(__name__)

MIN_PORT = 1
MAX_PORT = 65535

# Unbounded fan-out above this many ports is worth a warning
LARGE_SCAN_THRESHOLD = 10000


class ScanConfigError(ValueError):
    """Invalid scan request; raised before any probe is launched"""


@dataclass
class ScanOptions:
    """Configuration options for scanning"""
    connect_timeout: float = 2.0
    banner_timeout: float = 3.0
    generic_timeout: float = 0.5
    read_size: int = 1024
    parallelism: Optional[int] = 1000  # 0 or None: one unthrottled task per port
    http_host: str = "localhost"
    user_agent: str = "PortScanner"


@dataclass(frozen=True)
class PortRecord:
    """Result for a single port probe"""
    port: int
    open: bool
    service: str = ""
    banner: str = ""

    @classmethod
    def closed(cls, port: int) -> "PortRecord":
        return cls(port=port, open=False, service="", banner="")


@dataclass(frozen=True)
class ScanRequest:
    """Target host and inclusive port range"""
    host: str
    start: int
    end: int

    def __post_init__(self):
        if not isinstance(self.host, str) or not self.host.strip():
            raise ScanConfigError("Target host must not be empty")
        for name, value in (("startPort", self.start), ("endPort", self.end)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ScanConfigError(f"Invalid {name}: {value!r}")
            if not MIN_PORT <= value <= MAX_PORT:
                raise ScanConfigError(
                    f"Invalid {name}: {value} (must be between {MIN_PORT} and {MAX_PORT})"
                )
        if self.start > self.end:
            raise ScanConfigError(
                f"Invalid port range: {self.start}-{self.end} (startPort > endPort)"
            )

    @property
    def ports(self) -> range:
        return range(self.start, self.end + 1)

    @property
    def size(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class ScanReport:
    """Ordered per-port results for one scan"""
    host: str
    records: Tuple[PortRecord, ...] = ()
    elapsed: float = field(default=0.0, compare=False)

    def __post_init__(self):
        ordered = tuple(sorted(self.records, key=lambda r: r.port))
        object.__setattr__(self, 'records', ordered)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[PortRecord]:
        return iter(self.records)

    @property
    def open_ports(self) -> List[int]:
        return [r.port for r in self.records if r.open]

    @property
    def open_count(self) -> int:
        return len(self.open_ports)

    @property
    def closed_count(self) -> int:
        return len(self.records) - self.open_count


class Scanner:
    """Main scanner class with async support"""

    def __init__(self, options: Optional[ScanOptions] = None):
        self.options = options or ScanOptions()
        self.negotiator = BannerNegotiator(
            timeout=self.options.banner_timeout,
            generic_timeout=self.options.generic_timeout,
            read_size=self.options.read_size,
            http_host=self.options.http_host,
            user_agent=self.options.user_agent,
        )

    def _make_gate(self) -> Optional[asyncio.Semaphore]:
        if self.options.parallelism:
            return asyncio.Semaphore(self.options.parallelism)
        return None

    async def probe(self, host: str, port: int) -> PortRecord:
        """Connect once to host:port and, if open, negotiate a banner"""
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self.options.connect_timeout
            )
        except (OSError, UnicodeError, asyncio.TimeoutError) as e:
            # UnicodeError: hostname rejected by the idna codec before resolution
            logger.debug(f"Connect to {host}:{port} failed: {e!r}")
            return PortRecord.closed(port)

        try:
            banner = await self.negotiator.negotiate(reader, writer, port)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug(f"Close of {host}:{port} failed: {e!r}")

        return PortRecord(port=port, open=True, service=lookup(port), banner=banner)

    async def _probe_into(self, host: str, port: int, results: asyncio.Queue,
                          gate: Optional[asyncio.Semaphore]):
        try:
            if gate is None:
                record = await self.probe(host, port)
            else:
                async with gate:
                    record = await self.probe(host, port)
        except Exception as e:
            # The coordinator counts one item per task; it re-raises failures
            await results.put(e)
            return
        await results.put(record)

    async def scan(self, request: ScanRequest,
                   on_result: Optional[Callable[[PortRecord], None]] = None) -> ScanReport:
        """Probe every port in the request and return the sorted report"""
        start_time = time.monotonic()

        if not self.options.parallelism and request.size > LARGE_SCAN_THRESHOLD:
            logger.warning(f"Large scan detected: {request.size:,} ports with unbounded parallelism")
            logger.warning("Consider setting --parallelism to cap concurrent connections")

        logger.info(f"Starting scan of {request.host} ports {request.start}-{request.end} "
                    f"(parallelism: {self.options.parallelism or 'unbounded'})")

        results: asyncio.Queue = asyncio.Queue()
        gate = self._make_gate()
        tasks = [
            asyncio.create_task(self._probe_into(request.host, port, results, gate))
            for port in request.ports
        ]

        records: List[PortRecord] = []
        try:
            for _ in range(len(tasks)):
                item = await results.get()
                if isinstance(item, Exception):
                    raise item
                records.append(item)
                if on_result is not None:
                    on_result(item)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        report = ScanReport(host=request.host, records=tuple(records),
                            elapsed=time.monotonic() - start_time)
        logger.info(f"Scan of {request.host} complete: {report.open_count} open, "
                    f"{report.closed_count} closed in {report.elapsed:.2f}s")
        return report
