"""
Banner Negotiation Module
Coaxes a short identifying greeting out of an already-open connection
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict

logger = logging.getLogger(__name__)

HTTP_PORTS = (80, 8000, 8080)

# port -> (prefix, fallback) for services that greet first
GREETING_PORTS = {
    21: ("FTP", "FTP Service"),
    22: ("SSH", "SSH Service"),
    25: ("SMTP", "SMTP Service"),
}

POSTGRESQL_BANNER = "PostgreSQL Database"
MYSQL_BANNER = "MySQL Database Server"
MYSQL_FALLBACK = "MySQL Service"
HTTP_FALLBACK = "HTTP Service"

# Errors a best-effort read may raise; all of them degrade to a fallback banner
READ_ERRORS = (
    OSError,
    EOFError,
    asyncio.TimeoutError,
    asyncio.IncompleteReadError,
    asyncio.LimitOverrunError,
    ValueError,
)


class BannerNegotiator:
    """Selects a probe strategy by port and extracts a banner within a deadline"""

    def __init__(self, timeout: float = 3.0, generic_timeout: float = 0.5,
                 read_size: int = 1024, http_host: str = "localhost",
                 user_agent: str = "PortScanner"):
        self.timeout = timeout
        self.generic_timeout = min(generic_timeout, timeout)
        self.read_size = read_size
        self.http_request = (
            f"GET / HTTP/1.1\r\nHost: {http_host}\r\nUser-Agent: {user_agent}\r\n\r\n"
        ).encode()

        self.strategies: Dict[int, Callable[[asyncio.StreamReader, asyncio.StreamWriter, int],
                                            Awaitable[str]]] = {}
        for port in HTTP_PORTS:
            self.strategies[port] = self._http_banner
        for port in GREETING_PORTS:
            self.strategies[port] = self._greeting_banner
        self.strategies[5432] = self._postgresql_banner
        self.strategies[3306] = self._mysql_banner

    async def negotiate(self, reader: asyncio.StreamReader,
                        writer: asyncio.StreamWriter, port: int) -> str:
        """Run the strategy registered for this port, or the generic line read"""
        strategy = self.strategies.get(port, self._generic_banner)
        return await strategy(reader, writer, port)

    async def _recv(self, reader: asyncio.StreamReader) -> bytes:
        """Single unbounded read; EOF is treated as a failure"""
        data = await reader.read(self.read_size)
        if not data:
            raise EOFError("connection closed before any data")
        return data

    async def _read(self, reader: asyncio.StreamReader) -> bytes:
        return await asyncio.wait_for(self._recv(reader), timeout=self.timeout)

    async def _http_exchange(self, reader: asyncio.StreamReader,
                             writer: asyncio.StreamWriter) -> bytes:
        writer.write(self.http_request)
        await writer.drain()
        return await self._recv(reader)

    async def _http_banner(self, reader: asyncio.StreamReader,
                           writer: asyncio.StreamWriter, port: int) -> str:
        try:
            # write, drain and read share one deadline
            data = await asyncio.wait_for(self._http_exchange(reader, writer),
                                          timeout=self.timeout)
        except READ_ERRORS as e:
            logger.debug(f"HTTP banner read failed on port {port}: {e!r}")
            return HTTP_FALLBACK

        response = data.decode('utf-8', errors='ignore')
        return "HTTP - " + response.split("\r\n")[0]

    async def _greeting_banner(self, reader: asyncio.StreamReader,
                               writer: asyncio.StreamWriter, port: int) -> str:
        prefix, fallback = GREETING_PORTS[port]
        try:
            data = await self._read(reader)
        except READ_ERRORS as e:
            logger.debug(f"{prefix} banner read failed on port {port}: {e!r}")
            return fallback

        return f"{prefix} - " + data.decode('utf-8', errors='ignore').strip()

    async def _postgresql_banner(self, reader: asyncio.StreamReader,
                                 writer: asyncio.StreamWriter, port: int) -> str:
        # No plaintext greeting; the startup handshake is client-initiated
        return POSTGRESQL_BANNER

    async def _mysql_banner(self, reader: asyncio.StreamReader,
                            writer: asyncio.StreamWriter, port: int) -> str:
        try:
            await self._read(reader)
        except READ_ERRORS as e:
            logger.debug(f"MySQL handshake read failed on port {port}: {e!r}")
            return MYSQL_FALLBACK
        return MYSQL_BANNER

    async def _generic_banner(self, reader: asyncio.StreamReader,
                              writer: asyncio.StreamWriter, port: int) -> str:
        """Read a single line; services that never send a newline cost generic_timeout"""
        try:
            line = await asyncio.wait_for(reader.readline(), timeout=self.generic_timeout)
        except READ_ERRORS as e:
            logger.debug(f"No line-oriented banner on port {port}: {e!r}")
            return ""

        return line.decode('utf-8', errors='ignore').strip()
