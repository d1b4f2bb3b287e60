"""
Shared fixtures: loopback stub services and connection helpers
"""

import asyncio
import socket

import pytest
import pytest_asyncio

from bannerscan.core.scanner import ScanOptions


@pytest.fixture
def closed_port() -> int:
    """A loopback port with nothing listening on it"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
def fast_options() -> ScanOptions:
    """Short timeouts so silent stubs do not slow the suite down"""
    return ScanOptions(connect_timeout=1.0, banner_timeout=0.5, generic_timeout=0.2)


@pytest_asyncio.fixture
async def stub_server():
    """
    Factory for TCP stubs on 127.0.0.1.

    greeting is written as soon as a client connects, reply after the
    client's first write. received collects whatever clients send.
    """
    servers = []

    async def start(greeting: bytes = b"", reply: bytes = None, hang_up: bool = False):
        received = []

        async def handle(reader, writer):
            try:
                if greeting:
                    writer.write(greeting)
                    await writer.drain()
                if hang_up:
                    return
                if reply is not None:
                    received.append(await reader.read(4096))
                    writer.write(reply)
                    await writer.drain()
                # hold the connection open until the client goes away
                received.append(await reader.read())
            except ConnectionError:
                pass
            finally:
                writer.close()

        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        servers.append(server)
        return server.sockets[0].getsockname()[1], received

    yield start

    for server in servers:
        server.close()
        await server.wait_closed()


@pytest_asyncio.fixture
async def connect():
    """Open client connections to loopback ports, closing them on teardown"""
    writers = []

    async def _connect(port: int):
        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        writers.append(writer)
        return reader, writer

    yield _connect

    for writer in writers:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass


@pytest.fixture
def redirect_ports(monkeypatch):
    """
    Route connections for chosen port numbers to loopback stubs.

    Lets tests exercise port-specific behaviour (22, 8080, ...) without
    binding privileged ports. Unmapped ports go to the fallback port.
    """
    real_open_connection = asyncio.open_connection

    def install(mapping: dict, fallback: int):
        async def fake_open_connection(host, port, **kwargs):
            return await real_open_connection("127.0.0.1", mapping.get(port, fallback), **kwargs)

        monkeypatch.setattr(asyncio, "open_connection", fake_open_connection)

    return install
