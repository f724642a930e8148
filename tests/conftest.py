import asyncio
import logging
import socket
import subprocess
import sys
import time
import warnings

import pytest
import pytest_asyncio

from aiohc import Client
from aiohc.settings import LOGGER_NAME

warnings.filterwarnings("ignore")

log = logging.getLogger(LOGGER_NAME)

CONSTANTS = dict(
    HELLO_RESPONSE_TEXT="hello",
    STREAMING_RESPONSE_CHUNK_COUNT=30,
    SLOW_RESPONSE_DELAY=2,
    SERVER_HOST="127.0.0.1",
    SERVER_PORT=7575,
    SERVER_URL="http://127.0.0.1:7575",
)


def wait_for_port(host, port, timeout=10.0):
    deadline = time.monotonic() + timeout
    while True:
        try:
            with socket.create_connection((host, port), timeout=0.5):
                return
        except OSError:
            if time.monotonic() > deadline:
                raise
            time.sleep(0.05)


@pytest.fixture(scope="session")
def session_start():
    log.debug("Running server process")
    with subprocess.Popen(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "tests.server:app",
            "--log-level",
            "critical",
            "--port",
            str(CONSTANTS["SERVER_PORT"]),
        ],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    ) as proc:
        log.debug("Waiting signal from the server process")
        assert proc.stdout.readline() == b"started\n"
        wait_for_port(CONSTANTS["SERVER_HOST"], CONSTANTS["SERVER_PORT"])
        log.debug("Signal was received from the server process")
        yield
        log.debug("Teardown server process")
        proc.terminate()
        log.debug("Server process was terminated")


@pytest.fixture(scope="session")
def SERVER_URL(session_start):
    return CONSTANTS["SERVER_URL"]


@pytest.fixture(scope="session")
def constants():
    return CONSTANTS


@pytest.fixture
def unreachable_port():
    """A local port nothing listens on."""

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return port


@pytest.fixture
def json_client():
    return Client("http://localhost:8888", "json", {"timeout": 10})


@pytest.fixture
def form_client():
    return Client("http://localhost:8888", "form", {"timeout": 10})


@pytest_asyncio.fixture()
async def temp_client(SERVER_URL):
    client = Client(SERVER_URL, "json", {"timeout": 5})
    client.set_debug(False)
    yield client


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)

    @property
    def messages(self):
        return [record.getMessage() for record in self.records]


@pytest.fixture
def log_records():
    handler = ListHandler()
    log.addHandler(handler)
    yield handler
    log.removeHandler(handler)


@pytest_asyncio.fixture()
async def truncating_server():
    """Serves headers promising 100 body bytes, sends 3 and hangs up."""

    async def handle(reader, writer):
        await reader.readuntil(b"\r\n\r\n")
        writer.write(b"HTTP/1.1 200 OK\r\nContent-Length: 100\r\n\r\nabc")
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    yield "127.0.0.1", port
    server.close()
    await server.wait_closed()
