"""
Concurrent GET fan-out against a single target.

All requests run on one event loop. Counter updates happen between
suspension points, so the step that brings `total` to the requested count
is observed by exactly one request.
"""
import asyncio
import logging
from typing import Any
from typing import Callable
from typing import Optional

from aiohc.connection import Transport
from aiohc.errors import TransportError
from aiohc.generic import describe_error
from aiohc.generic import wrap_errors
from aiohc.parsers import default_parser
from aiohc.settings import LOGGER_NAME
from aiohc.urls import Url

log = logging.getLogger(LOGGER_NAME)


def parse_count(raw: Any) -> int:
    """Missing, non-numeric and non-positive counts all mean a single request."""

    try:
        count = int(raw)
    except (TypeError, ValueError):
        return 1
    return count if count > 0 else 1


class DispatchCounters:
    def __init__(self, requested: int):
        self.requested = requested
        self.total = 0
        self.succeeded = 0
        self.failed = 0
        self.completed = False

    def record(self, succeeded: bool) -> bool:
        """
        Counts one finished request.

        Returns True only for the call that completes the run.
        """
        if succeeded:
            self.succeeded += 1
        else:
            self.failed += 1
        self.total += 1

        if self.total == self.requested and not self.completed:
            self.completed = True
            return True
        return False

    def summary(self) -> str:
        return (
            f"total={self.total}, succeeded={self.succeeded}, failed={self.failed}"
        )

    def __repr__(self):
        return f"<DispatchCounters {self.summary()}>"


class Dispatcher:
    def __init__(
        self,
        host: str,
        port: int,
        path: str,
        echo: Callable[[str], Any] = print,
        timeout: Optional[float] = None,
    ):
        self.host = host
        self.port = port
        self.path = path
        self.echo = echo
        self.timeout = timeout

    def _raw_request(self) -> bytes:
        host_header = Url("http", self.host, self.port, "").host_header()
        headers = {"Host": host_header, "Connection": "close"}
        return default_parser("GET", self.path, headers, None)

    async def _fetch(self, transport: Transport, raw_request: bytes) -> str:
        await transport.make_connection(self.host, self.port, ssl=False)
        _, _, _, content = await transport.send_http_request(raw_request, "GET")
        return content.decode("utf-8", errors="replace")

    async def _issue(
        self, index: int, raw_request: bytes, counters: DispatchCounters
    ) -> None:
        transport = Transport()
        try:
            with wrap_errors():
                body = await asyncio.wait_for(
                    self._fetch(transport, raw_request), timeout=self.timeout
                )
        except TransportError as e:
            transport.close()
            cause = e.__cause__ if e.__cause__ is not None else e
            self.echo(f"[{index}] {describe_error(cause)}")
            self._count(counters, succeeded=False)
            return

        transport.close()
        self.echo(f"[{index}] {body}")
        self._count(counters, succeeded=True)

    def _count(self, counters: DispatchCounters, succeeded: bool) -> None:
        if counters.record(succeeded):
            self.echo(counters.summary())

    async def run(self, request_count: Any = 1) -> DispatchCounters:
        count = parse_count(request_count)
        counters = DispatchCounters(count)
        raw_request = self._raw_request()

        log.debug(
            f"dispatching {count} requests to {self.host}:{self.port}{self.path}"
        )
        await asyncio.gather(
            *(self._issue(index, raw_request, counters) for index in range(count))
        )
        return counters
