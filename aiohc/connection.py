import asyncio
import ipaddress
import logging
import os
import ssl as _ssl
from abc import ABC
from abc import abstractmethod
from typing import AsyncGenerator
from typing import Awaitable
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

import certifi
from dns import asyncresolver  # type: ignore

from aiohc.errors import InvalidResponseData
from aiohc.parsers import ResponseParser
from aiohc.settings import DEFAULT_DNS_SERVER
from aiohc.settings import LOGGER_NAME

STREAM_BUFFER_SIZE = 1024 * 4  # 4Kb

log = logging.getLogger(LOGGER_NAME)

dns_cache: Dict[str, Union[str, Awaitable]] = dict()


def load_ssl_context() -> _ssl.SSLContext:
    context = _ssl.create_default_context(cafile=certifi.where())
    context.keylog_filename = os.getenv("SSLKEYLOGFILE")  # type: ignore
    return context


async def get_address(host: str, nameserver: str) -> str:
    res = asyncresolver.Resolver(configure=False)
    res.nameservers = [nameserver]
    answers = await res.resolve(host)
    return answers.rrset[0].address  # type: ignore


async def resolve_domain(host: str) -> str:
    """
    Resolves `host` through the configured DNS server.

    Without a configured server, or for IP literals and localhost, the host is
    returned unchanged and left to the system resolver.
    """
    if DEFAULT_DNS_SERVER is None or host == "localhost":
        return host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        pass

    if host in dns_cache:
        memo = dns_cache[host]
        if isinstance(memo, str):
            return memo
        return await memo

    log.trace(f"trying resolve hostname={host}")  # type: ignore
    coro = asyncio.ensure_future(get_address(host, DEFAULT_DNS_SERVER))
    dns_cache[host] = coro
    try:
        ip = await coro
    except BaseException:
        dns_cache.pop(host, None)
        raise
    dns_cache[host] = ip
    return ip


class StreamReader(ABC):
    def __init__(self, reader: asyncio.StreamReader):
        self.reader = reader

    @abstractmethod
    async def read_by_chunks(self, max_read: int) -> AsyncGenerator[bytes, None]:
        yield b""


class ByteStreamReader(StreamReader):
    def __init__(self, reader: asyncio.StreamReader, to_read: int):
        super().__init__(reader=reader)
        self.to_read = to_read

    async def read_by_chunks(self, max_read: int) -> AsyncGenerator[bytes, None]:
        while self.to_read:
            chunk = await self.reader.readexactly(min(max_read, self.to_read))
            self.to_read -= len(chunk)
            yield chunk


class ChunkedStreamReader(StreamReader):
    async def read_by_chunks(self, max_read: int) -> AsyncGenerator[bytes, None]:
        while True:
            chunk = await self.reader.readuntil(b"\r\n")
            chunk_size = chunk[:-2]
            if b";" in chunk_size:
                chunk_size = chunk_size.split(b";")[0].strip()
            try:
                chunk_size = int(chunk_size, 16)
            except ValueError as e:
                raise InvalidResponseData(f"Invalid chunk size {chunk_size!r}") from e
            if chunk_size == 0:
                break

            while chunk_size:
                part = await self.reader.readexactly(min(max_read, chunk_size))
                chunk_size -= len(part)
                yield part
            await self.reader.readexactly(2)  # skip crlf

        # trailers end with an empty line
        while (await self.reader.readuntil(b"\r\n")) != b"\r\n":
            ...


class UntilEofStreamReader(StreamReader):
    async def read_by_chunks(self, max_read: int) -> AsyncGenerator[bytes, None]:
        while True:
            chunk = await self.reader.read(max_read)
            if not chunk:
                break
            yield chunk


class Transport:
    """One HTTP/1.1 exchange over an asyncio stream pair."""

    def __init__(self):
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None

    async def _send_data(self, raw_data: bytes) -> None:
        assert self.writer
        self.writer.write(raw_data)
        await self.writer.drain()

    async def make_connection(
        self,
        host: str,
        port: int,
        ssl: bool,
        server_hostname: Optional[str] = None,
    ) -> None:
        address = await resolve_domain(host)
        log.trace(f"{address}, {port}")  # type: ignore

        if ssl:
            reader, writer = await asyncio.open_connection(
                host=address,
                port=port,
                ssl=load_ssl_context(),
                server_hostname=server_hostname or host,
            )
        else:
            reader, writer = await asyncio.open_connection(
                host=address,
                port=port,
            )
        self.reader = reader
        self.writer = writer

    async def _read_head(self) -> Tuple[str, Dict[str, str]]:
        assert self.reader
        status_line = (await self.reader.readuntil(b"\r\n")).decode("latin-1")
        headers: Dict[str, str] = {}
        while True:
            line = (await self.reader.readuntil(b"\r\n")).decode("latin-1")
            if line == "\r\n":
                break
            key, value = ResponseParser.parse_header_line(line)
            headers[key] = value
        return status_line, headers

    def _body_reader(self, headers: Dict[str, str]) -> StreamReader:
        assert self.reader
        if ResponseParser.search_transfer_encoding(headers):
            return ChunkedStreamReader(self.reader)

        content_length = ResponseParser.search_content_length(headers)
        if content_length is not None:
            return ByteStreamReader(reader=self.reader, to_read=content_length)
        return UntilEofStreamReader(self.reader)

    async def send_http_request(
        self, raw_data: bytes, method: str
    ) -> Tuple[int, str, Dict[str, str], bytes]:
        """
        Writes `raw_data` and reads the whole response.

        Body chunks are collected in the order they arrive.
        """
        await self._send_data(raw_data)

        status_line, headers = await self._read_head()
        _, status, status_message = ResponseParser.parse_status_line(status_line)

        chunks: List[bytes] = []
        if ResponseParser.expects_body(method, status):
            async for chunk in self._body_reader(headers).read_by_chunks(
                max_read=STREAM_BUFFER_SIZE
            ):
                chunks.append(chunk)
        return status, status_message, headers, b"".join(chunks)

    def close(self) -> None:
        if self.writer and not self.writer.is_closing():
            self.writer.close()

    def is_closing(self) -> bool:
        """
        Wraps transport is_closing
        """
        if self.writer:
            return self.writer.is_closing()
        raise TypeError("`is_closing` method called on unconnected transport")

    def __repr__(self):
        if self.writer is None:
            return "<Transport Unconnected>"
        return f"<Transport {'Closed' if self.is_closing() else 'Open'}>"
