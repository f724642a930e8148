import asyncio
import contextlib
import logging

from dns.exception import DNSException  # type: ignore

from aiohc.errors import RequestTimeoutError
from aiohc.errors import TransportError
from aiohc.settings import LOGGER_NAME

log = logging.getLogger(LOGGER_NAME)


def describe_error(exc: BaseException) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


@contextlib.contextmanager
def wrap_errors():
    """Re-raises low level connection failures as `TransportError`."""

    try:
        yield
    except asyncio.TimeoutError as e:
        raise RequestTimeoutError("Request timed out") from e
    except (
        OSError,
        EOFError,
        UnicodeError,
        asyncio.LimitOverrunError,
        DNSException,
    ) as e:
        log.trace(f"transport failure {e!r}")  # type: ignore
        raise TransportError(describe_error(e)) from e
