import json as _json
import logging
import re
from typing import Any
from typing import Dict
from typing import Optional
from typing import Tuple
from urllib.parse import urlencode

from aiohc.errors import InvalidHeader
from aiohc.errors import InvalidResponseData
from aiohc.errors import SerializationError
from aiohc.settings import LOGGER_NAME

log = logging.getLogger(LOGGER_NAME)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

# Characters that would let a header value start a new header line
forbidden_header_chars = re.compile(r"[\r\n\0]")


def sum_path_parameters(parameters) -> str:
    return urlencode(parameters, doseq=True)


def configure_urlencoded(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return urlencode(payload, doseq=True)
    except TypeError as e:
        raise SerializationError(
            f"Can't encode {type(payload).__name__} as form data: {e}"
        ) from e


def configure_json(payload: Any) -> str:
    try:
        if isinstance(payload, str):
            _json.loads(payload)  # validate json format
            return payload
        return _json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Can't encode {type(payload).__name__} as json: {e}"
        ) from e


def serialize_body(payload: Any, form: bool) -> Optional[bytes]:
    """
    Turns a body payload into the bytes sent on the wire.

    ``None`` and payloads that serialize to nothing produce no body at all.
    """
    if payload is None:
        return None

    if isinstance(payload, (bytes, bytearray)):
        data = bytes(payload)
    else:
        text = configure_urlencoded(payload) if form else configure_json(payload)
        data = text.encode("utf-8")
    return data or None


def default_parser(
    method: str, target: str, headers: Dict[str, str], body: Optional[bytes]
) -> bytes:
    lines = [f"{method} {target} HTTP/1.1"]
    for key, value in headers.items():
        key, value = str(key), str(value)
        if not key or ":" in key or forbidden_header_chars.search(key + value):
            raise InvalidHeader(f"Invalid header {key!r}: {value!r}")
        lines.append(f"{key}: {value}")

    message = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")
    return message + (body or b"")


class ResponseParser:
    no_body_statuses = frozenset((204, 304))

    @classmethod
    def parse_status_line(cls, raw_status_line: str) -> Tuple[str, int, str]:
        parts = raw_status_line.strip("\r\n").split(maxsplit=2)
        if len(parts) < 2 or not parts[0].startswith("HTTP/"):
            raise InvalidResponseData(f"Invalid status line {raw_status_line!r}")

        scheme, status = parts[0], parts[1]
        status_message = parts[2] if len(parts) == 3 else ""
        if not status.isdigit():
            raise InvalidResponseData(f"Invalid status code {status!r}")
        return scheme, int(status), status_message

    @classmethod
    def parse_header_line(cls, raw_header_line: str) -> Tuple[str, str]:
        key, sep, value = raw_header_line.strip("\r\n").partition(":")
        if not sep or not key.strip():
            raise InvalidResponseData(f"Invalid header line {raw_header_line!r}")
        return key.strip().lower(), value.strip()

    @classmethod
    def search_content_length(cls, headers: Dict[str, str]) -> Optional[int]:
        value = headers.get("content-length")
        if value is None:
            return None
        if not value.isdigit():
            raise InvalidResponseData(f"Invalid content-length {value!r}")
        return int(value)

    @classmethod
    def search_transfer_encoding(cls, headers: Dict[str, str]) -> bool:
        return "chunked" in headers.get("transfer-encoding", "").lower()

    @classmethod
    def expects_body(cls, method: str, status: int) -> bool:
        return not (
            method == "HEAD" or status < 200 or status in cls.no_body_statuses
        )
