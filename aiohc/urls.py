import ipaddress
import re
from typing import Optional

from aiohc.errors import InvalidURL

DEFAULT_PORTS = {"http": 80, "https": 443}


def parse_url(url: str) -> "Url":
    return UrlParser().parse(url)


class Url:
    """Absolute http(s) URL split into the parts a connection needs."""

    def __init__(
        self,
        scheme: str,
        host: str,
        port: Optional[int],
        path: str,
        ip: Optional[str] = None,
    ):
        self.scheme = scheme
        self.host = host
        self.port = port
        self.path = path
        self.ip = ip

    @property
    def ssl(self) -> bool:
        return self.scheme == "https"

    @property
    def effective_port(self) -> int:
        return self.port or DEFAULT_PORTS[self.scheme]

    def host_header(self) -> str:
        hostname = f"[{self.host}]" if ":" in self.host else self.host
        return f"{hostname}:{self.port}" if self.port else hostname

    def __eq__(self, other) -> bool:
        if not isinstance(other, self.__class__):
            return NotImplemented

        return all(
            (
                self.scheme == other.scheme,
                self.host == other.host,
                self.port == other.port,
                self.path == other.path,
            )
        )

    def __str__(self) -> str:
        return f"{self.scheme}://{self.host_header()}{self.path}"

    def __repr__(self):
        return f"<Url {str(self)}>"


class UrlParser:
    uri_parsing_regex = re.compile(
        r"^(([^:/?#]+):)?(//([^/?#]*))?([^?#]*)(\?([^#]*))?(#(.*))?"
    )

    def parse(self, value: str) -> Url:
        if not isinstance(value, str):
            raise InvalidURL(value, "expected a string")

        match = self.uri_parsing_regex.search(value.strip())
        if not match:
            raise InvalidURL(value)

        scheme = (match.group(2) or "").lower()
        authority = match.group(4)
        path = match.group(5) or ""

        if scheme not in DEFAULT_PORTS:
            raise InvalidURL(value)
        if not authority:
            raise InvalidURL(value, "missing host")

        sep_ind = authority.find("@")
        if sep_ind != -1:
            authority = authority[sep_ind + 1 :]

        if authority.startswith("["):
            end = authority.find("]")
            if end == -1:
                raise InvalidURL(value, "unterminated IPv6 address")
            host = authority[1:end]
            port_part = authority[end + 1 :]
            if port_part and not port_part.startswith(":"):
                raise InvalidURL(value, "unexpected data after IPv6 address")
            port_part = port_part[1:]
        else:
            host, _, port_part = authority.partition(":")

        if not host:
            raise InvalidURL(value, "missing host")

        port = None
        if port_part:
            if not port_part.isdigit() or not 0 < int(port_part) < 65536:
                raise InvalidURL(value, f"invalid port {port_part!r}")
            port = int(port_part)

        try:
            ipaddress.ip_address(host)
            ip = host
        except ValueError:
            ip = None

        return Url(
            scheme=scheme,
            host=host.lower(),
            port=port,
            path=path.rstrip("/"),
            ip=ip,
        )
