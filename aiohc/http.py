import asyncio
import logging
from enum import Enum
from typing import Any
from typing import Dict
from typing import Optional
from typing import Union

from aiohc import settings
from aiohc.connection import Transport
from aiohc.errors import TransportError
from aiohc.generic import wrap_errors
from aiohc.parsers import FORM_CONTENT_TYPE
from aiohc.parsers import JSON_CONTENT_TYPE
from aiohc.parsers import default_parser
from aiohc.parsers import serialize_body
from aiohc.parsers import sum_path_parameters
from aiohc.settings import LOGGER_NAME
from aiohc.urls import Url
from aiohc.urls import parse_url

log = logging.getLogger(LOGGER_NAME)


class ContentMode(Enum):
    FORM = "form"
    JSON = "json"

    @property
    def content_type(self) -> str:
        return FORM_CONTENT_TYPE if self is ContentMode.FORM else JSON_CONTENT_TYPE


class RequestSpec:
    """A fully built request, ready to be written to a connection."""

    def __init__(
        self,
        method: str,
        url: str,
        target: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
    ) -> None:
        self.method = method
        self.url = url
        self.target = target
        self.headers = headers
        self.body = body

    def get_raw_request(self) -> bytes:
        return default_parser(self.method, self.target, self.headers, self.body)

    def __eq__(self, _value) -> bool:
        if not isinstance(_value, RequestSpec):
            return NotImplemented
        return (
            self.method == _value.method
            and self.url == _value.url
            and self.target == _value.target
            and self.headers == _value.headers
            and self.body == _value.body
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.method} {self.url}>"


class ResponseResult:
    def __init__(
        self,
        status: int,
        message: str,
        body: str,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.status = status
        self.message = message
        self.body = body
        self.headers = headers or {}

    def __eq__(self, _value) -> bool:
        if not isinstance(_value, ResponseResult):
            return NotImplemented
        return (
            self.status == _value.status
            and self.message == _value.message
            and self.body == _value.body
        )

    def __repr__(self) -> str:
        return f"<ResponseResult {self.status} {self.message} body={self.body!r}>"


class Client:
    """
    HTTP client bound to a single base URL.

    Every request is sent on a fresh connection which is closed as soon as the
    response body has been read.
    """

    def __init__(
        self,
        base_url: str,
        content_mode: Union[ContentMode, str] = ContentMode.JSON,
        options: Optional[Dict[str, Any]] = None,
    ):
        self._url: Url = parse_url(base_url)
        self.base_url = str(self._url)
        self.content_mode = ContentMode(content_mode)

        self.default_options: Dict[str, Any] = dict(options or {})
        self.default_options["host"] = self._url.host
        if self._url.port:
            self.default_options["port"] = self._url.port

        self.default_headers: Dict[str, str] = {}
        self.token: Optional[str] = None
        self.debug: bool = True

    @classmethod
    def from_settings(cls) -> "Client":
        """Builds the client described by the `[Client]` section of settings.ini."""

        client = cls(
            settings.BASE_URL,
            content_mode=settings.CONTENT_MODE,
            options={"timeout": settings.DEFAULT_TIMEOUT},
        )
        client.set_token(settings.BEARER_TOKEN)
        client.set_debug(settings.DEBUG)
        return client

    @property
    def timeout(self) -> Optional[float]:
        return self.default_options.get("timeout")

    def set_debug(self, flag: bool) -> None:
        self.debug = flag

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    def add_default_header(self, name: str, value: str) -> None:
        self.default_headers[name] = value

    def remove_default_header(self, name: str) -> None:
        self.default_headers.pop(name, None)

    def build_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> RequestSpec:
        """
        Creates the `RequestSpec` for one call.

        Headers are layered so that later layers win: connection headers,
        default headers, body headers, authorization, call overrides.
        Raises `SerializationError` when `body` can't be encoded.
        """
        if path and not path.startswith("/"):
            path = "/" + path
        target = (self._url.path + path) or "/"
        if params:
            target += "?" + sum_path_parameters(params)
        url = self.base_url + target[len(self._url.path) :]

        data = serialize_body(body, form=self.content_mode is ContentMode.FORM)

        request_headers: Dict[str, str] = {
            "Host": self._url.host_header(),
            "Connection": "close",
        }
        request_headers.update(self.default_headers)

        if data is not None:
            request_headers["Content-type"] = self.content_mode.content_type
            request_headers["Content-Length"] = str(len(data))

        if self.token:
            request_headers["authorization"] = "Bearer " + self.token

        if headers:
            request_headers.update(headers)

        return RequestSpec(
            method=method,
            url=url,
            target=target,
            headers=request_headers,
            body=data,
        )

    async def _exchange(self, transport: Transport, spec: RequestSpec) -> ResponseResult:
        await transport.make_connection(
            self.default_options["host"],
            self.default_options.get("port", self._url.effective_port),
            ssl=self._url.ssl,
        )
        status, message, headers, content = await transport.send_http_request(
            spec.get_raw_request(), method=spec.method
        )
        return ResponseResult(
            status=status,
            message=message,
            body=content.decode("utf-8", errors="replace"),
            headers=headers,
        )

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ResponseResult:
        spec = self.build_request(method, path, params, body, headers)

        transport = Transport()
        try:
            with wrap_errors():
                result = await asyncio.wait_for(
                    self._exchange(transport, spec), timeout=self.timeout
                )
        except TransportError as e:
            if self.debug:
                log.info(f"Request to [{spec.url}] failed: {e}")
            raise
        finally:
            transport.close()

        if self.debug:
            log.info(f"Request to [{spec.url}] resolved: {result!r}")
        return result

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ResponseResult:
        return await self.request("GET", path, params, None, headers)

    async def post(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ResponseResult:
        return await self.request("POST", path, params, body, headers)

    def __repr__(self) -> str:
        return f"<Client {self.base_url} {self.content_mode.value}>"
