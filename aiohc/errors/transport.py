from .base import AiohcError


class TransportError(AiohcError):
    ...


class RequestTimeoutError(TransportError):
    ...


class InvalidHeader(TransportError):
    ...


class InvalidResponseData(TransportError):
    ...
