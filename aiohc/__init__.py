__version__ = "0.1.0"

from .dispatcher import DispatchCounters, Dispatcher, parse_count
from .errors import (
    AiohcError,
    InvalidHeader,
    InvalidResponseData,
    InvalidURL,
    RequestTimeoutError,
    SerializationError,
    TransportError,
)
from .http import Client, ContentMode, RequestSpec, ResponseResult
from .urls import parse_url
