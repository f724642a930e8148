from .base import AiohcError
from .requests import InvalidURL, SerializationError
from .transport import (
    InvalidHeader,
    InvalidResponseData,
    RequestTimeoutError,
    TransportError,
)
