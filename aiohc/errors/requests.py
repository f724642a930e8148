from .base import AiohcError


class InvalidURL(AiohcError, ValueError):
    def __init__(self, url, reason="Url should starts with `http://` or `https://`."):
        self.url = url
        super().__init__(f"Invalid base url {url!r}: {reason}")


class SerializationError(AiohcError):
    ...
