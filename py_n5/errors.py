__all__ = ["N5Error", "TransportError", "DecodeError"]


class N5Error(Exception):
    """Base error which all py-n5 errors are sub-classed from."""


class TransportError(N5Error, OSError):
    """
    Raised when a resource could not be fetched: the connection failed, a timeout was exceeded, the URL was malformed, or the server answered with a non-success status.

    `status_code` is `None` for connection level failures.
    """

    def __init__(self, message: str, url: str, status_code: int | None = None):
        super().__init__(message)
        self.url: str = url
        self.status_code: int | None = status_code


class DecodeError(N5Error, ValueError):
    """
    Raised when a fetched body could not be decoded, either as an attributes JSON object or as an N5 data block.
    """

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url: str | None = url
