class StaticServeError(Exception):
    pass


class SecurityRejection(StaticServeError):
    """The request path is unsafe to map onto the file system.

    The message is for logs only and must never reach a response body.
    """


class UriDecodeError(StaticServeError):
    """The request URI could not be percent-decoded as UTF-8."""


class InvalidDateHeader(StaticServeError, ValueError):
    def __init__(self, value: str):
        super().__init__(f"unparseable HTTP date: {value!r}")
        self.value = value


class TransferError(StaticServeError):
    pass
