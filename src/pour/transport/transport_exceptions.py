"""
Errors raised by HttpTransport.

``path`` is the collector path of the failed request (``/logs`` or
``/logs/projects/hardware``), so the shipping loops can report which
upload failed. A non-202 response is not an error here; it comes back as
a TransportResponse.
"""


class TransportError(Exception):
    def __init__(self, path, reason, details=None):
        self.path = path
        self.reason = reason
        self.details = details
        super().__init__(reason)


class SerializationError(TransportError):
    """The payload could not be encoded as JSON."""


class RequestFailedError(TransportError):
    """No HTTP response: connection, TLS or timeout failure."""
