"""
Relay Errors
============

Error taxonomy for the relay. Each HTTP-facing error carries the status
code and the public message rendered as ``{"error": message}``.

    MissingPayload          400  body has no usable ``frame`` field
    PayloadTooLarge         413  body exceeds ingress.max_body_bytes
    InternalProcessingError 500  unexpected fault while publishing

ViewerDisconnected never reaches HTTP; the hub catches it per recipient.
"""


class RelayError(Exception):
    """Base class for errors reported to HTTP callers."""

    status_code: int = 500
    message: str = "Error interno del servidor"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.message)
        self.detail = detail


class MissingPayload(RelayError):
    """The request did not carry a non-empty frame."""

    status_code = 400
    message = "No se recibió frame data"


class PayloadTooLarge(RelayError):
    """The request body is larger than the configured cap."""

    status_code = 413
    message = "Frame demasiado grande"


class InternalProcessingError(RelayError):
    """Publishing the frame failed; the cached frame is unchanged."""

    status_code = 500
    message = "Error interno del servidor"


class ViewerDisconnected(Exception):
    """Raised when pushing to a connection that is already closed."""
