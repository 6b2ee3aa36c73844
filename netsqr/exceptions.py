"""
NETS Exception Hierarchy

Error codes use the nets: prefix. Each error carries the HTTP status the API
layer answers with.
"""
from typing import Optional, Dict, Any


class NetsError(Exception):
    """
    Base exception for all transaction lifecycle errors.
    """

    http_status: int = 400

    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API error response format."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class GatewayError(NetsError):
    """
    Order request to the NETS gateway did not succeed.

    Examples:
    - Transport failure (DNS, TLS, connection reset)
    - Non-2xx HTTP status
    - Response body is not a valid OrderResponse
    """

    http_status = 502

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("nets:gateway:error", message, details)


class TransactionNotFoundError(NetsError):
    """
    No record exists for a derived key.

    Rejects callbacks for transactions this service never initiated, and
    callbacks that arrive before the order was acknowledged.
    """

    http_status = 404

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("nets:transaction:not_found", message, details)


class DuplicateTransactionError(NetsError):
    """A record already exists for the derived key."""

    http_status = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("nets:transaction:duplicate", message, details)


class MethodNotAllowedError(NetsError):
    """Callback endpoint invoked with a method other than POST."""

    http_status = 405

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("nets:callback:method_not_allowed", message, details)


class CallbackValidationError(NetsError):
    """
    Callback body failed validation.

    Examples:
    - Body is not JSON
    - txn_identifier or response_code missing
    """

    http_status = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("nets:callback:invalid_payload", message, details)


class ConfigurationError(NetsError):
    """Required configuration (client id, client secret) is missing."""

    http_status = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("nets:config:missing", message, details)


class InvalidTransitionError(NetsError):
    """Client session state machine received an event its state does not accept."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("nets:client:invalid_transition", message, details)
