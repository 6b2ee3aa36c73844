"""
Signature Service for NETS Order Requests

NETS authenticates an order by a SHA-256 digest over the request body
followed by the client secret, sent base64-encoded in the Sign header.
"""
import base64
import hashlib
import hmac

from ..exceptions import ConfigurationError


def sign(payload: bytes, secret: str) -> str:
    """
    Sign the exact bytes that will be sent as the request body.

    Args:
        payload: Serialized request body, byte-identical to what is transmitted
        secret: NETS client secret

    Returns:
        Base64-encoded SHA-256 digest of payload + secret

    Raises:
        ConfigurationError: If the secret is empty
    """
    if not secret:
        raise ConfigurationError("NETS client secret is not configured")

    digest = hashlib.sha256(payload + secret.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def verify(payload: bytes, secret: str, signature: str) -> bool:
    """
    Verify a Sign header value using constant-time comparison.

    The service itself only signs. This is for checking captured requests
    (tests, gateway-side replay) against the secret.

    Returns:
        True if signature matches payload and secret, False otherwise
    """
    return hmac.compare_digest(sign(payload, secret), signature)
