"""
Derives the storage key of a transaction from the gateway txn_identifier.

The order path and the callback path both compute the key independently, so
this mapping must never change for existing records.
"""
import base64
import hashlib

# 22 base64url characters carry 132 bits of the SHA-256 digest. At a billion
# transactions the birthday bound keeps the collision probability below 1e-20.
KEY_LENGTH = 22


def derive_key(identifier: str) -> str:
    """Return the URL-safe storage key for a txn_identifier."""
    digest = hashlib.sha256(identifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")[:KEY_LENGTH]
