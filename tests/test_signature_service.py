"""
Tests for NETS order request signing.
"""
import pytest

from netsqr.exceptions import ConfigurationError
from netsqr.services.signature_service import sign, verify


class TestSign:
    """Sign header computation."""

    def test_known_vector(self) -> None:
        """sign() is base64(sha256(payload + secret))."""
        # sha256("abc") = ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad
        assert sign(b"ab", "c") == "ungWv48Bz+pBQUDeXa4iI7ADYaOWF3qctBD/YfIAFa0="

    def test_deterministic(self) -> None:
        payload = b'{"mti":"0200","amount":"000000000100"}'
        assert sign(payload, "secret") == sign(payload, "secret")

    def test_every_payload_byte_matters(self) -> None:
        payload = b'{"mti":"0200","amount":"000000000100"}'
        original = sign(payload, "secret")

        for index in range(len(payload)):
            flipped = bytearray(payload)
            flipped[index] ^= 0x01
            assert sign(bytes(flipped), "secret") != original, f"byte {index} not covered"

    def test_every_secret_byte_matters(self) -> None:
        payload = b'{"mti":"0200"}'
        secret = "s3cr3t-key"
        original = sign(payload, secret)

        for index in range(len(secret)):
            flipped = secret[:index] + chr(ord(secret[index]) ^ 0x01) + secret[index + 1:]
            assert sign(payload, flipped) != original, f"secret char {index} not covered"

    def test_missing_secret_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            sign(b"{}", "")


class TestVerify:
    """Constant-time verification."""

    def test_accepts_matching_signature(self) -> None:
        payload = b'{"mti":"0200"}'
        assert verify(payload, "secret", sign(payload, "secret"))

    def test_rejects_other_payload(self) -> None:
        signature = sign(b'{"mti":"0200"}', "secret")
        assert not verify(b'{"mti":"0201"}', "secret", signature)
