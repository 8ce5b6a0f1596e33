"""secp256k1 keys and signatures for signed wallet calls."""

from __future__ import annotations

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

_CURVE = ec.SECP256K1()
_CURVE_ORDER = int("FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141", 16)
_HALF_ORDER = _CURVE_ORDER // 2


def _private_key_to_hex(private_key: ec.EllipticCurvePrivateKey) -> str:
    return private_key.private_numbers().private_value.to_bytes(32, "big").hex()


def _public_key_to_hex(public_key: ec.EllipticCurvePublicKey) -> str:
    numbers = public_key.public_numbers()
    return (numbers.x.to_bytes(32, "big") + numbers.y.to_bytes(32, "big")).hex()


def _load_private_key(private_hex: str) -> ec.EllipticCurvePrivateKey:
    value = int(private_hex, 16) % _CURVE_ORDER or 1
    return ec.derive_private_key(value, _CURVE)


def _load_public_key(public_hex: str) -> ec.EllipticCurvePublicKey:
    raw = bytes.fromhex(public_hex)
    if len(raw) != 64:
        raise ValueError("Public key hex must be 64 bytes (uncompressed without prefix).")
    return ec.EllipticCurvePublicKey.from_encoded_point(_CURVE, b"\x04" + raw)


def generate_keypair_hex() -> tuple[str, str]:
    """Return a fresh ``(private_hex, public_hex)`` pair."""
    private_key = ec.generate_private_key(_CURVE)
    return _private_key_to_hex(private_key), _public_key_to_hex(private_key.public_key())


def sign_message_hex(private_hex: str, message: bytes) -> str:
    """
    Sign ``message`` and return the 64-byte ``r || s`` signature as hex.

    The signature is normalized to low-S form so it verifies here.
    """
    der_signature = _load_private_key(private_hex).sign(message, ec.ECDSA(hashes.SHA256()))
    r, s = decode_dss_signature(der_signature)
    if s > _HALF_ORDER:
        s = _CURVE_ORDER - s
    return (r.to_bytes(32, "big") + s.to_bytes(32, "big")).hex()


def verify_signature_hex(public_hex: str, message: bytes, signature_hex: str) -> bool:
    """
    Verify a low-S ``r || s`` signature.

    Raises:
        ValueError: if ``public_hex`` is not a valid public key
    """
    public_key = _load_public_key(public_hex)
    try:
        raw_signature = bytes.fromhex(signature_hex)
    except ValueError:
        return False
    if len(raw_signature) != 64:
        return False
    r = int.from_bytes(raw_signature[:32], "big")
    s = int.from_bytes(raw_signature[32:], "big")
    if not (1 <= r < _CURVE_ORDER and 1 <= s <= _HALF_ORDER):
        return False
    try:
        public_key.verify(encode_dss_signature(r, s), message, ec.ECDSA(hashes.SHA256()))
    except InvalidSignature:
        return False
    return True
