"""SHA-256 content fingerprints.

A fingerprint is the raw 32-byte digest. It is rendered as ``0x``-prefixed
hex at the API boundary and in log lines.
"""
import hashlib
import re

from newsledger.errors import InvalidFingerprint

FINGERPRINT_SIZE = 32
ZERO_FINGERPRINT = bytes(FINGERPRINT_SIZE)

_HEX_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def fingerprint_bytes(data: bytes) -> bytes:
    """Fingerprint of raw file content."""
    return hashlib.sha256(data).digest()


def fingerprint_text(text: str) -> bytes:
    """Fingerprint of text content, hashed as UTF-8."""
    return hashlib.sha256(text.encode("utf-8")).digest()


def fingerprint_article(title: str, source_id: str, published_at: str) -> bytes:
    """
    Fingerprint used by the headline ingester.

    Title, source and publish time are joined with ``|`` so that fetching the
    same headline twice yields the same fingerprint, and the second
    registration is rejected as a duplicate.
    """
    return fingerprint_text(f"{title}|{source_id}|{published_at}")


def is_valid_hash(value: str) -> bool:
    clean = value[2:] if value.startswith("0x") else value
    return bool(_HEX_RE.match(clean))


def parse_fingerprint(value: str | bytes) -> bytes:
    """Accept raw bytes or 64 hex chars (with or without ``0x``)."""
    if isinstance(value, bytes):
        if len(value) != FINGERPRINT_SIZE:
            raise InvalidFingerprint(f"fingerprint must be {FINGERPRINT_SIZE} bytes, got {len(value)}")
        return value
    if not is_valid_hash(value):
        raise InvalidFingerprint(f"not a 32-byte hex fingerprint: {value!r}")
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def to_hex(fingerprint: bytes) -> str:
    return "0x" + fingerprint.hex()


def is_zero(fingerprint: bytes) -> bool:
    return fingerprint == ZERO_FINGERPRINT


def truncate_hash(value: str, start: int = 8, end: int = 6) -> str:
    if len(value) <= start + end + 3:
        return value
    return f"{value[:start]}...{value[-end:]}"
