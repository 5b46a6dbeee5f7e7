"""
Read-only view of a deployed ``ContentRegistry`` application.

Reads box storage and global state straight from algod over its REST API.
Writes (register / verify) need a signed application call and are not done here.

Box layout written by the contract:
    b"c" + fingerprint               → ARC-4 ContentRecord
    b"r" + publisher public key      → ARC-4 Reputation
    b"i" + publisher key + itob(n)   → n-th fingerprint of that publisher
    b"s" + itob(n)                   → n-th fingerprint overall
"""
import base64
import logging

from algosdk import encoding
from algosdk.error import AlgodHTTPError
from algosdk.v2client import algod

from newsledger.fingerprint import parse_fingerprint, to_hex, truncate_hash
from newsledger.models import Category, ContentRecord, LookupResult, PublisherReputation

logger = logging.getLogger(__name__)

RECORD_PREFIX = b"c"
REPUTATION_PREFIX = b"r"
INDEX_PREFIX = b"i"
SEQUENCE_PREFIX = b"s"
TOTAL_KEY = b"total_registrations"


def _uint64(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 8], "big")


def _arc4_string(data: bytes, head_offset: int) -> str:
    """Read an ARC-4 string whose 2-byte tail offset sits at head_offset."""
    start = int.from_bytes(data[head_offset:head_offset + 2], "big")
    length = int.from_bytes(data[start:start + 2], "big")
    return data[start + 2:start + 2 + length].decode("utf-8")


def decode_record(fingerprint: bytes, value: bytes) -> ContentRecord:
    """
    Decode an ARC-4 ``(uint64,address,string,string)`` ContentRecord.

    Head: timestamp (8) | publisher (32) | category offset (2) | metadata offset (2)
    """
    return ContentRecord(
        fingerprint=fingerprint,
        timestamp=_uint64(value, 0),
        publisher=encoding.encode_address(value[8:40]),
        category=Category(_arc4_string(value, 40)),
        metadata=_arc4_string(value, 42),
    )


def decode_reputation(value: bytes) -> PublisherReputation:
    return PublisherReputation(
        total_registrations=_uint64(value, 0),
        verification_count=_uint64(value, 8),
        reputation_score=_uint64(value, 16),
    )


class AlgodRegistry:
    def __init__(self, client: algod.AlgodClient, app_id: int) -> None:
        self.client = client
        self.app_id = app_id

    @classmethod
    def connect(cls, url: str, token: str, app_id: int) -> "AlgodRegistry":
        return cls(algod.AlgodClient(token, url), app_id)

    def _box(self, name: bytes) -> bytes | None:
        """Box value, or None when the box does not exist."""
        try:
            resp = self.client.application_box_by_name(self.app_id, name)
        except AlgodHTTPError as e:
            if e.code == 404:
                return None
            raise
        return base64.b64decode(resp.get("value", ""))

    def get(self, fingerprint: str | bytes) -> ContentRecord | None:
        fp = parse_fingerprint(fingerprint)
        try:
            value = self._box(RECORD_PREFIX + fp)
        except Exception as e:
            logger.warning(f"[CHAIN] Error reading record {truncate_hash(to_hex(fp))}: {e}")
            return None
        return decode_record(fp, value) if value is not None else None

    def lookup(self, fingerprint: str | bytes) -> LookupResult:
        record = self.get(fingerprint)
        return LookupResult.hit(record) if record else LookupResult.miss()

    def recent(self, limit: int) -> list[ContentRecord]:
        """
        The ``limit`` most recent registrations, newest first.

        Walks the "s" sequence boxes down from the global counter, so only
        the window itself is read, never the full history.
        """
        if limit <= 0:
            return []
        total = self.total_registrations()
        records: list[ContentRecord] = []
        try:
            for index in range(total - 1, max(total - limit, 0) - 1, -1):
                fp = self._box(SEQUENCE_PREFIX + index.to_bytes(8, "big"))
                if fp is None:
                    continue
                value = self._box(RECORD_PREFIX + fp)
                if value is not None:
                    records.append(decode_record(fp, value))
        except Exception as e:
            logger.warning(f"[CHAIN] Error reading recent registrations: {e}")
            return []
        logger.info(f"[CHAIN] Read {len(records)} of {total} registration(s) from App {self.app_id}")
        return records

    def publisher_reputation(self, publisher: str) -> PublisherReputation:
        try:
            value = self._box(REPUTATION_PREFIX + encoding.decode_address(publisher))
        except Exception as e:
            logger.warning(f"[CHAIN] Error reading reputation of {publisher[:8]}...: {e}")
            return PublisherReputation()
        return decode_reputation(value) if value is not None else PublisherReputation()

    def publisher_content(self, publisher: str) -> list[bytes]:
        count = self.publisher_reputation(publisher).total_registrations
        hashes = []
        try:
            key = encoding.decode_address(publisher)
            for index in range(count):
                value = self._box(INDEX_PREFIX + key + index.to_bytes(8, "big"))
                if value is None:
                    break
                hashes.append(value)
        except Exception as e:
            logger.warning(f"[CHAIN] Error reading content of {publisher[:8]}...: {e}")
        return hashes

    def total_registrations(self) -> int:
        try:
            info = self.client.application_info(self.app_id)
        except Exception as e:
            logger.warning(f"[CHAIN] Error reading global state: {e}")
            return 0
        for entry in info.get("params", {}).get("global-state", []):
            if base64.b64decode(entry["key"]) == TOTAL_KEY:
                return entry["value"].get("uint", 0)
        return 0
