"""
In-process content registry.

Mirrors the ``ContentRegistry`` contract state machine for deployments that
run without a chain. One lock serializes every operation, which gives the
same guarantee the ledger gives on-chain: at most one ``register`` per
fingerprint ever succeeds.

Besides the keyed record map the registry keeps an insertion-ordered list of
fingerprints (the "all records" index behind ``recent``) and the full event
log, which ``from_events`` can replay.
"""
import logging
import threading
import time
from typing import Callable, Iterable, Protocol

from newsledger.errors import (
    CorruptEventLog,
    DuplicateFingerprint,
    EmptyFingerprint,
    EmptyMetadata,
    InvalidCategory,
    NotOwner,
    SystemPaused,
)
from newsledger.fingerprint import is_zero, parse_fingerprint, to_hex, truncate_hash
from newsledger.models import (
    REGISTRATION_POINTS,
    VERIFICATION_POINTS,
    Category,
    ContentRecord,
    ContentRegistered,
    ContentVerified,
    LookupResult,
    PublisherReputation,
)

logger = logging.getLogger(__name__)


class RegistryReader(Protocol):
    """Read side shared by LocalRegistry and chain.AlgodRegistry."""

    def lookup(self, fingerprint: str | bytes) -> LookupResult: ...

    def get(self, fingerprint: str | bytes) -> ContentRecord | None: ...

    def recent(self, limit: int) -> list[ContentRecord]: ...

    def publisher_content(self, publisher: str) -> list[bytes]: ...

    def publisher_reputation(self, publisher: str) -> PublisherReputation: ...

    def total_registrations(self) -> int: ...


def parse_category(category: str | Category) -> Category:
    try:
        return Category(category)
    except ValueError:
        raise InvalidCategory(f"category must be one of {[c.value for c in Category]}, got {category!r}") from None


class LocalRegistry:
    def __init__(self, owner: str, clock: Callable[[], float] = time.time) -> None:
        self.owner = owner
        self._clock = clock
        self._lock = threading.Lock()
        self._records: dict[bytes, ContentRecord] = {}
        self._order: list[bytes] = []
        self._by_publisher: dict[str, list[bytes]] = {}
        self._reputation: dict[str, PublisherReputation] = {}
        self._events: list[ContentRegistered | ContentVerified] = []
        self._last_timestamp = 0
        self._paused = False

    # ── Commands ─────────────────────────────────────────────────────────────

    def register(self, fingerprint: str | bytes, category: str | Category, metadata: str, *, publisher: str) -> ContentRecord:
        """
        Register content under ``fingerprint`` with ``publisher`` as owner.

        Raises SystemPaused, InvalidFingerprint, EmptyFingerprint,
        DuplicateFingerprint, InvalidCategory or EmptyMetadata, checked in
        that order, before any state changes.
        """
        with self._lock:
            if self._paused:
                raise SystemPaused("registrations are paused")
            fp = parse_fingerprint(fingerprint)
            if is_zero(fp):
                raise EmptyFingerprint("fingerprint must not be zero")
            if fp in self._records:
                raise DuplicateFingerprint(f"{to_hex(fp)} is already registered")
            cat = parse_category(category)
            if not metadata:
                raise EmptyMetadata("metadata pointer must not be empty")

            record = ContentRecord(
                fingerprint=fp,
                timestamp=self._next_timestamp(),
                publisher=publisher,
                category=cat,
                metadata=metadata,
            )
            self._apply_registration(record)
            self._events.append(
                ContentRegistered(fp, record.publisher, record.timestamp, record.category, record.metadata)
            )

        logger.info(f"[REGISTRY] Registered {truncate_hash(to_hex(fp))} by {publisher} ({cat.value})")
        return record

    def verify(self, fingerprint: str | bytes, *, caller: str = "") -> LookupResult:
        """
        Look up ``fingerprint`` and, when it exists, reward its publisher.

        This is a command: each hit adds one verification and +5 score to the
        publisher, every time, with no rate limit. Use ``lookup`` for a read
        without side effects.
        """
        fp = parse_fingerprint(fingerprint)
        with self._lock:
            record = self._records.get(fp)
            self._events.append(ContentVerified(fp, record is not None, caller))
            if record is None:
                return LookupResult.miss()
            self._apply_verification(record.publisher)
        return LookupResult.hit(record)

    def pause(self, caller: str) -> None:
        self._require_owner(caller)
        with self._lock:
            self._paused = True
        logger.warning(f"[REGISTRY] Paused by {caller}")

    def unpause(self, caller: str) -> None:
        self._require_owner(caller)
        with self._lock:
            self._paused = False
        logger.info(f"[REGISTRY] Unpaused by {caller}")

    # ── Queries ──────────────────────────────────────────────────────────────

    @property
    def paused(self) -> bool:
        return self._paused

    def lookup(self, fingerprint: str | bytes) -> LookupResult:
        fp = parse_fingerprint(fingerprint)
        with self._lock:
            record = self._records.get(fp)
        return LookupResult.hit(record) if record else LookupResult.miss()

    def get(self, fingerprint: str | bytes) -> ContentRecord | None:
        with self._lock:
            return self._records.get(parse_fingerprint(fingerprint))

    def publisher_content(self, publisher: str) -> list[bytes]:
        with self._lock:
            return list(self._by_publisher.get(publisher, ()))

    def publisher_reputation(self, publisher: str) -> PublisherReputation:
        with self._lock:
            rep = self._reputation.get(publisher, PublisherReputation())
            return PublisherReputation(rep.total_registrations, rep.verification_count, rep.reputation_score)

    def total_registrations(self) -> int:
        with self._lock:
            return len(self._order)

    def recent(self, limit: int) -> list[ContentRecord]:
        """The ``limit`` most recent registrations, newest first."""
        if limit <= 0:
            return []
        with self._lock:
            return [self._records[fp] for fp in reversed(self._order[-limit:])]

    def events(self) -> list[ContentRegistered | ContentVerified]:
        with self._lock:
            return list(self._events)

    @classmethod
    def from_events(cls, events: Iterable[ContentRegistered | ContentVerified], owner: str, **kwargs) -> "LocalRegistry":
        """Rebuild a registry by replaying an event log from genesis."""
        registry = cls(owner, **kwargs)
        for event in events:
            if isinstance(event, ContentRegistered):
                if event.fingerprint in registry._records:
                    raise CorruptEventLog(f"{to_hex(event.fingerprint)} is registered twice")
                record = ContentRecord(event.fingerprint, event.timestamp, event.publisher, event.category, event.metadata)
                registry._apply_registration(record)
                registry._last_timestamp = max(registry._last_timestamp, record.timestamp)
            elif event.existed:
                record = registry._records.get(event.fingerprint)
                if record is None:
                    raise CorruptEventLog(f"verification of {to_hex(event.fingerprint)} precedes its registration")
                registry._apply_verification(record.publisher)
            registry._events.append(event)
        return registry

    # ── Internals (caller holds the lock) ────────────────────────────────────

    def _apply_registration(self, record: ContentRecord) -> None:
        self._records[record.fingerprint] = record
        self._order.append(record.fingerprint)
        self._by_publisher.setdefault(record.publisher, []).append(record.fingerprint)
        rep = self._reputation.setdefault(record.publisher, PublisherReputation())
        rep.total_registrations += 1
        rep.reputation_score += REGISTRATION_POINTS

    def _apply_verification(self, publisher: str) -> None:
        rep = self._reputation.setdefault(publisher, PublisherReputation())
        rep.verification_count += 1
        rep.reputation_score += VERIFICATION_POINTS

    def _next_timestamp(self) -> int:
        self._last_timestamp = max(int(self._clock()), self._last_timestamp)
        return self._last_timestamp

    def _require_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise NotOwner(f"{caller or 'anonymous'} is not the registry owner")
