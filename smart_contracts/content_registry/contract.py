# =============================================================================
#  ContentRegistry : Algorand Smart Contract
#  -----------------------------------------------------------------------------
#  Project   : newsledger
#  Standard  : ARC-4  (typed ABI, ARC-28 events)
#  Language  : Algorand Python  →  compiled to AVM bytecode via PuyaPy
# =============================================================================
#
#  PURPOSE
#  -------
#  Global on-chain registry of published content. Maps the SHA-256 fingerprint
#  of an article, image or video to the account that published it, the block
#  timestamp, the content category and a pointer to its IPFS metadata blob.
#  Publishers accrue reputation: +10 per registration, +5 every time someone
#  verifies one of their records.
#
#  STORAGE MODEL
#  -------------
#    BoxMap "c" : fingerprint (32 bytes)           → ContentRecord
#    BoxMap "r" : publisher public key (32 bytes)  → Reputation
#    BoxMap "i" : publisher key ‖ itob(n)          → n-th fingerprint registered
#    BoxMap "s" : itob(n)                          → n-th fingerprint overall
#    Global     : total_registrations, paused
#
#  Records are write-once. Nothing in this contract deletes or rewrites a
#  "c" box after creation; the AVM serializes every call, so at most one
#  register() per fingerprint can ever succeed.
#
# =============================================================================

from algopy import (
    Account,
    ARC4Contract,
    BoxMap,
    Bytes,
    Global,
    String,
    Txn,
    UInt64,
    arc4,
    op,
    subroutine,
)

REGISTRATION_POINTS = 10
VERIFICATION_POINTS = 5


class ContentRecord(arc4.Struct):
    timestamp: arc4.UInt64
    publisher: arc4.Address
    category: arc4.String
    metadata: arc4.String


class Reputation(arc4.Struct):
    total_registrations: arc4.UInt64
    verification_count: arc4.UInt64
    reputation_score: arc4.UInt64


class ContentRegistered(arc4.Struct):
    fingerprint: arc4.DynamicBytes
    publisher: arc4.Address
    timestamp: arc4.UInt64
    category: arc4.String
    metadata: arc4.String


class ContentVerified(arc4.Struct):
    fingerprint: arc4.DynamicBytes
    existed: arc4.Bool
    caller: arc4.Address


@subroutine
def is_valid_category(category: String) -> bool:
    return category == "article" or category == "image" or category == "video"


@subroutine
def empty_record() -> ContentRecord:
    return ContentRecord(
        timestamp=arc4.UInt64(0),
        publisher=arc4.Address(Global.zero_address),
        category=arc4.String(""),
        metadata=arc4.String(""),
    )


@subroutine
def empty_reputation() -> Reputation:
    return Reputation(
        total_registrations=arc4.UInt64(0),
        verification_count=arc4.UInt64(0),
        reputation_score=arc4.UInt64(0),
    )


class ContentRegistry(ARC4Contract):
    """
    On-chain registry of content fingerprints and publisher reputation.

    The application creator is the owner and the only account allowed to
    pause or unpause registrations. Verification and all reads stay
    available while paused.
    """

    def __init__(self) -> None:
        self.records = BoxMap(Bytes, ContentRecord, key_prefix=b"c")
        self.reputation = BoxMap(Account, Reputation, key_prefix=b"r")
        self.publisher_index = BoxMap(Bytes, Bytes, key_prefix=b"i")
        self.sequence = BoxMap(UInt64, Bytes, key_prefix=b"s")
        self.total_registrations = UInt64(0)
        self.paused = False

    @arc4.abimethod
    def register(self, fingerprint: Bytes, category: String, metadata: String) -> None:
        """
        Register a new piece of content under its fingerprint.

        Parameters
        ----------
        fingerprint : Bytes
            SHA-256 digest of the content, exactly 32 bytes, not all zero.
        category : String
            One of "article", "image", "video".
        metadata : String
            IPFS locator of the JSON metadata blob. Must not be empty.

        Behaviour
        ---------
        The caller becomes the publisher. The record, the publisher index
        entry, the reputation update and the global counter are written in
        the same transaction, or not at all.
        """
        assert not self.paused, "SystemPaused"
        assert fingerprint.length == 32, "InvalidFingerprint"
        assert fingerprint != op.bzero(32), "EmptyFingerprint"
        assert fingerprint not in self.records, "DuplicateFingerprint"
        assert is_valid_category(category), "InvalidCategory"
        assert metadata.bytes.length > 0, "EmptyMetadata"

        now = Global.latest_timestamp
        self.records[fingerprint] = ContentRecord(
            timestamp=arc4.UInt64(now),
            publisher=arc4.Address(Txn.sender),
            category=arc4.String(category),
            metadata=arc4.String(metadata),
        )

        rep = self._reputation_of(Txn.sender)
        self.publisher_index[Txn.sender.bytes + op.itob(rep.total_registrations.native)] = fingerprint
        self.reputation[Txn.sender] = Reputation(
            total_registrations=arc4.UInt64(rep.total_registrations.native + 1),
            verification_count=rep.verification_count,
            reputation_score=arc4.UInt64(rep.reputation_score.native + REGISTRATION_POINTS),
        )
        self.sequence[self.total_registrations] = fingerprint
        self.total_registrations += 1

        arc4.emit(
            ContentRegistered(
                fingerprint=arc4.DynamicBytes(fingerprint),
                publisher=arc4.Address(Txn.sender),
                timestamp=arc4.UInt64(now),
                category=arc4.String(category),
                metadata=arc4.String(metadata),
            )
        )

    @arc4.abimethod
    def verify(self, fingerprint: Bytes) -> tuple[arc4.Bool, ContentRecord]:
        """
        Look up a fingerprint and reward its publisher when it exists.

        This is a state-changing call, not a read: every successful lookup
        adds +5 to the publisher's score, with no rate limit. Use
        get_record() for a side-effect-free read.
        """
        assert fingerprint.length == 32, "InvalidFingerprint"

        if fingerprint in self.records:
            record = self.records[fingerprint].copy()
            publisher = record.publisher.native
            rep = self._reputation_of(publisher)
            self.reputation[publisher] = Reputation(
                total_registrations=rep.total_registrations,
                verification_count=arc4.UInt64(rep.verification_count.native + 1),
                reputation_score=arc4.UInt64(rep.reputation_score.native + VERIFICATION_POINTS),
            )
            arc4.emit(
                ContentVerified(
                    fingerprint=arc4.DynamicBytes(fingerprint),
                    existed=arc4.Bool(True),
                    caller=arc4.Address(Txn.sender),
                )
            )
            return arc4.Bool(True), record

        arc4.emit(
            ContentVerified(
                fingerprint=arc4.DynamicBytes(fingerprint),
                existed=arc4.Bool(False),
                caller=arc4.Address(Txn.sender),
            )
        )
        return arc4.Bool(False), empty_record()

    @arc4.abimethod(readonly=True)
    def get_record(self, fingerprint: Bytes) -> tuple[arc4.Bool, ContentRecord]:
        if fingerprint in self.records:
            return arc4.Bool(True), self.records[fingerprint].copy()
        return arc4.Bool(False), empty_record()

    @arc4.abimethod(readonly=True)
    def publisher_content(self, publisher: arc4.Address, index: UInt64) -> Bytes:
        """Return the index-th fingerprint registered by publisher (0-based)."""
        key = publisher.bytes + op.itob(index)
        assert key in self.publisher_index, "IndexOutOfRange"
        return self.publisher_index[key]

    @arc4.abimethod(readonly=True)
    def publisher_reputation(self, publisher: arc4.Address) -> Reputation:
        return self._reputation_of(publisher.native)

    @arc4.abimethod(readonly=True)
    def total(self) -> UInt64:
        return self.total_registrations

    @arc4.abimethod
    def pause(self) -> None:
        assert Txn.sender == Global.creator_address, "NotOwner"
        self.paused = True

    @arc4.abimethod
    def unpause(self) -> None:
        assert Txn.sender == Global.creator_address, "NotOwner"
        self.paused = False

    @subroutine
    def _reputation_of(self, publisher: Account) -> Reputation:
        if publisher in self.reputation:
            return self.reputation[publisher].copy()
        return empty_reputation()
