from dataclasses import asdict, dataclass
from enum import Enum

from newsledger.fingerprint import to_hex

REGISTRATION_POINTS = 10
VERIFICATION_POINTS = 5


class Category(str, Enum):
    ARTICLE = "article"
    IMAGE = "image"
    VIDEO = "video"


@dataclass(frozen=True)
class ContentRecord:
    """A registered piece of content. Immutable once written."""

    fingerprint: bytes
    timestamp: int
    publisher: str
    category: Category
    metadata: str

    def to_dict(self) -> dict:
        return {
            "fingerprint": to_hex(self.fingerprint),
            "timestamp": self.timestamp,
            "publisher": self.publisher,
            "category": self.category.value,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class LookupResult:
    """Answer to an exact fingerprint lookup. A miss has every field empty."""

    exists: bool
    publisher: str = ""
    timestamp: int = 0
    category: str = ""
    metadata: str = ""

    @classmethod
    def miss(cls) -> "LookupResult":
        return cls(exists=False)

    @classmethod
    def hit(cls, record: ContentRecord) -> "LookupResult":
        return cls(
            exists=True,
            publisher=record.publisher,
            timestamp=record.timestamp,
            category=record.category.value,
            metadata=record.metadata,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PublisherReputation:
    total_registrations: int = 0
    verification_count: int = 0
    reputation_score: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ContentRegistered:
    fingerprint: bytes
    publisher: str
    timestamp: int
    category: Category
    metadata: str


@dataclass(frozen=True)
class ContentVerified:
    fingerprint: bytes
    existed: bool
    caller: str


@dataclass
class SearchMatch:
    title: str
    source: str
    url: str
    published_at: str
    fingerprint: bytes
    metadata: str
    reliability: str
    similarity: int
    metadata_url: str = ""

    def to_dict(self) -> dict:
        data = asdict(self)
        data["fingerprint"] = to_hex(self.fingerprint)
        return data


@dataclass
class Article:
    """A normalized news headline as delivered by the fetcher."""

    title: str
    source_id: str
    published_at: str
    source_name: str = ""
    url: str = ""
    description: str = ""
    author: str = "Unknown"
    reliability: str = ""
    url_to_image: str = ""
