"""
Idempotent registration of fetched news headlines.

Each article is fingerprinted from title, source and publish time, its
metadata is pinned to IPFS and the fingerprint registered as an article.
Running the ingester twice over the same headlines registers nothing new.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from newsledger.errors import DuplicateFingerprint, RegistryError
from newsledger.fingerprint import fingerprint_article, to_hex, truncate_hash
from newsledger.metadata import MetadataGateway
from newsledger.models import Article, Category
from newsledger.registry import LocalRegistry

logger = logging.getLogger(__name__)

REGISTERED_BY = "auto-news-fetcher"


@dataclass
class IngestResult:
    success: bool
    fingerprint: bytes
    reason: str = ""
    metadata: str = ""


def article_fingerprint(article: Article) -> bytes:
    return fingerprint_article(article.title, article.source_id, article.published_at)


def article_metadata(article: Article) -> dict:
    return {
        "title": article.title,
        "description": article.description,
        "url": article.url,
        "source": article.source_name,
        "sourceId": article.source_id,
        "reliability": article.reliability,
        "author": article.author,
        "publishedAt": article.published_at,
        "urlToImage": article.url_to_image,
        "registeredAt": datetime.now(timezone.utc).isoformat(),
        "registeredBy": REGISTERED_BY,
    }


class ArticleIngester:
    def __init__(self, registry: LocalRegistry, gateway: MetadataGateway, publisher: str) -> None:
        self.registry = registry
        self.gateway = gateway
        self.publisher = publisher
        self._seen: set[bytes] = set()

    def is_registered(self, fingerprint: bytes) -> bool:
        if fingerprint in self._seen:
            return True
        return self.registry.lookup(fingerprint).exists

    def register(self, article: Article) -> IngestResult:
        fp = article_fingerprint(article)
        title = article.title[:50]

        if self.is_registered(fp):
            logger.info(f"[INGEST] Already registered: {title}...")
            self._seen.add(fp)
            return IngestResult(success=False, fingerprint=fp, reason="already-registered")

        try:
            cid = self.gateway.pin_json(article_metadata(article), name=f"news-{article.source_id}-{fp.hex()[:12]}.json")
        except Exception as e:
            logger.error(f"[INGEST] IPFS upload failed for {title}...: {e}")
            return IngestResult(success=False, fingerprint=fp, reason=f"ipfs: {e}")

        try:
            self.registry.register(fp, Category.ARTICLE, cid, publisher=self.publisher)
        except DuplicateFingerprint:
            self._seen.add(fp)
            return IngestResult(success=False, fingerprint=fp, reason="already-registered", metadata=cid)
        except RegistryError as e:
            logger.error(f"[INGEST] Failed to register {title}...: {e}")
            return IngestResult(success=False, fingerprint=fp, reason=e.code, metadata=cid)

        self._seen.add(fp)
        logger.info(f"[INGEST] Registered {title}... hash={truncate_hash(to_hex(fp))} ipfs={cid}")
        return IngestResult(success=True, fingerprint=fp, metadata=cid)

    def run(self, articles: list[Article]) -> dict[str, int]:
        """Register every article; return registered / skipped / failed counts."""
        summary = {"registered": 0, "skipped": 0, "failed": 0}
        for article in articles:
            result = self.register(article)
            if result.success:
                summary["registered"] += 1
            elif result.reason == "already-registered":
                summary["skipped"] += 1
            else:
                summary["failed"] += 1
        logger.info(
            f"[INGEST] Summary: registered={summary['registered']} "
            f"skipped={summary['skipped']} failed={summary['failed']}"
        )
        return summary
