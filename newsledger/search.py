"""
Fuzzy search of recent registrations by title.

Only a bounded window of the newest registrations is scanned, never the
full history. Candidate metadata is fetched in parallel; candidates whose
metadata is missing or has no title are skipped.
"""
import logging
from concurrent.futures import ThreadPoolExecutor

from newsledger.metadata import MetadataGateway
from newsledger.models import Category, ContentRecord, SearchMatch
from newsledger.registry import RegistryReader
from newsledger.similarity import title_score

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 20
DEFAULT_THRESHOLD = 50
DEFAULT_LIMIT = 10


def rank_matches(query: str, candidates: list[tuple[ContentRecord, dict | None]], threshold: int = DEFAULT_THRESHOLD, limit: int = DEFAULT_LIMIT) -> list[SearchMatch]:
    """Score (record, metadata) pairs against ``query`` and keep the best."""
    matches = []
    for record, meta in candidates:
        if not meta or not meta.get("title"):
            continue
        score = title_score(query, str(meta["title"]))
        if score < threshold:
            continue
        matches.append(
            SearchMatch(
                title=meta["title"],
                source=meta.get("source") or "Unknown",
                url=meta.get("url") or "",
                published_at=meta.get("publishedAt") or meta.get("published_at") or "",
                fingerprint=record.fingerprint,
                metadata=record.metadata,
                reliability=meta.get("reliability") or "verified",
                similarity=score,
            )
        )
    matches.sort(key=lambda m: m.similarity, reverse=True)
    return matches[:limit]


class SearchEngine:
    def __init__(
        self,
        registry: RegistryReader,
        gateway: MetadataGateway,
        window: int = DEFAULT_WINDOW,
        threshold: int = DEFAULT_THRESHOLD,
        limit: int = DEFAULT_LIMIT,
        max_workers: int = 8,
    ) -> None:
        self.registry = registry
        self.gateway = gateway
        self.window = window
        self.threshold = threshold
        self.limit = limit
        self.max_workers = max_workers

    def search(self, query: str) -> list[SearchMatch]:
        """Best title matches for ``query`` among recent articles. Never raises."""
        if not query.strip():
            return []
        try:
            recent = self.registry.recent(self.window)
        except Exception as e:
            logger.warning(f"[SEARCH] Could not read recent registrations: {e}")
            return []

        articles = [r for r in recent if r.category == Category.ARTICLE and r.metadata]
        if not articles:
            return []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(articles))) as pool:
            metadata = list(pool.map(self._fetch, articles))

        matches = rank_matches(query, list(zip(articles, metadata)), self.threshold, self.limit)
        for match in matches:
            match.metadata_url = self.gateway.url_for(match.metadata)
        logger.info(f"[SEARCH] {len(matches)} match(es) among {len(articles)} recent article(s)")
        return matches

    def _fetch(self, record: ContentRecord) -> dict | None:
        try:
            return self.gateway.fetch(record.metadata)
        except Exception as e:
            logger.warning(f"[SEARCH] Metadata fetch failed for {record.metadata}: {e}")
            return None
