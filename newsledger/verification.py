"""
Verification of arbitrary content against the registry.

Precedence is fixed: an exact fingerprint hit wins and ends the work. Only on
a miss are the fuzzy title search and the credibility oracles consulted, in
parallel, each bounded by the same timeout. Sources that fail or time out are
reported in ``unavailable`` and simply contribute nothing.
"""
import logging
from dataclasses import dataclass, field
from functools import partial

from newsledger.fanout import gather
from newsledger.fingerprint import fingerprint_bytes, fingerprint_text, to_hex, truncate_hash
from newsledger.models import LookupResult, SearchMatch
from newsledger.oracles import VERDICT_UNVERIFIED, Credibility, Oracle, merge_reports
from newsledger.registry import RegistryReader
from newsledger.search import SearchEngine

logger = logging.getLogger(__name__)

STATUS_VERIFIED = "verified"
STATUS_SIMILAR = "similar"

SOURCE_REGISTRY = "registry"
SOURCE_SEARCH = "search"
ORACLE_PREFIX = "oracle:"


@dataclass
class Verdict:
    fingerprint: bytes
    status: str
    exact: LookupResult | None = None
    matches: list[SearchMatch] = field(default_factory=list)
    credibility: Credibility | None = None
    unavailable: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "fingerprint": to_hex(self.fingerprint),
            "status": self.status,
            "exact": self.exact.to_dict() if self.exact else None,
            "matches": [m.to_dict() for m in self.matches],
            "credibility": self.credibility.to_dict() if self.credibility else None,
            "unavailable": self.unavailable,
        }


class Verifier:
    def __init__(self, registry: RegistryReader, search: SearchEngine | None = None, oracles: list[Oracle] | None = None, timeout: float = 15.0) -> None:
        self.registry = registry
        self.search = search
        self.oracles = list(oracles or [])
        self.timeout = timeout

    def verify_text(self, text: str) -> Verdict:
        text = text.strip()
        return self._verify(fingerprint_text(text), text)

    def verify_file(self, data: bytes, query: str | None = None) -> Verdict:
        """Verify file bytes; ``query`` (a caption or extracted text) enables fuzzy search."""
        return self._verify(fingerprint_bytes(data), (query or "").strip())

    def _verify(self, fp: bytes, text: str) -> Verdict:
        label = truncate_hash(to_hex(fp))

        found, unavailable = gather({SOURCE_REGISTRY: partial(self.registry.lookup, fp)}, self.timeout)
        exact = found.get(SOURCE_REGISTRY)
        if exact is not None and exact.exists:
            logger.info(f"[VERIFY] Exact match for {label} by {exact.publisher}")
            return Verdict(fingerprint=fp, status=STATUS_VERIFIED, exact=exact)

        calls = {}
        if text:
            if self.search is not None:
                calls[SOURCE_SEARCH] = partial(self.search.search, text)
            for oracle in self.oracles:
                calls[f"{ORACLE_PREFIX}{oracle.name}"] = partial(oracle.assess, text)
        results, failed = gather(calls, self.timeout)
        unavailable += failed

        matches = results.pop(SOURCE_SEARCH, None) or []
        credibility = None
        if text and self.oracles:
            reports = [report for report in results.values() if report is not None]
            credibility = merge_reports(reports)
        if matches:
            status = STATUS_SIMILAR
        elif credibility is not None:
            status = credibility.verdict
        else:
            status = VERDICT_UNVERIFIED

        logger.info(f"[VERIFY] {label}: no exact match, {len(matches)} similar, status={status}")
        return Verdict(
            fingerprint=fp,
            status=status,
            exact=exact,
            matches=matches,
            credibility=credibility,
            unavailable=unavailable,
        )
