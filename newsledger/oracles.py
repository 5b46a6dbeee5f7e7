"""
Credibility oracles.

An oracle takes a piece of text and returns an ``OracleReport`` or None when
it has nothing to say (not configured, timed out, unparseable answer). The
reports of all oracles are folded into one ``Credibility`` by
``merge_reports``.
"""
import logging
import math
import re
from dataclasses import asdict, dataclass, field
from typing import Protocol

import requests

logger = logging.getLogger(__name__)

VERDICT_REAL = "likely-real"
VERDICT_FAKE = "likely-fake"
VERDICT_MIXED = "mixed"
VERDICT_UNVERIFIED = "unverified"


@dataclass
class OracleReport:
    source: str
    score: int | None = None
    status: str = "unverified"      # verified | disputed | unverified
    red_flags: list[str] = field(default_factory=list)
    green_flags: list[str] = field(default_factory=list)
    related: int = 0
    summary: str = ""
    local: bool = False


@dataclass
class Credibility:
    score: int
    confidence: str
    verdict: str
    red_flags: list[str]
    green_flags: list[str]
    summary: str
    sources: list[str]

    def to_dict(self) -> dict:
        return asdict(self)


class Oracle(Protocol):
    name: str

    def assess(self, content: str) -> OracleReport | None: ...


# ── Local pattern heuristics ──────────────────────────────────────────────────

RED_FLAG_PATTERNS = [
    (re.compile(r"BREAKING|SHOCKING|URGENT|EXPLOSIVE", re.I), "Uses sensationalist language (BREAKING, SHOCKING, etc.)"),
    (re.compile(r"you won't believe|doctors hate|this one trick", re.I), "Contains clickbait phrases"),
    (re.compile(r"exposed|bombshell|scandal", re.I), "Uses emotionally charged words"),
    (re.compile(r"!!!+|\?\?\?+"), "Excessive punctuation (multiple ! or ?)"),
    (re.compile(r"100% (true|proven|confirmed)", re.I), "Claims absolute certainty"),
    (re.compile(r"mainstream media (won't|doesn't|refuses)", re.I), "Uses anti-establishment rhetoric"),
    (re.compile(r"they don't want you to know", re.I), "Conspiracy-style language"),
    (re.compile(r"miracle|cure-all|secret", re.I), "Uses miracle/secret claims"),
    (re.compile(r"exposed\s+the\s+truth", re.I), '"Exposing the truth" narrative'),
]

GREEN_FLAG_PATTERNS = [
    (re.compile(r"according to|reported by|stated", re.I), "Attributes information to sources"),
    (re.compile(r"study|research|data|statistics", re.I), "References studies or data"),
    (re.compile(r"reuters|associated press|ap news|bbc|npr|afp", re.I), "Mentions reputable news agencies"),
    (re.compile(r"\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}|\w+ \d{1,2},? \d{4}", re.I), "Contains specific dates"),
    (re.compile(r"\"[^\"]+\"\s*(said|stated|told|explained)", re.I), "Includes direct quotes with attribution"),
    (re.compile(r"professor|researcher|scientist|expert", re.I), "References experts or professionals"),
    (re.compile(r"university|institute|organization", re.I), "Mentions institutions"),
    (re.compile(r"percent|percentage|\d+%", re.I), "Uses specific statistics"),
]

OPINION_RE = re.compile(r"i think|i believe|in my opinion|personally", re.I)


class PatternOracle:
    """Regex heuristics over the text itself. Always available, never scores."""

    name = "patterns"

    def assess(self, content: str) -> OracleReport:
        red = [flag for pattern, flag in RED_FLAG_PATTERNS if pattern.search(content)]
        green = [flag for pattern, flag in GREEN_FLAG_PATTERNS if pattern.search(content)]

        caps = sum(1 for c in content if "A" <= c <= "Z")
        if len(content) > 50 and caps / len(content) > 0.3:
            red.insert(0, "Excessive use of CAPITAL LETTERS")
        if len(content) > 100 and not OPINION_RE.search(content):
            green.append("Uses objective language (not personal opinion)")
        if len(content) > 500:
            green.append("Substantial content length (not just a headline)")

        return OracleReport(source=self.name, red_flags=red, green_flags=green, local=True)


# ── Remote oracles ────────────────────────────────────────────────────────────

class HttpOracle:
    """
    Generic JSON-over-HTTP credibility service.

    POSTs ``{"content": ...}`` and expects an object with any of ``score``,
    ``status``, ``red_flags``, ``green_flags``, ``related`` and ``summary``.
    """

    def __init__(self, name: str, url: str, api_key: str = "", timeout: float = 15.0, session: requests.Session | None = None) -> None:
        self.name = name
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def assess(self, content: str) -> OracleReport | None:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            resp = self.session.post(self.url, json={"content": content}, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"[ORACLE] {self.name} unavailable: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"[ORACLE] {self.name} returned a non-object reply")
            return None

        score = data.get("score")
        status = data.get("status") or "unverified"
        summary = data.get("summary") or ""
        related = data.get("related") or 0
        red_flags = data.get("red_flags") or []
        green_flags = data.get("green_flags") or []
        if (
            isinstance(score, bool)
            or not isinstance(status, str)
            or not isinstance(summary, str)
            or not isinstance(related, (int, list))
            or not isinstance(red_flags, list)
            or not isinstance(green_flags, list)
        ):
            logger.warning(f"[ORACLE] {self.name} returned a malformed reply")
            return None

        return OracleReport(
            source=self.name,
            score=max(0, min(100, int(score))) if isinstance(score, (int, float)) and math.isfinite(score) else None,
            status=status,
            red_flags=[f for f in red_flags if isinstance(f, str)],
            green_flags=[f for f in green_flags if isinstance(f, str)],
            related=len(related) if isinstance(related, list) else max(0, related),
            summary=summary,
        )


# ── Merge ─────────────────────────────────────────────────────────────────────

def _unique(items):
    return list(dict.fromkeys(items))


def merge_reports(reports: list[OracleReport]) -> Credibility:
    """
    Fold oracle reports into a single credibility judgment.

    Base score is the mean of reported scores (50 without any). A "verified"
    status adds 20, a "disputed" one removes 30; each distinct red flag
    costs 5, each green flag earns 3, and three or more related articles add
    10. Confidence counts the remote sources that returned data.
    """
    scores = [r.score for r in reports if r.score is not None]
    score = round(sum(scores) / len(scores)) if scores else 50

    statuses = {r.status for r in reports}
    if "verified" in statuses:
        score += 20
    if "disputed" in statuses:
        score -= 30

    red = _unique(f for r in reports for f in r.red_flags)
    green = _unique(f for r in reports for f in r.green_flags)
    score -= 5 * len(red)
    score += 3 * len(green)
    if sum(r.related for r in reports) >= 3:
        score += 10
    score = max(0, min(100, score))

    data_points = sum(1 for r in reports if not r.local)
    if data_points >= 3:
        confidence = "high"
    elif data_points >= 2:
        confidence = "medium"
    else:
        confidence = "low"

    if score >= 70:
        verdict = VERDICT_REAL
    elif score <= 30:
        verdict = VERDICT_FAKE
    elif data_points >= 2:
        verdict = VERDICT_MIXED
    else:
        verdict = VERDICT_UNVERIFIED

    summaries = [f"{r.source}: {r.summary}" for r in reports if r.summary]
    summary = " | ".join(summaries) or (
        "Limited information available for verification. Please verify with additional trusted sources."
    )
    return Credibility(
        score=score,
        confidence=confidence,
        verdict=verdict,
        red_flags=red,
        green_flags=green,
        summary=summary,
        sources=[r.source for r in reports],
    )
