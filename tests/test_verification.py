import threading

import responses

from newsledger.fingerprint import fingerprint_bytes, fingerprint_text
from newsledger.oracles import VERDICT_UNVERIFIED, HttpOracle, OracleReport, PatternOracle
from newsledger.search import SearchEngine
from newsledger.verification import STATUS_SIMILAR, STATUS_VERIFIED, Verifier

from tests.conftest import ALICE


class StubOracle:
    def __init__(self, name, report=None, delay=None, error=None):
        self.name = name
        self.report = report
        self.delay = delay
        self.error = error
        self.calls = 0
        self._release = threading.Event()

    def assess(self, content):
        self.calls += 1
        if self.delay:
            self._release.wait(self.delay)
        if self.error:
            raise self.error
        return self.report


def test_exact_match_short_circuits(registry, gateway):
    text = "Parliament passes the annual budget"
    registry.register(fingerprint_text(text), "article", "cid-1", publisher=ALICE)
    oracle = StubOracle("remote", OracleReport(source="remote", score=10))

    verdict = Verifier(registry, SearchEngine(registry, gateway), [oracle]).verify_text(f"  {text}\n")

    assert verdict.status == STATUS_VERIFIED
    assert verdict.exact.exists
    assert verdict.exact.publisher == ALICE
    assert verdict.matches == []
    assert verdict.credibility is None
    assert oracle.calls == 0
    assert gateway.fetched == []


def test_exact_lookup_does_not_reward_publisher(registry):
    text = "Parliament passes the annual budget"
    registry.register(fingerprint_text(text), "article", "cid-1", publisher=ALICE)

    Verifier(registry).verify_text(text)

    assert registry.publisher_reputation(ALICE).verification_count == 0


def test_miss_returns_similar_articles(registry, gateway):
    gateway.blobs["cid-1"] = {"title": "Scientists Find New Planet", "source": "BBC"}
    registry.register(fingerprint_text("original article body"), "article", "cid-1", publisher=ALICE)

    verdict = Verifier(registry, SearchEngine(registry, gateway)).verify_text("scientists find planet")

    assert verdict.status == STATUS_SIMILAR
    assert not verdict.exact.exists
    assert verdict.matches[0].title == "Scientists Find New Planet"
    assert verdict.credibility is None


def test_miss_without_matches_uses_oracle_verdict(registry, gateway):
    remote = StubOracle("remote", OracleReport(source="remote", score=90, status="verified"))
    verifier = Verifier(registry, SearchEngine(registry, gateway), [PatternOracle(), remote])

    verdict = verifier.verify_text("Unrelated claim about the weather")

    assert verdict.matches == []
    assert verdict.credibility.score == 100
    assert verdict.status == verdict.credibility.verdict == "likely-real"
    assert verdict.credibility.sources == ["patterns", "remote"]
    assert verdict.unavailable == []


def test_slow_and_failing_oracles_are_unavailable(registry):
    slow = StubOracle("slow", OracleReport(source="slow", score=0), delay=5)
    broken = StubOracle("broken", error=ConnectionError("down"))
    silent = StubOracle("silent", report=None)
    good = StubOracle("good", OracleReport(source="good", score=80))

    verdict = Verifier(registry, None, [slow, broken, silent, good], timeout=0.3).verify_text("claim")
    slow._release.set()

    assert sorted(verdict.unavailable) == ["oracle:broken", "oracle:slow"]
    assert verdict.credibility.sources == ["good"]
    assert verdict.credibility.score == 80


def test_registry_failure_is_reported_not_raised(gateway):
    class DownRegistry:
        def lookup(self, fingerprint):
            raise ConnectionError("node down")

        def recent(self, limit):
            raise ConnectionError("node down")

    verdict = Verifier(DownRegistry(), SearchEngine(DownRegistry(), gateway)).verify_text("claim")

    assert verdict.exact is None
    assert verdict.unavailable == ["registry"]
    assert verdict.status == VERDICT_UNVERIFIED


def test_file_verification_hashes_raw_bytes(registry):
    data = b"\xff\xd8\xff\xe0 fake jpeg"
    registry.register(fingerprint_bytes(data), "image", "cid-img", publisher=ALICE)

    verdict = Verifier(registry).verify_file(data)

    assert verdict.status == STATUS_VERIFIED
    assert verdict.fingerprint == fingerprint_bytes(data)
    assert verdict.to_dict()["exact"]["category"] == "image"


def test_file_miss_without_query_stays_unverified(registry):
    oracle = StubOracle("remote", OracleReport(source="remote", score=90))
    verdict = Verifier(registry, None, [oracle]).verify_file(b"unknown bytes")

    assert verdict.status == VERDICT_UNVERIFIED
    assert verdict.credibility is None
    assert oracle.calls == 0


@responses.activate
def test_malformed_oracle_reply_still_yields_verdict(registry):
    responses.add(responses.POST, "https://factcheck.test/assess", json={"score": 60, "red_flags": [{"x": 1}]})
    oracle = HttpOracle("factcheck", "https://factcheck.test/assess")

    verdict = Verifier(registry, None, [oracle]).verify_text("some claim")

    assert verdict.credibility.score == 60
    assert verdict.credibility.red_flags == []
    assert verdict.unavailable == []
