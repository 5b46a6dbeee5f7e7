import hashlib

import pytest
from fastapi.testclient import TestClient

from newsledger.fingerprint import fingerprint_text, to_hex
from newsledger.main import app, get_gateway, get_oracles, get_registry
from newsledger.oracles import PatternOracle

from tests.conftest import ALICE, BOB, OWNER


@pytest.fixture
def client(registry, gateway):
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_oracles] = lambda: [PatternOracle()]
    yield TestClient(app)
    app.dependency_overrides.clear()


def _register(client, fp, category="article", metadata="ipfs://Qm123", publisher=ALICE):
    return client.post(
        "/register",
        json={"fingerprint": to_hex(fp), "category": category, "metadata": metadata},
        headers={"X-Publisher": publisher},
    )


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_compute_hash_for_text_and_file(client):
    resp = client.post("/compute-hash", data={"text": "hello world"})
    assert resp.json()["fingerprint"] == "0x" + hashlib.sha256(b"hello world").hexdigest()

    resp = client.post("/compute-hash", files={"file": ("photo.jpg", b"\xff\xd8raw", "image/jpeg")})
    assert resp.json()["fingerprint"] == "0x" + hashlib.sha256(b"\xff\xd8raw").hexdigest()

    assert client.post("/compute-hash").status_code == 400


def test_register_and_read_back(client):
    fp = fingerprint_text("hello world")

    resp = _register(client, fp)
    assert resp.status_code == 200
    assert resp.json()["record"]["publisher"] == ALICE

    content = client.get(f"/content/{to_hex(fp)}").json()
    assert content["exists"] is True
    assert content["metadata"] == "ipfs://Qm123"

    assert client.get(f"/content/{to_hex(fingerprint_text('other'))}").json()["exists"] is False


def test_register_errors_map_to_status_codes(client):
    fp = fingerprint_text("hello world")
    _register(client, fp)

    dup = _register(client, fp, category="image", publisher=BOB)
    assert dup.status_code == 409
    assert dup.json()["code"] == "DuplicateFingerprint"

    bad = _register(client, fingerprint_text("x"), category="podcast")
    assert bad.status_code == 400
    assert bad.json()["code"] == "InvalidCategory"

    zero = client.post(
        "/register",
        json={"fingerprint": "0x" + "00" * 32, "category": "article", "metadata": "ipfs://x"},
        headers={"X-Publisher": ALICE},
    )
    assert zero.json()["code"] == "EmptyFingerprint"

    assert client.get("/content/not-a-hash").json()["code"] == "InvalidFingerprint"


def test_verify_command_rewards_publisher(client):
    fp = fingerprint_text("hello world")
    _register(client, fp)

    resp = client.post(f"/content/{to_hex(fp)}/verify", headers={"X-Publisher": BOB})
    assert resp.json()["exists"] is True

    rep = client.get(f"/publishers/{ALICE}/reputation").json()
    assert rep == {"publisher": ALICE, "total_registrations": 1, "verification_count": 1, "reputation_score": 15}
    assert client.get(f"/publishers/{ALICE}/content").json()["content"] == [to_hex(fp)]


def test_full_verification(client, gateway):
    gateway.blobs["cid-1"] = {"title": "Scientists Find New Planet"}
    body = "Scientists Find New Planet full story"
    _register(client, fingerprint_text(body), metadata="cid-1")

    exact = client.post("/verify", data={"text": body}).json()
    assert exact["status"] == "verified"

    similar = client.post("/verify", data={"text": "scientists find planet"}).json()
    assert similar["status"] == "similar"
    assert similar["matches"][0]["title"] == "Scientists Find New Planet"
    assert similar["credibility"]["sources"] == ["patterns"]

    assert client.post("/verify", data={"text": "   "}).status_code == 400


def test_search_endpoint(client, gateway):
    gateway.blobs["cid-1"] = {"title": "Markets rally after rate cut"}
    _register(client, fingerprint_text("m"), metadata="cid-1")

    assert client.get("/search", params={"q": "markets rally"}).json()["found"] is True
    assert client.get("/search", params={"q": "volcano erupts"}).json() == {"found": False, "matches": []}


def test_registry_listing(client, clock):
    for name in ("a", "b", "c"):
        _register(client, fingerprint_text(name))
        clock.advance(1)

    data = client.get("/registry", params={"limit": 2}).json()
    assert data["count"] == 3
    assert [r["fingerprint"] for r in data["recent"]] == [to_hex(fingerprint_text("c")), to_hex(fingerprint_text("b"))]


def test_pause_is_owner_only(client):
    assert client.post("/admin/pause", headers={"X-Publisher": ALICE}).status_code == 403
    assert client.post("/admin/pause", headers={"X-Publisher": OWNER}).json() == {"paused": True}

    paused = _register(client, fingerprint_text("x"))
    assert paused.status_code == 503
    assert paused.json()["code"] == "SystemPaused"

    client.post("/admin/unpause", headers={"X-Publisher": OWNER})
    assert _register(client, fingerprint_text("x")).status_code == 200


def test_chain_backed_registry_is_read_only(client):
    class ChainReader:
        def lookup(self, fingerprint):
            raise AssertionError("not reached")

    app.dependency_overrides[get_registry] = lambda: ChainReader()

    resp = _register(client, fingerprint_text("x"))
    assert resp.status_code == 501
    assert resp.json()["code"] == "ReadOnlyRegistry"

    article = {"title": "t", "source_id": "s", "published_at": "2024-05-01"}
    assert client.post("/ingest", json=[article]).status_code == 501


def test_compare(client):
    resp = client.post("/compare", json={"a": "kitten", "b": "sitting"})
    assert resp.json() == {"similarity": round(4 / 7 * 100, 2), "distance": 3, "word_overlap": 0.0}

    same = client.post("/compare", json={"a": "Budget Approved", "b": "budget approved "}).json()
    assert same["similarity"] == 100.0
    assert same["word_overlap"] == 100.0


def test_ingest_registers_headlines_once(client, registry, gateway):
    articles = [
        {"title": "Scientists Find New Planet", "source_id": "bbc-news", "published_at": "2024-05-01T10:00:00Z", "source_name": "BBC News"},
        {"title": "Markets rally after rate cut", "source_id": "reuters", "published_at": "2024-05-01T11:00:00Z"},
    ]

    first = client.post("/ingest", json=articles)
    second = client.post("/ingest", json=articles)

    assert first.json() == {"registered": 2, "skipped": 0, "failed": 0}
    assert second.json() == {"registered": 0, "skipped": 2, "failed": 0}
    assert registry.total_registrations() == 2
    record = registry.recent(1)[0]
    assert record.publisher == "auto-news-fetcher"
    assert gateway.blobs[record.metadata]["title"] == "Markets rally after rate cut"

    found = client.get("/search", params={"q": "scientists find planet"}).json()
    assert found["matches"][0]["source"] == "BBC News"
