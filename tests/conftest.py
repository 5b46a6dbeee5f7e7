import itertools

import pytest

from newsledger.fingerprint import fingerprint_text
from newsledger.registry import LocalRegistry

OWNER = "owner"
ALICE = "alice"
BOB = "bob"


class FakeClock:
    def __init__(self, start: float = 1_700_000_000) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGateway:
    """MetadataGateway stand-in serving blobs from a dict."""

    def __init__(self, blobs: dict | None = None) -> None:
        self.blobs = dict(blobs or {})
        self.fetched: list[str] = []
        self.pinned: list[dict] = []
        self._cids = itertools.count(1)
        self.fail_pin = False

    def fetch(self, locator: str) -> dict | None:
        self.fetched.append(locator)
        return self.blobs.get(locator)

    def pin_json(self, data: dict, name: str | None = None) -> str:
        if self.fail_pin:
            raise RuntimeError("pinning service down")
        cid = f"bafy{next(self._cids):04d}"
        self.blobs[cid] = data
        self.pinned.append(data)
        return cid

    def url_for(self, locator: str) -> str:
        return f"https://gateway.test/ipfs/{locator}"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock) -> LocalRegistry:
    return LocalRegistry(owner=OWNER, clock=clock)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def fp():
    """Distinct, deterministic fingerprints: fp("a"), fp("b"), ..."""
    return fingerprint_text
