"""
IPFS metadata access.

Metadata blobs are JSON objects pinned on IPFS. Reads go through a fixed,
ordered list of public gateways (first one that answers wins) and a small
time-bounded cache; writes go through Pinata.
"""
import logging
import re
import time
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Optional

import requests

logger = logging.getLogger(__name__)

_GATEWAY_PREFIX_RE = re.compile(r"^.*/ipfs/")


class TTLCache:
    """Thread-safe in-memory cache. Entries expire by age only."""

    def __init__(self, ttl: float = 300, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if self._clock() - stored_at >= self.ttl:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def clean_locator(locator: str) -> str:
    """Strip ``ipfs://`` and any ``https://gateway/ipfs/`` prefix, leaving the CID path."""
    locator = locator.strip()
    if locator.startswith("ipfs://"):
        locator = locator[len("ipfs://"):]
    return _GATEWAY_PREFIX_RE.sub("", locator)


class MetadataGateway:
    def __init__(
        self,
        gateways: list[str],
        timeout: float = 3.0,
        cache: TTLCache | None = None,
        pinata_jwt: str = "",
        pinata_api_url: str = "https://api.pinata.cloud",
        session: requests.Session | None = None,
    ) -> None:
        self.gateways = [g.rstrip("/") for g in gateways]
        self.timeout = timeout
        self.cache = cache if cache is not None else TTLCache()
        self.pinata_jwt = pinata_jwt
        self.pinata_api_url = pinata_api_url.rstrip("/")
        self.session = session or requests.Session()

    def fetch(self, locator: str) -> dict | None:
        """
        Fetch the JSON metadata blob behind ``locator``.

        Returns None when the locator is empty or no gateway produced a JSON
        object. Successful fetches are cached; failures are not.
        """
        cid = clean_locator(locator) if locator else ""
        if not cid:
            return None

        cached = self.cache.get(cid)
        if cached is not None:
            return cached

        for gateway in self.gateways:
            try:
                resp = self.session.get(
                    f"{gateway}/{cid}",
                    headers={"Accept": "application/json"},
                    timeout=self.timeout,
                )
                if resp.status_code != 200:
                    continue
                data = resp.json()
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"[IPFS] Failed to fetch {cid} from {gateway}: {e}")
                continue
            if isinstance(data, dict):
                self.cache.set(cid, data)
                return data

        logger.warning(f"[IPFS] All gateways failed for {cid}")
        return None

    def pin_json(self, data: dict, name: str | None = None) -> str:
        """Pin ``data`` through Pinata and return its CID."""
        if not self.pinata_jwt:
            raise RuntimeError("Pinata API not configured. Set PINATA_JWT.")

        now = datetime.now(timezone.utc)
        payload = {
            "pinataContent": data,
            "pinataMetadata": {
                "name": name or f"metadata-{int(now.timestamp() * 1000)}.json",
                "keyvalues": {"type": "json", "uploadedAt": now.isoformat()},
            },
            "pinataOptions": {"cidVersion": 1},
        }
        resp = self.session.post(
            f"{self.pinata_api_url}/pinning/pinJSONToIPFS",
            json=payload,
            headers={"Authorization": f"Bearer {self.pinata_jwt}"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        cid = resp.json()["IpfsHash"]
        logger.info(f"[IPFS] Pinned {cid}")
        return cid

    def url_for(self, locator: str) -> str:
        return f"{self.gateways[0]}/{clean_locator(locator)}" if locator and self.gateways else ""
