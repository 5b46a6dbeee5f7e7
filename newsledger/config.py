import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root, regardless of cwd
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def _pairs(name: str) -> dict[str, str]:
    """Parse "name=url,name2=url2" into a dict."""
    pairs = {}
    for item in _list(name, ""):
        key, _, value = item.partition("=")
        if key and value:
            pairs[key.strip()] = value.strip()
    return pairs


# ── Registry ──────────────────────────────────────────────────────────────────
REGISTRY_BACKEND = os.getenv("REGISTRY_BACKEND", "local")   # "local" | "algod"
REGISTRY_OWNER   = os.getenv("REGISTRY_OWNER", "owner")

# ── Algorand (read-only box reader) ───────────────────────────────────────────
ALGOD_URL   = os.getenv("ALGOD_URL", "https://testnet-api.algonode.cloud")
ALGOD_TOKEN = os.getenv("ALGOD_TOKEN", "")
APP_ID      = _int("APP_ID", 0)

# ── IPFS metadata ─────────────────────────────────────────────────────────────
PINATA_JWT         = os.getenv("PINATA_JWT", "")
PINATA_API_URL     = os.getenv("PINATA_API_URL", "https://api.pinata.cloud")
IPFS_GATEWAYS      = _list(
    "IPFS_GATEWAYS",
    "https://gateway.pinata.cloud/ipfs,https://ipfs.io/ipfs,https://cloudflare-ipfs.com/ipfs,https://dweb.link/ipfs",
)
GATEWAY_TIMEOUT    = _float("GATEWAY_TIMEOUT", 3.0)
METADATA_CACHE_TTL = _int("METADATA_CACHE_TTL", 300)

# ── Search / verification ─────────────────────────────────────────────────────
SEARCH_WINDOW    = _int("SEARCH_WINDOW", 20)
SEARCH_THRESHOLD = _int("SEARCH_THRESHOLD", 50)
SEARCH_LIMIT     = _int("SEARCH_LIMIT", 10)
ORACLE_TIMEOUT   = _float("ORACLE_TIMEOUT", 15.0)
ORACLE_URLS      = _pairs("ORACLE_URLS")
ORACLE_API_KEY   = os.getenv("ORACLE_API_KEY", "")

# ── Headline ingestion ────────────────────────────────────────────────────────
INGEST_PUBLISHER = os.getenv("INGEST_PUBLISHER", "auto-news-fetcher")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
