import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, File, Form, Header, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from newsledger import config
from newsledger.chain import AlgodRegistry
from newsledger.errors import ReadOnlyRegistry, RegistryError
from newsledger.fingerprint import fingerprint_bytes, fingerprint_text, to_hex
from newsledger.ingest import ArticleIngester
from newsledger.metadata import MetadataGateway, TTLCache
from newsledger.models import Article
from newsledger.oracles import HttpOracle, PatternOracle
from newsledger.registry import LocalRegistry, RegistryReader
from newsledger.search import SearchEngine
from newsledger.similarity import levenshtein_distance, similarity, word_overlap
from newsledger.verification import Verifier

logger = logging.getLogger(__name__)

app = FastAPI(title="newsledger API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Wiring ────────────────────────────────────────────────────────────────────

@lru_cache
def get_registry() -> RegistryReader:
    if config.REGISTRY_BACKEND == "algod":
        logger.info(f"[CHAIN] Reading registry from App {config.APP_ID} at {config.ALGOD_URL}")
        return AlgodRegistry.connect(config.ALGOD_URL, config.ALGOD_TOKEN, config.APP_ID)
    return LocalRegistry(owner=config.REGISTRY_OWNER)


@lru_cache
def get_gateway() -> MetadataGateway:
    return MetadataGateway(
        config.IPFS_GATEWAYS,
        timeout=config.GATEWAY_TIMEOUT,
        cache=TTLCache(ttl=config.METADATA_CACHE_TTL),
        pinata_jwt=config.PINATA_JWT,
        pinata_api_url=config.PINATA_API_URL,
    )


@lru_cache
def get_oracles() -> list:
    oracles = [PatternOracle()]
    for name, url in config.ORACLE_URLS.items():
        oracles.append(HttpOracle(name, url, api_key=config.ORACLE_API_KEY, timeout=config.ORACLE_TIMEOUT))
    return oracles


def get_search(
    registry: RegistryReader = Depends(get_registry),
    gateway: MetadataGateway = Depends(get_gateway),
) -> SearchEngine:
    return SearchEngine(
        registry,
        gateway,
        window=config.SEARCH_WINDOW,
        threshold=config.SEARCH_THRESHOLD,
        limit=config.SEARCH_LIMIT,
    )


def get_verifier(
    registry: RegistryReader = Depends(get_registry),
    search: SearchEngine = Depends(get_search),
    oracles: list = Depends(get_oracles),
) -> Verifier:
    return Verifier(registry, search, oracles, timeout=config.ORACLE_TIMEOUT)


def writable(registry: RegistryReader) -> LocalRegistry:
    if not isinstance(registry, LocalRegistry):
        raise ReadOnlyRegistry("this deployment reads the registry from chain; sign an application call instead")
    return registry


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc), "code": exc.code})


class RegisterRequest(BaseModel):
    fingerprint: str
    category: str
    metadata: str


class ArticleRequest(BaseModel):
    title: str
    source_id: str
    published_at: str
    source_name: str = ""
    url: str = ""
    description: str = ""
    author: str = "Unknown"
    reliability: str = ""
    url_to_image: str = ""


class CompareRequest(BaseModel):
    a: str
    b: str


# ── Routes ────────────────────────────────────────────────────────────────────

@app.get("/")
async def root():
    return {
        "status": "ok",
        "message": "newsledger API is running",
        "endpoints": [
            "/compute-hash", "/register", "/content/{fingerprint}", "/verify", "/search",
            "/compare", "/ingest", "/publishers/{publisher}", "/registry",
        ],
    }


@app.post("/compute-hash")
async def compute_hash(file: UploadFile | None = File(None), text: str | None = Form(None)):
    """
    Fingerprint an uploaded file (raw bytes) or a ``text`` form field (UTF-8),
    so the caller can register it.
    """
    if file is not None:
        fp = fingerprint_bytes(await file.read())
    elif text is not None:
        fp = fingerprint_text(text)
    else:
        return JSONResponse(status_code=400, content={"error": "send a file or a text field"})
    logger.info(f"[HASH] Computed {to_hex(fp)}")
    return {"fingerprint": to_hex(fp), "status": "ok"}


@app.post("/register")
async def register(body: RegisterRequest, x_publisher: str = Header(...), registry: RegistryReader = Depends(get_registry)):
    record = writable(registry).register(body.fingerprint, body.category, body.metadata, publisher=x_publisher)
    return {"status": "registered", "record": record.to_dict()}


@app.get("/content/{fingerprint}")
async def get_content(fingerprint: str, registry: RegistryReader = Depends(get_registry)):
    return registry.lookup(fingerprint).to_dict()


@app.post("/content/{fingerprint}/verify")
async def verify_content(fingerprint: str, x_publisher: str = Header(""), registry: RegistryReader = Depends(get_registry)):
    """Verify command: a hit rewards the content's publisher (+1 verification, +5 score)."""
    return writable(registry).verify(fingerprint, caller=x_publisher).to_dict()


@app.post("/verify")
def verify(
    file: UploadFile | None = File(None),
    text: str | None = Form(None),
    query: str | None = Form(None),
    verifier: Verifier = Depends(get_verifier),
):
    """
    Full verification: exact registry match first, then similar registered
    articles and oracle credibility when there is no exact match.
    """
    if file is not None:
        verdict = verifier.verify_file(file.file.read(), query=query or text)
    elif text and text.strip():
        verdict = verifier.verify_text(text)
    else:
        return JSONResponse(status_code=400, content={"error": "send a file or a non-empty text field"})
    return verdict.to_dict()


@app.get("/search")
def search(q: str = Query(..., min_length=1), engine: SearchEngine = Depends(get_search)):
    matches = engine.search(q)
    return {"found": bool(matches), "matches": [m.to_dict() for m in matches]}


@app.post("/compare")
async def compare(body: CompareRequest):
    """Percentage similarity of two strings, as shown next to near-duplicate matches."""
    return {
        "similarity": similarity(body.a, body.b),
        "distance": levenshtein_distance(body.a, body.b),
        "word_overlap": word_overlap(body.a.lower().strip(), body.b.lower().strip()),
    }


@app.post("/ingest")
def ingest(articles: list[ArticleRequest], registry: RegistryReader = Depends(get_registry), gateway: MetadataGateway = Depends(get_gateway)):
    """Pin and register fetched headlines as articles; already registered ones are skipped."""
    ingester = ArticleIngester(writable(registry), gateway, config.INGEST_PUBLISHER)
    return ingester.run([Article(**a.model_dump()) for a in articles])


@app.get("/publishers/{publisher}/content")
async def publisher_content(publisher: str, registry: RegistryReader = Depends(get_registry)):
    return {"publisher": publisher, "content": [to_hex(fp) for fp in registry.publisher_content(publisher)]}


@app.get("/publishers/{publisher}/reputation")
async def publisher_reputation(publisher: str, registry: RegistryReader = Depends(get_registry)):
    return {"publisher": publisher, **registry.publisher_reputation(publisher).to_dict()}


@app.get("/registry")
async def get_registry_summary(limit: int = Query(config.SEARCH_WINDOW, ge=0, le=100), registry: RegistryReader = Depends(get_registry)):
    """Total registrations plus the most recent ones, newest first."""
    recent = registry.recent(limit)
    return {
        "count": registry.total_registrations(),
        "recent": [r.to_dict() for r in recent],
    }


@app.post("/admin/pause")
async def pause(x_publisher: str = Header(""), registry: RegistryReader = Depends(get_registry)):
    writable(registry).pause(x_publisher)
    return {"paused": True}


@app.post("/admin/unpause")
async def unpause(x_publisher: str = Header(""), registry: RegistryReader = Depends(get_registry)):
    writable(registry).unpause(x_publisher)
    return {"paused": False}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)
