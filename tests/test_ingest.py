from newsledger.ingest import REGISTERED_BY, ArticleIngester, article_fingerprint, article_metadata
from newsledger.fingerprint import fingerprint_article
from newsledger.models import Article

from tests.conftest import OWNER

FETCHER = "news-fetcher"


def _article(title="Scientists Find New Planet", source_id="bbc-news", published_at="2024-05-01T10:00:00Z"):
    return Article(title=title, source_id=source_id, published_at=published_at, source_name="BBC News", url="https://bbc.test/1")


def test_article_fingerprint_and_metadata():
    article = _article()
    assert article_fingerprint(article) == fingerprint_article(article.title, "bbc-news", article.published_at)

    meta = article_metadata(article)
    assert meta["title"] == article.title
    assert meta["source"] == "BBC News"
    assert meta["sourceId"] == "bbc-news"
    assert meta["publishedAt"] == article.published_at
    assert meta["registeredBy"] == REGISTERED_BY


def test_registers_article_with_pinned_metadata(registry, gateway):
    ingester = ArticleIngester(registry, gateway, FETCHER)

    result = ingester.register(_article())

    assert result.success
    record = registry.get(result.fingerprint)
    assert record.publisher == FETCHER
    assert record.category.value == "article"
    assert gateway.blobs[record.metadata]["title"] == "Scientists Find New Planet"


def test_second_run_registers_nothing(registry, gateway):
    articles = [_article(), _article(title="Markets rally after rate cut")]

    first = ArticleIngester(registry, gateway, FETCHER).run(articles)
    # a fresh ingester has no memory; the registry itself must reject repeats
    second = ArticleIngester(registry, gateway, FETCHER).run(articles)

    assert first == {"registered": 2, "skipped": 0, "failed": 0}
    assert second == {"registered": 0, "skipped": 2, "failed": 0}
    assert registry.total_registrations() == 2
    assert len(gateway.pinned) == 2


def test_same_headline_different_time_is_new(registry, gateway):
    ingester = ArticleIngester(registry, gateway, FETCHER)
    ingester.register(_article())
    assert ingester.register(_article(published_at="2024-05-02T10:00:00Z")).success


def test_pin_failure_is_reported(registry, gateway):
    gateway.fail_pin = True
    result = ArticleIngester(registry, gateway, FETCHER).register(_article())

    assert not result.success
    assert result.reason.startswith("ipfs:")
    assert registry.total_registrations() == 0


def test_paused_registry_counts_as_failure(registry, gateway):
    registry.pause(OWNER)
    summary = ArticleIngester(registry, gateway, FETCHER).run([_article()])
    assert summary == {"registered": 0, "skipped": 0, "failed": 1}
