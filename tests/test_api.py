"""Tests for the FastAPI application."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from realty_portal import __version__
from realty_portal.api.dependencies import get_enricher, get_loader, get_pipeline, get_telegram_client
from realty_portal.api.main import app
from realty_portal.config import settings
from realty_portal.database.connection import get_db
from realty_portal.database.crud import PropertyListingCRUD
from realty_portal.enrichment import AIClient, Enricher
from realty_portal.etl.load import PropertyLoader

CHANNEL_POST = "🏢 Studio for rent in Dubai Marina\n💰 Price: 45,000 AED\n📞 Contact: +971 50 123 4567"


@pytest.fixture
def telegram():
    client = MagicMock()
    client.configured = False
    client.send_message.return_value = {"ok": True, "result": {"message_id": 1}}
    client.get_me.return_value = {"ok": False, "description": "TELEGRAM_BOT_TOKEN not configured"}
    client.get_webhook_info.return_value = {"ok": False, "description": "TELEGRAM_BOT_TOKEN not configured"}
    client.set_my_commands.return_value = {"ok": True, "result": True}
    client.set_webhook.return_value = {"ok": True, "result": True}
    return client


@pytest.fixture
def api(db_session, telegram, fast_limiter, tmp_path):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_telegram_client] = lambda: telegram
    app.dependency_overrides[get_enricher] = lambda: Enricher(
        AIClient(api_key="", session=MagicMock(), rate_limiter=fast_limiter)
    )
    app.dependency_overrides[get_loader] = lambda: PropertyLoader(db_session, output_dir=str(tmp_path))

    yield TestClient(app)

    app.dependency_overrides.clear()


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, api):
        response = api.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["version"] == __version__

    def test_ping(self, api):
        assert api.get("/api/v1/ping").json() == {"message": "pong"}

    def test_root(self, api):
        assert api.get("/").json()["message"] == "Realty Portal API"

    def test_not_found(self, api):
        response = api.get("/api/v1/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Resource not found"}

    def test_process_time_header(self, api):
        assert "x-process-time" in api.get("/api/v1/ping").headers


class TestScrapingRoutes:
    """Tests for scraping endpoints."""

    def test_unknown_action(self, api):
        response = api.post("/api/v1/scraping/property-scraper", json={"action": "explode"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Unknown action: explode"}

    def test_get_sources(self, api):
        response = api.post("/api/v1/scraping/property-scraper", json={"action": "get_sources"})
        assert response.json() == {"success": True, "sources": []}

    def test_add_source(self, api):
        response = api.post("/api/v1/scraping/property-scraper", json={
            "action": "add_source",
            "source": {"name": "Agency site", "url": "https://agency.example.com/listings"},
        })

        assert response.json()["source"]["source_type"] == "website"
        sources = api.post("/api/v1/scraping/property-scraper", json={"action": "get_sources"}).json()["sources"]
        assert [source["name"] for source in sources] == ["Agency site"]

    def test_add_source_without_url(self, api):
        response = api.post("/api/v1/scraping/property-scraper", json={
            "action": "add_source", "source": {"name": "Agency site"},
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Website sources need a url"

    def test_scrape_without_sources(self, api):
        data = api.post("/api/v1/scraping/property-scraper", json={}).json()
        assert (data["sources_processed"], data["total_saved"]) == (0, 0)

    def test_limit_is_validated(self, api):
        response = api.post("/api/v1/scraping/web-scraper", json={"limit": 500})

        assert response.status_code == 422
        assert response.json()["success"] is False
        assert response.json()["error"].startswith("body.limit:")

    def test_batdongsan_unknown_action(self, api):
        response = api.post("/api/v1/scraping/batdongsan", json={"action": "everything"})

        assert response.status_code == 400
        assert response.json()["error"] == "Unknown action: everything"

    def test_unhandled_error(self, db_session, telegram):
        pipeline = MagicMock()
        pipeline.run_sources.side_effect = RuntimeError("database on fire")
        app.dependency_overrides[get_db] = lambda: db_session
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        try:
            response = TestClient(app, raise_server_exceptions=False).post(
                "/api/v1/scraping/property-scraper", json={"action": "scrape"}
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "database on fire"}


class TestPropertyRoutes:
    """Tests for property endpoints."""

    def test_parse_and_save(self, api, db_session):
        response = api.post("/api/v1/properties/parse", json={"text": CHANNEL_POST, "save": True})

        assert response.status_code == 200
        data = response.json()
        assert data["saved"] is True
        assert data["property"]["location_area"] == "Dubai Marina"
        assert PropertyListingCRUD.get_by_id(db_session, data["id"]).price == 45000

    def test_parse_failure(self, api):
        response = api.post("/api/v1/properties/parse", json={"text": "hello there"})

        assert response.status_code == 422
        assert response.json()["success"] is False

    def test_parse_requires_text(self, api):
        response = api.post("/api/v1/properties/parse", json={"text": ""})

        assert response.status_code == 422
        assert response.json()["success"] is False

    def test_parse_missing_body_field(self, api):
        response = api.post("/api/v1/properties/parse", json={})

        assert response.status_code == 422
        assert response.json() == {"success": False, "error": "body.text: Field required"}

    def test_description_unavailable(self, api):
        response = api.post("/api/v1/properties/description", json={"property": {"title": "Căn hộ 2PN"}})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Description generation failed"}

    def test_search(self, api, db_session):
        PropertyListingCRUD.create(db_session, {
            "external_id": "bds_1", "title": "Sunrise City 2BR", "district": "7",
            "location_area": "District 7", "purpose": "for-rent",
        })

        data = api.get("/api/v1/properties/search", params={"q": "district", "purpose": "for-rent"}).json()

        assert data["count"] == 1
        assert data["properties"][0]["external_id"] == "bds_1"

    def test_search_rejects_bad_purpose(self, api):
        response = api.get("/api/v1/properties/search", params={"purpose": "rent"})

        assert response.status_code == 422
        assert response.json()["error"].startswith("query.purpose:")

    def test_export_csv(self, api, db_session):
        PropertyListingCRUD.create(db_session, {"external_id": "bds_1", "title": "Sunrise City 2BR"})

        response = api.get("/api/v1/properties/export", params={"format": "csv"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text.splitlines()[0].startswith("id,external_id,source,title")
        assert "bds_1" in response.text

    def test_export_bad_format(self, api):
        response = api.get("/api/v1/properties/export", params={"format": "xml"})

        assert response.status_code == 400
        assert response.json()["error"] == "Unsupported export format: xml"


class TestNewsRoutes:
    """Tests for news endpoints."""

    def test_get_articles(self, api):
        assert api.post("/api/v1/news", json={"action": "get_articles"}).json() == {"success": True, "articles": []}

    def test_translate_missing_article(self, api):
        response = api.post("/api/v1/news", json={"action": "translate_article", "article_id": 5})

        assert response.status_code == 404
        assert response.json()["error"] == "Article 5 not found"

    def test_publish_stats(self, api):
        response = api.post("/api/v1/news/publish", json={"action": "stats"})
        assert response.json() == {"success": True, "stats": {"total": 0, "posted": 0, "pending": 0}}

    def test_publish_requires_article_id(self, api):
        response = api.post("/api/v1/news/publish", json={"action": "publish_article"})
        assert response.status_code == 400

    def test_publish_missing_article(self, api):
        response = api.post("/api/v1/news/publish", json={"action": "publish_article", "article_id": 999})

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Article not found"}

    def test_publish_unknown_action(self, api):
        assert api.post("/api/v1/news/publish", json={"action": "tweet"}).status_code == 400

    def test_content_unknown_type(self, api):
        response = api.post("/api/v1/news/content", json={"post_type": "horoscope"})

        assert response.status_code == 400
        assert response.json()["error"] == "Unknown post type: horoscope"


class TestTelegramRoutes:
    """Tests for Telegram endpoints."""

    START_UPDATE = {
        "update_id": 1,
        "message": {
            "message_id": 1,
            "chat": {"id": 42, "type": "private"},
            "from": {"id": 42, "first_name": "Linh"},
            "text": "/start",
        },
    }

    def test_webhook_rejects_bad_secret(self, api, telegram, monkeypatch):
        monkeypatch.setattr(settings.telegram, "webhook_secret", "s3cret")

        response = api.post("/api/v1/telegram/webhook", json=self.START_UPDATE,
                            headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"})

        assert response.status_code == 403
        telegram.send_message.assert_not_called()

    def test_webhook(self, api, telegram, monkeypatch):
        monkeypatch.setattr(settings.telegram, "webhook_secret", "s3cret")

        response = api.post("/api/v1/telegram/webhook", json=self.START_UPDATE,
                            headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"})

        assert response.json() == {"ok": True}
        assert "Hello Linh!" in telegram.send_message.call_args.args[1]

    def test_notify_requires_content(self, api):
        assert api.post("/api/v1/telegram/notify", json={}).status_code == 400

    def test_notify(self, api, telegram, monkeypatch):
        monkeypatch.setattr(settings.telegram, "group_chat_id", "-100777")

        response = api.post("/api/v1/telegram/notify", json={"message": "Maintenance tonight", "type": "alert"})

        assert response.json()["ok"] is True
        assert telegram.send_message.call_args.args[1].startswith("⚠️")

    def test_status(self, api):
        data = api.get("/api/v1/telegram/status").json()

        assert data["configured"] is False
        assert data["bot"]["ok"] is False

    def test_setup(self, api, telegram, monkeypatch):
        monkeypatch.setattr(settings.telegram, "webhook_url", None)

        data = api.post("/api/v1/telegram/setup", json={"webhook_url": "https://api.example.com/hook"}).json()

        assert data["success"] is True
        assert data["webhook"] == {"ok": True, "result": True}
        telegram.set_webhook.assert_called_once()
