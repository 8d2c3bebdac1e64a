"""Tests for news ingestion, channel content and channel publishing."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
import requests

from conftest import make_response
from realty_portal.database.crud import NewsArticleCRUD, PropertyListingCRUD
from realty_portal.models.news_models import ChannelPost, DistrictReview, NewsItem
from realty_portal.news import ChannelContentGenerator, ChannelPublisher, NewsService, PublishError
from realty_portal.news.content import DEFAULT_WEATHER, describe_weather
from realty_portal.scrapers import FetchError


def news_item(slug, title="Giá thuê căn hộ tăng", images=None):
    return NewsItem(
        title=title,
        link=f"https://vnexpress.net/{slug}.html",
        description="Giá thuê căn hộ tại TP HCM tăng 10%",
        published=datetime(2024, 10, 14, 1, 30),
        images=images or [],
    )


def store_article(db, slug, relevance_score=50, is_processed=True, images=None, **fields):
    data = {
        "original_title": f"Tiêu đề {slug}",
        "original_content": "Nội dung",
        "original_url": f"https://vnexpress.net/{slug}.html",
        "translated_title": f"Заголовок {slug}",
        "translated_content": "Содержание",
        "relevance_score": relevance_score,
        "is_processed": is_processed,
        "images": images or [],
    }
    data.update(fields)
    return NewsArticleCRUD.create(db, data)


@pytest.fixture
def enricher():
    enricher = MagicMock()
    enricher.translate_title.side_effect = lambda text: f"RU {text}"
    enricher.translate_content.side_effect = lambda text: f"RU {text}"
    return enricher


@pytest.fixture
def telegram():
    client = MagicMock()
    client.send_message.return_value = {"ok": True, "result": {"message_id": 1}}
    client.send_photo.return_value = {"ok": True, "result": {"message_id": 2}}
    return client


class TestNewsService:
    """Tests for NewsService."""

    def test_fetch_and_translate(self, db_session, enricher):
        rss = MagicMock()
        rss.scrape.return_value = [news_item("a", images=["https://img/a.jpg"]), news_item("b")]

        result = NewsService(db_session, enricher=enricher, rss_scraper=rss).fetch_and_translate("bat-dong-san")

        rss.scrape.assert_called_once_with("https://vnexpress.net/rss/bat-dong-san.rss")
        assert result["success"] is True
        assert (result["fetched"], result["saved"]) == (2, 2)
        assert result["articles"][0]["translated_title"] == "RU Giá thuê căn hộ tăng"

        stored = NewsArticleCRUD.get_by_url(db_session, "https://vnexpress.net/a.html")
        assert stored.is_processed is True
        assert stored.images == ["https://img/a.jpg"]
        assert stored.relevance_score > 50

    def test_duplicate_links_are_skipped(self, db_session, enricher):
        rss = MagicMock()
        rss.scrape.return_value = [news_item("a"), news_item("a")]
        service = NewsService(db_session, enricher=enricher, rss_scraper=rss)

        result = service.fetch_and_translate()

        assert (result["fetched"], result["saved"]) == (2, 1)
        assert service.fetch_and_translate()["saved"] == 0

    def test_unknown_category_uses_latest_feed(self, db_session, enricher):
        rss = MagicMock()
        rss.scrape.return_value = []

        NewsService(db_session, enricher=enricher, rss_scraper=rss).fetch_and_translate("sports")

        rss.scrape.assert_called_once_with("https://vnexpress.net/rss/tin-moi-nhat.rss")

    def test_limit(self, db_session, enricher):
        rss = MagicMock()
        rss.scrape.return_value = [news_item(str(index)) for index in range(8)]

        result = NewsService(db_session, enricher=enricher, rss_scraper=rss).fetch_and_translate(limit=3)

        assert (result["fetched"], result["saved"]) == (8, 3)

    def test_without_translation(self, db_session, enricher):
        rss = MagicMock()
        rss.scrape.return_value = [news_item("a")]

        NewsService(db_session, enricher=enricher, rss_scraper=rss).fetch_and_translate(translate=False)

        stored = NewsArticleCRUD.get_by_url(db_session, "https://vnexpress.net/a.html")
        assert stored.translated_title == "Giá thuê căn hộ tăng"
        assert stored.is_processed is False
        enricher.translate_title.assert_not_called()

    def test_feed_failure(self, db_session, enricher):
        rss = MagicMock()
        rss.scrape.side_effect = FetchError("https://vnexpress.net/rss/tin-moi-nhat.rss", status=502)

        result = NewsService(db_session, enricher=enricher, rss_scraper=rss).fetch_and_translate()

        assert result["success"] is False
        assert result["saved"] == 0

    def test_translate_article(self, db_session, enricher):
        article = store_article(db_session, "a", is_processed=False, translated_title=None)
        service = NewsService(db_session, enricher=enricher, rss_scraper=MagicMock())

        result = service.translate_article(article.id)

        assert result["translated_title"] == "RU Tiêu đề a"
        assert result["is_processed"] is True

        with pytest.raises(LookupError):
            service.translate_article(9999)


class TestChannelContentGenerator:
    """Tests for ChannelContentGenerator."""

    @pytest.mark.parametrize("code, expected", [
        (0, "31°C, ☀️ солнечно"),
        (2, "31°C, ⛅ переменная облачность"),
        (53, "31°C, 🌦 облачно с прояснениями"),
        (80, "31°C, 🌧 дождь"),
    ])
    def test_describe_weather(self, code, expected):
        assert describe_weather(30.6, code) == expected

    def test_get_weather(self, db_session):
        session = MagicMock()
        session.get.return_value = make_response(json_data={"current": {"temperature_2m": 27.2, "weather_code": 61}})

        generator = ChannelContentGenerator(db_session, enricher=MagicMock(), session=session)

        assert generator.get_weather() == "27°C, 🌧 дождь"

    def test_get_weather_failure(self, db_session):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("offline")

        generator = ChannelContentGenerator(db_session, enricher=MagicMock(), session=session)

        assert generator.get_weather() == DEFAULT_WEATHER

    def test_unknown_post_type(self, db_session):
        generator = ChannelContentGenerator(db_session, enricher=MagicMock(), session=MagicMock())

        with pytest.raises(ValueError):
            generator.generate("horoscope")

    def test_district_context(self, db_session):
        db_session.add(DistrictReview(district="District 7", description="Phu My Hung", avg_rent_2br=18000000))
        db_session.commit()
        PropertyListingCRUD.create(db_session, {
            "external_id": "bds_1", "title": "Căn hộ Sunrise City", "location_area": "District 7", "bedrooms": 2
        })

        context = ChannelContentGenerator(db_session, enricher=MagicMock(),
                                          session=MagicMock()).build_context("district_review", "District 7")

        assert "Phu My Hung" in context
        assert "Căn hộ Sunrise City" in context

    def test_ai_post(self, db_session):
        enricher = MagicMock()
        enricher.generate_channel_post.return_value = "<b>Визы</b>"

        result = ChannelContentGenerator(db_session, enricher=enricher, session=MagicMock()).generate("visa_guide")

        assert result["success"] is True
        assert result["ai_generated"] is True
        assert result["content"] == "<b>Визы</b>"

    def test_failed_post(self, db_session):
        enricher = MagicMock()
        enricher.generate_channel_post.return_value = None

        result = ChannelContentGenerator(db_session, enricher=enricher, session=MagicMock()).generate("visa_guide")

        assert result == {"success": False, "error": "No content generated", "post_type": "visa_guide"}

    def test_morning_digest_falls_back_to_template(self, db_session):
        store_article(db_session, "a")
        enricher = MagicMock()
        enricher.generate_channel_post.return_value = None
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("offline")

        result = ChannelContentGenerator(db_session, enricher=enricher, session=session).generate("morning_digest")

        assert result["success"] is True
        assert result["ai_generated"] is False
        assert result["content"].startswith("🌅 <b>Доброе утро, Вьетнам!</b>")
        assert "Заголовок a" in result["content"]
        assert DEFAULT_WEATHER in result["content"]

    def test_fallback_digest_escapes_titles(self, db_session):
        store_article(db_session, "a", translated_title="Цены <выросли> & аренда")
        PropertyListingCRUD.create(db_session, {"external_id": "bds_1", "title": "Sun & Moon <Residence>"})
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("offline")

        digest = ChannelContentGenerator(db_session, enricher=MagicMock(), session=session).fallback_digest()

        assert "1. Цены &lt;выросли&gt; &amp; аренда" in digest
        assert "- Sun &amp; Moon &lt;Residence&gt;" in digest
        assert "<выросли>" not in digest


class TestChannelPublisher:
    """Tests for ChannelPublisher."""

    def test_publish_article_with_photo(self, db_session, telegram):
        article = store_article(db_session, "a", images=["https://img/a.jpg"])
        publisher = ChannelPublisher(db_session, client=telegram, content=MagicMock(), channel_id="@test_channel")

        result = publisher.publish_article(article.id)

        assert result["success"] is True
        channel, photo, caption = telegram.send_photo.call_args[0]
        assert (channel, photo) == ("@test_channel", "https://img/a.jpg")
        assert caption.startswith("📰 <b>Заголовок a</b>")
        assert NewsArticleCRUD.get_by_id(db_session, article.id).is_posted is True

    def test_publish_missing_article(self, db_session, telegram):
        publisher = ChannelPublisher(db_session, client=telegram, content=MagicMock())

        with pytest.raises(LookupError):
            publisher.publish_article(404)

    def test_auto_publish_picks_most_relevant(self, db_session, telegram):
        store_article(db_session, "low", relevance_score=55)
        best = store_article(db_session, "high", relevance_score=95)
        store_article(db_session, "unprocessed", relevance_score=100, is_processed=False)

        result = ChannelPublisher(db_session, client=telegram, content=MagicMock()).auto_publish()

        assert result["article_id"] == best.id
        assert result["title"] == "Заголовок high"
        telegram.send_message.assert_called_once()

    def test_auto_publish_nothing_pending(self, db_session, telegram):
        result = ChannelPublisher(db_session, client=telegram, content=MagicMock()).auto_publish()

        assert result == {"success": False, "message": "Нет новых статей для публикации"}

    def test_rejected_post_keeps_article_pending(self, db_session, telegram):
        article = store_article(db_session, "a")
        telegram.send_message.return_value = {"ok": False, "description": "Forbidden: bot is not a member"}

        with pytest.raises(PublishError, match="bot is not a member"):
            ChannelPublisher(db_session, client=telegram, content=MagicMock()).publish_article(article.id)

        assert NewsArticleCRUD.get_by_id(db_session, article.id).is_posted is False

    def test_morning_digest(self, db_session, telegram):
        content = MagicMock()
        content.generate.return_value = {"success": True, "content": "Доброе утро!", "ai_generated": True}

        result = ChannelPublisher(db_session, client=telegram, content=content).morning_digest()

        post = db_session.query(ChannelPost).one()
        assert result["post_id"] == post.id
        assert post.post_type == "morning_digest"
        assert post.status == "published"
        assert post.title.startswith("Утренний дайджест ")

    def test_morning_digest_send_failure(self, db_session, telegram):
        content = MagicMock()
        content.generate.return_value = {"success": True, "content": "Доброе утро!", "ai_generated": False}
        telegram.send_message.return_value = {"ok": False, "description": "chat not found"}

        with pytest.raises(PublishError):
            ChannelPublisher(db_session, client=telegram, content=content).morning_digest()
        assert db_session.query(ChannelPost).count() == 0

    def test_stats(self, db_session, telegram):
        store_article(db_session, "a")
        store_article(db_session, "b", is_posted=True)
        store_article(db_session, "c", is_processed=False)

        result = ChannelPublisher(db_session, client=telegram, content=MagicMock()).stats()

        assert result["stats"] == {"total": 3, "posted": 1, "pending": 1}
