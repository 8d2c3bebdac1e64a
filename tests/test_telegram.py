"""Tests for the Telegram client, message formatting and the bot handler."""

from unittest.mock import MagicMock

import pytest
import requests

from conftest import make_response
from realty_portal.config import settings
from realty_portal.database.crud import PropertyListingCRUD, UserPreferencesCRUD
from realty_portal.enrichment import AIClient, Enricher
from realty_portal.etl.pipeline import IngestionPipeline
from realty_portal.models.bot_models import SearchHistory
from realty_portal.models.news_models import NewsArticle
from realty_portal.telegram import BotHandler, TelegramClient, format_listing, format_news_post, format_price
from realty_portal.telegram.handlers import ASK_FALLBACK, ASK_PROMPT, BOT_COMMANDS

CHAT_POST = ("Apartment for rent in District 7, 2 bedrooms, 70 m2, price 15 million VND per month, "
             "call 0901234567")
CHANNEL_ID = -100123


def private_message(text, chat_id=42):
    return {"message": {
        "message_id": 1,
        "chat": {"id": chat_id, "type": "private"},
        "from": {"id": chat_id, "first_name": "Linh"},
        "text": text,
    }}


def channel_post(text, chat_id=CHANNEL_ID, message_id=55):
    return {"channel_post": {
        "message_id": message_id,
        "chat": {"id": chat_id, "type": "channel", "title": "Saigon Rent"},
        "text": text,
    }}


def sent_texts(client):
    return [call.args[1] for call in client.send_message.call_args_list]


class TestTelegramClient:
    """Tests for TelegramClient."""

    def test_without_token(self):
        session = MagicMock()
        client = TelegramClient(token="", session=session)

        result = client.send_message(1, "hi")

        assert result == {"ok": False, "description": "TELEGRAM_BOT_TOKEN not configured"}
        session.post.assert_not_called()

    def test_send_message(self):
        session = MagicMock()
        session.post.return_value = make_response(json_data={"ok": True, "result": {"message_id": 7}})
        client = TelegramClient(token="123:abc", session=session)

        result = client.send_message(42, "x" * 5000)

        assert result["ok"] is True
        url = session.post.call_args.args[0]
        payload = session.post.call_args.kwargs["json"]
        assert url == "https://api.telegram.org/bot123:abc/sendMessage"
        assert len(payload["text"]) == 4096
        assert payload["parse_mode"] == "HTML"

    def test_send_photo_falls_back_to_text(self):
        session = MagicMock()
        session.post.side_effect = [
            make_response(json_data={"ok": False, "description": "Bad Request: wrong file identifier"}),
            make_response(json_data={"ok": True, "result": {"message_id": 8}}),
        ]
        client = TelegramClient(token="123:abc", session=session)

        result = client.send_photo("@channel", "https://img/a.jpg", "caption")

        assert result["ok"] is True
        assert session.post.call_args_list[1].args[0].endswith("/sendMessage")
        assert session.post.call_args_list[1].kwargs["json"]["text"] == "caption"

    def test_non_json_response(self):
        session = MagicMock()
        session.post.return_value = make_response("Bad Gateway", status_code=502)

        result = TelegramClient(token="123:abc", session=session).get_me()

        assert result == {"ok": False, "description": "HTTP 502"}

    def test_network_error(self):
        session = MagicMock()
        session.post.side_effect = requests.Timeout("timed out")

        result = TelegramClient(token="123:abc", session=session).get_webhook_info()

        assert result["ok"] is False
        assert "timed out" in result["description"]


class TestFormatting:
    """Tests for message templates."""

    @pytest.mark.parametrize("price, currency, expected", [
        (15000000, "VND", "15.000.000 VND"),
        (45000, "AED", "45,000 AED"),
        (None, "VND", "Price on request"),
        ("negotiable", "VND", "negotiable VND"),
    ])
    def test_format_price(self, price, currency, expected):
        assert format_price(price, currency) == expected

    def test_format_listing(self):
        text = format_listing({
            "id": 3, "title": "Sun & Moon <Residence>", "price": 15000000,
            "price_currency": "VND", "area_sqft": 70.0, "bedrooms": 2,
        }, 1)

        assert "<b>1. Sun &amp; Moon &lt;Residence&gt;</b>" in text
        assert "15.000.000 VND" in text
        assert "70 m²" in text
        assert "🚿 <b>Bathrooms:</b> N/A" in text
        assert "ID: <code>3</code>" in text

    def test_format_news_post(self):
        article = NewsArticle(
            original_title="Tin mới",
            translated_title="<Новости> дня",
            translated_content="а" * 1000,
            original_url="https://vnexpress.net/x.html",
            images=["https://img/x.jpg"],
        )

        text, photo = format_news_post(article)

        assert text.startswith("📰 <b>&lt;Новости&gt; дня</b>\n\n")
        assert "а" * 900 + "...\n\n" in text
        assert "а" * 901 not in text
        assert "🔗 https://vnexpress.net/x.html" in text
        assert text.endswith("#новости #вьетнам #сайгон")
        assert photo == "https://img/x.jpg"


@pytest.fixture
def client():
    client = MagicMock()
    client.send_message.return_value = {"ok": True}
    return client


@pytest.fixture
def handler(db_session, client, fast_limiter):
    enricher = Enricher(AIClient(api_key="", session=MagicMock(), rate_limiter=fast_limiter))
    return BotHandler(
        db_session,
        client=client,
        enricher=enricher,
        pipeline=IngestionPipeline(db_session, enricher=enricher),
        monitored_chats=[CHANNEL_ID],
    )


@pytest.fixture
def listings(db_session):
    rental = PropertyListingCRUD.create(db_session, {
        "external_id": "bds_1", "title": "Sunrise City 2BR", "location_area": "District 7",
        "purpose": "for-rent", "price": 15000000, "price_currency": "VND", "bedrooms": 2,
    })
    sale = PropertyListingCRUD.create(db_session, {
        "external_id": "bds_2", "title": "Sunrise City penthouse", "location_area": "District 7",
        "purpose": "for-sale", "price": 9000000000, "price_currency": "VND",
    })
    return rental, sale


class TestBotCommands:
    """Tests for private chat handling."""

    def test_start(self, handler, client, db_session):
        handler.handle_update(private_message("/start"))

        chat_id, text = client.send_message.call_args.args
        assert chat_id == 42
        assert "Hello Linh!" in text
        assert client.send_message.call_args.kwargs["reply_markup"]["inline_keyboard"][0][0]["callback_data"] == "search_rent"

        prefs = UserPreferencesCRUD.get(db_session, 42)
        assert prefs.preferred_areas == ["hcmc"]
        assert prefs.language == "en"

    def test_command_with_bot_name(self, handler, client):
        handler.handle_update(private_message("/search@saigon_realty_bot"))
        assert "Property Search" in sent_texts(client)[0]

    def test_free_text_search(self, handler, client, db_session, listings):
        rental, _ = listings

        handler.handle_update(private_message("District 7"))

        assert sent_texts(client)[0] == "🔍 Searching properties..."
        markup = client.send_message.call_args.kwargs["reply_markup"]
        assert markup["inline_keyboard"][0][0]["callback_data"] == f"detail_{rental.id}"
        assert "Found 1 properties" in client.send_message.call_args.args[1]

        history = db_session.query(SearchHistory).all()
        assert history[0].search_query == "District 7"
        assert history[0].results_count == 1
        assert history[0].search_filters == {"purpose": "for-rent"}

    def test_search_without_results(self, handler, client):
        assert handler.search(42, "Nha Trang") == []
        assert "No properties found" in sent_texts(client)[-1]

    def test_ask(self, handler, client):
        handler.enricher = MagicMock()
        handler.enricher.consult.return_value = "Thao Dien подходит для семей."

        handler.handle_update(private_message("/ask Какой район лучше для семьи?"))

        handler.enricher.consult.assert_called_once_with("Какой район лучше для семьи?")
        assert sent_texts(client) == ["Thao Dien подходит для семей."]

    def test_ask_without_question(self, handler, client):
        handler.handle_update(private_message("/ask"))
        assert sent_texts(client) == [ASK_PROMPT]

    def test_ask_when_consultant_unavailable(self, handler, client):
        handler.handle_update(private_message("/ask Где жить?"))
        assert sent_texts(client) == [ASK_FALLBACK]


class TestBotCallbacks:
    """Tests for inline keyboard callbacks."""

    def test_detail(self, handler, client, listings):
        rental, _ = listings

        handler.handle_update({"callback_query": {
            "id": "cb1",
            "data": f"detail_{rental.id}",
            "message": {"message_id": 9, "chat": {"id": 42}},
        }})

        client.answer_callback_query.assert_called_once_with("cb1")
        client.delete_message.assert_called_once_with(42, 9)
        assert "🏠 <b>Sunrise City 2BR</b>" in sent_texts(client)[0]

    def test_missing_listing(self, handler, client):
        handler.handle_callback({"id": "cb2", "data": "detail_999", "message": {"chat": {"id": 42}}})

        assert sent_texts(client) == ["❌ This listing is no longer available."]
        client.delete_message.assert_not_called()

    def test_district_button_searches(self, handler, client, db_session, listings):
        rental, _ = listings
        vietnamese = PropertyListingCRUD.create(db_session, {
            "external_id": "bds_3", "title": "Cho thuê căn hộ Quận 7", "district": "7", "purpose": "for-rent",
        })
        PropertyListingCRUD.create(db_session, {
            "external_id": "bds_4", "title": "Apartment in District 1", "district": "1",
            "location_area": "District 1", "purpose": "for-rent",
        })

        handler.handle_callback({"id": "cb3", "data": "district_7", "message": {"chat": {"id": 42}}})

        assert "Found 2 properties" in sent_texts(client)[-1]
        assert "Apartment in District 1" not in sent_texts(client)[-1]
        buttons = client.send_message.call_args.kwargs["reply_markup"]["inline_keyboard"][0]
        assert {button["callback_data"] for button in buttons} == {f"detail_{rental.id}", f"detail_{vietnamese.id}"}

        history = db_session.query(SearchHistory).one()
        assert history.search_query == "District 7"
        assert history.search_filters == {"purpose": "for-rent", "district": "7"}

    def test_unknown_callback(self, handler, client):
        handler.handle_callback({"id": "cb4", "data": "teleport", "message": {"chat": {"id": 42}}})
        client.send_message.assert_not_called()


class TestAutoImport:
    """Tests for listing import from monitored chats."""

    def test_monitored_channel_post(self, handler, client, db_session):
        handler.handle_update(channel_post(CHAT_POST))
        handler.handle_update(channel_post(CHAT_POST))

        listing = PropertyListingCRUD.get_by_external_id(db_session, f"tg_{CHANNEL_ID}_55")
        assert listing.source_name == "Saigon Rent"
        client.set_message_reaction.assert_called_once_with(CHANNEL_ID, 55, "✅")
        client.send_message.assert_not_called()

    def test_unmonitored_chat(self, handler, client, db_session):
        handler.handle_update(channel_post(CHAT_POST, chat_id=-100999))

        assert PropertyListingCRUD.count(db_session) == 0
        client.set_message_reaction.assert_not_called()

    def test_chatter_is_ignored(self, handler, db_session):
        handler.handle_update(channel_post("Good morning everyone, the weather is lovely in Saigon today!"))
        assert PropertyListingCRUD.count(db_session) == 0


class TestNotifications:
    """Tests for group notifications and bot setup."""

    def test_group_not_configured(self, handler, client, monkeypatch):
        monkeypatch.setattr(settings.telegram, "group_chat_id", None)

        result = handler.notify_group("Hello")

        assert result == {"ok": False, "description": "TELEGRAM_GROUP_CHAT_ID not configured"}
        client.send_message.assert_not_called()

    def test_notify_group(self, handler, client, monkeypatch):
        monkeypatch.setattr(settings.telegram, "group_chat_id", "-100777")

        handler.notify_group("Two new listings today", "new_listing")

        client.send_message.assert_called_once_with("-100777", "🏠 <b>Saigon Properties</b>\n\nTwo new listings today")

    def test_notify_new_property(self, handler, client, monkeypatch):
        monkeypatch.setattr(settings.telegram, "group_chat_id", "-100777")

        handler.notify_new_property({"title": "Vinhomes 1BR", "price": 12000000, "price_currency": "VND"})

        text = client.send_message.call_args.args[1]
        assert text.startswith("🆕 <b>New Property Listed!</b>")
        assert "12.000.000 VND" in text

    def test_setup(self, handler, client, monkeypatch):
        monkeypatch.setattr(settings.telegram, "webhook_url", None)
        monkeypatch.setattr(settings.telegram, "webhook_secret", "s3cret")

        assert "webhook" not in handler.setup()
        client.set_my_commands.assert_called_with(BOT_COMMANDS)

        result = handler.setup("https://api.example.com/api/v1/telegram/webhook")

        assert "webhook" in result
        client.set_webhook.assert_called_once_with("https://api.example.com/api/v1/telegram/webhook", "s3cret")
