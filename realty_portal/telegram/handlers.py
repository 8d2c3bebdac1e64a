"""Webhook update handling for the property bot."""

import logging
from typing import Dict, Any, List, Optional, Iterable

from sqlalchemy.orm import Session

from ..config import settings
from ..database.crud import PropertyListingCRUD, SearchHistoryCRUD, UserPreferencesCRUD
from ..enrichment.ai_client import AIClient
from ..enrichment.enricher import Enricher
from ..etl.extractor import is_property_listing
from ..etl.pipeline import IngestionPipeline
from ..models.property_models import PropertyListing, Purpose
from .client import TelegramClient
from .formatting import format_listing, format_listing_detail, format_new_property

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 5
MONITORED_CHAT_TYPES = ("channel", "supergroup", "group")

BOT_COMMANDS = [
    {"command": "start", "description": "Main menu"},
    {"command": "search", "description": "Search properties"},
    {"command": "rent", "description": "View rental listings"},
    {"command": "districts", "description": "Popular districts"},
    {"command": "ask", "description": "Ask our real estate consultant"},
    {"command": "help", "description": "Get help"},
]

NOTIFICATION_EMOJI = {
    "new_listing": "🏠",
    "alert": "⚠️",
    "promo": "🎉",
}

WELCOME_TEXT = """🏠 <b>Welcome to Saigon Properties Bot!</b>

Hello {name}! I'm your real estate assistant for Ho Chi Minh City, Vietnam.

<b>What I can do:</b>
🔍 Search rental properties
📊 Get market insights
💰 Property valuations
📍 District information

<b>Commands:</b>
/search - Search properties
/rent - View rental listings
/districts - Popular districts
/ask - Ask our consultant
/help - Get help

Just type what you're looking for, like:
<i>"2 bedroom apartment in District 1"</i>
<i>"studio near Bitexco"</i>"""

MAIN_KEYBOARD = {
    "inline_keyboard": [
        [
            {"text": "🔍 Search Rentals", "callback_data": "search_rent"},
            {"text": "🏠 All Listings", "callback_data": "all_listings"},
        ],
        [
            {"text": "📍 Districts", "callback_data": "districts"},
            {"text": "📊 Market Info", "callback_data": "market_info"},
        ],
    ]
}

BACK_BUTTON = [{"text": "🔙 Back", "callback_data": "back_main"}]

SEARCH_PROMPT = """🔍 <b>Property Search</b>

Type what you're looking for:
• Location (District 1, Thao Dien, etc.)
• Property type (apartment, villa, studio)
• Number of bedrooms"""

SEARCH_EXAMPLES = """🔍 <b>Property Search</b>

What are you looking for? Type your search:

Examples:
• <i>apartment District 2</i>
• <i>3 bedroom villa Thao Dien</i>
• <i>studio near center</i>"""

NO_RESULTS_TEXT = """❌ <b>No properties found</b>

Try different search terms like:
• "apartment District 1"
• "2 bedroom Thao Dien"
• "studio near center\""""

DISTRICTS_TEXT = """📍 <b>Popular Districts in Ho Chi Minh City</b>

🏙 <b>District 1</b> - City center, business hub
🌿 <b>District 2 (Thu Duc)</b> - Expat area, Thao Dien
🏢 <b>District 3</b> - Central, good restaurants
🎭 <b>District 7</b> - Phu My Hung, modern area
🏫 <b>Binh Thanh</b> - Near center, affordable

Select a district to search:"""

DISTRICTS_KEYBOARD = {
    "inline_keyboard": [
        [
            {"text": "District 1", "callback_data": "district_1"},
            {"text": "District 2", "callback_data": "district_2"},
        ],
        [
            {"text": "District 3", "callback_data": "district_3"},
            {"text": "District 7", "callback_data": "district_7"},
        ],
        BACK_BUTTON,
    ]
}

MARKET_TEXT = """📊 <b>Ho Chi Minh City Market Overview</b>

🏠 <b>Rental Market:</b>
• Studio: 8-15M VND/month
• 1BR: 12-25M VND/month
• 2BR: 18-40M VND/month
• 3BR: 30-80M VND/month

📈 <b>Trends:</b>
• High demand in District 2, 7
• Growing expat community
• New developments in Thu Duc

💡 <b>Tips:</b>
• Negotiate for long-term leases
• Check included utilities
• Visit during different times"""

CONTACT_TEXT = """📞 <b>Contact Our Team</b>

🌐 Website: saigon-properties.vn
📧 Email: info@saigonproperties.vn

Our agents speak:
🇻🇳 Vietnamese
🇬🇧 English
🇷🇺 Russian"""

ASK_PROMPT = "💬 Напишите вопрос после команды, например:\n<i>/ask Какой район лучше для семьи?</i>"
ASK_FALLBACK = "Извините, не смог обработать ваш запрос. Попробуйте позже."


class BotHandler:
    """Dispatches Telegram updates to commands, searches and auto-import.

    Private chats get the interactive bot. Posts in monitored channels and
    groups that look like listings are imported into property_listings.
    """

    def __init__(self, db: Session, client: Optional[TelegramClient] = None,
                 enricher: Optional[Enricher] = None, pipeline: Optional[IngestionPipeline] = None,
                 monitored_chats: Optional[Iterable[int]] = None):
        self.db = db
        self.client = client or TelegramClient()
        self.enricher = enricher or Enricher(AIClient(db=db))
        self.pipeline = pipeline or IngestionPipeline(db, enricher=self.enricher)
        self.monitored_chats = set(
            monitored_chats if monitored_chats is not None else settings.telegram.monitored_chats
        )

    def handle_update(self, update: Dict[str, Any]) -> None:
        """Handle one webhook update."""
        if update.get("callback_query"):
            self.handle_callback(update["callback_query"])
            return

        message = update.get("message") or update.get("channel_post")
        if message:
            self.handle_message(message)

    def handle_message(self, message: Dict[str, Any]) -> None:
        chat = message.get("chat") or {}
        chat_id = chat.get("id")
        chat_type = chat.get("type")
        text = message.get("text") or message.get("caption") or ""

        logger.info(f"Received message in {chat_type} chat {chat_id} ({len(text)} chars)")

        if chat_type in MONITORED_CHAT_TYPES:
            if chat_id in self.monitored_chats and is_property_listing(text):
                self.auto_import(text, chat_id, message.get("message_id"), chat.get("title"))
            return

        if chat_type != "private" or not text:
            return

        name = (message.get("from") or {}).get("first_name") or "User"
        command, _, argument = text.partition(" ")
        command = command.split("@")[0].lower()

        if command in ("/start", "/help"):
            self.send_welcome(chat_id, name)
        elif command in ("/search", "/rent"):
            self.client.send_message(chat_id, SEARCH_PROMPT)
        elif command == "/districts":
            self.client.send_message(chat_id, DISTRICTS_TEXT, reply_markup=DISTRICTS_KEYBOARD)
        elif command == "/ask":
            self.ask(chat_id, argument.strip())
        else:
            self.search(chat_id, text.strip())

    def send_welcome(self, chat_id: int, name: str = "User") -> None:
        self.client.send_message(chat_id, WELCOME_TEXT.format(name=name), reply_markup=MAIN_KEYBOARD)
        UserPreferencesCRUD.upsert(self.db, chat_id, language="en", preferred_areas=["hcmc"])

    def search(self, chat_id: int, query: str, district: Optional[str] = None) -> List[PropertyListing]:
        """Search rentals, reply with the results and record the search.

        With ``district`` the listings are filtered by district number and
        ``query`` is only recorded in the search history.
        """
        self.client.send_message(chat_id, "🔍 Searching properties...")

        filters = {"purpose": Purpose.FOR_RENT.value}
        if district:
            filters["district"] = district
        listings = PropertyListingCRUD.search(self.db, None if district else query,
                                              limit=SEARCH_LIMIT, **filters)
        SearchHistoryCRUD.create(self.db, chat_id, query, len(listings), filters)

        if not listings:
            self.client.send_message(chat_id, NO_RESULTS_TEXT, reply_markup={
                "inline_keyboard": [[{"text": "🔄 Try Again", "callback_data": "search_rent"}]]
            })
            return listings

        text = f"✅ <b>Found {len(listings)} properties:</b>\n"
        text += "".join(format_listing(listing, index) for index, listing in enumerate(listings, 1))

        # Buttons carry the database id so they keep working after a restart
        buttons = [
            {"text": f"📋 #{index}", "callback_data": f"detail_{listing.id}"}
            for index, listing in enumerate(listings, 1)
        ]
        self.client.send_message(chat_id, text, reply_markup={
            "inline_keyboard": [buttons, [{"text": "🔍 New Search", "callback_data": "search_rent"}]]
        })
        return listings

    def ask(self, chat_id: int, question: str) -> None:
        if not question:
            self.client.send_message(chat_id, ASK_PROMPT)
            return

        answer = self.enricher.consult(question)
        self.client.send_message(chat_id, answer or ASK_FALLBACK)

    def handle_callback(self, callback_query: Dict[str, Any]) -> None:
        message = callback_query.get("message") or {}
        chat_id = (message.get("chat") or {}).get("id")
        data = callback_query.get("data") or ""

        self.client.answer_callback_query(callback_query.get("id"))
        if message.get("message_id"):
            self.client.delete_message(chat_id, message["message_id"])

        if data == "search_rent":
            self.client.send_message(chat_id, SEARCH_EXAMPLES)
        elif data == "all_listings":
            self.search(chat_id, "")
        elif data == "districts":
            self.client.send_message(chat_id, DISTRICTS_TEXT, reply_markup=DISTRICTS_KEYBOARD)
        elif data == "market_info":
            self.client.send_message(chat_id, MARKET_TEXT, reply_markup={
                "inline_keyboard": [[{"text": "🔍 Search Now", "callback_data": "search_rent"}], BACK_BUTTON]
            })
        elif data.startswith("district_"):
            number = data[len("district_"):]
            self.search(chat_id, f"District {number}", district=number)
        elif data.startswith("detail_"):
            self.send_detail(chat_id, data[len("detail_"):])
        elif data == "contact_agent":
            self.client.send_message(chat_id, CONTACT_TEXT, reply_markup={"inline_keyboard": [BACK_BUTTON]})
        elif data == "back_main":
            self.send_welcome(chat_id)
        else:
            logger.warning(f"Unknown callback data: {data}")

    def send_detail(self, chat_id: int, listing_id: str) -> None:
        try:
            listing = PropertyListingCRUD.get_by_id(self.db, int(listing_id))
        except ValueError:
            listing = None

        if listing is None:
            self.client.send_message(chat_id, "❌ This listing is no longer available.",
                                     reply_markup={"inline_keyboard": [BACK_BUTTON]})
            return

        self.client.send_message(chat_id, format_listing_detail(listing), reply_markup={
            "inline_keyboard": [
                [{"text": "📞 Contact Agent", "callback_data": "contact_agent"}],
                [{"text": "🔍 More Properties", "callback_data": "search_rent"}],
                BACK_BUTTON,
            ]
        })

    def auto_import(self, text: str, chat_id: int, message_id: int,
                    chat_title: Optional[str] = None) -> Optional[PropertyListing]:
        """Import a listing posted in a monitored chat and mark the post with a reaction."""
        logger.info(f"Auto-importing property from chat {chat_id}")

        listing = self.pipeline.import_chat_message(text, chat_id, message_id, chat_title)
        if listing is None:
            return None

        logger.info(f"Auto-imported property {listing.id}: {listing.title}")
        self.client.set_message_reaction(chat_id, message_id, "✅")
        return listing

    def notify_group(self, message: str, notification_type: str = "info") -> Dict[str, Any]:
        emoji = NOTIFICATION_EMOJI.get(notification_type, "ℹ️")
        return self._send_to_group(f"{emoji} <b>Saigon Properties</b>\n\n{message}")

    def notify_new_property(self, listing: Any) -> Dict[str, Any]:
        return self._send_to_group(format_new_property(listing))

    def _send_to_group(self, text: str) -> Dict[str, Any]:
        group_chat_id = settings.telegram.group_chat_id
        if not group_chat_id:
            logger.error("TELEGRAM_GROUP_CHAT_ID not configured")
            return {"ok": False, "description": "TELEGRAM_GROUP_CHAT_ID not configured"}
        return self.client.send_message(group_chat_id, text)

    def setup(self, webhook_url: Optional[str] = None) -> Dict[str, Any]:
        """Register bot commands and, when a URL is known, the webhook."""
        result: Dict[str, Any] = {"commands": self.client.set_my_commands(BOT_COMMANDS)}

        webhook_url = webhook_url or settings.telegram.webhook_url
        if webhook_url:
            result["webhook"] = self.client.set_webhook(webhook_url, settings.telegram.webhook_secret)
        return result
