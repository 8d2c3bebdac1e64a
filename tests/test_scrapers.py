"""Tests for the portal, Telegram, website, batdongsan and RSS scrapers."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
import requests

from realty_portal.models.property_models import ExtractedProperty
from realty_portal.scrapers import (
    BatdongsanScraper,
    DubizzleScraper,
    FetchError,
    PropertyFinderScraper,
    RSSScraper,
    TelegramChannelScraper,
    WebsiteScraper,
)

PROPERTYFINDER_PAGE = """
<html><body>
  <div data-testid="property-card">
    <a href="/en/plp/rent/apartment-for-rent-dubai-marina-123.html">
      <h2>Luxury 2BR in Marina Gate</h2>
    </a>
    <p class="price">AED 120,000 yearly</p>
    <p class="location">Marina Gate, Dubai Marina</p>
    <span class="beds">2 Beds</span>
    <span class="baths">3 Baths</span>
    <span class="area">1,250 sqft</span>
    <img src="https://static.propertyfinder.ae/1.jpg">
    <img src="/placeholder.svg">
  </div>
  <div class="property-card"><h2>Studio in JVC</h2><p class="price">AED 45,000</p></div>
</body></html>
"""

DUBIZZLE_PAGE = """
<div class="listing-item">
  <h3>Villa in Springs</h3>
  <div class="price">AED 180,000</div>
  <div class="listing-details">3 beds · 2 baths · 2,400 sqft</div>
</div>
"""

TELEGRAM_PAGE = """
<html><body>
  <div class="tgme_widget_message" data-post="dubai_rentals/101">
    <a class="tgme_widget_message_photo_wrap"
       style="width:100%;background-image:url('https://cdn4.telesco.pe/file/abc.jpg')"></a>
    <div class="tgme_widget_message_text">🏢 Studio for rent in Dubai Marina<br/>💰 Price: 45,000 AED<br/>📞 Contact: +971 50 123 4567</div>
  </div>
  <div class="tgme_widget_message" data-post="dubai_rentals/102">
    <div class="tgme_widget_message_text">Good morning everyone!</div>
  </div>
  <div class="tgme_widget_message" data-post="dubai_rentals/103">
    <a class="tgme_widget_message_photo_wrap" style="background-image:url('https://cdn4.telesco.pe/file/def.jpg')"></a>
  </div>
</body></html>
"""

WEBSITE_PAGE = """
<html><head><script>var banner = 'Villa for sale 9,999,999 AED';</script></head>
<body>
  <h1>Featured listings</h1>
  <div>Apartment for rent in Dubai Marina with sea view, 2 BR, 1,100 sqft, fully furnished,
  chiller free, price 95,000 AED per year, call +971 50 123 4567 today</div>
  <div>Villa nice</div>
</body></html>
"""

BATDONGSAN_DISTRICT_PAGE = """
<a href="/cho-thue-can-ho-chung-cu-duong-nguyen-huu-tho-prj-sunrise-city/can-ho-2pn-view-song-pr12345">A</a>
<a href="/cho-thue-can-ho-chung-cu-duong-nguyen-huu-tho-prj-sunrise-city/can-ho-2pn-view-song-pr12345#photos">A again</a>
<a href="/ban-can-ho-chung-cu-quan-7/can-ho-ban-pr999">Sale</a>
<a href="https://example.com/cho-thue-pr1">Elsewhere</a>
<a href="/tin-tuc">News</a>
"""

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
<channel>
  <title>VnExpress</title>
  <item>
    <title>Giá thuê căn hộ tăng</title>
    <link>https://vnexpress.net/gia-thue-can-ho-tang-123.html</link>
    <description><![CDATA[<a href="https://vnexpress.net/gia-thue-can-ho-tang-123.html"><img src="https://i1-vnexpress.vnecdn.net/a.jpg"></a>Giá thuê căn hộ tại TP HCM tăng 10%]]></description>
    <pubDate>Mon, 14 Oct 2024 08:30:00 +0700</pubDate>
  </item>
  <item>
    <title></title>
    <link>https://vnexpress.net/untitled.html</link>
  </item>
</channel>
</rss>
"""


class TestPortalScrapers:
    """Tests for PropertyFinder and Dubizzle card parsing."""

    def test_propertyfinder_cards(self, fast_limiter, html_session):
        session = html_session(PROPERTYFINDER_PAGE)
        scraper = PropertyFinderScraper(rate_limiter=fast_limiter, session=session)

        properties = scraper.scrape({"location": "Dubai", "property_type": "Apartment", "limit": 5})

        assert session.get.call_args[0][0] == "https://www.propertyfinder.ae/property-for-rent/dubai/residential/"
        assert len(properties) == 2

        first = properties[0]
        assert first.title == "Luxury 2BR in Marina Gate"
        assert first.price == 120000
        assert first.location_area == "Marina Gate, Dubai Marina"
        assert first.bedrooms == 2
        assert first.bathrooms == 3
        assert first.area_sqft == 1250
        assert first.purpose == "for-rent"
        assert first.images == ["https://static.propertyfinder.ae/1.jpg"]
        assert first.external_id == "https://www.propertyfinder.ae/en/plp/rent/apartment-for-rent-dubai-marina-123.html"

        # No link on the second card
        assert properties[1].external_id.startswith("PF-")
        assert properties[1].location_area == "Dubai"

    def test_limit(self, fast_limiter, html_session):
        scraper = PropertyFinderScraper(rate_limiter=fast_limiter, session=html_session(PROPERTYFINDER_PAGE))
        assert len(scraper.scrape({"limit": 1})) == 1

    def test_dubizzle_card(self, fast_limiter, html_session):
        session = html_session(DUBIZZLE_PAGE)
        scraper = DubizzleScraper(rate_limiter=fast_limiter, session=session)

        properties = scraper.scrape({"purpose": "for-sale", "property_type": "Villa"})

        assert session.get.call_args[0][0] == "https://dubai.dubizzle.com/property-for-sale/residential/villa/"
        record = properties[0]
        assert record.title == "Villa in Springs"
        assert record.price == 180000
        assert (record.bedrooms, record.bathrooms, record.area_sqft) == (3, 2, 2400)
        assert record.purpose == "for-sale"
        assert record.external_id.startswith("DB-")

    def test_http_error(self, fast_limiter, html_session):
        scraper = PropertyFinderScraper(rate_limiter=fast_limiter, session=html_session("", status_code=503))

        with pytest.raises(FetchError) as exc_info:
            scraper.scrape({})
        assert exc_info.value.status == 503

    def test_network_error(self, fast_limiter):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("connection refused")
        scraper = PropertyFinderScraper(rate_limiter=fast_limiter, session=session)

        with pytest.raises(FetchError) as exc_info:
            scraper.scrape({})
        assert exc_info.value.status is None
        assert "connection refused" in str(exc_info.value)


class TestTelegramChannelScraper:
    """Tests for the t.me preview scraper."""

    def test_extracts_listing_posts(self, fast_limiter, html_session):
        session = html_session(TELEGRAM_PAGE)
        scraper = TelegramChannelScraper(rate_limiter=fast_limiter, session=session)

        properties = scraper.scrape("@dubai_rentals")

        assert session.get.call_args[0][0] == "https://t.me/s/dubai_rentals"
        assert len(properties) == 1

        record = properties[0]
        assert record.external_id == "tg_dubai_rentals_101"
        assert record.source_url == "https://t.me/dubai_rentals/101"
        assert record.price == 45000
        assert record.location_area == "Dubai Marina"
        assert record.images == ["https://cdn4.telesco.pe/file/abc.jpg"]


class TestWebsiteScraper:
    """Tests for the generic website scraper."""

    def test_scrape_sections(self, fast_limiter, html_session):
        scraper = WebsiteScraper(rate_limiter=fast_limiter, session=html_session(WEBSITE_PAGE))

        properties = scraper.scrape("https://agency.example.com/listings")

        assert len(properties) == 1
        record = properties[0]
        assert record.price == 95000
        assert record.bedrooms == 2
        assert record.location_area == "Dubai Marina"
        assert record.source_url == "https://agency.example.com/listings"
        assert record.external_id.startswith("web_")

    def test_same_section_gives_same_id(self, fast_limiter):
        scraper = WebsiteScraper(rate_limiter=fast_limiter, session=MagicMock())
        text = ("Studio for rent in JLT, 45,000 AED per year, close to the metro station and lake, "
                "pool and gym, fully furnished with a balcony, call now")

        first = scraper.extract_sections(text, "https://a.example.com")
        second = scraper.extract_sections(text, "https://a.example.com")

        assert first[0].external_id == second[0].external_id


def parse_vietnamese(text, url):
    if "pr12345" not in url:
        return None
    return ExtractedProperty(title="Cho thuê căn hộ 2PN Quận 7 view sông", price=15000000)


class TestBatdongsanScraper:
    """Tests for BatdongsanScraper."""

    def test_district_links(self, fast_limiter, html_session):
        session = html_session(BATDONGSAN_DISTRICT_PAGE)
        scraper = BatdongsanScraper(parse_vietnamese, rate_limiter=fast_limiter, session=session)

        links = scraper.district_links("district-7")

        assert session.get.call_args[0][0] == "https://batdongsan.com.vn/cho-thue-can-ho-chung-cu-quan-7"
        assert links == [
            "https://batdongsan.com.vn/cho-thue-can-ho-chung-cu-duong-nguyen-huu-tho-prj-sunrise-city/can-ho-2pn-view-song-pr12345"
        ]

    def test_unknown_district(self, fast_limiter):
        scraper = BatdongsanScraper(parse_vietnamese, rate_limiter=fast_limiter, session=MagicMock())

        with pytest.raises(ValueError):
            scraper.district_links("district-99")

    def test_scrape_listing(self, fast_limiter, html_session):
        url = "https://batdongsan.com.vn/cho-thue-can-ho-chung-cu-quan-7/can-ho-pr12345"
        scraper = BatdongsanScraper(parse_vietnamese, rate_limiter=fast_limiter,
                                    session=html_session("<html><body>Căn hộ 2PN</body></html>"))

        record = scraper.scrape_listing(url)

        assert record.external_id == url
        assert record.district == "7"
        assert record.price_currency == "VND"
        assert record.purpose == "for-rent"
        assert record.location_city == "Ho Chi Minh City"

    def test_parser_rejects_page(self, fast_limiter, html_session):
        scraper = BatdongsanScraper(parse_vietnamese, rate_limiter=fast_limiter, session=html_session("<html></html>"))
        assert scraper.scrape_listing("https://batdongsan.com.vn/x-pr1") is None


class TestRSSScraper:
    """Tests for RSS parsing."""

    def test_parse_feed(self, fast_limiter, html_session):
        scraper = RSSScraper(rate_limiter=fast_limiter, session=html_session(RSS_FEED))

        items = scraper.scrape("https://vnexpress.net/rss/bat-dong-san.rss")

        assert len(items) == 1
        item = items[0]
        assert item.title == "Giá thuê căn hộ tăng"
        assert item.link == "https://vnexpress.net/gia-thue-can-ho-tang-123.html"
        assert item.description == "Giá thuê căn hộ tại TP HCM tăng 10%"
        assert item.images == ["https://i1-vnexpress.vnecdn.net/a.jpg"]
        assert item.published == datetime(2024, 10, 14, 1, 30)

    def test_garbage_feed(self, fast_limiter):
        scraper = RSSScraper(rate_limiter=fast_limiter, session=MagicMock())
        assert scraper.parse_feed("not a feed at all") == []
