"""VNExpress news ingestion and Telegram channel publishing."""

from .service import NewsService
from .content import ChannelContentGenerator, POST_TYPES
from .publisher import ChannelPublisher, PublishError

__all__ = [
    "NewsService",
    "ChannelContentGenerator",
    "ChannelPublisher",
    "PublishError",
    "POST_TYPES",
]
