"""News routes: VNExpress ingestion and channel publishing."""

from typing import Optional
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..dependencies import get_news_service, get_publisher, get_content_generator
from ..errors import error_response
from ...news.content import ChannelContentGenerator
from ...news.publisher import ChannelPublisher
from ...news.service import NewsService

logger = logging.getLogger(__name__)

router = APIRouter()


class NewsRequest(BaseModel):
    action: str = "fetch_and_translate"
    category: Optional[str] = None
    translate: bool = True
    limit: int = Field(default=5, ge=1, le=50)
    article_id: Optional[int] = None


class PublishRequest(BaseModel):
    action: str
    article_id: Optional[int] = None


class ContentRequest(BaseModel):
    post_type: str
    district: Optional[str] = None


@router.post("")
def news(request: NewsRequest, service: NewsService = Depends(get_news_service)):
    """Fetch feeds, list stored articles or translate one article.

    Args:
        request: ``fetch_and_translate``, ``get_articles`` or ``translate_article``
        service: News service

    Returns:
        dict: Action result
    """
    if request.action == "fetch_and_translate":
        return service.fetch_and_translate(request.category, translate=request.translate, limit=request.limit)

    if request.action == "get_articles":
        return {"success": True, "articles": service.get_articles(request.limit)}

    if request.action == "translate_article":
        if request.article_id is None:
            return error_response(400, "article_id is required")
        try:
            return {"success": True, "article": service.translate_article(request.article_id)}
        except LookupError as e:
            return error_response(404, str(e))

    return error_response(400, f"Unknown action: {request.action}")


@router.post("/publish")
def publish(request: PublishRequest, publisher: ChannelPublisher = Depends(get_publisher)):
    """Publish to the Telegram channel or report publishing stats."""
    if request.action == "publish_article":
        if request.article_id is None:
            return error_response(400, "article_id is required")
        try:
            return publisher.publish_article(request.article_id)
        except LookupError as e:
            return error_response(404, str(e))

    if request.action == "auto_publish":
        return publisher.auto_publish()

    if request.action == "morning_digest":
        return publisher.morning_digest()

    if request.action == "stats":
        return publisher.stats()

    return error_response(400, f"Unknown action: {request.action}")


@router.post("/content")
def generate_content(request: ContentRequest,
                     generator: ChannelContentGenerator = Depends(get_content_generator)):
    """Write a channel post without publishing it."""
    try:
        result = generator.generate(request.post_type, request.district)
    except ValueError as e:
        return error_response(400, str(e))

    if not result["success"]:
        return error_response(500, result["error"])
    return result
