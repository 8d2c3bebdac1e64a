"""FastAPI dependencies that build services on the request's session."""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..database.connection import get_db
from ..enrichment.ai_client import AIClient
from ..enrichment.enricher import Enricher
from ..etl.load import PropertyLoader
from ..etl.pipeline import IngestionPipeline
from ..news.content import ChannelContentGenerator
from ..news.publisher import ChannelPublisher
from ..news.service import NewsService
from ..telegram.client import TelegramClient
from ..telegram.handlers import BotHandler


def get_enricher(db: Session = Depends(get_db)) -> Enricher:
    return Enricher(AIClient(db=db))


def get_pipeline(db: Session = Depends(get_db), enricher: Enricher = Depends(get_enricher)) -> IngestionPipeline:
    return IngestionPipeline(db, enricher=enricher)


def get_loader(db: Session = Depends(get_db)) -> PropertyLoader:
    return PropertyLoader(db)


def get_news_service(db: Session = Depends(get_db), enricher: Enricher = Depends(get_enricher)) -> NewsService:
    return NewsService(db, enricher=enricher)


def get_telegram_client() -> TelegramClient:
    return TelegramClient()


def get_content_generator(db: Session = Depends(get_db),
                          enricher: Enricher = Depends(get_enricher)) -> ChannelContentGenerator:
    return ChannelContentGenerator(db, enricher=enricher)


def get_publisher(db: Session = Depends(get_db), client: TelegramClient = Depends(get_telegram_client),
                  content: ChannelContentGenerator = Depends(get_content_generator)) -> ChannelPublisher:
    return ChannelPublisher(db, client=client, content=content)


def get_bot(db: Session = Depends(get_db), client: TelegramClient = Depends(get_telegram_client),
            enricher: Enricher = Depends(get_enricher),
            pipeline: IngestionPipeline = Depends(get_pipeline)) -> BotHandler:
    return BotHandler(db, client=client, enricher=enricher, pipeline=pipeline)
