"""
API dependencies for dependency injection
"""

from functools import lru_cache
from typing import Generator, Optional
from sqlalchemy.orm import Session

from domain.models import get_db_session
from app.config import settings
from adapters.email_adapter import build_notifier
from adapters.llm_adapter import CompletionService, build_completion_service
from services.freshness_service import FreshnessOracle
from services.notification_service import NotificationPort


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    Usage:
        @router.get("/example")
        def example(db: Session = Depends(get_db)):
            # Use db session here
            pass
    """
    yield from get_db_session()


@lru_cache(maxsize=1)
def get_notifier() -> NotificationPort:
    """Mail transport built once from settings"""
    return build_notifier(settings)


@lru_cache(maxsize=1)
def get_completion_service() -> Optional[CompletionService]:
    """LLM backends from settings; None when no API key is configured"""
    return build_completion_service(settings)


@lru_cache(maxsize=1)
def get_freshness_oracle() -> FreshnessOracle:
    """AI-backed oracle when an LLM key is configured, rule-based otherwise"""
    return FreshnessOracle(get_completion_service())
