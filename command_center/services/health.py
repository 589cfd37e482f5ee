from sqlalchemy import text
from sqlalchemy.orm import Session

from command_center.config import settings
from command_center.logging_setup import log_event
from command_center.services.ai import get_client
from command_center.services.media.manager import MediaManager

def check_database(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        log_event("health_database_failed", level="error", error=str(e))
        return False

def check_ai() -> bool:
    if not settings.openai_api_key:
        return False
    try:
        get_client().models.list()
        return True
    except Exception as e:
        log_event("health_ai_failed", level="warning", error=str(e))
        return False

def system_health(db: Session, media: MediaManager) -> dict:
    storage = media.health_check()
    result = {
        "database": check_database(db),
        "storage": storage,
        "ai": check_ai(),
    }
    result["overall"] = result["database"] and bool(storage) and all(storage.values())
    return result
