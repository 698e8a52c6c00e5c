import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Activity

logger = logging.getLogger(__name__)


class ActivityOut(BaseModel):
    id: int
    type: str
    title: str
    description: Optional[str] = None
    timestamp: datetime
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None

    class Config:
        from_attributes = True


def record_activity(db: Session, *, user_id: int, type: str, title: str, description: str | None = None,
                    entity_id: str | None = None, entity_type: str | None = None) -> Activity | None:
    """
    Append an entry to the activity log. Best-effort: a failed write is
    logged and rolled back, never raised, so it cannot undo the action it
    describes.
    """
    entry = Activity(
        user_id=user_id,
        type=type,
        title=title,
        description=description,
        entity_id=entity_id,
        entity_type=entity_type,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Error recording %s activity for user %s", type, user_id, exc_info=True)
        return None
    return entry


def get_recent_activities(db: Session, user_id: int, limit: int = 5, type: str | None = None) -> list[Activity]:
    q = db.query(Activity).filter(Activity.user_id == user_id)
    if type:
        q = q.filter(Activity.type == type)
    try:
        return q.order_by(Activity.timestamp.desc(), Activity.id.desc()).limit(limit).all()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error fetching recent activities for user %s", user_id)
        return []
