from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from study_calendar.core.errors import NotFoundError
from study_calendar.db.session import get_db
from study_calendar.schemas.schedule import ReviewRequest, ReviewScheduleResult
from study_calendar.services.review_scheduler import schedule_review

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/schedule-review", response_model=ReviewScheduleResult)
def schedule_review_session(
    payload: ReviewRequest,
    db: Session = Depends(get_db),
) -> ReviewScheduleResult:
    """Book a 30 minute review session for a topic the user is struggling with."""
    try:
        return schedule_review(
            db,
            payload.user_id,
            payload.topic_id,
            alert_id=payload.alert_id,
            source=payload.source,
        )
    except NotFoundError:
        raise
    except Exception as exc:
        logger.exception(
            "Error scheduling review for user %s topic %s", payload.user_id, payload.topic_id
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to schedule review session", "error": str(exc)},
        ) from exc
