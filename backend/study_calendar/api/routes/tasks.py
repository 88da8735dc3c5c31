from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from study_calendar.core.errors import NotFoundError
from study_calendar.db.session import get_db
from study_calendar.schemas.schedule import RescheduleRequest, RescheduleResult
from study_calendar.services.rescheduling import reschedule_missed_tasks

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/reschedule-missed", response_model=RescheduleResult)
def reschedule_missed(
    payload: RescheduleRequest,
    db: Session = Depends(get_db),
) -> RescheduleResult:
    """Move the user's overdue pending tasks into free slots before the exam."""
    try:
        return reschedule_missed_tasks(db, payload.user_id)
    except NotFoundError:
        raise
    except Exception as exc:
        logger.exception("Error rescheduling missed tasks for user %s", payload.user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to reschedule missed tasks", "error": str(exc)},
        ) from exc
