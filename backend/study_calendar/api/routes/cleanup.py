from collections.abc import Callable
from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from study_calendar.core.errors import NotFoundError
from study_calendar.db.session import get_db
from study_calendar.schemas.cleanup import (
    AlertCleanupResult,
    CleanupRequest,
    DuplicateCleanupResult,
    FullCleanupResult,
    ReviewCleanupResult,
)
from study_calendar.services.alert_cleanup import cleanup_excessive_alerts, run_full_cleanup
from study_calendar.services.duplicate_cleanup import (
    cleanup_duplicate_reviews,
    cleanup_duplicate_sessions,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ResultT = TypeVar("ResultT")


def _run_cleanup(
    action: Callable[[Session, int], ResultT],
    db: Session,
    user_id: int,
    failure_message: str,
) -> ResultT:
    try:
        return action(db, user_id)
    except NotFoundError:
        raise
    except Exception as exc:
        logger.exception("%s for user %s", failure_message, user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": failure_message, "error": str(exc)},
        ) from exc


@router.post("", response_model=FullCleanupResult)
def cleanup_all(
    payload: CleanupRequest,
    db: Session = Depends(get_db),
) -> FullCleanupResult:
    """Run every cleanup for the user's plan."""
    return _run_cleanup(run_full_cleanup, db, payload.user_id, "Failed to run cleanup")


@router.post("/duplicate-sessions", response_model=DuplicateCleanupResult)
def cleanup_sessions(
    payload: CleanupRequest,
    db: Session = Depends(get_db),
) -> DuplicateCleanupResult:
    return _run_cleanup(
        cleanup_duplicate_sessions,
        db,
        payload.user_id,
        "Failed to clean up duplicate sessions",
    )


@router.post("/duplicate-reviews", response_model=ReviewCleanupResult)
def cleanup_reviews(
    payload: CleanupRequest,
    db: Session = Depends(get_db),
) -> ReviewCleanupResult:
    return _run_cleanup(
        cleanup_duplicate_reviews,
        db,
        payload.user_id,
        "Failed to clean up duplicate review sessions",
    )


@router.post("/excessive-alerts", response_model=AlertCleanupResult)
def cleanup_alerts(
    payload: CleanupRequest,
    db: Session = Depends(get_db),
) -> AlertCleanupResult:
    return _run_cleanup(
        cleanup_excessive_alerts,
        db,
        payload.user_id,
        "Failed to clean up excessive alerts",
    )
