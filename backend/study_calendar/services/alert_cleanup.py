from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime

from sqlalchemy.orm import Session

from study_calendar.models.alert import Alert, AlertType
from study_calendar.schemas.cleanup import (
    AlertCleanupResult,
    FullCleanupResult,
    ResolvedAlert,
)
from study_calendar.services.duplicate_cleanup import (
    cleanup_duplicate_reviews,
    cleanup_duplicate_sessions,
)
from study_calendar.services.lookups import get_user_or_raise, topic_names, utc_now

logger = logging.getLogger(__name__)

GENERIC_ALERTS_TO_KEEP = 3


def _newest_first(alerts: list[Alert]) -> list[Alert]:
    return sorted(alerts, key=lambda alert: (alert.created_at, alert.id), reverse=True)


def cleanup_excessive_alerts(
    db: Session, user_id: int, reference: datetime | None = None
) -> AlertCleanupResult:
    """
    Resolve piled-up remediation alerts.

    Per topic only the most recent unresolved REMEDIATION alert stays open;
    of the alerts without a topic the three most recent stay open.

    Raises:
        NotFoundError: the user does not exist.
    """
    now = utc_now(reference)
    user = get_user_or_raise(db, user_id)

    open_alerts = (
        db.query(Alert)
        .filter(
            Alert.user_id == user.id,
            Alert.type == AlertType.REMEDIATION,
            Alert.is_resolved.is_(False),
        )
        .all()
    )

    by_topic: dict[int, list[Alert]] = defaultdict(list)
    generic: list[Alert] = []
    for alert in open_alerts:
        if alert.related_topic_id is not None:
            by_topic[alert.related_topic_id].append(alert)
        else:
            generic.append(alert)

    excessive: list[Alert] = []
    for alerts in by_topic.values():
        excessive.extend(_newest_first(alerts)[1:])
    excessive.extend(_newest_first(generic)[GENERIC_ALERTS_TO_KEEP:])

    names = topic_names(db, by_topic.keys())
    resolved: list[ResolvedAlert] = []
    for alert in excessive:
        alert.resolve(now)
        resolved.append(
            ResolvedAlert(
                id=alert.id,
                message=alert.message,
                topic=names.get(alert.related_topic_id),
                created_at=alert.created_at,
            )
        )
    db.commit()

    logger.info("Resolved %d excessive alerts for user %s", len(resolved), user.id)
    return AlertCleanupResult(
        message=f"Cleaned up {len(resolved)} excessive alerts",
        resolved_alerts=resolved,
    )


def run_full_cleanup(
    db: Session, user_id: int, reference: datetime | None = None
) -> FullCleanupResult:
    """Duplicate reviews, then excessive alerts, then duplicate sessions."""
    reviews = cleanup_duplicate_reviews(db, user_id, reference)
    alerts = cleanup_excessive_alerts(db, user_id, reference)
    sessions = cleanup_duplicate_sessions(db, user_id, reference)
    return FullCleanupResult(
        message=(
            f"Removed {len(reviews.deleted_tasks)} duplicate reviews, "
            f"resolved {len(alerts.resolved_alerts)} alerts, "
            f"removed {len(sessions.deleted_tasks)} duplicate sessions"
        ),
        reviews=reviews,
        alerts=alerts,
        sessions=sessions,
    )
