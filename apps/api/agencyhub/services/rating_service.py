"""Satisfaction rating service - one client rating per completed request."""

from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from agencyhub.core.exceptions import PermissionDeniedError, ValidationError
from agencyhub.core.permissions import Viewer, has_capability
from agencyhub.db.enums import RequestActivityType, RequestStatus
from agencyhub.db.models import Project, Request, SatisfactionRating
from agencyhub.services import activity_service


def get_rating(db: Session, request_id: UUID) -> SatisfactionRating | None:
    return (
        db.query(SatisfactionRating)
        .filter(SatisfactionRating.request_id == request_id)
        .first()
    )


def submit_rating(
    db: Session,
    viewer: Viewer,
    request: Request,
    rating: int,
    feedback: str | None = None,
) -> SatisfactionRating:
    """
    Create or update the request's rating.

    Raises:
        PermissionDeniedError: viewer is not the request's client author
        ValidationError: request not complete, or rating outside 1..5
    """
    if not has_capability(viewer, "submit_rating") or request.created_by != viewer.user_id:
        raise PermissionDeniedError("Only the client who filed the request can rate it")
    if request.status != RequestStatus.COMPLETE.value:
        raise ValidationError("Only completed requests can be rated")
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")

    existing = get_rating(db, request.id)
    if existing:
        existing.rating = rating
        existing.feedback = feedback
        result = existing
    else:
        result = SatisfactionRating(
            request_id=request.id,
            user_id=viewer.user_id,
            rating=rating,
            feedback=feedback,
        )
        db.add(result)

    activity_service.log_activity(
        db,
        request.id,
        RequestActivityType.RATED,
        user_id=viewer.user_id,
        details={"rating": rating},
    )
    db.commit()
    db.refresh(result)
    return result


def _one_decimal(value) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def agency_rating_stats(db: Session, agency_id: UUID) -> dict:
    """Average (one decimal) and count of ratings on live requests in live projects."""
    average, count = (
        db.query(func.avg(SatisfactionRating.rating), func.count(SatisfactionRating.id))
        .join(Request, Request.id == SatisfactionRating.request_id)
        .join(Project, Project.id == Request.project_id)
        .filter(
            Project.agency_id == agency_id,
            Project.deleted_at.is_(None),
            Request.deleted_at.is_(None),
        )
        .one()
    )
    return {
        "average": _one_decimal(average) if average is not None else None,
        "count": int(count or 0),
    }
