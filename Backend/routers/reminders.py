from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user
from models.user import User
from schemas.reminder import ReminderIdsIn, ReminderListOut, ReminderOut, ReminderStatusOut
from services.reminders import (
    InvalidTimestampError,
    ReminderIdsError,
    bulk_set_reminder_status,
    fetch_pending_reminders,
    parse_before,
    parse_limit,
)

router = APIRouter(prefix="/reminders", tags=["Reminders"])


@router.get("/", response_model=ReminderListOut)
def list_pending_reminders(
    before: str | None = Query(default=None, description="ISO-8601 cutoff, defaults to now"),
    limit: str | None = Query(default=None, description="Max rows, defaults to 100"),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Unsent reminders due at or before the cutoff, oldest first. Polled by the notifier."""
    try:
        cutoff = parse_before(before)
    except InvalidTimestampError as e:
        raise HTTPException(status_code=400, detail=str(e))
    reminders = fetch_pending_reminders(db, before=cutoff, limit=parse_limit(limit))
    return ReminderListOut(reminders=[ReminderOut.model_validate(r) for r in reminders])


def _bulk_update(field_name: str, data: ReminderIdsIn | None, response: Response, db: Session):
    try:
        result = bulk_set_reminder_status(db, field_name, data.ids if data else None)
    except ReminderIdsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    response.status_code = 207 if result.is_partial else 200
    return ReminderStatusOut(
        message=f"Updated {field_name} status",
        updated_ids=result.updated_ids,
        not_found_ids=result.not_found_ids,
    )


@router.patch("/acknowledged", response_model=ReminderStatusOut)
def acknowledge_reminders(
    response: Response,
    data: ReminderIdsIn | None = None,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark reminders acknowledged; 207 when some ids do not exist."""
    return _bulk_update("acknowledged", data, response, db)


@router.patch("/sent", response_model=ReminderStatusOut)
def mark_reminders_sent(
    response: Response,
    data: ReminderIdsIn | None = None,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark reminders sent; 207 when some ids do not exist."""
    return _bulk_update("sent", data, response, db)
