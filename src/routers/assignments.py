import logging
import secrets
from typing import Annotated, Optional

from fastapi import APIRouter, Header, HTTPException

from src.dependencies import ReminderServiceDep, SettingsDep
from src.exceptions import DatastoreError
from src.schemas.api.assignments import ReminderRunResponse

router = APIRouter(prefix="/assignments", tags=["assignments"])
logger = logging.getLogger(__name__)


@router.get("/reminder", response_model=ReminderRunResponse)
def send_assignment_reminders(
    settings: SettingsDep,
    service: ReminderServiceDep,
    authorization: Annotated[Optional[str], Header()] = None,
):
    """Cron entry point: remind owners of open assignments due today or tomorrow."""
    expected = f"Bearer {settings.cron_secret}"
    if not settings.cron_secret or not secrets.compare_digest(authorization or "", expected):
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        sent = service.send_due_reminders()
    except DatastoreError as e:
        logger.error(f"Assignment reminder run failed: {e}")
        raise HTTPException(status_code=500, detail="DB error")
    return ReminderRunResponse(sent=sent)
