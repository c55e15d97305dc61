"""GET /v1/reminders - Upcoming and completed debt payment reminders"""

from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from planning_gateway.api.dependencies import get_request_id, get_today
from planning_gateway.api.v1 import commands
from planning_gateway.api.v1.schemas import ListRemindersRequest, ReminderSchema
from planning_gateway.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/reminders", response_model=List[ReminderSchema])
def get_reminders(
    request: Request,
    status: Optional[Literal["scheduled", "done"]] = Query(None, description="Filter by reminder status"),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    Retrieve payment reminders ordered by due time.

    Returns:
        Reminders raised by schedule generation; confirmed payments show as done
    """
    ctx = commands.CommandContext(request_id=get_request_id(request), today=today)
    return commands.list_reminders(db, ListRemindersRequest(status=status), ctx)
