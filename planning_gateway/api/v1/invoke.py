"""POST /v1/invoke/{command} - single RPC boundary for the desktop client"""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session, sessionmaker

from planning_gateway.api.dependencies import get_ledger_client, get_request_id, get_today
from planning_gateway.api.errors import parse_request, unit_of_work
from planning_gateway.api.v1.commands import COMMANDS, CommandContext
from planning_gateway.api.v1.schemas import ErrorResponse
from planning_gateway.domain.exceptions import NotFoundError
from planning_gateway.infrastructure.clients.ledger import LedgerClient
from planning_gateway.infrastructure.database.session import get_db, get_session_factory

router = APIRouter()


class UnknownCommandError(NotFoundError):
    """Invoked command name is not registered"""

    code = "unknown_command"


@router.post(
    "/invoke/{command}",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown command or referenced entity"},
        409: {"model": ErrorResponse, "description": "Concurrent write detected"},
        422: {"model": ErrorResponse, "description": "Malformed payload or debt terms"},
    },
)
def invoke(
    command: str,
    request: Request,
    background_tasks: BackgroundTasks,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    ledger_client: LedgerClient = Depends(get_ledger_client),
    session_factory: sessionmaker = Depends(get_session_factory),
    today: date = Depends(get_today),
):
    """
    Dispatch ``command`` with its JSON payload.

    Flow:
    1. Resolve the command in the registry
    2. Validate the payload before anything touches the database
    3. Run the handler in one transaction
    4. Return the camelCase response (null for deletes)
    """
    if command not in COMMANDS:
        raise UnknownCommandError("Command", command)

    request_model, handler = COMMANDS[command]
    body = parse_request(request_model, payload or {})

    request_id = get_request_id(request)
    ctx = CommandContext(
        request_id=request_id,
        today=today,
        background_tasks=background_tasks,
        ledger_client=ledger_client,
        session_factory=session_factory,
    )

    with unit_of_work(db, request_id):
        result = handler(db, body, ctx)

    return jsonable_encoder(result, by_alias=True)
