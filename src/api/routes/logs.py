"""Attempt log routes."""

from fastapi import APIRouter, Depends, HTTPException

from api.routes.auth import get_current_user
from core.dependencies import LogManagerDep
from core.exceptions import QueryQuestError
from schemas.log import Log
from schemas.user import User
from utils.converters import model_to_log

router = APIRouter(prefix="/api/logs", tags=["Logs"])


@router.get("/{log_id}", response_model=Log, summary="Get an attempt log")
def get_log(
    log_id: int,
    log_manager: LogManagerDep,
    current_user: User = Depends(get_current_user),
) -> Log:
    try:
        model = log_manager.get_log(log_id)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_log(model)
