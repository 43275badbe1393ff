"""Matrix action API routes."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from matrix_actions.adapters.channel.message_actions import MatrixMessageActions
from matrix_actions.adapters.matrix.client import MatrixApiError, MatrixHttpClient
from matrix_actions.adapters.tracing import StderrTracer
from matrix_actions.config import load_core_config
from matrix_actions.domain.errors import (
    ActionDisabledError,
    ActionError,
    InvalidParameterError,
    MissingParameterError,
    PartialReactionError,
    TargetResolutionError,
    UnsupportedActionError,
)
from matrix_actions.domain.router import ActionRouter
from matrix_actions.ports.inbound import ChannelActionContext

matrix_router = APIRouter(prefix="/matrix", tags=["Matrix"])

core_config = load_core_config()
matrix_client = MatrixHttpClient(core_config)
message_actions = MatrixMessageActions(ActionRouter(matrix_client, tracer=StderrTracer()))

_ERROR_STATUS = {
    MissingParameterError: 400,
    InvalidParameterError: 400,
    ActionDisabledError: 403,
    UnsupportedActionError: 404,
    TargetResolutionError: 409,
    PartialReactionError: 502,
}


class ActionCallRequest(BaseModel):
    params: Dict[str, Any] = Field(default_factory=dict)
    accountId: Optional[str] = None
    clientName: Optional[str] = None


class ActionListResponse(BaseModel):
    actions: List[str]


@matrix_router.get("/actions", response_model=ActionListResponse)
async def list_actions():
    return ActionListResponse(actions=message_actions.list_actions(core_config))


@matrix_router.post("/actions/{action}")
async def call_action(action: str, req: ActionCallRequest):
    ctx = ChannelActionContext(
        action=action,
        params=req.params,
        cfg=core_config,
        account_id=req.accountId,
        gateway_client_name=req.clientName,
    )
    try:
        return await message_actions.handle_action(ctx)
    except ActionError as e:
        detail = {"code": e.code, "message": e.message}
        detail.update(e.details)
        raise HTTPException(status_code=_ERROR_STATUS.get(type(e), 400), detail=detail)
    except MatrixApiError as e:
        raise HTTPException(
            status_code=502,
            detail={"code": e.errcode, "message": str(e), "status": e.status},
        )
