"""
Endpoints acting on the active project: conversation, archive upload and analysis.
"""
import json
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from ..models.chat import AnalysisType, Message
from ..models.project import Project
from ..services.session import SessionController, get_session_controller
from ..utils.error_handlers import create_sse_error_event
from ..utils.logging_utils import logger

router = APIRouter(prefix="/api/v1/session", tags=["session"])


class SessionState(BaseModel):
    """The active project with its live conversation."""
    project: Optional[Project] = None
    messages: List[Message] = []
    files: List[str] = []
    isLoading: bool = False
    unsaved: bool = False


class SendMessage(BaseModel):
    text: str = Field(min_length=1)


class RunAnalysis(BaseModel):
    type: AnalysisType = AnalysisType.GENERAL


def send_sse_event(event_type: str, data: dict) -> str:
    return f"data: {json.dumps({'type': event_type, **data})}\n\n"


@router.get("", response_model=SessionState)
async def get_session(controller: SessionController = Depends(get_session_controller)):
    context = controller.context
    if context is None:
        return SessionState(isLoading=controller.is_loading)
    return SessionState(
        project=context.project,
        messages=context.messages,
        files=[f.path for f in context.files],
        isLoading=controller.is_loading,
        unsaved=context.unsaved,
    )


@router.post("/archive")
async def upload_archive(request: Request, filename: str = Query("project.zip"),
                         controller: SessionController = Depends(get_session_controller)):
    """Load a ZIP archive (raw request body) as the active project's files."""
    data = await request.body()
    files = await controller.upload_archive(data, filename)
    return {"filesLoadedCount": len(files), "paths": [f.path for f in files]}


@router.post("/messages")
async def send_message(data: SendMessage, controller: SessionController = Depends(get_session_controller)):
    """Send a chat message; the response streams back as server-sent events."""
    stream = await controller.send_message(data.text)

    async def generate():
        try:
            async for chunk in stream:
                yield send_sse_event("content", {"content": chunk})
        except Exception as e:
            # Already recorded in the conversation by the controller
            logger.error(f"Streaming error: {e}")
            yield create_sse_error_event(e)
        yield send_sse_event("done", {"done": True})

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )


@router.post("/analysis", response_model=Optional[Message])
async def run_analysis(data: RunAnalysis, controller: SessionController = Depends(get_session_controller)):
    return await controller.run_analysis(data.type)
