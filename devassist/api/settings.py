"""
Settings endpoints. The API key is stored apart from any project.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..config.app_config import get_model_name
from ..services.session import SessionController, get_session_controller

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


class ApiKeyUpdate(BaseModel):
    apiKey: str = Field(min_length=1)


@router.get("")
async def get_settings(controller: SessionController = Depends(get_session_controller)):
    return {"hasApiKey": await controller.has_api_key(), "model": get_model_name()}


@router.put("/api-key")
async def set_api_key(data: ApiKeyUpdate, controller: SessionController = Depends(get_session_controller)):
    await controller.set_api_key(data.apiKey)
    return {"hasApiKey": True}
