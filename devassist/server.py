"""
FastAPI application for devassist.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from google.genai import errors as genai_errors

from devassist import __version__
from devassist.api import projects, session, settings
from devassist.services.session import get_session_controller
from devassist.utils.custom_exceptions import DevAssistError
from devassist.utils.error_handlers import handle_request_exception
from devassist.utils.logging_utils import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    controller = get_session_controller()
    await controller.initialize()
    yield
    # Write whatever the active project still holds in memory
    await controller.shutdown()
    logger.info("Session controller shut down")


def create_app() -> FastAPI:
    app = FastAPI(
        title="devassist API",
        description="Project-based code assistant powered by Gemini",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(projects.router)
    app.include_router(session.router)
    app.include_router(settings.router)
    app.add_exception_handler(DevAssistError, handle_request_exception)
    app.add_exception_handler(genai_errors.APIError, handle_request_exception)
    return app


app = create_app()
