import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from utils.exceptions import CustomException

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> FastAPI:
    """Return store errors to HTTP clients as ``{code, message, detail, dev_message}``."""

    @app.exception_handler(CustomException)
    async def custom_exception_handler(request: Request, exc: CustomException):
        if exc.status_code >= 500:
            logger.error(f"[{exc.code}] {exc.dev_message or exc.message} | {request.url}")
        else:
            logger.warning(f"[{exc.code}] {exc.message} | {request.url}")
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict()
        )

    return app
