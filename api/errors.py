"""API Exception Handlers"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.errors import DomainError

logger = logging.getLogger(__name__)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render a domain error as its HTTP status and error body"""
    logger.info(
        "%s %s rejected: %s (%s)",
        request.method, request.url.path, exc.message, exc.error_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
