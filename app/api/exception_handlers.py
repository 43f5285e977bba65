# app/api/exception_handlers.py

import logging
from typing import TYPE_CHECKING
from fastapi import Request
from fastapi.responses import JSONResponse
from exceptions.domain_exceptions import (
    DomainException,
    NotFoundException,
    BadRequestException,
    ConflictException,
    ForbiddenException,
    InvalidMoveException,
    NotCurrentPlayerException,
    GameAlreadyFinishedException,
    ConcurrentUpdateException,
)

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

# Every domain error the match endpoints can raise
HANDLED_EXCEPTIONS = (
    InvalidMoveException,
    NotCurrentPlayerException,
    GameAlreadyFinishedException,
    ConcurrentUpdateException,
    NotFoundException,
    BadRequestException,
    ConflictException,
    ForbiddenException,
    DomainException,
)


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """
    Render a rejected match request.

    Rule violations leave the stored snapshot untouched, so the body carries
    everything a client needs to resync: the exception name, a readable
    message and the details the engine attached (current player, dice value,
    offending move...).
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected with {exc.__class__.__name__}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.__class__.__name__,
            "message": exc.message,
            "details": exc.details,
            "path": request.url.path
        }
    )


def register_exception_handlers(app: "FastAPI") -> None:
    """Register the domain exception handler for every match error type"""
    for exception_class in HANDLED_EXCEPTIONS:
        app.add_exception_handler(exception_class, domain_exception_handler)
