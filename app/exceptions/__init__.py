# app/exceptions/__init__.py

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

__all__ = [
    'DomainException',
    'NotFoundException',
    'BadRequestException',
    'ConflictException',
    'ForbiddenException',
    'InvalidMoveException',
    'NotCurrentPlayerException',
    'GameAlreadyFinishedException',
    'ConcurrentUpdateException',
]
