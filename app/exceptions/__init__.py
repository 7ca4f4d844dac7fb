# app/exceptions/__init__.py

from exceptions.domain_exceptions import (
    DomainException,
    NotFoundException,
    BadRequestException,
    ConflictException,
    UnauthorizedException,
    InternalServerException,
    InvalidRequestException,
    SessionNotFoundException,
    OccupantNotInSessionException,
    NotYourTurnException,
    SessionNotStartedException,
    SessionFullException,
    StorageFailureException,
)

__all__ = [
    'DomainException',
    'NotFoundException',
    'BadRequestException',
    'ConflictException',
    'UnauthorizedException',
    'InternalServerException',
    'InvalidRequestException',
    'SessionNotFoundException',
    'OccupantNotInSessionException',
    'NotYourTurnException',
    'SessionNotStartedException',
    'SessionFullException',
    'StorageFailureException',
]
