# app/exceptions/domain_exceptions.py

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base class for all domain exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundException(DomainException):
    """Exception raised when a resource is not found"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=404,
            details=details
        )


class BadRequestException(DomainException):
    """Exception raised for invalid client requests"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            details=details
        )


class ConflictException(DomainException):
    """Exception raised when there's a conflict with current state"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            details=details
        )


class UnauthorizedException(DomainException):
    """Exception raised when the caller may not act on the resource right now"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=401,
            details=details
        )


class InternalServerException(DomainException):
    """Exception raised for internal server errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=500,
            details=details
        )


# Ludo session errors

class InvalidRequestException(BadRequestException):
    """Missing or malformed session/player identifiers"""


class SessionNotFoundException(NotFoundException):
    """No session with the given id"""

    def __init__(self, session_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Game doesn't exist!",
            details={"session_id": session_id, **(details or {})}
        )


class OccupantNotInSessionException(UnauthorizedException):
    """The player does not own a slot in the session"""

    def __init__(self, session_id: str, player_id: int):
        super().__init__(
            message="Player not in game!",
            details={"session_id": session_id, "player_id": player_id}
        )


class NotYourTurnException(UnauthorizedException):
    """Color mismatch, or a roll is already pending / not yet granted"""


class SessionNotStartedException(UnauthorizedException):
    """Fewer than four colors are occupied"""

    def __init__(self, session_id: str, slots: int):
        super().__init__(
            message="Game hasn't started yet!",
            details={"session_id": session_id, "slots": slots}
        )


class SessionFullException(ConflictException):
    """Four real occupants and no ghost slot to reclaim"""

    def __init__(self, session_id: str):
        super().__init__(
            message="Game full!",
            details={"session_id": session_id}
        )


class StorageFailureException(InternalServerException):
    """The storage collaborator failed; nothing was committed"""
