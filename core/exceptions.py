"""
Centralized exception hierarchy for domain-specific errors.

This module provides custom exception classes that represent specific
error conditions in the trip aggregate and its services, so that the HTTP
layer can translate them into meaningful responses.
"""


class RouteNestError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(RouteNestError):
    """Exception raised when a field violates a type, range or enum constraint."""

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        *,
        field: str | None = None,
        constraint: str | None = None,
    ) -> None:
        details = dict(details or {})
        if field is not None:
            details.setdefault("field", field)
        if constraint is not None:
            details.setdefault("constraint", constraint)
        super().__init__(message, details)

    @property
    def field(self) -> str | None:
        return self.details.get("field")

    @property
    def constraint(self) -> str | None:
        return self.details.get("constraint")


class IntegrityError(RouteNestError):
    """Exception raised when a cross reference among stops, routes or ids is broken."""

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        *,
        ref_id: object | None = None,
    ) -> None:
        details = dict(details or {})
        if ref_id is not None:
            details.setdefault("id", ref_id)
        super().__init__(message, details)

    @property
    def ref_id(self) -> object | None:
        return self.details.get("id")


class ResourceNotFoundError(RouteNestError):
    """Exception raised when a requested trip, stop or route is not found."""


RouteNestException = RouteNestError
ValidationException = ValidationError
IntegrityException = IntegrityError
ResourceNotFoundException = ResourceNotFoundError
