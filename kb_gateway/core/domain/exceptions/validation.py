"""Validation exceptions."""

from .base import KnowledgeBaseError


class ValidationError(KnowledgeBaseError):
    """Input validation failed."""

    error_code = "KB_VAL_001"


class EmptyQueryError(ValidationError):
    """Query cannot be empty or whitespace only."""

    error_code = "KB_VAL_002"


class MissingParameterError(ValidationError):
    """A required request parameter was not supplied."""

    error_code = "KB_VAL_003"


class InvalidParameterError(ValidationError):
    """A request parameter has an unsupported value."""

    error_code = "KB_VAL_004"
