""" Module to represent custom exceptions """

from typing import Dict, Optional, Type


class ApplicationError(Exception):
    """Base exception for a failed application submission."""
    default_message = "Erreur serveur"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        # The message is the only part shown to the applicant
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

        # Internal detail, logged but never returned
        self.detail = detail

    def __str__(self):
        if self.detail:
            return f"{self.__class__.__name__}: {self.message} ({self.detail})"
        return f"{self.__class__.__name__}: {self.message}"


class ValidationError(ApplicationError):
    """Raised when a required field is blank or a file part breaks its constraints."""
    default_message = "Champs obligatoires manquants"


class DispatchError(ApplicationError):
    """Raised when the mail provider reports a failure."""
    default_message = "Échec envoi email"


class UnexpectedError(ApplicationError):
    """Raised for any other fault while processing a submission."""
    default_message = "Erreur serveur"


class CleanupFailure(Exception):
    """Raised when a temporary file could not be removed. Never fatal."""
    def __init__(self, path, reason):
        super().__init__(f"Could not remove {path}: {reason}")
        self.path = path
        self.reason = reason


STATUS_CODES: Dict[Type[ApplicationError], int] = {
    ValidationError: 400,
    DispatchError: 500,
    UnexpectedError: 500,
}


def status_code_for(error: ApplicationError) -> int:
    """Translate a pipeline error into an HTTP status code (500 when unmapped)"""
    for error_type in type(error).__mro__:
        if error_type in STATUS_CODES:
            return STATUS_CODES[error_type]
    return 500
