"""Exception classes for client setup and configuration."""

from typing import Optional


class ClientInitializationError(Exception):
    """Base exception for client initialization errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class URLValidationError(ClientInitializationError):
    """Exception raised when URL validation fails."""

    pass


class ConfigurationError(ClientInitializationError):
    """Exception raised when configuration loading or saving fails."""

    pass
