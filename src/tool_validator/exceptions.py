"""Exceptions raised by the tool validator.

Bad tool-call input never raises; these cover misconfiguration only.
"""


class ValidatorError(Exception):
    """Base class for tool validator errors."""


class ConfigError(ValidatorError):
    """Raised when the validator configuration is invalid."""


class SchemaError(ValidatorError):
    """Raised when a parameter schema cannot be interpreted."""
