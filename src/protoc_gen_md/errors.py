from __future__ import annotations

from typing import Optional


class GeneratorError(Exception):
    """Base class for errors that abort a generation run."""


class DuplicateTypeError(GeneratorError):
    """Raised when two declarations claim the same fully qualified name."""

    def __init__(self, type_ref: str, first_file: str, second_file: str):
        self.type_ref = type_ref
        super().__init__(
            f"Duplicate type '{type_ref}' declared in '{first_file}' "
            f"and '{second_file}'"
        )


class UnknownTypeError(GeneratorError):
    """Raised when a method or field references a type missing from the bundle."""

    def __init__(self, type_ref: str, referrer: Optional[str] = None):
        self.type_ref = type_ref
        self.referrer = referrer
        message = f"Unknown type '{type_ref}'"
        if referrer:
            message += f" referenced by '{referrer}'"
        super().__init__(message + " (is a dependency missing from the request?)")


class InvalidOptionError(GeneratorError):
    """Raised when the plugin parameter contains an unrecognized or malformed option."""
