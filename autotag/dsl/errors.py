"""DSL-specific exceptions."""

from __future__ import annotations


class DSLError(Exception):
    """Base exception for DSL errors."""

    pass


class CompileError(DSLError):
    """Exception raised when a constraint expression cannot be compiled.

    Parameters
    ----------
    message
        Error message describing what went wrong during compilation.
    text
        The expression text that caused the error. None if unavailable.

    Attributes
    ----------
    message : str
        Error message without the offending text.
    text : str | None
        Text that caused the error.

    Examples
    --------
    >>> try:
    ...     raise CompileError("Unsupported construct", text="size >>")
    ... except CompileError as e:
    ...     print(e.message)
    Unsupported construct
    """

    def __init__(self, message: str, text: str | None = None) -> None:
        self.message = message
        self.text = text
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.text is None:
            return self.message
        return f"{self.message}: '{self.text}'"


class EvaluationError(DSLError):
    """Exception raised when evaluation fails."""

    pass
