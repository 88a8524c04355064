from __future__ import annotations


class InvalidArgument(ValueError):
    """Raised when an option value violates the invariant of its field.

    Subclasses ``ValueError`` so code that already guards configuration
    validation with ``except ValueError`` keeps working.
    """


__all__ = ["InvalidArgument"]
