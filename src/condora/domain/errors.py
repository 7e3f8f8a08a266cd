# src/condora/domain/errors.py
from __future__ import annotations


class ExtractionError(RuntimeError):
    """Fatal failure to turn a source document into text."""


class ExtractionFetchError(ExtractionError):
    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ExtractionParseError(ExtractionError):
    pass


class ExtractionTimeoutError(ExtractionError):
    pass


class DuplicateProjectError(Exception):
    """Business-rule rejection: the project name is already stored."""

    def __init__(self, project_name: str, existing: int):
        super().__init__(
            f"{project_name} data already exists in database ({existing} entries found)"
        )
        self.project_name = project_name
        self.existing = existing


class PersistenceError(RuntimeError):
    pass
