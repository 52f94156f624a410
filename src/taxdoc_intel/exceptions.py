"""
Exception hierarchy for tax document extraction.

Configuration and extraction failures are fatal for the document being
processed. Model availability problems are recoverable and trigger the
OCR fallback path inside the orchestrator.
"""

from typing import Optional


class TaxDocError(Exception):
    """Base class for all errors raised by taxdoc_intel."""


class ConfigurationMissing(TaxDocError):
    """A required setting (endpoint or API key) is absent."""

    def __init__(self, setting: str):
        self.setting = setting
        super().__init__(f"Required configuration '{setting}' is missing")


class BackendError(TaxDocError):
    """The document analysis backend reported a failure."""

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


class ModelUnavailable(BackendError):
    """The requested analysis model is not provisioned on the backend."""


class ExtractionFailed(TaxDocError):
    """Extraction could not produce a record; wraps the underlying cause."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


def is_model_not_found(error: BaseException) -> bool:
    """Return True if the error means the analysis model does not exist."""
    if isinstance(error, ModelUnavailable):
        return True
    if getattr(error, "code", None) == "ModelNotFound":
        return True
    return "ModelNotFound" in str(error)
