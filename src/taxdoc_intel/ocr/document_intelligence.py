"""
Document analysis backend built on the Azure AI Document Intelligence REST API.

Analysis is asynchronous on the service side: a document is submitted to a
model, and the returned operation is polled until it succeeds or fails.
"""

import time
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from ..config import Settings
from ..exceptions import BackendError, ModelUnavailable

logger = logging.getLogger(__name__)

MODEL_NOT_FOUND = "ModelNotFound"
RUNNING_STATES = ("notStarted", "running")


@dataclass
class AnalyzedDocument:
    """One document recognized by a structured model."""

    doc_type: str = ""
    fields: Dict[str, Any] = field(default_factory=dict)
    confidence: Optional[float] = None


@dataclass
class AnalyzeResult:
    """Text, structured documents and key/value pairs returned by a model."""

    content: str = ""
    documents: List[AnalyzedDocument] = field(default_factory=list)
    key_value_pairs: List[Dict[str, str]] = field(default_factory=list)
    model_id: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "AnalyzeResult":
        """Build a result from the service's ``analyzeResult`` object."""
        documents = [
            AnalyzedDocument(
                doc_type=document.get("docType", ""),
                fields=document.get("fields") or {},
                confidence=document.get("confidence"),
            )
            for document in payload.get("documents") or []
        ]

        pairs = []
        for pair in payload.get("keyValuePairs") or []:
            key = (pair.get("key") or {}).get("content", "")
            value = (pair.get("value") or {}).get("content", "")
            if key:
                pairs.append({"key": key, "value": value})

        return cls(
            content=payload.get("content") or "",
            documents=documents,
            key_value_pairs=pairs,
            model_id=payload.get("modelId"),
        )


class AnalyzeOperation(ABC):
    """Handle on a submitted analysis."""

    @abstractmethod
    def await_result(self) -> AnalyzeResult:
        """Block until the analysis finishes and return its result."""
        pass


class BaseDocumentAnalyzer(ABC):
    """Abstract base class for document analysis backends."""

    @abstractmethod
    def submit(self, document: bytes, model_id: str) -> AnalyzeOperation:
        """Submit document bytes for analysis by the given model."""
        pass

    def analyze(self, document: bytes, model_id: str) -> AnalyzeResult:
        return self.submit(document, model_id).await_result()


class AzureAnalyzeOperation(AnalyzeOperation):
    """A running Azure analysis identified by its Operation-Location URL."""

    def __init__(self, client: "AzureDocumentIntelligenceClient", operation_url: str, model_id: str):
        self.client = client
        self.operation_url = operation_url
        self.model_id = model_id

    def await_result(self) -> AnalyzeResult:
        settings = self.client.settings
        deadline = time.monotonic() + settings.poll_timeout

        while True:
            try:
                response = self.client.session.get(
                    self.operation_url,
                    headers=self.client.headers,
                    timeout=settings.request_timeout,
                )
            except requests.exceptions.RequestException as e:
                logger.error(f"Polling analysis for {self.model_id} failed: {e}")
                raise BackendError(f"Polling analysis failed: {e}") from e

            _raise_for_error(response)
            body = response.json()
            status = body.get("status")

            if status == "succeeded":
                result = AnalyzeResult.from_json(body.get("analyzeResult") or {})
                if result.model_id is None:
                    result.model_id = self.model_id
                logger.info(
                    f"Analysis with {self.model_id} succeeded: "
                    f"{len(result.content)} characters, {len(result.documents)} documents"
                )
                return result

            if status not in RUNNING_STATES:
                raise _error_from_body(body, response.status_code, f"Analysis {status or 'failed'}")

            if time.monotonic() >= deadline:
                raise BackendError(
                    f"Analysis with {self.model_id} did not finish within {settings.poll_timeout}s",
                    code="Timeout",
                )
            time.sleep(_retry_after(response, settings.poll_interval))


class AzureDocumentIntelligenceClient(BaseDocumentAnalyzer):
    """
    Azure Document Intelligence client over plain HTTP.

    Uses the prebuilt tax models for structured extraction and prebuilt-read
    for raw text.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            settings: Endpoint, key, API version and polling settings
            session: Optional requests session (a new one is created if None)
        """
        self.settings = settings
        self.session = session or requests.Session()
        self.headers = {"Ocp-Apim-Subscription-Key": settings.api_key}

        logger.info(f"Document Intelligence client initialized for {settings.endpoint}")

    @classmethod
    def from_credentials(cls, endpoint: str, api_key: str, **kwargs) -> "AzureDocumentIntelligenceClient":
        """Create a client from explicit credentials; empty values raise ConfigurationMissing."""
        session = kwargs.pop("session", None)
        return cls(Settings(endpoint=(endpoint or "").rstrip("/"), api_key=api_key, **kwargs), session)

    @classmethod
    def from_env(cls, session: Optional[requests.Session] = None) -> "AzureDocumentIntelligenceClient":
        return cls(Settings.from_env(), session)

    def analyze_url(self, model_id: str) -> str:
        return f"{self.settings.endpoint}/documentintelligence/documentModels/{model_id}:analyze"

    def submit(self, document: bytes, model_id: str) -> AzureAnalyzeOperation:
        """
        Submit a document for analysis.

        Args:
            document: Raw document bytes (PDF or image)
            model_id: Analysis model, e.g. 'prebuilt-tax.us.w2'

        Returns:
            Operation to await

        Raises:
            ModelUnavailable: If the model is not provisioned
            BackendError: For any other service or transport failure
        """
        headers = dict(self.headers)
        headers["Content-Type"] = "application/octet-stream"

        try:
            response = self.session.post(
                self.analyze_url(model_id),
                params={"api-version": self.settings.api_version},
                headers=headers,
                data=document,
                timeout=self.settings.request_timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Submitting document to {model_id} failed: {e}")
            raise BackendError(f"Submitting document failed: {e}") from e

        _raise_for_error(response, submit=True)

        operation_url = response.headers.get("Operation-Location")
        if not operation_url:
            raise BackendError("Service accepted the request without an Operation-Location", status_code=response.status_code)

        logger.info(f"Submitted {len(document)} bytes to {model_id}")
        return AzureAnalyzeOperation(self, operation_url, model_id)


def _raise_for_error(response: requests.Response, submit: bool = False) -> None:
    if response.status_code < 400:
        return
    try:
        body = response.json()
    except ValueError:
        body = {}
    raise _error_from_body(body, response.status_code, response.reason or "Request failed", submit)


def _error_from_body(
    body: Dict[str, Any],
    status_code: Optional[int],
    default_message: str,
    submit: bool = False,
) -> BackendError:
    """Map an error body to an exception; a bare 404 means a missing model only on submit."""
    error = body.get("error") or {}
    inner = error.get("innererror") or {}
    code = inner.get("code") or error.get("code")
    message = inner.get("message") or error.get("message") or default_message

    if code == MODEL_NOT_FOUND or (submit and status_code == 404):
        logger.warning(f"Analysis model unavailable: {message}")
        return ModelUnavailable(message, code=code or MODEL_NOT_FOUND, status_code=status_code)
    logger.error(f"Document Intelligence error {code}: {message}")
    return BackendError(message, code=code, status_code=status_code)


def _retry_after(response: requests.Response, default: float) -> float:
    value = response.headers.get("Retry-After")
    if not value:
        return default
    try:
        return max(float(value), 0.0)
    except ValueError:
        return default
