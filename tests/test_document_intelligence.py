"""
Tests for the Azure Document Intelligence backend.
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import Mock, patch

import requests

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from taxdoc_intel.config import Settings
from taxdoc_intel.exceptions import BackendError, ConfigurationMissing, ModelUnavailable, is_model_not_found
from taxdoc_intel.ocr.document_intelligence import (
    AnalyzeResult,
    AzureDocumentIntelligenceClient,
)

ENDPOINT = "https://taxdoc.cognitiveservices.azure.com"
OPERATION_URL = f"{ENDPOINT}/documentintelligence/documentModels/prebuilt-read/analyzeResults/abc"

ANALYZE_RESULT = {
    "modelId": "prebuilt-tax.us.w2",
    "content": "Form W-2 Wage and Tax Statement",
    "documents": [{
        "docType": "tax.us.w2",
        "confidence": 0.99,
        "fields": {"WagesTipsAndOtherCompensation": {"type": "number", "valueNumber": 75000}},
    }],
    "keyValuePairs": [
        {"key": {"content": "Employer's name"}, "value": {"content": "Acme Widgets Inc"}},
        {"key": {"content": ""}, "value": {"content": "orphan"}},
    ],
}


def make_response(status_code=200, body=None, headers=None, reason="OK"):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = body if body is not None else {}
    response.headers = headers or {}
    response.reason = reason
    return response


@pytest.fixture
def settings():
    return Settings(endpoint=ENDPOINT, api_key="secret", poll_interval=0.5, poll_timeout=30.0)


@pytest.fixture
def session():
    session = Mock()
    session.post.return_value = make_response(202, headers={"Operation-Location": OPERATION_URL})
    return session


class TestAnalyzeResult:
    """Test cases for parsing the service payload."""

    def test_from_json(self):
        result = AnalyzeResult.from_json(ANALYZE_RESULT)

        assert result.model_id == "prebuilt-tax.us.w2"
        assert result.content.startswith("Form W-2")
        assert result.documents[0].doc_type == "tax.us.w2"
        assert result.documents[0].fields["WagesTipsAndOtherCompensation"]["valueNumber"] == 75000
        assert result.key_value_pairs == [{"key": "Employer's name", "value": "Acme Widgets Inc"}]

    def test_from_empty_json(self):
        result = AnalyzeResult.from_json({})

        assert result.content == ""
        assert result.documents == []
        assert result.key_value_pairs == []


class TestAzureDocumentIntelligenceClient:
    """Test cases for AzureDocumentIntelligenceClient."""

    def test_submit(self, settings, session):
        """Test the analyze request."""
        client = AzureDocumentIntelligenceClient(settings, session=session)

        operation = client.submit(b"%PDF-1.7", "prebuilt-tax.us.w2")

        assert operation.operation_url == OPERATION_URL
        args, kwargs = session.post.call_args
        assert args[0] == f"{ENDPOINT}/documentintelligence/documentModels/prebuilt-tax.us.w2:analyze"
        assert kwargs["params"] == {"api-version": settings.api_version}
        assert kwargs["headers"]["Ocp-Apim-Subscription-Key"] == "secret"
        assert kwargs["headers"]["Content-Type"] == "application/octet-stream"
        assert kwargs["data"] == b"%PDF-1.7"

    @patch("taxdoc_intel.ocr.document_intelligence.time.sleep")
    def test_poll_until_succeeded(self, mock_sleep, settings, session):
        """Test polling honours Retry-After and returns the result."""
        session.get.side_effect = [
            make_response(200, {"status": "notStarted"}, headers={"Retry-After": "2"}),
            make_response(200, {"status": "running"}),
            make_response(200, {"status": "succeeded", "analyzeResult": ANALYZE_RESULT}),
        ]
        client = AzureDocumentIntelligenceClient(settings, session=session)

        result = client.analyze(b"%PDF-1.7", "prebuilt-tax.us.w2")

        assert result.content == "Form W-2 Wage and Tax Statement"
        assert session.get.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [2.0, 0.5]

    @patch("taxdoc_intel.ocr.document_intelligence.time.sleep")
    def test_model_id_defaults_to_requested_model(self, mock_sleep, settings, session):
        session.get.return_value = make_response(200, {"status": "succeeded", "analyzeResult": {"content": "x"}})
        client = AzureDocumentIntelligenceClient(settings, session=session)

        result = client.analyze(b"data", "prebuilt-read")

        assert result.model_id == "prebuilt-read"
        mock_sleep.assert_not_called()

    def test_model_not_found_on_submit(self, settings, session):
        """Test that a missing model raises ModelUnavailable."""
        session.post.return_value = make_response(
            404,
            {"error": {"code": "NotFound", "innererror": {"code": "ModelNotFound", "message": "Model not found"}}},
            reason="Not Found",
        )
        client = AzureDocumentIntelligenceClient(settings, session=session)

        with pytest.raises(ModelUnavailable) as exc_info:
            client.submit(b"data", "prebuilt-tax.us.1099")

        assert exc_info.value.code == "ModelNotFound"
        assert exc_info.value.status_code == 404

    def test_model_not_found_code_without_404(self, settings, session):
        session.post.return_value = make_response(
            400, {"error": {"code": "ModelNotFound", "message": "Model not found"}}, reason="Bad Request"
        )
        client = AzureDocumentIntelligenceClient(settings, session=session)

        with pytest.raises(ModelUnavailable):
            client.submit(b"data", "prebuilt-tax.us.1099")

    def test_bare_404_on_submit(self, settings, session):
        """Test that a 404 from the analyze endpoint means the model is missing."""
        session.post.return_value = make_response(404, reason="Not Found")
        client = AzureDocumentIntelligenceClient(settings, session=session)

        with pytest.raises(ModelUnavailable) as exc_info:
            client.submit(b"data", "prebuilt-tax.us.w2")

        assert exc_info.value.code == "ModelNotFound"

    @patch("taxdoc_intel.ocr.document_intelligence.time.sleep")
    def test_404_while_polling(self, mock_sleep, settings, session):
        """Test that an expired operation is a backend error, not a missing model."""
        session.get.return_value = make_response(
            404, {"error": {"code": "NotFound", "message": "Operation expired"}}, reason="Not Found"
        )
        client = AzureDocumentIntelligenceClient(settings, session=session)

        with pytest.raises(BackendError) as exc_info:
            client.analyze(b"data", "prebuilt-tax.us.w2")

        assert not isinstance(exc_info.value, ModelUnavailable)
        assert exc_info.value.code == "NotFound"
        assert exc_info.value.status_code == 404
        assert not is_model_not_found(exc_info.value)

    @patch("taxdoc_intel.ocr.document_intelligence.time.sleep")
    def test_model_not_found_code_while_polling(self, mock_sleep, settings, session):
        session.get.return_value = make_response(
            404, {"error": {"code": "ModelNotFound", "message": "Model not found"}}, reason="Not Found"
        )
        client = AzureDocumentIntelligenceClient(settings, session=session)

        with pytest.raises(ModelUnavailable):
            client.analyze(b"data", "prebuilt-tax.us.w2")

    def test_other_http_errors(self, settings, session):
        session.post.return_value = make_response(
            401, {"error": {"code": "Unauthorized", "message": "Access denied"}}, reason="Unauthorized"
        )
        client = AzureDocumentIntelligenceClient(settings, session=session)

        with pytest.raises(BackendError) as exc_info:
            client.submit(b"data", "prebuilt-read")

        assert not isinstance(exc_info.value, ModelUnavailable)
        assert exc_info.value.code == "Unauthorized"
        assert str(exc_info.value) == "Unauthorized: Access denied"

    def test_transport_error(self, settings, session):
        session.post.side_effect = requests.exceptions.ConnectionError("connection refused")
        client = AzureDocumentIntelligenceClient(settings, session=session)

        with pytest.raises(BackendError):
            client.submit(b"data", "prebuilt-read")

    def test_missing_operation_location(self, settings, session):
        session.post.return_value = make_response(202)
        client = AzureDocumentIntelligenceClient(settings, session=session)

        with pytest.raises(BackendError):
            client.submit(b"data", "prebuilt-read")

    @patch("taxdoc_intel.ocr.document_intelligence.time.sleep")
    def test_failed_analysis(self, mock_sleep, settings, session):
        session.get.return_value = make_response(
            200, {"status": "failed", "error": {"code": "InvalidContent", "message": "Corrupt file"}}
        )
        client = AzureDocumentIntelligenceClient(settings, session=session)

        with pytest.raises(BackendError) as exc_info:
            client.analyze(b"data", "prebuilt-read")

        assert exc_info.value.code == "InvalidContent"

    @patch("taxdoc_intel.ocr.document_intelligence.time.sleep")
    def test_poll_timeout(self, mock_sleep, session):
        settings = Settings(endpoint=ENDPOINT, api_key="secret", poll_timeout=0.0)
        session.get.return_value = make_response(200, {"status": "running"})
        client = AzureDocumentIntelligenceClient(settings, session=session)

        with pytest.raises(BackendError) as exc_info:
            client.analyze(b"data", "prebuilt-read")

        assert exc_info.value.code == "Timeout"

    def test_from_credentials_requires_values(self):
        with pytest.raises(ConfigurationMissing):
            AzureDocumentIntelligenceClient.from_credentials("", "secret")

        client = AzureDocumentIntelligenceClient.from_credentials(ENDPOINT + "/", "secret", session=Mock())
        assert client.settings.endpoint == ENDPOINT
