"""
Extraction orchestration with model fallback and document type correction.

One document goes through at most two backend round trips:

1. the model chosen for the asserted type (a prebuilt tax model)
2. the plain OCR model, only when the first model is not provisioned

The recognized text is then classified. If it names a different supported
form, the result already in hand is projected once more as that form; no
further backend call is made and the check never repeats.
"""

import logging
from typing import Any, Optional, Union

from ..classifiers.document_classifier import DocumentTypeClassifier
from ..document_types import UNKNOWN, DocumentType, ExtractedFieldData, is_valid_document_type
from ..exceptions import ExtractionFailed, is_model_not_found
from ..extraction.field_extractor import get_field_extractor
from ..ocr.document_intelligence import AnalyzeResult, BaseDocumentAnalyzer
from ..tracing import Tracer, ensure_tracer

logger = logging.getLogger(__name__)

W2_MODEL = "prebuilt-tax.us.w2"
FORM_1099_MODEL = "prebuilt-tax.us.1099"
GENERIC_MODEL = "prebuilt-document"
FALLBACK_MODEL = "prebuilt-read"


def select_model(asserted_type: Any) -> str:
    """
    Analysis model for an asserted document type.

    W-2 uses the W-2 model, every 1099 variant shares the unified 1099 model
    and anything else (including unrecognized names) uses the generic model.
    """
    document_type = DocumentType.parse(asserted_type)
    if document_type is DocumentType.W2:
        return W2_MODEL
    if document_type is not None:
        return FORM_1099_MODEL
    return GENERIC_MODEL


class ExtractionOrchestrator:
    """Runs one document through analysis, projection and type correction."""

    def __init__(
        self,
        backend: BaseDocumentAnalyzer,
        classifier: Optional[DocumentTypeClassifier] = None,
        tracer: Optional[Tracer] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            backend: Document analysis backend
            classifier: Classifier used for type correction
            tracer: Tracer receiving pipeline events
        """
        self.backend = backend
        self.classifier = classifier or DocumentTypeClassifier()
        self.tracer = ensure_tracer(tracer, "orchestrator")

    def extract(self, document: bytes, asserted_type: Union[DocumentType, str, None]) -> ExtractedFieldData:
        """
        Extract the fields of one document.

        Args:
            document: Raw document bytes
            asserted_type: Type the caller believes the document is

        Returns:
            Field bag, re-projected if the recognized text named another form

        Raises:
            ExtractionFailed: If no usable analysis result could be obtained
        """
        document_type = DocumentType.parse(asserted_type)
        model_id = select_model(document_type)
        self.tracer.emit("model_selected", asserted_type=str(asserted_type), model_id=model_id)

        structured = True
        try:
            result = self._analyze(document, model_id)
        except Exception as e:
            if not is_model_not_found(e):
                self.tracer.emit("extraction_failed", model_id=model_id, error=str(e))
                raise ExtractionFailed(f"Analysis with {model_id} failed: {e}", cause=e) from e

            logger.warning(f"Model {model_id} unavailable, falling back to {FALLBACK_MODEL}")
            self.tracer.emit("fallback", from_model=model_id, to_model=FALLBACK_MODEL)
            structured = False
            model_id = FALLBACK_MODEL
            try:
                result = self._analyze(document, FALLBACK_MODEL)
            except Exception as fallback_error:
                self.tracer.emit("extraction_failed", model_id=FALLBACK_MODEL, error=str(fallback_error))
                raise ExtractionFailed(
                    f"Fallback analysis with {FALLBACK_MODEL} failed: {fallback_error}",
                    cause=fallback_error,
                ) from fallback_error

        try:
            data = self._project(result, document_type, structured, model_id)
            return self._check_document_type(result, data, document_type, structured, model_id)
        except ExtractionFailed:
            raise
        except Exception as e:
            logger.error(f"Projecting analysis result failed: {e}")
            raise ExtractionFailed(f"Could not project analysis result: {e}", cause=e) from e

    def _analyze(self, document: bytes, model_id: str) -> AnalyzeResult:
        result = self.backend.submit(document, model_id).await_result()
        self.tracer.emit("analysis_completed", model_id=model_id, characters=len(result.content or ""))
        return result

    def _project(
        self,
        result: AnalyzeResult,
        document_type: Optional[DocumentType],
        structured: bool,
        model_id: str,
    ) -> ExtractedFieldData:
        # a model that recognized no document leaves only the text to read
        use_structured = structured and bool(result.documents)
        data = get_field_extractor(document_type).extract(result, structured=use_structured)
        data.model_id = model_id
        data.used_fallback = not structured
        self.tracer.emit(
            "fields_projected",
            document_type=document_type.value if document_type else None,
            path="structured" if use_structured else "text",
            fields=len(data.fields),
        )
        return data

    def _check_document_type(
        self,
        result: AnalyzeResult,
        data: ExtractedFieldData,
        document_type: Optional[DocumentType],
        structured: bool,
        model_id: str,
    ) -> ExtractedFieldData:
        candidate, marker = self.classifier.classify_with_evidence(data.full_text)

        if candidate == UNKNOWN or candidate is document_type:
            self.tracer.emit("type_confirmed", document_type=_name(document_type), classified=_name(candidate))
            return data

        if not is_valid_document_type(candidate):
            logger.warning(f"Ignoring invalid document type correction {candidate!r}")
            self.tracer.emit("invalid_correction", candidate=str(candidate))
            return data

        corrected = candidate if isinstance(candidate, DocumentType) else DocumentType[candidate]
        if corrected is document_type:
            self.tracer.emit("type_confirmed", document_type=_name(document_type), classified=_name(corrected))
            return data

        logger.info(f"Document asserted as {_name(document_type)} reads as {corrected.value}, re-projecting")
        corrected_data = self._project(result, corrected, structured, model_id)
        corrected_data.corrected_document_type = corrected
        self.tracer.emit(
            "type_corrected",
            asserted_type=_name(document_type),
            corrected_type=corrected.value,
            marker=marker,
        )
        return corrected_data


def _name(value: Any) -> Optional[str]:
    if isinstance(value, DocumentType):
        return value.value
    return value
