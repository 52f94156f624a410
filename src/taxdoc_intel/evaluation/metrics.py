"""
Evaluation metrics for document classification and field extraction.

Classification metrics score the type classifier against labeled OCR text;
field metrics compare extracted field bags against expected box values.
"""

import time
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
from sklearn.metrics import accuracy_score, confusion_matrix, precision_recall_fscore_support

from ..classifiers.document_classifier import DocumentTypeClassifier
from ..document_types import UNKNOWN, DocumentType, ExtractedFieldData, FieldKind

logger = logging.getLogger(__name__)

CLASS_NAMES = [document_type.value for document_type in DocumentType] + [UNKNOWN]


def _label(value: Any) -> str:
    """Class label for a document type; anything unsupported counts as UNKNOWN."""
    document_type = DocumentType.parse(value)
    if document_type is not None:
        return document_type.value
    return UNKNOWN


class ClassificationMetrics:
    """Metrics for document type classification."""

    def __init__(self, class_names: Optional[List[str]] = None):
        self.class_names = list(class_names or CLASS_NAMES)
        if UNKNOWN not in self.class_names:
            self.class_names.append(UNKNOWN)
        self.reset()

    def reset(self):
        """Reset all metrics."""
        self.predictions = []
        self.true_labels = []
        self.processing_times = []

    def update(self, prediction: Any, true_label: Any, processing_time: float = 0.0):
        """Update metrics with a new prediction."""
        self.predictions.append(self._class_of(prediction))
        self.true_labels.append(self._class_of(true_label))
        self.processing_times.append(processing_time)

    def _class_of(self, value: Any) -> str:
        label = _label(value)
        return label if label in self.class_names else UNKNOWN

    def compute_metrics(self) -> Dict[str, Any]:
        """Compute all classification metrics."""
        if not self.predictions:
            return {}

        labels = list(range(len(self.class_names)))
        pred_indices = [self.class_names.index(p) for p in self.predictions]
        true_indices = [self.class_names.index(t) for t in self.true_labels]

        accuracy = accuracy_score(true_indices, pred_indices)
        precision, recall, f1, _ = precision_recall_fscore_support(
            true_indices, pred_indices, labels=labels, average='weighted', zero_division=0
        )

        precision_per_class, recall_per_class, f1_per_class, support_per_class = precision_recall_fscore_support(
            true_indices, pred_indices, labels=labels, average=None, zero_division=0
        )

        per_class_metrics = {}
        for i, class_name in enumerate(self.class_names):
            per_class_metrics[class_name] = {
                'precision': float(precision_per_class[i]),
                'recall': float(recall_per_class[i]),
                'f1': float(f1_per_class[i]),
                'support': int(support_per_class[i])
            }

        cm = confusion_matrix(true_indices, pred_indices, labels=labels)

        return {
            'accuracy': float(accuracy),
            'precision': float(precision),
            'recall': float(recall),
            'f1': float(f1),
            'per_class_metrics': per_class_metrics,
            'confusion_matrix': cm.tolist(),
            'processing_time_metrics': {
                'average_time': float(np.mean(self.processing_times)),
                'time_std': float(np.std(self.processing_times)),
                'max_time': float(np.max(self.processing_times))
            },
            'total_samples': len(self.predictions)
        }


class FieldExtractionMetrics:
    """Per-field precision and recall of extracted values against expected values."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.counts = defaultdict(lambda: {'tp': 0, 'fp': 0, 'fn': 0})
        self.documents = 0
        self.exact_documents = 0

    def update(self, data: ExtractedFieldData, expected: Dict[str, Any]):
        """
        Compare one field bag with the expected values.

        Args:
            data: Extracted field bag
            expected: Expected value per field name (amounts as numbers or strings)
        """
        self.documents += 1
        all_correct = True

        for name in set(data.fields) | set(expected):
            item = data.fields.get(name)
            predicted = self._plain(item.value, item.kind) if item is not None else None
            wanted = self._normalize(expected.get(name))

            if predicted is not None and predicted == wanted:
                self.counts[name]['tp'] += 1
                continue
            all_correct = False
            if predicted is not None:
                self.counts[name]['fp'] += 1
            if wanted is not None:
                self.counts[name]['fn'] += 1

        if all_correct:
            self.exact_documents += 1

    @staticmethod
    def _plain(value: Any, kind: FieldKind) -> Any:
        if kind is FieldKind.AMOUNT:
            return Decimal(value).normalize()
        if kind is FieldKind.CODES:
            return tuple((entry.code, entry.amount.normalize()) for entry in value)
        if kind is FieldKind.TEXT:
            return str(value).strip()
        return value

    @staticmethod
    def _normalize(value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float, Decimal)):
            return Decimal(str(value)).normalize()
        if isinstance(value, str):
            return value.strip()
        return value

    def compute_metrics(self) -> Dict[str, Any]:
        if not self.documents:
            return {}

        per_field = {}
        total = {'tp': 0, 'fp': 0, 'fn': 0}
        for name, counts in sorted(self.counts.items()):
            per_field[name] = self._scores(counts)
            for key in total:
                total[key] += counts[key]

        overall = self._scores(total)
        overall.update({
            'per_field_metrics': per_field,
            'exact_match_rate': self.exact_documents / self.documents,
            'total_documents': self.documents,
        })
        return overall

    @staticmethod
    def _scores(counts: Dict[str, int]) -> Dict[str, float]:
        tp, fp, fn = counts['tp'], counts['fp'], counts['fn']
        precision = tp / (tp + fp) if (tp + fp) > 0 else 0.0
        recall = tp / (tp + fn) if (tp + fn) > 0 else 0.0
        f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0.0
        return {'precision': precision, 'recall': recall, 'f1': f1}


def evaluate_classifier(
    samples: Iterable[Tuple[str, Any]],
    classifier: Optional[DocumentTypeClassifier] = None,
) -> Dict[str, Any]:
    """
    Evaluate the type classifier on labeled text.

    Args:
        samples: (recognized text, true label) pairs; labels are DocumentType
            members, their names, or UNKNOWN
        classifier: Classifier to evaluate (default rules if None)

    Returns:
        Classification metrics
    """
    classifier = classifier or DocumentTypeClassifier()
    metrics = ClassificationMetrics()

    for text, true_label in samples:
        start_time = time.time()
        prediction = classifier.classify(text)
        metrics.update(prediction, true_label, time.time() - start_time)

    results = metrics.compute_metrics()
    if results:
        logger.info(f"Classifier accuracy {results['accuracy']:.3f} over {results['total_samples']} samples")
    return results
