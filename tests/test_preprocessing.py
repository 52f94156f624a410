"""
Tests for document loading and image preprocessing.
"""

import io
import pytest
import sys
from pathlib import Path

from PIL import Image

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from taxdoc_intel.ocr.preprocessing import is_pdf, load_document, preprocess_image


def make_image(size=(200, 100), color=(200, 30, 30), fmt="JPEG"):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


class TestPreprocessing:
    """Test cases for image preprocessing."""

    def test_pdf_passes_through(self):
        document = b"%PDF-1.7\n..."
        assert is_pdf(document)
        assert preprocess_image(document) == document

    def test_unknown_bytes_pass_through(self):
        document = b"not an image"
        assert preprocess_image(document) == document

    def test_image_becomes_grayscale_png(self):
        processed = preprocess_image(make_image())

        with Image.open(io.BytesIO(processed)) as image:
            assert image.format == "PNG"
            assert image.mode == "L"
            assert image.size == (200, 100)

    def test_max_size(self):
        processed = preprocess_image(make_image(size=(400, 200)), max_size=(100, 100))

        with Image.open(io.BytesIO(processed)) as image:
            assert image.size == (100, 50)


class TestLoadDocument:
    """Test cases for load_document."""

    def test_load_from_path(self, tmp_path):
        path = tmp_path / "w2.pdf"
        path.write_bytes(b"%PDF-1.7 w2")

        assert load_document(path) == b"%PDF-1.7 w2"
        assert load_document(str(path)) == b"%PDF-1.7 w2"

    def test_load_without_preprocessing(self):
        image = make_image()
        assert load_document(image, preprocess=False) == image

    def test_load_bytearray(self):
        assert load_document(bytearray(b"%PDF-1.7"), preprocess=False) == b"%PDF-1.7"
