"""Image cleanup for photographed tax documents before analysis."""

import io
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


def is_pdf(document: bytes) -> bool:
    return document[:4] == PDF_MAGIC


def preprocess_image(document: bytes, max_size: Optional[Tuple[int, int]] = None) -> bytes:
    """
    Preprocess image bytes for better recognition results.

    Applies the EXIF orientation, converts to grayscale, stretches contrast
    and re-encodes as PNG. PDFs and bytes Pillow cannot read are returned
    unchanged.

    Args:
        document: Raw document bytes
        max_size: Optional (width, height) bound; larger images are shrunk

    Returns:
        Processed PNG bytes, or the input untouched
    """
    if is_pdf(document):
        return document

    try:
        with Image.open(io.BytesIO(document)) as image:
            image = ImageOps.exif_transpose(image)
            image = ImageOps.grayscale(image)
            image = ImageOps.autocontrast(image)
            if max_size:
                image.thumbnail(max_size)

            output = io.BytesIO()
            image.save(output, format="PNG")
    except UnidentifiedImageError:
        logger.debug("Input is not a recognized image, sending as-is")
        return document

    processed = output.getvalue()
    logger.info(f"Image preprocessed: {len(document)} -> {len(processed)} bytes")
    return processed


def load_document(source: Union[str, Path, bytes], preprocess: bool = True) -> bytes:
    """Read a document from a path (or take bytes) and optionally clean it up."""
    if isinstance(source, (str, Path)):
        document = Path(source).read_bytes()
    else:
        document = bytes(source)

    if preprocess:
        document = preprocess_image(document)
    return document
