#!/usr/bin/env python3
"""
Command-line interface for taxdoc-intel.

This module provides a command-line interface for extracting tax documents
and building a consolidated Form 1040 from them.
"""

import argparse
import sys
import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from .classifiers.document_classifier import DocumentTypeClassifier
from .document_types import DocumentType
from .pipeline.tax_document_processor import TaxDocumentProcessor

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_document_arg(value: str) -> Tuple[str, Optional[str]]:
    """Split 'path/to/file.pdf:W2' into (path, type); the type is optional."""
    path, sep, document_type = value.rpartition(":")
    if not sep or not document_type or DocumentType.parse(document_type) is None:
        return value, None
    return path, document_type


def _write_output(payload, output: Optional[str]):
    text = json.dumps(payload, indent=2, default=str)
    if output:
        with open(output, 'w') as f:
            f.write(text)
        print(f"Results saved to {output}")
    else:
        print(text)


def _processor(args) -> TaxDocumentProcessor:
    return TaxDocumentProcessor(preprocess=not args.no_preprocess)


def extract_document(args):
    """Extract a single document."""
    processor = _processor(args)
    result = processor.process_document(args.document_path, args.type)
    _write_output(result, args.output)


def map_documents(args):
    """Extract several documents and map them into one Form 1040."""
    processor = _processor(args)
    documents = [parse_document_arg(value) for value in args.documents]
    aggregate = processor.build_return(documents)
    _write_output(aggregate.to_dict(), args.output)


def process_batch(args):
    """Process multiple documents, recording failures per document."""
    processor = _processor(args)

    if args.input_file:
        with open(args.input_file, 'r') as f:
            documents = [parse_document_arg(line.strip()) for line in f if line.strip()]
    else:
        input_dir = Path(args.input_dir)
        paths = sorted(
            p for p in input_dir.iterdir()
            if p.suffix.lower() in ('.pdf', '.jpg', '.jpeg', '.png', '.tif', '.tiff')
        )
        documents = [(str(p), None) for p in paths]

    results = processor.process_batch(documents)
    _write_output(results, args.output)


def classify_text(args):
    """Classify recognized text without calling the backend."""
    text = Path(args.text_file).read_text()
    document_type, marker = DocumentTypeClassifier().classify_with_evidence(text)
    name = document_type.value if isinstance(document_type, DocumentType) else document_type
    print(json.dumps({'document_type': name, 'marker': marker}, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="taxdoc-intel Command Line Interface")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    def add_common(sub):
        sub.add_argument('--output', '-o', help='Output file path')
        sub.add_argument('--no-preprocess', action='store_true', help='Send images without cleanup')

    # Extract single document
    extract_parser = subparsers.add_parser('extract', help='Extract a single document')
    extract_parser.add_argument('document_path', help='Path to the document (PDF or image)')
    extract_parser.add_argument('--type', '-t', help='Asserted document type, e.g. W2 or 1099-DIV')
    add_common(extract_parser)
    extract_parser.set_defaults(func=extract_document)

    # Map documents into one return
    map_parser = subparsers.add_parser('map', help='Build one Form 1040 from several documents')
    map_parser.add_argument('documents', nargs='+', help='Documents as PATH:TYPE (type optional)')
    add_common(map_parser)
    map_parser.set_defaults(func=map_documents)

    # Process batch
    batch_parser = subparsers.add_parser('batch', help='Process multiple documents')
    source = batch_parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--input_file', help='File with one PATH:TYPE per line')
    source.add_argument('--input_dir', help='Directory containing documents')
    add_common(batch_parser)
    batch_parser.set_defaults(func=process_batch)

    # Classify text
    classify_parser = subparsers.add_parser('classify', help='Classify recognized text')
    classify_parser.add_argument('text_file', help='Text file with recognized document text')
    classify_parser.set_defaults(func=classify_text)

    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
