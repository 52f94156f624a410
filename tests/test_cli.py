"""
Tests for the command-line interface.
"""

import json
import pytest
import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import Mock, patch

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from conftest import DIV_TEXT
from taxdoc_intel.cli import build_parser, main, parse_document_arg
from taxdoc_intel.mapping.form_1040 import Form1040Data


class TestParseDocumentArg:
    """Test cases for PATH:TYPE arguments."""

    def test_with_type(self):
        assert parse_document_arg("docs/w2.pdf:W2") == ("docs/w2.pdf", "W2")
        assert parse_document_arg("div.png:1099-DIV") == ("div.png", "1099-DIV")

    def test_without_type(self):
        assert parse_document_arg("docs/w2.pdf") == ("docs/w2.pdf", None)

    def test_invalid_type_kept_in_path(self):
        assert parse_document_arg("C:/scans/w2.pdf") == ("C:/scans/w2.pdf", None)
        assert parse_document_arg("scan.pdf:1098") == ("scan.pdf:1098", None)


class TestCLI:
    """Test cases for the CLI commands."""

    def test_no_command(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_parser_options(self):
        args = build_parser().parse_args(["extract", "w2.pdf", "-t", "W2", "--no-preprocess"])

        assert args.document_path == "w2.pdf"
        assert args.type == "W2"
        assert args.no_preprocess is True

    def test_classify(self, tmp_path, capsys):
        text_file = tmp_path / "div.txt"
        text_file.write_text(DIV_TEXT)

        main(["classify", str(text_file)])

        output = json.loads(capsys.readouterr().out)
        assert output == {"document_type": "FORM_1099_DIV", "marker": "1099-div"}

    @patch('taxdoc_intel.cli.TaxDocumentProcessor')
    def test_extract(self, mock_processor_class, tmp_path):
        mock_processor = Mock()
        mock_processor.process_document.return_value = {"document_type": "W2"}
        mock_processor_class.return_value = mock_processor
        output = tmp_path / "result.json"

        main(["extract", "w2.pdf", "--type", "W2", "--no-preprocess", "-o", str(output)])

        mock_processor_class.assert_called_once_with(preprocess=False)
        mock_processor.process_document.assert_called_once_with("w2.pdf", "W2")
        assert json.loads(output.read_text()) == {"document_type": "W2"}

    @patch('taxdoc_intel.cli.TaxDocumentProcessor')
    def test_map(self, mock_processor_class, capsys):
        mock_processor = Mock()
        mock_processor.build_return.return_value = Form1040Data(line_1=Decimal("75000"))
        mock_processor_class.return_value = mock_processor

        main(["map", "w2.pdf:W2", "div.pdf:1099-DIV"])

        mock_processor.build_return.assert_called_once_with([("w2.pdf", "W2"), ("div.pdf", "1099-DIV")])
        output = json.loads(capsys.readouterr().out)
        assert output["line_1"] == "75000"
        assert output["total_withholding"] == "0"

    @patch('taxdoc_intel.cli.TaxDocumentProcessor')
    def test_batch_from_file(self, mock_processor_class, tmp_path, capsys):
        mock_processor = Mock()
        mock_processor.process_batch.return_value = [{"document_type": "W2"}]
        mock_processor_class.return_value = mock_processor
        input_file = tmp_path / "documents.txt"
        input_file.write_text("w2.pdf:W2\n\nmisc.pdf\n")

        main(["batch", "--input_file", str(input_file)])

        mock_processor.process_batch.assert_called_once_with([("w2.pdf", "W2"), ("misc.pdf", None)])

    @patch('taxdoc_intel.cli.TaxDocumentProcessor')
    def test_batch_from_directory(self, mock_processor_class, tmp_path):
        mock_processor = Mock()
        mock_processor.process_batch.return_value = []
        mock_processor_class.return_value = mock_processor
        (tmp_path / "b.pdf").write_bytes(b"%PDF")
        (tmp_path / "a.png").write_bytes(b"png")
        (tmp_path / "notes.txt").write_text("skip me")

        main(["batch", "--input_dir", str(tmp_path), "-o", str(tmp_path / "out.json")])

        documents = mock_processor.process_batch.call_args.args[0]
        assert documents == [(str(tmp_path / "a.png"), None), (str(tmp_path / "b.pdf"), None)]

    @patch('taxdoc_intel.cli.TaxDocumentProcessor')
    def test_command_failure_exits(self, mock_processor_class):
        mock_processor_class.side_effect = RuntimeError("no credentials")

        with pytest.raises(SystemExit) as exc_info:
            main(["extract", "w2.pdf"])
        assert exc_info.value.code == 1
