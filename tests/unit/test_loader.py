"""Unit tests for the file and URL decoders."""

from __future__ import annotations

from io import BytesIO
from unittest.mock import MagicMock, patch

import pytest
import requests
from docx import Document

from source_qa.errors import UnsupportedSourceError
from source_qa.ingestion.loader import extract_text, fetch_url_text, file_extension, html_to_text


class TestExtractText:
    @pytest.mark.parametrize("name", ["a.txt", "README.MD", "dir/notes.md"])
    def test_plain_text_files_decoded(self, name: str) -> None:
        assert extract_text("héllo".encode(), name) == "héllo"

    def test_invalid_utf8_is_replaced(self) -> None:
        assert extract_text(b"ok\xff", "a.txt") == "ok�"

    @pytest.mark.parametrize("name", ["photo.png", "archive", "legacy.doc"])
    def test_unsupported_extensions(self, name: str) -> None:
        with pytest.raises(UnsupportedSourceError):
            extract_text(b"data", name)

    def test_corrupt_pdf(self) -> None:
        with pytest.raises(UnsupportedSourceError):
            extract_text(b"not really a pdf", "broken.pdf")

    def test_pdf_pages_joined(self) -> None:
        page_a, page_b = MagicMock(), MagicMock()
        page_a.extract_text.return_value = "Page one."
        page_b.extract_text.return_value = None
        with patch("source_qa.ingestion.loader.PdfReader") as reader_cls:
            reader_cls.return_value.pages = [page_a, page_b]
            assert extract_text(b"%PDF", "doc.pdf") == "Page one.\n"

    def test_docx_paragraphs_and_tables(self) -> None:
        document = Document()
        document.add_paragraph("Quarterly report.")
        table = document.add_table(rows=1, cols=2)
        table.rows[0].cells[0].text = "Revenue"
        table.rows[0].cells[1].text = "42"
        document.add_paragraph("End of report.")
        buffer = BytesIO()
        document.save(buffer)

        text = extract_text(buffer.getvalue(), "report.docx")

        assert text == "Quarterly report.\n\nRevenue\t42\n\nEnd of report."

    def test_corrupt_docx(self) -> None:
        with pytest.raises(UnsupportedSourceError):
            extract_text(b"not a zip archive", "broken.docx")

    def test_file_extension(self) -> None:
        assert file_extension("Report.PDF") == "pdf"
        assert file_extension("noext") == ""


class TestFetchUrl:
    def test_html_to_text_drops_scripts(self) -> None:
        html = "<html><head><script>var x=1;</script></head><body><p>Alpha   beta</p></body></html>"
        assert html_to_text(html) == "Alpha beta"

    def test_fetch_html_page(self) -> None:
        response = MagicMock(
            text="<html><body><h1>Title</h1><p>Body text.</p></body></html>",
            headers={"content-type": "text/html; charset=utf-8"},
        )
        with patch("source_qa.ingestion.loader.requests.get", return_value=response) as get:
            text = fetch_url_text("https://example.com", timeout=5)
        assert "Title" in text and "Body text." in text
        assert get.call_args.kwargs["timeout"] == 5

    def test_fetch_plain_text(self) -> None:
        response = MagicMock(text="just   text", headers={"content-type": "text/plain"})
        with patch("source_qa.ingestion.loader.requests.get", return_value=response):
            assert fetch_url_text("https://example.com/a.txt") == "just text"

    def test_fetch_failure_raises(self) -> None:
        with patch(
            "source_qa.ingestion.loader.requests.get",
            side_effect=requests.ConnectionError("dns failure"),
        ):
            with pytest.raises(UnsupportedSourceError):
                fetch_url_text("https://nowhere.invalid")
