"""Source decoders — turn uploaded bytes or a URL into plain text.

These sit in front of the ingestion pipeline; the pipeline itself only
ever sees decoded text.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from io import BytesIO
from pathlib import PurePath

import requests
from bs4 import BeautifulSoup
from docx import Document
from docx.table import Table
from pypdf import PdfReader

from source_qa.config import settings
from source_qa.errors import UnsupportedSourceError

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {"txt", "md"}
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | {"pdf", "docx"}


def file_extension(filename: str) -> str:
    """Lower-case extension of *filename* without the dot (``""`` if none)."""
    return PurePath(filename).suffix.lstrip(".").lower()


def _normalise(text: str) -> str:
    """Unicode NFC, collapse whitespace, strip control chars."""
    text = unicodedata.normalize("NFC", text)
    text = re.sub(r"[^\S\n]+", " ", text)  # collapse spaces (keep \n)
    text = re.sub(r"\n{3,}", "\n\n", text)  # max two consecutive newlines
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f]", "", text)
    return text.strip()


def extract_text(data: bytes, filename: str) -> str:
    """Decode an uploaded file into plain text.

    Parameters
    ----------
    data:
        Raw file bytes.
    filename:
        Original file name; its extension selects the decoder.

    Raises
    ------
    UnsupportedSourceError
        For unknown extensions or undecodable PDF and DOCX files.
    """
    ext = file_extension(filename)
    if ext in TEXT_EXTENSIONS:
        return data.decode("utf-8", errors="replace")
    if ext == "pdf":
        try:
            reader = PdfReader(BytesIO(data))
            pages = [page.extract_text() or "" for page in reader.pages]
        except Exception as exc:
            raise UnsupportedSourceError(f"cannot read PDF {filename!r}: {exc}") from exc
        return "\n".join(pages)
    if ext == "docx":
        try:
            return _docx_text(data)
        except Exception as exc:
            raise UnsupportedSourceError(f"cannot read DOCX {filename!r}: {exc}") from exc
    raise UnsupportedSourceError(f"unsupported file type {ext or '<none>'!r} for {filename!r}")


def _docx_text(data: bytes) -> str:
    """Raw text of a Word document, one block per paragraph or table row."""
    blocks: list[str] = []
    for block in Document(BytesIO(data)).iter_inner_content():
        if isinstance(block, Table):
            blocks.extend("\t".join(cell.text for cell in row.cells) for row in block.rows)
        else:
            blocks.append(block.text)
    return "\n\n".join(blocks)


def html_to_text(html: str) -> str:
    """Visible text of an HTML page, whitespace-normalised."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return _normalise(soup.get_text(separator="\n"))


def fetch_url_text(url: str, *, timeout: float = settings.url_fetch_timeout) -> str:
    """Download *url* and return its text content.

    HTML responses are stripped to their visible text; anything else is
    returned as decoded by ``requests``.
    """
    try:
        resp = requests.get(url, timeout=timeout, headers={"User-Agent": "source-qa/0.1"})
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise UnsupportedSourceError(f"cannot fetch {url}: {exc}") from exc

    content_type = resp.headers.get("content-type", "")
    logger.info("Fetched %s (%s, %d chars)", url, content_type or "unknown", len(resp.text))
    if "html" in content_type or not content_type:
        return html_to_text(resp.text)
    return _normalise(resp.text)
