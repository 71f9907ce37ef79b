"""PDF and DOCX text extraction.

Extraction is a pure function of the file bytes and the declared type. The
parsers are CPU bound, so async callers go through ``extract_async`` which
runs the work in a worker thread.
"""

import asyncio
import io
from functools import lru_cache
from typing import Iterator

import docx
import pdfplumber
from docx.document import Document as DocxDocument
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

from ...modules.common.exceptions import CorruptDocumentError, EmptyContentError, UnsupportedInputError
from ..logging import get_logger

logger = get_logger(__name__)

IMAGE_NOT_SUPPORTED = "Image parsing is not yet supported in this iteration. Please upload PDF or DOCX."


class TextExtractor:
    """Extract plain text from PDF and DOCX bytes."""

    def extract(self, content: bytes, file_type: str) -> str:
        """Extract trimmed text from a document.

        Args:
            content: Raw file bytes
            file_type: Declared type, one of ``pdf``, ``docx`` or ``image``

        Returns:
            The non-empty extracted text

        Raises:
            UnsupportedInputError: For images and unknown types
            CorruptDocumentError: If the bytes cannot be parsed as the declared type
            EmptyContentError: If the document holds no non-whitespace text
        """
        if file_type == "pdf":
            text = self._extract_pdf(content)
        elif file_type == "docx":
            text = self._extract_docx(content)
        elif file_type == "image":
            raise UnsupportedInputError(IMAGE_NOT_SUPPORTED)
        else:
            raise UnsupportedInputError(f"Cannot extract text from file type '{file_type}'")

        text = text.strip()
        if not text:
            raise EmptyContentError(f"No text could be extracted from the {file_type} file")

        logger.debug("Extracted document text", extra={"file_type": file_type, "characters": len(text)})
        return text

    async def extract_async(self, content: bytes, file_type: str) -> str:
        return await asyncio.to_thread(self.extract, content, file_type)

    def _extract_pdf(self, content: bytes) -> str:
        try:
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            raise CorruptDocumentError(f"Could not parse PDF: {type(e).__name__}") from e
        return "\n".join(pages)

    def _extract_docx(self, content: bytes) -> str:
        try:
            document = docx.Document(io.BytesIO(content))
            lines = list(_iter_docx_lines(document))
        except Exception as e:
            raise CorruptDocumentError(f"Could not parse DOCX: {type(e).__name__}") from e
        return "\n".join(lines)


def _iter_docx_lines(document: DocxDocument) -> Iterator[str]:
    """Yield paragraph and table row text in body order."""
    body = document.element.body
    for child in body.iterchildren():
        if child.tag == qn("w:p"):
            yield Paragraph(child, document).text
        elif child.tag == qn("w:tbl"):
            for row in Table(child, document).rows:
                cells: list[str] = []
                for cell in row.cells:
                    text = cell.text.strip()
                    # merged cells repeat the same text
                    if text and (not cells or cells[-1] != text):
                        cells.append(text)
                if cells:
                    yield " | ".join(cells)


@lru_cache
def get_text_extractor() -> TextExtractor:
    """Get the process-wide text extractor."""
    return TextExtractor()
