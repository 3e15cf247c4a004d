import fitz  # PyMuPDF

from .config import MAX_RESUME_BYTES, MAX_RESUME_PAGES
from .errors import ExtractionError
from .log import get_logger

logger = get_logger("pdf")


def extract_text_from_pdf_bytes(
    pdf_bytes: bytes,
    max_bytes: int = MAX_RESUME_BYTES,
    max_pages: int = MAX_RESUME_PAGES,
) -> str:
    """Extract readable text from a PDF file.

    Page texts are stripped and joined with a single space in page order.
    Pages without extractable text (blank or scanned) contribute nothing.
    """
    if not pdf_bytes:
        raise ExtractionError("The uploaded file is empty.")
    if len(pdf_bytes) > max_bytes:
        raise ExtractionError(f"The uploaded file exceeds the {max_bytes // (1024 * 1024)} MB limit.")

    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        logger.info("PDF open failed: %s", e)
        raise ExtractionError("The uploaded file is not a readable PDF.") from e

    with doc:
        if doc.needs_pass:
            raise ExtractionError("The uploaded PDF is password protected.")
        if doc.page_count == 0:
            raise ExtractionError("The uploaded PDF has no pages.")
        if doc.page_count > max_pages:
            raise ExtractionError(f"The uploaded PDF has more than {max_pages} pages.")
        try:
            page_texts = [page.get_text("text").strip() for page in doc]
        except Exception as e:
            logger.info("PDF text extraction failed: %s", e)
            raise ExtractionError("Text could not be extracted from the uploaded PDF.") from e

    text = " ".join(t for t in page_texts if t)
    logger.debug("Extracted %d characters from %d pages", len(text), len(page_texts))
    return text
