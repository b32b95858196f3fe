"""Source processor for images via Tesseract OCR.

Opens the image with Pillow, converts it to RGB (Tesseract dislikes
palette and alpha modes) and runs a single ``pytesseract.image_to_string``
pass.  Every chunk from an image is tagged with the ``ocr`` location so
readers know the text is machine-recognized.
"""

from __future__ import annotations

import pytesseract
import structlog
from PIL import Image, UnidentifiedImageError

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.rag import ExtractedDocument
from src.utils.errors import ExtractionError
from src.utils.text_normalizer import clean_extracted_text

logger = structlog.get_logger(logger_name=__name__)


class ImageProcessor(IDocumentExtractor):
    """Extracts text from ``.png``/``.jpg``/``.tiff``/... images.

    Parameters
    ----------
    language:
        Tesseract language code(s), e.g. ``"eng"`` or ``"eng+deu"``.
    """

    document_type = "image"

    def __init__(self, language: str = "eng") -> None:
        self._language = language

    def extract(self, file_path: str) -> ExtractedDocument:
        try:
            with Image.open(file_path) as image:
                raw = pytesseract.image_to_string(image.convert("RGB"), lang=self._language)
        except pytesseract.TesseractNotFoundError as exc:
            raise ExtractionError(
                message="Tesseract binary not found; install tesseract-ocr",
                provider_name="tesseract",
            ) from exc
        except pytesseract.TesseractError as exc:
            raise ExtractionError(
                message=f"Tesseract failed on {file_path}: {exc}",
                provider_name="tesseract",
            ) from exc
        except (OSError, UnidentifiedImageError) as exc:
            raise ExtractionError(
                message=f"Cannot open image {file_path}: {exc}",
                provider_name="pillow",
            ) from exc

        text = clean_extracted_text(raw)
        logger.debug("ocr_extracted", file_path=file_path, chars=len(text))
        return ExtractedDocument(text=text, location_info="ocr")
