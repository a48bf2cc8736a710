"""Receipt scanning: OCR backends, line parsing and pantry import."""

from .ocr import MockOCRBackend, OCRBackend, TextOCRBackend, create_ocr_backend
from .parser import normalize_unit, parse_line
from .scanner import ReceiptScanner, commit_receipt, line_confidence, match_line

__all__ = [
    "OCRBackend",
    "MockOCRBackend",
    "TextOCRBackend",
    "create_ocr_backend",
    "parse_line",
    "normalize_unit",
    "ReceiptScanner",
    "match_line",
    "line_confidence",
    "commit_receipt",
]
