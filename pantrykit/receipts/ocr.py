"""OCR backend base class, mock and text-file backends, and factory."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from ..models import OCRLine

if TYPE_CHECKING:
    from ..config import PantryConfig

logger = logging.getLogger(__name__)

# Lines returned by the demo scanner regardless of the image
_MOCK_LINES: list[tuple[str, float]] = [
    ("CHICKEN BREAST 2.5 LB", 0.95),
    ("BELL PEPPERS 4 UNITS", 0.92),
    ("RICE WHITE 2 CUPS", 0.88),
    ("OLIVE OIL 500ML", 0.94),
    ("TOMATOES 6 UNITS", 0.90),
    ("ONIONS 3 UNITS", 0.87),
]


class OCRBackend(ABC):
    """Abstract base for receipt text recognition."""

    @abstractmethod
    async def recognize(self, image_paths: list[str]) -> list[OCRLine]:
        """Recognise receipt lines from one or more receipt pages.

        Lines are returned in page order, top to bottom.
        """
        ...


class MockOCRBackend(OCRBackend):
    """Returns a fixed grocery receipt for any input."""

    def __init__(self, lines: list[tuple[str, float]] | None = None) -> None:
        self._lines = lines if lines is not None else _MOCK_LINES

    async def recognize(self, image_paths: list[str]) -> list[OCRLine]:
        return [OCRLine(text=text, confidence=conf) for text, conf in self._lines]


class TextOCRBackend(OCRBackend):
    """Reads receipts that were already recognised into plain text.

    Each non-blank line is either ``TEXT`` or ``TEXT<TAB>CONFIDENCE``.
    """

    def __init__(self, default_confidence: float = 1.0) -> None:
        self._default_confidence = default_confidence

    async def recognize(self, image_paths: list[str]) -> list[OCRLine]:
        lines: list[OCRLine] = []
        for path in image_paths:
            content = Path(path).read_text(encoding="utf-8")
            for raw in content.splitlines():
                line = self._parse_line(raw)
                if line is not None:
                    lines.append(line)
        return lines

    def _parse_line(self, raw: str) -> OCRLine | None:
        text, sep, conf = raw.rpartition("\t")
        if not sep:
            text, conf = raw, ""
        text = text.strip()
        if not text:
            return None

        confidence = self._default_confidence
        if conf.strip():
            try:
                confidence = min(max(float(conf), 0.0), 1.0)
            except ValueError:
                logger.debug("Bad confidence %r for line %r", conf, text)
        return OCRLine(text=text, confidence=confidence)


def create_ocr_backend(config: PantryConfig) -> OCRBackend:
    """Create an OCR backend based on configuration."""
    backend_name = config.ocr.backend

    match backend_name:
        case "mock":
            return MockOCRBackend()
        case "text":
            return TextOCRBackend(default_confidence=config.ocr.default_confidence)
        case _:
            raise ValueError(
                f"Unknown OCR backend: {backend_name!r} (choose from mock / text)"
            )
