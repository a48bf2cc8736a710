"""Receipt scanning: OCR lines → matched line items → pantry items."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from ..catalog import find_ingredient, match_ingredient
from ..models import (
    CanonicalIngredient,
    LineConfidence,
    MatchedLineItem,
    OCRLine,
    PantryItem,
    Receipt,
)
from .ocr import OCRBackend
from .parser import parse_line

if TYPE_CHECKING:
    from ..db.store import PantryStore

logger = logging.getLogger(__name__)

# Quantity and unit confidence are fixed fractions of the name confidence
QUANTITY_CONFIDENCE_FACTOR = 0.9
UNIT_CONFIDENCE_FACTOR = 0.85


def line_confidence(confidence: float) -> LineConfidence:
    return LineConfidence(
        name=confidence,
        quantity=confidence * QUANTITY_CONFIDENCE_FACTOR,
        unit=confidence * UNIT_CONFIDENCE_FACTOR,
    )


def match_line(
    line: OCRLine, catalog: Sequence[CanonicalIngredient]
) -> MatchedLineItem:
    """Parse an OCR line and resolve it against the catalog."""
    parsed = parse_line(line.text)
    ingredient = match_ingredient(parsed.name, catalog)
    return MatchedLineItem(
        raw_text=line.text,
        parsed=parsed,
        confidence=line_confidence(line.confidence),
        canonical_id=ingredient.id if ingredient else None,
    )


class ReceiptScanner:
    """Runs OCR on receipt pages and turns the result into line items."""

    def __init__(
        self,
        backend: OCRBackend,
        catalog: Sequence[CanonicalIngredient],
        min_confidence: float = 0.0,
    ) -> None:
        self._backend = backend
        self._catalog = catalog
        self._min_confidence = min_confidence

    async def scan(self, image_paths: list[str], retailer: str | None = None) -> Receipt:
        """Scan receipt pages.

        OCR failures are reported through ``Receipt.ocr_status == "failed"``
        rather than raised.
        """
        receipt = Receipt(
            id=uuid.uuid4().hex,
            captured_at=datetime.now(),
            retailer=retailer,
            ocr_status="processing",
        )

        try:
            lines = await self._backend.recognize(image_paths)
        except (OSError, ValueError) as e:
            logger.error("OCR failed for %s: %s", image_paths, e)
            receipt.ocr_status = "failed"
            return receipt
        receipt.ocr_status = "completed"

        receipt.parse_status = "processing"
        for line in lines:
            if line.confidence < self._min_confidence:
                logger.info(
                    "Dropping low-confidence line %r (%.2f)", line.text, line.confidence
                )
                continue
            item = match_line(line, self._catalog)
            if not item.matched:
                logger.debug("No catalog match for %r", item.parsed.name)
            receipt.line_items.append(item)
        receipt.parse_status = "completed"

        logger.info(
            "Scanned receipt %s: %d lines, %d matched",
            receipt.id,
            len(receipt.line_items),
            sum(1 for i in receipt.line_items if i.matched),
        )
        return receipt


def _estimate_expiry(
    ingredient: CanonicalIngredient | None, storage: str, today: date
) -> date | None:
    """Estimate expiry from the ingredient's shelf life in the given storage."""
    if ingredient is None:
        return None
    days = ingredient.shelf_life.days_for(storage)
    if days <= 0:
        return None
    return today + timedelta(days=days)


def commit_receipt(
    receipt: Receipt,
    store: PantryStore,
    catalog: Sequence[CanonicalIngredient] = (),
    storage: str = "fridge",
    today: date | None = None,
) -> list[PantryItem]:
    """Add every matched line item to the pantry.

    Returns:
        The created pantry items. Unmatched lines are skipped.
    """
    today = today or date.today()
    created: list[PantryItem] = []
    for line in receipt.line_items:
        if line.canonical_id is None:
            continue
        ingredient = find_ingredient(line.canonical_id, catalog)
        item = PantryItem(
            id=uuid.uuid4().hex,
            ingredient_id=line.canonical_id,
            quantity=line.quantity,
            unit=line.unit,
            storage=storage,
            expiry_at=_estimate_expiry(ingredient, storage, today),
            source="receipt",
            notes="Added from receipt scan",
        )
        created.append(store.add(item))
    return created
