"""Data models for ingredients, receipts, recipes and pantry holdings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

CATEGORIES: tuple[str, ...] = (
    "protein", "vegetable", "grain", "oil", "dairy", "fruit", "spice", "other",
)
STORAGE_LOCATIONS: tuple[str, ...] = ("room", "fridge", "freezer")
DIFFICULTIES: tuple[str, ...] = ("Easy", "Medium", "Hard")


@dataclass(frozen=True)
class ShelfLife:
    """Default shelf life in days per storage location."""

    room: int = 0
    fridge: int = 0
    freezer: int = 0

    def days_for(self, storage: str) -> int:
        return getattr(self, storage, 0) if storage in STORAGE_LOCATIONS else 0


@dataclass(frozen=True)
class CanonicalIngredient:
    """Authoritative ingredient record that receipt text resolves against."""

    id: str
    name: str
    synonyms: tuple[str, ...] = ()
    category: str = "other"
    default_unit: str = "unit"
    density: float | None = None  # g/mL for liquids
    shelf_life: ShelfLife = field(default_factory=ShelfLife)
    nutrition_ref: str | None = None


@dataclass
class OCRLine:
    """A single recognised text line with its OCR confidence."""

    text: str
    confidence: float  # 0.0 to 1.0


@dataclass
class ParsedLine:
    name: str
    quantity: float = 1.0
    unit: str = "unit"
    size_text: str | None = None


@dataclass
class LineConfidence:
    name: float
    quantity: float
    unit: float


@dataclass
class MatchedLineItem:
    """A parsed receipt line, optionally resolved to a canonical ingredient."""

    raw_text: str
    parsed: ParsedLine
    confidence: LineConfidence
    canonical_id: str | None = None

    @property
    def quantity(self) -> float:
        return self.parsed.quantity

    @property
    def unit(self) -> str:
        return self.parsed.unit

    @property
    def matched(self) -> bool:
        return self.canonical_id is not None


@dataclass
class Receipt:
    id: str
    captured_at: datetime
    line_items: list[MatchedLineItem] = field(default_factory=list)
    retailer: str | None = None
    ocr_status: str = "pending"  # pending | processing | completed | failed
    parse_status: str = "pending"

    @property
    def confidence_summary(self) -> dict[str, float]:
        """Mean name confidence and item count."""
        if not self.line_items:
            return {"overall": 0.0, "items": 0}
        overall = sum(i.confidence.name for i in self.line_items) / len(
            self.line_items
        )
        return {"overall": overall, "items": len(self.line_items)}


@dataclass
class RecipeRequirement:
    ingredient_id: str
    quantity: float
    unit: str
    optional: bool = False
    substitutions: list[str] = field(default_factory=list)


@dataclass
class Recipe:
    id: str
    title: str
    cuisine: str = ""
    steps: list[str] = field(default_factory=list)
    yields: int = 1
    time: int = 0  # minutes
    difficulty: str = "Medium"  # Easy | Medium | Hard
    ingredients: list[RecipeRequirement] = field(default_factory=list)
    image: str | None = None
    url: str | None = None
    author: str | None = None
    source: str = "imported"  # imported | user | community
    nutrition: dict[str, float] = field(default_factory=dict)


@dataclass
class PantryItem:
    """A quantity of a canonical ingredient held in storage."""

    id: str
    ingredient_id: str
    quantity: float
    unit: str
    storage: str = "room"  # room | fridge | freezer
    expiry_at: date | None = None
    source: str = "manual"  # receipt | manual
    added_at: datetime = field(default_factory=datetime.now)
    notes: str | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class Holding:
    quantity: float
    unit: str


AvailabilitySnapshot = dict[str, Holding]


@dataclass
class RecipeAvailability:
    can_make: bool
    missing_ingredients: list[str]
    match_percentage: int
