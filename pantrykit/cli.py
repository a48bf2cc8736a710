"""CLI entry point for pantrykit."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import uuid
from dataclasses import asdict
from datetime import date, timedelta

from dotenv import load_dotenv

from .catalog import find_ingredient, load_ingredients, load_recipes, match_ingredient
from .config import PantryConfig, load_config
from .db import CatalogDB, StorageUnavailable, create_store, load_catalog
from .models import (
    STORAGE_LOCATIONS,
    CanonicalIngredient,
    PantryItem,
    Receipt,
    Recipe,
)
from .pantry import EXPIRY_FILTERS, expiry_status, filter_pantry, pantry_summary
from .receipts import ReceiptScanner, commit_receipt, create_ocr_backend
from .recipes import RecipeFilter, build_availability, suggest_recipes

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="pantrykit",
        description="Pantry manager: scan receipts, track stock, find recipes",
    )
    parser.add_argument(
        "--config", "-c", type=str, default=None, help="Path to a TOML config file"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # scan
    scan_parser = sub.add_parser("scan", help="Scan a receipt into line items")
    scan_parser.add_argument(
        "--image", type=str, nargs="+", default=[], help="Receipt page files"
    )
    scan_parser.add_argument(
        "--commit", action="store_true", help="Add matched items to the pantry"
    )
    scan_parser.add_argument(
        "--storage", choices=STORAGE_LOCATIONS, default=None,
        help="Storage location for committed items",
    )
    scan_parser.add_argument("--json", action="store_true", help="Output JSON")

    # pantry
    pantry_parser = sub.add_parser("pantry", help="List pantry items")
    pantry_parser.add_argument("--query", type=str, default="")
    pantry_parser.add_argument("--category", type=str, default=None)
    pantry_parser.add_argument("--storage", choices=STORAGE_LOCATIONS, default=None)
    pantry_parser.add_argument("--expiry", choices=EXPIRY_FILTERS, default="all")
    pantry_parser.add_argument("--json", action="store_true", help="Output JSON")

    # add
    add_parser = sub.add_parser("add", help="Add an ingredient to the pantry")
    add_parser.add_argument("ingredient", help="Ingredient name or catalog ID")
    add_parser.add_argument("quantity", type=float)
    add_parser.add_argument("--unit", type=str, default=None)
    add_parser.add_argument("--storage", choices=STORAGE_LOCATIONS, default="room")
    add_parser.add_argument(
        "--expires-in", type=int, default=None, metavar="DAYS",
        help="Expiry as days from today",
    )
    add_parser.add_argument("--note", type=str, default=None)
    add_parser.add_argument("--tag", action="append", default=[])

    # remove
    remove_parser = sub.add_parser("remove", help="Remove a pantry item")
    remove_parser.add_argument("item_id")

    # recipes
    recipes_parser = sub.add_parser("recipes", help="Suggest recipes")
    recipes_parser.add_argument("--query", type=str, default="")
    recipes_parser.add_argument("--cuisine", type=str, default=None)
    recipes_parser.add_argument(
        "--difficulty", choices=("Easy", "Medium", "Hard"), default=None
    )
    recipes_parser.add_argument("--max-time", type=int, default=None)
    recipes_parser.add_argument("--json", action="store_true", help="Output JSON")

    # import
    import_parser = sub.add_parser(
        "import", help="Load catalog ingredients and recipes from JSON"
    )
    import_parser.add_argument(
        "file", help='JSON file: {"ingredients": [...], "recipes": [...]}'
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config)

    try:
        match args.command:
            case "scan":
                asyncio.run(_cmd_scan(config, args))
            case "pantry":
                _cmd_pantry(config, args)
            case "add":
                _cmd_add(config, args)
            case "remove":
                _cmd_remove(config, args)
            case "recipes":
                _cmd_recipes(config, args)
            case "import":
                _cmd_import(config, args)
    except (StorageUnavailable, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _open_catalog(config: PantryConfig) -> tuple[list[CanonicalIngredient], list[Recipe]]:
    db = CatalogDB(config.database.path) if config.database.backend == "sqlite" else None
    try:
        return load_catalog(db)
    finally:
        if db is not None:
            db.close()


async def _cmd_scan(config: PantryConfig, args) -> None:
    catalog, _ = _open_catalog(config)
    scanner = ReceiptScanner(
        create_ocr_backend(config),
        catalog,
        min_confidence=config.ocr.min_confidence,
    )
    receipt = await scanner.scan(args.image)
    if receipt.ocr_status == "failed":
        print("Could not read the receipt.", file=sys.stderr)
        sys.exit(1)

    if args.json:
        data = {
            "id": receipt.id,
            "confidence_summary": receipt.confidence_summary,
            "line_items": [
                {
                    "raw_text": i.raw_text,
                    "name": i.parsed.name,
                    "quantity": i.quantity,
                    "unit": i.unit,
                    "size_text": i.parsed.size_text,
                    "canonical_id": i.canonical_id,
                    "confidence": asdict(i.confidence),
                }
                for i in receipt.line_items
            ],
        }
        print(json.dumps(data, ensure_ascii=False, indent=2))
    else:
        print(f"Receipt {receipt.id} ({len(receipt.line_items)} lines)")
        for i in receipt.line_items:
            ingredient = find_ingredient(i.canonical_id, catalog) if i.canonical_id else None
            target = ingredient.name if ingredient else "unmatched"
            print(
                f"  {i.parsed.name:<20} {i.quantity:g} {i.unit:<5} "
                f"{i.confidence.name:.0%}  → {target}"
            )

    if args.commit:
        if config.database.backend == "sqlite":
            _save_receipt(config, receipt)
        store = create_store(config)
        storage = args.storage or config.pantry.default_storage
        created = commit_receipt(receipt, store, catalog, storage=storage)
        print(f"Added {len(created)} items to the pantry ({storage}).")


def _save_receipt(config: PantryConfig, receipt: Receipt) -> None:
    db = CatalogDB(config.database.path)
    try:
        db.save_receipt(receipt)
    except StorageUnavailable as e:
        logger.warning("%s; receipt %s was not saved", e, receipt.id)
    finally:
        db.close()


def _cmd_import(config: PantryConfig, args) -> None:
    if config.database.backend != "sqlite":
        raise ValueError("Catalog import needs the sqlite database backend")

    with open(args.file, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{args.file}: expected an object with ingredients/recipes")

    ingredients = load_ingredients(data.get("ingredients") or [])
    recipes = load_recipes(data.get("recipes") or [])

    db = CatalogDB(config.database.path)
    try:
        db.add_ingredients(ingredients)
        db.add_recipes(recipes)
    finally:
        db.close()
    print(f"Imported {len(ingredients)} ingredients and {len(recipes)} recipes.")


def _cmd_pantry(config: PantryConfig, args) -> None:
    catalog, _ = _open_catalog(config)
    store = create_store(config)
    window = config.pantry.expiring_soon_days
    items = filter_pantry(
        store.list(),
        catalog,
        query=args.query,
        category=args.category,
        storage=args.storage,
        expiry=args.expiry,
        window=window,
    )

    if args.json:
        data = [
            {
                "id": i.id,
                "ingredient_id": i.ingredient_id,
                "quantity": i.quantity,
                "unit": i.unit,
                "storage": i.storage,
                "expiry_at": i.expiry_at.isoformat() if i.expiry_at else None,
                "status": expiry_status(i.expiry_at).status,
                "tags": i.tags,
            }
            for i in items
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    summary = pantry_summary(store.list(), window=window)
    print(
        f"{summary.total} items, {summary.expiring_soon} expiring soon, "
        f"{summary.expired} expired, {summary.fresh_percentage}% fresh"
    )
    if not items:
        print("No pantry items match.")
        return
    for i in items:
        ingredient = find_ingredient(i.ingredient_id, catalog)
        name = ingredient.name if ingredient else i.ingredient_id
        print(
            f"  {i.id[:8]}  {name:<20} {i.quantity:g} {i.unit:<10} "
            f"[{i.storage}] {expiry_status(i.expiry_at).text}"
        )


def _cmd_add(config: PantryConfig, args) -> None:
    catalog, _ = _open_catalog(config)
    ingredient = find_ingredient(args.ingredient, catalog) or match_ingredient(
        args.ingredient, catalog
    )
    if ingredient is None:
        raise ValueError(f"Unknown ingredient: {args.ingredient!r}")
    if args.quantity < 0:
        raise ValueError(f"Quantity cannot be negative: {args.quantity}")

    expiry = None
    if args.expires_in is not None:
        expiry = date.today() + timedelta(days=args.expires_in)

    item = PantryItem(
        id=uuid.uuid4().hex,
        ingredient_id=ingredient.id,
        quantity=args.quantity,
        unit=args.unit or ingredient.default_unit,
        storage=args.storage,
        expiry_at=expiry,
        source="manual",
        notes=args.note.strip() if args.note and args.note.strip() else None,
        tags=list(dict.fromkeys(t.strip() for t in args.tag if t.strip())),
    )
    create_store(config).add(item)
    print(f"Added {ingredient.name} ({item.id})")


def _cmd_remove(config: PantryConfig, args) -> None:
    if not create_store(config).delete(args.item_id):
        print(f"No pantry item {args.item_id}", file=sys.stderr)
        sys.exit(1)
    print(f"Removed {args.item_id}")


def _cmd_recipes(config: PantryConfig, args) -> None:
    catalog, recipes = _open_catalog(config)
    store = create_store(config)
    available = build_availability(store.list(), catalog)

    flt = RecipeFilter(
        query=args.query,
        cuisine=args.cuisine,
        difficulty=args.difficulty,
        time_range=(0, args.max_time or config.recipes.max_time),
        servings_range=(config.recipes.min_servings, config.recipes.max_servings),
    )
    suggestions = suggest_recipes(recipes, available, flt)

    if args.json:
        data = [
            {
                "id": r.id,
                "title": r.title,
                "cuisine": r.cuisine,
                "time": r.time,
                "difficulty": r.difficulty,
                **asdict(a),
            }
            for r, a in suggestions
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not suggestions:
        print("No recipes match.")
        return
    for recipe, avail in suggestions:
        mark = "✓" if avail.can_make else " "
        print(
            f"{mark} {recipe.title} ({recipe.cuisine}, {recipe.difficulty}, "
            f"{recipe.time} min) {avail.match_percentage}%"
        )
        for missing in avail.missing_ingredients:
            print(f"    missing: {missing}")
