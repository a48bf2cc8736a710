"""Tests for the pantrykit command line."""

import json
import sqlite3

import pytest

from pantrykit.cli import main


@pytest.fixture(autouse=True)
def db_env(tmp_path, monkeypatch):
    """Point every command at a throwaway database."""
    monkeypatch.setenv("PANTRYKIT_DB_PATH", str(tmp_path / "pantry.db"))
    monkeypatch.setenv("PANTRYKIT_DB_BACKEND", "sqlite")
    monkeypatch.chdir(tmp_path)


def _json(capsys):
    return json.loads(capsys.readouterr().out)


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
    assert "usage" in capsys.readouterr().out


def test_scan_json(capsys):
    main(["scan", "--json"])
    data = _json(capsys)
    assert len(data["line_items"]) == 6
    first = data["line_items"][0]
    assert first["name"] == "CHICKEN BREAST"
    assert first["unit"] == "lb"
    assert first["canonical_id"] == "demo-2"


def test_scan_commit_then_list(capsys):
    main(["scan", "--commit"])
    assert "Added 2 items" in capsys.readouterr().out

    main(["pantry", "--json"])
    items = _json(capsys)
    assert sorted(i["ingredient_id"] for i in items) == ["demo-1", "demo-2"]
    assert all(i["storage"] == "fridge" for i in items)


def test_scan_commit_saves_receipt(tmp_path, capsys):
    main(["scan", "--commit"])
    capsys.readouterr()

    conn = sqlite3.connect(tmp_path / "pantry.db")
    [(receipts,)] = conn.execute("SELECT COUNT(*) FROM receipts").fetchall()
    [(lines,)] = conn.execute("SELECT COUNT(*) FROM receipt_line_items").fetchall()
    conn.close()
    assert receipts == 1
    assert lines == 6


def test_scan_text_receipt(tmp_path, capsys):
    config = tmp_path / "config.toml"
    config.write_text('[ocr]\nbackend = "text"\n')
    page = tmp_path / "receipt.txt"
    page.write_text("PASTA 3 CUPS\t0.9\n")

    main(["-c", str(config), "scan", "--image", str(page), "--json"])
    [line] = _json(capsys)["line_items"]
    assert line["canonical_id"] == "demo-3"
    assert line["quantity"] == 3


def test_add_and_remove(capsys):
    main(["add", "olive oil", "4", "--storage", "room", "--tag", "sale", "--tag", "sale"])
    out = capsys.readouterr().out
    assert "Added Olive Oil" in out

    main(["pantry", "--json"])
    [item] = _json(capsys)
    assert item["unit"] == "tablespoon"
    assert item["tags"] == ["sale"]

    main(["remove", item["id"]])
    assert "Removed" in capsys.readouterr().out

    with pytest.raises(SystemExit):
        main(["remove", item["id"]])


def test_add_unknown_ingredient(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["add", "dragonfruit", "1"])
    assert exc.value.code == 1
    assert "Unknown ingredient" in capsys.readouterr().err


def test_recipes_with_pantry(capsys):
    main(["add", "demo-1", "4", "--unit", "piece"])
    main(["add", "pasta", "2", "--unit", "cup"])
    capsys.readouterr()

    main(["recipes", "--json"])
    [recipe] = _json(capsys)
    assert recipe["title"] == "Simple Tomato Pasta"
    assert recipe["can_make"] is False
    assert recipe["match_percentage"] == 67
    assert recipe["missing_ingredients"] == ["demo-4"]


def test_recipes_text(capsys):
    main(["recipes"])
    out = capsys.readouterr().out
    assert "Simple Tomato Pasta" in out
    assert "missing: demo-1" in out


def test_pantry_text_summary(capsys):
    main(["add", "tomato", "2", "--expires-in", "1"])
    capsys.readouterr()
    main(["pantry"])
    out = capsys.readouterr().out
    assert "1 items, 1 expiring soon, 0 expired" in out
    assert "Expires today" in out


def _write_catalog(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "ingredients": [
            {
                "id": "egg",
                "name": "Egg",
                "synonyms": ["eggs"],
                "category": "protein",
                "default_unit": "piece",
                "shelf_life_defaults": {"fridge": 21},
            },
            {"name": "No ID"},
        ],
        "recipes": [
            {
                "id": "boiled-eggs",
                "title": "Boiled Eggs",
                "cuisine": "Any",
                "time": 10,
                "yields": 2,
                "difficulty": "Easy",
                "ingredients": [
                    {"ingredient_canonical_id": "egg", "quantity": 2, "unit": "piece"},
                ],
            },
        ],
    }))
    return path


def test_import_catalog(tmp_path, capsys):
    main(["import", str(_write_catalog(tmp_path))])
    assert "Imported 1 ingredients and 1 recipes." in capsys.readouterr().out

    main(["add", "eggs", "6"])
    assert "Added Egg" in capsys.readouterr().out

    main(["recipes", "--json"])
    [recipe] = _json(capsys)
    assert recipe["id"] == "boiled-eggs"
    assert recipe["can_make"] is True
    assert recipe["match_percentage"] == 100


def test_import_needs_sqlite(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("PANTRYKIT_DB_BACKEND", "memory")
    with pytest.raises(SystemExit) as exc:
        main(["import", str(_write_catalog(tmp_path))])
    assert exc.value.code == 1
    assert "sqlite" in capsys.readouterr().err


def test_import_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["import", str(tmp_path / "nope.json")])
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err
