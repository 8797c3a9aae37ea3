from __future__ import annotations

from pathlib import Path
from typing import Dict

from .errors import TemplateNotFound


BASE_DIR = Path(__file__).resolve().parent
OUT_DIR = Path("output")
DB_PATH = OUT_DIR / "gridpdf.db"
TEMPLATES_DIR = BASE_DIR / "templates"

TEMPLATES: Dict[str, str] = {
    "invoice": "financial/invoice-template.hbs",
}

PAGE_SIZES = ("A4", "letter", "legal")
DEFAULT_PAGE_SIZE = "A4"
DEFAULT_PAGE_MARGIN = 50.0

DEFAULT_Y = 72.0
DEFAULT_COLUMN_GAP = 15.0

FONT_NAME = "Helvetica"
FONT_SIZE = 12.0


def load_template(key: str) -> str:
    relative = TEMPLATES.get(key)
    if relative is None:
        raise TemplateNotFound(f"Template not found: {key}")
    path = TEMPLATES_DIR / relative
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateNotFound(f"Failed to load template {key}: {exc}") from exc


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "gridpdf.db"
