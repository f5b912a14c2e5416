"""Sign catalog loading, indexing and difficulty filtering."""
import json
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from sign_tutor.models import Category, Sign

CONTENT_DIR = Path(__file__).parent / "content"
DEFAULT_CATALOG = CONTENT_DIR / "signs.json"

DEFAULT_SIGN_DIFFICULTY = 2

DIFFICULTY_BANDS = {
    "easy": {1, 2},
    "medium": {2, 3, 4},
    "hard": {3, 4, 5},
}
ALL_DIFFICULTIES = {1, 2, 3, 4, 5}


class SignCatalog:
    """Categories and signs, indexed by id once at load time."""

    def __init__(self, categories: list[Category]):
        self._categories = {c.id: c for c in categories}
        self._signs = {}
        for category in categories:
            for sign in category.signs:
                self._signs[sign.id] = sign

    @classmethod
    def from_dict(cls, data: dict) -> "SignCatalog":
        categories = []
        for key, cat in data.items():
            category = Category(
                id=key,
                name=cat.get("name", key),
                code=cat.get("code", ""),
                color=cat.get("color", ""),
                icon=cat.get("icon", ""),
            )
            category.signs = [
                Sign(
                    id=str(s["id"]),
                    name=s["name"],
                    category_id=key,
                    img=s.get("img", ""),
                    difficulty=s.get("difficulty"),
                    category_name=category.name,
                )
                for s in cat.get("signs", [])
            ]
            categories.append(category)
        return cls(categories)

    def __len__(self) -> int:
        return len(self._signs)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._signs

    def get(self, item_id: str) -> Optional[Sign]:
        return self._signs.get(item_id)

    def category(self, category_id: str) -> Optional[Category]:
        return self._categories.get(category_id)

    def categories(self) -> list[Category]:
        return list(self._categories.values())

    def all_signs(self) -> list[Sign]:
        return list(self._signs.values())

    def signs_in(self, category_ids: Iterable[str]) -> list[Sign]:
        """Signs of the given categories, in category then catalog order."""
        signs = []
        for category_id in category_ids:
            category = self._categories.get(category_id)
            if category:
                signs.extend(category.signs)
        return signs


def load_catalog(path: Optional[Path] = None) -> SignCatalog:
    """Load a catalog JSON file. Returns an empty catalog if it can't be read."""
    path = Path(path) if path else DEFAULT_CATALOG
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load sign catalog {path}: {e}")
        return SignCatalog([])
    catalog = SignCatalog.from_dict(data)
    logger.debug(f"Loaded {len(catalog)} signs from {path.name}")
    return catalog


def filter_by_difficulty(signs: list[Sign], difficulty: str) -> list[Sign]:
    """Keep signs whose difficulty falls inside the requested band.

    "adaptive" skips filtering; unknown bands allow every difficulty.
    """
    if difficulty == "adaptive":
        return list(signs)
    allowed = DIFFICULTY_BANDS.get(difficulty, ALL_DIFFICULTIES)
    return [
        s for s in signs
        if (s.difficulty if s.difficulty is not None else DEFAULT_SIGN_DIFFICULTY) in allowed
    ]
