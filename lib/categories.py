# =============================================================================
# lib/categories.py - Category Name Resolution
# =============================================================================
# Maps free-text category names from the import spreadsheet to the canonical
# category ids stored in the categories table.
#
# Names are compared after normalize_text(): lowercase, diacritics stripped,
# trimmed. Internal whitespace is NOT collapsed ("plus  size" != "plus size").
#
# Usage:
#   index = CategoryIndex.from_categories([{"id": "c1", "name": "Plus Size"}])
#   index.resolve("PLUS SIZE")  # "c1"
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Iterable

from lib.utils import normalize_text

logger = logging.getLogger(__name__)


def normalize_category_name(name: str | None) -> str:
    """Normalize a category name for lookup."""
    return normalize_text(name)


class CategoryIndex:
    """
    Read-only lookup from normalized category name to category id.

    Built once per import run from the full set of known categories.
    If two known categories normalize to the same key the last one wins;
    the collision is logged but not corrected.
    """

    def __init__(self, mapping: dict[str, str] | None = None):
        self._by_name: dict[str, str] = dict(mapping or {})

    @classmethod
    def from_categories(cls, categories: Iterable[dict[str, Any]]) -> CategoryIndex:
        """
        Build the index from category rows.

        Args:
            categories: Rows with at least "id" and "name" keys

        Returns:
            CategoryIndex
        """
        mapping: dict[str, str] = {}

        for category in categories:
            key = normalize_category_name(category.get("name"))
            if not key:
                continue

            category_id = str(category["id"])
            previous = mapping.get(key)
            if previous is not None and previous != category_id:
                logger.warning(
                    f"Category name collision on '{key}': {previous} replaced by {category_id}"
                )
            mapping[key] = category_id

        logger.debug(f"Built category index with {len(mapping)} names")
        return cls(mapping)

    def resolve(self, name: str | None) -> str | None:
        """Return the category id for a free-text name, or None if unknown."""
        return self._by_name.get(normalize_category_name(name))

    def resolve_all(self, names: Iterable[str]) -> list[str]:
        """Resolve names, silently dropping unknown ones and duplicates."""
        resolved: list[str] = []
        for name in names:
            category_id = self.resolve(name)
            if category_id is not None and category_id not in resolved:
                resolved.append(category_id)
        return resolved

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.resolve(name) is not None

    def __len__(self) -> int:
        return len(self._by_name)
