"""Category lookup shared by the calculators.

Transactions keep a denormalized category name so that they can still be
labelled after their category is deleted. ``CategoryIndex`` is the one place
that decides which name and colour a transaction is shown with.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from .data_models import Category, Transaction

UNKNOWN_CATEGORY = "Unknown"
DEFAULT_COLOR = "#4361ee"


class CategoryIndex:
    """Mapping of category id to ``Category`` built once per snapshot."""

    def __init__(self, categories: Iterable[Category]) -> None:
        self._categories: List[Category] = list(categories)
        self._by_id: Dict[object, Category] = {}
        for category in self._categories:
            self._by_id.setdefault(category.id, category)

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id

    def get(self, category_id: object) -> Optional[Category]:
        return self._by_id.get(category_id)

    def name_for(self, transaction: Transaction) -> str:
        """Live category name, else the name stored on the transaction."""
        category = self._by_id.get(transaction.category_id)
        if category is not None:
            return category.name
        return transaction.category or UNKNOWN_CATEGORY

    def color_for(self, category_id: object) -> str:
        category = self._by_id.get(category_id)
        if category is not None and category.color:
            return category.color
        return DEFAULT_COLOR

    def spending_categories(self) -> List[Category]:
        """Every category except the reserved income one, in input order."""
        return [c for c in self._categories if not c.is_income]


def as_index(categories: Optional[Iterable[Category]]) -> CategoryIndex:
    if isinstance(categories, CategoryIndex):
        return categories
    return CategoryIndex(categories or ())
