from typing import Dict, List, Optional
from pydantic import BaseModel, Field, PrivateAttr
from catalog.models import Category


class CategoryTree(BaseModel):
    """
    In-memory hierarchy built from a full category load.

    Categories are linked through their parent reference. A category whose
    parent is not part of the load is treated as a root.
    """

    categories: List[Category] = Field(default_factory=list)

    _by_id: Dict[str, Category] = PrivateAttr(default_factory=dict)
    _children: Dict[str, List[Category]] = PrivateAttr(default_factory=dict)
    _roots: List[Category] = PrivateAttr(default_factory=list)

    @classmethod
    def of(cls, categories: List[Category]) -> "CategoryTree":
        return cls(categories=list(categories))

    def model_post_init(self, __context) -> None:
        self._by_id = {c.id: c for c in self.categories}
        self._children = {}
        self._roots = []
        for c in self._sorted(self.categories):
            parent_id = c.parent.id if c.parent else None
            if parent_id and parent_id in self._by_id:
                self._children.setdefault(parent_id, []).append(c)
            else:
                self._roots.append(c)

    @staticmethod
    def _sorted(categories: List[Category]) -> List[Category]:
        return sorted(categories, key=lambda c: (c.order_hint or "", c.id))

    @property
    def roots(self) -> List[Category]:
        return list(self._roots)

    def find_by_id(self, id: str) -> Optional[Category]:
        return self._by_id.get(id)

    def find_by_key(self, key: str) -> Optional[Category]:
        return next((c for c in self.categories if c.key == key), None)

    def find_by_slug(self, locale: str, slug: str) -> Optional[Category]:
        return next((c for c in self.categories if c.slug.get(locale) == slug), None)

    def children(self, category: Category) -> List[Category]:
        return list(self._children.get(category.id, []))

    def ancestors(self, category: Category) -> List[Category]:
        """Parents of ``category``, nearest first."""
        out: List[Category] = []
        seen = {category.id}
        current = category
        while current.parent and current.parent.id in self._by_id:
            parent = self._by_id[current.parent.id]
            if parent.id in seen:
                break  # cycle in remote data
            seen.add(parent.id)
            out.append(parent)
            current = parent
        return out

    def subtree(self, category: Category) -> List[Category]:
        out: List[Category] = []
        seen = set()
        stack = [category]
        while stack:
            c = stack.pop()
            if c.id in seen:
                continue
            seen.add(c.id)
            out.append(c)
            stack.extend(reversed(self.children(c)))
        return out

    def __len__(self) -> int:
        return len(self.categories)
