"""
In-memory view of the listing taxonomies (categories and tags).

The store owns the terms; the catalog is a read-only snapshot used for
filter option lists and chip labels during a request.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional


LISTING_TYPE = "listing"
CATEGORY_TAXONOMY = "category"
TAG_TAXONOMY = "tag"
LISTING_TAXONOMIES = (CATEGORY_TAXONOMY, TAG_TAXONOMY)


@dataclass(frozen=True)
class Term:
    id: int
    taxonomy: str
    name: str
    slug: str = ""
    parent: int = 0
    count: int = 0


class TermCatalog:
    """Terms grouped by taxonomy, in insertion order."""

    def __init__(self, terms: Optional[Iterable[Term]] = None):
        self._terms: Dict[str, List[Term]] = {}
        for term in terms or []:
            self.add(term)

    def add(self, term: Term) -> None:
        self._terms.setdefault(term.taxonomy, []).append(term)

    def replace(self, terms: Iterable[Term]) -> None:
        self._terms.clear()
        for term in terms:
            self.add(term)

    def get_terms(self,
                  taxonomy: str,
                  parent: Optional[int] = None,
                  hide_empty: bool = False,
                  orderby: str = "name",
                  limit: Optional[int] = None) -> List[Term]:
        """
        Get terms of a taxonomy.

        Args:
            taxonomy: Taxonomy name
            parent: Only direct children of this term id (0 for roots)
            hide_empty: Skip terms with no listings attached
            orderby: 'name' or 'count' (count sorts busiest first)
            limit: Maximum number of terms
        """
        terms = list(self._terms.get(taxonomy, []))
        if parent is not None:
            terms = [t for t in terms if t.parent == parent]
        if hide_empty:
            terms = [t for t in terms if t.count > 0]
        if orderby == "count":
            terms.sort(key=lambda t: (-t.count, t.name.lower()))
        else:
            terms.sort(key=lambda t: t.name.lower())
        if limit is not None:
            terms = terms[:limit]
        return terms
