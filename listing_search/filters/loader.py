"""
Filter definitions from YAML.

A definitions file holds a ``filters`` list; each entry is the keyword
configuration of one filter plus its ``type``::

    filters:
      - name: price
        type: range
        label: Price
        min: 0
        step: 1000
        prefix: "$"
      - name: category
        type: category
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, Union

import yaml

from ..exceptions import InvalidFilterError
from ..taxonomy import TermCatalog
from .base import AbstractFilter, FilterSource
from .date_range import DateRangeFilter
from .keyword import KeywordFilter
from .range import RangeFilter
from .select import CheckboxFilter, SelectFilter
from .taxonomy import CategoryFilter, TagFilter


logger = logging.getLogger(__name__)

FILTER_TYPES: Dict[str, Type[AbstractFilter]] = {
    'keyword': KeywordFilter,
    'select': SelectFilter,
    'checkbox': CheckboxFilter,
    'range': RangeFilter,
    'date_range': DateRangeFilter,
    'category': CategoryFilter,
    'tag': TagFilter,
}


def build_filter(definition: Dict[str, Any], terms: Optional[TermCatalog] = None) -> AbstractFilter:
    """
    Build one filter from its definition.

    Taxonomy-sourced filters get the term catalog unless the definition
    already carries one.

    Raises:
        InvalidFilterError: If the definition is not a mapping or its type is unknown
    """
    if not isinstance(definition, dict):
        raise InvalidFilterError(f"Filter definition must be a mapping, got {type(definition).__name__}")

    config = dict(definition)
    kind = str(config.pop('type', '') or '')
    filter_class = FILTER_TYPES.get(kind)
    if filter_class is None:
        raise InvalidFilterError(
            f"Unknown filter type {kind!r} for filter {config.get('name')!r}; "
            f"expected one of {', '.join(sorted(FILTER_TYPES))}"
        )

    instance = filter_class(**config)
    if (terms is not None and instance.source == FilterSource.TAXONOMY.value
            and instance.config.get('terms') is None):
        instance.config['terms'] = terms
    return instance


def parse_filters(text: str, terms: Optional[TermCatalog] = None) -> List[AbstractFilter]:
    """Build filters from YAML text."""
    try:
        document = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise InvalidFilterError(f"Invalid filter definitions: {e}")

    if isinstance(document, list):
        definitions = document
    elif isinstance(document, dict):
        definitions = document.get('filters') or []
    else:
        raise InvalidFilterError("Filter definitions must be a list or a mapping with a 'filters' list")

    if not isinstance(definitions, list):
        raise InvalidFilterError("'filters' must be a list")

    return [build_filter(definition, terms) for definition in definitions]


def load_filters(path: Union[str, Path], terms: Optional[TermCatalog] = None) -> List[AbstractFilter]:
    """Build filters from a YAML definitions file."""
    path = Path(path).expanduser()
    with open(path, 'r') as f:
        text = f.read()

    filters = parse_filters(text, terms)
    logger.info(f"Loaded {len(filters)} filter definitions from {path}")
    return filters
