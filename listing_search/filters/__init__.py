"""
Search filter kinds
Each filter sanitizes its request value, narrows the query and renders its control.
"""

from .base import AbstractFilter, ActiveFilter, FilterDefinition, FilterSource, FilterType, sanitize_text
from .keyword import KeywordFilter
from .range import RangeFilter
from .date_range import DateRangeFilter
from .select import SelectFilter, CheckboxFilter
from .taxonomy import CategoryFilter, TagFilter
from .loader import FILTER_TYPES, build_filter, load_filters, parse_filters

__all__ = [
    'AbstractFilter',
    'ActiveFilter',
    'FilterDefinition',
    'FilterSource',
    'FilterType',
    'sanitize_text',
    'KeywordFilter',
    'RangeFilter',
    'DateRangeFilter',
    'SelectFilter',
    'CheckboxFilter',
    'CategoryFilter',
    'TagFilter',
    'FILTER_TYPES',
    'build_filter',
    'load_filters',
    'parse_filters',
]
