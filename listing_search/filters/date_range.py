"""
Date range filter.
"""

import re
from datetime import datetime
from typing import Any, Dict

from ..query import ClauseType
from .base import FilterSource, FilterType
from .range import RangeFilter


DATE_FORMAT = '%Y-%m-%d'
_ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def parse_date(value: Any) -> str:
    """Return ``value`` if it is a real calendar date in YYYY-MM-DD form, else ''."""
    if value is None:
        return ''
    text = str(value).strip()
    if not _ISO_DATE.match(text):
        return ''
    try:
        datetime.strptime(text, DATE_FORMAT)
    except ValueError:
        return ''
    return text


class DateRangeFilter(RangeFilter):
    """
    From/to date inputs over a date attribute.

    Same bound semantics as RangeFilter, compared as dates. Configured
    ``min``/``max`` must themselves be YYYY-MM-DD strings.
    """

    DEFAULTS = {
        'source': FilterSource.FIELD.value,
        'min': '',
        'max': '',
        'min_label': 'From',
        'max_label': 'To',
        'min_placeholder': 'Start date',
        'max_placeholder': 'End date',
        'display_format': DATE_FORMAT,
    }

    clause_type = ClauseType.DATE
    input_type = 'date'

    def get_type(self) -> str:
        return FilterType.DATE_RANGE.value

    def sanitize_bound(self, value: Any) -> str:
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ''
        date = parse_date(value)
        if date == '':
            return ''

        # ISO dates order lexicographically
        lower = parse_date(self.config.get('min'))
        upper = parse_date(self.config.get('max'))
        if lower and date < lower:
            date = lower
        if upper and date > upper:
            date = upper
        return date

    def clause_value(self, bound: str) -> str:
        return bound

    def format_bound(self, bound: str) -> str:
        fmt = self.config.get('display_format') or DATE_FORMAT
        return datetime.strptime(bound, DATE_FORMAT).strftime(fmt)

    def get_display_value(self, value: Any) -> str:
        if not isinstance(value, dict):
            return ''
        start = value.get('min', '')
        end = value.get('max', '')

        if start != '' and end != '':
            return f"{self.format_bound(start)} - {self.format_bound(end)}"
        if start != '':
            return f"From {self.format_bound(start)}"
        if end != '':
            return f"Until {self.format_bound(end)}"
        return ''

    def bound_attributes(self, which: str, current: str) -> Dict[str, Any]:
        attributes = super().bound_attributes(which, current)
        attributes['class'] = 'ls-filter__input ls-filter__input--date'
        attributes['aria-label'] = self.config.get(f'{which}_label') or ''
        return attributes
