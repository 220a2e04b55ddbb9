"""
Free-text keyword filter.
"""

from typing import Any

from markupsafe import Markup

from ..query import QueryBuilder
from .base import AbstractFilter, FilterSource, FilterType, sanitize_text


MAX_KEYWORD_LENGTH = 200


class KeywordFilter(AbstractFilter):
    """
    Text box for keyword search.

    Only supplies and renders the keyword. The search itself is applied by
    SearchQueryOrchestrator.apply_keyword_search so that title, content and
    attribute matching are built in one place.
    """

    DEFAULTS = {
        'name': 'keyword',
        'label': 'Search',
        'source': FilterSource.CUSTOM.value,
        'placeholder': 'Search listings...',
        'min_length': 2,
        'priority': 0,
    }

    def get_type(self) -> str:
        return FilterType.KEYWORD.value

    @property
    def min_length(self) -> int:
        return int(self.config.get('min_length') or 0)

    def sanitize(self, value: Any) -> str:
        sanitized = sanitize_text(value)
        if len(sanitized) > MAX_KEYWORD_LENGTH:
            sanitized = sanitized[:MAX_KEYWORD_LENGTH].rstrip()
        return sanitized

    def is_active(self, value: Any) -> bool:
        return isinstance(value, str) and len(value.strip()) >= self.min_length

    def modify_query(self, query: QueryBuilder, value: Any) -> None:
        # Keyword search is handled by SearchQueryOrchestrator.apply_keyword_search()
        return None

    def get_options(self):
        return {}

    def get_display_value(self, value: Any) -> str:
        return f'"{value}"'

    def render(self, value: Any) -> Markup:
        value = self.sanitize(value)

        attributes = dict(self.get_common_attributes())
        attributes.update({
            'type': 'search',
            'value': value,
            'placeholder': self.config.get('placeholder') or '',
            'minlength': self.min_length,
            'maxlength': MAX_KEYWORD_LENGTH,
            'class': 'ls-filter__input ls-filter__input--search',
        })

        return (
            self.render_wrapper_start(value)
            + self.render_label()
            + Markup('<input {}>').format(self.build_attributes(attributes))
            + self.render_wrapper_end()
        )
