"""
Numeric range filter.
"""

import math
from typing import Any, Dict, Optional

from markupsafe import Markup

from ..query import ClauseType, Compare, QueryBuilder
from ..request import SearchRequest
from .base import AbstractFilter, FilterSource, FilterType


EMPTY_RANGE = {'min': '', 'max': ''}


class RangeFilter(AbstractFilter):
    """
    Min/max inputs over a numeric attribute.

    Values are ``{'min': str, 'max': str}``; an empty string means the bound
    is not set. Bounds outside the configured ``min``/``max`` are clamped.
    """

    DEFAULTS = {
        'source': FilterSource.FIELD.value,
        'min': None,
        'max': None,
        'step': 1,
        'min_placeholder': 'Min',
        'max_placeholder': 'Max',
        'prefix': '',
        'suffix': '',
    }

    clause_type = ClauseType.NUMERIC
    input_type = 'number'

    def get_type(self) -> str:
        return FilterType.RANGE.value

    def get_url_param_min(self) -> str:
        return f"{self.get_url_param()}_min"

    def get_url_param_max(self) -> str:
        return f"{self.get_url_param()}_max"

    def get_url_params(self):
        return [self.get_url_param_min(), self.get_url_param_max()]

    def get_value_from_request(self, request: SearchRequest) -> Dict[str, str]:
        return self.sanitize({
            'min': request.get_str(self.get_url_param_min()),
            'max': request.get_str(self.get_url_param_max()),
        })

    # ------------------------------------------------------------------
    # Sanitization
    # ------------------------------------------------------------------

    def sanitize(self, value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            return dict(EMPTY_RANGE)
        return {
            'min': self.sanitize_bound(value.get('min')),
            'max': self.sanitize_bound(value.get('max')),
        }

    @property
    def uses_floats(self) -> bool:
        step = self.config.get('step', 1)
        try:
            return isinstance(step, float) or float(step) < 1
        except (TypeError, ValueError):
            return False

    def _to_number(self, number: float):
        return float(number) if self.uses_floats else int(number)

    def _configured(self, key: str) -> Optional[float]:
        bound = self.config.get(key)
        if bound is None or bound == '':
            return None
        try:
            return float(bound)
        except (TypeError, ValueError):
            return None

    def sanitize_bound(self, value: Any) -> str:
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ''
        if value is None or isinstance(value, bool):
            return ''
        text = str(value).strip()
        if text == '':
            return ''
        try:
            number = float(text)
        except ValueError:
            return ''
        if not math.isfinite(number):
            return ''

        number = self._to_number(number)

        lower = self._configured('min')
        upper = self._configured('max')
        if lower is not None and number < lower:
            number = self._to_number(lower)
        if upper is not None and number > upper:
            number = self._to_number(upper)

        return str(number)

    def is_active(self, value: Any) -> bool:
        if not isinstance(value, dict):
            return False
        return value.get('min', '') != '' or value.get('max', '') != ''

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def clause_value(self, bound: str) -> Any:
        return float(bound)

    def modify_query(self, query: QueryBuilder, value: Any) -> None:
        if not self.is_active(value):
            return

        key = self.get_meta_key()
        low = value.get('min', '')
        high = value.get('max', '')

        if low != '' and high != '':
            query.add_attribute_clause(
                key, Compare.BETWEEN,
                (self.clause_value(low), self.clause_value(high)),
                self.clause_type,
            )
        elif low != '':
            query.add_attribute_clause(key, Compare.GTE, self.clause_value(low), self.clause_type)
        elif high != '':
            query.add_attribute_clause(key, Compare.LTE, self.clause_value(high), self.clause_type)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def get_options(self):
        return {}

    def format_bound(self, bound: str) -> str:
        return f"{self.config.get('prefix') or ''}{bound}{self.config.get('suffix') or ''}"

    def get_display_value(self, value: Any) -> str:
        if not isinstance(value, dict):
            return ''
        low = value.get('min', '')
        high = value.get('max', '')

        if low != '' and high != '':
            return f"{self.format_bound(low)} - {self.format_bound(high)}"
        if low != '':
            return f"{self.format_bound(low)} or more"
        if high != '':
            return f"Up to {self.format_bound(high)}"
        return ''

    def bound_attributes(self, which: str, current: str) -> Dict[str, Any]:
        attributes = {
            'type': self.input_type,
            'id': f"{self.get_filter_id()}-{which}",
            'name': self.get_url_param_min() if which == 'min' else self.get_url_param_max(),
            'value': current,
            'placeholder': self.config.get(f'{which}_placeholder') or '',
            'class': f'ls-filter__input ls-filter__input--{which}',
        }
        if self.input_type == 'number':
            attributes['step'] = self.config.get('step')
        if self.config.get('min') not in (None, ''):
            attributes['min'] = self.config['min']
        if self.config.get('max') not in (None, ''):
            attributes['max'] = self.config['max']
        return attributes

    def render(self, value: Any) -> Markup:
        value = self.sanitize(value)

        output = self.render_wrapper_start(value) + self.render_label()
        output += Markup('<div class="ls-filter__range-inputs">')

        if self.config.get('prefix'):
            output += Markup('<span class="ls-filter__prefix">{}</span>').format(self.config['prefix'])

        output += Markup('<input {}>').format(self.build_attributes(self.bound_attributes('min', value['min'])))
        output += Markup('<span class="ls-filter__range-separator" aria-hidden="true">&ndash;</span>')
        output += Markup('<input {}>').format(self.build_attributes(self.bound_attributes('max', value['max'])))

        if self.config.get('suffix'):
            output += Markup('<span class="ls-filter__suffix">{}</span>').format(self.config['suffix'])

        output += Markup('</div>')
        return output + self.render_wrapper_end()
