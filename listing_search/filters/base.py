#!/usr/bin/env python3
"""
Base filter contract.

A filter owns everything about one search refinement: how its raw request
value is cleaned, when it counts as active, how it narrows a query, how its
control is rendered and how it is summarized in the active-filter list.
Concrete kinds override the parts that differ.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from markupsafe import Markup, escape

from ..events import HookPoint, SearchHooks
from ..fields import meta_key, sanitize_key
from ..query import QueryBuilder
from ..request import SearchRequest


logger = logging.getLogger(__name__)


class FilterType(str, Enum):
    """Filter kinds."""
    KEYWORD = "keyword"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RANGE = "range"
    DATE_RANGE = "date_range"


class FilterSource(str, Enum):
    """Where a filter's values live."""
    TAXONOMY = "taxonomy"
    FIELD = "field"
    CUSTOM = "custom"


_TAGS = re.compile(r"<[^>]*>")
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_text(value: Any) -> str:
    """
    Reduce arbitrary input to a single line of plain text.

    Strips tags and control characters, collapses whitespace and trims.
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    text = _TAGS.sub("", str(value))
    text = _CONTROL.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


@dataclass(frozen=True)
class FilterDefinition:
    """Read-only snapshot of a filter's configuration."""
    name: str
    type: str
    label: str
    source: str
    source_key: str
    options: Dict[str, str] = field(default_factory=dict)
    priority: int = 10
    active: bool = True
    hints: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ActiveFilter:
    """A filter paired with the sanitized value taken from the current request."""
    filter: 'AbstractFilter'
    value: Any

    @property
    def name(self) -> str:
        return self.filter.get_name()


BASE_CONFIG: Dict[str, Any] = {
    'name': '',
    'label': '',
    'source': FilterSource.CUSTOM.value,
    'source_key': '',
    'options': {},
    'multiple': False,
    'empty_option': '',
    'query_callback': None,
    'priority': 10,
    'active': True,
    'class': '',
    'attributes': {},
}

_DEFINITION_FIELDS = {'name', 'label', 'source', 'source_key', 'options', 'priority', 'active'}


class AbstractFilter(ABC):
    """
    Base class for all filter kinds.

    Configuration is a flat dict: the shared keys in BASE_CONFIG, the kind's
    own DEFAULTS, then whatever the caller passes, later entries winning.
    """

    DEFAULTS: Dict[str, Any] = {}

    def __init__(self, **config: Any):
        merged = dict(BASE_CONFIG)
        merged.update(self.DEFAULTS)
        merged.update(config)
        merged['name'] = sanitize_key(merged.get('name'))
        if isinstance(merged.get('source'), FilterSource):
            merged['source'] = merged['source'].value
        try:
            merged['priority'] = int(merged.get('priority', 10))
        except (TypeError, ValueError):
            logger.warning(f"Filter '{merged['name']}' has invalid priority {merged.get('priority')!r}, using 10")
            merged['priority'] = 10

        # Generate label from name if not provided
        if not merged.get('label') and merged['name']:
            merged['label'] = merged['name'].replace('_', ' ').replace('-', ' ').title()

        self.config = merged
        self.hooks: Optional[SearchHooks] = None

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.get_name()!r})"

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def get_name(self) -> str:
        return self.config['name']

    @abstractmethod
    def get_type(self) -> str:
        """Filter kind, one of FilterType."""

    def get_label(self) -> str:
        return self.config.get('label') or ''

    def get_config(self) -> Dict[str, Any]:
        return dict(self.config)

    @property
    def priority(self) -> int:
        return self.config['priority']

    @property
    def source(self) -> str:
        return self.config.get('source') or FilterSource.CUSTOM.value

    @property
    def definition(self) -> FilterDefinition:
        hints = {k: v for k, v in self.config.items()
                 if k not in _DEFINITION_FIELDS and k != 'query_callback'}
        return FilterDefinition(
            name=self.get_name(),
            type=self.get_type(),
            label=self.get_label(),
            source=self.source,
            source_key=self.config.get('source_key') or '',
            options=dict(self.get_options()),
            priority=self.priority,
            active=self.config.get('active', True) is True,
            hints=hints,
        )

    def bind_hooks(self, hooks: Optional[SearchHooks]) -> None:
        self.hooks = hooks

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    def get_url_param(self) -> str:
        return self.get_name()

    def get_url_params(self) -> List[str]:
        """Every request parameter this filter reads."""
        return [self.get_url_param()]

    def get_value_from_request(self, request: SearchRequest) -> Any:
        """
        Read and sanitize this filter's value, or None when the parameter is absent.
        """
        param = self.get_url_param()
        if param not in request:
            return None
        return self.sanitize(request[param])

    def sanitize(self, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [sanitize_text(v) for v in value]
        if isinstance(value, str):
            return sanitize_text(value)
        return value

    def is_active(self, value: Any) -> bool:
        if isinstance(value, (list, tuple, dict)):
            return bool(value)
        if isinstance(value, str):
            return value.strip() != ''
        return value is not None and value is not False

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def modify_query(self, query: QueryBuilder, value: Any) -> None:
        callback = self.config.get('query_callback')
        if callable(callback):
            callback(query, value, self)

    def get_meta_key(self) -> str:
        return meta_key(self.config.get('source_key') or self.get_name())

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def get_options(self) -> Dict[str, str]:
        options = {str(k): str(v) for k, v in (self.config.get('options') or {}).items()}
        if self.hooks is not None:
            options = self.hooks.apply(HookPoint.FILTER_OPTIONS, options, self)
        return options

    @abstractmethod
    def render(self, value: Any) -> Markup:
        """Markup for this filter's form control."""

    def get_display_value(self, value: Any) -> str:
        options = self.get_options()
        if isinstance(value, (list, tuple)):
            return ', '.join(options.get(str(v), str(v)) for v in value)
        if value is None:
            return ''
        return options.get(str(value), str(value))

    def get_filter_id(self) -> str:
        return f"ls-filter-{self.get_name()}"

    def build_attributes(self, attributes: Dict[str, Any]) -> Markup:
        parts = []
        for key, attr_value in attributes.items():
            if attr_value is True:
                parts.append(escape(key))
            elif attr_value is not False and attr_value is not None:
                parts.append(Markup('{}="{}"').format(key, str(attr_value)))
        return Markup(' ').join(parts)

    def get_common_attributes(self) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {
            'id': self.get_filter_id(),
            'name': self.get_url_param(),
        }
        if self.config.get('class'):
            attributes['class'] = self.config['class']
        if isinstance(self.config.get('attributes'), dict):
            attributes.update(self.config['attributes'])
        return attributes

    def render_wrapper_start(self, value: Any) -> Markup:
        classes = [
            'ls-filter',
            f'ls-filter--{self.get_type()}',
            f'ls-filter--{self.get_name()}',
        ]
        if self.is_active(value):
            classes.append('ls-filter--active')
        if self.hooks is not None:
            classes = self.hooks.apply(HookPoint.WRAPPER_CLASSES, classes, self, value)

        return Markup('<div class="{}" data-filter="{}">').format(' '.join(classes), self.get_name())

    def render_wrapper_end(self) -> Markup:
        return Markup('</div>')

    def render_label(self) -> Markup:
        if not self.get_label():
            return Markup('')
        return Markup('<label for="{}" class="ls-filter__label">{}</label>').format(
            self.get_filter_id(), self.get_label()
        )
