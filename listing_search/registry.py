#!/usr/bin/env python3
"""
Filter Registry
Explicitly constructed catalog of search filters, keyed by name.
"""

import logging
from typing import Any, Dict, List, Optional

from .events import HookPoint, SearchHooks
from .fields import sanitize_key
from .filters.base import AbstractFilter, ActiveFilter, BASE_CONFIG
from .request import SearchRequest


class FilterRegistry:
    """
    Holds the filters available to a search form.

    Populated during initialization and read-only while requests are served.
    Registration order is kept so filters with equal priority enumerate in
    the order they were added.
    """

    def __init__(self, hooks: Optional[SearchHooks] = None):
        """
        Initialize an empty registry.

        Args:
            hooks: Lifecycle hooks bound to every registered filter
        """
        self.hooks = hooks
        self._filters: Dict[str, AbstractFilter] = {}
        self.logger = logging.getLogger(__name__)

    def register(self, filter: AbstractFilter) -> bool:
        """
        Register a filter.

        Args:
            filter: Filter instance

        Returns:
            True if registered, False if the name is empty or already taken
        """
        name = filter.get_name()

        if not name:
            self.logger.warning("Filter name cannot be empty")
            return False

        if name in self._filters:
            self.logger.warning(f"Filter '{name}' is already registered")
            return False

        filter.bind_hooks(self.hooks)
        self._filters[name] = filter
        self.logger.debug(f"Registered {filter.get_type()} filter '{name}'")

        if self.hooks is not None:
            self.hooks.emit(HookPoint.FILTER_REGISTERED, name, filter)

        return True

    def unregister(self, name: str) -> bool:
        """
        Remove a filter.

        Returns:
            True if removed, False if no such filter
        """
        name = sanitize_key(name)
        filter = self._filters.pop(name, None)
        if filter is None:
            return False

        if self.hooks is not None:
            self.hooks.emit(HookPoint.FILTER_UNREGISTERED, name, filter)

        return True

    def get(self, name: str) -> Optional[AbstractFilter]:
        return self._filters.get(sanitize_key(name))

    def has(self, name: str) -> bool:
        return sanitize_key(name) in self._filters

    def count(self) -> int:
        return len(self._filters)

    def reset(self) -> None:
        self._filters.clear()

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        return self.count()

    @staticmethod
    def get_default_config() -> Dict[str, Any]:
        return dict(BASE_CONFIG)

    def list(self,
             type: Optional[str] = None,
             source: Optional[str] = None,
             active_only: bool = True,
             orderby: str = "priority",
             order: str = "asc") -> List[AbstractFilter]:
        """
        Enumerate filters.

        Args:
            type: Only filters of this kind
            source: Only filters with this source
            active_only: Skip filters whose ``active`` flag is off
            orderby: 'priority' or 'name'
            order: 'asc' or 'desc'

        Returns:
            Filters sorted stably; equal keys keep registration order
        """
        filters = list(self._filters.values())

        if type is not None:
            filters = [f for f in filters if f.get_type() == type]

        if source is not None:
            filters = [f for f in filters if f.source == source]

        if active_only:
            filters = [f for f in filters if f.config.get('active', True) is True]

        reverse = str(order).lower() == "desc"
        if orderby == "name":
            filters.sort(key=lambda f: f.get_name(), reverse=reverse)
        else:
            filters.sort(key=lambda f: f.priority, reverse=reverse)

        return filters

    def get_value(self, name: str, request: SearchRequest) -> Any:
        """Sanitized value of one filter in the request, or None."""
        filter = self.get(name)
        if filter is None:
            return None
        return filter.get_value_from_request(request)

    def resolve_active(self, request: SearchRequest) -> Dict[str, ActiveFilter]:
        """
        Resolve the filters the request activates.

        Returns:
            Name -> ActiveFilter, in enumeration order
        """
        active: Dict[str, ActiveFilter] = {}

        for filter in self.list():
            value = filter.get_value_from_request(request)
            if value is None:
                continue
            if filter.is_active(value):
                active[filter.get_name()] = ActiveFilter(filter, value)

        if active:
            self.logger.debug(f"Active filters: {', '.join(active)}")

        return active
