#!/usr/bin/env python3
"""
Synchronous lifecycle hooks.

Each hook point holds an ordered list of subscriber callbacks. ``emit``
notifies every subscriber; ``apply`` threads a value through them so each
can replace it (option lists, allowlists, markup, query arguments).
"""

import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List


class HookPoint(str, Enum):
    """Named points in the search lifecycle"""
    # Notifications
    FILTER_REGISTERED = "filter.registered"
    FILTER_UNREGISTERED = "filter.unregistered"
    REGISTER_FILTERS = "filters.register"
    PRE_GET_LISTINGS = "query.pre_get_listings"
    BEFORE_APPLY_FILTERS = "query.before_filters"
    AFTER_APPLY_FILTERS = "query.after_filters"
    BEFORE_RENDER = "render.before_form"
    AFTER_RENDER = "render.after_form"

    # Value transforms
    FILTER_OPTIONS = "filter.options"
    WRAPPER_CLASSES = "filter.wrapper_classes"
    SEARCHABLE_META_KEYS = "query.searchable_meta_keys"
    QUERY_ARGS = "query.args"
    ORDERBY_OPTIONS = "query.orderby_options"
    FORM_CLASSES = "render.form_classes"
    RENDER_FILTER = "render.filter"


Callback = Callable[..., Any]


class SearchHooks:
    """Ordered subscriber lists keyed by hook point"""

    def __init__(self):
        self._subscribers: Dict[HookPoint, List[Callback]] = defaultdict(list)
        self.logger = logging.getLogger(__name__)

    def subscribe(self, point: HookPoint, callback: Callback) -> Callback:
        """
        Add a subscriber to the end of a hook point's list.

        Returns the callback so this can be used as a decorator factory
        argument or kept for unsubscribe.
        """
        self._subscribers[HookPoint(point)].append(callback)
        return callback

    def unsubscribe(self, point: HookPoint, callback: Callback) -> bool:
        subscribers = self._subscribers.get(HookPoint(point), [])
        if callback in subscribers:
            subscribers.remove(callback)
            return True
        return False

    def subscribers(self, point: HookPoint) -> List[Callback]:
        return list(self._subscribers.get(HookPoint(point), []))

    def has_subscribers(self, point: HookPoint) -> bool:
        return bool(self._subscribers.get(HookPoint(point)))

    def emit(self, point: HookPoint, *args: Any, **kwargs: Any) -> None:
        """Call every subscriber in subscription order."""
        subscribers = self.subscribers(point)
        if subscribers:
            self.logger.debug(f"Emitting {HookPoint(point).value} to {len(subscribers)} subscribers")
        for callback in subscribers:
            callback(*args, **kwargs)

    def apply(self, point: HookPoint, value: Any, *args: Any, **kwargs: Any) -> Any:
        """
        Pass a value through every subscriber in order.

        Each subscriber receives the current value plus the extra arguments
        and returns the replacement value.
        """
        for callback in self.subscribers(point):
            value = callback(value, *args, **kwargs)
        return value

    def clear(self) -> None:
        self._subscribers.clear()
