#!/usr/bin/env python3
"""
Filter Renderer
Search form, sort control, active-filter chips and no-results markup.

Rendering only reads the registry and the request; neither is modified.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from markupsafe import Markup

from .events import HookPoint, SearchHooks
from .filters.base import AbstractFilter, ActiveFilter
from .orchestrator import PARAM_ORDER, PARAM_ORDERBY, SearchQueryOrchestrator
from .registry import FilterRegistry
from .request import SearchRequest


class FilterRenderer:
    """Builds escaped markup for the search UI."""

    def __init__(self,
                 registry: FilterRegistry,
                 orchestrator: SearchQueryOrchestrator,
                 hooks: Optional[SearchHooks] = None,
                 archive_url: str = "/listings/"):
        """
        Initialize the renderer.

        Args:
            registry: Filters to render
            orchestrator: Source of sort options and current sort
            hooks: Lifecycle hooks (defaults to the orchestrator's)
            archive_url: Base URL of the listing archive
        """
        self.registry = registry
        self.orchestrator = orchestrator
        self.hooks = hooks or orchestrator.hooks
        self.archive_url = archive_url
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Search form
    # ------------------------------------------------------------------

    def render_search_form(self,
                           request: SearchRequest,
                           filters: Optional[Iterable[str]] = None,
                           exclude: Optional[Iterable[str]] = None,
                           show_orderby: bool = True,
                           show_submit: bool = True,
                           action: str = "",
                           method: str = "get",
                           ajax: bool = True,
                           css_class: str = "") -> Markup:
        """
        Render the full search form.

        Args:
            request: Current request parameters
            filters: Only render these filter names
            exclude: Skip these filter names
            show_orderby: Include the sort select
            show_submit: Include the submit button and clear link
            action: Form action (defaults to the archive URL)
            method: Form method
            ajax: Mark the form for progressive enhancement
            css_class: Extra form class
        """
        args: Dict[str, Any] = {
            "filters": list(filters or []),
            "exclude": list(exclude or []),
            "show_orderby": show_orderby,
            "show_submit": show_submit,
            "action": action or self.archive_url,
            "method": method,
            "ajax": ajax,
            "class": css_class,
        }

        self.hooks.emit(HookPoint.BEFORE_RENDER, args)

        selected = self.registry.list()
        if args["filters"]:
            selected = [f for f in selected if f.get_name() in args["filters"]]
        if args["exclude"]:
            selected = [f for f in selected if f.get_name() not in args["exclude"]]

        classes = ["ls-search-form"]
        if ajax:
            classes.append("ls-search-form--ajax")
        if css_class:
            classes.append(css_class)
        classes = self.hooks.apply(HookPoint.FORM_CLASSES, classes, args)

        output = Markup('<form class="{}" action="{}" method="{}" data-ajax="{}">').format(
            " ".join(classes),
            args["action"],
            method,
            "true" if ajax else "false",
        )

        output += Markup('<div class="ls-search-form__filters">')
        for filter in selected:
            output += self.render_filter(filter.get_name(), request)
        output += Markup('</div>')

        if show_orderby:
            output += self.render_orderby(request)

        if show_submit:
            output += Markup('<div class="ls-search-form__actions">')
            output += Markup('<button type="submit" class="ls-search-form__submit">Search</button>')
            output += Markup('<a href="{}" class="ls-search-form__clear">Clear Filters</a>').format(args["action"])
            output += Markup('</div>')

        output += Markup('</form>')

        self.hooks.emit(HookPoint.AFTER_RENDER, args)

        return output

    def render_filter(self, name: str, request: SearchRequest) -> Markup:
        """Render one filter's control with its current value, or '' if unknown."""
        filter = self.registry.get(name)
        if filter is None:
            return Markup('')

        value = filter.get_value_from_request(request)
        output = filter.render(value)

        return Markup(self.hooks.apply(HookPoint.RENDER_FILTER, output, filter, value, request))

    def render_orderby(self, request: SearchRequest) -> Markup:
        current = self.orchestrator.get_current_orderby(request)
        order = self.orchestrator.get_current_order(request)

        output = Markup('<div class="ls-search-form__orderby">')
        output += Markup('<label for="ls-orderby" class="ls-search-form__label">Sort by</label>')
        output += Markup('<select id="ls-orderby" name="{}" class="ls-search-form__select">').format(PARAM_ORDERBY)

        for value, label in self.orchestrator.get_orderby_options().items():
            output += Markup('<option value="{}"{}>{}</option>').format(
                value,
                Markup(' selected') if value == current else '',
                label,
            )

        output += Markup('</select>')
        output += Markup('<input type="hidden" name="{}" value="{}">').format(PARAM_ORDER, order.lower())
        output += Markup('</div>')
        return output

    # ------------------------------------------------------------------
    # Active filters
    # ------------------------------------------------------------------

    def get_active_filters(self, request: SearchRequest) -> List[ActiveFilter]:
        return list(self.registry.resolve_active(request).values())

    def render_active_filters(self, request: SearchRequest) -> Markup:
        """
        Render a chip per active filter with a remove link, plus clear-all.

        Returns empty markup when nothing is active.
        """
        active = self.get_active_filters(request)
        if not active:
            return Markup('')

        output = Markup('<div class="ls-active-filters" aria-live="polite">')
        output += Markup('<span class="ls-active-filters__label">Active filters:</span>')
        output += Markup('<ul class="ls-active-filters__list">')

        for item in active:
            filter = item.filter
            output += Markup('<li class="ls-active-filters__item">')
            output += Markup('<span class="ls-active-filters__name">{}:</span>').format(filter.get_label())
            output += Markup('<span class="ls-active-filters__value">{}</span>').format(
                filter.get_display_value(item.value)
            )
            output += Markup(
                '<a href="{}" class="ls-active-filters__remove" aria-label="Remove {} filter">&times;</a>'
            ).format(self.build_remove_filter_url(filter, request), filter.get_label())
            output += Markup('</li>')

        output += Markup('</ul>')
        output += Markup('<a href="{}" class="ls-active-filters__clear">Clear all</a>').format(self.archive_url)
        output += Markup('</div>')
        return output

    def build_remove_filter_url(self, filter: AbstractFilter, request: SearchRequest) -> str:
        """Archive URL reproducing the request minus every parameter the filter owns."""
        remaining = request.without(*filter.get_url_params())
        if not remaining:
            return self.archive_url
        return f"{self.archive_url}?{remaining.to_query_string()}"

    def render_no_results(self) -> Markup:
        output = Markup('<div class="ls-no-results">')
        output += Markup('<p class="ls-no-results__message">No listings found matching your criteria.</p>')
        output += Markup('<a href="{}" class="ls-no-results__clear">Clear all filters</a>').format(self.archive_url)
        output += Markup('</div>')
        return output
