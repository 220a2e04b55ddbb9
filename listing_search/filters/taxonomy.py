"""
Preset filters over the listing taxonomies.
"""

from typing import Any

from markupsafe import Markup

from ..taxonomy import CATEGORY_TAXONOMY, TAG_TAXONOMY
from .base import FilterSource
from .select import CheckboxFilter, SelectFilter


class CategoryFilter(SelectFilter):
    """
    Category dropdown.

    Renders the category tree with indented children and matches listings in
    the chosen category or any of its descendants.
    """

    MAX_DEPTH = 10

    DEFAULTS = dict(
        SelectFilter.DEFAULTS,
        name='category',
        label='Category',
        source=FilterSource.TAXONOMY.value,
        source_key=CATEGORY_TAXONOMY,
        empty_option='All Categories',
        hierarchical=True,
        hide_empty=True,
        include_children=True,
    )

    def render_hierarchical_options(self, value: Any, parent: int = 0, depth: int = 0) -> Markup:
        # Guards against parent cycles in the term data
        if depth > self.MAX_DEPTH or self.term_catalog is None:
            return Markup('')

        terms = self.term_catalog.get_terms(
            self.taxonomy,
            parent=parent,
            hide_empty=bool(self.config.get('hide_empty')),
        )

        output = Markup('')
        indent = Markup('&nbsp;&nbsp;' * depth)
        for term in terms:
            output += Markup('<option value="{}"{}>{}{}</option>').format(
                term.id,
                Markup(' selected') if self.is_option_selected(str(term.id), value) else '',
                indent,
                term.name,
            )
            output += self.render_hierarchical_options(value, term.id, depth + 1)
        return output

    def render_options(self, value: Any) -> Markup:
        if self.config.get('hierarchical') and not self.config.get('options'):
            return self.render_hierarchical_options(value)
        return super().render_options(value)


class TagFilter(CheckboxFilter):
    """Checkbox group of the most used tags."""

    DEFAULTS = dict(
        CheckboxFilter.DEFAULTS,
        name='tag',
        label='Tags',
        source=FilterSource.TAXONOMY.value,
        source_key=TAG_TAXONOMY,
        hide_empty=True,
        max_items=20,
        term_orderby='count',
    )

    def __init__(self, **config: Any):
        config.setdefault('term_limit', config.get('max_items', self.DEFAULTS['max_items']))
        super().__init__(**config)
