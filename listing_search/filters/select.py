"""
Enumerated filters: single/multi select and checkbox groups.
"""

from typing import Any, Dict, List, Union

from markupsafe import Markup

from ..events import HookPoint
from ..query import ClauseType, Compare, QueryBuilder
from ..taxonomy import TermCatalog
from .base import AbstractFilter, FilterSource, FilterType, sanitize_text


class SelectFilter(AbstractFilter):
    """
    Dropdown over a fixed option set.

    Values outside the option set are dropped during sanitization. With
    ``multiple`` the value is a list, otherwise a string.

    Taxonomy-sourced filters take their options from the ``terms`` catalog
    (term id -> term name) unless explicit ``options`` are configured.
    """

    DEFAULTS = {
        'source': FilterSource.FIELD.value,
        'multiple': False,
        'empty_option': 'Any',
        'terms': None,
        'include_children': False,
        'hide_empty': False,
        'term_orderby': 'name',
        'term_limit': None,
    }

    def get_type(self) -> str:
        return FilterType.SELECT.value

    @property
    def multiple(self) -> bool:
        return bool(self.config.get('multiple'))

    @property
    def term_catalog(self) -> Union[TermCatalog, None]:
        catalog = self.config.get('terms')
        return catalog if isinstance(catalog, TermCatalog) else None

    @property
    def taxonomy(self) -> str:
        return self.config.get('source_key') or self.get_name()

    def get_term_options(self) -> Dict[str, str]:
        """Term id -> term name for the source taxonomy."""
        catalog = self.term_catalog
        if catalog is None:
            return {}
        terms = catalog.get_terms(
            self.taxonomy,
            hide_empty=bool(self.config.get('hide_empty')),
            orderby=self.config.get('term_orderby') or 'name',
            limit=self.config.get('term_limit'),
        )
        return {str(term.id): term.name for term in terms}

    def get_options(self) -> Dict[str, str]:
        if self.config.get('options') or self.source != FilterSource.TAXONOMY.value:
            return super().get_options()

        options = self.get_term_options()
        if self.hooks is not None:
            options = self.hooks.apply(HookPoint.FILTER_OPTIONS, options, self)
        return options

    # ------------------------------------------------------------------
    # Sanitization
    # ------------------------------------------------------------------

    def sanitize(self, value: Any) -> Union[str, List[str]]:
        options = self.get_options()

        if self.multiple:
            raw = value if isinstance(value, (list, tuple)) else [value]
            cleaned: List[str] = []
            for item in raw:
                item = sanitize_text(item)
                if item in options and item not in cleaned:
                    cleaned.append(item)
            return cleaned

        item = sanitize_text(value)
        return item if item in options else ''

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def modify_query(self, query: QueryBuilder, value: Any) -> None:
        if not self.is_active(value):
            return

        values = list(value) if isinstance(value, (list, tuple)) else [value]

        if self.source == FilterSource.TAXONOMY.value:
            term_ids = [int(v) for v in values if str(v).isdigit()]
            if term_ids:
                query.add_taxonomy_clause(
                    self.taxonomy,
                    term_ids,
                    include_children=bool(self.config.get('include_children')),
                )
        elif self.source == FilterSource.FIELD.value:
            if self.multiple:
                query.add_attribute_clause(self.get_meta_key(), Compare.IN, tuple(values), ClauseType.CHAR)
            else:
                query.add_attribute_clause(self.get_meta_key(), Compare.EQ, values[0], ClauseType.CHAR)
        else:
            super().modify_query(query, value)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    @staticmethod
    def is_option_selected(option_value: str, current: Any) -> bool:
        if isinstance(current, (list, tuple)):
            return option_value in [str(v) for v in current]
        return current is not None and str(current) == option_value

    def render_options(self, value: Any) -> Markup:
        output = Markup('')
        for option_value, option_label in self.get_options().items():
            output += Markup('<option value="{}"{}>{}</option>').format(
                option_value,
                Markup(' selected') if self.is_option_selected(option_value, value) else '',
                option_label,
            )
        return output

    def render(self, value: Any) -> Markup:
        value = self.sanitize(value)

        attributes = self.get_common_attributes()
        if self.multiple:
            attributes['multiple'] = True
            attributes['name'] = f"{attributes['name']}[]"

        output = self.render_wrapper_start(value) + self.render_label()
        output += Markup('<select {}>').format(self.build_attributes(attributes))

        if self.config.get('empty_option') and not self.multiple:
            output += Markup('<option value="">{}</option>').format(self.config['empty_option'])

        output += self.render_options(value)
        output += Markup('</select>')
        return output + self.render_wrapper_end()


class CheckboxFilter(SelectFilter):
    """Checkbox group; always multi-valued, showing at most ``max_items`` options."""

    DEFAULTS = dict(SelectFilter.DEFAULTS, multiple=True, empty_option='', max_items=20)

    def get_type(self) -> str:
        return FilterType.CHECKBOX.value

    @property
    def multiple(self) -> bool:
        return True

    def render(self, value: Any) -> Markup:
        value = self.sanitize(value)
        options = self.get_options()
        if not options:
            return Markup('')

        output = self.render_wrapper_start(value)
        output += Markup(
            '<fieldset class="ls-filter__fieldset"><legend class="ls-filter__legend">{}</legend>'
        ).format(self.get_label())
        output += Markup('<div class="ls-filter__options">')

        max_items = int(self.config.get('max_items') or len(options))
        for index, (option_value, option_label) in enumerate(options.items()):
            if index >= max_items:
                break
            option_id = f"{self.get_filter_id()}-{option_value}"
            output += Markup('<div class="ls-filter__option">')
            output += Markup('<input type="checkbox" id="{}" name="{}" value="{}"{}>').format(
                option_id,
                f"{self.get_url_param()}[]",
                option_value,
                Markup(' checked') if self.is_option_selected(option_value, value) else '',
            )
            output += Markup('<label for="{}">{}</label>').format(option_id, option_label)
            output += Markup('</div>')

        output += Markup('</div></fieldset>')
        return output + self.render_wrapper_end()
