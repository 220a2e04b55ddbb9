"""
Listing field registry.

Only the parts the search engine consumes live here: which fields exist,
which of them are searchable or filterable, and the attribute-store key each
one is persisted under.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


META_KEY_PREFIX = "_ls_"

_UNSAFE_KEY_CHARS = re.compile(r"[^a-z0-9_\-]")


def sanitize_key(key: Any) -> str:
    """
    Normalize an identifier to lowercase alphanumerics, dashes and underscores.

    Every attribute key that reaches query construction goes through this.
    """
    if key is None:
        return ""
    return _UNSAFE_KEY_CHARS.sub("", str(key).lower())


def meta_key(field_name: str) -> str:
    """Attribute-store key for a field name, e.g. ``price`` -> ``_ls_price``."""
    return META_KEY_PREFIX + sanitize_key(field_name)


@dataclass
class FieldDefinition:
    """A custom listing field as seen by search."""
    name: str
    type: str = "text"
    label: str = ""
    searchable: bool = False
    filterable: bool = False
    options: Dict[str, str] = field(default_factory=dict)
    priority: int = 10
    settings: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.name = sanitize_key(self.name)
        if not self.label and self.name:
            self.label = self.name.replace("_", " ").replace("-", " ").title()


class FieldRegistry:
    """Catalog of listing fields keyed by sanitized name."""

    def __init__(self):
        self._fields: Dict[str, FieldDefinition] = {}
        self.logger = logging.getLogger(__name__)

    def register_field(self, definition: FieldDefinition) -> bool:
        if not definition.name:
            self.logger.warning("Field name cannot be empty.")
            return False
        if definition.name in self._fields:
            self.logger.warning(f'Field "{definition.name}" is already registered.')
            return False
        self._fields[definition.name] = definition
        return True

    def unregister_field(self, name: str) -> bool:
        return self._fields.pop(sanitize_key(name), None) is not None

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        return self._fields.get(sanitize_key(name))

    def has_field(self, name: str) -> bool:
        return sanitize_key(name) in self._fields

    def get_fields(self,
                   searchable: Optional[bool] = None,
                   filterable: Optional[bool] = None) -> Dict[str, FieldDefinition]:
        """
        Get registered fields ordered by priority.

        Args:
            searchable: Only fields with this searchable flag
            filterable: Only fields with this filterable flag
        """
        fields = list(self._fields.values())
        if searchable is not None:
            fields = [f for f in fields if f.searchable is searchable]
        if filterable is not None:
            fields = [f for f in fields if f.filterable is filterable]
        fields.sort(key=lambda f: f.priority)
        return {f.name: f for f in fields}

    def get_searchable_fields(self) -> Dict[str, FieldDefinition]:
        return self.get_fields(searchable=True)

    def get_filterable_fields(self) -> Dict[str, FieldDefinition]:
        return self.get_fields(filterable=True)

    def get_meta_key(self, field_name: str) -> str:
        return meta_key(field_name)

    def count(self) -> int:
        return len(self._fields)

    def names(self) -> List[str]:
        return list(self._fields)
