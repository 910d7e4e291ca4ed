"""Pre-write normalization for document payloads.

The document store rejects missing values, and the manga model carries many
optional fields. Every structured write goes through ``clean_data`` first:

1. ``None`` values are dropped from mappings
2. ``None`` elements are filtered out of lists (empty lists are kept)
3. Mappings left empty after cleaning collapse to ``None`` and are dropped
   from their parent in turn

Anything that is not a mapping or a sequence (including the store's
server-timestamp placeholder) is returned unchanged.
"""

from typing import Any


def clean_data(value: Any) -> Any:
    if value is None:
        return None

    if isinstance(value, (list, tuple)):
        cleaned_items = (clean_data(item) for item in value)
        return [item for item in cleaned_items if item is not None]

    if isinstance(value, dict):
        cleaned: dict = {}
        for key, item in value.items():
            cleaned_item = clean_data(item)
            if cleaned_item is not None:
                cleaned[key] = cleaned_item
        return cleaned or None

    return value
