from typing import Any, Dict, Set, Type

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def field_names_in(schema: Type[BaseModel], payload: Dict[str, Any]) -> Set[str]:
    """
    Map the keys of a raw request body to schema field names.

    Keys matching a field by name or alias resolve to the field name; any
    other key is returned unchanged so callers can reject it.
    """
    lookup = {}
    for name, field in schema.model_fields.items():
        lookup[name] = name
        if field.alias:
            lookup[field.alias] = name
    return {lookup.get(key, key) for key in payload}
