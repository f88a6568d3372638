"""Shared pydantic configuration for IR nodes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class IRNode(BaseModel):
    """
    Base class for every IR node.

    Attribute names are snake_case in Python and camelCase on the wire.
    Nodes are mutable while a file is being parsed; the resolver only ever
    produces copies.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        """Dump the node in its JSON shape (camelCase keys, no null values)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
