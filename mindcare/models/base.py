"""Shared base for records persisted in the key-value store."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(UTC)


class Record(BaseModel):
    """A JSON document stored under a single key.

    Stored with snake_case field names (``to_document``); rendered on the
    wire with camelCase aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict:
        return self.model_dump(mode="json")
