"""Base model shared by pebblewx data models.

Every model inherits from :class:`BridgeBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase keys used by the phone-side
  JavaScript surfaces map automatically to snake_case fields.
* Immutability (``frozen=True``); values are built fresh per cycle and
  never mutated in place.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BridgeBaseModel(BaseModel):
    """Base for pebblewx models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
