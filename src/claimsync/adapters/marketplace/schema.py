"""Pydantic models for the marketplace payloads the pipeline branches on.

Only the fields that drive control flow are modelled; everything else stays in the raw
JSON handed to the field mapper.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _id_to_str(value: object) -> object:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return _blank_to_none(value)


class MarketplaceBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Paging(MarketplaceBaseModel):
    total: int | None = None
    offset: int = 0
    limit: int | None = None


class ClaimSearchPage(MarketplaceBaseModel):
    paging: Paging = Field(default_factory=Paging)
    data: list[dict[str, Any]] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_results_key(cls, value: object) -> object:
        if isinstance(value, Mapping):
            mapping_value = cast(Mapping[str, object], value)
            if "data" not in mapping_value and "results" in mapping_value:
                data: dict[str, object] = dict(mapping_value)
                data["data"] = data.pop("results")
                return data
        return value

    @field_validator("data", mode="before")
    @classmethod
    def _drop_non_objects(cls, value: object) -> object:
        if isinstance(value, list):
            return [row for row in cast(list[object], value) if isinstance(row, Mapping)]
        return value


class ReturnDetails(MarketplaceBaseModel):
    """Return sub-resource of a claim; decides whether the claim is worth enriching."""

    id: str | None = None
    status: str | None = None
    subtype: str | None = None
    shipments: list[dict[str, Any]] = Field(default_factory=list)

    _normalize_id = field_validator("id", mode="before")(_id_to_str)
    _normalize_status = field_validator("status", "subtype", mode="before")(_blank_to_none)

    @field_validator("shipments", mode="before")
    @classmethod
    def _coerce_shipments(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list):
            return [row for row in cast(list[object], value) if isinstance(row, Mapping)]
        return value

    @property
    def is_active(self) -> bool:
        """A return counts once it has an id, or has left ``pending`` with a shipment."""

        if self.id:
            return True
        return self.status is not None and self.status != "pending" and bool(self.shipments)
