"""Manifest import: item lists and vehicle definitions from YAML or JSON.

A manifest is a mapping with an optional ``vehicle`` and a list of
``items``.  Field names are accepted in snake_case or in the camelCase
used by upstream order exports (``temperatureZone``, ``isFragile``,
``stackLimit`` ...).  Destinations may be plain integers or labels such
as ``"Stop 3"``.

    vehicle: {width: 8, length: 28, height: 9, max_weight: 34000}
    items:
      - {id: A1, width: 2, height: 2, length: 3, weight: 80, temperature_zone: cold}
      - {id: B, width: 1, height: 1, length: 1, weight: 5, quantity: 4}
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from truckload.config import Item, TemperatureZone, VehicleConfig

_STOP_RE = re.compile(r"(\d+)\s*$")


class ItemSchema(BaseModel):
    """Schema for one manifest line."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1, description="Unique item id")
    name: str = Field("", description="Human-readable label")
    width: float = Field(gt=0, description="x-extent (ft)")
    height: float = Field(gt=0, description="y-extent (ft)")
    length: float = Field(gt=0, description="z-extent (ft)")
    weight: float = Field(gt=0, description="Weight (lb)")
    temperature_zone: TemperatureZone = Field(
        TemperatureZone.REGULAR,
        validation_alias=AliasChoices("temperature_zone", "temperatureZone", "zone"),
    )
    fragile: bool = Field(False, validation_alias=AliasChoices("fragile", "isFragile"))
    destination: int = Field(1, ge=1, description="Delivery stop index")
    stack_limit: int = Field(4, ge=0, validation_alias=AliasChoices("stack_limit", "stackLimit"))
    crush_factor: float = Field(
        0.0, ge=0, le=1, validation_alias=AliasChoices("crush_factor", "crushFactor"),
    )
    orientation_swapped: bool = Field(
        False, validation_alias=AliasChoices("orientation_swapped", "orientationSwapped"),
    )
    quantity: int = Field(1, ge=1, description="Expand into this many copies")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        return str(v)

    @field_validator("temperature_zone", mode="before")
    @classmethod
    def _lower_zone(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("destination", mode="before")
    @classmethod
    def _parse_stop(cls, v):
        if isinstance(v, str):
            m = _STOP_RE.search(v)
            if not m:
                raise ValueError(f"cannot read a stop number from {v!r}")
            return int(m.group(1))
        return v

    def to_items(self) -> List[Item]:
        ids = [self.id] if self.quantity == 1 else [f"{self.id}-{k + 1}" for k in range(self.quantity)]
        return [
            Item(
                id=item_id, name=self.name, width=self.width, height=self.height,
                length=self.length, weight=self.weight,
                temperature_zone=self.temperature_zone, fragile=self.fragile,
                destination=self.destination, stack_limit=self.stack_limit,
                crush_factor=self.crush_factor,
                orientation_swapped=self.orientation_swapped,
            )
            for item_id in ids
        ]


class VehicleSchema(BaseModel):
    """Schema for the vehicle envelope."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    width: float = Field(8.0, gt=0, description="x-extent (ft)")
    length: float = Field(28.0, gt=0, description="z-extent, cab to door (ft)")
    height: float = Field(9.0, gt=0, description="y-extent (ft)")
    max_weight: float = Field(
        34000.0, gt=0, validation_alias=AliasChoices("max_weight", "maxWeight"),
    )

    def to_vehicle(self) -> VehicleConfig:
        return VehicleConfig(
            width=self.width, length=self.length,
            height=self.height, max_weight=self.max_weight,
        )


class ManifestSchema(BaseModel):
    """Schema for a whole manifest."""
    model_config = ConfigDict(extra="ignore")

    vehicle: Optional[VehicleSchema] = None
    items: List[ItemSchema] = Field(default_factory=list)

    @field_validator("items")
    @classmethod
    def _unique_ids(cls, items: List[ItemSchema]) -> List[ItemSchema]:
        seen = set()
        for line in items:
            if line.id in seen:
                raise ValueError(f"duplicate item id {line.id!r}")
            seen.add(line.id)
        return items


def parse_manifest(data: Union[dict, list]) -> Tuple[List[Item], Optional[VehicleConfig]]:
    """Validate a parsed manifest (a mapping, or a bare list of items)."""
    if isinstance(data, list):
        data = {"items": data}
    manifest = ManifestSchema.model_validate(data or {})
    items = [item for line in manifest.items for item in line.to_items()]
    vehicle = manifest.vehicle.to_vehicle() if manifest.vehicle is not None else None
    return items, vehicle


def load_manifest(path: Union[str, Path]) -> Tuple[List[Item], Optional[VehicleConfig]]:
    """Read a manifest from a .yaml / .yml / .json file."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    return parse_manifest(data)
