"""
Core data models for the load placement engine.

All modules import their core types from here to ensure consistency
across the dataset, simulator, strategy and scoring layers.

Classes:
    TemperatureZone — storage zone an item must travel in
    Item            — cargo unit with dimensions, weight and handling rules
    Orientation     — footprint variants of an item (default / 90° swapped)
    VehicleConfig   — cargo envelope and weight limit of the vehicle
    ZoneLayout      — partition of the length axis into temperature bands
    Placement       — immutable result of placing an item (centroid + order)
    PlacementDecision — strategy's proposed placement (before validation)

Coordinate system (feet):
    x ∈ [-width/2,  width/2]    left wall → right wall
    y ∈ [0, height]             floor → ceiling
    z ∈ [-length/2, length/2]   cab (front) → loading door (rear)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple


# ─────────────────────────────────────────────────────────────────────────────
# Temperature zones
# ─────────────────────────────────────────────────────────────────────────────

class TemperatureZone(str, Enum):
    """Storage zones, listed front (cab) to rear (door)."""
    FROZEN = "frozen"
    COLD = "cold"
    REGULAR = "regular"


# Front-to-back band order inside the vehicle.
ZONE_ORDER: Tuple[TemperatureZone, ...] = (
    TemperatureZone.FROZEN,
    TemperatureZone.COLD,
    TemperatureZone.REGULAR,
)


# ─────────────────────────────────────────────────────────────────────────────
# Item & Orientation
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Item:
    """
    A cargo unit to be placed.

    Attributes:
        id:                  Stable unique identifier.
        width:               Nominal x-extent (ft).
        height:              y-extent (ft).  Items never tip over.
        length:              Nominal z-extent (ft).
        weight:              Weight (lb).
        temperature_zone:    Band the item must travel in.
        fragile:             Nothing may rest on a fragile item.
        destination:         Delivery stop index, 1 = first stop.
        stack_limit:         Max number of items resting directly on top.
        crush_factor:        0-1 compressibility, advisory only.
        orientation_swapped: Width and length exchanged for placement.
        name:                Optional human-readable label.
    """
    id: str
    width: float
    height: float
    length: float
    weight: float
    temperature_zone: TemperatureZone = TemperatureZone.REGULAR
    fragile: bool = False
    destination: int = 1
    stack_limit: int = 4
    crush_factor: float = 0.0
    orientation_swapped: bool = False
    name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.temperature_zone, TemperatureZone):
            object.__setattr__(
                self, "temperature_zone", TemperatureZone(self.temperature_zone),
            )
        for dim in ("width", "height", "length", "weight"):
            value = getattr(self, dim)
            if not (value > 0 and math.isfinite(value)):
                raise ValueError(f"Item {self.id}: {dim} must be a positive number, got {value!r}")
        if self.destination < 1:
            raise ValueError(f"Item {self.id}: destination must be >= 1, got {self.destination}")
        if self.stack_limit < 0:
            raise ValueError(f"Item {self.id}: stack_limit must be >= 0, got {self.stack_limit}")
        if not (0.0 <= self.crush_factor <= 1.0):
            raise ValueError(f"Item {self.id}: crush_factor must be in [0,1], got {self.crush_factor}")

    @property
    def placed_width(self) -> float:
        """x-extent once placed (length if the orientation is swapped)."""
        return self.length if self.orientation_swapped else self.width

    @property
    def placed_length(self) -> float:
        """z-extent once placed (width if the orientation is swapped)."""
        return self.width if self.orientation_swapped else self.length

    @property
    def volume(self) -> float:
        """Total volume of the item (ft³)."""
        return self.width * self.height * self.length

    @property
    def footprint_area(self) -> float:
        return self.width * self.length

    @property
    def is_square(self) -> bool:
        """True when rotating the footprint gains nothing."""
        return self.width == self.length

    def rotated(self, swapped: bool = True) -> "Item":
        """Copy of this item with the given orientation flag."""
        if swapped == self.orientation_swapped:
            return self
        return replace(self, orientation_swapped=swapped)

    def to_dict(self) -> dict:
        return {
            "id": self.id, "name": self.name,
            "width": self.width, "height": self.height, "length": self.length,
            "weight": self.weight,
            "temperature_zone": self.temperature_zone.value,
            "fragile": self.fragile, "destination": self.destination,
            "stack_limit": self.stack_limit, "crush_factor": self.crush_factor,
            "orientation_swapped": self.orientation_swapped,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Item":
        return cls(
            id=str(d["id"]), width=d["width"], height=d["height"],
            length=d["length"], weight=d["weight"],
            temperature_zone=TemperatureZone(d.get("temperature_zone", "regular")),
            fragile=d.get("fragile", False), destination=d.get("destination", 1),
            stack_limit=d.get("stack_limit", 4), crush_factor=d.get("crush_factor", 0.0),
            orientation_swapped=d.get("orientation_swapped", False),
            name=d.get("name", ""),
        )


class Orientation:
    """
    Footprint variants of an item.

    Items keep their height axis vertical, so only the z-axis 90° turn
    is allowed.  Index 0 is the nominal orientation, index 1 the swapped
    one.  Square footprints yield a single orientation.
    """

    @staticmethod
    def get_flat(item: Item) -> List[Item]:
        """Return the unique footprint orientations of *item* (1 or 2)."""
        base = item.rotated(False)
        if item.is_square:
            return [base]
        return [base, item.rotated(True)]


# ─────────────────────────────────────────────────────────────────────────────
# Vehicle & zones
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class VehicleConfig:
    """
    Cargo envelope of the vehicle.

    Attributes:
        width:      x-axis extent (ft).
        length:     z-axis extent, cab to door (ft).
        height:     y-axis extent, floor to ceiling (ft).
        max_weight: Legal payload (lb).
    """
    width: float = 8.0
    length: float = 28.0
    height: float = 9.0
    max_weight: float = 34000.0

    def __post_init__(self) -> None:
        for dim in ("width", "length", "height", "max_weight"):
            if not getattr(self, dim) > 0:
                raise ValueError(f"VehicleConfig.{dim} must be > 0, got {getattr(self, dim)!r}")

    @property
    def volume(self) -> float:
        """Total cargo volume (ft³)."""
        return self.width * self.length * self.height

    @property
    def half_width(self) -> float:
        return self.width / 2.0

    @property
    def half_length(self) -> float:
        return self.length / 2.0

    def to_dict(self) -> dict:
        return {"width": self.width, "length": self.length,
                "height": self.height, "max_weight": self.max_weight}

    @classmethod
    def from_dict(cls, d: dict) -> "VehicleConfig":
        return cls(**d)


@dataclass(frozen=True)
class ZoneLayout:
    """
    Partition of the length axis into three contiguous temperature bands.

    Fractions are listed front to rear (frozen, cold, regular) and must
    cover the full length.  A zero fraction removes the band; items of
    that zone then cannot be placed.
    """
    frozen_fraction: float = 1.0 / 3.0
    cold_fraction: float = 1.0 / 3.0
    regular_fraction: float = 1.0 / 3.0

    def __post_init__(self) -> None:
        fractions = self.fractions()
        if any(f < 0 for f in fractions.values()):
            raise ValueError(f"ZoneLayout fractions must be >= 0, got {fractions}")
        if not math.isclose(sum(fractions.values()), 1.0, abs_tol=1e-9):
            raise ValueError(f"ZoneLayout fractions must sum to 1, got {sum(fractions.values()):.6f}")

    def fractions(self) -> Dict[TemperatureZone, float]:
        return {
            TemperatureZone.FROZEN: self.frozen_fraction,
            TemperatureZone.COLD: self.cold_fraction,
            TemperatureZone.REGULAR: self.regular_fraction,
        }

    def bands(self, vehicle: VehicleConfig) -> Dict[TemperatureZone, Tuple[float, float]]:
        """(z0, z1) of every band; the last band ends exactly at the door."""
        fractions = self.fractions()
        result: Dict[TemperatureZone, Tuple[float, float]] = {}
        z = -vehicle.half_length
        for i, zone in enumerate(ZONE_ORDER):
            z_end = vehicle.half_length if i == len(ZONE_ORDER) - 1 else z + fractions[zone] * vehicle.length
            result[zone] = (z, z_end)
            z = z_end
        return result

    def band(self, zone: TemperatureZone, vehicle: VehicleConfig) -> Tuple[float, float]:
        """(z0, z1) band reserved for *zone*."""
        return self.bands(vehicle)[TemperatureZone(zone)]

    def zone_at(self, z: float, vehicle: VehicleConfig) -> Optional[TemperatureZone]:
        """Zone whose band contains coordinate *z* (None outside the vehicle)."""
        for zone, (z0, z1) in self.bands(vehicle).items():
            if z0 <= z < z1 or (z == z1 == vehicle.half_length):
                return zone
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Placement (immutable result of placing an item)
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Placement:
    """
    A single placed item inside the vehicle.

    Frozen so it can be shared between the planner, the scorer and the
    dynamics validator without risk of accidental mutation.

    Attributes:
        item:     The placed item, carrying its orientation flag.
        x, y, z:  Centroid in vehicle coordinates.
        sequence: Loading order index (0 = loaded first).
    """
    item: Item
    x: float
    y: float
    z: float
    sequence: int = 0

    @property
    def item_id(self) -> str:
        return self.item.id

    @property
    def position(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def width(self) -> float:
        return self.item.placed_width

    @property
    def height(self) -> float:
        return self.item.height

    @property
    def length(self) -> float:
        return self.item.placed_length

    @property
    def weight(self) -> float:
        return self.item.weight

    @property
    def volume(self) -> float:
        return self.item.volume

    @property
    def x_min(self) -> float:
        return self.x - self.width / 2.0

    @property
    def x_max(self) -> float:
        return self.x + self.width / 2.0

    @property
    def y_min(self) -> float:
        return self.y - self.height / 2.0

    @property
    def y_max(self) -> float:
        return self.y + self.height / 2.0

    @property
    def z_min(self) -> float:
        return self.z - self.length / 2.0

    @property
    def z_max(self) -> float:
        return self.z + self.length / 2.0

    def moved_to(self, x: float, y: float, z: float) -> "Placement":
        return replace(self, x=float(x), y=float(y), z=float(z))

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "item_id": self.item_id,
            "dims": [self.width, self.height, self.length],
            "position": [self.x, self.y, self.z],
            "orientation_swapped": self.item.orientation_swapped,
        }


# ─────────────────────────────────────────────────────────────────────────────
# PlacementDecision (strategy output, before planner validation)
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlacementDecision:
    """
    A strategy's proposed placement (not yet validated by the planner).

    Attributes:
        x, y, z:             Proposed centroid.
        orientation_swapped: Whether the footprint is turned 90°.
        reach_cost:          Cost the strategy ranked this candidate by.
        supports:            Ids of items the candidate rests on.
    """
    x: float
    y: float
    z: float
    orientation_swapped: bool = False
    reach_cost: float = 0.0
    supports: Tuple[str, ...] = field(default_factory=tuple)
