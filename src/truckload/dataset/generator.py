"""
Dataset generator — create cargo lists for demos, tests and benchmarks.

Generators:
    generate_sample_cargo — mixed delivery cargo: weight bands 70 % 10-100 lb,
                            20 % 100-200 lb, 10 % 200-500 lb; dimensions follow
                            weight; fragility depends on zone and weight
    generate_uniform      — each dimension drawn from U[min, max]
    generate_identical    — n identical items (for debugging / sanity checks)

Usage:
    from truckload.dataset.generator import generate_sample_cargo
    items = generate_sample_cargo(200, seed=42, save_path="dataset/sample200.json")

All generators use their own random.Random, so seeding never touches the
global random state.
"""

from __future__ import annotations

import json
import os
import random
from typing import List, Optional

from truckload.config import ZONE_ORDER, Item, TemperatureZone, VehicleConfig


# Default number of delivery stops in generated cargo.
DEFAULT_STOPS = 4

# Margin kept between generated items and the vehicle walls (ft).
WALL_MARGIN = 0.5


def _id(i: int) -> str:
    return f"box-{i + 1:03d}"


def generate_sample_cargo(
    n: int,
    vehicle: Optional[VehicleConfig] = None,
    stops: int = DEFAULT_STOPS,
    save_path: Optional[str] = None,
    seed: Optional[int] = None,
) -> List[Item]:
    """
    Generate *n* items resembling a multi-stop grocery / retail delivery.

    Args:
        n:         Number of items.
        vehicle:   Caps item dimensions (minus WALL_MARGIN).  Defaults to
                   the 8×28×9 ft trailer.
        stops:     Number of delivery stops (destinations 1..stops).
        save_path: If given, save the dataset JSON here.
        seed:      Random seed for reproducibility.

    Returns:
        List of Item objects with ids box-001, box-002, ...
    """
    if stops < 1:
        raise ValueError(f"stops must be >= 1, got {stops}")
    rng = random.Random(seed)
    v = vehicle or VehicleConfig()

    items: List[Item] = []
    for i in range(n):
        zone = rng.choice(ZONE_ORDER)

        r = rng.random()
        if r < 0.7:
            weight = rng.uniform(10, 100)
        elif r < 0.9:
            weight = rng.uniform(100, 200)
        else:
            weight = rng.uniform(200, 500)

        if zone is TemperatureZone.FROZEN:
            fragile = rng.random() < 0.10
        elif weight > 100:
            fragile = rng.random() < 0.05
        else:
            fragile = rng.random() < 0.25

        if weight < 20:
            width, height, length = rng.uniform(0.5, 2.0), rng.uniform(0.3, 1.5), rng.uniform(0.5, 2.5)
        elif weight < 100:
            width, height, length = rng.uniform(1.0, 4.0), rng.uniform(0.8, 3.0), rng.uniform(1.0, 5.0)
        else:
            width, height, length = rng.uniform(2.0, 6.0), rng.uniform(1.5, 4.0), rng.uniform(2.0, 8.0)

        width = min(width, v.width - WALL_MARGIN)
        height = min(height, v.height - WALL_MARGIN)
        length = min(length, v.length - WALL_MARGIN)

        items.append(Item(
            id=_id(i),
            name=f"Sample Box {i + 1}",
            width=round(width, 1), height=round(height, 1), length=round(length, 1),
            weight=round(weight, 1),
            temperature_zone=zone,
            fragile=fragile,
            destination=rng.randint(1, stops),
            stack_limit=0 if fragile else rng.randint(1, 4),
            crush_factor=round(rng.uniform(0.0, 0.5), 2),
        ))

    if save_path:
        _save(items, save_path, generator="sample_cargo",
              params={"n": n, "stops": stops, "seed": seed, "vehicle": v.to_dict()})
    return items


def generate_uniform(
    n: int,
    min_dim: float = 0.5,
    max_dim: float = 3.0,
    min_weight: float = 10.0,
    max_weight: float = 200.0,
    zone: TemperatureZone = TemperatureZone.REGULAR,
    save_path: Optional[str] = None,
    seed: Optional[int] = None,
) -> List[Item]:
    """
    Generate *n* items with each dimension drawn from U[min_dim, max_dim]
    and weight from U[min_weight, max_weight], all in one zone.
    """
    rng = random.Random(seed)
    items = [
        Item(id=_id(i),
             width=round(rng.uniform(min_dim, max_dim), 1),
             height=round(rng.uniform(min_dim, max_dim), 1),
             length=round(rng.uniform(min_dim, max_dim), 1),
             weight=round(rng.uniform(min_weight, max_weight), 1),
             temperature_zone=zone)
        for i in range(n)
    ]
    if save_path:
        _save(items, save_path, generator="uniform",
              params={"n": n, "min_dim": min_dim, "max_dim": max_dim,
                      "min_weight": min_weight, "max_weight": max_weight, "seed": seed})
    return items


def generate_identical(
    n: int,
    width: float = 2.0,
    height: float = 2.0,
    length: float = 2.0,
    weight: float = 50.0,
    zone: TemperatureZone = TemperatureZone.REGULAR,
    save_path: Optional[str] = None,
) -> List[Item]:
    """Generate *n* identical items — useful for debugging and sanity checks."""
    items = [
        Item(id=_id(i), width=width, height=height, length=length,
             weight=weight, temperature_zone=zone)
        for i in range(n)
    ]
    if save_path:
        _save(items, save_path, generator="identical",
              params={"n": n, "width": width, "height": height,
                      "length": length, "weight": weight})
    return items


# ─── Internal ────────────────────────────────────────────────────────────────

def _save(items: List[Item], path: str, generator: str, params: dict) -> None:
    """Persist an item list as a dataset JSON file (readable by load_manifest)."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    data = {
        "name": os.path.splitext(os.path.basename(path))[0],
        "generator": generator,
        "params": params,
        "item_count": len(items),
        "items": [i.to_dict() for i in items],
    }
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
