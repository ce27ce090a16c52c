from truckload.dataset.generator import generate_identical, generate_sample_cargo, generate_uniform
from truckload.dataset.loader import load_manifest, parse_manifest

__all__ = [
    "generate_identical",
    "generate_sample_cargo",
    "generate_uniform",
    "load_manifest",
    "parse_manifest",
]
