"""Scene module for scene management and hit records.

This module handles scene representation and ray-scene queries:

Components:
    intersection: Sphere storage and the closest-hit aggregate query
    manager: Unified scene manager coordinating spheres and materials
    presets: Ready-made demo scenes with matching cameras

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - Per-type material arenas addressed through unified material IDs
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import create_random_spheres_scene, create_three_spheres_scene

__all__ = [
    # Intersection
    "SceneHitRecord",
    "MAX_SPHERES",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    # Manager
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "create_three_spheres_scene",
    "create_random_spheres_scene",
]
