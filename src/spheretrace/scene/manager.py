"""Unified scene manager coordinating spheres and materials.

This module provides the scene construction API. Materials live in
per-type registries; the SceneManager hands out a unified material_id for
each one and records which type and type-local index it maps to, so the
shading loop can dispatch to the right scattering function.

Spheres refer to materials by material_id, so any number of spheres can
share one material. Scenes can be exported to and loaded from plain
dictionaries, and from JSON files on disk.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> mat_id = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=mat_id)
"""

import json
import logging
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti
import taichi.math as tm

from src.spheretrace.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.spheretrace.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.spheretrace.materials.metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
)
from src.spheretrace.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the shading loop to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 1024

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the index into the type-specific material arrays.

    Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material (Lambertian, Metal, Dielectric).
        type_index: The index within the type-specific material array.
        params: The material parameters as stored.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere (clamped to >= 0).
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {values!r}")
    return (float(values[0]), float(values[1]), float(values[2]))


def _parse_albedo(mat_config: dict[str, Any], default: list[float]) -> tuple[float, float, float]:
    albedo = _as_triple(mat_config.get("albedo", default), "albedo")
    if not all(0.0 <= c <= 1.0 for c in albedo):
        raise ValueError(f"albedo {albedo} has components outside [0, 1]")
    return albedo


def _parse_scene_dict(
    data: dict[str, Any],
) -> tuple[
    list[tuple[str, dict[str, Any]]],
    list[tuple[tuple[float, float, float], float, int]],
]:
    """Check a scene description without touching the global scene.

    Returns:
        Tuple of (materials, spheres). Each material is (type, kwargs for
        the matching add_*_material call); each sphere is
        (center, radius, material_id).

    Raises:
        ValueError: If a material type is unknown, a vector is malformed,
            a parameter is out of range or a sphere refers to a missing
            material.
    """
    materials: list[tuple[str, dict[str, Any]]] = []
    for mat_config in data.get("materials", []):
        mat_type = str(mat_config.get("type", "")).lower()
        if mat_type == "lambertian":
            params = {"albedo": _parse_albedo(mat_config, [0.5, 0.5, 0.5])}
        elif mat_type == "metal":
            params = {
                "albedo": _parse_albedo(mat_config, [0.8, 0.8, 0.8]),
                "fuzz": float(mat_config.get("fuzz", 0.0)),
            }
        elif mat_type == "dielectric":
            refraction_index = float(mat_config.get("refraction_index", 1.5))
            if refraction_index <= 0.0:
                raise ValueError(f"refraction_index = {refraction_index} must be positive")
            params = {"refraction_index": refraction_index}
        else:
            raise ValueError(f"Unknown material type: {mat_type}")
        materials.append((mat_type, params))

    spheres: list[tuple[tuple[float, float, float], float, int]] = []
    for sphere_config in data.get("spheres", []):
        center = _as_triple(sphere_config.get("center", [0, 0, 0]), "center")
        radius = float(sphere_config.get("radius", 1.0))
        material_id = int(sphere_config.get("material_id", 0))
        if not 0 <= material_id < len(materials):
            raise ValueError(f"Invalid material_id: {material_id}")
        spheres.append((center, radius, material_id))

    return materials, spheres


class SceneManager:
    """Unified scene manager coordinating spheres and materials.

    Creating a SceneManager clears the global scene storage and material
    registries; there is one active scene at a time.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereInfo for all spheres in the scene.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
        >>> glass = scene.add_dielectric_material(refraction_index=1.5)
        >>> scene.add_sphere((0, -100.5, -1), 100, ground)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Clear the entire scene (spheres and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"albedo": tuple(albedo)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple.
            fuzz: The fuzz factor, clamped to [0, 1]. Default is 0 (mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        fuzz = clamp_fuzz(fuzz)
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": tuple(albedo), "fuzz": fuzz}
        )

    def add_dielectric_material(self, refraction_index: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            refraction_index: Index of refraction. Default is 1.5 (glass).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If the refraction index is not positive.
        """
        type_index = add_dielectric_material(refraction_index)
        return self._register_material(
            MaterialType.DIELECTRIC, type_index, {"refraction_index": refraction_index}
        )

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if unknown."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere bound to an existing material.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere. Negative values are clamped to 0.
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid.
        """
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        center_vec = vec3(center[0], center[1], center[2])
        sphere_index = add_sphere(center_vec, radius, material_id)

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=tuple(center),
                radius=max(float(radius), 0.0),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        refraction_index: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(refraction_index)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a JSON-compatible dictionary.

        Returns:
            A dictionary with 'materials' and 'spheres' lists. Spheres refer
            to materials by their position in the materials list.
        """
        materials = []
        for mat in self.materials:
            entry: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                entry[key] = list(value) if isinstance(value, tuple) else value
            materials.append(entry)

        spheres = [
            {
                "center": list(sphere.center),
                "radius": sphere.radius,
                "material_id": sphere.material_id,
            }
            for sphere in self.spheres
        ]
        return {"materials": materials, "spheres": spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary, replacing the current scene.

        The description is parsed in full before the current scene is
        touched. If loading still fails, the previous scene is restored.

        Args:
            data: Dictionary with 'materials' and 'spheres' keys, in the
                format produced by to_dict().

        Raises:
            ValueError: If the data contains an unknown material type,
                an unknown material_id or invalid values.
        """
        materials, spheres = _parse_scene_dict(data)
        previous = self.to_dict()

        self.clear()
        try:
            self._apply_parsed(materials, spheres)
        except (ValueError, RuntimeError):
            self.clear()
            self._apply_parsed(*_parse_scene_dict(previous))
            raise

        logger.debug(
            "Loaded scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def _apply_parsed(
        self,
        materials: list[tuple[str, dict[str, Any]]],
        spheres: list[tuple[tuple[float, float, float], float, int]],
    ) -> None:
        for mat_type, params in materials:
            if mat_type == "lambertian":
                self.add_lambertian_material(**params)
            elif mat_type == "metal":
                self.add_metal_material(**params)
            else:
                self.add_dielectric_material(**params)

        for center, radius, material_id in spheres:
            self.add_sphere(center, radius, material_id)

    def save_scene_file(self, filepath: str | Path) -> None:
        """Write the scene description to a JSON file."""
        Path(filepath).write_text(json.dumps(self.to_dict(), indent=2))

    def load_scene_file(self, filepath: str | Path) -> None:
        """Replace the current scene with one read from a JSON file.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the file is not valid JSON or describes an
                invalid scene.
        """
        text = Path(filepath).read_text()
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Scene file {filepath} is not valid JSON: {e}") from e
        self.from_dict(data)
        logger.info("Loaded scene file %s", filepath)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
