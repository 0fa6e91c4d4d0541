"""Ready-made demo scenes.

Two scenes are provided:

- Three spheres: a diffuse sphere between a hollow glass sphere and a
  fuzzy metal sphere, resting on a large yellowish ground sphere. The
  glass sphere is hollow: a smaller sphere with refraction index 1/1.5
  inside it models the air bubble.
- Random spheres: a large grey ground sphere covered with a grid of small
  randomly placed diffuse, metal and glass spheres, plus one large sphere
  of each material. This is the classic "final render" scene.

Each factory clears the global scene and returns the SceneManager together
with a CameraConfig that frames it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.spheretrace.scene.presets import create_random_spheres_scene
    >>> from src.spheretrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_spheres_scene(seed=7)
    >>> setup_camera(camera)
"""

import logging

import numpy as np

from src.spheretrace.camera.thin_lens import CameraConfig
from src.spheretrace.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Random scene grid, one small sphere per cell
GRID_RANGE = range(-11, 11)
SMALL_RADIUS = 0.2

# Small spheres too close to this point would intersect the large metal one
_CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
_CLEARANCE_DISTANCE = 0.9


def create_three_spheres_scene(
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, CameraConfig]:
    """Create the three-sphere material showcase.

    Args:
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        Tuple of (scene, camera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    center = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(refraction_index=1.5)
    bubble = scene.add_dielectric_material(refraction_index=1.0 / 1.5)
    metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=1.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.2), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.4, bubble)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, metal)

    camera = CameraConfig(
        lookfrom=(-2.0, 2.0, 1.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        defocus_angle=10.0,
        focus_dist=3.4,
    )

    logger.debug("Created three-sphere scene with %d spheres", scene.get_sphere_count())
    return scene, camera


def create_random_spheres_scene(
    seed: int | None = None,
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, CameraConfig]:
    """Create the random spheres scene.

    Each grid cell (a, b) gets a small sphere near (a, 0.2, b). The
    material is diffuse with probability 0.8, metal with probability 0.15
    and glass otherwise. Diffuse albedo is the product of two uniform
    colors; metal albedo is uniform in [0.5, 1) with fuzz in [0, 0.5).

    Args:
        seed: Seed for the placement generator. The same seed always
            produces the same scene.
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        Tuple of (scene, camera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    glass = scene.add_dielectric_material(refraction_index=1.5)

    for a in GRID_RANGE:
        for b in GRID_RANGE:
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - _CLEARANCE_POINT) <= _CLEARANCE_DISTANCE:
                continue

            position = tuple(float(c) for c in center)
            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(position, SMALL_RADIUS, tuple(albedo.tolist()))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(position, SMALL_RADIUS, tuple(albedo.tolist()), fuzz)
            else:
                scene.add_sphere(position, SMALL_RADIUS, glass)

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, glass)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    camera = CameraConfig(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        defocus_angle=0.6,
        focus_dist=10.0,
    )

    logger.debug(
        "Created random scene (seed=%s) with %d spheres and %d materials",
        seed,
        scene.get_sphere_count(),
        scene.get_material_count(),
    )
    return scene, camera
