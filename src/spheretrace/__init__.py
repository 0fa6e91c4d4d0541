"""Taichi-based recursive sphere ray tracer.

This package renders scenes of spheres with diffuse, metal and glass
materials, with support for:
- Closest-hit intersection over an interval of ray parameters
- Lambertian, fuzzy metal and dielectric scattering
- A depth-bounded shading loop with a sky gradient background
- Anti-aliasing and thin-lens depth of field
- Progressive rendering with per-pixel accumulation

Subpackages:
    core: Ray/interval utilities, the shading loop and rendering
    geometry: Sphere primitive and intersection
    materials: Scattering models
    scene: Scene storage, scene manager and demo scenes
    camera: Thin-lens camera with ray generation
    preview: Gamma correction, PNG/PPM export and preview window
"""

__version__ = "0.1.0"
