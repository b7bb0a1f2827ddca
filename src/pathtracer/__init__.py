"""Taichi-based Monte Carlo path tracer for sphere scenes.

This package renders static scenes of spheres with diffuse, metal and
dielectric materials into 8-bit RGB images, with stratified antialiasing
and thin-lens depth of field.

Subpackages:
    core: Vector utilities, random sampling, the color integrator and the
        per-pixel render driver
    geometry: Ray-sphere intersection
    materials: Material variants and their scatter functions
    scene: Scene storage, the scene manager and built-in scenes
    camera: Thin-lens camera with ray generation
    preview: Image export and preview utilities

Modules that allocate Taichi fields must be imported after ti.init().
"""

__version__ = "0.1.0"
