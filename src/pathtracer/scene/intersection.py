"""Scene storage and nearest-hit queries.

The scene is a fixed, ordered collection of spheres kept in Taichi fields
(structure-of-arrays layout). Each sphere carries its base color and a
material tag with one scalar parameter (metal fuzz or refractive index).
The fields are written from Python while the scene is built and only read
by the render kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.types import MaterialKind
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0, 0, -1), 0.5, (0.8, 0.3, 0.3), MaterialKind.DIFFUSE, 0.0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Extends the basic HitRecord with the index of the sphere that was hit,
    which the integrator uses to look up color and material.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: Ray parameter of the nearest valid intersection.
        point: The intersection point.
        normal: The outward unit normal of the hit sphere at point.
        front_face: 1 if the ray came from outside the sphere, 0 otherwise.
        sphere_index: Index of the hit sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    sphere_index: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_kinds = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
sphere_material_params = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. The field data is overwritten when new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    color: tuple[float, float, float],
    material_kind: int,
    material_param: float,
) -> int:
    """Append a sphere to the device-side scene.

    No validation happens here; SceneManager checks the sphere invariants
    before calling this.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        color: Base RGB reflectance.
        material_kind: A MaterialKind value.
        material_param: Metal fuzz or dielectric refractive index (ignored
            for diffuse).

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [center[0], center[1], center[2]]
    sphere_radii[idx] = radius
    sphere_colors[idx] = [color[0], color[1], color[2]]
    sphere_material_kinds[idx] = int(material_kind)
    sphere_material_params[idx] = material_param
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere_color(sphere_index: ti.i32) -> vec3:
    """Base color of a sphere by index."""
    return sphere_colors[sphere_index]


@ti.func
def get_sphere_material(sphere_index: ti.i32):
    """Material tag and parameter of a sphere by index.

    Returns:
        A tuple (material_kind, material_param).
    """
    return sphere_material_kinds[sphere_index], sphere_material_params[sphere_index]


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        sphere_index=-1,
    )


@ti.func
def _to_scene_hit_record(rec: HitRecord, sphere_index: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        sphere_index=sphere_index,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the nearest valid hit of a ray against every sphere.

    Each sphere is tested with the closest distance found so far as its
    upper bound, so the surviving record is the minimum-distance hit with
    t in (t_min, t_max).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Self-intersection epsilon; hits must be strictly beyond it.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHitRecord for the nearest intersection, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _to_scene_hit_record(rec, i)

    return result
