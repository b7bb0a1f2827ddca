"""Ray-sphere intersection for the sphere-only scene.

Every primitive in a scene is a sphere, so this is the only geometry
routine the integrator calls. The roots of the intersection quadratic are
taken in the cancellation-free form (q = -(h + sign(h) * sqrt(D)), roots
q/a and c/q), which keeps the near root accurate for the huge ground
sphere where h^2 and a*c are almost equal.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> ground = Sphere(center=ti.math.vec3(0, -1000, 0), radius=1000)
    >>> # rec = hit_sphere(origin, direction, ground, 0.001, 1e10) in a kernel
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """Center and radius of one scene sphere; radius is positive."""

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Nearest accepted intersection of a ray with one sphere.

    Attributes:
        hit: 1 when a root fell inside (t_min, t_max), else 0. The other
            fields are meaningful only when hit == 1.
        t: Ray parameter of the accepted root.
        point: origin + t * direction.
        normal: Unit normal pointing away from the center. It is never
            flipped; materials that care about the side use front_face.
        front_face: 1 when the ray arrives from outside, 0 from inside.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def _nearest_root(half_b: ti.f32, a: ti.f32, c: ti.f32, t_min: ti.f32, t_max: ti.f32):
    """Pick the smaller root of a*t^2 + 2*half_b*t + c inside (t_min, t_max).

    Returns:
        A tuple (found, t). found is 0 when the quadratic has no real roots
        or neither root is in range.
    """
    found = 0
    t = 0.0

    disc = half_b * half_b - a * c
    if disc >= 0.0:
        root_d = ti.sqrt(disc)
        q = -(half_b + ti.select(half_b < 0.0, -1.0, 1.0) * root_d)

        near = (-half_b - root_d) / a
        far = (-half_b + root_d) / a
        # q vanishes only when half_b and the discriminant are both ~0
        if ti.abs(q) >= 1e-10:
            near = ti.min(q / a, c / q)
            far = ti.max(q / a, c / q)

        if near > t_min and near < t_max:
            found = 1
            t = near
        elif far > t_min and far < t_max:
            found = 1
            t = far

    return found, t


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with a sphere.

    With oc = origin - center the hit condition |oc + t*d|^2 = r^2 becomes
    a*t^2 + 2*h*t + c = 0 where a = d.d, h = d.oc and c = oc.oc - r^2.
    Both bounds are exclusive: t_min is the offset that stops a bounced ray
    from finding the surface it just left, t_max lets a scene scan keep
    only hits closer than the best so far.

    Args:
        ray_origin: Ray start point.
        ray_direction: Ray direction, any nonzero length.
        sphere: The sphere to test.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        A HitRecord; hit is 0 for a miss.
    """
    oc = ray_origin - sphere.center
    found, t = _nearest_root(
        tm.dot(ray_direction, oc),
        tm.dot(ray_direction, ray_direction),
        tm.dot(oc, oc) - sphere.radius * sphere.radius,
        t_min,
        t_max,
    )

    point = vec3(0.0, 0.0, 0.0)
    normal = vec3(0.0, 0.0, 0.0)
    front_face = 0
    if found == 1:
        point = ray_origin + t * ray_direction
        normal = (point - sphere.center) / sphere.radius
        if tm.dot(ray_direction, normal) <= 0.0:
            front_face = 1

    return HitRecord(hit=found, t=t, point=point, normal=normal, front_face=front_face)


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    return Sphere(center=center, radius=radius)
