"""
Segment model. A segment is the pair of consecutive vertexes (v1, v2); the bulge of v1
decides whether it is a line or an arc. Nothing here is stored, every value is derived
from the two vertexes on demand.
"""

from dataclasses import dataclass
from typing import NamedTuple

from .plinemath import (
    PI,
    REAL_PRECISION,
    REAL_THRESHOLD,
    TAU,
    angle,
    angle_from_bulge,
    angle_is_within_sweep,
    bulge_from_angle,
    line_seg_closest_point,
    normalize,
    normalize_radians,
    perp,
    point_from_parametric,
    point_on_circle,
    pos_equal,
)
from .vertex import PlineVertex


@dataclass(frozen=True)
class LineSeg:
    start: complex
    end: complex


@dataclass(frozen=True)
class ArcSeg:
    start: complex
    end: complex
    center: complex
    radius: float
    is_ccw: bool


class SplitResult(NamedTuple):
    updated_start: PlineVertex
    split_vertex: PlineVertex


def seg_arc_radius_and_center(v1, v2):
    """
    Radius and center of the arc segment v1 -> v2.

    Valid for any bulge magnitude. For sweeps beyond half a circle the center lies on
    the same side of the chord as the arc.

    @param v1: start vertex, carries the bulge
    @param v2: end vertex
    @return: radius, center
    """
    chord = v2.pos - v1.pos
    d = abs(chord)
    if d < REAL_THRESHOLD or v1.bulge_is_zero():
        return 0.0, v1.pos
    b = abs(v1.bulge)
    radius = d * (b * b + 1.0) / (4.0 * b)
    sagitta = b * d / 2.0
    m = radius - sagitta
    offset = complex(-m * chord.imag / d, m * chord.real / d)
    if v1.bulge < 0:
        offset = -offset
    return radius, v1.pos + chord / 2.0 + offset


def seg_shape(v1, v2):
    """Tagged line or arc description of the segment."""
    if v1.bulge_is_zero():
        return LineSeg(v1.pos, v2.pos)
    radius, center = seg_arc_radius_and_center(v1, v2)
    return ArcSeg(v1.pos, v2.pos, center, radius, v1.bulge > 0)


def point_within_arc_sweep(center, arc_start, arc_end, is_clockwise, point, eps=REAL_PRECISION):
    """
    Test if point lies within the angular sweep of the arc arc_start -> arc_end.

    The test is angle based so it holds for arcs sweeping more than half a circle.
    eps is a distance and is converted to an angle using the arc radius.
    """
    radius = abs(arc_start - center)
    if radius < REAL_THRESHOLD:
        return pos_equal(point, arc_start, eps)
    start_angle = angle(center, arc_start)
    end_angle = angle(center, arc_end)
    if is_clockwise:
        sweep = -normalize_radians(start_angle - end_angle)
    else:
        sweep = normalize_radians(end_angle - start_angle)
    return angle_is_within_sweep(angle(center, point), start_angle, sweep, eps / radius)


def _arc_param(v1, center, point):
    """
    Angular distance travelled along the arc from v1 to reach point, clamped to the sweep.
    """
    total = abs(angle_from_bulge(v1.bulge))
    delta = angle(center, point) - angle(center, v1.pos)
    if v1.bulge < 0:
        delta = -delta
    theta = normalize_radians(delta)
    if theta > total:
        # Outside the sweep, snap to the nearer end.
        if TAU - theta < theta - total:
            return 0.0
        return total
    return theta


def seg_length(v1, v2):
    if pos_equal(v1.pos, v2.pos, REAL_THRESHOLD):
        return 0.0
    if v1.bulge_is_zero():
        return abs(v2.pos - v1.pos)
    radius, _ = seg_arc_radius_and_center(v1, v2)
    return radius * abs(angle_from_bulge(v1.bulge))


def seg_point_at(v1, v2, t):
    """
    Point at parameter t in [0, 1] along the segment. Arcs are parameterized by angle.
    """
    if v1.bulge_is_zero():
        return point_from_parametric(v1.pos, v2.pos, t)
    radius, center = seg_arc_radius_and_center(v1, v2)
    if radius == 0:
        return v1.pos
    start_angle = angle(center, v1.pos)
    return point_on_circle(radius, center, start_angle + t * angle_from_bulge(v1.bulge))


def seg_midpoint(v1, v2):
    return seg_point_at(v1, v2, 0.5)


def seg_distance_from_start(v1, v2, point):
    """
    Distance travelled along the segment from its start to point (point assumed on segment).
    """
    if v1.bulge_is_zero():
        return abs(point - v1.pos)
    radius, center = seg_arc_radius_and_center(v1, v2)
    return radius * _arc_param(v1, center, point)


def seg_tangent_vector(v1, v2, point_on_seg):
    """
    Direction of travel of the segment at point_on_seg (not normalized).
    """
    if v1.bulge_is_zero():
        return v2.pos - v1.pos
    _, center = seg_arc_radius_and_center(v1, v2)
    radial = perp(point_on_seg - center)
    if v1.bulge < 0:
        return -radial
    return radial


def seg_closest_point(v1, v2, point):
    if v1.bulge_is_zero():
        return line_seg_closest_point(v1.pos, v2.pos, point)
    radius, center = seg_arc_radius_and_center(v1, v2)
    if pos_equal(point, center, REAL_THRESHOLD):
        return v1.pos
    if point_within_arc_sweep(center, v1.pos, v2.pos, v1.bulge < 0, point, REAL_THRESHOLD):
        return center + radius * normalize(point - center)
    if abs(point - v1.pos) <= abs(point - v2.pos):
        return v1.pos
    return v2.pos


def seg_split_at_point(v1, v2, point, pos_equal_eps=REAL_PRECISION):
    """
    Split the segment v1 -> v2 at point.

    @return: SplitResult, updated_start is v1 with its bulge trimmed to end at point and
    split_vertex sits at point carrying the bulge for the remainder of the segment.
    """
    if v1.bulge_is_zero():
        return SplitResult(v1, PlineVertex.from_pos(point, 0.0))
    if pos_equal(v1.pos, v2.pos, pos_equal_eps) or pos_equal(v1.pos, point, pos_equal_eps):
        return SplitResult(PlineVertex.from_pos(point, 0.0), PlineVertex.from_pos(point, v1.bulge))
    if pos_equal(v2.pos, point, pos_equal_eps):
        return SplitResult(v1, PlineVertex.from_pos(v2.pos, 0.0))

    _, center = seg_arc_radius_and_center(v1, v2)
    total = abs(angle_from_bulge(v1.bulge))
    theta1 = _arc_param(v1, center, point)
    theta2 = total - theta1
    sign = 1.0 if v1.bulge > 0 else -1.0
    updated_start = v1.with_bulge(sign * bulge_from_angle(theta1))
    split_vertex = PlineVertex.from_pos(point, sign * bulge_from_angle(theta2))
    return SplitResult(updated_start, split_vertex)


def seg_bounding_box(v1, v2):
    """
    Tight bounding box of the segment, arcs include their axis crossing extremes.

    @return: min_x, min_y, max_x, max_y
    """
    p1 = v1.pos
    p2 = v2.pos
    min_x = min(p1.real, p2.real)
    min_y = min(p1.imag, p2.imag)
    max_x = max(p1.real, p2.real)
    max_y = max(p1.imag, p2.imag)
    if v1.bulge_is_zero():
        return min_x, min_y, max_x, max_y
    radius, center = seg_arc_radius_and_center(v1, v2)
    start_angle = angle(center, p1)
    sweep = angle_from_bulge(v1.bulge)
    for k in range(4):
        axis_angle = k * PI / 2.0
        if angle_is_within_sweep(axis_angle, start_angle, sweep, 0.0):
            extreme = point_on_circle(radius, center, axis_angle)
            min_x = min(min_x, extreme.real)
            min_y = min(min_y, extreme.imag)
            max_x = max(max_x, extreme.real)
            max_y = max(max_y, extreme.imag)
    return min_x, min_y, max_x, max_y


def seg_fast_approx_bounding_box(v1, v2):
    """
    Cheap bounding box guaranteed to contain the segment, may be larger than the tight box.

    @return: min_x, min_y, max_x, max_y
    """
    p1 = v1.pos
    p2 = v2.pos
    if v1.bulge_is_zero():
        return (
            min(p1.real, p2.real),
            min(p1.imag, p2.imag),
            max(p1.real, p2.real),
            max(p1.imag, p2.imag),
        )
    if abs(v1.bulge) > 1.0:
        radius, center = seg_arc_radius_and_center(v1, v2)
        return (
            center.real - radius,
            center.imag - radius,
            center.real + radius,
            center.imag + radius,
        )
    # Half circle or less, the arc lives between the chord and the chord pushed out by
    # the sagitta.
    chord = p2 - p1
    sagitta = abs(v1.bulge) * abs(chord) / 2.0
    # Positive bulge arcs bow to the right of the chord.
    normal = -perp(normalize(chord))
    if v1.bulge < 0:
        normal = -normal
    p3 = p1 + sagitta * normal
    p4 = p2 + sagitta * normal
    xs = (p1.real, p2.real, p3.real, p4.real)
    ys = (p1.imag, p2.imag, p3.imag, p4.imag)
    return min(xs), min(ys), max(xs), max(ys)
