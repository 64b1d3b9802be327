"""
Scalar and point math shared by the polyline kernel.

Points are python complex numbers, the real part is x and the imaginary part is y.
All angles are in radians.
"""

import math

PI = math.pi
TAU = math.tau

# Default epsilon used for exact-ish float comparisons.
REAL_THRESHOLD = 1e-8

# Default epsilon used when comparing positions.
REAL_PRECISION = 1e-5


def fuzzy_eq(a, b, eps=REAL_THRESHOLD):
    return abs(a - b) < eps


def fuzzy_eq_zero(a, eps=REAL_THRESHOLD):
    return abs(a) < eps


def fuzzy_lt(a, b, eps=REAL_THRESHOLD):
    return a < b + eps


def fuzzy_gt(a, b, eps=REAL_THRESHOLD):
    return a + eps > b


def fuzzy_in_range(min_value, value, max_value, eps=REAL_THRESHOLD):
    return min_value - eps < value < max_value + eps


def pos_equal(p1, p2, eps=REAL_PRECISION):
    """
    Component wise fuzzy equality of two positions.

    @param p1: complex
    @param p2: complex
    @param eps: tolerance applied to each coordinate
    @return:
    """
    return abs(p1.real - p2.real) < eps and abs(p1.imag - p2.imag) < eps


def dot(v1, v2):
    return v1.real * v2.real + v1.imag * v2.imag


def cross(v1, v2):
    """Perpendicular dot product, positive if v2 is counter-clockwise from v1."""
    return v1.real * v2.imag - v1.imag * v2.real


def perp(v):
    """Vector rotated 90 degrees counter-clockwise."""
    return complex(-v.imag, v.real)


def unit_perp(v):
    length = abs(v)
    if length == 0:
        return 0j
    return perp(v) / length


def normalize(v):
    length = abs(v)
    if length == 0:
        return 0j
    return v / length


def dist_squared(p1, p2):
    d = p2 - p1
    return d.real * d.real + d.imag * d.imag


def angle(p0, p1):
    """
    Angle of the direction from p0 to p1.

    @param p0:
    @param p1:
    @return: angle in (-pi, pi]
    """
    d = p1 - p0
    return math.atan2(d.imag, d.real)


def normalize_radians(a):
    """Normalize angle to the range [0, tau)."""
    if 0 <= a < TAU:
        return a
    return a - math.floor(a / TAU) * TAU


def delta_angle(angle1, angle2):
    """
    Smallest signed angle to turn from angle1 to angle2, in (-pi, pi].
    """
    diff = normalize_radians(angle2 - angle1)
    if diff > PI:
        diff -= TAU
    return diff


def angle_is_within_sweep(test_angle, start_angle, sweep_angle, eps=REAL_THRESHOLD):
    """
    Test if test_angle lies on the sweep from start_angle.

    The sweep is signed, negative sweeps travel clockwise. Sweeps of any size
    below a full turn are supported.

    @param test_angle:
    @param start_angle:
    @param sweep_angle: signed sweep
    @param eps: angular tolerance
    @return:
    """
    if sweep_angle < 0:
        start_angle = start_angle + sweep_angle
        sweep_angle = -sweep_angle
    offset = normalize_radians(test_angle - start_angle)
    if offset <= sweep_angle + eps:
        return True
    # Just before the start of the sweep.
    return TAU - offset < eps


def angle_from_bulge(bulge):
    return 4.0 * math.atan(bulge)


def bulge_from_angle(a):
    return math.tan(a / 4.0)


def is_left(p0, p1, point):
    """True if point is strictly left of the directed line p0 -> p1."""
    return cross(p1 - p0, point - p0) > 0


def is_left_or_equal(p0, p1, point):
    return cross(p1 - p0, point - p0) >= 0


def point_on_circle(radius, center, a):
    return center + complex(radius * math.cos(a), radius * math.sin(a))


def point_from_parametric(p0, p1, t):
    return p0 + t * (p1 - p0)


def line_seg_closest_point(p0, p1, point):
    """
    Closest point on the line segment p0 -> p1 to point.
    """
    v = p1 - p0
    w = point - p0
    c1 = dot(w, v)
    if c1 < REAL_THRESHOLD:
        return p0
    c2 = dot(v, v)
    if c2 < c1 + REAL_THRESHOLD:
        return p1
    return p0 + (c1 / c2) * v

