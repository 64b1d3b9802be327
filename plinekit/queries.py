"""
Whole-polyline queries: extents, length, signed area, orientation, winding number,
closest point and simple cleanup passes. These work over any read view and return new
Polyline objects where a polyline is produced.
"""

import math
from dataclasses import dataclass
from enum import Enum

from .plinemath import (
    REAL_PRECISION,
    angle,
    angle_from_bulge,
    cross,
    dist_squared,
    dot,
    fuzzy_eq_zero,
    fuzzy_lt,
    is_left,
    is_left_or_equal,
    point_on_circle,
    pos_equal,
)
from .polyline import Polyline
from .segment import (
    seg_arc_radius_and_center,
    seg_bounding_box,
    seg_closest_point,
    seg_split_at_point,
)
from .views import (
    iter_segment_indexes,
    iter_segments,
    iter_vertexes,
    last,
    next_wrapping_index,
    segment_count,
)


class PlineOrientation(Enum):
    OPEN = 0
    CLOCKWISE = 1
    COUNTER_CLOCKWISE = 2


@dataclass
class ClosestPointResult:
    seg_start_index: int
    seg_point: complex
    distance: float


def extents(view):
    """
    Bounding box of the polyline including arc extremes.

    @return: (min_x, min_y, max_x, max_y) or None if there are no segments
    """
    if segment_count(view) == 0:
        return None
    first = view.at(0)
    min_x = max_x = first.x
    min_y = max_y = first.y
    for v1, v2 in iter_segments(view):
        x0, y0, x1, y1 = seg_bounding_box(v1, v2)
        min_x = min(min_x, x0)
        min_y = min(min_y, y0)
        max_x = max(max_x, x1)
        max_y = max(max_y, y1)
    return min_x, min_y, max_x, max_y


def area(view):
    """
    Signed area of a closed polyline, positive for counter-clockwise. Open polylines
    have zero area.

    Shoelace formula over the vertexes plus the circular segment area of every arc,
    added for counter-clockwise arcs and subtracted for clockwise ones.
    """
    if not view.is_closed():
        return 0.0
    double_total_area = 0.0
    for v1, v2 in iter_segments(view):
        double_total_area += v1.x * v2.y - v1.y * v2.x
        if v1.bulge_is_zero():
            continue
        b = abs(v1.bulge)
        sweep_angle = angle_from_bulge(b)
        triangle_base = abs(v2.pos - v1.pos)
        radius = triangle_base * ((b * b + 1.0) / (4.0 * b))
        sagitta = b * triangle_base / 2.0
        triangle_height = radius - sagitta
        double_sector_area = sweep_angle * radius * radius
        double_triangle_area = triangle_base * triangle_height
        double_arc_area = double_sector_area - double_triangle_area
        if v1.bulge < 0:
            double_arc_area = -double_arc_area
        double_total_area += double_arc_area
    return double_total_area / 2.0


def orientation(view):
    if not view.is_closed():
        return PlineOrientation.OPEN
    if area(view) < 0:
        return PlineOrientation.CLOCKWISE
    return PlineOrientation.COUNTER_CLOCKWISE


def _line_winding(v1, v2, point):
    if v1.y <= point.imag:
        if v2.y > point.imag and is_left(v1.pos, v2.pos, point):
            # left and upward crossing
            return 1
    elif v2.y <= point.imag and not is_left(v1.pos, v2.pos, point):
        # right and downward crossing
        return -1
    return 0


def _arc_winding(v1, v2, point):
    is_ccw = v1.bulge > 0
    if is_ccw:
        point_is_left = is_left(v1.pos, v2.pos, point)
    else:
        point_is_left = is_left_or_equal(v1.pos, v2.pos, point)

    def inside_circle():
        radius, center = seg_arc_radius_and_center(v1, v2)
        return dist_squared(center, point) < radius * radius

    px = point.real
    py = point.imag
    if v1.y <= py:
        if v2.y > py:
            # upward crossing of arc chord
            if is_ccw:
                if point_is_left or inside_circle():
                    return 1
            elif point_is_left and not inside_circle():
                return 1
            return 0
        # chord is below, check if point is inside the arc sector
        if is_ccw and not point_is_left and v2.x < px < v1.x and inside_circle():
            return 1
        if not is_ccw and point_is_left and v1.x < px < v2.x and inside_circle():
            return -1
        return 0
    if v2.y <= py:
        # downward crossing of arc chord
        if is_ccw:
            if not point_is_left and not inside_circle():
                return -1
            return 0
        if point_is_left:
            if inside_circle():
                return -1
            return 0
        return -1
    # chord is above, check if point is inside the arc sector
    if is_ccw and not point_is_left and v1.x < px < v2.x and inside_circle():
        return 1
    if not is_ccw and point_is_left and v2.x < px < v1.x and inside_circle():
        return -1
    return 0


def winding_number(view, point):
    """
    Number of times the closed polyline winds around point, counter-clockwise positive.

    Always 0 for open polylines. Undefined for points exactly on the polyline, use
    closest_point to detect that case.
    """
    if not view.is_closed() or view.vertex_count() < 2:
        return 0
    winding = 0
    for v1, v2 in iter_segments(view):
        if v1.bulge_is_zero():
            winding += _line_winding(v1, v2, point)
        else:
            winding += _arc_winding(v1, v2, point)
    return winding


def closest_point(view, point):
    """
    @return: ClosestPointResult or None for an empty polyline.
    """
    n = view.vertex_count()
    if n == 0:
        return None
    first = view.at(0).pos
    if n == 1:
        return ClosestPointResult(0, first, abs(first - point))
    result = ClosestPointResult(0, first, math.inf)
    best = math.inf
    for i, j in iter_segment_indexes(view):
        cp = seg_closest_point(view.at(i), view.at(j), point)
        d2 = dist_squared(cp, point)
        if d2 < best:
            best = d2
            result.seg_start_index = i
            result.seg_point = cp
    result.distance = math.sqrt(best)
    return result


def remove_repeat_pos(view, pos_equal_eps=REAL_PRECISION):
    """
    Copy of the polyline with consecutive repeat position vertexes removed. The bulge of
    the last repeat is kept.
    """
    result = Polyline.with_capacity(view.vertex_count(), view.is_closed())
    for v in iter_vertexes(view):
        result.add_or_replace(v.x, v.y, v.bulge, pos_equal_eps)
    if (
        result.is_closed()
        and result.vertex_count() > 1
        and pos_equal(result.last().pos, result.at(0).pos, pos_equal_eps)
    ):
        result.remove_last()
    return result


def _collinear_same_dir(v1, v2, v3, pos_equal_eps):
    if pos_equal(v2.pos, v3.pos, pos_equal_eps):
        return True
    p1, p2, p3 = v1.pos, v2.pos, v3.pos
    return (
        fuzzy_eq_zero(cross(p2 - p1, p3 - p1), pos_equal_eps)
        and dot(p3 - p2, p2 - p1) > 0
    )


def _same_arc(v1, v2, v3, pos_equal_eps):
    """v1 -> v2 and v2 -> v3 are arcs on the same circle and direction with sweep sum <= pi."""
    if v1.bulge_is_zero() or v2.bulge_is_zero():
        return False
    if (v1.bulge > 0) != (v2.bulge > 0):
        return False
    sweep = abs(angle_from_bulge(v1.bulge)) + abs(angle_from_bulge(v2.bulge))
    if sweep > math.pi + 1e-8:
        return False
    r1, c1 = seg_arc_radius_and_center(v1, v2)
    r2, c2 = seg_arc_radius_and_center(v2, v3)
    return pos_equal(c1, c2, pos_equal_eps) and abs(r1 - r2) < pos_equal_eps


def remove_redundant(view, pos_equal_eps=REAL_PRECISION):
    """
    Copy of the polyline with repeat positions removed, collinear line runs merged and
    consecutive arcs on the same circle merged (when the merged sweep stays within half a
    circle).
    """
    clean = remove_repeat_pos(view, pos_equal_eps)
    n = clean.vertex_count()
    if n < 3:
        return clean
    is_closed = clean.is_closed()
    vertexes = list(iter_vertexes(clean))
    changed = True
    while changed and len(vertexes) > 2:
        changed = False
        count = len(vertexes)
        indexes = range(count) if is_closed else range(1, count - 1)
        for i in indexes:
            v1 = vertexes[i - 1]
            v2 = vertexes[i]
            v3 = vertexes[(i + 1) % count]
            if v1.bulge_is_zero() and v2.bulge_is_zero():
                if _collinear_same_dir(v1, v2, v3, pos_equal_eps):
                    del vertexes[i]
                    changed = True
                    break
            elif _same_arc(v1, v2, v3, pos_equal_eps):
                sweep = angle_from_bulge(v1.bulge) + angle_from_bulge(v2.bulge)
                vertexes[i - 1] = v1.with_bulge(math.tan(sweep / 4.0))
                del vertexes[i]
                changed = True
                break
    result = Polyline.with_capacity(len(vertexes), is_closed)
    result.extend_vertexes(vertexes)
    return result


def rotate_start(view, start_index, point, pos_equal_eps=REAL_PRECISION):
    """
    Rotate a closed polyline so it starts at point, which lies on segment start_index.

    @return: Polyline, None if the polyline is open or the index is out of range
    """
    n = view.vertex_count()
    if not view.is_closed() or n < 2 or not 0 <= start_index < n:
        return None

    def wrapping_vertexes(start):
        for k in range(n):
            yield view.at((start + k) % n)

    result = Polyline.with_capacity(n + 1, True)
    start_v = view.at(start_index)
    if pos_equal(start_v.pos, point, pos_equal_eps):
        result.extend_vertexes(wrapping_vertexes(start_index))
        return result
    next_index = next_wrapping_index(view, start_index)
    if pos_equal(view.at(next_index).pos, point, pos_equal_eps):
        result.extend_vertexes(wrapping_vertexes(next_index))
        return result
    split = seg_split_at_point(start_v, view.at(next_index), point, pos_equal_eps)
    result.add_vertex(split.split_vertex)
    result.extend_vertexes(wrapping_vertexes(next_index))
    result.set_vertex(result.vertex_count() - 1, split.updated_start)
    return result


def arcs_to_approx_lines(view, error_distance):
    """
    Copy of the polyline with every arc replaced by line segments whose end points lie
    on the arc and which stray no further than error_distance from it.
    """
    result = Polyline.with_capacity(view.vertex_count(), view.is_closed())
    if view.vertex_count() == 0:
        return result
    abs_error = abs(error_distance)
    for v1, v2 in iter_segments(view):
        if v1.bulge_is_zero():
            result.add_vertex(v1)
            continue
        radius, center = seg_arc_radius_and_center(v1, v2)
        if fuzzy_lt(radius, abs_error):
            result.add(v1.x, v1.y, 0.0)
            continue
        start_angle = angle(center, v1.pos)
        sweep = abs(angle_from_bulge(v1.bulge))
        seg_sub_angle = abs(2.0 * math.acos(1.0 - abs_error / radius))
        seg_count = max(1, int(math.ceil(sweep / seg_sub_angle)))
        seg_angle_offset = sweep / seg_count
        if v1.bulge < 0:
            seg_angle_offset = -seg_angle_offset
        result.add(v1.x, v1.y, 0.0)
        for i in range(1, seg_count):
            pos = point_on_circle(radius, center, start_angle + i * seg_angle_offset)
            result.add(pos.real, pos.imag, 0.0)
    if not view.is_closed():
        end = last(view)
        result.add(end.x, end.y, 0.0)
    return result
