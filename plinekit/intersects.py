"""
Intersections between segments and between polylines.

The primitive solvers work on plain geometry (points, circles) and report parametric or
positional results. pline_seg_intr combines them for any pair of polyline segments and
filters the results by the segment extents. find_intersects and all_self_intersects lift
that to whole polylines using the spatial index to find candidate segment pairs.

None of these raise on degenerate input. Every case resolves to one of the result kinds.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .plinemath import (
    REAL_PRECISION,
    TAU,
    angle,
    cross,
    dot,
    normalize_radians,
    perp,
    point_from_parametric,
    pos_equal,
)
from .segment import (
    point_within_arc_sweep,
    seg_arc_radius_and_center,
    seg_distance_from_start,
    seg_fast_approx_bounding_box,
)
from .spatial import create_approx_aabb_index
from .views import iter_segment_indexes, next_wrapping_index, segment_count


class LineLineIntrKind(Enum):
    NO_INTERSECT = 0
    TRUE_INTERSECT = 1
    FALSE_INTERSECT = 2
    COINCIDENT = 3


@dataclass
class LineLineIntr:
    """
    TRUE_INTERSECT and FALSE_INTERSECT: t0 is the parameter on the first segment, t1 on
    the second segment and point the crossing of the infinite lines.
    COINCIDENT: t0 and t1 bound the overlap as parameters along the second segment.
    """

    kind: LineLineIntrKind
    t0: float = 0.0
    t1: float = 0.0
    point: complex = 0j


class CircleIntrKind(Enum):
    NO_INTERSECT = 0
    TANGENT_INTERSECT = 1
    TWO_INTERSECTS = 2
    COINCIDENT = 3


@dataclass
class LineCircleIntr:
    """Parameters of the intersects along the infinite line through the segment."""

    kind: CircleIntrKind
    t0: float = 0.0
    t1: float = 0.0


@dataclass
class CircleCircleIntr:
    kind: CircleIntrKind
    point1: complex = 0j
    point2: complex = 0j


class PlineSegIntrKind(Enum):
    NO_INTERSECT = 0
    TANGENT_INTERSECT = 1
    ONE_INTERSECT = 2
    TWO_INTERSECTS = 3
    OVERLAPPING_LINES = 4
    OVERLAPPING_ARCS = 5


@dataclass
class PlineSegIntr:
    """
    Intersect of two polyline segments. When there are two points (two intersects or an
    overlap) they are ordered along the direction of the first segment.
    """

    kind: PlineSegIntrKind
    point1: complex = 0j
    point2: complex = 0j


@dataclass
class PlineBasicIntersect:
    start_index1: int
    start_index2: int
    point: complex


@dataclass
class PlineOverlappingIntersect:
    start_index1: int
    start_index2: int
    point1: complex
    point2: complex


@dataclass
class PlineIntersectsCollection:
    basic_intersects: List[PlineBasicIntersect] = field(default_factory=list)
    overlapping_intersects: List[PlineOverlappingIntersect] = field(default_factory=list)

    def __bool__(self):
        return bool(self.basic_intersects) or bool(self.overlapping_intersects)

    def __len__(self):
        return len(self.basic_intersects) + len(self.overlapping_intersects)

    def is_empty(self):
        return not self


#######################
# Primitive solvers
#######################


def line_line_intr(p0, p1, q0, q1, eps=REAL_PRECISION):
    """
    Intersect of line segment p0 -> p1 with line segment q0 -> q1.

    @return: LineLineIntr
    """
    v = p1 - p0
    u = q1 - q0
    v_len = abs(v)
    u_len = abs(u)
    v_is_point = v_len < eps
    u_is_point = u_len < eps

    if v_is_point and u_is_point:
        if pos_equal(p0, q0, eps):
            return LineLineIntr(LineLineIntrKind.TRUE_INTERSECT, 0.0, 0.0, p0)
        return LineLineIntr(LineLineIntrKind.NO_INTERSECT)
    if v_is_point:
        t = dot(p0 - q0, u) / (u_len * u_len)
        closest = point_from_parametric(q0, q1, t)
        if -eps / u_len <= t <= 1.0 + eps / u_len and abs(closest - p0) < eps:
            return LineLineIntr(LineLineIntrKind.TRUE_INTERSECT, 0.0, t, p0)
        return LineLineIntr(LineLineIntrKind.NO_INTERSECT)
    if u_is_point:
        t = dot(q0 - p0, v) / (v_len * v_len)
        closest = point_from_parametric(p0, p1, t)
        if -eps / v_len <= t <= 1.0 + eps / v_len and abs(closest - q0) < eps:
            return LineLineIntr(LineLineIntrKind.TRUE_INTERSECT, t, 0.0, q0)
        return LineLineIntr(LineLineIntrKind.NO_INTERSECT)

    d = cross(v, u)
    w = p0 - q0
    if abs(d) < eps * max(v_len, u_len):
        # Parallel, coincident only if p0 lies on the line through q.
        if abs(cross(u, w)) / u_len > eps:
            return LineLineIntr(LineLineIntrKind.NO_INTERSECT)
        w2 = p1 - q0
        u_len_sq = u_len * u_len
        t0 = dot(w, u) / u_len_sq
        t1 = dot(w2, u) / u_len_sq
        if t0 > t1:
            t0, t1 = t1, t0
        t_eps = eps / u_len
        if t0 > 1.0 + t_eps or t1 < -t_eps:
            return LineLineIntr(LineLineIntrKind.NO_INTERSECT)
        t0 = max(t0, 0.0)
        t1 = min(t1, 1.0)
        if (t1 - t0) * u_len < eps:
            point = point_from_parametric(q0, q1, t0)
            seg1_t = dot(point - p0, v) / (v_len * v_len)
            return LineLineIntr(LineLineIntrKind.TRUE_INTERSECT, seg1_t, t0, point)
        return LineLineIntr(LineLineIntrKind.COINCIDENT, t0, t1)

    seg1_t = cross(u, w) / d
    seg2_t = cross(v, w) / d
    point = point_from_parametric(p0, p1, seg1_t)
    v_eps = eps / v_len
    u_eps = eps / u_len
    if -v_eps <= seg1_t <= 1.0 + v_eps and -u_eps <= seg2_t <= 1.0 + u_eps:
        return LineLineIntr(LineLineIntrKind.TRUE_INTERSECT, seg1_t, seg2_t, point)
    return LineLineIntr(LineLineIntrKind.FALSE_INTERSECT, seg1_t, seg2_t, point)


def line_circle_intr(p0, p1, radius, center, eps=REAL_PRECISION):
    """
    Intersect of the infinite line through p0 -> p1 with a circle.

    Works from the foot of the perpendicular from the center onto the line, which stays
    accurate when the line is far from the origin or nearly tangent.

    @return: LineCircleIntr, parameters are relative to p0 -> p1
    """
    dv = p1 - p0
    length = abs(dv)
    if length < eps:
        if abs(abs(p0 - center) - radius) < eps:
            return LineCircleIntr(CircleIntrKind.TANGENT_INTERSECT, 0.0, 0.0)
        return LineCircleIntr(CircleIntrKind.NO_INTERSECT)
    length_sq = length * length
    t_foot = dot(center - p0, dv) / length_sq
    foot = point_from_parametric(p0, p1, t_foot)
    dist = abs(center - foot)
    if dist > radius + eps:
        return LineCircleIntr(CircleIntrKind.NO_INTERSECT)
    if abs(dist - radius) < eps:
        return LineCircleIntr(CircleIntrKind.TANGENT_INTERSECT, t_foot, t_foot)
    half = math.sqrt(radius * radius - dist * dist) / length
    return LineCircleIntr(CircleIntrKind.TWO_INTERSECTS, t_foot - half, t_foot + half)


def circle_circle_intr(radius1, center1, radius2, center2, eps=REAL_PRECISION):
    """
    Intersect of two circles.

    @return: CircleCircleIntr
    """
    cv = center2 - center1
    d = abs(cv)
    if d < eps:
        if abs(radius1 - radius2) < eps:
            return CircleCircleIntr(CircleIntrKind.COINCIDENT)
        return CircleCircleIntr(CircleIntrKind.NO_INTERSECT)
    if d > radius1 + radius2 + eps or d < abs(radius1 - radius2) - eps:
        return CircleCircleIntr(CircleIntrKind.NO_INTERSECT)
    a = (radius1 * radius1 - radius2 * radius2 + d * d) / (2.0 * d)
    mid = center1 + a * cv / d
    h_sq = radius1 * radius1 - a * a
    h = math.sqrt(h_sq) if h_sq > 0 else 0.0
    if h < eps:
        return CircleCircleIntr(CircleIntrKind.TANGENT_INTERSECT, mid, mid)
    offset = h * perp(cv) / d
    return CircleCircleIntr(CircleIntrKind.TWO_INTERSECTS, mid - offset, mid + offset)


#######################
# Segment intersects
#######################


def _snap(point, vertexes, eps):
    for v in vertexes:
        if pos_equal(point, v.pos, eps):
            return v.pos
    return point


def _ordered_result(v1, v2, points, snap_to, eps, tangent=False):
    unique = []
    for p in points:
        p = _snap(p, snap_to, eps)
        if not any(pos_equal(p, q, eps) for q in unique):
            unique.append(p)
    if not unique:
        return PlineSegIntr(PlineSegIntrKind.NO_INTERSECT)
    if len(unique) == 1:
        if tangent:
            return PlineSegIntr(PlineSegIntrKind.TANGENT_INTERSECT, unique[0])
        return PlineSegIntr(PlineSegIntrKind.ONE_INTERSECT, unique[0])
    unique.sort(key=lambda p: seg_distance_from_start(v1, v2, p))
    return PlineSegIntr(PlineSegIntrKind.TWO_INTERSECTS, unique[0], unique[1])


def _line_arc_points(line_start, line_end, arc_v1, arc_v2, eps):
    """Intersect points of a line segment with an arc segment, and if it was a tangent."""
    radius, center = seg_arc_radius_and_center(arc_v1, arc_v2)
    intr = line_circle_intr(line_start, line_end, radius, center, eps)
    if intr.kind == CircleIntrKind.NO_INTERSECT:
        return [], False
    length = abs(line_end - line_start)
    t_eps = eps / length if length > eps else 0.0
    is_clockwise = arc_v1.bulge < 0

    def valid(t):
        if not -t_eps <= t <= 1.0 + t_eps:
            return None
        point = point_from_parametric(line_start, line_end, t)
        if not point_within_arc_sweep(center, arc_v1.pos, arc_v2.pos, is_clockwise, point, eps):
            return None
        return point

    if intr.kind == CircleIntrKind.TANGENT_INTERSECT:
        point = valid(intr.t0)
        return ([point] if point is not None else []), True
    points = [p for p in (valid(intr.t0), valid(intr.t1)) if p is not None]
    return points, False


def _arc_overlap(v1, v2, u1, u2, center, radius, eps):
    """
    Overlap of two arcs sharing a circle, worked out in the angle space of the first arc
    (parameter 0 at v1 increasing in its direction of travel).
    """
    sign1 = 1.0 if v1.bulge > 0 else -1.0
    start1 = angle(center, v1.pos)
    sweep1 = abs(4.0 * math.atan(v1.bulge))
    sweep2 = abs(4.0 * math.atan(u1.bulge))
    ang_eps = eps / radius

    def param(p):
        return normalize_radians(sign1 * (angle(center, p) - start1))

    a = param(u1.pos)
    if (u1.bulge > 0) == (v1.bulge > 0):
        lo, hi = a, a + sweep2
    else:
        lo, hi = a - sweep2, a

    pieces = []
    for shift in (-TAU, 0.0, TAU):
        p_lo = max(lo + shift, 0.0)
        p_hi = min(hi + shift, sweep1)
        if p_lo <= p_hi + ang_eps:
            pieces.append((p_lo, max(p_lo, p_hi)))
    if not pieces:
        return PlineSegIntr(PlineSegIntrKind.NO_INTERSECT)

    def point_at(t):
        return center + radius * complex(
            math.cos(start1 + sign1 * t), math.sin(start1 + sign1 * t)
        )

    snap_to = (v1, v2, u1, u2)
    longest = max(pieces, key=lambda piece: piece[1] - piece[0])
    if longest[1] - longest[0] > ang_eps:
        point1 = _snap(point_at(longest[0]), snap_to, eps)
        point2 = _snap(point_at(longest[1]), snap_to, eps)
        return PlineSegIntr(PlineSegIntrKind.OVERLAPPING_ARCS, point1, point2)
    # Arcs only touch at their end points.
    touches = [point_at(piece[0]) for piece in pieces]
    return _ordered_result(v1, v2, touches, snap_to, eps)


def pline_seg_intr(v1, v2, u1, u2, eps=REAL_PRECISION):
    """
    Intersect of segment v1 -> v2 with segment u1 -> u2.

    @return: PlineSegIntr with points ordered along v1 -> v2
    """
    v_is_line = v1.bulge_is_zero()
    u_is_line = u1.bulge_is_zero()
    snap_to = (v1, v2, u1, u2)

    if v_is_line and u_is_line:
        intr = line_line_intr(v1.pos, v2.pos, u1.pos, u2.pos, eps)
        if intr.kind == LineLineIntrKind.TRUE_INTERSECT:
            return PlineSegIntr(PlineSegIntrKind.ONE_INTERSECT, _snap(intr.point, snap_to, eps))
        if intr.kind == LineLineIntrKind.COINCIDENT:
            point1 = _snap(point_from_parametric(u1.pos, u2.pos, intr.t0), snap_to, eps)
            point2 = _snap(point_from_parametric(u1.pos, u2.pos, intr.t1), snap_to, eps)
            if dot(v2.pos - v1.pos, u2.pos - u1.pos) < 0:
                point1, point2 = point2, point1
            return PlineSegIntr(PlineSegIntrKind.OVERLAPPING_LINES, point1, point2)
        return PlineSegIntr(PlineSegIntrKind.NO_INTERSECT)

    if v_is_line:
        points, tangent = _line_arc_points(v1.pos, v2.pos, u1, u2, eps)
        return _ordered_result(v1, v2, points, snap_to, eps, tangent)
    if u_is_line:
        points, tangent = _line_arc_points(u1.pos, u2.pos, v1, v2, eps)
        return _ordered_result(v1, v2, points, snap_to, eps, tangent)

    radius1, center1 = seg_arc_radius_and_center(v1, v2)
    radius2, center2 = seg_arc_radius_and_center(u1, u2)
    intr = circle_circle_intr(radius1, center1, radius2, center2, eps)
    if intr.kind == CircleIntrKind.NO_INTERSECT:
        return PlineSegIntr(PlineSegIntrKind.NO_INTERSECT)
    if intr.kind == CircleIntrKind.COINCIDENT:
        return _arc_overlap(v1, v2, u1, u2, center1, radius1, eps)

    def on_both(point):
        return point_within_arc_sweep(
            center1, v1.pos, v2.pos, v1.bulge < 0, point, eps
        ) and point_within_arc_sweep(center2, u1.pos, u2.pos, u1.bulge < 0, point, eps)

    if intr.kind == CircleIntrKind.TANGENT_INTERSECT:
        points = [intr.point1] if on_both(intr.point1) else []
        return _ordered_result(v1, v2, points, snap_to, eps, tangent=True)
    points = [p for p in (intr.point1, intr.point2) if on_both(p)]
    return _ordered_result(v1, v2, points, snap_to, eps)


#######################
# Polyline intersects
#######################


def _query_box(v1, v2, eps):
    min_x, min_y, max_x, max_y = seg_fast_approx_bounding_box(v1, v2)
    return min_x - eps, min_y - eps, max_x + eps, max_y + eps


def _is_last_open_seg(view, i):
    return not view.is_closed() and i == view.vertex_count() - 2


def find_intersects(pline1, pline2, index2=None, eps=REAL_PRECISION):
    """
    All intersects between segments of pline1 and segments of pline2. Tangent touches are
    not reported. An intersect on a shared vertex is reported once, on the segments that
    start at it.

    @param pline1: PolylineRef
    @param pline2: PolylineRef
    @param index2: spatial index over pline2 segments, built when not given
    @param eps: position tolerance
    @return: PlineIntersectsCollection
    """
    result = PlineIntersectsCollection()
    if segment_count(pline1) == 0 or segment_count(pline2) == 0:
        return result
    if index2 is None:
        index2 = create_approx_aabb_index(pline2)

    for i, i_next in iter_segment_indexes(pline1):
        v1 = pline1.at(i)
        v2 = pline1.at(i_next)
        skip_v2 = not _is_last_open_seg(pline1, i)
        for j in index2.query(*_query_box(v1, v2, eps)):
            u1 = pline2.at(j)
            u2 = pline2.at(next_wrapping_index(pline2, j))
            skip_u2 = not _is_last_open_seg(pline2, j)
            intr = pline_seg_intr(v1, v2, u1, u2, eps)
            kind = intr.kind
            if kind in (PlineSegIntrKind.NO_INTERSECT, PlineSegIntrKind.TANGENT_INTERSECT):
                continue
            if kind in (PlineSegIntrKind.OVERLAPPING_LINES, PlineSegIntrKind.OVERLAPPING_ARCS):
                result.overlapping_intersects.append(
                    PlineOverlappingIntersect(i, j, intr.point1, intr.point2)
                )
                continue
            points = [intr.point1]
            if kind == PlineSegIntrKind.TWO_INTERSECTS:
                points.append(intr.point2)
            for point in points:
                if skip_v2 and pos_equal(point, v2.pos, eps):
                    continue
                if skip_u2 and pos_equal(point, u2.pos, eps):
                    continue
                result.basic_intersects.append(PlineBasicIntersect(i, j, point))
    return result


def _local_self_intersects(pline, result, eps):
    n = pline.vertex_count()
    count = segment_count(pline)
    if count < 2:
        return
    pairs = [(i, i + 1) for i in range(count - 1)]
    if pline.is_closed() and n > 2:
        pairs.append((n - 1, 0))
    for i, j in pairs:
        v1 = pline.at(i)
        v2 = pline.at(next_wrapping_index(pline, i))
        u2 = pline.at(next_wrapping_index(pline, j))
        # A two vertex closed polyline shares both of its vertexes between its segments.
        shared = [v2.pos, u2.pos] if count == 2 and pline.is_closed() else [v2.pos]
        intr = pline_seg_intr(v1, v2, v2, u2, eps)
        if intr.kind in (PlineSegIntrKind.NO_INTERSECT, PlineSegIntrKind.TANGENT_INTERSECT):
            continue
        points = [intr.point1]
        if intr.kind != PlineSegIntrKind.ONE_INTERSECT:
            points.append(intr.point2)
        for point in points:
            if any(pos_equal(point, s, eps) for s in shared):
                continue
            result.basic_intersects.append(PlineBasicIntersect(i, j, point))


def _global_self_intersects(pline, index, result, eps):
    n = pline.vertex_count()
    is_closed = pline.is_closed()
    for i, i_next in iter_segment_indexes(pline):
        v1 = pline.at(i)
        v2 = pline.at(i_next)
        skip_v2 = not _is_last_open_seg(pline, i)
        for j in index.query(*_query_box(v1, v2, eps)):
            if j <= i + 1 or (is_closed and i == 0 and j == n - 1):
                continue
            u1 = pline.at(j)
            u2 = pline.at(next_wrapping_index(pline, j))
            skip_u2 = not _is_last_open_seg(pline, j)
            intr = pline_seg_intr(v1, v2, u1, u2, eps)
            kind = intr.kind
            if kind in (PlineSegIntrKind.NO_INTERSECT, PlineSegIntrKind.TANGENT_INTERSECT):
                continue
            if kind in (PlineSegIntrKind.OVERLAPPING_LINES, PlineSegIntrKind.OVERLAPPING_ARCS):
                result.overlapping_intersects.append(
                    PlineOverlappingIntersect(i, j, intr.point1, intr.point2)
                )
                continue
            points = [intr.point1]
            if kind == PlineSegIntrKind.TWO_INTERSECTS:
                points.append(intr.point2)
            for point in points:
                if skip_v2 and pos_equal(point, v2.pos, eps):
                    continue
                if skip_u2 and pos_equal(point, u2.pos, eps):
                    continue
                result.basic_intersects.append(PlineBasicIntersect(i, j, point))


def all_self_intersects(pline, index=None, eps=REAL_PRECISION):
    """
    Self intersects of a polyline. Adjacent segments are tested for intersects other than
    their shared vertex, non adjacent segments for any intersect. Tangent touches are not
    reported.

    @return: PlineIntersectsCollection
    """
    result = PlineIntersectsCollection()
    if segment_count(pline) < 2:
        return result
    if index is None:
        index = create_approx_aabb_index(pline)
    _local_self_intersects(pline, result, eps)
    _global_self_intersects(pline, index, result, eps)
    return result


def has_self_intersects(pline, index=None, eps=REAL_PRECISION):
    return bool(all_self_intersects(pline, index, eps))
