"""
Parallel offset of polylines.

The offset runs in stages:

1. Every segment is offset on its own (lines shift along their normal, arcs change
   radius around the same center) giving raw offset segments.
2. Consecutive raw segments are joined, trimming where they cross and filling convex gaps
   with arcs around the original vertex. The result is the raw offset polyline, which
   may self intersect.
3. The raw offset polyline is cut at its self intersects (and for open input where it
   meets the end cap circles and the input itself) into slices.
4. Slices that come closer to the input than the offset distance, or cross it, are
   dropped.
5. The remaining slices are stitched end to start into the result polylines.

A positive distance offsets to the right of the direction of travel, which is outward
for a counter-clockwise closed polyline. Negative distances offset to the left.
"""

import math
from dataclasses import dataclass

from .channel import channel
from .exceptions import InvalidParameterError
from .intersects import (
    CircleIntrKind,
    LineLineIntrKind,
    PlineSegIntrKind,
    all_self_intersects,
    circle_circle_intr,
    find_intersects,
    line_circle_intr,
    line_line_intr,
    pline_seg_intr,
)
from .plinemath import (
    angle,
    delta_angle,
    dist_squared,
    fuzzy_in_range,
    normalize,
    point_from_parametric,
    pos_equal,
)
from .polyline import Polyline, check_polyline
from .queries import area, remove_repeat_pos
from .segment import (
    point_within_arc_sweep,
    seg_arc_radius_and_center,
    seg_closest_point,
    seg_fast_approx_bounding_box,
    seg_midpoint,
    seg_split_at_point,
)
from .settings import OffsetOptions, resolve_options
from .slices import slices_from_split_points, sort_split_points, stitch_slices
from .spatial import create_approx_aabb_index
from .vertex import PlineVertex
from .views import iter_segments, segment_at


@dataclass
class RawOffsetSeg:
    """
    Offset of a single segment. orig_v2_pos is the end point of the segment it was made
    from, the center of any connecting arc. collapsed_arc is set when an arc shrank past
    its center, the segment is then a line and is always pruned later.
    """

    v1: PlineVertex
    v2: PlineVertex
    orig_v2_pos: complex
    collapsed_arc: bool = False


def create_raw_offset_segs(pline, distance, pos_equal_eps):
    result = []
    for v1, v2 in iter_segments(pline):
        if v1.bulge_is_zero():
            line_v = v2.pos - v1.pos
            length = abs(line_v)
            if length < pos_equal_eps:
                continue
            # Right hand normal of the direction of travel.
            offset_v = distance * complex(line_v.imag, -line_v.real) / length
            result.append(
                RawOffsetSeg(
                    PlineVertex.from_pos(v1.pos + offset_v, 0.0),
                    PlineVertex.from_pos(v2.pos + offset_v, 0.0),
                    v2.pos,
                )
            )
            continue
        radius, center = seg_arc_radius_and_center(v1, v2)
        # Counter-clockwise arcs have their center on the left, offsetting right grows them.
        offs = distance if v1.bulge > 0 else -distance
        new_radius = radius + offs
        p1 = v1.pos + offs * normalize(v1.pos - center)
        p2 = v2.pos + offs * normalize(v2.pos - center)
        if new_radius < pos_equal_eps:
            result.append(
                RawOffsetSeg(
                    PlineVertex.from_pos(p1, 0.0),
                    PlineVertex.from_pos(p2, 0.0),
                    v2.pos,
                    True,
                )
            )
        else:
            result.append(
                RawOffsetSeg(
                    PlineVertex.from_pos(p1, v1.bulge),
                    PlineVertex.from_pos(p2, 0.0),
                    v2.pos,
                )
            )
    return result


#######################
# Joins
#######################


def _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps):
    arc_center = s1.orig_v2_pos
    sp = s1.v2.pos
    ep = s2.v1.pos
    bulge = math.tan(abs(delta_angle(angle(arc_center, sp), angle(arc_center, ep))) / 4.0)
    if not connection_arcs_ccw:
        bulge = -bulge
    result.add_or_replace(sp.real, sp.imag, bulge, pos_equal_eps)
    result.add_or_replace_vertex(s2.v1, pos_equal_eps)


def _trim_last_arc_end(result, arc_end, point, pos_equal_eps):
    """Shorten the arc ending the result so it stops at point."""
    prev_vertex = result.last()
    if prev_vertex.bulge_is_zero():
        return
    trimmed = seg_split_at_point(prev_vertex, arc_end, point, pos_equal_eps).updated_start
    result.set_last_bulge(trimmed.bulge)


def _line_line_join(s1, s2, connection_arcs_ccw, result, pos_equal_eps):
    v1, v2, u1, u2 = s1.v1, s1.v2, s2.v1, s2.v2
    if s1.collapsed_arc or s2.collapsed_arc:
        _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
        return
    intr = line_line_intr(v1.pos, v2.pos, u1.pos, u2.pos, pos_equal_eps)
    if intr.kind == LineLineIntrKind.NO_INTERSECT:
        # Parallel lines, join with a half circle.
        _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
    elif intr.kind == LineLineIntrKind.TRUE_INTERSECT:
        result.add_or_replace(intr.point.real, intr.point.imag, 0.0, pos_equal_eps)
    elif intr.kind == LineLineIntrKind.COINCIDENT:
        result.add_or_replace_vertex(v2, pos_equal_eps)
    elif intr.t0 > 1.0 and intr.t1 < 0.0:
        # Both lines stop short of the crossing, a convex corner.
        _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
    else:
        result.add_or_replace_vertex(v2, pos_equal_eps)
        result.add_or_replace_vertex(u1, pos_equal_eps)


def _line_arc_join(s1, s2, connection_arcs_ccw, result, pos_equal_eps):
    v1, v2, u1, u2 = s1.v1, s1.v2, s2.v1, s2.v2
    arc_radius, arc_center = seg_arc_radius_and_center(u1, u2)
    length = abs(v2.pos - v1.pos)
    t_eps = pos_equal_eps / length if length > pos_equal_eps else 0.0

    def process_intersect(t, intersect):
        true_line_intr = fuzzy_in_range(0.0, t, 1.0, t_eps)
        true_arc_intr = point_within_arc_sweep(
            arc_center, u1.pos, u2.pos, u1.bulge < 0, intersect, pos_equal_eps
        )
        if true_line_intr and true_arc_intr:
            remainder = seg_split_at_point(u1, u2, intersect, pos_equal_eps).split_vertex
            result.add_or_replace(intersect.real, intersect.imag, remainder.bulge, pos_equal_eps)
        elif t > 1.0 and not true_arc_intr:
            _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
        elif s1.collapsed_arc:
            _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
        else:
            result.add_or_replace_vertex(v2, pos_equal_eps)
            result.add_or_replace_vertex(u1, pos_equal_eps)

    intr = line_circle_intr(v1.pos, v2.pos, arc_radius, arc_center, pos_equal_eps)
    if intr.kind == CircleIntrKind.NO_INTERSECT:
        _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
    elif intr.kind == CircleIntrKind.TANGENT_INTERSECT:
        process_intersect(intr.t0, point_from_parametric(v1.pos, v2.pos, intr.t0))
    else:
        # Use the intersect closest to the original vertex.
        p0 = point_from_parametric(v1.pos, v2.pos, intr.t0)
        p1 = point_from_parametric(v1.pos, v2.pos, intr.t1)
        if dist_squared(p0, s1.orig_v2_pos) < dist_squared(p1, s1.orig_v2_pos):
            process_intersect(intr.t0, p0)
        else:
            process_intersect(intr.t1, p1)


def _arc_line_join(s1, s2, connection_arcs_ccw, result, pos_equal_eps):
    v1, v2, u1, u2 = s1.v1, s1.v2, s2.v1, s2.v2
    arc_radius, arc_center = seg_arc_radius_and_center(v1, v2)
    length = abs(u2.pos - u1.pos)
    t_eps = pos_equal_eps / length if length > pos_equal_eps else 0.0

    def process_intersect(t, intersect):
        true_line_intr = fuzzy_in_range(0.0, t, 1.0, t_eps)
        true_arc_intr = point_within_arc_sweep(
            arc_center, v1.pos, v2.pos, v1.bulge < 0, intersect, pos_equal_eps
        )
        if true_line_intr and true_arc_intr:
            _trim_last_arc_end(result, v2, intersect, pos_equal_eps)
            result.add_or_replace(intersect.real, intersect.imag, 0.0, pos_equal_eps)
        else:
            _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps)

    intr = line_circle_intr(u1.pos, u2.pos, arc_radius, arc_center, pos_equal_eps)
    if intr.kind == CircleIntrKind.NO_INTERSECT:
        _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
    elif intr.kind == CircleIntrKind.TANGENT_INTERSECT:
        process_intersect(intr.t0, point_from_parametric(u1.pos, u2.pos, intr.t0))
    else:
        p0 = point_from_parametric(u1.pos, u2.pos, intr.t0)
        p1 = point_from_parametric(u1.pos, u2.pos, intr.t1)
        if dist_squared(p0, s1.orig_v2_pos) < dist_squared(p1, s1.orig_v2_pos):
            process_intersect(intr.t0, p0)
        else:
            process_intersect(intr.t1, p1)


def _arc_arc_join(s1, s2, connection_arcs_ccw, result, pos_equal_eps):
    v1, v2, u1, u2 = s1.v1, s1.v2, s2.v1, s2.v2
    arc1_radius, arc1_center = seg_arc_radius_and_center(v1, v2)
    arc2_radius, arc2_center = seg_arc_radius_and_center(u1, u2)

    def process_intersect(intersect):
        true_arc_intr1 = point_within_arc_sweep(
            arc1_center, v1.pos, v2.pos, v1.bulge < 0, intersect, pos_equal_eps
        )
        true_arc_intr2 = point_within_arc_sweep(
            arc2_center, u1.pos, u2.pos, u1.bulge < 0, intersect, pos_equal_eps
        )
        if true_arc_intr1 and true_arc_intr2:
            _trim_last_arc_end(result, v2, intersect, pos_equal_eps)
            remainder = seg_split_at_point(u1, u2, intersect, pos_equal_eps).split_vertex
            result.add_or_replace(intersect.real, intersect.imag, remainder.bulge, pos_equal_eps)
        else:
            _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps)

    intr = circle_circle_intr(arc1_radius, arc1_center, arc2_radius, arc2_center, pos_equal_eps)
    if intr.kind == CircleIntrKind.NO_INTERSECT:
        _connect_using_arc(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
    elif intr.kind == CircleIntrKind.TANGENT_INTERSECT:
        process_intersect(intr.point1)
    elif intr.kind == CircleIntrKind.TWO_INTERSECTS:
        if dist_squared(intr.point1, s1.orig_v2_pos) < dist_squared(intr.point2, s1.orig_v2_pos):
            process_intersect(intr.point1)
        else:
            process_intersect(intr.point2)
    else:
        # Same circle, nothing to trim or extend.
        result.add_or_replace_vertex(u1, pos_equal_eps)


def join_raw_offset_segs(s1, s2, connection_arcs_ccw, result, pos_equal_eps):
    """
    Append the join from raw segment s1 to raw segment s2 onto result. The last vertex of
    result must be the start of s1 (possibly trimmed by the previous join).
    """
    s1_is_line = s1.v1.bulge_is_zero()
    s2_is_line = s2.v1.bulge_is_zero()
    if s1_is_line and s2_is_line:
        _line_line_join(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
    elif s1_is_line:
        _line_arc_join(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
    elif s2_is_line:
        _arc_line_join(s1, s2, connection_arcs_ccw, result, pos_equal_eps)
    else:
        _arc_arc_join(s1, s2, connection_arcs_ccw, result, pos_equal_eps)


def create_raw_offset_pline(pline, distance, pos_equal_eps):
    """
    Raw offset polyline: every segment offset and joined to the next. It may self
    intersect and may contain collapsed segments, slicing and pruning remove those.

    @return: Polyline, empty when nothing survives
    """
    result = Polyline(is_closed=pline.is_closed())
    if pline.vertex_count() < 2:
        return result
    raw_segs = create_raw_offset_segs(pline, distance, pos_equal_eps)
    if not raw_segs:
        return result
    if len(raw_segs) == 1 and raw_segs[0].collapsed_arc:
        return result

    connection_arcs_ccw = distance > 0
    result.add_vertex(raw_segs[0].v1)
    for s1, s2 in zip(raw_segs, raw_segs[1:]):
        join_raw_offset_segs(s1, s2, connection_arcs_ccw, result, pos_equal_eps)

    if not pline.is_closed():
        result.add_or_replace_vertex(raw_segs[-1].v2, pos_equal_eps)
        return result

    if result.vertex_count() < 2:
        return result
    # Join the closing segments into a separate polyline so the start of result is still
    # intact when it is updated.
    closing = Polyline()
    closing.add_vertex(result.last())
    join_raw_offset_segs(raw_segs[-1], raw_segs[0], connection_arcs_ccw, closing, pos_equal_eps)
    result.set_vertex(result.vertex_count() - 1, closing.at(0))
    for k in range(1, closing.vertex_count()):
        result.add_vertex(closing.at(k))

    updated_first_pos = closing.last().pos
    first = result.at(0)
    if first.bulge_is_zero():
        result.set_vertex(0, PlineVertex.from_pos(updated_first_pos, 0.0))
    elif result.vertex_count() > 1:
        result.set_vertex(
            0,
            seg_split_at_point(first, result.at(1), updated_first_pos, pos_equal_eps).split_vertex,
        )
    if result.vertex_count() > 1 and pos_equal(result.at(0).pos, result.at(1).pos, pos_equal_eps):
        result.remove(0)
    # The last vertex duplicates the updated first vertex.
    if result.vertex_count() > 1:
        result.remove_last()
    return result


#######################
# Slicing and pruning
#######################


def _seg_circle_points(v1, v2, radius, center, eps):
    if v1.bulge_is_zero():
        intr = line_circle_intr(v1.pos, v2.pos, radius, center, eps)
        if intr.kind == CircleIntrKind.NO_INTERSECT:
            return []
        length = abs(v2.pos - v1.pos)
        t_eps = eps / length if length > eps else 0.0
        ts = [intr.t0] if intr.kind == CircleIntrKind.TANGENT_INTERSECT else [intr.t0, intr.t1]
        return [
            point_from_parametric(v1.pos, v2.pos, t)
            for t in ts
            if fuzzy_in_range(0.0, t, 1.0, t_eps)
        ]
    arc_radius, arc_center = seg_arc_radius_and_center(v1, v2)
    intr = circle_circle_intr(arc_radius, arc_center, radius, center, eps)
    if intr.kind == CircleIntrKind.TANGENT_INTERSECT:
        candidates = [intr.point1]
    elif intr.kind == CircleIntrKind.TWO_INTERSECTS:
        candidates = [intr.point1, intr.point2]
    else:
        return []
    return [
        p
        for p in candidates
        if point_within_arc_sweep(arc_center, v1.pos, v2.pos, v1.bulge < 0, p, eps)
    ]


def _offset_split_points(raw_offset, original, orig_index, distance, pos_equal_eps):
    points = []
    intrs = all_self_intersects(raw_offset, None, pos_equal_eps)
    for intr in intrs.basic_intersects:
        points.append((intr.start_index1, intr.point))
        points.append((intr.start_index2, intr.point))
    for intr in intrs.overlapping_intersects:
        for p in (intr.point1, intr.point2):
            points.append((intr.start_index1, p))
            points.append((intr.start_index2, p))

    if not original.is_closed():
        # End caps of open input.
        cap_radius = abs(distance)
        caps = (original.at(0).pos, original.at(original.vertex_count() - 1).pos)
        for i, (v1, v2) in enumerate(iter_segments(raw_offset)):
            for center in caps:
                for p in _seg_circle_points(v1, v2, cap_radius, center, pos_equal_eps):
                    points.append((i, p))
        crossings = find_intersects(raw_offset, original, orig_index, pos_equal_eps)
        for intr in crossings.basic_intersects:
            points.append((intr.start_index1, intr.point))
        for intr in crossings.overlapping_intersects:
            points.append((intr.start_index1, intr.point1))
            points.append((intr.start_index1, intr.point2))
    return points


def _point_valid_for_offset(original, orig_index, min_dist, point):
    """True if point is at least min_dist from every segment of the original."""
    if min_dist <= 0:
        return True
    min_dist_sq = min_dist * min_dist
    valid = True

    def visitor(i):
        nonlocal valid
        v1, v2 = segment_at(original, i)
        if dist_squared(seg_closest_point(v1, v2, point), point) < min_dist_sq:
            valid = False
            return False
        return True

    orig_index.visit_query(
        point.real - min_dist,
        point.imag - min_dist,
        point.real + min_dist,
        point.imag + min_dist,
        visitor,
    )
    return valid


def _slice_intersects_original(s, original, orig_index, pos_equal_eps):
    for v1, v2 in iter_segments(s):
        min_x, min_y, max_x, max_y = seg_fast_approx_bounding_box(v1, v2)
        for j in orig_index.query(
            min_x - pos_equal_eps,
            min_y - pos_equal_eps,
            max_x + pos_equal_eps,
            max_y + pos_equal_eps,
        ):
            u1, u2 = segment_at(original, j)
            if pline_seg_intr(v1, v2, u1, u2, pos_equal_eps).kind != PlineSegIntrKind.NO_INTERSECT:
                return True
    return False


def slice_is_valid(s, original, orig_index, distance, options):
    """
    A slice belongs to the offset if no point of it comes closer than the offset distance
    to the original and none of its segments touches the original.
    """
    min_dist = abs(distance) - options.offset_dist_eps
    for v1, v2 in iter_segments(s):
        if not _point_valid_for_offset(original, orig_index, min_dist, v1.pos):
            return False
        if not _point_valid_for_offset(original, orig_index, min_dist, seg_midpoint(v1, v2)):
            return False
    if not _point_valid_for_offset(original, orig_index, min_dist, s.final_point):
        return False
    return not _slice_intersects_original(s, original, orig_index, options.pos_equal_eps)


def parallel_offset(pline, distance, options=None):
    """
    Offset pline by distance without input validation.

    @param pline: PolylineRef with at least 2 vertexes
    @param distance: signed offset distance, positive is right of the direction of travel
    @param options: OffsetOptions
    @return: list of Polyline, empty when the offset collapses entirely
    """
    if options is None:
        options = OffsetOptions()
    chan = channel("offset")
    pline = remove_repeat_pos(pline, options.pos_equal_eps)
    if pline.vertex_count() < 2:
        return []
    raw_offset = create_raw_offset_pline(pline, distance, options.pos_equal_eps)
    if raw_offset.vertex_count() < 2:
        if chan:
            chan("raw offset collapsed to %d vertexes", raw_offset.vertex_count())
        return []
    orig_index = create_approx_aabb_index(pline)

    split_points = _offset_split_points(
        raw_offset, pline, orig_index, distance, options.pos_equal_eps
    )
    locs = sort_split_points(raw_offset, split_points, options.pos_equal_eps)
    slices = slices_from_split_points(raw_offset, locs, options.pos_equal_eps)
    valid_slices = [s for s in slices if slice_is_valid(s, pline, orig_index, distance, options)]
    if chan:
        chan(
            "offset %s: %d split points, %d slices, %d pruned",
            distance,
            len(locs),
            len(slices),
            len(slices) - len(valid_slices),
        )
    stitched = stitch_slices(
        valid_slices,
        options.slice_join_eps,
        options.pos_equal_eps,
        closed_only=pline.is_closed(),
        chan=chan,
    )
    result = []
    for s in stitched:
        if pline.is_closed():
            loop_area = area(s.pline)
            if abs(loop_area) < options.collapsed_area_eps:
                if chan:
                    chan("dropped collapsed loop with area %s", loop_area)
                continue
        result.append(s.pline)
    return result


def offset(polyline, distance, tolerance=None, options=None):
    """
    Parallel offset of a polyline.

    @param polyline: PolylineRef with at least 2 vertexes
    @param distance: signed offset distance, positive is right of the direction of travel
    @param tolerance: position tolerance, scales the other offset tolerances
    @param options: explicit OffsetOptions, wins over tolerance
    @return: list of Polyline
    @raise InvalidPolylineError: malformed polyline
    @raise InvalidParameterError: non-finite distance
    """
    check_polyline(polyline)
    if not math.isfinite(distance):
        raise InvalidParameterError(f"offset distance must be finite, got {distance}")
    options = resolve_options(OffsetOptions, tolerance, options)
    if distance == 0:
        return [Polyline.from_view(polyline)]
    return parallel_offset(polyline, distance, options)
