"""
Slicing polylines at split points and stitching slices back together.

Both engines work the same way: cut the polylines they produce or receive into open
slices (PlineView objects, nothing is copied), throw away the slices that do not belong
in the result and join the survivors end to start into new polylines.
"""

import math
from typing import List, NamedTuple

from .plinemath import REAL_PRECISION, cross, dot, pos_equal
from .polyline import Polyline
from .segment import seg_distance_from_start, seg_tangent_vector
from .spatial import StaticAABB2DIndex
from .views import PlineView, fwd_wrapping_dist, iter_vertexes, next_wrapping_index


class SplitPoint(NamedTuple):
    seg_index: int
    point: complex


class StitchedPline(NamedTuple):
    pline: Polyline
    slice_indexes: List[int]


def sort_split_points(view, split_points, pos_equal_eps=REAL_PRECISION):
    """
    Canonical, sorted and deduplicated split points along the view.

    A point on the end vertex of its segment is moved to the start of the next segment,
    points on vertexes are snapped to the vertex position. For open views points on the
    first or final vertex are dropped, those are slice boundaries already.

    @param view: PolylineRef
    @param split_points: iterable of (segment start index, point)
    @return: list of SplitPoint ordered along the view
    """
    n = view.vertex_count()
    is_closed = view.is_closed()
    keyed = []
    for seg_index, point in split_points:
        v1 = view.at(seg_index)
        next_index = next_wrapping_index(view, seg_index)
        v2 = view.at(next_index)
        if pos_equal(point, v2.pos, pos_equal_eps):
            seg_index = next_index
            point = v2.pos
        elif pos_equal(point, v1.pos, pos_equal_eps):
            point = v1.pos
        if not is_closed and (seg_index == n - 1 or (seg_index == 0 and point == view.at(0).pos)):
            continue
        v1 = view.at(seg_index)
        v2 = view.at(next_wrapping_index(view, seg_index))
        keyed.append((seg_index, seg_distance_from_start(v1, v2, point), point))
    keyed.sort(key=lambda e: (e[0], e[1]))

    result = []
    for seg_index, _, point in keyed:
        if result:
            prev = result[-1]
            if prev.seg_index == seg_index and pos_equal(prev.point, point, pos_equal_eps):
                continue
        result.append(SplitPoint(seg_index, point))
    return result


def slices_from_split_points(view, split_points, pos_equal_eps=REAL_PRECISION):
    """
    Open slices of the view between consecutive split points.

    @param view: PolylineRef with at least 2 vertexes
    @param split_points: SplitPoint list as returned by sort_split_points
    @return: list of PlineView in order along the view, zero length slices are skipped
    """
    n = view.vertex_count()
    slices = []
    if view.is_closed():
        if not split_points:
            return [PlineView.from_entire_pline(view)]
        if len(split_points) == 1:
            seg_index, point = split_points[0]
            whole = PlineView.create(view, seg_index, point, seg_index, point, n, pos_equal_eps)
            return [whole] if whole is not None else []
        count = len(split_points)
        for k in range(count):
            start = split_points[k]
            end = split_points[(k + 1) % count]
            traverse_count = fwd_wrapping_dist(view, start.seg_index, end.seg_index)
            if k == count - 1 and traverse_count == 0:
                # Wrapping back onto the first point on the same segment.
                traverse_count = n
            s = PlineView.create(
                view,
                start.seg_index,
                start.point,
                end.seg_index,
                end.point,
                traverse_count,
                pos_equal_eps,
            )
            if s is not None:
                slices.append(s)
        return slices

    boundaries = [SplitPoint(0, view.at(0).pos)]
    boundaries.extend(split_points)
    boundaries.append(SplitPoint(n - 1, view.at(n - 1).pos))
    for start, end in zip(boundaries, boundaries[1:]):
        s = PlineView.create(
            view,
            start.seg_index,
            start.point,
            end.seg_index,
            end.point,
            end.seg_index - start.seg_index,
            pos_equal_eps,
        )
        if s is not None:
            slices.append(s)
    return slices


def _end_tangent(s):
    n = s.vertex_count()
    v1 = s.at(n - 2)
    v2 = s.at(n - 1)
    return seg_tangent_vector(v1, v2, v2.pos)


def _start_tangent(s):
    v1 = s.at(0)
    return seg_tangent_vector(v1, s.at(1), v1.pos)


def _turning_angle(t1, t2):
    """Signed angle to turn from direction t1 to direction t2, counter-clockwise positive."""
    return math.atan2(cross(t1, t2), dot(t1, t2))


def stitch_slices(
    slices,
    join_eps,
    pos_equal_eps=REAL_PRECISION,
    closed_only=True,
    chan=None,
):
    """
    Join slices end to start into polylines.

    Slices are taken in order. Each chain follows the slice whose start lies within
    join_eps of the chain end. With several candidates the smallest signed turning angle
    wins, ties go to the lower slice index. A chain whose end returns to its own start is
    closed.

    @param slices: list of open views
    @param join_eps: distance within which an end and a start are joined
    @param pos_equal_eps: repeat position tolerance when appending vertexes
    @param closed_only: discard chains that do not close
    @param chan: optional Channel for diagnostics
    @return: list of StitchedPline
    """
    count = len(slices)
    if count == 0:
        return []
    starts = [s.start_point for s in slices]
    index = StaticAABB2DIndex(count)
    for p in starts:
        index.add(p.real, p.imag, p.real, p.imag)
    index.finish()

    visited = [False] * count
    result = []
    for i in range(count):
        if visited[i]:
            continue
        visited[i] = True
        chain = Polyline()
        slice_indexes = [i]
        for v in iter_vertexes(slices[i]):
            chain.add_or_replace_vertex(v, pos_equal_eps)
        initial_start = starts[i]
        current = i
        closed = False
        while True:
            end_point = slices[current].final_point
            if pos_equal(end_point, initial_start, join_eps):
                closed = True
                break
            candidates = [
                j
                for j in index.query(
                    end_point.real - join_eps,
                    end_point.imag - join_eps,
                    end_point.real + join_eps,
                    end_point.imag + join_eps,
                )
                if not visited[j] and pos_equal(starts[j], end_point, join_eps)
            ]
            if not candidates:
                break
            if len(candidates) == 1:
                chosen = candidates[0]
            else:
                end_tangent = _end_tangent(slices[current])
                chosen = min(
                    candidates,
                    key=lambda j: (_turning_angle(end_tangent, _start_tangent(slices[j])), j),
                )
            visited[chosen] = True
            slice_indexes.append(chosen)
            for v in iter_vertexes(slices[chosen]):
                chain.add_or_replace_vertex(v, pos_equal_eps)
            current = chosen

        if closed:
            if chain.vertex_count() > 1 and pos_equal(chain.last().pos, chain.at(0).pos, join_eps):
                chain.remove_last()
            if chain.vertex_count() < 2:
                if chan:
                    chan("dropped degenerate loop from slices %s", slice_indexes)
                continue
            chain.set_is_closed(True)
            result.append(StitchedPline(chain, slice_indexes))
        elif closed_only:
            if chan:
                chan("discarded unclosed chain from slices %s", slice_indexes)
        elif chain.vertex_count() > 1:
            result.append(StitchedPline(chain, slice_indexes))
    return result
