"""
Boolean operations between two closed, simple polylines.

Both inputs are turned counter-clockwise, cut at every point where they cross or start
and stop overlapping, and every slice is classified against the other polyline as
inside, outside, or coincident with it. The operation picks the slices it needs and
stitches them into closed loops. Loops with positive area are outer boundaries, loops
with negative area are holes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .channel import channel
from .exceptions import SelfIntersectingInputError, UnsupportedOperationError
from .intersects import all_self_intersects, find_intersects
from .plinemath import dot
from .polyline import Polyline, check_polyline
from .queries import area, closest_point, remove_repeat_pos, winding_number
from .segment import seg_length, seg_midpoint, seg_point_at, seg_tangent_vector
from .settings import BooleanOptions, resolve_options
from .slices import slices_from_split_points, sort_split_points, stitch_slices
from .spatial import create_approx_aabb_index
from .views import PlineView, iter_segments, segment_at


class BooleanOp(Enum):
    UNION = "union"
    INTERSECTION = "intersection"
    DIFFERENCE = "difference"
    XOR = "xor"


class SliceClass(Enum):
    INSIDE = 0
    OUTSIDE = 1
    COINCIDENT_SAME = 2
    COINCIDENT_OPPOSITE = 3


@dataclass
class BooleanPlineSlice:
    """
    Slice used to build a result loop. source_is_a tells which input it came from,
    inverted is set when it was walked backwards.
    """

    view: PlineView
    source_is_a: bool
    classification: SliceClass
    inverted: bool = False


@dataclass
class BooleanResultPline:
    pline: Polyline
    subslices: List[BooleanPlineSlice] = field(default_factory=list)


@dataclass
class BooleanResult:
    pos_plines: List[BooleanResultPline] = field(default_factory=list)
    neg_plines: List[BooleanResultPline] = field(default_factory=list)

    def __bool__(self):
        return bool(self.pos_plines) or bool(self.neg_plines)

    @classmethod
    def from_whole_plines(cls, pos_plines, neg_plines=()):
        return cls(
            [BooleanResultPline(p) for p in pos_plines],
            [BooleanResultPline(p) for p in neg_plines],
        )

    def combine(self):
        """Outer loops followed by holes."""
        return [r.pline for r in self.pos_plines] + [r.pline for r in self.neg_plines]


def _resolve_operation(operation):
    if isinstance(operation, BooleanOp):
        return operation
    if isinstance(operation, str):
        try:
            return BooleanOp[operation.upper()]
        except KeyError:
            pass
    raise UnsupportedOperationError(f"Unsupported boolean operation: {operation!r}")


def _ccw_copy(pline, pos_equal_eps):
    result = remove_repeat_pos(pline, pos_equal_eps)
    if area(result) < 0:
        result.invert_direction_mut()
    return result


def _is_inside(pline, other, eps):
    """
    Containment of pline in other when their boundaries do not cross, decided at the
    first segment midpoint that is not on the boundary of other.
    """
    for v1, v2 in iter_segments(pline):
        p = seg_midpoint(v1, v2)
        if closest_point(other, p).distance > eps:
            return winding_number(other, p) != 0
    return True


def _hole(loop, outer):
    """Counter-clockwise loop turned to run against outer."""
    if area(outer) < 0:
        return loop
    return loop.inverted()


def _trivial_result(a, b, original_a, original_b, operation, options, chan):
    """
    Result when the boundaries never meet. Whole loops in the result are copies of the
    inputs as given, holes run against their outer loop.
    """
    a_in_b = _is_inside(a, b, options.slice_join_eps)
    b_in_a = not a_in_b and _is_inside(b, a, options.slice_join_eps)
    if chan:
        if a_in_b:
            chan("no intersects, a is inside b")
        elif b_in_a:
            chan("no intersects, b is inside a")
        else:
            chan("no intersects, a and b are disjoint")
    whole_a = Polyline.from_view(original_a)
    whole_b = Polyline.from_view(original_b)
    if operation == BooleanOp.UNION:
        if a_in_b:
            return BooleanResult.from_whole_plines([whole_b])
        if b_in_a:
            return BooleanResult.from_whole_plines([whole_a])
        return BooleanResult.from_whole_plines([whole_a, whole_b])
    if operation == BooleanOp.INTERSECTION:
        if a_in_b:
            return BooleanResult.from_whole_plines([whole_a])
        if b_in_a:
            return BooleanResult.from_whole_plines([whole_b])
        return BooleanResult()
    if operation == BooleanOp.DIFFERENCE:
        if a_in_b:
            return BooleanResult()
        if b_in_a:
            return BooleanResult.from_whole_plines([whole_a], [_hole(b, whole_a)])
        return BooleanResult.from_whole_plines([whole_a])
    # xor
    if a_in_b:
        return BooleanResult.from_whole_plines([whole_b], [_hole(a, whole_b)])
    if b_in_a:
        return BooleanResult.from_whole_plines([whole_a], [_hole(b, whole_a)])
    return BooleanResult.from_whole_plines([whole_a, whole_b])


def _slice_sample(s):
    """Point half way along the slice, with the segment it lies on."""
    segments = list(iter_segments(s))
    lengths = [seg_length(v1, v2) for v1, v2 in segments]
    remaining = sum(lengths) / 2.0
    for (v1, v2), length in zip(segments, lengths):
        if length > 0 and remaining <= length:
            return v1, v2, seg_point_at(v1, v2, remaining / length)
        remaining -= length
    v1, v2 = segments[-1]
    return v1, v2, seg_midpoint(v1, v2)


def classify_slice(s, other, coincident_eps):
    v1, v2, p = _slice_sample(s)
    closest = closest_point(other, p)
    if closest.distance < coincident_eps:
        ov1, ov2 = segment_at(other, closest.seg_start_index)
        slice_dir = seg_tangent_vector(v1, v2, p)
        other_dir = seg_tangent_vector(ov1, ov2, closest.seg_point)
        if dot(slice_dir, other_dir) > 0:
            return SliceClass.COINCIDENT_SAME
        return SliceClass.COINCIDENT_OPPOSITE
    if winding_number(other, p) != 0:
        return SliceClass.INSIDE
    return SliceClass.OUTSIDE


def _split_slices(a, b, intrs, pos_equal_eps):
    points_a = []
    points_b = []
    for intr in intrs.basic_intersects:
        points_a.append((intr.start_index1, intr.point))
        points_b.append((intr.start_index2, intr.point))
    for intr in intrs.overlapping_intersects:
        for p in (intr.point1, intr.point2):
            points_a.append((intr.start_index1, p))
            points_b.append((intr.start_index2, p))
    slices_a = slices_from_split_points(
        a, sort_split_points(a, points_a, pos_equal_eps), pos_equal_eps
    )
    slices_b = slices_from_split_points(
        b, sort_split_points(b, points_b, pos_equal_eps), pos_equal_eps
    )
    return slices_a, slices_b


def _select(classified_a, classified_b, keep_a, keep_b, invert_b):
    selected = [
        BooleanPlineSlice(s, True, c) for s, c in classified_a if c in keep_a
    ]
    for s, c in classified_b:
        if c not in keep_b:
            continue
        if invert_b:
            selected.append(BooleanPlineSlice(s.inverted_view(), False, c, True))
        else:
            selected.append(BooleanPlineSlice(s, False, c))
    return selected


def _stitch(selected, options, chan):
    stitched = stitch_slices(
        [s.view for s in selected],
        options.slice_join_eps,
        options.pos_equal_eps,
        closed_only=True,
        chan=chan,
    )
    result = BooleanResult()
    for pline, slice_indexes in stitched:
        loop_area = area(pline)
        if abs(loop_area) < options.collapsed_area_eps:
            if chan:
                chan("dropped collapsed loop with area %s", loop_area)
            continue
        entry = BooleanResultPline(pline, [selected[i] for i in slice_indexes])
        if loop_area > 0:
            result.pos_plines.append(entry)
        else:
            result.neg_plines.append(entry)
    return result


def pline_boolean(a, b, operation, options=None):
    """
    Boolean of two closed simple polylines without input validation.

    @return: BooleanResult
    """
    if options is None:
        options = BooleanOptions()
    chan = channel("boolean")
    original_a, original_b = a, b
    a = _ccw_copy(a, options.pos_equal_eps)
    b = _ccw_copy(b, options.pos_equal_eps)
    b_index = create_approx_aabb_index(b)
    intrs = find_intersects(a, b, b_index, options.pos_equal_eps)
    if not intrs:
        return _trivial_result(a, b, original_a, original_b, operation, options, chan)

    slices_a, slices_b = _split_slices(a, b, intrs, options.pos_equal_eps)
    classified_a = [(s, classify_slice(s, b, options.slice_join_eps)) for s in slices_a]
    classified_b = [(s, classify_slice(s, a, options.slice_join_eps)) for s in slices_b]
    if chan:
        chan(
            "%s: %d intersects, %d slices of a, %d slices of b",
            operation.value,
            len(intrs),
            len(slices_a),
            len(slices_b),
        )

    inside = {SliceClass.INSIDE}
    outside = {SliceClass.OUTSIDE}
    if operation == BooleanOp.UNION:
        selected = _select(
            classified_a, classified_b, outside | {SliceClass.COINCIDENT_SAME}, outside, False
        )
        return _stitch(selected, options, chan)
    if operation == BooleanOp.INTERSECTION:
        selected = _select(
            classified_a, classified_b, inside | {SliceClass.COINCIDENT_SAME}, inside, False
        )
        return _stitch(selected, options, chan)
    a_minus_b = _select(
        classified_a, classified_b, outside | {SliceClass.COINCIDENT_OPPOSITE}, inside, True
    )
    if operation == BooleanOp.DIFFERENCE:
        return _stitch(a_minus_b, options, chan)
    # xor, both differences stitched on their own so their loops never mix
    b_minus_a = [
        BooleanPlineSlice(s.view, not s.source_is_a, s.classification, s.inverted)
        for s in _select(
            classified_b, classified_a, outside | {SliceClass.COINCIDENT_OPPOSITE}, inside, True
        )
    ]
    result = _stitch(a_minus_b, options, chan)
    other = _stitch(b_minus_a, options, chan)
    result.pos_plines.extend(other.pos_plines)
    result.neg_plines.extend(other.neg_plines)
    return result


def _check_boolean_input(pline, name, options):
    check_polyline(pline, name, require_closed=True)
    clean = remove_repeat_pos(pline, options.pos_equal_eps)
    check_polyline(clean, name, require_closed=True)
    if all_self_intersects(clean, None, options.pos_equal_eps):
        raise SelfIntersectingInputError(f"{name} is self intersecting")


def boolean(a, b, operation, tolerance=None, options=None):
    """
    Boolean operation between closed polylines a and b.

    @param a: closed simple PolylineRef
    @param b: closed simple PolylineRef
    @param operation: BooleanOp or its name
    @param tolerance: position tolerance, scales the other boolean tolerances
    @param options: explicit BooleanOptions, wins over tolerance
    @return: BooleanResult with outer loops (counter-clockwise) and holes (clockwise).
        When the boundaries never meet the outer loops are copies of the inputs as given
        and holes run against them.
    @raise UnsupportedOperationError: unknown operation
    @raise InvalidPolylineError: open or malformed input
    @raise SelfIntersectingInputError: self intersecting input
    """
    operation = _resolve_operation(operation)
    options = resolve_options(BooleanOptions, tolerance, options)
    _check_boolean_input(a, "a", options)
    _check_boolean_input(b, "b", options)
    return pline_boolean(a, b, operation, options)


def combine(a, b, operation, tolerance=None, options=None):
    """
    Boolean operation between closed polylines a and b.

    @return: list of Polyline, outer loops followed by holes
    """
    return boolean(a, b, operation, tolerance, options).combine()
