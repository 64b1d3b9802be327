"""
Polyline views.

Every algorithm in the kernel is written against one of three independent capabilities:

PolylineRef: read vertexes (vertex_count, is_closed, at, get).
PolylineRefMut: PolylineRef plus set_vertex.
PolylineCreation: build polylines from scratch (with_capacity, add, set_is_closed, ...).

These are protocols, not base classes, a type implements whatever subset it supports.
Polyline implements all three, PlineView is a non-owning sub range of another view and
only implements PolylineRef.

Closed polylines wrap with index arithmetic, (i + 1) % n.
"""

from typing import Iterator, Optional, Protocol, Tuple, runtime_checkable

from .plinemath import REAL_PRECISION, pos_equal
from .segment import seg_length, seg_split_at_point
from .vertex import PlineVertex


@runtime_checkable
class PolylineRef(Protocol):
    def vertex_count(self) -> int:
        ...

    def is_closed(self) -> bool:
        ...

    def at(self, index: int) -> PlineVertex:
        ...

    def get(self, index: int) -> Optional[PlineVertex]:
        ...


@runtime_checkable
class PolylineRefMut(PolylineRef, Protocol):
    def set_vertex(self, index: int, vertex: PlineVertex) -> None:
        ...


@runtime_checkable
class PolylineCreation(Protocol):
    @classmethod
    def with_capacity(cls, capacity: int, is_closed: bool):
        ...

    def add(self, x: float, y: float, bulge: float) -> None:
        ...

    def add_vertex(self, vertex: PlineVertex) -> None:
        ...

    def add_or_replace(self, x: float, y: float, bulge: float, pos_equal_eps: float) -> None:
        ...

    def set_is_closed(self, is_closed: bool) -> None:
        ...

    def reserve(self, additional: int) -> None:
        ...

    def remove_last(self) -> PlineVertex:
        ...

    def clear(self) -> None:
        ...


#######################
# Read capability helpers
#######################


def is_empty(view):
    return view.vertex_count() == 0


def last(view):
    n = view.vertex_count()
    if n == 0:
        return None
    return view.at(n - 1)


def segment_count(view):
    """
    Number of segments. A closed polyline has a segment per vertex, an open one has one less.
    """
    n = view.vertex_count()
    if n < 2:
        return 0
    if view.is_closed():
        return n
    return n - 1


def next_wrapping_index(view, i):
    if i == view.vertex_count() - 1:
        return 0
    return i + 1


def prev_wrapping_index(view, i):
    if i == 0:
        return view.vertex_count() - 1
    return i - 1


def fwd_wrapping_index(view, start_index, offset):
    return (start_index + offset) % view.vertex_count()


def fwd_wrapping_dist(view, start_index, end_index):
    """
    Number of forward steps to go from start_index to end_index, wrapping at the end.
    """
    if start_index <= end_index:
        return end_index - start_index
    return view.vertex_count() - start_index + end_index


def iter_vertexes(view) -> Iterator[PlineVertex]:
    for i in range(view.vertex_count()):
        yield view.at(i)


def iter_segment_indexes(view) -> Iterator[Tuple[int, int]]:
    n = view.vertex_count()
    if n < 2:
        return
    for i in range(n - 1):
        yield i, i + 1
    if view.is_closed():
        yield n - 1, 0


def iter_segments(view) -> Iterator[Tuple[PlineVertex, PlineVertex]]:
    for i, j in iter_segment_indexes(view):
        yield view.at(i), view.at(j)


def segment_at(view, index):
    """
    The (v1, v2) vertex pair of the segment starting at index, wrapping for closed views.
    """
    return view.at(index), view.at(next_wrapping_index(view, index))


class SegmentSequence:
    """
    Lazy, restartable sequence of segments over a view. Each iteration walks the view
    front to back again.
    """

    def __init__(self, view):
        self.view = view

    def __iter__(self):
        return iter_segments(self.view)

    def __len__(self):
        return segment_count(self.view)

    def __getitem__(self, index):
        count = segment_count(self.view)
        if index < 0:
            index += count
        if not 0 <= index < count:
            raise IndexError(index)
        return segment_at(self.view, index)


def segments(view):
    return SegmentSequence(view)


def pline_fuzzy_eq(view1, view2, eps=REAL_PRECISION):
    if view1.is_closed() != view2.is_closed():
        return False
    if view1.vertex_count() != view2.vertex_count():
        return False
    return all(
        v1.fuzzy_eq(v2, eps) for v1, v2 in zip(iter_vertexes(view1), iter_vertexes(view2))
    )


def path_length(view):
    return sum(seg_length(v1, v2) for v1, v2 in iter_segments(view))


#######################
# Read-write capability helpers
#######################


def invert_direction_mut(view):
    """
    Reverse the direction of the polyline in place.

    Vertex order is reversed and every bulge moves one position and flips sign, the arc
    that ran from v[i] to v[i + 1] now runs from v[i + 1] to v[i]. The shift wraps around
    so inverting twice restores the exact input.

    @param view: PolylineRefMut
    @return:
    """
    n = view.vertex_count()
    if n < 2:
        return
    vertexes = [view.at(i) for i in range(n)]
    vertexes.reverse()
    first_bulge = vertexes[0].bulge
    for i in range(1, n):
        view.set_vertex(i - 1, vertexes[i - 1].with_bulge(-vertexes[i].bulge))
    view.set_vertex(n - 1, vertexes[n - 1].with_bulge(-first_bulge))


class PlineView:
    """
    Non-owning open sub range of a source polyline.

    The view starts at updated_start (positioned somewhere on segment start_index),
    continues over the source vertexes for end_index_offset wrapping segments and ends at
    end_point. updated_end_bulge trims the last traversed segment to end_point. If
    inverted is set the view is walked backwards with bulges negated.

    No vertex data is copied, vertexes are derived from the source on access.
    """

    __slots__ = (
        "source",
        "start_index",
        "end_index_offset",
        "updated_start",
        "updated_end_bulge",
        "end_point",
        "inverted",
    )

    def __init__(
        self,
        source,
        start_index,
        end_index_offset,
        updated_start,
        updated_end_bulge,
        end_point,
        inverted=False,
    ):
        self.source = source
        self.start_index = start_index
        self.end_index_offset = end_index_offset
        self.updated_start = updated_start
        self.updated_end_bulge = updated_end_bulge
        self.end_point = end_point
        self.inverted = inverted

    def __repr__(self):
        return (
            f"PlineView(start_index={self.start_index}, end_index_offset={self.end_index_offset}, "
            f"updated_start={self.updated_start!r}, updated_end_bulge={self.updated_end_bulge}, "
            f"end_point={self.end_point!r}, inverted={self.inverted})"
        )

    def __len__(self):
        return self.vertex_count()

    def vertex_count(self):
        return self.end_index_offset + 2

    def is_closed(self):
        return False

    def get(self, index):
        offset = self.end_index_offset
        if index < 0 or index > offset + 1:
            return None
        source = self.source
        if self.inverted:
            if index == 0:
                return PlineVertex.from_pos(self.end_point, -self.updated_end_bulge)
            if index < offset:
                bulge_i = fwd_wrapping_index(source, self.start_index, offset - index)
                i = next_wrapping_index(source, bulge_i)
                return source.at(i).with_bulge(-source.at(bulge_i).bulge)
            if index == offset:
                i = fwd_wrapping_index(source, self.start_index, 1)
                return source.at(i).with_bulge(-self.updated_start.bulge)
            return self.updated_start.with_bulge(0.0)
        if index == 0:
            return self.updated_start
        if index < offset:
            return source.at(fwd_wrapping_index(source, self.start_index, index))
        if index == offset:
            i = fwd_wrapping_index(source, self.start_index, offset)
            return source.at(i).with_bulge(self.updated_end_bulge)
        return PlineVertex.from_pos(self.end_point, 0.0)

    def at(self, index):
        v = self.get(index)
        if v is None:
            raise IndexError(index)
        return v

    @property
    def start_point(self):
        return self.at(0).pos

    @property
    def final_point(self):
        """Last position reached when walking the view, respects inversion."""
        return self.at(self.end_index_offset + 1).pos

    def inverted_view(self):
        return PlineView(
            self.source,
            self.start_index,
            self.end_index_offset,
            self.updated_start,
            self.updated_end_bulge,
            self.end_point,
            not self.inverted,
        )

    def path_length(self):
        return path_length(self)

    def to_polyline(self):
        from .polyline import Polyline

        return Polyline.from_view(self)

    @classmethod
    def from_entire_pline(cls, source):
        """
        View over the whole source. A closed source gives an open view that ends back on
        its first vertex.
        """
        n = source.vertex_count()
        if n < 2:
            raise ValueError("source must have at least 2 vertexes to form a view")
        if source.is_closed():
            return cls(source, 0, n - 1, source.at(0), source.at(n - 1).bulge, source.at(0).pos)
        return cls(source, 0, n - 2, source.at(0), source.at(n - 2).bulge, source.at(n - 1).pos)

    @classmethod
    def create(
        cls,
        source,
        start_index,
        start_point,
        end_index,
        end_point,
        traverse_count,
        pos_equal_eps=REAL_PRECISION,
    ):
        """
        View from start_point on segment start_index to end_point on segment end_index.

        end_point may sit on the vertex at end_index, that is the end of the previous
        segment. traverse_count is the number of segment boundaries crossed going forward,
        a full loop of a closed source from a single point is traverse_count equal to
        the vertex count.

        @return: PlineView, None if the view would have zero length
        """
        start_v1 = source.at(start_index)
        start_v2 = source.at(next_wrapping_index(source, start_index))
        if pos_equal(start_point, start_v1.pos, pos_equal_eps):
            updated_start = start_v1
        else:
            updated_start = seg_split_at_point(start_v1, start_v2, start_point, pos_equal_eps).split_vertex

        if traverse_count == 0:
            if pos_equal(updated_start.pos, end_point, pos_equal_eps):
                return None
            updated_start = seg_split_at_point(updated_start, start_v2, end_point, pos_equal_eps).updated_start
            return cls(source, start_index, 0, updated_start, updated_start.bulge, end_point)

        end_vertex = source.at(end_index % source.vertex_count())
        if pos_equal(end_point, end_vertex.pos, pos_equal_eps):
            # Ends on a vertex, the last traversed segment is not trimmed.
            end_index_offset = traverse_count - 1
            if end_index_offset == 0:
                updated_end_bulge = updated_start.bulge
            else:
                updated_end_bulge = source.at(prev_wrapping_index(source, end_index % source.vertex_count())).bulge
            end_point = end_vertex.pos
        else:
            end_index_offset = traverse_count
            end_v2 = source.at(next_wrapping_index(source, end_index))
            updated_end_bulge = seg_split_at_point(end_vertex, end_v2, end_point, pos_equal_eps).updated_start.bulge
        if end_index_offset == 0 and pos_equal(updated_start.pos, end_point, pos_equal_eps):
            return None
        return cls(
            source,
            start_index,
            end_index_offset,
            updated_start,
            updated_end_bulge,
            end_point,
        )
