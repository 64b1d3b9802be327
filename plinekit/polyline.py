"""
Polyline objects store an aligned numpy array of (x, y, bulge) rows. The array grows by
doubling its capacity, `index` is the number of rows in use. This is the owning storage
type of the kernel, it implements the read, read-write and creation capabilities.
"""

from copy import copy

import numpy as np

from .exceptions import InvalidPolylineError
from .plinemath import REAL_PRECISION, REAL_THRESHOLD, pos_equal
from .vertex import PlineVertex
from .views import iter_segments, iter_vertexes, pline_fuzzy_eq, segment_count


class Polyline:
    """
    Owning polyline storage.
    """

    def __init__(self, vertexes=None, is_closed=False):
        self._is_closed = bool(is_closed)
        if vertexes is not None:
            if isinstance(vertexes, Polyline):
                self._is_closed = vertexes._is_closed
                self.index = vertexes.index
                self.vertexes = np.copy(vertexes.vertexes[: vertexes.index])
            else:
                data = np.array(
                    [tuple(float(e) for e in v) for v in vertexes], dtype=float
                ).reshape((-1, 3))
                self.index = len(data)
                self.vertexes = data
            self.capacity = len(self.vertexes)
        else:
            self.index = 0
            self.capacity = 12
            self.vertexes = np.zeros((self.capacity, 3), dtype=float)

    def __str__(self):
        return f"Polyline({self.index} vertexes, closed={self._is_closed})"

    def __repr__(self):
        return f"Polyline({repr(self.to_triples())}, is_closed={self._is_closed})"

    def __eq__(self, other):
        if not isinstance(other, Polyline):
            return NotImplemented
        if other.index != self.index or other._is_closed != self._is_closed:
            return False
        m = self.vertexes[: self.index] == other.vertexes[: other.index]
        return bool(m.all())

    __hash__ = None

    def __copy__(self):
        """
        Create a polyline copy, trimmed to its vertexes.

        @return: Copy of polyline.
        """
        return Polyline(self)

    def __len__(self):
        """
        @return: number of vertexes (note not the capacity).
        """
        return self.index

    def __iter__(self):
        return iter_vertexes(self)

    def __getitem__(self, index):
        if index < 0:
            index += self.index
        return self.at(index)

    def __setitem__(self, index, vertex):
        if index < 0:
            index += self.index
        self.set_vertex(index, vertex)

    def __bool__(self):
        return self.index != 0

    #######################
    # Construction
    #######################

    @classmethod
    def with_capacity(cls, capacity, is_closed=False):
        polyline = cls(is_closed=is_closed)
        polyline._ensure_capacity(capacity)
        return polyline

    @classmethod
    def from_triples(cls, triples, is_closed=False):
        """
        Build a polyline from (x, y, bulge) triples.

        @param triples: iterable of (x, y, bulge)
        @param is_closed: closed flag
        @return:
        """
        return cls(list(triples), is_closed=is_closed)

    @classmethod
    def from_view(cls, view):
        """
        Copy any read view into a new owning polyline.
        """
        polyline = cls.with_capacity(view.vertex_count(), view.is_closed())
        polyline.extend_vertexes(iter_vertexes(view))
        return polyline

    def to_triples(self):
        """
        @return: list of (x, y, bulge) tuples, exact round trip of from_triples.
        """
        return [
            (float(row[0]), float(row[1]), float(row[2]))
            for row in self.vertexes[: self.index]
        ]

    #######################
    # Read capability
    #######################

    def vertex_count(self):
        return self.index

    def is_closed(self):
        return self._is_closed

    def get(self, index):
        if 0 <= index < self.index:
            x, y, bulge = self.vertexes[index]
            return PlineVertex(x, y, bulge)
        return None

    def at(self, index):
        if not 0 <= index < self.index:
            raise IndexError(f"vertex index {index} out of range for {self.index} vertexes")
        x, y, bulge = self.vertexes[index]
        return PlineVertex(x, y, bulge)

    def last(self):
        if self.index == 0:
            return None
        return self.at(self.index - 1)

    def is_empty(self):
        return self.index == 0

    def segment_count(self):
        return segment_count(self)

    #######################
    # Read-write capability
    #######################

    def set_vertex(self, index, vertex):
        if not 0 <= index < self.index:
            raise IndexError(f"vertex index {index} out of range for {self.index} vertexes")
        self.vertexes[index] = (vertex.x, vertex.y, vertex.bulge)

    def set(self, index, x, y, bulge):
        self.set_vertex(index, PlineVertex(x, y, bulge))

    def set_last_bulge(self, bulge):
        self.vertexes[self.index - 1, 2] = bulge

    def insert_vertex(self, index, vertex):
        self._ensure_capacity(self.index + 1)
        self.vertexes[index + 1 : self.index + 1] = self.vertexes[index : self.index]
        self.vertexes[index] = (vertex.x, vertex.y, vertex.bulge)
        self.index += 1

    def insert(self, index, x, y, bulge):
        self.insert_vertex(index, PlineVertex(x, y, bulge))

    def remove(self, index):
        v = self.at(index)
        self.vertexes[index : self.index - 1] = self.vertexes[index + 1 : self.index]
        self.index -= 1
        return v

    def invert_direction_mut(self):
        """
        Reverse direction in place: reverse the rows and shift the negated bulges so each
        arc keeps its shape.
        """
        if self.index < 2:
            return
        data = self.vertexes[: self.index][::-1].copy()
        data[:, 2] = -np.roll(data[:, 2], -1)
        self.vertexes[: self.index] = data

    def scale_mut(self, scale_factor):
        self.vertexes[: self.index, :2] *= scale_factor

    def translate_mut(self, x, y):
        self.vertexes[: self.index, 0] += x
        self.vertexes[: self.index, 1] += y

    #######################
    # Creation capability
    #######################

    def set_is_closed(self, is_closed):
        self._is_closed = bool(is_closed)

    def add(self, x, y, bulge=0.0):
        self._ensure_capacity(self.index + 1)
        self.vertexes[self.index] = (x, y, bulge)
        self.index += 1

    def add_vertex(self, vertex):
        self.add(vertex.x, vertex.y, vertex.bulge)

    def extend_vertexes(self, vertexes):
        for v in vertexes:
            self.add(v.x, v.y, v.bulge)

    def extend(self, other):
        self.extend_vertexes(iter_vertexes(other))

    def reserve(self, additional):
        self._ensure_capacity(self.index + additional)

    def remove_last(self):
        if self.index == 0:
            raise IndexError("remove_last on empty polyline")
        return self.remove(self.index - 1)

    def clear(self):
        self.index = 0

    def add_or_replace(self, x, y, bulge, pos_equal_eps=REAL_PRECISION):
        """
        Add vertex unless it sits on the last vertex, in that case only the bulge of the
        last vertex is replaced.
        """
        if self.index != 0:
            lx, ly, _ = self.vertexes[self.index - 1]
            if abs(lx - x) < pos_equal_eps and abs(ly - y) < pos_equal_eps:
                self.vertexes[self.index - 1, 2] = bulge
                return
        self.add(x, y, bulge)

    def add_or_replace_vertex(self, vertex, pos_equal_eps=REAL_PRECISION):
        self.add_or_replace(vertex.x, vertex.y, vertex.bulge, pos_equal_eps)

    def _ensure_capacity(self, capacity):
        if self.capacity > capacity:
            return
        self.capacity = max(self.capacity << 1, capacity)
        new_vertexes = np.zeros((self.capacity, 3), dtype=float)
        new_vertexes[0 : self.index] = self.vertexes[0 : self.index]
        self.vertexes = new_vertexes

    def _trim(self):
        if self.index != self.capacity:
            self.capacity = self.index
            self.vertexes = self.vertexes[0 : self.index]

    def copy(self):
        return copy(self)

    def inverted(self):
        polyline = copy(self)
        polyline.invert_direction_mut()
        return polyline

    def fuzzy_eq(self, other, eps=REAL_PRECISION):
        """Same closure and vertex count, every vertex equal within eps."""
        return pline_fuzzy_eq(self, other, eps)


def check_polyline(view, name="polyline", require_closed=False, eps=REAL_THRESHOLD):
    """
    Validate a polyline at a public boundary.

    @param view: PolylineRef
    @param name: name used in error messages
    @param require_closed: raise if the polyline is open
    @param eps: zero chord tolerance for arcs
    @raise InvalidPolylineError:
    """
    n = view.vertex_count()
    if n < 2:
        raise InvalidPolylineError(f"{name} requires at least 2 vertexes, got {n}")
    if require_closed and not view.is_closed():
        raise InvalidPolylineError(f"{name} must be closed")
    if isinstance(view, Polyline):
        if not np.all(np.isfinite(view.vertexes[: view.index])):
            raise InvalidPolylineError(f"{name} has non-finite coordinates or bulges")
    else:
        for v in iter_vertexes(view):
            if not (np.isfinite(v.x) and np.isfinite(v.y) and np.isfinite(v.bulge)):
                raise InvalidPolylineError(f"{name} has non-finite coordinates or bulges")
    for i, (v1, v2) in enumerate(iter_segments(view)):
        if not v1.bulge_is_zero() and pos_equal(v1.pos, v2.pos, eps):
            raise InvalidPolylineError(
                f"{name} segment {i} is an arc over a zero length chord"
            )

