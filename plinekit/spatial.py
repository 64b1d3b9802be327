"""
Static packed Hilbert R-tree over axis aligned boxes.

Items are added once and `finish()` sorts them along a Hilbert curve of their box
centers then packs parent levels of node_size children bottom up. The tree is immutable
after finishing. Queries walk the tree level by level testing whole frontiers of nodes
with numpy, results are item indexes in ascending order.

Every engine call builds its own index over the polylines it works on, indexes are never
cached or shared between calls.
"""

import math

import numpy as np

from .segment import seg_bounding_box, seg_fast_approx_bounding_box
from .views import iter_segments, segment_count

HILBERT_MAX = (1 << 16) - 1


def hilbert_xy_to_index(x, y):
    """
    Vectorized hilbert curve index of 16 bit integer coordinates.

    @param x: numpy uint32 array
    @param y: numpy uint32 array
    @return: numpy uint32 array of curve positions
    """
    x = x.astype(np.uint32)
    y = y.astype(np.uint32)
    a = x ^ y
    b = np.uint32(0xFFFF) ^ a
    c = np.uint32(0xFFFF) ^ (x | y)
    d = x & (y ^ np.uint32(0xFFFF))

    A = a | (b >> 1)
    B = (a >> 1) ^ a
    C = ((c >> 1) ^ (b & (d >> 1))) ^ c
    D = ((a & (c >> 1)) ^ (d >> 1)) ^ d

    a, b, c, d = A, B, C, D
    A = (a & (a >> 2)) ^ (b & (b >> 2))
    B = (a & (b >> 2)) ^ (b & ((a ^ b) >> 2))
    C = C ^ ((a & (c >> 2)) ^ (b & (d >> 2)))
    D = D ^ ((b & (c >> 2)) ^ ((a ^ b) & (d >> 2)))

    a, b, c, d = A, B, C, D
    A = (a & (a >> 4)) ^ (b & (b >> 4))
    B = (a & (b >> 4)) ^ (b & ((a ^ b) >> 4))
    C = C ^ ((a & (c >> 4)) ^ (b & (d >> 4)))
    D = D ^ ((b & (c >> 4)) ^ ((a ^ b) & (d >> 4)))

    a, b, c, d = A, B, C, D
    C = C ^ ((a & (c >> 8)) ^ (b & (d >> 8)))
    D = D ^ ((b & (c >> 8)) ^ ((a ^ b) & (d >> 8)))

    a = C ^ (C >> 1)
    b = D ^ (D >> 1)

    i0 = x ^ y
    i1 = b | (np.uint32(0xFFFF) ^ (i0 | a))

    i0 = (i0 | (i0 << 8)) & np.uint32(0x00FF00FF)
    i0 = (i0 | (i0 << 4)) & np.uint32(0x0F0F0F0F)
    i0 = (i0 | (i0 << 2)) & np.uint32(0x33333333)
    i0 = (i0 | (i0 << 1)) & np.uint32(0x55555555)

    i1 = (i1 | (i1 << 8)) & np.uint32(0x00FF00FF)
    i1 = (i1 | (i1 << 4)) & np.uint32(0x0F0F0F0F)
    i1 = (i1 | (i1 << 2)) & np.uint32(0x33333333)
    i1 = (i1 | (i1 << 1)) & np.uint32(0x55555555)

    return (i1 << 1) | i0


class StaticAABB2DIndex:
    """
    Packed Hilbert R-tree.

    Usage:
        index = StaticAABB2DIndex(3)
        index.add(0, 0, 1, 1)
        index.add(2, 2, 3, 3)
        index.add(0.5, 0.5, 2.5, 2.5)
        index.finish()
        index.query(0.9, 0.9, 1.1, 1.1)  # [0, 2]
    """

    def __init__(self, num_items, node_size=16):
        if num_items <= 0:
            raise ValueError("spatial index requires at least one item")
        self.num_items = num_items
        self.node_size = min(max(node_size, 2), 65535)

        n = num_items
        num_nodes = n
        self.level_bounds = [n]
        while True:
            n = int(math.ceil(n / self.node_size))
            num_nodes += n
            self.level_bounds.append(num_nodes)
            if n == 1:
                break
        self.boxes = np.zeros((num_nodes, 4), dtype=float)
        self.indices = np.zeros(num_nodes, dtype=np.int64)
        self.pos = 0
        self.finished = False

    def __len__(self):
        return self.num_items

    def __repr__(self):
        return f"StaticAABB2DIndex({self.num_items} items, node_size={self.node_size})"

    def add(self, min_x, min_y, max_x, max_y):
        """
        Add an item box, items are numbered in the order they are added.

        @return: item index
        """
        if self.finished:
            raise ValueError("cannot add to a finished spatial index")
        if self.pos >= self.num_items:
            raise ValueError(f"spatial index was sized for {self.num_items} items")
        index = self.pos
        self.indices[index] = index
        self.boxes[index] = (min_x, min_y, max_x, max_y)
        self.pos += 1
        return index

    @property
    def bounds(self):
        """Box containing all items, available once finished."""
        return tuple(float(e) for e in self.boxes[-1])

    def finish(self):
        if self.pos != self.num_items:
            raise ValueError(
                f"added {self.pos} items when spatial index was sized for {self.num_items}"
            )
        n = self.num_items
        items = self.boxes[:n]
        if n > self.node_size:
            min_x = items[:, 0].min()
            min_y = items[:, 1].min()
            width = items[:, 2].max() - min_x
            height = items[:, 3].max() - min_y
            cx = (items[:, 0] + items[:, 2]) / 2.0 - min_x
            cy = (items[:, 1] + items[:, 3]) / 2.0 - min_y
            hx = np.floor(HILBERT_MAX * cx / width) if width > 0 else np.zeros(n)
            hy = np.floor(HILBERT_MAX * cy / height) if height > 0 else np.zeros(n)
            values = hilbert_xy_to_index(hx.astype(np.uint32), hy.astype(np.uint32))
            order = np.argsort(values, kind="stable")
            self.boxes[:n] = items[order]
            self.indices[:n] = self.indices[:n][order]

        pos = n
        start = 0
        for end in self.level_bounds[:-1]:
            children = self.boxes[start:end]
            offsets = np.arange(0, end - start, self.node_size)
            groups = len(offsets)
            self.boxes[pos : pos + groups, 0] = np.minimum.reduceat(children[:, 0], offsets)
            self.boxes[pos : pos + groups, 1] = np.minimum.reduceat(children[:, 1], offsets)
            self.boxes[pos : pos + groups, 2] = np.maximum.reduceat(children[:, 2], offsets)
            self.boxes[pos : pos + groups, 3] = np.maximum.reduceat(children[:, 3], offsets)
            # Parent nodes index the position of their first child.
            self.indices[pos : pos + groups] = offsets + start
            pos += groups
            start = end
        self.finished = True
        return self

    def _group_end(self, node_start):
        level = int(np.searchsorted(self.level_bounds, node_start, side="right"))
        return min(node_start + self.node_size, self.level_bounds[level])

    def query(self, min_x, min_y, max_x, max_y):
        """
        All items whose boxes overlap the query box, boundaries touching counts.

        @return: sorted list of item indexes
        """
        if not self.finished:
            raise ValueError("spatial index must be finished before querying")
        starts = [len(self.boxes) - 1]
        while starts:
            positions = np.concatenate(
                [np.arange(s, self._group_end(s)) for s in starts]
            )
            boxes = self.boxes[positions]
            hit = (
                (boxes[:, 0] <= max_x)
                & (boxes[:, 1] <= max_y)
                & (boxes[:, 2] >= min_x)
                & (boxes[:, 3] >= min_y)
            )
            positions = positions[hit]
            if starts[0] < self.num_items:
                return sorted(int(i) for i in self.indices[positions])
            starts = [int(i) for i in self.indices[positions]]
        return []

    def visit_query(self, min_x, min_y, max_x, max_y, visitor):
        """
        Call visitor(item_index) for every item overlapping the query box. Traversal stops
        early if the visitor returns False. Visit order follows the tree, not item order.
        """
        if not self.finished:
            raise ValueError("spatial index must be finished before querying")
        stack = [len(self.boxes) - 1]
        while stack:
            node_start = stack.pop()
            for pos in range(node_start, self._group_end(node_start)):
                bx0, by0, bx1, by1 = self.boxes[pos]
                if bx0 > max_x or by0 > max_y or bx1 < min_x or by1 < min_y:
                    continue
                index = int(self.indices[pos])
                if node_start >= self.num_items:
                    stack.append(index)
                elif visitor(index) is False:
                    return


def create_aabb_index(view):
    """
    Spatial index over the tight bounding boxes of the polyline segments. Item i is the
    segment starting at vertex i.

    @return: StaticAABB2DIndex, None if the polyline has no segments
    """
    count = segment_count(view)
    if count == 0:
        return None
    index = StaticAABB2DIndex(count)
    for v1, v2 in iter_segments(view):
        index.add(*seg_bounding_box(v1, v2))
    return index.finish()


def create_approx_aabb_index(view):
    """
    Spatial index over cheap boxes that contain each segment but may be larger than it.

    @return: StaticAABB2DIndex, None if the polyline has no segments
    """
    count = segment_count(view)
    if count == 0:
        return None
    index = StaticAABB2DIndex(count)
    for v1, v2 in iter_segments(view):
        index.add(*seg_fast_approx_bounding_box(v1, v2))
    return index.finish()
