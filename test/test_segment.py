import math
import unittest

from plinekit.segment import (
    ArcSeg,
    LineSeg,
    point_within_arc_sweep,
    seg_arc_radius_and_center,
    seg_bounding_box,
    seg_closest_point,
    seg_distance_from_start,
    seg_fast_approx_bounding_box,
    seg_length,
    seg_midpoint,
    seg_shape,
    seg_split_at_point,
    seg_tangent_vector,
)
from plinekit.vertex import PlineVertex

# Half circle around (1, 0), counter-clockwise through (1, -1).
CCW_HALF = (PlineVertex(0, 0, 1), PlineVertex(2, 0, 0))
# Half circle around (1, 0), clockwise through (1, 1).
CW_HALF = (PlineVertex(0, 0, -1), PlineVertex(2, 0, 0))
LINE = (PlineVertex(0, 0, 0), PlineVertex(10, 0, 0))


class TestSegment(unittest.TestCase):
    def assertComplexAlmostEqual(self, a, b, places=7):
        self.assertAlmostEqual(a.real, b.real, places=places)
        self.assertAlmostEqual(a.imag, b.imag, places=places)

    def test_vertex(self):
        v = PlineVertex(1, 2, 0.5)
        self.assertEqual(v.pos, complex(1, 2))
        self.assertEqual(tuple(v), (1.0, 2.0, 0.5))
        self.assertEqual(v.with_bulge(0).bulge, 0.0)
        self.assertTrue(v.bulge_is_pos())
        self.assertFalse(v.bulge_is_zero())
        self.assertTrue(PlineVertex(1, 2, 1e-10).bulge_is_zero())
        self.assertEqual(PlineVertex.from_pos(complex(3, 4), 0.2), PlineVertex(3, 4, 0.2))
        self.assertTrue(v.fuzzy_eq(PlineVertex(1 + 1e-7, 2, 0.5)))

    def test_arc_radius_and_center(self):
        radius, center = seg_arc_radius_and_center(*CCW_HALF)
        self.assertAlmostEqual(radius, 1.0)
        self.assertComplexAlmostEqual(center, complex(1, 0))

        # Quarter circle around the origin.
        b = math.tan(math.pi / 8)
        radius, center = seg_arc_radius_and_center(PlineVertex(1, 0, b), PlineVertex(0, 1, 0))
        self.assertAlmostEqual(radius, 1.0)
        self.assertComplexAlmostEqual(center, 0j)

        # Three quarter circle around the origin, center on the arc side of the chord.
        b = math.tan(3 * math.pi / 8)
        radius, center = seg_arc_radius_and_center(PlineVertex(1, 0, b), PlineVertex(0, -1, 0))
        self.assertAlmostEqual(radius, 1.0)
        self.assertComplexAlmostEqual(center, 0j)

    def test_seg_shape(self):
        self.assertIsInstance(seg_shape(*LINE), LineSeg)
        shape = seg_shape(*CW_HALF)
        self.assertIsInstance(shape, ArcSeg)
        self.assertFalse(shape.is_ccw)

    def test_length_and_midpoint(self):
        self.assertAlmostEqual(seg_length(*LINE), 10.0)
        self.assertAlmostEqual(seg_length(*CCW_HALF), math.pi)
        self.assertComplexAlmostEqual(seg_midpoint(*CCW_HALF), complex(1, -1))
        self.assertComplexAlmostEqual(seg_midpoint(*CW_HALF), complex(1, 1))
        self.assertComplexAlmostEqual(seg_midpoint(*LINE), complex(5, 0))

    def test_point_within_arc_sweep(self):
        self.assertTrue(point_within_arc_sweep(complex(1, 0), 0j, complex(2, 0), False, complex(1, -1)))
        self.assertFalse(point_within_arc_sweep(complex(1, 0), 0j, complex(2, 0), False, complex(1, 1)))
        self.assertTrue(point_within_arc_sweep(complex(1, 0), 0j, complex(2, 0), True, complex(1, 1)))
        # end points are within the sweep
        self.assertTrue(point_within_arc_sweep(complex(1, 0), 0j, complex(2, 0), False, complex(2, 0)))

    def test_distance_from_start(self):
        self.assertAlmostEqual(seg_distance_from_start(*CCW_HALF, complex(1, -1)), math.pi / 2)
        self.assertAlmostEqual(seg_distance_from_start(*CCW_HALF, complex(2, 0)), math.pi)
        self.assertAlmostEqual(seg_distance_from_start(*LINE, complex(4, 0)), 4.0)

    def test_tangent_vector(self):
        t = seg_tangent_vector(*CCW_HALF, complex(1, -1))
        self.assertComplexAlmostEqual(t / abs(t), complex(1, 0))
        t = seg_tangent_vector(*CW_HALF, complex(1, 1))
        self.assertComplexAlmostEqual(t / abs(t), complex(1, 0))
        self.assertEqual(seg_tangent_vector(*LINE, complex(3, 0)), complex(10, 0))

    def test_closest_point(self):
        self.assertComplexAlmostEqual(seg_closest_point(*CCW_HALF, complex(1, -3)), complex(1, -1))
        # Outside the sweep snaps to the nearest end point.
        self.assertComplexAlmostEqual(seg_closest_point(*CCW_HALF, complex(-1, 2)), 0j)
        self.assertComplexAlmostEqual(seg_closest_point(*LINE, complex(5, 5)), complex(5, 0))

    def test_split_at_point(self):
        updated_start, split_vertex = seg_split_at_point(*CCW_HALF, complex(1, -1))
        quarter = math.tan(math.pi / 8)
        self.assertAlmostEqual(updated_start.bulge, quarter)
        self.assertEqual(updated_start.pos, 0j)
        self.assertAlmostEqual(split_vertex.bulge, quarter)
        self.assertComplexAlmostEqual(split_vertex.pos, complex(1, -1))

        updated_start, split_vertex = seg_split_at_point(*CW_HALF, complex(1, 1))
        self.assertAlmostEqual(updated_start.bulge, -quarter)
        self.assertAlmostEqual(split_vertex.bulge, -quarter)

        updated_start, split_vertex = seg_split_at_point(*LINE, complex(3, 0))
        self.assertEqual(updated_start, LINE[0])
        self.assertEqual(split_vertex, PlineVertex(3, 0, 0))

        # Split at the start keeps the whole arc on the split vertex.
        updated_start, split_vertex = seg_split_at_point(*CCW_HALF, 0j)
        self.assertEqual(split_vertex.bulge, 1.0)

    def test_bounding_box(self):
        box = seg_bounding_box(*CCW_HALF)
        for found, expected in zip(box, (0, -1, 2, 0)):
            self.assertAlmostEqual(found, expected)
        box = seg_bounding_box(*CW_HALF)
        for found, expected in zip(box, (0, 0, 2, 1)):
            self.assertAlmostEqual(found, expected)
        self.assertEqual(seg_bounding_box(*LINE), (0, 0, 10, 0))

    def test_fast_approx_bounding_box_contains_tight_box(self):
        segments = [
            CCW_HALF,
            CW_HALF,
            (PlineVertex(1, 0, 0.3), PlineVertex(0, 1, 0)),
            (PlineVertex(1, 0, -2.5), PlineVertex(0, 1, 0)),
            (PlineVertex(-3, 2, 0.9), PlineVertex(4, -1, 0)),
        ]
        for v1, v2 in segments:
            tight = seg_bounding_box(v1, v2)
            approx = seg_fast_approx_bounding_box(v1, v2)
            self.assertLessEqual(approx[0], tight[0] + 1e-9)
            self.assertLessEqual(approx[1], tight[1] + 1e-9)
            self.assertGreaterEqual(approx[2], tight[2] - 1e-9)
            self.assertGreaterEqual(approx[3], tight[3] - 1e-9)
