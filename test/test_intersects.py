import math
import unittest

from plinekit.intersects import (
    CircleIntrKind,
    LineLineIntrKind,
    PlineIntersectsCollection,
    PlineSegIntrKind,
    all_self_intersects,
    circle_circle_intr,
    find_intersects,
    has_self_intersects,
    line_circle_intr,
    line_line_intr,
    pline_seg_intr,
)
from plinekit.polyline import Polyline
from plinekit.spatial import create_approx_aabb_index
from plinekit.vertex import PlineVertex


def unit_square(dx=0.0, dy=0.0):
    return Polyline.from_triples(
        [(dx, dy, 0), (dx + 1, dy, 0), (dx + 1, dy + 1, 0), (dx, dy + 1, 0)], True
    )


class TestPrimitiveIntersects(unittest.TestCase):
    def assertComplexAlmostEqual(self, a, b, places=7):
        self.assertAlmostEqual(a.real, b.real, places=places)
        self.assertAlmostEqual(a.imag, b.imag, places=places)

    def test_line_line_true_intersect(self):
        intr = line_line_intr(0j, complex(2, 2), complex(0, 2), complex(2, 0))
        self.assertEqual(intr.kind, LineLineIntrKind.TRUE_INTERSECT)
        self.assertAlmostEqual(intr.t0, 0.5)
        self.assertAlmostEqual(intr.t1, 0.5)
        self.assertComplexAlmostEqual(intr.point, complex(1, 1))

    def test_line_line_false_intersect(self):
        intr = line_line_intr(0j, complex(1, 0), complex(2, -1), complex(2, 1))
        self.assertEqual(intr.kind, LineLineIntrKind.FALSE_INTERSECT)
        self.assertAlmostEqual(intr.t0, 2.0)
        self.assertAlmostEqual(intr.t1, 0.5)

    def test_line_line_parallel(self):
        intr = line_line_intr(0j, complex(1, 0), complex(0, 1), complex(1, 1))
        self.assertEqual(intr.kind, LineLineIntrKind.NO_INTERSECT)
        # Collinear but apart.
        intr = line_line_intr(0j, complex(1, 0), complex(2, 0), complex(3, 0))
        self.assertEqual(intr.kind, LineLineIntrKind.NO_INTERSECT)

    def test_line_line_coincident(self):
        intr = line_line_intr(0j, complex(2, 0), complex(1, 0), complex(3, 0))
        self.assertEqual(intr.kind, LineLineIntrKind.COINCIDENT)
        self.assertAlmostEqual(intr.t0, 0.0)
        self.assertAlmostEqual(intr.t1, 0.5)

    def test_line_line_collinear_touch(self):
        intr = line_line_intr(0j, complex(1, 0), complex(1, 0), complex(2, 0))
        self.assertEqual(intr.kind, LineLineIntrKind.TRUE_INTERSECT)
        self.assertComplexAlmostEqual(intr.point, complex(1, 0))

    def test_line_circle(self):
        intr = line_circle_intr(complex(-2, 0), complex(2, 0), 1.0, 0j)
        self.assertEqual(intr.kind, CircleIntrKind.TWO_INTERSECTS)
        self.assertAlmostEqual(intr.t0, 0.25)
        self.assertAlmostEqual(intr.t1, 0.75)

        intr = line_circle_intr(complex(-2, 1), complex(2, 1), 1.0, 0j)
        self.assertEqual(intr.kind, CircleIntrKind.TANGENT_INTERSECT)
        self.assertAlmostEqual(intr.t0, 0.5)

        intr = line_circle_intr(complex(-2, 2), complex(2, 2), 1.0, 0j)
        self.assertEqual(intr.kind, CircleIntrKind.NO_INTERSECT)

    def test_line_circle_far_from_origin(self):
        center = complex(1e6, 1e6)
        intr = line_circle_intr(center - 2, center + 2, 1.0, center)
        self.assertEqual(intr.kind, CircleIntrKind.TWO_INTERSECTS)
        self.assertAlmostEqual(intr.t0, 0.25)
        self.assertAlmostEqual(intr.t1, 0.75)

    def test_circle_circle(self):
        intr = circle_circle_intr(1.0, 0j, 1.0, complex(1, 0))
        self.assertEqual(intr.kind, CircleIntrKind.TWO_INTERSECTS)
        points = sorted((intr.point1, intr.point2), key=lambda p: p.imag)
        self.assertComplexAlmostEqual(points[0], complex(0.5, -math.sqrt(3) / 2))
        self.assertComplexAlmostEqual(points[1], complex(0.5, math.sqrt(3) / 2))

        intr = circle_circle_intr(1.0, 0j, 1.0, complex(2, 0))
        self.assertEqual(intr.kind, CircleIntrKind.TANGENT_INTERSECT)
        self.assertComplexAlmostEqual(intr.point1, complex(1, 0))

        self.assertEqual(circle_circle_intr(1.0, 0j, 1.0, complex(3, 0)).kind, CircleIntrKind.NO_INTERSECT)
        self.assertEqual(circle_circle_intr(1.0, 0j, 1.0, 0j).kind, CircleIntrKind.COINCIDENT)
        self.assertEqual(circle_circle_intr(1.0, 0j, 0.5, 0j).kind, CircleIntrKind.NO_INTERSECT)
        # One circle inside the other.
        self.assertEqual(
            circle_circle_intr(3.0, 0j, 0.5, complex(1, 0)).kind, CircleIntrKind.NO_INTERSECT
        )


class TestSegmentIntersects(unittest.TestCase):
    def assertComplexAlmostEqual(self, a, b, places=7):
        self.assertAlmostEqual(a.real, b.real, places=places)
        self.assertAlmostEqual(a.imag, b.imag, places=places)

    def test_line_line_segments(self):
        intr = pline_seg_intr(
            PlineVertex(0, 0, 0), PlineVertex(2, 2, 0), PlineVertex(0, 2, 0), PlineVertex(2, 0, 0)
        )
        self.assertEqual(intr.kind, PlineSegIntrKind.ONE_INTERSECT)
        self.assertComplexAlmostEqual(intr.point1, complex(1, 1))

    def test_overlapping_lines_ordered_along_first(self):
        intr = pline_seg_intr(
            PlineVertex(3, 0, 0), PlineVertex(0, 0, 0), PlineVertex(1, 0, 0), PlineVertex(4, 0, 0)
        )
        self.assertEqual(intr.kind, PlineSegIntrKind.OVERLAPPING_LINES)
        self.assertEqual(intr.point1, complex(3, 0))
        self.assertEqual(intr.point2, complex(1, 0))

    def test_line_arc(self):
        # Bottom half of the unit circle, counter-clockwise from (-1, 0) to (1, 0).
        intr = pline_seg_intr(
            PlineVertex(0, -2, 0), PlineVertex(0, 2, 0), PlineVertex(-1, 0, 1), PlineVertex(1, 0, 0)
        )
        self.assertEqual(intr.kind, PlineSegIntrKind.ONE_INTERSECT)
        self.assertComplexAlmostEqual(intr.point1, complex(0, -1))

        # Same result with the arc as the first segment.
        intr = pline_seg_intr(
            PlineVertex(-1, 0, 1), PlineVertex(1, 0, 0), PlineVertex(0, -2, 0), PlineVertex(0, 2, 0)
        )
        self.assertEqual(intr.kind, PlineSegIntrKind.ONE_INTERSECT)
        self.assertComplexAlmostEqual(intr.point1, complex(0, -1))

    def test_line_arc_two_intersects_ordered(self):
        # Line through the bottom half circle of radius 1 around (1, 0).
        intr = pline_seg_intr(
            PlineVertex(3, -0.5, 0), PlineVertex(-1, -0.5, 0), PlineVertex(0, 0, 1), PlineVertex(2, 0, 0)
        )
        self.assertEqual(intr.kind, PlineSegIntrKind.TWO_INTERSECTS)
        x = math.sqrt(0.75)
        self.assertComplexAlmostEqual(intr.point1, complex(1 + x, -0.5))
        self.assertComplexAlmostEqual(intr.point2, complex(1 - x, -0.5))

    def test_line_arc_tangent(self):
        intr = pline_seg_intr(
            PlineVertex(-2, -1, 0), PlineVertex(2, -1, 0), PlineVertex(-1, 0, 1), PlineVertex(1, 0, 0)
        )
        self.assertEqual(intr.kind, PlineSegIntrKind.TANGENT_INTERSECT)
        self.assertComplexAlmostEqual(intr.point1, complex(0, -1))

    def test_arc_arc_crossing(self):
        # Top half of the unit circle and the top half of a unit circle around (1, 0).
        intr = pline_seg_intr(
            PlineVertex(1, 0, 1), PlineVertex(-1, 0, 0), PlineVertex(2, 0, 1), PlineVertex(0, 0, 0)
        )
        self.assertEqual(intr.kind, PlineSegIntrKind.ONE_INTERSECT)
        self.assertComplexAlmostEqual(intr.point1, complex(0.5, math.sqrt(3) / 2))

    def test_overlapping_arcs(self):
        # Top half and left half of the unit circle overlap in the upper left quarter.
        intr = pline_seg_intr(
            PlineVertex(1, 0, 1), PlineVertex(-1, 0, 0), PlineVertex(0, 1, 1), PlineVertex(0, -1, 0)
        )
        self.assertEqual(intr.kind, PlineSegIntrKind.OVERLAPPING_ARCS)
        self.assertEqual(intr.point1, complex(0, 1))
        self.assertEqual(intr.point2, complex(-1, 0))

    def test_arcs_touching_at_end_points(self):
        intr = pline_seg_intr(
            PlineVertex(1, 0, 1), PlineVertex(-1, 0, 0), PlineVertex(-1, 0, 1), PlineVertex(1, 0, 0)
        )
        self.assertEqual(intr.kind, PlineSegIntrKind.TWO_INTERSECTS)
        self.assertEqual(intr.point1, complex(1, 0))
        self.assertEqual(intr.point2, complex(-1, 0))

    def test_disjoint_segments(self):
        intr = pline_seg_intr(
            PlineVertex(0, 0, 0), PlineVertex(1, 0, 0), PlineVertex(5, 5, 0.5), PlineVertex(6, 5, 0)
        )
        self.assertEqual(intr.kind, PlineSegIntrKind.NO_INTERSECT)


class TestPlineIntersects(unittest.TestCase):
    def test_collection(self):
        collection = PlineIntersectsCollection()
        self.assertFalse(collection)
        self.assertTrue(collection.is_empty())
        self.assertEqual(len(collection), 0)

    def test_find_intersects_of_squares(self):
        a = unit_square()
        b = unit_square(0.5, 0.5)
        result = find_intersects(a, b)
        self.assertEqual(len(result.overlapping_intersects), 0)
        found = sorted(
            (intr.start_index1, intr.start_index2, intr.point) for intr in result.basic_intersects
        )
        self.assertEqual(found, [(1, 0, complex(1, 0.5)), (2, 3, complex(0.5, 1))])

        # Supplying a prebuilt index gives the same answer.
        again = find_intersects(a, b, create_approx_aabb_index(b))
        self.assertEqual(len(again.basic_intersects), 2)

    def test_find_intersects_disjoint(self):
        result = find_intersects(unit_square(), unit_square(5, 5))
        self.assertFalse(result)
        self.assertFalse(find_intersects(unit_square(), Polyline()))

    def test_find_intersects_overlap(self):
        a = unit_square()
        b = unit_square(1, 0)
        result = find_intersects(a, b)
        self.assertEqual(len(result.overlapping_intersects), 1)
        overlap = result.overlapping_intersects[0]
        self.assertEqual((overlap.start_index1, overlap.start_index2), (1, 3))
        self.assertEqual({overlap.point1, overlap.point2}, {complex(1, 0), complex(1, 1)})

    def test_find_intersects_open_end_points(self):
        a = Polyline.from_triples([(0, 0, 0), (2, 0, 0)])
        b = Polyline.from_triples([(2, 0, 0), (2, 2, 0)])
        result = find_intersects(a, b)
        self.assertEqual(len(result.basic_intersects), 1)
        self.assertEqual(result.basic_intersects[0].point, complex(2, 0))

    def test_self_intersects_bowtie(self):
        bowtie = Polyline.from_triples([(0, 0, 0), (2, 2, 0), (2, 0, 0), (0, 2, 0)], True)
        result = all_self_intersects(bowtie)
        self.assertEqual(len(result.basic_intersects), 1)
        intr = result.basic_intersects[0]
        self.assertEqual((intr.start_index1, intr.start_index2), (0, 2))
        self.assertAlmostEqual(intr.point.real, 1.0)
        self.assertAlmostEqual(intr.point.imag, 1.0)
        self.assertTrue(has_self_intersects(bowtie))

    def test_no_self_intersects(self):
        self.assertFalse(all_self_intersects(unit_square()))
        circle = Polyline.from_triples([(-1, 0, 1), (1, 0, 1)], True)
        self.assertFalse(has_self_intersects(circle))
        self.assertFalse(has_self_intersects(Polyline.from_triples([(0, 0, 0), (1, 0, 0)])))

    def test_self_intersects_open(self):
        # Open zig zag crossing its own first segment.
        pline = Polyline.from_triples([(0, 0, 0), (4, 0, 0), (4, 2, 0), (2, -2, 0)])
        result = all_self_intersects(pline)
        self.assertEqual(len(result.basic_intersects), 1)
        self.assertAlmostEqual(result.basic_intersects[0].point.real, 3.0)
        self.assertAlmostEqual(result.basic_intersects[0].point.imag, 0.0)
