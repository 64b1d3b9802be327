import math
import unittest
from copy import copy

import numpy as np

from plinekit.exceptions import InvalidPolylineError, PlineError
from plinekit.polyline import Polyline, check_polyline
from plinekit.vertex import PlineVertex
from plinekit.views import invert_direction_mut


def square(size=4.0, is_closed=True):
    return Polyline.from_triples(
        [(0, 0, 0), (size, 0, 0), (size, size, 0), (0, size, 0)], is_closed=is_closed
    )


class TestPolyline(unittest.TestCase):
    def test_polyline_empty(self):
        pline = Polyline()
        self.assertEqual(len(pline), 0)
        self.assertTrue(pline.is_empty())
        self.assertFalse(pline)
        self.assertIsNone(pline.last())
        self.assertIsNone(pline.get(0))
        self.assertEqual(pline.segment_count(), 0)

    def test_polyline_triples_round_trip(self):
        triples = [(0.1, 0.2, 0.3), (1e10, -3.5, 0.0), (-0.0, 7.25, -1.5)]
        pline = Polyline.from_triples(triples, is_closed=True)
        self.assertEqual(pline.to_triples(), triples)
        self.assertTrue(pline.is_closed())
        self.assertEqual(pline.vertex_count(), 3)
        self.assertEqual(pline.segment_count(), 3)

    def test_polyline_add_grows_capacity(self):
        pline = Polyline()
        for i in range(100):
            pline.add(i, i * 2, 0)
        self.assertEqual(len(pline), 100)
        self.assertGreaterEqual(pline.capacity, 100)
        self.assertEqual(pline.at(99), PlineVertex(99, 198, 0))
        self.assertEqual(pline[-1], PlineVertex(99, 198, 0))
        pline._trim()
        self.assertEqual(pline.capacity, 100)
        self.assertEqual(pline.vertexes.shape, (100, 3))

    def test_polyline_add_or_replace(self):
        pline = Polyline()
        pline.add(0, 0, 0)
        pline.add_or_replace(1, 1, 0.5)
        pline.add_or_replace(1 + 1e-7, 1, 0.25)
        self.assertEqual(len(pline), 2)
        self.assertEqual(pline.last().bulge, 0.25)
        self.assertEqual(pline.last().x, 1)

    def test_polyline_insert_remove(self):
        pline = square()
        pline.insert(1, 2, 0, 0)
        self.assertEqual(len(pline), 5)
        self.assertEqual(pline.at(1), PlineVertex(2, 0, 0))
        self.assertEqual(pline.at(2), PlineVertex(4, 0, 0))
        removed = pline.remove(1)
        self.assertEqual(removed, PlineVertex(2, 0, 0))
        self.assertEqual(pline, square())
        last = pline.remove_last()
        self.assertEqual(last, PlineVertex(0, 4, 0))
        self.assertEqual(len(pline), 3)
        pline.clear()
        self.assertEqual(len(pline), 0)
        with self.assertRaises(IndexError):
            pline.remove_last()

    def test_polyline_set_vertex(self):
        pline = square()
        pline[0] = PlineVertex(-1, -1, 0.5)
        self.assertEqual(pline.at(0), PlineVertex(-1, -1, 0.5))
        pline.set_last_bulge(0.25)
        self.assertEqual(pline.last().bulge, 0.25)
        with self.assertRaises(IndexError):
            pline.set_vertex(10, PlineVertex())
        with self.assertRaises(IndexError):
            pline.at(4)

    def test_polyline_copy_is_independent(self):
        pline = square()
        duplicate = copy(pline)
        duplicate.set(0, 9, 9, 0)
        self.assertEqual(pline.at(0), PlineVertex(0, 0, 0))
        self.assertNotEqual(pline, duplicate)
        self.assertEqual(Polyline(pline), pline)
        self.assertEqual(pline.copy(), pline)

    def test_polyline_copy_is_trimmed(self):
        pline = Polyline()
        for i in range(5):
            pline.add(i, 0, 0)
        self.assertEqual(pline.capacity, 12)
        duplicate = copy(pline)
        self.assertEqual(duplicate.capacity, 5)
        self.assertEqual(duplicate.vertexes.shape, (5, 3))
        duplicate.add(5, 0, 0)
        self.assertEqual(len(duplicate), 6)
        self.assertEqual(len(pline), 5)
        self.assertEqual(copy(Polyline()).capacity, 0)

    def test_polyline_equality(self):
        self.assertEqual(square(), square())
        self.assertNotEqual(square(), square(is_closed=False))
        self.assertNotEqual(square(), square(5))

    def test_polyline_fuzzy_eq(self):
        nudged = square()
        nudged.set(2, 4 + 1e-7, 4, 0)
        self.assertNotEqual(nudged, square())
        self.assertTrue(nudged.fuzzy_eq(square()))
        self.assertFalse(nudged.fuzzy_eq(square(), eps=1e-9))

    def test_polyline_invert_direction(self):
        pline = Polyline.from_triples([(0, 0, 0.5), (1, 0, 0), (1, 1, -0.3)])
        inverted = pline.inverted()
        self.assertEqual(inverted.to_triples(), [(1, 1, 0), (1, 0, -0.5), (0, 0, 0.3)])
        inverted.invert_direction_mut()
        self.assertEqual(inverted, pline)

    def test_polyline_invert_direction_closed_is_self_inverse(self):
        pline = Polyline.from_triples([(0, 0, 0.5), (2, 0, -0.2), (2, 2, 1.0), (0, 2, 0)], True)
        twice = pline.inverted().inverted()
        self.assertEqual(twice, pline)

    def test_view_invert_matches_polyline_invert(self):
        pline = Polyline.from_triples([(0, 0, 0.5), (2, 0, -0.2), (2, 2, 1.0), (0, 2, 0)], True)
        by_view = pline.copy()
        invert_direction_mut(by_view)
        np.testing.assert_array_equal(
            np.array(by_view.to_triples()), np.array(pline.inverted().to_triples())
        )

    def test_polyline_scale_translate(self):
        pline = square()
        pline.scale_mut(0.5)
        pline.translate_mut(1, -1)
        self.assertEqual(pline.to_triples(), [(1, -1, 0), (3, -1, 0), (3, 1, 0), (1, 1, 0)])

    def test_polyline_from_view(self):
        pline = square()
        self.assertEqual(Polyline.from_view(pline), pline)

    def test_check_polyline(self):
        check_polyline(square())
        with self.assertRaises(InvalidPolylineError):
            check_polyline(Polyline.from_triples([(0, 0, 0)]))
        with self.assertRaises(InvalidPolylineError):
            check_polyline(square(is_closed=False), require_closed=True)
        with self.assertRaises(InvalidPolylineError):
            check_polyline(Polyline.from_triples([(0, 0, 0), (math.nan, 1, 0)]))
        with self.assertRaises(InvalidPolylineError):
            check_polyline(Polyline.from_triples([(0, 0, 0), (1, math.inf, 0)]))
        with self.assertRaises(InvalidPolylineError):
            check_polyline(Polyline.from_triples([(0, 0, 1.0), (0, 0, 0), (1, 1, 0)]))
        # Invalid input is also a ValueError and a PlineError.
        with self.assertRaises(ValueError):
            check_polyline(Polyline())
        with self.assertRaises(PlineError):
            check_polyline(Polyline())
