import math
import unittest

from plinekit.plinemath import (
    PI,
    TAU,
    angle,
    angle_from_bulge,
    angle_is_within_sweep,
    bulge_from_angle,
    cross,
    delta_angle,
    dot,
    fuzzy_eq,
    fuzzy_gt,
    fuzzy_in_range,
    fuzzy_lt,
    is_left,
    is_left_or_equal,
    line_seg_closest_point,
    normalize,
    normalize_radians,
    perp,
    point_on_circle,
    pos_equal,
    unit_perp,
)


class TestPlineMath(unittest.TestCase):
    def test_normalize_radians(self):
        self.assertAlmostEqual(normalize_radians(-PI / 2), 3 * PI / 2)
        self.assertAlmostEqual(normalize_radians(TAU), 0.0)
        self.assertAlmostEqual(normalize_radians(5 * PI), PI)
        self.assertEqual(normalize_radians(1.0), 1.0)

    def test_delta_angle(self):
        self.assertAlmostEqual(delta_angle(0, 3 * PI / 2), -PI / 2)
        self.assertAlmostEqual(delta_angle(3 * PI / 2, 0), PI / 2)
        self.assertAlmostEqual(delta_angle(0, PI), PI)
        self.assertAlmostEqual(delta_angle(-PI / 4, PI / 4), PI / 2)

    def test_angle_is_within_sweep(self):
        self.assertTrue(angle_is_within_sweep(PI / 2, 0, PI))
        self.assertFalse(angle_is_within_sweep(3 * PI / 2, 0, PI))
        # clockwise sweep from 0 down to -pi
        self.assertTrue(angle_is_within_sweep(3 * PI / 2, 0, -PI))
        self.assertFalse(angle_is_within_sweep(PI / 2, 0, -PI))
        # sweeps larger than half a circle
        self.assertTrue(angle_is_within_sweep(PI, 0, 1.5 * PI))
        # just before the start within eps
        self.assertTrue(angle_is_within_sweep(-1e-10, 0, PI, 1e-8))

    def test_bulge_angle_conversion(self):
        self.assertAlmostEqual(bulge_from_angle(PI), 1.0)
        self.assertAlmostEqual(angle_from_bulge(1.0), PI)
        self.assertAlmostEqual(angle_from_bulge(-1.0), -PI)
        self.assertAlmostEqual(angle_from_bulge(bulge_from_angle(1.234)), 1.234)

    def test_vector_ops(self):
        self.assertEqual(dot(complex(1, 2), complex(3, 4)), 11)
        self.assertEqual(cross(complex(1, 0), complex(0, 1)), 1)
        self.assertEqual(perp(complex(1, 0)), complex(0, 1))
        self.assertEqual(unit_perp(complex(0, 2)), complex(-1, 0))
        self.assertEqual(unit_perp(0j), 0j)
        self.assertAlmostEqual(abs(normalize(complex(3, 4))), 1.0)
        self.assertEqual(normalize(0j), 0j)
        self.assertAlmostEqual(angle(0j, complex(0, 1)), PI / 2)

    def test_is_left(self):
        self.assertTrue(is_left(0j, complex(1, 0), complex(0.5, 1)))
        self.assertFalse(is_left(0j, complex(1, 0), complex(0.5, -1)))
        self.assertFalse(is_left(0j, complex(1, 0), complex(2, 0)))
        self.assertTrue(is_left_or_equal(0j, complex(1, 0), complex(2, 0)))

    def test_fuzzy(self):
        self.assertTrue(fuzzy_eq(1.0, 1.0 + 1e-9))
        self.assertFalse(fuzzy_eq(1.0, 1.0 + 1e-6))
        self.assertTrue(fuzzy_in_range(0.0, 1.0 + 1e-9, 1.0))
        self.assertTrue(fuzzy_lt(1.0 + 1e-9, 1.0))
        self.assertFalse(fuzzy_lt(1.0 + 1e-6, 1.0))
        self.assertTrue(fuzzy_gt(1.0 + 1e-6, 1.0))
        self.assertTrue(pos_equal(complex(1, 1), complex(1 + 1e-6, 1 - 1e-6)))
        self.assertFalse(pos_equal(complex(1, 1), complex(1.001, 1)))

    def test_point_on_circle(self):
        p = point_on_circle(2.0, complex(1, 1), PI / 2)
        self.assertAlmostEqual(p.real, 1.0)
        self.assertAlmostEqual(p.imag, 3.0)

    def test_line_seg_closest_point(self):
        self.assertEqual(line_seg_closest_point(0j, complex(10, 0), complex(5, 5)), complex(5, 0))
        self.assertEqual(line_seg_closest_point(0j, complex(10, 0), complex(-5, 5)), 0j)
        self.assertEqual(line_seg_closest_point(0j, complex(10, 0), complex(15, 5)), complex(10, 0))
        self.assertTrue(math.isclose(abs(line_seg_closest_point(0j, complex(1, 1), complex(1, 0))), math.sqrt(0.5)))
