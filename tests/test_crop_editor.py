import unittest

from idphotomaker.config import SIZES
from idphotomaker.crop_editor import (
    Drag, ExternalReset, ResizeCorner, ResizeHandle, SizeSpecChanged, dpi_warning, reduce_crop,
)
from idphotomaker.models import Rectangle

RATIO = 200 / 280


class TestDrag(unittest.TestCase):
    def test_moves(self):
        rect = reduce_crop(Rectangle(100, 100, 200, 280), Drag(50, -20), 1000, 1000, RATIO)
        self.assertEqual(rect, Rectangle(150, 80, 200, 280))

    def test_clamped_to_image(self):
        rect = reduce_crop(Rectangle(100, 100, 200, 280), Drag(1000, -500), 1000, 1000, RATIO)
        self.assertEqual((rect.x, rect.y), (800, 0))
        self.assertEqual((rect.width, rect.height), (200, 280))


class TestResizeCorner(unittest.TestCase):
    def setUp(self):
        self.rect = Rectangle(100, 100, 200, 280)

    def test_se_keeps_top_left(self):
        rect = reduce_crop(self.rect, ResizeCorner(ResizeHandle.SE, 50), 1000, 1000, RATIO)
        self.assertEqual((rect.x, rect.y), (100, 100))
        self.assertAlmostEqual(rect.width, 250)
        self.assertAlmostEqual(rect.height, 350)

    def test_nw_keeps_bottom_right(self):
        rect = reduce_crop(self.rect, ResizeCorner(ResizeHandle.NW, -50), 1000, 1000, RATIO)
        self.assertAlmostEqual(rect.right, 300)
        self.assertAlmostEqual(rect.bottom, 380)
        self.assertAlmostEqual(rect.width, 250)

    def test_min_size(self):
        rect = reduce_crop(self.rect, ResizeCorner(ResizeHandle.SE, -500), 1000, 1000, RATIO)
        self.assertAlmostEqual(rect.width, 100)
        self.assertAlmostEqual(rect.aspect_ratio, RATIO)

    def test_clipped_to_image(self):
        rect = reduce_crop(self.rect, ResizeCorner(ResizeHandle.SE, 5000), 1000, 1000, RATIO)
        self.assertTrue(rect.within(1000, 1000))
        self.assertAlmostEqual(rect.aspect_ratio, RATIO)
        self.assertEqual((rect.x, rect.y), (100, 100))


class TestSizeSpecChanged(unittest.TestCase):
    def test_keeps_center_and_adopts_ratio(self):
        start = Rectangle(300, 200, 250, 350)
        new_ratio = SIZES.get('three-inch').aspect_ratio
        rect = reduce_crop(start, SizeSpecChanged(new_ratio), 1000, 1000, 250 / 350)
        self.assertAlmostEqual(rect.aspect_ratio, new_ratio, delta=1e-3)
        for got, expected in zip(rect.center, start.center):
            self.assertAlmostEqual(got, expected)
        self.assertAlmostEqual(rect.width, 250)

    def test_shrinks_near_edge(self):
        start = Rectangle(0, 600, 250, 350)
        rect = reduce_crop(start, SizeSpecChanged(1.0), 1000, 1000, 250 / 350)
        self.assertTrue(rect.within(1000, 1000))
        self.assertAlmostEqual(rect.aspect_ratio, 1.0)
        for got, expected in zip(rect.center, start.center):
            self.assertAlmostEqual(got, expected)

    def test_same_ratio_is_noop(self):
        start = Rectangle(10, 10, 250, 350)
        self.assertIs(reduce_crop(start, SizeSpecChanged(250 / 350), 1000, 1000, 250 / 350), start)


class TestOtherEvents(unittest.TestCase):
    def test_external_reset(self):
        target = Rectangle(1, 2, 3, 4)
        self.assertIs(reduce_crop(Rectangle(0, 0, 10, 14), ExternalReset(target), 100, 100, RATIO), target)

    def test_unknown_event(self):
        with self.assertRaises(TypeError):
            reduce_crop(Rectangle(0, 0, 10, 14), 'zoom', 100, 100, RATIO)


class TestDpiWarning(unittest.TestCase):
    def test_sufficient(self):
        self.assertIsNone(dpi_warning(Rectangle(0, 0, 600, 840), SIZES.get('one-inch')))

    def test_too_small(self):
        message = dpi_warning(Rectangle(0, 0, 200, 280), SIZES.get('one-inch'))
        self.assertIn('203 DPI', message)


if __name__ == '__main__':
    unittest.main()
