import unittest

from idphotomaker.resolution import calculate_dpi, meets_threshold, mm_to_pixels, target_pixel_dimensions


class TestCalculateDpi(unittest.TestCase):
    def test_exact_one_inch(self):
        result = calculate_dpi(295, 413, 25, 35)
        self.assertAlmostEqual(result.min_dpi, 300, delta=0.5)
        self.assertTrue(meets_threshold(result, 299))

    def test_low_resolution(self):
        result = calculate_dpi(200, 280, 25, 35)
        self.assertAlmostEqual(result.min_dpi, 203, delta=0.5)
        self.assertFalse(meets_threshold(result))

    def test_min_is_limiting_axis(self):
        result = calculate_dpi(600, 413, 25, 35)
        self.assertGreater(result.horizontal_dpi, result.vertical_dpi)
        self.assertEqual(result.min_dpi, result.vertical_dpi)


class TestPixelConversion(unittest.TestCase):
    def test_mm_to_pixels(self):
        self.assertAlmostEqual(mm_to_pixels(25.4, 300), 300)
        self.assertAlmostEqual(mm_to_pixels(5, 300), 59.055, places=3)

    def test_target_dimensions(self):
        self.assertEqual(target_pixel_dimensions(25, 35, 300), (295, 413))
        self.assertEqual(target_pixel_dimensions(35, 49, 300), (413, 579))
        self.assertEqual(target_pixel_dimensions(35, 52, 300), (413, 614))


if __name__ == '__main__':
    unittest.main()
