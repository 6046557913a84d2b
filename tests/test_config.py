import unittest
from dataclasses import FrozenInstanceError

from idphotomaker.config import (
    SIZES, PAPERS, DEFAULT_SIZE, DEFAULT_PAPER, DEFAULT_FRAMING, BACKGROUND_COLORS,
    get_size, get_paper, get_size_list, get_paper_list,
)


class TestSizeSpecs(unittest.TestCase):
    def test_catalog(self):
        self.assertEqual(SIZES.keys(), ['one-inch', 'two-inch', 'three-inch'])
        dims = [(s.width_mm, s.height_mm) for s in SIZES.list_all()]
        self.assertEqual(dims, [(25, 35), (35, 49), (35, 52)])

    def test_aspect_ratio_and_print_size(self):
        one = SIZES.get('one-inch')
        self.assertAlmostEqual(one.aspect_ratio, 25 / 35)
        self.assertEqual(one.print_size, (295, 413))
        self.assertEqual(one.description, '25x35mm')

    def test_frozen(self):
        with self.assertRaises(FrozenInstanceError):
            SIZES.get('one-inch').width_mm = 30  # type: ignore[misc]

    def test_defaults_registered(self):
        self.assertIn(DEFAULT_SIZE, SIZES)
        self.assertIn(DEFAULT_PAPER, PAPERS)


class TestPaperSpecs(unittest.TestCase):
    def test_fixed_pixel_sizes(self):
        self.assertEqual(PAPERS.get('6-inch').size_px, (1200, 1800))
        self.assertEqual(PAPERS.get('a4').size_px, (2480, 3508))


class TestRegistry(unittest.TestCase):
    def test_resolve_key_and_spec(self):
        spec = SIZES.get('two-inch')
        self.assertIs(SIZES.resolve('two-inch'), spec)
        self.assertIs(SIZES.resolve(spec), spec)

    def test_resolve_unknown(self):
        with self.assertRaises(KeyError):
            PAPERS.resolve('letter')

    def test_get_unknown(self):
        self.assertIsNone(get_size('nope'))
        self.assertIsNone(get_paper('nope'))

    def test_lists(self):
        self.assertEqual(len(get_size_list()), len(SIZES))
        self.assertEqual([p['key'] for p in get_paper_list()], ['6-inch', 'a4'])


class TestDefaults(unittest.TestCase):
    def test_framing(self):
        self.assertEqual((DEFAULT_FRAMING.side, DEFAULT_FRAMING.above, DEFAULT_FRAMING.below), (0.8, 1.5, 1.0))

    def test_colors_are_hex(self):
        for name, value in BACKGROUND_COLORS.items():
            self.assertRegex(value, r'^#[0-9A-F]{6}$', name)


if __name__ == '__main__':
    unittest.main()
