import unittest

from idphotomaker.validation import FileValidator

from tests._fakes import png_bytes


class TestFileValidator(unittest.TestCase):
    def test_accepts_supported_formats(self):
        validator = FileValidator()
        for fmt in ('PNG', 'JPEG', 'WEBP'):
            with self.subTest(fmt=fmt):
                report = validator.validate_sync(png_bytes(64, 48, fmt=fmt))
                self.assertTrue(report.is_valid)
                self.assertEqual(report.format, fmt)
                self.assertEqual((report.width, report.height), (64, 48))
                self.assertFalse(report.needs_scaling)

    def test_rejects_other_formats(self):
        report = FileValidator().validate_sync(png_bytes(16, 16, fmt='GIF'))
        self.assertFalse(report.is_valid)
        self.assertIn('Invalid file type', report.errors[0])

    def test_rejects_garbage(self):
        report = FileValidator().validate_sync(b'definitely not an image')
        self.assertFalse(report.is_valid)

    def test_oversize_is_a_warning(self):
        data = png_bytes(64, 64)
        report = FileValidator(max_file_size=len(data) - 1).validate_sync(data)
        self.assertTrue(report.is_valid)
        self.assertTrue(report.needs_scaling)
        self.assertIn('automatically scaled down', report.warnings[0])


class TestFileValidatorAsync(unittest.IsolatedAsyncioTestCase):
    async def test_validate(self):
        report = await FileValidator().validate(png_bytes(32, 32))
        self.assertTrue(report.is_valid)
        self.assertEqual(report.file_size, len(png_bytes(32, 32)))


if __name__ == '__main__':
    unittest.main()
