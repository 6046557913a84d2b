import io
import asyncio
import unittest
from contextlib import redirect_stdout

from PIL import Image

from idphotomaker.background import BackgroundRemover, MattingError, SessionError
from idphotomaker.face_detection import FaceDetector
from idphotomaker.config import SIZES, PAPERS
from idphotomaker.errors import FaceDetectionError
from idphotomaker.processor import PipelineStage, ProcessingResult
from idphotomaker.utils import performance_class, print_summary


class TestBackgroundRemover(unittest.TestCase):
    def test_not_ready_before_load(self):
        remover = BackgroundRemover()
        self.assertFalse(remover.is_ready)
        self.assertEqual(remover.init_count, 0)

    def test_remove_without_session(self):
        with self.assertRaises(SessionError) as ctx:
            BackgroundRemover().remove_sync(Image.new('RGB', (8, 8)))
        self.assertIsInstance(ctx.exception, MattingError)

    def test_async_remove_without_session(self):
        with self.assertRaises(SessionError):
            asyncio.run(BackgroundRemover().remove(Image.new('RGB', (8, 8))))

    def test_memory_error_detection(self):
        self.assertTrue(BackgroundRemover._is_memory_error(RuntimeError('CUDA out of memory. Tried to allocate')))
        self.assertTrue(BackgroundRemover._is_memory_error(RuntimeError('Failed to allocate memory')))
        self.assertFalse(BackgroundRemover._is_memory_error(ValueError('bad input shape')))

    def test_cpu_quality_tier(self):
        self.assertIn(BackgroundRemover(force_cpu=True).quality_tier, ('high', 'medium', 'low'))


class TestPerformanceClass(unittest.TestCase):
    def test_thresholds(self):
        self.assertEqual(performance_class(8), 'high')
        self.assertEqual(performance_class(5), 'high')
        self.assertEqual(performance_class(4), 'medium')
        self.assertEqual(performance_class(3), 'medium')
        self.assertEqual(performance_class(2), 'low')
        self.assertEqual(performance_class(1), 'low')


class TestPrintSummary(unittest.TestCase):
    def test_failure_names_the_stage_that_stopped(self):
        result = ProcessingResult(
            stage=PipelineStage.FAILED,
            size_spec=SIZES.get('one-inch'),
            paper_spec=PAPERS.get('6-inch'),
            dpi=300,
            warnings=['File size exceeds 10MB.'],
            error=FaceDetectionError(FaceDetectionError.NO_FACE, 'No face detected'),
            failed_stage=PipelineStage.LOCATE_FACE,
        )
        out = io.StringIO()
        with redirect_stdout(out):
            print_summary(result, {})
        text = out.getvalue()
        self.assertIn('FAILED at locate-face: No face detected', text)
        self.assertNotIn('FAILED at failed', text)
        self.assertIn('File size exceeds 10MB.', text)


class TestFaceDetector(unittest.TestCase):
    def test_not_ready_before_load(self):
        detector = FaceDetector()
        self.assertFalse(detector.is_ready)
        with self.assertRaises(RuntimeError):
            detector.detect_sync(Image.new('RGB', (8, 8)))

    def test_prepare_keeps_small_images(self):
        rgb, scale = FaceDetector(max_side=100)._prepare(Image.new('RGB', (80, 60)))
        self.assertEqual(scale, 1.0)
        self.assertEqual(rgb.shape, (60, 80, 3))

    def test_prepare_downscales_long_side(self):
        rgb, scale = FaceDetector(max_side=100)._prepare(Image.new('RGBA', (400, 200)))
        self.assertAlmostEqual(scale, 0.25)
        self.assertEqual(rgb.shape, (50, 100, 3))


if __name__ == '__main__':
    unittest.main()
