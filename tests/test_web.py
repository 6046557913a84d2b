import io
import time
import base64
import threading
import unittest
from unittest import mock

from PIL import Image

from idphotomaker import web
from idphotomaker.background import SessionError
from idphotomaker.processor import ProcessingPipeline

from tests._fakes import FakeFaceDetector, FakeMatting, png_bytes


class WebTestCase(unittest.TestCase):
    def setUp(self):
        self.detector = FakeFaceDetector()
        self.matting = FakeMatting()
        self._saved = web._pipeline
        web._pipeline = ProcessingPipeline(face_detector=self.detector, matting_model=self.matting)
        web.app.config['TESTING'] = True
        self.client = web.app.test_client()

    def tearDown(self):
        web._pipeline = self._saved

    def upload(self, data=None, **form):
        form['file'] = (io.BytesIO(data if data is not None else png_bytes()), 'photo.png')
        return self.client.post('/api/process', data=form, content_type='multipart/form-data')


class TestCatalogRoutes(WebTestCase):
    def test_sizes(self):
        sizes = self.client.get('/api/sizes').get_json()
        self.assertEqual([s['key'] for s in sizes], ['one-inch', 'two-inch', 'three-inch'])

    def test_papers(self):
        papers = self.client.get('/api/papers').get_json()
        self.assertEqual(papers[1]['width_px'], 2480)

    def test_colors(self):
        self.assertEqual(self.client.get('/api/colors').get_json()['white'], '#FFFFFF')

    def test_layout(self):
        data = self.client.get('/api/layout?paper=6-inch&size=one-inch').get_json()
        self.assertEqual(data['layout']['total_count'], 9)
        self.assertEqual(data['margin_errors'], {})
        self.assertIsNone(data['fit_error'])

    def test_layout_with_margins(self):
        data = self.client.get('/api/layout?paper=6-inch&size=three-inch&left=40&right=40&top=-1').get_json()
        self.assertIn('top', data['margin_errors'])
        self.assertIsNotNone(data['fit_error'])

    def test_layout_bad_input(self):
        self.assertEqual(self.client.get('/api/layout?paper=letter').status_code, 400)
        self.assertEqual(self.client.get('/api/layout?top=abc').status_code, 400)


class TestProcessRoute(WebTestCase):
    def test_success(self):
        response = self.upload(size='one-inch', paper='6-inch', color='blue')
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertTrue(data['success'])
        self.assertEqual(data['stage'], 'done')
        self.assertEqual(data['photo_size'], [295, 413])
        self.assertEqual(data['layout']['total_count'], 9)
        with Image.open(io.BytesIO(base64.b64decode(data['sheet_png']))) as sheet:
            self.assertEqual(sheet.size, (1200, 1800))

    def test_no_face(self):
        self.detector.faces = []
        response = self.upload()
        self.assertEqual(response.status_code, 422)
        data = response.get_json()
        self.assertFalse(data['success'])
        self.assertEqual(data['failed_stage'], 'locate-face')
        self.assertEqual(data['error']['code'], 'no-face')
        self.assertEqual(self.matting.calls, 0)

    def test_invalid_file(self):
        response = self.upload(b'garbage')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error']['type'], 'validation')

    def test_missing_file(self):
        response = self.client.post('/api/process', data={}, content_type='multipart/form-data')
        self.assertEqual(response.status_code, 400)

    def test_unknown_size(self):
        self.assertEqual(self.upload(size='passport').status_code, 400)

    def test_bad_color(self):
        self.assertEqual(self.upload(color='not-a-color').status_code, 400)

    def test_matting_not_ready_is_unavailable(self):
        self.matting.ready = False
        response = self.upload()
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()['error']['type'], 'matting')

    def test_matting_crash_is_unavailable(self):
        self.matting.error = SessionError('session lost')
        self.assertEqual(self.upload().status_code, 503)

    def test_detector_not_ready_is_unavailable(self):
        self.detector.ready = False
        response = self.upload()
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()['error']['code'], 'model-not-ready')


class TestServiceRoutes(WebTestCase):
    def test_health(self):
        data = self.client.get('/api/health').get_json()
        self.assertTrue(data['face_detector_ready'])
        self.assertTrue(data['matting_ready'])
        self.assertIn('available', data['device'])

    def test_reinit(self):
        data = self.client.post('/api/reinit').get_json()
        self.assertTrue(data['success'])
        self.assertEqual(self.matting.reinits, 1)


class _SlowPipeline:
    created = 0

    def __init__(self, **kwargs):
        type(self).created += 1

    def load_models(self):
        time.sleep(0.05)


class TestPipelineSingleton(unittest.TestCase):
    def setUp(self):
        self._saved = web._pipeline
        web._pipeline = None
        _SlowPipeline.created = 0

    def tearDown(self):
        web._pipeline = self._saved

    def test_concurrent_first_requests_load_once(self):
        seen = []
        with mock.patch.object(web, 'ProcessingPipeline', _SlowPipeline):
            threads = [threading.Thread(target=lambda: seen.append(web._get_pipeline())) for _ in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
        self.assertEqual(_SlowPipeline.created, 1)
        self.assertEqual(len({id(p) for p in seen}), 1)


if __name__ == '__main__':
    unittest.main()
