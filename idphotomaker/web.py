#!/usr/bin/env python3
"""
ID Photo Maker - Web Interface
Flask-based JSON API for ID photo processing
"""

import os
import base64
import asyncio
import logging
import threading
from pathlib import Path
from typing import Optional

from flask import Flask, request, jsonify

from .config import (
    DPI, DPI_THRESHOLD, MAX_FILE_SIZE, DEFAULT_SIZE, DEFAULT_PAPER, DEFAULT_BACKGROUND,
    BACKGROUND_COLORS, SIZES, PAPERS, get_size_list, get_paper_list,
)
from .errors import FaceDetectionError, MattingError, ResolutionError
from .layout import Margins, calculate_layout, can_fit_photo, validate_margins
from .processor import ProcessingPipeline
from .raster import encode_png
from .utils import GPUInfo

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.absolute()
LOG_DIR = PROJECT_ROOT / 'logs'

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    os.makedirs(LOG_DIR, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(LOG_DIR / 'idphotomaker.log'),
            logging.StreamHandler(),
        ],
    )

# =============================================================================
# FLASK APP
# =============================================================================

app = Flask(__name__)
# Uploads above MAX_FILE_SIZE are scaled down, so accept some headroom
app.config['MAX_CONTENT_LENGTH'] = 32 * 1024 * 1024  # 32MB

# =============================================================================
# PIPELINE (single instance)
# =============================================================================

_pipeline: Optional[ProcessingPipeline] = None
_pipeline_lock = threading.Lock()


def _get_pipeline() -> ProcessingPipeline:
    global _pipeline
    if _pipeline is None:
        with _pipeline_lock:
            if _pipeline is None:
                logger.info("Creating ProcessingPipeline instance...")
                pipeline = ProcessingPipeline(max_file_size=MAX_FILE_SIZE)
                pipeline.load_models()
                _pipeline = pipeline
    return _pipeline


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.errorhandler(413)
def request_entity_too_large(error):
    return jsonify({
        'error': 'File too large. Maximum upload size is 32MB.',
        'error_type': 'file_too_large',
    }), 413


@app.errorhandler(500)
def internal_server_error(error):
    logger.error(f"Internal server error: {error}")
    return jsonify({
        'error': 'Internal server error',
        'error_type': 'server_error',
    }), 500


# =============================================================================
# HELPERS
# =============================================================================

def _margins_from(values) -> Margins:
    """Margins from request args/form; missing sides are zero."""
    return Margins(
        top=float(values.get('top', 0)),
        bottom=float(values.get('bottom', 0)),
        left=float(values.get('left', 0)),
        right=float(values.get('right', 0)),
    )


def _png_base64(img) -> str:
    return base64.b64encode(encode_png(img, DPI)).decode('ascii')


def _status_for(error) -> int:
    if isinstance(error, FaceDetectionError) and error.code == FaceDetectionError.MODEL_NOT_READY:
        return 503
    if isinstance(error, (FaceDetectionError, ResolutionError)):
        return 422
    if isinstance(error, MattingError):
        return 503
    if error.kind == 'processing':
        return 500
    return 400


# =============================================================================
# ROUTES
# =============================================================================

@app.route('/api/sizes')
def get_sizes():
    return jsonify(get_size_list())


@app.route('/api/papers')
def get_papers():
    return jsonify(get_paper_list())


@app.route('/api/colors')
def get_colors():
    return jsonify(BACKGROUND_COLORS)


@app.route('/api/layout')
def layout_preview():
    paper_key = request.args.get('paper', DEFAULT_PAPER)
    size_key = request.args.get('size', DEFAULT_SIZE)
    if paper_key not in PAPERS or size_key not in SIZES:
        return jsonify({
            'error': 'Invalid paper or photo size',
            'error_type': 'validation_error',
            'error_details': f"Papers: {', '.join(PAPERS.keys())}; sizes: {', '.join(SIZES.keys())}",
        }), 400

    try:
        margins = _margins_from(request.args)
    except ValueError:
        return jsonify({'error': 'Margins must be numbers', 'error_type': 'validation_error'}), 400

    plan = calculate_layout(paper_key, size_key, DPI, margins)
    return jsonify({
        'layout': plan.to_dict(),
        'margin_errors': validate_margins(margins, paper_key),
        'fit_error': can_fit_photo(paper_key, size_key, margins),
    })


@app.route('/api/process', methods=['POST'])
def process():
    logger.info("=== New photo processing request ===")

    if 'file' not in request.files:
        return jsonify({'error': 'No file uploaded', 'error_type': 'validation_error'}), 400
    file = request.files['file']
    if file.filename == '':
        return jsonify({'error': 'No file selected', 'error_type': 'validation_error'}), 400

    size_key = request.form.get('size', DEFAULT_SIZE)
    paper_key = request.form.get('paper', DEFAULT_PAPER)
    if size_key not in SIZES or paper_key not in PAPERS:
        return jsonify({
            'error': 'Invalid photo size or paper',
            'error_type': 'validation_error',
            'error_details': f"Sizes: {', '.join(SIZES.keys())}; papers: {', '.join(PAPERS.keys())}",
        }), 400

    try:
        margins = _margins_from(request.form)
        dpi = int(request.form.get('dpi', DPI_THRESHOLD))
    except ValueError:
        return jsonify({'error': 'Margins and DPI must be numbers', 'error_type': 'validation_error'}), 400

    color = request.form.get('color', DEFAULT_BACKGROUND)
    color = BACKGROUND_COLORS.get(color, color)

    data = file.read()
    try:
        result = asyncio.run(_get_pipeline().run(
            data, size_key, color, paper_key, margins=margins, dpi_threshold=dpi,
        ))
    except ValueError as e:
        return jsonify({'error': str(e), 'error_type': 'validation_error'}), 400

    response_data = {
        'success': result.succeeded,
        'stage': result.stage.value,
        'warnings': result.warnings,
        'size': result.size_spec.key,
        'paper': result.paper_spec.key,
    }
    if result.crop_area is not None:
        response_data['crop_area'] = result.crop_area.to_dict()
    if result.dpi_result is not None:
        response_data['crop_dpi'] = round(result.dpi_result.min_dpi)

    if not result.succeeded:
        response_data['failed_stage'] = result.failed_stage.value
        response_data['error'] = result.error.to_dict()
        return jsonify(response_data), _status_for(result.error)

    response_data.update({
        'layout': result.layout.to_dict(),
        'photo_size': list(result.photo_preview.size),
        'photo_png': _png_base64(result.photo_preview),
        'sheet_png': _png_base64(result.sheet_preview),
        'matting_time_ms': round(result.matting.processing_time_ms),
        'quality_tier': result.matting.quality_tier,
    })
    logger.info(f"Processing successful: {size_key} on {paper_key}")
    return jsonify(response_data)


@app.route('/api/health')
def health_check():
    pipeline = _get_pipeline()
    return jsonify({
        'status': 'ok',
        'face_detector_ready': pipeline.face_detector.is_ready,
        'matting_ready': pipeline.matting_model.is_ready,
        'device': GPUInfo.get_info(),
    })


@app.route('/api/reinit', methods=['POST'])
def force_reinit():
    logger.info("Manual matting session reinitialization requested")
    try:
        pipeline = _get_pipeline()
        pipeline.reinitialize_matting()
        return jsonify({'success': True, 'message': 'Session reinitialized'})
    except Exception as e:
        logger.error(f"Reinitialization failed: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# =============================================================================
# SERVER
# =============================================================================

def run_server(host='127.0.0.1', port=8080, debug=False):
    configure_logging()
    logger.info("=" * 70)
    logger.info("ID Photo Maker Web Interface")
    logger.info("=" * 70)
    GPUInfo.print_info()
    _get_pipeline()
    logger.info(f"Log file: {LOG_DIR / 'idphotomaker.log'}")
    logger.info(f"Starting server at http://{host}:{port}")
    logger.info("=" * 70)
    app.run(host=host, port=port, debug=debug)


if __name__ == '__main__':
    run_server(debug=True)
