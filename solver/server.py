"""
Captcha Solver HTTP Server

Exposes the slide solvers, and the recognizer/detector when sessions are
injected, over JSON with base64-encoded images.

Run with: uvicorn solver.server:app --host 127.0.0.1 --port 8000
"""

import base64
import binascii
import logging
import os
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .common.colors import HSVRange
from .common.errors import SolverError
from .config import DEFAULT_HOST, DEFAULT_PORT, env_int
from .detection import ObjectDetector
from .recognition import ClassificationResult, TextRecognizer
from .slide import slide_comparison, slide_match

logger = logging.getLogger(__name__)


class SlidePayload(BaseModel):
    target: str
    background: str
    simple_target: bool = False


class ImagePayload(BaseModel):
    image: str
    png_fix: bool = False
    probability: bool = False
    colors: Optional[List[str]] = None
    color_ranges: Optional[Dict[str, List[int]]] = None


def _b64decode(value: str, field_name: str) -> bytes:
    if ',' in value and value.startswith('data:'):
        value = value.split(',', 1)[1]
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"'{field_name}' is not valid base64: {e}")


def _color_ranges(raw: Optional[Dict[str, List[int]]]) -> Optional[Dict[str, HSVRange]]:
    if not raw:
        return None
    ranges = {}
    for name, bounds in raw.items():
        if len(bounds) != 6:
            raise HTTPException(status_code=400, detail=f"color range '{name}' needs 6 values")
        if any(v < 0 or v > 255 for v in bounds):
            raise HTTPException(status_code=400, detail=f"color range '{name}' values must be within 0-255")
        ranges[name] = HSVRange(*bounds)
    return ranges


def _solver_error(e: SolverError) -> HTTPException:
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    logger.error(f"Solver error: {e}")
    return HTTPException(status_code=500, detail=f'Solver error: {str(e)}')


def create_app(recognizer: Optional[TextRecognizer] = None,
               detector: Optional[ObjectDetector] = None) -> FastAPI:
    app = FastAPI(title='Captcha Solver Server',
                  description='Text recognition, target detection and slide puzzle solving',
                  version='1.0')

    @app.get('/health')
    def health_check():
        return {'status': 'healthy', 'version': '1.0',
                'recognition': recognizer is not None, 'detection': detector is not None}

    @app.post('/slide_match')
    def slide_match_endpoint(payload: SlidePayload):
        target = _b64decode(payload.target, 'target')
        background = _b64decode(payload.background, 'background')
        try:
            result = slide_match(target, background, simple_target=payload.simple_target)
        except SolverError as e:
            raise _solver_error(e)
        return result.to_dict()

    @app.post('/slide_comparison')
    def slide_comparison_endpoint(payload: SlidePayload):
        target = _b64decode(payload.target, 'target')
        background = _b64decode(payload.background, 'background')
        try:
            result = slide_comparison(target, background)
        except SolverError as e:
            raise _solver_error(e)
        return result.to_dict()

    @app.post('/classification')
    def classification_endpoint(payload: ImagePayload):
        if recognizer is None:
            raise HTTPException(status_code=503, detail='No recognition session configured')
        image = _b64decode(payload.image, 'image')
        try:
            result = recognizer.classification(image, png_fix=payload.png_fix, colors=payload.colors,
                                               color_ranges=_color_ranges(payload.color_ranges),
                                               probability=payload.probability)
        except SolverError as e:
            raise _solver_error(e)
        if isinstance(result, ClassificationResult):
            return {'text': result.text, 'charsets': result.charsets, 'probability': result.probability}
        return {'text': result}

    @app.post('/detection')
    def detection_endpoint(payload: ImagePayload):
        if detector is None:
            raise HTTPException(status_code=503, detail='No detection session configured')
        image = _b64decode(payload.image, 'image')
        try:
            boxes = detector.detection(image)
        except SolverError as e:
            raise _solver_error(e)
        return {'boxes': [box.to_list() for box in boxes], 'total': len(boxes)}

    return app


app = create_app()


if __name__ == '__main__':
    import uvicorn
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    uvicorn.run(app, host=os.environ.get('HOST', DEFAULT_HOST), port=env_int('PORT', DEFAULT_PORT))
