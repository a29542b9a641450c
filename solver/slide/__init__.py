"""
Slide Puzzle Solvers

Two independent gap locators: Canny edges with normalized cross-correlation,
and pixel differencing with a column scan.
"""

from .canny import canny, sobel, non_max_suppression, hysteresis, gray_to_rgb
from .matching import SlideMatchResult, match_template, match_template_score, get_target, slide_match
from .comparison import SlideComparisonResult, image_difference, binarize, find_gap, slide_comparison

__all__ = [
    'canny',
    'sobel',
    'non_max_suppression',
    'hysteresis',
    'gray_to_rgb',
    'SlideMatchResult',
    'match_template',
    'match_template_score',
    'get_target',
    'slide_match',
    'SlideComparisonResult',
    'image_difference',
    'binarize',
    'find_gap',
    'slide_comparison'
]
