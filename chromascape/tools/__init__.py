from .click_distribution import generate_random_point
from .colour_segmenter import ColourRange, colour_registry
from .geometry import Point, Rectangle
from .glyph_ocr import GlyphOcr
from .template_matcher import TemplateMatcher
from .zone_mapper import ZoneMapper

__all__ = [
    "ColourRange",
    "GlyphOcr",
    "Point",
    "Rectangle",
    "TemplateMatcher",
    "ZoneMapper",
    "colour_registry",
    "generate_random_point",
]
