"""
abcsheet - ABC notation to sheet music images for design editors

Modules:
- notation: input normalization and the "has notes" check
- renderer: ABC -> SVG rendering (Verovio)
- geometry / svg: content measurement, viewBox fitting, data URLs
- measure: content box in headless Chromium or from the SVG tree
- host: design host capabilities (upload, insert)
- session: panel state and the "Add to design" flow
"""

from .config import AppConfig, RenderProfile, load_config
from .exporter import ExportStage, export_image
from .geometry import BoundingBox, measure_bbox
from .host import (
    ADD_ELEMENT_AT_CURSOR,
    ADD_ELEMENT_AT_POINT,
    AltText,
    DesignHost,
    HostError,
    HttpDesignHost,
    ImageElement,
    ImageUpload,
    UploadResult,
)
from .measure import BrowserMeasurer, ContentMeasurer, GeometryMeasurer, make_measurer
from .messages import Messages
from .notation import DEFAULT_ABC, has_notation, normalize_abc_input
from .renderer import NotationRenderer, RenderError, RenderTarget, VerovioRenderer
from .session import SheetMusicSession
from .svg import build_export_svg, encode_data_url

__version__ = "0.1.0"

__all__ = [
    # Notation
    'DEFAULT_ABC',
    'normalize_abc_input',
    'has_notation',
    # Rendering
    'NotationRenderer',
    'RenderError',
    'RenderTarget',
    'VerovioRenderer',
    # Export
    'BoundingBox',
    'measure_bbox',
    'build_export_svg',
    'encode_data_url',
    'export_image',
    'ContentMeasurer',
    'BrowserMeasurer',
    'GeometryMeasurer',
    'make_measurer',
    'ExportStage',
    # Host
    'DesignHost',
    'HttpDesignHost',
    'HostError',
    'ImageUpload',
    'UploadResult',
    'ImageElement',
    'AltText',
    'ADD_ELEMENT_AT_POINT',
    'ADD_ELEMENT_AT_CURSOR',
    # Session
    'SheetMusicSession',
    'AppConfig',
    'RenderProfile',
    'load_config',
    'Messages',
]
