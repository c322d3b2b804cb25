"""
Export pipeline steps: ABC text -> measured, fitted SVG -> data URL

The host calls (upload, insert) are driven by the session; this module holds
the steps that turn notation into an embeddable image.
"""

import logging
from enum import Enum
from typing import Optional

from bs4 import Tag

from .config import AppConfig
from .geometry import BoundingBox
from .measure import ContentMeasurer
from .renderer import NotationRenderer, RenderError, RenderTarget
from .svg import build_export_svg, encode_data_url, serialize_svg

logger = logging.getLogger(__name__)


class ExportStage(Enum):
    IDLE = 'idle'
    RENDERING = 'rendering'
    MEASURING = 'measuring'
    ENCODING = 'encoding'
    UPLOADING = 'uploading'
    INSERTING = 'inserting'


def render_for_export(renderer: NotationRenderer, abc: str, config: AppConfig) -> Tag:
    """Render normalized ABC off-screen with the export profile

    Raises:
        RenderError: if the renderer fails or leaves no <svg> behind
    """
    target = RenderTarget(config.export.container_width)
    renderer.render(target, abc, config.export_profile)
    svg = target.find_svg()
    if svg is None:
        raise RenderError("Renderer produced no image")
    return svg


def fit_for_export(svg: Tag, config: AppConfig, box: Optional[BoundingBox]) -> Tag:
    """Clone of ``svg`` with viewBox fitted to the measured content box and a background

    Raises:
        RenderError: if nothing was drawn (``box`` is None)
    """
    if box is None:
        raise RenderError("Rendered SVG has no visible content")
    image, fitted = build_export_svg(svg, config.export.padding, config.export.background, box)
    logger.debug("Export image fitted to viewBox %s", fitted.to_viewbox())
    return image


async def measure_for_export(svg: Tag, measurer: ContentMeasurer) -> Optional[BoundingBox]:
    box = await measurer.measure(svg)
    logger.debug("Measured content box %s", box.to_viewbox() if box else None)
    return box


def export_data_url(image: Tag) -> str:
    return encode_data_url(serialize_svg(image))


async def export_image(renderer: NotationRenderer, abc: str, config: AppConfig,
                       measurer: ContentMeasurer) -> Tag:
    """Render, measure and fit in one go (used where no host is involved)"""
    svg = render_for_export(renderer, abc, config)
    return fit_for_export(svg, config, await measure_for_export(svg, measurer))


def image_size(image: Tag) -> BoundingBox:
    """Viewbox of a fitted export image"""
    return BoundingBox.from_viewbox(image.get('viewBox'))
