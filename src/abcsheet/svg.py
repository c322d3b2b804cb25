"""
SVG post-processing for exported sheet music

Takes the SVG the renderer produced and turns it into a self-contained
image: the viewBox is fitted to the real content plus padding, an opaque
background is put behind everything, and the markup is packed into a
base64 data URL.
"""

import base64
import copy
from typing import Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .geometry import BoundingBox, format_number, measure_bbox

SVG_NS = 'http://www.w3.org/2000/svg'
SVG_MIME_TYPE = 'image/svg+xml'
DATA_URL_PREFIX = f'data:{SVG_MIME_TYPE};base64,'

EXPORT_PADDING = 20
BACKGROUND_FILL = '#ffffff'


class EmptyImageError(ValueError):
    """The SVG has no measurable content"""


def parse_svg(markup: str) -> Tag:
    """Parse SVG markup and return its root <svg> element"""
    soup = BeautifulSoup(markup, 'xml')
    svg = soup.find('svg')
    if svg is None:
        raise ValueError('markup contains no <svg> element')
    return svg


def clone_svg(svg: Tag) -> Tag:
    """Deep copy of an SVG element, detached from its document"""
    return copy.copy(svg)


def fit_to_content(svg: Tag, bbox: BoundingBox, padding: float = EXPORT_PADDING) -> BoundingBox:
    """Rewrite width, height and viewBox to ``bbox`` grown by ``padding`` on every side"""
    box = bbox.padded(padding)
    svg['width'] = format_number(box.width)
    svg['height'] = format_number(box.height)
    svg['viewBox'] = box.to_viewbox()
    return box


def add_background(svg: Tag, box: BoundingBox, fill: str = BACKGROUND_FILL) -> Tag:
    """Insert an opaque rectangle covering ``box`` as the first child"""
    builder = BeautifulSoup('', 'xml')
    rect = builder.new_tag('rect', attrs={
        'x': format_number(box.x),
        'y': format_number(box.y),
        'width': format_number(box.width),
        'height': format_number(box.height),
        'fill': fill,
    })
    svg.insert(0, rect)
    return rect


def build_export_svg(svg: Tag, padding: float = EXPORT_PADDING,
                     background: str = BACKGROUND_FILL,
                     bbox: Optional[BoundingBox] = None) -> Tuple[Tag, BoundingBox]:
    """
    Produce the export image from a rendered SVG.

    The rendered element is left untouched; the returned clone carries the
    fitted dimensions and the background. ``bbox`` is the content box when it
    was measured elsewhere (in a browser); otherwise it is measured here.
    Raises EmptyImageError when the SVG draws nothing.
    """
    if bbox is None:
        bbox = measure_bbox(svg)
    if bbox is None:
        raise EmptyImageError('rendered SVG has no visible content')

    image = clone_svg(svg)
    if image.get('xmlns') is None:
        image['xmlns'] = SVG_NS
    box = fit_to_content(image, bbox, padding)
    add_background(image, box, background)
    return image, box


def serialize_svg(svg: Tag) -> str:
    return str(svg)


def encode_data_url(markup: str) -> str:
    """Base64 data URL for SVG markup; any Unicode text survives the trip"""
    encoded = base64.b64encode(markup.encode('utf-8')).decode('ascii')
    return DATA_URL_PREFIX + encoded


def decode_data_url(url: str) -> Optional[str]:
    """Inverse of encode_data_url; None for anything that isn't an SVG data URL"""
    if not url.startswith(DATA_URL_PREFIX):
        return None
    return base64.b64decode(url[len(DATA_URL_PREFIX):]).decode('utf-8')
