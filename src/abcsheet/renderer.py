"""
Notation rendering - ABC text to SVG inside a detached render target

The renderer contract mirrors a browser notation library: it is handed a
container, the notation and a layout profile, and it fills the container
with an <svg> or raises RenderError.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from bs4 import BeautifulSoup, Tag

from .config import RenderProfile
from .geometry import BoundingBox, format_number, parse_length

logger = logging.getLogger(__name__)


class RenderError(Exception):
    """The notation could not be rendered"""


class RenderTarget:
    """A detached, fixed-width container the renderer draws into"""

    def __init__(self, width: int):
        self.width = width
        self.document = BeautifulSoup(f'<div style="width: {width}px"/>', 'xml')
        self.root = self.document.div

    def clear(self) -> None:
        self.root.clear()

    def attach(self, markup: str) -> Optional[Tag]:
        """Parse SVG markup and append its root element to the container"""
        svg = BeautifulSoup(markup, 'xml').find('svg')
        if svg is not None:
            self.root.append(svg.extract())
        return svg

    def find_svg(self) -> Optional[Tag]:
        return self.root.find('svg')


class NotationRenderer(ABC):
    """Renders ABC notation into a RenderTarget"""

    @abstractmethod
    def render(self, target: RenderTarget, abc: str, profile: RenderProfile) -> None:
        """Replace the target's content with the rendered notation

        Raises:
            RenderError: if the notation can't be rendered
        """


class VerovioRenderer(NotationRenderer):
    """
    Render ABC notation with Verovio.

    The toolkit is created lazily on first use and reused. Profile sizes are
    in output pixels; Verovio's page dimensions are in its own units, which
    become pixels after scaling by ``profile.scale`` percent.
    """

    def __init__(self):
        self._tk = None

    def _ensure_toolkit(self):
        if self._tk is None:
            import verovio

            self._tk = verovio.toolkit()
        return self._tk

    @staticmethod
    def verovio_options(profile: RenderProfile, max_width: Optional[int] = None) -> dict:
        """Translate a render profile into Verovio toolkit options"""
        units = 100.0 / profile.scale
        page_width = profile.staff_width + profile.padding_left + profile.padding_right
        if max_width is not None:
            page_width = min(page_width, max_width)
        return {
            'inputFrom': 'abc',
            'scale': profile.scale,
            'pageWidth': round(page_width * units),
            'pageMarginTop': round(profile.padding_top * units),
            'pageMarginBottom': round(profile.padding_bottom * units),
            'pageMarginLeft': round(profile.padding_left * units),
            'pageMarginRight': round(profile.padding_right * units),
            'adjustPageHeight': True,
            'breaks': 'auto',
            'footer': 'none',
            'svgViewBox': True,
        }

    def render(self, target: RenderTarget, abc: str, profile: RenderProfile) -> None:
        target.clear()
        tk = self._ensure_toolkit()

        # The toolkit raises whatever its bindings raise; all of it is a render failure
        try:
            tk.setOptions(self.verovio_options(profile, target.width))
            if not tk.loadData(abc):
                raise RenderError("Verovio could not load the ABC notation")
            markup = tk.renderToSVG(1) if tk.getPageCount() > 0 else None
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Verovio failed on the notation: {e}") from e

        if not markup or not markup.strip():
            logger.debug("Verovio produced no page")
            return

        svg = target.attach(markup)
        if svg is not None:
            style_svg(svg, profile)


def style_svg(svg: Tag, profile: RenderProfile) -> None:
    """Apply colour, title font and sizing mode from the profile to rendered SVG"""
    svg['color'] = profile.foreground_color
    svg['fill'] = profile.foreground_color

    px_per_unit = _pixels_per_unit(svg)
    heads = svg.find_all(lambda tag: tag.name == 'g' and _has_class(tag, 'pgHead'))
    for title in [text for head in heads for text in head.find_all('text')]:
        title['font-family'] = profile.title_font_family
        title['font-weight'] = profile.title_font_weight
        if px_per_unit:
            size = format_number(profile.title_font_size / px_per_unit)
            for run in [title] + title.find_all('tspan'):
                if run.get('font-size') and run['font-size'] not in ('0', '0px'):
                    run['font-size'] = f'{size}px'

    if profile.responsive:
        make_responsive(svg)


def make_responsive(svg: Tag) -> None:
    """Let the SVG scale with its container instead of a fixed pixel size"""
    if svg.get('viewBox') is None:
        width = parse_length(svg.get('width'))
        height = parse_length(svg.get('height'))
        if width and height:
            svg['viewBox'] = f'0 0 {format_number(width)} {format_number(height)}'
    svg['width'] = '100%'
    if 'height' in svg.attrs:
        del svg['height']


def _has_class(tag: Tag, name: str) -> bool:
    return name in (tag.get('class') or '').split()


def _pixels_per_unit(svg: Tag) -> Optional[float]:
    """Output pixels per unit of the inner definition-scale coordinate system"""
    inner = svg.find(lambda tag: tag.name == 'svg' and _has_class(tag, 'definition-scale'))
    if inner is None:
        return None
    inner_box = BoundingBox.from_viewbox(inner.get('viewBox'))
    outer_box = BoundingBox.from_viewbox(svg.get('viewBox'))
    outer_width = outer_box.width if outer_box else parse_length(svg.get('width'))
    if not inner_box or not inner_box.width or not outer_width:
        return None
    return outer_width / inner_box.width
