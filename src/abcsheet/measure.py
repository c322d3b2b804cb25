"""
Content measurement for export images

Two measurers share one interface:

- BrowserMeasurer lays the SVG out in headless Chromium (Playwright) and
  asks it for getBBox(), so text extents come from real font metrics.
- GeometryMeasurer walks the SVG tree (geometry.measure_bbox) and estimates
  text extents. It needs no browser.

Both return the box in the root <svg>'s user space, or None when nothing is
drawn.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from bs4 import Tag

from .config import AppConfig
from .geometry import BoundingBox, measure_bbox
from .renderer import RenderError
from .svg import serialize_svg

logger = logging.getLogger(__name__)

MEASURE_PAGE = '<!DOCTYPE html><html><body style="margin: 0"></body></html>'

# Parse the markup as XML so namespaces survive, then measure it in place
BBOX_SCRIPT = """(markup) => {
  const parsed = new DOMParser().parseFromString(markup, 'image/svg+xml');
  if (parsed.getElementsByTagName('parsererror').length) {
    throw new Error('SVG markup could not be parsed');
  }
  const svg = document.importNode(parsed.documentElement, true);
  document.body.appendChild(svg);
  const box = svg.getBBox();
  svg.remove();
  return [box.x, box.y, box.width, box.height];
}"""

class ContentMeasurer(ABC):
    """Finds the drawn extent of a rendered SVG"""

    @abstractmethod
    async def measure(self, svg: Tag) -> Optional[BoundingBox]:
        """Content box of ``svg`` in its own user space

        Raises:
            RenderError: if the SVG can't be measured
        """

    async def aclose(self) -> None:
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()


class GeometryMeasurer(ContentMeasurer):
    async def measure(self, svg: Tag) -> Optional[BoundingBox]:
        return measure_bbox(svg)


class BrowserMeasurer(ContentMeasurer):
    """
    Measure with Chromium's getBBox().

    The browser is launched on first use and reused until aclose().
    """

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self._playwright = None
        self._browser = None

    async def _get_browser(self):
        if self._browser is None:
            from playwright.async_api import async_playwright
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True)
            logger.debug("Launched Chromium for SVG measurement")
        return self._browser

    async def measure(self, svg: Tag) -> Optional[BoundingBox]:
        from playwright.async_api import Error as PlaywrightError

        try:
            browser = await self._get_browser()
            page = await browser.new_page()
            try:
                page.set_default_timeout(self.timeout * 1000)
                await page.set_content(MEASURE_PAGE)
                x, y, width, height = await page.evaluate(BBOX_SCRIPT, serialize_svg(svg))
            finally:
                await page.close()
        except PlaywrightError as e:
            raise RenderError(f"Browser measurement failed: {e}") from e

        if width <= 0 and height <= 0:
            return None
        return BoundingBox(x, y, width, height)

    async def aclose(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None


def make_measurer(config: AppConfig) -> ContentMeasurer:
    """Measurer selected by ``export.measure``"""
    if config.export.measure == 'geometry':
        return GeometryMeasurer()
    return BrowserMeasurer()
