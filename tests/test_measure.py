"""Tests for measure.py - geometry and browser content measurement."""

import asyncio

import pytest

from abcsheet.config import AppConfig
from abcsheet.geometry import BoundingBox
from abcsheet.measure import BrowserMeasurer, GeometryMeasurer, make_measurer
from abcsheet.svg import parse_svg


def svg_of(body, attrs='width="400" height="200"'):
    return parse_svg(f'<svg xmlns="http://www.w3.org/2000/svg" {attrs}>{body}</svg>')


def measure_with(measurer, svg):
    async def run():
        async with measurer:
            return await measurer.measure(svg)
    return asyncio.run(run())


@pytest.fixture(scope='module')
def chromium():
    """Skip browser tests where Playwright or its Chromium build is missing"""
    pytest.importorskip("playwright")
    from playwright.async_api import Error as PlaywrightError
    from playwright.async_api import async_playwright

    async def launch():
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            await browser.close()

    try:
        asyncio.run(launch())
    except PlaywrightError as e:
        pytest.skip(f"Chromium not available: {e}")


class TestMakeMeasurer:

    def test_browser_by_default(self):
        assert isinstance(make_measurer(AppConfig()), BrowserMeasurer)

    def test_geometry(self):
        config = AppConfig()
        config.export.measure = 'geometry'
        assert isinstance(make_measurer(config), GeometryMeasurer)


class TestGeometryMeasurer:

    def test_rect(self):
        box = measure_with(GeometryMeasurer(), svg_of('<rect x="10" y="20" width="30" height="40"/>'))
        assert box == BoundingBox(10, 20, 30, 40)

    def test_nothing_drawn(self):
        assert measure_with(GeometryMeasurer(), svg_of('<g/>')) is None


@pytest.mark.usefixtures('chromium')
class TestBrowserMeasurer:

    def test_rect(self):
        box = measure_with(BrowserMeasurer(), svg_of('<rect x="10" y="20" width="30" height="40"/>'))
        assert box.x == pytest.approx(10)
        assert box.y == pytest.approx(20)
        assert box.width == pytest.approx(30)
        assert box.height == pytest.approx(40)

    def test_box_in_viewbox_units(self):
        svg = svg_of('<rect x="500" y="500" width="100" height="100"/>',
                     attrs='width="10" height="10" viewBox="0 0 1000 1000"')
        box = measure_with(BrowserMeasurer(), svg)
        assert box.x == pytest.approx(500)
        assert box.width == pytest.approx(100)

    def test_centred_text_straddles_anchor(self):
        svg = svg_of('<text y="100" font-size="0"><tspan x="200" text-anchor="middle">'
                     '<tspan font-size="20">A centred title</tspan></tspan></text>')
        box = measure_with(BrowserMeasurer(), svg)
        assert box.x < 200 < box.right
        assert box.x + box.width / 2 == pytest.approx(200, abs=2)

    def test_nothing_drawn(self):
        assert measure_with(BrowserMeasurer(), svg_of('<g/>')) is None

    def test_browser_reused_until_closed(self):
        measurer = BrowserMeasurer()

        async def run():
            await measurer.measure(svg_of('<rect width="1" height="1"/>'))
            first = measurer._browser
            await measurer.measure(svg_of('<rect width="2" height="2"/>'))
            second = measurer._browser
            await measurer.aclose()
            return first, second

        first, second = asyncio.run(run())
        assert first is not None and first is second
        assert measurer._browser is None
