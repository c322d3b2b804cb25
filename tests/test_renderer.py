"""Tests for renderer.py - render targets, Verovio options and SVG styling."""

import asyncio

import pytest

from abcsheet.config import EXPORT_PROFILE, PREVIEW_PROFILE, AppConfig, RenderProfile
from abcsheet.exporter import fit_for_export, image_size, render_for_export
from abcsheet.geometry import BoundingBox, parse_length
from abcsheet.measure import GeometryMeasurer
from abcsheet.notation import DEFAULT_ABC
from abcsheet.renderer import RenderError, RenderTarget, VerovioRenderer, make_responsive, style_svg
from abcsheet.session import SheetMusicSession
from abcsheet.svg import parse_svg

# Shape of Verovio output: outer pixel svg around a definition-scale svg
VEROVIO_LIKE = """<svg xmlns="http://www.w3.org/2000/svg" width="700px" height="200px" viewBox="0 0 700 200">
<svg class="definition-scale" viewBox="0 0 7000 2000">
<g class="page-margin">
<g class="pgHead"><text font-size="0px"><tspan font-size="405px">Twinkle</tspan></text></g>
<g class="system"><text font-size="300px">lyric</text></g>
</g>
</svg>
</svg>"""


class TestRenderTarget:

    def test_attach_and_find(self, sample_svg):
        target = RenderTarget(800)
        svg = target.attach(sample_svg)
        assert svg is not None
        assert target.find_svg() is svg
        assert target.width == 800

    def test_attach_without_svg(self):
        target = RenderTarget(800)
        assert target.attach('<div/>') is None
        assert target.find_svg() is None

    def test_clear(self, sample_svg):
        target = RenderTarget(800)
        target.attach(sample_svg)
        target.clear()
        assert target.find_svg() is None


class TestVerovioOptions:

    def test_export_profile(self):
        options = VerovioRenderer.verovio_options(EXPORT_PROFILE)
        # 40% zoom: one output pixel is 2.5 Verovio units
        assert options['pageWidth'] == 1850
        assert options['pageMarginTop'] == 75
        assert options['pageMarginBottom'] == 50
        assert options['pageMarginLeft'] == 50
        assert options['inputFrom'] == 'abc'
        assert options['scale'] == 40
        assert options['adjustPageHeight'] is True

    def test_container_caps_page_width(self):
        options = VerovioRenderer.verovio_options(PREVIEW_PROFILE, max_width=200)
        assert options['pageWidth'] == 500

    def test_page_fits_in_container(self):
        options = VerovioRenderer.verovio_options(PREVIEW_PROFILE, max_width=800)
        assert options['pageWidth'] == 750

    def test_scale(self):
        options = VerovioRenderer.verovio_options(RenderProfile(scale=100))
        assert options['pageWidth'] == 300
        assert options['pageMarginTop'] == 30


class TestStyleSvg:

    def test_colors(self):
        svg = parse_svg(VEROVIO_LIKE)
        style_svg(svg, RenderProfile(foreground_color='#333333'))
        assert svg['color'] == '#333333'
        assert svg['fill'] == '#333333'

    def test_title_font(self):
        svg = parse_svg(VEROVIO_LIKE)
        style_svg(svg, EXPORT_PROFILE)
        title = svg.find('text')
        assert title['font-family'] == 'Arial'
        assert title['font-weight'] == 'bold'
        # 18px at 0.1 output pixels per unit
        assert title.tspan['font-size'] == '180px'
        assert title['font-size'] == '0px'

    def test_other_text_untouched(self):
        svg = parse_svg(VEROVIO_LIKE)
        style_svg(svg, EXPORT_PROFILE)
        lyric = svg.find_all('text')[1]
        assert lyric['font-size'] == '300px'
        assert lyric.get('font-family') is None

    def test_responsive_profile(self):
        svg = parse_svg(VEROVIO_LIKE)
        style_svg(svg, PREVIEW_PROFILE)
        assert svg['width'] == '100%'
        assert 'height' not in svg.attrs
        assert svg['viewBox'] == '0 0 700 200'

    def test_fixed_profile_keeps_size(self):
        svg = parse_svg(VEROVIO_LIKE)
        style_svg(svg, EXPORT_PROFILE)
        assert svg['width'] == '700px'
        assert svg['height'] == '200px'


class TestMakeResponsive:

    def test_adds_viewbox_from_size(self, sample_svg):
        svg = parse_svg(sample_svg)
        make_responsive(svg)
        assert svg['viewBox'] == '0 0 800 200'
        assert svg['width'] == '100%'
        assert 'height' not in svg.attrs

    def test_without_size(self):
        svg = parse_svg('<svg xmlns="http://www.w3.org/2000/svg"/>')
        make_responsive(svg)
        assert svg.get('viewBox') is None
        assert svg['width'] == '100%'


class TestVerovioRenderer:

    def test_renders_default_tune(self):
        pytest.importorskip("verovio")
        target = RenderTarget(800)
        VerovioRenderer().render(target, DEFAULT_ABC, EXPORT_PROFILE)
        svg = target.find_svg()
        assert svg is not None
        assert svg['fill'] == EXPORT_PROFILE.foreground_color

    def test_toolkit_reused(self):
        pytest.importorskip("verovio")
        renderer = VerovioRenderer()
        assert renderer._ensure_toolkit() is renderer._ensure_toolkit()


class FakeToolkit:
    """Stands in for verovio.toolkit, failing at the named call"""

    def __init__(self, fail_at=None, loads=True, pages=1, markup=VEROVIO_LIKE):
        self.fail_at = fail_at
        self.loads = loads
        self.pages = pages
        self.markup = markup

    def _call(self, name, result):
        if name == self.fail_at:
            raise RuntimeError(f"{name} blew up")
        return result

    def setOptions(self, options):
        return self._call('setOptions', None)

    def loadData(self, data):
        return self._call('loadData', self.loads)

    def getPageCount(self):
        return self._call('getPageCount', self.pages)

    def renderToSVG(self, page):
        return self._call('renderToSVG', self.markup)


def renderer_with(toolkit):
    renderer = VerovioRenderer()
    renderer._tk = toolkit
    return renderer


class TestVerovioToolkitFailures:

    @pytest.mark.parametrize('call', ['setOptions', 'loadData', 'getPageCount', 'renderToSVG'])
    def test_any_toolkit_exception_is_render_error(self, call):
        with pytest.raises(RenderError, match='blew up'):
            renderer_with(FakeToolkit(fail_at=call)).render(RenderTarget(800), DEFAULT_ABC, EXPORT_PROFILE)

    def test_load_refused(self):
        with pytest.raises(RenderError, match='could not load'):
            renderer_with(FakeToolkit(loads=False)).render(RenderTarget(800), DEFAULT_ABC, EXPORT_PROFILE)

    def test_no_pages_leaves_target_empty(self):
        target = RenderTarget(800)
        renderer_with(FakeToolkit(pages=0)).render(target, DEFAULT_ABC, EXPORT_PROFILE)
        assert target.find_svg() is None

    def test_renders_and_styles(self):
        target = RenderTarget(800)
        renderer_with(FakeToolkit()).render(target, DEFAULT_ABC, EXPORT_PROFILE)
        assert target.find_svg()['fill'] == EXPORT_PROFILE.foreground_color

    def test_session_reports_no_sheet_music(self, host):
        config = AppConfig()
        config.live_preview = False
        session = SheetMusicSession(host, renderer_with(FakeToolkit(fail_at='renderToSVG')), config)
        assert asyncio.run(session.add_to_design()) is False
        assert session.error == "No sheet music to add. Please enter ABC notation."
        assert session.is_loading is False
        assert host.uploads == []


class TestVerovioExport:

    def test_centred_title_fits_the_page(self):
        pytest.importorskip("verovio")
        config = AppConfig()
        abc = "X:1\nT:The Rather Long Title Of A Reel For Testing\nM:4/4\nL:1/8\nK:D\nABcd efga|\n"
        svg = render_for_export(VerovioRenderer(), abc, config)
        page = BoundingBox.from_viewbox(svg.get('viewBox')) or BoundingBox(
            0, 0, parse_length(svg.get('width')), parse_length(svg.get('height')))

        image = fit_for_export(svg, config, asyncio.run(GeometryMeasurer().measure(svg)))
        box = image_size(image)
        padding = config.export.padding
        assert box.x >= page.x - padding - 1
        assert box.right <= page.right + padding + 1
        assert box.width <= page.width + 2 * padding + 1
