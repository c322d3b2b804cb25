"""Tests for exporter.py - render, measure, fit and encode for export."""

import asyncio
import base64

import pytest
from conftest import FakeRenderer

from abcsheet.config import AppConfig
from abcsheet.exporter import (
    export_data_url,
    export_image,
    fit_for_export,
    image_size,
    measure_for_export,
    render_for_export,
)
from abcsheet.geometry import BoundingBox
from abcsheet.measure import GeometryMeasurer
from abcsheet.renderer import RenderError
from abcsheet.svg import DATA_URL_PREFIX, parse_svg

TUNE = "X:1\nK:C\nCDEF|"


def geometry_box(svg):
    return asyncio.run(measure_for_export(svg, GeometryMeasurer()))


class TestRenderForExport:

    def test_uses_export_container_and_profile(self, renderer):
        config = AppConfig()
        config.export.container_width = 640
        svg = render_for_export(renderer, TUNE, config)
        assert svg.name == 'svg'
        width, _, profile = renderer.calls[0]
        assert width == 640
        assert profile is config.export_profile

    def test_no_svg(self):
        with pytest.raises(RenderError):
            render_for_export(FakeRenderer(markup=None), TUNE, AppConfig())

    def test_renderer_error_propagates(self, failing_renderer):
        with pytest.raises(RenderError):
            render_for_export(failing_renderer, TUNE, AppConfig())


class TestFitForExport:

    def test_nothing_measured(self, sample_svg):
        with pytest.raises(RenderError):
            fit_for_export(parse_svg(sample_svg), AppConfig(), None)

    def test_empty_image(self):
        svg = parse_svg('<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"><g/></svg>')
        with pytest.raises(RenderError):
            fit_for_export(svg, AppConfig(), geometry_box(svg))

    def test_uses_given_box(self, sample_svg):
        image = fit_for_export(parse_svg(sample_svg), AppConfig(), BoundingBox(0, 0, 100, 50))
        assert image_size(image) == BoundingBox(-20, -20, 140, 90)

    def test_padding_from_config(self, sample_svg):
        config = AppConfig()
        box = geometry_box(parse_svg(sample_svg))
        narrow = image_size(fit_for_export(parse_svg(sample_svg), config, box))
        config.export.padding = 0
        tight = image_size(fit_for_export(parse_svg(sample_svg), config, box))
        assert narrow.width == tight.width + 40
        assert narrow.height == tight.height + 40

    def test_background_from_config(self, sample_svg):
        config = AppConfig()
        config.export.background = '#fafafa'
        svg = parse_svg(sample_svg)
        image = fit_for_export(svg, config, geometry_box(svg))
        assert image.find('rect')['fill'] == '#fafafa'


class TestExportImage:

    def test_decodes_to_fitted_image(self, renderer):
        image = asyncio.run(export_image(renderer, TUNE, AppConfig(), GeometryMeasurer()))
        url = export_data_url(image)
        assert url.startswith(DATA_URL_PREFIX)
        markup = base64.b64decode(url[len(DATA_URL_PREFIX):]).decode('utf-8')
        assert BoundingBox.from_viewbox(parse_svg(markup)['viewBox']) == image_size(image)

    def test_nothing_drawn(self):
        renderer = FakeRenderer(markup='<svg xmlns="http://www.w3.org/2000/svg" width="800" height="10"/>')
        with pytest.raises(RenderError):
            asyncio.run(export_image(renderer, TUNE, AppConfig(), GeometryMeasurer()))
