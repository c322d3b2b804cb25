"""
Pytest configuration and shared fixtures
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add source directory to Python path for imports
REPO_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(REPO_ROOT / "src"))

from abcsheet.host import (  # noqa: E402
    ADD_ELEMENT_AT_CURSOR,
    ADD_ELEMENT_AT_POINT,
    DesignHost,
    HostError,
    UploadResult,
)
from abcsheet.renderer import NotationRenderer, RenderError  # noqa: E402

# A rendered tune: title text above a staff drawn as a rect and a path
SAMPLE_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="800" height="200">
<text x="100" y="-5" font-size="20">Tune</text>
<rect x="50" y="40" width="300" height="100"/>
<path d="M 60 150 L 340 150"/>
</svg>"""

HEADERS_ONLY = "X:1\nT:Test\nM:4/4\nK:C\n"


class FakeRenderer(NotationRenderer):
    """Renders a fixed SVG and records what it was asked to render"""

    def __init__(self, markup=SAMPLE_SVG):
        self.markup = markup
        self.calls = []

    def render(self, target, abc, profile):
        self.calls.append((target.width, abc, profile))
        target.clear()
        if self.markup:
            target.attach(self.markup)


class FailingRenderer(NotationRenderer):
    def __init__(self):
        self.calls = []

    def render(self, target, abc, profile):
        self.calls.append((target.width, abc, profile))
        raise RenderError("bad notation")


class RecordingHost(DesignHost):
    """In-memory design host that records every capability call"""

    def __init__(self, features=(ADD_ELEMENT_AT_POINT,), fail_upload=False, fail_insert=False):
        self.features = set(features)
        self.fail_upload = fail_upload
        self.fail_insert = fail_insert
        self.uploads = []
        self.inserted = []
        self.feature_checks = []

    def supports(self, feature):
        self.feature_checks.append(feature)
        return feature in self.features

    async def upload(self, request):
        await asyncio.sleep(0)
        self.uploads.append(request)
        if self.fail_upload:
            raise HostError("upload rejected")
        return UploadResult(ref=f"asset-{len(self.uploads)}")

    async def add_element_at_point(self, element):
        await asyncio.sleep(0)
        self._insert('point', element)

    async def add_element_at_cursor(self, element):
        await asyncio.sleep(0)
        self._insert('cursor', element)

    def _insert(self, where, element):
        if self.fail_insert:
            raise HostError("insert rejected")
        self.inserted.append((where, element))


@pytest.fixture
def sample_svg():
    return SAMPLE_SVG


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def failing_renderer():
    return FailingRenderer()


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def cursor_host():
    return RecordingHost(features=(ADD_ELEMENT_AT_CURSOR,))


@pytest.fixture
def unsupported_host():
    return RecordingHost(features=())
