"""
Bounding-box measurement for rendered SVG markup

Walks a parsed SVG tree and accumulates the extent of every drawable element
in the root element's user coordinate system. Transforms, nested <svg>
viewports and <use> references are resolved the way a browser resolves them
for getBBox(). Stroke widths are ignored, as getBBox() ignores them.

Text has no font metrics outside a browser, so its extent is estimated from
the font size and the East Asian width of each character. Exports that need
exact glyph extents measure in a browser instead (see measure.py).
"""

import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from bs4 import Comment, NavigableString, Tag

Point = Tuple[float, float]

NUMBER_RE = re.compile(r'[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?')
TRANSFORM_RE = re.compile(r'(matrix|translate|scale|rotate|skewX|skewY)\s*\(([^)]*)\)')
PATH_TOKEN_RE = re.compile(r'[MmZzLlHhVvCcSsQqTtAa]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?')

# Number of arguments each path command consumes
PATH_ARITY = {
    'M': 2, 'L': 2, 'T': 2,
    'H': 1, 'V': 1,
    'C': 6, 'S': 4, 'Q': 4,
    'A': 7,
    'Z': 0,
}

# Elements that never draw directly
NON_RENDERING = {
    'defs', 'symbol', 'clipPath', 'mask', 'marker', 'pattern',
    'linearGradient', 'radialGradient', 'filter',
    'style', 'script', 'title', 'desc', 'metadata',
}
CONTAINERS = {'g', 'a', 'switch'}
TEXT_CONTENT = {'tspan', 'a', 'textPath'}

DEFAULT_FONT_SIZE = 16.0
TEXT_ADVANCE = 0.6  # average proportional glyph width, in ems
WIDE_ADVANCE = 1.0
TEXT_ASCENT = 0.8
TEXT_DESCENT = 0.2

MAX_USE_DEPTH = 32


def format_number(value: float) -> str:
    """Format a coordinate for an SVG attribute (no exponent, no trailing zeros)"""
    if value == int(value):
        return str(int(value))
    return ('%.6f' % value).rstrip('0').rstrip('.')


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle in user units"""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def padded(self, padding: float) -> 'BoundingBox':
        return BoundingBox(
            self.x - padding,
            self.y - padding,
            self.width + padding * 2,
            self.height + padding * 2,
        )

    def to_viewbox(self) -> str:
        return ' '.join(format_number(v) for v in (self.x, self.y, self.width, self.height))

    @classmethod
    def from_points(cls, points) -> Optional['BoundingBox']:
        xs: List[float] = []
        ys: List[float] = []
        for x, y in points:
            xs.append(x)
            ys.append(y)
        if not xs:
            return None
        return cls(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    @classmethod
    def from_viewbox(cls, value: Optional[str]) -> Optional['BoundingBox']:
        numbers = [float(n) for n in NUMBER_RE.findall(value or '')]
        if len(numbers) != 4:
            return None
        return cls(*numbers)


@dataclass(frozen=True)
class Matrix:
    """2D affine transform in SVG's (a b c d e f) form"""
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    def multiply(self, other: 'Matrix') -> 'Matrix':
        """Compose so that ``other`` applies first, then ``self``"""
        return Matrix(
            self.a * other.a + self.c * other.b,
            self.b * other.a + self.d * other.b,
            self.a * other.c + self.c * other.d,
            self.b * other.c + self.d * other.d,
            self.a * other.e + self.c * other.f + self.e,
            self.b * other.e + self.d * other.f + self.f,
        )

    def apply(self, x: float, y: float) -> Point:
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)

    @classmethod
    def translate(cls, tx: float, ty: float = 0.0) -> 'Matrix':
        return cls(e=tx, f=ty)

    @classmethod
    def scale(cls, sx: float, sy: Optional[float] = None) -> 'Matrix':
        return cls(a=sx, d=sx if sy is None else sy)

    @classmethod
    def rotate(cls, degrees: float, cx: float = 0.0, cy: float = 0.0) -> 'Matrix':
        rad = math.radians(degrees)
        cos, sin = math.cos(rad), math.sin(rad)
        rotation = cls(cos, sin, -sin, cos, 0.0, 0.0)
        if cx or cy:
            return cls.translate(cx, cy).multiply(rotation).multiply(cls.translate(-cx, -cy))
        return rotation


IDENTITY = Matrix()


def parse_transform(value: Optional[str]) -> Matrix:
    """Parse an SVG transform attribute into a single matrix"""
    result = IDENTITY
    for name, args in TRANSFORM_RE.findall(value or ''):
        n = [float(v) for v in NUMBER_RE.findall(args)]
        if not n:
            continue
        if name == 'matrix' and len(n) == 6:
            m = Matrix(*n)
        elif name == 'translate':
            m = Matrix.translate(n[0], n[1] if len(n) > 1 else 0.0)
        elif name == 'scale':
            m = Matrix.scale(n[0], n[1] if len(n) > 1 else None)
        elif name == 'rotate':
            m = Matrix.rotate(n[0], *(n[1:3] if len(n) >= 3 else ()))
        elif name == 'skewX':
            m = Matrix(c=math.tan(math.radians(n[0])))
        elif name == 'skewY':
            m = Matrix(b=math.tan(math.radians(n[0])))
        else:
            continue
        result = result.multiply(m)
    return result


def parse_length(value: Optional[str], reference: Optional[float] = None) -> Optional[float]:
    """Parse a length like ``12``, ``12px`` or ``50%`` (percent needs a reference)"""
    if value is None:
        return None
    value = value.strip()
    match = NUMBER_RE.match(value)
    if not match:
        return None
    number = float(match.group(0))
    if value.endswith('%'):
        return number * reference / 100.0 if reference is not None else None
    return number


def viewbox_transform(viewbox: BoundingBox, x: float, y: float,
                      width: float, height: float,
                      preserve: Optional[str] = None) -> Matrix:
    """Map a viewBox onto a viewport, honouring preserveAspectRatio"""
    sx = width / viewbox.width
    sy = height / viewbox.height
    parts = (preserve or 'xMidYMid meet').split()
    align = parts[0] if parts else 'xMidYMid'

    if align == 'none':
        return Matrix(sx, 0.0, 0.0, sy, x - viewbox.x * sx, y - viewbox.y * sy)

    s = max(sx, sy) if 'slice' in parts[1:] else min(sx, sy)
    tx = x - viewbox.x * s
    ty = y - viewbox.y * s
    if 'xMid' in align:
        tx += (width - viewbox.width * s) / 2
    elif 'xMax' in align:
        tx += width - viewbox.width * s
    if 'YMid' in align:
        ty += (height - viewbox.height * s) / 2
    elif 'YMax' in align:
        ty += height - viewbox.height * s
    return Matrix(s, 0.0, 0.0, s, tx, ty)


def path_points(d: Optional[str]) -> List[Point]:
    """Endpoints and control points of a path, in absolute local coordinates

    Bezier control points bound their curve, so the box of these points
    contains the path. Arcs are bounded by a box around their endpoints.
    """
    tokens = PATH_TOKEN_RE.findall(d or '')
    points: List[Point] = []
    command = None
    x = y = 0.0
    start_x = start_y = 0.0
    i = 0

    while i < len(tokens):
        token = tokens[i]
        if token.isalpha():
            command = token
            i += 1
            if command in 'Zz':
                x, y = start_x, start_y
                continue
        elif command is None or command in 'Zz':
            break  # stray numbers: the rest of the path is malformed

        upper = command.upper()
        arity = PATH_ARITY[upper]
        if i + arity > len(tokens) or any(t.isalpha() for t in tokens[i:i + arity]):
            break
        values = [float(t) for t in tokens[i:i + arity]]
        i += arity
        relative = command.islower()

        if upper == 'H':
            x = values[0] + (x if relative else 0.0)
            points.append((x, y))
        elif upper == 'V':
            y = values[0] + (y if relative else 0.0)
            points.append((x, y))
        elif upper == 'A':
            end_x, end_y = values[5], values[6]
            if relative:
                end_x += x
                end_y += y
            points.extend(_arc_bounds(x, y, end_x, end_y, values[0], values[1]))
            x, y = end_x, end_y
        else:
            for k in range(0, arity, 2):
                px, py = values[k], values[k + 1]
                if relative:
                    px += x
                    py += y
                points.append((px, py))
            x, y = points[-1]
            if upper == 'M':
                start_x, start_y = x, y
                # Further pairs after a moveto are implicit linetos
                command = 'l' if relative else 'L'

    return points


def _arc_bounds(x0: float, y0: float, x1: float, y1: float,
                rx: float, ry: float) -> List[Point]:
    # Radii too small for the chord are scaled up until the arc fits it
    radius = max(abs(rx), abs(ry), math.hypot(x1 - x0, y1 - y0) / 2)
    # Every point of the arc lies within 2r of both endpoints
    left = max(x0, x1) - radius * 2
    right = min(x0, x1) + radius * 2
    top = max(y0, y1) - radius * 2
    bottom = min(y0, y1) + radius * 2
    return [(x0, y0), (x1, y1), (left, top), (right, bottom)]


def local_name(tag: Tag) -> str:
    return tag.name.split(':')[-1]


def _numbers(value: Optional[str]) -> List[float]:
    return [float(n) for n in NUMBER_RE.findall(value or '')]


def _first_number(value: Optional[str], default: float = 0.0) -> float:
    numbers = _numbers(value)
    return numbers[0] if numbers else default


def _style_value(tag: Tag, prop: str) -> Optional[str]:
    """Read a presentation property from the attribute or the inline style"""
    for declaration in (tag.get('style') or '').split(';'):
        name, _, value = declaration.partition(':')
        if name.strip() == prop and value.strip():
            return value.strip()
    return tag.get(prop)


def _font_size(tag: Tag, inherited: float) -> float:
    value = _style_value(tag, 'font-size')
    if value is None:
        return inherited
    value = value.strip()
    if value.endswith('em'):
        return _first_number(value, 1.0) * inherited
    size = parse_length(value, inherited)
    return inherited if size is None else size


@dataclass
class _Context:
    viewport_width: float
    viewport_height: float
    ids: Dict[str, Tag]


def measure_bbox(svg: Tag) -> Optional[BoundingBox]:
    """Return the content bounding box of ``svg`` in its own user space

    Returns None when nothing measurable is drawn.
    """
    viewbox = BoundingBox.from_viewbox(svg.get('viewBox'))
    if viewbox is not None:
        width, height = viewbox.width, viewbox.height
    else:
        width = parse_length(svg.get('width')) or 0.0
        height = parse_length(svg.get('height')) or 0.0

    ids = {tag['id']: tag for tag in svg.find_all(id=True)}
    context = _Context(width, height, ids)
    font_size = _font_size(svg, DEFAULT_FONT_SIZE)
    points = _children_points(svg, IDENTITY, context, font_size, 0)
    return BoundingBox.from_points(points)


def _children_points(parent: Tag, ctm: Matrix, context: _Context,
                     font_size: float, depth: int) -> Iterator[Point]:
    for child in parent.children:
        if isinstance(child, Tag):
            yield from _element_points(child, ctm, context, font_size, depth)


def _element_points(element: Tag, parent_ctm: Matrix, context: _Context,
                    font_size: float, depth: int) -> Iterator[Point]:
    name = local_name(element)
    if name in NON_RENDERING or _style_value(element, 'display') == 'none':
        return

    ctm = parent_ctm.multiply(parse_transform(element.get('transform')))
    font_size = _font_size(element, font_size)

    if name in CONTAINERS:
        yield from _children_points(element, ctm, context, font_size, depth)
    elif name == 'svg':
        yield from _nested_svg_points(element, ctm, context, font_size, depth)
    elif name == 'use':
        yield from _use_points(element, ctm, context, font_size, depth)
    elif name == 'text':
        for point in _text_points(element, font_size):
            yield ctm.apply(*point)
    else:
        for point in _shape_points(element, name, context):
            yield ctm.apply(*point)


def _nested_svg_points(element: Tag, ctm: Matrix, context: _Context,
                       font_size: float, depth: int) -> Iterator[Point]:
    x = parse_length(element.get('x'), context.viewport_width) or 0.0
    y = parse_length(element.get('y'), context.viewport_height) or 0.0
    width = parse_length(element.get('width', '100%'), context.viewport_width)
    height = parse_length(element.get('height', '100%'), context.viewport_height)
    if not width or not height:
        return

    viewbox = BoundingBox.from_viewbox(element.get('viewBox'))
    if viewbox is not None:
        if viewbox.width <= 0 or viewbox.height <= 0:
            return
        inner = ctm.multiply(viewbox_transform(
            viewbox, x, y, width, height, element.get('preserveAspectRatio')))
        nested = _Context(viewbox.width, viewbox.height, context.ids)
    else:
        inner = ctm.multiply(Matrix.translate(x, y))
        nested = _Context(width, height, context.ids)
    yield from _children_points(element, inner, nested, font_size, depth)


def _use_points(element: Tag, ctm: Matrix, context: _Context,
                font_size: float, depth: int) -> Iterator[Point]:
    if depth >= MAX_USE_DEPTH:
        return
    href = element.get('xlink:href') or element.get('href') or ''
    target = context.ids.get(href.lstrip('#'))
    if target is None:
        return

    x = parse_length(element.get('x'), context.viewport_width) or 0.0
    y = parse_length(element.get('y'), context.viewport_height) or 0.0
    ctm = ctm.multiply(Matrix.translate(x, y))

    if local_name(target) != 'symbol':
        yield from _element_points(target, ctm, context, font_size, depth + 1)
        return

    viewbox = BoundingBox.from_viewbox(target.get('viewBox'))
    width = parse_length(element.get('width') or target.get('width', '100%'),
                         context.viewport_width)
    height = parse_length(element.get('height') or target.get('height', '100%'),
                          context.viewport_height)
    if viewbox is not None and width and height and viewbox.width > 0 and viewbox.height > 0:
        ctm = ctm.multiply(viewbox_transform(
            viewbox, 0.0, 0.0, width, height, target.get('preserveAspectRatio')))
    yield from _children_points(target, ctm, context, font_size, depth + 1)


@dataclass
class _TextChunk:
    """One anchored run of glyphs, started by an absolute ``x``"""
    x: float
    anchor: str
    width: float = 0.0
    top: float = math.inf
    bottom: float = -math.inf


def text_advance(content: str) -> float:
    """Estimated advance of ``content`` in ems

    Wide and fullwidth characters (CJK ideographs, kana, hangul) take a full
    em, combining marks take none.
    """
    advance = 0.0
    for char in content:
        if unicodedata.combining(char):
            continue
        if unicodedata.east_asian_width(char) in ('W', 'F'):
            advance += WIDE_ADVANCE
        else:
            advance += TEXT_ADVANCE
    return advance


def _text_points(text: Tag, font_size: float) -> List[Point]:
    chunks: List[_TextChunk] = []
    _collect_text_runs(text, font_size, 'start', 0.0, chunks)

    points = []
    for chunk in chunks:
        if chunk.width <= 0:
            continue
        x = chunk.x
        if chunk.anchor == 'middle':
            x -= chunk.width / 2
        elif chunk.anchor == 'end':
            x -= chunk.width
        points += [(x, chunk.top), (x + chunk.width, chunk.bottom)]
    return points


def _collect_text_runs(element: Tag, font_size: float, anchor: str, y: float,
                       chunks: List[_TextChunk]) -> float:
    """Accumulate glyph runs of ``element`` into chunks; returns the current y

    ``x``, ``y`` and ``text-anchor`` are inherited down the tspan chain; an
    element with its own ``x`` starts a new chunk.
    """
    anchor = _style_value(element, 'text-anchor') or anchor
    if element.get('y') is not None:
        y = _first_number(element.get('y'))
    if element.get('x') is not None or not chunks:
        chunks.append(_TextChunk(_first_number(element.get('x')), anchor))

    for child in element.children:
        if isinstance(child, Tag):
            if local_name(child) in TEXT_CONTENT and _style_value(child, 'display') != 'none':
                y = _collect_text_runs(child, _font_size(child, font_size), anchor, y, chunks)
        elif isinstance(child, NavigableString) and not isinstance(child, Comment):
            content = ' '.join(child.split())
            if not content or font_size <= 0:
                continue
            chunk = chunks[-1]
            chunk.width += text_advance(content) * font_size
            chunk.top = min(chunk.top, y - font_size * TEXT_ASCENT)
            chunk.bottom = max(chunk.bottom, y + font_size * TEXT_DESCENT)
    return y


def _shape_points(element: Tag, name: str, context: _Context) -> List[Point]:
    vw, vh = context.viewport_width, context.viewport_height

    if name in ('rect', 'image', 'foreignObject'):
        x = parse_length(element.get('x'), vw) or 0.0
        y = parse_length(element.get('y'), vh) or 0.0
        width = parse_length(element.get('width'), vw) or 0.0
        height = parse_length(element.get('height'), vh) or 0.0
        if width <= 0 or height <= 0:
            return []
        return [(x, y), (x + width, y), (x, y + height), (x + width, y + height)]

    if name in ('circle', 'ellipse'):
        cx = parse_length(element.get('cx'), vw) or 0.0
        cy = parse_length(element.get('cy'), vh) or 0.0
        if name == 'circle':
            rx = ry = parse_length(element.get('r')) or 0.0
        else:
            rx = parse_length(element.get('rx'), vw) or 0.0
            ry = parse_length(element.get('ry'), vh) or 0.0
        if rx <= 0 or ry <= 0:
            return []
        return [(cx - rx, cy - ry), (cx + rx, cy - ry), (cx - rx, cy + ry), (cx + rx, cy + ry)]

    if name == 'line':
        return [
            (parse_length(element.get('x1'), vw) or 0.0, parse_length(element.get('y1'), vh) or 0.0),
            (parse_length(element.get('x2'), vw) or 0.0, parse_length(element.get('y2'), vh) or 0.0),
        ]

    if name in ('polyline', 'polygon'):
        numbers = _numbers(element.get('points'))
        return list(zip(numbers[0::2], numbers[1::2]))

    if name == 'path':
        return path_points(element.get('d'))

    return []
