"""
ABC notation helpers - normalize user input and decide whether it holds music

ABC header fields (a letter and a colon, e.g. T:Title) must start at column 0,
and a tune with nothing but header fields has no notes to engrave.
"""

import re
import unicodedata
from typing import List, Optional

DEFAULT_ABC = """X:1
T:Twinkle Twinkle Little Star
M:4/4
L:1/4
K:C
C C G G | A A G2 | F F E E | D D C2 |
G G F F | E E D2 | G G F F | E E D2 |
C C G G | A A G2 | F F E E | D D C2 |
"""

# Information fields that carry metadata rather than notes, plus the
# %% formatting directive marker
HEADER_PREFIXES = (
    'X:',  # reference number
    'T:',  # title
    'M:',  # meter
    'L:',  # unit note length
    'K:',  # key
    'C:',  # composer
    'Q:',  # tempo
    'R:',  # rhythm
    'N:',  # notes
    'H:',  # history
    'S:',  # source
    'O:',  # origin
    'B:',  # book
    'D:',  # discography
    'Z:',  # transcriber
    'G:',  # group
    'F:',  # file url
    'P:',  # parts
    'I:',  # instruction
    'W:',  # words (after tune)
    'w:',  # words (aligned)
    'V:',  # voice
    '%%',
)


def normalize_abc_input(abc: str) -> str:
    """Strip leading whitespace from every line, keeping the line count"""
    return '\n'.join(line.lstrip() for line in abc.split('\n'))


def is_header_line(line: str) -> bool:
    """True for blank lines and header-field / directive lines"""
    trimmed = line.strip()
    return not trimmed or trimmed.startswith(HEADER_PREFIXES)


def has_notation(abc: str) -> bool:
    """Check if ABC text contains at least one line of actual notation"""
    return any(not is_header_line(line) for line in abc.split('\n'))


def notation_lines(abc: str) -> List[str]:
    """Return the non-header lines of an ABC tune"""
    return [line for line in abc.split('\n') if not is_header_line(line)]


def _header_value(abc: str, field: str) -> Optional[str]:
    match = re.search(rf'^\s*{field}:\s*(.+?)\s*$', abc, re.MULTILINE)
    if match:
        return match.group(1)
    return None


def extract_title(abc: str) -> Optional[str]:
    """Extract title from ABC T: field"""
    return _header_value(abc, 'T')


def extract_key(abc: str) -> Optional[str]:
    """Extract key from ABC K: field"""
    return _header_value(abc, 'K')


def extract_meter(abc: str) -> Optional[str]:
    """Extract time signature from ABC M: field"""
    meter = _header_value(abc, 'M')
    if meter == 'C':
        return '4/4'
    if meter == 'C|':
        return '2/2'
    return meter


def slugify(text: str) -> str:
    """Convert a tune title to a filename-safe slug."""
    text = unicodedata.normalize('NFKD', text)
    text = text.encode('ascii', 'ignore').decode('ascii')

    text = re.sub(r'[^a-z0-9]+', '-', text.lower())
    return text.strip('-') or 'sheet-music'
