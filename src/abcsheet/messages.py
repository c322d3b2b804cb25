"""
User-visible strings for the sheet music panel.

Every string has a stable id, default English text and a description for
translators. Translations are YAML mappings of id -> text.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml


@dataclass(frozen=True)
class Message:
    default: str
    description: str


CATALOG: Dict[str, Message] = {
    'syntax_reference.title': Message(
        'ABC syntax reference',
        'Title for the ABC notation syntax reference section'),
    'syntax_reference.header': Message(
        '<b>Header:</b> X:1 (tune #) | T:Title | M:4/4 (meter) | K:C (key)',
        'Header section in ABC notation cheat sheet'),
    'syntax_reference.notes': Message(
        '<b>Notes:</b> C D E F G A B (middle) | c d e f g a b (high) | C, D, (low)',
        'Notes section in ABC notation cheat sheet'),
    'syntax_reference.length': Message(
        '<b>Length:</b> A2=half | A4=whole | A/=eighth | z=rest',
        'Length section in ABC notation cheat sheet'),
    'syntax_reference.other': Message(
        '<b>Other:</b> |=bar | ^=sharp | _=flat | |: :|=repeat',
        'Other section in ABC notation cheat sheet'),
    'input.label': Message(
        'ABC notation',
        'Label for the ABC notation input field'),
    'input.placeholder': Message(
        'Enter ABC notation here...',
        'Placeholder for ABC notation input'),
    'preview.label': Message(
        'Preview',
        'Label for the sheet music preview section'),
    'error.invalid_notation': Message(
        'Invalid ABC notation',
        'Error message when ABC notation is invalid'),
    'error.no_sheet_music': Message(
        'No sheet music to add. Please enter ABC notation.',
        'Error message when trying to add empty sheet music to design'),
    'error.add_failed': Message(
        'Failed to add sheet music to design',
        'Error message when adding sheet music fails'),
    'image.alt_text': Message(
        'Sheet music',
        'Alt text for sheet music image'),
    'button.add_to_design': Message(
        'Add to design',
        'Button text to add sheet music to design'),
    'button.unsupported': Message(
        'This feature is not supported in the current page',
        'Tooltip label for when a feature is not supported in the current design'),
    'button.no_notation': Message(
        'Enter music notation to enable this button',
        'Tooltip label for when there is no valid notation to add'),
}

SYNTAX_REFERENCE = (
    'syntax_reference.header',
    'syntax_reference.notes',
    'syntax_reference.length',
    'syntax_reference.other',
)


class Messages:
    """Resolve message ids to text in one locale"""

    def __init__(self, locale: str = 'en', translations: Optional[Dict[str, str]] = None):
        self.locale = locale
        self.translations = translations or {}

    @classmethod
    def from_file(cls, path: Path, locale: Optional[str] = None) -> 'Messages':
        """Load translations from a YAML file (locale defaults to the file stem)"""
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: translations must be a mapping")
        unknown = set(data) - set(CATALOG)
        if unknown:
            raise ValueError(f"{path}: unknown message id(s): {', '.join(sorted(unknown))}")
        return cls(locale or Path(path).stem, {k: str(v) for k, v in data.items()})

    def format(self, message_id: str, **values) -> str:
        if message_id not in CATALOG:
            raise KeyError(f"Unknown message id: {message_id}")
        text = self.translations.get(message_id, CATALOG[message_id].default)
        return text.format(**values) if values else text
