"""Tests for messages.py - message catalog and translations."""

import pytest

from abcsheet.messages import CATALOG, SYNTAX_REFERENCE, Messages


class TestMessages:

    def test_defaults(self):
        messages = Messages()
        assert messages.format('error.add_failed') == 'Failed to add sheet music to design'
        assert messages.format('image.alt_text') == 'Sheet music'

    def test_every_message_has_description(self):
        assert all(m.default and m.description for m in CATALOG.values())

    def test_syntax_reference_ids_exist(self):
        assert all(message_id in CATALOG for message_id in SYNTAX_REFERENCE)

    def test_unknown_id(self):
        with pytest.raises(KeyError):
            Messages().format('nope')

    def test_translation_falls_back_to_default(self):
        messages = Messages('fr', {'preview.label': 'Aperçu'})
        assert messages.format('preview.label') == 'Aperçu'
        assert messages.format('input.label') == 'ABC notation'

    def test_placeholders(self):
        messages = Messages('en', {'preview.label': 'Preview of {title}'})
        assert messages.format('preview.label', title='Reel') == 'Preview of Reel'


class TestFromFile:

    def test_load(self, tmp_path):
        path = tmp_path / 'de.yaml'
        path.write_text("button.add_to_design: Zum Design hinzufügen\n", encoding='utf-8')
        messages = Messages.from_file(path)
        assert messages.locale == 'de'
        assert messages.format('button.add_to_design') == 'Zum Design hinzufügen'

    def test_unknown_ids_rejected(self, tmp_path):
        path = tmp_path / 'de.yaml'
        path.write_text("button.add: Hinzufügen\n", encoding='utf-8')
        with pytest.raises(ValueError, match='button.add'):
            Messages.from_file(path)

    def test_explicit_locale(self, tmp_path):
        path = tmp_path / 'strings.yaml'
        path.write_text("", encoding='utf-8')
        assert Messages.from_file(path, 'pt-BR').locale == 'pt-BR'
