"""
Configuration for the sheet music panel.

Defaults reproduce the stock panel; a YAML file (passed explicitly or named
by ABCSHEET_CONFIG) overrides any of them:

    live_preview: true
    locale: en
    translations: locales/de.yaml
    render:
      preview: {staff_width: 280, padding_top: 30}
      export: {staff_width: 700, title_font_size: 18}
    export:
      container_width: 800
      padding: 20
      background: "#ffffff"
      measure: browser
    host:
      base_url: http://localhost:8765
      timeout: 30
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

import yaml

CONFIG_ENV_VAR = 'ABCSHEET_CONFIG'
TOKEN_ENV_VAR = 'ABCSHEET_HOST_TOKEN'


@dataclass
class RenderProfile:
    """Layout parameters handed to the notation renderer"""
    staff_width: int = 280
    padding_top: int = 30
    padding_bottom: int = 10
    padding_left: int = 10
    padding_right: int = 10
    foreground_color: str = '#000000'
    title_font_family: str = 'Arial'
    title_font_size: int = 16
    title_font_weight: str = 'bold'
    responsive: bool = False
    scale: int = 40  # verovio zoom, percent


PREVIEW_PROFILE = RenderProfile(responsive=True)

EXPORT_PROFILE = RenderProfile(
    staff_width=700,
    padding_top=30,
    padding_bottom=20,
    padding_left=20,
    padding_right=20,
    title_font_size=18,
)


@dataclass
class ExportConfig:
    container_width: int = 800
    padding: float = 20
    background: str = '#ffffff'
    measure: str = 'browser'  # or 'geometry' where no Chromium is installed


MEASURE_METHODS = ('browser', 'geometry')


@dataclass
class HostConfig:
    base_url: Optional[str] = None
    timeout: float = 30.0
    token: Optional[str] = None


@dataclass
class AppConfig:
    preview: RenderProfile = field(default_factory=lambda: replace(PREVIEW_PROFILE))
    export_profile: RenderProfile = field(default_factory=lambda: replace(EXPORT_PROFILE))
    export: ExportConfig = field(default_factory=ExportConfig)
    host: HostConfig = field(default_factory=HostConfig)
    live_preview: bool = True
    locale: str = 'en'
    translations: Optional[str] = None


def _apply(section, data: dict, name: str):
    """Return a copy of dataclass ``section`` with keys from ``data`` applied"""
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a mapping")
    known = {f.name for f in fields(section)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown {name} option(s): {', '.join(sorted(unknown))}")
    return replace(section, **data)


def config_from_dict(data: dict) -> AppConfig:
    """Build an AppConfig from parsed YAML data"""
    config = AppConfig()
    data = dict(data or {})

    render = data.pop('render', None) or {}
    if not isinstance(render, dict):
        raise ValueError("'render' must be a mapping")
    unknown = set(render) - {'preview', 'export'}
    if unknown:
        raise ValueError(f"Unknown render profile(s): {', '.join(sorted(unknown))}")
    if 'preview' in render:
        config.preview = _apply(config.preview, render['preview'], 'render.preview')
    if 'export' in render:
        config.export_profile = _apply(config.export_profile, render['export'], 'render.export')

    if 'export' in data:
        config.export = _apply(config.export, data.pop('export'), 'export')
        if config.export.measure not in MEASURE_METHODS:
            raise ValueError(f"export.measure must be one of: {', '.join(MEASURE_METHODS)}")
    if 'host' in data:
        config.host = _apply(config.host, data.pop('host'), 'host')

    return _apply(config, data, 'top-level')


def load_config(path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from YAML.

    Args:
        path: Config file; falls back to $ABCSHEET_CONFIG, then to defaults

    Raises:
        FileNotFoundError: if an explicitly named file is missing
        ValueError: on unknown keys or a non-mapping document
    """
    if path is None and os.environ.get(CONFIG_ENV_VAR):
        path = Path(os.environ[CONFIG_ENV_VAR])

    if path is None:
        config = AppConfig()
    else:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        config = config_from_dict(data or {})

    if config.host.token is None:
        config.host.token = get_host_token()
    return config


def get_host_token() -> Optional[str]:
    """Get the host bridge token from the environment or a local .env file."""
    token = os.environ.get(TOKEN_ENV_VAR)
    if token:
        return token

    for env_file in [Path('.env'), Path('local.env'), Path.home() / '.env']:
        if env_file.exists():
            with open(env_file) as f:
                for line in f:
                    if line.startswith(f'{TOKEN_ENV_VAR}='):
                        return line.split('=', 1)[1].strip().strip('"\'')
    return None
