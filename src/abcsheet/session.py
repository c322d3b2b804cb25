"""
Panel session - the single tune being edited and the "Add to design" flow

All derived state is recomputed synchronously whenever the text changes, so
the flags always describe the current text:

    session = SheetMusicSession(host, VerovioRenderer())
    session.set_text(abc)
    if session.can_add_to_design:
        await session.add_to_design()
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import AppConfig
from .exporter import ExportStage, export_data_url, fit_for_export, measure_for_export, render_for_export
from .host import AltText, DesignHost, HostError, ImageElement, ImageUpload, select_add_element
from .measure import ContentMeasurer, GeometryMeasurer
from .messages import Messages
from .notation import DEFAULT_ABC, has_notation, normalize_abc_input
from .renderer import NotationRenderer, RenderError, RenderTarget
from .svg import serialize_svg

logger = logging.getLogger(__name__)


@dataclass
class ButtonState:
    """View state of the primary action button"""
    label: str
    disabled: bool
    loading: bool
    tooltip: Optional[str] = None


class SheetMusicSession:
    """
    State for one panel session.

    Args:
        host: Design host, or None when running outside an editor
        renderer: Notation renderer used for preview and export
        config: Application configuration
        messages: Localised strings
        text: Initial ABC text (the default tune if omitted)
        measurer: Finds the drawn extent of the export image; tree geometry
            when omitted (see measure.make_measurer for the configured one)
    """

    def __init__(
        self,
        host: Optional[DesignHost],
        renderer: NotationRenderer,
        config: Optional[AppConfig] = None,
        messages: Optional[Messages] = None,
        text: str = DEFAULT_ABC,
        measurer: Optional[ContentMeasurer] = None,
    ):
        self.host = host
        self.renderer = renderer
        self.config = config or AppConfig()
        self.messages = messages or Messages()
        self.measurer = measurer or GeometryMeasurer()

        # Resolved once; no capability means exporting stays disabled
        self.add_element = select_add_element(host)

        self.text = ''
        self.normalized = ''
        self.has_valid_notation = False
        self.is_loading = False
        self.error: Optional[str] = None
        self.preview_svg: Optional[str] = None
        self.stage = ExportStage.IDLE

        self.set_text(text)

    def set_text(self, text: str) -> None:
        """Replace the notation text and recompute everything derived from it"""
        self.text = text
        self.normalized = normalize_abc_input(text)
        self.has_valid_notation = has_notation(self.normalized)
        if self.config.live_preview:
            self._update_preview()

    def _update_preview(self) -> None:
        if not self.has_valid_notation:
            self.preview_svg = None
            return

        target = RenderTarget(self.config.preview.staff_width
                              + self.config.preview.padding_left
                              + self.config.preview.padding_right)
        try:
            self.renderer.render(target, self.normalized, self.config.preview)
        except RenderError as e:
            logger.debug("Preview render failed: %s", e)
            self.preview_svg = None
            self.error = self.messages.format('error.invalid_notation')
            return

        svg = target.find_svg()
        self.preview_svg = serialize_svg(svg) if svg is not None else None
        self.error = None

    @property
    def is_supported(self) -> bool:
        return self.add_element is not None

    @property
    def can_add_to_design(self) -> bool:
        return self.is_supported and not self.is_loading and self.has_valid_notation

    def tooltip(self) -> Optional[str]:
        if not self.is_supported:
            return self.messages.format('button.unsupported')
        if not self.has_valid_notation:
            return self.messages.format('button.no_notation')
        return None

    def button_state(self) -> ButtonState:
        return ButtonState(
            label=self.messages.format('button.add_to_design'),
            disabled=not self.can_add_to_design,
            loading=self.is_loading,
            tooltip=self.tooltip(),
        )

    async def add_to_design(self) -> bool:
        """
        Render the tune, upload it as an image and insert it into the design.

        Does nothing when exporting is unsupported, already running or the
        text has no notation. Failures are reported through ``error``.

        Returns:
            True if the image was inserted
        """
        if not self.can_add_to_design:
            return False

        # No await between the check above and this assignment
        self.is_loading = True
        self.error = None
        try:
            try:
                self.stage = ExportStage.RENDERING
                svg = render_for_export(self.renderer, self.normalized, self.config)
                self.stage = ExportStage.MEASURING
                box = await measure_for_export(svg, self.measurer)
                image = fit_for_export(svg, self.config, box)
                self.stage = ExportStage.ENCODING
                data_url = export_data_url(image)
            except RenderError as e:
                logger.warning("Export failed while %s: %s", self.stage.value, e)
                self.error = self.messages.format('error.no_sheet_music')
                return False

            try:
                self.stage = ExportStage.UPLOADING
                result = await self.host.upload(ImageUpload(url=data_url, thumbnail_url=data_url))
                self.stage = ExportStage.INSERTING
                await self.add_element(ImageElement(
                    ref=result.ref,
                    alt_text=AltText(self.messages.format('image.alt_text'), decorative=False),
                ))
            except HostError as e:
                logger.warning("Export failed while %s: %s", self.stage.value, e)
                self.error = self.messages.format('error.add_failed')
                return False

            logger.info("Added sheet music to design (asset %s)", result.ref)
            return True
        finally:
            self.is_loading = False
            self.stage = ExportStage.IDLE
