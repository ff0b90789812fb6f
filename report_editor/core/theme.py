"""Global theme overrides for a loaded report."""

from loguru import logger

from report_editor.core.dom import set_style
from report_editor.core.sandbox import SandboxHost
from report_editor.styles.colors import (
    DEFAULT_ACCENT_COLOR,
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_FONT_FAMILY,
    translucent,
)
from report_editor.styles.editor_css import ACCENT_STYLE_ID, accent_css


class StyleThemeApplier:
    """Applies font, background and accent overrides to the sandbox document.

    All three settings are global and last-write-wins. The accent color
    lives in a single identified stylesheet that is replaced, never stacked.
    """

    def __init__(self, sandbox: SandboxHost) -> None:
        self._sandbox = sandbox
        self.font_family = DEFAULT_FONT_FAMILY
        self.background_color = DEFAULT_BACKGROUND_COLOR
        self.accent_color = DEFAULT_ACCENT_COLOR

    def set_font_family(self, font_family: str) -> bool:
        body = self._sandbox.body
        if body is None:
            return False
        set_style(body, "font-family", font_family)
        self.font_family = font_family
        return True

    def set_background_color(self, color: str) -> bool:
        body = self._sandbox.body
        if body is None:
            return False
        set_style(body, "background-color", color)
        self.background_color = color
        return True

    def set_accent_color(self, color: str) -> bool:
        doc = self._sandbox.document
        if doc is None:
            return False
        style = doc.find("style", id=ACCENT_STYLE_ID)
        if style is None:
            style = doc.new_tag("style", attrs={"id": ACCENT_STYLE_ID})
            doc.find("head").append(style)
        style.string = accent_css(color, translucent(color))
        self.accent_color = color
        logger.debug("Accent color set to {}", color)
        return True
