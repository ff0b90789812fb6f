"""Tests for global theme overrides."""

from report_editor.core.chart import ChartType
from report_editor.core.sandbox import SandboxHost
from report_editor.core.theme import StyleThemeApplier
from report_editor.styles.colors import (
    CHART_TYPE_LABELS,
    DEFAULT_FONT_FAMILY,
    FONT_OPTIONS,
    translucent,
)
from report_editor.styles.editor_css import ACCENT_STYLE_ID


def _make_theme(html="<html><head></head><body><h1>Report</h1></body></html>"):
    sandbox = SandboxHost()
    sandbox.load(html)
    sandbox.settle()
    return sandbox, StyleThemeApplier(sandbox)


def test_font_family_and_background_on_body():
    sandbox, theme = _make_theme()
    assert theme.set_font_family("Georgia, serif")
    assert theme.set_background_color("#f8fafc")
    assert sandbox.body["style"] == "font-family: Georgia, serif; background-color: #f8fafc"
    assert theme.font_family == "Georgia, serif"


def test_last_write_wins():
    sandbox, theme = _make_theme()
    theme.set_font_family("Arial, sans-serif")
    theme.set_font_family("monospace")
    assert sandbox.body["style"] == "font-family: monospace"


def test_accent_stylesheet_is_replaced_not_stacked():
    sandbox, theme = _make_theme()
    theme.set_accent_color("#3b82f6")
    theme.set_accent_color("#ef4444")
    styles = sandbox.document.find_all("style", id=ACCENT_STYLE_ID)
    assert len(styles) == 1
    css = styles[0].string
    assert "#ef4444" in css
    assert "#ef444422" in css
    assert "#3b82f6" not in css
    assert styles[0].parent.name == "head"


def test_translucent():
    assert translucent("#abc") == "#aabbcc22"
    assert translucent("#3b82f6") == "#3b82f622"
    assert translucent("rgb(1, 2, 3)") == "color-mix(in srgb, rgb(1, 2, 3) 13%, transparent)"


def test_unavailable_sandbox():
    sandbox, theme = _make_theme()
    sandbox.detach()
    assert theme.set_font_family("Arial") is False
    assert theme.set_background_color("#000") is False
    assert theme.set_accent_color("#000") is False


def test_every_chart_type_has_a_label():
    assert set(CHART_TYPE_LABELS) == set(ChartType)
    assert CHART_TYPE_LABELS[ChartType.POLAR_AREA] == "Polar Area"


def test_default_font_is_offered():
    assert DEFAULT_FONT_FAMILY in [value for value, _ in FONT_OPTIONS]
