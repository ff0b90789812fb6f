"""Tests for section detection and drag-and-drop reordering."""

from report_editor.core.reorder import SectionReorderController, strip_section_artifacts
from report_editor.core.sandbox import SandboxHost
from report_editor.styles.editor_css import DRAG_HANDLE_CLASS, SECTION_INDEX_ATTR

REPORT = """<html><head></head><body>
<section id="s0"><h2>Intro</h2><p>a</p></section>
<div id="s1"><h2>Revenue</h2></div>
<article id="s2"><p>x</p><p>y</p></article>
<div id="wrap"><span>only</span></div>
<script>var x = 1;</script>
</body></html>"""


def _make_controller(html=REPORT):
    sandbox = SandboxHost()
    sandbox.load(html)
    sandbox.settle()
    return sandbox, SectionReorderController(sandbox)


def _order(controller):
    return [section.get("id") for section in controller.detect_sections()]


def test_detect_sections():
    _, controller = _make_controller()
    assert _order(controller) == ["s0", "s1", "s2"]


def test_detect_sections_falls_back_to_children():
    _, controller = _make_controller("<p id='a'>a</p><p id='b'>b</p><script>1</script>")
    assert _order(controller) == ["a", "b"]


def test_enable_adds_one_handle_per_section():
    sandbox, controller = _make_controller()
    assert controller.enable() == 3
    for index, section in enumerate(controller.detect_sections()):
        handle = section.contents[0]
        assert handle["class"] == [DRAG_HANDLE_CLASS]
        assert handle[SECTION_INDEX_ATTR] == str(index)
        assert handle["draggable"] == "true"
        assert section["style"] == "position: relative"

    controller.enable()
    assert len(sandbox.body.find_all(class_=DRAG_HANDLE_CLASS)) == 3


def test_drag_and_drop_moves_section_after_target():
    sandbox, controller = _make_controller()
    controller.enable()
    body = sandbox.body
    handle = body.find(id="s0").find(class_=DRAG_HANDLE_CLASS)
    target = body.find(id="s2")

    start = sandbox.dispatch_event(handle, "dragstart")
    assert start.data_transfer["text/plain"] == "0"
    over = sandbox.dispatch_event(target, "dragover")
    assert over.default_prevented
    assert "drag-over" in target["class"]
    sandbox.dispatch_event(target, "drop", data_transfer=start.data_transfer)

    assert _order(controller) == ["s1", "s2", "s0"]
    assert "class" not in target.attrs


def test_handles_reindexed_after_move():
    sandbox, controller = _make_controller()
    controller.enable()
    controller.move_section(0, 2)
    indexes = [
        (h.parent.get("id"), h[SECTION_INDEX_ATTR])
        for h in sandbox.body.find_all(class_=DRAG_HANDLE_CLASS)
    ]
    assert indexes == [("s1", "0"), ("s2", "1"), ("s0", "2")]


def test_move_backward_places_before_target():
    _, controller = _make_controller()
    assert controller.move_section(2, 0) is True
    assert _order(controller) == ["s2", "s0", "s1"]


def test_inverse_move_restores_order():
    _, controller = _make_controller()
    controller.enable()
    controller.move_section(0, 1)
    assert _order(controller) == ["s1", "s0", "s2"]
    controller.move_section(1, 0)
    assert _order(controller) == ["s0", "s1", "s2"]


def test_invalid_moves():
    _, controller = _make_controller()
    assert controller.move_section(1, 1) is False
    assert controller.move_section(0, 9) is False
    assert _order(controller) == ["s0", "s1", "s2"]


def test_drop_with_bad_payload_is_ignored():
    sandbox, controller = _make_controller()
    controller.enable()
    sandbox.dispatch_event(sandbox.body.find(id="s1"), "drop", data_transfer={"text/plain": "x"})
    assert _order(controller) == ["s0", "s1", "s2"]


def test_disable_removes_artifacts():
    sandbox, controller = _make_controller()
    controller.enable()
    controller.disable()
    body = sandbox.body
    assert body.find(class_=DRAG_HANDLE_CLASS) is None
    assert body.find(attrs={SECTION_INDEX_ATTR: True}) is None
    assert body.find(id="s0").get("style") is None
    assert sandbox.listener_count() == 0


def test_existing_position_is_kept():
    sandbox, controller = _make_controller(
        "<section id='a' style='position: absolute'><h2>A</h2></section>"
    )
    controller.enable()
    strip_section_artifacts(sandbox.body)
    assert sandbox.body.find(id="a")["style"] == "position: absolute"


def test_unavailable_sandbox():
    sandbox, controller = _make_controller()
    sandbox.detach()
    assert controller.enable() == 0
    assert controller.move_section(0, 1) is False
