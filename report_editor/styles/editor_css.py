"""Ids, class names and stylesheets the editor injects into a report."""

DOCTYPE = "<!DOCTYPE html>"

EDIT_STYLE_ID = "edit-mode-styles"
ACCENT_STYLE_ID = "editor-accent-style"

DRAG_HANDLE_CLASS = "section-drag-handle"
DRAGGING_CLASS = "dragging"
DRAG_OVER_CLASS = "drag-over"

SECTION_INDEX_ATTR = "data-section-index"
POSITIONED_ATTR = "data-editor-positioned"

DRAG_HANDLE_ICON = (
    "data:image/svg+xml,%3Csvg xmlns='http://www.w3.org/2000/svg' width='20' "
    "height='20' viewBox='0 0 24 24' fill='none' stroke='%23666' stroke-width='2'%3E"
    "%3Ccircle cx='9' cy='5' r='1'/%3E%3Ccircle cx='9' cy='12' r='1'/%3E"
    "%3Ccircle cx='9' cy='19' r='1'/%3E%3Ccircle cx='15' cy='5' r='1'/%3E"
    "%3Ccircle cx='15' cy='12' r='1'/%3E%3Ccircle cx='15' cy='19' r='1'/%3E%3C/svg%3E"
)


def edit_mode_css() -> str:
    """Hover affordances and drag states shown while the body is editable."""
    return f"""
      [contenteditable="true"] *:hover {{
        outline: 2px dashed rgba(59, 130, 246, 0.5) !important;
        outline-offset: 2px;
        cursor: text;
      }}
      .{DRAG_HANDLE_CLASS} {{
        position: absolute;
        left: -28px;
        top: 8px;
        width: 20px;
        height: 20px;
        cursor: grab;
        opacity: 0.5;
        z-index: 1000;
        background: url("{DRAG_HANDLE_ICON}") no-repeat center;
      }}
      .{DRAG_HANDLE_CLASS}:hover {{ opacity: 1; }}
      .{DRAGGING_CLASS} {{ opacity: 0.5; }}
      .{DRAG_OVER_CLASS} {{ border-top: 3px solid #3b82f6 !important; }}
      canvas:hover {{
        outline: 2px solid rgba(59, 130, 246, 0.8) !important;
        outline-offset: 4px;
        cursor: pointer !important;
      }}
    """


def accent_css(color: str, background: str) -> str:
    """Override rules forcing the accent color onto headings, links and highlights."""
    return f"""
      h1, h2, h3 {{ color: {color} !important; }}
      a {{ color: {color} !important; }}
      .accent, .highlight {{ background-color: {background} !important; border-color: {color} !important; }}
    """
