"""DOM helpers over BeautifulSoup trees: skeleton, inline styles, classes."""

import copy
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Doctype, NavigableString, Tag

HTML_PARSER = "html.parser"

_HEAD_TAGS = {"title", "meta", "link", "style", "script", "base", "noscript"}


def parse_html(markup: str) -> BeautifulSoup:
    """Parse markup and give it the html/head/body skeleton a browser would."""
    soup = BeautifulSoup(markup, HTML_PARSER)
    normalize_skeleton(soup)
    return soup


def normalize_skeleton(soup: BeautifulSoup) -> None:
    root = soup.find("html")
    if root is None:
        root = soup.new_tag("html")
        for node in list(soup.contents):
            if isinstance(node, Doctype):
                continue
            root.append(node.extract())
        soup.append(root)

    head = root.find("head")
    if head is None:
        head = soup.new_tag("head")
        root.insert(0, head)

    if root.find("body") is None:
        body = soup.new_tag("body")
        in_head = True
        for node in list(root.contents):
            if node is head:
                continue
            if in_head:
                is_blank = isinstance(node, NavigableString) and not node.strip()
                if is_blank or (isinstance(node, Tag) and node.name in _HEAD_TAGS):
                    head.append(node.extract())
                    continue
                in_head = False
            body.append(node.extract())
        root.append(body)


def clone_document(soup: BeautifulSoup) -> BeautifulSoup:
    """Deep copy of a parsed document; edits to the copy never reach the original."""
    return copy.copy(soup)


def element_children(tag: Tag) -> List[Tag]:
    return [child for child in tag.children if isinstance(child, Tag)]


def element_path(tag: Tag) -> Optional[List[int]]:
    """Element-child positions from the document down to ``tag``.

    None when ``tag`` is no longer attached to a document.
    """
    if tag.decomposed:
        return None
    path = []
    while tag.parent is not None:
        siblings = element_children(tag.parent)
        path.append(next(i for i, sibling in enumerate(siblings) if sibling is tag))
        tag = tag.parent
    if not isinstance(tag, BeautifulSoup):
        return None
    return path[::-1]


def follow_path(root: Tag, path: Optional[List[int]], name: Optional[str] = None) -> Optional[Tag]:
    """The element at ``path`` under ``root``, or None if the tree differs."""
    if path is None:
        return None
    tag = root
    for position in path:
        children = element_children(tag)
        if position >= len(children):
            return None
        tag = children[position]
    if name is not None and tag.name != name:
        return None
    return tag


def _split_declarations(value: str) -> List[str]:
    """Split a style attribute at semicolons outside quotes and parentheses."""
    chunks, start, depth, quote = [], 0, 0, None
    i = 0
    while i < len(value):
        ch = value[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif ch == ";" and depth == 0:
            chunks.append(value[start:i])
            start = i + 1
        i += 1
    chunks.append(value[start:])
    return chunks


def parse_style(value: Optional[str]) -> Dict[str, str]:
    declarations: Dict[str, str] = {}
    for chunk in _split_declarations(value or ""):
        name, sep, prop_value = chunk.partition(":")
        if sep and name.strip():
            declarations[name.strip().lower()] = prop_value.strip()
    return declarations


def format_style(declarations: Dict[str, str]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in declarations.items())


def get_style(tag: Tag, prop: str) -> Optional[str]:
    return parse_style(tag.get("style")).get(prop)


def set_style(tag: Tag, prop: str, value: str) -> None:
    declarations = parse_style(tag.get("style"))
    declarations[prop] = value
    tag["style"] = format_style(declarations)


def remove_style(tag: Tag, prop: str) -> None:
    declarations = parse_style(tag.get("style"))
    if declarations.pop(prop, None) is None:
        return
    if declarations:
        tag["style"] = format_style(declarations)
    else:
        del tag["style"]


def has_class(tag: Tag, name: str) -> bool:
    return name in (tag.get("class") or [])


def add_class(tag: Tag, name: str) -> None:
    classes = list(tag.get("class") or [])
    if name not in classes:
        classes.append(name)
    tag["class"] = classes


def remove_class(tag: Tag, name: str) -> None:
    classes = [c for c in (tag.get("class") or []) if c != name]
    if classes:
        tag["class"] = classes
    elif tag.has_attr("class"):
        del tag["class"]
