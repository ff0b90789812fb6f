"""
Locate, evaluate and rewrite chart constructor calls inside inline scripts.

Scripts are parsed with esprima so the configuration argument of each
``new Chart(target, config)`` is bounded by the syntax tree rather than by
brace counting. Scripts esprima cannot parse fall back to a string and
comment aware parenthesis scan, and only the argument list of each call is
handed to the parser.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

import esprima
from esprima.error_handler import Error as EsprimaError
from loguru import logger

# Marker for expressions that have no static JSON value (functions, calls...).
_MISSING = object()

_NEW_CHART = re.compile(r"\bnew\s+(?:window\s*\.\s*)?Chart\s*\(")

_JS_SCRIPT_TYPES = {
    "",
    "text/javascript",
    "application/javascript",
    "text/ecmascript",
    "application/ecmascript",
    "module",
}


@dataclass(frozen=True)
class ChartTarget:
    """How a constructor call addresses its chart surface."""

    kind: str  # "id" or "selector"
    value: str


@dataclass
class ConstructorCall:
    """A ``new Chart(...)`` call found in a script.

    ``start``/``end`` bound the whole call and ``config_start``/``config_end``
    bound the configuration argument, as offsets into the script source.
    """

    index: int
    start: int
    end: int
    config_start: int
    config_end: int
    target: Optional[ChartTarget]
    config: Optional[Dict[str, Any]]


def is_javascript(script_type: Optional[str]) -> bool:
    return (script_type or "").strip().lower() in _JS_SCRIPT_TYPES


def _walk(node: Any) -> Iterator[Dict[str, Any]]:
    if isinstance(node, dict):
        if "type" in node:
            yield node
        for value in node.values():
            if isinstance(value, (dict, list)):
                yield from _walk(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk(item)


def _parse(source: str) -> Dict[str, Any]:
    try:
        return esprima.parseScript(source, {"range": True}).toDict()
    except EsprimaError:
        return esprima.parseModule(source, {"range": True}).toDict()


def _property_name(node: Dict[str, Any], computed: bool = False) -> Optional[str]:
    if node.get("type") == "Identifier" and not computed:
        return node["name"]
    if node.get("type") == "Literal" and isinstance(node.get("value"), (str, int, float)):
        value = node["value"]
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value)
    return None


_FUNCTION_NODES = {"FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression"}

_WHOLE_SCRIPT = (0, float("inf"))


@dataclass
class _Binding:
    name: str
    position: int
    scope: Tuple[float, float]
    expr: Optional[Dict[str, Any]]


def _walk_scoped(
    node: Any, function_scope: Tuple[float, float], block_scope: Tuple[float, float]
) -> Iterator[Tuple[Dict[str, Any], Tuple[float, float], Tuple[float, float]]]:
    """Like ``_walk`` but also yields the enclosing function and block ranges."""
    if isinstance(node, dict):
        if "type" in node:
            yield node, function_scope, block_scope
            if node["type"] in _FUNCTION_NODES:
                function_scope = block_scope = tuple(node["range"])
            elif node["type"] == "BlockStatement":
                block_scope = tuple(node["range"])
        for value in node.values():
            if isinstance(value, (dict, list)):
                yield from _walk_scoped(value, function_scope, block_scope)
    elif isinstance(node, list):
        for item in node:
            yield from _walk_scoped(item, function_scope, block_scope)


class ScriptBindings:
    """Variable bindings of a script, resolved lexically at a source offset.

    ``var`` declarations are scoped to the enclosing function, ``let`` and
    ``const`` to the enclosing block, and an assignment rebinds whichever
    declaration it reaches. Function parameters shadow outer bindings with
    an unknown value.
    """

    def __init__(self, tree: Dict[str, Any]) -> None:
        self._bindings: List[_Binding] = []
        assignments = []
        for node, function_scope, block_scope in _walk_scoped(tree, _WHOLE_SCRIPT, _WHOLE_SCRIPT):
            kind = node["type"]
            if kind == "VariableDeclaration":
                scope = function_scope if node.get("kind") == "var" else block_scope
                for declarator in node["declarations"]:
                    if declarator["id"].get("type") == "Identifier":
                        name = declarator["id"]["name"]
                        self._add(name, declarator["range"][1], scope, declarator.get("init"))
            elif kind == "AssignmentExpression" and node.get("operator") == "=":
                if node["left"].get("type") == "Identifier":
                    assignments.append(node)
            elif kind in _FUNCTION_NODES:
                for param in node.get("params") or []:
                    if param.get("type") == "Identifier":
                        self._add(param["name"], node["range"][0], tuple(node["range"]), None)

        # An assignment rebinds the declaration it reaches, in that declaration's scope.
        for node in sorted(assignments, key=lambda n: n["range"][0]):
            name = node["left"]["name"]
            declared = self._visible(node["range"][0]).get(name)
            scope = declared.scope if declared is not None else _WHOLE_SCRIPT
            self._add(name, node["range"][1], scope, node["right"])

    def _add(self, name: str, position: int, scope: Tuple[float, float], expr) -> None:
        self._bindings.append(_Binding(name, position, scope, expr))

    def _visible(self, position: int) -> Dict[str, _Binding]:
        visible: Dict[str, _Binding] = {}
        for binding in self._bindings:
            start, end = binding.scope
            if binding.position > position or not start <= position < end:
                continue
            current = visible.get(binding.name)
            if current is None or (start, binding.position) >= (current.scope[0], current.position):
                visible[binding.name] = binding
        return visible

    def at(self, position: int) -> Dict[str, Dict[str, Any]]:
        """Map each name visible at ``position`` to the expression it last received."""
        return {
            name: binding.expr
            for name, binding in self._visible(position).items()
            if binding.expr is not None
        }


def evaluate(node: Dict[str, Any], bindings: Dict[str, Dict[str, Any]], _seen=frozenset()) -> Any:
    """Evaluate a literal-ish expression to its JSON value, or ``_MISSING``."""
    kind = node.get("type")

    if kind == "Literal":
        if node.get("regex"):
            return _MISSING
        return node.get("value")

    if kind == "TemplateLiteral":
        if node.get("expressions"):
            return _MISSING
        return "".join(q["value"]["cooked"] for q in node["quasis"])

    if kind == "ArrayExpression":
        items = []
        for element in node["elements"]:
            if element is None:
                items.append(None)
            elif element["type"] == "SpreadElement":
                spread = evaluate(element["argument"], bindings, _seen)
                if isinstance(spread, list):
                    items.extend(spread)
            else:
                value = evaluate(element, bindings, _seen)
                items.append(None if value is _MISSING else value)
        return items

    if kind == "ObjectExpression":
        result: Dict[str, Any] = {}
        for prop in node["properties"]:
            if prop["type"] == "SpreadElement":
                spread = evaluate(prop["argument"], bindings, _seen)
                if isinstance(spread, dict):
                    result.update(spread)
                continue
            if prop.get("kind") != "init" or prop.get("method"):
                continue
            key = _property_name(prop["key"], prop.get("computed", False))
            if key is None:
                continue
            value = evaluate(prop["value"], bindings, _seen)
            if value is not _MISSING:
                result[key] = value
        return result

    if kind == "UnaryExpression" and node.get("operator") in ("-", "+"):
        value = evaluate(node["argument"], bindings, _seen)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return -value if node["operator"] == "-" else value
        return _MISSING

    if kind == "Identifier":
        name = node["name"]
        if name in bindings and name not in _seen:
            return evaluate(bindings[name], bindings, _seen | {name})
        return _MISSING

    if kind == "MemberExpression":
        owner = evaluate(node["object"], bindings, _seen)
        key = _property_name(node["property"], node.get("computed", False))
        if isinstance(owner, dict) and key in owner:
            return owner[key]
        if isinstance(owner, list) and key is not None and key.isdigit():
            position = int(key)
            if position < len(owner):
                return owner[position]
        return _MISSING

    return _MISSING


def _is_document(node: Dict[str, Any]) -> bool:
    if node.get("type") == "Identifier":
        return node["name"] == "document"
    if node.get("type") == "MemberExpression":
        return _property_name(node["property"]) == "document"
    return False


def resolve_target(
    node: Dict[str, Any], bindings: Dict[str, Dict[str, Any]], _seen=frozenset()
) -> Optional[ChartTarget]:
    """Work out which element a constructor's first argument refers to."""
    kind = node.get("type")

    if kind in ("Literal", "TemplateLiteral"):
        value = evaluate(node, bindings)
        return ChartTarget("id", value) if isinstance(value, str) and value else None

    if kind == "Identifier":
        name = node["name"]
        if name in bindings and name not in _seen:
            return resolve_target(bindings[name], bindings, _seen | {name})
        return None

    if kind == "CallExpression" and node["callee"].get("type") == "MemberExpression":
        callee = node["callee"]
        method = _property_name(callee["property"])
        if method == "getContext":
            return resolve_target(callee["object"], bindings, _seen)
        if method in ("getElementById", "querySelector") and _is_document(callee["object"]):
            if not node["arguments"]:
                return None
            value = evaluate(node["arguments"][0], bindings)
            if not isinstance(value, str) or not value:
                return None
            return ChartTarget("id" if method == "getElementById" else "selector", value)

    return None


def _is_chart_callee(node: Dict[str, Any]) -> bool:
    if node.get("type") == "Identifier":
        return node["name"] == "Chart"
    if node.get("type") == "MemberExpression":
        return _property_name(node["property"]) == "Chart"
    return False


def _calls_from_tree(tree: Dict[str, Any]) -> List[ConstructorCall]:
    bindings = ScriptBindings(tree)
    news = [
        node
        for node in _walk(tree)
        if node["type"] == "NewExpression"
        and _is_chart_callee(node["callee"])
        and len(node["arguments"]) >= 2
    ]
    news.sort(key=lambda node: node["range"][0])

    calls = []
    for index, node in enumerate(news):
        target_node, config_node = node["arguments"][0], node["arguments"][1]
        visible = bindings.at(node["range"][0])
        config = evaluate(config_node, visible)
        calls.append(
            ConstructorCall(
                index=index,
                start=node["range"][0],
                end=node["range"][1],
                config_start=config_node["range"][0],
                config_end=config_node["range"][1],
                target=resolve_target(target_node, visible),
                config=config if isinstance(config, dict) else None,
            )
        )
    return calls


def _code_mask(source: str) -> List[bool]:
    """Flag which characters are code rather than string or comment text."""
    mask = [True] * len(source)
    i, n = 0, len(source)
    while i < n:
        ch = source[i]
        if ch in "'\"`":
            j = i + 1
            while j < n and source[j] != ch:
                j += 2 if source[j] == "\\" else 1
            end = min(j + 1, n)
        elif source.startswith("//", i):
            j = source.find("\n", i)
            end = n if j == -1 else j
        elif source.startswith("/*", i):
            j = source.find("*/", i + 2)
            end = n if j == -1 else j + 2
        else:
            i += 1
            continue
        for k in range(i, end):
            mask[k] = False
        i = end
    return mask


def _calls_from_text(source: str) -> List[ConstructorCall]:
    mask = _code_mask(source)
    calls: List[ConstructorCall] = []
    for match in _NEW_CHART.finditer(source):
        if not mask[match.start()]:
            continue
        open_at = match.end() - 1
        depth, close_at = 0, None
        for pos in range(open_at, len(source)):
            if not mask[pos]:
                continue
            if source[pos] == "(":
                depth += 1
            elif source[pos] == ")":
                depth -= 1
                if depth == 0:
                    close_at = pos
                    break
        if close_at is None:
            continue

        args_source = "[" + source[open_at + 1 : close_at] + "]"
        try:
            tree = esprima.parseScript(args_source, {"range": True}).toDict()
        except EsprimaError:
            logger.debug("Unparseable Chart arguments at offset {}", match.start())
            continue
        args = tree["body"][0]["expression"]["elements"]
        if len(args) < 2 or args[1] is None:
            continue
        shift = open_at
        config = evaluate(args[1], {})
        calls.append(
            ConstructorCall(
                index=len(calls),
                start=match.start(),
                end=close_at + 1,
                config_start=args[1]["range"][0] + shift,
                config_end=args[1]["range"][1] + shift,
                target=resolve_target(args[0], {}) if args[0] else None,
                config=config if isinstance(config, dict) else None,
            )
        )
    return calls


def find_constructor_calls(source: str) -> List[ConstructorCall]:
    """Return every ``new Chart(target, config)`` call in a script, in source order."""
    if "Chart" not in source:
        return []
    try:
        tree = _parse(source)
    except EsprimaError as exc:
        logger.debug("Script did not parse ({}); scanning constructor calls textually", exc)
        return _calls_from_text(source)
    return _calls_from_tree(tree)


def dump_config(config: Dict[str, Any]) -> str:
    """Serialize a chart configuration as a JavaScript object literal."""
    return json.dumps(config).replace("</", "<\\/")


def replace_config(source: str, call: ConstructorCall, config: Dict[str, Any]) -> str:
    """Swap one call's configuration argument, leaving the rest of the script verbatim."""
    return source[: call.config_start] + dump_config(config) + source[call.config_end :]


def build_constructor_script(canvas_id: str, config: Dict[str, Any]) -> str:
    """Script that constructs a chart from scratch once the document is ready."""
    return (
        "\n"
        "document.addEventListener('DOMContentLoaded', function() {\n"
        f"  new Chart(document.getElementById({json.dumps(canvas_id)}), {dump_config(config)});\n"
        "});\n"
    )
