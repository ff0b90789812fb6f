"""Tests for chart constructor scanning and rewriting."""

from report_editor.core.scripts import (
    ChartTarget,
    build_constructor_script,
    dump_config,
    find_constructor_calls,
    is_javascript,
    replace_config,
)

SCRIPT = """
console.log("before");
const ctx = document.getElementById('revenue').getContext('2d');
const palette = ['#3b82f6', '#ef4444'];
new Chart(ctx, {
  type: 'bar',
  data: {
    labels: ['Jan', 'Feb'],
    datasets: [{ label: 'Revenue', data: [10, -20], backgroundColor: palette[0] }]
  },
  options: {
    plugins: { title: { display: true, text: 'Revenue' } },
    scales: { y: { ticks: { callback: function(v) { return '$' + v; } } } }
  }
});
console.log("after");
"""


def test_finds_call_with_context_target():
    calls = find_constructor_calls(SCRIPT)
    assert len(calls) == 1
    assert calls[0].target == ChartTarget("id", "revenue")


def test_evaluates_literal_config():
    config = find_constructor_calls(SCRIPT)[0].config
    assert config["type"] == "bar"
    assert config["data"]["labels"] == ["Jan", "Feb"]
    assert config["data"]["datasets"][0]["data"] == [10, -20]
    assert config["data"]["datasets"][0]["backgroundColor"] == "#3b82f6"
    assert config["options"]["plugins"]["title"]["text"] == "Revenue"


def test_functions_are_dropped_from_config():
    config = find_constructor_calls(SCRIPT)[0].config
    assert config["options"]["scales"]["y"]["ticks"] == {}


def test_config_bound_to_variable():
    source = (
        "var cfg = {type: 'line', data: {labels: ['a'], datasets: [{data: [1]}]}};\n"
        "new Chart(document.querySelector('#trend'), cfg);"
    )
    call = find_constructor_calls(source)[0]
    assert call.target == ChartTarget("selector", "#trend")
    assert call.config["type"] == "line"
    assert source[call.config_start : call.config_end] == "cfg"


def test_multiple_calls_in_source_order():
    source = (
        "new Chart('a', {type: 'bar', data: {}});\n"
        "new window.Chart(document.getElementById('b'), {type: 'pie', data: {}});"
    )
    calls = find_constructor_calls(source)
    assert [c.target.value for c in calls] == ["a", "b"]
    assert [c.index for c in calls] == [0, 1]


def test_replace_config_keeps_rest_of_script():
    call = find_constructor_calls(SCRIPT)[0]
    new_source = replace_config(SCRIPT, call, {"type": "line", "data": {}, "options": {}})
    assert new_source.startswith(SCRIPT[: call.config_start])
    assert new_source.endswith(SCRIPT[call.config_end :])
    assert 'console.log("before");' in new_source
    assert 'console.log("after");' in new_source
    assert find_constructor_calls(new_source)[0].config["type"] == "line"


def test_nested_braces_in_strings():
    source = (
        "new Chart(document.getElementById('c'), {type: 'bar', data: {labels: ['})'], "
        "datasets: [{data: [1]}]}, options: {plugins: {title: {text: '{x}) '}}}});\n"
        "var after = 1;"
    )
    call = find_constructor_calls(source)[0]
    assert call.config["data"]["labels"] == ["})"]
    new_source = replace_config(source, call, {"type": "pie", "data": {}, "options": {}})
    assert new_source.endswith(");\nvar after = 1;")


def test_unparseable_script_falls_back_to_scan():
    source = (
        "const theme = window.report?.theme;\n"
        "new Chart(document.getElementById('c'), { type: 'bar', data: { labels: ['a'], "
        "datasets: [{ data: [1] }] }, options: { plugins: { title: { text: 'Has }) inside' } } } });\n"
        "// new Chart(commented, {type: 'line'})\n"
    )
    calls = find_constructor_calls(source)
    assert len(calls) == 1
    assert calls[0].target == ChartTarget("id", "c")
    assert calls[0].config["options"]["plugins"]["title"]["text"] == "Has }) inside"
    new_source = replace_config(source, calls[0], {"type": "line"})
    assert new_source.startswith("const theme = window.report?.theme;\n")
    assert new_source.endswith("// new Chart(commented, {type: 'line'})\n")


def test_no_chart_calls():
    assert find_constructor_calls("var x = 1;") == []
    assert find_constructor_calls("new Chart(onlyOneArg);") == []


def test_dump_config_cannot_close_script():
    assert "</script>" not in dump_config({"title": "</script>"})


def test_constructor_script_is_rediscoverable():
    config = {"type": "bar", "data": {"labels": ["x"], "datasets": []}, "options": {}}
    source = build_constructor_script("sales", config)
    assert "DOMContentLoaded" in source
    call = find_constructor_calls(source)[0]
    assert call.target == ChartTarget("id", "sales")
    assert call.config == config


def test_is_javascript():
    assert is_javascript(None)
    assert is_javascript("text/javascript")
    assert is_javascript("module")
    assert not is_javascript("application/json")


def test_function_scopes_keep_bindings_apart():
    source = """
(function () {
  const ctx = document.getElementById('c1');
  const cfg = {type: 'bar', data: {labels: ['a'], datasets: [{data: [1]}]}};
  new Chart(ctx, cfg);
})();
(function () {
  const ctx = document.getElementById('c2');
  const cfg = {type: 'line', data: {labels: ['b'], datasets: [{data: [2]}]}};
  new Chart(ctx, cfg);
})();
"""
    first, second = find_constructor_calls(source)
    assert first.target == ChartTarget("id", "c1")
    assert first.config["type"] == "bar"
    assert first.config["data"]["labels"] == ["a"]
    assert second.target == ChartTarget("id", "c2")
    assert second.config["type"] == "line"
    assert second.config["data"]["labels"] == ["b"]


def test_reassignment_applies_to_later_calls_only():
    source = """
var target = document.getElementById('first');
var cfg = {type: 'bar', data: {labels: ['a']}};
new Chart(target, cfg);
target = document.getElementById('second');
cfg = {type: 'pie', data: {labels: ['b']}};
new Chart(target, cfg);
"""
    first, second = find_constructor_calls(source)
    assert (first.target, first.config["type"]) == (ChartTarget("id", "first"), "bar")
    assert (second.target, second.config["type"]) == (ChartTarget("id", "second"), "pie")


def test_parameter_shadows_outer_binding():
    source = """
var cfg = {type: 'bar', data: {labels: ['a']}};
function draw(cfg) {
  new Chart(document.getElementById('inner'), cfg);
}
new Chart(document.getElementById('outer'), cfg);
"""
    inner, outer = find_constructor_calls(source)
    assert inner.target == ChartTarget("id", "inner")
    assert inner.config is None
    assert outer.config["type"] == "bar"


def test_block_binding_reassigned_inside_callback():
    source = """
const cfg = {type: 'bar', data: {labels: ['outer']}};
document.addEventListener('DOMContentLoaded', () => {
  let cfg = {type: 'line', data: {labels: ['draft']}};
  cfg = {type: 'line', data: {labels: ['final']}};
  new Chart(document.getElementById('inside'), cfg);
});
new Chart(document.getElementById('outside'), cfg);
"""
    inside, outside = find_constructor_calls(source)
    assert inside.config["data"]["labels"] == ["final"]
    assert outside.config["type"] == "bar"
    assert outside.config["data"]["labels"] == ["outer"]
