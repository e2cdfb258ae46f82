import pytest

from scrapers.shared.embedded_state import (
    JsLiteralError,
    extract_bonapp_json_block,
    extract_json_object_literal,
    extract_preloaded_state,
    parse_js_literal,
)


def test_preloaded_state_with_brace_inside_string():
    html = '<script>window.__PRELOADED_STATE__ = {"a": "contains a } brace", "b": 1};</script>'
    assert extract_preloaded_state(html) == {"a": "contains a } brace", "b": 1}


def test_preloaded_state_falls_back_to_balanced_scan():
    # The quick regex stops at the first "};", which sits inside the string
    html = '<script>window.__PRELOADED_STATE__ = {"a": "x};y", "b": {"c": 2}};</script>'
    assert extract_preloaded_state(html) == {"a": "x};y", "b": {"c": 2}}


def test_preloaded_state_reads_js_literal_from_script():
    html = """
    <html><head>
    <script type="text/javascript">
      // hydrate
      window.__PRELOADED_STATE__ = {
        composition: {'subject': {regions: [{id: 'menus', fragments: [],},]}},
        flag: true,
        missing: undefined,
      };
    </script>
    </head></html>
    """
    state = extract_preloaded_state(html)
    assert state == {
        "composition": {"subject": {"regions": [{"id": "menus", "fragments": []}]}},
        "flag": True,
        "missing": None,
    }


def test_preloaded_state_reads_json_parse_wrapper():
    html = "<script>window.__PRELOADED_STATE__ = JSON.parse('{\"menus\": [1, 2]}');</script>"
    assert extract_preloaded_state(html) == {"menus": [1, 2]}


def test_preloaded_state_refuses_to_run_code():
    html = "<script>window.__PRELOADED_STATE__ = fetch('/steal').then(r => r.json());</script>"
    assert extract_preloaded_state(html) is None


def test_preloaded_state_missing():
    assert extract_preloaded_state("<html><body>No state here</body></html>") is None


def test_json_object_literal_exact_substring():
    text = "var x = 1; Bamco.menu_items = {\"1\": {\"label\": \"a { b\"}, 'k': '}'} ; trailing"
    assert extract_json_object_literal(text, "Bamco.menu_items") == "{\"1\": {\"label\": \"a { b\"}, 'k': '}'}"


def test_json_object_literal_skips_escaped_quotes():
    text = 'state = {"a": "say \\"}\\" loudly", "b": 2}'
    assert extract_json_object_literal(text, "state") == '{"a": "say \\"}\\" loudly", "b": 2}'


def test_json_object_literal_unbalanced_or_missing():
    assert extract_json_object_literal("state = {\"a\": {\"b\": 1}", "state") is None
    assert extract_json_object_literal("state = 42;", "state") is None
    assert extract_json_object_literal("{\"a\": 1}", "state") is None


def test_bonapp_json_block():
    html = """
    <script>
    Bamco.menu_items = {"101": {"label": "Pancakes", "cor_icon": {"1": "Vegetarian"}}};
    Bamco.daily_menus = {"2024-01-15": {"dayparts": []}};
    </script>
    """
    assert extract_bonapp_json_block(html, "menu_items") == {
        "101": {"label": "Pancakes", "cor_icon": {"1": "Vegetarian"}}
    }
    assert extract_bonapp_json_block(html, "daily_menus") == {"2024-01-15": {"dayparts": []}}
    assert extract_bonapp_json_block(html, "cafes") is None


def test_bonapp_json_block_with_terminator_inside_string():
    html = 'Bamco.menu_items = {"1": {"label": "Soup", "description": "hot};cold"}};'
    assert extract_bonapp_json_block(html, "menu_items") == {
        "1": {"label": "Soup", "description": "hot};cold"}
    }


def test_bonapp_json_block_unparseable_returns_none():
    assert extract_bonapp_json_block("Bamco.menu_items = {label: oops};", "menu_items") is None


def test_parse_js_literal_values():
    assert parse_js_literal("[1, -2.5, 0x1F, 'it\\'s', \"\\u00e9\", null, false]") == [
        1, -2.5, 31, "it's", "\u00e9", None, False
    ]
    assert parse_js_literal("{/* note */ a: `tick`, 'b-c': [],}") == {"a": "tick", "b-c": []}


def test_parse_js_literal_rejects_expressions():
    with pytest.raises(JsLiteralError):
        parse_js_literal("{a: window.location}")
    with pytest.raises(JsLiteralError):
        parse_js_literal("`hello ${name}`")
    with pytest.raises(JsLiteralError):
        parse_js_literal("{a: 1} + 2")


def test_deeply_nested_state_returns_none():
    depth = 200000
    html = (
        '<script>window.__PRELOADED_STATE__ = {"a": '
        + "[" * depth + "]" * depth
        + "};</script>"
    )
    assert extract_preloaded_state(html) is None


def test_deeply_nested_bonapp_block_returns_none():
    depth = 200000
    html = 'Bamco.menu_items = {"a": ' + "[" * depth + "]" * depth + "};"
    assert extract_bonapp_json_block(html, "menu_items") is None


def test_out_of_range_unicode_escape():
    with pytest.raises(JsLiteralError):
        parse_js_literal("'\\u{FFFFFFFFFFFFFFFFFFFF}'")
    html = "<script>window.__PRELOADED_STATE__ = {a: '\\u{FFFFFFFFFFFFFFFFFFFF}'};</script>"
    assert extract_preloaded_state(html) is None
