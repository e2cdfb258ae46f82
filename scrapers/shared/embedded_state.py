"""
Embedded state extraction
Pulls JSON values out of server-rendered pages (preloaded state blobs,
Bamco.* globals) without running any of the page's JavaScript.
"""

import json
import re
from typing import Any, Optional

PRELOADED_STATE_MARKER = "window.__PRELOADED_STATE__"

PRELOADED_STATE_PATTERN = re.compile(r"window\.__PRELOADED_STATE__\s*=\s*(\{[\s\S]*?\})\s*;")
PRELOADED_SCRIPT_PATTERN = re.compile(
    r"<script[^>]*>([\s\S]*?window\.__PRELOADED_STATE__[\s\S]*?)</script>",
    re.IGNORECASE,
)
QUOTE_CHARS = ("\"", "'", "`")


class JsLiteralError(ValueError):
    """Raised when a script value is not a plain JS literal we can read"""


def extract_json_object_literal(text: str, marker: str) -> Optional[str]:
    """
    Return the exact "{...}" source that follows `marker`, matching braces.

    String contents (any quote style, backslash escapes included) are skipped
    so braces inside values don't change the depth. Returns None when the
    marker or the opening brace is missing or the braces never balance.
    """
    marker_index = text.find(marker)
    if marker_index == -1:
        return None

    brace_index = text.find("{", marker_index)
    if brace_index == -1:
        return None

    depth = 0
    in_string = None
    i = brace_index
    while i < len(text):
        char = text[i]
        if in_string:
            if char == "\\":
                i += 1
            elif char == in_string:
                in_string = None
        elif char in QUOTE_CHARS:
            in_string = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[brace_index:i + 1]
        i += 1

    return None


def extract_preloaded_state(html: str) -> Optional[Any]:
    """
    Find window.__PRELOADED_STATE__ in a page and return it parsed.

    Tries a quick regex first, then the brace-balanced scan, then reads the
    enclosing <script> as a JS literal. Never raises; returns None if all
    three fail.
    """
    direct = PRELOADED_STATE_PATTERN.search(html)
    if direct:
        try:
            return json.loads(direct.group(1))
        except (ValueError, RecursionError) as e:
            print(f"   ⚠️ Failed to parse __PRELOADED_STATE__: {e}")

    literal_block = extract_json_object_literal(html, PRELOADED_STATE_MARKER)
    if literal_block:
        try:
            return json.loads(literal_block)
        except (ValueError, RecursionError) as e:
            print(f"   ⚠️ Failed to parse __PRELOADED_STATE__ literal: {e}")

    script = PRELOADED_SCRIPT_PATTERN.search(html)
    if not script:
        return None

    try:
        return read_script_assignment(script.group(1), PRELOADED_STATE_MARKER)
    except (ValueError, RecursionError) as e:
        print(f"   ⚠️ Failed to read __PRELOADED_STATE__ from script: {e}")
        return None


def read_script_assignment(script: str, target: str) -> Any:
    """Read the literal assigned to `target` inside a script body"""
    match = re.search(re.escape(target) + r"\s*=(?!=)", script)
    if not match:
        raise JsLiteralError(f"no assignment to {target}")
    reader = _JsLiteralReader(script, match.end())
    return reader.read_value()


def parse_js_literal(text: str) -> Any:
    """Parse a complete JS literal expression (object, array, string, ...)"""
    reader = _JsLiteralReader(text, 0)
    value = reader.read_value()
    reader.skip_space()
    if reader.pos < len(text) and text[reader.pos] != ";":
        raise JsLiteralError(f"unexpected trailing input at {reader.pos}")
    return value


def extract_bonapp_json_block(html: str, key: str) -> Optional[Any]:
    """Parse `Bamco.<key> = {...};` out of a Bon Appetit cafe page"""
    match = re.search(r"Bamco\." + re.escape(key) + r"\s*=\s*(\{[\s\S]*?\});", html)
    if not match:
        return None

    try:
        return json.loads(match.group(1))
    except (ValueError, RecursionError):
        pass

    block = extract_json_object_literal(html, f"Bamco.{key}")
    if block:
        try:
            return json.loads(block)
        except (ValueError, RecursionError) as e:
            print(f"   ⚠️ Failed to parse Bamco.{key}: {e}")
    return None


ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

IDENTIFIER_START = re.compile(r"[A-Za-z_$]")
IDENTIFIER = re.compile(r"[A-Za-z0-9_$]+")
NUMBER = re.compile(r"[+-]?(0[xX][0-9a-fA-F]+|(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?)")

KEYWORDS = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
    "NaN": float("nan"),
    "Infinity": float("inf"),
}


def _code_point(code):
    try:
        value = int(code, 16)
    except ValueError:
        raise JsLiteralError(f"bad escape {code!r}")
    if not 0 <= value <= 0x10FFFF:
        raise JsLiteralError(f"code point out of range: {code}")
    return chr(value)


class _JsLiteralReader:
    """Tokenizing reader for the JSON-like subset of JavaScript found in state scripts"""

    def __init__(self, text, pos=0):
        self.text = text
        self.pos = pos

    def skip_space(self):
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char.isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = len(text) if end == -1 else end + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end == -1:
                    raise JsLiteralError("unterminated comment")
                self.pos = end + 2
            else:
                break

    def peek(self):
        self.skip_space()
        if self.pos >= len(self.text):
            raise JsLiteralError("unexpected end of script")
        return self.text[self.pos]

    def expect(self, char):
        if self.peek() != char:
            raise JsLiteralError(f"expected {char!r} at {self.pos}")
        self.pos += 1

    def read_value(self):
        char = self.peek()
        if char == "{":
            return self.read_object()
        if char == "[":
            return self.read_array()
        if char in QUOTE_CHARS:
            return self.read_string()
        if char.isdigit() or char in "+-.":
            return self.read_number()
        if IDENTIFIER_START.match(char):
            return self.read_identifier_value()
        raise JsLiteralError(f"unexpected {char!r} at {self.pos}")

    def read_object(self):
        self.expect("{")
        result = {}
        while True:
            if self.peek() == "}":
                self.pos += 1
                return result
            key = self.read_key()
            self.expect(":")
            result[key] = self.read_value()
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != "}":
                raise JsLiteralError(f"expected ',' or '}}' at {self.pos}")

    def read_key(self):
        char = self.peek()
        if char in QUOTE_CHARS:
            return self.read_string()
        match = IDENTIFIER.match(self.text, self.pos)
        if not match:
            raise JsLiteralError(f"bad object key at {self.pos}")
        self.pos = match.end()
        return match.group(0)

    def read_array(self):
        self.expect("[")
        result = []
        while True:
            if self.peek() == "]":
                self.pos += 1
                return result
            result.append(self.read_value())
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != "]":
                raise JsLiteralError(f"expected ',' or ']' at {self.pos}")

    def read_string(self):
        quote = self.text[self.pos]
        self.pos += 1
        chunks = []
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char == quote:
                self.pos += 1
                return "".join(chunks)
            if quote == "`" and text.startswith("${", self.pos):
                raise JsLiteralError("template substitutions are not literals")
            if char == "\\":
                chunks.append(self.read_escape())
                continue
            chunks.append(char)
            self.pos += 1
        raise JsLiteralError("unterminated string")

    def read_escape(self):
        text = self.text
        self.pos += 1
        if self.pos >= len(text):
            raise JsLiteralError("unterminated escape")
        char = text[self.pos]
        self.pos += 1

        if char == "u":
            if text.startswith("{", self.pos):
                end = text.find("}", self.pos)
                if end == -1:
                    raise JsLiteralError("bad unicode escape")
                code = text[self.pos + 1:end]
                self.pos = end + 1
                return _code_point(code)
            code = text[self.pos:self.pos + 4]
            self.pos += 4
            return _code_point(code)
        if char == "x":
            code = text[self.pos:self.pos + 2]
            self.pos += 2
            return _code_point(code)
        if char == "\r" and text.startswith("\n", self.pos):
            self.pos += 1
            return ""
        if char in "\n\r":
            return ""
        return ESCAPES.get(char, char)

    def read_number(self):
        match = NUMBER.match(self.text, self.pos)
        if not match:
            raise JsLiteralError(f"bad number at {self.pos}")
        self.pos = match.end()
        raw = match.group(0)
        if "x" in raw or "X" in raw:
            return int(raw, 16)
        if re.fullmatch(r"[+-]?\d+", raw):
            return int(raw)
        return float(raw)

    def read_identifier_value(self):
        match = IDENTIFIER.match(self.text, self.pos)
        name = match.group(0)
        self.pos = match.end()

        if name in KEYWORDS:
            return KEYWORDS[name]

        # JSON.parse("...") is the only call allowed through
        if name == "JSON" and self.text.startswith(".parse", self.pos):
            self.pos += len(".parse")
            self.expect("(")
            if self.peek() not in QUOTE_CHARS:
                raise JsLiteralError("JSON.parse argument is not a string literal")
            payload = self.read_string()
            self.expect(")")
            return json.loads(payload)

        raise JsLiteralError(f"unsupported identifier {name!r}")
