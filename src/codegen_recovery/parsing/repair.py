"""Repair helpers for truncated or malformed responses.

Three groups of helpers live here:

- preparation: invisible-prefix stripping, the ``// PLAN: {...}`` preamble,
  code-fence wrappers and stray fences inside recovered file contents;
- `repair_json`: a single linear pass that turns a JSON document cut off at
  end-of-text into something a strict decoder accepts;
- marker helpers: locating ``<!-- NAME -->`` blocks and reading their
  ``key: value`` lines.

None of these raise on malformed input.
"""

from __future__ import annotations

import dataclasses
import json
import re
from typing import Any

from codegen_recovery import constants
from codegen_recovery.core.types import MANIFEST_STATUSES, ManifestStatus, PlanInfo

_DECODER = json.JSONDecoder(strict=False)

_PLAN_PREAMBLE = re.compile(r"\A\s*//\s*PLAN:\s*(?=\{)")
_FENCE_OPEN = re.compile(r"\A\s*```[^\n`]*\n")
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```\s*\Z")

# --- Preparation ---


def strip_invisible_prefix(text: str) -> str:
    """Drop leading whitespace, BOM and zero-width characters."""
    return text.lstrip().lstrip(constants.INVISIBLE_PREFIX_CHARS).lstrip()


def split_plan_preamble(text: str) -> tuple[PlanInfo | None, str]:
    """Split a leading ``// PLAN: {...}`` comment from the rest of the text.

    The plan object is brace counted so nested objects are handled. Returns
    ``(None, text)`` when there is no preamble.
    """
    match = _PLAN_PREAMBLE.match(text)
    if not match:
        return None, text
    start = match.end()
    try:
        obj, end = _DECODER.raw_decode(text, start)
    except ValueError:
        obj, end = None, _matching_brace(text, start)
    plan = plan_from_mapping(obj) if isinstance(obj, dict) else None
    return plan, text[end:].lstrip()


def _matching_brace(text: str, start: int) -> int:
    depth = 0
    for i in range(start, len(text)):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    # An unterminated plan swallows the line it started on
    newline = text.find("\n", start)
    return len(text) if newline == -1 else newline + 1


def strip_fence(text: str) -> str:
    """Remove a wrapping code fence; the closing fence may be missing."""
    opened = _FENCE_OPEN.match(text)
    if not opened:
        return text
    return _FENCE_CLOSE.sub("", text[opened.end() :])


def clean_code(content: str) -> str:
    """Strip stray fences around recovered file content.

    Content that does not start with a fence is returned unchanged apart from
    a lone stray closing fence at the end.
    """
    if _FENCE_OPEN.match(content):
        return strip_fence(content).strip()
    if content.count("```") == 1 and _FENCE_CLOSE.search(content):
        return _FENCE_CLOSE.sub("", content).strip()
    return content.strip()


def plan_from_mapping(data: dict[str, Any]) -> PlanInfo:
    return PlanInfo(
        create=_str_tuple(data.get("create")),
        update=_str_tuple(data.get("update")),
        delete=_str_tuple(data.get("delete")),
    )


def _str_tuple(value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        return split_list(value)
    if isinstance(value, list | tuple):
        return tuple(str(v).strip() for v in value if str(v).strip())
    return ()


# --- JSON repair ---


@dataclasses.dataclass(frozen=True, slots=True)
class JsonRepair:
    """Outcome of `repair_json`.

    Attributes:
        text: The repaired document text.
        changed: Whether anything was modified.
        hit_eof: True when the input ended inside a string, object or array.
        open_path: Object keys and array indices leading to the string value
            that was still open at end-of-text; empty when none was.
    """

    text: str
    changed: bool
    hit_eof: bool
    open_path: tuple[str | int, ...] = ()

    @property
    def open_key(self) -> str | None:
        """Innermost object key of `open_path`, if it ends on one."""
        if self.open_path and isinstance(self.open_path[-1], str):
            return self.open_path[-1]
        return None


_PARTIAL_LITERAL = re.compile(
    r"(?<=[:,\[])(\s*)(t(?:r(?:u)?)?|f(?:a(?:l(?:s)?)?)?|n(?:u(?:l)?)?)\Z"
)
_LITERALS = {"t": "true", "f": "false", "n": "null"}
_PARTIAL_NUMBER = re.compile(r"(?<=[:,\[])(\s*)(-?[0-9.eE+-]*)\Z")
_VALID_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_PARTIAL_UNICODE_ESCAPE = re.compile(r"\\u[0-9a-fA-F]{0,3}\Z")
_OPENERS = {"{": "}", "[": "]"}
_LEADING_DIGITS = re.compile(r"\d+")


def repair_json(text: str) -> JsonRepair:
    """Close whatever a truncated JSON document left open.

    One linear scan tracks string state, the open object/array stack and the
    key or index being written at each level. At end-of-text it closes an
    open string (dropping a dangling escape), completes a partial
    ``true``/``false``/``null``, drops a dangling key and any trailing comma,
    then appends the missing closers in stack order.
    Trailing commas before existing closers are removed along the way.
    """
    out: list[str] = []
    stack: list[str] = []
    # Current key (objects) or element index (arrays), parallel to `stack`
    path: list[str | int | None] = []
    in_string = False
    escaped = False
    string_start = -1
    # Significant character before the most recent string and its out index
    before_string = ""
    key_start = -1
    key_text = ""
    last_sig = ""

    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
                last_sig = '"'
            continue
        if ch == '"':
            in_string = True
            string_start = len(out)
            before_string = last_sig
            out.append(ch)
            continue
        if ch in "}]":
            _drop_trailing_comma(out)
            out.append(ch)
            if stack:
                stack.pop()
                path.pop()
            if not stack:
                break
            last_sig = ch
            continue
        if ch in _OPENERS:
            stack.append(ch)
            path.append(None if ch == "{" else 0)
        elif ch == ":" and last_sig == '"':
            key_start = string_start
            key_text = "".join(out[string_start:]).strip()
            if stack and stack[-1] == "{":
                path[-1] = _decode_key(key_text)
        elif ch == "," and stack:
            index = path[-1]
            path[-1] = index + 1 if isinstance(index, int) else None
        out.append(ch)
        if not ch.isspace():
            last_sig = ch

    hit_eof = in_string or bool(stack)
    open_path: tuple[str | int, ...] = ()
    if hit_eof:
        if in_string:
            if escaped:
                out.pop()
            tail = "".join(out[-6:])
            partial = _PARTIAL_UNICODE_ESCAPE.search(tail)
            if partial:
                del out[len(out) - (len(tail) - partial.start()) :]
            if stack and stack[-1] == "{" and before_string in ("{", ","):
                # Unfinished object key: nothing to keep
                del out[string_start:]
            else:
                out.append('"')
                if None not in path:
                    open_path = tuple(path)
        _finish_value(out, stack, key_start)
        out.extend(_OPENERS[opener] for opener in reversed(stack))

    repaired = "".join(out)
    return JsonRepair(
        text=repaired,
        changed=repaired != text,
        hit_eof=hit_eof,
        open_path=open_path,
    )


def _decode_key(token: str) -> str | None:
    try:
        value = json.loads(token)
    except ValueError:
        return None
    return value if isinstance(value, str) else None


def decode_json_string(raw: str) -> str:
    """Decode the body of a JSON string literal, tolerating bad escapes."""
    raw = raw[:-1] if raw.endswith("\\") and not raw.endswith("\\\\") else raw
    partial = _PARTIAL_UNICODE_ESCAPE.search(raw[-6:])
    if partial:
        raw = raw[: len(raw) - (len(raw[-6:]) - partial.start())]
    try:
        return _DECODER.decode(f'"{raw}"')
    except ValueError:
        return (
            raw.replace("\\n", "\n")
            .replace("\\t", "\t")
            .replace('\\"', '"')
            .replace("\\\\", "\\")
        )


def _drop_trailing_comma(out: list[str]) -> None:
    i = len(out) - 1
    while i >= 0 and out[i].isspace():
        i -= 1
    if i >= 0 and out[i] == ",":
        del out[i:]


def _rstrip(out: list[str]) -> None:
    while out and out[-1].isspace():
        out.pop()


def _finish_value(out: list[str], stack: list[str], key_start: int) -> None:
    """Make the end of `out` a valid place to append closers."""
    _rstrip(out)
    tail = "".join(out[-24:])
    literal = _PARTIAL_LITERAL.search(tail)
    if literal and literal.group(2):
        out.extend(_LITERALS[literal.group(2)[0]][len(literal.group(2)) :])
        return
    number = _PARTIAL_NUMBER.search(tail)
    if number and number.group(2):
        value = number.group(2)
        valid = _VALID_NUMBER.match(value)
        keep = valid.group(0) if valid else ""
        del out[len(out) - (len(value) - len(keep)) :]
        _rstrip(out)
    if out and out[-1] == ":" and key_start >= 0:
        del out[key_start:]
        _rstrip(out)
    elif out and out[-1] == '"' and stack and stack[-1] == "{":
        _drop_dangling_key(out)
    _drop_trailing_comma(out)
    _rstrip(out)


def _drop_dangling_key(out: list[str]) -> None:
    """Remove a complete string sitting in key position with no colon."""
    text = "".join(out)
    i = len(text) - 2
    while i >= 0:
        if text[i] == '"' and (i == 0 or text[i - 1] != "\\"):
            break
        i -= 1
    j = i - 1
    while j >= 0 and text[j].isspace():
        j -= 1
    if i > 0 and j >= 0 and text[j] in "{,":
        del out[i:]


# --- Marker helpers ---


def marker_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf"<!--\s*{re.escape(name)}\s*-->", re.I)


def marker_block(text: str, name: str) -> str | None:
    """Return the body of ``<!-- NAME -->...<!-- /NAME -->``.

    A block whose closer is missing runs to the next marker comment (or the
    end of the text).
    """
    opener = marker_pattern(name).search(text)
    if not opener:
        return None
    closer = marker_pattern(f"/{name}").search(text, opener.end())
    if closer:
        return text[opener.end() : closer.start()].strip()
    following = text.find("<!--", opener.end())
    end = len(text) if following == -1 else following
    return text[opener.end() : end].strip()


def parse_key_values(block: str) -> dict[str, str]:
    """Read ``key: value`` lines; keys are lower-cased."""
    values: dict[str, str] = {}
    for line in block.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip():
            values[key.strip().lower()] = value.strip()
    return values


def split_list(value: str) -> tuple[str, ...]:
    """Split a comma separated path list, ignoring placeholders."""
    items = (item.strip().strip("\"'`") for item in value.split(","))
    return tuple(item for item in items if item and item.lower() not in ("none", "-"))


def load_object(text: str) -> dict[str, Any] | None:
    """Decode a leading JSON object, ignoring anything after it."""
    if not text.lstrip().startswith("{"):
        return None
    try:
        data, _ = _DECODER.raw_decode(text.lstrip())
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


# --- Lenient field coercion ---


def as_count(value: Any) -> int:
    """Non-negative int from ``12``, ``"12"`` or ``"~1,200"``; 0 otherwise."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int | float):
        return max(int(value), 0)
    match = _LEADING_DIGITS.match(re.sub(r"[~,\s]", "", str(value or "")))
    return int(match.group(0)) if match else 0


def as_status(value: Any) -> ManifestStatus:
    text = str(value or "").strip().lower()
    for status in MANIFEST_STATUSES:
        if status == text:
            return status
    return "included"


def as_flag(value: Any, *, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if value is None or str(value).strip() == "":
        return default
    return str(value).strip().lower() not in ("false", "no", "0")
