from __future__ import annotations

import functools
import json
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from pybars import Compiler, strlist

from ..config import DEFAULT_COLUMN_GAP, DEFAULT_Y
from ..errors import TemplateCompileError

logger = logging.getLogger(__name__)

# pybars compiles through a class-level code builder shared by every Compiler
_COMPILE_LOCK = threading.Lock()

# pybars only accepts hash keys of two or more characters
_SHORT_KEY_SUFFIX = "__"


def _safe(text: str) -> strlist:
    # strlist output is inserted as-is, plain str would be HTML-escaped
    return strlist([text])


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def _plain(value: Any) -> Any:
    if isinstance(value, strlist):
        return str(value)
    return value


def _text(value: Any) -> str:
    value = _plain(value)
    return "" if value is None else str(value)


def widen_short_keys(source: str) -> str:
    """
    Rewrite one-letter hash keys inside ``{{...}}`` tags (``y=100``) to a
    form pybars can parse. Quoted strings and text outside tags are left alone.
    """
    out: List[str] = []
    index = 0
    length = len(source)
    while True:
        start = source.find("{{", index)
        if start == -1:
            out.append(source[index:])
            return "".join(out)
        out.append(source[index:start + 2])
        index = start + 2
        quote = None
        while index < length:
            char = source[index]
            if quote:
                if char == "\\":
                    out.append(source[index:index + 2])
                    index += 2
                    continue
                if char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif source.startswith("}}", index):
                break
            elif (
                char.isascii()
                and char.isalpha()
                and source[index - 1] in " \t\r\n("
                and source[index + 1:index + 2] == "="
            ):
                out.append(char + _SHORT_KEY_SUFFIX)
                index += 1
                continue
            out.append(char)
            index += 1


def _restore_short_keys(helper: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(helper)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        restored = {}
        for key, value in kwargs.items():
            if len(key) == 1 + len(_SHORT_KEY_SUFFIX) and key.endswith(_SHORT_KEY_SUFFIX):
                key = key[0]
            restored[key] = value
        return helper(*args, **restored)

    return wrapper


def _join_json_values(body: str) -> Optional[str]:
    """
    Put a separator comma between adjacent top-level JSON values in ``body``.
    Commas already in ``body`` are kept where they are, so a stray or trailing
    comma still makes the document invalid. Returns None when ``body`` is not
    a run of JSON values and commas.
    """
    decoder = json.JSONDecoder()
    parts: List[str] = []
    after_value = False
    index = 0
    length = len(body)
    while True:
        while index < length and body[index].isspace():
            index += 1
        if index >= length:
            return "".join(parts)
        if body[index] == ",":
            parts.append(",\n    ")
            after_value = False
            index += 1
            continue
        try:
            _, end = decoder.raw_decode(body, index)
        except ValueError:
            return None
        if after_value:
            parts.append(",\n    ")
        parts.append(body[index:end])
        after_value = True
        index = end


class TemplateHelpers:
    """
    Helper set handed to the Handlebars compiler for one or more renders.

    Block constructors (``text_block``, ``table_block``...) emit one JSON
    object each; ``pdf_document`` wraps them into the document shape.
    Text fields containing ``{{`` are expanded against the current context
    first. When that nested expansion fails the literal text is kept if
    ``lenient_helper_failures`` is set, otherwise ``TemplateCompileError``
    is raised.
    """

    def __init__(self, lenient_helper_failures: bool = True) -> None:
        self.lenient_helper_failures = lenient_helper_failures
        self._compiler = Compiler()
        self._helpers: Dict[str, Callable[..., Any]] = {
            "json_val": self.json_val,
            "concat": self.concat,
            "array": self.array,
            "string_array": self.string_array,
            "each_json": self.each_json,
            "if_eq": self.if_eq,
            "text_block": self.text_block,
            "multiline_text_block": self.multiline_text_block,
            "multi_column_text_block": self.multi_column_text_block,
            "table_block": self.table_block,
            "column_content": self.column_content,
            "pdf_document": self.pdf_document,
            "each_block": self.each_block,
        }
        self._helpers = {name: _restore_short_keys(helper) for name, helper in self._helpers.items()}

    def as_dict(self) -> Dict[str, Callable[..., Any]]:
        return dict(self._helpers)

    def compile(self, template: str) -> Callable[..., Any]:
        source = widen_short_keys(template)
        with _COMPILE_LOCK:
            return self._compiler.compile(source)

    def render(self, template: str, data: Any) -> str:
        return str(self.compile(template)(data, helpers=self._helpers))

    def expand_text(self, text: Any, context: Any) -> Any:
        if not isinstance(text, str) or "{{" not in text:
            return text
        try:
            return self.render(text, context)
        except Exception as exc:
            if not self.lenient_helper_failures:
                raise TemplateCompileError(f"Failed to expand {text!r}: {exc}") from exc
            logger.debug("Keeping literal text %r: %s", text, exc)
            return text

    # value helpers

    def json_val(self, this: Any, value: Any = None) -> strlist:
        return _safe(_dumps(_plain(value)))

    def concat(self, this: Any, *args: Any) -> str:
        return "".join(_text(arg) for arg in args)

    def array(self, this: Any, *args: Any) -> List[Any]:
        return [_plain(arg) for arg in args]

    def string_array(self, this: Any, items: Any = None) -> strlist:
        if not isinstance(items, (list, tuple)):
            return _safe("[]")
        return _safe(_dumps([_text(item) for item in items]))

    def each_json(self, this: Any, options: Dict[str, Any], items: Any = None) -> strlist:
        if not isinstance(items, (list, tuple)) or not items:
            return _safe("")
        parts: List[str] = []
        last = len(items) - 1
        for index, item in enumerate(items):
            if isinstance(item, dict):
                item = dict(item, **{"@index": index, "@first": index == 0, "@last": index == last})
            parts.append(str(options["fn"](item)))
        return _safe(",\n".join(parts))

    def if_eq(self, this: Any, options: Dict[str, Any], a: Any = None, b: Any = None) -> strlist:
        if _plain(a) == _plain(b):
            return _safe(str(options["fn"](this)))
        inverse = options.get("inverse")
        out = inverse(this) if inverse else None
        return _safe("" if out is None else str(out))

    # block constructors

    def text_block(self, this: Any, **kwargs: Any) -> strlist:
        text = self.expand_text(_text(kwargs.get("text")), this)
        return _safe(_dumps({
            "type": "textBlock",
            "text": text,
            "startColumn": kwargs.get("startColumn", 1),
            "columns": kwargs.get("columns", 1),
            "y": kwargs.get("y", DEFAULT_Y),
        }))

    def multiline_text_block(self, this: Any, **kwargs: Any) -> strlist:
        lines = kwargs.get("lines") or []
        if isinstance(lines, (list, tuple)):
            lines = [self.expand_text(_text(line), this) for line in lines]
        block: Dict[str, Any] = {
            "type": "multilineTextBlock",
            "lines": lines,
            "startColumn": kwargs.get("startColumn", 1),
            "columns": kwargs.get("columns", 1),
            "y": kwargs.get("y", DEFAULT_Y),
        }
        if kwargs.get("lineSpacing") is not None:
            block["lineSpacing"] = kwargs["lineSpacing"]
        return _safe(_dumps(block))

    def multi_column_text_block(self, this: Any, **kwargs: Any) -> strlist:
        columns = []
        for column in kwargs.get("columns") or []:
            column = _plain(column)
            # output of the column_content helper
            if isinstance(column, str):
                column = json.loads(column)
            columns.append(column)
        return _safe(_dumps({
            "type": "multiColumnTextBlock",
            "columns": columns,
            "startColumn": kwargs.get("startColumn", 1),
            "columnSpan": kwargs.get("columnSpan", 12),
            "y": kwargs.get("y", DEFAULT_Y),
            "columnGap": kwargs.get("columnGap", DEFAULT_COLUMN_GAP),
        }))

    def table_block(self, this: Any, **kwargs: Any) -> strlist:
        """
        Usage: {{table_block headers=(array "Name" "Age") rows=rows}}
        or with objects: {{table_block headers=(array "Name") data=people fields=(array "name")}}
        """
        rows = kwargs.get("rows") or []
        data = kwargs.get("data")
        fields = kwargs.get("fields")
        if isinstance(data, (list, tuple)) and isinstance(fields, (list, tuple)):
            rows = [
                [
                    "" if not isinstance(item, dict) or item.get(field) is None else str(item[field])
                    for field in fields
                ]
                for item in data
            ]
        return _safe(_dumps({
            "type": "tableBlock",
            "headers": kwargs.get("headers") or [],
            "rows": rows,
            "startColumn": kwargs.get("startColumn", 1),
            "y": kwargs.get("y", DEFAULT_Y),
        }))

    def column_content(self, this: Any, **kwargs: Any) -> strlist:
        content: Dict[str, Any] = {
            "lines": [_text(line) for line in kwargs.get("lines") or []],
            "startLine": kwargs.get("startLine", 1),
        }
        if kwargs.get("lineSpacing") is not None:
            content["lineSpacing"] = kwargs["lineSpacing"]
        return _safe(_dumps(content))

    # document structure

    def pdf_document(self, this: Any, options: Dict[str, Any]) -> strlist:
        body = str(options["fn"](this))
        joined = _join_json_values(body)
        # not a clean run of JSON values: keep it verbatim so parsing reports it
        blocks = joined if joined is not None else body.strip()
        return _safe('{\n  "type": "pdfDocument",\n  "blocks": [\n    ' + blocks + "\n  ]\n}")

    def each_block(self, this: Any, options: Dict[str, Any], items: Any = None) -> strlist:
        if not isinstance(items, (list, tuple)) or not items:
            return _safe("")
        return _safe(",\n    ".join(str(options["fn"](item)) for item in items))


DEFAULT_HELPERS = TemplateHelpers()
