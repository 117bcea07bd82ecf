"""JavaScript snippets evaluated by the session's DOM helpers.

Selectors and values are escaped into string literals before they are
embedded, so a quote in caller input cannot terminate the literal early.
"""

from __future__ import annotations

_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}

AJAX_IDLE = "!$.active"


def js_string(value: str, quote: str = "'") -> str:
    """Return ``value`` as a JS string literal delimited by ``quote``."""
    if quote not in ("'", '"'):
        raise ValueError(f"Unsupported quote character: {quote!r}")
    out: list[str] = []
    for ch in str(value):
        if ch == quote:
            out.append("\\" + ch)
        elif ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ord(ch) < 0x20:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    return quote + "".join(out) + quote


def query_selector(selector: str) -> str:
    return f"document.querySelector({js_string(selector)})"


def click(selector: str) -> str:
    return f"{query_selector(selector)}.click()"


def input_value(selector: str) -> str:
    return f"{query_selector(selector)}.value"


def set_input_value(selector: str, value: str) -> str:
    literal = js_string(value, quote='"')
    return f"{query_selector(selector)}.value = {literal}"


__all__ = ["AJAX_IDLE", "click", "input_value", "js_string", "query_selector", "set_input_value"]
