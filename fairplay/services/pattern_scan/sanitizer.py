# fairplay/services/pattern_scan/sanitizer.py
"""
Best-effort repair of JSON text emitted by the scan model.

Small local models wrap JSON in markdown fences, paste raw HTML into values
without opening quotes, and put literal newlines inside strings. sanitize()
fixes exactly those quirks and nothing else; it never raises and is idempotent.
"""

_FENCE = "```"
_JSON_FENCE = "```json"

# Reproducible model quirks, applied in order as literal find/replace rules.
# Each replacement must not contain its own pattern, or sanitize() would stop
# being idempotent.
LITERAL_REPAIRS: list[tuple[str, str]] = [
    # "evidence": <button class="decline">No thanks</button>"
    ('": <', '": "<'),
    # "evidence":<a href="#">Reject</a>"
    ('":<', '":"<'),
]

_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def sanitize(raw: str) -> str:
    """Strip code fences, apply LITERAL_REPAIRS, and escape control characters inside strings."""
    text = strip_code_fences(raw)
    text = apply_literal_repairs(text)
    return escape_control_characters(text)


def strip_code_fences(text: str) -> str:
    """
    Remove leading ```json / ``` and trailing ``` markers.

    Repeats until none remain so doubled fences are fully removed.
    """
    text = text.strip()
    while True:
        stripped = text
        if stripped.startswith(_JSON_FENCE):
            stripped = stripped[len(_JSON_FENCE) :]
        elif stripped.startswith(_FENCE):
            stripped = stripped[len(_FENCE) :]
        if stripped.endswith(_FENCE):
            stripped = stripped[: -len(_FENCE)]
        stripped = stripped.strip()

        if stripped == text:
            return text
        text = stripped


def apply_literal_repairs(text: str) -> str:
    for find, replace in LITERAL_REPAIRS:
        text = text.replace(find, replace)
    return text


def escape_control_characters(text: str) -> str:
    """
    Escape raw newline, carriage return and tab inside JSON string values.

    A double quote toggles the in-string state unless the previous character is
    a backslash. Characters outside strings pass through untouched.
    """
    result: list[str] = []
    inside_string = False
    previous = ""

    for char in text:
        if char == '"' and previous != "\\":
            inside_string = not inside_string
            result.append(char)
        elif inside_string and char in _ESCAPES:
            result.append(_ESCAPES[char])
        else:
            result.append(char)
        previous = char

    return "".join(result)
