"""Field-level rules of the manifest format.

The manifest is a comma separated text format:

- Records end with '\\n' or '\\r\\n' ('\\r' alone is accepted on read).
- A field containing '"', ',', '\\r' or '\\n' is wrapped in double quotes
  with inner double quotes doubled. Other fields are written verbatim.
- Binary values are lowercase hex, the empty string meaning "absent".
- The ``meta`` column holds ``'key'='value';'key2'='value2'``: single
  quoted literals with inner single quotes doubled.
"""

import io
import re
from typing import TextIO

COLUMN_PATH = "path"
COLUMN_TYPE = "type"
COLUMN_CREATED = "created"
COLUMN_MODIFIED = "modified"
COLUMN_SIZE = "size"
COLUMN_FILES = "files"
COLUMN_DIRECTORIES = "directories"
COLUMN_SHA256 = "sha256"
COLUMN_SAMPLE = "sample"
COLUMN_META = "meta"

# Canonical column order
COLUMNS: tuple[str, ...] = (
    COLUMN_PATH,
    COLUMN_TYPE,
    COLUMN_CREATED,
    COLUMN_MODIFIED,
    COLUMN_SIZE,
    COLUMN_FILES,
    COLUMN_DIRECTORIES,
    COLUMN_SHA256,
    COLUMN_SAMPLE,
    COLUMN_META,
)

REQUIRED_COLUMNS: tuple[str, ...] = (COLUMN_PATH, COLUMN_TYPE)

_QUOTE_TRIGGERS = frozenset('",\r\n')
_HEX_PATTERN = re.compile(r"(?:[0-9a-fA-F]{2})*")
_INT_PATTERN = re.compile(r"-?[0-9]+")


def needs_quoting(value: str) -> bool:
    """Check whether a field must be wrapped in quotes."""
    return any(c in _QUOTE_TRIGGERS for c in value)


def escape_field(value: str) -> str:
    """Escape a single field for writing.

    Args:
        value: Raw field text.

    Returns:
        The text unchanged, or quoted with inner quotes doubled.
    """
    if not needs_quoting(value):
        return value
    return '"' + value.replace('"', '""') + '"'


def format_record(fields: list[str]) -> str:
    """Join escaped fields into one record, without the line break."""
    return ",".join(escape_field(f) for f in fields)


def read_record(stream: TextIO) -> list[str] | None:
    """Read one record from a text stream.

    The stream should be opened with ``newline=""`` so that line breaks
    inside quoted fields are preserved verbatim.

    Args:
        stream: Text stream positioned at the start of a record.

    Returns:
        List of unescaped fields, or None at end of stream.

    Raises:
        ValueError: On malformed quoting.
    """
    line = stream.readline()
    if not line:
        return None

    fields: list[str] = []
    buf: list[str] = []
    quoted = False
    closed = False  # just left a quoted section of the current field

    while True:
        i = 0
        length = len(line)
        while i < length:
            c = line[i]
            i += 1

            if quoted:
                if c == '"':
                    if i < length and line[i] == '"':
                        buf.append('"')
                        i += 1
                    else:
                        quoted = False
                        closed = True
                    continue
                buf.append(c)
                continue

            if c == ",":
                fields.append("".join(buf))
                buf.clear()
                closed = False
                continue

            if c in "\r\n":
                # Anything after the terminator on this line is the '\n' of '\r\n'
                fields.append("".join(buf))
                return fields

            if closed:
                msg = f"Unexpected character {c!r} after closing quote"
                raise ValueError(msg)

            if c == '"':
                if buf:
                    msg = "Quote inside an unquoted field"
                    raise ValueError(msg)
                quoted = True
                continue

            buf.append(c)

        if not quoted:
            # Last record without a trailing line break
            fields.append("".join(buf))
            return fields

        line = stream.readline()
        if not line:
            msg = "Unterminated quoted field"
            raise ValueError(msg)


def parse_record(text: str) -> list[str]:
    """Parse a complete record held in a string.

    Raises:
        ValueError: On malformed quoting or an empty input.
    """
    record = read_record(io.StringIO(text, newline=""))
    if record is None:
        msg = "Empty record"
        raise ValueError(msg)
    return record


def unescape_field(text: str) -> str:
    """Reverse :func:`escape_field` for a single field.

    Raises:
        ValueError: If the text is not exactly one well-formed field.
    """
    if not text:
        return ""
    fields = parse_record(text)
    if len(fields) != 1:
        msg = f"Expected a single field, found {len(fields)}"
        raise ValueError(msg)
    return fields[0]


def encode_hex(data: bytes | None) -> str:
    """Encode bytes as lowercase hex; None and empty bytes become ''."""
    if not data:
        return ""
    return data.hex()


def decode_hex(text: str) -> bytes | None:
    """Decode a hex field.

    Returns:
        The decoded bytes, or None for an empty field.

    Raises:
        ValueError: On odd length or non-hex characters.
    """
    if not text:
        return None
    if _HEX_PATTERN.fullmatch(text) is None:
        msg = f"Invalid hex string: {text!r}"
        raise ValueError(msg)
    return bytes.fromhex(text)


def parse_int(text: str) -> int:
    """Parse a decimal integer field; the empty string means 0.

    Raises:
        ValueError: If the text is not a plain decimal integer.
    """
    if not text:
        return 0
    if _INT_PATTERN.fullmatch(text) is None:
        msg = f"Invalid integer: {text!r}"
        raise ValueError(msg)
    return int(text)


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def format_metadata(metadata: dict[str, str]) -> str:
    """Serialize metadata into the ``'key'='value';...`` mini-language."""
    return ";".join(f"{_quote_literal(k)}={_quote_literal(v)}" for k, v in metadata.items())


def _read_literal(text: str, start: int) -> tuple[str, int]:
    """Read a single quoted literal starting at ``text[start] == "'"``.

    Returns:
        Tuple of (literal value, index after the closing quote).
    """
    buf: list[str] = []
    i = start + 1
    length = len(text)
    while i < length:
        c = text[i]
        if c == "'":
            if i + 1 < length and text[i + 1] == "'":
                buf.append("'")
                i += 2
                continue
            return "".join(buf), i + 1
        buf.append(c)
        i += 1
    msg = f"Unterminated metadata literal starting at index {start}"
    raise ValueError(msg)


def _skip_whitespace(text: str, i: int) -> int:
    while i < len(text) and text[i].isspace():
        i += 1
    return i


def parse_metadata(text: str) -> dict[str, str]:
    """Parse the ``meta`` mini-language.

    Whitespace outside literals is ignored and a trailing ';' is optional.
    A repeated key keeps its last value.

    Args:
        text: Field content.

    Returns:
        Ordered mapping of keys to values.

    Raises:
        ValueError: If the text does not follow the grammar.
    """
    result: dict[str, str] = {}
    i = _skip_whitespace(text, 0)
    length = len(text)

    while i < length:
        if text[i] != "'":
            msg = f"Expected quoted key at index {i}, found {text[i]!r}"
            raise ValueError(msg)
        key, i = _read_literal(text, i)

        i = _skip_whitespace(text, i)
        if i >= length or text[i] != "=":
            msg = f"Expected '=' after key {key!r}"
            raise ValueError(msg)
        i = _skip_whitespace(text, i + 1)

        if i >= length or text[i] != "'":
            msg = f"Expected quoted value for key {key!r}"
            raise ValueError(msg)
        value, i = _read_literal(text, i)
        result[key] = value

        i = _skip_whitespace(text, i)
        if i < length:
            if text[i] != ";":
                msg = f"Expected ';' at index {i}, found {text[i]!r}"
                raise ValueError(msg)
            i = _skip_whitespace(text, i + 1)

    return result
