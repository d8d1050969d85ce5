"""Minimal CSV reader for trade uploads.

Supports exactly what broker/spreadsheet exports need: comma delimiter,
double quotes around fields that contain commas, one row per line and a
header on the first line. Quote characters toggle quoting and are not kept.
"""


class MalformedInputError(ValueError):
    """The upload as a whole cannot be read as a trade CSV."""


def parse_csv_line(line: str) -> list[str]:
    fields: list[str] = []
    current: list[str] = []
    quoted = False
    for ch in line:
        if ch == '"':
            quoted = not quoted
        elif ch == "," and not quoted:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def parse_csv_text(text: str) -> list[dict[str, str]]:
    """Split CSV text into raw rows keyed by the (untouched) header names.

    Missing trailing cells become "", extra cells are dropped.
    """
    lines = [line.rstrip("\r") for line in text.strip().split("\n")]
    lines = [line for line in lines if line.strip()]
    if len(lines) < 2:
        raise MalformedInputError("CSV needs header + at least one row")

    headers = [h.strip() for h in parse_csv_line(lines[0])]
    rows = []
    for line in lines[1:]:
        values = parse_csv_line(line)
        row = {}
        for i, header in enumerate(headers):
            row[header] = values[i].strip() if i < len(values) else ""
        rows.append(row)
    return rows


def decode_upload(content: bytes) -> str:
    """Decode an uploaded file, dropping a UTF-8 BOM if Excel added one."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedInputError("CSV file must be UTF-8 encoded") from e
