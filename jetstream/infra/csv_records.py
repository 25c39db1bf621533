"""
CSV batch reader.

Turns an uploaded CSV (header row required) into the ordered list of row
mappings a job dispatches. Expected columns:
advertising_id, appsflyer_id, android_id, country, user_ip, eventname, eventtime
"""

import csv
import io
from typing import Union


class RecordParseError(ValueError):
    """Raised when an upload cannot be read as CSV."""
    pass


def _decode(content: Union[bytes, str]) -> str:
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise RecordParseError(f"CSV is not valid UTF-8: {e}") from e


def parse_csv_records(content: Union[bytes, str], delimiter: str = ",") -> list[dict[str, str]]:
    """
    Parse CSV content into one dict per data row.

    Header names and values are stripped of surrounding whitespace; fully
    blank lines are skipped.

    Raises:
        RecordParseError: If the content is not decodable or malformed
    """
    text = _decode(content)
    records: list[dict[str, str]] = []

    try:
        reader = csv.DictReader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
        if reader.fieldnames is None:
            return records

        fieldnames = [name.strip() for name in reader.fieldnames]
        reader.fieldnames = fieldnames

        for line_no, row in enumerate(reader, start=2):
            if None in row:
                raise RecordParseError(f"Row {line_no} has more fields than the header")

            values = {key: (value or "").strip() for key, value in row.items()}
            if not any(values.values()):
                continue
            records.append(values)

    except csv.Error as e:
        raise RecordParseError(f"Malformed CSV: {e}") from e

    return records
