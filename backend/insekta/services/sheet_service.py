import logging
import math
import re
from decimal import ROUND_HALF_UP, Decimal
from io import StringIO
from typing import Callable, List, Optional, Sequence, Tuple

import chardet
import pandas as pd
import requests

from insekta.config import SHEET_FETCH_TIMEOUT

logger = logging.getLogger(__name__)

CHART_COLORS = ["#0056b3", "#ff9900", "#10b981", "#8b5cf6", "#ef4444"]

_DOC_ID_RE = re.compile(r"/d/([a-zA-Z0-9-_]+)")
_GID_RE = re.compile(r"[#&?]gid=([0-9]+)")
_FLOAT_LITERAL_RE = re.compile(r"^\s*-?(\d+\.?|\.\d+|\d+\.\d+)([eE][-+]?\d+)?\s*$")
_NUMBER_PREFIX_RE = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")
_HEADER_STRIP_RE = re.compile(r"^[\ufeff\s]+|\s+$")


class SheetError(Exception):
    """Base error of the chart pipeline; the message is shown to the user as-is"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SheetFetchError(SheetError):
    status_code = 502


class SheetParseError(SheetError):
    status_code = 400


class SheetEmptyError(SheetError):
    status_code = 400


class ChartConfigError(SheetError):
    status_code = 400


FETCH_FAILED_MESSAGE = (
    'Gagal mengambil data. Pastikan Link Google Sheet bersifat "Public" (Anyone with the link).'
)


def to_csv_export_url(url: str) -> str:
    """Share link (any common shape) -> CSV export link for the same document and tab"""
    id_match = _DOC_ID_RE.search(url or "")
    if not id_match:
        return url

    gid_match = _GID_RE.search(url)
    gid = gid_match.group(1) if gid_match else "0"
    return f"https://docs.google.com/spreadsheets/d/{id_match.group(1)}/export?format=csv&gid={gid}"


def decode_bytes(content: bytes) -> str:
    """Decode with the chardet guess, falling back through common encodings"""
    detected = (chardet.detect(content) or {}).get("encoding") or "utf-8"
    for encoding in [detected, "utf-8", "cp1252", "latin-1"]:
        try:
            return content.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            continue
    raise SheetParseError("Encoding file sheet tidak dikenali")


def infer_cell(value):
    """Per-cell type inference: empty -> None, booleans, numeric literals, else str"""
    if value is None:
        return None
    if not isinstance(value, str):
        return None if pd.isna(value) else value
    if value == "":
        return None
    if value in ("true", "TRUE"):
        return True
    if value in ("false", "FALSE"):
        return False
    if _FLOAT_LITERAL_RE.match(value):
        text = value.strip()
        number = float(text)
        if not math.isfinite(number):
            # 1e999 overflows; JSON has no infinity
            return None
        if re.fullmatch(r"-?\d+", text):
            return int(text)
        return number
    return value


def _parse_number_prefix(text: str) -> Optional[float]:
    match = _NUMBER_PREFIX_RE.match(text)
    if not match:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def normalize_cell(value):
    """Turn formatted numbers ("1.234,56", "Rp 1,234.56", "12%") into floats.

    Only strings containing a digit are touched; anything that does not
    parse is returned unchanged.
    """
    if not isinstance(value, str) or not re.search(r"[0-9]", value):
        return value

    clean = re.sub(r"[^0-9.,-]", "", value)
    last_comma = clean.rfind(",")
    last_dot = clean.rfind(".")

    if last_comma > last_dot:
        # 1.234,56 or 12,5 -> decimal comma; later commas end the number
        clean = clean.replace(".", "").replace(",", ".", 1)
    elif last_comma >= 0:
        # 1,234.56 -> decimal point
        clean = clean.replace(",", "")
    elif clean.count(".") > 1:
        # 1.234.567 -> thousands dots
        clean = clean.replace(".", "")

    number = _parse_number_prefix(clean)
    return value if number is None else number


def clean_header(key) -> str:
    return _HEADER_STRIP_RE.sub("", str(key)).strip()


def clean_rows(rows: Sequence[dict], normalizer: Callable = normalize_cell) -> List[dict]:
    return [{clean_header(k): normalizer(v) for k, v in row.items()} for row in rows]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def infer_columns(rows: Sequence[dict], config: Optional[dict] = None) -> Tuple[Optional[str], List[str]]:
    """Resolve (x-axis column, value columns), honouring an explicit config where valid"""
    if not rows:
        return None, []

    config = config or {}
    sample = rows[0]
    keys = list(sample.keys())
    if not keys:
        return None, []

    x_key = config.get("xAxisKey")
    if not x_key or x_key not in keys:
        text_cols = [k for k in keys if isinstance(sample[k], str)]
        x_key = text_cols[0] if text_cols else keys[0]

    y_keys = [k for k in (config.get("dataKeys") or []) if k in keys]
    if not y_keys:
        y_keys = [k for k in keys if k != x_key and _is_number(sample[k])]
    if not y_keys:
        y_keys = [keys[1] if len(keys) > 1 else keys[0]]

    return x_key, y_keys


def _format_id_locale(value) -> str:
    # id-ID: '.' groups thousands, ',' marks decimals, up to 3 fraction digits
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return text.replace(",", "\x00").replace(".", ",").replace("\x00", ".")


def _to_fixed(value, places: int) -> str:
    # half away from zero, like toFixed; plain format() rounds half to even
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def format_number(value):
    """Axis label for a value: 1.2M (miliar), 3.4jt (juta), 12rb (ribu)"""
    if not _is_number(value):
        return value
    if value >= 1_000_000_000:
        return f"{_to_fixed(value / 1_000_000_000, 1)}M"
    if value >= 1_000_000:
        return f"{_to_fixed(value / 1_000_000, 1)}jt"
    if value >= 1_000:
        return f"{_to_fixed(value / 1_000, 0)}rb"
    return _format_id_locale(value)



class SheetService:
    """Google Sheet -> chart rows.

    The cell normalizer and the column strategy are swappable so callers can
    plug in different heuristics for odd sheets.
    """

    def __init__(
        self,
        normalizer: Callable = normalize_cell,
        column_strategy: Callable = infer_columns,
        timeout: float = SHEET_FETCH_TIMEOUT,
    ):
        self.normalizer = normalizer
        self.column_strategy = column_strategy
        self.timeout = timeout

    def fetch_csv(self, url: str) -> str:
        csv_url = to_csv_export_url(url)
        try:
            response = requests.get(csv_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("[SHEET] fetch failed for %s: %s", csv_url, e)
            raise SheetFetchError(FETCH_FAILED_MESSAGE) from e

        content_type = response.headers.get("content-type", "")
        text = decode_bytes(response.content)
        # Private sheets answer with a sign-in HTML page instead of CSV
        if "text/html" in content_type or text.lstrip().lower().startswith(("<!doctype html", "<html")):
            logger.warning("[SHEET] %s returned HTML instead of CSV", csv_url)
            raise SheetFetchError(FETCH_FAILED_MESSAGE)
        return text

    def parse_csv(self, text: str) -> Tuple[List[str], List[dict]]:
        try:
            df = pd.read_csv(
                StringIO(text),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                index_col=False,
            )
        except pd.errors.EmptyDataError as e:
            raise SheetEmptyError("Sheet kosong") from e
        except (pd.errors.ParserError, ValueError) as e:
            logger.warning("[SHEET] CSV parse failed: %s", e)
            raise SheetParseError("Format CSV tidak dapat dibaca") from e

        headers = [str(c) for c in df.columns]
        rows = [
            {header: infer_cell(value) for header, value in zip(headers, record)}
            for record in df.itertuples(index=False, name=None)
        ]
        # Rows where every cell is empty count as blank lines
        rows = [row for row in rows if any(v is not None for v in row.values())]
        if not rows:
            raise SheetEmptyError("Sheet kosong")
        return headers, rows

    def load_rows(self, url: str) -> List[dict]:
        """Fetch, parse and normalize a sheet"""
        _, rows = self.parse_csv(self.fetch_csv(url))
        return clean_rows(rows, self.normalizer)

    def preview(self, url: str) -> dict:
        rows = self.load_rows(url)
        x_key, y_keys = self.column_strategy(rows, None)
        return {
            "data": rows,
            "headers": list(rows[0].keys()),
            "config": {"xAxisKey": x_key, "dataKeys": y_keys},
        }

    def render(self, chart_type: str, rows: Sequence[dict], config: Optional[dict] = None) -> dict:
        """Chart definition for the SPA's chart widgets"""
        x_key, y_keys = self.column_strategy(rows, config)
        y_keys = [k for k in y_keys if k]
        if not y_keys:
            raise ChartConfigError("Pilih Data (Y)")

        if chart_type == "pie":
            value_key = y_keys[0]
            slices = [
                {
                    "name": row.get(x_key),
                    "value": row.get(value_key),
                    "label": format_number(row.get(value_key)),
                    "color": CHART_COLORS[i % len(CHART_COLORS)],
                }
                for i, row in enumerate(rows)
            ]
            return {"type": "pie", "xKey": x_key, "yKeys": [value_key], "data": slices}

        data = [{k: row.get(k) for k in [x_key, *y_keys]} for row in rows]
        labels = [{k: format_number(row.get(k)) for k in y_keys} for row in rows]
        series = [
            {"key": k, "color": CHART_COLORS[i % len(CHART_COLORS)]}
            for i, k in enumerate(y_keys)
        ]
        return {
            "type": chart_type,
            "xKey": x_key,
            "yKeys": y_keys,
            "series": series,
            "data": data,
            "labels": labels,
        }

    def render_from_sheet(self, chart_type: str, url: str, config: Optional[dict] = None) -> dict:
        rows = self.load_rows(url)
        return self.render(chart_type, rows, config)


sheet_service = SheetService()
