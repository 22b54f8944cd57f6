# agritrade/utils.py
from __future__ import annotations

import math
import re
from datetime import date, datetime, time

from flask import request

from agritrade import db
from agritrade.errors import NotFound, ValidationError

CONTACT_RE = re.compile(r"^[0-9]{10}$")

# ms precision, matching the stored day window
END_OF_DAY = time(23, 59, 59, 999000)

_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%d/%m/%Y")


# ---------- dates ----------
def as_day(value: date | datetime | None = None) -> date:
    """Calendar day of ``value``; time-of-day is dropped. Defaults to today."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def day_window(value: date | datetime | None = None) -> tuple[datetime, datetime]:
    d = as_day(value)
    return datetime.combine(d, time.min), datetime.combine(d, END_OF_DAY)


def parse_datetime(s, default=None) -> datetime | None:
    if s is None or s == "":
        return default
    if isinstance(s, datetime):
        return s
    if isinstance(s, date):
        return datetime.combine(s, time.min)
    s = str(s).strip()
    try:
        # handles "2024-05-01T10:00:00.123" and offsets
        parsed = datetime.fromisoformat(s.replace("Z", "+00:00"))
        # aware instants are converted to server-local wall time
        return parsed.astimezone().replace(tzinfo=None) if parsed.tzinfo else parsed
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    raise ValidationError(f"Invalid date: {s}")


def parse_date(s, default=None) -> date | None:
    parsed = parse_datetime(s)
    return parsed.date() if parsed else default


# ---------- numbers ----------
def is_number(x) -> bool:
    if isinstance(x, bool):
        return False
    try:
        return math.isfinite(float(x))
    except (TypeError, ValueError, OverflowError):
        return False


def as_bool(x) -> bool:
    if isinstance(x, str):
        return x.strip().lower() in ("1", "true", "yes", "on")
    return bool(x)


# ---------- request payloads ----------
def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict() if request.form else {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def range_args(start_name: str = "start_date", end_name: str = "end_date"):
    """(start, end) datetimes from the query string; a bare end date covers that whole day."""
    start = parse_datetime(request.args.get(start_name))
    raw_end = request.args.get(end_name)
    end = parse_datetime(raw_end)
    if end is not None and len(raw_end.strip()) <= 10:
        end = datetime.combine(end.date(), END_OF_DAY)
    return start, end


def int_arg(name: str, default: int | None = None) -> int | None:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def clean_str(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class Checker:
    """Collects field errors and raises them together."""

    def __init__(self, data: dict):
        self.data = data
        self.errors: list[str] = []

    def has(self, field: str) -> bool:
        return field in self.data and self.data[field] is not None

    def required(self, field: str, message: str):
        if not clean_str(self.data.get(field)):
            self.errors.append(message)

    def numeric(self, field: str, message: str, optional: bool = False, minimum: float | None = 0):
        if optional and not self.has(field):
            return
        value = self.data.get(field)
        if not is_number(value):
            self.errors.append(message)
        elif minimum is not None and float(value) < minimum:
            self.errors.append(f"{field} cannot be negative")

    def one_of(self, field: str, choices, message: str, optional: bool = False):
        if optional and not self.has(field):
            return
        if self.data.get(field) not in choices:
            self.errors.append(message)

    def matches(self, field: str, pattern: re.Pattern, message: str, optional: bool = False):
        if optional and not clean_str(self.data.get(field)):
            return
        if not pattern.match(str(self.data.get(field) or "").strip()):
            self.errors.append(message)

    def integer(self, field: str, message: str, optional: bool = False):
        if optional and not clean_str(self.data.get(field)):
            return
        value = self.data.get(field)
        if isinstance(value, bool) or not str(value).strip().isdigit():
            self.errors.append(message)

    def date(self, field: str, message: str):
        if not clean_str(self.data.get(field)):
            return
        try:
            parse_datetime(self.data.get(field))
        except ValidationError:
            self.errors.append(message)

    def check(self):
        if self.errors:
            raise ValidationError(self.errors)


def get_or_404(model, ident, message: str):
    obj = db.session.get(model, ident)
    if obj is None:
        raise NotFound(message)
    return obj
