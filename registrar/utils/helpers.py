from flask import request
from registrar.utils.errors import InvalidArgument
from datetime import datetime


def school_now():
    return datetime.now()


def school_today():
    return school_now().date()


def parse_date(value):
    """Parses a YYYY-MM-DD string, returns None for empty or malformed input"""
    if not value:
        return None
    try:
        return datetime.strptime(str(value), '%Y-%m-%d').date()
    except ValueError:
        return None


def parse_int(value):
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def json_body():
    return request.get_json(silent=True) or {}


def require_fields(data, *fields):
    missing = [field for field in fields if data.get(field) in (None, '')]
    if missing:
        raise InvalidArgument(f"Missing required fields: {', '.join(missing)}")
