"""Query-string parsing helpers shared by the API views."""
from datetime import datetime, time

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework.exceptions import ValidationError


def parse_date_param(value, name, end=False):
    """Accept YYYY-MM-DD or a full ISO datetime; a bare end date covers the whole day."""
    if not value:
        return None
    dt = parse_datetime(value)
    if dt is None:
        d = parse_date(value)
        if d is None:
            raise ValidationError({name: "invalid date"})
        dt = datetime.combine(d, time.max if end else time.min)
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt)
    return dt


def parse_int_param(value, name, default, minimum=1, maximum=None):
    if value in (None, ""):
        return default
    try:
        value = int(value)
    except ValueError:
        raise ValidationError({name: "invalid integer"})
    if value < minimum or (maximum is not None and value > maximum):
        raise ValidationError({name: f"must be between {minimum} and {maximum}" if maximum else f"must be >= {minimum}"})
    return value
