"""
Application list search, filtering, sorting and pagination.

Operates on application rows already fetched for a semester.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional

from django.core.paginator import Paginator
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .choices import ApplicationStatus

PAGE_SIZE = 6
STATUS_ALL = 'all'
STATUS_FILTER_CHOICES = [(STATUS_ALL, 'All')] + list(ApplicationStatus.choices)


def _get(row, name):
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _as_datetime(value):
    if value is None or value == '':
        return None
    if isinstance(value, str):
        return parse_datetime(value)
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return None


def _local_date(value):
    moment = _as_datetime(value)
    if moment is None:
        return None
    if timezone.is_aware(moment):
        moment = timezone.localtime(moment)
    return moment.date()


@dataclass(frozen=True)
class ApplicationFilters:
    search: str = ''
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    status: str = STATUS_ALL

    @property
    def has_date_range(self):
        return self.date_from is not None and self.date_to is not None


def search_text(row):
    parts = (_get(row, 'first_name'), _get(row, 'last_name'), _get(row, 'barangay'), _get(row, 'school'))
    return ' '.join(part or '' for part in parts).lower()


def matches_search(row, query):
    return (query or '').strip().lower() in search_text(row)


def matches_date_range(row, date_from, date_to):
    # the range only applies once both ends are chosen
    if date_from is None or date_to is None:
        return True
    submitted = _local_date(_get(row, 'submitted_at'))
    if submitted is None:
        return False
    return date_from <= submitted <= date_to


def matches_status(row, status):
    if status == STATUS_ALL:
        return True
    return _get(row, 'status') == status


def filter_applications(rows, filters: ApplicationFilters):
    return [
        row for row in rows
        if matches_search(row, filters.search)
        and matches_date_range(row, filters.date_from, filters.date_to)
        and matches_status(row, filters.status)
    ]


def _submission_key(row):
    submitted = _as_datetime(_get(row, 'submitted_at'))
    if submitted is None:
        return (False, 0.0)
    return (True, submitted.timestamp())


def sort_by_submission(rows):
    """Newest submission first; ties keep their input order, unsubmitted rows go last"""
    return sorted(rows, key=_submission_key, reverse=True)


def page_count(total, page_size=PAGE_SIZE):
    return max(1, math.ceil(total / page_size))


def clamp_page(page, total, page_size=PAGE_SIZE):
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    return min(max(page, 1), page_count(total, page_size))


def paginate(rows, page, page_size=PAGE_SIZE):
    rows = list(rows)
    paginator = Paginator(rows, page_size)
    return paginator.page(clamp_page(page, len(rows), page_size))


def application_view(rows, filters: ApplicationFilters, page=1, page_size=PAGE_SIZE):
    """Filter, sort and paginate in one pass, the way the admin list shows it"""
    return paginate(sort_by_submission(filter_applications(rows, filters)), page, page_size)
