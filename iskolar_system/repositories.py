"""
Data access behind a small capability set: find, insert, update, delete, query.

Rows travel as plain dictionaries keyed by field attribute names (foreign keys
appear as ``semester_id`` and so on), the same shape ``QuerySet.values()``
returns. Filters use Django lookup syntax (``status``, ``barangay__icontains``,
``created_at__lt``) so the in-memory store and the ORM accept the same calls.
"""
import abc
import copy
import itertools
import logging
from dataclasses import dataclass
from datetime import date, datetime

from django.db import DatabaseError, transaction
from django.utils import timezone

from .exceptions import ExternalCallFailed, RecordNotFound

logger = logging.getLogger(__name__)


class Repository(abc.ABC):
    table = 'record'

    @abc.abstractmethod
    def find(self, pk):
        """Return one row or raise RecordNotFound"""

    @abc.abstractmethod
    def insert(self, fields):
        """Create a row and return it"""

    @abc.abstractmethod
    def update(self, pk, fields):
        """Apply all fields in one write and return the updated row"""

    @abc.abstractmethod
    def delete(self, pk):
        """Remove one row or raise RecordNotFound"""

    @abc.abstractmethod
    def query(self, filters=None, order_by=None):
        """Rows matching every filter, optionally ordered"""

    def delete_where(self, filters):
        """Delete every matching row and return how many were removed"""
        rows = self.query(filters)
        for row in rows:
            self.delete(row['id'])
        return len(rows)

    def first(self, filters=None, order_by=None):
        rows = self.query(filters, order_by)
        return rows[0] if rows else None


class DjangoRepository(Repository):
    """Repository over a Django model's default manager"""

    def __init__(self, model):
        self.model = model
        self.table = model.__name__

    def _has_field(self, name):
        return any(model_field.name == name for model_field in self.model._meta.get_fields())

    def find(self, pk):
        try:
            row = self.model.objects.filter(pk=pk).values().first()
        except DatabaseError as e:
            raise ExternalCallFailed(f'Failed to fetch {self.table} {pk}: {e}') from e
        if row is None:
            raise RecordNotFound(self.table, pk)
        return row

    def insert(self, fields):
        try:
            instance = self.model.objects.create(**fields)
        except DatabaseError as e:
            logger.error(f'Failed to create {self.table}: {str(e)}')
            raise ExternalCallFailed(f'Failed to create {self.table}: {e}') from e
        return self.find(instance.pk)

    def update(self, pk, fields):
        fields = dict(fields)
        # queryset updates skip auto_now
        if self._has_field('updated_at'):
            fields.setdefault('updated_at', timezone.now())
        try:
            with transaction.atomic():
                updated = self.model.objects.filter(pk=pk).update(**fields)
        except DatabaseError as e:
            logger.error(f'Failed to update {self.table} {pk}: {str(e)}')
            raise ExternalCallFailed(f'Failed to update {self.table} {pk}: {e}') from e
        if not updated:
            raise RecordNotFound(self.table, pk)
        return self.find(pk)

    def delete(self, pk):
        try:
            deleted, _ = self.model.objects.filter(pk=pk).delete()
        except DatabaseError as e:
            logger.error(f'Failed to delete {self.table} {pk}: {str(e)}')
            raise ExternalCallFailed(f'Failed to delete {self.table} {pk}: {e}') from e
        if not deleted:
            raise RecordNotFound(self.table, pk)

    def delete_where(self, filters):
        try:
            with transaction.atomic():
                queryset = self.model.objects.filter(**filters)
                count = queryset.count()
                queryset.delete()
        except DatabaseError as e:
            logger.error(f'Failed to delete {self.table} rows: {str(e)}')
            raise ExternalCallFailed(f'Failed to delete {self.table} rows: {e}') from e
        return count

    def query(self, filters=None, order_by=None):
        queryset = self.model.objects.filter(**(filters or {}))
        if order_by:
            queryset = queryset.order_by(*order_by)
        try:
            return list(queryset.values())
        except DatabaseError as e:
            raise ExternalCallFailed(f'Failed to query {self.table}: {e}') from e


def _compare_value(value):
    if isinstance(value, datetime) and timezone.is_naive(value):
        return timezone.make_aware(value)
    return value


def _matches(row, lookup, expected):
    name, _, operator = lookup.partition('__')
    operator = operator or 'exact'
    value = row.get(name)
    if operator == 'exact':
        return value == expected
    if operator == 'iexact':
        return value is not None and str(value).lower() == str(expected).lower()
    if operator == 'icontains':
        return value is not None and str(expected).lower() in str(value).lower()
    if operator == 'in':
        return value in expected
    if operator == 'isnull':
        return (value is None) == bool(expected)
    if value is None:
        return False
    if not isinstance(value, datetime) and isinstance(value, date) and isinstance(expected, datetime):
        expected = expected.date()
    elif isinstance(value, datetime) or isinstance(expected, datetime):
        value, expected = _compare_value(value), _compare_value(expected)
    if operator == 'gt':
        return value > expected
    if operator == 'gte':
        return value >= expected
    if operator == 'lt':
        return value < expected
    if operator == 'lte':
        return value <= expected
    raise ValueError(f'Unsupported lookup: {lookup}')


def _sort_rows(rows, order_by):
    # apply the least significant key first; sorted() is stable
    for key in reversed(order_by):
        descending = key.startswith('-')
        name = key.lstrip('-')
        rows = sorted(rows, key=lambda row: (row.get(name) is not None, row.get(name)),
                      reverse=descending)
    return rows


class InMemoryRepository(Repository):
    """Dictionary-backed repository for tests and offline tooling"""

    def __init__(self, table='record', defaults=None):
        self.table = table
        self.defaults = defaults or {}
        self.rows = {}
        self._ids = itertools.count(1)

    def find(self, pk):
        if pk not in self.rows:
            raise RecordNotFound(self.table, pk)
        return copy.deepcopy(self.rows[pk])

    def insert(self, fields):
        pk = fields.get('id') or next(self._ids)
        now = timezone.now()
        row = {'created_at': now, 'updated_at': now}
        row.update(copy.deepcopy(self.defaults))
        row.update(copy.deepcopy(fields))
        row['id'] = pk
        self.rows[pk] = row
        return self.find(pk)

    def update(self, pk, fields):
        if pk not in self.rows:
            raise RecordNotFound(self.table, pk)
        row = dict(self.rows[pk])
        row.update(copy.deepcopy(fields))
        row['updated_at'] = fields.get('updated_at', timezone.now())
        self.rows[pk] = row
        return self.find(pk)

    def delete(self, pk):
        if pk not in self.rows:
            raise RecordNotFound(self.table, pk)
        del self.rows[pk]

    def query(self, filters=None, order_by=None):
        rows = [
            copy.deepcopy(row) for row in self.rows.values()
            if all(_matches(row, lookup, expected) for lookup, expected in (filters or {}).items())
        ]
        if order_by:
            rows = _sort_rows(rows, order_by)
        return rows


@dataclass
class Repositories:
    """Every store the domain operations touch"""
    applications: Repository
    releases: Repository
    semesters: Repository
    criteria: Repository
    overrides: Repository
    documents: Repository
    settings: Repository
    settings_audit: Repository
    audit_log: Repository
    users: Repository

    @classmethod
    def django(cls):
        from .models import (
            Application, AppSetting, AuditLog, CriterionOverride, Document,
            EligibilityConfiguration, Release, Semester, SettingsAudit, User,
        )
        return cls(
            applications=DjangoRepository(Application),
            releases=DjangoRepository(Release),
            semesters=DjangoRepository(Semester),
            criteria=DjangoRepository(EligibilityConfiguration),
            overrides=DjangoRepository(CriterionOverride),
            documents=DjangoRepository(Document),
            settings=DjangoRepository(AppSetting),
            settings_audit=DjangoRepository(SettingsAudit),
            audit_log=DjangoRepository(AuditLog),
            users=DjangoRepository(User),
        )

    @classmethod
    def in_memory(cls):
        return cls(
            applications=InMemoryRepository('Application', defaults={
                'status': 'pending', 'submitted_at': None, 'rejection_reason': '',
                'reviewed_at': None, 'reviewed_by_id': None,
            }),
            releases=InMemoryRepository('Release', defaults={'is_archived': False}),
            semesters=InMemoryRepository('Semester', defaults={'applications_open': False}),
            criteria=InMemoryRepository('EligibilityConfiguration'),
            overrides=InMemoryRepository('CriterionOverride'),
            documents=InMemoryRepository('Document', defaults={'status': 'pending', 'note': ''}),
            settings=InMemoryRepository('AppSetting'),
            settings_audit=InMemoryRepository('SettingsAudit'),
            audit_log=InMemoryRepository('AuditLog'),
            users=InMemoryRepository('User', defaults={'user_type': 'applicant', 'last_login': None}),
        )
