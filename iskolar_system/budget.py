"""
Semester budget reconciliation against scheduled releases.

Every function here works on releases that were already fetched; nothing is
aggregated in the database. A release may be a mapping (a repository row) or
a model instance.
"""
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Mapping, Optional

from django.core.exceptions import ValidationError
from django.utils import timezone

from .formatting import to_decimal


def _get(release, name, default=None):
    if isinstance(release, Mapping):
        return release.get(name, default)
    return getattr(release, name, default)


def is_archived(release):
    return bool(_get(release, 'is_archived', False))


def release_payout(release) -> Decimal:
    """amount per student × recipients; missing recipients count as zero"""
    recipients = _get(release, 'number_of_recipients') or 0
    return to_decimal(_get(release, 'amount_per_student')) * recipients


def total_active(releases) -> Decimal:
    return sum((release_payout(release) for release in releases if not is_archived(release)),
               Decimal('0'))


def total_archived(releases) -> Decimal:
    return sum((release_payout(release) for release in releases if is_archived(release)),
               Decimal('0'))


def remaining(budget, releases) -> Decimal:
    """Budget left after active releases; negative means over budget"""
    return to_decimal(budget) - total_active(releases)


def archive_fields(archived):
    """The single update that archives or unarchives a release"""
    return {'is_archived': bool(archived)}


def parse_budget(value) -> Decimal:
    """Validate an administrator-entered semester budget"""
    if value is None or str(value).strip() == '':
        raise ValidationError({'budget': 'Budget is required.'})
    amount = to_decimal(str(value).replace(',', '').strip(), default=None)
    if amount is None or not amount.is_finite():
        raise ValidationError({'budget': f'Invalid budget: {value!r}'})
    if amount < 0:
        raise ValidationError({'budget': 'Budget cannot be negative.'})
    return amount


def release_datetime(release):
    release_date = _get(release, 'release_date')
    if release_date is None:
        return None
    if isinstance(release_date, str):
        release_date = date.fromisoformat(release_date)
    release_time = _get(release, 'release_time') or time.min
    if isinstance(release_time, str):
        release_time = time.fromisoformat(release_time)
    return datetime.combine(release_date, release_time)


def is_done(release, now=None):
    """A release whose scheduled date and time have passed"""
    scheduled = release_datetime(release)
    if scheduled is None:
        return False
    now = now or timezone.localtime().replace(tzinfo=None)
    return now > scheduled


def sort_releases(releases):
    """Most recent release date and time first"""
    return sorted(releases, key=lambda release: release_datetime(release) or datetime.min,
                  reverse=True)


def split_by_state(releases):
    active = [release for release in releases if not is_archived(release)]
    archived = [release for release in releases if is_archived(release)]
    return sort_releases(active), sort_releases(archived)


@dataclass(frozen=True)
class BudgetSummary:
    """Totals for a semester; budget is None until an administrator enters one"""
    budget: Optional[Decimal]
    total_active: Decimal
    total_archived: Decimal
    active_count: int
    archived_count: int

    @property
    def has_budget(self):
        return self.budget is not None

    @property
    def remaining(self):
        if not self.has_budget:
            return None
        return self.budget - self.total_active

    @property
    def is_over_budget(self):
        if not self.has_budget:
            return None
        return self.remaining < 0

    @property
    def utilization_rate(self):
        if not self.has_budget:
            return None
        if self.budget <= 0:
            return Decimal('0')
        return (self.total_active / self.budget * 100).quantize(Decimal('0.01'))

    def as_dict(self):
        def text(value):
            return str(value) if value is not None else None

        return {
            'budget': text(self.budget),
            'total_active': str(self.total_active),
            'total_archived': str(self.total_archived),
            'remaining': text(self.remaining),
            'is_over_budget': self.is_over_budget,
            'utilization_rate': text(self.utilization_rate),
            'active_count': self.active_count,
            'archived_count': self.archived_count,
        }


def summarize(budget, releases) -> BudgetSummary:
    releases = list(releases)
    return BudgetSummary(
        budget=to_decimal(budget) if budget is not None else None,
        total_active=total_active(releases),
        total_archived=total_archived(releases),
        active_count=sum(1 for release in releases if not is_archived(release)),
        archived_count=sum(1 for release in releases if is_archived(release)),
    )
