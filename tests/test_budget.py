"""
Tests for the budget module.

Tests cover:
- Payout and active/archived totals
- Remaining budget, including over-budget semesters
- Archive round trips
- Release ordering and done detection
- Totals and ordering over shuffled release lists
"""
import random
from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from iskolar_system.budget import (
    archive_fields,
    is_done,
    parse_budget,
    release_payout,
    remaining,
    sort_releases,
    split_by_state,
    summarize,
    total_active,
    total_archived,
)
from tests.factories import make_release


class TestTotals:
    """Tests for payouts and totals."""

    def test_release_payout(self):
        assert release_payout(make_release('1000', 5)) == Decimal('5000')

    def test_missing_recipients_count_as_zero(self):
        release = make_release('1000', None)
        assert release_payout(release) == Decimal('0')

    def test_active_and_archived_totals(self):
        releases = [make_release('1000', 5), make_release('2000', 2, archived=True)]
        assert total_active(releases) == Decimal('5000')
        assert total_archived(releases) == Decimal('4000')
        assert remaining(Decimal('10000'), releases) == Decimal('5000')

    def test_no_releases(self):
        assert total_active([]) == Decimal('0')
        assert remaining(Decimal('750'), []) == Decimal('750')

    def test_remaining_goes_negative(self):
        releases = [make_release('5000', 3)]
        assert remaining(Decimal('10000'), releases) == Decimal('-5000')
        assert summarize(Decimal('10000'), releases).is_over_budget


class TestArchive:
    """Tests for archiving and unarchiving."""

    def test_archive_fields(self):
        assert archive_fields(True) == {'is_archived': True}
        assert archive_fields(False) == {'is_archived': False}

    def test_unarchive_updates_totals(self):
        releases = [make_release('1000', 5), make_release('2000', 2, archived=True)]
        releases[1].update(archive_fields(False))
        assert total_active(releases) == Decimal('9000')
        assert remaining(Decimal('10000'), releases) == Decimal('1000')

    def test_round_trip_restores_total(self):
        releases = [make_release('1000', 5), make_release('300', 10)]
        before = total_active(releases)
        releases[1].update(archive_fields(True))
        assert total_active(releases) == Decimal('5000')
        assert split_by_state(releases)[1] == [releases[1]]
        releases[1].update(archive_fields(False))
        assert total_active(releases) == before


class TestParseBudget:
    """Tests for administrator-entered budgets."""

    def test_accepts_commas(self):
        assert parse_budget('1,250,000.50') == Decimal('1250000.50')

    @pytest.mark.parametrize('value', ['', None, 'abc', '-100', 'Infinity'])
    def test_rejects_bad_values(self, value):
        with pytest.raises(ValidationError):
            parse_budget(value)


class TestOrdering:
    """Tests for release tabs and ordering."""

    def test_sort_newest_first(self):
        early = make_release('1', 1, release_date=date(2025, 8, 1))
        late = make_release('2', 1, release_date=date(2025, 9, 1))
        same_day_later = make_release('3', 1, release_date=date(2025, 9, 1), release_time=time(14, 0))
        assert sort_releases([early, late, same_day_later]) == [same_day_later, late, early]

    def test_split_by_state(self):
        active, archived = split_by_state([
            make_release('1', 1), make_release('2', 1, archived=True), make_release('3', 1),
        ])
        assert len(active) == 2
        assert [release['amount_per_student'] for release in archived] == [Decimal('2')]

    def test_is_done(self):
        release = make_release('1', 1, release_date=date(2025, 9, 1), release_time=time(9, 0))
        assert is_done(release, now=datetime(2025, 9, 1, 9, 30))
        assert not is_done(release, now=datetime(2025, 9, 1, 8, 59))

    def test_is_done_accepts_iso_strings(self):
        release = {'release_date': '2025-09-01', 'release_time': '09:00'}
        assert is_done(release, now=datetime(2025, 9, 2))


class TestSummary:
    """Tests for the budget summary."""

    def test_summary_example(self):
        summary = summarize(Decimal('10000'), [make_release('1000', 5), make_release('2000', 2, archived=True)])
        assert summary.remaining == Decimal('5000')
        assert summary.utilization_rate == Decimal('50.00')
        assert summary.active_count == 1
        assert summary.archived_count == 1
        assert summary.as_dict()['remaining'] == '5000'

    def test_zero_budget_utilization(self):
        assert summarize(Decimal('0'), [make_release('1', 1)]).utilization_rate == Decimal('0')

    def test_summary_without_budget(self):
        summary = summarize(None, [make_release('5000', 1)])
        assert summary.total_active == Decimal('5000')
        assert summary.remaining is None
        assert summary.is_over_budget is None
        data = summary.as_dict()
        assert data['budget'] is None
        assert data['remaining'] is None
        assert data['is_over_budget'] is None
        assert data['utilization_rate'] is None
        assert data['total_active'] == '5000'


def random_releases(rng, count, archived=False):
    return [
        make_release(
            str(rng.randint(0, 5000)),
            rng.randint(0, 50),
            archived=archived,
            release_date=date(2025, 1, 1) + timedelta(days=rng.randint(0, 364)),
            release_time=time(rng.randint(0, 23), rng.choice([0, 15, 30, 45])),
        )
        for _ in range(count)
    ]


@pytest.mark.parametrize('seed', range(10))
class TestShuffledReleases:
    """Totals and ordering hold for arbitrary release lists."""

    def test_archived_releases_never_change_active_total(self, seed):
        rng = random.Random(seed)
        active = random_releases(rng, rng.randint(0, 12))
        expected = sum((release_payout(release) for release in active), Decimal('0'))

        mixed = active + random_releases(rng, rng.randint(1, 12), archived=True)
        rng.shuffle(mixed)
        assert total_active(active) == expected
        assert total_active(mixed) == expected
        assert remaining(Decimal('100000'), mixed) == Decimal('100000') - expected

    def test_sort_is_newest_first(self, seed):
        rng = random.Random(seed)
        releases = random_releases(rng, rng.randint(0, 20))
        rng.shuffle(releases)
        ordered = sort_releases(releases)
        moments = [datetime.combine(release['release_date'], release['release_time']) for release in ordered]
        assert len(ordered) == len(releases)
        assert all(earlier >= later for earlier, later in zip(moments, moments[1:]))
