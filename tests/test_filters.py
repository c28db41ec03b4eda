"""
Tests for the filters module.

Tests cover:
- Search across name, barangay and school
- Inclusive date range applied only when both ends are set
- Status filtering
- Sorting by submission time, including shuffled input
- Page clamping
"""
import random
from datetime import date

import pytest

from iskolar_system.filters import (
    STATUS_ALL,
    ApplicationFilters,
    application_view,
    clamp_page,
    filter_applications,
    matches_date_range,
    page_count,
    paginate,
    sort_by_submission,
)
from tests.factories import aware, make_application


class TestSearch:
    """Tests for free-text search."""

    def test_search_matches_any_field_case_insensitively(self):
        rows = [
            make_application(first_name='Maria', barangay='Ususan'),
            make_application(first_name='Jose', school='Rizal Technological University'),
        ]
        assert len(filter_applications(rows, ApplicationFilters(search='USUSAN'))) == 1
        assert len(filter_applications(rows, ApplicationFilters(search='rizal tech'))) == 1
        assert len(filter_applications(rows, ApplicationFilters(search='  '))) == 2

    def test_search_spans_first_and_last_name(self):
        rows = [make_application(first_name='Ana', last_name='Reyes')]
        assert filter_applications(rows, ApplicationFilters(search='ana reyes')) == rows


class TestDateRange:
    """Tests for the submission date range."""

    def test_inclusive_bounds(self):
        row = make_application(submitted_at=aware(2025, 8, 15, 23, 30))
        assert matches_date_range(row, date(2025, 8, 15), date(2025, 8, 15))
        assert not matches_date_range(row, date(2025, 8, 16), date(2025, 8, 20))

    def test_single_bound_is_ignored(self):
        row = make_application(submitted_at=aware(2025, 1, 1))
        assert matches_date_range(row, date(2025, 8, 1), None)
        assert matches_date_range(row, None, date(2024, 1, 1))

    def test_unsubmitted_excluded_by_range(self):
        row = make_application(submitted_at=None)
        assert not matches_date_range(row, date(2025, 1, 1), date(2025, 12, 31))


class TestStatus:
    """Tests for the status filter."""

    def test_all_and_exact(self):
        rows = [
            make_application(status='pending'),
            make_application(status='approved'),
            make_application(status='rejected'),
        ]
        assert len(filter_applications(rows, ApplicationFilters(status=STATUS_ALL))) == 3
        approved = filter_applications(rows, ApplicationFilters(status='approved'))
        assert [row['status'] for row in approved] == ['approved']


class TestSorting:
    """Tests for submission ordering."""

    def test_newest_first_with_stable_ties(self):
        first = make_application(first_name='A', submitted_at=aware(2025, 8, 1))
        tie_one = make_application(first_name='B', submitted_at=aware(2025, 8, 10))
        tie_two = make_application(first_name='C', submitted_at=aware(2025, 8, 10))
        draft = make_application(first_name='D', submitted_at=None)

        ordered = sort_by_submission([draft, first, tie_one, tie_two])
        assert [row['first_name'] for row in ordered] == ['B', 'C', 'A', 'D']

    @pytest.mark.parametrize('seed', range(10))
    def test_shuffled_input_is_newest_first(self, seed):
        rng = random.Random(seed)
        rows = [
            make_application(
                first_name=str(index),
                submitted_at=None if rng.random() < 0.2 else aware(2025, rng.randint(1, 12), rng.randint(1, 28)),
            )
            for index in range(rng.randint(0, 25))
        ]
        rng.shuffle(rows)
        position = {row['first_name']: index for index, row in enumerate(rows)}

        ordered = sort_by_submission(rows)
        assert len(ordered) == len(rows)
        submitted = [row for row in ordered if row['submitted_at'] is not None]
        assert ordered[:len(submitted)] == submitted
        for newer, older in zip(submitted, submitted[1:]):
            assert newer['submitted_at'] >= older['submitted_at']
            if newer['submitted_at'] == older['submitted_at']:
                assert position[newer['first_name']] < position[older['first_name']]


class TestPagination:
    """Tests for paging through the filtered list."""

    def test_page_count(self):
        assert page_count(0) == 1
        assert page_count(6) == 1
        assert page_count(7) == 2

    def test_clamp_page(self):
        assert clamp_page(0, 20) == 1
        assert clamp_page(99, 20) == 4
        assert clamp_page('abc', 20) == 1
        assert clamp_page(2, 0) == 1

    def test_paginate_slices_six(self):
        rows = [make_application(first_name=str(i)) for i in range(14)]
        page = paginate(rows, 3)
        assert page.number == 3
        assert [row['first_name'] for row in page.object_list] == ['12', '13']

    def test_application_view(self):
        rows = [
            make_application(first_name=f'Scholar {i}', status='approved' if i % 2 else 'pending',
                             submitted_at=aware(2025, 8, i + 1))
            for i in range(10)
        ]
        page = application_view(rows, ApplicationFilters(status='approved'), page=5)
        assert page.number == 1
        assert page.paginator.count == 5
        assert page.object_list[0]['first_name'] == 'Scholar 9'
