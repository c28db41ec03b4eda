"""Shared fixtures for the portal test suite."""
from datetime import date
from decimal import Decimal

import pytest

from iskolar_system.choices import UserType
from iskolar_system.repositories import Repositories
from iskolar_system.services import RequestContext
from tests.factories import aware


@pytest.fixture
def repos():
    """In-memory repositories with one open and one closed semester."""
    repos = Repositories.in_memory()
    repos.semesters.insert({'name': 'First Semester', 'applications_open': True})
    repos.semesters.insert({'name': 'Second Semester', 'applications_open': False})
    return repos


@pytest.fixture
def admin_ctx():
    return RequestContext(user_id=10, email='admin@iskolar.test', role=UserType.ADMIN, ip_address='10.0.0.1')


@pytest.fixture
def super_ctx():
    return RequestContext(user_id=1, email='root@iskolar.test', role=UserType.SUPER_ADMIN, ip_address='10.0.0.2')


@pytest.fixture
def application_row():
    """An application that passes every default criterion."""
    return {
        'semester_id': 1,
        'user_id': 100,
        'first_name': 'Juan',
        'last_name': 'Dela Cruz',
        'email_address': 'juan@example.com',
        'barangay': 'Bagumbayan',
        'school': 'Taguig City University',
        'years_of_residency': 5,
        'is_registered_voter': True,
        'monthly_family_income': Decimal('20000'),
        'date_of_birth': date(2004, 6, 1),
        'gpa': Decimal('3.25'),
        'is_enrolled': True,
        'enrolled_units': 18,
        'has_failing_grades': False,
        'submitted_at': aware(2025, 8, 15),
    }


@pytest.fixture
def release_data():
    return {
        'semester_id': 1,
        'release_type': 'Allowance',
        'release_date': '2025-09-01',
        'release_time': '09:00',
        'barangay': 'Bagumbayan',
        'location': 'Bagumbayan Barangay Hall',
        'amount_per_student': '1000.00',
        'number_of_recipients': 5,
        'additional_notes': '',
    }
