"""
Tests for the services module against in-memory repositories.

Tests cover:
- Application intake and status transitions
- Notifications and their failures
- Criteria configuration and overrides
- Release scheduling and archiving
- Settings, danger zone operations and exports
"""
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core.exceptions import PermissionDenied, ValidationError
from django.utils import timezone

from iskolar_system import services
from iskolar_system.choices import ApplicationStatus, Criterion, CriterionStatus
from iskolar_system.eligibility import CriteriaConfig, DEFAULT_CRITERIA
from iskolar_system.exceptions import InvalidTransition, RecordNotFound
from iskolar_system.filters import ApplicationFilters
from tests.factories import aware

TODAY = date(2025, 9, 1)


@pytest.fixture
def application(repos, application_row):
    return repos.applications.insert(application_row)


class TestSubmitApplication:
    """Tests for applicant intake."""

    def test_submit_to_open_semester(self, repos, admin_ctx, application_row):
        application_row['status'] = 'approved'
        application = services.submit_application(repos, admin_ctx, application_row)
        assert application['status'] == ApplicationStatus.PENDING
        assert application['submitted_at'] is not None

    def test_closed_semester_rejected(self, repos, admin_ctx, application_row):
        application_row['semester_id'] = 2
        with pytest.raises(ValidationError):
            services.submit_application(repos, admin_ctx, application_row)

    def test_unknown_fields_dropped(self, repos, admin_ctx, application_row):
        application_row['reviewed_by_id'] = 99
        application = services.submit_application(repos, admin_ctx, application_row)
        assert application['reviewed_by_id'] is None

    def test_missing_user(self, repos, admin_ctx, application_row):
        del application_row['user_id']
        with pytest.raises(ValidationError):
            services.submit_application(repos, admin_ctx, application_row)

    def test_required_details(self, repos, admin_ctx):
        with pytest.raises(ValidationError) as excinfo:
            services.submit_application(repos, admin_ctx, {'semester_id': 1, 'user_id': 100})
        assert {'first_name', 'last_name', 'barangay', 'school'} <= set(excinfo.value.message_dict)
        assert repos.applications.query() == []

    def test_out_of_range_values(self, repos, admin_ctx, application_row):
        application_row.update(gpa='9.5', monthly_family_income='-100', years_of_residency=-2)
        with pytest.raises(ValidationError) as excinfo:
            services.submit_application(repos, admin_ctx, application_row)
        assert {'gpa', 'monthly_family_income', 'years_of_residency'} <= set(excinfo.value.message_dict)
        assert repos.applications.query() == []

    def test_non_numeric_values(self, repos, admin_ctx, application_row):
        application_row.update(enrolled_units='abc', date_of_birth='not-a-date')
        with pytest.raises(ValidationError) as excinfo:
            services.submit_application(repos, admin_ctx, application_row)
        assert {'enrolled_units', 'date_of_birth'} <= set(excinfo.value.message_dict)

    def test_invalid_semester_id(self, repos, admin_ctx, application_row):
        application_row['semester_id'] = 'abc'
        with pytest.raises(ValidationError):
            services.submit_application(repos, admin_ctx, application_row)

    def test_missing_attributes_stay_null(self, repos, admin_ctx, application_row):
        for name in ('is_registered_voter', 'gpa', 'date_of_birth'):
            del application_row[name]
        application = services.submit_application(repos, admin_ctx, application_row)
        assert application['is_registered_voter'] is None
        assert application['gpa'] is None
        report = services.evaluate_application(repos, application['id'], today=TODAY)
        assert report.status_of(Criterion.GPA) == CriterionStatus.ATTENTION

    def test_applications_switched_off(self, repos, admin_ctx, super_ctx, application_row):
        features = dict(services.default_app_settings()['features'], openApplications=False)
        services.update_app_setting(repos, super_ctx, 'features', features)
        with pytest.raises(ValidationError):
            services.submit_application(repos, admin_ctx, application_row)
        assert repos.applications.query() == []


class TestStatusChanges:
    """Tests for approving and rejecting applications."""

    def test_approve_sends_email_and_audits(self, repos, admin_ctx, application, mailoutbox):
        updated = services.change_application_status(repos, admin_ctx, application['id'], 'approved')

        assert updated['status'] == ApplicationStatus.APPROVED
        assert updated['reviewed_by_id'] == admin_ctx.user_id
        assert len(mailoutbox) == 1
        assert 'APPROVED' in mailoutbox[0].body
        assert mailoutbox[0].to == ['juan@example.com']

        audit = repos.audit_log.query()
        assert [row['action'] for row in audit] == ['approve']
        assert audit[0]['ip_address'] == '10.0.0.1'
        assert admin_ctx.notices[0]['type'] == 'success'

    def test_reject_keeps_reason(self, repos, admin_ctx, application, mailoutbox):
        updated = services.change_application_status(
            repos, admin_ctx, application['id'], 'rejected', 'Income above threshold')
        assert updated['rejection_reason'] == 'Income above threshold'
        assert 'Reason: Income above threshold' in mailoutbox[0].body

    def test_terminal_states_cannot_change(self, repos, admin_ctx, application, mailoutbox):
        services.change_application_status(repos, admin_ctx, application['id'], 'approved')
        with pytest.raises(InvalidTransition) as excinfo:
            services.change_application_status(repos, admin_ctx, application['id'], 'pending')
        assert excinfo.value.status_code == 409
        assert repos.applications.find(application['id'])['status'] == ApplicationStatus.APPROVED

    def test_unknown_status(self, repos, admin_ctx, application):
        with pytest.raises(ValidationError):
            services.change_application_status(repos, admin_ctx, application['id'], 'archived')

    def test_missing_application(self, repos, admin_ctx):
        with pytest.raises(RecordNotFound):
            services.change_application_status(repos, admin_ctx, 404, 'approved')

    def test_sender_address_from_settings(self, repos, admin_ctx, super_ctx, application, mailoutbox):
        services.update_app_setting(repos, super_ctx, 'email', {'fromAddress': 'scholarships@taguig.test'})
        services.change_application_status(repos, admin_ctx, application['id'], 'approved')
        assert mailoutbox[0].from_email == 'scholarships@taguig.test'

    def test_failed_email_keeps_update(self, repos, admin_ctx, application):
        with patch('iskolar_system.notifications.send_mail', side_effect=OSError('SMTP down')):
            updated = services.change_application_status(repos, admin_ctx, application['id'], 'approved')
        assert updated['status'] == ApplicationStatus.APPROVED
        assert admin_ctx.notices[-1]['type'] == 'warning'


class TestListingAndHistory:
    """Tests for the admin list and per-user history."""

    def test_list_applications(self, repos, application_row):
        for i in range(8):
            repos.applications.insert(dict(application_row, first_name=f'Scholar {i}',
                                           submitted_at=aware(2025, 8, i + 1)))
        page = services.list_applications(repos, 1, ApplicationFilters(), page=2)
        assert page.paginator.count == 8
        assert [row['first_name'] for row in page.object_list] == ['Scholar 1', 'Scholar 0']

    def test_list_unknown_semester(self, repos):
        with pytest.raises(RecordNotFound):
            services.list_applications(repos, 9, ApplicationFilters())

    def test_history_counts(self, repos, application_row):
        repos.applications.insert(dict(application_row, status='approved', submitted_at=aware(2024, 2, 1)))
        repos.applications.insert(dict(application_row, semester_id=2))
        repos.applications.insert(dict(application_row, user_id=200))
        history = services.application_history(repos, 100)
        assert history['total'] == 2
        assert history['counts'] == {'pending': 1, 'approved': 1, 'rejected': 0}


class TestEligibilityOperations:
    """Tests for criteria configuration and overrides."""

    def test_defaults_when_unset(self, repos):
        assert services.load_criteria(repos, 1) == DEFAULT_CRITERIA

    def test_save_criteria_upserts(self, repos, admin_ctx):
        services.save_criteria(repos, admin_ctx, 1, CriteriaConfig(income_threshold=Decimal('30000')))
        services.save_criteria(repos, admin_ctx, 1, CriteriaConfig(income_threshold=Decimal('18000')))
        assert len(repos.criteria.query()) == 1
        assert services.load_criteria(repos, 1).income_threshold == Decimal('18000')
        assert [row['action'] for row in repos.audit_log.query(order_by=['id'])] == ['create', 'update']

    def test_evaluate_uses_semester_config(self, repos, admin_ctx, application):
        report = services.evaluate_application(repos, application['id'], today=TODAY)
        assert report.status_of(Criterion.INCOME) == CriterionStatus.PASSED

        services.save_criteria(repos, admin_ctx, 1, CriteriaConfig(income_threshold=Decimal('15000')))
        report = services.evaluate_application(repos, application['id'], today=TODAY)
        assert report.status_of(Criterion.INCOME) == CriterionStatus.FAILED

    def test_override_is_distinguishable(self, repos, admin_ctx, application):
        result = services.record_override(repos, admin_ctx, application['id'], 'residency', 'attention',
                                          'Verify barangay certificate', today=TODAY)
        assert result.status == CriterionStatus.ATTENTION
        assert result.computed == CriterionStatus.PASSED

        report = services.evaluate_application(repos, application['id'], today=TODAY)
        assert report.status_of(Criterion.RESIDENCY) == CriterionStatus.ATTENTION
        assert report.result_for(Criterion.RESIDENCY).computed == CriterionStatus.PASSED

        history = services.override_history(repos, application['id'])
        assert history[0]['computed_status'] == CriterionStatus.PASSED
        assert history[0]['status'] == CriterionStatus.ATTENTION

    def test_latest_override_wins(self, repos, admin_ctx, application):
        services.record_override(repos, admin_ctx, application['id'], 'gpa', 'failed', today=TODAY)
        services.record_override(repos, admin_ctx, application['id'], 'gpa', 'passed', today=TODAY)
        report = services.evaluate_application(repos, application['id'], today=TODAY)
        assert report.status_of(Criterion.GPA) == CriterionStatus.PASSED
        assert len(services.override_history(repos, application['id'])) == 2


class TestReleases:
    """Tests for release scheduling."""

    def test_create_and_overview(self, repos, admin_ctx, release_data):
        services.create_release(repos, admin_ctx, release_data)
        services.create_release(repos, admin_ctx, dict(release_data, amount_per_student='2000',
                                                       number_of_recipients=2))
        services.set_release_archived(repos, admin_ctx, 2, True)

        overview = services.release_overview(repos, 1, Decimal('10000'))
        assert overview['summary'].total_active == Decimal('5000')
        assert overview['summary'].remaining == Decimal('5000')
        assert [release['id'] for release in overview['archived']] == [2]
        assert 'done' in overview['active'][0]

        services.set_release_archived(repos, admin_ctx, 2, False)
        overview = services.release_overview(repos, 1, Decimal('10000'))
        assert overview['summary'].total_active == Decimal('9000')
        assert overview['summary'].remaining == Decimal('1000')

    def test_overview_without_budget(self, repos, admin_ctx, release_data):
        services.create_release(repos, admin_ctx, release_data)
        summary = services.release_overview(repos, 1)['summary']
        assert summary.budget is None
        assert summary.total_active == Decimal('5000')
        assert summary.remaining is None
        assert summary.is_over_budget is None

    def test_create_validates(self, repos, admin_ctx, release_data):
        release_data['amount_per_student'] = '-5'
        with pytest.raises(ValidationError) as excinfo:
            services.create_release(repos, admin_ctx, release_data)
        assert 'amount_per_student' in excinfo.value.message_dict
        assert repos.releases.query() == []

    def test_missing_recipients_default_to_zero(self, repos, admin_ctx, release_data):
        release_data['number_of_recipients'] = ''
        release = services.create_release(repos, admin_ctx, release_data)
        assert release['number_of_recipients'] == 0

    def test_unknown_semester(self, repos, admin_ctx, release_data):
        release_data['semester_id'] = 77
        with pytest.raises(RecordNotFound):
            services.create_release(repos, admin_ctx, release_data)

    def test_update_and_delete(self, repos, admin_ctx, release_data):
        release = services.create_release(repos, admin_ctx, release_data)
        changes = dict(release_data, location='Covered Court')
        del changes['semester_id']
        updated = services.update_release(repos, admin_ctx, release['id'], changes)
        assert updated['location'] == 'Covered Court'
        assert updated['semester_id'] == 1

        services.delete_release(repos, admin_ctx, release['id'])
        assert repos.releases.query() == []
        actions = [row['action'] for row in repos.audit_log.query(order_by=['id'])]
        assert actions == ['create', 'update', 'delete']


class TestDocuments:
    """Tests for document verification."""

    def test_set_status(self, repos, admin_ctx, application):
        document = repos.documents.insert({'application_id': application['id'], 'name': 'Valid ID',
                                           'category': 'identity'})
        updated = services.set_document_status(repos, admin_ctx, document['id'], 'reupload', 'Blurry scan')
        assert updated['status'] == 'reupload'
        assert updated['note'] == 'Blurry scan'
        assert len(services.list_documents(repos, application['id'])) == 1


class TestSettings:
    """Tests for super administrator settings."""

    def test_merged_defaults(self, repos):
        merged = services.get_app_settings(repos)
        assert set(merged) == {'general', 'email', 'authPolicy', 'features', 'maintenance'}

    def test_update_writes_audit(self, repos, super_ctx):
        services.update_app_setting(repos, super_ctx, 'maintenance', {
            'maintenanceMode': True, 'maintenanceMessage': 'Back at noon', 'estimatedEnd': None,
        })
        audit = services.settings_audit_log(repos, super_ctx)
        assert audit[0]['key'] == 'maintenance'
        assert audit[0]['old_value']['maintenanceMode'] is False
        assert audit[0]['new_value']['maintenanceMode'] is True
        assert audit[0]['changed_by_email'] == 'root@iskolar.test'
        assert services.maintenance_status(repos) == {
            'maintenanceMode': True, 'maintenanceMessage': 'Back at noon', 'estimatedEnd': None,
        }

    def test_admin_cannot_update(self, repos, admin_ctx):
        with pytest.raises(PermissionDenied):
            services.update_app_setting(repos, admin_ctx, 'general', {})

    def test_unknown_key(self, repos, super_ctx):
        with pytest.raises(ValidationError):
            services.update_app_setting(repos, super_ctx, 'colors', {})

    def test_audit_limit(self, repos, super_ctx):
        for i in range(3):
            services.update_app_setting(repos, super_ctx, 'general', {'siteName': f'Portal {i}'})
        audit = services.settings_audit_log(repos, super_ctx, limit=2)
        assert [row['new_value']['siteName'] for row in audit] == ['Portal 2', 'Portal 1']


class TestDangerZone:
    """Tests for destructive maintenance operations."""

    def test_reset_closed_semester(self, repos, super_ctx, application_row):
        repos.applications.insert(dict(application_row, semester_id=2))
        repos.applications.insert(dict(application_row, semester_id=2))
        repos.applications.insert(application_row)
        assert services.reset_semester(repos, super_ctx, 2) == 2
        assert len(repos.applications.query()) == 1

    def test_reset_open_semester_refused(self, repos, super_ctx, application):
        with pytest.raises(ValidationError):
            services.reset_semester(repos, super_ctx, 1)
        assert len(repos.applications.query()) == 1

    def test_delete_old_drafts_only(self, repos, super_ctx, application_row):
        now = timezone.now()
        old_draft = repos.applications.insert(dict(application_row, submitted_at=None))
        repos.applications.rows[old_draft['id']]['created_at'] = now - timedelta(days=30)
        fresh_draft = repos.applications.insert(dict(application_row, submitted_at=None))
        submitted = repos.applications.insert(application_row)
        repos.applications.rows[submitted['id']]['created_at'] = now - timedelta(days=30)

        assert services.delete_drafts(repos, super_ctx, 7, now=now) == 1
        remaining_ids = {row['id'] for row in repos.applications.query()}
        assert remaining_ids == {fresh_draft['id'], submitted['id']}

    def test_delete_drafts_minimum_age(self, repos, super_ctx):
        with pytest.raises(ValidationError):
            services.delete_drafts(repos, super_ctx, 3)

    def test_admin_refused(self, repos, admin_ctx):
        with pytest.raises(PermissionDenied):
            services.reset_semester(repos, admin_ctx, 2)

    def test_purge_inactive_users(self, repos, super_ctx, application_row):
        now = timezone.now()
        stale = repos.users.insert({'username': 'stale', 'last_login': now - timedelta(days=90)})
        never_signed_in = repos.users.insert({'username': 'ghost', 'date_joined': now - timedelta(days=60)})
        recent = repos.users.insert({'username': 'recent', 'last_login': now - timedelta(days=5)})
        new_account = repos.users.insert({'username': 'new', 'date_joined': now - timedelta(days=2)})
        applied = repos.users.insert({'username': 'applied', 'last_login': now - timedelta(days=90)})
        staff = repos.users.insert({'username': 'staff', 'user_type': 'admin', 'last_login': now - timedelta(days=90)})
        repos.applications.insert(dict(application_row, user_id=applied['id']))

        assert services.purge_inactive_users(repos, super_ctx, 30, now=now) == 2
        remaining_ids = {row['id'] for row in repos.users.query()}
        assert remaining_ids == {recent['id'], new_account['id'], applied['id'], staff['id']}
        assert stale['id'] not in remaining_ids and never_signed_in['id'] not in remaining_ids
        assert repos.audit_log.query()[-1]['table_affected'] == 'User'

    def test_purge_minimum_inactivity(self, repos, super_ctx):
        with pytest.raises(ValidationError):
            services.purge_inactive_users(repos, super_ctx, 29)

    def test_purge_requires_super_admin(self, repos, admin_ctx):
        with pytest.raises(PermissionDenied):
            services.purge_inactive_users(repos, admin_ctx, 30)


class TestExport:
    """Tests for CSV export rows."""

    def test_export_applications_by_semester(self, repos, super_ctx, application_row):
        repos.applications.insert(application_row)
        repos.applications.insert(dict(application_row, semester_id=2))
        rows, headers, prefix = services.export_rows(repos, super_ctx, 'applications', 1)
        assert len(rows) == 1
        assert headers[0] == 'id'
        assert prefix == 'applications'

    def test_invalid_type(self, repos, super_ctx):
        with pytest.raises(ValidationError):
            services.export_rows(repos, super_ctx, 'passwords')
