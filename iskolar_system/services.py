"""
Administrative and applicant operations.

Each operation takes the Repositories bundle and a RequestContext describing
the caller. Views check the role before calling in; super-admin operations
check it again through the context. Every entity change is one update
call; the audit row and any notification follow it.
"""
import copy
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.utils import timezone

from . import notifications
from .budget import archive_fields, is_done, split_by_state, summarize
from .choices import APPLICATION_TRANSITIONS, ApplicationStatus, Criterion, CriterionStatus, UserType
from .eligibility import ApplicantAttributes, CriteriaConfig, DEFAULT_CRITERIA, Override, evaluate
from .exceptions import InvalidTransition
from .filters import PAGE_SIZE, application_view, sort_by_submission
from .forms import ApplicationForm, ReleaseForm, form_errors

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Get client IP address"""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0]
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or '127.0.0.1'


@dataclass
class RequestContext:
    """Who is acting, plus state that lives only for this request"""
    user_id: Optional[int] = None
    email: str = ''
    role: str = UserType.ADMIN
    ip_address: str = '127.0.0.1'
    budget: Optional[Decimal] = None
    notices: list = field(default_factory=list)

    @classmethod
    def from_request(cls, request, budget=None):
        user = request.user
        return cls(
            user_id=user.pk,
            email=user.email,
            role=getattr(user, 'user_type', UserType.APPLICANT),
            ip_address=get_client_ip(request),
            budget=budget,
        )

    @property
    def is_super_admin(self):
        return self.role == UserType.SUPER_ADMIN

    def require_super_admin(self):
        if not self.is_super_admin:
            raise PermissionDenied('Only super administrators can perform this action')

    def notify(self, message, level='success'):
        self.notices.append({'message': message, 'type': level})


def record_audit(repos, ctx, action, table, record_id, description):
    return repos.audit_log.insert({
        'user_id': ctx.user_id,
        'action': action,
        'table_affected': table,
        'record_id': str(record_id) if record_id is not None else None,
        'description': description,
        'ip_address': ctx.ip_address,
    })


# Applications

def applications_enabled(repos):
    return bool(get_app_settings(repos).get('features', {}).get('openApplications', True))


def submit_application(repos, ctx, data):
    """Applicant intake: validate and store a pending application for an open semester"""
    try:
        semester_id = int(data.get('semester_id'))
    except (TypeError, ValueError):
        raise ValidationError({'semester_id': 'A valid semester_id is required'})
    if not data.get('user_id'):
        raise ValidationError({'user_id': 'Missing user_id'})
    if not applications_enabled(repos):
        raise ValidationError('Applications are currently closed')

    semester = repos.semesters.find(semester_id)
    if not semester.get('applications_open'):
        raise ValidationError({'semester_id': 'Applications are closed for this semester'})

    form = ApplicationForm(data)
    if not form.is_valid():
        raise ValidationError(form_errors(form))

    fields = dict(form.cleaned_data)
    fields.update({
        'user_id': data['user_id'],
        'semester_id': semester['id'],
        'status': ApplicationStatus.PENDING,
        'submitted_at': timezone.now(),
    })
    application = repos.applications.insert(fields)
    logger.info(f"Application {application['id']} submitted for semester {semester['id']}")
    return application


def list_applications(repos, semester_id, filters, page=1, page_size=PAGE_SIZE):
    repos.semesters.find(semester_id)
    rows = repos.applications.query({'semester_id': semester_id})
    return application_view(rows, filters, page, page_size)


def check_transition(current, requested):
    try:
        requested = ApplicationStatus(requested)
    except ValueError:
        raise ValidationError({'status': f'Unknown application status: {requested}'})
    if requested not in APPLICATION_TRANSITIONS[ApplicationStatus(current)]:
        raise InvalidTransition(current, requested)
    return requested


def change_application_status(repos, ctx, application_id, status, reason=''):
    """Approve or reject a pending application"""
    application = repos.applications.find(application_id)
    status = check_transition(application['status'], status)

    updated = repos.applications.update(application_id, {
        'status': status,
        'reviewed_at': timezone.now(),
        'reviewed_by_id': ctx.user_id,
        'rejection_reason': reason if status == ApplicationStatus.REJECTED else '',
    })

    name = f"{updated['first_name']} {updated['last_name']}"
    record_audit(
        repos, ctx,
        action='approve' if status == ApplicationStatus.APPROVED else 'reject',
        table='Application',
        record_id=application_id,
        description=f'{status.label} application of {name}',
    )
    logger.info(f'Application {application_id} {status} by user {ctx.user_id}')

    if notifications.send_status_notification(updated, sender_address(repos)):
        ctx.notify(f'Application {status}. Notification sent to {name}')
    else:
        ctx.notify(f'Application {status}, but the notification email could not be sent', 'warning')
    return updated


def application_history(repos, user_id):
    """All of one applicant's applications, newest submission first"""
    rows = sort_by_submission(repos.applications.query({'user_id': user_id}))
    counts = {status.value: 0 for status in ApplicationStatus}
    for row in rows:
        counts[row['status']] = counts.get(row['status'], 0) + 1
    return {'applications': rows, 'counts': counts, 'total': len(rows)}


# Eligibility

def load_criteria(repos, semester_id):
    row = repos.criteria.first({'semester_id': semester_id})
    if row is None:
        return DEFAULT_CRITERIA
    return CriteriaConfig.from_mapping(row)


def save_criteria(repos, ctx, semester_id, config: CriteriaConfig):
    repos.semesters.find(semester_id)
    fields = dict(config.as_dict(), updated_by_id=ctx.user_id)
    existing = repos.criteria.first({'semester_id': semester_id})
    if existing is None:
        row = repos.criteria.insert(dict(fields, semester_id=semester_id))
        action = 'create'
    else:
        row = repos.criteria.update(existing['id'], fields)
        action = 'update'

    record_audit(repos, ctx, action, 'EligibilityConfiguration', row['id'],
                 f'Saved eligibility criteria for semester {semester_id}')
    ctx.notify('Eligibility criteria saved')
    return CriteriaConfig.from_mapping(row)


def current_overrides(repos, application_id):
    """Latest override per criterion"""
    rows = repos.overrides.query({'application_id': application_id}, order_by=['-created_at', '-id'])
    overrides = {}
    for row in rows:
        criterion = Criterion(row['criterion'])
        if criterion not in overrides:
            overrides[criterion] = Override(
                status=CriterionStatus(row['status']),
                set_by=row.get('set_by_id'),
                note=row.get('note') or '',
            )
    return overrides


def evaluate_application(repos, application_id, today=None):
    application = repos.applications.find(application_id)
    config = load_criteria(repos, application['semester_id'])
    attributes = ApplicantAttributes.from_record(application, today=today)
    return evaluate(attributes, config, current_overrides(repos, application_id))


def record_override(repos, ctx, application_id, criterion, status, note='', today=None):
    """Store a manual status next to the computed one it replaces"""
    criterion = Criterion(criterion)
    status = CriterionStatus(status)
    report = evaluate_application(repos, application_id, today=today)
    computed = report.result_for(criterion).computed

    repos.overrides.insert({
        'application_id': application_id,
        'criterion': criterion,
        'computed_status': computed,
        'status': status,
        'note': note,
        'set_by_id': ctx.user_id,
    })
    record_audit(repos, ctx, 'override', 'CriterionOverride', application_id,
                 f'{criterion.label}: computed {computed}, set to {status}')
    ctx.notify(f'{criterion.label} marked as {status.label}')
    return report.with_override(criterion, Override(status=status, set_by=ctx.user_id, note=note)).result_for(criterion)


def override_history(repos, application_id):
    return repos.overrides.query({'application_id': application_id}, order_by=['-created_at', '-id'])


# Releases

def _clean_release(repos, data):
    form = ReleaseForm(data)
    if not form.is_valid():
        raise ValidationError(form_errors(form))
    fields = dict(form.cleaned_data)
    repos.semesters.find(fields['semester_id'])
    return fields


def list_releases(repos, semester_id):
    return repos.releases.query({'semester_id': semester_id}, order_by=['release_date', 'release_time'])


def release_overview(repos, semester_id, budget=None, now=None):
    """Budget summary plus the active and archived tabs"""
    repos.semesters.find(semester_id)
    releases = list_releases(repos, semester_id)
    active, archived = split_by_state(releases)
    for release in active:
        release['done'] = is_done(release, now)
    return {
        'summary': summarize(budget, releases),
        'active': active,
        'archived': archived,
    }


def create_release(repos, ctx, data):
    fields = _clean_release(repos, data)
    release = repos.releases.insert(dict(fields, is_archived=False))
    record_audit(repos, ctx, 'create', 'Release', release['id'],
                 f"Scheduled {release['release_type']} release for {release['barangay']}")
    ctx.notify('Release created successfully')
    return release


def update_release(repos, ctx, release_id, data):
    """Replace every editable field of a release in one write"""
    existing = repos.releases.find(release_id)
    data = dict(data)
    data.setdefault('semester_id', existing['semester_id'])
    fields = _clean_release(repos, data)
    release = repos.releases.update(release_id, fields)
    record_audit(repos, ctx, 'update', 'Release', release_id,
                 f"Updated {release['release_type']} release for {release['barangay']}")
    ctx.notify('Release updated successfully')
    return release


def delete_release(repos, ctx, release_id):
    release = repos.releases.find(release_id)
    repos.releases.delete(release_id)
    record_audit(repos, ctx, 'delete', 'Release', release_id,
                 f"Deleted {release['release_type']} release for {release['barangay']}")
    ctx.notify('Release deleted successfully')


def set_release_archived(repos, ctx, release_id, archived):
    repos.releases.find(release_id)
    release = repos.releases.update(release_id, archive_fields(archived))
    verb = 'archive' if archived else 'unarchive'
    record_audit(repos, ctx, verb, 'Release', release_id,
                 f"{verb.capitalize()}d {release['release_type']} release for {release['barangay']}")
    ctx.notify(f'Release {verb}d successfully')
    return release


# Documents

def list_documents(repos, application_id):
    repos.applications.find(application_id)
    return repos.documents.query({'application_id': application_id}, order_by=['category', 'name'])


def set_document_status(repos, ctx, document_id, status, note=''):
    document = repos.documents.find(document_id)
    updated = repos.documents.update(document_id, {'status': status, 'note': note})
    record_audit(repos, ctx, 'update', 'Document', document_id,
                 f"Marked {document['name']} as {status}")
    return updated


# Settings

def default_app_settings():
    return copy.deepcopy(settings.ISKOLAR['DEFAULT_APP_SETTINGS'])


def get_app_settings(repos):
    merged = default_app_settings()
    for row in repos.settings.query():
        merged[row['key']] = row['value']
    return merged


def update_app_setting(repos, ctx, key, value):
    ctx.require_super_admin()
    defaults = default_app_settings()
    if key not in defaults:
        raise ValidationError({'key': f'Unknown settings key: {key}'})
    if not isinstance(value, dict):
        raise ValidationError({'value': 'Settings value must be an object'})

    existing = repos.settings.first({'key': key})
    old_value = existing['value'] if existing else defaults[key]
    if existing is None:
        repos.settings.insert({'key': key, 'value': value, 'updated_by_id': ctx.user_id})
    else:
        repos.settings.update(existing['id'], {'value': value, 'updated_by_id': ctx.user_id})

    repos.settings_audit.insert({
        'key': key,
        'old_value': old_value,
        'new_value': value,
        'changed_by_id': ctx.user_id,
        'changed_by_email': ctx.email,
    })
    logger.info(f'Setting {key} updated by {ctx.email}')
    return get_app_settings(repos)


def settings_audit_log(repos, ctx, limit=100):
    ctx.require_super_admin()
    rows = repos.settings_audit.query(order_by=['-changed_at', '-id'])
    return rows[:max(limit, 0)]


def sender_address(repos):
    return get_app_settings(repos).get('email', {}).get('fromAddress') or settings.DEFAULT_FROM_EMAIL


def maintenance_status(repos):
    maintenance = get_app_settings(repos).get('maintenance', {})
    return {
        'maintenanceMode': bool(maintenance.get('maintenanceMode', False)),
        'maintenanceMessage': maintenance.get('maintenanceMessage', ''),
        'estimatedEnd': maintenance.get('estimatedEnd'),
    }


# Danger zone

def reset_semester(repos, ctx, semester_id):
    """Delete every application of a closed semester"""
    ctx.require_super_admin()
    semester = repos.semesters.find(semester_id)
    if semester.get('applications_open'):
        raise ValidationError(
            'Cannot reset the current active semester. Please change the active semester first.'
        )

    deleted = repos.applications.delete_where({'semester_id': semester_id})
    record_audit(repos, ctx, 'delete', 'Application', None,
                 f"Reset semester {semester.get('name', semester_id)}: deleted {deleted} application(s)")
    logger.info(f'Semester {semester_id} reset by {ctx.email}: {deleted} application(s) deleted')
    return deleted


def delete_drafts(repos, ctx, older_than_days, now=None):
    """Delete pending applications that were never submitted"""
    ctx.require_super_admin()
    if older_than_days < 7:
        raise ValidationError({'older_than_days': 'older_than_days must be a number >= 7'})

    cutoff = (now or timezone.now()) - timedelta(days=older_than_days)
    deleted = repos.applications.delete_where({
        'status': ApplicationStatus.PENDING,
        'submitted_at__isnull': True,
        'created_at__lt': cutoff,
    })
    record_audit(repos, ctx, 'delete', 'Application', None,
                 f'Deleted {deleted} draft application(s) older than {older_than_days} days')
    return deleted


def _last_seen(user):
    return user.get('last_login') or user.get('date_joined')


def purge_inactive_users(repos, ctx, inactive_days, now=None):
    """
    Delete applicant accounts with no applications that have not signed in
    for inactive_days. Accounts that never signed in count from the day they
    joined.
    """
    ctx.require_super_admin()
    if inactive_days < 30:
        raise ValidationError({'inactive_days': 'inactive_days must be a number >= 30'})

    cutoff = (now or timezone.now()) - timedelta(days=inactive_days)
    inactive = [
        user for user in repos.users.query({'user_type': UserType.APPLICANT}, order_by=['id'])
        if user['id'] != ctx.user_id and (_last_seen(user) is None or _last_seen(user) < cutoff)
    ]
    if not inactive:
        return 0

    with_applications = {
        row['user_id'] for row in repos.applications.query({'user_id__in': [user['id'] for user in inactive]})
    }
    purged = 0
    for user in inactive:
        if user['id'] in with_applications:
            continue
        repos.users.delete(user['id'])
        purged += 1

    record_audit(repos, ctx, 'delete', 'User', None,
                 f'Purged {purged} user(s) inactive for {inactive_days}+ days with no applications')
    logger.info(f'{purged} inactive user(s) purged by {ctx.email}')
    return purged


# Export

EXPORTS = {
    'applications': ('applications', notifications.APPLICATION_EXPORT_HEADERS, 'applications'),
    'releases': ('releases', notifications.RELEASE_EXPORT_HEADERS, 'releases'),
    'users': ('users', notifications.USER_EXPORT_HEADERS, 'users'),
}


def export_rows(repos, ctx, kind, semester_id=None):
    ctx.require_super_admin()
    if kind not in EXPORTS:
        raise ValidationError({'type': f'Invalid export type: {kind}'})
    repository_name, headers, prefix = EXPORTS[kind]
    filters = {}
    if semester_id and kind != 'users':
        filters['semester_id'] = semester_id
    rows = getattr(repos, repository_name).query(filters, order_by=['id'])
    return rows, headers, prefix
