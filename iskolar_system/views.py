import functools
import json
import logging

from django.contrib.auth.decorators import login_required, user_passes_test
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import notifications, services
from .budget import parse_budget
from .choices import ApplicationStatus
from .exceptions import PortalError
from .forms import (
    ApplicationFilterForm, CriteriaForm, CriterionOverrideForm, DeleteDraftsForm, DocumentStatusForm,
    ExportForm, PurgeUsersForm, ResetSemesterForm, StatusChangeForm, form_errors,
)
from .repositories import Repositories
from .services import RequestContext

logger = logging.getLogger(__name__)


def is_admin(user):
    return user.is_authenticated and user.is_portal_admin


def is_super_admin(user):
    return user.is_authenticated and user.is_super_admin


def get_repositories():
    return Repositories.django()


def parse_json_body(request):
    if not request.body:
        return {}
    data = json.loads(request.body)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _validation_payload(error):
    if hasattr(error, 'error_dict'):
        return {'success': False, 'errors': error.message_dict}
    return {'success': False, 'error': ' '.join(error.messages)}


def json_endpoint(view):
    """Translate domain errors into JSON error responses"""
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except json.JSONDecodeError:
            return JsonResponse({'success': False, 'error': 'Invalid JSON data'}, status=400)
        except ValidationError as e:
            return JsonResponse(_validation_payload(e), status=400)
        except PermissionDenied as e:
            return JsonResponse({'success': False, 'error': str(e) or 'Permission denied'}, status=403)
        except PortalError as e:
            if e.status_code >= 500:
                logger.error(f'{view.__name__} failed: {e.message}')
            return JsonResponse({'success': False, 'error': e.message}, status=e.status_code)
    return wrapper


def _with_notices(ctx, payload):
    payload.setdefault('success', True)
    payload['notices'] = ctx.notices
    return payload


def _page_payload(page):
    return {
        'page': page.number,
        'num_pages': page.paginator.num_pages,
        'total': page.paginator.count,
        'start_index': page.start_index(),
        'end_index': page.end_index(),
        'has_next': page.has_next(),
        'has_previous': page.has_previous(),
    }


# Applications

@login_required
@require_GET
@user_passes_test(is_admin)
@json_endpoint
def application_list(request, semester_id):
    form = ApplicationFilterForm(request.GET)
    if not form.is_valid():
        return JsonResponse({'success': False, 'errors': form_errors(form)}, status=400)

    repos = get_repositories()
    page = services.list_applications(repos, semester_id, form.to_filters(), form.cleaned_data.get('page') or 1)
    return JsonResponse({
        'success': True,
        'applications': list(page.object_list),
        'pagination': _page_payload(page),
    })


@login_required
@require_GET
@user_passes_test(is_admin)
@json_endpoint
def application_detail(request, application_id):
    repos = get_repositories()
    application = repos.applications.find(application_id)
    report = services.evaluate_application(repos, application_id)
    return JsonResponse({
        'success': True,
        'application': application,
        'eligibility': report.as_dict(),
        'documents': services.list_documents(repos, application_id),
        'override_history': services.override_history(repos, application_id),
    })


@login_required
@require_POST
@user_passes_test(is_admin)
@json_endpoint
def application_update_status(request, application_id):
    form = StatusChangeForm(parse_json_body(request))
    if not form.is_valid():
        return JsonResponse({'success': False, 'errors': form_errors(form)}, status=400)

    ctx = RequestContext.from_request(request)
    application = services.change_application_status(
        get_repositories(), ctx, application_id,
        form.cleaned_data['status'], form.cleaned_data.get('reason', ''),
    )
    return JsonResponse(_with_notices(ctx, {'application': application}))


@login_required
@require_GET
@user_passes_test(is_admin)
@json_endpoint
def user_application_history(request, user_id):
    history = services.application_history(get_repositories(), user_id)
    return JsonResponse(dict(history, success=True))


@login_required
@require_POST
@json_endpoint
def application_submit(request):
    """Scholar-facing intake; the applicant is always the signed-in user"""
    data = parse_json_body(request)
    data['user_id'] = request.user.pk
    data.setdefault('email_address', request.user.email)
    ctx = RequestContext.from_request(request)
    application = services.submit_application(get_repositories(), ctx, data)
    return JsonResponse({'success': True, 'application': application}, status=201)


@login_required
@require_GET
@json_endpoint
def application_status_check(request, semester_id):
    """Scholar-facing status page for the signed-in applicant"""
    repos = get_repositories()
    application = repos.applications.first(
        {'semester_id': semester_id, 'user_id': request.user.pk},
        order_by=['-created_at'],
    )
    if application is None:
        return JsonResponse({'success': True, 'application': None})

    report = services.evaluate_application(repos, application['id'])
    return JsonResponse({
        'success': True,
        'application': {
            'id': application['id'],
            'status': application['status'],
            'status_display': ApplicationStatus(application['status']).label,
            'submitted_at': application['submitted_at'],
            'reviewed_at': application['reviewed_at'],
            'rejection_reason': application['rejection_reason'],
        },
        'eligibility': report.as_dict(),
    })


# Eligibility

@login_required
@require_http_methods(["GET", "POST"])
@user_passes_test(is_admin)
@json_endpoint
def semester_criteria(request, semester_id):
    repos = get_repositories()
    if request.method == 'GET':
        repos.semesters.find(semester_id)
        config = services.load_criteria(repos, semester_id)
        return JsonResponse({'success': True, 'criteria': config.as_dict()})

    form = CriteriaForm(parse_json_body(request), current=services.load_criteria(repos, semester_id))
    if not form.is_valid():
        return JsonResponse({'success': False, 'errors': form_errors(form)}, status=400)

    ctx = RequestContext.from_request(request)
    config = services.save_criteria(repos, ctx, semester_id, form.cleaned_data['config'])
    return JsonResponse(_with_notices(ctx, {'criteria': config.as_dict()}))


@login_required
@require_GET
@user_passes_test(is_admin)
@json_endpoint
def application_eligibility(request, application_id):
    report = services.evaluate_application(get_repositories(), application_id)
    return JsonResponse({'success': True, 'eligibility': report.as_dict()})


@login_required
@require_POST
@user_passes_test(is_admin)
@json_endpoint
def criterion_override(request, application_id):
    form = CriterionOverrideForm(parse_json_body(request))
    if not form.is_valid():
        return JsonResponse({'success': False, 'errors': form_errors(form)}, status=400)

    ctx = RequestContext.from_request(request)
    result = services.record_override(
        get_repositories(), ctx, application_id,
        form.cleaned_data['criterion'], form.cleaned_data['status'], form.cleaned_data.get('note', ''),
    )
    return JsonResponse(_with_notices(ctx, {'result': result.as_dict()}))


@login_required
@require_POST
@user_passes_test(is_admin)
@json_endpoint
def document_update_status(request, document_id):
    form = DocumentStatusForm(parse_json_body(request))
    if not form.is_valid():
        return JsonResponse({'success': False, 'errors': form_errors(form)}, status=400)

    ctx = RequestContext.from_request(request)
    document = services.set_document_status(
        get_repositories(), ctx, document_id, form.cleaned_data['status'], form.cleaned_data.get('note', ''),
    )
    return JsonResponse({'success': True, 'document': document})


# Releases

@login_required
@require_GET
@user_passes_test(is_admin)
@json_endpoint
def release_list(request, semester_id):
    """Releases for a semester; ?budget= reconciles them against an entered budget"""
    budget = None
    if request.GET.get('budget', '').strip():
        budget = parse_budget(request.GET['budget'])

    ctx = RequestContext.from_request(request, budget=budget)
    overview = services.release_overview(get_repositories(), semester_id, ctx.budget)
    summary = overview['summary']
    if ctx.budget is not None and summary.is_over_budget:
        ctx.notify('Scheduled releases exceed the semester budget', 'warning')
    return JsonResponse(_with_notices(ctx, {
        'summary': summary.as_dict(),
        'active': overview['active'],
        'archived': overview['archived'],
    }))


@login_required
@require_POST
@user_passes_test(is_admin)
@json_endpoint
def release_create(request):
    ctx = RequestContext.from_request(request)
    release = services.create_release(get_repositories(), ctx, parse_json_body(request))
    return JsonResponse(_with_notices(ctx, {'release': release}), status=201)


@login_required
@require_http_methods(["GET", "PUT", "DELETE"])
@user_passes_test(is_admin)
@json_endpoint
def release_detail(request, release_id):
    repos = get_repositories()
    if request.method == 'GET':
        return JsonResponse({'success': True, 'release': repos.releases.find(release_id)})

    ctx = RequestContext.from_request(request)
    if request.method == 'PUT':
        release = services.update_release(repos, ctx, release_id, parse_json_body(request))
        return JsonResponse(_with_notices(ctx, {'release': release}))

    services.delete_release(repos, ctx, release_id)
    return JsonResponse(_with_notices(ctx, {}))


@login_required
@require_POST
@user_passes_test(is_admin)
@json_endpoint
def release_archive(request, release_id):
    data = parse_json_body(request)
    if not isinstance(data.get('is_archived'), bool):
        raise ValidationError({'is_archived': 'is_archived must be true or false'})

    ctx = RequestContext.from_request(request)
    release = services.set_release_archived(get_repositories(), ctx, release_id, data['is_archived'])
    return JsonResponse(_with_notices(ctx, {'release': release}))


# Settings (super administrators only)

@login_required
@require_http_methods(["GET", "PUT"])
@user_passes_test(is_super_admin)
@json_endpoint
def system_settings(request):
    repos = get_repositories()
    if request.method == 'GET':
        return JsonResponse({'success': True, 'settings': services.get_app_settings(repos)})

    data = parse_json_body(request)
    if 'key' not in data or 'value' not in data:
        raise ValidationError('key and value are required')
    ctx = RequestContext.from_request(request)
    settings_data = services.update_app_setting(repos, ctx, data['key'], data['value'])
    return JsonResponse({'success': True, 'settings': settings_data})


@login_required
@require_GET
@user_passes_test(is_super_admin)
@json_endpoint
def settings_audit(request):
    try:
        limit = int(request.GET.get('limit', 100))
    except (TypeError, ValueError):
        limit = 100
    ctx = RequestContext.from_request(request)
    logs = services.settings_audit_log(get_repositories(), ctx, limit)
    return JsonResponse({'success': True, 'logs': logs, 'count': len(logs)})


@login_required
@require_POST
@user_passes_test(is_super_admin)
@json_endpoint
def settings_test_email(request):
    data = parse_json_body(request)
    recipient = data.get('to') or request.user.email
    if not recipient:
        raise ValidationError({'to': 'Recipient email is required'})
    if not notifications.send_test_email(recipient, services.sender_address(get_repositories())):
        return JsonResponse({'success': False, 'error': f'Failed to send test email to {recipient}'}, status=502)
    return JsonResponse({'success': True, 'message': f'Test email sent to {recipient}'})


@login_required
@require_GET
@user_passes_test(is_super_admin)
@json_endpoint
def settings_export(request):
    form = ExportForm(request.GET)
    if not form.is_valid():
        return JsonResponse({'success': False, 'errors': form_errors(form)}, status=400)

    ctx = RequestContext.from_request(request)
    rows, headers, prefix = services.export_rows(
        get_repositories(), ctx, form.cleaned_data['type'], form.cleaned_data.get('semester_id'),
    )
    return notifications.csv_response(rows, headers, prefix)


def _check_danger_password(request, form):
    if not request.user.check_password(form.cleaned_data['password']):
        raise PermissionDenied('Invalid password')


@login_required
@require_POST
@user_passes_test(is_super_admin)
@json_endpoint
def danger_reset_semester(request):
    form = ResetSemesterForm(parse_json_body(request))
    if not form.is_valid():
        return JsonResponse({'success': False, 'errors': form_errors(form)}, status=400)
    _check_danger_password(request, form)

    ctx = RequestContext.from_request(request)
    deleted = services.reset_semester(get_repositories(), ctx, form.cleaned_data['semester_id'])
    return JsonResponse({
        'success': True,
        'message': f'Deleted {deleted} application(s) and all associated documents',
        'deletedCount': deleted,
    })


@login_required
@require_POST
@user_passes_test(is_super_admin)
@json_endpoint
def danger_delete_drafts(request):
    form = DeleteDraftsForm(parse_json_body(request))
    if not form.is_valid():
        return JsonResponse({'success': False, 'errors': form_errors(form)}, status=400)
    _check_danger_password(request, form)

    ctx = RequestContext.from_request(request)
    older_than_days = form.cleaned_data['older_than_days']
    deleted = services.delete_drafts(get_repositories(), ctx, older_than_days)
    return JsonResponse({
        'success': True,
        'message': f'Deleted {deleted} draft application(s) older than {older_than_days} days',
        'deletedCount': deleted,
    })


@login_required
@require_POST
@user_passes_test(is_super_admin)
@json_endpoint
def danger_purge_users(request):
    form = PurgeUsersForm(parse_json_body(request))
    if not form.is_valid():
        return JsonResponse({'success': False, 'errors': form_errors(form)}, status=400)
    _check_danger_password(request, form)

    ctx = RequestContext.from_request(request)
    inactive_days = form.cleaned_data['inactive_days']
    deleted = services.purge_inactive_users(get_repositories(), ctx, inactive_days)
    return JsonResponse({
        'success': True,
        'message': f'Purged {deleted} inactive user(s) (inactive for {inactive_days}+ days with no applications)',
        'deletedCount': deleted,
    })


@login_required
@require_GET
def check_role(request):
    """Role of the signed-in user, for showing or hiding super-admin screens"""
    return JsonResponse({
        'isSuperAdmin': is_super_admin(request.user),
        'isAdmin': is_admin(request.user),
        'email': request.user.email,
    })


@require_GET
def maintenance_status(request):
    """Public; fails open when settings cannot be read"""
    try:
        return JsonResponse(services.maintenance_status(get_repositories()))
    except PortalError as e:
        logger.error(f'Failed to read maintenance status: {e.message}')
        return JsonResponse({
            'maintenanceMode': False,
            'maintenanceMessage': 'System is under maintenance. Please check back later.',
            'estimatedEnd': None,
        })
