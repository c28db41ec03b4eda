"""
Outbound channels: email and CSV export.

These run after a mutation has been stored. A failed email is logged and
reported through the return value; it never undoes the mutation.
"""
import csv
import io
import logging

from django.conf import settings
from django.core.mail import send_mail
from django.http import HttpResponse
from django.utils import timezone

from .choices import ApplicationStatus
from .formatting import format_date

logger = logging.getLogger(__name__)


def portal_name():
    return settings.ISKOLAR['SITE_NAME']


def send_portal_email(recipient, subject, message, from_email=None):
    """Send one plain-text email; returns False instead of raising"""
    if not recipient:
        logger.warning(f"Skipping email '{subject}': no recipient")
        return False
    try:
        send_mail(
            subject,
            message,
            from_email or settings.DEFAULT_FROM_EMAIL,
            [recipient],
            fail_silently=False,
        )
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {recipient}: {str(e)}")
        return False


def send_status_notification(application, from_email=None):
    """Tell the applicant their application was approved or rejected"""
    name = f"{application.get('first_name', '')} {application.get('last_name', '')}".strip()
    status = application.get('status')

    if status == ApplicationStatus.APPROVED:
        subject = f'{portal_name()}: Scholarship Application Approved'
        message = (
            f"Dear {name},\n\n"
            f"Your scholarship application submitted on {format_date(application.get('submitted_at'))} "
            f"has been APPROVED. Release schedules for your barangay ({application.get('barangay')}) "
            f"will be announced on the portal.\n"
        )
    elif status == ApplicationStatus.REJECTED:
        subject = f'{portal_name()}: Scholarship Application Update'
        message = f"Dear {name},\n\nWe regret to inform you that your scholarship application was not approved.\n"
        if application.get('rejection_reason'):
            message += f"\nReason: {application['rejection_reason']}\n"
    else:
        logger.warning(f"No notification for application {application.get('id')} in status {status}")
        return False

    return send_portal_email(application.get('email_address'), subject, message, from_email)


def send_test_email(recipient, from_email=None):
    subject = f'{portal_name()}: Test Email'
    message = (
        f"This is a test email from {portal_name()}.\n"
        f"Sent at {timezone.now():%Y-%m-%d %H:%M:%S %Z}.\n"
    )
    return send_portal_email(recipient, subject, message, from_email)


APPLICATION_EXPORT_HEADERS = [
    'id', 'first_name', 'last_name', 'email_address', 'barangay', 'school',
    'semester_id', 'status', 'rejection_reason', 'created_at', 'submitted_at', 'reviewed_at',
]
RELEASE_EXPORT_HEADERS = [
    'id', 'semester_id', 'release_type', 'release_date', 'release_time', 'barangay', 'location',
    'amount_per_student', 'number_of_recipients', 'is_archived', 'additional_notes',
]
USER_EXPORT_HEADERS = [
    'id', 'username', 'email', 'first_name', 'last_name', 'user_type', 'date_joined', 'last_login',
]


def rows_to_csv(rows, headers):
    """CSV text with a header row; missing values become empty cells"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(headers)
    for row in rows:
        writer.writerow(['' if row.get(header) is None else row.get(header) for header in headers])
    return buffer.getvalue()


def csv_response(rows, headers, filename_prefix):
    response = HttpResponse(rows_to_csv(rows, headers), content_type='text/csv; charset=utf-8')
    filename = f"{filename_prefix}-{timezone.localdate():%Y-%m-%d}.csv"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response
