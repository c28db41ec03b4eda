from django.db import models
from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator, MaxValueValidator, RegexValidator

from .budget import release_payout
from .choices import (
    ApplicationStatus, Criterion, CriterionStatus, DocumentCategory, DocumentStatus, UserType,
)
from .eligibility import DEFAULT_CRITERIA


class User(AbstractUser):
    """
    Portal account; the role claim is user_type
    """
    user_type = models.CharField(max_length=20, choices=UserType.choices, default=UserType.APPLICANT)
    phone_regex = RegexValidator(
        regex=r'^(\+63|0)9\d{9}$',
        message="Phone number must be entered in the format: '+639XXXXXXXXX' or '09XXXXXXXXX'."
    )
    phone_number = models.CharField(validators=[phone_regex], max_length=17, blank=True)

    @property
    def is_portal_admin(self):
        return self.user_type in (UserType.ADMIN, UserType.SUPER_ADMIN)

    @property
    def is_super_admin(self):
        return self.user_type == UserType.SUPER_ADMIN

    def __str__(self):
        return f"{self.first_name} {self.last_name} ({self.user_type})"


class SchoolYear(models.Model):
    """
    Academic years, e.g. 2024-2025
    """
    academic_year = models.CharField(max_length=20, unique=True)
    is_active = models.BooleanField(default=False)

    class Meta:
        ordering = ['-academic_year']

    def __str__(self):
        return self.academic_year


class Semester(models.Model):
    """
    Application period within a school year
    """
    school_year = models.ForeignKey(SchoolYear, on_delete=models.CASCADE, related_name='semesters')
    name = models.CharField(max_length=50)  # e.g., "First Semester"
    applications_open = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.name} {self.school_year.academic_year}"


class Application(models.Model):
    """
    One applicant's scholarship submission for one semester
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='applications', null=True, blank=True)
    semester = models.ForeignKey(Semester, on_delete=models.CASCADE, related_name='applications')
    status = models.CharField(max_length=20, choices=ApplicationStatus.choices, default=ApplicationStatus.PENDING)

    # Applicant details
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email_address = models.EmailField(blank=True)
    barangay = models.CharField(max_length=100)
    school = models.CharField(max_length=200)

    # Eligibility attributes, null until provided
    years_of_residency = models.PositiveIntegerField(null=True, blank=True)
    is_registered_voter = models.BooleanField(null=True, blank=True)
    monthly_family_income = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    date_of_birth = models.DateField(null=True, blank=True)
    gpa = models.DecimalField(
        max_digits=3, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(4)]
    )
    is_enrolled = models.BooleanField(null=True, blank=True)
    enrolled_units = models.PositiveSmallIntegerField(null=True, blank=True)
    has_failing_grades = models.BooleanField(null=True, blank=True)

    # Review
    rejection_reason = models.TextField(blank=True, default='')
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='reviewed_applications')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    submitted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-submitted_at']

    def __str__(self):
        return f"{self.first_name} {self.last_name} - {self.semester}"


class Release(models.Model):
    """
    Scheduled disbursement for a semester and barangay
    """
    semester = models.ForeignKey(Semester, on_delete=models.CASCADE, related_name='releases')
    release_type = models.CharField(max_length=50)  # e.g., "allowance", "tuition"
    release_date = models.DateField()
    release_time = models.TimeField()
    barangay = models.CharField(max_length=100)
    location = models.CharField(max_length=200)
    amount_per_student = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    number_of_recipients = models.PositiveIntegerField(default=0)
    additional_notes = models.TextField(blank=True, default='')
    is_archived = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['release_date', 'release_time']

    @property
    def total_payout(self):
        return release_payout(self)

    def __str__(self):
        return f"{self.release_type} - {self.barangay} ({self.release_date})"


class EligibilityConfiguration(models.Model):
    """
    Criteria thresholds for a semester
    """
    semester = models.OneToOneField(Semester, on_delete=models.CASCADE, related_name='eligibility_configuration')
    residency_years = models.PositiveIntegerField(default=DEFAULT_CRITERIA.residency_years)
    voter_required = models.BooleanField(default=DEFAULT_CRITERIA.voter_required)
    income_threshold = models.DecimalField(max_digits=12, decimal_places=2, default=DEFAULT_CRITERIA.income_threshold)
    age_min = models.PositiveIntegerField(default=DEFAULT_CRITERIA.age_min)
    age_max = models.PositiveIntegerField(default=DEFAULT_CRITERIA.age_max)
    gpa_minimum = models.DecimalField(
        max_digits=3, decimal_places=2, default=DEFAULT_CRITERIA.gpa_minimum,
        validators=[MinValueValidator(0), MaxValueValidator(4)]
    )
    units_minimum = models.PositiveIntegerField(default=DEFAULT_CRITERIA.units_minimum)
    allow_failing_grades = models.BooleanField(default=DEFAULT_CRITERIA.allow_failing_grades)
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Eligibility criteria for {self.semester}"


class CriterionOverride(models.Model):
    """
    Manual criterion status set by an administrator; the latest row per
    application and criterion wins, older rows are history
    """
    application = models.ForeignKey(Application, on_delete=models.CASCADE, related_name='criterion_overrides')
    criterion = models.CharField(max_length=20, choices=Criterion.choices)
    computed_status = models.CharField(max_length=20, choices=CriterionStatus.choices)
    status = models.CharField(max_length=20, choices=CriterionStatus.choices)
    note = models.TextField(blank=True, default='')
    set_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.get_criterion_display()}: {self.computed_status} -> {self.status}"


class Document(models.Model):
    """
    Uploaded requirement awaiting verification
    """
    application = models.ForeignKey(Application, on_delete=models.CASCADE, related_name='documents')
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=20, choices=DocumentCategory.choices, default=DocumentCategory.OTHER)
    file_type = models.CharField(max_length=10, blank=True)  # pdf, jpg, png
    status = models.CharField(max_length=20, choices=DocumentStatus.choices, default=DocumentStatus.PENDING)
    note = models.CharField(max_length=255, blank=True, default='')
    uploaded_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.get_status_display()})"


class AppSetting(models.Model):
    """
    JSON settings group, merged over the defaults in settings.ISKOLAR
    """
    key = models.CharField(max_length=100, unique=True)
    value = models.JSONField(default=dict)
    updated_at = models.DateTimeField(auto_now=True)
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)

    def __str__(self):
        return self.key


class SettingsAudit(models.Model):
    """
    Old and new value of every settings change
    """
    key = models.CharField(max_length=100)
    old_value = models.JSONField(null=True, blank=True)
    new_value = models.JSONField(null=True, blank=True)
    changed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    changed_by_email = models.EmailField(blank=True)
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-changed_at']

    def __str__(self):
        return f"{self.key} changed by {self.changed_by_email or 'Unknown'}"


class AuditLog(models.Model):
    """
    System audit trail
    """
    ACTION_TYPES = (
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('approve', 'Approve'),
        ('reject', 'Reject'),
        ('archive', 'Archive'),
        ('unarchive', 'Unarchive'),
        ('override', 'Override'),
    )

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=20, choices=ACTION_TYPES)
    table_affected = models.CharField(max_length=100)
    record_id = models.CharField(max_length=100, blank=True, null=True)
    description = models.TextField()
    ip_address = models.GenericIPAddressField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.action} by {self.user} on {self.created_at}"
