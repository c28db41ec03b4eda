from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .formatting import format_peso
from .models import (
    AppSetting, Application, AuditLog, CriterionOverride, Document, EligibilityConfiguration,
    Release, SchoolYear, Semester, SettingsAudit, User,
)


class CustomUserAdmin(BaseUserAdmin):
    """Custom user admin to handle the extended User model"""
    list_display = ('username', 'email', 'first_name', 'last_name', 'user_type', 'is_staff', 'date_joined')
    list_filter = ('user_type', 'is_staff', 'is_superuser', 'is_active', 'date_joined')
    search_fields = ('username', 'email', 'first_name', 'last_name', 'phone_number')
    ordering = ('username',)

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Additional Info', {
            'fields': ('user_type', 'phone_number')
        }),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Additional Info', {
            'fields': ('user_type', 'phone_number')
        }),
    )


admin.site.register(User, CustomUserAdmin)


class SemesterInline(admin.TabularInline):
    model = Semester
    extra = 1


@admin.register(SchoolYear)
class SchoolYearAdmin(admin.ModelAdmin):
    list_display = ('academic_year', 'is_active', 'semester_count')
    list_filter = ('is_active',)
    inlines = [SemesterInline]

    def semester_count(self, obj):
        return obj.semesters.count()
    semester_count.short_description = 'Semesters'


@admin.register(Semester)
class SemesterAdmin(admin.ModelAdmin):
    list_display = ('name', 'school_year', 'applications_open', 'application_count')
    list_filter = ('applications_open', 'school_year')

    def application_count(self, obj):
        return obj.applications.count()
    application_count.short_description = 'Applications'


class DocumentInline(admin.TabularInline):
    model = Document
    extra = 0
    readonly_fields = ('uploaded_at',)


class CriterionOverrideInline(admin.TabularInline):
    model = CriterionOverride
    extra = 0
    readonly_fields = ('criterion', 'computed_status', 'status', 'note', 'set_by', 'created_at')
    can_delete = False


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ('first_name', 'last_name', 'barangay', 'school', 'semester', 'status', 'submitted_at')
    list_filter = ('status', 'semester', 'barangay')
    search_fields = ('first_name', 'last_name', 'email_address', 'barangay', 'school')
    readonly_fields = ('created_at', 'updated_at', 'reviewed_at', 'reviewed_by')
    date_hierarchy = 'submitted_at'
    inlines = [DocumentInline, CriterionOverrideInline]

    fieldsets = (
        ('Applicant', {
            'fields': ('user', 'semester', 'first_name', 'last_name', 'email_address', 'barangay', 'school')
        }),
        ('Eligibility', {
            'fields': (
                'years_of_residency', 'is_registered_voter', 'monthly_family_income', 'date_of_birth',
                'is_enrolled', 'gpa', 'enrolled_units', 'has_failing_grades',
            )
        }),
        ('Review', {
            'fields': ('status', 'rejection_reason', 'reviewed_by', 'reviewed_at')
        }),
        ('Timestamps', {
            'fields': ('submitted_at', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Release)
class ReleaseAdmin(admin.ModelAdmin):
    list_display = ('release_type', 'barangay', 'release_date', 'release_time',
                    'amount_per_student', 'number_of_recipients', 'payout_display', 'is_archived')
    list_filter = ('is_archived', 'semester', 'release_type', 'barangay')
    search_fields = ('release_type', 'barangay', 'location')
    actions = ['archive_releases', 'unarchive_releases']

    def payout_display(self, obj):
        return format_peso(obj.total_payout)
    payout_display.short_description = 'Total Payout'

    def archive_releases(self, request, queryset):
        updated = queryset.update(is_archived=True)
        self.message_user(request, f'{updated} releases archived.')
    archive_releases.short_description = "Archive selected releases"

    def unarchive_releases(self, request, queryset):
        updated = queryset.update(is_archived=False)
        self.message_user(request, f'{updated} releases restored.')
    unarchive_releases.short_description = "Restore selected releases"


@admin.register(EligibilityConfiguration)
class EligibilityConfigurationAdmin(admin.ModelAdmin):
    list_display = ('semester', 'residency_years', 'income_threshold', 'age_min', 'age_max',
                    'gpa_minimum', 'units_minimum', 'updated_at')


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ('name', 'application', 'category', 'file_type', 'status', 'uploaded_at')
    list_filter = ('category', 'status', 'file_type')
    search_fields = ('name', 'application__first_name', 'application__last_name')


@admin.register(AppSetting)
class AppSettingAdmin(admin.ModelAdmin):
    list_display = ('key', 'updated_by', 'updated_at')


@admin.register(SettingsAudit)
class SettingsAuditAdmin(admin.ModelAdmin):
    list_display = ('key', 'changed_by_email', 'changed_at')
    list_filter = ('key',)
    readonly_fields = ('key', 'old_value', 'new_value', 'changed_by', 'changed_by_email', 'changed_at')

    def has_add_permission(self, request):
        return False


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('user', 'action', 'table_affected', 'record_id', 'created_at', 'ip_address')
    list_filter = ('action', 'table_affected', 'created_at')
    search_fields = ('user__username', 'description', 'table_affected')
    date_hierarchy = 'created_at'
    readonly_fields = ('user', 'action', 'table_affected', 'record_id', 'description', 'ip_address', 'created_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


# Customize admin site
admin.site.site_header = "IskoLAR Scholarship Administration"
admin.site.site_title = "IskoLAR Admin"
admin.site.index_title = "Welcome to IskoLAR Scholarship Administration"
