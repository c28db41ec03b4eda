from django.urls import path
from . import views

urlpatterns = [
    # Applications
    path('api/semesters/<int:semester_id>/applications/', views.application_list, name='application_list'),
    path('api/applications/submit/', views.application_submit, name='application_submit'),
    path('api/applications/<int:application_id>/', views.application_detail, name='application_detail'),
    path('api/applications/<int:application_id>/status/', views.application_update_status, name='application_update_status'),
    path('api/users/<int:user_id>/applications/', views.user_application_history, name='user_application_history'),

    # Scholar status page
    path('api/semesters/<int:semester_id>/my-application/', views.application_status_check, name='application_status_check'),

    # Eligibility
    path('api/semesters/<int:semester_id>/criteria/', views.semester_criteria, name='semester_criteria'),
    path('api/applications/<int:application_id>/eligibility/', views.application_eligibility, name='application_eligibility'),
    path('api/applications/<int:application_id>/overrides/', views.criterion_override, name='criterion_override'),
    path('api/documents/<int:document_id>/status/', views.document_update_status, name='document_update_status'),

    # Releases
    path('api/semesters/<int:semester_id>/releases/', views.release_list, name='release_list'),
    path('api/releases/', views.release_create, name='release_create'),
    path('api/releases/<int:release_id>/', views.release_detail, name='release_detail'),
    path('api/releases/<int:release_id>/archive/', views.release_archive, name='release_archive'),

    # Roles
    path('api/check-role/', views.check_role, name='check_role'),

    # Super admin settings
    path('api/settings/', views.system_settings, name='system_settings'),
    path('api/settings/audit/', views.settings_audit, name='settings_audit'),
    path('api/settings/test-email/', views.settings_test_email, name='settings_test_email'),
    path('api/settings/export/', views.settings_export, name='settings_export'),
    path('api/settings/danger/reset-semester/', views.danger_reset_semester, name='danger_reset_semester'),
    path('api/settings/danger/delete-drafts/', views.danger_delete_drafts, name='danger_delete_drafts'),
    path('api/settings/danger/purge-users/', views.danger_purge_users, name='danger_purge_users'),

    # Public
    path('api/maintenance-status/', views.maintenance_status, name='maintenance_status'),
]
