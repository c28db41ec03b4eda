from django.apps import AppConfig


class IskolarSystemConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'iskolar_system'
    verbose_name = 'IskoLAR Scholarship System'
