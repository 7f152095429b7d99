from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.core"
    label = "core"

    def ready(self) -> None:
        from django.core.signals import setting_changed

        from modules.core.signals import reset_storage_on_settings_change

        setting_changed.connect(reset_storage_on_settings_change)
