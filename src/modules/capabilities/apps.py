from django.apps import AppConfig


class CapabilitiesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.capabilities"
    label = "capabilities"

    def ready(self) -> None:
        from django.core.signals import setting_changed

        from modules.capabilities.signals import reset_registry_on_settings_change

        setting_changed.connect(reset_registry_on_settings_change)
