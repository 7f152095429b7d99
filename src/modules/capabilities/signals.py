from modules.capabilities.registry import reset_registry

WATCHED_SETTINGS = frozenset({"COMMERCE_CAPABILITIES", "COMMERCE"})


def reset_registry_on_settings_change(sender, setting, **kwargs):
    """Rebuild the registry lazily after ``override_settings`` touches it."""
    if setting in WATCHED_SETTINGS:
        reset_registry()
