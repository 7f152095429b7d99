from modules.core.storage import reset_repositories


def reset_storage_on_settings_change(sender, setting, **kwargs) -> None:
    if setting == "COMMERCE":
        reset_repositories()
