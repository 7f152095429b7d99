from modules.orders.channels import reset_hub


def reset_hub_on_settings_change(sender, setting, **kwargs) -> None:
    """Drop live subscribers when ``override_settings`` swaps ``COMMERCE``."""
    if setting == "COMMERCE":
        reset_hub()
