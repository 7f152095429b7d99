from django.core.exceptions import ImproperlyConfigured


class CapabilityConfigurationError(ImproperlyConfigured):
    """Capability set-up is invalid; raised while the registry is built."""
