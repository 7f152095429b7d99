"""Routes contributed by capabilities.

The resolver asks the registry for its routes on every lookup, so a
capability switched off in configuration has no reachable URL.  Reverse
lookups of these routes are computed once per process; refer to them by
path when configuration changes at runtime.
"""

from __future__ import annotations

from django.urls import URLResolver
from django.urls.resolvers import RegexPattern

from modules.capabilities.registry import get_registry


class CapabilityURLResolver(URLResolver):
    def __init__(self) -> None:
        super().__init__(RegexPattern(r"^"), urlconf_name=[])

    @property
    def url_patterns(self):
        return get_registry().get_routes()


urlpatterns = [CapabilityURLResolver()]
