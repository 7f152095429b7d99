"""Profile domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import BusinessRuleViolation, Forbidden


class ProfileAccessDenied(Forbidden):
    title = "Profile Access Denied"
    slug = "profile-access-denied"
    default_detail = "Profiles can only be read or changed by their owner or by staff."
    localization_key = "error.profile.forbidden"


class SavedAddressLimitReached(BusinessRuleViolation):
    title = "Saved Address Limit Reached"
    slug = "saved-address-limit-reached"
    default_detail = "The profile already holds the maximum number of saved addresses."
    localization_key = "error.profile.address_limit"
