"""Commerce error taxonomy.

Every business rejection raised by a service is a ``CommerceError``.  The
DRF exception handler (``modules.core.exception_handler``) renders it as a
problem document, so views never translate domain exceptions one by one.

Kinds:

* ``validation`` - malformed or missing fields; ``errors`` lists every
  violation, not just the first one.
* ``business_logic`` - a rule of the domain was violated.
* ``not_found`` - the id does not resolve.
* ``expired`` - the entity existed but its lifetime elapsed; carries a
  recovery action.
* ``conflict`` - duplicate conversion, rate limiting.
* ``unauthorized`` / ``forbidden`` - principal problems.
* ``internal`` - store I/O failure; the only generic error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

PROBLEM_TYPE_BASE = "https://schemas.ocp.dev/errors/"

VALIDATION = "validation"
BUSINESS_LOGIC = "business_logic"
NOT_FOUND = "not_found"
EXPIRED = "expired"
CONFLICT = "conflict"
UNAUTHORIZED = "unauthorized"
FORBIDDEN = "forbidden"
INTERNAL = "internal"


def violation(
    reason: str,
    field: Optional[str] = None,
    value: Any = None,
    type: str = VALIDATION,
    resource_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Build one entry of a problem document's ``errors`` list."""
    entry: Dict[str, Any] = {"type": type, "reason": reason}
    if field is not None:
        entry["field"] = field
    if value is not None:
        entry["value"] = value
    if resource_id is not None:
        entry["resource_id"] = resource_id
    return entry


CREATE_CART_ACTION = {
    "id": "create_new_cart",
    "href": "/carts/",
    "method": "POST",
    "title": "Create New Cart",
}


class CommerceError(Exception):
    """Base class of every rejection surfaced to API clients."""

    kind: str = INTERNAL
    status_code: int = 500
    title: str = "Internal Server Error"
    slug: str = "internal-server-error"
    default_detail: str = "An unexpected error occurred."
    localization_key: str = "error.internal_server"
    next_actions: List[Dict[str, Any]] = []

    def __init__(
        self,
        detail: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.detail = detail or self.default_detail
        self.errors = list(errors or [])
        super().__init__(self.detail)

    @property
    def problem_type(self) -> str:
        return f"{PROBLEM_TYPE_BASE}{self.slug}"

    def to_problem(self, instance: Optional[str] = None) -> Dict[str, Any]:
        problem: Dict[str, Any] = {
            "type": self.problem_type,
            "kind": self.kind,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
            "localization_key": self.localization_key,
            "errors": self.errors,
        }
        if instance:
            problem["instance"] = instance
        if self.next_actions:
            problem["next_actions"] = list(self.next_actions)
        return problem


class CommerceValidationError(CommerceError):
    """One or more fields failed validation."""

    kind = VALIDATION
    status_code = 400
    title = "Bad Request"
    slug = "bad-request"
    default_detail = "One or more fields failed validation."
    localization_key = "error.bad_request"

    @classmethod
    def for_field(cls, field: str, reason: str, value: Any = None) -> CommerceValidationError:
        return cls(errors=[violation(reason, field=field, value=value)])


class BusinessRuleViolation(CommerceError):
    """A business rule rejected the operation."""

    kind = BUSINESS_LOGIC
    status_code = 422
    title = "Business Rule Violation"
    slug = "business-rule-violation"
    default_detail = "The request violates a business rule."
    localization_key = "error.business_rule"

    def __init__(
        self,
        detail: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        super().__init__(detail, errors)
        if not self.errors:
            self.errors = [violation(self.detail, type=BUSINESS_LOGIC)]


class ResourceNotFound(CommerceError):
    kind = NOT_FOUND
    status_code = 404
    title = "Not Found"
    slug = "not-found"
    default_detail = "The requested resource does not exist."
    localization_key = "error.not_found"


class ResourceExpired(CommerceError):
    kind = EXPIRED
    status_code = 410
    title = "Gone"
    slug = "expired"
    default_detail = "The resource existed but its lifetime elapsed."
    localization_key = "error.expired"


class ResourceConflict(CommerceError):
    kind = CONFLICT
    status_code = 409
    title = "Conflict"
    slug = "conflict"
    default_detail = "The request conflicts with the current state of the resource."
    localization_key = "error.conflict"


class Unauthorized(CommerceError):
    kind = UNAUTHORIZED
    status_code = 401
    title = "Unauthorized"
    slug = "unauthorized"
    default_detail = "Authentication credentials are required or invalid."
    localization_key = "error.unauthorized"


class Forbidden(CommerceError):
    kind = FORBIDDEN
    status_code = 403
    title = "Forbidden"
    slug = "forbidden"
    default_detail = "You do not have permission to perform this action."
    localization_key = "error.forbidden"


class RateLimitExceeded(ResourceConflict):
    status_code = 429
    title = "Rate Limit Exceeded"
    slug = "rate-limit-exceeded"
    default_detail = "Rate limit exceeded. Please try again later."
    localization_key = "error.rate_limit.exceeded"


class StorageUnavailable(CommerceError):
    """The backing store failed; nothing the client can fix."""
