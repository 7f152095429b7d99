import json
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse
from rest_framework.response import Response

from modules.capabilities.metadata import process_request_body, process_response_payload

logger = structlog.get_logger(__name__)

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH"})
JSON_CONTENT_TYPES = frozenset({"application/json", "application/ocp+json"})


class MetadataProcessingMiddleware:
    """Runs capability metadata through the registry on the way in and out.

    Inbound: JSON bodies of mutating requests get their ``metadata`` map
    validated and processed before the view parses them.  Bodies that are
    not valid JSON are left alone for the parser to reject.

    Outbound: DRF responses (not yet rendered) get every ``metadata`` map
    in ``response.data`` processed.  Error documents and streams are left
    untouched.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if request.method in MUTATING_METHODS and request.content_type in JSON_CONTENT_TYPES:
            self._rewrite_request(request)
        return self.get_response(request)

    def _rewrite_request(self, request: HttpRequest) -> None:
        try:
            body = json.loads(request.body or b"null")
        except (ValueError, UnicodeDecodeError):
            return
        rewritten = process_request_body(body)
        if rewritten is body:
            return
        payload = json.dumps(rewritten).encode(request.encoding or "utf-8")
        request._body = payload
        request.META["CONTENT_LENGTH"] = str(len(payload))
        logger.debug("metadata.request_rewritten", path=request.path)

    def process_template_response(
        self, request: HttpRequest, response: HttpResponse
    ) -> HttpResponse:
        if isinstance(response, Response) and response.status_code < 400:
            if response.data is not None:
                response.data = process_response_payload(response.data)
        return response
