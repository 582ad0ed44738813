"""
Outbound request description.

A Request is built by a resource client, then submitted to the pipeline.
Query parameters, headers and body are caller-mutable only until the
pipeline starts the first attempt; after that the request is frozen and
the attempt counter is the only per-retry mutable state.
"""

from dataclasses import dataclass, field
from typing import Any

import httpx

from hubspot_client.exceptions import RequestFrozenError
from hubspot_client.models.context import CallContext
from hubspot_client.models.enums import HttpMethod


@dataclass(eq=False)
class Request:
    """
    Outbound call into the HubSpot API.

    Attributes:
        method: HTTP method (str values are coerced to HttpMethod)
        path: Path relative to the base URL (e.g. "/crm/v3/objects/contacts")
        body: Opaque payload; bytes and str pass through, anything else is JSON-encoded
        query_params: Query parameters (key unique, last write wins)
        headers: Headers (case-insensitive keys, last write wins)
        context: Cancellation/deadline handle for the call
        resource_type: Diagnostic tag (e.g. "contacts")
        attempt: 0-based attempt index, written only by the retry layer
    """

    method: HttpMethod
    path: str
    body: Any = None
    query_params: dict[str, str] = field(default_factory=dict)
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    context: CallContext = field(default_factory=CallContext.background)
    resource_type: str = ""
    attempt: int = 0
    _frozen: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.method, HttpMethod):
            self.method = HttpMethod(str(self.method).upper())
        if not isinstance(self.headers, httpx.Headers):
            self.headers = httpx.Headers(self.headers)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Called by the pipeline when the first attempt starts."""
        self._frozen = True

    def _ensure_mutable(self, what: str) -> None:
        if self._frozen:
            raise RequestFrozenError(
                f"Cannot change {what} after the request entered the pipeline",
                details={"method": self.method.value, "path": self.path},
            )

    def with_context(self, context: CallContext) -> "Request":
        self.context = context
        return self

    def with_resource_type(self, resource_type: str) -> "Request":
        self.resource_type = resource_type
        return self

    def with_body(self, body: Any) -> "Request":
        self._ensure_mutable("body")
        self.body = body
        return self

    def add_query_param(self, key: str, value: Any) -> "Request":
        self._ensure_mutable("query parameters")
        self.query_params[key] = str(value)
        return self

    def add_header(self, key: str, value: str) -> "Request":
        self._ensure_mutable("headers")
        self.headers[key] = value
        return self

    def set_header(self, key: str, value: str) -> None:
        """Stage-level header write; allowed on frozen requests."""
        self.headers[key] = value

    def record_attempt(self, attempt: int) -> None:
        self.attempt = attempt

    def __repr__(self) -> str:
        return (
            f"Request(method={self.method.value}, path={self.path!r}, "
            f"resource_type={self.resource_type!r}, attempt={self.attempt})"
        )
