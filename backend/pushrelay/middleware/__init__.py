"""
Middleware package.

WHY: Middleware provides cross-cutting concerns (request IDs, request
logging) that apply to all requests.
"""

from pushrelay.middleware.request_context import (
    RequestContextMiddleware,
    RequestContext,
    get_request_context,
    get_client_ip,
)

__all__ = [
    "RequestContextMiddleware",
    "RequestContext",
    "get_request_context",
    "get_client_ip",
]
