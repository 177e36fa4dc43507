from __future__ import annotations

from fastapi import HTTPException

from pool_analytics.api.deps import CORRELATION_HEADER
from pool_analytics.application.context import RequestContext
from pool_analytics.application.result import ErrorKind, QueryError


STATUS_BY_ERROR_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ARITHMETIC: 422,
    ErrorKind.CANCELLED: 499,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.INTERNAL: 500,
    ErrorKind.UNAVAILABLE: 503,
}


def http_error_for(error: QueryError, context: RequestContext) -> HTTPException:
    # Headers set on the injected Response are dropped when an exception is raised.
    return HTTPException(
        status_code=STATUS_BY_ERROR_KIND.get(error.kind, 500),
        detail={
            "kind": error.kind.value,
            "message": error.message,
            "correlation_id": context.correlation_id,
        },
        headers={CORRELATION_HEADER: context.correlation_id},
    )
