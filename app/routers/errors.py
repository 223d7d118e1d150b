from fastapi import HTTPException

from app.core.exceptions import (
    DecisionFlowError,
    FlowValidationError,
    InsufficientDataError,
    MalformedModelOutput,
    ModelInvocationError,
    ReconciliationError,
)

STATUS_CODES = [
    (FlowValidationError, 422),
    (InsufficientDataError, 422),
    (MalformedModelOutput, 502),
    (ModelInvocationError, 502),
    (ReconciliationError, 409),
]


def flow_http_exception(error: DecisionFlowError) -> HTTPException:
    """Translate a pipeline error into the HTTPException the routers raise."""
    status_code = 500
    for error_cls, code in STATUS_CODES:
        if isinstance(error, error_cls):
            status_code = code
            break

    if isinstance(error, FlowValidationError) and error.errors:
        detail = {
            "message": str(error),
            "errors": [
                {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
                for err in error.errors
            ],
        }
    else:
        detail = str(error)
    return HTTPException(status_code=status_code, detail=detail)
