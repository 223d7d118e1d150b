"""
Error taxonomy for the decision pipeline.

ToolFailure is absorbed inside a flow (the model is told the data is missing);
every other error propagates to the caller, which owns user-facing messaging.
"""


class DecisionFlowError(Exception):
    """Base class for errors raised by the decision pipeline."""


class FlowValidationError(DecisionFlowError):
    """Malformed request, detected before any external call."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = errors or []


class ToolFailure(DecisionFlowError):
    """A model-callable tool could not produce its result."""


class WeatherLookupError(ToolFailure):
    pass


class ModelInvocationError(DecisionFlowError):
    """The model endpoint could not be reached or answered with an error."""


class MalformedModelOutput(DecisionFlowError):
    """The model answered, but the answer does not conform to the response schema."""

    def __init__(self, message: str, raw_output=None):
        super().__init__(message)
        self.raw_output = raw_output


class InsufficientDataError(DecisionFlowError):
    """The bounded input window holds no records for a required input."""


class ReconciliationError(DecisionFlowError):
    """Illegal transition of a diagnosis reconciliation."""
