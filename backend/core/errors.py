"""
Error taxonomy for the chart-configuration path.

Everything raised here is meant to be shown to the user as the reason a
query failed, so messages are written for humans.
"""

from __future__ import annotations


class ChartConfigError(ValueError):
    """Base class for failures that stop a query from producing a chart."""


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------

class ConfigValidationError(ChartConfigError):
    pass


class MissingField(ConfigValidationError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Invalid chart configuration: missing required field '{field}'")


class UnsupportedChartType(ConfigValidationError):
    def __init__(self, chart_type):
        self.chart_type = chart_type
        super().__init__(f"Invalid chart type: {chart_type}")


class UnknownColumn(ConfigValidationError):
    def __init__(self, column, axis: str = ""):
        self.column = column
        self.axis = axis
        label = f"{axis} column" if axis else "Column"
        super().__init__(f'{label} "{column}" not found in dataset')


# ---------------------------------------------------------------------------
# Query interpreter
# ---------------------------------------------------------------------------

class InterpreterError(ChartConfigError):
    pass


class MalformedResponse(InterpreterError):
    def __init__(self, detail: str = ""):
        self.detail = detail
        msg = "Failed to parse API response as JSON"
        super().__init__(f"{msg}: {detail}" if detail else msg)


class EmptyResponse(InterpreterError):
    def __init__(self):
        super().__init__("No content in API response")


class ExternalCapabilityFailure(InterpreterError):
    def __init__(self, detail: str = ""):
        self.detail = detail
        msg = "Query interpretation service failed"
        super().__init__(f"{msg}: {detail}" if detail else msg)
