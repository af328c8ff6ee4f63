"""Pydantic models for arithmetic operation requests and results."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ErrorKind(str, Enum):
    """Classification of why an expression could not be evaluated."""

    SYNTAX_ERROR = "SYNTAX_ERROR"
    INVALID_TOKEN = "INVALID_TOKEN"
    UNBALANCED_BRACKETS = "UNBALANCED_BRACKETS"
    CONSECUTIVE_OPERATORS = "CONSECUTIVE_OPERATORS"
    CONSECUTIVE_OPERANDS = "CONSECUTIVE_OPERANDS"
    MALFORMED_NUMBER = "MALFORMED_NUMBER"
    DIVISION_BY_ZERO = "DIVISION_BY_ZERO"
    ARITHMETIC_ERROR = "ARITHMETIC_ERROR"


class EvaluatorState(str, Enum):
    """States an evaluation goes through. DONE and FAILED are terminal."""

    SCANNING = "SCANNING"
    DRAINING = "DRAINING"
    DONE = "DONE"
    FAILED = "FAILED"


class OperationRequest(BaseModel):
    """Represents a single arithmetic expression read from the input."""

    model_config = ConfigDict(frozen=True)

    expression: str = Field(..., description="Arithmetic expression as a string")
    line_number: int = Field(default=1, ge=1, description="Line number in the input")

    @field_validator("expression")
    def expression_must_not_be_empty(cls, v: str) -> str:
        """Ensure that the expression is not empty."""
        if not v.strip():
            raise ValueError("Expression cannot be empty")
        return v


class OperationResult(BaseModel):
    """
    Outcome of evaluating one arithmetic expression.

    Exactly one of ``result`` and ``error`` is set.
    """

    model_config = ConfigDict(frozen=True)

    expression: str = Field(..., description="Original arithmetic expression")
    result: Optional[float] = Field(default=None, description="Evaluated numeric result of the expression")
    error: Optional[ErrorKind] = Field(default=None, description="Why the expression could not be evaluated")
    message: Optional[str] = Field(default=None, description="Human readable detail about the error")
    state: EvaluatorState = Field(..., description="State the evaluator finished in")

    @model_validator(mode="after")
    def check_result_or_error(self) -> "OperationResult":
        """Ensure the result and the error are mutually exclusive and consistent with the state."""
        if (self.result is None) == (self.error is None):
            raise ValueError("Exactly one of result or error must be set")
        if self.error is None and self.state is not EvaluatorState.DONE:
            raise ValueError("A successful result must finish in the DONE state")
        if self.error is not None and self.state is not EvaluatorState.FAILED:
            raise ValueError("A failed result must finish in the FAILED state")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    def format(self, decimal_places: int = 3) -> str:
        """
        Render the result line written for a successful evaluation.

        :param int decimal_places: Number of digits after the decimal point

        :return: ``<result> = <expression>``
        :rtype: str
        :raises ValueError: If the evaluation failed
        """
        if self.result is None:
            raise ValueError(f"Expression has no result: {self.expression!r}")
        return f"{self.result:.{decimal_places}f} = {self.expression}"
