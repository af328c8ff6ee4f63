"""Evaluate a batch of arithmetic expressions one after the other."""
import io
from pathlib import Path
import sys
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from infix_calculator.common.logger import logger
from infix_calculator.common.models import OperationRequest, OperationResult
from infix_calculator.common.parser import ExpressionParser


class BatchRunner(BaseModel):
    """
    Evaluates arithmetic expressions sequentially and reports every outcome.

    - Results are written to ``out`` as ``<result> = <expression>``
    - Expressions that fail are written as-is to ``err``, the batch goes on
    - When ``results_file`` is set, every outcome is also written there and flushed at once
    """

    # Allow arbitrary types like text streams
    model_config = ConfigDict(arbitrary_types_allowed=True)

    decimal_places: int = Field(default=3, ge=0, le=15, description="Digits printed after the decimal point")
    out: io.TextIOBase = Field(default_factory=lambda: sys.stdout, description="Stream receiving results")
    err: io.TextIOBase = Field(default_factory=lambda: sys.stderr, description="Stream receiving failed expressions")
    results_file: Optional[Path] = Field(default=None, description="Optional path to write all outcomes")

    def run(self, requests: Iterable[OperationRequest]) -> List[OperationResult]:
        """
        Evaluate every request in order.

        :param Iterable[OperationRequest] requests: Expressions to evaluate

        :return: One outcome per request, in input order
        :rtype: List[OperationResult]
        """
        outcomes: List[OperationResult] = []

        if self.results_file is None:
            for request in requests:
                outcomes.append(self._evaluate(request))
            return outcomes

        with self.results_file.open("w", encoding="utf-8") as f_out:
            for request in requests:
                outcome = self._evaluate(request)
                f_out.write(self.format_result_line(outcome) + "\n")
                # Flush so progress is kept if the batch is interrupted
                f_out.flush()
                outcomes.append(outcome)

        logger.info("💾 Results written to %s", self.results_file)
        return outcomes

    def _evaluate(self, request: OperationRequest) -> OperationResult:
        outcome = ExpressionParser.evaluate(request.expression)

        if outcome.ok:
            logger.info("✅ Line %d: %s = %s", request.line_number, request.expression, outcome.result)
            print(outcome.format(self.decimal_places), file=self.out)
        else:
            logger.warning(
                "❌ Line %d: %s (%s) %r", request.line_number, outcome.error.value, outcome.message, request.expression
            )
            print(request.expression, file=self.err)

        return outcome

    def format_result_line(self, outcome: OperationResult) -> str:
        """
        Render one line of the results file.

        :param OperationResult outcome: Outcome of one evaluation

        :return: ``<result> = <expression>`` or ``<expression> -> ERROR: <KIND>``
        :rtype: str
        """
        if outcome.ok:
            return outcome.format(self.decimal_places)
        return f"{outcome.expression} -> ERROR: {outcome.error.value}"
