"""Parse and evaluate infix arithmetic expressions with a value stack and an operator stack."""
import math
import operator
import string
from typing import Callable, List, Optional, Tuple

from infix_calculator.common.logger import logger
from infix_calculator.common.models import ErrorKind, EvaluatorState, OperationResult


# Type alias for operator functions (taking two floats, returning a float)
OperatorFn = Callable[[float, float], float]

# Mapping of operator symbols to (precedence, function)
OPERATORS: dict[str, Tuple[int, OperatorFn]] = {
    "+": (1, operator.add),
    "-": (1, operator.sub),
    "*": (2, operator.mul),
    "/": (2, operator.truediv),
    "^": (3, math.pow),
}

OPEN_BRACKET = "("
CLOSE_BRACKET = ")"
DECIMAL_POINT = "."

# "(" never drains the stack, ")" drains everything down to its "(" marker
OPEN_BRACKET_PRECEDENCE = 0
CLOSE_BRACKET_PRECEDENCE = -1

_OPERATOR = "operator"
_OPERAND = "operand"


class ExpressionError(ValueError):
    """Raised when an expression cannot be evaluated, carrying the error classification."""

    def __init__(self, kind: ErrorKind, expression: str, message: str) -> None:
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
        self.expression = expression
        self.message = message


class ExpressionEvaluator:
    """
    Evaluate a single infix arithmetic expression.

    An evaluator is bound to one expression and owns a fresh value stack and
    operator stack. It can run once: evaluating another expression (or the same
    one again) needs a new evaluator.

    States:
        - SCANNING: reading the expression left to right
        - DRAINING: applying the operators left on the stack
        - DONE: a single value is left, that value is the result
        - FAILED: an error was found, the rest of the expression is ignored
    """

    def __init__(self, expression: str) -> None:
        self.expression: str = expression
        self.state: EvaluatorState = EvaluatorState.SCANNING
        self.values: List[float] = []
        self.operators: List[str] = []
        self._brackets: int = 0
        self._previous: Optional[str] = None
        self._started: bool = False

    def run(self) -> float:
        """
        Evaluate the expression.

        :return: Computed result as float
        :rtype: float
        :raises ExpressionError: If the expression is malformed or cannot be computed
        :raises RuntimeError: If the evaluator already ran
        """
        if self._started:
            raise RuntimeError("Evaluator already ran, create a new one for another evaluation")
        self._started = True

        try:
            result = self._run()
        except ExpressionError as exc:
            self.state = EvaluatorState.FAILED
            logger.debug("Evaluation failed for %r: %s", self.expression, exc)
            raise

        self.state = EvaluatorState.DONE
        logger.debug("Evaluation of %r finished: %s", self.expression, result)
        return result

    def _run(self) -> float:
        expr = ExpressionParser.format_expression(self.expression)

        if not expr:
            raise self._error(ErrorKind.SYNTAX_ERROR, "Empty expression")

        # Check that the first and last characters are not operators
        if ExpressionParser.is_operator(expr[0]) or ExpressionParser.is_operator(expr[-1]):
            raise self._error(ErrorKind.SYNTAX_ERROR, "Expression cannot start or end with an operator")

        i = 0
        while i < len(expr):
            ch = expr[i]

            if ch == OPEN_BRACKET:
                self.operators.append(ch)
                self._brackets += 1
            elif ch == CLOSE_BRACKET:
                self._close_bracket()
            elif ExpressionParser.is_operator(ch):
                self._push_operator(ch)
            elif ch in string.digits or ch == DECIMAL_POINT:
                # Literals span several characters, continue right after the last one
                i = self._push_operand(expr, i)
                continue
            elif ch.isalpha():
                raise self._error(ErrorKind.INVALID_TOKEN, f"Variables are not supported: {ch!r}")
            else:
                raise self._error(ErrorKind.INVALID_TOKEN, f"Unexpected character: {ch!r}")
            i += 1

        if self._brackets > 0:
            raise self._error(ErrorKind.UNBALANCED_BRACKETS, "Opening bracket is never closed")

        self.state = EvaluatorState.DRAINING
        while self.operators:
            self._apply()

        if len(self.values) != 1:
            raise self._error(ErrorKind.SYNTAX_ERROR, f"Expected a single value, found {len(self.values)}")

        return self.values[0]

    def _close_bracket(self) -> None:
        self._brackets -= 1
        if self._brackets < 0:
            raise self._error(ErrorKind.UNBALANCED_BRACKETS, "Closing bracket without an opening bracket")

        # Evaluate everything inside the brackets, then discard the "(" marker
        while self.operators[-1] != OPEN_BRACKET:
            self._apply()
        self.operators.pop()

    def _push_operator(self, symbol: str) -> None:
        if self._previous == _OPERATOR:
            raise self._error(ErrorKind.CONSECUTIVE_OPERATORS, f"Operator {symbol!r} follows another operator")
        self._previous = _OPERATOR

        # Operators of higher or equal precedence must happen first
        prec = ExpressionParser.precedence(symbol)
        while self.operators and prec <= ExpressionParser.precedence(self.operators[-1]):
            self._apply()
        self.operators.append(symbol)

    def _push_operand(self, expr: str, start: int) -> int:
        end = start
        while end < len(expr) and (expr[end] in string.digits or expr[end] == DECIMAL_POINT):
            end += 1
        literal = expr[start:end]

        if ExpressionParser.count_decimals(literal) > 1 or literal == DECIMAL_POINT:
            raise self._error(ErrorKind.MALFORMED_NUMBER, f"Not a number: {literal!r}")

        if self._previous == _OPERAND:
            raise self._error(ErrorKind.CONSECUTIVE_OPERANDS, f"Operand {literal!r} follows another operand")
        self._previous = _OPERAND

        self.values.append(float(literal))
        return end

    def _apply(self) -> None:
        """Pop one operator and its two operands, push the result back on the value stack."""
        symbol = self.operators.pop()
        if len(self.values) < 2:
            raise self._error(ErrorKind.SYNTAX_ERROR, f"Not enough operands for {symbol!r}")

        # The right-hand operand is on top of the stack
        b: float = self.values.pop()
        a: float = self.values.pop()

        if symbol == "/" and b == 0:
            raise self._error(ErrorKind.DIVISION_BY_ZERO, f"Division by zero: {a:g} / {b:g}")

        try:
            value = OPERATORS[symbol][1](a, b)
        except (ValueError, OverflowError, ZeroDivisionError) as exc:
            raise self._error(ErrorKind.ARITHMETIC_ERROR, f"Cannot compute {a:g} {symbol} {b:g}: {exc}") from exc

        self.values.append(value)

    def _error(self, kind: ErrorKind, message: str) -> ExpressionError:
        return ExpressionError(kind, self.expression, message)


class ExpressionParser:
    """
    Parse and evaluate infix arithmetic expressions safely.

    Design constraints:
        - No eval(), no dynamic code execution
        - No variables, only numeric literals, ``+ - * / ^`` and parentheses
        - Every failure is classified with an ErrorKind

    Algorithm:
        1. Remove whitespace
        2. Scan left to right, pushing literals on a value stack and operators on an operator stack
        3. Before pushing an operator, apply the stacked operators of higher or equal precedence
        4. Apply the remaining operators once the scan is over

    Operators of equal precedence are applied left to right, ``^`` included:
    ``2 ^ 3 ^ 2`` is ``(2 ^ 3) ^ 2``.
    """

    @staticmethod
    def format_expression(expr: str) -> str:
        """
        Remove all whitespace from an expression.

        :param str expr: Arithmetic expression as a string

        :return: Expression without whitespace
        :rtype: str
        """
        return "".join(expr.split())

    @staticmethod
    def is_operator(token: str) -> bool:
        """Determine if a token is a binary operator."""
        return token in OPERATORS

    @staticmethod
    def precedence(token: str) -> int:
        """
        Return the precedence level of a token on the operator stack.

        :param str token: Operator or bracket

        :return: 1 for ``+ -``, 2 for ``* /``, 3 for ``^``, -1 for ``)``, 0 otherwise
        :rtype: int
        """
        if token in OPERATORS:
            return OPERATORS[token][0]
        if token == CLOSE_BRACKET:
            return CLOSE_BRACKET_PRECEDENCE
        return OPEN_BRACKET_PRECEDENCE

    @staticmethod
    def count_decimals(operand: str) -> int:
        """Count the decimal points in a numeric literal."""
        return operand.count(DECIMAL_POINT)

    @staticmethod
    def calculate(expr: str) -> float:
        """
        Evaluate an arithmetic expression.

        :param str expr: Arithmetic expression string

        :return: Computed result as float
        :rtype: float
        :raises ExpressionError: If expression is invalid or cannot be computed
        """
        return ExpressionEvaluator(expr).run()

    @staticmethod
    def evaluate(expr: str) -> OperationResult:
        """
        Evaluate an arithmetic expression without raising on malformed input.

        :param str expr: Arithmetic expression string

        :return: The result, or the classification of the failure
        :rtype: OperationResult
        """
        evaluator = ExpressionEvaluator(expr)
        try:
            result = evaluator.run()
        except ExpressionError as exc:
            return OperationResult(expression=expr, error=exc.kind, message=exc.message, state=evaluator.state)
        return OperationResult(expression=expr, result=result, state=evaluator.state)
