"""
Utilities module for the Astro interpreter
Number rendering and error message builders shared by the evaluator
"""

from decimal import Decimal
import math

from error_handling import (
  ArityMismatchError,
  NotWritableError,
  TypeMismatchError,
  UndefinedSymbolError,
)


# ==================== NUMBER RENDERING ====================

def format_number(value: float) -> str:
  """
  Render a number the way Astro programs print it

  Integral values drop the fractional part, everything else uses the
  shortest decimal that round-trips. Exponent notation is used only for
  magnitudes of at least 1e21 or below 1e-6.

  Examples:
    format_number(512.0) -> "512"
    format_number(172.8) -> "172.8"
    format_number(float('inf')) -> "Infinity"
    format_number(-0.0) -> "-0"
    format_number(1e-7) -> "1e-7"
  """
  if math.isnan(value):
    return "NaN"
  if math.isinf(value):
    return "Infinity" if value > 0 else "-Infinity"
  if value == 0:
    return "-0" if math.copysign(1.0, value) < 0 else "0"
  if value.is_integer() and abs(value) < 1e21:
    return str(int(value))

  text = repr(value)
  if 'e' not in text:
    return text

  mantissa, exponent = text.split('e')
  exponent = int(exponent)
  if -7 < exponent < 21:
    return format(Decimal(text), 'f')
  sign = '+' if exponent > 0 else '-'
  return f"{mantissa}e{sign}{abs(exponent)}"


# ==================== ERROR BUILDERS ====================

def undefined_error(name: str, span) -> UndefinedSymbolError:
  """Identifier is not bound"""
  return UndefinedSymbolError(f"{name} not defined", span)


def expected_number_error(span) -> TypeMismatchError:
  """A callable was referenced as a plain value"""
  return TypeMismatchError("Expected type number", span)


def expected_callable_error(kind_name: str, span) -> TypeMismatchError:
  """
  Call site names something of the wrong kind

  Args:
    kind_name: "Function" or "Procedure"
    span: Position of the callee identifier
  """
  return TypeMismatchError(f"{kind_name} expected", span)


def cannot_assign_error(span) -> TypeMismatchError:
  """Assignment target is bound to a callable"""
  return TypeMismatchError("Cannot assign", span)


def not_writable_error(name: str, span) -> NotWritableError:
  """Assignment target is an immutable number"""
  return NotWritableError(f"{name} not writable", span)


def arity_error(expected: int, got: int, span) -> ArityMismatchError:
  """
  Generate arity mismatch error

  The message matches what Astro has always reported; the counts are kept
  on the error for callers that want them.
  """
  error = ArityMismatchError("Wrong number of arguments", span)
  error.expected = expected
  error.got = got
  return error
