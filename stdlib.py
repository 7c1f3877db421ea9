"""
Astro Standard Library
Native math routines, IEEE-754 arithmetic and the print procedure
"""

from typing import Callable, TextIO
import functools
import math
import operator
import sys

from utilities import format_number


INF = float('inf')
NAN = float('nan')


# ============================================================================
# IEEE-754 ARITHMETIC
# ============================================================================
# Python raises where IEEE doubles produce Infinity or NaN; these helpers
# return the IEEE result instead.

def _is_odd_integer(y: float) -> bool:
  return math.isfinite(y) and y.is_integer() and int(y) % 2 == 1


def astro_div(x: float, y: float) -> float:
  """x / y, with ±Infinity or NaN for a zero divisor"""
  try:
    return x / y
  except ZeroDivisionError:
    if x == 0 or math.isnan(x):
      return NAN
    return math.copysign(INF, x) * math.copysign(1.0, y)


def astro_mod(x: float, y: float) -> float:
  """Floating remainder carrying the sign of the dividend"""
  try:
    return math.fmod(x, y)
  except ValueError:
    return NAN


def astro_pow(x: float, y: float) -> float:
  """x ** y"""
  if math.isnan(y):
    return NAN
  if y == 0:
    return 1.0
  if abs(x) == 1 and math.isinf(y):
    return NAN
  try:
    return math.pow(x, y)
  except OverflowError:
    if x < 0 and _is_odd_integer(y):
      return -INF
    return INF
  except ValueError:
    if x == 0:
      # zero base with a negative exponent
      if _is_odd_integer(y):
        return math.copysign(INF, x)
      return INF
    return NAN


def astro_neg(x: float) -> float:
  return -x


BINARY_OPERATORS = {
    '+': operator.add,
    '-': operator.sub,
    '*': operator.mul,
    '/': astro_div,
    '%': astro_mod,
    '**': astro_pow,
}


# ============================================================================
# MATH FUNCTIONS
# ============================================================================

def ieee_domain(func: Callable[..., float]) -> Callable[..., float]:
  """Return NaN where the math module reports a domain error"""
  @functools.wraps(func)
  def wrapper(*args: float) -> float:
    try:
      return float(func(*args))
    except ValueError:
      return NAN
  return wrapper


astro_sin = ieee_domain(math.sin)
astro_cos = ieee_domain(math.cos)
astro_sqrt = ieee_domain(math.sqrt)
astro_hypot = ieee_domain(math.hypot)


# name -> (routine, parameter count)
BUILTIN_FUNCTIONS = {
    'sin': (astro_sin, 1),
    'cos': (astro_cos, 1),
    'sqrt': (astro_sqrt, 1),
    'hypot': (astro_hypot, 2),
}

# name -> value
BUILTIN_CONSTANTS = {
    'π': math.pi,
}


# ============================================================================
# PRINT
# ============================================================================

def write_number(value: float, out: TextIO = None) -> None:
  """Write one value and a newline"""
  print(format_number(value), file=out or sys.stdout)


def make_print_procedure(out: TextIO = None) -> Callable[[float], None]:
  """Print procedure bound to an output stream (stdout when None)"""
  def astro_print(value: float) -> None:
    write_number(value, out)
  return astro_print
