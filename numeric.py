"""
SCM numeric tower
Exact rationals over 64-bit integers with automatic integer collapse
"""

from math import gcd
from typing import Dict, Tuple

from error_handling import DivisionByZeroError, NumericOverflowError
from expressions import make_value
from utilities import is_type, type_mismatch_error


INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def check_range(n: int, what: str = "integer") -> int:
  """Reject integers outside the machine-width range"""
  if n < INT_MIN or n > INT_MAX:
    raise NumericOverflowError(f"{what} {n} exceeds the 64-bit integer range")
  return n


def make_number(n: int) -> Dict:
  """Integer constructor with range check"""
  return make_value(check_range(n), "Integer")


def make_rational(numerator: int, denominator: int) -> Dict:
  """
  Normalized rational constructor.

  Divides out the gcd of the absolute values, moves the sign to the numerator
  and collapses to an Integer when the denominator becomes 1.
  """
  if denominator == 0:
    raise DivisionByZeroError(f"rational {numerator}/0 has a zero denominator")
  g = gcd(abs(numerator), abs(denominator))
  numerator //= g
  denominator //= g
  if denominator < 0:
    numerator, denominator = -numerator, -denominator
  if denominator == 1:
    return make_number(numerator)
  check_range(numerator, "numerator")
  check_range(denominator, "denominator")
  return make_value((numerator, denominator), "Rational")


def is_number(value: Dict) -> bool:
  return is_type(value, "Integer", "Rational")


def to_rational(value: Dict, op_name: str = "arithmetic") -> Tuple[int, int]:
  """Promote an Integer to n/1; pass a Rational through"""
  if value['type'] == "Integer":
    return value['value'], 1
  if value['type'] == "Rational":
    return value['value']
  raise type_mismatch_error(op_name, "operand", "number", value)


# ============================================================================
# ARITHMETIC
# ============================================================================

def num_add(x: Dict, y: Dict) -> Dict:
  n1, d1 = to_rational(x, "+")
  n2, d2 = to_rational(y, "+")
  return make_rational(n1 * d2 + n2 * d1, d1 * d2)


def num_sub(x: Dict, y: Dict) -> Dict:
  n1, d1 = to_rational(x, "-")
  n2, d2 = to_rational(y, "-")
  return make_rational(n1 * d2 - n2 * d1, d1 * d2)


def num_mul(x: Dict, y: Dict) -> Dict:
  n1, d1 = to_rational(x, "*")
  n2, d2 = to_rational(y, "*")
  return make_rational(n1 * n2, d1 * d2)


def num_div(x: Dict, y: Dict) -> Dict:
  n1, d1 = to_rational(x, "/")
  n2, d2 = to_rational(y, "/")
  if n2 == 0:
    raise DivisionByZeroError("division by zero")
  return make_rational(n1 * d2, d1 * n2)


def num_modulo(x: Dict, y: Dict) -> Dict:
  """Integer modulo; the result takes the sign of the divisor"""
  if x['type'] != "Integer":
    raise type_mismatch_error("modulo", "argument 1", "Integer", x)
  if y['type'] != "Integer":
    raise type_mismatch_error("modulo", "argument 2", "Integer", y)
  if y['value'] == 0:
    raise DivisionByZeroError("modulo by zero")
  return make_number(x['value'] % y['value'])


def num_expt(x: Dict, y: Dict) -> Dict:
  """Integer power by binary exponentiation with overflow detection"""
  if x['type'] != "Integer":
    raise type_mismatch_error("expt", "base", "Integer", x)
  if y['type'] != "Integer":
    raise type_mismatch_error("expt", "exponent", "Integer", y)
  base, exponent = x['value'], y['value']
  if exponent < 0:
    raise type_mismatch_error("expt", "exponent", "non-negative Integer", y)
  if base == 0 and exponent == 0:
    raise DivisionByZeroError("0^0 is undefined")

  result = 1
  while exponent > 0:
    if exponent % 2 == 1:
      result = check_range(result * base, "expt intermediate")
    exponent //= 2
    if exponent > 0:
      base = check_range(base * base, "expt intermediate")
  return make_number(result)


# ============================================================================
# COMPARISON
# ============================================================================

def num_compare(x: Dict, y: Dict) -> int:
  """Three-way comparison by cross-multiplication"""
  n1, d1 = to_rational(x, "comparison")
  n2, d2 = to_rational(y, "comparison")
  left = n1 * d2
  right = n2 * d1
  if left < right:
    return -1
  if left > right:
    return 1
  return 0
