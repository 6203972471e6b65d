"""
Utilities module for the SCM interpreter
Contains common helper functions to reduce code duplication
"""

from typing import Any, Dict, List, Optional, Callable

from error_handling import (
  ArityError,
  MalformedFormError,
  SchemeTypeError
)


# ==================== TYPE CHECKING UTILITIES ====================

def get_dict_type(val: Dict) -> Optional[str]:
  """Safely get type from dict"""
  return val.get('type') if isinstance(val, dict) else None


def is_type(val: Dict, *type_names: str) -> bool:
  """Check a value's tag against one or more type names"""
  return get_dict_type(val) in type_names


# ==================== ERROR MESSAGE BUILDERS ====================

def type_mismatch_error(
  func_name: str,
  param_name: str,
  expected: str,
  actual: Dict
) -> SchemeTypeError:
  """
  Generate type mismatch error

  Args:
    func_name: Operator name
    param_name: Parameter description
    expected: Expected type
    actual: Actual value dict

  Returns:
    SchemeTypeError with formatted message
  """
  actual_type = get_dict_type(actual) or 'Unknown'
  return SchemeTypeError(
    f"{func_name} requires {expected} for {param_name}, got {actual_type}"
  )


def arity_error(func_name: str, expected: str, got: int) -> ArityError:
  """
  Generate arity mismatch error

  Args:
    func_name: Operator, form or procedure name
    expected: Description of the accepted count ("2", "at least 1")
    got: Actual number of arguments

  Returns:
    ArityError with formatted message
  """
  return ArityError(
    f"{func_name} requires {expected} arguments, got {got}"
  )


def malformed_form_error(form_name: str, problem: str) -> MalformedFormError:
  """Generate a special-form shape error"""
  return MalformedFormError(f"bad {form_name} form: {problem}")


# ==================== VALIDATION UTILITIES ====================

def describe_arity(min_args: int, max_args: Optional[int]) -> str:
  """Human readable description of an arity range"""
  if max_args is None:
    return f"at least {min_args}"
  if min_args == max_args:
    return str(min_args)
  return f"{min_args} to {max_args}"


def validate_arity(
  func_name: str,
  count: int,
  min_args: int,
  max_args: Optional[int]
) -> None:
  """
  Validate an argument count against an arity range

  Raises:
    ArityError if the count is outside [min_args, max_args]
  """
  if count < min_args or (max_args is not None and count > max_args):
    raise arity_error(func_name, describe_arity(min_args, max_args), count)


def validate_function_args(
  func_name: str,
  args: List[Dict],
  expected_types: List[str]
) -> None:
  """
  Validate function arguments match expected types

  Args:
    func_name: Function name for error messages
    args: List of argument values
    expected_types: List of expected type names ("Number" accepts Integer and Rational)

  Raises:
    ArityError or SchemeTypeError if validation fails
  """
  if len(args) != len(expected_types):
    raise arity_error(func_name, str(len(expected_types)), len(args))

  for i, (arg, expected) in enumerate(zip(args, expected_types)):
    actual = get_dict_type(arg)
    if expected == "Number":
      ok = actual in ("Integer", "Rational")
    else:
      ok = actual == expected
    if not ok:
      raise type_mismatch_error(
        func_name,
        f"argument {i+1}",
        expected,
        arg
      )


def dispatch_by_type(
  value: Dict,
  handlers: Dict[str, Callable],
  default_handler: Optional[Callable] = None
) -> Any:
  """
  Generic type-based dispatch

  Args:
    value: Value dict with 'type' field
    handlers: Map of type names to handler functions
    default_handler: Fallback handler

  Returns:
    Result of calling the appropriate handler

  Raises:
    ValueError if no handler found and no default
  """
  value_type = get_dict_type(value) or 'Unknown'
  handler = handlers.get(value_type, default_handler)
  if handler is None:
    raise ValueError(f"No handler for type: {value_type}")
  return handler(value)


# ==================== COMPARISON FACTORIES ====================

def chained_comparison_op(
  compare: Callable[[Dict, Dict], int],
  accept: Callable[[int], bool]
) -> Callable[[List[Dict]], bool]:
  """
  Factory for variadic chained comparisons

  Args:
    compare: Three-way comparator returning -1, 0 or 1
    accept: Predicate over the comparator result for one adjacent pair

  Returns:
    Function that holds iff every adjacent pair satisfies accept
    (vacuously true for fewer than two operands)
  """
  def comparison(args: List[Dict]) -> bool:
    result = True
    for left, right in zip(args, args[1:]):
      # every operand is still compared so type errors surface
      if not accept(compare(left, right)):
        result = False
    return result

  return comparison
