"""
SCM Standard Library
Primitive operators, their arity and the primitive/keyword name tables
"""

import sys
from typing import Dict, Callable, List, Optional, TextIO

from error_handling import SchemeRuntimeError
from expressions import (
  make_boolean,
  make_pair,
  make_void,
  make_exit,
  list_to_values,
  display_text
)
from numeric import (
  is_number,
  make_number,
  num_add,
  num_sub,
  num_mul,
  num_div,
  num_modulo,
  num_expt,
  num_compare
)
from utilities import (
  chained_comparison_op,
  is_type,
  type_mismatch_error,
  validate_arity,
  validate_function_args
)


# ============================================================================
# NAME TABLES
# ============================================================================

# Primitive operator names -> tags
PRIMITIVES: Dict[str, str] = {
    "+": "PLUS",
    "-": "MINUS",
    "*": "MUL",
    "/": "DIV",
    "modulo": "MODULO",
    "expt": "EXPT",
    "<": "LT",
    "<=": "LE",
    "=": "EQ",
    ">=": "GE",
    ">": "GT",
    "cons": "CONS",
    "car": "CAR",
    "cdr": "CDR",
    "list": "LIST",
    "set-car!": "SETCAR",
    "set-cdr!": "SETCDR",
    "not": "NOT",
    "and": "AND",
    "or": "OR",
    "eq?": "EQQ",
    "boolean?": "BOOLQ",
    "number?": "NUMBERQ",
    "integer?": "INTQ",
    "null?": "NULLQ",
    "pair?": "PAIRQ",
    "procedure?": "PROCQ",
    "symbol?": "SYMBOLQ",
    "list?": "LISTQ",
    "string?": "STRINGQ",
    "display": "DISPLAY",
    "void": "VOID",
    "exit": "EXIT",
}

# Special-form keywords -> tags
SPECIAL_FORMS: Dict[str, str] = {
    "begin": "BEGIN",
    "quote": "QUOTE",
    "if": "IF",
    "cond": "COND",
    "lambda": "LAMBDA",
    "define": "DEFINE",
    "let": "LET",
    "letrec": "LETREC",
    "set!": "SET",
}

# ============================================================================
# ARITHMETIC
# ============================================================================

def scm_add(args: List[Dict], config: Dict) -> Dict:
  result = make_number(0)
  for arg in args:
    result = num_add(result, arg)
  return result


def scm_sub(args: List[Dict], config: Dict) -> Dict:
  """Unary form negates"""
  if len(args) == 1:
    return num_sub(make_number(0), args[0])
  result = args[0]
  for arg in args[1:]:
    result = num_sub(result, arg)
  return result


def scm_mul(args: List[Dict], config: Dict) -> Dict:
  result = make_number(1)
  for arg in args:
    result = num_mul(result, arg)
  return result


def scm_div(args: List[Dict], config: Dict) -> Dict:
  """Unary form takes the reciprocal"""
  if len(args) == 1:
    return num_div(make_number(1), args[0])
  result = args[0]
  for arg in args[1:]:
    result = num_div(result, arg)
  return result


def scm_modulo(args: List[Dict], config: Dict) -> Dict:
  return num_modulo(args[0], args[1])


def scm_expt(args: List[Dict], config: Dict) -> Dict:
  return num_expt(args[0], args[1])


# ============================================================================
# COMPARISON
# ============================================================================

_less = chained_comparison_op(num_compare, lambda r: r < 0)
_less_eq = chained_comparison_op(num_compare, lambda r: r <= 0)
_equal = chained_comparison_op(num_compare, lambda r: r == 0)
_greater_eq = chained_comparison_op(num_compare, lambda r: r >= 0)
_greater = chained_comparison_op(num_compare, lambda r: r > 0)


def _check_numbers(name: str, args: List[Dict]) -> None:
  # a single operand is never compared, so check it explicitly
  for i, arg in enumerate(args):
    if not is_number(arg):
      raise type_mismatch_error(name, f"argument {i+1}", "number", arg)


def scm_lt(args: List[Dict], config: Dict) -> Dict:
  _check_numbers("<", args)
  return make_boolean(_less(args))


def scm_le(args: List[Dict], config: Dict) -> Dict:
  _check_numbers("<=", args)
  return make_boolean(_less_eq(args))


def scm_eq(args: List[Dict], config: Dict) -> Dict:
  _check_numbers("=", args)
  return make_boolean(_equal(args))


def scm_ge(args: List[Dict], config: Dict) -> Dict:
  _check_numbers(">=", args)
  return make_boolean(_greater_eq(args))


def scm_gt(args: List[Dict], config: Dict) -> Dict:
  _check_numbers(">", args)
  return make_boolean(_greater(args))


# ============================================================================
# PAIRS AND LISTS
# ============================================================================

def scm_cons(args: List[Dict], config: Dict) -> Dict:
  return make_pair(args[0], args[1])


def scm_car(args: List[Dict], config: Dict) -> Dict:
  validate_function_args("car", args, ["Pair"])
  return args[0]['value']['car']


def scm_cdr(args: List[Dict], config: Dict) -> Dict:
  validate_function_args("cdr", args, ["Pair"])
  return args[0]['value']['cdr']


def scm_list(args: List[Dict], config: Dict) -> Dict:
  return list_to_values(args)


def scm_set_car(args: List[Dict], config: Dict) -> Dict:
  if not is_type(args[0], "Pair"):
    raise type_mismatch_error("set-car!", "argument 1", "Pair", args[0])
  args[0]['value']['car'] = args[1]
  return make_void()


def scm_set_cdr(args: List[Dict], config: Dict) -> Dict:
  if not is_type(args[0], "Pair"):
    raise type_mismatch_error("set-cdr!", "argument 1", "Pair", args[0])
  args[0]['value']['cdr'] = args[1]
  return make_void()


def is_proper_list(value: Dict) -> bool:
  """Floyd cycle detection; a cyclic spine is not a list"""
  slow = value
  fast = value
  while True:
    if fast['type'] == "Null":
      return True
    if fast['type'] != "Pair":
      return False
    fast = fast['value']['cdr']
    if fast['type'] == "Null":
      return True
    if fast['type'] != "Pair":
      return False
    fast = fast['value']['cdr']
    slow = slow['value']['cdr']
    if fast is slow:
      return False


# ============================================================================
# LOGIC AND PREDICATES
# ============================================================================

def scm_not(args: List[Dict], config: Dict) -> Dict:
  value = args[0]
  return make_boolean(value['type'] == "Boolean" and value['value'] is False)


def scm_and(args: List[Dict], config: Dict) -> Dict:
  """Value form of and, used when `and` is applied as a first-class value"""
  result = make_boolean(True)
  for arg in args:
    result = arg
    if arg['type'] == "Boolean" and arg['value'] is False:
      return arg
  return result


def scm_or(args: List[Dict], config: Dict) -> Dict:
  for arg in args:
    if not (arg['type'] == "Boolean" and arg['value'] is False):
      return arg
  return make_boolean(False) if not args else args[-1]


def is_eq(x: Dict, y: Dict) -> bool:
  """Identity, except atoms that compare by content"""
  if x['type'] != y['type']:
    return False
  if x['type'] in ("Integer", "Boolean", "Symbol"):
    return x['value'] == y['value']
  if x['type'] in ("Null", "Void"):
    return True
  if x['type'] == "Primitive":
    return x['value'] == y['value']
  return x is y


def scm_eqq(args: List[Dict], config: Dict) -> Dict:
  return make_boolean(is_eq(args[0], args[1]))


def type_predicate(*type_names: str) -> Callable[[List[Dict], Dict], Dict]:
  """Factory for one-argument type predicates"""
  def predicate(args: List[Dict], config: Dict) -> Dict:
    return make_boolean(is_type(args[0], *type_names))
  return predicate


def scm_listq(args: List[Dict], config: Dict) -> Dict:
  return make_boolean(is_proper_list(args[0]))


# ============================================================================
# I/O AND CONTROL
# ============================================================================

def scm_display(args: List[Dict], config: Dict) -> Dict:
  """Write a value to the configured output sink"""
  output = config['output']
  output.write(display_text(args[0]))
  return make_void()


def scm_void(args: List[Dict], config: Dict) -> Dict:
  return make_void()


def scm_exit(args: List[Dict], config: Dict) -> Dict:
  return make_exit()


# ============================================================================
# BUILT-IN FUNCTION REGISTRY
# ============================================================================

def make_builtin_function(name: str, func: Callable, min_args: int, max_args: Optional[int]) -> Dict:
  """Create a built-in function descriptor; max_args None means variadic"""
  return {
      'name': name,
      'func': func,
      'min_args': min_args,
      'max_args': max_args
  }


# Keyed by primitive tag
BUILTIN_FUNCTIONS: Dict[str, Dict] = {
    # Arithmetic
    "PLUS": make_builtin_function("+", scm_add, 1, None),
    "MINUS": make_builtin_function("-", scm_sub, 1, None),
    "MUL": make_builtin_function("*", scm_mul, 1, None),
    "DIV": make_builtin_function("/", scm_div, 1, None),
    "MODULO": make_builtin_function("modulo", scm_modulo, 2, 2),
    "EXPT": make_builtin_function("expt", scm_expt, 2, 2),

    # Comparison
    "LT": make_builtin_function("<", scm_lt, 0, None),
    "LE": make_builtin_function("<=", scm_le, 0, None),
    "EQ": make_builtin_function("=", scm_eq, 0, None),
    "GE": make_builtin_function(">=", scm_ge, 0, None),
    "GT": make_builtin_function(">", scm_gt, 0, None),

    # Pairs and lists
    "CONS": make_builtin_function("cons", scm_cons, 2, 2),
    "CAR": make_builtin_function("car", scm_car, 1, 1),
    "CDR": make_builtin_function("cdr", scm_cdr, 1, 1),
    "LIST": make_builtin_function("list", scm_list, 0, None),
    "SETCAR": make_builtin_function("set-car!", scm_set_car, 2, 2),
    "SETCDR": make_builtin_function("set-cdr!", scm_set_cdr, 2, 2),

    # Logic
    "NOT": make_builtin_function("not", scm_not, 1, 1),
    "AND": make_builtin_function("and", scm_and, 0, None),
    "OR": make_builtin_function("or", scm_or, 0, None),

    # Predicates
    "EQQ": make_builtin_function("eq?", scm_eqq, 2, 2),
    "BOOLQ": make_builtin_function("boolean?", type_predicate("Boolean"), 1, 1),
    "NUMBERQ": make_builtin_function("number?", type_predicate("Integer", "Rational"), 1, 1),
    "INTQ": make_builtin_function("integer?", type_predicate("Integer"), 1, 1),
    "NULLQ": make_builtin_function("null?", type_predicate("Null"), 1, 1),
    "PAIRQ": make_builtin_function("pair?", type_predicate("Pair"), 1, 1),
    "PROCQ": make_builtin_function("procedure?", type_predicate("Procedure", "Primitive"), 1, 1),
    "SYMBOLQ": make_builtin_function("symbol?", type_predicate("Symbol"), 1, 1),
    "LISTQ": make_builtin_function("list?", scm_listq, 1, 1),
    "STRINGQ": make_builtin_function("string?", type_predicate("String"), 1, 1),

    # I/O and control
    "DISPLAY": make_builtin_function("display", scm_display, 1, 1),
    "VOID": make_builtin_function("void", scm_void, 0, 0),
    "EXIT": make_builtin_function("exit", scm_exit, 0, 0),
}


def get_builtin_function(tag: str) -> Dict:
  """Get a built-in function descriptor by tag"""
  if tag in BUILTIN_FUNCTIONS:
    return BUILTIN_FUNCTIONS[tag]
  raise SchemeRuntimeError(f"Unknown primitive: {tag}")


def check_primitive_arity(tag: str, count: int) -> None:
  builtin = get_builtin_function(tag)
  validate_arity(builtin['name'], count, builtin['min_args'], builtin['max_args'])


def apply_primitive(tag: str, args: List[Dict], config: Dict) -> Dict:
  """Apply a primitive to already evaluated operands"""
  builtin = get_builtin_function(tag)
  validate_arity(builtin['name'], len(args), builtin['min_args'], builtin['max_args'])
  return builtin['func'](args, config)


def list_builtin_functions() -> List[str]:
  """List all primitive names"""
  return list(PRIMITIVES.keys())


# ============================================================================
# CONFIGURATION
# ============================================================================

def make_interpreter_config(
    primitives: Optional[Dict[str, str]] = None,
    special_forms: Optional[Dict[str, str]] = None,
    output: Optional[TextIO] = None,
    debug: bool = False
) -> Dict:
  """Configuration shared by the translator and the evaluator"""
  primitives = PRIMITIVES if primitives is None else primitives
  special_forms = SPECIAL_FORMS if special_forms is None else special_forms
  overlap = set(primitives) & set(special_forms)
  if overlap:
    raise ValueError(f"primitive and keyword tables overlap: {sorted(overlap)}")
  return {
      'primitives': primitives,
      'special_forms': special_forms,
      'output': output if output is not None else sys.stdout,
      'debug': debug
  }
