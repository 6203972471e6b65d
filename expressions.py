"""
SCM expression model
Tagged value and AST node dictionaries, plus the canonical printer
"""

from typing import Any, Dict, List, Optional, Tuple

from utilities import dispatch_by_type


# ============================================================================
# VALUES
# ============================================================================

def make_value(value: Any, type_name: str = "Unknown") -> Dict:
  """Create a runtime value"""
  return {
      'value': value,
      'type': type_name
  }


def make_string(s: str) -> Dict:
  return make_value(s, "String")


def make_boolean(b: bool) -> Dict:
  return make_value(bool(b), "Boolean")


def make_symbol(name: str) -> Dict:
  return make_value(name, "Symbol")


def make_void() -> Dict:
  return make_value(None, "Void")


def make_null() -> Dict:
  return make_value(None, "Null")


def make_exit() -> Dict:
  """The sentinel returned by (exit)"""
  return make_value(None, "Exit")


def make_unassigned() -> Dict:
  """Placeholder for a letrec name whose initializer has not run yet"""
  return make_value(None, "Unassigned")


def make_pair(car: Dict, cdr: Dict) -> Dict:
  """Create a mutable cons cell"""
  return make_value({'car': car, 'cdr': cdr}, "Pair")


def make_procedure(params: List[str], body: Dict, closure_env: Dict) -> Dict:
  """Create a closure sharing (not copying) its defining environment"""
  return make_value({
      'params': params,
      'body': body,
      'closure_env': closure_env
  }, "Procedure")


def make_primitive(tag: str) -> Dict:
  return make_value(tag, "Primitive")


def make_special_form(tag: str) -> Dict:
  return make_value(tag, "SpecialForm")


def is_false(value: Dict) -> bool:
  """Only the boolean #f is false"""
  return value['type'] == "Boolean" and value['value'] is False


def is_truthy(value: Dict) -> bool:
  return not is_false(value)


def list_to_values(items: List[Dict], tail: Optional[Dict] = None) -> Dict:
  """Build a pair chain from items, terminated by tail (Null by default)"""
  result = tail if tail is not None else make_null()
  for item in reversed(items):
    result = make_pair(item, result)
  return result


# ============================================================================
# AST NODES
# ============================================================================

def make_ast_node(node_type: str, value: Any) -> Dict:
  """Create an AST node; nodes are never mutated after translation"""
  return {
      'type': node_type,
      'value': value
  }


def make_literal(value: Dict) -> Dict:
  return make_ast_node("LITERAL", value)


def make_quote(datum: Dict) -> Dict:
  return make_ast_node("QUOTE", datum)


def make_var(name: str) -> Dict:
  return make_ast_node("VAR", name)


def make_prim_call(tag: str, name: str, args: List[Dict]) -> Dict:
  return make_ast_node("PRIM_CALL", {'op': tag, 'name': name, 'args': args})


def make_and(args: List[Dict]) -> Dict:
  return make_ast_node("AND", args)


def make_or(args: List[Dict]) -> Dict:
  return make_ast_node("OR", args)


def make_if(test: Dict, consequent: Dict, alternative: Dict) -> Dict:
  return make_ast_node("IF", {
      'test': test,
      'consequent': consequent,
      'alternative': alternative
  })


def make_cond_clause(test: Dict, body: List[Dict], else_candidate: bool) -> Dict:
  """A cond clause; else_candidate marks a bare `else` test"""
  return {
      'test': test,
      'body': body,
      'else_candidate': else_candidate
  }


def make_cond(clauses: List[Dict]) -> Dict:
  return make_ast_node("COND", clauses)


def make_lambda(params: List[str], body: Dict) -> Dict:
  return make_ast_node("LAMBDA", {'params': params, 'body': body})


def make_define(name: str, expr: Dict) -> Dict:
  return make_ast_node("DEFINE", {'name': name, 'expr': expr})


def make_define_function(name: str, params: List[str], body: Dict) -> Dict:
  return make_ast_node("DEFINE_FUNCTION", {'name': name, 'params': params, 'body': body})


def make_let(bindings: List[Tuple[str, Dict]], body: Dict, recursive: bool = False) -> Dict:
  return make_ast_node("LETREC" if recursive else "LET", {
      'bindings': bindings,
      'body': body
  })


def make_set(name: str, expr: Dict) -> Dict:
  return make_ast_node("SET", {'name': name, 'expr': expr})


def make_begin(exprs: List[Dict]) -> Dict:
  return make_ast_node("BEGIN", exprs)


def make_apply(operator: Dict, operands: List[Dict]) -> Dict:
  return make_ast_node("APPLY", {'operator': operator, 'operands': operands})


def make_body(exprs: List[Dict]) -> Dict:
  """Wrap a body sequence in BEGIN unless it is a single expression"""
  if len(exprs) == 1:
    return exprs[0]
  return make_begin(exprs)


# ============================================================================
# PRINTING
# ============================================================================

def show_number(value: Dict) -> str:
  if value['type'] == "Rational":
    numerator, denominator = value['value']
    return f"{numerator}/{denominator}"
  return str(value['value'])


# Escapes the reader undoes inside string literals
STRING_ESCAPES = str.maketrans({
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
})


def show_string(value: Dict) -> str:
  return '"' + value['value'].translate(STRING_ESCAPES) + '"'


ATOM_PRINTERS = {
    "Integer": show_number,
    "Rational": show_number,
    "String": show_string,
    "Boolean": lambda v: "#t" if v['value'] else "#f",
    "Symbol": lambda v: v['value'],
    "Null": lambda v: "()",
    "Void": lambda v: "",
    "Exit": lambda v: "",
    "Procedure": lambda v: "#<procedure>",
    "Primitive": lambda v: "#<procedure>",
    "SpecialForm": lambda v: "#<special-form>",
}


def show_value(value: Dict) -> str:
  """Canonical textual rendering used by the REPL and display"""
  return _show(value, set())


def _show(value: Dict, active: set) -> str:
  if value['type'] != "Pair":
    return dispatch_by_type(value, ATOM_PRINTERS, lambda v: f"#<{v['type']}>")

  # Walk the cdr spine iteratively; recurse only into cars
  parts = []
  on_path = []
  current = value
  while current['type'] == "Pair":
    if id(current) in active:
      parts.append("...")
      current = None
      break
    active.add(id(current))
    on_path.append(id(current))
    parts.append(_show(current['value']['car'], active))
    current = current['value']['cdr']

  if current is not None and current['type'] != "Null":
    parts.append(".")
    parts.append(_show(current, active))

  for pair_id in on_path:
    active.discard(pair_id)

  return "(" + " ".join(parts) + ")"


def display_text(value: Dict) -> str:
  """Text written by display: strings raw, everything else canonical"""
  if value['type'] == "String":
    return value['value']
  return show_value(value)
