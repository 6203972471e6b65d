"""
SCM Translator
Turns reader syntax trees into expression nodes, resolving call heads against
bound variables, primitives and special-form keywords
"""

from typing import Dict, List, Optional, Tuple

from environment import extend_child, env_bind, env_contains
from expressions import (
  make_string,
  make_boolean,
  make_symbol,
  make_null,
  make_void,
  list_to_values,
  make_literal,
  make_quote,
  make_var,
  make_prim_call,
  make_and,
  make_or,
  make_if,
  make_cond_clause,
  make_cond,
  make_lambda,
  make_define,
  make_define_function,
  make_let,
  make_set,
  make_begin,
  make_apply,
  make_body
)
from numeric import make_number, make_rational
from parsing import CSTNode
from stdlib import check_primitive_arity, make_interpreter_config
from utilities import arity_error, malformed_form_error, validate_arity


# ============================================================================
# QUOTED DATA
# ============================================================================

def q_parse(syntax: CSTNode) -> Dict:
  """Turn a syntax node into self-evaluating data"""
  if syntax.type == "NUMBER":
    return make_number(syntax.value)
  if syntax.type == "RATIONAL":
    return make_rational(*syntax.value)
  if syntax.type == "STRING":
    return make_string(syntax.value)
  if syntax.type == "BOOLEAN":
    return make_boolean(syntax.value)
  if syntax.type == "SYMBOL":
    return make_symbol(syntax.value)

  children = syntax.children
  # (a b . c): a dot in second-to-last position marks an improper tail
  if len(children) >= 3 and is_symbol(children[-2], "."):
    tail = q_parse(children[-1])
    return list_to_values([q_parse(child) for child in children[:-2]], tail)
  return list_to_values([q_parse(child) for child in children])


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def is_symbol(syntax: CSTNode, name: Optional[str] = None) -> bool:
  if syntax.type != "SYMBOL":
    return False
  return name is None or syntax.value == name


def bind_placeholders(scope: Dict, names: List[str]) -> None:
  """Record names as lexically bound while translating a body"""
  for name in names:
    env_bind(scope, name, make_void())


def extract_params(syntax: CSTNode, form_name: str) -> List[str]:
  """Parameter list: a list of distinct symbols"""
  if syntax.type != "LIST":
    raise malformed_form_error(form_name, f"parameters must be a list, got {syntax}")
  return extract_param_names(syntax.children, form_name)


def extract_param_names(items: List[CSTNode], form_name: str) -> List[str]:
  names = []
  for item in items:
    if not is_symbol(item):
      raise malformed_form_error(form_name, f"parameter {item} is not a symbol")
    if item.value in names:
      raise malformed_form_error(form_name, f"duplicate parameter {item.value}")
    names.append(item.value)
  return names


def extract_bindings(syntax: CSTNode, form_name: str) -> List[Tuple[str, CSTNode]]:
  """Binding list: ((name expr) ...) with distinct names"""
  if syntax.type != "LIST":
    raise malformed_form_error(form_name, f"bindings must be a list, got {syntax}")
  bindings = []
  seen = set()
  for binding in syntax.children:
    if binding.type != "LIST" or len(binding.children) != 2:
      raise malformed_form_error(form_name, f"binding {binding} is not a (name expr) pair")
    name_syntax, expr_syntax = binding.children
    if not is_symbol(name_syntax):
      raise malformed_form_error(form_name, f"binding name {name_syntax} is not a symbol")
    if name_syntax.value in seen:
      raise malformed_form_error(form_name, f"duplicate binding {name_syntax.value}")
    seen.add(name_syntax.value)
    bindings.append((name_syntax.value, expr_syntax))
  return bindings


def translate_sequence(items: List[CSTNode], scope: Dict, config: Dict) -> List[Dict]:
  return [translate_node(item, scope, config) for item in items]


# ============================================================================
# SPECIAL FORMS
# ============================================================================

def translate_begin(args: List[CSTNode], scope: Dict, config: Dict) -> Dict:
  return make_begin(translate_sequence(args, scope, config))


def translate_quote(args: List[CSTNode], scope: Dict, config: Dict) -> Dict:
  validate_arity("quote", len(args), 1, 1)
  return make_quote(q_parse(args[0]))


def translate_if(args: List[CSTNode], scope: Dict, config: Dict) -> Dict:
  validate_arity("if", len(args), 3, 3)
  test, consequent, alternative = translate_sequence(args, scope, config)
  return make_if(test, consequent, alternative)


def translate_cond(args: List[CSTNode], scope: Dict, config: Dict) -> Dict:
  clauses = []
  for clause in args:
    if clause.type != "LIST" or not clause.children:
      raise malformed_form_error("cond", f"clause {clause} is not a non-empty list")
    test_syntax = clause.children[0]
    clauses.append(make_cond_clause(
        translate_node(test_syntax, scope, config),
        translate_sequence(clause.children[1:], scope, config),
        is_symbol(test_syntax, "else")
    ))
  return make_cond(clauses)


def translate_lambda(args: List[CSTNode], scope: Dict, config: Dict) -> Dict:
  if len(args) < 2:
    raise arity_error("lambda", "at least 2", len(args))
  params = extract_params(args[0], "lambda")
  body_scope = extend_child(scope)
  bind_placeholders(body_scope, params)
  body = make_body(translate_sequence(args[1:], body_scope, config))
  return make_lambda(params, body)


def translate_define(args: List[CSTNode], scope: Dict, config: Dict) -> Dict:
  if len(args) < 2:
    raise arity_error("define", "at least 2", len(args))
  target = args[0]

  if is_symbol(target):
    if len(args) != 2:
      raise arity_error("define", "2", len(args))
    bind_placeholders(scope, [target.value])
    return make_define(target.value, translate_node(args[1], scope, config))

  if target.type == "LIST" and target.children and is_symbol(target.children[0]):
    name = target.children[0].value
    params = extract_param_names(target.children[1:], "define")
    bind_placeholders(scope, [name])
    body_scope = extend_child(scope)
    bind_placeholders(body_scope, params)
    body = make_body(translate_sequence(args[1:], body_scope, config))
    return make_define_function(name, params, body)

  raise malformed_form_error("define", f"cannot define {target}")


def translate_let(args: List[CSTNode], scope: Dict, config: Dict) -> Dict:
  if len(args) < 2:
    raise arity_error("let", "at least 2", len(args))
  bindings = extract_bindings(args[0], "let")
  # initializers see only the enclosing scope
  values = [(name, translate_node(expr, scope, config)) for name, expr in bindings]
  body_scope = extend_child(scope)
  bind_placeholders(body_scope, [name for name, _ in bindings])
  body = make_body(translate_sequence(args[1:], body_scope, config))
  return make_let(values, body)


def translate_letrec(args: List[CSTNode], scope: Dict, config: Dict) -> Dict:
  if len(args) < 2:
    raise arity_error("letrec", "at least 2", len(args))
  bindings = extract_bindings(args[0], "letrec")
  body_scope = extend_child(scope)
  bind_placeholders(body_scope, [name for name, _ in bindings])
  values = [(name, translate_node(expr, body_scope, config)) for name, expr in bindings]
  body = make_body(translate_sequence(args[1:], body_scope, config))
  return make_let(values, body, recursive=True)


def translate_set(args: List[CSTNode], scope: Dict, config: Dict) -> Dict:
  validate_arity("set!", len(args), 2, 2)
  if not is_symbol(args[0]):
    raise malformed_form_error("set!", f"target {args[0]} is not a symbol")
  return make_set(args[0].value, translate_node(args[1], scope, config))


SPECIAL_FORM_TRANSLATORS = {
    "BEGIN": translate_begin,
    "QUOTE": translate_quote,
    "IF": translate_if,
    "COND": translate_cond,
    "LAMBDA": translate_lambda,
    "DEFINE": translate_define,
    "LET": translate_let,
    "LETREC": translate_letrec,
    "SET": translate_set,
}


# ============================================================================
# EXPRESSIONS
# ============================================================================

def translate_primitive(tag: str, name: str, args: List[CSTNode], scope: Dict, config: Dict) -> Dict:
  check_primitive_arity(tag, len(args))
  operands = translate_sequence(args, scope, config)
  if tag == "AND":
    return make_and(operands)
  if tag == "OR":
    return make_or(operands)
  return make_prim_call(tag, name, operands)


def translate_list(syntax: CSTNode, scope: Dict, config: Dict) -> Dict:
  head = syntax.children[0]
  args = syntax.children[1:]

  if not is_symbol(head):
    return make_apply(translate_node(head, scope, config), translate_sequence(args, scope, config))

  name = head.value
  # a bound variable shadows primitive and keyword names
  if env_contains(scope, name):
    return make_apply(make_var(name), translate_sequence(args, scope, config))

  if name in config['primitives']:
    return translate_primitive(config['primitives'][name], name, args, scope, config)

  if name in config['special_forms']:
    tag = config['special_forms'][name]
    translator = SPECIAL_FORM_TRANSLATORS.get(tag)
    if translator is None:
      raise malformed_form_error(name, f"no translation rule for keyword tag {tag}")
    return translator(args, scope, config)

  # free identifier, resolved when evaluated
  return make_apply(make_var(name), translate_sequence(args, scope, config))


def translate_node(syntax: CSTNode, scope: Dict, config: Dict) -> Dict:
  node_type = syntax.type

  if node_type == "NUMBER":
    return make_literal(make_number(syntax.value))
  elif node_type == "RATIONAL":
    return make_literal(make_rational(*syntax.value))
  elif node_type == "STRING":
    return make_literal(make_string(syntax.value))
  elif node_type == "BOOLEAN":
    return make_literal(make_boolean(syntax.value))
  elif node_type == "SYMBOL":
    return make_var(syntax.value)
  elif node_type == "LIST":
    if not syntax.children:
      return make_quote(make_null())
    return translate_list(syntax, scope, config)
  raise malformed_form_error("expression", f"unknown syntax node type {node_type}")


def translate(syntax: CSTNode, env: Dict, config: Optional[Dict] = None) -> Dict:
  """
  Translate one top-level syntax tree against env.

  Lexical bindings introduced while translating are recorded in scratch
  child frames of env; env itself is never modified.
  """
  if config is None:
    config = make_interpreter_config()
  if config['debug']:
    print(f"Translating: {syntax}")
  return translate_node(syntax, extend_child(env), config)


def translate_program(cst_nodes: List[CSTNode], env: Dict, config: Optional[Dict] = None) -> List[Dict]:
  """Translate a list of top-level forms"""
  return [translate(cst_node, env, config) for cst_node in cst_nodes]
