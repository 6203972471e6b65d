"""
SCM Evaluator
Evaluates translated expression nodes against a chain of shared mutable frames
Side effects (display output) go through the configured output sink
"""

import sys
from typing import Dict, List, Optional, TextIO

from environment import (
  make_runtime_env,
  extend_child,
  env_bind,
  env_lookup,
  env_contains,
  env_assign
)
from error_handling import (
  SchemeRuntimeError,
  UnboundVariableError,
  NotAProcedureError
)
from expressions import (
  make_boolean,
  make_void,
  make_unassigned,
  make_procedure,
  make_primitive,
  make_special_form,
  is_false,
  is_truthy,
  show_value
)
from parsing import CSTNode, create_parser
from semantics import translate
from stdlib import apply_primitive, make_interpreter_config
from utilities import arity_error


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def eval_sequence(nodes: List[Dict], env: Dict, config: Dict) -> Dict:
  """Evaluate nodes in order, returning the last value (void when empty)"""
  result = make_void()
  for node in nodes:
    result = eval_ast(node, env, config)
  return result


def eval_operands(nodes: List[Dict], env: Dict, config: Dict) -> List[Dict]:
  return [eval_ast(node, env, config) for node in nodes]


def apply_procedure(procedure: Dict, args: List[Dict], config: Dict) -> Dict:
  """Apply a procedure or primitive value to evaluated arguments"""
  if procedure['type'] == "Primitive":
    return apply_primitive(procedure['value'], args, config)

  if procedure['type'] != "Procedure":
    raise NotAProcedureError(f"{show_value(procedure) or procedure['type']} is not applicable")

  params = procedure['value']['params']
  if len(args) != len(params):
    raise arity_error("procedure", str(len(params)), len(args))

  frame = extend_child(procedure['value']['closure_env'])
  for name, value in zip(params, args):
    env_bind(frame, name, value)
  return eval_ast(procedure['value']['body'], frame, config)


# ============================================================================
# NODE EVALUATORS
# ============================================================================

def eval_literal(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  return ast_node['value']


def eval_var(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  """Variables first, then primitive names, then keywords"""
  name = ast_node['value']
  value = env_lookup(env, name)
  if value is not None:
    if value['type'] == "Unassigned":
      raise UnboundVariableError(f"letrec variable used before its initializer ran: {name}")
    return value
  if name in config['primitives']:
    return make_primitive(config['primitives'][name])
  if name in config['special_forms']:
    return make_special_form(config['special_forms'][name])
  raise UnboundVariableError(f"unbound variable: {name}")


def eval_prim_call(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  args = eval_operands(ast_node['value']['args'], env, config)
  return apply_primitive(ast_node['value']['op'], args, config)


def eval_and(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  result = make_boolean(True)
  for node in ast_node['value']:
    result = eval_ast(node, env, config)
    if is_false(result):
      return result
  return result


def eval_or(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  result = make_boolean(False)
  for node in ast_node['value']:
    result = eval_ast(node, env, config)
    if is_truthy(result):
      return result
  return result


def eval_if(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  value = ast_node['value']
  if is_truthy(eval_ast(value['test'], env, config)):
    return eval_ast(value['consequent'], env, config)
  return eval_ast(value['alternative'], env, config)


def eval_cond(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  """
  Try clauses in order.

  A bare `else` test matches unconditionally unless `else` is bound as a
  variable where the cond is evaluated; then it is an ordinary test.
  A clause without a body yields its test value.
  """
  for clause in ast_node['value']:
    if clause['else_candidate'] and not env_contains(env, "else"):
      return eval_sequence(clause['body'], env, config)

    test_value = eval_ast(clause['test'], env, config)
    if is_truthy(test_value):
      if not clause['body']:
        return test_value
      return eval_sequence(clause['body'], env, config)
  return make_void()


def eval_lambda(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  value = ast_node['value']
  return make_procedure(value['params'], value['body'], env)


def eval_define(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  value = ast_node['value']
  env_bind(env, value['name'], eval_ast(value['expr'], env, config))
  return make_void()


def eval_define_function(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  value = ast_node['value']
  # the closure captures the frame it is bound in, so it can call itself
  env_bind(env, value['name'], make_procedure(value['params'], value['body'], env))
  return make_void()


def eval_let(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  value = ast_node['value']
  evaluated = [(name, eval_ast(expr, env, config)) for name, expr in value['bindings']]
  frame = extend_child(env)
  for name, bound in evaluated:
    env_bind(frame, name, bound)
  return eval_ast(value['body'], frame, config)


def eval_letrec(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  value = ast_node['value']
  frame = extend_child(env)
  # every name is in scope before any initializer runs
  for name, _ in value['bindings']:
    env_bind(frame, name, make_unassigned())
  for name, expr in value['bindings']:
    env_bind(frame, name, eval_ast(expr, frame, config))
  return eval_ast(value['body'], frame, config)


def eval_set(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  value = ast_node['value']
  new_value = eval_ast(value['expr'], env, config)
  env_assign(env, value['name'], new_value)
  return make_void()


def eval_begin(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  return eval_sequence(ast_node['value'], env, config)


def eval_quote(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  return ast_node['value']


def eval_apply(ast_node: Dict, env: Dict, config: Dict) -> Dict:
  value = ast_node['value']
  procedure = eval_ast(value['operator'], env, config)
  args = eval_operands(value['operands'], env, config)
  return apply_procedure(procedure, args, config)


NODE_EVALUATORS = {
    "LITERAL": eval_literal,
    "QUOTE": eval_quote,
    "VAR": eval_var,
    "PRIM_CALL": eval_prim_call,
    "AND": eval_and,
    "OR": eval_or,
    "IF": eval_if,
    "COND": eval_cond,
    "LAMBDA": eval_lambda,
    "DEFINE": eval_define,
    "DEFINE_FUNCTION": eval_define_function,
    "LET": eval_let,
    "LETREC": eval_letrec,
    "SET": eval_set,
    "BEGIN": eval_begin,
    "APPLY": eval_apply,
}


def eval_ast(ast_node: Dict, env: Dict, config: Optional[Dict] = None) -> Dict:
  """
  Evaluate an expression node in env and return its value.

  Frames are shared and mutated in place by define, set! and set-car!/set-cdr!,
  so no environment is returned.
  """
  if config is None:
    config = make_interpreter_config()

  node_type = ast_node['type']
  if config['debug']:
    print(f"Evaluating: {node_type}")

  evaluator = NODE_EVALUATORS.get(node_type)
  if evaluator is None:
    raise SchemeRuntimeError(f"unknown expression node type: {node_type}")
  return evaluator(ast_node, env, config)


# ============================================================================
# INTERPRETER
# ============================================================================

# A Scheme procedure call costs several Python frames
RECURSION_LIMIT = 20_000


def ensure_recursion_limit(limit: int = RECURSION_LIMIT) -> None:
  """Raise the interpreter recursion limit, never lower it"""
  if sys.getrecursionlimit() < limit:
    sys.setrecursionlimit(limit)


class Interpreter:
  """Owns a global environment and runs source text against it"""

  def __init__(self, config: Dict):
    self.config = config
    self.debug = config['debug']
    self.global_env = make_runtime_env()
    self.parser = create_parser(debug=self.debug)
    ensure_recursion_limit()

  def translate(self, syntax: CSTNode) -> Dict:
    return translate(syntax, self.global_env, self.config)

  def evaluate(self, ast_node: Dict) -> Dict:
    return eval_ast(ast_node, self.global_env, self.config)

  def eval_syntax(self, syntax: CSTNode) -> Dict:
    """Translate then evaluate one top-level form"""
    return self.evaluate(self.translate(syntax))

  def run_forms(self, forms: List[CSTNode]) -> List[Dict]:
    """
    Translate and evaluate parsed forms in order.

    Returns the value of each evaluated form; evaluation stops after a form
    that yields the exit sentinel.
    """
    results = []
    for syntax in forms:
      value = self.eval_syntax(syntax)
      results.append(value)
      if value['type'] == "Exit":
        break
    return results

  def run(self, text: str, filename: str = "<input>") -> List[Dict]:
    """Read, translate and evaluate every form in text"""
    return self.run_forms(self.parser.parse_string(text, filename))

  def run_file(self, filepath: str) -> List[Dict]:
    return self.run_forms(self.parser.parse_file(filepath))


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, output: Optional[TextIO] = None) -> Interpreter:
  """Factory function returning an interpreter with a fresh global environment"""
  return Interpreter(make_interpreter_config(output=output, debug=debug))


def create_debug_interpreter() -> Interpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True)
