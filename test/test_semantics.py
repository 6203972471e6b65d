"""
Translator tests
Call-head resolution, lexical shadowing, quoting and special-form shape errors
"""

import pytest

from environment import make_runtime_env, env_bind
from error_handling import ArityError, MalformedFormError
from expressions import make_void, show_value
from parsing import create_parser
from semantics import translate, translate_program, q_parse
from stdlib import make_interpreter_config


class TestTranslator:

  @pytest.fixture
  def parser(self):
    return create_parser()

  @pytest.fixture
  def env(self):
    return make_runtime_env()

  @pytest.fixture
  def tr(self, parser, env):
    """Translate one expression in the fixture environment"""
    def translate_text(text):
      return translate(parser.parse_expression(text), env)
    return translate_text

  def test_atoms(self, tr):
    assert tr("42") == {'type': 'LITERAL', 'value': {'type': 'Integer', 'value': 42}}
    assert tr("2/4")['value'] == {'type': 'Rational', 'value': (1, 2)}
    assert tr("4/2")['value'] == {'type': 'Integer', 'value': 2}
    assert tr('"s"')['value']['type'] == "String"
    assert tr("x") == {'type': 'VAR', 'value': 'x'}

  def test_empty_list_is_quoted_null(self, tr):
    node = tr("()")
    assert node['type'] == "QUOTE"
    assert node['value']['type'] == "Null"

  def test_primitive_call(self, tr):
    node = tr("(+ 1 2)")
    assert node['type'] == "PRIM_CALL"
    assert node['value']['op'] == "PLUS"
    assert len(node['value']['args']) == 2

  def test_and_or_nodes(self, tr):
    assert tr("(and 1 2)")['type'] == "AND"
    assert tr("(or)")['type'] == "OR"

  def test_free_identifier_is_application(self, tr):
    node = tr("(f 1)")
    assert node['type'] == "APPLY"
    assert node['value']['operator'] == {'type': 'VAR', 'value': 'f'}

  def test_non_symbol_head(self, tr):
    node = tr("((lambda (x) x) 1)")
    assert node['type'] == "APPLY"
    assert node['value']['operator']['type'] == "LAMBDA"

  def test_runtime_binding_shadows_primitive(self, tr, env):
    env_bind(env, "car", make_void())
    assert tr("(car 1)")['type'] == "APPLY"

  def test_parameter_shadows_primitive(self, tr):
    node = tr("(lambda (car) (car 1))")
    assert node['value']['body']['type'] == "APPLY"

  def test_parameter_shadows_keyword(self, tr):
    node = tr("(lambda (if) (if 1 2))")
    assert node['value']['body']['type'] == "APPLY"

  def test_let_initializers_see_outer_scope(self, tr):
    node = tr("(let ((list 1) (y (list 2))) (list y))")
    (_, list_init), (_, y_init) = node['value']['bindings']
    assert y_init['type'] == "PRIM_CALL"
    assert node['value']['body']['type'] == "APPLY"

  def test_letrec_initializers_see_inner_scope(self, tr):
    node = tr("(letrec ((list 1) (y (list 2))) y)")
    assert node['type'] == "LETREC"
    assert node['value']['bindings'][1][1]['type'] == "APPLY"

  def test_inner_define_shadows_later_forms(self, tr):
    node = tr("(lambda () (define not 1) (not 2))")
    body = node['value']['body']
    assert body['type'] == "BEGIN"
    assert body['value'][1]['type'] == "APPLY"

  def test_translation_leaves_env_untouched(self, tr, env):
    tr("(define x 1)")
    assert env['bindings'] == {}

  def test_define_forms(self, tr):
    assert tr("(define x 1)")['type'] == "DEFINE"
    node = tr("(define (f a b) a b)")
    assert node['type'] == "DEFINE_FUNCTION"
    assert node['value']['params'] == ["a", "b"]
    assert node['value']['body']['type'] == "BEGIN"

  def test_cond_else_candidate(self, tr):
    clauses = tr("(cond ((= 1 2) 1) (else 2))")['value']
    assert [c['else_candidate'] for c in clauses] == [False, True]

  def test_quoted_data(self, tr):
    assert show_value(tr("'(a (b 1/2) \"s\" #t)")['value']) == '(a (b 1/2) "s" #t)'
    assert show_value(tr("'(1 2 . 3)")['value']) == "(1 2 . 3)"
    assert tr("'x")['value'] == {'type': 'Symbol', 'value': 'x'}

  def test_q_parse_lone_dot_is_symbol(self, parser):
    datum = q_parse(parser.parse_expression("(. 1)"))
    assert show_value(datum) == "(. 1)"

  def test_translate_program(self, parser, env):
    nodes = translate_program(parser.parse_string("(define x 1) x"), env)
    assert [n['type'] for n in nodes] == ["DEFINE", "VAR"]

  def test_custom_name_tables(self, parser, env):
    config = make_interpreter_config(primitives={"plus": "PLUS"}, special_forms={"when": "IF"})
    assert translate(parser.parse_expression("(plus 1 2)"), env, config)['type'] == "PRIM_CALL"
    assert translate(parser.parse_expression("(when #t 1 2)"), env, config)['type'] == "IF"
    assert translate(parser.parse_expression("(+ 1 2)"), env, config)['type'] == "APPLY"

  def test_overlapping_tables_rejected(self):
    with pytest.raises(ValueError):
      make_interpreter_config(primitives={"if": "PLUS"}, special_forms={"if": "IF"})


class TestTranslationErrors:

  @pytest.fixture
  def tr(self):
    parser = create_parser()
    env = make_runtime_env()
    return lambda text: translate(parser.parse_expression(text), env)

  @pytest.mark.parametrize("text", [
      "(if 1 2)",
      "(if 1 2 3 4)",
      "(quote)",
      "(quote 1 2)",
      "(set! x)",
      "(lambda (x))",
      "(define x)",
      "(define x 1 2)",
      "(let ((x 1)))",
      "(car)",
      "(cons 1)",
      "(+)",
      "(*)",
      "(-)",
      "(/)",
      "(void 1)",
      "(modulo 1 2 3)",
  ])
  def test_arity(self, tr, text):
    with pytest.raises(ArityError):
      tr(text)

  @pytest.mark.parametrize("text", [
      "(lambda (x x) x)",
      "(lambda (1) 1)",
      "(lambda x x)",
      "(define (f x x) x)",
      "(define 1 2)",
      "(let ((x 1) (x 2)) x)",
      "(let (x) x)",
      "(let ((x)) x)",
      "(let ((1 2)) 1)",
      "(letrec ((f 1) (f 2)) f)",
      "(set! 1 2)",
      "(cond ())",
      "(cond 1)",
  ])
  def test_malformed(self, tr, text):
    with pytest.raises(MalformedFormError):
      tr(text)

  def test_error_message_is_readable(self, tr):
    with pytest.raises(MalformedFormError) as excinfo:
      tr("(lambda (x x) x)")
    assert "duplicate parameter x" in str(excinfo.value)
    assert str(excinfo.value).startswith("MalformedForm:")
