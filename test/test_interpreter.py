"""
Evaluator tests
End-to-end behaviour of special forms, procedures, pairs, printing and errors
"""

import pytest

from environment import make_runtime_env
from error_handling import (
  SchemeRuntimeError,
  UnboundVariableError,
  ArityError,
  SchemeTypeError,
  DivisionByZeroError,
  NumericOverflowError,
  NotAProcedureError,
  SchemeParseError
)
from expressions import make_ast_node, show_value
from interpreter import eval_ast, create_interpreter, create_debug_interpreter


class TestArithmetic:

  @pytest.mark.parametrize("source, expected", [
      ("(+ 1/2 1/3)", "5/6"),
      ("(+ 1/2 1/2)", "1"),
      ("(- 5)", "-5"),
      ("(- 10 1 2)", "7"),
      ("(/ 2)", "1/2"),
      ("(/ 1 3)", "1/3"),
      ("(/ 6 3)", "2"),
      ("(* 2/3 3/4)", "1/2"),
      ("(modulo -7 2)", "1"),
      ("(expt 2 10)", "1024"),
      ("(< 1 2 3)", "#t"),
      ("(< 1 3 2)", "#f"),
      ("(= 1/2 2/4)", "#t"),
      ("(>= 3 3 1)", "#t"),
      ("(<)", "#t"),
      ("(> 1)", "#t"),
  ])
  def test_arithmetic(self, run, source, expected):
    assert run(source) == expected

  def test_division_by_zero(self, interp):
    with pytest.raises(DivisionByZeroError):
      interp.run("(/ 1 0)")

  def test_overflow(self, interp):
    with pytest.raises(NumericOverflowError):
      interp.run("(expt 2 63)")

  def test_type_error(self, interp):
    with pytest.raises(SchemeTypeError):
      interp.run('(+ 1 "2")')

  def test_single_comparison_operand_is_checked(self, interp):
    with pytest.raises(SchemeTypeError):
      interp.run("(< #t)")

  @pytest.mark.parametrize("source", ["(+)", "(*)", "(define mul *) (mul)"])
  def test_sum_and_product_need_an_operand(self, interp, source):
    with pytest.raises(ArityError):
      interp.run(source)


class TestSpecialForms:

  def test_if_truthiness(self, run):
    assert run("(if 0 'yes 'no)") == "yes"
    assert run("(if '() 'yes 'no)") == "yes"
    assert run("(if #f 'yes 'no)") == "no"

  def test_and_or(self, run):
    assert run("(and)") == "#t"
    assert run("(or)") == "#f"
    assert run("(and 1 2 3)") == "3"
    assert run("(or #f 2 3)") == "2"
    assert run("(and 1 #f 3)") == "#f"

  def test_and_short_circuits(self, run):
    assert run("(and #f (car '()))") == "#f"
    assert run("(or 1 (car '()))") == "1"

  def test_cond(self, run):
    assert run("(cond ((= 1 2) 'a) ((= 1 1) 'b) (else 'c))") == "b"
    assert run("(cond (#f 1) (else 2 3))") == "3"
    assert run("(cond (#f 1))") == ""
    assert run("(cond (42))") == "42"

  def test_else_is_ordinary_test_when_bound(self, run):
    assert run("(define else #f) (cond (else 1) (#t 2))") == "2"

  def test_else_shadowed_by_parameter(self, run):
    assert run("((lambda (else) (cond (else 'a) (#t 'b))) #f)") == "b"

  def test_begin(self, run):
    assert run("(begin 1 2 3)") == "3"
    assert run("(begin)") == ""

  def test_let_scoping(self, run):
    assert run("(let ((x 1)) (let ((x 2) (y x)) y))") == "1"

  def test_letrec_factorial(self, run):
    source = "(letrec ((f (lambda (n) (if (= n 0) 1 (* n (f (- n 1))))))) (f 5))"
    assert run(source) == "120"

  def test_letrec_initializers_run_in_order(self, run):
    assert run("(letrec ((a 1) (b (+ a 1))) b)") == "2"

  def test_letrec_name_is_not_read_from_outer_scope(self, interp):
    with pytest.raises(UnboundVariableError):
      interp.run("(define x 10) (letrec ((y x) (x 2)) y)")

  def test_letrec_mutual_recursion(self, run):
    source = """
    (letrec ((even? (lambda (n) (if (= n 0) #t (odd? (- n 1)))))
             (odd? (lambda (n) (if (= n 0) #f (even? (- n 1))))))
      (even? 10))
    """
    assert run(source) == "#t"

  def test_define_function_recursion(self, run):
    source = "(define (fact n) (if (= n 0) 1 (* n (fact (- n 1))))) (fact 10)"
    assert run(source) == "3628800"

  def test_define_returns_void(self, run):
    assert run("(define x 1)") == ""

  def test_redefine_overwrites(self, run):
    assert run("(define x 1) (define x 2) x") == "2"

  def test_set(self, run):
    assert run("(define x 1) (set! x 5) x") == "5"

  def test_set_unbound(self, interp):
    with pytest.raises(UnboundVariableError):
      interp.run("(set! nope 1)")

  def test_quote(self, run):
    assert run("(quote (1 2 3))") == "(1 2 3)"
    assert run("'sym") == "sym"
    assert run("'()") == "()"
    assert run("()") == "()"


class TestProcedures:

  def test_closure_sees_later_set(self, run):
    source = """
    (define x 1)
    (define (get-x) x)
    (set! x 42)
    (get-x)
    """
    assert run(source) == "42"

  def test_counter_closure(self, run):
    source = """
    (define (make-counter)
      (let ((n 0))
        (lambda () (set! n (+ n 1)) n)))
    (define c (make-counter))
    (c) (c) (c)
    """
    assert run(source) == "3"

  def test_first_class_primitive(self, run):
    assert run("((if #t + -) 1 2)") == "3"
    assert run("(define add +) (add 1 2 3)") == "6"

  def test_higher_order(self, run):
    source = """
    (define (map f xs)
      (if (null? xs) '() (cons (f (car xs)) (map f (cdr xs)))))
    (map (lambda (x) (* x x)) (list 1 2 3))
    """
    assert run(source) == "(1 4 9)"

  def test_deep_non_tail_recursion(self, run):
    source = "(define (sum n) (if (= n 0) 0 (+ n (sum (- n 1))))) (sum 1000)"
    assert run(source) == "500500"

  def test_shadowing_primitive_by_define(self, run):
    assert run("(define (car x) 'mine) (car '(1 2))") == "mine"

  def test_shadowing_primitive_by_parameter(self, run):
    assert run("((lambda (car) (car 5)) (lambda (x) (* x 2)))") == "10"

  def test_procedure_arity(self, interp):
    with pytest.raises(ArityError):
      interp.run("((lambda (x y) x) 1)")

  def test_primitive_value_arity(self, interp):
    with pytest.raises(ArityError):
      interp.run("(define f car) (f 1 2)")

  def test_not_a_procedure(self, interp):
    with pytest.raises(NotAProcedureError):
      interp.run("(5 1)")

  def test_keyword_value_is_not_a_procedure(self, interp):
    with pytest.raises(NotAProcedureError):
      interp.run("((begin if) 1 2 3)")

  def test_unbound_call(self, interp):
    with pytest.raises(UnboundVariableError):
      interp.run("(undefined-function 1)")

  def test_unbound_variable(self, interp):
    with pytest.raises(UnboundVariableError):
      interp.run("nope")

  def test_operator_evaluated_before_operands(self, interp):
    with pytest.raises(UnboundVariableError) as excinfo:
      interp.run("(f (car '()))")
    assert "f" in str(excinfo.value)


class TestPairs:

  def test_cons_car_cdr(self, run):
    assert run("(car (cons 1 2))") == "1"
    assert run("(cdr (cons 1 2))") == "2"
    assert run("(cons 1 2)") == "(1 . 2)"
    assert run("(cons 1 (cons 2 '()))") == "(1 2)"

  def test_set_car(self, run):
    assert run("(define p (cons 1 2)) (set-car! p 9) (car p)") == "9"

  def test_set_cdr(self, run):
    assert run("(define p (list 1 2)) (set-cdr! p 3) p") == "(1 . 3)"

  def test_car_of_empty(self, interp):
    with pytest.raises(SchemeTypeError):
      interp.run("(car '())")

  def test_dotted_quote(self, run):
    assert run("'(1 2 . 3)") == "(1 2 . 3)"

  def test_cyclic_list_prints(self, run):
    result = run("(define p (list 1 2)) (set-cdr! (cdr p) p) p")
    assert result == "(1 2 ...)"

  def test_cyclic_car_prints(self, run):
    result = run("(define p (list 1)) (set-car! p p) p")
    assert result == "((...))"

  def test_shared_structure_is_not_a_cycle(self, run):
    assert run("(define a (list 1)) (list a a)") == "((1) (1))"

  def test_list_predicate(self, run):
    assert run("(list? '(1 2))") == "#t"
    assert run("(list? '())") == "#t"
    assert run("(list? (cons 1 2))") == "#f"
    assert run("(list? 5)") == "#f"

  def test_list_predicate_on_cycle(self, run):
    assert run("(define p (list 1 2 3)) (set-cdr! (cdr (cdr p)) p) (list? p)") == "#f"


class TestPredicates:

  @pytest.mark.parametrize("source, expected", [
      ("(not #f)", "#t"),
      ("(not 0)", "#f"),
      ("(not '())", "#f"),
      ("(eq? 'a 'a)", "#t"),
      ("(eq? 1 1)", "#t"),
      ("(eq? '() '())", "#t"),
      ("(eq? (list 1) (list 1))", "#f"),
      ("(define p (list 1)) (eq? p p)", "#t"),
      ("(eq? car car)", "#t"),
      ("(boolean? #f)", "#t"),
      ("(number? 1/2)", "#t"),
      ("(integer? 1/2)", "#f"),
      ("(integer? 4/2)", "#t"),
      ("(null? '())", "#t"),
      ("(pair? '())", "#f"),
      ("(procedure? car)", "#t"),
      ("(procedure? (lambda (x) x))", "#t"),
      ("(procedure? 'car)", "#f"),
      ("(symbol? 'a)", "#t"),
      ('(string? "a")', "#t"),
  ])
  def test_predicates(self, run, source, expected):
    assert run(source) == expected


class TestPrinting:

  @pytest.mark.parametrize("source, expected", [
      ('"hi"', '"hi"'),
      ("#t", "#t"),
      ("car", "#<procedure>"),
      ("(lambda (x) x)", "#<procedure>"),
      ("if", "#<special-form>"),
      ("(void)", ""),
      ("-3/4", "-3/4"),
  ])
  def test_show(self, run, source, expected):
    assert run(source) == expected

  def test_display(self, interp, output):
    interp.run('(display "hello") (display 1/2) (display \'(1 "a"))')
    assert output.getvalue() == 'hello1/2(1 "a")'

  def test_string_escapes(self, run):
    assert run('"say \\"hi\\""') == '"say \\"hi\\""'
    assert run('"a\\nb"') == '"a\\nb"'
    assert run('"back\\\\slash"') == '"back\\\\slash"'

  def test_printed_string_reads_back(self, interp):
    original = interp.run('"quote \\" and\\nnewline"')[0]
    assert interp.run(show_value(original))[0] == original

  def test_display_writes_strings_raw(self, interp, output):
    interp.run('(display "a\\"b\\nc")')
    assert output.getvalue() == 'a"b\nc'

  def test_display_returns_void(self, run):
    assert run('(display "")') == ""


class TestInterpreterApi:

  def test_exit_stops_run(self, interp):
    results = interp.run("1 (exit) 2")
    assert [v['type'] for v in results] == ["Integer", "Exit"]

  def test_global_env_persists(self, interp):
    interp.run("(define x 10)")
    assert show_value(interp.run("(* x 2)")[0]) == "20"
    assert "x" in interp.global_env['bindings']

  def test_translate_and_evaluate(self, interp):
    syntax = interp.parser.parse_expression("(+ 1 2)")
    assert show_value(interp.evaluate(interp.translate(syntax))) == "3"

  def test_fresh_interpreters_are_isolated(self):
    first = create_interpreter()
    second = create_interpreter()
    first.run("(define x 1)")
    with pytest.raises(UnboundVariableError):
      second.run("x")

  def test_run_file(self, interp, tmp_path):
    script = tmp_path / "prog.scm"
    script.write_text("(define x 6)\n(* x 7)\n", encoding='utf-8')
    assert show_value(interp.run_file(str(script))[-1]) == "42"

  def test_run_file_missing(self, interp, tmp_path):
    with pytest.raises(SchemeParseError):
      interp.run_file(str(tmp_path / "missing.scm"))

  def test_unknown_node_type(self):
    with pytest.raises(SchemeRuntimeError):
      eval_ast(make_ast_node("BOGUS", None), make_runtime_env())

  def test_debug_trace(self, capsys):
    create_debug_interpreter().run("(+ 1 2)")
    captured = capsys.readouterr().out
    assert "Translating: (+ 1 2)" in captured
    assert "Evaluating: PRIM_CALL" in captured

  def test_errors_leave_env_usable(self, interp):
    with pytest.raises(DivisionByZeroError):
      interp.run("(define x 1) (/ x 0)")
    assert show_value(interp.run("x")[0]) == "1"
