"""
Evaluator tests for the Astro interpreter
Statement semantics, arithmetic and runtime errors
"""

import io

import pytest
from config import AstroConfig
from environment import make_symbol_table, table_lookup
from error_handling import (
  ArityMismatchError,
  AstroRuntimeError,
  AstroSyntaxError,
  ErrorKind,
  NotWritableError,
  TypeMismatchError,
  UndefinedSymbolError,
)
from interpreter import create_debug_interpreter, create_interpreter, execute, run
from parsing import CSTNode, SourceSpan, parse


def output_of(source, config=None):
  out = io.StringIO()
  result = execute(source, config, out)
  assert result.ok, str(result.error)
  return out.getvalue().splitlines()


class TestStatements:
  """Assignment, print and call statements"""

  def test_assign_and_print(self):
    assert output_of("x = 1; print x;") == ["1"]

  def test_reassignment(self):
    assert output_of("x = 1; x = 2; print x;") == ["2"]

  def test_output_in_program_order(self):
    assert output_of("print 3; print 1; print 2;") == ["3", "1", "2"]

  def test_assignment_uses_previous_value(self):
    assert output_of("x = 1; x = x + 1; x = x * 10; print x;") == ["20"]

  def test_print_parenthesized(self):
    code = "dozen = 5 + 8 - 1; print(dozen ** 3 / sqrt(100));"
    assert output_of(code) == ["172.8"]

  def test_print_procedure(self, procedure_config):
    assert output_of("x = 6; print(x * 7);", procedure_config) == ["42"]

  def test_comments_ignored(self):
    code = "x = 2; // two\n// nothing here\nprint x ** 10; // 1024"
    assert output_of(code) == ["1024"]

  def test_run_against_explicit_table(self, out):
    table = make_symbol_table()
    run(parse("a = 3; b = a * a;"), table, out=out)
    assert table_lookup(table, 'b').value == 9.0
    assert table_lookup(table, 'b').mutable

  def test_deterministic_across_fresh_tables(self):
    code = "a = sin(1) + cos(2); b = a ** 2 / 3; print a; print b;"
    assert output_of(code) == output_of(code)


class TestArithmetic:
  """IEEE double arithmetic"""

  @pytest.mark.parametrize("expression,expected", [
    ("2 ** 3 ** 2", "512"),
    ("(2 ** 3) ** 2", "64"),
    ("1 - 2 - 3", "-4"),
    ("8 / 4 / 2", "1"),
    ("1 + 2 * 3", "7"),
    ("7 % 3", "1"),
    ("-7 % 3", "-1"),
    ("7 % -3", "1"),
    ("5.5 % 2", "1.5"),
    ("-3 + 5", "2"),
    ("2 - -3", "5"),
    ("0.1 + 0.2", "0.30000000000000004"),
    ("1e3 + 1", "1001"),
    ("10 / 4", "2.5"),
    ("2 ** 0.5", "1.4142135623730951"),
    ("4 ** -1", "0.25"),
    ("-0", "-0"),
    ("0 * -1", "-0"),
    ("-0 + 0", "0"),
  ])
  def test_expressions(self, expression, expected):
    assert output_of(f"print {expression};") == [expected]

  @pytest.mark.parametrize("expression,expected", [
    ("1 / 0", "Infinity"),
    ("-1 / 0", "-Infinity"),
    ("0 / 0", "NaN"),
    ("5 % 0", "NaN"),
    ("10 ** 400", "Infinity"),
    ("(-10) ** 401", "-Infinity"),
    ("0 ** -1", "Infinity"),
    ("(-8) ** (1/3)", "NaN"),
    ("sqrt(-1)", "NaN"),
    ("1e308 * 10", "Infinity"),
    ("1e308 * 10 - 1e308 * 10", "NaN"),
  ])
  def test_ieee_edge_cases(self, expression, expected):
    assert output_of(f"print {expression};") == [expected]


class TestBuiltins:
  """Constants and math routines"""

  def test_pi(self):
    assert output_of("print π;") == ["3.141592653589793"]

  @pytest.mark.parametrize("expression,expected", [
    ("sin(0)", "0"),
    ("cos(0)", "1"),
    ("sqrt(16)", "4"),
    ("hypot(3, 4)", "5"),
    ("sqrt(hypot(6, 8) * 10)", "10"),
    ("cos(π)", "-1"),
  ])
  def test_functions(self, expression, expected):
    assert output_of(f"print {expression};") == [expected]


class TestRuntimeErrors:
  """Each failure stops the run with a positioned error"""

  def run_failing(self, source, config=None):
    out = io.StringIO()
    result = execute(source, config, out)
    assert not result.ok
    return result.error, out.getvalue()

  def test_assign_to_constant(self):
    error, output = self.run_failing("π = 3;")
    assert isinstance(error, NotWritableError)
    assert error.kind is ErrorKind.NOT_WRITABLE
    assert str(error) == "1:1: π not writable"
    assert output == ""

  def test_assign_to_function(self):
    error, _ = self.run_failing("sin = 1;")
    assert isinstance(error, TypeMismatchError)
    assert str(error) == "1:1: Cannot assign"

  def test_wrong_arity(self):
    error, _ = self.run_failing("print sqrt(1,2);")
    assert isinstance(error, ArityMismatchError)
    assert error.kind is ErrorKind.ARITY_MISMATCH
    assert str(error) == "1:12: Wrong number of arguments"
    assert (error.expected, error.got) == (1, 2)

  def test_too_few_arguments(self):
    error, _ = self.run_failing("x = hypot(1);")
    assert isinstance(error, ArityMismatchError)

  def test_empty_arguments_position(self):
    error, _ = self.run_failing("x = sin();")
    assert isinstance(error, ArityMismatchError)
    assert (error.line, error.column) == (1, 9)

  def test_undefined_identifier(self):
    error, output = self.run_failing("print z;")
    assert isinstance(error, UndefinedSymbolError)
    assert error.kind is ErrorKind.UNDEFINED_SYMBOL
    assert str(error) == "1:7: z not defined"
    assert output == ""

  def test_undefined_function(self):
    error, _ = self.run_failing("x = tan(1);")
    assert isinstance(error, UndefinedSymbolError)
    assert str(error) == "1:5: tan not defined"

  def test_function_referenced_as_value(self):
    error, _ = self.run_failing("x = sin;")
    assert isinstance(error, TypeMismatchError)
    assert str(error) == "1:5: Expected type number"

  def test_number_called_as_function(self):
    error, _ = self.run_failing("x = 1; y = x(2);")
    assert isinstance(error, TypeMismatchError)
    assert str(error) == "1:12: Function expected"

  def test_function_called_as_statement(self):
    error, _ = self.run_failing("sin(1);")
    assert isinstance(error, TypeMismatchError)
    assert str(error) == "1:1: Procedure expected"

  def test_undefined_procedure(self):
    error, _ = self.run_failing("plot(1);")
    assert isinstance(error, UndefinedSymbolError)

  def test_error_position_on_later_line(self):
    error, _ = self.run_failing("x = 1;\nprint x + y;")
    assert (error.line, error.column) == (2, 11)

  def test_fail_fast_keeps_earlier_output(self):
    error, output = self.run_failing("print 1; print z; print 2;")
    assert isinstance(error, UndefinedSymbolError)
    assert output == "1\n"

  def test_failed_assignment_leaves_table_unchanged(self):
    table = make_symbol_table()
    assert execute("x = 1;", table=table).ok
    result = execute("x = z;", table=table, out=io.StringIO())
    assert isinstance(result.error, UndefinedSymbolError)
    assert table_lookup(table, 'x').value == 1.0
    assert table_lookup(result.table, 'π').mutable is False

  def test_expression_evaluated_before_target_checks(self):
    error, _ = self.run_failing("π = z;")
    assert isinstance(error, UndefinedSymbolError)

  def test_arguments_evaluated_left_to_right(self):
    error, _ = self.run_failing("x = hypot(a, b);")
    assert str(error) == "1:11: a not defined"

  def test_arguments_evaluated_before_arity_check(self):
    error, _ = self.run_failing("x = sqrt(z, 1);")
    assert isinstance(error, UndefinedSymbolError)

  def test_syntax_error_reported_in_result(self):
    error, _ = self.run_failing("x = ;")
    assert error.kind is ErrorKind.SYNTAX

  def test_deeply_nested_program_reports_syntax_error(self):
    depth = 200
    out = io.StringIO()
    result = execute("print " + "(" * depth + "1" + ")" * depth + ";", out=out)
    if result.ok:
      assert out.getvalue() == "1\n"
    else:
      assert result.error.kind is ErrorKind.SYNTAX
      assert str(result.error) == "1:1: expression nested too deeply"

  def test_long_power_chain_reports_syntax_error(self):
    out = io.StringIO()
    result = execute("print 1" + " ** 1" * 300 + ";", out=out)
    if result.ok:
      assert out.getvalue() == "1\n"
    else:
      assert result.error.kind is ErrorKind.SYNTAX

  def test_evaluation_too_deep_is_positioned_at_statement(self, out):
    span = SourceSpan("deep.astro", 2, 3, 2, 8)
    node = CSTNode("NUMBER", 1.0, (), span)
    for _ in range(5000):
      node = CSTNode("NEGATION", "-", (node,), span)
    tree = CSTNode("PROGRAM", None, (CSTNode("PRINT", None, (node,), span),), span)
    with pytest.raises(AstroSyntaxError) as exc_info:
      run(tree, make_symbol_table(), out=out)
    assert str(exc_info.value) == "2:3: expression nested too deeply"
    assert exc_info.value.filename == "deep.astro"
    assert out.getvalue() == ""


class TestProcedureVariant:
  """print registered as a procedure"""

  def run_failing(self, source, config):
    result = execute(source, config, io.StringIO())
    assert not result.ok
    return result.error

  def test_print_wrong_arity(self, procedure_config):
    error = self.run_failing("print(1, 2);", procedure_config)
    assert isinstance(error, ArityMismatchError)

  def test_print_is_not_a_value(self, procedure_config):
    error = self.run_failing("x = print;", procedure_config)
    assert str(error) == "1:5: Expected type number"

  def test_print_is_not_a_function(self, procedure_config):
    error = self.run_failing("y = print(1);", procedure_config)
    assert str(error) == "1:5: Function expected"

  def test_print_cannot_be_assigned(self, procedure_config):
    error = self.run_failing("print = 3;", procedure_config)
    assert str(error) == "1:1: Cannot assign"

  def test_print_writes_to_table_stream(self, procedure_config, out):
    result = execute("print(2.5);", procedure_config, out)
    assert result.ok
    assert out.getvalue() == "2.5\n"


class TestInterpreterSession:
  """Interpreter objects keep their table between runs"""

  def test_table_persists(self, out):
    interpreter = create_interpreter(out=out)
    interpreter.run_source("x = 4;")
    interpreter.run_source("print x * 2;")
    assert out.getvalue() == "8\n"

  def test_run_source_raises(self, out):
    interpreter = create_interpreter(out=out)
    with pytest.raises(AstroRuntimeError):
      interpreter.run_source("print nope;")

  def test_reset(self, out):
    interpreter = create_interpreter(out=out)
    interpreter.run_source("x = 4;")
    interpreter.reset()
    result = interpreter.execute("print x;")
    assert isinstance(result.error, UndefinedSymbolError)

  def test_debug_interpreter_logs_bindings(self, out, caplog):
    interpreter = create_debug_interpreter(out=out)
    with caplog.at_level("DEBUG", logger="interpreter"):
      interpreter.run_source("x = 2;")
    assert interpreter.config.debug
    assert "Bound x = 2" in caplog.text

  def test_config_variant(self, out):
    interpreter = create_interpreter(AstroConfig(modulo=False), out)
    result = interpreter.execute("print 5 % 2;")
    assert result.error.kind is ErrorKind.SYNTAX
