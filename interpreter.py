"""
Astro Interpreter
Recursive evaluation of the syntax tree against a symbol table
Side effects (printing) go to the run's output stream
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, TextIO

from config import AstroConfig, DEFAULT_CONFIG
from environment import (
  BindingKind,
  Binding,
  make_number,
  make_symbol_table,
  table_define,
  table_lookup,
)
from error_handling import AstroError, nesting_error
from logging_config import get_logger
from parsing import CSTNode, parse
from stdlib import BINARY_OPERATORS, astro_neg, write_number
from utilities import (
  arity_error,
  cannot_assign_error,
  expected_callable_error,
  expected_number_error,
  format_number,
  not_writable_error,
  undefined_error,
)

logger = get_logger(__name__)


# ============================================================================
# DATA STRUCTURES
# ============================================================================

def make_execution_context(config: Optional[AstroConfig] = None,
                           out: Optional[TextIO] = None) -> Dict:
  """Per-run settings threaded through evaluation"""
  config = config or DEFAULT_CONFIG
  return {
      'config': config,
      'out': out,
      'debug': config.debug,
  }


@dataclass
class ExecutionResult:
  """Outcome of running one program; `error.kind` says why it stopped"""
  ok: bool
  error: Optional[AstroError]
  table: Dict


# ============================================================================
# STATEMENTS
# ============================================================================

def run(tree: CSTNode, table: Dict, config: Optional[AstroConfig] = None,
        out: Optional[TextIO] = None) -> None:
  """Execute every statement in order; the first error stops the run"""
  context = make_execution_context(config, out)
  for statement in tree.children:
    try:
      eval_statement(statement, table, context)
    except RecursionError:
      span = statement.span
      raise nesting_error(span.start_line, span.start_col, span.filename) from None


def eval_statement(node: CSTNode, table: Dict, context: Dict) -> None:
  if context['debug']:
    logger.debug("Executing %s at %s", node.type, node.span)

  node_type = node.type
  if node_type == "ASSIGNMENT":
    eval_assignment(node, table, context)
  elif node_type == "CALL_STATEMENT":
    eval_call_statement(node, table, context)
  elif node_type == "PRINT":
    eval_print(node, table, context)
  else:
    raise ValueError(f"Unknown statement type: {node_type}")


def eval_assignment(node: CSTNode, table: Dict, context: Dict) -> None:
  """id = Exp ;"""
  value = eval_expression(node.children[0], table, context)
  name = node.value
  entity = table_lookup(table, name)
  if entity is not None:
    if not entity.is_number:
      raise cannot_assign_error(node.span)
    if not entity.mutable:
      raise not_writable_error(name, node.span)
  table_define(table, name, make_number(value))

  if context['debug']:
    logger.debug("Bound %s = %s", name, format_number(value))


def eval_call_statement(node: CSTNode, table: Dict, context: Dict) -> None:
  """id ( Args ) ;"""
  args_node = node.children[0]
  arguments = eval_args(args_node, table, context)
  procedure = resolve_callable(node, args_node, arguments, table, BindingKind.PROCEDURE)
  procedure.callable(*arguments)


def eval_print(node: CSTNode, table: Dict, context: Dict) -> None:
  """print Exp ;"""
  value = eval_expression(node.children[0], table, context)
  write_number(value, context['out'])


# ============================================================================
# EXPRESSIONS
# ============================================================================

def eval_expression(node: CSTNode, table: Dict, context: Dict) -> float:
  """Evaluate an expression node to a float"""
  node_type = node.type

  if node_type == "NUMBER":
    return node.value
  elif node_type == "IDENTIFIER":
    return eval_identifier(node, table, context)
  elif node_type == "BINARY":
    return eval_binary(node, table, context)
  elif node_type == "NEGATION":
    return astro_neg(eval_expression(node.children[0], table, context))
  elif node_type == "CALL":
    return eval_call(node, table, context)
  else:
    raise ValueError(f"Unknown expression type: {node_type}")


def eval_identifier(node: CSTNode, table: Dict, context: Dict) -> float:
  entity = table_lookup(table, node.value)
  if entity is None:
    raise undefined_error(node.value, node.span)
  if not entity.is_number:
    raise expected_number_error(node.span)
  return entity.value


def eval_binary(node: CSTNode, table: Dict, context: Dict) -> float:
  left, right = node.children
  x = eval_expression(left, table, context)
  y = eval_expression(right, table, context)
  return BINARY_OPERATORS[node.value](x, y)


def eval_call(node: CSTNode, table: Dict, context: Dict) -> float:
  """id ( Args ) inside an expression"""
  args_node = node.children[0]
  arguments = eval_args(args_node, table, context)
  function = resolve_callable(node, args_node, arguments, table, BindingKind.FUNCTION)
  return function.callable(*arguments)


def eval_args(args_node: CSTNode, table: Dict, context: Dict) -> List[float]:
  """Arguments, left to right"""
  return [eval_expression(arg, table, context) for arg in args_node.children]


def resolve_callable(node: CSTNode, args_node: CSTNode, arguments: List[float],
                     table: Dict, kind: BindingKind) -> Binding:
  """Look up a callee after its arguments are evaluated and check kind and arity"""
  entity = table_lookup(table, node.value)
  if entity is None:
    raise undefined_error(node.value, node.span)
  if entity.kind is not kind:
    raise expected_callable_error(kind.value, node.span)
  if len(arguments) != entity.param_count:
    raise arity_error(entity.param_count, len(arguments), args_node.span)
  return entity


# ============================================================================
# ENTRY POINTS
# ============================================================================

def execute(source: str, config: Optional[AstroConfig] = None, out: Optional[TextIO] = None,
            table: Optional[Dict] = None, filename: str = "<input>") -> ExecutionResult:
  """Parse and run a program, reporting failure in the result instead of raising"""
  config = config or DEFAULT_CONFIG
  if table is None:
    table = make_symbol_table(config, out)

  try:
    tree = parse(source, config, filename)
    run(tree, table, config, out)
  except AstroError as e:
    logger.debug("Run stopped with %s: %s", e.kind.value, e)
    return ExecutionResult(False, e, table)

  return ExecutionResult(True, None, table)


class AstroInterpreter:
  """Interpreter whose symbol table persists across calls (one session)"""

  def __init__(self, config: Optional[AstroConfig] = None, out: Optional[TextIO] = None):
    self.config = config or DEFAULT_CONFIG
    self.out = out
    self.table = make_symbol_table(self.config, out)

  def run_tree(self, tree: CSTNode) -> None:
    run(tree, self.table, self.config, self.out)

  def run_source(self, text: str, filename: str = "<input>") -> None:
    self.run_tree(parse(text, self.config, filename))

  def execute(self, text: str, filename: str = "<input>") -> ExecutionResult:
    return execute(text, self.config, self.out, self.table, filename)

  def reset(self) -> None:
    """Start over from a freshly seeded table"""
    self.table = make_symbol_table(self.config, self.out)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(config: Optional[AstroConfig] = None,
                       out: Optional[TextIO] = None) -> AstroInterpreter:
  """Factory function returning an interpreter"""
  return AstroInterpreter(config, out)


def create_debug_interpreter(config: Optional[AstroConfig] = None,
                             out: Optional[TextIO] = None) -> AstroInterpreter:
  """Factory function returning a debug interpreter"""
  return AstroInterpreter(replace(config or DEFAULT_CONFIG, debug=True), out)
