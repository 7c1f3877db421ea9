"""
Astro Symbol Table
Tagged bindings and the per-run name -> binding mapping
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, TextIO

from config import AstroConfig, DEFAULT_CONFIG
from stdlib import BUILTIN_CONSTANTS, BUILTIN_FUNCTIONS, make_print_procedure


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class BindingKind(Enum):
  NUMBER = "Number"
  FUNCTION = "Function"
  PROCEDURE = "Procedure"


@dataclass(frozen=True)
class Binding:
  """What one identifier denotes; only the fields for its kind are set"""
  kind: BindingKind
  value: Optional[float] = None
  callable: Optional[Callable[..., Optional[float]]] = None
  param_count: int = 0
  mutable: bool = False

  @property
  def is_number(self) -> bool:
    return self.kind is BindingKind.NUMBER


def make_number(value: float, mutable: bool = True) -> Binding:
  """Create a number binding"""
  return Binding(BindingKind.NUMBER, value=float(value), mutable=mutable)


def make_function(routine: Callable[..., float], param_count: int) -> Binding:
  """Create a function binding (returns one number)"""
  return Binding(BindingKind.FUNCTION, callable=routine, param_count=param_count)


def make_procedure(routine: Callable[..., None], param_count: int) -> Binding:
  """Create a procedure binding (side effect only)"""
  return Binding(BindingKind.PROCEDURE, callable=routine, param_count=param_count)


def make_environment(bindings: Optional[Dict[str, Binding]] = None) -> Dict:
  """Create an empty symbol table"""
  return {
      'bindings': dict(bindings or {}),
      'builtins': frozenset((bindings or {}).keys()),
  }


# ============================================================================
# TABLE OPERATIONS
# ============================================================================

def table_lookup(table: Dict, name: str) -> Optional[Binding]:
  """Binding for name, or None when unbound"""
  return table['bindings'].get(name)


def table_define(table: Dict, name: str, binding: Binding) -> None:
  """Insert or replace the binding for name

  Callers validate beforehand: name must not denote a function or procedure,
  and an existing number binding must be mutable.
  """
  table['bindings'][name] = binding


def table_names(table: Dict) -> List[str]:
  return sorted(table['bindings'])


def user_bindings(table: Dict) -> Dict[str, Binding]:
  """Bindings created by the running program"""
  return {name: binding for name, binding in table['bindings'].items()
          if name not in table['builtins']}


# ============================================================================
# BUILT-IN SETUP
# ============================================================================

def create_builtin_bindings(config: AstroConfig = DEFAULT_CONFIG,
                            out: Optional[TextIO] = None) -> Dict[str, Binding]:
  """Constants and routines every run starts with"""
  bindings = {}
  for name, value in BUILTIN_CONSTANTS.items():
    bindings[name] = make_number(value, mutable=False)
  for name, (routine, param_count) in BUILTIN_FUNCTIONS.items():
    bindings[name] = make_function(routine, param_count)

  # with the print keyword reserved, `print` can never be called by name
  if not config.print_keyword:
    bindings['print'] = make_procedure(make_print_procedure(out), 1)

  return bindings


def make_symbol_table(config: Optional[AstroConfig] = None,
                      out: Optional[TextIO] = None) -> Dict:
  """Fresh symbol table seeded with built-ins; one per run"""
  return make_environment(create_builtin_bindings(config or DEFAULT_CONFIG, out))
