"""
Astro Programming Language - Main Entry Point
Runs a program given on the command line or in a file
"""

import atexit
import json
import os
import sys
import argparse
from dataclasses import replace
from typing import List, Optional

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from config import AstroConfig, config_from_env
from environment import table_names, user_bindings
from error_handling import AstroError, AstroSyntaxError, format_diagnostic, get_context_lines
from interpreter import create_interpreter, execute
from logging_config import get_logger, setup_logging
from parsing import create_parser, cst_to_dict, pretty_print_cst
from utilities import format_number

VERSION = "Astro v1.0.0"

logger = get_logger(__name__)


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='astro',
      description='Astro - a tiny language for numeric scripts',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s 'x = 2; print x ** 10;'     # Run a program
  %(prog)s -f script.astro             # Run a program file
  %(prog)s --parse -f script.astro     # Show the syntax tree
  %(prog)s --parse --json 'x = 1;'     # Syntax tree as JSON
  %(prog)s -i                          # Interactive mode
  %(prog)s --print-procedure 'print(1);'
        """
  )

  parser.add_argument(
      'program',
      nargs='?',
      help='Astro program text to execute'
  )

  parser.add_argument(
      '-f', '--file',
      help='Read the program from a file'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse the program and show the syntax tree'
  )

  parser.add_argument(
      '--json',
      action='store_true',
      help='With --parse, print the syntax tree as JSON'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug logging and source context in diagnostics'
  )

  parser.add_argument(
      '--no-modulo',
      action='store_true',
      help="Reject the '%%' operator"
  )

  parser.add_argument(
      '--no-negation',
      action='store_true',
      help="Reject unary '-'"
  )

  parser.add_argument(
      '--print-procedure',
      action='store_true',
      help="Treat print as a procedure called as print(x); instead of a keyword"
  )

  parser.add_argument(
      '--log-level',
      help='Logging level (DEBUG, INFO, WARNING, ERROR)'
  )

  parser.add_argument(
      '--log-file',
      help='Write log records to this file instead of stderr'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def build_config(args: argparse.Namespace) -> AstroConfig:
  """Environment settings, overridden by command line flags"""
  config = config_from_env()
  if args.no_modulo:
    config = replace(config, modulo=False)
  if args.no_negation:
    config = replace(config, negation=False)
  if args.print_procedure:
    config = replace(config, print_keyword=False)
  if args.debug:
    config = replace(config, debug=True, log_level="DEBUG")
  if args.log_level:
    config = replace(config, log_level=args.log_level.upper())
  return config


def report_error(error: AstroError, source: str, debug: bool = False) -> None:
  """Write one diagnostic line to stderr (plus source context when debugging)"""
  print(format_diagnostic(error), file=sys.stderr)
  if debug and error.line:
    context = get_context_lines(source, error.line, error.column)
    if context:
      print(context, file=sys.stderr)
    if isinstance(error, AstroSyntaxError) and error.suggestions:
      for suggestion in error.suggestions:
        print(f"  hint: {suggestion}", file=sys.stderr)


def read_source(args: argparse.Namespace) -> Optional[str]:
  """Program text from the file option or the positional argument"""
  if args.file:
    with open(args.file, 'r', encoding='utf-8') as f:
      return f.read()
  return args.program


def parse_program(source: str, filename: str, config: AstroConfig, as_json: bool = False) -> int:
  """Parse a program and show the syntax tree"""
  parser = create_parser(config)
  try:
    tree = parser.parse_string(source, filename)
  except AstroSyntaxError as e:
    report_error(e, source, config.debug)
    return 1
  if as_json:
    print(json.dumps(cst_to_dict(tree), indent=2, ensure_ascii=False))
  else:
    print(pretty_print_cst(tree), end='')
  return 0


def run_program(source: str, filename: str, config: AstroConfig) -> int:
  """Run a program; statements after a failure never execute"""
  result = execute(source, config, filename=filename)
  if not result.ok:
    report_error(result.error, source, config.debug)
    return 1
  return 0


REPL_COMMANDS = [":parse", ":env", ":reset", ":help", "exit"]


def setup_readline(interpreter) -> None:
  """Setup readline with history and completion of bound names"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.astro_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    logger.debug("No readable history at %s", history_file)
  readline.set_history_length(1000)

  def completer(text, state):
    candidates = REPL_COMMANDS + table_names(interpreter.table)
    options = [name for name in candidates if name.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  def save_history():
    try:
      readline.write_history_file(history_file)
    except OSError as e:
      logger.warning("Could not save history to %s: %s", history_file, e)

  atexit.register(save_history)


def run_interactive_mode(config: AstroConfig) -> int:
  """Read statements line by line against one session symbol table"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")

  interpreter = create_interpreter(config)
  parser = create_parser(config)
  setup_readline(interpreter)

  while True:
    try:
      code = input("astro> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      return 0

    stripped = code.strip()
    if not stripped:
      continue

    if stripped == "exit":
      return 0

    if stripped == ":help":
      print("REPL Commands:")
      print("  :parse <program>  - Show the syntax tree")
      print("  :env              - Show user bindings")
      print("  :reset            - Forget all user bindings")
      print("  :help             - Show this help")
      print("  exit              - Exit REPL")
      continue

    if stripped == ":env":
      bindings = user_bindings(interpreter.table)
      if not bindings:
        print("  (no user-defined bindings)")
      for name, binding in sorted(bindings.items()):
        print(f"  {name} = {format_number(binding.value)}")
      continue

    if stripped == ":reset":
      interpreter.reset()
      continue

    if stripped.startswith(":parse "):
      text = stripped[len(":parse "):]
      try:
        print(pretty_print_cst(parser.parse_string(text, "<stdin>")), end='')
      except AstroSyntaxError as e:
        report_error(e, text, config.debug)
      continue

    result = interpreter.execute(code, "<stdin>")
    if not result.ok:
      report_error(result.error, code, config.debug)


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for Astro"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  try:
    config = build_config(args)
  except ValueError as e:
    arg_parser.error(str(e))

  setup_logging(config.log_level, args.log_file)
  logger.debug("Running with %s", config)

  if args.interactive:
    return run_interactive_mode(config)

  if args.json and not args.parse:
    arg_parser.error("--json only applies with --parse")

  if args.file and args.program:
    arg_parser.error("give the program either as text or with --file, not both")

  try:
    source = read_source(args)
  except FileNotFoundError:
    print(f"Error: Script file '{args.file}' not found", file=sys.stderr)
    return 1
  except PermissionError:
    print(f"Error: Permission denied reading '{args.file}'", file=sys.stderr)
    return 1
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{args.file}': {e}", file=sys.stderr)
    return 1

  if source is None:
    arg_parser.print_help()
    return 2

  filename = args.file or "<program>"
  if args.parse:
    return parse_program(source, filename, config, args.json)
  return run_program(source, filename, config)


if __name__ == "__main__":
  sys.exit(main())
