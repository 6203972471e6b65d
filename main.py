"""
SCM - Main Entry Point
A small Scheme interpreter with exact rationals, closures and mutable pairs
"""

import sys
import argparse
from pathlib import Path
from typing import Callable, List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from environment import env_names, env_lookup
from error_handling import SchemeRuntimeError, SchemeParseError
from expressions import show_value
from interpreter import Interpreter, create_interpreter
from parsing import create_parser, is_incomplete, pretty_print_cst
from stdlib import list_builtin_functions, SPECIAL_FORMS

VERSION = "SCM v0.3.0"
PROMPT = "scm> "
CONTINUATION_PROMPT = "...> "


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='SCM - a small Scheme interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.scm             # Run a script
  %(prog)s -i                     # Interactive mode
  %(prog)s -e "(+ 1/2 1/3)"       # Evaluate an expression
  %(prog)s --parse script.scm     # Parse and show syntax tree
  %(prog)s --debug script.scm     # Run with debug output
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '-e', '--eval',
      metavar='EXPR',
      help='Evaluate EXPR and print the results'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse the input and show the syntax tree (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


# ============================================================================
# EVALUATION AND PRINTING
# ============================================================================

def report_error(error: BaseException, debug: bool = False) -> None:
  """Evaluation failures print a generic marker; details only with --debug"""
  print("RuntimeError")
  if debug:
    print(f"  {error}")


def eval_and_print(interpreter: Interpreter, text: str, debug: bool = False) -> bool:
  """
  Evaluate every form in text, printing each non-empty result.

  Returns False once a form yields the exit sentinel.
  """
  try:
    for syntax in interpreter.parser.parse_string(text):
      value = interpreter.eval_syntax(syntax)
      if value['type'] == "Exit":
        return False
      rendered = show_value(value)
      if rendered:
        print(rendered)
  except (SchemeRuntimeError, SchemeParseError, RecursionError) as e:
    report_error(e, debug)
  return True


def parse_text(text: str, debug: bool = False) -> None:
  """Show the syntax tree of every form in text"""
  parser = create_parser(debug=debug)
  try:
    for cst in parser.parse_string(text):
      print(pretty_print_cst(cst), end="")
  except SchemeParseError as e:
    print(f"Parse error: {e}")


def run_script_file(script_path: str, debug: bool = False,
                    interpreter: Optional[Interpreter] = None) -> int:
  """Run a script; returns the process exit status"""
  if interpreter is None:
    interpreter = create_interpreter(debug=debug)
  try:
    interpreter.run_file(script_path)
  except (SchemeRuntimeError, SchemeParseError, RecursionError) as e:
    report_error(e, debug)
    return 1
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    return 1
  except OSError as e:
    print(f"Error: Cannot read '{script_path}': {e}")
    return 1
  return 0


# ============================================================================
# INTERACTIVE MODE
# ============================================================================

def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.scm_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # no history yet
  readline.set_history_length(1000)

  completions = sorted(list_builtin_functions() + list(SPECIAL_FORMS) +
                       [":parse", ":env", ":help", "(exit)"])

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.set_completer_delims(" \t\n()'\"")
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def show_help() -> None:
  print("REPL Commands:")
  print("  :parse <expr>     - Show the syntax tree")
  print("  :env              - Show user-defined bindings")
  print("  :help             - Show this help")
  print("  (exit)            - Exit REPL")


def show_env(interpreter: Interpreter) -> None:
  names = env_names(interpreter.global_env)
  if not names:
    print("  (no user-defined bindings)")
    return
  for name in names:
    val_str = show_value(env_lookup(interpreter.global_env, name))
    if len(val_str) > 60:
      val_str = val_str[:57] + "..."
    print(f"  {name} = {val_str}")


def handle_command(interpreter: Interpreter, code: str, debug: bool = False) -> bool:
  """Run a :command line; returns False when code is not a command"""
  stripped = code.strip()
  if stripped.startswith(":parse "):
    parse_text(stripped[len(":parse "):], debug)
  elif stripped == ":env":
    show_env(interpreter)
  elif stripped == ":help":
    show_help()
  else:
    return False
  return True


def read_form(read_line: Callable[[str], str]) -> str:
  """Accumulate lines until the text holds only complete forms"""
  text = read_line(PROMPT)
  while is_incomplete(text):
    text += "\n" + read_line(CONTINUATION_PROMPT)
  return text


def run_interactive_mode(debug: bool = False, read_line: Callable[[str], str] = input,
                         interpreter: Optional[Interpreter] = None) -> None:
  """Read-eval-print loop; ends on (exit) or end of input"""
  if interpreter is None:
    interpreter = create_interpreter(debug=debug)
  if read_line is input:
    setup_readline()

  while True:
    try:
      code = read_form(read_line)
    except EOFError:
      print()
      break
    except KeyboardInterrupt:
      print()
      continue

    if not code.strip():
      continue
    if code.strip().startswith(":") and handle_command(interpreter, code, debug):
      continue
    if not eval_and_print(interpreter, code, debug):
      break


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for SCM"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.eval is not None:
    if args.parse:
      parse_text(args.eval, args.debug)
    else:
      eval_and_print(create_interpreter(debug=args.debug), args.eval, args.debug)
    return 0

  if args.script:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist")
      return 1
    if args.parse:
      parse_text(Path(args.script).read_text(encoding='utf-8'), args.debug)
      return 0
    interpreter = create_interpreter(debug=args.debug)
    status = run_script_file(args.script, args.debug, interpreter)
    if not args.interactive:
      return status
  else:
    interpreter = create_interpreter(debug=args.debug)

  print(f"{VERSION} - Interactive Mode")
  print("Type (exit) to quit, ':help' for commands")
  run_interactive_mode(debug=args.debug, interpreter=interpreter)
  return 0


if __name__ == "__main__":
  sys.exit(main())
