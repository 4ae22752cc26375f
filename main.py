"""
PJScript - Main Entry Point
Runs script files and the interactive REPL
"""

import sys
import argparse
import os
import subprocess
from typing import List, Optional

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from environment import Environment
from error_handling import PJErrorHandler, PJInvariantError, enhance_diagnostic
from frame_graph import create_environment_dot, render_dot, write_dot
from interpreter import Evaluator, create_interpreter, create_debug_interpreter
from lexer import KEYWORDS, tokenize
from objects import is_error
from parsing import create_parser, create_debug_parser
from stdlib import ARRAY_METHODS, STRING_METHODS, create_builtins


VERSION = 'PJScript v0.1.0'
HISTORY_FILE = "~/.pjscript_history"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='pjscript',
      description='PJScript - a small dynamically typed scripting language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.pj                   # Run a script
  %(prog)s -i                          # Interactive mode
  %(prog)s --tokens script.pj          # Show the token stream
  %(prog)s --parse script.pj           # Show the parsed program
  %(prog)s --graph env.dot script.pj   # Run, then write the frame graph
  %(prog)s --graph env.pdf script.pj   # Run, then render the frame graph with Graphviz
  %(prog)s --debug script.pj           # Run with debug output
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='PJScript file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Print the token stream and exit'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Print the parsed program in canonical form and exit'
  )

  parser.add_argument(
      '--graph',
      metavar='OUT',
      help='Write the environment frame graph after running (DOT, or rendered by Graphviz for other suffixes)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Trace tokens and evaluated nodes'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def read_script(script_path: str) -> Optional[str]:
  """Read a script, printing a hint and returning None when it cannot be read"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found")
    print("  Hint: Check the file path and make sure the file exists")
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'")
    print("  Hint: Make sure you have read permissions for this file")
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print("  Hint: Make sure the file is a text file with UTF-8 encoding")
  return None


def show_tokens(source: str) -> None:
  for token in tokenize(source):
    print(f"{token.position:5d}  {token.kind.value:<16} {token.literal!r}")


def export_graph(evaluator: Evaluator, graph_path: str) -> bool:
  """Write the frame graph; a path not ending in .dot is rendered by Graphviz next to its DOT file"""
  base, suffix = os.path.splitext(graph_path)
  dot_path = graph_path if suffix in ('', '.dot') else base + '.dot'
  try:
    write_dot(create_environment_dot(evaluator.frames), dot_path)
  except OSError as e:
    print(f"Error: Cannot write frame graph to '{dot_path}': {e}")
    return False

  if dot_path != graph_path:
    try:
      render_dot(dot_path, graph_path, fmt=suffix[1:])
    except FileNotFoundError:
      print(f"Error: Cannot render '{graph_path}': Graphviz `dot` was not found")
      print(f"  Hint: Install Graphviz, or render {dot_path} yourself")
      return False
    except subprocess.CalledProcessError as e:
      print(f"Error: Graphviz could not render '{graph_path}': {e}")
      return False
  print(f"Frame graph written to {graph_path}")
  return True


def run_script_file(
  script_path: str,
  debug: bool = False,
  tokens: bool = False,
  parse_only: bool = False,
  graph_path: Optional[str] = None
) -> int:
  """Run a script file; returns the process exit status"""
  source = read_script(script_path)
  if source is None:
    return 1

  if tokens:
    show_tokens(source)
    return 0

  parser = create_debug_parser(source) if debug else create_parser(source)
  program = parser.parse_program()
  if parser.errors():
    handler = PJErrorHandler(source, script_path)
    print(handler.report(parser.diagnostics()))
    return 1

  if parse_only:
    print(program.stringify())
    return 0

  evaluator = create_debug_interpreter() if debug else create_interpreter()
  try:
    result = evaluator.eval(program, Environment())
  except PJInvariantError as e:
    print(f"Internal error while executing '{script_path}': {e}")
    return 1
  except RecursionError:
    print(f"Error: Maximum recursion depth exceeded while executing '{script_path}'")
    return 1

  status = 0
  if is_error(result):
    print(result.stringify())
    status = 1

  if graph_path and not export_graph(evaluator, graph_path):
    status = 1
  return status


# ============================================================================
# INTERACTIVE MODE
# ============================================================================

def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser(HISTORY_FILE)
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First run or unreadable history

  readline.set_history_length(1000)

  completions = sorted(
      set(KEYWORDS) | set(create_builtins()) | set(STRING_METHODS) | set(ARRAY_METHODS)
      | {'filter', 'map', 'reduce', ':env', ':help', ':graph', 'exit', 'quit'}
  )

  def completer(text, state):
    options = [word for word in completions if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def print_repl_help() -> None:
  print("REPL Commands:")
  print("  :env              - Show current bindings")
  print("  :graph <path>     - Write the frame graph (.dot, or .pdf/.png/.svg via Graphviz)")
  print("  :help             - Show this help")
  print("  exit / quit       - Exit REPL")
  print()
  print("Language features:")
  print("  x = 5                      - Assignment (first write declares)")
  print("  add = f(a, b) { a + b }    - Function literal")
  print("  double = f(x) => x * 2     - Arrow function")
  print("  [1, 2, 3].map(double)      - Array methods")
  print("  {name: \"pj\", size: 2}      - Record literal")
  print("  while (i < 3) { i = i + 1 } - Loop")


def show_env(env: Environment) -> None:
  print("Current environment:")
  if not env.bindings:
    print("  (no user-defined bindings)")
    return
  for name, value in env.bindings.items():
    val_str = value.stringify()
    if len(val_str) > 60:
      val_str = val_str[:57] + "..."
    print(f"  {name} = {val_str}")


def handle_repl_input(code: str, env: Environment, evaluator: Evaluator, debug: bool = False) -> bool:
  """Run one line of REPL input; returns False when the session should end"""
  stripped = code.strip()
  if not stripped:
    return True
  if stripped in ('exit', 'quit'):
    print("Exiting REPL.")
    return False

  if stripped == ':env':
    show_env(env)
    return True
  if stripped == ':help':
    print_repl_help()
    return True
  if stripped.startswith(':graph'):
    graph_path = stripped[len(':graph'):].strip()
    if not graph_path:
      print("Usage: :graph <path>")
    else:
      export_graph(evaluator, graph_path)
    return True

  parser = create_debug_parser(code) if debug else create_parser(code)
  program = parser.parse_program()
  if parser.errors():
    for message, location in parser.diagnostics():
      error = enhance_diagnostic(code, message, location, "<repl>")
      print(f"Parse error: {message}")
      print(f"  {error['source_line']}")
      print(f"  {' ' * (error['column'] - 1)}^")
    return True

  try:
    result = evaluator.eval(program, env)
  except PJInvariantError as e:
    print(f"Internal error: {e}")
    return True
  except RecursionError:
    print("Error: Maximum recursion depth exceeded")
    return True
  print(result.stringify())
  return True


def run_interactive_mode(debug: bool = False, graph_path: Optional[str] = None) -> None:
  """Run the REPL with one persistent root frame"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  evaluator = create_debug_interpreter() if debug else create_interpreter()
  session_env = Environment()

  while True:
    try:
      code = input(">> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break
    if not handle_repl_input(code, session_env, evaluator, debug):
      break

  if graph_path:
    export_graph(evaluator, graph_path)


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for PJScript"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.script:
    sys.exit(run_script_file(
        args.script,
        debug=args.debug,
        tokens=args.tokens,
        parse_only=args.parse,
        graph_path=args.graph,
    ))

  run_interactive_mode(debug=args.debug, graph_path=args.graph)


if __name__ == "__main__":
  main()
