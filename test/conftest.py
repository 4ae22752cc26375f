"""
Test configuration for PJScript tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from environment import Environment
from interpreter import Evaluator
from parsing import Parser


def parse_program(source):
  """Parse source, failing the test on any parser error"""
  parser = Parser(source)
  program = parser.parse_program()
  assert parser.errors() == [], f"unexpected parse errors: {parser.errors()}"
  return program


def run(source, evaluator=None, env=None):
  """Evaluate source in a fresh root frame unless one is given"""
  program = parse_program(source)
  evaluator = evaluator or Evaluator()
  return evaluator.eval(program, env if env is not None else Environment())


@pytest.fixture
def evaluator():
  return Evaluator()


@pytest.fixture
def env():
  return Environment()
