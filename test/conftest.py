"""
Test configuration for SCM interpreter tests
"""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import create_interpreter
from expressions import show_value


@pytest.fixture
def output():
  """Captures text written by display"""
  return io.StringIO()


@pytest.fixture
def interp(output):
  """A fresh interpreter whose display output goes to the output fixture"""
  return create_interpreter(output=output)


@pytest.fixture
def run(interp):
  """Evaluate source text and return the printed form of the last value"""
  def run_text(text):
    return show_value(interp.run(text)[-1])
  return run_text
