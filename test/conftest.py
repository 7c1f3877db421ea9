"""
Test configuration for the Astro interpreter tests
"""

import io
import logging
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import AstroConfig


@pytest.fixture
def out():
  """In-memory output stream for program output"""
  return io.StringIO()


@pytest.fixture
def procedure_config():
  """Variant where print is a procedure called as print(x);"""
  return AstroConfig(print_keyword=False)


@pytest.fixture(autouse=True)
def reset_logging():
  """Drop handlers installed by setup_logging; they hold this test's streams"""
  yield
  root = logging.getLogger()
  for handler in root.handlers[:]:
    if type(handler) in (logging.StreamHandler, logging.FileHandler):
      root.removeHandler(handler)
      handler.close()
