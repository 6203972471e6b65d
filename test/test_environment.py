"""
Environment chain tests
"""

import pytest

from environment import (
  make_runtime_env,
  extend_child,
  env_bind,
  env_lookup,
  env_contains,
  env_assign,
  env_names
)
from error_handling import UnboundVariableError
from numeric import make_number


class TestEnvironment:

  @pytest.fixture
  def root(self):
    env = make_runtime_env()
    env_bind(env, "x", make_number(1))
    return env

  def test_lookup_walks_outward(self, root):
    child = extend_child(extend_child(root))
    assert env_lookup(child, "x") == make_number(1)
    assert env_lookup(child, "missing") is None

  def test_bind_only_touches_own_frame(self, root):
    child = extend_child(root)
    env_bind(child, "x", make_number(2))
    assert env_lookup(child, "x") == make_number(2)
    assert env_lookup(root, "x") == make_number(1)

  def test_assign_mutates_defining_frame(self, root):
    child = extend_child(root)
    env_assign(child, "x", make_number(5))
    assert "x" not in child['bindings']
    assert env_lookup(root, "x") == make_number(5)

  def test_assign_unbound(self, root):
    with pytest.raises(UnboundVariableError):
      env_assign(root, "y", make_number(1))

  def test_contains_and_names(self, root):
    child = extend_child(root)
    env_bind(child, "y", make_number(2))
    env_bind(child, "x", make_number(3))
    assert env_contains(child, "x")
    assert not env_contains(root, "y")
    assert env_names(child) == ["y", "x"]
