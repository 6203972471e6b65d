"""
SCM runtime environments
A chain of mutable frames; every closure shares the frame it was created in
"""

from typing import Dict, List, Optional

from error_handling import UnboundVariableError


def make_runtime_env(parent: Optional[Dict] = None, bindings: Optional[Dict] = None) -> Dict:
  """Create a frame holding its own bindings and a reference to its parent"""
  return {
      'parent': parent,
      'bindings': dict(bindings) if bindings else {}
  }


def extend_child(parent: Dict) -> Dict:
  """Create an empty frame parented to parent"""
  return make_runtime_env(parent)


def env_bind(env: Dict, name: str, value: Dict) -> None:
  """Insert or overwrite name in env's own frame; parents are never searched"""
  env['bindings'][name] = value


def env_lookup(env: Dict, name: str) -> Optional[Dict]:
  """Look up a value in the environment chain"""
  frame = env
  while frame is not None:
    if name in frame['bindings']:
      return frame['bindings'][name]
    frame = frame['parent']
  return None


def env_contains(env: Dict, name: str) -> bool:
  frame = env
  while frame is not None:
    if name in frame['bindings']:
      return True
    frame = frame['parent']
  return False


def env_assign(env: Dict, name: str, value: Dict) -> None:
  """Mutate the innermost frame binding name; set! never creates bindings"""
  frame = env
  while frame is not None:
    if name in frame['bindings']:
      frame['bindings'][name] = value
      return
    frame = frame['parent']
  raise UnboundVariableError(f"cannot set! unbound variable: {name}")


def env_names(env: Dict) -> List[str]:
  """All visible names, innermost binding first"""
  names = []
  seen = set()
  frame = env
  while frame is not None:
    for name in frame['bindings']:
      if name not in seen:
        seen.add(name)
        names.append(name)
    frame = frame['parent']
  return names
