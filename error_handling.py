"""
Error handling for the SCM interpreter
Runtime error taxonomy plus enhanced reader error messages
"""

from typing import List, Optional, Dict
from pyparsing import ParseException
import re


# ============================================================================
# RUNTIME ERROR TAXONOMY
# ============================================================================

class SchemeRuntimeError(Exception):
  """Base class for every failure raised while translating or evaluating"""
  kind = "RuntimeError"

  def __init__(self, message: str):
    self.message = message
    super().__init__(message)

  def __str__(self) -> str:
    return f"{self.kind}: {self.message}"


class UnboundVariableError(SchemeRuntimeError):
  """Identifier resolves to neither a binding, a primitive nor a keyword"""
  kind = "UnboundVariable"


class ArityError(SchemeRuntimeError):
  """Wrong operand count for an operator, special form or procedure"""
  kind = "ArityError"


class SchemeTypeError(SchemeRuntimeError):
  """Operand has the wrong value kind for an operation"""
  kind = "TypeError"


class DivisionByZeroError(SchemeRuntimeError):
  kind = "DivisionByZero"


class NumericOverflowError(SchemeRuntimeError):
  kind = "NumericOverflow"


class MalformedFormError(SchemeRuntimeError):
  """Special-form shape violated"""
  kind = "MalformedForm"


class NotAProcedureError(SchemeRuntimeError):
  kind = "NotAProcedure"


# ============================================================================
# READER ERROR DETAILS
# ============================================================================

def make_parse_details(
    line: int,
    column: int,
    offending: str,
    expected: str = "",
    excerpt: str = "",
    hints: Optional[List[str]] = None
) -> Dict:
  """Where and why the reader stopped"""
  return {
      'line': line,
      'column': column,
      'offending': offending,
      'expected': expected,
      'excerpt': excerpt,
      'hints': hints or []
  }


def source_excerpt(source_text: str, line_num: int, col_num: int, radius: int = 1) -> str:
  """The offending line and its neighbours, with a caret under the column"""
  lines = source_text.split('\n')
  first = max(1, line_num - radius)
  last = min(len(lines), line_num + radius)
  width = len(str(last))

  rendered = []
  for number in range(first, last + 1):
    rendered.append(f"  {number:>{width}} | {lines[number - 1]}")
    if number == line_num:
      rendered.append(f"  {'':>{width}} | {' ' * (col_num - 1)}^")
  return '\n'.join(rendered)


def extract_expected(exc: ParseException) -> str:
  """The grammar element pyparsing was looking for"""
  expected_match = re.search(r"Expected\s+(.+?)(?:,\s+found|\s+\(|$)", str(exc))
  return expected_match.group(1) if expected_match else "datum"


def offending_token(source_text: str, loc: int) -> str:
  """The atom or delimiter at loc, or a marker for the end of input"""
  if loc >= len(source_text):
    return "end of input"
  match = re.match(r"[()']|[^\s()';]+", source_text[loc:])
  return match.group(0) if match else source_text[loc]


def generate_suggestions(got: str, source_text: str) -> List[str]:
  """Hints keyed on the offending token"""
  suggestions = []

  if got == ")":
    suggestions.append("unbalanced ')': remove it or add a matching '('")

  if any(bracket in got for bracket in "[]{}"):
    suggestions.append("only parentheses delimit lists")

  if got.startswith("#"):
    suggestions.append("booleans are written #t, #f, #true or #false")

  if source_text.count('"') % 2 == 1:
    suggestions.append("a string literal is missing its closing '\"'")

  return suggestions


# ============================================================================
# READER ERRORS
# ============================================================================

class SchemeParseError(Exception):
  """Reader error, optionally carrying the position and hints it was found with"""

  def __init__(self, message: str, details: Optional[Dict] = None):
    self.message = message
    self.details = details
    super().__init__(message)

  @property
  def line(self) -> int:
    return self.details['line'] if self.details else 0

  @property
  def column(self) -> int:
    return self.details['column'] if self.details else 0

  def __str__(self) -> str:
    if not self.details:
      return self.message

    details = self.details
    parts = [f"line {details['line']}, column {details['column']}: {self.message}"]
    parts.append(f"  found {details['offending']}, expected {details['expected']}")
    if details['excerpt']:
      parts.append(details['excerpt'])
    for hint in details['hints']:
      parts.append(f"  hint: {hint}")
    return '\n'.join(parts)


class IncompleteInputError(SchemeParseError):
  """Source ended inside an unfinished form"""
  pass


def parse_error_from_exception(exc: ParseException, source_text: str) -> SchemeParseError:
  """Convert a pyparsing exception to a SchemeParseError"""
  offending = offending_token(source_text, exc.loc)
  details = make_parse_details(
      line=exc.lineno,
      column=exc.column,
      offending=offending,
      expected=extract_expected(exc),
      excerpt=source_excerpt(source_text, exc.lineno, exc.column),
      hints=generate_suggestions(offending, source_text)
  )
  return SchemeParseError("cannot read datum", details)
