"""
SCM Reader
Turns source text into a generic syntax tree of CSTNodes with source spans
"""

from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass, field

from pyparsing import (
    Forward, Regex, QuotedString, Suppress, ZeroOrMore, StringEnd,
    ParseException, ParserElement, lineno, col
)

from error_handling import (
    SchemeParseError,
    IncompleteInputError,
    parse_error_from_exception
)

# Enable packrat parsing for performance
ParserElement.enable_packrat()


@dataclass(frozen=True)
class SourceSpan:
    """Source location of a syntax node"""
    filename: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
        return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


@dataclass(frozen=True)
class CSTNode:
    """Syntax tree node: NUMBER, RATIONAL, SYMBOL, STRING, BOOLEAN or LIST"""
    type: str
    value: Any
    children: List['CSTNode'] = field(default_factory=list)
    span: Optional[SourceSpan] = None

    def __str__(self) -> str:
        if self.type == "LIST":
            children_str = " ".join(str(child) for child in self.children)
            return f"({children_str})"
        if self.type == "RATIONAL":
            return f"{self.value[0]}/{self.value[1]}"
        if self.type == "STRING":
            return f'"{self.value}"'
        if self.type == "BOOLEAN":
            return "#t" if self.value else "#f"
        return str(self.value)


def make_list_node(children: List[CSTNode], span: Optional[SourceSpan] = None) -> CSTNode:
    return CSTNode("LIST", None, list(children), span)


def make_symbol_node(name: str, span: Optional[SourceSpan] = None) -> CSTNode:
    return CSTNode("SYMBOL", name, [], span)


# ============================================================================
# INPUT COMPLETENESS
# ============================================================================

def paren_depth(text: str) -> Tuple[int, bool]:
    """Net open-paren count ignoring strings and ; comments, and whether
    the text ends inside a string literal."""
    depth = 0
    in_string = False
    in_comment = False
    escaped = False
    for ch in text:
        if in_comment:
            if ch == '\n':
                in_comment = False
        elif in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == ';':
            in_comment = True
        elif ch == '"':
            in_string = True
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
    return depth, in_string


def is_incomplete(text: str) -> bool:
    """True when text stops inside an open list, a string, or after a bare quote"""
    depth, in_string = paren_depth(text)
    if in_string or depth > 0:
        return True
    return text.rstrip().endswith("'")


# ============================================================================
# GRAMMAR
# ============================================================================

# Characters that terminate an atom
DELIMITER = r"(?=[\s()';\"]|$)"


class SchemeGrammar:
    """S-expression grammar definition using pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.filename = "<input>"
        self._setup_grammar()

    def _span(self, source: str, loc: int, text: str) -> SourceSpan:
        line = lineno(loc, source)
        column = col(loc, source)
        return SourceSpan(self.filename, line, column, line, column + len(text), text)

    def _setup_grammar(self):
        """Setup the datum grammar"""
        expression = Forward()

        def make_integer(s, loc, t):
            return CSTNode("NUMBER", int(t[0]), [], self._span(s, loc, t[0]))

        def make_rational(s, loc, t):
            numerator, denominator = t[0].split('/')
            return CSTNode("RATIONAL", (int(numerator), int(denominator)), [],
                           self._span(s, loc, t[0]))

        def make_boolean(s, loc, t):
            return CSTNode("BOOLEAN", t[0] in ("#t", "#true"), [], self._span(s, loc, t[0]))

        def make_string(s, loc, t):
            return CSTNode("STRING", t[0], [], self._span(s, loc, t[0]))

        def make_symbol(s, loc, t):
            return make_symbol_node(t[0], self._span(s, loc, t[0]))

        def make_list(s, loc, t):
            return make_list_node(list(t), self._span(s, loc, "("))

        def make_quote(s, loc, t):
            span = self._span(s, loc, "'")
            return make_list_node([make_symbol_node("quote", span), t[0]], span)

        rational = Regex(r"[+-]?\d+/\d+" + DELIMITER).set_parse_action(make_rational)
        integer = Regex(r"[+-]?\d+" + DELIMITER).set_parse_action(make_integer)
        boolean = Regex(r"#(?:true|false|t|f)" + DELIMITER).set_parse_action(make_boolean)
        string = QuotedString('"', esc_char='\\', multiline=True).set_parse_action(make_string)
        symbol = Regex(r"[^\s()'\";]+").set_parse_action(make_symbol)

        list_expr = (
            Suppress("(") + ZeroOrMore(expression) + Suppress(")")
        ).set_parse_action(make_list)

        quoted = (Suppress("'") + expression).set_parse_action(make_quote)

        expression <<= rational | integer | boolean | string | quoted | list_expr | symbol

        comment = Regex(r";[^\n]*")
        program = ZeroOrMore(expression) + StringEnd()
        program.ignore(comment)
        expression.ignore(comment)

        self.expression = expression
        self.program = program

    def parse_program(self, text: str, filename: str = "<input>") -> List[CSTNode]:
        """Parse every datum in text"""
        if is_incomplete(text):
            raise IncompleteInputError("unexpected end of input inside a form")
        self.filename = filename
        try:
            result = self.program.parse_string(text, parse_all=True)
        except ParseException as e:
            raise parse_error_from_exception(e, text) from e
        if self.debug:
            print(f"Parsed {len(result)} top-level forms")
        return list(result)

    def parse_expression(self, text: str, filename: str = "<input>") -> CSTNode:
        """Parse exactly one datum"""
        nodes = self.parse_program(text, filename)
        if len(nodes) != 1:
            raise SchemeParseError(f"expected exactly one expression, found {len(nodes)}")
        return nodes[0]


class SchemeParser:
    """Reader front end"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = SchemeGrammar(debug)

    def parse_file(self, filepath: str) -> List[CSTNode]:
        """Parse a source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise SchemeParseError(f"File not found: {filepath}")
        except UnicodeDecodeError as e:
            raise SchemeParseError(f"Cannot decode file {filepath}: {e}")
        return self.grammar.parse_program(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> List[CSTNode]:
        """Parse source code from string"""
        return self.grammar.parse_program(text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> CSTNode:
        """Parse a single expression"""
        return self.grammar.parse_expression(text, filename)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> SchemeParser:
    """Create a reader"""
    return SchemeParser(debug=debug)


# Utility functions for working with CST
def find_nodes_by_type(cst: CSTNode, node_type: str) -> List[CSTNode]:
    """Find all nodes of a specific type in CST"""
    result = []

    def search(node: CSTNode):
        if node.type == node_type:
            result.append(node)
        for child in node.children:
            search(child)

    search(cst)
    return result


def pretty_print_cst(cst: CSTNode, indent: int = 0) -> str:
    """Pretty print a CST node for debugging"""
    result = "  " * indent + f"{cst.type}"
    if cst.value is not None:
        result += f"({repr(cst.value)})"
    result += "\n"

    for child in cst.children:
        result += pretty_print_cst(child, indent + 1)

    return result


def cst_to_dict(cst: CSTNode) -> Dict[str, Any]:
    """Convert CST to dictionary representation"""
    return {
        "type": cst.type,
        "value": cst.value,
        "span": {
            "filename": cst.span.filename,
            "start_line": cst.span.start_line,
            "start_col": cst.span.start_col,
            "end_line": cst.span.end_line,
            "end_col": cst.span.end_col,
        } if cst.span else None,
        "children": [cst_to_dict(child) for child in cst.children]
    }
