"""
Astro Programming Language Parser
pyparsing grammar producing an immutable syntax tree with source spans
"""

from typing import Dict, Any, Optional, Tuple
from dataclasses import asdict, dataclass, replace
from functools import lru_cache

from pyparsing import (
    Forward, OneOrMore, ZeroOrMore, Opt, Regex, Suppress, StringEnd,
    ParserElement, ParseBaseException, dbl_slash_comment,
    lineno, col
)

from config import AstroConfig, DEFAULT_CONFIG
from error_handling import AstroSyntaxError, enhance_parse_exception, nesting_error
from logging_config import get_logger

# Enable packrat parsing for performance
ParserElement.enable_packrat()

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceSpan:
    """Source location information for a syntax tree node"""
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
    """Syntax tree node; the evaluator only ever reads these"""
    type: str
    value: Any
    children: Tuple['CSTNode', ...] = ()
    span: Optional[SourceSpan] = None

    def __str__(self) -> str:
        if self.children:
            children_str = ", ".join(str(child) for child in self.children)
            return f"{self.type}({self.value}, [{children_str}])"
        return f"{self.type}({self.value})"


class AstroGrammar:
    """Astro grammar definition using pyparsing"""

    def __init__(self, config: AstroConfig = DEFAULT_CONFIG):
        self.config = config
        self.debug = config.debug
        self._filename = "<input>"
        self._setup_grammar()

    # ------------------------------------------------------------------
    # span helpers
    # ------------------------------------------------------------------

    def _span(self, s: str, start: int, end: int) -> SourceSpan:
        return SourceSpan(
            self._filename, lineno(start, s), col(start, s),
            lineno(end, s), col(end, s), s[start:end]
        )

    def _join(self, first: SourceSpan, last: SourceSpan) -> SourceSpan:
        return SourceSpan(
            self._filename, first.start_line, first.start_col,
            last.end_line, last.end_col, ""
        )

    # ------------------------------------------------------------------
    # parse actions
    # ------------------------------------------------------------------

    def _make_number(self, s, loc, toks):
        text = toks[0]
        return CSTNode("NUMBER", float(text), (), self._span(s, loc, loc + len(text)))

    def _make_identifier(self, s, loc, toks):
        name = toks[0]
        return CSTNode("IDENTIFIER", name, (), self._span(s, loc, loc + len(name)))

    def _make_args(self, s, loc, toks):
        children = tuple(toks)
        if children:
            span = self._join(children[0].span, children[-1].span)
        else:
            span = self._span(s, loc, loc)
        return CSTNode("ARGS", None, children, span)

    def _make_call(self, node_type: str):
        def make(s, loc, toks):
            name, args = toks[0], toks[1]
            return CSTNode(node_type, name, (args,), self._span(s, loc, loc + len(name)))
        return make

    def _make_binary_chain(self, s, loc, toks):
        # operand (op operand)* folds to the left
        items = list(toks)
        result = items[0]
        for i in range(1, len(items), 2):
            op, right = items[i], items[i + 1]
            result = CSTNode("BINARY", op, (result, right), self._join(result.span, right.span))
        return result

    def _make_power(self, s, loc, toks):
        if len(toks) == 1:
            return toks[0]
        base, exponent = toks[0], toks[1]
        return CSTNode("BINARY", "**", (base, exponent), self._join(base.span, exponent.span))

    def _make_negation(self, s, loc, toks):
        operand = toks[0]
        span = SourceSpan(self._filename, lineno(loc, s), col(loc, s),
                          operand.span.end_line, operand.span.end_col, "")
        return CSTNode("NEGATION", "-", (operand,), span)

    def _make_assignment(self, s, loc, toks):
        name, expression = toks[0], toks[1]
        return CSTNode("ASSIGNMENT", name, (expression,), self._span(s, loc, loc + len(name)))

    def _make_print(self, s, loc, toks):
        expression = toks[0]
        return CSTNode("PRINT", None, (expression,), self._span(s, loc, loc + len("print")))

    def _make_program(self, s, loc, toks):
        statements = tuple(toks)
        return CSTNode("PROGRAM", None, statements, self._join(statements[0].span, statements[-1].span))

    # ------------------------------------------------------------------
    # grammar
    # ------------------------------------------------------------------

    def _setup_grammar(self):
        """Build the grammar for the configured language variant"""
        config = self.config

        LPAR, RPAR, SEMI, EQ, COMMA = (Suppress(c).set_name(repr(c)) for c in "();=,")

        print_kw = Regex(r"print(?!\w)").set_name("'print'")

        # letter-led, then letters, digits or underscores
        id_pattern = r"[^\W\d_]\w*"
        if config.print_keyword:
            id_pattern = r"(?!print(?!\w))" + id_pattern

        def identifier():
            return Regex(id_pattern).set_name("identifier")

        numeral = Regex(r"[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?").set_name("numeral")
        numeral.set_parse_action(self._make_number)

        expression = Forward().set_name("expression")
        factor = Forward().set_name("factor")

        args = Opt(expression + ZeroOrMore(COMMA - expression)).set_name("arguments")
        args.set_parse_action(self._make_args)

        call = (identifier() + LPAR - args - RPAR).set_parse_action(self._make_call("CALL"))
        variable = identifier().set_parse_action(self._make_identifier)
        parenthesized = LPAR - expression - RPAR

        primary = (call | numeral | variable | parenthesized).set_name("expression")

        power = (primary + Opt(Suppress("**") - factor)).set_parse_action(self._make_power)
        if config.negation:
            negation = (Suppress("-") + primary).set_parse_action(self._make_negation)
            factor <<= (power | negation).set_name("expression")
        else:
            factor <<= power

        mul_op = Regex(r"\*(?!\*)|/|%" if config.modulo else r"\*(?!\*)|/").set_name("operator")
        add_op = Regex(r"[+-]").set_name("operator")

        term = (factor + ZeroOrMore(mul_op - factor)).set_parse_action(self._make_binary_chain)
        expression <<= (term + ZeroOrMore(add_op - term)).set_parse_action(self._make_binary_chain)

        assignment = (identifier() + EQ - expression - SEMI).set_parse_action(self._make_assignment)
        call_statement = (identifier() + LPAR - args - RPAR - SEMI).set_parse_action(
            self._make_call("CALL_STATEMENT"))

        if config.print_keyword:
            print_statement = (Suppress(print_kw) - expression - SEMI).set_parse_action(self._make_print)
            statement = print_statement | assignment | call_statement
        else:
            statement = assignment | call_statement
        statement.set_name("statement")

        program = (OneOrMore(statement) + StringEnd()).set_parse_action(self._make_program)
        program.ignore(dbl_slash_comment)
        program.parse_with_tabs()

        single_expression = expression + StringEnd()
        single_expression.ignore(dbl_slash_comment)

        # Store main parsers
        self.program = program
        self.statement = statement
        self.expression = expression
        self.single_expression = single_expression
        self.primary = primary

    # ------------------------------------------------------------------
    # entry points
    # ------------------------------------------------------------------

    def parse_program(self, text: str, filename: str = "<input>") -> CSTNode:
        """Parse a complete Astro program"""
        self._filename = filename
        try:
            result = self.program.parse_string(text, parse_all=True)
        except ParseBaseException as e:
            raise enhance_parse_exception(e, text, filename) from e
        except RecursionError:
            raise nesting_error(filename=filename) from None
        tree = result[0]
        if self.debug:
            logger.debug("Parsed %d statements from %s", len(tree.children), filename)
        return tree

    def parse_expression(self, text: str, filename: str = "<input>") -> CSTNode:
        """Parse a single Astro expression"""
        self._filename = filename
        try:
            result = self.single_expression.parse_string(text, parse_all=True)
        except ParseBaseException as e:
            raise enhance_parse_exception(e, text, filename) from e
        except RecursionError:
            raise nesting_error(filename=filename) from None
        return result[0]


@lru_cache(maxsize=None)
def get_grammar(config: AstroConfig = DEFAULT_CONFIG) -> AstroGrammar:
    """Grammar for a language variant, built once per configuration"""
    return AstroGrammar(config)


class AstroParser:
    """Main Astro parser"""

    def __init__(self, config: AstroConfig = DEFAULT_CONFIG):
        self.config = config
        self.debug = config.debug
        self.grammar = get_grammar(config)

    def parse_file(self, filepath: str) -> CSTNode:
        """Parse an Astro source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise AstroSyntaxError(f"File not found: {filepath}")
        except UnicodeDecodeError as e:
            raise AstroSyntaxError(f"Cannot decode file {filepath}: {e}")
        return self.grammar.parse_program(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> CSTNode:
        """Parse Astro source code from string"""
        return self.grammar.parse_program(text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> CSTNode:
        """Parse a single Astro expression"""
        return self.grammar.parse_expression(text, filename)


def parse(source: str, config: Optional[AstroConfig] = None, filename: str = "<input>") -> CSTNode:
    """Parse source text into a PROGRAM node or raise AstroSyntaxError"""
    return get_grammar(config or DEFAULT_CONFIG).parse_program(source, filename)


# Factory functions for creating parsers
def create_parser(config: Optional[AstroConfig] = None) -> AstroParser:
    """Create an Astro parser"""
    return AstroParser(config or DEFAULT_CONFIG)


def create_debug_parser(config: Optional[AstroConfig] = None) -> AstroParser:
    """Create an Astro parser with debug enabled"""
    return AstroParser(replace(config or DEFAULT_CONFIG, debug=True))


# Utility functions for working with the tree
def pretty_print_cst(cst: CSTNode, indent: int = 0) -> str:
    """Pretty print a tree node for debugging"""
    result = "  " * indent + f"{cst.type}"
    if cst.value is not None:
        result += f"({repr(cst.value)})"
    if cst.span is not None:
        result += f" @{cst.span.start_line}:{cst.span.start_col}"
    result += "\n"

    for child in cst.children:
        result += pretty_print_cst(child, indent + 1)

    return result


def cst_to_dict(cst: CSTNode) -> Dict[str, Any]:
    """Plain-data form of a tree, ready for json.dumps"""
    return {
        "type": cst.type,
        "value": cst.value,
        "span": asdict(cst.span) if cst.span else None,
        "children": [cst_to_dict(child) for child in cst.children],
    }
