#!/usr/bin/env python3
"""
gatelang — Circuit Source Tokenizer & Parser
Copyright (c) 2026 Alex P. Slaby — MIT License

One line of source describes one circuit:

  expr  ::= '!'* atom
  atom  ::= INPUT | IDENT '(' expr (',' expr)* ')'
  INPUT ::= '.' DIGIT+

Known calls: and, or (case-sensitive). Negation is prefix-only ('!');
a call named `not` is rejected as an unknown function.

The parser is a single pass over an explicit stack of groups (no
recursion): the implicit root group plus one group per open call.
"""

import sys, os
sys.path.insert(0, os.path.dirname(__file__))
from gate import G


# ═══════════════════════════════════════════════════════════════
# TOKENS
# ═══════════════════════════════════════════════════════════════

class TK:
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    NOT    = "NOT"
    COMMA  = "COMMA"
    INPUT  = "INPUT"
    IDENT  = "IDENT"


class Token:
    __slots__ = ('kind', 'value', 'col')
    def __init__(self, kind, value=None, col=0):
        self.kind = kind
        self.value = value
        self.col = col
    def __repr__(self):
        if self.value is None:
            return f"Token({self.kind}, {self.col})"
        return f"Token({self.kind}, {self.value!r}, {self.col})"
    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return self.kind == other.kind and self.value == other.value
    def __hash__(self):
        return hash((self.kind, self.value))

    def describe(self):
        """Short human-readable form used in error messages."""
        if self.kind == TK.IDENT:
            return f'Identifier "{self.value}"'
        if self.kind == TK.INPUT:
            return f"Input .{self.value}"
        return f"'{SYMBOL_TEXT[self.kind]}'"


SYMBOLS = {'(': TK.LPAREN, ')': TK.RPAREN, '!': TK.NOT, ',': TK.COMMA}
SYMBOL_TEXT = {kind: ch for ch, kind in SYMBOLS.items()}

DIGITS = "0123456789"
# str.isspace() also accepts the ASCII file/group/record/unit separators;
# here they are ordinary identifier characters.
SEPARATORS = "\x1c\x1d\x1e\x1f"

# Input indices are unsigned machine words.
MAX_INDEX = 2**64 - 1


# ═══════════════════════════════════════════════════════════════
# ERRORS
# ═══════════════════════════════════════════════════════════════

class ParseError(Exception):
    """Base class for every error tokenize() and parse() raise."""
    kind = "ParseError"

    def __init__(self, msg, col=None):
        self.col = col
        super().__init__(msg)


class LexError(ParseError):
    kind = "LexError"


class InvalidNumber(LexError):
    kind = "InvalidNumber"
    def __init__(self, text, col=None):
        super().__init__(f'"{text}" is not a valid number', col)
        self.text = text


class UnexpectedToken(ParseError):
    kind = "UnexpectedToken"
    def __init__(self, token):
        super().__init__(f"{token.describe()} was not expected", token.col)
        self.token = token


class UnexpectedRightParen(ParseError):
    kind = "UnexpectedRightParen"
    def __init__(self, col=None):
        super().__init__("Invalid closing parenthesis in code", col)


class UnknownFunction(ParseError):
    kind = "UnknownFunction"
    def __init__(self, name, col=None):
        super().__init__(f'The function "{name}" is unknown', col)
        self.name = name


class UnexpectedComma(ParseError):
    kind = "UnexpectedComma"
    def __init__(self, col=None):
        super().__init__("Unexpected comma in code", col)


class UnexpectedTokensAfterExpr(ParseError):
    kind = "UnexpectedTokensAfterExpr"
    def __init__(self, col=None):
        super().__init__("Unexpected tokens after expression", col)


class InvalidParentheses(ParseError):
    kind = "InvalidParentheses"
    def __init__(self, col=None):
        super().__init__("Invalid parentheses in code", col)


class EmptyExpression(ParseError):
    kind = "EmptyExpression"
    def __init__(self, col=None):
        super().__init__("The expression cannot be empty", col)


class UnexpectedEndOfSource(ParseError):
    kind = "UnexpectedEndOfSource"
    def __init__(self, col=None):
        super().__init__("Unexpected end of code", col)


# ═══════════════════════════════════════════════════════════════
# LEXER
# ═══════════════════════════════════════════════════════════════

def _parse_index(text, col):
    # Leading zeros are allowed; anything past 20 significant digits overflows.
    digits = text.lstrip('0')
    if not text or len(digits) > len(str(MAX_INDEX)) or int(digits or '0') > MAX_INDEX:
        raise InvalidNumber(text, col)
    return int(digits or '0')


def tokenize(source):
    tokens = []
    buffer = []
    buffer_col = 1
    i = 0

    def flush():
        if buffer:
            tokens.append(Token(TK.IDENT, ''.join(buffer), buffer_col))
            buffer.clear()

    while i < len(source):
        ch = source[i]
        col = i + 1

        if ch in SYMBOLS:
            flush(); tokens.append(Token(SYMBOLS[ch], None, col)); i += 1; continue

        if ch.isspace() and ch not in SEPARATORS:
            flush(); i += 1; continue

        # Input reference: '.' DIGIT+
        if ch == '.':
            flush()
            j = i + 1
            while j < len(source) and source[j] in DIGITS: j += 1
            index = _parse_index(source[i+1:j], col)
            tokens.append(Token(TK.INPUT, index, col))
            i = j; continue

        if not buffer:
            buffer_col = col
        buffer.append(ch)
        i += 1

    flush()
    return tokens


# ═══════════════════════════════════════════════════════════════
# PARSER
# ═══════════════════════════════════════════════════════════════

# Call name → factory method
CALLS = {"and": "make_and", "or": "make_or"}


class Group:
    """A parser stack frame: the root group (name is None) or an open call."""
    __slots__ = ('name', 'inverted', 'col', 'operands')
    def __init__(self, name=None, inverted=False, col=None):
        self.name = name
        self.inverted = inverted
        self.col = col
        self.operands = []

    @property
    def is_root(self):
        return self.name is None


def parse(tokens, factory=G):
    """Parse a token list into (input_count, tree).

    `factory` supplies make_input / make_not / make_and / make_or; the parser
    never looks inside the nodes it builds.
    """
    stack = [Group()]
    inverted = False
    expect_operand = True
    input_count = 0
    pos = 0

    while pos < len(tokens):
        tok = tokens[pos]
        pos += 1

        if tok.kind == TK.LPAREN:
            raise UnexpectedToken(tok)

        elif tok.kind == TK.RPAREN:
            if expect_operand or len(stack) == 1:
                raise UnexpectedRightParen(tok.col)
            group = stack.pop()
            method = CALLS.get(group.name)
            if method is None:
                raise UnknownFunction(group.name, group.col)
            node = getattr(factory, method)(group.operands)
            if group.inverted:
                node = factory.make_not(node)
            stack[-1].operands.append(node)
            if len(stack) == 1 and pos < len(tokens):
                raise UnexpectedTokensAfterExpr(tokens[pos].col)

        elif tok.kind == TK.NOT:
            inverted = not inverted

        elif tok.kind == TK.COMMA:
            if len(stack) == 1 or expect_operand:
                raise UnexpectedComma(tok.col)
            expect_operand = True

        elif tok.kind == TK.INPUT:
            if not expect_operand:
                raise UnexpectedToken(tok)
            expect_operand = False
            input_count = max(input_count, tok.value + 1)
            node = factory.make_input(tok.value)
            if inverted:
                node = factory.make_not(node)
            inverted = False
            stack[-1].operands.append(node)
            if len(stack) == 1:
                # A bare input is the whole expression.
                if pos < len(tokens):
                    raise UnexpectedTokensAfterExpr(tokens[pos].col)
                break

        elif tok.kind == TK.IDENT:
            if not expect_operand:
                raise UnexpectedToken(tok)
            if pos >= len(tokens):
                raise UnexpectedEndOfSource(tok.col)
            if tokens[pos].kind != TK.LPAREN:
                raise UnexpectedToken(tok)
            pos += 1
            stack.append(Group(tok.value, inverted, tok.col))
            inverted = False

        else:
            raise UnexpectedToken(tok)

    if len(stack) != 1:
        raise InvalidParentheses(stack[-1].col)
    root = stack[0]
    if not root.operands:
        raise EmptyExpression()
    return input_count, root.operands[0]


def compile_line(source, factory=G):
    """tokenize + parse one line of source."""
    return parse(tokenize(source), factory)


# ═══════════════════════════════════════════════════════════════
# PRETTY ERROR DISPLAY
# ═══════════════════════════════════════════════════════════════

def format_error(source, error):
    """Format a parse/lex error with source context."""
    col = getattr(error, 'col', None)
    if not col or '\n' in source:
        return str(error)
    pointer = ' ' * (col - 1) + '^'
    return '\n'.join([str(error), f"  | {source}", f"  | {pointer}"])
