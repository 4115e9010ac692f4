"""
Lexer for Go text/template syntax.

Splits template source into text and action tokens. Trim markers
(``{{- `` and `` -}}``) are applied here, and comments are dropped.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from ecr_login.utils.gotemplate.errors import TemplateParseError

LEFT_DELIM = "{{"
RIGHT_DELIM = "}}"
LEFT_COMMENT = "/*"
RIGHT_COMMENT = "*/"
SPACE_CHARS = " \t\r\n"


class TokenType(Enum):
    TEXT = "text"
    LEFT_DELIM = "{{"
    RIGHT_DELIM = "}}"
    FIELD = "field"
    DOT = "."
    VARIABLE = "variable"
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    STRING = "string"
    RAW_STRING = "raw string"
    CHAR = "char"
    NUMBER = "number"
    BOOL = "bool"
    NIL = "nil"
    PIPE = "|"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    DECLARE = ":="
    ASSIGN = "="
    COMMA = ","
    EOF = "EOF"


KEYWORDS = {"block", "break", "continue", "define", "else", "end", "if", "range", "template", "with"}


@dataclass
class Token:
    type: TokenType
    value: str
    line: int
    # True when whitespace separates this token from the previous one
    spaced: bool = False

    def __str__(self) -> str:
        if self.type is TokenType.EOF:
            return "EOF"
        return repr(self.value)


_NUMBER_RE = re.compile(
    r"[+-]?(?:"
    r"0[xX][0-9a-fA-F_]+"
    r"|0[bB][01_]+"
    r"|0[oO][0-7_]+"
    r"|(?:\d[\d_]*)?\.\d[\d_]*(?:[eE][+-]?\d+)?"
    r"|\d[\d_]*(?:\.\d*)?(?:[eE][+-]?\d+)?"
    r")"
)
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_FIELD_CHAIN_RE = re.compile(r"(?:\.[A-Za-z_][A-Za-z0-9_]*)+")
_VARIABLE_RE = re.compile(r"\$[A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*")
_STRING_RE = re.compile(r'"(?:[^"\\\n]|\\.)*"')
_CHAR_RE = re.compile(r"'(?:[^'\\\n]|\\.)+'")


def _has_left_trim(source: str, pos: int) -> bool:
    """Check for '{{- ' at pos"""
    after = pos + len(LEFT_DELIM)
    return source.startswith("-", after) and after + 1 < len(source) and source[after + 1] in SPACE_CHARS


def _right_trim_at(source: str, pos: int) -> bool:
    """Check for ' -}}' style trim marker starting with whitespace at pos"""
    end = pos
    while end < len(source) and source[end] in SPACE_CHARS:
        end += 1
    return end > pos and source.startswith("-" + RIGHT_DELIM, end)


class Lexer:
    """Produces the token list for one template source"""

    def __init__(self, name: str, source: str):
        self.name = name
        self.source = source
        self.pos = 0
        self.line = 1
        self.tokens: List[Token] = []

    def error(self, message: str) -> TemplateParseError:
        return TemplateParseError(self.name, self.line, message)

    def emit(self, token_type: TokenType, value: str, spaced: bool = False) -> None:
        self.tokens.append(Token(token_type, value, self.line, spaced))

    def advance(self, end: int) -> str:
        """Consume source up to end, tracking line numbers"""
        chunk = self.source[self.pos:end]
        self.line += chunk.count("\n")
        self.pos = end
        return chunk

    def tokenize(self) -> List[Token]:
        trim_next_text = False
        while self.pos < len(self.source):
            start = self.source.find(LEFT_DELIM, self.pos)
            if start < 0:
                start = len(self.source)
            text_line = self.line
            text = self.advance(start)
            if trim_next_text:
                text = text.lstrip(SPACE_CHARS)
            if start < len(self.source) and _has_left_trim(self.source, start):
                text = text.rstrip(SPACE_CHARS)
            if text:
                self.tokens.append(Token(TokenType.TEXT, text, text_line))
            if start >= len(self.source):
                break
            trim_next_text = self.lex_action()
        self.emit(TokenType.EOF, "")
        return self.tokens

    def lex_action(self) -> bool:
        """Lex one {{...}} action starting at self.pos.

        Returns True if the action ended with a right trim marker.
        """
        source = self.source
        trim_left = _has_left_trim(source, self.pos)
        self.advance(self.pos + len(LEFT_DELIM) + (2 if trim_left else 0))

        # Comments are '{{/*' or '{{- /*', closed by '*/}}' or '*/ -}}'
        probe = self.pos
        while trim_left and probe < len(source) and source[probe] in SPACE_CHARS:
            probe += 1
        if source.startswith(LEFT_COMMENT, probe):
            return self.lex_comment(probe)

        self.emit(TokenType.LEFT_DELIM, LEFT_DELIM)
        paren_depth = 0
        spaced = trim_left
        while True:
            if self.pos >= len(source):
                raise self.error("unclosed action")
            ch = source[self.pos]

            at_right_delim = source.startswith(RIGHT_DELIM, self.pos)
            at_right_trim = ch in SPACE_CHARS and _right_trim_at(source, self.pos)
            if (at_right_delim or at_right_trim) and paren_depth > 0:
                raise self.error("unclosed left paren")
            if at_right_delim:
                self.advance(self.pos + len(RIGHT_DELIM))
                self.emit(TokenType.RIGHT_DELIM, RIGHT_DELIM, spaced)
                return False
            if ch in SPACE_CHARS:
                if at_right_trim:
                    end = source.index("-" + RIGHT_DELIM, self.pos)
                    self.advance(end + 1 + len(RIGHT_DELIM))
                    self.emit(TokenType.RIGHT_DELIM, RIGHT_DELIM, True)
                    return True
                end = self.pos
                while end < len(source) and source[end] in SPACE_CHARS:
                    end += 1
                self.advance(end)
                spaced = True
                continue

            self.lex_item(ch, spaced)
            if self.tokens[-1].type is TokenType.LEFT_PAREN:
                paren_depth += 1
            elif self.tokens[-1].type is TokenType.RIGHT_PAREN:
                paren_depth -= 1
                if paren_depth < 0:
                    raise self.error("unexpected right paren")
            spaced = False

    def lex_comment(self, start: int) -> bool:
        end = self.source.find(RIGHT_COMMENT, start + len(LEFT_COMMENT))
        if end < 0:
            raise self.error("unclosed comment")
        self.advance(end + len(RIGHT_COMMENT))
        if self.source.startswith(RIGHT_DELIM, self.pos):
            self.advance(self.pos + len(RIGHT_DELIM))
            return False
        if _right_trim_at(self.source, self.pos):
            end = self.source.index("-" + RIGHT_DELIM, self.pos)
            self.advance(end + 1 + len(RIGHT_DELIM))
            return True
        raise self.error("comment ends before closing delimiter")

    def lex_item(self, ch: str, spaced: bool) -> None:
        source = self.source
        pos = self.pos

        simple = {
            "|": TokenType.PIPE,
            "(": TokenType.LEFT_PAREN,
            ")": TokenType.RIGHT_PAREN,
            ",": TokenType.COMMA,
        }
        if ch in simple:
            self.advance(pos + 1)
            self.emit(simple[ch], ch, spaced)
            return
        if source.startswith(":=", pos):
            self.advance(pos + 2)
            self.emit(TokenType.DECLARE, ":=", spaced)
            return
        if ch == "=":
            self.advance(pos + 1)
            self.emit(TokenType.ASSIGN, "=", spaced)
            return

        if ch == '"':
            match = _STRING_RE.match(source, pos)
            if not match:
                raise self.error("unterminated quoted string")
            self._emit_match(TokenType.STRING, match, spaced)
            return
        if ch == "`":
            end = source.find("`", pos + 1)
            if end < 0:
                raise self.error("unterminated raw quoted string")
            value = self.advance(end + 1)
            self.emit(TokenType.RAW_STRING, value, spaced)
            return
        if ch == "'":
            match = _CHAR_RE.match(source, pos)
            if not match:
                raise self.error("unterminated character constant")
            self._emit_match(TokenType.CHAR, match, spaced)
            return

        if ch == "$":
            match = _VARIABLE_RE.match(source, pos)
            self._emit_match(TokenType.VARIABLE, match, spaced)
            return

        if ch == ".":
            match = _FIELD_CHAIN_RE.match(source, pos)
            if match:
                self._emit_match(TokenType.FIELD, match, spaced)
                return
            if pos + 1 < len(source) and source[pos + 1].isdigit():
                match = _NUMBER_RE.match(source, pos)
                self._emit_match(TokenType.NUMBER, match, spaced)
                return
            self.advance(pos + 1)
            self.emit(TokenType.DOT, ".", spaced)
            return

        if ch.isdigit() or (ch in "+-" and pos + 1 < len(source) and (source[pos + 1].isdigit() or source[pos + 1] == ".")):
            match = _NUMBER_RE.match(source, pos)
            if not match:
                raise self.error(f"bad number syntax: {source[pos:pos + 10]!r}")
            end = match.end()
            if end < len(source) and (source[end].isalnum() or source[end] == "_"):
                raise self.error(f"bad number syntax: {source[pos:end + 1]!r}")
            self._emit_match(TokenType.NUMBER, match, spaced)
            return

        match = _IDENT_RE.match(source, pos)
        if match:
            word = match.group(0)
            if word in KEYWORDS:
                token_type = TokenType.KEYWORD
            elif word in ("true", "false"):
                token_type = TokenType.BOOL
            elif word == "nil":
                token_type = TokenType.NIL
            else:
                token_type = TokenType.IDENTIFIER
            self._emit_match(token_type, match, spaced)
            return

        raise self.error(f"unrecognized character in action: {ch!r}")

    def _emit_match(self, token_type: TokenType, match: "re.Match", spaced: bool) -> None:
        self.advance(match.end())
        self.emit(token_type, match.group(0), spaced)


def lex(name: str, source: str) -> List[Token]:
    """Tokenize a template source"""
    return Lexer(name, source).tokenize()


def split_field_chain(value: str) -> Tuple[str, ...]:
    """'.A.B' -> ('A', 'B'); '$x.A' -> ('A',)"""
    return tuple(part for part in value.split(".")[1:])
