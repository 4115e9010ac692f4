"""
Parse tree and parser for Go text/template syntax.

Parser.parse() returns a mapping of template name to ListNode: the main
template plus anything created with {{define}} or {{block}}.
"""

import ast
import re
from dataclasses import dataclass, field
from typing import Any, Container, Dict, List, Optional, Tuple, Union

from ecr_login.utils.gotemplate.errors import TemplateParseError
from ecr_login.utils.gotemplate.lexer import Token, TokenType, split_field_chain


@dataclass
class TextNode:
    text: str
    line: int = 0


@dataclass
class ListNode:
    nodes: List[Any] = field(default_factory=list)
    line: int = 0


@dataclass
class DotNode:
    def __str__(self) -> str:
        return "."


@dataclass
class NilNode:
    def __str__(self) -> str:
        return "nil"


@dataclass
class BoolNode:
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass
class NumberNode:
    value: Union[int, float]
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass
class StringNode:
    value: str
    quoted: str

    def __str__(self) -> str:
        return self.quoted


@dataclass
class FieldNode:
    names: Tuple[str, ...]

    def __str__(self) -> str:
        return "".join("." + name for name in self.names)


@dataclass
class VariableNode:
    name: str
    names: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.name + "".join("." + name for name in self.names)


@dataclass
class IdentifierNode:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass
class CommandNode:
    args: List[Any]
    line: int = 0

    def __str__(self) -> str:
        return " ".join(f"({arg})" if isinstance(arg, PipeNode) else str(arg) for arg in self.args)


@dataclass
class PipeNode:
    cmds: List[CommandNode]
    decl: List[str] = field(default_factory=list)
    is_assign: bool = False
    line: int = 0

    def __str__(self) -> str:
        text = " | ".join(str(cmd) for cmd in self.cmds)
        if self.decl:
            text = f"{', '.join(self.decl)} {'=' if self.is_assign else ':='} {text}"
        return text


@dataclass
class ChainNode:
    node: Any
    names: Tuple[str, ...]

    def __str__(self) -> str:
        inner = f"({self.node})" if isinstance(self.node, PipeNode) else str(self.node)
        return inner + "".join("." + name for name in self.names)


@dataclass
class ActionNode:
    pipe: PipeNode
    line: int = 0


@dataclass
class BranchNode:
    """{{if}}, {{range}} or {{with}}"""

    kind: str
    pipe: PipeNode
    body: ListNode
    else_body: Optional[ListNode] = None
    line: int = 0


@dataclass
class TemplateNode:
    name: str
    pipe: Optional[PipeNode] = None
    line: int = 0


@dataclass
class BreakNode:
    line: int = 0


@dataclass
class ContinueNode:
    line: int = 0


@dataclass
class _Marker:
    """{{end}} or {{else}} seen while parsing a list"""

    kind: str
    line: int
    chained: bool = False


# Escapes valid inside a Go interpreted string literal
_ESCAPE_RE = re.compile(r'\\(?:[abfnrtv\\"]|x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-7]{3})')
_CHAR_ESCAPE_RE = re.compile(r"\\(?:[abfnrtv\\']|x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-7]{3})")
_LEGACY_OCTAL_RE = re.compile(r"[+-]?0[0-7_]+")


def is_empty_tree(tree: ListNode) -> bool:
    return all(isinstance(node, TextNode) and not node.text.strip() for node in tree.nodes)


class Parser:
    """Recursive descent parser over the lexer's token list"""

    def __init__(self, name: str, tokens: List[Token], funcs: Container[str]):
        self.name = name
        self.tokens = tokens
        self.index = 0
        self.funcs = funcs
        self.trees: Dict[str, ListNode] = {}
        self.vars: List[str] = ["$"]
        self.range_depth = 0

    # Token helpers
    def next(self) -> Token:
        token = self.tokens[self.index]
        if token.type is not TokenType.EOF:
            self.index += 1
        return token

    def peek(self, offset: int = 0) -> Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def backup(self) -> None:
        self.index -= 1

    def error(self, message: str, token: Optional[Token] = None) -> TemplateParseError:
        line = token.line if token is not None else self.peek().line
        return TemplateParseError(self.name, line, message)

    def expect(self, token_type: TokenType, context: str) -> Token:
        token = self.next()
        if token.type is not token_type:
            raise self.error(f"unexpected {token} in {context}", token)
        return token

    def add_tree(self, name: str, tree: ListNode) -> None:
        # An empty body never replaces an existing definition
        if name in self.trees and is_empty_tree(tree):
            return
        self.trees[name] = tree

    # Top level
    def parse(self) -> Dict[str, ListNode]:
        root = ListNode(line=1)
        while self.peek().type is not TokenType.EOF:
            if (
                self.peek().type is TokenType.LEFT_DELIM
                and self.peek(1).type is TokenType.KEYWORD
                and self.peek(1).value == "define"
            ):
                self.next()
                self.next()
                self.parse_definition()
                continue
            node = self.text_or_action()
            if isinstance(node, _Marker):
                raise self.error(f"unexpected {{{{{node.kind}}}}}")
            root.nodes.append(node)
        self.add_tree(self.name, root)
        return self.trees

    def parse_definition(self) -> None:
        token = self.next()
        if token.type not in (TokenType.STRING, TokenType.RAW_STRING):
            raise self.error(f"unexpected {token} in define clause", token)
        name = self.unquote(token)
        self.expect(TokenType.RIGHT_DELIM, "define clause")
        self.add_tree(name, self.parse_sub_template("define"))

    def parse_sub_template(self, context: str) -> ListNode:
        saved_vars, saved_depth = self.vars, self.range_depth
        self.vars, self.range_depth = ["$"], 0
        body, marker = self.item_list(context)
        if marker.kind != "end":
            raise self.error(f"unexpected {{{{{marker.kind}}}}} in {context}")
        self.vars, self.range_depth = saved_vars, saved_depth
        return body

    def item_list(self, context: str) -> Tuple[ListNode, _Marker]:
        body = ListNode(line=self.peek().line)
        while True:
            if self.peek().type is TokenType.EOF:
                raise self.error(f"unexpected EOF in {context}")
            node = self.text_or_action()
            if isinstance(node, _Marker):
                return body, node
            body.nodes.append(node)

    def text_or_action(self) -> Any:
        token = self.next()
        if token.type is TokenType.TEXT:
            return TextNode(token.value, token.line)
        if token.type is TokenType.LEFT_DELIM:
            return self.action()
        raise self.error(f"unexpected {token} in input", token)

    # Actions
    def action(self) -> Any:
        token = self.next()
        if token.type is TokenType.KEYWORD:
            keyword = token.value
            if keyword in ("if", "range", "with"):
                return self.parse_control(keyword, token.line)
            if keyword == "end":
                self.expect(TokenType.RIGHT_DELIM, "end")
                return _Marker("end", token.line)
            if keyword == "else":
                return self.else_control(token)
            if keyword == "template":
                return self.template_control(token)
            if keyword == "block":
                return self.block_control(token)
            if keyword in ("break", "continue"):
                if self.range_depth == 0:
                    raise self.error(f"{{{{{keyword}}}}} outside {{{{range}}}}", token)
                self.expect(TokenType.RIGHT_DELIM, keyword)
                return BreakNode(token.line) if keyword == "break" else ContinueNode(token.line)
            raise self.error(f"unexpected {token} in command", token)
        self.backup()
        return ActionNode(self.pipeline("command", TokenType.RIGHT_DELIM), token.line)

    def else_control(self, token: Token) -> _Marker:
        peek = self.peek()
        if peek.type is TokenType.KEYWORD and peek.value in ("if", "with"):
            # "{{else if ...}}" is shorthand for "{{else}}{{if ...}}...{{end}}"
            return _Marker("else", token.line, chained=True)
        self.expect(TokenType.RIGHT_DELIM, "else")
        return _Marker("else", token.line)

    def parse_control(self, context: str, line: int) -> BranchNode:
        mark = len(self.vars)
        pipe = self.pipeline(context, TokenType.RIGHT_DELIM)
        if context == "range":
            self.range_depth += 1
        body, marker = self.item_list(context)
        if context == "range":
            self.range_depth -= 1

        else_body = None
        if marker.kind == "else":
            if marker.chained:
                token = self.next()
                if token.value != context or context == "range":
                    raise self.error(f"unexpected {token} after else in {context}", token)
                else_body = ListNode([self.parse_control(context, token.line)], token.line)
            else:
                else_body, marker = self.item_list(context)
                if marker.kind != "end":
                    raise self.error(f"expected end; found {{{{{marker.kind}}}}}")
        del self.vars[mark:]
        return BranchNode(context, pipe, body, else_body, line)

    def template_control(self, token: Token) -> TemplateNode:
        name_token = self.next()
        if name_token.type not in (TokenType.STRING, TokenType.RAW_STRING):
            raise self.error(f"unexpected {name_token} in template clause", name_token)
        name = self.unquote(name_token)
        pipe = None
        if self.peek().type is not TokenType.RIGHT_DELIM:
            pipe = self.pipeline("template clause", TokenType.RIGHT_DELIM)
        else:
            self.next()
        return TemplateNode(name, pipe, token.line)

    def block_control(self, token: Token) -> TemplateNode:
        name_token = self.next()
        if name_token.type not in (TokenType.STRING, TokenType.RAW_STRING):
            raise self.error(f"unexpected {name_token} in block clause", name_token)
        name = self.unquote(name_token)
        pipe = self.pipeline("block clause", TokenType.RIGHT_DELIM)
        self.add_tree(name, self.parse_sub_template("block"))
        return TemplateNode(name, pipe, token.line)

    # Pipelines and commands
    def pipeline(self, context: str, end: TokenType) -> PipeNode:
        line = self.peek().line
        decl: List[str] = []
        is_assign = False

        token = self.peek()
        if token.type is TokenType.VARIABLE and "." not in token.value:
            following = self.peek(1)
            if following.type in (TokenType.DECLARE, TokenType.ASSIGN):
                decl = [token.value]
                is_assign = following.type is TokenType.ASSIGN
                self.next()
                self.next()
            elif (
                following.type is TokenType.COMMA
                and context == "range"
                and self.peek(2).type is TokenType.VARIABLE
                and self.peek(3).type in (TokenType.DECLARE, TokenType.ASSIGN)
            ):
                decl = [token.value, self.peek(2).value]
                is_assign = self.peek(3).type is TokenType.ASSIGN
                for _ in range(4):
                    self.next()
            for name in decl:
                if is_assign:
                    if name not in self.vars:
                        raise self.error(f'undefined variable "{name}"', token)
                else:
                    self.vars.append(name)

        cmds: List[CommandNode] = []
        while True:
            token = self.peek()
            if token.type is end:
                self.next()
                break
            if token.type is TokenType.EOF:
                raise self.error(f"unexpected EOF in {context}", token)
            cmds.append(self.command(end))
            if self.peek().type is TokenType.PIPE:
                pipe_token = self.next()
                if self.peek().type in (end, TokenType.PIPE):
                    raise self.error(f"missing command after | in {context}", pipe_token)

        if not cmds:
            raise self.error(f"missing value for {context}", token)
        for stage, cmd in enumerate(cmds[1:], 2):
            if isinstance(cmd.args[0], (BoolNode, DotNode, NilNode, NumberNode, StringNode)):
                raise self.error(f"non executable command in pipeline stage {stage}")
        return PipeNode(cmds, decl, is_assign, line)

    def command(self, end: TokenType) -> CommandNode:
        line = self.peek().line
        args: List[Any] = []
        while True:
            token = self.peek()
            if token.type in (end, TokenType.PIPE):
                break
            if token.type is TokenType.EOF:
                raise self.error("unclosed action", token)
            if args and not token.spaced:
                raise self.error(f"missing space? {token}", token)
            args.append(self.operand())
        if not args:
            raise self.error("empty command", self.peek())
        return CommandNode(args, line)

    def operand(self) -> Any:
        node = self.term()
        token = self.peek()
        if token.type is TokenType.FIELD and not token.spaced:
            self.next()
            names = split_field_chain(token.value)
            if isinstance(node, FieldNode):
                return FieldNode(node.names + names)
            if isinstance(node, VariableNode):
                return VariableNode(node.name, node.names + names)
            if isinstance(node, (BoolNode, DotNode, NilNode, NumberNode, StringNode)):
                raise self.error(f"unexpected . after term {node}", token)
            return ChainNode(node, names)
        return node

    def term(self) -> Any:
        token = self.next()
        token_type = token.type
        if token_type is TokenType.IDENTIFIER:
            if token.value not in self.funcs:
                raise self.error(f'function "{token.value}" not defined', token)
            return IdentifierNode(token.value)
        if token_type is TokenType.DOT:
            return DotNode()
        if token_type is TokenType.NIL:
            return NilNode()
        if token_type is TokenType.VARIABLE:
            name = token.value.split(".")[0]
            if name not in self.vars:
                raise self.error(f'undefined variable "{name}"', token)
            return VariableNode(name, split_field_chain(token.value))
        if token_type is TokenType.FIELD:
            return FieldNode(split_field_chain(token.value))
        if token_type is TokenType.BOOL:
            return BoolNode(token.value == "true")
        if token_type in (TokenType.NUMBER, TokenType.CHAR):
            return NumberNode(self.parse_number(token), token.value)
        if token_type in (TokenType.STRING, TokenType.RAW_STRING):
            return StringNode(self.unquote(token), token.value)
        if token_type is TokenType.LEFT_PAREN:
            return self.pipeline("parenthesized pipeline", TokenType.RIGHT_PAREN)
        raise self.error(f"unexpected {token} in operand", token)

    # Literals
    def unquote(self, token: Token) -> str:
        if token.type is TokenType.RAW_STRING:
            return token.value[1:-1]
        body = token.value[1:-1]
        if "\\" in _ESCAPE_RE.sub("", body):
            raise self.error(f"invalid syntax in string {token.value}", token)
        return ast.literal_eval(token.value)

    def parse_number(self, token: Token) -> Union[int, float]:
        text = token.value
        try:
            if token.type is TokenType.CHAR:
                body = text[1:-1]
                if "\\" in _CHAR_ESCAPE_RE.sub("", body):
                    raise ValueError(text)
                char = ast.literal_eval(text)
                if len(char) != 1:
                    raise ValueError(text)
                return ord(char)
            if _LEGACY_OCTAL_RE.fullmatch(text):
                return int(text.replace("_", ""), 8)
            try:
                return int(text.replace("_", ""), 0)
            except ValueError:
                return float(text.replace("_", ""))
        except (SyntaxError, ValueError):
            raise self.error(f"illegal number syntax: {text}", token)
