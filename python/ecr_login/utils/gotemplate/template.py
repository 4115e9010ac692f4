import io
from typing import Any, Callable, Dict, List, Mapping, Optional, TextIO

from ecr_login.utils.gotemplate.errors import TemplateExecError
from ecr_login.utils.gotemplate.exec import execute
from ecr_login.utils.gotemplate.funcs import BUILTINS
from ecr_login.utils.gotemplate.lexer import lex
from ecr_login.utils.gotemplate.parse import ListNode, Parser, is_empty_tree


class Template:
    """A named Go text/template and the templates it defines.

    Usage mirrors Go's API:

        tmpl = Template("default").parse("{{range .}}{{.User}}\\n{{end}}")
        text = tmpl.execute(records)
    """

    def __init__(self, name: str, funcs: Optional[Mapping[str, Callable]] = None):
        self.name = name
        self.funcs: Dict[str, Callable] = dict(BUILTINS)
        if funcs:
            self.funcs.update(funcs)
        self.trees: Dict[str, ListNode] = {}

    def parse(self, source: str) -> "Template":
        """Parse source into this template; raises TemplateParseError"""
        trees = Parser(self.name, lex(self.name, source), self.funcs).parse()
        for name, tree in trees.items():
            if name in self.trees and is_empty_tree(tree):
                continue
            self.trees[name] = tree
        return self

    def templates(self) -> List[str]:
        return sorted(self.trees)

    def execute_to(self, stream: TextIO, data: Any, name: Optional[str] = None) -> None:
        """Execute straight into stream; output written before an error stays written"""
        name = name or self.name
        tree = self.trees.get(name)
        if tree is None:
            raise TemplateExecError(name, 0, f'"{name}" is an incomplete or empty template')
        execute(name, self.trees, self.funcs, stream, data)

    def execute(self, data: Any, name: Optional[str] = None) -> str:
        """Execute into a buffer and return the complete output"""
        buffer = io.StringIO()
        self.execute_to(buffer, data, name)
        return buffer.getvalue()
