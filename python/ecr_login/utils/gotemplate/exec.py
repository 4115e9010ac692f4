"""
Executor for parsed Go templates.

Field access follows Go's rules as closely as Python data allows:
mappings are looked up by key (a missing key is nil), dataclasses by
their template field name, datetimes through time.Time-style methods,
and anything else by public attribute. An unknown field is an error.
"""

import dataclasses
import inspect
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TextIO, Tuple

from ecr_login.utils.gotemplate.errors import TemplateExecError
from ecr_login.utils.gotemplate.formatting import NO_VALUE, field_name, format_value, sorted_items, type_name
from ecr_login.utils.gotemplate.funcs import FuncError, is_true
from ecr_login.utils.gotemplate.gotime import TIME_METHODS
from ecr_login.utils.gotemplate.parse import (
    ActionNode,
    BoolNode,
    BranchNode,
    BreakNode,
    ChainNode,
    CommandNode,
    ContinueNode,
    DotNode,
    FieldNode,
    IdentifierNode,
    ListNode,
    NilNode,
    NumberNode,
    PipeNode,
    StringNode,
    TemplateNode,
    TextNode,
    VariableNode,
)

MAX_EXEC_DEPTH = 100


class _Missing:
    """No final value was piped into a command"""


MISSING = _Missing()


class _Break(Exception):
    pass


class _Continue(Exception):
    pass


class State:
    """Execution state for one Execute call"""

    def __init__(self, name: str, trees: Dict[str, ListNode], funcs: Dict[str, Callable], writer: TextIO, data: Any):
        self.name = name
        self.trees = trees
        self.funcs = funcs
        self.writer = writer
        self.vars: List[Tuple[str, Any]] = [("$", data)]
        self.depth = 0
        self.line = 0
        self.at = ""

    def error(self, message: str) -> TemplateExecError:
        where = f'executing "{self.name}" at <{self.at}>: ' if self.at else f'executing "{self.name}": '
        return TemplateExecError(self.name, self.line, where + message)

    # Variables
    def mark(self) -> int:
        return len(self.vars)

    def pop(self, mark: int) -> None:
        del self.vars[mark:]

    def push(self, name: str, value: Any) -> None:
        self.vars.append((name, value))

    def set_var(self, name: str, value: Any) -> None:
        for i in range(len(self.vars) - 1, -1, -1):
            if self.vars[i][0] == name:
                self.vars[i] = (name, value)
                return
        raise self.error(f"undefined variable: {name}")

    def set_top_var(self, n: int, value: Any) -> None:
        name, _ = self.vars[-n]
        self.vars[-n] = (name, value)

    def var_value(self, name: str) -> Any:
        for var_name, value in reversed(self.vars):
            if var_name == name:
                return value
        raise self.error(f"undefined variable: {name}")

    # Tree walking
    def walk(self, dot: Any, node: Any) -> None:
        self.line = getattr(node, "line", 0) or self.line
        if isinstance(node, ListNode):
            for child in node.nodes:
                self.walk(dot, child)
        elif isinstance(node, TextNode):
            self.writer.write(node.text)
        elif isinstance(node, ActionNode):
            value = self.eval_pipeline(dot, node.pipe)
            if not node.pipe.decl:
                self.writer.write(format_value(value, nil_text=NO_VALUE))
        elif isinstance(node, BranchNode):
            if node.kind == "range":
                self.walk_range(dot, node)
            else:
                self.walk_if_or_with(dot, node)
        elif isinstance(node, TemplateNode):
            self.walk_template(dot, node)
        elif isinstance(node, BreakNode):
            raise _Break()
        elif isinstance(node, ContinueNode):
            raise _Continue()
        else:
            raise self.error(f"unknown node: {node!r}")

    def walk_if_or_with(self, dot: Any, node: BranchNode) -> None:
        mark = self.mark()
        value = self.eval_pipeline(dot, node.pipe)
        if is_true(value):
            self.walk(value if node.kind == "with" else dot, node.body)
        elif node.else_body is not None:
            self.walk(dot, node.else_body)
        self.pop(mark)

    def range_items(self, value: Any, two_vars: bool) -> List[Tuple[Any, Any]]:
        if value is None:
            return []
        if isinstance(value, Mapping):
            return sorted_items(value)
        if isinstance(value, (list, tuple)):
            return list(enumerate(value))
        if isinstance(value, int) and not isinstance(value, bool):
            if two_vars:
                raise self.error(f"can't use {value} to iterate over more than one variable")
            return [(i, i) for i in range(value)]
        if isinstance(value, (str, bytes, bool, float)) or dataclasses.is_dataclass(value):
            raise self.error(f"range can't iterate over {format_value(value)}")
        try:
            return list(enumerate(value))
        except TypeError:
            raise self.error(f"range can't iterate over {format_value(value)}")

    def walk_range(self, dot: Any, node: BranchNode) -> None:
        mark = self.mark()
        pipe = node.pipe
        value = self.eval_pipeline(dot, pipe)
        items = self.range_items(value, len(pipe.decl) > 1)

        if not items:
            if node.else_body is not None:
                self.walk(dot, node.else_body)
            self.pop(mark)
            return

        inner_mark = self.mark()
        for index, elem in items:
            if pipe.decl:
                if pipe.is_assign:
                    if len(pipe.decl) > 1:
                        self.set_var(pipe.decl[0], index)
                        self.set_var(pipe.decl[1], elem)
                    else:
                        self.set_var(pipe.decl[0], elem)
                else:
                    self.set_top_var(1, elem)
                    if len(pipe.decl) > 1:
                        self.set_top_var(2, index)
            try:
                self.walk(elem, node.body)
            except _Continue:
                pass
            except _Break:
                break
            finally:
                self.pop(inner_mark)
        self.pop(mark)

    def walk_template(self, dot: Any, node: TemplateNode) -> None:
        tree = self.trees.get(node.name)
        if tree is None:
            raise self.error(f'no such template "{node.name}"')
        new_dot = self.eval_pipeline(dot, node.pipe) if node.pipe is not None else None
        if self.depth >= MAX_EXEC_DEPTH:
            raise self.error("exceeded maximum template depth")

        saved = (self.name, self.vars, self.line, self.at)
        self.name, self.vars = node.name, [("$", new_dot)]
        self.depth += 1
        try:
            self.walk(new_dot, tree)
        finally:
            self.depth -= 1
            self.name, self.vars, self.line, self.at = saved

    # Evaluation
    def eval_pipeline(self, dot: Any, pipe: Optional[PipeNode]) -> Any:
        if pipe is None:
            return None
        value: Any = MISSING
        for cmd in pipe.cmds:
            value = self.eval_command(dot, cmd, value)
        for name in pipe.decl:
            if pipe.is_assign:
                self.set_var(name, value)
            else:
                self.push(name, value)
        return value

    def not_a_function(self, args: Optional[Sequence[Any]], final: Any) -> None:
        if (args is not None and len(args) > 1) or final is not MISSING:
            raise self.error(f"can't give argument to non-function {args[0] if args else ''}")

    def eval_command(self, dot: Any, cmd: CommandNode, final: Any) -> Any:
        first = cmd.args[0]
        self.at = str(first)
        if isinstance(first, FieldNode):
            return self.eval_field_chain(dot, dot, first.names, cmd.args, final)
        if isinstance(first, ChainNode):
            receiver = self.eval_arg(dot, first.node)
            return self.eval_field_chain(dot, receiver, first.names, cmd.args, final)
        if isinstance(first, IdentifierNode):
            return self.eval_function(dot, first.name, cmd.args, final)
        if isinstance(first, VariableNode):
            return self.eval_variable(dot, first, cmd.args, final)
        if isinstance(first, PipeNode):
            self.not_a_function(cmd.args, final)
            return self.eval_pipeline(dot, first)
        if isinstance(first, NilNode):
            raise self.error("nil is not a command")

        self.not_a_function(cmd.args, final)
        if isinstance(first, DotNode):
            return dot
        if isinstance(first, (BoolNode, NumberNode, StringNode)):
            return first.value
        raise self.error(f"can't evaluate command {first}")

    def eval_arg(self, dot: Any, node: Any) -> Any:
        if isinstance(node, DotNode):
            return dot
        if isinstance(node, NilNode):
            return None
        if isinstance(node, FieldNode):
            return self.eval_field_chain(dot, dot, node.names, None, MISSING)
        if isinstance(node, VariableNode):
            return self.eval_variable(dot, node, None, MISSING)
        if isinstance(node, PipeNode):
            return self.eval_pipeline(dot, node)
        if isinstance(node, IdentifierNode):
            return self.eval_function(dot, node.name, [node], MISSING)
        if isinstance(node, ChainNode):
            receiver = self.eval_arg(dot, node.node)
            return self.eval_field_chain(dot, receiver, node.names, None, MISSING)
        if isinstance(node, (BoolNode, NumberNode, StringNode)):
            return node.value
        raise self.error(f"can't handle {node} as argument")

    def eval_variable(self, dot: Any, node: VariableNode, args: Optional[Sequence[Any]], final: Any) -> Any:
        value = self.var_value(node.name)
        if not node.names:
            self.not_a_function(args, final)
            return value
        return self.eval_field_chain(dot, value, node.names, args, final)

    def eval_field_chain(self, dot: Any, receiver: Any, names: Sequence[str],
                         args: Optional[Sequence[Any]], final: Any) -> Any:
        for name in names[:-1]:
            receiver = self.eval_field(dot, name, receiver, None, MISSING)
        return self.eval_field(dot, names[-1], receiver, args, final)

    def eval_field(self, dot: Any, name: str, receiver: Any, args: Optional[Sequence[Any]], final: Any) -> Any:
        has_args = (args is not None and len(args) > 1) or final is not MISSING

        if receiver is None:
            raise self.error(f"nil pointer evaluating {type_name(receiver)}.{name}")

        if isinstance(receiver, datetime):
            method = TIME_METHODS.get(name)
            if method is None:
                raise self.error(f"can't evaluate field {name} in type time.Time")
            return self.call(name, method, [receiver] + self.eval_call_args(dot, args, final))

        if isinstance(receiver, Mapping):
            if has_args:
                raise self.error(f"{name} is not a method but has arguments")
            return receiver.get(name)

        if dataclasses.is_dataclass(receiver) and not isinstance(receiver, type):
            for f in dataclasses.fields(receiver):
                if name in (field_name(f), f.name):
                    if has_args:
                        raise self.error(f"{name} has arguments but cannot be invoked as function")
                    return getattr(receiver, f.name)
            raise self.error(f"can't evaluate field {name} in type {type_name(receiver)}")

        if not name.startswith("_") and not isinstance(receiver, (str, bytes, int, float, list, tuple)):
            attr = getattr(receiver, name, MISSING)
            if attr is not MISSING:
                if callable(attr):
                    return self.call(name, attr, self.eval_call_args(dot, args, final))
                if has_args:
                    raise self.error(f"{name} has arguments but cannot be invoked as function")
                return attr

        raise self.error(f"can't evaluate field {name} in type {type_name(receiver)}")

    def eval_call_args(self, dot: Any, args: Optional[Sequence[Any]], final: Any) -> List[Any]:
        values = [self.eval_arg(dot, arg) for arg in (args or [])[1:]]
        if final is not MISSING:
            values.append(final)
        return values

    def eval_function(self, dot: Any, name: str, args: Sequence[Any], final: Any) -> Any:
        func = self.funcs.get(name)
        if func is None:
            raise self.error(f'"{name}" is not a defined function')

        if name in ("and", "or"):
            # Short-circuit: stop evaluating once the result is known
            arg_nodes = list(args[1:])
            if not arg_nodes and final is MISSING:
                raise self.error(f"wrong number of args for {name}: want at least 1 got 0")
            value: Any = None
            for node in arg_nodes:
                value = self.eval_arg(dot, node)
                if is_true(value) == (name == "or"):
                    return value
            if final is not MISSING:
                value = final
            return value

        return self.call(name, func, self.eval_call_args(dot, args, final))

    def call(self, name: str, func: Callable, values: List[Any]) -> Any:
        try:
            inspect.signature(func).bind(*values)
        except TypeError as e:
            raise self.error(f"wrong number of args for {name}: {e}")
        except ValueError:
            # Builtins without an introspectable signature
            pass
        try:
            return func(*values)
        except (FuncError, TypeError, ValueError, OverflowError) as e:
            raise self.error(f"error calling {name}: {e}")


def execute(name: str, trees: Dict[str, ListNode], funcs: Dict[str, Callable], writer: TextIO, data: Any) -> None:
    """Execute the named tree, writing output to writer"""
    tree = trees.get(name)
    state = State(name, trees, funcs, writer, data)
    if tree is None:
        raise state.error(f'no such template "{name}"')
    try:
        state.walk(data, tree)
    except (_Break, _Continue):
        raise state.error("break or continue outside range")
