"""
A Python implementation of Go's text/template language.

Supports actions, pipelines, variables, if/else/with/range (with break and
continue), define/template/block, comments, trim markers and Go's builtin
functions. Values print the way Go's fmt package prints them.
"""

from ecr_login.utils.gotemplate.errors import TemplateExecError, TemplateParseError
from ecr_login.utils.gotemplate.template import Template

__all__ = ["Template", "TemplateExecError", "TemplateParseError"]
