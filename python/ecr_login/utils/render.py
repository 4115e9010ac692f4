"""
Rendering of decoded credentials through a Go text/template.

The whole output is rendered into memory before anything is written, so
a template that fails halfway leaves stdout untouched.
"""

import logging
import os
from typing import Optional, Sequence, TextIO

from ecr_login.utils.auth.providers import AuthRecord
from ecr_login.utils.error_utils import create_output_error, create_template_error
from ecr_login.utils.gotemplate import Template, TemplateExecError, TemplateParseError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = "default"
DEFAULT_TEMPLATE = "{{range .}}docker login -u {{.User}} -p {{.Pass}} {{.ProxyEndpoint}}\n{{end}}"


def load_template(path: Optional[str] = None) -> Template:
    """Load the template at path, or the built-in docker login template.

    Raises:
        TemplateError: If the file cannot be read or does not parse
    """
    if path is None:
        logger.debug("Using built-in template")
        return Template(DEFAULT_TEMPLATE_NAME).parse(DEFAULT_TEMPLATE)

    name = os.path.basename(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            source = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise create_template_error(name, e, path=path) from e

    try:
        template = Template(name).parse(source)
    except TemplateParseError as e:
        raise create_template_error(name, e, path=path) from e

    logger.info(f"Loaded template {name} from {path}")
    return template


def render_records(template: Template, records: Sequence[AuthRecord]) -> str:
    """Execute template once with the full record list as its data.

    Raises:
        TemplateError: If execution fails
    """
    try:
        return template.execute(list(records))
    except TemplateExecError as e:
        raise create_template_error(template.name, e) from e


def write_output(text: str, stream: TextIO) -> None:
    """Write rendered output and flush it.

    Raises:
        OutputError: If the stream cannot be written
    """
    try:
        stream.write(text)
        stream.flush()
    except OSError as e:
        raise create_output_error(e) from e
