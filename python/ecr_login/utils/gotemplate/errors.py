class TemplateParseError(Exception):
    """Raised when template source cannot be parsed"""

    def __init__(self, name: str, line: int, message: str):
        self.name = name
        self.line = line
        self.message = message
        super().__init__(f"template: {name}:{line}: {message}")


class TemplateExecError(Exception):
    """Raised when a parsed template fails while executing"""

    def __init__(self, name: str, line: int, message: str):
        self.name = name
        self.line = line
        self.message = message
        super().__init__(f"template: {name}:{line}: {message}")
