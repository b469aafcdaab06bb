from nodes import Node

class EngineError(Exception):
    """The inference pass reached something its rule table cannot type.

    These are gaps in the engine's coverage of the language subset, not type
    errors in the program: those are carried as ``ErrType`` values.
    """

    def __init__(self, message: str, node: Node | None = None):
        self.node = node
        if node is not None:
            message = f"{node.loc}: {message}"
        super().__init__(message)

class UnboundIdentifierError(EngineError):
    def __init__(self, node: Node, name: str):
        self.name = name
        super().__init__(f"'{name}' is not defined", node)

class UnsupportedNodeError(EngineError):
    def __init__(self, node: Node):
        super().__init__(f"no inference rule for {node.kind}", node)


class ParseError(Exception):
    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.line = line
        self.column = column
        super().__init__(f"{line}:{column}: {message}")


class ConfigError(Exception): ...
