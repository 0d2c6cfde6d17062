import inspect


class ShouldBeUnreachable(RuntimeError):
    def __init__(self) -> None:
        current_frame = inspect.currentframe()
        if current_frame is None:
            raise ValueError("Missing current frame")

        outer_frame = current_frame.f_back
        if outer_frame is None:
            raise ValueError("Missing outer frame")

        super().__init__(
            f"A branch that should be unreachable has been reached at {outer_frame.f_code.co_filename}:{outer_frame.f_lineno}. THIS IS A BUG. Please report it on the litescape issue tracker"
        )


class UnexpectedTreeShape(RuntimeError):
    """
    A syntax tree did not have the shape a rewriter relies on.

    Trees come from a successful parse, so this is a programming error and is
    never handled inside the library.
    """

    def __init__(self, message: str, node: object = None) -> None:
        super().__init__(message)
        self.node = node


class ParseError(ValueError):
    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} (at offset {offset})")
        self.offset = offset
