class StatementError(ValueError):
    """Base class for statement import failures shown to the user."""


class FormatError(StatementError):
    """The file is neither a delimited-text nor a markup statement."""


class EmptyResultError(StatementError):
    """The statement parsed but yielded no usable transactions."""
