class MinsetError(Exception):
    pass


class InvalidArgument(MinsetError, ValueError):
    pass


class StoreConsistencyError(MinsetError):
    """The corpus store is missing data it claims to hold."""


class DecodeError(MinsetError, ValueError):
    """A packed coverage blob is truncated or corrupt."""


class TraceNotFound(MinsetError, KeyError):
    def __init__(self, trace_id: str, field: str):
        super().__init__(trace_id)
        self.trace_id = trace_id
        self.field = field

    def __str__(self) -> str:
        return f"trace {self.trace_id!r} has no {self.field} entry"
