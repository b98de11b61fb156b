"""Exception types raised by mdblocks"""


class MdBlocksError(Exception):
    """Base class for all mdblocks errors."""


class StructuralError(MdBlocksError, ValueError):
    """A document could not be turned into a tree at all.

    Fatal for that one document only; `source` names it so a caller working
    through a batch can skip or report it.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")
