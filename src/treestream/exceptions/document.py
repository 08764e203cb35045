from __future__ import annotations

from treestream.exceptions.base import TreeStreamError


class DocumentError(TreeStreamError):
    """Exception for malformed tree documents.

    Attributes:
        message: Human-readable error message.
        path: Location of the offending node inside the document, using
            dotted/indexed notation (e.g., "children[2].stream").
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize the DocumentError.

        Args:
            message: Human-readable error message.
            path: Optional location of the offending node.
        """
        self.path = path
        if path:
            message = f"{message} (at {path})"
        super().__init__(message)
