from __future__ import annotations


class TreeStreamError(Exception):
    """Base exception class for all tree-stream errors.

    Every custom exception in the package inherits from this class so the
    CLI boundary can catch them in one place while system exceptions
    propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            document = load_document(path)
        except TreeStreamError as e:
            logger.error("document_failed", error=e.message)
            sys.exit(1)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the TreeStreamError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
