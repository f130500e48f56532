"""Custom exceptions and error handling for epub_reader.

Only CorruptArchiveError ever escapes a load. The remaining exceptions are
raised by the strict helpers of each component and caught at the component
boundary, where they degrade to a default value and a warning on the Book.
"""


class EpubReaderError(Exception):
    """Base exception for epub_reader errors.

    Attributes:
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
        context: Optional additional context about the error
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        context: str | None = None
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the complete error message."""
        parts = [f"Error: {self.message}"]
        if self.context:
            parts.append(f"Context: {self.context}")
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return "\n".join(parts)


class CorruptArchiveError(EpubReaderError):
    """Raised when the input is not a readable ZIP archive."""

    def __init__(self, details: str | None = None, source: str | None = None):
        super().__init__(
            message="This file could not be opened",
            suggestion="Check that the file is a complete EPUB (ZIP) archive "
                      "and was not truncated during download or copy.",
            context="; ".join(p for p in (source, details) if p) or None
        )
        self.details = details
        self.source = source


class MetadataUnavailableError(EpubReaderError):
    """Raised when the package document is missing or unparseable."""

    def __init__(self, opf_path: str | None = None, details: str | None = None):
        if opf_path:
            message = f"Package document could not be read: {opf_path}"
        else:
            message = "No package document (.opf) found"
        super().__init__(message=message, context=details)
        self.opf_path = opf_path


class ChapterDecodeError(EpubReaderError):
    """Raised when a content document is not valid UTF-8 text."""

    def __init__(self, path: str, details: str | None = None):
        super().__init__(
            message=f"Chapter could not be decoded: {path}",
            context=details
        )
        self.path = path


class ImageResolutionMiss(EpubReaderError):
    """Raised when an <img> reference matches no image in the archive."""

    def __init__(self, src: str):
        super().__init__(message=f"Image reference not found in archive: {src}")
        self.src = src


class CoverNotFoundError(EpubReaderError):
    """Raised when no strategy of the cover cascade yields an image."""

    def __init__(self, strategies: list[str] | None = None):
        super().__init__(
            message="No cover image found",
            context=f"Tried: {', '.join(strategies)}" if strategies else None
        )
        self.strategies = strategies or []


class ConfigurationError(EpubReaderError):
    """Raised when there's a configuration or argument error."""

    def __init__(self, message: str, parameter: str | None = None):
        suggestion = "Check your command line arguments or configuration file."
        if parameter:
            suggestion = f"Check the value of '{parameter}' parameter."

        super().__init__(
            message=message,
            suggestion=suggestion,
            context=f"Parameter: {parameter}" if parameter else None
        )
        self.parameter = parameter


def format_error_for_user(error: Exception) -> str:
    """Format any exception for user-friendly display.

    Args:
        error: The exception to format

    Returns:
        User-friendly error message string
    """
    if isinstance(error, EpubReaderError):
        return str(error)

    error_type = type(error).__name__
    error_msg = str(error)

    if isinstance(error, FileNotFoundError):
        return f"Error: File not found - {error_msg}\nSuggestion: Check that the file path is correct."

    if isinstance(error, PermissionError):
        return f"Error: Permission denied - {error_msg}\nSuggestion: Check file permissions or run with appropriate privileges."

    if isinstance(error, IsADirectoryError):
        return f"Error: Expected a file but got a directory - {error_msg}"

    # Generic fallback
    return f"Error ({error_type}): {error_msg}"
