"""Error kinds raised by the indexing, search and organization core."""


class CoreError(Exception):
    """Base class for all errors raised by the core."""


class ProviderUnavailable(CoreError):
    """The embedding provider could not produce vectors.

    Raised per file during sync; the batch counts it and continues.
    """


class UnsupportedFormat(CoreError):
    """The content source cannot extract text for the file's MIME type.

    Counted as a skip by the sync pipeline, not as an error.
    """

    def __init__(self, mime_type: str | None, file_id: str | None = None):
        self.mime_type = mime_type
        self.file_id = file_id
        super().__init__(f"Unsupported file type: {mime_type}")


class InsufficientData(CoreError):
    """Organization analysis was requested for too few embedded files."""

    def __init__(self, file_count: int, required: int):
        self.file_count = file_count
        self.required = required
        super().__init__(
            f"Need at least {required} files for meaningful organization. "
            f"Currently have {file_count} files with embeddings."
        )


class EmbeddingUnavailable(CoreError):
    """A search was attempted without a usable query vector."""
