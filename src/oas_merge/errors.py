"""Exceptions raised by the selective-merge pipeline.

Every error aborts the whole run; the CLI turns them into a logged message and a
non-zero exit code.
"""


class OASMergeError(Exception):
    """Base class for all oas-merge errors."""


class ConfigError(OASMergeError):
    """The merge configuration is missing, unparsable or invalid."""


class ResolutionError(OASMergeError):
    """A source document could not be fetched, parsed or recognised as OpenAPI 3."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to resolve '{url}': {reason}")
        self.url = url
        self.reason = reason


class GlobPatternError(OASMergeError):
    """A path glob in the configuration cannot be compiled."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid glob pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class MergeError(OASMergeError):
    """The merge engine rejected the prepared documents."""

    def __init__(self, message: str, error_type: str | None = None):
        super().__init__(f"Merge failed: {message}")
        self.message = message
        self.error_type = error_type
