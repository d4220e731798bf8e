"""Exception hierarchy for container reading, text parsing, and document assembly"""


class CardboxError(Exception):
    """Base class for every error raised by cardbox."""


# --- container ---

class ContainerError(CardboxError):
    """The container bytes could not be read as an archive (or one entry could not)."""


class MalformedEOCDError(ContainerError):
    """No End-of-Central-Directory record in the trailing window; the archive is unrecognisable."""


class UnsupportedEntryError(ContainerError):
    """A single entry uses an unsupported compression method or has an unreadable local header."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class CorruptEntryError(ContainerError):
    """A single deflate entry failed to decompress."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


# --- text ---

class TextFormatError(CardboxError, ValueError):
    """Structured text contradicts itself badly enough that no tree can be built."""

    def __init__(self, message: str, line: int | None = None):
        super().__init__(f"line {line}: {message}" if line is not None else message)
        self.line = line


# --- assembly ---

class AssemblyError(CardboxError):
    """Document assembly failed; carries the warnings accumulated before the failure."""

    def __init__(self, message: str, warnings: list[str] | None = None):
        super().__init__(message)
        self.warnings = list(warnings or [])


class MissingMetadataError(AssemblyError):
    """metadata.yaml is absent, unparseable, or lacks id/name."""


class MissingStructureError(AssemblyError):
    """structure.yaml is absent or unparseable."""


class ComponentLoadError(AssemblyError):
    """A component's content file could not be loaded (fatal only in strict mode)."""

    def __init__(self, component_id: str, reason: str, warnings: list[str] | None = None):
        super().__init__(reason, warnings)
        self.component_id = component_id
        self.reason = reason


class InvalidSourceError(AssemblyError):
    """The assembly source is neither a file map, container bytes, nor a Document."""
