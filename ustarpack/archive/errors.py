class ArchiveError(Exception):
    pass


class ArchiveIOError(ArchiveError, OSError):
    def __init__(self, archive: str, reason: str) -> None:
        super().__init__()
        self.archive = archive
        self.reason = reason

    def __str__(self) -> str:
        return f"I/O error on archive {self.archive}: {self.reason}"

    def __repr__(self) -> str:
        return f"ArchiveIOError({self.archive!r}, {self.reason!r})"


class ShortWriteError(ArchiveIOError):
    def __init__(self, archive: str, entry: str, expected: int, actual: int) -> None:
        super().__init__(
            archive,
            f"wrote {actual} of {expected} content bytes for entry {entry}",
        )
        self.entry = entry
        self.expected = expected
        self.actual = actual

    def __repr__(self) -> str:
        return (
            f"ShortWriteError({self.archive!r}, {self.entry!r}, "
            f"{self.expected}, {self.actual})"
        )


class ShortReadError(ArchiveIOError):
    def __init__(self, archive: str, entry: str, expected: int, actual: int) -> None:
        super().__init__(
            archive,
            f"read {actual} of {expected} bytes for entry {entry}",
        )
        self.entry = entry
        self.expected = expected
        self.actual = actual

    def __repr__(self) -> str:
        return (
            f"ShortReadError({self.archive!r}, {self.entry!r}, "
            f"{self.expected}, {self.actual})"
        )


class NameTooLongError(ArchiveError, ValueError):
    def __init__(self, name: str, limit: int) -> None:
        super().__init__()
        self.name = name
        self.limit = limit

    def __str__(self) -> str:
        return f"entry name is longer than {self.limit} bytes: {self.name}"

    def __repr__(self) -> str:
        return f"NameTooLongError({self.name!r}, {self.limit})"


class EntrySizeError(ArchiveError, ValueError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__()
        self.size = size
        self.limit = limit

    def __str__(self) -> str:
        return f"entry size {self.size} is outside the representable range 0..{self.limit}"

    def __repr__(self) -> str:
        return f"EntrySizeError({self.size}, {self.limit})"


class CorruptArchiveError(ArchiveError):
    def __init__(self, archive: str, reason: str) -> None:
        super().__init__()
        self.archive = archive
        self.reason = reason

    def __str__(self) -> str:
        return f"corrupt archive {self.archive}: {self.reason}"

    def __repr__(self) -> str:
        return f"CorruptArchiveError({self.archive!r}, {self.reason!r})"


class ChecksumMismatchError(CorruptArchiveError):
    def __init__(self, archive: str, expected: int, actual: int) -> None:
        super().__init__(
            archive,
            f"header checksum mismatch: stored {expected:o}, computed {actual:o}",
        )
        self.expected = expected
        self.actual = actual


class ArchiveModeError(ArchiveError):
    def __init__(self, archive: str, op: str, mode: str) -> None:
        super().__init__()
        self.archive = archive
        self.op = op
        self.mode = mode

    def __str__(self) -> str:
        return f"cannot {self.op} archive {self.archive} opened in mode '{self.mode}'"


class ArchiveClosedError(ArchiveError):
    def __init__(self, archive: str) -> None:
        super().__init__()
        self.archive = archive

    def __str__(self) -> str:
        return f"archive {self.archive} is already closed"


class UnseekableSourceError(ArchiveError, ValueError):
    def __str__(self) -> str:
        return "entry content source must support tell() and seek()"
