"""Machine-readable output, one JSON object per line.

Every object carries a ``ty`` discriminator naming its schema and version, so
consumers can skip kinds they do not understand.
"""

import enum
import json
import sys
from typing import BinaryIO, Iterable, TypedDict

if sys.version_info >= (3, 11):

    class PorcelainEntityType(enum.StrEnum):
        LogV1 = "log-v1"
        EntryListOutputV1 = "entrylistoutput-v1"

else:

    class PorcelainEntityType(str, enum.Enum):
        LogV1 = "log-v1"
        EntryListOutputV1 = "entrylistoutput-v1"


class PorcelainEntity(TypedDict):
    ty: PorcelainEntityType


def encode_porcelain_line(obj: PorcelainEntity) -> bytes:
    s = json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
    return s.encode("utf-8") + b"\n"


class PorcelainOutput:
    def __init__(self, out: BinaryIO | None = None) -> None:
        self.out = sys.stdout.buffer if out is None else out

    def emit(self, obj: PorcelainEntity) -> None:
        # consumers read line by line, so never leave one sitting in a buffer
        self.out.write(encode_porcelain_line(obj))
        self.out.flush()

    def emit_all(self, objs: Iterable[PorcelainEntity]) -> None:
        for obj in objs:
            self.out.write(encode_porcelain_line(obj))
        self.out.flush()
