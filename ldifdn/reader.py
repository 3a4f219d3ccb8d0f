"""Read directory entries from LDIF content records.

The grammar of [RFC2849] (continued lines, comments, base64 values, the version line)
is handled by python-ldap's LDIFParser. On top of it, each record is turned into an
LDIFRecord: its dn becomes a DistinguishedName and its values are converted by the
decoders registered in ATTRIBUTE_DECODERS.

Change records and values given by URL (attr:< url) are not supported.
"""

import logging
import re
from collections import deque
from collections.abc import Mapping
from typing import Any, Deque, Dict, Iterable, Iterator, List, Optional

from ldif import LDIFParser

from ldifdn.attributes import DefaultDecoder, ObjectGuidDecoder
from ldifdn.dn import DistinguishedName
from ldifdn.exceptions import DecodingError, LDIFSyntaxError
from ldifdn.registry import ATTRIBUTE_DECODERS

logger = logging.getLogger(__name__)

SUPPORTED_VERSION = 1
LINE_PREFIX = re.compile(r"^Line \d+: ")


class LDIFRecord(Mapping):
    """A single directory entry.

    The attribute names are kept in the spelling of their first occurrence, but are
    looked up case-insensitively. The dn is accessible as record.dn and as record["dn"].
    Each attribute maps to the list of its values, or to its last value only if the
    record was read in scalar mode.
    """
    dn: DistinguishedName
    attributes: Dict[str, Any]
    line_number: int

    def __init__(self, dn: DistinguishedName, line_number: int = 0) -> None:
        self.dn = dn
        self.attributes = {}
        self.line_number = line_number
        self._names: Dict[str, str] = {}

    def add(self, name: str, value: Any, *, scalar: bool = False) -> None:
        key = self._names.setdefault(name.lower(), name)
        if scalar:
            if key in self.attributes:
                logger.debug(f"Overwriting value of {key} in record {self.dn}")
            self.attributes[key] = value
        else:
            self.attributes.setdefault(key, []).append(value)

    def __getitem__(self, item: str) -> Any:
        if item.lower() == "dn":
            return self.dn
        return self.attributes[self._names[item.lower()]]

    def __iter__(self) -> Iterator[str]:
        yield "dn"
        yield from self.attributes

    def __len__(self) -> int:
        return 1 + len(self.attributes)

    def __repr__(self) -> str:
        attributes = [f"dn={self.dn!r}", f"attributes={self.attributes!r}"]
        return self.__class__.__name__ + "(" + ", ".join(attributes) + ")"


class LDIFParseContext:
    """The position of one reader in its input.

    Every reader owns its context, so readers do not share any state.

    line_number: The number of physical lines read so far.
    record_count: The number of records read so far.
    dn_lines: The line numbers of the dn lines read but not yet handled.
    """
    line_number: int
    record_count: int
    dn_lines: Deque[int]

    def __init__(self) -> None:
        self.line_number = 0
        self.record_count = 0
        self.dn_lines = deque()


class LineInput:
    """Present an iterable of text lines as the file object LDIFParser reads from.

    Every line is counted in the context. A blank line is appended to the input, so
    the last record is always terminated, even if it consists of its dn only.
    """
    def __init__(self, lines: Iterable[str], context: LDIFParseContext) -> None:
        self._lines = iter(lines)
        self._context = context
        self._exhausted = False

    def read(self, size: int = -1) -> str:
        # only used by LDIFParser to check for text or bytes mode
        return ""

    def readline(self) -> str:
        try:
            line = next(self._lines)
        except StopIteration:
            if self._exhausted:
                return ""
            self._exhausted = True
            return "\n"
        self._context.line_number += 1
        # a dn-spec always starts in the first column
        if line.startswith("dn:"):
            self._context.dn_lines.append(self._context.line_number)
        # an empty string would signal the end of the input
        if not line.endswith("\n"):
            line += "\n"
        return line


class LDIFReader(LDIFParser):
    """Read the records of an LDIF stream.

    lines: Any iterable of text lines, e.g. a file opened in text mode.
    scalar: Keep only the last value of each attribute instead of a list of all values.
    raw_guid: Keep the objectGUID as base64 string instead of decoding it.
    ignored_attr_types: Names of attributes which are dropped from each record.
    max_entries: Stop after this many records, 0 reads all of them.

    The input is parsed completely on first iteration (or call of read).
    """
    scalar: bool
    raw_guid: bool
    context: LDIFParseContext
    records: List[LDIFRecord]

    def __init__(
        self,
        lines: Iterable[str],
        *,
        scalar: bool = False,
        raw_guid: bool = False,
        ignored_attr_types: Optional[Iterable[str]] = None,
        max_entries: int = 0,
    ) -> None:
        self.scalar = scalar
        self.raw_guid = raw_guid
        self.context = LDIFParseContext()
        self.records = []
        self._parsed = False
        super().__init__(LineInput(lines, self.context), list(ignored_attr_types or []), max_entries)

    def __iter__(self) -> Iterator[LDIFRecord]:
        return iter(self.read())

    def read(self) -> List[LDIFRecord]:
        if not self._parsed:
            self._parsed = True
            try:
                self.parse()
            except ValueError as e:
                # raised by LDIFParser for lines it can not parse
                description = LINE_PREFIX.sub("", str(e))
                raise LDIFSyntaxError(self.context.line_number, description) from e
            if self.version is not None and self.version != SUPPORTED_VERSION:
                logger.warning(f"Unsupported LDIF version {self.version!r}.")
        return self.records

    def handle(self, dn: str, entry: Dict[str, List[Optional[bytes]]]) -> None:
        line_number = self.context.dn_lines.popleft()
        record = LDIFRecord(self._decode(line_number, "dn", dn.encode("utf-8")), line_number)
        if "dn" in entry:
            raise LDIFSyntaxError(self.context.dn_lines.popleft(), "Missing blank line in front of dn.")
        for name, values in entry.items():
            if not name:
                raise LDIFSyntaxError(line_number, "Missing attribute name.")
            for value in values:
                if value is None:
                    raise LDIFSyntaxError(line_number, f"Values given by URL are not supported: {name}")
                record.add(name, self._decode(line_number, name, value), scalar=self.scalar)

        self.context.record_count += 1
        logger.debug(f"Read record {self.context.record_count} ({record.dn}) from line {line_number}")
        self.records.append(record)

    def _decode(self, line_number: int, name: str, value: bytes) -> Any:
        decoder = ATTRIBUTE_DECODERS[name] if name in ATTRIBUTE_DECODERS else DefaultDecoder
        try:
            if self.raw_guid and decoder is ObjectGuidDecoder:
                return ObjectGuidDecoder.raw_value(value)
            return decoder.decode_value(value)
        except DecodingError as e:
            raise LDIFSyntaxError(line_number, f"Invalid value of {name}: {e}") from e


def read_ldif(lines: Iterable[str], **options: Any) -> List[LDIFRecord]:
    """Read all records of the given LDIF lines at once. See LDIFReader for the options."""
    return LDIFReader(lines, **options).read()
