"""Distinguished names as they appear in the dn: line of an LDIF record."""

from string import hexdigits as HEXDIGITS
from typing import Any, List, Tuple, Union

from ldifdn.exceptions import MalformedDistinguishedName

# distinguishedName = [ relativeDistinguishedName *( COMMA relativeDistinguishedName ) [ COMMA ] ]
# relativeDistinguishedName = *WSP attributeType *WSP EQUALS *WSP attributeValue *WSP
# attributeType = 1*( %x00-09 / %x0B-0C / %x0E-21 / %x23-2A / %x2D-3A / %x3F-5B / %x5D-7F / UTFMB )
#               ; the characters of <escaped>, LF and CR must not appear here
# attributeValue = *( stringchar / pair )
# stringchar = any character except ESC and COMMA
# pair = ESC ( hexpair / any character )
# hexpair = HEX HEX
# escaped = DQUOTE / PLUS / COMMA / SEMI / LANGLE / RANGLE / EQUALS / LF / CR
#
# This is the subset of [RFC2253] which Active Directory produces in LDIF exports.
# Multi-valued RDNs are not recognized: a '+' is simply part of the value.

ESCAPE = "\\"
ESCAPED = frozenset(',+"<>;=\n\r')
# characters which are escaped as hex digits when a value is written back
ESCAPED_AS_HEX = frozenset("\n\r")


def escape_value(value: str) -> str:
    """Escape an attribute value, so it may be used in the DNs string representation."""
    # escape the escape char first, so we do not accidentally escape this twice.
    value = value.replace(ESCAPE, ESCAPE + ESCAPE)
    for char in sorted(ESCAPED - ESCAPED_AS_HEX):
        value = value.replace(char, ESCAPE + char)
    for char in sorted(ESCAPED_AS_HEX):
        value = value.replace(char, f"{ESCAPE}{ord(char):02x}")
    return value


class RelativeDistinguishedName:
    """A single attribute=value segment of a DN.

    The value is stored unescaped. Both parts are stripped from surrounding whitespace,
    and the attribute type must not contain any of the characters which need escaping.
    """
    __slots__ = ("_attribute_type", "_value")

    def __init__(self, attribute_type: str, value: str) -> None:
        for char in attribute_type:
            if char in ESCAPED:
                raise MalformedDistinguishedName(
                    f"{attribute_type}={value}", f"Unexpected character {char!r} in attribute type")
        self._attribute_type = attribute_type.strip()
        self._value = value.strip()

    @property
    def attribute_type(self) -> str:
        return self._attribute_type

    @property
    def value(self) -> str:
        return self._value

    @property
    def string(self) -> str:
        """The (escaped) string representation of the RDN."""
        return f"{self._attribute_type}={escape_value(self._value)}"

    def __str__(self) -> str:
        return self.string

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, RelativeDistinguishedName):
            return NotImplemented
        return (self._attribute_type, self._value) == (other._attribute_type, other._value)

    def __ne__(self, other: Any) -> bool:
        if not isinstance(other, RelativeDistinguishedName):
            return NotImplemented
        return not self == other

    def __hash__(self) -> int:
        return hash((self._attribute_type, self._value))

    def __repr__(self) -> str:
        attributes = [f"attribute_type={self._attribute_type!r}", f"value={self._value!r}"]
        return self.__class__.__name__ + "(" + ", ".join(attributes) + ")"


def parse_rdns(dn: str) -> Tuple[RelativeDistinguishedName, ...]:
    """Split the string representation of a DN into its RDNs, leaf first.

    This is a single scan from left to right. Escapes are only honored inside the
    attribute value: a <ESC><hexpair> is replaced by the character with this code
    point (one byte per pair, there is no reassembly of multi-byte utf-8 sequences),
    every other <ESC><char> is replaced by <char>.
    """
    rdns: List[RelativeDistinguishedName] = []
    end = len(dn)
    i = 0
    while i < end:
        start = i
        while i < end and dn[i] != "=":
            if dn[i] in ESCAPED:
                raise MalformedDistinguishedName(
                    dn, f"Unexpected character {dn[i]!r} in attribute type at position {i}")
            i += 1
        if i >= end:
            raise MalformedDistinguishedName(dn, f"Attribute type {dn[start:]!r} without value")
        attribute_type = dn[start:i]
        # skip '='
        i += 1

        value: List[str] = []
        while i < end and dn[i] != ",":
            if dn[i] != ESCAPE:
                value.append(dn[i])
                i += 1
                continue
            # skip the escape char, a trailing one terminates the value
            i += 1
            if i >= end:
                break
            pair = dn[i:i + 2]
            if len(pair) == 2 and pair[0] in HEXDIGITS and pair[1] in HEXDIGITS:
                value.append(chr(int(pair, 16)))
                i += 2
            else:
                value.append(dn[i])
                i += 1

        rdns.append(RelativeDistinguishedName(attribute_type, "".join(value)))
        # skip ','
        i += 1
    return tuple(rdns)


class DistinguishedName:
    """An immutable, parsed distinguished name.

    The string the DN was created from is kept verbatim. It is returned by str() and
    it is the only thing considered by comparisons: two DNs are equal iff their
    strings are equal, and they are ordered by ordinal comparison of their strings.
    Note that this is no semantic comparison, "CN=foo" and "cn=foo" are different.

    The RDNs are ordered from leaf to root, so rdns[0] is the RDN of the named entry
    itself and rdns[-1] the top-most component.
    """
    __slots__ = ("_string", "_rdns")

    def __init__(self, raw: Union[str, "DistinguishedName"]) -> None:
        if isinstance(raw, DistinguishedName):
            # immutable, so the rdns may be shared
            self._string = raw._string
            self._rdns = raw._rdns
        elif isinstance(raw, str):
            self._rdns = parse_rdns(raw)
            self._string = raw
        else:
            raise TypeError(f"Can not create a {self.__class__.__name__} from {type(raw).__name__}.")

    @classmethod
    def _from_rdns(cls, rdns: Tuple[RelativeDistinguishedName, ...]) -> "DistinguishedName":
        """Create a DN from already parsed RDNs, without scanning any string."""
        dn = cls.__new__(cls)
        dn._rdns = tuple(rdns)
        dn._string = ",".join(rdn.string for rdn in dn._rdns)
        return dn

    @property
    def string(self) -> str:
        """The verbatim string representation this DN was created from."""
        return self._string

    @property
    def rdns(self) -> Tuple[RelativeDistinguishedName, ...]:
        return self._rdns

    @property
    def depth(self) -> int:
        """The empty DN has depth 0, "CN=foo" has depth 1, "CN=foo,DC=bar" depth 2 ..."""
        return len(self._rdns)

    @property
    def rdn(self) -> str:
        """The (unescaped) leaf RDN, like "CN=foo" for "CN=foo,OU=bar,DC=baz"."""
        if not self._rdns:
            return ""
        return f"{self._rdns[0].attribute_type}={self._rdns[0].value}"

    @property
    def name_type(self) -> str:
        """The attribute type of the leaf RDN, like "CN" for "CN=foo,OU=bar,DC=baz"."""
        if not self._rdns:
            return ""
        return self._rdns[0].attribute_type

    @property
    def name(self) -> str:
        """The attribute value of the leaf RDN, like "foo" for "CN=foo,OU=bar,DC=baz"."""
        if not self._rdns:
            return ""
        return self._rdns[0].value

    @property
    def parent(self) -> "DistinguishedName":
        """The DN of the container of this DN. The parent of the empty DN is empty."""
        return self._from_rdns(self._rdns[1:])

    @property
    def parent_hierarchy(self) -> List["DistinguishedName"]:
        """All containers of this DN, from the top-most one down to the direct parent."""
        hierarchy = []
        current = self
        while current.depth > 1:
            current = current.parent
            hierarchy.append(current)
        hierarchy.reverse()
        return hierarchy

    def __str__(self) -> str:
        return self._string

    def __repr__(self) -> str:
        return self.__class__.__name__ + f"({self._string!r})"

    def __hash__(self) -> int:
        return hash(self._string)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, DistinguishedName):
            return NotImplemented
        return self._string == other._string

    def __ne__(self, other: Any) -> bool:
        if not isinstance(other, DistinguishedName):
            return NotImplemented
        return self._string != other._string

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, DistinguishedName):
            return NotImplemented
        return self._string < other._string

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, DistinguishedName):
            return NotImplemented
        return self._string <= other._string

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, DistinguishedName):
            return NotImplemented
        return self._string > other._string

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, DistinguishedName):
            return NotImplemented
        return self._string >= other._string
