"""Convert LDIF attribute values into their pythonic form.

The LDIF parser hands out every value as bytes, no matter if it was given plain
(attr: value) or base64 encoded (attr:: value). Decoders for specific attributes are
registered in ATTRIBUTE_DECODERS, all other attributes use the DefaultDecoder.
"""

import abc
import base64
import logging
import uuid
from typing import Any, List, Union

from ldifdn.dn import DistinguishedName
from ldifdn.exceptions import DecodingError
from ldifdn.registry import ATTRIBUTE_DECODERS

logger = logging.getLogger(__name__)


def decode(value: bytes, codec: str = "utf-8") -> str:
    """Decode value. Raise a DecodingError if something went wrong."""
    try:
        return value.decode(codec)
    except UnicodeDecodeError as e:
        raise DecodingError from e


class AttributeDecoder(metaclass=abc.ABCMeta):
    """Base class of all attribute decoders.

    names: The (case-insensitive) attribute names this decoder is responsible for.
    """
    names: List[str] = []

    @classmethod
    @abc.abstractmethod
    def decode_value(cls, value: bytes) -> Any:
        """Convert the bytes of a value into its pythonic form."""
        raise NotImplementedError


class DefaultDecoder(AttributeDecoder):
    @classmethod
    def decode_value(cls, value: bytes) -> Union[str, bytes]:
        # binary attributes like objectSid are no utf-8 at all
        try:
            return decode(value)
        except DecodingError:
            logger.warning(f"Keeping undecodable value as bytes: {value!r}")
            return value


@ATTRIBUTE_DECODERS.add
class DistinguishedNameDecoder(AttributeDecoder):
    names = ["dn"]

    @classmethod
    def decode_value(cls, value: bytes) -> DistinguishedName:
        return DistinguishedName(decode(value))


@ATTRIBUTE_DECODERS.add
class ObjectGuidDecoder(AttributeDecoder):
    """The objectGUID of Active Directory objects.

    Exports carry the 16 bytes of the GUID base64 encoded, with the first three fields
    stored little-endian. The textual form (6ba7b810-9dad-...) is accepted as well.
    """
    names = ["objectGUID"]

    @classmethod
    def decode_value(cls, value: bytes) -> uuid.UUID:
        if len(value) == 16:
            return uuid.UUID(bytes_le=value)
        try:
            return uuid.UUID(decode(value))
        except ValueError as e:
            raise DecodingError(f"Invalid GUID: {value!r}") from e

    @classmethod
    def raw_value(cls, value: bytes) -> str:
        """The GUID as it is written in an export: the 16 bytes base64 encoded.

        A value given in textual form is returned unchanged.
        """
        if len(value) == 16:
            return base64.b64encode(value).decode("ascii")
        return decode(value)
