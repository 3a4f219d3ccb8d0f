from typing import TYPE_CHECKING, Dict, Type, TypeVar

if TYPE_CHECKING:
    from ldifdn.attributes import AttributeDecoder


class AttributeDecoderRegistry:
    """Store decoders and enable the end user of the library to add additional ones.

    Decoders are stored under each of their names, lower-cased. Attribute names are
    case-insensitive, so lookups are lower-cased as well.
    """
    Decoder = TypeVar("Decoder", bound=Type["AttributeDecoder"])
    _items: Dict[str, Type["AttributeDecoder"]]

    def __init__(self) -> None:
        self._items = {}

    def __getitem__(self, item: str) -> Type["AttributeDecoder"]:
        return self._items[item.lower()]

    def __contains__(self, item: str) -> bool:
        return item.lower() in self._items

    def add(self, item: Decoder) -> Decoder:
        """Add a new decoder. May also be used as decorator around class definition."""
        keys = [name.lower() for name in item.names]
        if not keys or any(key in self._items for key in keys):
            raise RuntimeError
        for key in keys:
            self._items[key] = item
        return item


ATTRIBUTE_DECODERS = AttributeDecoderRegistry()
