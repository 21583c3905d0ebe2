"""
Custom properties attached to maps, tilesets, tiles, terrains, layers and
objects.

Tiled lets the designer add key/value metadata almost anywhere:

    <properties>
        <property name="solid" type="bool" value="true"/>
        <property name="damage" type="int" value="10"/>
        <property name="description" value="A wooden door"/>
    </properties>

Values are kept as the strings found in the document. The typed readers
(get_int, get_float, get_bool) convert on demand, the same way Tiled's
'type' attribute would.
"""

from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, Optional, Tuple

_TRUE_STRINGS = ('true', '1')
_FALSE_STRINGS = ('false', '0')


class Properties(Mapping):
    """
    Ordered, unique-keyed, read-only string mapping.

    Built once from (key, value) pairs; the first occurrence of a key wins
    and later duplicates are dropped. There is no way to add or change a
    property afterwards.
    """

    __slots__ = ('_items',)

    def __init__(self, pairs: Iterable[Tuple[str, str]] = ()):
        items: Dict[str, str] = {}
        for key, value in pairs:
            items.setdefault(key, value)
        self._items = items

    def __getitem__(self, key: str) -> str:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Properties({list(self._items.items())!r})"

    def has(self, key: str) -> bool:
        return key in self._items

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        if key not in self._items:
            return default
        value = self._items[key].strip()
        # hex ("0x10") is accepted as written by some tools
        if value.lower().startswith(("0x", "-0x")):
            return int(value, 16)
        return int(value)

    def get_float(self, key: str,
                  default: Optional[float] = None) -> Optional[float]:
        if key not in self._items:
            return default
        return float(self._items[key])

    def get_bool(self, key: str,
                 default: Optional[bool] = None) -> Optional[bool]:
        if key not in self._items:
            return default
        value = self._items[key].strip().lower()
        if value in _TRUE_STRINGS:
            return True
        if value in _FALSE_STRINGS:
            return False
        raise ValueError(f"Property {key!r} is not a boolean: {value!r}")
