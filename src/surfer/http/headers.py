"""Case-insensitive header mapping for HTTP requests and responses."""

from typing import Iterable, Iterator, MutableMapping, Optional, Union

__all__ = ("Headers",)


class Headers(MutableMapping[str, str]):
    """Mapping of HTTP header names to values.

    Lookups are case-insensitive. Iteration yields the header names in the
    order they were first added, spelled the way they were first added;
    replacing the value of an existing header keeps its position.
    """

    _items: dict[str, tuple[str, str]]

    def __init__(
        self,
        headers: Union[
            "Headers", MutableMapping[str, str], Iterable[tuple[str, str]], None
        ] = None,
    ):
        self._items = {}
        if headers is not None:
            self.update(headers)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._items

    def __delitem__(self, key: str) -> None:
        del self._items[key.lower()]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return list(self.items()) == list(other.items())
        return NotImplemented

    def __getitem__(self, key: str) -> str:
        return self._items[key.lower()][1]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return "{0}({1!r})".format(self.__class__.__name__, list(self.items()))

    def __setitem__(self, key: str, value: str) -> None:
        folded = key.lower()
        existing = self._items.get(folded)
        name = existing[0] if existing else key
        self._items[folded] = (name, str(value))

    def copy(self) -> "Headers":
        return Headers(self.items())

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:  # type: ignore
        item = self._items.get(key.lower())
        return item[1] if item else default

    def items(self):  # type: ignore
        return list(self._items.values())

    def to_lines(self) -> list[str]:
        """Returns the headers formatted as ``Name: value`` lines, without
        line terminators, in insertion order.
        """
        return ["{0}: {1}".format(name, value) for name, value in self._items.values()]
