"""
Registry: maps identifiers to drawbacks.

The catalog is data. Adding a drawback means adding an entry, not a class.
"""

import logging
from typing import Iterable, Iterator, Optional

from src.core.exceptions import UnknownDrawbackError
from src.drawbacks.base import Drawback
from src.drawbacks.catalog import CATALOG, NO_DRAWBACK

_LOGGER = logging.getLogger(__name__)


class DrawbackRegistry:
    """
    Lookup of drawbacks
    ----

    * by identifier: "true_gentleman"
    * by display name (case insensitive): "True Gentleman"
    * by index: position in registration order. Index 0 is the 'no drawback' entry.
    """

    def __init__(self, drawbacks: Iterable[Drawback] = ()) -> None:
        self._drawbacks: dict[str, Drawback] = {}
        for drawback in drawbacks:
            self.register(drawback)

    def register(self, drawback: Drawback) -> None:
        if drawback.identifier in self._drawbacks:
            raise ValueError(f"Drawback {drawback.identifier!r} is already registered.")
        self._drawbacks[drawback.identifier] = drawback
        _LOGGER.debug("Registered drawback %s (%s)", drawback.identifier, drawback.name)

    def get(self, identifier: str) -> Drawback:
        try:
            return self._drawbacks[identifier]
        except KeyError:
            raise UnknownDrawbackError(
                f"Unknown drawback {identifier!r}. Pick one from {', '.join(self._drawbacks)}"
            ) from None

    def by_name(self, name: str) -> Drawback:
        wanted = name.strip().lower()
        for drawback in self._drawbacks.values():
            if drawback.name.lower() == wanted:
                return drawback
        raise UnknownDrawbackError(f"Unknown drawback name: {name!r}")

    def by_index(self, index: int) -> Drawback:
        drawbacks = list(self._drawbacks.values())
        if not 0 <= index < len(drawbacks):
            raise UnknownDrawbackError(
                f"Unknown drawback index: {index}. Valid indices are 0 - {len(drawbacks) - 1}"
            )
        return drawbacks[index]

    def resolve(self, name: Optional[str] = None, index: Optional[int] = None) -> Drawback:
        """Name takes precedence if both are specified. Neither: no drawback at all."""
        if name is not None:
            return self.by_name(name)
        if index is not None:
            return self.by_index(index)
        return self._drawbacks.get(NO_DRAWBACK.identifier, NO_DRAWBACK)

    def identifiers(self) -> list[str]:
        return list(self._drawbacks)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._drawbacks

    def __iter__(self) -> Iterator[Drawback]:
        return iter(self._drawbacks.values())

    def __len__(self) -> int:
        return len(self._drawbacks)


DEFAULT_REGISTRY = DrawbackRegistry(CATALOG)
