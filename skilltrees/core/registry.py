"""
Tag registry for polymorphic data.

Serialized requirements and effects carry a ``type`` tag. A registry maps
each tag to the class that reconstructs it, so loading stays a plain
lookup instead of a chain of isinstance checks.

Usage:
    requirements = TypeRegistry("requirement")

    @requirements.register("points")
    class PointCost(Requirement):
        price: int
"""

from __future__ import annotations

from typing import Callable, Generic, Iterator, TypeVar

T = TypeVar('T')


class TypeRegistry(Generic[T]):
    """Closed set of tagged variants for one family of classes."""

    def __init__(self, kind: str):
        self.kind = kind
        self._types: dict[str, type[T]] = {}

    def register(self, tag: str) -> Callable[[type[T]], type[T]]:
        """
        Decorator registering a class under a tag.

        The tag is also stored on the class as ``type_tag``.
        """
        def decorator(cls: type[T]) -> type[T]:
            if tag in self._types:
                raise ValueError(
                    f"Duplicate {self.kind} tag '{tag}' "
                    f"({self._types[tag].__name__} and {cls.__name__})"
                )
            cls.type_tag = tag
            self._types[tag] = cls
            return cls
        return decorator

    def get(self, tag: str) -> type[T] | None:
        """Get the class registered for a tag."""
        return self._types.get(tag)

    def tags(self) -> list[str]:
        """Get all registered tags."""
        return list(self._types)

    def __contains__(self, tag: object) -> bool:
        return tag in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)
