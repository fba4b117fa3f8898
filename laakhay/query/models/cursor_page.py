"""Cursor page models.

A cursor page is one response of a cursored resource: the page's items plus
the ``previous_cursor`` / ``next_cursor`` tokens used to walk the result set.
"""

from __future__ import annotations

from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

ItemT = TypeVar("ItemT")


@runtime_checkable
class CursorPageLike(Protocol):
    """Capability every page type walked by the cursor paginator must have."""

    previous_cursor: int
    next_cursor: int
    raw_json: str | None

    def item_count(self) -> int: ...


class CursorPage(BaseModel, Generic[ItemT]):
    """Base model for cursored responses.

    Subclasses declare the field holding the page's items and return it from
    ``results()``. Both cursor fields are required; a response missing one
    fails validation.
    """

    previous_cursor: int
    next_cursor: int
    # Raw response text, only filled when raw pages are requested
    raw_json: str | None = Field(default=None, exclude=True)

    model_config = ConfigDict(extra="ignore")

    def results(self) -> list[ItemT]:
        raise NotImplementedError(f"{type(self).__name__} must implement results()")

    def item_count(self) -> int:
        return len(self.results())


class IdsCursorPage(CursorPage[int]):
    """Page of ids (followers, friends, list members by id...)."""

    ids: list[int] = Field(default_factory=list)

    def results(self) -> list[int]:
        return self.ids


class UsersCursorPage(CursorPage[dict[str, Any]]):
    """Page of user objects, kept as raw mappings."""

    users: list[dict[str, Any]] = Field(default_factory=list)

    def results(self) -> list[dict[str, Any]]:
        return self.users


class ListsCursorPage(CursorPage[dict[str, Any]]):
    """Page of list objects, kept as raw mappings."""

    lists: list[dict[str, Any]] = Field(default_factory=list)

    def results(self) -> list[dict[str, Any]]:
        return self.lists
