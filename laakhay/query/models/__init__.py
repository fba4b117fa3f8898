"""Data models for cursored responses.

Architecture:
    This module exports the Pydantic v2 models the cursor paginator walks.
    Domain objects carried inside pages (users, lists...) are left as raw
    mappings; mapping them to richer types belongs to the caller.

See Also:
    - CursorPaginator: Drives pages of these types to completion
    - JsonDeserializer: Validates raw responses into these models
"""

from .cursor_page import CursorPage, CursorPageLike, IdsCursorPage, ListsCursorPage, UsersCursorPage

__all__ = [
    "CursorPage",
    "CursorPageLike",
    "IdsCursorPage",
    "ListsCursorPage",
    "UsersCursorPage",
]
