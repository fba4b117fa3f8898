"""Shared engine constants.

This module centralizes cursor sentinels and transport defaults used by the
executor and the cursor paginator so both stay small and focused.
"""

from __future__ import annotations

import sys

# Transport
DEFAULT_TIMEOUT = 30.0
DEFAULT_MULTIPART_FIELD = "media"

# Cursor pagination
# Query parameter appended to the base query on every page request
CURSOR_PARAMETER = "cursor"
# First page of a cursored resource
DEFAULT_START_CURSOR = -1
# Never returned by the remote API, guarantees the first iteration runs
UNSTARTED_CURSOR = -2
# A first page with no items carries next=0 / previous=-1
EMPTY_RESULT_NEXT_CURSOR = 0
EMPTY_RESULT_PREVIOUS_CURSOR = -1
DEFAULT_MAX_ITEMS = sys.maxsize
