"""Error policy deciding whether remote failures are swallowed or re-raised.

Architecture:
    A single boolean, read at the moment a RemoteServiceError surfaces out of
    the QueryExecutor. Every "try" call site and the cursor paginator consult
    it instead of implementing their own catch logic.

Design Decisions:
    - Explicit instance: executors accept a policy for per-engine configuration
    - Singleton fallback: executors built without one share the process-wide
      policy, so flipping it affects in-flight and future calls alike
    - Lock-guarded writes: the flag is safe to flip from any thread, but it is
      meant to be configured once at startup

See Also:
    - QueryExecutor: Applies the policy to try_* variants
    - CursorPaginator: Stops with partial results when a failure is swallowed
"""

from __future__ import annotations

import threading


class ErrorPolicy:
    """Swallow-or-propagate toggle for RemoteServiceError."""

    def __init__(self, swallow_remote_failures: bool = True) -> None:
        self._lock = threading.Lock()
        self._swallow_remote_failures = swallow_remote_failures

    @property
    def swallow_remote_failures(self) -> bool:
        return self._swallow_remote_failures

    @swallow_remote_failures.setter
    def swallow_remote_failures(self, value: bool) -> None:
        with self._lock:
            self._swallow_remote_failures = bool(value)

    def __repr__(self) -> str:
        return f"ErrorPolicy(swallow_remote_failures={self._swallow_remote_failures})"


_default_policy: ErrorPolicy | None = None
_default_policy_lock = threading.Lock()


def get_error_policy() -> ErrorPolicy:
    """Get the process-wide error policy singleton.

    Lazy initialization: policy created on first access, swallowing enabled.
    """
    global _default_policy
    if _default_policy is None:
        with _default_policy_lock:
            if _default_policy is None:
                _default_policy = ErrorPolicy()
    return _default_policy


def set_swallow_remote_failures(value: bool) -> None:
    """Flip the process-wide policy."""
    get_error_policy().swallow_remote_failures = value
