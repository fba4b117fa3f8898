"""Precise unit tests for QueryExecutor.

Tests focus on transport delegation, the observer slot, typed results and
the error policy applied on remote failure.
"""

from __future__ import annotations

import json
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import BaseModel

from laakhay.query.core import (
    DeserializationError,
    ErrorPolicy,
    HttpMethod,
    InvalidQueryError,
    RemoteServiceError,
    TransportError,
)
from laakhay.query.runtime.rest import QueryExecutor, QueryResult, Transport
from laakhay.query.serialization import DEFAULT_CONVERTERS


class Status(BaseModel):
    id: int
    created_at: datetime


STATUS_JSON = json.dumps({"id": 10, "created_at": "Wed Aug 27 13:08:45 +0000 2008"})


@pytest.fixture
def mock_transport():
    """Create mock transport."""
    transport = MagicMock(spec=Transport)
    transport.send = AsyncMock(return_value='{"ok": true}')
    transport.send_multipart = AsyncMock(return_value='{"media_id": 1}')
    return transport


@pytest.fixture
def executor(mock_transport):
    """Create executor with mock transport and its own swallowing policy."""
    return QueryExecutor(mock_transport, policy=ErrorPolicy(swallow_remote_failures=True))


@pytest.fixture
def strict_executor(mock_transport):
    """Create executor whose policy propagates remote failures."""
    return QueryExecutor(mock_transport, policy=ErrorPolicy(swallow_remote_failures=False))


def fail_with(transport, error):
    transport.send.side_effect = error
    transport.send_multipart.side_effect = error


class TestExecute:
    """Test raw execution."""

    @pytest.mark.asyncio
    async def test_execute_get(self, executor, mock_transport):
        """Test execute delegates to transport and returns the text."""
        text = await executor.execute("account/settings.json")

        assert text == '{"ok": true}'
        mock_transport.send.assert_called_once_with("account/settings.json", HttpMethod.GET)

    @pytest.mark.asyncio
    async def test_execute_post_from_string(self, executor, mock_transport):
        """Test string methods are accepted."""
        await executor.execute("statuses/update.json?status=hi", "POST")

        mock_transport.send.assert_called_once_with(
            "statuses/update.json?status=hi", HttpMethod.POST
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [None, "", "   "])
    async def test_invalid_query_never_sent(self, executor, mock_transport, query):
        """Test a missing query raises before reaching the transport."""
        with pytest.raises(InvalidQueryError):
            await executor.execute(query)
        with pytest.raises(InvalidQueryError):
            await executor.try_execute(query)

        mock_transport.send.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PUT", "delete", "bogus"])
    async def test_unsupported_method_rejected(self, executor, mock_transport, method):
        """Test an unknown HTTP method raises InvalidQueryError before sending."""
        with pytest.raises(InvalidQueryError, match="Unsupported HTTP method"):
            await executor.execute("statuses/update.json", method)
        with pytest.raises(InvalidQueryError):
            await executor.try_execute("statuses/update.json", method)

        mock_transport.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_remote_failure_carries_context(self, strict_executor, mock_transport):
        """Test execute raises RemoteServiceError with query and method attached."""
        fail_with(mock_transport, RemoteServiceError("Not found", status_code=404))

        with pytest.raises(RemoteServiceError) as exc_info:
            await strict_executor.execute("users/show.json?screen_name=nobody")

        assert exc_info.value.status_code == 404
        assert exc_info.value.query == "users/show.json?screen_name=nobody"
        assert exc_info.value.method == HttpMethod.GET


class TestObserver:
    """Test the raw traffic observer slot."""

    @pytest.mark.asyncio
    async def test_observer_receives_query_and_response(self, mock_transport):
        """Test the observer sees every successful call."""
        observer = MagicMock()
        executor = QueryExecutor(mock_transport, observer=observer)

        text = await executor.execute("help/configuration.json")

        observer.assert_called_once_with("help/configuration.json", HttpMethod.GET, text)

    @pytest.mark.asyncio
    async def test_observer_return_value_ignored(self, executor):
        """Test the observer cannot alter the result."""
        executor.observer = MagicMock(return_value="tampered")

        assert await executor.execute("q") == '{"ok": true}'

    @pytest.mark.asyncio
    async def test_observer_not_called_on_failure(self, executor, mock_transport):
        """Test failed calls are not observed."""
        observer = MagicMock()
        executor.observer = observer
        fail_with(mock_transport, RemoteServiceError("boom", status_code=500))

        result = await executor.try_execute("q")

        assert not result
        observer.assert_not_called()

    @pytest.mark.asyncio
    async def test_observer_failure_propagates_without_retry(self, executor, mock_transport):
        """Test an observer exception surfaces and the query is sent once."""
        executor.observer = MagicMock(side_effect=RuntimeError("observer broke"))

        with pytest.raises(RuntimeError):
            await executor.execute("q")

        assert mock_transport.send.call_count == 1

    @pytest.mark.asyncio
    async def test_multipart_observed_as_post(self, executor):
        """Test multipart calls are observed as POST."""
        observer = MagicMock()
        executor.observer = observer

        await executor.execute_multipart("media/upload.json", [b"\x89PNG"])

        observer.assert_called_once_with("media/upload.json", HttpMethod.POST, '{"media_id": 1}')

    def test_set_observer_replaces_slot(self, executor):
        """Test set_observer returns the displaced observer."""
        first, second = MagicMock(), MagicMock()

        assert executor.set_observer(first) is None
        assert executor.set_observer(second) is first
        assert executor.observer is second


class TestTyped:
    """Test typed and JSON tree execution."""

    @pytest.mark.asyncio
    async def test_execute_typed_with_converters(self, executor, mock_transport):
        """Test typed execution pipes text through the deserializer."""
        mock_transport.send.return_value = STATUS_JSON

        status = await executor.execute_typed(
            "statuses/show.json?id=10", Status, converters=DEFAULT_CONVERTERS
        )

        assert status.id == 10
        assert status.created_at.year == 2008

    @pytest.mark.asyncio
    async def test_execute_json(self, executor):
        """Test JSON tree execution."""
        assert await executor.execute_json("q") == {"ok": True}

    @pytest.mark.asyncio
    async def test_try_typed_success(self, executor, mock_transport):
        """Test try_execute_typed wraps the value."""
        mock_transport.send.return_value = STATUS_JSON

        result = await executor.try_execute_typed("q", Status, converters=DEFAULT_CONVERTERS)

        assert result.success
        assert result.value.id == 10
        assert result.error is None

    @pytest.mark.asyncio
    async def test_try_null_body_is_not_success(self, executor, mock_transport):
        """Test a completed call with no value is not a success."""
        mock_transport.send.return_value = "null"

        result = await executor.try_execute_typed("q", Status)

        assert not result.success
        assert result.error is None

    @pytest.mark.asyncio
    async def test_deserialization_error_never_swallowed(self, executor, mock_transport):
        """Test shape mismatches propagate through try variants."""
        mock_transport.send.return_value = '{"id": "not-an-int"}'

        with pytest.raises(DeserializationError):
            await executor.try_execute_typed("q", Status)


class TestAtPath:
    """Test path extraction through the executor."""

    @pytest.mark.asyncio
    async def test_found(self, executor, mock_transport):
        """Test a nested value is converted."""
        mock_transport.send.return_value = '{"relationship": {"source": {"following": true}}}'

        following = await executor.execute_at_path(
            "friendships/show.json", bool, ["relationship", "source", "following"]
        )

        assert following is True

    @pytest.mark.asyncio
    async def test_absent(self, executor, mock_transport):
        """Test an absent path gives None."""
        mock_transport.send.return_value = '{"relationship": {}}'

        assert await executor.execute_at_path("q", bool, ["relationship", "source"]) is None

    @pytest.mark.asyncio
    async def test_try_absent_is_not_success(self, executor, mock_transport):
        """Test try variant reports absent paths as unsuccessful without error."""
        mock_transport.send.return_value = "{}"

        result = await executor.try_execute_at_path("q", bool, ["missing"])

        assert not result
        assert result.error is None


class TestErrorPolicy:
    """Test the error policy applied by execute and try_* variants."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", [HttpMethod.GET, HttpMethod.POST])
    async def test_swallowed_for_both_verbs(self, executor, mock_transport, method):
        """Test GET and POST are swallowed alike."""
        fail_with(mock_transport, RemoteServiceError("boom", status_code=503))

        result = await executor.try_execute("q", method)

        assert result.success is False
        assert isinstance(result.error, RemoteServiceError)
        assert result.error.method == method

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", [HttpMethod.GET, HttpMethod.POST])
    async def test_propagated_for_both_verbs(self, strict_executor, mock_transport, method):
        """Test GET and POST propagate alike when not swallowing."""
        fail_with(mock_transport, RemoteServiceError("boom", status_code=503))

        with pytest.raises(RemoteServiceError):
            await strict_executor.try_execute("q", method)

    @pytest.mark.asyncio
    async def test_transport_error_policy_gated(self, executor, mock_transport):
        """Test connectivity failures follow the same policy."""
        fail_with(mock_transport, TransportError("connection refused"))

        result = await executor.try_execute_json("q")

        assert isinstance(result.error, TransportError)

    @pytest.mark.asyncio
    async def test_multipart_policy(self, executor, strict_executor, mock_transport):
        """Test multipart try calls honor the policy."""
        fail_with(mock_transport, RemoteServiceError("too large", status_code=413))

        result = await executor.try_execute_multipart("media/upload.json", [b"x"])
        assert not result
        with pytest.raises(RemoteServiceError):
            await strict_executor.try_execute_multipart("media/upload.json", [b"x"])

    @pytest.mark.asyncio
    async def test_execute_returns_none_when_swallowed(self, executor, mock_transport):
        """Test plain execute variants give None when the policy swallows."""
        fail_with(mock_transport, RemoteServiceError("boom", status_code=500))

        assert await executor.execute("statuses/show.json?id=1") is None
        assert await executor.execute("statuses/update.json", HttpMethod.POST) is None
        assert await executor.execute_json("q") is None
        assert await executor.execute_typed("q", Status) is None
        assert await executor.execute_at_path("q", bool, ["relationship"]) is None
        assert await executor.execute_multipart("media/upload.json", [b"x"]) is None
        assert await executor.execute_multipart_typed("media/upload.json", [b"x"], dict) is None

    @pytest.mark.asyncio
    async def test_execute_raises_when_not_swallowed(self, strict_executor, mock_transport):
        """Test plain execute variants raise when the policy propagates."""
        fail_with(mock_transport, RemoteServiceError("boom", status_code=500))

        with pytest.raises(RemoteServiceError):
            await strict_executor.execute("q")
        with pytest.raises(RemoteServiceError):
            await strict_executor.execute_typed("q", Status)
        with pytest.raises(RemoteServiceError):
            await strict_executor.execute_at_path("q", bool, ["relationship"])
        with pytest.raises(RemoteServiceError):
            await strict_executor.execute_multipart_typed("media/upload.json", [b"x"], dict)

    @pytest.mark.asyncio
    async def test_execute_follows_process_wide_policy(self, mock_transport, restore_error_policy):
        """Test plain execute reads the process-wide flag at failure time."""
        executor = QueryExecutor(mock_transport)
        fail_with(mock_transport, TransportError("connection reset"))

        restore_error_policy.swallow_remote_failures = True
        assert await executor.execute("q") is None

        restore_error_policy.swallow_remote_failures = False
        with pytest.raises(TransportError):
            await executor.execute("q")

    @pytest.mark.asyncio
    async def test_execute_never_swallows_deserialization_errors(self, executor, mock_transport):
        """Test shape mismatches propagate from plain execute variants too."""
        mock_transport.send.return_value = "not json"

        with pytest.raises(DeserializationError):
            await executor.execute_json("q")

    @pytest.mark.asyncio
    async def test_process_wide_policy_read_at_failure(self, mock_transport, restore_error_policy):
        """Test executors without a policy follow the process-wide flag as it changes."""
        executor = QueryExecutor(mock_transport)
        fail_with(mock_transport, RemoteServiceError("boom", status_code=500))

        restore_error_policy.swallow_remote_failures = True
        assert not await executor.try_execute("q")

        restore_error_policy.swallow_remote_failures = False
        with pytest.raises(RemoteServiceError):
            await executor.try_execute("q")

    @pytest.mark.asyncio
    async def test_attempt_ignores_policy(self, strict_executor, mock_transport):
        """Test attempt() captures failures whatever the policy."""
        fail_with(mock_transport, RemoteServiceError("boom", status_code=500))

        result = await strict_executor.attempt(strict_executor.execute("q"))

        assert isinstance(result.error, RemoteServiceError)


class TestMultipart:
    """Test multipart execution."""

    @pytest.mark.asyncio
    async def test_always_post(self, executor, mock_transport):
        """Test multipart is POSTed with the content id."""
        await executor.execute_multipart("media/upload.json", iter([b"a", b"b"]), "media")

        mock_transport.send_multipart.assert_called_once_with(
            "media/upload.json", "media", [b"a", b"b"], HttpMethod.POST
        )

    @pytest.mark.asyncio
    async def test_typed(self, executor):
        """Test typed multipart execution."""
        result = await executor.execute_multipart_typed("media/upload.json", [b"a"], dict)

        assert result == {"media_id": 1}

    @pytest.mark.asyncio
    async def test_invalid_query(self, executor, mock_transport):
        """Test a missing multipart query is rejected."""
        with pytest.raises(InvalidQueryError):
            await executor.try_execute_multipart(None, [b"a"])

        mock_transport.send_multipart.assert_not_called()


class TestQueryResult:
    """Test the outcome type."""

    def test_unwrap_value(self):
        """Test unwrap returns the value."""
        assert QueryResult.ok(5).unwrap() == 5

    def test_unwrap_error(self):
        """Test unwrap raises the stored error."""
        with pytest.raises(RemoteServiceError):
            QueryResult.failure(RemoteServiceError("boom")).unwrap()
