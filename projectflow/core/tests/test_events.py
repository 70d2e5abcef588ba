"""
Tests for workflow event publishing and the exception taxonomy.
"""

import pytest

from projectflow.core import events
from projectflow.core.exceptions import (
    AlreadyAllocatedError,
    APIException,
    ConflictError,
    InviteTargetUnavailable,
    NotLeaderError,
    PermissionDeniedError,
    QuorumNotMetError,
    StudentAlreadyGroupedError,
)


@pytest.fixture
def received():
    """Collect workflow events delivered to a signal receiver."""
    seen = []

    def receiver(sender, event, payload, **kwargs):
        seen.append((event, payload))

    events.workflow_event.connect(receiver)
    yield seen
    events.workflow_event.disconnect(receiver)


@pytest.mark.django_db
class TestPublish:
    def test_delivered_after_commit(self, received, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            events.publish(events.GROUP_FINALIZED, group_id="g1")
            assert received == []
        assert received == [(events.GROUP_FINALIZED, {"group_id": "g1"})]

    def test_not_delivered_before_commit(self, received, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            events.publish(events.GROUP_LOCKED, group_id="g1")
        assert len(callbacks) == 1
        assert received == []

    def test_failing_receiver_is_logged(self, received, django_capture_on_commit_callbacks, caplog):
        def broken(sender, **kwargs):
            raise RuntimeError("push gateway down")

        events.workflow_event.connect(broken)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                events.publish(events.PROMOTION_COMPLETED, promoted=3)
        finally:
            events.workflow_event.disconnect(broken)

        assert received == [(events.PROMOTION_COMPLETED, {"promoted": 3})]
        assert "push gateway down" in caplog.text


class TestExceptions:
    def test_to_response(self):
        status, body = QuorumNotMetError(details={"active": 1}).to_response()
        assert status == 400
        assert body.code == "QUORUM_NOT_MET"
        assert body.details == {"active": 1}

    def test_message_override(self):
        exc = AlreadyAllocatedError("Taken.")
        assert exc.message == "Taken."
        assert exc.code == "ALREADY_ALLOCATED"
        assert exc.status_code == 409

    def test_hierarchy(self):
        assert issubclass(NotLeaderError, PermissionDeniedError)
        assert issubclass(InviteTargetUnavailable, StudentAlreadyGroupedError)
        assert issubclass(StudentAlreadyGroupedError, ConflictError)
        assert issubclass(ConflictError, APIException)
