"""Tests for the activity log service."""

import logging
from unittest.mock import MagicMock

from starlette.requests import Request

from app.services import activity_service
from app.services.activity_service import ActivityType, RequestContext, get_client_ip


def make_request(headers: dict[str, str], client=("10.0.0.1", 1234)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": client,
    }
    return Request(scope)


class TestRequestContext:
    def test_forwarded_for_wins(self):
        request = make_request({"X-Forwarded-For": "1.2.3.4, 10.0.0.2", "X-Real-IP": "5.6.7.8"})
        assert get_client_ip(request) == "1.2.3.4"

    def test_real_ip_then_client(self):
        assert get_client_ip(make_request({"X-Real-IP": "5.6.7.8"})) == "5.6.7.8"
        assert get_client_ip(make_request({})) == "10.0.0.1"
        assert get_client_ip(make_request({}, client=None)) == "unknown"

    def test_from_request(self):
        context = RequestContext.from_request(make_request({"User-Agent": "pytest"}))
        assert context == RequestContext(ip="10.0.0.1", user_agent="pytest")


class TestRecord:
    def test_record_and_query(self):
        activity_service.record(
            ActivityType.LOGIN, "a@x.com", "logged in", {"role": "user"}, RequestContext("1.1.1.1", "ua")
        )

        page = activity_service.query()

        assert page.totalCount == 1
        assert page.hasMore is False
        item = page.activities[0]
        assert (item.type, item.user, item.ip, item.userAgent) == ("login", "a@x.com", "1.1.1.1", "ua")
        assert item.metadata == {"role": "user"}

    def test_missing_actor_is_system(self):
        activity_service.record("custom.event", None, "cron ran")

        assert activity_service.query().activities[0].user == "system"

    def test_failures_are_swallowed(self, monkeypatch, caplog):
        broken = MagicMock(side_effect=RuntimeError("db gone"))
        monkeypatch.setattr(activity_service.activity_repository, "append", broken)

        with caplog.at_level(logging.ERROR):
            assert activity_service.record(ActivityType.SIGNUP, "a@x.com", "x") is None

        assert "Failed to log activity signup" in caplog.text

    def test_paging(self):
        for i in range(5):
            activity_service.record(ActivityType.LOGIN, f"u{i}@x.com", "in")

        page = activity_service.query(limit=2, offset=0)

        assert len(page.activities) == 2
        assert page.totalCount == 5
        assert page.hasMore is True
        assert activity_service.query(limit=2, offset=4).hasMore is False


class TestNotifications:
    def test_only_own_member_added_entries(self):
        activity_service.record(ActivityType.MEMBER_ADDED, "b@x.com", "You were added", {"workspaceId": "ws_1"})
        activity_service.record(ActivityType.MEMBER_ADDED, "c@x.com", "Someone else")
        activity_service.record(ActivityType.LOGIN, "b@x.com", "logged in")

        notifications = activity_service.notifications_for("B@x.com")

        assert len(notifications) == 1
        assert notifications[0].message == "You were added"
        assert notifications[0].read is False
        assert notifications[0].metadata == {"workspaceId": "ws_1"}

    def test_feed_is_capped(self):
        for i in range(activity_service.NOTIFICATION_LIMIT + 5):
            activity_service.record(ActivityType.MEMBER_ADDED, "b@x.com", f"added {i}")

        assert len(activity_service.notifications_for("b@x.com")) == activity_service.NOTIFICATION_LIMIT
