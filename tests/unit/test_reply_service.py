from __future__ import annotations

import pytest

from threads_client.clients.http_client import error_from_response
from threads_client.exceptions import ValidationError
from threads_client.models import MediaType, ReplyContent
from threads_client.services.container_service import ContainerPublisher
from threads_client.services.reply_service import ReplyService

from tests.fakes import RecordingSleeper, ScriptedHttp, authenticated_store


def _service(http: ScriptedHttp) -> tuple[ReplyService, RecordingSleeper]:
    tokens = authenticated_store()
    sleeper = RecordingSleeper()
    containers = ContainerPublisher(http, tokens, sleep=sleeper)  # type: ignore[arg-type]
    return ReplyService(http, tokens, containers=containers), sleeper  # type: ignore[arg-type]


def _reply_routes() -> ScriptedHttp:
    return ScriptedHttp(
        {
            ("POST", "/user-1/threads"): [{"id": "c-1"}],
            ("POST", "/user-1/threads_publish"): [{"id": "r-1"}],
            ("GET", "/r-1"): [{"id": "r-1", "text": "thanks", "is_reply": True}],
        }
    )


def test_create_reply_waits_fixed_delay_instead_of_polling() -> None:
    http = _reply_routes()
    service, sleeper = _service(http)

    reply = service.create_reply(ReplyContent(reply_to_id="p-1", text="thanks"))

    assert reply.id == "r-1"
    assert reply.is_reply is True
    assert sleeper.calls == [10.0]
    assert http.calls_to("GET", "/c-1") == []
    body = http.calls[0].body
    assert body.get("media_type") == "TEXT"
    assert body.get("reply_to_id") == "p-1"
    assert body.get("text") == "thanks"


def test_create_image_reply_sends_image_url() -> None:
    http = _reply_routes()
    service, _ = _service(http)

    service.create_reply(
        ReplyContent(reply_to_id="p-1", media_type=MediaType.IMAGE, image_url="https://cdn.example.com/a.jpg")
    )

    body = http.calls[0].body
    assert body.get("media_type") == "IMAGE"
    assert body.get("image_url") == "https://cdn.example.com/a.jpg"
    assert "text" not in body


def test_create_video_reply_requires_url() -> None:
    http = ScriptedHttp()
    service, _ = _service(http)

    with pytest.raises(ValidationError) as exc_info:
        service.create_reply(ReplyContent(reply_to_id="p-1", media_type=MediaType.VIDEO))

    assert exc_info.value.field == "media_url"
    assert http.calls == []


def test_create_reply_requires_target() -> None:
    service, _ = _service(ScriptedHttp())

    with pytest.raises(ValidationError) as exc_info:
        service.create_reply(ReplyContent(reply_to_id="", text="hi"))

    assert exc_info.value.field == "reply_to_id"


def test_reply_to_post_accepts_plain_text() -> None:
    http = _reply_routes()
    service, _ = _service(http)

    service.reply_to_post("p-7", "thanks")

    assert http.calls[0].body.get("reply_to_id") == "p-7"
    assert http.calls[0].body.get("text") == "thanks"


def test_reply_to_post_overrides_content_target() -> None:
    http = _reply_routes()
    service, _ = _service(http)
    content = ReplyContent(reply_to_id="other", text="hi")

    service.reply_to_post("p-7", content)

    assert http.calls[0].body.get("reply_to_id") == "p-7"
    assert content.reply_to_id == "other"


def test_get_replies_passes_paging_and_order() -> None:
    http = ScriptedHttp(
        {("GET", "/p-1/replies"): [{"data": [{"id": "r-1"}, {"id": "r-2"}], "paging": {"cursors": {"after": "x"}}}]}
    )
    service, _ = _service(http)

    page = service.get_replies("p-1", limit=2, reverse=True)

    assert [reply.id for reply in page.data] == ["r-1", "r-2"]
    params = http.calls[0].params
    assert params["limit"] == 2
    assert params["reverse"] is True
    assert "hide_status" in params["fields"]


def test_get_conversation_maps_404() -> None:
    http = ScriptedHttp({("GET", "/gone/conversation"): [error_from_response(404, b"")]})
    service, _ = _service(http)

    with pytest.raises(ValidationError) as exc_info:
        service.get_conversation("gone")

    assert exc_info.value.field == "post_id"


@pytest.mark.parametrize(("method_name", "expected"), [("hide_reply", "true"), ("unhide_reply", "false")])
def test_manage_reply_visibility(method_name: str, expected: str) -> None:
    http = ScriptedHttp({("POST", "/r-1/manage_reply"): [{"success": True}]})
    service, _ = _service(http)

    getattr(service, method_name)("r-1")

    assert http.calls[0].body.get("hide") == expected


def test_hide_unknown_reply_maps_404() -> None:
    http = ScriptedHttp({("POST", "/r-404/manage_reply"): [error_from_response(404, b"")]})
    service, _ = _service(http)

    with pytest.raises(ValidationError) as exc_info:
        service.hide_reply("r-404")

    assert exc_info.value.field == "reply_id"
    assert exc_info.value.message == "Reply not found"


def test_iter_replies_follows_cursors_and_keeps_order() -> None:
    http = ScriptedHttp(
        {
            ("GET", "/p-1/replies"): [
                {"data": [{"id": "r-1"}], "paging": {"cursors": {"after": "c1"}}},
                {"data": [{"id": "r-2"}], "paging": {"cursors": {}}},
            ]
        }
    )
    service, _ = _service(http)

    ids = [reply.id for reply in service.iter_replies("p-1", limit=1, reverse=False)]

    assert ids == ["r-1", "r-2"]
    assert [call.params["after"] for call in http.calls] == [None, "c1"]
    assert all(call.params["reverse"] is False for call in http.calls)


def test_get_pending_replies_filters_by_approval_status() -> None:
    http = ScriptedHttp({("GET", "/p-1/pending_replies"): [{"data": [{"id": "r-9"}]}]})
    service, _ = _service(http)

    page = service.get_pending_replies("p-1", limit=5, approval_status="ignored")

    assert [reply.id for reply in page.data] == ["r-9"]
    params = http.calls[0].params
    assert params["approval_status"] == "ignored"
    assert params["limit"] == 5


def test_get_pending_replies_rejects_unknown_approval_status() -> None:
    http = ScriptedHttp()
    service, _ = _service(http)

    with pytest.raises(ValidationError) as exc_info:
        service.get_pending_replies("p-1", approval_status="approved")

    assert exc_info.value.field == "approval_status"
    assert http.calls == []


@pytest.mark.parametrize(
    ("method_name", "expected"), [("approve_pending_reply", "true"), ("ignore_pending_reply", "false")]
)
def test_manage_pending_reply(method_name: str, expected: str) -> None:
    http = ScriptedHttp({("POST", "/r-1/manage_pending_reply"): [{"success": True}]})
    service, _ = _service(http)

    getattr(service, method_name)("r-1")

    assert http.calls[0].body.get("approve") == expected


def test_approve_unknown_pending_reply_maps_404() -> None:
    http = ScriptedHttp({("POST", "/r-404/manage_pending_reply"): [error_from_response(404, b"")]})
    service, _ = _service(http)

    with pytest.raises(ValidationError) as exc_info:
        service.approve_pending_reply("r-404")

    assert exc_info.value.field == "reply_id"


def test_get_user_replies_defaults_to_token_owner() -> None:
    http = ScriptedHttp({("GET", "/user-1/replies"): [{"data": [{"id": "r-1", "is_reply": True}]}]})
    service, _ = _service(http)

    page = service.get_user_replies(limit=10, since=1700000000)

    assert page.data[0].is_reply is True
    params = http.calls[0].params
    assert params["since"] == 1700000000
    assert "root_post" in params["fields"]
