from unittest.mock import Mock, patch

import pytest
import requests

from v2ray_deploy_kit.config import ButtonLink, Destination, NotificationTarget
from v2ray_deploy_kit.exceptions import NotificationError
from v2ray_deploy_kit.telegram import TelegramNotifier


TOKEN = "123456789:" + "A" * 35


@pytest.fixture
def notifier() -> TelegramNotifier:
    return TelegramNotifier(TOKEN, ButtonLink.from_url("https://t.me/examplechannel"))


@patch("requests.post")
def test_send_to_one_posts_expected_payload(mock_post, notifier: TelegramNotifier) -> None:
    mock_post.return_value = Mock(status_code=200, text="{}")

    notifier.send_to_one("-1001234", "*hello*")

    url = mock_post.call_args[0][0]
    payload = mock_post.call_args[1]["json"]
    assert url == f"https://api.telegram.org/bot{TOKEN}/sendMessage"
    assert payload["chat_id"] == "-1001234"
    assert payload["text"] == "*hello*"
    assert payload["parse_mode"] == "MARKDOWN"
    assert payload["disable_web_page_preview"] is True
    assert payload["reply_markup"] == {
        "inline_keyboard": [[{"text": "examplechannel", "url": "https://t.me/examplechannel"}]]
    }


@patch("requests.post")
def test_send_to_one_non_200_raises_with_status_and_body(mock_post, notifier: TelegramNotifier) -> None:
    mock_post.return_value = Mock(status_code=400, text='{"description":"chat not found"}')

    with pytest.raises(NotificationError) as excinfo:
        notifier.send_to_one("42", "msg")

    assert excinfo.value.status_code == 400
    assert "chat not found" in excinfo.value.body


@patch("requests.post")
def test_send_to_one_transport_error_is_notification_error(mock_post, notifier: TelegramNotifier) -> None:
    mock_post.side_effect = requests.ConnectionError("boom")

    with pytest.raises(NotificationError) as excinfo:
        notifier.send_to_one("42", "msg")

    assert excinfo.value.status_code is None
    assert TOKEN not in str(excinfo.value)


@patch("requests.post")
def test_broadcast_both_all_succeed(mock_post, notifier: TelegramNotifier) -> None:
    mock_post.return_value = Mock(status_code=200, text="{}")
    target = NotificationTarget.both(["-1001", "-1002"], ["11", "22"])

    result = notifier.broadcast(target, "msg")

    assert result.succeeded == 4
    assert result.attempted == 4
    assert result.ok
    sent_to = [c[1]["json"]["chat_id"] for c in mock_post.call_args_list]
    assert sent_to == ["-1001", "-1002", "11", "22"]


@patch("requests.post")
def test_broadcast_partial_failure_is_still_ok(mock_post, notifier: TelegramNotifier) -> None:
    mock_post.side_effect = [
        Mock(status_code=200, text="{}"),
        Mock(status_code=403, text="forbidden"),
        Mock(status_code=500, text="oops"),
        Mock(status_code=200, text="{}"),
    ]
    target = NotificationTarget.both(["-1001", "-1002"], ["11", "22"])

    result = notifier.broadcast(target, "msg")

    assert result.succeeded == 2
    assert result.attempted == 4
    assert result.ok
    assert [f.status_code for f in result.failures] == [403, 500]


@patch("requests.post")
def test_broadcast_all_failed_does_not_raise(mock_post, notifier: TelegramNotifier) -> None:
    mock_post.return_value = Mock(status_code=401, text="unauthorized")

    result = notifier.broadcast(NotificationTarget.bot(["11"]), "msg")

    assert result.succeeded == 0
    assert result.attempted == 1
    assert not result.ok


@patch("requests.post")
def test_broadcast_channel_only_skips_chat_ids(mock_post, notifier: TelegramNotifier) -> None:
    mock_post.return_value = Mock(status_code=200, text="{}")
    target = NotificationTarget(Destination.CHANNEL, channel_ids=("-1001",), chat_ids=("11",))

    result = notifier.broadcast(target, "msg")

    assert result.attempted == 1
    assert mock_post.call_args[1]["json"]["chat_id"] == "-1001"


@patch("requests.post")
def test_broadcast_none_makes_no_calls(mock_post, notifier: TelegramNotifier) -> None:
    result = notifier.broadcast(NotificationTarget.none(), "msg")

    mock_post.assert_not_called()
    assert result.ok
    assert result.attempted == 0
