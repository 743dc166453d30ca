import pytest

from v2ray_deploy_kit.config import (
    ButtonLink,
    ConfigBuilder,
    Destination,
    KitSettings,
    MemoryBandPolicy,
    NotificationTarget,
    format_band,
    load_env_files,
    memory_band_violation,
    memory_to_mi,
)


def _filled_builder() -> ConfigBuilder:
    builder = ConfigBuilder()
    builder.region = "us-central1"
    builder.cpu = "2"
    builder.memory = "2Gi"
    builder.service_name = "v2ray"
    builder.uuid = "5652a909-a0b4-48dd-ae29-972757489bf0"
    builder.host_domain = "m.googleapis.com"
    return builder


def test_settings_defaults_without_env() -> None:
    settings = KitSettings.from_env()

    assert settings.deploy_duration == "5h"
    assert settings.output_file == "deployment-info.txt"
    assert settings.memory_band_policy is MemoryBandPolicy.WARN
    assert settings.telegram_timeout is None
    assert settings.command_timeout is None


def test_settings_read_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPLOY_DURATION", "2h30m")
    monkeypatch.setenv("MEMORY_BAND_POLICY", "STRICT")
    monkeypatch.setenv("TELEGRAM_TIMEOUT_SECONDS", "7.5")
    monkeypatch.setenv("TELEGRAM_API_BASE", "http://localhost:8081/")

    settings = KitSettings.from_env()

    assert settings.deploy_duration == "2h30m"
    assert settings.memory_band_policy is MemoryBandPolicy.STRICT
    assert settings.telegram_timeout == 7.5
    assert settings.telegram_api_base == "http://localhost:8081"


def test_invalid_policy_raises_value_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MEMORY_BAND_POLICY", "sometimes")

    with pytest.raises(ValueError) as excinfo:
        KitSettings.from_env()

    assert "MEMORY_BAND_POLICY" in str(excinfo.value)


def test_invalid_number_names_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COMMAND_TIMEOUT_SECONDS", "forever")

    with pytest.raises(ValueError) as excinfo:
        KitSettings.from_env()

    assert "COMMAND_TIMEOUT_SECONDS" in str(excinfo.value)


def test_load_env_files_later_file_wins(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("DEPLOY_DURATION=1h\nIMAGE_NAME=from-env\n", encoding="utf-8")
    (tmp_path / ".env.v2ray").write_text("DEPLOY_DURATION=3h\n", encoding="utf-8")
    # 원래 값을 monkeypatch 가 기억하도록 먼저 설정해 둔다.
    monkeypatch.setenv("DEPLOY_DURATION", "0h")
    monkeypatch.setenv("IMAGE_NAME", "placeholder")

    load_env_files(str(tmp_path))
    settings = KitSettings.from_env()

    assert settings.deploy_duration == "3h"
    assert settings.image_name == "from-env"


def test_memory_to_mi() -> None:
    assert memory_to_mi("512Mi") == 512
    assert memory_to_mi("16Gi") == 16384
    with pytest.raises(ValueError):
        memory_to_mi("2GB")


@pytest.mark.parametrize(
    "cpu, memory, expected",
    [
        ("1", "512Mi", None),
        ("1", "2Gi", None),
        ("1", "4Gi", "high"),
        ("4", "1Gi", "low"),
        ("8", "16Gi", None),
        ("8", "2Gi", "low"),
    ],
)
def test_memory_band_violation(cpu: str, memory: str, expected) -> None:  # noqa: ANN001
    assert memory_band_violation(cpu, memory) == expected


def test_format_band() -> None:
    assert format_band("1") == "512Mi - 2Gi"
    assert format_band("8") == "4Gi - 16Gi"


def test_notification_target_recipient_order() -> None:
    target = NotificationTarget.both(["-100a1", "-100a2"], ["11", "22"])

    assert list(target.recipients()) == [
        ("channel", "-100a1"),
        ("channel", "-100a2"),
        ("chat", "11"),
        ("chat", "22"),
    ]
    assert target.destination is Destination.BOTH


def test_notification_target_none_has_no_recipients() -> None:
    target = NotificationTarget.none()
    assert not target.enabled
    assert list(target.recipients()) == []


@pytest.mark.parametrize(
    "url, name",
    [
        ("https://t.me/zero_1101_tg", "zero_1101_tg"),
        ("https://t.me/zero_1101_tg/", "zero_1101_tg"),
        ("https://www.example.com/some/path", "example.com"),
        ("https://t.me/a_really_long_channel_name_here", "a_really_long_cha..."),
    ],
)
def test_button_link_display_name(url: str, name: str) -> None:
    button = ButtonLink.from_url(url)
    assert button.display_name == name
    assert len(button.display_name) <= 20
    assert not button.url.endswith("/")


def test_builder_builds_immutable_config() -> None:
    cfg = _filled_builder().build()

    assert cfg.region == "us-central1"
    assert cfg.notification.destination is Destination.NONE
    assert cfg.bot_token is None
    with pytest.raises(AttributeError):
        cfg.cpu = "8"  # type: ignore[misc]


def test_builder_requires_token_and_button_when_notifying() -> None:
    builder = _filled_builder()
    builder.notification = NotificationTarget.channel(["-1001"])

    with pytest.raises(ValueError) as excinfo:
        builder.build()

    assert "bot_token" in str(excinfo.value)
    assert "button" in str(excinfo.value)


def test_builder_rejects_missing_and_unknown_values() -> None:
    builder = _filled_builder()
    builder.service_name = None
    with pytest.raises(ValueError) as excinfo:
        builder.build()
    assert "service_name" in str(excinfo.value)

    builder = _filled_builder()
    builder.region = "mars-north1"
    with pytest.raises(ValueError):
        builder.build()
