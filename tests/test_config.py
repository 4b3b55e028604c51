import pydantic
import pytest

from dispatch_core import DispatchSettings, Lifetime, NotificationStrategy


def test_defaults() -> None:
    settings = DispatchSettings()

    assert settings.default_handler_lifetime is Lifetime.DEFAULT
    assert settings.default_middleware_lifetime is Lifetime.DEFAULT
    assert settings.notification_strategy is NotificationStrategy.SEQUENTIAL
    assert settings.max_concurrency is None
    assert settings.validate_on_startup is True


def test_from_env_reads_prefixed_variables() -> None:
    settings = DispatchSettings.from_env(
        {
            "DISPATCH_NOTIFICATION_STRATEGY": "parallel_wait_all",
            "DISPATCH_MAX_CONCURRENCY": "4",
            "DISPATCH_DEFAULT_HANDLER_LIFETIME": "scoped",
            "DISPATCH_VALIDATE_ON_STARTUP": "false",
            "UNRELATED": "ignored",
        }
    )

    assert settings.notification_strategy is NotificationStrategy.PARALLEL_WAIT_ALL
    assert settings.max_concurrency == 4
    assert settings.default_handler_lifetime is Lifetime.SCOPED
    assert settings.validate_on_startup is False


def test_from_env_custom_prefix_and_blank_values() -> None:
    settings = DispatchSettings.from_env(
        {"APP_NOTIFICATION_STRATEGY": "fire_and_forget", "APP_MAX_CONCURRENCY": ""},
        prefix="APP_",
    )

    assert settings.notification_strategy is NotificationStrategy.FIRE_AND_FORGET
    assert settings.max_concurrency is None


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(pydantic.ValidationError):
        DispatchSettings(max_concurrency=0)
    with pytest.raises(pydantic.ValidationError):
        DispatchSettings.from_env({"DISPATCH_NOTIFICATION_STRATEGY": "broadcast"})
    with pytest.raises(pydantic.ValidationError):
        DispatchSettings(unknown_option=True)


def test_settings_are_immutable() -> None:
    settings = DispatchSettings()

    with pytest.raises(pydantic.ValidationError):
        settings.max_concurrency = 3
