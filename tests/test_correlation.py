from dispatch_core import Message, correlation_scope, get_correlation_id
from dispatch_core.correlation import get_causation_id


class Ping(Message):
    pass


def test_scope_generates_id_and_resets() -> None:
    message = Ping()

    with correlation_scope(message) as correlation_id:
        assert get_correlation_id() == correlation_id
        assert get_causation_id() == message.message_id

    assert get_correlation_id() is None
    assert get_causation_id() is None


def test_message_correlation_id_wins() -> None:
    message = Ping(correlation_id="corr-1")

    with correlation_scope(message) as correlation_id:
        assert correlation_id == "corr-1"
        child = Ping()

    assert child.correlation_id == "corr-1"
    assert child.causation_id == message.message_id


def test_ambient_id_is_kept_for_plain_objects() -> None:
    with correlation_scope(Ping(correlation_id="outer")):
        with correlation_scope(object()) as inner:
            assert inner == "outer"
            assert get_causation_id() is None
