import asyncio
from unittest.mock import Mock

import pytest

from permsim import (
    AccessStatus,
    DescriptorNotFoundError,
    InvalidArgumentError,
    build_initial_permission_states,
    create_permission_store,
)
from permsim.constants import PERMISSION_NAMES
from permsim.core.descriptor import descriptor_key
from permsim.core.store import PermissionStore

GEOLOCATION = {"name": "geolocation"}
MIDI = {"name": "midi"}
MIDI_SYSEX_FALSE = {"name": "midi", "sysex": False}
MIDI_SYSEX_TRUE = {"name": "midi", "sysex": True}
PUSH = {"name": "push"}
PUSH_VISIBLE_ONLY = {"name": "push", "userVisibleOnly": True}
NOTIFICATIONS = {"name": "notifications"}


@pytest.fixture()
def store() -> PermissionStore:
    return create_permission_store(
        [
            (GEOLOCATION, AccessStatus.BLOCKED),
            (MIDI_SYSEX_FALSE, AccessStatus.GRANTED),
            (MIDI_SYSEX_TRUE, AccessStatus.PROMPT),
            ({"name": "push", "userVisibleOnly": False}, AccessStatus.GRANTED),
            (PUSH_VISIBLE_ONLY, AccessStatus.PROMPT),
        ]
    )


def test_has_matches_structurally(store: PermissionStore) -> None:
    assert store.has(GEOLOCATION)
    assert store.has({"name": "geolocation", "extra": True})
    assert store.has(PUSH)
    assert store.is_known_descriptor(MIDI_SYSEX_TRUE)
    assert not store.has(NOTIFICATIONS)


def test_get_returns_matching_status(store: PermissionStore) -> None:
    assert store.get(GEOLOCATION) is AccessStatus.BLOCKED
    assert store.get(MIDI) is AccessStatus.GRANTED
    assert store.get(MIDI_SYSEX_TRUE) is AccessStatus.PROMPT
    assert store.get(PUSH) is AccessStatus.GRANTED
    assert store.get(PUSH_VISIBLE_ONLY) is AccessStatus.PROMPT


def test_unknown_descriptor_is_not_found(store: PermissionStore) -> None:
    with pytest.raises(DescriptorNotFoundError) as excinfo:
        store.get(NOTIFICATIONS)
    assert str(excinfo.value) == 'No permission state for descriptor {"name": "notifications"}'
    assert excinfo.value.descriptor == NOTIFICATIONS

    with pytest.raises(DescriptorNotFoundError):
        store.set(NOTIFICATIONS, AccessStatus.GRANTED)


def test_set_updates_matching_entry(store: PermissionStore) -> None:
    store.set({"name": "geolocation", "extra": True}, "PROMPT")
    store.set(MIDI, AccessStatus.BLOCKED)

    assert store.get(GEOLOCATION) is AccessStatus.PROMPT
    assert store.get(MIDI_SYSEX_FALSE) is AccessStatus.BLOCKED
    assert store.get(MIDI_SYSEX_TRUE) is AccessStatus.PROMPT


def test_subscribers_receive_transitions(store: PermissionStore) -> None:
    subscriber = Mock()
    store.subscribe(subscriber)

    store.set(GEOLOCATION, AccessStatus.GRANTED)

    subscriber.assert_called_once()
    is_matching, to_status, from_status = subscriber.call_args.args
    assert to_status is AccessStatus.GRANTED
    assert from_status is AccessStatus.BLOCKED
    assert is_matching({"name": "geolocation"})
    assert not is_matching(MIDI)


def test_same_status_write_does_not_notify(store: PermissionStore) -> None:
    subscriber = Mock()
    store.subscribe(subscriber)

    store.set(MIDI_SYSEX_TRUE, AccessStatus.GRANTED)
    store.set(MIDI_SYSEX_TRUE, AccessStatus.GRANTED)
    store.set(MIDI_SYSEX_TRUE, "GRANTED")

    assert subscriber.call_count == 1


def test_subscribe_is_idempotent_and_unsubscribe_removes(store: PermissionStore) -> None:
    subscriber = Mock()
    unsubscribe = store.subscribe(subscriber)
    store.subscribe(subscriber)

    store.set(GEOLOCATION, AccessStatus.PROMPT)
    assert subscriber.call_count == 1

    unsubscribe()
    store.set(GEOLOCATION, AccessStatus.GRANTED)
    assert subscriber.call_count == 1


def test_subscribers_run_in_registration_order(store: PermissionStore) -> None:
    calls = []
    store.subscribe(lambda *args: calls.append("first"))
    store.subscribe(lambda *args: calls.append("second"))
    store.subscribe(lambda *args: calls.append("third"))

    store.set(GEOLOCATION, AccessStatus.GRANTED)

    assert calls == ["first", "second", "third"]


def test_subscriber_removed_during_dispatch_is_skipped(store: PermissionStore) -> None:
    second = Mock()
    unsubscribers = {}

    def first(*args) -> None:
        unsubscribers["second"]()

    store.subscribe(first)
    unsubscribers["second"] = store.subscribe(second)
    third = Mock()
    store.subscribe(third)

    store.set(GEOLOCATION, AccessStatus.GRANTED)

    second.assert_not_called()
    third.assert_called_once()


def test_nested_set_completes_before_outer_dispatch_continues(store: PermissionStore) -> None:
    seen = []

    def cascade(is_matching, to_status, from_status) -> None:
        seen.append(("cascade", to_status))
        if is_matching(GEOLOCATION) and to_status is AccessStatus.GRANTED:
            store.set(MIDI_SYSEX_TRUE, AccessStatus.GRANTED)

    def record(is_matching, to_status, from_status) -> None:
        seen.append(("record", to_status, store.get(MIDI_SYSEX_TRUE)))

    store.subscribe(cascade)
    store.subscribe(record)

    store.set(GEOLOCATION, AccessStatus.GRANTED)

    assert seen == [
        ("cascade", AccessStatus.GRANTED),
        ("cascade", AccessStatus.GRANTED),
        ("record", AccessStatus.GRANTED, AccessStatus.GRANTED),
        ("record", AccessStatus.GRANTED, AccessStatus.GRANTED),
    ]


def test_failing_subscriber_does_not_block_others_without_loop(
    store: PermissionStore, caplog: pytest.LogCaptureFixture
) -> None:
    after = Mock()
    store.subscribe(Mock(side_effect=RuntimeError("boom")))
    store.subscribe(after)

    with caplog.at_level("ERROR", logger="permsim"):
        store.set(GEOLOCATION, AccessStatus.GRANTED)

    after.assert_called_once()
    assert store.get(GEOLOCATION) is AccessStatus.GRANTED
    assert "permission store subscriber failed" in caplog.text


@pytest.mark.asyncio
async def test_failing_subscriber_is_reported_on_next_loop_iteration(
    store: PermissionStore,
) -> None:
    loop = asyncio.get_running_loop()
    reported = []
    loop.set_exception_handler(lambda _loop, context: reported.append(context["exception"]))
    error = RuntimeError("boom")
    store.subscribe(Mock(side_effect=error))

    try:
        store.set(GEOLOCATION, AccessStatus.GRANTED)
        assert reported == []
        await asyncio.sleep(0)
        assert reported == [error]
    finally:
        loop.set_exception_handler(None)


def test_conflicting_initial_states_are_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        create_permission_store([(MIDI, AccessStatus.PROMPT), (MIDI_SYSEX_FALSE, AccessStatus.GRANTED)])


def test_custom_matcher_replaces_default() -> None:
    store = create_permission_store(
        [({"name": "Camera"}, AccessStatus.PROMPT)],
        is_matching_descriptor=lambda a, b: a["name"].lower() == b["name"].lower(),
    )

    assert store.get({"name": "camera"}) is AccessStatus.PROMPT
    assert store.is_matching_descriptor({"name": "A"}, {"name": "a"})


def test_select_by_descriptor(store: PermissionStore) -> None:
    pairs = [(dict(GEOLOCATION), "a"), (dict(MIDI_SYSEX_FALSE), "b"), (dict(MIDI_SYSEX_TRUE), "c")]

    assert store.select_by_descriptor(pairs, GEOLOCATION) == "a"
    assert store.select_by_descriptor(pairs, MIDI) == "b"
    assert store.select_by_descriptor(pairs, MIDI_SYSEX_TRUE) == "c"
    assert store.select_by_descriptor(pairs, NOTIFICATIONS) is None


@pytest.mark.parametrize(
    "name",
    ["geolocation", "midi", "notifications", "persistent-storage", "push", "screen-wake-lock", "storage-access"],
)
def test_default_store_knows_standard_permissions(name: str) -> None:
    store = create_permission_store()
    assert store.is_known_descriptor({"name": name})
    assert store.get({"name": name}) is AccessStatus.PROMPT


def test_default_store_distinguishes_discriminating_fields() -> None:
    store = create_permission_store()

    store.set(MIDI_SYSEX_TRUE, AccessStatus.BLOCKED)
    store.set(MIDI_SYSEX_FALSE, AccessStatus.GRANTED)
    store.set(PUSH_VISIBLE_ONLY, AccessStatus.BLOCKED)

    assert store.get(MIDI) is AccessStatus.GRANTED
    assert store.get(MIDI_SYSEX_TRUE) is AccessStatus.BLOCKED
    assert store.get(PUSH) is AccessStatus.PROMPT
    assert store.get(PUSH_VISIBLE_ONLY) is AccessStatus.BLOCKED


def test_geolocation_transition_scenario() -> None:
    store = create_permission_store([(GEOLOCATION, AccessStatus.PROMPT)])
    subscriber = Mock()
    store.subscribe(subscriber)

    store.set(GEOLOCATION, AccessStatus.GRANTED)

    assert subscriber.call_count == 1
    is_matching, to_status, from_status = subscriber.call_args.args
    assert is_matching(GEOLOCATION)
    assert (to_status, from_status) == (AccessStatus.GRANTED, AccessStatus.PROMPT)
    assert store.get(GEOLOCATION) is AccessStatus.GRANTED


def test_standard_initial_states_use_known_names() -> None:
    names = {descriptor["name"] for descriptor, _ in build_initial_permission_states()}

    assert names <= PERMISSION_NAMES
    assert "camera" in PERMISSION_NAMES


def test_descriptor_key_is_hashable_and_order_independent() -> None:
    first = descriptor_key({"name": "x", "origins": ["a"], "options": {"b": 1, "a": 2}})
    second = descriptor_key({"options": {"a": 2, "b": 1}, "origins": ["a"], "name": "x"})

    assert hash(first) == hash(second)
    assert first == second
    assert descriptor_key({"name": "x", "origins": ["b"]}) != descriptor_key({"name": "x", "origins": ["a"]})
