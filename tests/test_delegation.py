from unittest.mock import Mock

import pytest

from permsim import (
    AccessStatus,
    DelegatedPermissions,
    DelegatedPermissionStatus,
    InvalidArgumentError,
    PermissionState,
    create_delegation,
    create_permission_store,
    create_permissions,
)

CAMERA = {"name": "camera"}


@pytest.fixture()
def stores():
    return (
        create_permission_store([(CAMERA, AccessStatus.PROMPT)]),
        create_permission_store([(CAMERA, AccessStatus.GRANTED)]),
    )


@pytest.fixture()
def delegates(stores):
    return tuple(create_permissions(store) for store in stores)


def test_requires_at_least_one_delegate() -> None:
    with pytest.raises(InvalidArgumentError, match="No delegates provided"):
        create_delegation([])


def test_classes_cannot_be_constructed_directly() -> None:
    with pytest.raises(TypeError, match="Illegal constructor"):
        DelegatedPermissions()
    with pytest.raises(TypeError, match="Illegal constructor"):
        DelegatedPermissionStatus()


def test_first_delegate_is_selected_initially(delegates) -> None:
    delegation = create_delegation(delegates)

    assert delegation.is_delegate_selected(delegates[0])
    assert not delegation.is_delegate_selected(delegates[1])

    delegation.select_delegate(delegates[1])
    assert delegation.is_delegate_selected(delegates[1])
    assert not delegation.is_delegate_selected(delegates[0])


def test_selecting_unknown_delegate_fails(delegates, stores) -> None:
    delegation = create_delegation(delegates)

    with pytest.raises(InvalidArgumentError, match="Unknown delegate"):
        delegation.select_delegate(create_permissions(stores[0]))


@pytest.mark.asyncio
async def test_status_follows_selected_delegate(delegates) -> None:
    permissions, select_delegate, _ = create_delegation(delegates)
    status = await permissions.query(CAMERA)
    assert status.name == "camera"
    assert status.state is PermissionState.PROMPT

    select_delegate(delegates[1])

    assert status.state is PermissionState.GRANTED


@pytest.mark.asyncio
async def test_switching_delegates_dispatches_change(delegates) -> None:
    delegation = create_delegation(delegates)
    status = await delegation.permissions.query(CAMERA)
    listener = Mock()
    status.add_event_listener("change", listener)

    delegation.select_delegate(delegates[1])
    delegation.select_delegate(delegates[0])

    assert listener.call_count == 2
    assert listener.call_args.args[0].target is status


@pytest.mark.asyncio
async def test_switching_between_equal_states_is_silent(stores, delegates) -> None:
    stores[0].set(CAMERA, AccessStatus.GRANTED)
    delegation = create_delegation(delegates)
    status = await delegation.permissions.query(CAMERA)
    listener = Mock()
    status.add_event_listener("change", listener)

    delegation.select_delegate(delegates[1])

    listener.assert_not_called()


@pytest.mark.asyncio
async def test_only_selected_delegate_changes_are_forwarded(stores, delegates) -> None:
    delegation = create_delegation(delegates)
    status = await delegation.permissions.query(CAMERA)
    listener = Mock()
    status.add_event_listener("change", listener)

    stores[1].set(CAMERA, AccessStatus.BLOCKED)
    listener.assert_not_called()

    stores[0].set(CAMERA, AccessStatus.BLOCKED)
    listener.assert_called_once()
    assert status.state is PermissionState.DENIED


@pytest.mark.asyncio
async def test_delegate_listeners_attached_lazily(stores, delegates, monkeypatch) -> None:
    subscribe = Mock(wraps=stores[0].subscribe)
    monkeypatch.setattr(stores[0], "subscribe", subscribe)
    delegation = create_delegation(delegates)
    status = await delegation.permissions.query(CAMERA)
    subscribe.assert_not_called()

    listener = Mock()
    status.onchange = listener
    subscribe.assert_called_once()

    status.onchange = None
    delegation.select_delegate(delegates[1])
    listener.assert_not_called()


@pytest.mark.asyncio
async def test_query_reaches_every_delegate(delegates) -> None:
    first = Mock()
    second = Mock()

    async def query_first(descriptor):
        return await delegates[0].query(descriptor)

    async def query_second(descriptor):
        return await delegates[1].query(descriptor)

    first.query = Mock(side_effect=query_first)
    second.query = Mock(side_effect=query_second)
    delegation = create_delegation([first, second])

    await delegation.permissions.query(CAMERA)

    first.query.assert_called_once_with(CAMERA)
    second.query.assert_called_once_with(CAMERA)


@pytest.mark.asyncio
async def test_nested_set_in_selected_delegate_keeps_state_current(stores, delegates) -> None:
    store = stores[0]

    def block_once_granted(is_matching, to_status, from_status) -> None:
        if is_matching(CAMERA) and to_status is AccessStatus.GRANTED:
            unsubscribe()
            store.set(CAMERA, AccessStatus.BLOCKED)

    unsubscribe = store.subscribe(block_once_granted)
    delegation = create_delegation(delegates)
    status = await delegation.permissions.query(CAMERA)
    seen = []
    status.add_event_listener("change", lambda event: seen.append(status.state))

    store.set(CAMERA, AccessStatus.GRANTED)
    assert seen == [PermissionState.DENIED]

    store.set(CAMERA, AccessStatus.GRANTED)
    assert seen == [PermissionState.DENIED, PermissionState.GRANTED]
    assert status.state is PermissionState.GRANTED
