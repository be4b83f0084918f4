import pytest

from permsim import AccessDialog, AccessDialogResult, IllegalStateError
from permsim.core.dialog import DialogState


def test_new_dialog_is_open() -> None:
    dialog = AccessDialog()

    assert dialog.is_open
    assert dialog.state is DialogState.OPEN
    assert dialog.result is None


@pytest.mark.parametrize(
    ("default_remember", "remember", "expected"),
    [
        (False, None, AccessDialogResult(True, False)),
        (True, None, AccessDialogResult(True, True)),
        (True, False, AccessDialogResult(True, False)),
        (False, True, AccessDialogResult(True, True)),
    ],
)
def test_allow_uses_remember_choice(default_remember, remember, expected) -> None:
    dialog = AccessDialog(default_remember=default_remember)
    if remember is not None:
        dialog.remember(remember)

    dialog.allow()

    assert dialog.result == expected
    assert dialog.state is DialogState.ALLOWED
    assert not dialog.is_open


def test_remember_can_change_until_resolved() -> None:
    dialog = AccessDialog()
    dialog.remember(True)
    dialog.remember(False)
    dialog.remember(True)

    dialog.deny()

    assert dialog.result == AccessDialogResult(should_allow=False, should_remember=True)
    assert dialog.state is DialogState.DENIED


def test_dismiss_has_no_result() -> None:
    dialog = AccessDialog(default_remember=True)

    dialog.dismiss()

    assert dialog.state is DialogState.DISMISSED
    assert dialog.result is None


@pytest.mark.parametrize("first", ["allow", "deny", "dismiss"])
@pytest.mark.parametrize("second", ["allow", "deny", "dismiss"])
def test_dialog_resolves_only_once(first: str, second: str) -> None:
    dialog = AccessDialog()
    getattr(dialog, first)()
    state = dialog.state

    with pytest.raises(IllegalStateError, match="Access dialog already dismissed"):
        getattr(dialog, second)()
    with pytest.raises(IllegalStateError):
        dialog.remember(True)

    assert dialog.state is state
