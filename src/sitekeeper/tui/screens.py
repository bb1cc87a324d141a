"""@brief Modal dialogs used by the SiteKeeper TUI."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static

from sitekeeper import messages
from sitekeeper.models import Entry
from sitekeeper.service import ValidationError
from sitekeeper.store import StoreError

SubmitHandler = Callable[[str, str, str], Awaitable[object]]


class AlertScreen(ModalScreen[None]):
    """@brief Blocking notification that must be acknowledged."""

    BINDINGS = [("escape", "dismiss_alert", "Close"), ("enter", "dismiss_alert", "Close")]

    def __init__(self, message: str, title: str = "Error") -> None:
        super().__init__()
        self._message = message
        self._title = title

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static(self._title, classes="dialog-title")
            yield Static(self._message, id="alert-message")
            with Horizontal(classes="buttons"):
                yield Button("OK", variant="primary", id="alert-ok")

    @on(Button.Pressed, "#alert-ok")
    def action_dismiss_alert(self) -> None:
        self.dismiss(None)


class ConfirmScreen(ModalScreen[bool]):
    """@brief Yes/no gate in front of destructive actions."""

    BINDINGS = [
        ("y", "answer(True)", "Yes"),
        ("n", "answer(False)", "No"),
        ("escape", "answer(False)", "Cancel"),
    ]

    def __init__(self, message: str) -> None:
        super().__init__()
        self._message = message

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static("Please confirm", classes="dialog-title")
            yield Static(self._message, id="confirm-message")
            with Horizontal(classes="buttons"):
                yield Button("Cancel", id="confirm-no")
                yield Button("Delete everything", variant="error", id="confirm-yes")

    @on(Button.Pressed, "#confirm-yes")
    def handle_yes(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#confirm-no")
    def handle_no(self) -> None:
        self.dismiss(False)

    def action_answer(self, answer: bool) -> None:
        self.dismiss(answer)


class PathScreen(ModalScreen[Optional[str]]):
    """@brief Ask for a file path; dismisses with None when cancelled."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, title: str, placeholder: str = "") -> None:
        super().__init__()
        self._title = title
        self._placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static(self._title, classes="dialog-title")
            yield Input(placeholder=self._placeholder, id="path-input")
            with Horizontal(classes="buttons"):
                yield Button("Cancel", id="path-cancel")
                yield Button("Open", variant="primary", id="path-ok")

    @on(Input.Submitted, "#path-input")
    @on(Button.Pressed, "#path-ok")
    def handle_submit(self) -> None:
        value = self.query_one("#path-input", Input).value.strip()
        self.dismiss(value or None)

    @on(Button.Pressed, "#path-cancel")
    def action_cancel(self) -> None:
        self.dismiss(None)


class EntryFormScreen(ModalScreen[bool]):
    """@brief Add/edit form that stays open until the save succeeds.

    Validation problems are shown inside the form with the inputs kept as
    typed. Store failures raise an alert on top of the form, which stays
    open with the same inputs.
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(
        self, title: str, on_submit: SubmitHandler, entry: Optional[Entry] = None
    ) -> None:
        super().__init__()
        self._title = title
        self._on_submit = on_submit
        self._entry = entry

    def compose(self) -> ComposeResult:
        entry = self._entry
        with Vertical(classes="dialog"):
            yield Static(self._title, classes="dialog-title")
            yield Input(
                value=entry.website if entry else "",
                placeholder="Website",
                id="website",
            )
            yield Input(
                value=entry.username if entry else "",
                placeholder="Username/Email",
                id="username",
            )
            yield Input(
                value=entry.password if entry else "",
                placeholder="Password",
                password=True,
                id="password",
            )
            yield Static("", id="form-error", classes="dialog-error")
            with Horizontal(classes="buttons"):
                yield Button("Show", id="toggle-password")
                yield Button("Cancel", id="form-cancel")
                yield Button("Save Password", variant="primary", id="form-save")

    @on(Button.Pressed, "#toggle-password")
    def toggle_password(self, event: Button.Pressed) -> None:
        field = self.query_one("#password", Input)
        field.password = not field.password
        event.button.label = "Show" if field.password else "Hide"

    @on(Input.Submitted)
    @on(Button.Pressed, "#form-save")
    async def handle_save(self) -> None:
        website = self.query_one("#website", Input).value
        username = self.query_one("#username", Input).value
        password = self.query_one("#password", Input).value
        try:
            await self._on_submit(website, username, password)
        except ValidationError as e:
            self.query_one("#form-error", Static).update(str(e))
            return
        except StoreError as e:
            self.app.push_screen(AlertScreen(messages.ERROR_SAVE.format(error=e)))
            return
        self.dismiss(True)

    @on(Button.Pressed, "#form-cancel")
    def action_cancel(self) -> None:
        self.dismiss(False)
