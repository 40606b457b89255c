"""View controller for the Accounts screen.

Holds the screen's state outside any UI toolkit: the status filter, the
create/edit form, and the save/delete actions. Rendering layers read
``accounts`` and ``form`` and call the action methods; user-facing messages
go through the ``alert`` callback and delete confirmation through
``confirm``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from src.crm.client.api_client import CrmApiError
from src.crm.client.signals import TRIGGER_NEW_ITEM, SignalBus
from src.crm.client.store import CrmStore
from src.crm.records.normalizer import to_storage

logger = structlog.get_logger(__name__)

NEW_ACCOUNT_DEFAULTS: dict[str, Any] = {
    "accountRating": "BRONZE",
    "revenue": "$0",
    "numberOfEmployees": "1-10",
    "accountOwner": "Current User",
    "status": "PROSPECT",
}

FORM_FIELDS = (
    "accountName",
    "industry",
    "accountRating",
    "revenue",
    "numberOfEmployees",
    "city",
    "state",
    "country",
    "website",
    "accountOwner",
    "status",
    "geo",
)

Confirm = Callable[[str], bool | Awaitable[bool]]


class AccountsView:
    """State and actions behind the Accounts screen.

    Args:
        store: Client-side record store.
        signals: Bus delivering ``trigger_new_item`` events.
        alert: Shows a message to the user.
        confirm: Asks the user a yes/no question (sync or async).
    """

    def __init__(
        self,
        store: CrmStore,
        signals: SignalBus,
        alert: Callable[[str], None] | None = None,
        confirm: Confirm | None = None,
    ) -> None:
        self._store = store
        self._alert = alert or (lambda message: logger.info("accounts_view.alert", message=message))
        self._confirm = confirm or (lambda message: False)
        self.status_filter = "all"
        self.form_open = False
        self.editing: dict[str, Any] | None = None
        self.form: dict[str, Any] = {}
        self._disconnect = signals.connect(TRIGGER_NEW_ITEM, self._on_trigger_new_item)

    def close(self) -> None:
        """Stop listening for signals (view unmounted)."""
        self._disconnect()

    # ── Table ───────────────────────────────────────────────────────────────

    @property
    def accounts(self) -> list[dict[str, Any]]:
        """Accounts matching the status filter."""
        records = self._store.records("accounts")
        if self.status_filter == "all":
            return records
        wanted = to_storage(self.status_filter)
        return [r for r in records if to_storage(r.get("status")) == wanted]

    def set_status_filter(self, value: str) -> None:
        self.status_filter = "all" if not value or value.lower() == "all" else value

    def count_by_status(self, status: str) -> int:
        wanted = to_storage(status)
        return sum(
            1 for r in self._store.records("accounts") if to_storage(r.get("status")) == wanted
        )

    # ── Form ────────────────────────────────────────────────────────────────

    def open_new(self) -> None:
        """Open an empty create form."""
        self.editing = None
        self.form = {}
        self.form_open = True

    def edit(self, account: dict[str, Any]) -> None:
        """Open the form pre-filled with an existing account."""
        self.editing = account
        self.form = {name: account.get(name) for name in FORM_FIELDS}
        self.form_open = True

    def set_field(self, name: str, value: Any) -> None:
        if name not in FORM_FIELDS:
            raise KeyError(f"Unknown account form field '{name}'")
        self.form[name] = value

    def reset_form(self) -> None:
        self.form = {}
        self.editing = None
        self.form_open = False

    def _new_account_payload(self) -> dict[str, Any]:
        payload = {name: value for name, value in self.form.items() if value not in (None, "")}
        for name, default in NEW_ACCOUNT_DEFAULTS.items():
            payload.setdefault(name, default)
        return payload

    async def save(self) -> dict[str, Any] | None:
        """Create or update from the form. Returns the server record, or None."""
        if not self.form.get("accountName") or not self.form.get("industry"):
            self._alert("Account Name and Industry are required!")
            return None

        try:
            if self.editing is not None:
                record = await self._store.update("accounts", self.editing["id"], dict(self.form))
                self._alert("Account updated successfully!")
            else:
                record = await self._store.add("accounts", self._new_account_payload())
                self._alert("Account created successfully!")
        except CrmApiError as exc:
            logger.warning("accounts_view.save_failed", error=exc.message, status_code=exc.status_code)
            self._alert(f"Error saving account: {exc.message}")
            return None

        self.reset_form()
        return record

    async def delete(self, account_id: str) -> bool:
        """Delete after confirmation. Returns True when the account was removed."""
        answer = self._confirm("Are you sure you want to delete this account?")
        if isinstance(answer, Awaitable):
            answer = await answer
        if not answer:
            return False

        try:
            await self._store.delete("accounts", account_id)
        except CrmApiError as exc:
            logger.warning("accounts_view.delete_failed", error=exc.message, status_code=exc.status_code)
            self._alert(f"Error deleting account: {exc.message}")
            return False

        self._alert("Account deleted successfully!")
        return True

    # ── Signals ─────────────────────────────────────────────────────────────

    def _on_trigger_new_item(self, detail: dict[str, Any] | None) -> None:
        if detail and detail.get("type") == "accounts":
            self.open_new()
