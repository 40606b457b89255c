"""Tests for the Accounts screen controller.

AccountsView runs against a CrmStore whose client talks to the CRM routers
through httpx.ASGITransport, so saves and deletes go through the real
endpoint validation.
"""

from __future__ import annotations

import httpx
import pytest

from src.crm.client.accounts_view import NEW_ACCOUNT_DEFAULTS, AccountsView
from src.crm.client.api_client import CrmApiClient
from src.crm.client.signals import TRIGGER_NEW_ITEM, SignalBus
from src.crm.client.store import CrmStore


class Harness:
    """Collects alerts and answers confirmations for a view under test."""

    def __init__(self, api_app, confirm_answer=True) -> None:
        client = CrmApiClient(base_url="http://test", transport=httpx.ASGITransport(app=api_app))
        self.store = CrmStore(client)
        self.signals = SignalBus()
        self.alerts: list[str] = []
        self.questions: list[str] = []
        self.confirm_answer = confirm_answer
        self.view = AccountsView(
            self.store, self.signals, alert=self.alerts.append, confirm=self._confirm
        )

    def _confirm(self, question: str) -> bool:
        self.questions.append(question)
        return self.confirm_answer


@pytest.fixture
def harness(api_app) -> Harness:
    return Harness(api_app)


async def _create(view: AccountsView, **form) -> dict:
    view.open_new()
    for name, value in form.items():
        view.set_field(name, value)
    record = await view.save()
    assert record is not None
    return record


# ── Save ─────────────────────────────────────────────────────────────────────


class TestSave:
    @pytest.mark.asyncio
    async def test_create_applies_defaults(self, harness):
        record = await _create(harness.view, accountName="Acme", industry="Software")

        assert harness.alerts == ["Account created successfully!"]
        assert record["accountRating"] == NEW_ACCOUNT_DEFAULTS["accountRating"]
        assert record["revenue"] == "$0"
        assert record["numberOfEmployees"] == "1-10"
        assert record["accountOwner"] == "Current User"
        assert record["status"] == "PROSPECT"
        assert harness.view.form_open is False
        assert harness.view.form == {}
        assert harness.store.records("accounts")[0]["id"] == record["id"]

    @pytest.mark.asyncio
    async def test_form_values_win_over_defaults(self, harness):
        record = await _create(
            harness.view, accountName="Acme", industry="Software", status="Customer"
        )
        assert record["status"] == "CUSTOMER"

    @pytest.mark.asyncio
    async def test_missing_required_fields_alerts_without_calling_api(self, harness):
        harness.view.open_new()
        harness.view.set_field("accountName", "Acme")

        result = await harness.view.save()

        assert result is None
        assert harness.alerts == ["Account Name and Industry are required!"]
        assert harness.view.form_open is True
        assert harness.store.records("accounts") == []

    @pytest.mark.asyncio
    async def test_edit_updates_existing(self, harness):
        record = await _create(harness.view, accountName="Acme", industry="Software")

        harness.view.edit(record)
        harness.view.set_field("city", "Austin")
        updated = await harness.view.save()

        assert updated["id"] == record["id"]
        assert updated["city"] == "Austin"
        assert harness.alerts[-1] == "Account updated successfully!"
        assert len(harness.store.records("accounts")) == 1

    @pytest.mark.asyncio
    async def test_server_rejection_is_alerted(self, harness):
        harness.view.open_new()
        harness.view.set_field("accountName", "Acme")
        harness.view.set_field("industry", "Software")
        harness.view.set_field("geo", "Atlantis")

        result = await harness.view.save()

        assert result is None
        assert harness.alerts[-1].startswith("Error saving account: geo: ")
        assert harness.view.form_open is True

    def test_unknown_form_field(self, harness):
        with pytest.raises(KeyError):
            harness.view.set_field("favouriteColour", "blue")


# ── Filter / Delete / Signals ────────────────────────────────────────────────


class TestTableAndActions:
    @pytest.mark.asyncio
    async def test_status_filter_and_counts(self, harness):
        await _create(harness.view, accountName="A", industry="Software", status="Customer")
        await _create(harness.view, accountName="B", industry="Software", status="Customer")
        await _create(harness.view, accountName="C", industry="Software")

        harness.view.set_status_filter("customer")
        customers = [a["accountName"] for a in harness.view.accounts]
        harness.view.set_status_filter("All")

        assert sorted(customers) == ["A", "B"]
        assert len(harness.view.accounts) == 3
        assert harness.view.count_by_status("Customer") == 2
        assert harness.view.count_by_status("PROSPECT") == 1

    @pytest.mark.asyncio
    async def test_delete_after_confirmation(self, harness):
        record = await _create(harness.view, accountName="Acme", industry="Software")

        deleted = await harness.view.delete(record["id"])

        assert deleted is True
        assert harness.questions == ["Are you sure you want to delete this account?"]
        assert harness.alerts[-1] == "Account deleted successfully!"
        assert harness.store.records("accounts") == []

    @pytest.mark.asyncio
    async def test_declined_confirmation_keeps_record(self, api_app):
        harness = Harness(api_app, confirm_answer=False)
        record = await _create(harness.view, accountName="Acme", industry="Software")

        deleted = await harness.view.delete(record["id"])

        assert deleted is False
        assert len(harness.store.records("accounts")) == 1

    @pytest.mark.asyncio
    async def test_async_confirm_is_awaited(self, api_app):
        async def confirm(question: str) -> bool:
            return True

        client = CrmApiClient(base_url="http://test", transport=httpx.ASGITransport(app=api_app))
        view = AccountsView(
            CrmStore(client), SignalBus(), alert=lambda message: None, confirm=confirm
        )
        record = await _create(view, accountName="Acme", industry="Software")

        assert await view.delete(record["id"]) is True

    @pytest.mark.asyncio
    async def test_delete_failure_is_alerted(self, harness):
        harness.view.open_new()

        deleted = await harness.view.delete("00000000-0000-0000-0000-000000000000")

        assert deleted is False
        assert harness.alerts[-1] == "Error deleting account: Account not found"

    def test_new_item_signal_opens_form_for_accounts_only(self, harness):
        harness.signals.emit(TRIGGER_NEW_ITEM, {"type": "contacts"})
        assert harness.view.form_open is False

        harness.signals.emit(TRIGGER_NEW_ITEM, {"type": "accounts"})
        assert harness.view.form_open is True
        assert harness.view.editing is None

    def test_close_stops_listening(self, harness):
        harness.view.close()
        assert harness.signals.emit(TRIGGER_NEW_ITEM, {"type": "accounts"}) == 0
        assert harness.view.form_open is False
