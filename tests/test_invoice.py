"""Tests for commands/invoice.py -- line building and the invoice workflow."""

from __future__ import annotations

import json
from datetime import date

import httpx
import pytest
import respx

from _errors import ApiError, ConfigError
from clients import FreshBooksClientRegistry
from commands.invoice import InvoiceOptions, build_invoice_lines, run_invoice
from config import Config
from conftest import BASE_URL, make_config, time_entry_json
from models import Money, TimeEntry

ENTRIES_URL = f"{BASE_URL}/timetracking/business/77/time_entries"
INVOICES_URL = f"{BASE_URL}/accounting/account/acc123/invoices/invoices"

INVOICE_DATE = date(2025, 1, 10)


def _unbilled(*entries: dict) -> httpx.Response:
    return httpx.Response(200, json={"time_entries": list(entries), "meta": {"pages": 1}})


def _created_invoice() -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "response": {
                "result": {
                    "invoice": {
                        "invoiceid": 555,
                        "invoice_number": "0000012",
                        "amount": {"amount": "337.50", "code": "USD"},
                        "v3_status": "draft",
                        "links": {"client_view": "https://my.freshbooks.com/view/abc"},
                    }
                }
            }
        },
    )


def _three_entries() -> list[dict]:
    return [
        time_entry_json(1, duration=3600, local="2025-01-06T09:00:00", note="API work"),
        time_entry_json(2, duration=1800, local="2025-01-07T09:00:00"),
        time_entry_json(3, duration=2700, local="2025-01-08T09:00:00"),
    ]


# =========================================================================
# build_invoice_lines
# =========================================================================


class TestBuildInvoiceLines:
    def test_one_line_per_entry(self) -> None:
        entries = [
            TimeEntry(1, 42, 2700, "2025-01-06T14:00:00Z", "2025-01-06T09:00:00"),
            TimeEntry(2, 42, 5400, "2025-01-07T14:00:00Z", "2025-01-07T09:00:00", note="Review"),
        ]
        lines = build_invoice_lines(entries, "150.00", "USD")

        assert [line.name for line in lines] == ["Consulting", "Review"]
        assert [line.description for line in lines] == ["2025-01-06", "2025-01-07"]
        assert [line.qty for line in lines] == ["0.75", "1.50"]
        assert all(line.unit_cost == Money("150.00", "USD") for line in lines)
        assert all(line.type == 0 for line in lines)

    def test_qty_rounds_to_two_decimals(self) -> None:
        entry = TimeEntry(1, 42, 1000, "2025-01-06T14:00:00Z", "2025-01-06T09:00:00")
        assert build_invoice_lines([entry], "100", "USD")[0].qty == "0.28"

    def test_missing_local_start_gives_empty_description(self) -> None:
        entry = TimeEntry(1, 42, 3600, "2025-01-06T14:00:00Z", None)
        assert build_invoice_lines([entry], "100", "USD")[0].description == ""

    def test_empty(self) -> None:
        assert build_invoice_lines([], "100", "USD") == []


# =========================================================================
# run_invoice
# =========================================================================


class TestRunInvoice:
    @respx.mock
    async def test_nothing_to_invoice(
        self, registry: FreshBooksClientRegistry, config: Config
    ) -> None:
        respx.get(ENTRIES_URL).mock(return_value=_unbilled())

        report = await run_invoice(registry, config, 42, InvoiceOptions())

        assert report.nothing_to_invoice
        assert report.invoice is None
        assert all(call.request.method == "GET" for call in respx.calls)

    @respx.mock
    async def test_missing_rate_fails_before_any_write(
        self, registry: FreshBooksClientRegistry, config: Config
    ) -> None:
        respx.get(ENTRIES_URL).mock(return_value=_unbilled(time_entry_json(1, client_id=43)))

        with pytest.raises(ConfigError, match="No rate configured for client 43"):
            await run_invoice(registry, config, 43, InvoiceOptions())
        assert all(call.request.method == "GET" for call in respx.calls)

    @pytest.mark.parametrize("rate", ["abc", "-5", "NaN"])
    @respx.mock
    async def test_invalid_rate_rejected(
        self, registry: FreshBooksClientRegistry, config: Config, rate: str
    ) -> None:
        respx.get(ENTRIES_URL).mock(return_value=_unbilled(time_entry_json(1)))
        with pytest.raises(ConfigError, match="Invalid hourly rate"):
            await run_invoice(registry, config, 42, InvoiceOptions(rate=rate))

    @respx.mock
    async def test_dry_run_makes_no_writes(
        self, registry: FreshBooksClientRegistry, config: Config
    ) -> None:
        respx.get(ENTRIES_URL).mock(return_value=_unbilled(*_three_entries()))

        report = await run_invoice(registry, config, 42, InvoiceOptions(dry_run=True))

        assert report.dry_run
        assert report.invoice is None
        assert report.billing is None
        assert len(report.lines) == 3
        assert report.hours == 2.25
        assert report.total == "337.50"
        assert report.rate == "150.00"
        assert report.currency == "USD"
        assert report.status == "draft"
        assert all(call.request.method == "GET" for call in respx.calls)

    @respx.mock
    async def test_creates_invoice_and_marks_entries(
        self, registry: FreshBooksClientRegistry, config: Config
    ) -> None:
        respx.get(ENTRIES_URL).mock(return_value=_unbilled(*_three_entries()))
        create_route = respx.post(INVOICES_URL).mock(return_value=_created_invoice())
        respx.get(f"{INVOICES_URL}/555/share_link").mock(
            return_value=httpx.Response(
                200, json={"response": {"result": {"share_link": "https://share/555"}}}
            )
        )
        put_routes = [
            respx.put(f"{ENTRIES_URL}/{i}").mock(return_value=httpx.Response(200, json={}))
            for i in (1, 2, 3)
        ]

        report = await run_invoice(
            registry,
            config,
            42,
            InvoiceOptions(notes="January", create_date=INVOICE_DATE),
        )

        body = json.loads(create_route.calls.last.request.content)["invoice"]
        assert body["customerid"] == 42
        assert body["create_date"] == "2025-01-10"
        assert body["status"] == 1
        assert body["notes"] == "January"
        assert [line["qty"] for line in body["lines"]] == ["1.00", "0.50", "0.75"]
        assert [line["name"] for line in body["lines"]] == ["API work", "Consulting", "Consulting"]

        assert report.invoice is not None
        assert report.invoice.id == 555
        assert report.share_link == "https://share/555"
        assert report.billing is not None
        assert report.billing.billed == [1, 2, 3]
        assert all(route.call_count == 1 for route in put_routes)

    @respx.mock
    async def test_partial_billing_failure_reported(
        self, registry: FreshBooksClientRegistry, config: Config
    ) -> None:
        respx.get(ENTRIES_URL).mock(return_value=_unbilled(*_three_entries()))
        respx.post(INVOICES_URL).mock(return_value=_created_invoice())
        respx.get(f"{INVOICES_URL}/555/share_link").mock(
            return_value=httpx.Response(403, text="forbidden")
        )
        respx.put(f"{ENTRIES_URL}/1").mock(return_value=httpx.Response(200, json={}))
        respx.put(f"{ENTRIES_URL}/2").mock(return_value=httpx.Response(500, text="boom"))
        respx.put(f"{ENTRIES_URL}/3").mock(return_value=httpx.Response(200, json={}))

        report = await run_invoice(
            registry, config, 42, InvoiceOptions(create_date=INVOICE_DATE)
        )

        # Share link endpoint refused; the invoice's own client view link is used.
        assert report.share_link == "https://my.freshbooks.com/view/abc"
        assert report.billing is not None
        assert report.billing.billed == [1, 3]
        assert list(report.billing.failed) == [2]

    @respx.mock
    async def test_invoice_creation_failure_propagates_without_billing(
        self, registry: FreshBooksClientRegistry, config: Config
    ) -> None:
        respx.get(ENTRIES_URL).mock(return_value=_unbilled(*_three_entries()))
        respx.post(INVOICES_URL).mock(return_value=httpx.Response(400, text="bad"))

        with pytest.raises(ApiError):
            await run_invoice(registry, config, 42, InvoiceOptions(create_date=INVOICE_DATE))
        assert not any(call.request.method == "PUT" for call in respx.calls)

    @respx.mock
    async def test_config_currency_and_status_used(
        self, registry: FreshBooksClientRegistry
    ) -> None:
        config = make_config(default_currency="EUR", invoice_status="final")
        respx.get(ENTRIES_URL).mock(return_value=_unbilled(time_entry_json(1)))

        report = await run_invoice(registry, config, 42, InvoiceOptions(dry_run=True))

        assert report.currency == "EUR"
        assert report.status == "final"
        assert report.lines[0].unit_cost == Money("150.00", "EUR")

    @respx.mock
    async def test_options_override_config(
        self, registry: FreshBooksClientRegistry
    ) -> None:
        config = make_config(default_currency="EUR", invoice_status="final")
        respx.get(ENTRIES_URL).mock(return_value=_unbilled(time_entry_json(1)))
        create_route = respx.post(INVOICES_URL).mock(return_value=_created_invoice())
        respx.get(f"{INVOICES_URL}/555/share_link").mock(return_value=httpx.Response(404))
        respx.put(f"{ENTRIES_URL}/1").mock(return_value=httpx.Response(200, json={}))

        report = await run_invoice(
            registry,
            config,
            42,
            InvoiceOptions(rate="99.50", currency="GBP", status="draft", create_date=INVOICE_DATE),
        )

        line = json.loads(create_route.calls.last.request.content)["invoice"]["lines"][0]
        assert line["unit_cost"] == {"amount": "99.50", "code": "GBP"}
        assert report.status == "draft"
        assert report.total == "99.50"

    @respx.mock
    async def test_total_rounds_half_up(self, registry: FreshBooksClientRegistry) -> None:
        # 0.25h at 0.10/h is 0.025, which rounds to 0.03.
        config = make_config(client_rates={"42": "0.10"})
        respx.get(ENTRIES_URL).mock(return_value=_unbilled(time_entry_json(1, duration=900)))
        report = await run_invoice(registry, config, 42, InvoiceOptions(dry_run=True))
        assert report.total == "0.03"
