from datetime import date, timedelta
from decimal import Decimal

import pytest

from src.receivables.models import Receivable
from src.receivables.services import render_reminder

RECEIVABLES = "/api/receivables/"


def day(offset: int) -> str:
    return (date.today() + timedelta(days=offset)).isoformat()


async def create_receivable(client, headers, **overrides):
    payload = {
        "invoice_no": "INV-900",
        "customer_name": "Sharma Auto Works",
        "customer_phone": "9800000001",
        "invoice_date": day(-40),
        "due_date": day(-10),
        "total_amount": "10000",
    }
    payload.update(overrides)
    response = await client.post(RECEIVABLES, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_manual_receivable_requires_invoice_details(client, auth_headers):
    response = await client.post(RECEIVABLES, json={"customer_name": "A"}, headers=auth_headers)

    assert response.status_code == 400
    assert "invoice_no" in response.json()["message"]


async def test_listing_marks_past_due_receivables_overdue(client, auth_headers):
    created = await create_receivable(client, auth_headers)
    assert created["status"] == "pending"
    assert created["days_overdue"] == 10

    listed = await client.get(RECEIVABLES, headers=auth_headers)

    assert listed.json()["data"]["items"][0]["status"] == "overdue"


async def test_list_is_ordered_by_due_date(client, auth_headers):
    await create_receivable(client, auth_headers, invoice_no="INV-902", due_date=day(5))
    await create_receivable(client, auth_headers, invoice_no="INV-901", due_date=day(-5))

    listed = await client.get(RECEIVABLES, headers=auth_headers)

    assert [r["invoice_no"] for r in listed.json()["data"]["items"]] == ["INV-901", "INV-902"]


async def test_send_reminder(client, auth_headers):
    receivable = await create_receivable(client, auth_headers)

    response = await client.post(
        f"{RECEIVABLES}send-reminder",
        json={"receivable_ids": [receivable["id"]], "channel": "sms", "message": "Dear {customer}, Rs. {amount} is due for {invoice}."},
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"][0]
    assert updated["status"] == "reminded"
    assert updated["reminder_count"] == 1
    assert updated["last_reminder_date"] == day(0)
    assert updated["next_reminder_date"] == day(7)
    assert updated["reminder_history"][0]["message"] == "Dear Sharma Auto Works, Rs. 10,000.00 is due for INV-900."


async def test_reminder_with_promise(client, auth_headers):
    receivable = await create_receivable(client, auth_headers)

    response = await client.post(
        f"{RECEIVABLES}send-reminder",
        json={
            "receivable_ids": [receivable["id"]],
            "channel": "whatsapp",
            "message": "Payment reminder",
            "promised_date": day(3),
            "promised_amount": "5000",
        },
        headers=auth_headers,
    )

    updated = response.json()["data"][0]
    assert updated["status"] == "promised"
    assert updated["promised_date"] == day(3)

    summary = (await client.get(f"{RECEIVABLES}summary", headers=auth_headers)).json()["data"]
    assert summary["promised_payments"] == 1


async def test_reminder_rejects_settled_receivable(client, auth_headers):
    paid = await create_receivable(client, auth_headers, paid_amount="10000")
    assert paid["status"] == "paid"

    response = await client.post(
        f"{RECEIVABLES}send-reminder",
        json={"receivable_ids": [paid["id"]], "channel": "email", "message": "Reminder"},
        headers=auth_headers,
    )

    assert response.status_code == 400


async def test_reminder_templates(client, auth_headers):
    response = await client.get(f"{RECEIVABLES}reminder-templates", headers=auth_headers)

    names = [t["name"] for t in response.json()["data"]]
    assert names == ["Friendly Reminder", "Overdue Notice", "Final Notice"]


@pytest.mark.parametrize("due_date, new_due_date", [(day(-10), day(-1)), (day(5), day(5))])
async def test_reschedule_rejects_past_or_unchanged_dates(client, auth_headers, due_date, new_due_date):
    receivable = await create_receivable(client, auth_headers, due_date=due_date)

    response = await client.post(
        f"{RECEIVABLES}{receivable['id']}/reschedule",
        json={"new_due_date": new_due_date, "reason": "customer_request"},
        headers=auth_headers,
    )

    assert response.status_code == 400


async def test_reschedule_keeps_history(client, auth_headers):
    receivable = await create_receivable(client, auth_headers)

    response = await client.post(
        f"{RECEIVABLES}{receivable['id']}/reschedule",
        json={"new_due_date": day(15), "reason": "financial_difficulty", "notes": "Cash flow issue"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["status"] == "rescheduled"
    assert updated["current_due_date"] == day(15)
    assert updated["original_due_date"] == day(-10)
    assert updated["days_overdue"] == 0
    history = updated["reschedule_history"]
    assert len(history) == 1
    assert history[0]["previous_due_date"] == day(-10)


async def test_payments_reduce_balance_and_settle_invoice(client, auth_headers):
    invoice = (await client.post(
        "/api/sales-invoices/",
        json={
            "customer_name": "Sharma Auto Works",
            "due_date": day(30),
            "status": "sent",
            "items": [{"description": "Brake pad", "quantity": 4, "unit_price": "2500"}],
        },
        headers=auth_headers,
    )).json()["data"]
    receivable = (await client.get(RECEIVABLES, headers=auth_headers)).json()["data"]["items"][0]
    url = f"{RECEIVABLES}{receivable['id']}/payment"

    too_much = await client.post(url, json={"amount": "10000.01"}, headers=auth_headers)
    assert too_much.status_code == 400

    partial = await client.post(url, json={"amount": "4000", "method": "bank_transfer", "reference": "UTR123"}, headers=auth_headers)
    assert partial.status_code == 200
    assert Decimal(partial.json()["data"]["balance_amount"]) == Decimal("6000")
    assert partial.json()["data"]["status"] == "pending"

    final = await client.post(url, json={"amount": "6000"}, headers=auth_headers)
    data = final.json()["data"]
    assert data["status"] == "paid"
    assert Decimal(data["balance_amount"]) == Decimal("0")
    assert len(data["payments"]) == 2

    synced = (await client.get(f"/api/sales-invoices/{invoice['id']}", headers=auth_headers)).json()["data"]
    assert synced["status"] == "paid"
    assert Decimal(synced["paid_amount"]) == Decimal("10000")

    again = await client.post(url, json={"amount": "1"}, headers=auth_headers)
    assert again.status_code == 400


async def test_receivable_for_invoice_only_once(client, auth_headers):
    invoice = (await client.post(
        "/api/sales-invoices/",
        json={"customer_name": "A", "due_date": day(30), "items": [{"description": "Bulb", "quantity": 1, "unit_price": "150"}]},
        headers=auth_headers,
    )).json()["data"]

    first = await client.post(RECEIVABLES, json={"invoice_id": invoice["id"]}, headers=auth_headers)
    second = await client.post(RECEIVABLES, json={"invoice_id": invoice["id"]}, headers=auth_headers)

    assert first.status_code == 201
    assert first.json()["data"]["invoice_no"] == invoice["invoice_no"]
    assert second.status_code == 400


async def test_manual_status_and_summary(client, auth_headers):
    disputed = await create_receivable(client, auth_headers)
    await create_receivable(client, auth_headers, invoice_no="INV-901", due_date=day(10), total_amount="2500")

    response = await client.patch(
        f"{RECEIVABLES}{disputed['id']}", json={"status": "disputed", "notes": "Short supply"}, headers=auth_headers
    )
    assert response.json()["data"]["status"] == "disputed"

    invalid = await client.patch(f"{RECEIVABLES}{disputed['id']}", json={"status": "paid"}, headers=auth_headers)
    assert invalid.status_code == 422

    summary = (await client.get(f"{RECEIVABLES}summary", headers=auth_headers)).json()["data"]
    assert summary["total_receivables"] == 2
    assert Decimal(summary["total_balance"]) == Decimal("12500")
    assert summary["overdue_count"] == 1
    assert Decimal(summary["overdue_amount"]) == Decimal("10000")
    assert summary["pending_reminders"] == 1


def test_render_reminder_fills_placeholders():
    receivable = Receivable(
        invoice_no="INV-007",
        customer_name="Verma Garage",
        invoice_date=date.today() - timedelta(days=60),
        original_due_date=date.today() - timedelta(days=12),
        current_due_date=date.today() - timedelta(days=12),
        total_amount=Decimal("123456.5"),
        balance_amount=Decimal("123456.5"),
    )

    message = render_reminder("{customer} owes Rs. {amount} on {invoice}, {days} days late {unknown}", receivable)

    assert message == "Verma Garage owes Rs. 123,456.50 on INV-007, 12 days late {unknown}"


async def send_invoice(client, headers, quantity=10):
    response = await client.post(
        "/api/sales-invoices/",
        json={
            "customer_name": "Sharma Auto Works",
            "due_date": day(30),
            "status": "sent",
            "items": [{"description": "Spark plug", "quantity": quantity, "unit_price": "100"}],
        },
        headers=headers,
    )
    invoice = response.json()["data"]
    receivable = (await client.get(RECEIVABLES, headers=headers)).json()["data"]["items"][0]
    return invoice, receivable


async def test_editing_sent_invoice_updates_its_receivable(client, auth_headers):
    invoice, receivable = await send_invoice(client, auth_headers)
    url = f"/api/sales-invoices/{invoice['id']}"

    edited = await client.put(
        url, json={"items": [{"description": "Spark plug", "quantity": 2, "unit_price": "100"}]}, headers=auth_headers
    )
    assert edited.status_code == 200

    synced = (await client.get(f"{RECEIVABLES}{receivable['id']}", headers=auth_headers)).json()["data"]
    assert Decimal(synced["total_amount"]) == Decimal("200")
    assert Decimal(synced["balance_amount"]) == Decimal("200")

    too_much = await client.post(f"{RECEIVABLES}{receivable['id']}/payment", json={"amount": "1000"}, headers=auth_headers)
    assert too_much.status_code == 400

    await client.post(f"{RECEIVABLES}{receivable['id']}/payment", json={"amount": "150"}, headers=auth_headers)
    below_paid = await client.put(
        url, json={"items": [{"description": "Spark plug", "quantity": 1, "unit_price": "100"}]}, headers=auth_headers
    )
    assert below_paid.status_code == 400

    paid = (await client.get(url, headers=auth_headers)).json()["data"]
    assert Decimal(paid["total_amount"]) == Decimal("200")
    assert Decimal(paid["paid_amount"]) == Decimal("150")
    assert Decimal(paid["balance_amount"]) == Decimal("50")


async def test_cancelling_invoice_closes_its_receivable(client, auth_headers):
    invoice, receivable = await send_invoice(client, auth_headers)

    cancelled = await client.put(f"/api/sales-invoices/{invoice['id']}", json={"status": "cancelled"}, headers=auth_headers)
    assert cancelled.status_code == 200

    assert (await client.get(RECEIVABLES, headers=auth_headers)).json()["data"]["total_count"] == 0
    reminder = await client.post(
        f"{RECEIVABLES}send-reminder",
        json={"receivable_ids": [receivable["id"]], "channel": "sms", "message": "Reminder"},
        headers=auth_headers,
    )
    assert reminder.status_code == 404


async def test_invoice_with_payments_cannot_be_cancelled(client, auth_headers):
    invoice, receivable = await send_invoice(client, auth_headers)
    await client.post(f"{RECEIVABLES}{receivable['id']}/payment", json={"amount": "100"}, headers=auth_headers)

    response = await client.put(f"/api/sales-invoices/{invoice['id']}", json={"status": "cancelled"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot cancel an invoice with recorded payments"
    listed = (await client.get(RECEIVABLES, headers=auth_headers)).json()["data"]["items"]
    assert Decimal(listed[0]["balance_amount"]) == Decimal("900")
