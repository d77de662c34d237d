from datetime import date, timedelta
from decimal import Decimal

import pytest

from src.reports.schemas import CreditStatus
from src.reports.services import aging_bucket, credit_status_for

REPORTS = "/api/reports/"


def day(offset: int) -> str:
    return (date.today() + timedelta(days=offset)).isoformat()


@pytest.mark.parametrize("days, bucket", [
    (0, "current"),
    (30, "current"),
    (31, "days_31_60"),
    (60, "days_31_60"),
    (61, "days_61_90"),
    (90, "days_61_90"),
    (91, "days_91_120"),
    (120, "days_91_120"),
    (121, "over_120"),
])
def test_aging_bucket_boundaries(days, bucket):
    assert aging_bucket(days) == bucket


@pytest.mark.parametrize("utilization, expected", [
    (None, CreditStatus.OK),
    (Decimal("79.99"), CreditStatus.OK),
    (Decimal("80"), CreditStatus.WARNING),
    (Decimal("100"), CreditStatus.OVER_LIMIT),
    (Decimal("135.5"), CreditStatus.OVER_LIMIT),
])
def test_credit_status(utilization, expected):
    assert credit_status_for(utilization) == expected


@pytest.fixture
def aging_data(client, auth_headers, make_customer):
    async def _aging_data():
        distributor = await make_customer(name="Alpha Distributors", customer_type="distributor")
        retailer = await make_customer(name="Corner Shop", customer_type="retail")

        await client.post(
            "/api/customer-price-structures/",
            json={"customer_id": distributor["id"], "customer_type": "distributor", "credit_limit": "20000"},
            headers=auth_headers,
        )

        async def receivable(customer, invoice_no, invoice_offset, due_offset, amount):
            response = await client.post(
                "/api/receivables/",
                json={
                    "invoice_no": invoice_no,
                    "customer_id": customer["id"],
                    "customer_name": customer["name"],
                    "invoice_date": day(invoice_offset),
                    "due_date": day(due_offset),
                    "total_amount": amount,
                },
                headers=auth_headers,
            )
            return response.json()["data"]

        await receivable(distributor, "INV-101", -20, -5, "10000")
        older = await receivable(distributor, "INV-102", -75, -45, "8000")
        await receivable(retailer, "INV-103", -180, -150, "3000")

        await client.post(
            f"/api/receivables/{older['id']}/payment", json={"amount": "1000"}, headers=auth_headers
        )
        return distributor, retailer

    return _aging_data


async def test_distributor_aging(client, auth_headers, aging_data):
    distributor, retailer = await aging_data()

    response = await client.get(f"{REPORTS}distributor-aging", headers=auth_headers)

    assert response.status_code == 200
    report = response.json()["data"]
    assert report["sort_by"] == "total_outstanding"
    assert report["order"] == "desc"

    alpha, corner = report["rows"]
    assert alpha["customer_id"] == distributor["id"]
    assert Decimal(alpha["current"]) == Decimal("10000")
    assert Decimal(alpha["days_31_60"]) == Decimal("7000")
    assert Decimal(alpha["total_outstanding"]) == Decimal("17000")
    assert alpha["invoice_count"] == 2
    assert Decimal(alpha["credit_limit"]) == Decimal("20000")
    assert alpha["credit_days"] == 90
    assert Decimal(alpha["credit_utilization"]) == Decimal("85")
    assert alpha["credit_status"] == "warning"
    assert alpha["oldest_invoice_date"] == day(-75)
    assert alpha["last_payment_date"] == day(0)
    assert Decimal(alpha["last_payment_amount"]) == Decimal("1000")

    assert corner["customer_id"] == retailer["id"]
    assert Decimal(corner["over_120"]) == Decimal("3000")
    assert corner["credit_utilization"] is None
    assert corner["credit_status"] == "ok"

    totals = report["totals"]
    assert Decimal(totals["total_outstanding"]) == Decimal("20000")
    assert Decimal(totals["current"]) == Decimal("10000")
    assert Decimal(totals["over_120"]) == Decimal("3000")
    assert totals["customer_count"] == 2


async def test_distributor_aging_filters_and_sorting(client, auth_headers, aging_data):
    await aging_data()

    by_type = await client.get(f"{REPORTS}distributor-aging", params={"customer_type": "retail"}, headers=auth_headers)
    assert [r["customer_name"] for r in by_type.json()["data"]["rows"]] == ["Corner Shop"]

    by_name = await client.get(
        f"{REPORTS}distributor-aging", params={"sort_by": "customer_name", "order": "asc"}, headers=auth_headers
    )
    assert [r["customer_name"] for r in by_name.json()["data"]["rows"]] == ["Alpha Distributors", "Corner Shop"]

    by_date = await client.get(f"{REPORTS}distributor-aging", params={"from": day(-30)}, headers=auth_headers)
    rows = by_date.json()["data"]["rows"]
    assert len(rows) == 1
    assert Decimal(rows[0]["total_outstanding"]) == Decimal("10000")

    reversed_range = await client.get(
        f"{REPORTS}distributor-aging", params={"from": day(0), "to": day(-1)}, headers=auth_headers
    )
    assert reversed_range.status_code == 400


async def test_customer_invoices(client, auth_headers, make_customer):
    customer = await make_customer(name="Verma Garage")
    lines = [{"description": "Headlamp", "quantity": 2, "unit_price": "1200"}]
    for status in ("sent", "draft"):
        await client.post(
            "/api/sales-invoices/",
            json={
                "customer_id": customer["id"],
                "customer_name": customer["name"],
                "invoice_date": day(-40),
                "due_date": day(-10),
                "status": status,
                "items": lines,
            },
            headers=auth_headers,
        )

    response = await client.get(f"{REPORTS}customer-invoices/{customer['id']}", headers=auth_headers)

    invoices = response.json()["data"]
    assert len(invoices) == 1
    assert invoices[0]["days_overdue"] == 10
    assert Decimal(invoices[0]["balance_amount"]) == Decimal("2400")

    missing = await client.get(f"{REPORTS}customer-invoices/00000000-0000-0000-0000-000000000001", headers=auth_headers)
    assert missing.status_code == 404


@pytest.fixture
def brand_sales(client, auth_headers, make_part):
    async def _brand_sales():
        bosch = await make_part(part_no="BP-1", brand="Bosch", cost_price="1500")
        mann = await make_part(part_no="OF-1", brand="Mann", cost_price="200")

        def invoice(status, items):
            return client.post(
                "/api/sales-invoices/",
                json={"customer_name": "Sharma Auto Works", "due_date": day(30), "status": status, "items": items},
                headers=auth_headers,
            )

        await invoice("sent", [
            {"part_id": bosch["id"], "quantity": 2, "unit_price": "2500"},
            {"part_id": mann["id"], "quantity": 12, "unit_price": "500"},
        ])
        await invoice("draft", [{"part_id": bosch["id"], "quantity": 100, "unit_price": "2500"}])

    return _brand_sales


async def test_brand_wise_figures(client, auth_headers, brand_sales):
    await brand_sales()

    response = await client.get(f"{REPORTS}brand-wise", headers=auth_headers)

    report = response.json()["data"]
    rows = {r["brand"]: r for r in report["rows"]}
    assert [r["brand"] for r in report["rows"]] == ["Mann", "Bosch"]
    assert rows["Bosch"]["quantity"] == 2
    assert Decimal(rows["Bosch"]["sales"]) == Decimal("5000")
    assert Decimal(rows["Bosch"]["cost"]) == Decimal("3000")
    assert Decimal(rows["Bosch"]["profit"]) == Decimal("2000")
    assert Decimal(rows["Bosch"]["margin"]) == Decimal("40")
    assert Decimal(rows["Mann"]["margin"]) == Decimal("60")


@pytest.mark.parametrize("params, sort_by, order, brands", [
    ({"sort_by": "sales", "order": "desc", "toggle": "sales"}, "sales", "asc", ["Bosch", "Mann"]),
    ({"sort_by": "sales", "order": "asc", "toggle": "sales"}, "sales", "desc", ["Mann", "Bosch"]),
    ({"sort_by": "sales", "order": "asc", "toggle": "margin"}, "margin", "desc", ["Mann", "Bosch"]),
    ({"sort_by": "name", "order": "asc"}, "name", "asc", ["Bosch", "Mann"]),
])
async def test_brand_wise_sort_toggle(client, auth_headers, brand_sales, params, sort_by, order, brands):
    await brand_sales()

    response = await client.get(f"{REPORTS}brand-wise", params=params, headers=auth_headers)

    report = response.json()["data"]
    assert report["sort_by"] == sort_by
    assert report["order"] == order
    assert [r["brand"] for r in report["rows"]] == brands


async def test_sales_trend_fills_gaps(client, auth_headers):
    await client.post(
        "/api/sales-invoices/",
        json={"customer_name": "A", "due_date": day(30), "status": "sent", "items": [{"description": "Fuse", "quantity": 10, "unit_price": "15"}]},
        headers=auth_headers,
    )

    response = await client.get(f"{REPORTS}sales-trend", params={"days": 7}, headers=auth_headers)

    trend = response.json()["data"]
    assert len(trend) == 7
    assert trend[0]["date"] == day(-6)
    assert trend[-1]["date"] == day(0)
    assert Decimal(trend[-1]["sales_amount"]) == Decimal("150")
    assert all(Decimal(point["sales_amount"]) == 0 for point in trend[:-1])

    too_long = await client.get(f"{REPORTS}sales-trend", params={"days": 366}, headers=auth_headers)
    assert too_long.status_code == 422


async def test_summary(client, auth_headers, make_customer):
    await make_customer()
    await client.post(
        "/api/sales-invoices/",
        json={"customer_name": "A", "due_date": day(30), "status": "sent", "paid_amount": "400", "items": [{"description": "Fuse", "quantity": 100, "unit_price": "10"}]},
        headers=auth_headers,
    )
    await client.post(
        "/api/delivery-challans/",
        json={"customer_name": "A", "items": [{"part_no": "F-1", "ordered_qty": 100}]},
        headers=auth_headers,
    )

    summary = (await client.get(f"{REPORTS}summary", headers=auth_headers)).json()["data"]

    assert Decimal(summary["total_invoiced"]) == Decimal("1000")
    assert Decimal(summary["total_collected"]) == Decimal("400")
    assert Decimal(summary["total_outstanding"]) == Decimal("600")
    assert summary["total_customers"] == 1
    assert summary["open_challans"] == 1
