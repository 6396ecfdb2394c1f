"""
Tests for settlement and balance endpoints.
"""
import inspect
from tripledger.api.routes import settlements as settlement_routes
from tripledger.models.expense import Expense
from tripledger.models.settlement import Settlement
from tripledger.tests.conftest import auth_headers


def _dinner(client, trip, alice, bob):
    """Alice pays 100 split equally with Bob, so Bob owes Alice 50."""
    response = client.post(
        "/api/expenses",
        json={
            "tripId": trip.id,
            "description": "Dinner",
            "amount": "100",
            "paidBy": alice.id,
            "participants": [alice.id, bob.id],
            "splitType": "equal",
        },
        headers=auth_headers(alice)
    )
    assert response.status_code == 201
    return response.json()


def _body(trip, debtor, creditor, amount="50"):
    return {"tripId": trip.id, "fromUserId": debtor.id, "toUserId": creditor.id, "amount": amount}


def test_balances_after_expense(client, trip, alice, bob):
    _dinner(client, trip, alice, bob)

    response = client.get(f"/api/balances?tripId={trip.id}", headers=auth_headers(bob))

    assert response.status_code == 200
    body = response.json()
    assert body["trip_id"] == trip.id
    assert body["balances"] == [{"user_a": alice.id, "user_b": bob.id, "amount": "50.00"}]
    assert body["transfers"] == [{"from_user_id": bob.id, "to_user_id": alice.id, "amount": "50.00"}]


def test_balances_of_empty_trip(client, trip, alice):
    body = client.get(f"/api/balances?tripId={trip.id}", headers=auth_headers(alice)).json()
    assert body["balances"] == []
    assert body["transfers"] == []


def test_remind_sends_email(client, trip, alice, bob, notifier):
    response = client.post("/settlements/remind", json=_body(trip, bob, alice), headers=auth_headers(alice))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Reminder sent"
    assert body["created"] is True
    assert body["notified"] is True
    assert body["warning"] is None
    assert body["settlement"]["status"] == "pending"
    assert body["settlement"]["amount"] == "50.00"
    assert body["settlement"]["initiated_by"] == alice.id

    assert len(notifier.sent) == 1
    to_address, subject, _, bcc = notifier.sent[0]
    assert to_address == bob.email
    assert bcc == alice.email
    assert subject == "Payment Request: Settle ₹50.00 with Alice"


def test_remind_reports_delivery_failure(client, db, trip, alice, bob, notifier):
    notifier.fail = True

    response = client.post("/settlements/remind", json=_body(trip, bob, alice), headers=auth_headers(alice))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Reminder recorded, email not sent"
    assert body["notified"] is False
    assert body["warning"] == "SMTP server unavailable"
    assert db.query(Settlement).count() == 1


def test_remind_then_settle(client, db, trip, alice, bob):
    expense = _dinner(client, trip, alice, bob)
    reminded = client.post(
        "/settlements/remind", json=_body(trip, bob, alice), headers=auth_headers(alice)
    ).json()

    response = client.post("/settlements/settle", json=_body(trip, bob, alice), headers=auth_headers(bob))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Settlement recorded"
    assert body["transitioned"] is True
    assert body["expenses_marked"] == 1
    assert body["settlement"]["id"] == reminded["settlement"]["id"]
    assert body["settlement"]["status"] == "settled"
    assert body["settlement"]["settled_at"] is not None

    db.expire_all()
    assert db.get(Expense, expense["id"]).settled is True

    balances = client.get(f"/api/balances?tripId={trip.id}", headers=auth_headers(alice)).json()
    assert balances["balances"] == []


def test_settle_twice_keeps_one_record(client, db, trip, alice, bob):
    first = client.post("/settlements/settle", json=_body(trip, bob, alice), headers=auth_headers(bob))
    second = client.post("/settlements/settle", json=_body(trip, bob, alice), headers=auth_headers(alice))

    assert first.json()["transitioned"] is True
    assert second.status_code == 200
    assert second.json()["message"] == "Already settled"
    assert second.json()["transitioned"] is False
    assert second.json()["settlement"]["id"] == first.json()["settlement"]["id"]
    assert db.query(Settlement).count() == 1


def test_partial_settlement_reduces_balance(client, trip, alice, bob):
    _dinner(client, trip, alice, bob)

    client.post("/settlements/settle", json=_body(trip, bob, alice, amount="20"), headers=auth_headers(bob))

    balances = client.get(f"/api/balances?tripId={trip.id}", headers=auth_headers(alice)).json()
    assert balances["balances"] == [{"user_a": alice.id, "user_b": bob.id, "amount": "30.00"}]


def test_list_settlements(client, trip, alice, bob):
    client.post("/settlements/remind", json=_body(trip, bob, alice), headers=auth_headers(alice))
    client.post("/settlements/settle", json=_body(trip, alice, bob, amount="10"), headers=auth_headers(alice))

    response = client.get(f"/api/settlements?tripId={trip.id}", headers=auth_headers(bob))

    assert response.status_code == 200
    assert [(s["from_user_id"], s["status"]) for s in response.json()] == [
        (bob.id, "pending"), (alice.id, "settled")
    ]


def test_settlement_request_validation(client, db, trip, alice, bob, mallory):
    cases = [
        _body(trip, bob, alice, amount="0"),
        _body(trip, bob, alice, amount="-5"),
        _body(trip, bob, alice, amount="1.001"),
        _body(trip, bob, alice, amount="1e30"),
        _body(trip, bob, bob),
        _body(trip, mallory, alice),
        {"tripId": trip.id, "fromUserId": bob.id},
    ]
    for body in cases:
        for path in ("/settlements/remind", "/settlements/settle"):
            response = client.post(path, json=body, headers=auth_headers(alice))
            assert response.status_code == 400, (path, body)

    assert db.query(Settlement).count() == 0


def test_settlement_for_unknown_trip(client, alice, bob):
    body = {"tripId": 999, "fromUserId": bob.id, "toUserId": alice.id, "amount": "50"}
    assert client.post("/settlements/settle", json=body, headers=auth_headers(alice)).status_code == 404
    assert client.get("/api/settlements?tripId=999", headers=auth_headers(alice)).status_code == 404
    assert client.get("/api/balances?tripId=999", headers=auth_headers(alice)).status_code == 404


def test_remind_after_settle_sends_nothing(client, db, trip, alice, bob, notifier):
    settled = client.post("/settlements/settle", json=_body(trip, bob, alice), headers=auth_headers(bob)).json()

    response = client.post("/settlements/remind", json=_body(trip, bob, alice), headers=auth_headers(alice))
    again = client.post("/settlements/settle", json=_body(trip, bob, alice), headers=auth_headers(alice))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Already settled"
    assert body["created"] is False
    assert body["notified"] is False
    assert body["settlement"]["id"] == settled["settlement"]["id"]
    assert again.json()["transitioned"] is False
    assert notifier.sent == []
    assert db.query(Settlement).count() == 1


def test_remind_handler_runs_in_threadpool():
    """SMTP delivery blocks, so the handler must not run on the event loop."""
    assert not inspect.iscoroutinefunction(settlement_routes.remind)
