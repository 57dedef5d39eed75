import pytest

from conftest import as_user


def create_group(client, owner, name, members=()):
    res = client.post("/api/v1/groups/", json={"name": name}, headers=as_user(owner))
    assert res.status_code == 201, res.text
    group_id = res.json()["id"]

    for member in members:
        res = client.post(f"/api/v1/groups/{group_id}/members/{member}", headers=as_user(owner))
        assert res.status_code == 200, res.text

    return group_id


def add_expense(client, group_id, payer, amount, split_with, split=None):
    body = {"title": "Dinner", "amount": amount, "split_with": split_with}
    if split is not None:
        body["split"] = split
    return client.post(f"/api/v1/expenses/{group_id}", json=body, headers=as_user(payer))


def group_balance(client, group_id, user_id):
    res = client.get(f"/api/v1/groups/{group_id}/balance", headers=as_user(user_id))
    assert res.status_code == 200, res.text
    return res.json()


def test_health(client):
    assert client.get("/api/v1/system/health").json() == {"status": "ok"}


def test_requests_without_user_are_rejected(client):
    assert client.get("/api/v1/users/me").status_code == 401


def test_group_balance_after_equal_expense(client, make_user):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    group_id = create_group(client, alice, "Trip", [bob, carol])

    res = add_expense(client, group_id, alice, "90.00", [alice, bob, carol])
    assert res.status_code == 201, res.text
    assert res.json()["split_type"] == "equal"

    balance = group_balance(client, group_id, bob)

    assert balance["paid"] == {str(alice): 90.0, str(bob): 0.0, str(carol): 0.0}
    assert balance["balances"] == {str(alice): 60.0, str(bob): -30.0, str(carol): -30.0}
    assert balance["total_expenses"] == 90.0
    assert balance["settlements"] == [
        {"from_user": str(bob), "to_user": str(alice), "amount": 30.0},
        {"from_user": str(carol), "to_user": str(alice), "amount": 30.0},
    ]


def test_recorded_settlement_clears_debt(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Flat", [bob])
    add_expense(client, group_id, alice, "50.00", [alice, bob])

    res = client.post(
        "/api/v1/settlements/",
        json={"group_id": group_id, "to_user": alice, "amount": "25.00"},
        headers=as_user(bob),
    )
    assert res.status_code == 201, res.text
    assert res.json()["status"] == "completed"

    balance = group_balance(client, group_id, alice)

    assert balance["balances"] == {str(alice): 0.0, str(bob): 0.0}
    assert balance["settlements"] == []

    settled = client.get(f"/api/v1/groups/{group_id}/settled", headers=as_user(alice))
    assert settled.json() == {"group_id": group_id, "settled": True}


def test_pending_settlement_counts_once_completed(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Flat", [bob])
    add_expense(client, group_id, alice, "50.00", [alice, bob])

    res = client.post(
        "/api/v1/settlements/",
        json={"group_id": group_id, "to_user": alice, "amount": "25.00", "status": "pending"},
        headers=as_user(bob),
    )
    settlement_id = res.json()["id"]

    assert group_balance(client, group_id, alice)["balances"][str(bob)] == -25.0

    res = client.patch(
        f"/api/v1/settlements/{settlement_id}/status",
        json={"status": "completed"},
        headers=as_user(alice),
    )
    assert res.status_code == 200, res.text

    assert group_balance(client, group_id, alice)["balances"][str(bob)] == 0.0


def test_percentage_expense(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Office", [bob])

    split = {"type": "percentage", "percentages": {str(alice): 25, str(bob): 75}}
    res = add_expense(client, group_id, alice, "200.00", [alice, bob], split)
    assert res.status_code == 201, res.text

    balance = group_balance(client, group_id, alice)

    assert balance["owes"] == {str(alice): 50.0, str(bob): 150.0}


def test_invalid_percentages_are_rejected(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Office", [bob])

    split = {"type": "percentage", "percentages": {str(alice): 30, str(bob): 30}}
    res = add_expense(client, group_id, alice, "200.00", [alice, bob], split)

    assert res.status_code == 400


def test_exact_amounts_must_match_total(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Office", [bob])

    split = {"type": "exact", "amounts": {str(alice): 30, str(bob): 50}}
    res = add_expense(client, group_id, alice, "90.00", [alice, bob], split)

    assert res.status_code == 400


def test_unknown_split_type_is_rejected(client, make_user):
    alice = make_user("Alice")
    group_id = create_group(client, alice, "Solo")

    res = add_expense(client, group_id, alice, "10.00", [alice], {"type": "shares"})

    assert res.status_code == 422


def test_non_member_cannot_see_balance(client, make_user):
    alice, mallory = make_user("Alice"), make_user("Mallory")
    group_id = create_group(client, alice, "Private")

    res = client.get(f"/api/v1/groups/{group_id}/balance", headers=as_user(mallory))

    assert res.status_code == 403


def test_member_who_left_is_dropped_from_old_splits(client, make_user):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    group_id = create_group(client, alice, "Trip", [bob, carol])
    add_expense(client, group_id, alice, "90.00", [alice, bob, carol])

    res = client.delete(f"/api/v1/groups/{group_id}/members/{carol}", headers=as_user(alice))
    assert res.status_code == 200, res.text
    assert res.json()["is_active"] is False

    balance = group_balance(client, group_id, alice)

    assert balance["balances"] == {str(alice): 45.0, str(bob): -45.0}


def test_deleted_expense_no_longer_counts(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Flat", [bob])
    expense_id = add_expense(client, group_id, alice, "50.00", [alice, bob]).json()["id"]

    assert client.delete(f"/api/v1/expenses/{expense_id}", headers=as_user(bob)).status_code == 403
    assert client.delete(f"/api/v1/expenses/{expense_id}", headers=as_user(alice)).status_code == 200

    balance = group_balance(client, group_id, alice)

    assert balance["total_expenses"] == 0.0
    assert balance["settlements"] == []


def test_global_balance_nets_across_groups(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    first = create_group(client, alice, "First", [bob])
    second = create_group(client, alice, "Second", [bob])

    add_expense(client, first, bob, "40.00", [alice, bob])
    add_expense(client, second, alice, "40.00", [alice, bob])

    res = client.get("/api/v1/users/me/balance", headers=as_user(alice))
    assert res.status_code == 200, res.text
    balance = res.json()

    assert balance["balances"] == {str(alice): 0.0, str(bob): 0.0}
    assert balance["settlements"] == []
    assert balance["total_expenses"] == 80.0


def test_global_balance_includes_non_group_settlements(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Flat", [bob])
    add_expense(client, group_id, alice, "50.00", [alice, bob])

    res = client.post(
        "/api/v1/settlements/",
        json={"to_user": alice, "amount": "25.00"},
        headers=as_user(bob),
    )
    assert res.status_code == 201, res.text
    assert res.json()["group_id"] is None

    group_view = group_balance(client, group_id, bob)
    global_view = client.get("/api/v1/users/me/balance", headers=as_user(bob)).json()

    assert group_view["balances"][str(bob)] == -25.0
    assert global_view["balances"][str(bob)] == 0.0


def test_metrics(client, make_user):
    alice = make_user("Alice")
    group_id = create_group(client, alice, "Solo")
    add_expense(client, group_id, alice, "10.00", [alice])

    assert client.get("/api/v1/system/metrics").json() == {
        "users": 1,
        "groups": 1,
        "expenses": 1,
        "settlements": 0,
    }


def test_editing_expense_changes_balance(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Flat", [bob])
    expense_id = add_expense(client, group_id, alice, "50.00", [alice, bob]).json()["id"]

    assert group_balance(client, group_id, alice)["balances"][str(bob)] == -25.0

    body = {
        "title": "Groceries",
        "amount": "80.00",
        "split_with": [alice, bob],
        "split": {"type": "exact", "amounts": {str(alice): "20.00", str(bob): "60.00"}},
    }
    res = client.patch(f"/api/v1/expenses/{expense_id}", json=body, headers=as_user(alice))
    assert res.status_code == 200, res.text

    edited = res.json()
    assert edited["title"] == "Groceries"
    assert edited["split_type"] == "exact"
    assert sorted((s["user_id"], s["value"]) for s in edited["splits"]) == sorted(
        [(alice, 20.0), (bob, 60.0)]
    )

    balance = group_balance(client, group_id, alice)

    assert balance["total_expenses"] == 80.0
    assert balance["balances"] == {str(alice): 60.0, str(bob): -60.0}


def test_only_payer_can_edit_expense(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Flat", [bob])
    expense_id = add_expense(client, group_id, alice, "50.00", [alice, bob]).json()["id"]

    body = {"title": "Dinner", "amount": "10.00", "split_with": [bob]}
    res = client.patch(f"/api/v1/expenses/{expense_id}", json=body, headers=as_user(bob))

    assert res.status_code == 403
    assert group_balance(client, group_id, alice)["total_expenses"] == 50.0


def test_invalid_edit_keeps_original_split(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Flat", [bob])
    expense_id = add_expense(client, group_id, alice, "50.00", [alice, bob]).json()["id"]

    body = {
        "title": "Dinner",
        "amount": "50.00",
        "split_with": [alice, bob],
        "split": {"type": "percentage", "percentages": {str(alice): 10, str(bob): 10}},
    }
    res = client.patch(f"/api/v1/expenses/{expense_id}", json=body, headers=as_user(alice))

    assert res.status_code == 400
    assert group_balance(client, group_id, alice)["balances"][str(bob)] == -25.0


def test_lopsided_equal_shares_are_rejected(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Flat", [bob])

    split = {"type": "equal", "shares": {str(alice): "10.00", str(bob): "0.00"}}
    res = add_expense(client, group_id, alice, "10.00", [alice, bob], split)

    assert res.status_code == 400


def test_rounded_equal_shares_are_accepted(client, make_user):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    group_id = create_group(client, alice, "Trip", [bob, carol])

    split = {"type": "equal", "shares": {str(alice): "3.34", str(bob): "3.33", str(carol): "3.33"}}
    res = add_expense(client, group_id, alice, "10.00", [alice, bob, carol], split)
    assert res.status_code == 201, res.text

    assert group_balance(client, group_id, alice)["owes"] == {
        str(alice): 3.34, str(bob): 3.33, str(carol): 3.33,
    }


def test_overly_precise_percentages_are_rejected(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Office", [bob])

    split = {
        "type": "percentage",
        "percentages": {str(alice): "33.333333", str(bob): "66.666667"},
    }
    res = add_expense(client, group_id, alice, "90.00", [alice, bob], split)

    assert res.status_code == 422


def test_four_place_percentages_are_accepted(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    group_id = create_group(client, alice, "Office", [bob])

    split = {
        "type": "percentage",
        "percentages": {str(alice): "33.3333", str(bob): "66.6667"},
    }
    res = add_expense(client, group_id, alice, "90.00", [alice, bob], split)
    assert res.status_code == 201, res.text

    balance = group_balance(client, group_id, alice)

    assert sum(balance["owes"].values()) == pytest.approx(90.0)
