"""
End-to-end flows through the Flask views.
"""
from __future__ import annotations

import json

from storage import RECORDS_KEY


def _login(client, email="admin@example.com", password="Password123!"):
    return client.post("/auth/login", data={"email": email, "password": password})


def _records(storage):
    return json.loads(storage.get(RECORDS_KEY))


def _location(response):
    return response.headers["Location"].rsplit("/", 1)[-1]


def test_home_renders_for_anonymous(client):
    response = client.get("/")
    assert response.status_code == 200
    assert b'id="home-section" class="page active"' in response.data


def test_unknown_page_renders_home(client):
    response = client.get("/no-such-page")
    assert response.status_code == 200
    assert b'id="home-section" class="page active"' in response.data


def test_protected_page_redirects_to_login(client):
    for page in ("profile", "requests", "employees", "accounts", "departments"):
        response = client.get(f"/{page}")
        assert response.status_code == 302
        assert _location(response) == "login"


def test_admin_login_lands_on_profile(client):
    response = _login(client)
    assert response.status_code == 302
    assert _location(response) == "profile"

    page = client.get("/profile")
    assert page.status_code == 200
    assert b"admin@example.com" in page.data
    assert b'class="authenticated is-admin"' in page.data


def test_bad_credentials_and_unverified_get_distinct_messages(client):
    response = _login(client, password="wrong-password")
    assert _location(response) == "login"
    assert b"Invalid email or password." in client.get("/login").data

    client.post("/auth/register", data={"first_name": "N", "last_name": "P",
                                        "email": "new@x.com", "password": "abcdef"})
    _login(client, "new@x.com", "abcdef")
    assert b"Please verify your email first." in client.get("/login").data


def test_register_verify_login(client, storage):
    response = client.post("/auth/register", data={"first_name": "New", "last_name": "Person",
                                                   "email": "new@x.com", "password": "abcdef"})
    assert _location(response) == "verify"
    assert b"new@x.com" in client.get("/verify").data

    response = client.post("/auth/verify")
    assert _location(response) == "login"
    assert b"Email verified! You may now log in." in client.get("/login").data

    response = _login(client, "new@x.com", "abcdef")
    assert _location(response) == "profile"
    account = [a for a in _records(storage)["accounts"] if a["email"] == "new@x.com"][0]
    assert account["verified"] is True


def test_duplicate_registration_is_rejected(client, storage):
    form = {"first_name": "Dup", "last_name": "User", "email": "dup@x.com", "password": "abcdef"}
    client.post("/auth/register", data=form)
    response = client.post("/auth/register", data=form)
    assert _location(response) == "register"
    assert b"Email already registered!" in client.get("/register").data
    emails = [a["email"] for a in _records(storage)["accounts"]]
    assert emails.count("dup@x.com") == 1


def test_requests_are_private_to_their_owner(client, storage):
    _login(client)
    client.post("/accounts/save", data={"first_name": "Bea", "last_name": "B", "email": "b@x.com",
                                        "password": "abcdef", "role": "User", "verified": "on"})
    client.post("/requests/create", data={"type": "Equipment",
                                          "item_name": ["Admin-only stapler", "Paper", ""],
                                          "item_qty": ["2", "5", "1"]})
    page = client.get("/requests")
    assert b"Admin-only stapler (2), Paper (5)" in page.data
    client.post("/auth/logout")

    _login(client, "b@x.com", "abcdef")
    page = client.get("/requests")
    assert page.status_code == 200
    assert b"Admin-only stapler" not in page.data
    assert b"You have no requests yet." in page.data
    assert len(_records(storage)["requests"]) == 1


def test_self_delete_is_blocked(client, storage):
    _login(client)
    response = client.post("/accounts/1/delete")
    assert _location(response) == "accounts"
    assert b"You cannot delete your own account." in client.get("/accounts").data
    assert any(a["email"] == "admin@example.com" for a in _records(storage)["accounts"])


def test_regular_user_cannot_reach_admin_pages_or_actions(client, storage):
    _login(client)
    client.post("/accounts/save", data={"first_name": "Bea", "last_name": "B", "email": "b@x.com",
                                        "password": "abcdef", "role": "User", "verified": "on"})
    client.post("/auth/logout")
    _login(client, "b@x.com", "abcdef")

    assert _location(client.get("/employees")) == ""
    response = client.post("/departments/create", data={"name": "Shadow IT"})
    assert _location(response) == ""
    assert "Shadow IT" not in [d["name"] for d in _records(storage)["departments"]]


def test_anonymous_actions_redirect_to_login(client):
    response = client.post("/requests/create", data={"type": "Leave"})
    assert _location(response) == "login"


def test_admin_manages_employees_and_departments(client, storage):
    _login(client)
    client.post("/departments/create", data={"name": "Finance", "description": "Money"})
    dept = [d for d in _records(storage)["departments"] if d["name"] == "Finance"][0]

    page = client.get(f"/departments?edit={dept['id']}")
    assert b'value="Money"' in page.data

    client.post("/employees/create", data={"employee_id": "E1", "email": "admin@example.com",
                                           "position": "Lead", "department": "Finance",
                                           "hire_date": "2024-01-01"})
    page = client.get("/employees")
    assert b"Admin User" in page.data
    assert b"Finance" in page.data

    client.post("/employees/create", data={"employee_id": "E1", "email": "x@x.com"})
    assert b"Employee ID already exists!" in client.get("/employees").data

    client.post("/employees/E1/delete")
    client.post(f"/departments/{dept['id']}/delete")
    records = _records(storage)
    assert records["employees"] == []
    assert "Finance" not in [d["name"] for d in records["departments"]]


def test_department_edit_with_stale_id_reports_not_found(client):
    _login(client)
    response = client.get("/departments?edit=missing")
    assert _location(response) == "departments"
    assert b"Department not found." in client.get("/departments").data


def test_reset_password_and_logout(client):
    _login(client)
    client.post("/accounts/1/reset-password", data={"new_password": "changed1"})
    response = client.post("/auth/logout")
    assert _location(response) == ""
    assert _location(_login(client, password="changed1")) == "profile"


def test_stale_token_is_discarded_after_account_removed(client, storage):
    _login(client)
    client.post("/accounts/save", data={"first_name": "Bea", "last_name": "B", "email": "b@x.com",
                                        "password": "abcdef", "role": "Admin", "verified": "on"})
    client.post("/auth/logout")
    _login(client, "b@x.com", "abcdef")
    b_id = [a["id"] for a in _records(storage)["accounts"] if a["email"] == "b@x.com"][0]
    client.post(f"/accounts/{b_id}/delete")  # rejected: own account

    records = _records(storage)
    records["accounts"] = [a for a in records["accounts"] if a["email"] != "b@x.com"]
    storage.set(RECORDS_KEY, json.dumps(records))
    assert _location(client.get("/profile")) == "login"


def test_request_rows_list_every_item_with_quantity(client, storage):
    _login(client)
    names = ["Laptop", "Mouse", "Monitor", "Dock", "Headset"]
    client.post("/requests/create", data={"type": "Equipment",
                                          "item_name": names,
                                          "item_qty": ["1", "2", "2", "1", "3"]})
    page = client.get("/requests")
    assert b"Laptop (1), Mouse (2), Monitor (2), Dock (1), Headset (3)" in page.data
    assert b"built-in method" not in page.data
    assert b"add-item-btn" in page.data
    saved = _records(storage)["requests"][0]["items"]
    assert [item["name"] for item in saved] == names


def test_registration_email_is_trimmed(client, storage):
    form = {"first_name": "Sam", "last_name": "S", "email": "  sam@x.com ", "password": "abcdef"}
    client.post("/auth/register", data=form)
    response = client.post("/auth/register", data=dict(form, email="sam@x.com"))
    assert _location(response) == "register"
    emails = [a["email"] for a in _records(storage)["accounts"]]
    assert emails.count("sam@x.com") == 1


def test_seeded_admin_logs_in_with_hashed_passwords(client, storage):
    client.application.config["HASH_PASSWORDS"] = True
    try:
        response = _login(client)
        assert _location(response) == "profile"
        admin = _records(storage)["accounts"][0]
        assert admin["password"] != "Password123!"
    finally:
        client.application.config["HASH_PASSWORDS"] = False
