import pytest


@pytest.fixture(autouse=True)
def existing(signup):
    signup(username="Reader1", email="reader1@example.com")
    signup(username="reader2", isd_code="+1", phone_number="5552003000")


@pytest.mark.parametrize("email, unique", [
    ("reader1@example.com", False),
    ("READER1@Example.com", False),
    ("fresh@example.com", True),
])
def test_check_email(client, email, unique):
    res = client.get("/api/users/check-email", params={"email": email})
    assert res.status_code == 200
    assert res.json()["data"] == {"unique": unique}


@pytest.mark.parametrize("username, unique", [("reader1", False), ("READER2", False), ("newbie", True)])
def test_check_username(client, username, unique):
    res = client.get("/api/users/check-username", params={"username": username})
    assert res.json()["data"] == {"unique": unique}


@pytest.mark.parametrize("params, unique", [
    ({"isd_code": "+1", "phone": "5552003000"}, False),
    ({"phone": "+1 (555) 200-3000"}, False),
    ({"isd_code": "+1", "phone": "5559990000"}, True),
])
def test_check_phone(client, params, unique):
    res = client.get("/api/users/check-phone", params=params)
    assert res.json()["data"] == {"unique": unique}


@pytest.mark.parametrize("path, params", [
    ("/api/users/check-email", {"email": "nope"}),
    ("/api/users/check-email", {}),
    ("/api/users/check-username", {"username": "a b"}),
    ("/api/users/check-phone", {"phone": "12"}),
])
def test_invalid_probe(client, path, params):
    res = client.get(path, params=params)
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["data"] == {"unique": False}
