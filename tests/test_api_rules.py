from fastapi.testclient import TestClient

import app.api as api_module
from app.routes import rules as rules_routes

client = TestClient(api_module.app)


class FakeRuleStore:
    def __init__(self):
        self.users = {}
        self.rules = {}
        self.next_id = 1

    def install(self, monkeypatch):
        for name in (
            "add_tracking_rule",
            "delete_tracking_rule",
            "get_all_user_rules",
            "get_or_create_user",
            "get_tracking_rule",
            "get_user",
            "get_user_notifications",
            "update_tracking_rule",
            "update_user_email",
            "update_user_notification_settings",
        ):
            monkeypatch.setattr(rules_routes, name, getattr(self, name))
        return self

    def get_user(self, user_id):
        return self.users.get(user_id)

    def get_or_create_user(self, user_id):
        return self.users.setdefault(user_id, {"id": user_id, "email": None, "settings": {}})

    def add_tracking_rule(self, user_id, rule):
        rule_id = self.next_id
        self.next_id += 1
        self.rules[rule_id] = dict(rule, id=rule_id, user_id=user_id)
        return rule_id

    def get_all_user_rules(self, user_id):
        return [r for r in self.rules.values() if r["user_id"] == user_id]

    def get_tracking_rule(self, user_id, rule_id):
        rule = self.rules.get(rule_id)
        return rule if rule and rule["user_id"] == user_id else None

    def update_tracking_rule(self, user_id, rule_id, updates):
        rule = self.get_tracking_rule(user_id, rule_id)
        if not rule:
            return False
        rule.update(updates)
        return True

    def delete_tracking_rule(self, user_id, rule_id):
        if not self.get_tracking_rule(user_id, rule_id):
            return False
        del self.rules[rule_id]
        return True

    def update_user_notification_settings(self, user_id, notifications):
        self.users[user_id]["settings"] = {"notifications": notifications}
        return True

    def get_user_notifications(self, user_id, limit=20):
        sent = [
            {"id": i, "user_id": user_id, "message": f"msg {i}", "product_ids": [], "status": "sent"}
            for i in range(3, 0, -1)
        ]
        return sent[:limit]

    def update_user_email(self, user_id, email):
        if user_id not in self.users:
            return False
        self.users[user_id]["email"] = email.lower()
        return True


def test_create_and_list_rules(monkeypatch):
    store = FakeRuleStore().install(monkeypatch)

    resp = client.post(
        "/api/users/U1/rules",
        json={"name": "便宜 Air", "filters": {"productType": "MacBook Air", "maxPrice": "30000"}},
    )
    assert resp.status_code == 201
    assert resp.json() == {"success": True, "id": 1}
    assert "U1" in store.users

    listed = client.get("/api/users/U1/rules").json()["rules"]
    assert len(listed) == 1
    assert listed[0]["filters"]["product_type"] == "MacBook Air"
    assert listed[0]["filters"]["max_price"] == 30000
    assert client.get("/api/users/U2/rules").json() == {"rules": []}


def test_create_rejects_bad_input(monkeypatch):
    FakeRuleStore().install(monkeypatch)

    bad_filters = client.post("/api/users/U1/rules", json={"name": "x", "filters": {"minMemory": "lots"}})
    assert bad_filters.status_code == 400
    assert bad_filters.json()["success"] is False

    fractional = client.post("/api/users/U1/rules", json={"name": "x", "filters": {"minMemory": 16.5}})
    assert fractional.status_code == 400

    missing_name = client.post("/api/users/U1/rules", json={"filters": {}})
    assert missing_name.status_code == 422


def test_update_rule(monkeypatch):
    store = FakeRuleStore().install(monkeypatch)
    client.post("/api/users/U1/rules", json={"name": "Air", "filters": {"chip": "M4"}})

    resp = client.put("/api/users/U1/rules/1", json={"enabled": False})
    assert resp.status_code == 200
    rule = resp.json()["rule"]
    assert rule["enabled"] is False
    assert rule["name"] == "Air"
    assert rule["filters"]["chip"] == "M4"

    assert client.put("/api/users/U1/rules/1", json={"filters": {"maxPrice": "cheap"}}).status_code == 400
    assert client.put("/api/users/U1/rules/99", json={"name": "y"}).status_code == 404
    # another user's rule is not visible
    assert client.put("/api/users/U2/rules/1", json={"name": "y"}).status_code == 404
    assert store.rules[1]["name"] == "Air"


def test_delete_rule(monkeypatch):
    store = FakeRuleStore().install(monkeypatch)
    client.post("/api/users/U1/rules", json={"name": "Air"})

    assert client.delete("/api/users/U2/rules/1").status_code == 404
    assert client.delete("/api/users/U1/rules/1").json() == {"success": True}
    assert store.rules == {}
    assert client.delete("/api/users/U1/rules/1").status_code == 404


def test_notification_settings(monkeypatch):
    store = FakeRuleStore().install(monkeypatch)
    assert client.put("/api/users/U1/settings/notifications", json={"line": False}).status_code == 404

    store.get_or_create_user("U1")
    resp = client.put("/api/users/U1/settings/notifications", json={"line": False, "email": True})
    assert resp.json() == {"success": True, "notifications": {"line": False, "email": True}}
    assert store.users["U1"]["settings"]["notifications"] == {"line": False, "email": True}


def test_update_email(monkeypatch):
    store = FakeRuleStore().install(monkeypatch)

    assert client.put("/api/users/U1/email", json={"email": "not-an-email"}).status_code == 400
    assert client.put("/api/users/U1/email", json={"email": "me@example.com"}).status_code == 404

    store.get_or_create_user("U1")
    assert client.put("/api/users/U1/email", json={"email": "Me@Example.com"}).json() == {"success": True}
    assert store.users["U1"]["email"] == "me@example.com"


def test_notification_history(monkeypatch):
    FakeRuleStore().install(monkeypatch)

    body = client.get("/api/users/U1/notifications", params={"limit": 2}).json()
    assert [n["id"] for n in body["notifications"]] == [3, 2]
    assert client.get("/api/users/U1/notifications", params={"limit": 0}).status_code == 422
