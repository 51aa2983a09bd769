from datetime import datetime

BASE = "/api/v1/task-lists"


def headers(user_id):
    return {"X-User-Id": user_id}


def create_task_list(client, name="Groceries", user_id="alice"):
    res = client.post(f"{BASE}/", json={"name": name}, headers=headers(user_id))
    assert res.status_code == 201
    return res.json()


def parse_dt(value: str) -> datetime:
    # FastAPI/Pydantic returns strings for datetime fields
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def assert_task_list_shape(task_list: dict):
    for key in ["id", "name", "owner_id", "connected_user_ids", "created_at", "updated_at"]:
        assert key in task_list
    assert isinstance(task_list["id"], str)
    assert isinstance(task_list["connected_user_ids"], list)
    parse_dt(task_list["created_at"])
    parse_dt(task_list["updated_at"])


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")


class TestIdentityHeader:
    def test_missing_header_is_unauthorized(self, client):
        res = client.get(f"{BASE}/")
        assert res.status_code == 401
        assert res.json()["detail"] == "'X-User-Id' header is required"

    def test_blank_header_is_unauthorized(self, client):
        res = client.post(f"{BASE}/", json={"name": "x"}, headers=headers("   "))
        assert res.status_code == 401


class TestTaskListsCRUD:
    def test_create(self, client):
        task_list = create_task_list(client, name="  Weekend chores  ")
        assert_task_list_shape(task_list)
        assert task_list["name"] == "Weekend chores"
        assert task_list["owner_id"] == "alice"
        assert task_list["connected_user_ids"] == []
        assert task_list["created_at"] == task_list["updated_at"]

    def test_get_and_not_found(self, client):
        created = create_task_list(client)

        res = client.get(f"{BASE}/{created['id']}", headers=headers("alice"))
        assert res.status_code == 200
        assert res.json()["name"] == "Groceries"

        res_404 = client.get(f"{BASE}/unknown-id", headers=headers("alice"))
        assert res_404.status_code == 404
        body = res_404.json()
        assert body["error"] == "NotFound"
        assert body["message"] == "Task list with ID 'unknown-id' was not found."

    def test_stranger_is_forbidden_until_connected(self, client):
        created = create_task_list(client)
        url = f"{BASE}/{created['id']}"

        res_forbidden = client.get(url, headers=headers("bob"))
        assert res_forbidden.status_code == 403
        assert res_forbidden.json()["error"] == "Forbidden"

        res_add = client.post(f"{url}/connections", json={"user_id": "bob"}, headers=headers("alice"))
        assert res_add.status_code == 204

        res_ok = client.get(url, headers=headers("bob"))
        assert res_ok.status_code == 200
        assert res_ok.json()["connected_user_ids"] == ["bob"]

        # reading as a connection does not change the connection set
        res_again = client.get(url, headers=headers("bob"))
        assert res_again.json()["connected_user_ids"] == ["bob"]

    def test_rename(self, client):
        created = create_task_list(client)
        res = client.put(f"{BASE}/{created['id']}", json={"name": "Renamed"}, headers=headers("alice"))
        assert res.status_code == 200
        updated = res.json()
        assert updated["name"] == "Renamed"
        assert parse_dt(updated["updated_at"]) > parse_dt(created["updated_at"])

    def test_rename_validation_error(self, client):
        created = create_task_list(client)
        res = client.put(f"{BASE}/{created['id']}", json={"name": "   "}, headers=headers("alice"))
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)

    def test_create_name_too_long(self, client):
        res = client.post(f"{BASE}/", json={"name": "x" * 256}, headers=headers("alice"))
        assert res.status_code == 422

    def test_delete(self, client):
        created = create_task_list(client)
        url = f"{BASE}/{created['id']}"
        client.post(f"{url}/connections", json={"user_id": "bob"}, headers=headers("alice"))

        res_forbidden = client.delete(url, headers=headers("bob"))
        assert res_forbidden.status_code == 403
        assert "'delete task list'" in res_forbidden.json()["message"]

        res_del = client.delete(url, headers=headers("alice"))
        assert res_del.status_code == 204
        assert res_del.text == ""

        assert client.get(url, headers=headers("alice")).status_code == 404
        res_del_again = client.delete(url, headers=headers("bob"))
        assert res_del_again.status_code == 404
        assert res_del_again.json()["error"] == "NotFound"

    def test_delete_lost_to_concurrent_delete(self, client, repo, monkeypatch):
        created = create_task_list(client)

        async def already_gone(task_list_id):
            return False

        monkeypatch.setattr(repo, "delete", already_gone)

        res = client.delete(f"{BASE}/{created['id']}", headers=headers("alice"))
        assert res.status_code == 404
        assert res.json() == {
            "error": "NotFound",
            "message": f"Task list with ID '{created['id']}' was not found.",
        }


class TestConnections:
    def test_add_list_remove(self, client):
        created = create_task_list(client)
        url = f"{BASE}/{created['id']}/connections"

        for user_id in ["bob", "carol", "bob"]:
            assert client.post(url, json={"user_id": user_id}, headers=headers("alice")).status_code == 204

        res_list = client.get(url, headers=headers("carol"))
        assert res_list.status_code == 200
        assert res_list.json() == ["bob", "carol"]

        assert client.delete(f"{url}/bob", headers=headers("carol")).status_code == 204
        assert client.get(url, headers=headers("alice")).json() == ["carol"]

        # removing an absent connection is accepted
        assert client.delete(f"{url}/nobody", headers=headers("alice")).status_code == 204

    def test_owner_cannot_be_added(self, client):
        created = create_task_list(client)
        res = client.post(
            f"{BASE}/{created['id']}/connections", json={"user_id": "alice"}, headers=headers("alice")
        )
        assert res.status_code == 400
        body = res.json()
        assert body["error"] == "InvalidOperation"
        assert body["message"] == "Owner cannot be added as a connection"

    def test_blank_connection_is_rejected(self, client):
        created = create_task_list(client)
        res = client.post(
            f"{BASE}/{created['id']}/connections", json={"user_id": "  "}, headers=headers("alice")
        )
        assert res.status_code == 422

    def test_stranger_cannot_list_connections(self, client):
        created = create_task_list(client)
        res = client.get(f"{BASE}/{created['id']}/connections", headers=headers("mallory"))
        assert res.status_code == 403


class TestListPagination:
    def seed(self, client, count, user_id="alice"):
        return [create_task_list(client, name=f"List {i}", user_id=user_id) for i in range(count)]

    def test_pages(self, client):
        self.seed(client, 7)
        self.seed(client, 2, user_id="zoe")

        res1 = client.get(f"{BASE}/?page=1&page_size=3", headers=headers("alice"))
        assert res1.status_code == 200
        page1 = res1.json()
        assert page1["total_count"] == 7
        assert page1["page"] == 1
        assert page1["page_size"] == 3
        assert page1["total_pages"] == 3
        assert page1["has_next_page"] is True
        assert page1["has_previous_page"] is False
        assert [item["name"] for item in page1["items"]] == ["List 6", "List 5", "List 4"]
        assert set(page1["items"][0]) == {"id", "name", "owner_id", "created_at"}

        page3 = client.get(f"{BASE}/?page=3&page_size=3", headers=headers("alice")).json()
        assert [item["name"] for item in page3["items"]] == ["List 0"]
        assert page3["has_next_page"] is False
        assert page3["has_previous_page"] is True

    def test_shared_lists_are_included(self, client):
        created = create_task_list(client, name="Shared", user_id="zoe")
        client.post(f"{BASE}/{created['id']}/connections", json={"user_id": "alice"}, headers=headers("zoe"))

        page = client.get(f"{BASE}/", headers=headers("alice")).json()
        assert page["total_count"] == 1
        assert page["items"][0]["owner_id"] == "zoe"

    def test_out_of_range_parameters_are_normalized(self, client):
        self.seed(client, 12)
        default = client.get(f"{BASE}/?page=1&page_size=10", headers=headers("alice")).json()
        normalized = client.get(f"{BASE}/?page=0&page_size=101", headers=headers("alice")).json()
        assert normalized == default
        assert normalized["page"] == 1
        assert normalized["page_size"] == 10
        assert len(normalized["items"]) == 10

    def test_huge_page_number_is_an_empty_page(self, client):
        self.seed(client, 2)
        res = client.get(f"{BASE}/?page=1000000000000000000", headers=headers("alice"))
        assert res.status_code == 200
        page = res.json()
        assert page["items"] == []
        assert page["total_count"] == 2
        assert page["has_next_page"] is False
        assert page["has_previous_page"] is True

    def test_empty(self, client):
        page = client.get(f"{BASE}/", headers=headers("nobody")).json()
        assert page["items"] == []
        assert page["total_count"] == 0
        assert page["total_pages"] == 0
        assert page["has_next_page"] is False
