import redis

from conftest import insert_child, insert_package, insert_assignment
from utils import cache


def test_family_children_are_served_from_cache(conn, family, fake_redis):
    client = family["child"]
    first = client.get("/auth/children/fam123")
    assert first.status_code == 200
    assert [child["name"] for child in first.json()] == ["Ada"]
    assert "children:family:FAM123" in fake_redis.store
    assert fake_redis.ttls["children:family:FAM123"] == 60

    # Written behind the API's back, so only visible once the entry is invalidated
    insert_child(conn, family["parent_id"], name="Bo")
    assert [child["name"] for child in client.get("/auth/children/FAM123").json()] == ["Ada"]


def test_adding_a_child_invalidates_family_cache(family, fake_redis):
    family["child"].get("/auth/children/FAM123")
    response = family["parent"].post("/children/", json={"name": "Bo", "grade_level": 2, "pin": "4321"})
    assert response.status_code == 201
    assert "children:family:FAM123" not in fake_redis.store
    names = [child["name"] for child in family["child"].get("/auth/children/FAM123").json()]
    assert names == ["Ada", "Bo"]


def test_submission_invalidates_assignment_lists(conn, family, fake_redis):
    package_id, problem_ids = insert_package(conn, family["parent_id"], [{"correct_answer": "3"}])
    assignment_id = insert_assignment(conn, family["parent_id"], family["child_id"], package_id=package_id)

    listing = family["child"].get("/assignments/").json()
    assert listing[0]["status"] == "pending"
    family["parent"].get("/assignments/")
    assert any(key.startswith(f"assignments:child:{family['child_id']}:") for key in fake_redis.store)

    family["child"].post(f"/assignments/{assignment_id}/submit", json={"question_id": problem_ids[0], "answer": "3"})
    assert not any(key.startswith("assignments:") for key in fake_redis.store)
    listing = family["child"].get("/assignments/").json()
    assert listing[0]["status"] == "completed"
    assert listing[0]["correct_count"] == 1


def test_renaming_a_child_invalidates_assignment_lists(conn, family, fake_redis):
    package_id, _ = insert_package(conn, family["parent_id"], [{"correct_answer": "3"}])
    insert_assignment(conn, family["parent_id"], family["child_id"], package_id=package_id)

    assert family["parent"].get("/assignments/").json()[0]["child_name"] == "Ada"
    family["child"].get("/assignments/")
    assert any(key.startswith("assignments:") for key in fake_redis.store)

    response = family["parent"].put(f"/children/{family['child_id']}", json={"name": "Adaline"})
    assert response.status_code == 200
    assert not any(key.startswith("assignments:") for key in fake_redis.store)
    assert family["parent"].get("/assignments/").json()[0]["child_name"] == "Adaline"


class BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("down")

    def setex(self, key, ttl, value):
        raise redis.ConnectionError("down")

    def delete(self, *keys):
        raise redis.ConnectionError("down")

    def scan_iter(self, match="*"):
        raise redis.ConnectionError("down")


def test_cache_failures_fall_back_to_database(family, monkeypatch):
    monkeypatch.setenv("CACHE_ENABLED", "true")
    cache.set_client(BrokenRedis())
    response = family["child"].get("/auth/children/FAM123")
    assert response.status_code == 200
    assert response.json()[0]["name"] == "Ada"
    created = family["parent"].post("/children/", json={"name": "Bo", "pin": "4321"})
    assert created.status_code == 201


def test_disabled_cache_is_a_no_op(app_env):
    cache.set_client(BrokenRedis())
    assert cache.get_client() is None
    cache.cache_set("key", {"a": 1})
    assert cache.cache_get("key") is None
    cache.cache_invalidate("assignments:*")
