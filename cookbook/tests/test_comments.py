from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from cookbook.app import app

client = TestClient(app)

pytestmark = pytest.mark.usefixtures("fresh_catalog")


def _rating(recipe_id: int) -> tuple[float, int]:
    body = client.get(f"/recipes/{recipe_id}").json()
    return body["average_rating"], body["rating_count"]


def test_seeded_ratings_are_aggregated():
    assert _rating(1) == (4.0, 3)
    assert _rating(2) == (4.0, 1)
    assert _rating(4) == (0.0, 0)


def test_list_comments():
    resp = client.get("/recipes/1/comments")
    assert resp.status_code == 200
    comments = resp.json()
    assert [c["id"] for c in comments] == [1, 2, 3, 4]
    assert comments[3]["parent_id"] == 3


def test_post_comment_updates_recipe_rating():
    resp = client.post("/recipes/4/comments", json={"user_id": 1, "content": "Solid.", "rating": 5})
    assert resp.status_code == 200
    body = resp.json()
    assert body["rating"] == {"recipe_id": 4, "average_rating": 5.0, "rating_count": 1}
    assert _rating(4) == (5.0, 1)


def test_new_rating_is_visible_to_rating_sort():
    client.post("/recipes/4/comments", json={"user_id": 1, "content": "Solid.", "rating": 5})
    body = client.post("/recipes/search", json={"sort_by": "rating"}).json()
    assert [r["id"] for r in body["recipes"]][:3] == [3, 4, 1]


def test_reply_without_rating_keeps_average():
    resp = client.post(
        "/recipes/2/comments",
        json={"user_id": 3, "content": "Agreed!", "parent_id": 5},
    )
    assert resp.status_code == 200
    assert _rating(2) == (4.0, 1)


def test_update_comment_rating():
    resp = client.put("/comments/5", json={"content": "Drier than expected.", "rating": 2})
    assert resp.status_code == 200
    assert resp.json()["comment"]["content"] == "Drier than expected."
    assert _rating(2) == (2.0, 1)


def test_text_only_edit_keeps_rating():
    resp = client.put("/comments/5", json={"content": "Edited wording only"})
    assert resp.status_code == 200
    assert resp.json()["comment"]["rating"] == 4
    assert resp.json()["comment"]["content"] == "Edited wording only"
    assert _rating(2) == (4.0, 1)


def test_rating_only_edit_keeps_text():
    resp = client.put("/comments/5", json={"rating": 1})
    assert resp.json()["comment"]["content"] == "Great crust on the chicken."
    assert _rating(2) == (1.0, 1)


def test_delete_comment_recomputes():
    resp = client.delete("/comments/3")
    assert resp.status_code == 200
    assert resp.json()["average_rating"] == 4.5
    assert _rating(1) == (4.5, 2)
    remaining = [c["id"] for c in client.get("/recipes/1/comments").json()]
    assert remaining == [1, 2]


def test_comment_on_unknown_recipe():
    resp = client.post("/recipes/999/comments", json={"user_id": 1, "content": "?", "rating": 3})
    assert resp.status_code == 404


def test_unknown_comment():
    assert client.delete("/comments/999").status_code == 404
    assert client.put("/comments/999", json={"content": "x"}).status_code == 404


def test_rating_out_of_range_rejected():
    resp = client.post("/recipes/1/comments", json={"user_id": 1, "content": "!", "rating": 6})
    assert resp.status_code == 422
    assert _rating(1) == (4.0, 3)
