from datetime import datetime, timezone

import pytest

from bookdash.repositories import BookRepository

NEXT_YEAR = datetime.now(timezone.utc).year + 1


# --- Reading list ---

def test_add_book_to_reading_list(client, book, user_headers):
    response = client.post("/api/ReadingList", json={"bookId": book.book_id}, headers=user_headers)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "NotStarted"
    assert data["book"]["title"] == "The Dispossessed"
    assert data["book"]["authorName"] == "Ursula K. Le Guin"


def test_invalid_reading_status(client, book, user_headers):
    response = client.post(
        "/api/ReadingList", json={"bookId": book.book_id, "status": "Abandoned"}, headers=user_headers
    )
    assert response.status_code == 400
    body = response.json()
    assert body["errorCode"] == "INVALID_STATUS"
    assert "NotStarted, Reading, Completed" in body["message"]


def test_same_book_twice_is_rejected(client, book, user_headers, other_user_headers):
    client.post("/api/ReadingList", json={"bookId": book.book_id}, headers=user_headers)
    response = client.post("/api/ReadingList", json={"bookId": book.book_id}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["errorCode"] == "BOOK_ALREADY_EXISTS"

    # Another reader may list the same book.
    response = client.post("/api/ReadingList", json={"bookId": book.book_id}, headers=other_user_headers)
    assert response.status_code == 201


def test_reading_list_unknown_book(client, db_file, user_headers):
    response = client.post("/api/ReadingList", json={"bookId": 42}, headers=user_headers)
    assert response.status_code == 404
    assert response.json()["errorCode"] == "BOOK_NOT_FOUND"


def test_my_reading_list_and_status_update(client, book, user_headers, other_user_headers):
    entry = client.post("/api/ReadingList", json={"bookId": book.book_id}, headers=user_headers).json()["data"]

    assert client.get("/api/ReadingList/user", headers=other_user_headers).json()["data"] == []
    mine = client.get("/api/ReadingList/user", headers=user_headers).json()["data"]
    assert [e["readingListId"] for e in mine] == [entry["readingListId"]]

    url = f"/api/ReadingList/{entry['readingListId']}"
    payload = {"bookId": book.book_id, "status": "Reading"}
    assert client.put(url, json=payload, headers=other_user_headers).status_code == 403

    response = client.put(url, json=payload, headers=user_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "Reading"

    assert client.delete(url, headers=user_headers).status_code == 200
    response = client.get(url)
    assert response.status_code == 404
    assert response.json()["errorCode"] == "READING_LIST_NOT_FOUND"


def test_reading_list_requires_token(client):
    assert client.get("/api/ReadingList/user").status_code == 401


# --- Reading goals ---

def goal(book_id, **overrides):
    payload = {"bookId": book_id, "year": NEXT_YEAR, "goalPercentage": 80, "progress": 10}
    payload.update(overrides)
    return payload


def test_create_goal(client, book, user_headers):
    response = client.post("/api/ReadingGoal", json=goal(book.book_id), headers=user_headers)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["year"] == NEXT_YEAR
    assert data["goalPercentage"] == 80
    assert data["progress"] == 10
    assert data["book"]["bookId"] == book.book_id


def test_create_goal_from_book(client, book, user_headers):
    response = client.post(
        "/api/ReadingGoal/from-book", json=goal(book.book_id, progress=0), headers=user_headers
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Goal created for 'The Dispossessed'."


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"year": NEXT_YEAR - 1}, "Goal year must be in the future."),
        ({"goalPercentage": 0}, "Goal percentage must be between 1% and 100%."),
        ({"goalPercentage": 101}, "Goal percentage must be between 1% and 100%."),
        ({"progress": -5}, "Progress must be between 0% and 100%."),
        ({"goalPercentage": 100, "progress": 101}, "Progress must be between 0% and 100%."),
        ({"goalPercentage": 50, "progress": 60}, "Progress cannot exceed the goal percentage."),
        ({"year": NEXT_YEAR - 1, "goalPercentage": 0}, "Goal year must be in the future."),
    ],
)
def test_goal_rules(client, book, user_headers, overrides, message):
    response = client.post("/api/ReadingGoal", json=goal(book.book_id, **overrides), headers=user_headers)
    assert response.status_code == 400
    body = response.json()
    assert body["errorCode"] == "INVALID_GOAL"
    assert body["message"] == message


def test_oversized_goal_year_is_validation_error(client, book, user_headers):
    response = client.post("/api/ReadingGoal", json=goal(book.book_id, year=10**20), headers=user_headers)
    assert response.status_code == 400
    assert response.json()["errorCode"] == "validation_error"


def test_goal_needs_a_book(client, db_file, user_headers):
    response = client.post("/api/ReadingGoal", json=goal(0), headers=user_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Please select a book for this goal."

    response = client.post("/api/ReadingGoal", json=goal(77), headers=user_headers)
    assert response.status_code == 400
    assert response.json()["errorCode"] == "BOOK_NOT_FOUND"


def test_duplicate_goal_conflicts(client, book, user_headers, other_user_headers):
    assert client.post("/api/ReadingGoal", json=goal(book.book_id), headers=user_headers).status_code == 201

    response = client.post("/api/ReadingGoal", json=goal(book.book_id, goalPercentage=30), headers=user_headers)
    assert response.status_code == 409
    body = response.json()
    assert body["errorCode"] == "GOAL_EXISTS"
    assert body["message"] == "You already have a goal for this book in this year."

    response = client.post("/api/ReadingGoal", json=goal(book.book_id, year=NEXT_YEAR + 1), headers=user_headers)
    assert response.status_code == 201
    response = client.post("/api/ReadingGoal", json=goal(book.book_id), headers=other_user_headers)
    assert response.status_code == 201


def test_goal_for_book_lookup(client, book, user_headers):
    response = client.get(f"/api/ReadingGoal/user/{book.book_id}", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["data"] is None
    assert response.json()["message"] == "No goal found for this book"

    client.post("/api/ReadingGoal", json=goal(book.book_id), headers=user_headers)
    response = client.get(f"/api/ReadingGoal/user/{book.book_id}", headers=user_headers)
    assert response.json()["data"]["bookId"] == book.book_id
    assert len(client.get("/api/ReadingGoal/user", headers=user_headers).json()["data"]) == 1


def test_update_goal(client, book, user_headers, other_user_headers):
    created = client.post("/api/ReadingGoal", json=goal(book.book_id), headers=user_headers).json()["data"]
    url = f"/api/ReadingGoal/{created['id']}"

    assert client.put(url, json=goal(book.book_id, progress=50), headers=other_user_headers).status_code == 403

    response = client.put(url, json=goal(book.book_id, progress=90), headers=user_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Progress cannot exceed the goal percentage."

    response = client.put(url, json=goal(book.book_id, progress=80), headers=user_headers)
    assert response.status_code == 200
    assert response.json()["data"]["progress"] == 80


def test_update_goal_keeps_its_book(client, book, user_headers):
    other = BookRepository().create("The Lathe of Heaven", book.author_id, book.genre_id, 1971, None)
    created = client.post("/api/ReadingGoal", json=goal(book.book_id), headers=user_headers).json()["data"]

    response = client.put(
        f"/api/ReadingGoal/{created['id']}", json=goal(other.book_id, progress=40), headers=user_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["bookId"] == book.book_id
    assert data["progress"] == 40


def test_update_goal_into_existing_year_conflicts(client, book, user_headers):
    client.post("/api/ReadingGoal", json=goal(book.book_id), headers=user_headers)
    later = client.post(
        "/api/ReadingGoal", json=goal(book.book_id, year=NEXT_YEAR + 1), headers=user_headers
    ).json()["data"]

    response = client.put(f"/api/ReadingGoal/{later['id']}", json=goal(book.book_id), headers=user_headers)
    assert response.status_code == 409


def test_delete_goal(client, book, user_headers, superadmin_headers):
    created = client.post("/api/ReadingGoal", json=goal(book.book_id), headers=user_headers).json()["data"]
    url = f"/api/ReadingGoal/{created['id']}"
    assert client.delete(url, headers=superadmin_headers).status_code == 200
    response = client.get(url)
    assert response.status_code == 404
    assert response.json()["errorCode"] == "GOAL_NOT_FOUND"
