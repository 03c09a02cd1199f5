import pytest


def post_review(client, headers, book_id, rating=4, text="Worth reading"):
    return client.post(
        "/api/Review", json={"bookId": book_id, "rating": rating, "reviewText": text}, headers=headers
    )


@pytest.fixture
def review(client, book, user_headers):
    response = post_review(client, user_headers, book.book_id)
    assert response.status_code == 201, response.text
    return response.json()["data"]


# --- Reviews ---

def test_create_review(client, book, user_headers):
    response = post_review(client, user_headers, book.book_id, rating=5)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["rating"] == 5
    assert data["userName"] == "bob_reader"
    assert data["bookId"] == book.book_id


def test_review_requires_token(client, book):
    assert post_review(client, {}, book.book_id).status_code == 401


@pytest.mark.parametrize("rating", [0, 6, -1])
def test_rating_out_of_range(client, book, user_headers, rating):
    response = post_review(client, user_headers, book.book_id, rating=rating)
    assert response.status_code == 400
    body = response.json()
    assert body["errorCode"] == "INVALID_RATING"
    assert body["message"] == "Rating must be between 1 and 5."


def test_review_for_unknown_book(client, db_file, user_headers):
    response = post_review(client, user_headers, 999)
    assert response.status_code == 404
    assert response.json()["errorCode"] == "BOOK_NOT_FOUND"


def test_reviews_by_book(client, book, review):
    response = client.get(f"/api/Review/book/{book.book_id}")
    assert response.status_code == 200
    assert [r["reviewId"] for r in response.json()["data"]] == [review["reviewId"]]


def test_owner_updates_review(client, review, user_headers):
    response = client.put(
        f"/api/Review/{review['reviewId']}", json={"rating": 2, "reviewText": "Changed my mind"}, headers=user_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["rating"] == 2
    assert response.json()["data"]["reviewText"] == "Changed my mind"


def test_other_user_cannot_update_review(client, review, other_user_headers):
    response = client.put(f"/api/Review/{review['reviewId']}", json={"rating": 1}, headers=other_user_headers)
    assert response.status_code == 403


def test_superadmin_deletes_any_review(client, review, superadmin_headers):
    response = client.delete(f"/api/Review/{review['reviewId']}", headers=superadmin_headers)
    assert response.status_code == 200
    assert client.get(f"/api/Review/{review['reviewId']}").status_code == 404


def test_admin_cannot_delete_review(client, review, admin_headers):
    assert client.delete(f"/api/Review/{review['reviewId']}", headers=admin_headers).status_code == 403


def test_user_rating_and_rate(client, book, user_headers):
    response = client.get("/api/Review/user-rating", params={"bookId": book.book_id}, headers=user_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"bookId": book.book_id, "rating": 0}

    response = client.post("/api/Review/rate", json={"bookId": book.book_id, "rating": 3}, headers=user_headers)
    assert response.status_code == 200
    first_id = response.json()["data"]["reviewId"]

    response = client.post("/api/Review/rate", json={"bookId": book.book_id, "rating": 5}, headers=user_headers)
    assert response.json()["data"]["reviewId"] == first_id

    response = client.get("/api/Review/user-rating", params={"bookId": book.book_id}, headers=user_headers)
    assert response.json()["data"]["rating"] == 5


def test_user_rating_requires_token(client, book):
    assert client.get("/api/Review/user-rating", params={"bookId": book.book_id}).status_code == 401


def test_discover_reflects_ratings(client, book, user_headers, other_user_headers):
    post_review(client, user_headers, book.book_id, rating=4)
    post_review(client, other_user_headers, book.book_id, rating=5)

    item = client.get("/api/Books/discover").json()["data"]["items"][0]
    assert item["reviewCount"] == 2
    assert item["averageRating"] == 4.5

    data = client.get("/api/Books/discover", params={"minRating": 4.8}).json()["data"]
    assert data["items"] == []
    assert data["totalItems"] == 0


# --- Comments ---

def test_comment_on_review(client, review, other_user_headers, book):
    response = client.post(
        "/api/Comment", json={"reviewId": review["reviewId"], "commentText": "Agreed"}, headers=other_user_headers
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["commentText"] == "Agreed"
    assert data["userName"] == "carol_reader"

    mine = client.get("/api/Comment/user", headers=other_user_headers).json()["data"]
    assert len(mine) == 1
    assert mine[0]["bookTitle"] == book.title
    assert mine[0]["bookId"] == book.book_id


def test_comment_on_unknown_review(client, db_file, user_headers):
    response = client.post("/api/Comment", json={"reviewId": 999, "commentText": "Hello"}, headers=user_headers)
    assert response.status_code == 404
    assert response.json()["errorCode"] == "REVIEW_NOT_FOUND"


def test_empty_comment_is_rejected(client, review, user_headers):
    response = client.post("/api/Comment", json={"reviewId": review["reviewId"], "commentText": ""}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["errorCode"] == "validation_error"


def test_blank_comment_text_is_rejected(client, review, user_headers):
    response = client.post(
        "/api/Comment", json={"reviewId": review["reviewId"], "commentText": "   "}, headers=user_headers
    )
    assert response.status_code == 400
    assert response.json()["errorCode"] == "COMMENT_TEXT_REQUIRED"

    comment = client.post(
        "/api/Comment", json={"reviewId": review["reviewId"], "commentText": "  Padded  "}, headers=user_headers
    ).json()["data"]
    assert comment["commentText"] == "Padded"

    url = f"/api/Comment/{comment['commentId']}"
    response = client.put(url, json={"commentText": "\t \n"}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["errorCode"] == "COMMENT_TEXT_REQUIRED"
    assert client.get(url).json()["data"]["commentText"] == "Padded"


def test_oversized_review_id_is_validation_error(client, db_file):
    response = client.get("/api/Review/99999999999999999999")
    assert response.status_code == 400
    assert response.json()["errorCode"] == "validation_error"


def test_comment_owner_checks(client, review, user_headers, other_user_headers, superadmin_headers):
    comment = client.post(
        "/api/Comment", json={"reviewId": review["reviewId"], "commentText": "First"}, headers=user_headers
    ).json()["data"]
    url = f"/api/Comment/{comment['commentId']}"

    assert client.put(url, json={"commentText": "Hijack"}, headers=other_user_headers).status_code == 403
    response = client.put(url, json={"commentText": "Edited"}, headers=user_headers)
    assert response.json()["data"]["commentText"] == "Edited"

    assert client.delete(url, headers=superadmin_headers).status_code == 200
    response = client.get(url)
    assert response.status_code == 404
    assert response.json()["errorCode"] == "COMMENT_NOT_FOUND"


def test_comments_are_removed_with_review(client, review, user_headers):
    client.post("/api/Comment", json={"reviewId": review["reviewId"], "commentText": "Note"}, headers=user_headers)
    client.delete(f"/api/Review/{review['reviewId']}", headers=user_headers)
    assert client.get("/api/Comment").json()["data"] == []
