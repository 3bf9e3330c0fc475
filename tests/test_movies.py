"""
Tests for movie browsing, submission and moderation.
"""
import pytest

from filmfolk.models.movie import Movie, MovieStatus

MOVIES = "/api/v1/movies"

NEW_MOVIE = {
    "title": "Arrival",
    "release_year": 2016,
    "genres": ["Sci-Fi", "Drama"],
    "summary": "Linguist meets heptapods.",
    "runtime_minutes": 116,
    "tmdb_id": 329865,
}


def _titles(resp):
    return [m["title"] for m in resp.get_json()["data"]]


class TestListMovies:
    def test_only_approved_are_public(self, client, make_movie):
        make_movie(title="Approved")
        make_movie(title="Pending", status=MovieStatus.PENDING)
        resp = client.get(MOVIES)
        assert resp.status_code == 200
        body = resp.get_json()
        assert _titles(resp) == ["Approved"]
        assert body["meta"] == {"page": 1, "page_size": 20, "total": 1}

    def test_status_filter_needs_moderator(self, client, make_movie, user, moderator, auth_headers):
        make_movie(title="Approved")
        make_movie(title="Pending", status=MovieStatus.PENDING)
        params = {"status": "pending_approval"}

        assert _titles(client.get(MOVIES, query_string=params, headers=auth_headers(user))) == ["Approved"]
        assert _titles(client.get(MOVIES, query_string=params, headers=auth_headers(moderator))) == ["Pending"]

    def test_filters(self, client, make_movie):
        make_movie(title="Heat", release_year=1995, genres=["Crime", "Drama"])
        make_movie(title="Heathers", release_year=1988, genres=["Comedy"])
        make_movie(title="Alien", release_year=1979, genres=["Horror", "Sci-Fi"])

        assert _titles(client.get(MOVIES, query_string={"genre": "Comedy"})) == ["Heathers"]
        assert _titles(client.get(MOVIES, query_string={"year": 1979})) == ["Alien"]
        assert _titles(client.get(MOVIES, query_string={"search": "HEAT"})) == ["Heat", "Heathers"]

    def test_sorting(self, client, make_movie):
        make_movie(title="B", release_year=2001, total_reviews=5, average_rating=7)
        make_movie(title="A", release_year=1999, total_reviews=1, average_rating=9)
        make_movie(title="C", release_year=2010)

        assert _titles(client.get(MOVIES)) == ["A", "B", "C"]
        assert _titles(client.get(MOVIES, query_string={"sort_by": "year"})) == ["C", "B", "A"]
        assert _titles(client.get(MOVIES, query_string={"sort_by": "reviews"})) == ["B", "A", "C"]
        assert _titles(client.get(MOVIES, query_string={"sort_by": "rating"})) == ["A", "B", "C"]
        assert client.get(MOVIES, query_string={"sort_by": "budget"}).status_code == 400

    def test_pagination(self, client, make_movie):
        for i in range(3):
            make_movie(title=f"Movie {i}", release_year=2000 + i)
        resp = client.get(MOVIES, query_string={"page": 2, "page_size": 2})
        assert _titles(resp) == ["Movie 2"]
        assert resp.get_json()["meta"] == {"page": 2, "page_size": 2, "total": 3}

        resp = client.get(MOVIES, query_string={"page_size": 500})
        assert resp.get_json()["meta"]["page_size"] == 100

    @pytest.mark.parametrize("params", [{"page": "x"}, {"page_size": "ten"}, {"year": "nineteen"}])
    def test_non_integer_params(self, client, params):
        assert client.get(MOVIES, query_string=params).status_code == 400


class TestGetMovie:
    def test_get_approved(self, client, make_movie):
        movie = make_movie()
        resp = client.get(f"{MOVIES}/{movie.id}")
        assert resp.status_code == 200
        assert resp.get_json()["genres"] == ["Crime", "Drama"]

    def test_unknown(self, client):
        assert client.get(f"{MOVIES}/does-not-exist").status_code == 404

    def test_pending_visible_to_submitter_and_moderators_only(
        self, client, make_movie, make_account, user, moderator, auth_headers
    ):
        movie = make_movie(status=MovieStatus.PENDING, submitted_by=user)
        url = f"{MOVIES}/{movie.id}"
        assert client.get(url).status_code == 404
        assert client.get(url, headers=auth_headers(make_account())).status_code == 404
        assert client.get(url, headers=auth_headers(user)).status_code == 200
        assert client.get(url, headers=auth_headers(moderator)).status_code == 200


class TestSubmitMovie:
    def test_requires_auth(self, client):
        assert client.post(MOVIES, json=NEW_MOVIE).status_code == 401

    def test_created_pending(self, client, user, auth_headers):
        resp = client.post(MOVIES, json=NEW_MOVIE, headers=auth_headers(user))
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["status"] == "pending_approval"
        assert data["submitted_by_id"] == user.id
        assert data["total_reviews"] == 0
        assert data["average_rating"] is None

    def test_duplicate_title_year(self, client, make_movie, user, auth_headers):
        make_movie(title="Arrival", release_year=2016)
        resp = client.post(MOVIES, json=NEW_MOVIE, headers=auth_headers(user))
        assert resp.status_code == 409

    def test_duplicate_tmdb_id(self, client, make_movie, user, auth_headers):
        make_movie(title="Something Else", tmdb_id=329865)
        resp = client.post(MOVIES, json=NEW_MOVIE, headers=auth_headers(user))
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "patch",
        [{"title": ""}, {"release_year": 1500}, {"runtime_minutes": 0}, {"genres": [""]}, {"release_year": None}],
    )
    def test_validation(self, client, user, auth_headers, patch):
        resp = client.post(MOVIES, json={**NEW_MOVIE, **patch}, headers=auth_headers(user))
        assert resp.status_code == 400


class TestUpdateMovie:
    def test_requires_moderator(self, client, make_movie, user, auth_headers):
        movie = make_movie()
        resp = client.put(f"{MOVIES}/{movie.id}", json={"summary": "x"}, headers=auth_headers(user))
        assert resp.status_code == 403

    def test_partial_update(self, client, make_movie, moderator, auth_headers):
        movie = make_movie()
        resp = client.put(
            f"{MOVIES}/{movie.id}", json={"summary": "Bank robbers.", "runtime_minutes": 170},
            headers=auth_headers(moderator),
        )
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["summary"] == "Bank robbers."
        assert data["runtime_minutes"] == 170
        assert data["title"] == "Heat"

    def test_update_into_duplicate(self, client, make_movie, moderator, auth_headers):
        make_movie(title="Alien", release_year=1979)
        movie = make_movie()
        resp = client.put(
            f"{MOVIES}/{movie.id}", json={"title": "Alien", "release_year": 1979}, headers=auth_headers(moderator)
        )
        assert resp.status_code == 409


class TestModeration:
    def test_pending_queue(self, client, make_movie, moderator, auth_headers):
        make_movie(title="Approved")
        make_movie(title="Pending", status=MovieStatus.PENDING)
        resp = client.get("/api/v1/moderator/movies/pending", headers=auth_headers(moderator))
        assert _titles(resp) == ["Pending"]

    def test_approve(self, client, storage, make_movie, moderator, auth_headers):
        movie = make_movie(status=MovieStatus.PENDING)
        resp = client.post(f"/api/v1/moderator/movies/{movie.id}/approve", headers=auth_headers(moderator))
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "approved"
        assert resp.get_json()["approved_by_id"] == moderator.id
        assert client.get(f"{MOVIES}/{movie.id}").status_code == 200

    def test_reject(self, client, make_movie, admin, auth_headers):
        movie = make_movie(status=MovieStatus.PENDING)
        resp = client.post(f"/api/v1/moderator/movies/{movie.id}/reject", headers=auth_headers(admin))
        assert resp.get_json()["status"] == "rejected"

    def test_approve_unknown(self, client, moderator, auth_headers):
        resp = client.post("/api/v1/moderator/movies/nope/approve", headers=auth_headers(moderator))
        assert resp.status_code == 404

    def test_admin_delete(self, client, storage, make_movie, admin, user, auth_headers):
        movie = make_movie()
        client.post(
            "/api/v1/reviews",
            json={"movie_id": movie.id, "rating": 8, "review_text": "Great heist movie."},
            headers=auth_headers(user),
        )
        resp = client.delete(f"/api/v1/admin/movies/{movie.id}", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert storage.count(Movie) == 0
        assert client.get(f"{MOVIES}/{movie.id}").status_code == 404
