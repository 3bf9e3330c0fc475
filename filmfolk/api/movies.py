from __future__ import annotations

from flask import Blueprint, request, jsonify, abort, g
from sqlalchemy import String, cast, func

from filmfolk.api.context import get_session, get_storage
from filmfolk.api.utils.pagination import page_envelope, paginate, parse_pagination
from filmfolk.models.account import Role
from filmfolk.models.movie import Movie, MovieStatus
from filmfolk.models.review import Review, ReviewStatus
from filmfolk.models.schemas.movie import MovieCreateSchema, MovieOutSchema, MovieUpdateSchema
from filmfolk.models.schemas.review import ReviewOutSchema
from filmfolk.utils.decorators import current_user, is_at_least, jwt_optional, jwt_required, roles_required
from filmfolk.utils.exceptions import ConflictError, NotFoundError

bp = Blueprint("movies", __name__)

movie_create_schema = MovieCreateSchema()
movie_update_schema = MovieUpdateSchema()
movie_out_schema = MovieOutSchema()
movies_out_schema = MovieOutSchema(many=True)
reviews_out_schema = ReviewOutSchema(many=True)

# Sorting allowlist: API value -> ORDER BY clauses
SORT_OPTIONS = {
    "rating": (Movie.average_rating.is_(None), Movie.average_rating.desc()),
    "year": (Movie.release_year.desc(),),
    "reviews": (Movie.total_reviews.desc(),),
    "title": (Movie.title.asc(),),
}


def parse_int_arg(name: str):
    val = request.args.get(name)
    if val is None or val == "":
        return None
    try:
        return int(val)
    except ValueError:
        abort(400, description=f"{name} must be an integer")


def parse_sort():
    key = request.args.get("sort_by", "title")
    order_by = SORT_OPTIONS.get(key)
    if order_by is None:
        abort(400, description=f"Unsupported sort_by: {key}. Allowed: {', '.join(SORT_OPTIONS)}")
    return order_by


def parse_status_filter() -> MovieStatus:
    """Only moderators may look past approved movies."""
    raw = request.args.get("status")
    if not raw or not is_at_least(Role.MODERATOR):
        return MovieStatus.APPROVED
    try:
        return MovieStatus(raw)
    except ValueError:
        abort(400, description=f"Unsupported status: {raw}")


def apply_filters(query):
    genre = request.args.get("genre")
    year = parse_int_arg("year")
    search = request.args.get("search")

    if genre:
        # genres is a JSON list; match the quoted element in its text form
        query = query.filter(cast(Movie.genres, String).like(f'%"{genre.strip()}"%'))
    if year is not None:
        query = query.filter(Movie.release_year == year)
    if search and search.strip():
        query = query.filter(func.lower(Movie.title).like(f"%{search.strip().lower()}%"))
    return query


def can_view(movie: Movie) -> bool:
    if movie.status == MovieStatus.APPROVED:
        return True
    claims = current_user()
    if claims is None:
        return False
    return movie.submitted_by_id == claims.account_id or is_at_least(Role.MODERATOR)


def get_visible_movie(movie_id: str) -> Movie:
    movie = get_storage().get(Movie, movie_id)
    if movie is None or not can_view(movie):
        raise NotFoundError("movie not found")
    return movie


def check_duplicate(session, title, release_year, tmdb_id, exclude_id=None):
    q = session.query(Movie).filter(Movie.title == title, Movie.release_year == release_year)
    if exclude_id:
        q = q.filter(Movie.id != exclude_id)
    if q.first():
        raise ConflictError("a movie with this title and release year already exists")
    if tmdb_id is not None:
        q = session.query(Movie).filter(Movie.tmdb_id == tmdb_id)
        if exclude_id:
            q = q.filter(Movie.id != exclude_id)
        if q.first():
            raise ConflictError("a movie with this tmdb_id already exists")


@bp.get("/movies")
@jwt_optional()
def list_movies():
    """
    List movies
    ---
    tags:
      - Movies
    parameters:
      - { in: query, name: genre, type: string }
      - { in: query, name: year, type: integer }
      - { in: query, name: search, type: string, description: "Case-insensitive title match" }
      - { in: query, name: sort_by, type: string, enum: [rating, year, reviews, title] }
      - { in: query, name: status, type: string, description: "Moderators only" }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: page_size, type: integer, default: 20 }
    responses:
      200:
        description: OK
    """
    page, page_size = parse_pagination()
    query = get_session().query(Movie).filter(Movie.status == parse_status_filter())
    query = apply_filters(query).order_by(*parse_sort(), Movie.id.asc())

    rows, total = paginate(query, page, page_size)
    return jsonify(page_envelope(movies_out_schema.dump(rows), page, page_size, total))


@bp.get("/movies/<movie_id>")
@jwt_optional()
def get_movie(movie_id: str):
    """
    Get a movie
    ---
    tags:
      - Movies
    parameters:
      - { in: path, name: movie_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return jsonify(movie_out_schema.dump(get_visible_movie(movie_id)))


@bp.get("/movies/<movie_id>/reviews")
@jwt_optional()
def list_movie_reviews(movie_id: str):
    """
    List published reviews for a movie, newest first
    ---
    tags:
      - Movies
    parameters:
      - { in: path, name: movie_id, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: page_size, type: integer, default: 20 }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    movie = get_visible_movie(movie_id)
    page, page_size = parse_pagination()
    query = (
        get_session().query(Review)
        .filter(Review.movie_id == movie.id, Review.status == ReviewStatus.PUBLISHED)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    rows, total = paginate(query, page, page_size)
    return jsonify(page_envelope(reviews_out_schema.dump(rows), page, page_size, total))


@bp.post("/movies")
@jwt_required()
def create_movie():
    """
    Submit a new movie; it waits for moderator approval
    ---
    tags:
      - Movies
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [title, release_year]
          properties:
            title: { type: string, maxLength: 500 }
            release_year: { type: integer }
            genres: { type: array, items: { type: string } }
            summary: { type: string }
            poster_url: { type: string }
            backdrop_url: { type: string }
            runtime_minutes: { type: integer, minimum: 1 }
            language: { type: string }
            tmdb_id: { type: integer }
            imdb_id: { type: string }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      409: { description: Duplicate movie }
    """
    data = movie_create_schema.load(request.get_json(silent=True) or {})
    session = get_session()
    check_duplicate(session, data["title"], data["release_year"], data.get("tmdb_id"))

    movie = Movie(**data, status=MovieStatus.PENDING, submitted_by_id=g.current_user.account_id)
    storage = get_storage()
    storage.new(movie)
    storage.save()
    return jsonify(movie_out_schema.dump(movie)), 201


@bp.put("/movies/<movie_id>")
@roles_required(Role.MODERATOR)
def update_movie(movie_id: str):
    """
    Update a movie (partial)
    ---
    tags:
      - Movies
    security:
      - Bearer: []
    parameters:
      - { in: path, name: movie_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
    responses:
      200: { description: OK }
      403: { description: Moderator role required }
      404: { description: Not found }
      409: { description: Duplicate movie }
    """
    storage = get_storage()
    movie = storage.get(Movie, movie_id)
    if movie is None:
        raise NotFoundError("movie not found")

    data = movie_update_schema.load(request.get_json(silent=True) or {})
    if {"title", "release_year", "tmdb_id"} & data.keys():
        check_duplicate(
            get_session(),
            data.get("title", movie.title),
            data.get("release_year", movie.release_year),
            data.get("tmdb_id"),
            exclude_id=movie.id,
        )
    for key, value in data.items():
        setattr(movie, key, value)
    storage.save()
    return jsonify(movie_out_schema.dump(movie))
