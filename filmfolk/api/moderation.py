"""
Moderator and admin movie curation:
- GET    /moderator/movies/pending
- POST   /moderator/movies/<id>/approve
- POST   /moderator/movies/<id>/reject
- DELETE /admin/movies/<id>
"""
from __future__ import annotations

import logging

from flask import Blueprint, jsonify, g

from filmfolk.api.context import get_session, get_storage
from filmfolk.api.utils.pagination import page_envelope, paginate, parse_pagination
from filmfolk.models.account import Role
from filmfolk.models.movie import Movie, MovieStatus
from filmfolk.models.schemas.movie import MovieOutSchema
from filmfolk.utils.decorators import roles_required
from filmfolk.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)

bp = Blueprint("moderation", __name__)

movie_out_schema = MovieOutSchema()
movies_out_schema = MovieOutSchema(many=True)


def _get_movie(movie_id: str) -> Movie:
    movie = get_storage().get(Movie, movie_id)
    if movie is None:
        raise NotFoundError("movie not found")
    return movie


def _set_status(movie_id: str, status: MovieStatus):
    movie = _get_movie(movie_id)
    movie.status = status
    movie.approved_by_id = g.current_user.account_id
    get_storage().save()
    logger.info("movie %s %s by %s", movie.id, status.value, g.current_user.account_id)
    return jsonify(movie_out_schema.dump(movie))


@bp.get("/moderator/movies/pending")
@roles_required(Role.MODERATOR)
def pending_movies():
    """
    List movies waiting for approval, oldest first
    ---
    tags:
      - Moderation
    security:
      - Bearer: []
    parameters:
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: page_size, type: integer, default: 20 }
    responses:
      200: { description: OK }
      403: { description: Moderator role required }
    """
    page, page_size = parse_pagination()
    query = (
        get_session().query(Movie)
        .filter(Movie.status == MovieStatus.PENDING)
        .order_by(Movie.created_at.asc(), Movie.id.asc())
    )
    rows, total = paginate(query, page, page_size)
    return jsonify(page_envelope(movies_out_schema.dump(rows), page, page_size, total))


@bp.post("/moderator/movies/<movie_id>/approve")
@roles_required(Role.MODERATOR)
def approve_movie(movie_id: str):
    """
    Approve a submitted movie
    ---
    tags:
      - Moderation
    security:
      - Bearer: []
    parameters:
      - { in: path, name: movie_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return _set_status(movie_id, MovieStatus.APPROVED)


@bp.post("/moderator/movies/<movie_id>/reject")
@roles_required(Role.MODERATOR)
def reject_movie(movie_id: str):
    """
    Reject a submitted movie
    ---
    tags:
      - Moderation
    security:
      - Bearer: []
    parameters:
      - { in: path, name: movie_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return _set_status(movie_id, MovieStatus.REJECTED)


@bp.delete("/admin/movies/<movie_id>")
@roles_required(Role.ADMIN)
def delete_movie(movie_id: str):
    """
    Delete a movie together with its reviews
    ---
    tags:
      - Moderation
    security:
      - Bearer: []
    parameters:
      - { in: path, name: movie_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      403: { description: Admin role required }
      404: { description: Not found }
    """
    storage = get_storage()
    movie = _get_movie(movie_id)
    storage.delete(movie)
    storage.save()
    logger.info("movie %s deleted by %s", movie_id, g.current_user.account_id)
    return jsonify({"message": "Movie deleted successfully"})
