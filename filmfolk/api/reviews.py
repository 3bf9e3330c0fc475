from __future__ import annotations

import logging
from typing import Dict, List

from flask import Blueprint, request, jsonify, g

from filmfolk.api.context import get_session, get_storage
from filmfolk.models.account import Role
from filmfolk.models.movie import Movie
from filmfolk.models.review import Review, ReviewComment, ReviewStatus
from filmfolk.models.schemas.review import (
    CommentCreateSchema,
    CommentOutSchema,
    ReviewCreateSchema,
    ReviewOutSchema,
    ReviewUpdateSchema,
)
from filmfolk.services.movie_stats import recalculate_movie_stats
from filmfolk.utils.decorators import current_user, is_at_least, jwt_optional, jwt_required
from filmfolk.utils.exceptions import (
    ConflictError,
    DuplicateError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

bp = Blueprint("reviews", __name__, url_prefix="/reviews")

review_create_schema = ReviewCreateSchema()
review_update_schema = ReviewUpdateSchema()
review_out_schema = ReviewOutSchema()
comment_create_schema = CommentCreateSchema()
comment_out_schema = CommentOutSchema()


def _get_review(review_id: str) -> Review:
    review = get_storage().get(Review, review_id)
    if review is None:
        raise NotFoundError("review not found")
    return review


def _require_owner(review: Review, message: str) -> None:
    if review.account_id != g.current_user.account_id:
        raise ForbiddenError(message)


def build_comment_tree(comments: List[ReviewComment]) -> List[dict]:
    """Nest comments under their parents; input is already in created_at order."""
    nodes: Dict[str, dict] = {}
    roots: List[dict] = []
    for c in comments:
        node = comment_out_schema.dump(c)
        node["replies"] = []
        nodes[c.id] = node
    for c in comments:
        parent = nodes.get(c.parent_comment_id) if c.parent_comment_id else None
        if parent is not None:
            parent["replies"].append(nodes[c.id])
        else:
            roots.append(nodes[c.id])
    return roots


@bp.post("")
@jwt_required()
def create_review():
    """
    Review a movie (one review per user per movie)
    ---
    tags:
      - Reviews
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
          required: [movie_id, rating, review_text]
          properties:
            movie_id: { type: string }
            rating: { type: integer, minimum: 1, maximum: 10 }
            review_text: { type: string, minLength: 10 }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      404: { description: Movie not found }
      409: { description: Already reviewed }
    """
    data = review_create_schema.load(request.get_json(silent=True) or {})
    storage = get_storage()
    session = get_session()
    account_id = g.current_user.account_id

    if storage.get(Movie, data["movie_id"]) is None:
        raise NotFoundError("movie not found")
    existing = (
        session.query(Review.id)
        .filter(Review.account_id == account_id, Review.movie_id == data["movie_id"])
        .first()
    )
    if existing:
        raise DuplicateError("you have already reviewed this movie")

    review = Review(
        account_id=account_id,
        movie_id=data["movie_id"],
        rating=data["rating"],
        review_text=data["review_text"],
        status=ReviewStatus.PUBLISHED,
    )
    storage.new(review)
    recalculate_movie_stats(session, review.movie_id)
    storage.save()
    return jsonify(review_out_schema.dump(review)), 201


@bp.get("/<review_id>")
@jwt_optional()
def get_review(review_id: str):
    """
    Get a review with its comment thread
    ---
    tags:
      - Reviews
    parameters:
      - { in: path, name: review_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    review = _get_review(review_id)
    if review.status != ReviewStatus.PUBLISHED:
        claims = current_user()
        if not claims or (claims.account_id != review.account_id and not is_at_least(Role.MODERATOR)):
            raise NotFoundError("review not found")

    payload = review_out_schema.dump(review)
    payload["comments"] = build_comment_tree(list(review.comments))
    return jsonify(payload)


@bp.put("/<review_id>")
@jwt_required()
def update_review(review_id: str):
    """
    Edit your own review
    ---
    tags:
      - Reviews
    security:
      - Bearer: []
    parameters:
      - { in: path, name: review_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            rating: { type: integer, minimum: 1, maximum: 10 }
            review_text: { type: string, minLength: 10 }
    responses:
      200: { description: OK }
      403: { description: Not the author }
      404: { description: Not found }
    """
    review = _get_review(review_id)
    _require_owner(review, "you can only edit your own reviews")
    data = review_update_schema.load(request.get_json(silent=True) or {})

    for key, value in data.items():
        setattr(review, key, value)
    if "rating" in data:
        recalculate_movie_stats(get_session(), review.movie_id)
    get_storage().save()
    return jsonify(review_out_schema.dump(review))


@bp.delete("/<review_id>")
@jwt_required()
def delete_review(review_id: str):
    """
    Delete a review (author, or moderator and above)
    ---
    tags:
      - Reviews
    security:
      - Bearer: []
    parameters:
      - { in: path, name: review_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    review = _get_review(review_id)
    if review.account_id != g.current_user.account_id and not is_at_least(Role.MODERATOR):
        raise ForbiddenError("you don't have permission to delete this review")

    storage = get_storage()
    movie_id = review.movie_id
    storage.delete(review)
    recalculate_movie_stats(get_session(), movie_id)
    storage.save()
    logger.info("review %s deleted by %s", review_id, g.current_user.account_id)
    return jsonify({"message": "Review deleted successfully"})


def _set_lock(review_id: str, locked: bool):
    review = _get_review(review_id)
    _require_owner(review, f"only review author can {'lock' if locked else 'unlock'} the thread")
    if review.is_thread_locked == locked:
        raise ConflictError("thread is already locked" if locked else "thread is not locked")
    review.is_thread_locked = locked
    get_storage().save()
    return jsonify({"message": "Thread locked" if locked else "Thread unlocked"})


@bp.post("/<review_id>/lock")
@jwt_required()
def lock_thread(review_id: str):
    """
    Lock a review's comment thread
    ---
    tags:
      - Reviews
    security:
      - Bearer: []
    parameters:
      - { in: path, name: review_id, type: string, required: true }
    responses:
      200: { description: Locked }
      403: { description: Not the author }
      409: { description: Already locked }
    """
    return _set_lock(review_id, True)


@bp.post("/<review_id>/unlock")
@jwt_required()
def unlock_thread(review_id: str):
    """
    Unlock a review's comment thread
    ---
    tags:
      - Reviews
    security:
      - Bearer: []
    parameters:
      - { in: path, name: review_id, type: string, required: true }
    responses:
      200: { description: Unlocked }
      403: { description: Not the author }
      409: { description: Not locked }
    """
    return _set_lock(review_id, False)


@bp.post("/comments")
@jwt_required()
def create_comment():
    """
    Comment on a review, optionally replying to another comment
    ---
    tags:
      - Reviews
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
          required: [review_id, comment_text]
          properties:
            review_id: { type: string }
            parent_comment_id: { type: string }
            comment_text: { type: string }
    responses:
      201: { description: Created }
      400: { description: Parent belongs to another review }
      403: { description: Thread locked }
      404: { description: Review or parent not found }
    """
    data = comment_create_schema.load(request.get_json(silent=True) or {})
    storage = get_storage()

    review = _get_review(data["review_id"])
    if review.is_thread_locked:
        raise ForbiddenError("this review thread is locked")

    parent_id = data.get("parent_comment_id")
    if parent_id:
        parent = storage.get(ReviewComment, parent_id)
        if parent is None:
            raise NotFoundError("parent comment not found")
        if parent.review_id != review.id:
            raise ValidationError("parent comment belongs to a different review")

    comment = ReviewComment(
        review_id=review.id,
        account_id=g.current_user.account_id,
        parent_comment_id=parent_id,
        comment_text=data["comment_text"],
    )
    storage.new(comment)
    review.comments_count = (review.comments_count or 0) + 1
    storage.save()
    return jsonify(comment_out_schema.dump(comment)), 201


@bp.delete("/comments/<comment_id>")
@jwt_required()
def delete_comment(comment_id: str):
    """
    Remove a comment (author, or moderator and above). Replies stay in place.
    ---
    tags:
      - Reviews
    security:
      - Bearer: []
    parameters:
      - { in: path, name: comment_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    storage = get_storage()
    comment = storage.get(ReviewComment, comment_id)
    if comment is None or comment.is_deleted:
        raise NotFoundError("comment not found")
    if comment.account_id != g.current_user.account_id and not is_at_least(Role.MODERATOR):
        raise ForbiddenError("you don't have permission to delete this comment")

    comment.soft_delete()
    comment.removed_by_id = g.current_user.account_id
    review = comment.review
    if review is not None and review.comments_count:
        review.comments_count -= 1
    storage.save()
    return jsonify({"message": "Comment deleted successfully"})
