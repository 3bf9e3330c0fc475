from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort

from filmfolk.api.context import get_session, get_storage
from filmfolk.api.utils.pagination import page_envelope, paginate, parse_pagination
from filmfolk.models.account import Account, AccountStatus, Role
from filmfolk.models.follower import Follower
from filmfolk.models.review import Review, ReviewStatus
from filmfolk.models.schemas.account import (
    AccountOutSchema,
    ProfileUpdateSchema,
    PublicProfileSchema,
    RoleUpdateSchema,
    StatusUpdateSchema,
)
from filmfolk.models.schemas.review import ReviewOutSchema
from filmfolk.services.token_ledger import RefreshTokenLedger
from filmfolk.utils.decorators import jwt_required, roles_required
from filmfolk.utils.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__)

profile_schema = PublicProfileSchema()
profiles_schema = PublicProfileSchema(many=True)
account_out_schema = AccountOutSchema()
profile_update_schema = ProfileUpdateSchema()
status_update_schema = StatusUpdateSchema()
role_update_schema = RoleUpdateSchema()
reviews_out_schema = ReviewOutSchema(many=True)


def _get_account(user_id: str) -> Account:
    account = get_storage().get(Account, user_id)
    if account is None:
        raise NotFoundError("user not found")
    return account


def _follow_edge(follower_id: str, following_id: str):
    return (
        get_session().query(Follower)
        .filter(Follower.follower_id == follower_id, Follower.following_id == following_id)
        .first()
    )


def _not_self(user_id: str, action: str) -> None:
    if user_id == g.current_user.account_id:
        raise ValidationError(f"cannot {action} yourself")


@bp.get("/users/<user_id>")
def get_profile(user_id: str):
    """
    Public profile
    ---
    tags:
      - Users
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return jsonify(profile_schema.dump(_get_account(user_id)))


@bp.put("/users/me")
@jwt_required()
def update_me():
    """
    Update your bio and avatar
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            bio: { type: string }
            avatar_url: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error }
    """
    data = profile_update_schema.load(request.get_json(silent=True) or {})
    account = _get_account(g.current_user.account_id)
    for key, value in data.items():
        setattr(account, key, value)
    get_storage().save()
    return jsonify(account_out_schema.dump(account))


@bp.get("/users/<user_id>/reviews")
def list_user_reviews(user_id: str):
    """
    A user's published reviews, newest first
    ---
    tags:
      - Users
    parameters:
      - { in: path, name: user_id, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: page_size, type: integer, default: 20 }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    account = _get_account(user_id)
    page, page_size = parse_pagination()
    query = (
        get_session().query(Review)
        .filter(Review.account_id == account.id, Review.status == ReviewStatus.PUBLISHED)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    rows, total = paginate(query, page, page_size)
    return jsonify(page_envelope(reviews_out_schema.dump(rows), page, page_size, total))


@bp.post("/users/<user_id>/follow")
@jwt_required()
def follow(user_id: str):
    """
    Follow a user
    ---
    tags:
      - Followers
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      201: { description: Following }
      400: { description: Cannot follow yourself }
      404: { description: User not found }
      409: { description: Already following }
    """
    _not_self(user_id, "follow")
    target = _get_account(user_id)
    me = _get_account(g.current_user.account_id)
    if _follow_edge(me.id, target.id):
        raise ConflictError("already following this user")

    storage = get_storage()
    storage.new(Follower(follower_id=me.id, following_id=target.id))
    me.following_count = (me.following_count or 0) + 1
    target.followers_count = (target.followers_count or 0) + 1
    storage.save()
    return jsonify({"message": "Successfully followed user"}), 201


@bp.delete("/users/<user_id>/follow")
@jwt_required()
def unfollow(user_id: str):
    """
    Stop following a user
    ---
    tags:
      - Followers
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: Unfollowed }
      400: { description: Cannot unfollow yourself }
      404: { description: Not following }
    """
    _not_self(user_id, "unfollow")
    me_id = g.current_user.account_id
    edge = _follow_edge(me_id, user_id)
    if edge is None:
        raise NotFoundError("not following this user")

    storage = get_storage()
    storage.delete(edge)
    me = storage.get(Account, me_id)
    target = storage.get(Account, user_id)
    if me is not None and me.following_count:
        me.following_count -= 1
    if target is not None and target.followers_count:
        target.followers_count -= 1
    storage.save()
    return jsonify({"message": "Successfully unfollowed user"})


@bp.get("/users/<user_id>/follow/status")
@jwt_required()
def follow_status(user_id: str):
    """
    Whether you follow this user
    ---
    tags:
      - Followers
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: OK }
    """
    return jsonify({"is_following": _follow_edge(g.current_user.account_id, user_id) is not None})


def _list_edges(user_id: str, column, other):
    account = _get_account(user_id)
    page, page_size = parse_pagination()
    query = (
        get_session().query(Account)
        .join(Follower, other == Account.id)
        .filter(column == account.id)
        .order_by(Follower.created_at.desc(), Follower.id.desc())
    )
    rows, total = paginate(query, page, page_size)
    return jsonify(page_envelope(profiles_schema.dump(rows), page, page_size, total))


@bp.get("/users/<user_id>/followers")
def list_followers(user_id: str):
    """
    Accounts following this user, newest first
    ---
    tags:
      - Followers
    parameters:
      - { in: path, name: user_id, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: page_size, type: integer, default: 20 }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return _list_edges(user_id, Follower.following_id, Follower.follower_id)


@bp.get("/users/<user_id>/following")
def list_following(user_id: str):
    """
    Accounts this user follows, newest first
    ---
    tags:
      - Followers
    parameters:
      - { in: path, name: user_id, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: page_size, type: integer, default: 20 }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return _list_edges(user_id, Follower.follower_id, Follower.following_id)


@bp.post("/admin/users/<user_id>/status")
@roles_required(Role.ADMIN)
def set_status(user_id: str):
    """
    Admin-only: activate, suspend or ban an account.
    Suspending or banning revokes every refresh token the account holds.
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
      -  in: body
         name: body
         schema:
           type: object
           properties:
             status: { type: string, enum: [active, suspended, banned] }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      404: { description: Not found }
    """
    data = status_update_schema.load(request.get_json(silent=True) or {})
    if user_id == g.current_user.account_id:
        abort(400, description="cannot change your own status")

    account = _get_account(user_id)
    account.status = AccountStatus(data["status"])
    storage = get_storage()
    storage.save()
    if account.status != AccountStatus.ACTIVE:
        RefreshTokenLedger(storage).revoke_all(account.id)
    logger.info("account %s set to %s by %s", account.id, account.status.value, g.current_user.account_id)
    return jsonify(account_out_schema.dump(account))


@bp.post("/admin/users/<user_id>/role")
@roles_required(Role.ADMIN)
def set_role(user_id: str):
    """
    Admin-only: set an account's role.
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
      -  in: body
         name: body
         schema:
           type: object
           properties:
             role: { type: string, enum: [user, moderator, admin] }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      404: { description: Not found }
    """
    data = role_update_schema.load(request.get_json(silent=True) or {})
    account = _get_account(user_id)
    account.role = Role(data["role"])
    get_storage().save()
    logger.info("account %s role set to %s by %s", account.id, account.role.value, g.current_user.account_id)
    return jsonify(account_out_schema.dump(account))
