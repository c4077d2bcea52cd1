"""
schemas/user_schema.py — Output serialisation for user records.

PublicUserSchema is the only way a User leaves the service. It declares no
password or refresh-token field, so neither can be dumped by accident.
"""

from __future__ import annotations

from marshmallow import Schema, fields


class PublicUserSchema(Schema):
    id = fields.Int()
    username = fields.Str()
    email = fields.Str()
    full_name = fields.Str(data_key="fullName")
    avatar = fields.Str()
    cover_image = fields.Str(data_key="coverImage")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class OwnerSummarySchema(Schema):
    """Denormalised owner attached to each watch-history entry."""

    full_name = fields.Str(data_key="fullName")
    username = fields.Str()
    avatar = fields.Str()


class WatchedVideoSchema(Schema):
    id = fields.Int()
    video_file = fields.Str(data_key="videoFile")
    thumbnail = fields.Str()
    title = fields.Str()
    description = fields.Str()
    duration = fields.Float()
    views = fields.Int()
    created_at = fields.DateTime(data_key="createdAt")


_public_user = PublicUserSchema()
_owner_summary = OwnerSummarySchema()
_watched_video = WatchedVideoSchema()


def serialize_user(user) -> dict:
    return _public_user.dump(user)


def serialize_watched_video(video, owner) -> dict:
    payload = _watched_video.dump(video)
    payload["owner"] = _owner_summary.dump(owner) if owner is not None else None
    return payload
