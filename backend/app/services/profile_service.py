"""
services/profile_service.py — Account updates and read-side aggregations.

  update_account_details  fullName + email, email kept unique
  update_avatar           upload, then swap the avatar URL
  update_cover_image      upload, then swap the cover-image URL
  get_channel_profile     user + subscriber counts + viewer membership
  get_watch_history       ordered history with owner summaries

Same layer rules as auth_service: collaborators are passed in, failures
are AppError kinds, the route commits.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from backend.app.errors import (
    ConflictError,
    ErrorCode,
    NotFoundError,
    UploadError,
    ValidationError,
)
from backend.app.schemas.user_schema import serialize_user, serialize_watched_video


def _get_user_or_404(user_id: int, store):
    user = store.find_by_id(user_id)
    if user is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, f"User {user_id} not found.")
    return user


def _email_taken() -> ConflictError:
    return ConflictError(
        ErrorCode.DUPLICATE_EMAIL,
        "Email is already in use by another account.",
        field="email",
    )


def update_account_details(
        user_id: int,
        full_name: str | None,
        email: str | None,
        store,
) -> dict:
    if not (full_name or "").strip() or not (email or "").strip():
        raise ValidationError(ErrorCode.MISSING_FIELD, "All fields are required.")

    user = _get_user_or_404(user_id, store)

    other = store.find_one(email=email)
    if other is not None and other.id != user.id:
        raise _email_taken()

    try:
        updated = store.update_by_id(user.id, {"full_name": full_name.strip(), "email": email})
    except IntegrityError as exc:
        # Another account claimed the email after the check above.
        raise _email_taken() from exc
    return serialize_user(updated)


def _replace_media(
        user_id: int,
        local_path: str | None,
        field: str,
        wire_name: str,
        label: str,
        store,
        uploader,
) -> dict:
    if not local_path:
        raise ValidationError(
            ErrorCode.FILE_REQUIRED,
            f"{label} file is missing.",
            field=wire_name,
        )

    user = _get_user_or_404(user_id, store)

    result = uploader.upload(local_path)
    if result is None or not result.url:
        raise UploadError(
            ErrorCode.UPLOAD_FAILED,
            f"Error while uploading {label.lower()}.",
            field=wire_name,
        )

    updated = store.update_by_id(user.id, {field: result.url})
    return serialize_user(updated)


def update_avatar(user_id: int, avatar_path: str | None, store, uploader) -> dict:
    return _replace_media(user_id, avatar_path, "avatar", "avatar", "Avatar", store, uploader)


def update_cover_image(user_id: int, cover_image_path: str | None, store, uploader) -> dict:
    return _replace_media(
        user_id, cover_image_path, "cover_image", "coverImage", "Cover image", store, uploader,
    )


def get_channel_profile(username: str | None, viewer_id: int | None, store) -> dict:
    """
    Raises:
      ValidationError — username blank
      NotFoundError   — no such channel

    isSubscribed is True when the viewer subscribes to this channel.
    """
    if not (username or "").strip():
        raise ValidationError(ErrorCode.MISSING_FIELD, "Username is missing.", field="username")

    profile = store.channel_profile(username, viewer_id)
    if profile is None:
        raise NotFoundError(ErrorCode.CHANNEL_NOT_FOUND, "Channel does not exist.")

    user = profile.user
    return {
        "id":                        user.id,
        "fullName":                  user.full_name,
        "username":                  user.username,
        "email":                     user.email,
        "avatar":                    user.avatar,
        "coverImage":                user.cover_image,
        "subscribersCount":          profile.subscribers_count,
        "channelsSubscribedToCount": profile.channels_subscribed_to_count,
        "isSubscribed":              profile.is_subscribed,
    }


def get_watch_history(user_id: int, store) -> list[dict]:
    """Empty list when the user has no history (or no longer exists)."""
    return [
        serialize_watched_video(entry.video, entry.owner)
        for entry in store.watch_history(user_id)
    ]
