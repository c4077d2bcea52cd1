"""
store/credential_store.py — Persistence gateway for user documents.

The session lifecycle and profile services talk to the database only
through CredentialStore. It owns three concerns the services must not
re-implement:

  - Normalisation: usernames and emails are stored trimmed and lowercase.
  - Password hashing: a `password` key in create() / update_by_id() is
    hashed with bcrypt into `password_hash`. The raw value is never stored.
  - Field rules: non-blank username / full name / avatar and an email with
    an '@'. update_by_id(..., validate=False) skips them; the refresh-token
    and password slot writes use that mode.

Aggregations (channel profile, watch history) are correlated SQL
sub-selects returning small typed records, so callers never probe
optional keys on raw rows.

The store flushes but never commits. Committing is the route's job.
"""

from __future__ import annotations

from dataclasses import dataclass

import bcrypt
from sqlalchemy import and_, exists, false, func, or_, select, update
from sqlalchemy.orm import Session, aliased

from backend.app.models.subscription import Subscription
from backend.app.models.user import User
from backend.app.models.video import Video
from backend.app.models.watch_history import WatchHistoryEntry


# Patch keys accepted by create() / update_by_id(). `password` is virtual.
_WRITABLE_FIELDS = frozenset({
    "username",
    "email",
    "full_name",
    "password",
    "avatar",
    "cover_image",
    "refresh_token",
})


# bcrypt only reads the first 72 bytes; bcrypt 5 rejects anything longer.
MAX_PASSWORD_BYTES = 72


class StoreValidationError(ValueError):
    """A write violated the store's own field rules."""


@dataclass(frozen=True)
class ChannelProfile:
    user: User
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool


@dataclass(frozen=True)
class WatchedVideo:
    video: Video
    owner: User | None  # None when the owning account no longer exists


def password_fits(raw_password: str) -> bool:
    return len(raw_password.encode("utf-8")) <= MAX_PASSWORD_BYTES


def hash_password(raw_password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(
        raw_password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def check_password(raw_password: str, password_hash: str) -> bool:
    """Constant-time bcrypt comparison. False for empty or over-long input."""
    if not raw_password or not password_hash or not password_fits(raw_password):
        return False
    return bcrypt.checkpw(
        raw_password.encode("utf-8"),
        password_hash.encode("utf-8"),
    )


def _normalise_identity(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip().lower()


def _check_field_rules(fields: dict, *, creating: bool) -> None:
    required = ("username", "email", "full_name", "password", "avatar") if creating else ()
    for name in required:
        if name not in fields:
            raise StoreValidationError(f"'{name}' is required.")

    for name in ("username", "full_name", "avatar", "password"):
        if name in fields and not str(fields[name] or "").strip():
            raise StoreValidationError(f"'{name}' must not be blank.")

    if "email" in fields and "@" not in str(fields["email"] or ""):
        raise StoreValidationError("'email' must be a valid email address.")

    if "password" in fields and not password_fits(str(fields["password"])):
        raise StoreValidationError(
            f"'password' must be at most {MAX_PASSWORD_BYTES} bytes."
        )


class CredentialStore:

    def __init__(self, session: Session, bcrypt_rounds: int = 12) -> None:
        self.session = session
        self.bcrypt_rounds = bcrypt_rounds

    # ── Lookups ────────────────────────────────────────────────────────────

    def find_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def find_one(
            self,
            *,
            username: str | None = None,
            email: str | None = None,
    ) -> User | None:
        """
        Returns the first user matching the username OR the email.

        Blank identifiers are ignored; with neither given, returns None.
        """
        clauses = []
        username = _normalise_identity(username)
        email = _normalise_identity(email)
        if username:
            clauses.append(User.username == username)
        if email:
            clauses.append(User.email == email)
        if not clauses:
            return None

        return self.session.execute(
            select(User).where(or_(*clauses)).order_by(User.id).limit(1)
        ).scalar_one_or_none()

    def is_password_correct(self, user: User, raw_password: str) -> bool:
        return check_password(raw_password, user.password_hash)

    # ── Writes ─────────────────────────────────────────────────────────────

    def create(self, fields: dict) -> User:
        """
        Inserts a user. Raises StoreValidationError on a field-rule violation
        and lets sqlalchemy.exc.IntegrityError through on a uniqueness clash.
        """
        fields = self._prepare(fields)
        _check_field_rules(fields, creating=True)

        user = User(
            username=fields["username"],
            email=fields["email"],
            full_name=fields["full_name"].strip(),
            password_hash=hash_password(fields["password"], self.bcrypt_rounds),
            avatar=fields["avatar"],
            cover_image=fields.get("cover_image") or "",
            refresh_token=fields.get("refresh_token"),
        )
        self.session.add(user)
        self.session.flush()
        return user

    def update_by_id(
            self,
            user_id: int,
            patch: dict,
            *,
            validate: bool = True,
    ) -> User | None:
        """
        Applies `patch` to the user and returns the updated record, or None
        when the user does not exist.
        """
        user = self.find_by_id(user_id)
        if user is None:
            return None

        patch = self._prepare(patch)
        if validate:
            _check_field_rules(patch, creating=False)

        for name, value in patch.items():
            if name == "password":
                user.password_hash = hash_password(value, self.bcrypt_rounds)
            else:
                setattr(user, name, value)

        self.session.flush()
        return user

    def swap_refresh_token(self, user_id: int, expected: str, new: str) -> bool:
        """
        Replaces the refresh-token slot only if it still holds `expected`.

        Returns False when another writer got there first (or the slot was
        cleared by logout).
        """
        result = self.session.execute(
            update(User)
            .where(User.id == user_id, User.refresh_token == expected)
            .values(refresh_token=new)
            .execution_options(synchronize_session="evaluate")
        )
        self.session.flush()
        return result.rowcount == 1

    def _prepare(self, fields: dict) -> dict:
        unknown = set(fields) - _WRITABLE_FIELDS
        if unknown:
            raise StoreValidationError(f"Unknown user fields: {sorted(unknown)}")

        prepared = dict(fields)
        for name in ("username", "email"):
            if name in prepared:
                prepared[name] = _normalise_identity(prepared[name])
        return prepared

    # ── Aggregations ───────────────────────────────────────────────────────

    def channel_profile(
            self,
            username: str,
            viewer_id: int | None = None,
    ) -> ChannelProfile | None:
        """
        Loads a channel with its subscriber counts in one round trip.

        subscribers_count            — rows where channel_id    = channel
        channels_subscribed_to_count — rows where subscriber_id = channel
        is_subscribed                — viewer has a row pointing at channel
        """
        subscribers = (
            select(func.count(Subscription.id))
            .where(Subscription.channel_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        subscribed_to = (
            select(func.count(Subscription.id))
            .where(Subscription.subscriber_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        if viewer_id is None:
            is_subscribed = false()
        else:
            is_subscribed = exists().where(
                and_(
                    Subscription.channel_id == User.id,
                    Subscription.subscriber_id == viewer_id,
                )
            )

        row = self.session.execute(
            select(
                User,
                subscribers.label("subscribers_count"),
                subscribed_to.label("channels_subscribed_to_count"),
                is_subscribed.label("is_subscribed"),
            ).where(User.username == _normalise_identity(username))
        ).one_or_none()

        if row is None:
            return None

        return ChannelProfile(
            user=row[0],
            subscribers_count=int(row.subscribers_count or 0),
            channels_subscribed_to_count=int(row.channels_subscribed_to_count or 0),
            is_subscribed=bool(row.is_subscribed),
        )

    def watch_history(self, user_id: int) -> list[WatchedVideo]:
        """
        Returns the user's history in watch order, each video paired with
        its owner (None if the owner row is gone).
        """
        owner = aliased(User, name="owner")
        rows = self.session.execute(
            select(Video, owner)
            .join(WatchHistoryEntry, WatchHistoryEntry.video_id == Video.id)
            .outerjoin(owner, owner.id == Video.owner_id)
            .where(WatchHistoryEntry.user_id == user_id)
            .order_by(WatchHistoryEntry.position, WatchHistoryEntry.id)
        ).all()

        return [WatchedVideo(video=video, owner=video_owner) for video, video_owner in rows]
