"""
User Identity and Profile Module.

The app has no accounts. "The current user" is an opaque identifier generated
on first use and kept in local storage; reviews written from this device carry
it as `user_identifier`, which is how the reviews tab finds them again.

The profile record (username, bio, avatar) is stored next to it as a JSON
object. Defaults are merged under whatever was persisted, so a partial or
corrupt record degrades to the default profile instead of raising.

# NOTE: The identifier is also stored under its own key. A corrupt profile
    record therefore never costs the user their identity (and their reviews).
"""

import base64
import binascii
import json
import logging
import uuid
from typing import Any, Dict, Optional

from resep.models import DEFAULT_USERNAME, ProfileResult, UserProfile
from resep.storage import StorageBackend

logger = logging.getLogger(__name__)

PROFILE_KEY = "user_profile"
IDENTIFIER_KEY = "user_identifier"

# Avatars are stored inline as data URIs; keep them small.
MAX_AVATAR_BYTES = 2 * 1024 * 1024

EDITABLE_FIELDS = ("username", "bio", "avatar")


def generate_identifier() -> str:
    """Return a fresh random user identifier."""
    return f"user_{uuid.uuid4().hex}"


def _data_uri_size(data_uri: str) -> Optional[int]:
    """Decoded size in bytes of a base64 data URI, or None if it is not one."""
    if not data_uri.startswith("data:") or "," not in data_uri:
        return None
    header, _, body = data_uri.partition(",")
    if not header.endswith(";base64"):
        return len(body.encode("utf-8"))
    try:
        return len(base64.b64decode(body, validate=False))
    except (binascii.Error, ValueError):
        return None


def _avatar_error(avatar: Any) -> Optional[str]:
    """Reason why avatar cannot be stored, or None if it can (None clears it)."""
    if avatar is None or avatar == "":
        return None
    if not isinstance(avatar, str):
        return "Avatar must be a data URI"
    size = _data_uri_size(avatar)
    if size is None:
        return "Avatar must be a data URI"
    if size > MAX_AVATAR_BYTES:
        return "Ukuran file maksimal 2MB"
    return None


class ProfileStore:
    """
    Identity and profile of the anonymous local user.

    Args:
        storage: Backend holding the profile and identifier keys
    """

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    def get_identifier(self) -> str:
        """
        Return the user identifier, creating and persisting it on first call.

        The identifier never changes afterwards unless reset() is called.
        """
        identifier = self._read_identifier()
        if identifier:
            return identifier

        identifier = generate_identifier()
        try:
            self.storage.set(IDENTIFIER_KEY, identifier)
        except Exception as e:
            logger.error("Failed to persist user identifier: %s", e, exc_info=True)
        logger.info("Generated new user identifier %s", identifier)
        return identifier

    def get_profile(self) -> UserProfile:
        """Return the stored profile merged over the defaults."""
        stored = self._read_profile_record()
        identifier = self.get_identifier()

        username = stored.get("username")
        bio = stored.get("bio")
        avatar = stored.get("avatar")
        return UserProfile(
            identifier=identifier,
            username=username if isinstance(username, str) and username.strip() else DEFAULT_USERNAME,
            bio=bio if isinstance(bio, str) else "",
            avatar=avatar if isinstance(avatar, str) and avatar else None,
        )

    def save_profile(self, patch: Dict[str, Any]) -> ProfileResult:
        """
        Merge editable fields of patch into the profile and persist it.

        Blank usernames fall back to "Pengguna". An identifier in the patch is
        ignored. An avatar goes through the same checks as update_avatar().

        Returns:
            ProfileResult with the saved profile, or success=False if the
            avatar is invalid or the storage backend failed
        """
        if "avatar" in patch:
            error = _avatar_error(patch["avatar"])
            if error:
                return ProfileResult(success=False, message=error)

        current = self.get_profile().to_dict()
        for field in EDITABLE_FIELDS:
            if field in patch:
                current[field] = patch[field]

        username = current.get("username")
        current["username"] = (username.strip() if isinstance(username, str) else "") or DEFAULT_USERNAME
        bio = current.get("bio")
        current["bio"] = bio.strip() if isinstance(bio, str) else ""
        if not current.get("avatar"):
            current["avatar"] = None

        return self._write_profile(UserProfile(**current))

    def update_avatar(self, data_uri: Optional[str]) -> ProfileResult:
        """
        Replace the avatar only. None clears it.

        Returns:
            ProfileResult; fails if the image is larger than 2 MiB or the write fails
        """
        error = _avatar_error(data_uri)
        if error:
            return ProfileResult(success=False, message=error)

        profile = self.get_profile()
        profile.avatar = data_uri or None
        return self._write_profile(profile)

    def reset(self) -> None:
        """Forget the profile and identifier. The next read creates a new identity."""
        self.storage.remove(PROFILE_KEY)
        self.storage.remove(IDENTIFIER_KEY)

    def _read_identifier(self) -> Optional[str]:
        try:
            identifier = self.storage.get(IDENTIFIER_KEY)
        except Exception as e:
            logger.error("Failed to read user identifier: %s", e, exc_info=True)
            identifier = None
        if identifier:
            return identifier

        # Records written before the identifier had its own key
        legacy = self._read_profile_record().get("identifier")
        if isinstance(legacy, str) and legacy:
            try:
                self.storage.set(IDENTIFIER_KEY, legacy)
            except Exception as e:
                logger.error("Failed to persist user identifier: %s", e, exc_info=True)
            return legacy
        return None

    def _read_profile_record(self) -> Dict[str, Any]:
        try:
            raw = self.storage.get(PROFILE_KEY)
        except Exception as e:
            logger.error("Failed to read user profile: %s", e, exc_info=True)
            return {}
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed user profile: %s", e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_profile(self, profile: UserProfile) -> ProfileResult:
        try:
            self.storage.set(PROFILE_KEY, json.dumps(profile.to_dict()))
        except Exception as e:
            logger.error("Failed to save user profile: %s", e, exc_info=True)
            return ProfileResult(success=False, message=str(e))
        return ProfileResult(success=True, data=profile)
