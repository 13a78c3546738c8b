"""User repository: Google sign-in and GitHub connection."""

import logging
from typing import Any, Dict, Optional

from ..config_loader import DEFAULT_CONFIG, get_nested
from ..errors import NotFoundError, ValidationError
from ..models import User, utcnow
from ..slugify import DEFAULT_MAX_ATTEMPTS, generate_slug
from ..storage import DocumentStore

logger = logging.getLogger('booksync.repositories.user')


class UserRepository:
    """User operations over a DocumentStore."""

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.store = store
        self.logger = logger or logging.getLogger('booksync.repositories.user')
        self.slug_max_attempts = get_nested(config or DEFAULT_CONFIG, 'slug.max_attempts', DEFAULT_MAX_ATTEMPTS)

    def get(self, user_id: Any) -> User:
        document = self.store.users.find_one({'_id': user_id})
        if document is None:
            raise NotFoundError("User not found")
        return User.from_document(document)

    def sign_in_or_sign_up(
        self,
        google_id: str,
        email: str,
        google_token: Optional[Dict[str, Any]] = None,
        display_name: str = '',
        avatar_url: str = ''
    ) -> User:
        """
        Return the user for `google_id`, creating it on first sign-in.

        An existing user only gets its stored Google tokens refreshed. The
        first user ever created is an admin.
        """
        if not google_id or not email:
            raise ValidationError("google_id and email are required")

        users = self.store.users
        document = users.find_one({'google_id': google_id})

        if document is not None:
            fresh = {key: value for key, value in (google_token or {}).items() if value}
            if fresh:
                merged = dict(document.get('google_token') or {})
                merged.update(fresh)
                users.update_one({'_id': document['_id']}, {'$set': {'google_token': merged}})
            return self.get(document['_id'])

        slug = generate_slug(users, display_name or email.split('@')[0], max_attempts=self.slug_max_attempts)
        user = User(
            google_id=google_id,
            email=email,
            slug=slug,
            display_name=display_name,
            avatar_url=avatar_url,
            google_token=dict(google_token or {}),
            is_admin=users.count_documents({}) == 0,
            created_at=utcnow()
        )
        user.id = users.insert_one(user.to_document())

        self.logger.info(f"Signed up user '{slug}'{' (admin)' if user.is_admin else ''}")
        return user

    def connect_github(self, user_id: Any, access_token: str) -> User:
        """Store the GitHub OAuth token used for content sync."""
        if not access_token:
            raise ValidationError("GitHub access token is required")

        matched = self.store.users.update_one(
            {'_id': user_id},
            {'$set': {'is_github_connected': True, 'github_access_token': access_token}}
        )
        if not matched:
            raise NotFoundError("User not found")

        self.logger.info(f"Connected GitHub for user {user_id}")
        return self.get(user_id)


__all__ = ['UserRepository']
