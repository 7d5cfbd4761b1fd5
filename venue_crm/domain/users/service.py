"""User service - OAuth sign-in upsert and user administration"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...errors import bad_request, not_found
from ...models import User
from ...oauth import OAuthProfile
from ...permissions import Role
from ...shared.pagination import apply_pagination, create_paginated_result, resolve_sort
from .repository import SORT_FIELDS, UserRepository
from .schemas import UserCreate, UserRoleUpdate

logger = logging.getLogger(__name__)

# Provider recorded for users an admin created before their first sign-in
INVITED_PROVIDER = "invited"


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def find_or_create_from_oauth(self, profile: OAuthProfile) -> User:
        """
        Upsert the user behind an OAuth profile, matched by email.

        Name, provider and provider id are refreshed on every sign-in so a
        pre-provisioned user picks up their real identity.
        """
        name = profile.name.strip() or profile.email.split("@")[0]

        with unit_of_work(self.db):
            user = self.repo.get_user_by_email(self.db, profile.email)
            if user:
                user.name = name
                user.provider = profile.provider
                user.provider_id = profile.provider_id
                created = False
            else:
                user = self.repo.add_user(
                    self.db,
                    User(
                        email=profile.email,
                        name=name,
                        role=Role.CONSULTANT.value,
                        provider=profile.provider,
                        provider_id=profile.provider_id,
                    ),
                )
                created = True

        self.db.refresh(user)
        if created:
            logger.info(f"✅ Created user {user.id} ({user.email}) from {profile.provider} sign-in")
        else:
            logger.info(f"✅ {profile.provider} sign-in for existing user {user.id} ({user.email})")
        return user

    def list_users(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        role: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> dict:
        pagination = apply_pagination(page, limit, default_limit=20)
        users, total = self.repo.list_users(
            self.db,
            pagination,
            resolve_sort(SORT_FIELDS, sort_by, sort_order),
            role=role,
            search=search,
        )
        return create_paginated_result(users, total, pagination.page, pagination.limit)

    def create_user(self, data: UserCreate, admin: User) -> User:
        """Pre-provision a user; a duplicate email surfaces as the unique-constraint conflict"""
        with unit_of_work(self.db):
            user = self.repo.add_user(
                self.db,
                User(
                    email=data.email,
                    name=data.name,
                    role=data.role.value,
                    provider=INVITED_PROVIDER,
                    provider_id="",
                ),
            )

        self.db.refresh(user)
        logger.info(f"✅ User {user.id} ({user.email}) provisioned as {user.role} by admin {admin.id}")
        return user

    def update_role(self, user_id: int, data: UserRoleUpdate, admin: User) -> User:
        user = self.repo.get_user_by_id(self.db, user_id)
        if not user:
            raise not_found("User not found")
        if user.id == admin.id and data.role != Role.ADMIN:
            raise bad_request("You cannot remove your own admin role", field="role")

        previous = user.role
        with unit_of_work(self.db):
            user.role = data.role.value

        self.db.refresh(user)
        logger.info(f"🔑 User {user.id} role changed {previous} -> {user.role} by admin {admin.id}")
        return user
