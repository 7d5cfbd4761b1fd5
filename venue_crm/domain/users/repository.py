"""User repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import User
from ...shared.pagination import Pagination, build_search_filter, paginate_query

SORT_FIELDS = {
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "createdAt": User.created_at,
    "updatedAt": User.updated_at,
}


class UserRepository:
    @staticmethod
    def list_users(
        db: Session,
        pagination: Pagination,
        order_by,
        role: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[User], int]:
        query = db.query(User)
        if role:
            query = query.filter(User.role == role)
        search_filter = build_search_filter([User.name, User.email], search)
        if search_filter is not None:
            query = query.filter(search_filter)
        return paginate_query(query, pagination, order_by)

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def add_user(db: Session, user: User) -> User:
        db.add(user)
        db.flush()
        return user
