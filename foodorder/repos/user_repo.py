# foodorder/repos/user_repo.py
from sqlalchemy.orm import Session

from foodorder.data.models.user import UserModel


class UserRepo:
    """Profile klientow. Zapis tylko flush, commit robi serwis."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def add_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.flush()
        return user

    def update_contact(self, user: UserModel, name: str, phone_number: str | None) -> UserModel:
        # kolejne zamowienia wezma nowy snapshot, stare zostaja bez zmian
        user.name = name
        user.phone_number = phone_number
        self.db.flush()
        return user

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
