from sqlalchemy.orm import Session
from foodorder.data.models.user import UserModel
from foodorder.domain.errors import ProfileNotFoundError
from foodorder.repos.user_repo import UserRepo
from foodorder.domain.schemas import UserCreate, UserRead
from foodorder.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    """Profil klienta - zrodlo snapshotu imienia i telefonu w zamowieniu."""

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        """Tworzy profil albo aktualizuje imie i telefon istniejacego."""
        try:
            user = self.repo.get_user(payload.id)
            if user:
                self.repo.update_contact(user, payload.name, payload.phone_number)
                logger.info(f"Zaktualizowano profil {payload.id}")
            else:
                user = self.repo.add_user(
                    UserModel(id=payload.id, name=payload.name, phone_number=payload.phone_number)
                )
                logger.info(f"Utworzono profil {payload.id}")
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return UserRead.model_validate(user)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise ProfileNotFoundError(user_id)
        return UserRead.model_validate(user)
