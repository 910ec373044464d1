# foodorder/data/seed.py
from foodorder.data.database import SessionLocal
from foodorder.data.models import UserModel


def seed():
    db = SessionLocal()
    try:
        # only seed if empty
        if db.query(UserModel).first():
            return
        db.add_all(
            [
                UserModel(id=1, name="Demo Customer", phone_number="0800000001"),
                UserModel(id=2, name="Second Customer", phone_number="0800000002"),
            ]
        )
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
