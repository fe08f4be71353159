"""
Create all tables on the configured database (development bootstrap).

Production databases are upgraded with alembic (`alembic upgrade head`).
"""

from barbershop.config import settings
from barbershop.database import engine
from barbershop.models import Base


def apply_schema():
    print(f"Using DB: {settings.resolved_database_url}")
    Base.metadata.create_all(bind=engine)
    print("Schema ready.")


if __name__ == "__main__":
    apply_schema()
