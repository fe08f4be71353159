"""
Seed barbers and services.

  SEED_BARBERS   comma list of id:name        (default "barber_1:Barber 1")
  SEED_SERVICES  comma list of id:name:minutes (default haircut / beard / combo)

Existing rows are left untouched, so the script can be re-run safely.
"""

import os

from dotenv import load_dotenv


# ======================================================
# ENV
# ======================================================

load_dotenv()

SEED_BARBERS = os.getenv("SEED_BARBERS", "barber_1:Barber 1")
SEED_SERVICES = os.getenv(
    "SEED_SERVICES",
    "haircut:Haircut:40,beard:Beard Trim:20,combo:Haircut & Beard:60",
)

from barbershop.database import SessionLocal, engine  # noqa: E402
from barbershop.models import Barbers, Base, Services  # noqa: E402


def parse_entries(raw: str, fields: int) -> list[list[str]]:
    entries = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        parts = [p.strip() for p in item.split(":")]
        if len(parts) != fields:
            raise RuntimeError(f"Invalid seed entry: {item!r}")
        entries.append(parts)
    return entries


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        for order, (barber_id, name) in enumerate(parse_entries(SEED_BARBERS, 2)):
            if db.get(Barbers, barber_id):
                print(f"= barber {barber_id} exists")
                continue
            db.add(Barbers(barber_id=barber_id, name=name, is_active=1, display_order=order))
            print(f"+ barber {barber_id}")

        for order, (service_id, name, minutes) in enumerate(parse_entries(SEED_SERVICES, 3)):
            if db.get(Services, service_id):
                print(f"= service {service_id} exists")
                continue
            db.add(Services(
                service_id=service_id,
                name=name,
                duration=int(minutes),
                is_active=1,
                display_order=order,
            ))
            print(f"+ service {service_id}")

        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
