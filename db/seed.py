# Insert Configured Offices If Missing
import logging
from typing import List

from sqlmodel import Session, select

from core.config import OfficeConfig, load_settings
from models.office import Office

logger = logging.getLogger(__name__)


def seed_offices(engine, offices: List[OfficeConfig]) -> List[Office]:
    """
    Insert every configured office that is not yet in the table and return the
    full office list in match order. Existing rows are left untouched.
    """
    with Session(engine) as session:
        for position, config in enumerate(offices):
            existing = session.get(Office, config.id)
            if existing:
                logger.info(f"[SEED] Office {config.id} already exists")
                continue
            session.add(
                Office(
                    id=config.id,
                    latitude=config.latitude,
                    longitude=config.longitude,
                    radius_km=config.radius_km,
                    position=position,
                )
            )
            logger.info(f"[SEED] Added office {config.id}")

        session.commit()

        loaded = session.exec(select(Office).order_by(Office.position, Office.id)).all()
        # Detach from session so the geofence matcher can hold them
        session.expunge_all()
        return list(loaded)


if __name__ == "__main__":
    from sqlmodel import SQLModel

    from db.session import get_engine

    logging.basicConfig(level=logging.INFO)
    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    seed_offices(engine, load_settings().offices)
