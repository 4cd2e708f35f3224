"""Repository for Plant database operations."""

import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from dms.database.models import PlantDB, UserDB
from dms.models.plant import Plant

logger = logging.getLogger(__name__)


class PlantRepository:
    """Repository for Plant database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, plant: Plant) -> Plant:
        """Create a new plant (code must already be normalized)."""
        try:
            plant_db = PlantDB.from_pydantic(plant)
            self.db.add(plant_db)
            self.db.commit()
            self.db.refresh(plant_db)
            logger.debug(f"Created plant {plant.id}: {plant.code}")
            return plant_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create plant {plant.code}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, plant_id: str) -> Optional[Plant]:
        """Get plant by ID."""
        plant_db = self.db.query(PlantDB).filter(PlantDB.id == plant_id).first()
        return plant_db.to_pydantic() if plant_db else None

    def get_by_code(self, code: str) -> Optional[Plant]:
        """Get plant by code (codes are stored upper-case)."""
        plant_db = self.db.query(PlantDB).filter(PlantDB.code == code.strip().upper()).first()
        return plant_db.to_pydantic() if plant_db else None

    def list(self, active_only: bool = False) -> List[Plant]:
        """List plants ordered by name."""
        query = self.db.query(PlantDB)
        if active_only:
            query = query.filter(PlantDB.is_active.is_(True))
        return [row.to_pydantic() for row in query.order_by(PlantDB.name).all()]

    def is_in_use(self, plant: Plant) -> bool:
        """Whether any user's plant text names this plant (by code or name, ignoring case)."""
        row = self.db.query(UserDB.id).filter(
            or_(
                func.lower(func.trim(UserDB.plant)) == plant.code.strip().lower(),
                func.lower(func.trim(UserDB.plant)) == plant.name.strip().lower(),
            )
        ).first()
        return row is not None

    def update(self, plant: Plant) -> Plant:
        """Persist mutable fields of an existing plant (the code never changes)."""
        plant_db = self.db.query(PlantDB).filter(PlantDB.id == plant.id).first()
        if not plant_db:
            raise ValueError(f"Plant {plant.id} not found")

        plant_db.name = plant.name
        plant_db.is_active = plant.is_active
        plant_db.address = plant.address
        plant_db.city = plant.city
        plant_db.state = plant.state
        plant_db.country = plant.country
        plant_db.postal_code = plant.postal_code
        plant_db.contact_person = plant.contact_person
        plant_db.contact_email = plant.contact_email
        plant_db.contact_phone = plant.contact_phone
        plant_db.updated_at = plant.updated_at

        try:
            self.db.commit()
            self.db.refresh(plant_db)
            logger.debug(f"Updated plant {plant.id}: {plant.code}")
            return plant_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update plant {plant.id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, plant_id: str) -> bool:
        """Delete a plant by ID."""
        plant_db = self.db.query(PlantDB).filter(PlantDB.id == plant_id).first()
        if not plant_db:
            return False

        try:
            self.db.delete(plant_db)
            self.db.commit()
            logger.debug(f"Deleted plant {plant_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete plant {plant_id}: {type(e).__name__}: {str(e)}")
            raise
