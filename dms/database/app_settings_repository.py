"""Repository for the singleton AppSettings row."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from dms.database.models import AppSettingsDB
from dms.models.app_settings import AppSettings, AppSettingsUpdate

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = "global"


class AppSettingsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self) -> AppSettings:
        """Current settings; all fields are null until the first update."""
        row = self.db.query(AppSettingsDB).filter(AppSettingsDB.id == SETTINGS_ROW_ID).first()
        return row.to_pydantic() if row else AppSettings()

    def update(self, update: AppSettingsUpdate, updated_by: str) -> AppSettings:
        """Apply the fields present in `update`, creating the row on first use."""
        now = datetime.utcnow()
        row = self.db.query(AppSettingsDB).filter(AppSettingsDB.id == SETTINGS_ROW_ID).first()
        if row is None:
            row = AppSettingsDB(id=SETTINGS_ROW_ID, created_at=now)
            self.db.add(row)

        for field, value in update.model_dump(exclude_unset=True).items():
            setattr(row, field, value)
        row.updated_by = updated_by
        row.updated_at = now

        try:
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Updated app settings (by {updated_by})")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update app settings: {type(e).__name__}: {str(e)}")
            raise
