"""
settings.py — ORM Models for Runtime Game Settings and Sector Config Versions

GameSetting:
- Key/value flags toggled by operators at runtime (e.g. "cron_enabled").
  Read fresh at the start of every job trigger; never cached in-process.

SectorConfigVersion:
- Append-only history of admin-edited sector configurations. The row with
  the highest id is the active one. document holds the validated JSON.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON

from corpsim.models.base import Base


class GameSetting(Base):
    __tablename__ = "game_setting"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<GameSetting {self.key}={self.value}>"


class SectorConfigVersion(Base):
    __tablename__ = "sector_config_version"

    id = Column(Integer, primary_key=True, index=True)
    version = Column(String, unique=True, nullable=False)
    document = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<SectorConfigVersion {self.version}>"
