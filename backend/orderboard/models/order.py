from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from sqlalchemy import String, Text, JSON, DateTime, text
from typing import Optional, List, Dict

from .identity import Base, new_id
from ..constants.table import STATUS_PENDING, TABLE_CONFIG_ID


def _utcnow():
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = 'orders'
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # '' when columns[0] matched no identity; such rows are invisible to every CLIENT
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False, default='', index=True)
    owner_email: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    # Denormalized snapshot taken at the last owner resolution, never refreshed live
    owner_display_name: Mapped[Optional[str]] = mapped_column(String(128))
    owner_photo_base64: Mapped[Optional[str]] = mapped_column(Text)
    columns: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_PENDING)
    # Append-only list of {'name', 'data'} where data is a data URI
    attachments: Mapped[List[Dict[str, str]]] = mapped_column(JSON, nullable=False, default=list)
    # microsecond precision keeps insertion order within one second
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))


class TableConfig(Base):
    """Singleton holding the ordered header labels shared by every order row."""
    __tablename__ = 'table_config'
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=TABLE_CONFIG_ID)
    headers: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))
