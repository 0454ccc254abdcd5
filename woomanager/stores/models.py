"""SQL record-store tables (stores, webhook registrations, notifications)."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from woomanager.common.db import Base


class StoreRow(Base):
    """Operator account plus the credentials of its connected store."""

    __tablename__ = "stores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String, default="")
    app_user_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    store_url: Mapped[str] = mapped_column(String, default="")
    consumer_key: Mapped[str] = mapped_column(String, default="")
    consumer_secret: Mapped[str] = mapped_column(String, default="")
    woo_key_id: Mapped[str] = mapped_column(String, default="")
    razorpay_key_id: Mapped[str] = mapped_column(String, default="")
    razorpay_key_secret_enc: Mapped[str] = mapped_column(String, default="")
    razorpay_skipped: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class WebhookRegistrationRow(Base):
    """One upstream webhook created for a store; rows are never deduplicated."""

    __tablename__ = "webhook_registrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    webhook_id: Mapped[str] = mapped_column(String)
    topic: Mapped[str] = mapped_column(String)
    delivery_url: Mapped[str] = mapped_column(String)
    status: Mapped[str] = mapped_column(String, default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class NotificationEventRow(Base):
    """Append-only history of inbound store events."""

    __tablename__ = "notification_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(Integer, index=True)
    topic: Mapped[str] = mapped_column(String)
    resource: Mapped[str] = mapped_column(String)
    event: Mapped[str] = mapped_column(String)
    payload: Mapped[dict] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
