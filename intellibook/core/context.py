# intellibook/core/context.py
"""Explicit runtime context passed down to services"""
from dataclasses import dataclass, field
from typing import Optional

from intellibook.config.database import Database
from intellibook.config.settings import Settings, get_settings
from intellibook.core.locks import BookingLock
from intellibook.services.email.email_service import EmailService
from intellibook.services.notification.notification_service import NotificationService


@dataclass
class BookingContext:
    settings: Settings
    database: Database
    notifier: NotificationService = field(default=None)

    def __post_init__(self):
        if self.notifier is None:
            self.notifier = NotificationService(EmailService(self.settings))

    @property
    def booking_lock(self) -> BookingLock:
        return self.database.booking_lock

    @classmethod
    def create(cls, settings: Optional[Settings] = None, create_tables: bool = True) -> "BookingContext":
        settings = settings or get_settings()
        database = Database(settings)
        if create_tables:
            database.create_tables()
        return cls(settings=settings, database=database)

    def close(self):
        self.database.dispose()
