import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.settings.factories import build_system_settings_service

logger = logging.getLogger(__name__)


async def initialize_application_settings(db: AsyncSession) -> None:
    """
    Seeds the system settings table with the built-in defaults.
    Existing keys are left untouched, so this is safe to call on every startup.
    """
    logger.info("Checking and initializing system settings...")
    settings_service = await build_system_settings_service(db)
    created = await settings_service.initialize_defaults()

    if not created:
        logger.info("System settings already initialized.")
        return

    await db.commit()
    logger.info(f"Seeded {created} default system settings.")
