"""Main entry point for the challenge bot"""
import logging
import asyncio
from challenge_bot.config import validate_config, AI_MODEL, DATABASE_URL, LOG_LEVEL, STORAGE_BACKEND
from challenge_bot.bot import create_bot_application
from challenge_bot.db.connection import Database
from challenge_bot.db.memory_store import InMemoryStore
from challenge_bot.db.postgres_store import PostgresStore
from challenge_bot.services.ai_client import AIClient
from challenge_bot.services.container import ServiceContainer

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


async def main() -> None:
    """Main application entry point"""
    app = None
    database = None
    try:
        # Validate configuration
        logger.info("Validating configuration...")
        validate_config()

        # Initialize storage
        if STORAGE_BACKEND == "memory":
            logger.warning("Using in-memory storage; all progress is lost on restart")
            store = InMemoryStore()
        else:
            logger.info("Initializing database connection pool...")
            database = Database(DATABASE_URL)
            await database.init_pool()
            await database.apply_schema()
            store = PostgresStore(database)

        container = ServiceContainer(store=store, ai_client=AIClient(AI_MODEL))

        # Create and start bot
        logger.info("Starting Telegram bot...")
        app = create_bot_application(container)

        # Run the bot
        logger.info("Bot is running. Press Ctrl+C to stop.")
        await app.initialize()
        await app.start()
        await app.updater.start_polling()

        # Keep running until interrupted
        await asyncio.Event().wait()

    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
    finally:
        # Cleanup
        if app:
            logger.info("Stopping bot...")
            if app.updater and app.updater.running:
                await app.updater.stop()
            await app.stop()
            await app.shutdown()

        if database:
            logger.info("Closing database connection...")
            await database.close_pool()

        logger.info("Shutdown complete")


def run() -> None:
    """Console script entry point"""
    asyncio.run(main())


if __name__ == "__main__":
    run()
