# app/core/lifespan.py
# =============================================================================
# File: app/core/lifespan.py
# Description: Application lifespan management (startup/shutdown)
# =============================================================================

import asyncio
import logging
from contextlib import asynccontextmanager
from app.core.fastapi_types import FastAPI

from app.core import __version__
from app.core.app_state import AppState
from app.core.startup.infrastructure import (
   initialize_databases,
   initialize_cache,
   initialize_event_infrastructure,
   initialize_search
)
from app.core.startup.services import (
   initialize_services,
   start_search_indexer
)
from app.core.shutdown import shutdown_all_services

logger = logging.getLogger("message_service.lifespan")


# =============================================================================
# LIFESPAN (Startup/Shutdown)
# =============================================================================
@asynccontextmanager
async def lifespan(app_instance: FastAPI):
   """Application lifespan manager with structured initialization"""

   logger.info(f"Message Service v{__version__} starting up...")

   # Initialize app state
   app_instance.state = AppState()

   try:
       # Phase 1: Primary store
       logger.info("Phase 1: Initializing MongoDB...")
       await initialize_databases(app_instance)

       # Phase 2: Cache
       logger.info("Phase 2: Initializing Redis cache...")
       await initialize_cache(app_instance)

       # Phase 3: Event transport
       logger.info("Phase 3: Initializing Kafka transport...")
       await initialize_event_infrastructure(app_instance)

       # Phase 4: Search
       logger.info("Phase 4: Initializing Elasticsearch...")
       await initialize_search(app_instance)

       # Phase 5: Application services
       logger.info("Phase 5: Initializing application services...")
       await initialize_services(app_instance)

       # Phase 6: Search indexer (Kafka consumer)
       logger.info("Phase 6: Starting search indexer...")
       await start_search_indexer(app_instance)

       logger.info("=" * 60)
       logger.info("Application startup complete - all systems operational")
       logger.info(f"Message Service v{__version__} ready to serve requests")
       logger.info("=" * 60)

       yield

   except Exception as startup_error:
       logger.error(f"Critical error during startup: {startup_error}", exc_info=True)
       raise

   finally:
       logger.info(f"Message Service v{__version__} shutting down...")
       try:
           async with asyncio.timeout(30.0):
               await shutdown_all_services(app_instance)
           logger.info(f"Message Service v{__version__} stopped gracefully")
       except TimeoutError:
           logger.error("Shutdown timed out after 30s, forcing exit")
       except Exception as e:
           logger.error(f"Error during shutdown: {e}", exc_info=True)

# =============================================================================
# EOF
# =============================================================================
