"""
# `retail_pos/main.py` - Application Entry Point

## Overview
Creates the FastAPI app, configures logging and CORS, mounts the routers and
runs the background scheduler.

---

## Routers
- `/pos` - cart, checkout (normal and split), receipt
- `/products` - inventory listing, barcode lookup/restock, product CRUD
- `/reports` - sales summary, order history, split-order reassembly

All of them require a Firebase ID token of a non-guest account.

---

## Background Scheduler
- **Library:** APScheduler (`AsyncIOScheduler`)
- **Job:** `sync_catalog_snapshots_once` (reloads the catalog snapshot of idle POS sessions)
- **Interval:** every `CATALOG_REFRESH_MINUTES` minutes (`0` disables the job)
- **Job:** `PosSessionRegistry.evict_idle` (drops idle sessions with an empty cart after `SESSION_IDLE_MINUTES`)

**Events:**
- `startup`: the scheduler starts.
- `shutdown`: the scheduler stops.
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from retail_pos.config import settings
from retail_pos.core.deps import registry
from retail_pos.routers import pos, products, reports
from retail_pos.services.catalog_sync import sync_catalog_snapshots_once

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("pos")

# Single scheduler instance for the process
scheduler = AsyncIOScheduler()

app = FastAPI(
    title="Retail POS API",
    description="Point-of-sale checkout, inventory and sales reports for small retail businesses.",
    version="1.0.0",
)

# Configure CORS (allow front-end domain or all origins as specified)
allow_origins = [origin.strip() for origin in settings.allowed_origins.split(',')] if settings.allowed_origins else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pos.router)
app.include_router(products.router)
app.include_router(reports.router)


@app.on_event("startup")
async def _startup_scheduler():
    if settings.catalog_refresh_minutes > 0:
        scheduler.add_job(
            sync_catalog_snapshots_once,
            "interval",
            args=[registry],
            minutes=settings.catalog_refresh_minutes,
            id="catalog-sync",
            replace_existing=True,
        )
    else:
        logger.info("Catalog refresh job disabled")
    if settings.session_idle_minutes > 0:
        scheduler.add_job(
            registry.evict_idle,
            "interval",
            minutes=max(1, settings.session_idle_minutes // 4),
            id="session-evict",
            replace_existing=True,
        )
    if scheduler.get_jobs() and not scheduler.running:
        scheduler.start()


@app.on_event("shutdown")
async def _shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)


# Run the app directly with uvicorn (for development)
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("retail_pos.main:app", host="0.0.0.0", port=8000, reload=True)
