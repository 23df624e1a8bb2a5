import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from config import get_settings
from database import get_database
from routers import dashboard, donations, inventory, requests
from services.stock_store import StockRecordStore

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await StockRecordStore.from_settings(get_database(), settings).ensure_indexes()
    logger.info("Stock record indexes ensured on %s", settings.db_name)
    yield


app = FastAPI(title="Blood Stock Ledger API", lifespan=lifespan)

api_router = APIRouter(prefix="/api")
api_router.include_router(dashboard.router)
api_router.include_router(inventory.router)
api_router.include_router(donations.router)
api_router.include_router(requests.router)

app.include_router(api_router)
