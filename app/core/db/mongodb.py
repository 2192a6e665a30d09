import logging

from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie

from app.core.setting import config
from app.core.models.company import Company
from app.core.models.catalog import CatalogItem
from app.core.models.user import UserAccount
from app.core.models.order import Order
from app.core.models.production.production_summary import DailyProductSummary
from app.core.models.production.production_group import ProductionGroup

logger = logging.getLogger(__name__)

DOCUMENT_MODELS = [
    Company,
    CatalogItem,
    UserAccount,
    Order,
    DailyProductSummary,
    ProductionGroup,
]

motor_client = None

async def connect_to_mongo():
    global motor_client

    motor_client = AsyncIOMotorClient(str(config.MONGODB_URL))

    # Initialize Beanie with the database and the list of document models
    await init_beanie(
        database=motor_client[config.DATABASE_NAME],
        document_models=DOCUMENT_MODELS,
    )
    logger.info(f"Successfully connected to MongoDB at {config.DATABASE_NAME}")

async def close_mongo_connection():
    global motor_client
    if motor_client:
        motor_client.close()
        motor_client = None
    logger.info("Closed MongoDB connection")
