# wholesale_cart/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

CART_STORE = os.getenv("CART_STORE", "sql")  # memory | sql | redis
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./carts.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/2")
PRODUCT_SERVICE_URL = os.getenv("PRODUCT_SERVICE_URL", "http://catalog-service:8000")

CART_KEY_PREFIX = os.getenv("CART_KEY_PREFIX", "cart")
EXPIRY_SWEEP_SECONDS = float(os.getenv("EXPIRY_SWEEP_SECONDS", 60))
EXPIRING_SOON_MINUTES = int(os.getenv("EXPIRING_SOON_MINUTES", 30))
DEFAULT_DEPOSIT_PERCENT = int(os.getenv("DEFAULT_DEPOSIT_PERCENT", 30))
ESTIMATED_SHIP_BUSINESS_DAYS = int(os.getenv("ESTIMATED_SHIP_BUSINESS_DAYS", 3))
MAX_NOTICES = int(os.getenv("MAX_NOTICES", 50))
MAX_CACHED_COMPANIES = int(os.getenv("MAX_CACHED_COMPANIES", 1000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
