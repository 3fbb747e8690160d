import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

# Load .env from the package directory or the backend directory
env_path = Path(__file__).parent / '.env'
if not env_path.exists():
    env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


def _csv(value):
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.environ.get('JWT_ACCESS_TOKEN_EXPIRES', 24)))
    MONGO_URI = os.getenv('MONGO_URI', 'mongodb://localhost:27017/splitledger')

    CORS_ORIGINS = _csv(os.environ.get('CORS_ORIGINS', 'http://localhost:8081,http://localhost:19006'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Compare-and-swap attempts for read-modify-write on a single document
    STORE_MAX_RETRIES = int(os.environ.get('STORE_MAX_RETRIES', 5))

    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length'
    MONGO_URI = 'mongodb://localhost:27017/splitledger_test'
    LOG_LEVEL = 'WARNING'
