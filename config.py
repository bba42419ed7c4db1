import os
from dotenv import load_dotenv

load_dotenv()


def _database_url():
    url = os.environ.get('DATABASE_URL')
    if not url:
        return None
    # Heroku still hands out the old scheme
    if url.startswith('postgres://'):
        url = 'postgresql://' + url[len('postgres://'):]
    return url


def _env_flag(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    # --- 1. BASIC CONFIG ---
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'parking_share_dev_secret_key'
    ENV_NAME = os.environ.get('FLASK_ENV') or 'development'
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # --- 2. STORAGE ---
    # No DATABASE_URL means the in-memory store is used
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}
    SEED_SAMPLE_DATA = _env_flag('SEED_SAMPLE_DATA', True)

    # --- 3. API ---
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]
    EXPIRING_DAYS_DEFAULT = 7
    ACTIVITY_LOG_DEFAULT_LIMIT = None


class TestingConfig(Config):
    TESTING = True
    ENV_NAME = 'testing'
    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SEED_SAMPLE_DATA = False
