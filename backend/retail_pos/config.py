"""
retail_pos/config.py - Application configuration and Firebase initialization.

This module defines a Pydantic BaseSettings class to load configuration from environment,
and lazily initializes the Firebase Admin SDK (async Firestore client) from the provided credentials.
Other modules import `settings` for configuration and call `get_db()` when they need Firestore.
"""
from functools import lru_cache
from typing import Literal, Optional

import firebase_admin
from firebase_admin import credentials, firestore_async
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""
    firebase_cred_file: str = Field('firebase_service_account.json', env='FIREBASE_CRED_FILE')
    firebase_project_id: Optional[str] = Field(None, env='FIREBASE_PROJECT_ID')

    # Firebase credentials from environment variables (for Cloud Run)
    firebase_private_key_id: Optional[str] = Field(None, env='FIREBASE_PRIVATE_KEY_ID')
    firebase_private_key: Optional[str] = Field(None, env='FIREBASE_PRIVATE_KEY')
    firebase_client_email: Optional[str] = Field(None, env='FIREBASE_CLIENT_EMAIL')
    firebase_client_id: Optional[str] = Field(None, env='FIREBASE_CLIENT_ID')
    firebase_auth_uri: Optional[str] = Field(None, env='FIREBASE_AUTH_URI')
    firebase_token_uri: Optional[str] = Field(None, env='FIREBASE_TOKEN_URI')
    firebase_auth_provider_x509_cert_url: Optional[str] = Field(None, env='FIREBASE_AUTH_PROVIDER_X509_CERT_URL')
    firebase_client_x509_cert_url: Optional[str] = Field(None, env='FIREBASE_CLIENT_X509_CERT_URL')

    # Prefix for every Firestore collection (e.g. "dev_" → dev_products, dev_orders)
    firebase_collection_prefix: str = Field('', env='FIREBASE_COLLECTION_PREFIX')

    # Checkout policy
    tax_rate: float = Field(0.12, ge=0, le=1, env='TAX_RATE')
    currency_symbol: str = Field('₱', env='CURRENCY_SYMBOL')
    order_size_limit_bytes: int = Field(1_048_576, env='ORDER_SIZE_LIMIT_BYTES')
    order_size_threshold_bytes: int = Field(900_000, env='ORDER_SIZE_THRESHOLD_BYTES')
    max_items_per_chunk: int = Field(30, ge=1, env='MAX_ITEMS_PER_CHUNK')
    stock_write_mode: Literal["set", "increment"] = Field("set", env='STOCK_WRITE_MODE')

    # Inventory
    low_stock_threshold: int = Field(10, ge=0, env='LOW_STOCK_THRESHOLD')
    catalog_refresh_minutes: int = Field(5, ge=0, env='CATALOG_REFRESH_MINUTES')  # 0 disables the job
    session_idle_minutes: int = Field(60, ge=0, env='SESSION_IDLE_MINUTES')  # 0 keeps sessions forever

    debug: bool = Field(False, env='DEBUG')
    allow_mock_tokens: bool = Field(False, env='ALLOW_MOCK_TOKENS')
    allowed_origins: str = Field('*', env='ALLOWED_ORIGINS')  # Comma-separated list or '*' for all

    def model_post_init(self, __context):
        """The split threshold must leave headroom below the backend document ceiling."""
        if self.order_size_threshold_bytes >= self.order_size_limit_bytes:
            raise ValueError("ORDER_SIZE_THRESHOLD_BYTES must be below ORDER_SIZE_LIMIT_BYTES")

    def collection(self, name: str) -> str:
        return f"{self.firebase_collection_prefix}{name}" if self.firebase_collection_prefix else name

    class Config:
        env_file = ".env"
        case_sensitive = False


# Load settings from environment (.env file, etc.)
settings = Settings()


def _credential(cfg: Settings) -> credentials.Certificate:
    # Check if we have environment variables for Firebase credentials (Cloud Run)
    if all([
        cfg.firebase_private_key_id,
        cfg.firebase_private_key,
        cfg.firebase_client_email,
        cfg.firebase_client_id,
        cfg.firebase_auth_uri,
        cfg.firebase_token_uri,
        cfg.firebase_auth_provider_x509_cert_url,
        cfg.firebase_client_x509_cert_url
    ]):
        cred_dict = {
            "type": "service_account",
            "project_id": cfg.firebase_project_id,
            "private_key_id": cfg.firebase_private_key_id,
            "private_key": cfg.firebase_private_key.replace("\\n", "\n"),
            "client_email": cfg.firebase_client_email,
            "client_id": cfg.firebase_client_id,
            "auth_uri": cfg.firebase_auth_uri,
            "token_uri": cfg.firebase_token_uri,
            "auth_provider_x509_cert_url": cfg.firebase_auth_provider_x509_cert_url,
            "client_x509_cert_url": cfg.firebase_client_x509_cert_url
        }
        return credentials.Certificate(cred_dict)
    # Use service account file (local development)
    return credentials.Certificate(cfg.firebase_cred_file)


def get_firebase_app() -> firebase_admin.App:
    """Initialize the Firebase Admin SDK once and return the default app."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    options = {}
    if settings.firebase_project_id:
        options['projectId'] = settings.firebase_project_id
    try:
        return firebase_admin.initialize_app(_credential(settings), options)
    except ValueError as e:
        if "already exists" in str(e):
            return firebase_admin.get_app()
        raise


@lru_cache(maxsize=1)
def get_db():
    """Async Firestore client bound to the default Firebase app."""
    return firestore_async.client(get_firebase_app())
