"""
Configuración de la API de catálogo.

Los valores se leen de variables de entorno (o de un archivo .env); solo
SECRET_KEY es obligatoria.
"""
import logging
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class Settings(BaseSettings):
    """Settings del catálogo (pydantic-settings)."""

    # Base de datos; en producción, una URL postgresql://
    DATABASE_URL: str = "sqlite:///./catalog.db"

    # Firma de los tokens de administrador
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Servicio
    APP_NAME: str = "Catalog API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    # Orígenes CORS separados por coma
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Jerarquía de categorías (0 = raíz)
    CATEGORY_MAX_LEVEL: int = 3

    # Búsqueda de productos
    SEARCH_EXACT_MATCH_SCORE: int = 100
    SEARCH_PARTIAL_MATCH_SCORE: int = 50
    SEARCH_TAG_MATCH_SCORE: int = 75
    SEARCH_CATEGORY_MATCH_SCORE: int = 25
    SEARCH_DEFAULT_LIMIT: int = 10
    SEARCH_MAX_LIMIT: int = 50

    @property
    def allowed_origins_list(self) -> List[str]:
        """ALLOWED_ORIGINS como lista, sin entradas vacías."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


_settings_instance = None


def get_settings() -> Settings:
    """Settings del proceso; se leen del entorno la primera vez."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def setup_logging(level: str = "INFO") -> None:
    """Configurar el logging raíz al arrancar la aplicación."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


settings = get_settings()
