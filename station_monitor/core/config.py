from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application configuration settings loaded from .env file"""
    
    # Application
    APP_NAME: str = "River Station Monitor"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    
    # Upstream station/member backend (empty = not configured)
    API_BASE_URL: str = ""
    UPSTREAM_TIMEOUT: float = 10.0  # Seconds
    
    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    
    # Bootstrap super admin (loaded from .env)
    ADMIN_USERNAME: str = "riverai"
    ADMIN_PASSWORD: str = "change-me"
    
    # Database
    DATABASE_URL: str = "sqlite:///./station_monitor.db"
    
    # Stop resolution
    RESOLVER_RESULT_SIZE: int = 5
    RESOLVER_CACHE_TTL: int = 300  # Seconds
    RESOLVER_CACHE_SIZE: int = 1000  # Max cached keywords
    MAX_STOPS: int = 7  # Start + up to 5 waypoints + end
    
    # Third-party lookups (optional)
    KAKAO_REST_API_KEY: str = ""
    VWORLD_API_KEY: str = ""
    
    # CORS
    CORS_ORIGINS: str = "*"
    
    # Logging
    LOG_DIR: str = "logs"
    
    @property
    def cors_origins_list(self) -> List[str]:
        """Convert comma-separated CORS origins to list"""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
