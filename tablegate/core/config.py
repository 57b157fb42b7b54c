from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "mysql+aiomysql://root@localhost/my_first_database"
    DB_POOL_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30
    QUERY_TIMEOUT: float = 30
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create a single instance of the settings to use everywhere
settings = Settings()
