from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "MyGoalFinance API"
    # hosted provider project (Supabase); the anon key is sent as `apikey` on auth calls
    supabase_url: str = ""
    supabase_anon_key: str = ""
    # direct Postgres connection string of the hosted database
    database_url: str = ""
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"  # override via GEMINI_MODEL in .env if needed
    # Comma-separated origins for CORS.
    cors_allow_origins: str = "*"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]
