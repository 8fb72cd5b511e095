from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Finance Onboarding API"
    # Empty keeps profile persistence in-process; set to a Postgres DSN to persist durably.
    database_url: str = ""
    # TIPS replies switch to the human-coach notice once a conversation reaches this many turns.
    max_turns_before_escalation: int = 8
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
