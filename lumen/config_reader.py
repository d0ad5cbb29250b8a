import os

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

start_path = os.path.dirname(os.path.dirname(__file__)) + '/'
dotenv_path = os.path.join(start_path, '.env')


class Settings(BaseSettings):
    network: str = "test"
    horizon_url: str | None = None
    network_passphrase: str | None = None
    base_fee: int = 100

    # memory://, file:<path> or redis://host:port/db
    store_url: str = "file:" + os.path.join(os.path.expanduser("~"), ".lumen-data.json")
    namespace: str = "default"

    log_level: str = "WARNING"
    log_file: str | None = None
    sentry_dsn: SecretStr | None = None

    # print "error" instead of exiting on failures
    testing: bool = False

    model_config = SettingsConfigDict(
        env_prefix='lumen_',
        env_file=dotenv_path,
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False
    )


config: Settings = Settings()
