"""Settings for the ChainProfile SDK.

Values come from init kwargs, then ``CHAINPROFILE_*`` environment variables,
then the defaults below.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChainProfileSettings(BaseSettings):
    """Connection, timing and logging settings.

    Attributes:
        node_url: Base URL of the ledger node gateway
        wallet_bridge_url: Base URL of the wallet bridge
        app_name: Name announced to the wallet when enabling it
        request_timeout: Per-request HTTP timeout in seconds
        status_poll_interval: Seconds between transaction status polls
        finality_timeout: Seconds to wait for a terminal transaction status,
            or None to wait indefinitely
        notification_delay: Seconds before a notification hides itself
        log_level: Level for the ``chainprofile_sdk`` logger
        log_json: Render log lines as JSON instead of console output
    """

    model_config = SettingsConfigDict(env_prefix="CHAINPROFILE_", frozen=True)

    node_url: str = "http://127.0.0.1:9944"
    wallet_bridge_url: str = "http://127.0.0.1:9955"
    app_name: str = "my-polkadot-app"
    request_timeout: float = Field(default=30.0, gt=0)
    status_poll_interval: float = Field(default=1.0, gt=0)
    finality_timeout: float | None = Field(default=120.0, gt=0)
    notification_delay: float = Field(default=3.0, gt=0)
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache
def get_settings() -> ChainProfileSettings:
    """Return the process-wide settings, read once from the environment."""
    return ChainProfileSettings()
