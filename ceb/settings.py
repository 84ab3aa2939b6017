"""
ceb.settings - Well-known environment variables

Loads the entrypoint's environment using pydantic-settings. Values are kept
as raw strings: most flags are enabled by the mere presence of a non-empty
variable, and PORT is validated by the config resolver so a bad value can
be reported as a ConfigurationError.

Usage:
    >>> from ceb.settings import CEBSettings
    >>> settings = CEBSettings()
    >>> settings.server_tls_enabled
    False
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_DEPLOYMENT_ID = "WAYPOINT_DEPLOYMENT_ID"
ENV_SERVER_ADDR = "WAYPOINT_SERVER_ADDR"
ENV_SERVER_TLS = "WAYPOINT_SERVER_TLS"
ENV_SERVER_TLS_SKIP_VERIFY = "WAYPOINT_SERVER_TLS_SKIP_VERIFY"
ENV_CEB_DISABLE = "WAYPOINT_CEB_DISABLE"
ENV_CEB_SERVER_REQUIRED = "WAYPOINT_CEB_SERVER_REQUIRED"
ENV_CEB_INVITE_TOKEN = "WAYPOINT_CEB_INVITE_TOKEN"
ENV_CEB_LOG_LEVEL = "WAYPOINT_CEB_LOG_LEVEL"
ENV_PORT = "PORT"


class CEBSettings(BaseSettings):
    """Entrypoint configuration loaded from environment variables.

    Every field is bound to its exact variable name through an alias; no
    prefix is applied. Reading happens at construction time, so build a new
    instance whenever the environment may have changed.
    """

    model_config = SettingsConfigDict(extra="ignore")

    # -- Identity --------------------------------------------------------------
    deployment_id: str = Field(default="", alias=ENV_DEPLOYMENT_ID)

    # -- Control plane ---------------------------------------------------------
    server_addr: str = Field(default="", alias=ENV_SERVER_ADDR)
    server_tls: str = Field(default="", alias=ENV_SERVER_TLS)
    server_tls_skip_verify: str = Field(default="", alias=ENV_SERVER_TLS_SKIP_VERIFY)
    server_required: str = Field(default="", alias=ENV_CEB_SERVER_REQUIRED)
    invite_token: str = Field(default="", alias=ENV_CEB_INVITE_TOKEN)

    # -- Entrypoint ------------------------------------------------------------
    disable: str = Field(default="", alias=ENV_CEB_DISABLE)
    port: str = Field(default="", alias=ENV_PORT)
    log_level: str = Field(default="INFO", alias=ENV_CEB_LOG_LEVEL)

    # -- Presence flags --------------------------------------------------------
    # Any non-empty value enables the flag, including "0" and "false".

    @property
    def server_tls_enabled(self) -> bool:
        return self.server_tls != ""

    @property
    def server_tls_skip_verify_enabled(self) -> bool:
        return self.server_tls_skip_verify != ""

    @property
    def server_required_enabled(self) -> bool:
        return self.server_required != ""

    @property
    def disabled(self) -> bool:
        return self.disable != ""
