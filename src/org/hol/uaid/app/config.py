"""
Configuration Module for the UAID Resolver Service

This module defines the configuration system for the UAID resolver, using
Pydantic for settings validation and dependency injection through AppKeys.

The Settings class is loaded from environment variables with defaults suitable
for development. Application components access settings and shared resources
through typed AppKeys.

Key configuration areas include:
- Service identification and networking
- DNS and HTTP behaviour of the resolution profiles
- Resolution policy (followups, full resolution)
- Error reporting
"""

from typing import Annotated, Final, List, Optional
import logging
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode
from aiohttp import web
from aiohttp import ClientSession

from org.hol.uaid.resolve.aid_dns_web import DEFAULT_AID_SCHEMES
from org.hol.uaid.resolve.ans_dns_web import DEFAULT_ANS_SCHEMES
from org.hol.uaid.resolve.client import UAIDClient


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings for the UAID resolver.

    Values are read from environment variables (``PORT``, ``DNS_TIMEOUT``,
    ``REQUIRE_FULL_RESOLUTION`` ...). List settings accept comma-separated
    strings.
    """

    # Environment and debugging settings
    debug: bool = False
    """
    Enable debug mode for verbose logging.
    Set with DEBUG=true environment variable.
    """

    # Network settings
    http_port: int = Field(alias="port", default=5200)
    """
    HTTP port for the service to listen on.
    Set with PORT environment variable.
    """

    plc_hostname: str = "plc.directory"
    """
    Hostname for the PLC directory service for did:plc resolution.
    Set with PLC_HOSTNAME environment variable.
    """

    # Monitoring and error reporting
    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    # DNS and HTTP
    dns_nameservers: Annotated[List[str], NoDecode] = list()
    """
    Nameservers used for TXT lookups; the system resolver configuration when empty.
    Set with DNS_NAMESERVERS environment variable as comma-separated values.
    """

    dns_timeout: float = 5.0
    """
    Timeout in seconds for a single DNS query.
    Set with DNS_TIMEOUT environment variable.
    """

    http_timeout: float = 30.0
    """
    Total timeout in seconds for agent card retrieval.
    Set with HTTP_TIMEOUT environment variable.
    """

    # Resolution policy
    require_full_resolution: bool = False
    """
    Reject _uaid DNS bindings that no followup profile can resolve to an endpoint.
    Set with REQUIRE_FULL_RESOLUTION environment variable.
    """

    enable_followup_resolution: bool = True
    """
    Delegate _uaid DNS bindings to the ANS, AID or DID profiles.
    Only consulted when full resolution is required; otherwise always on.
    Set with ENABLE_FOLLOWUP_RESOLUTION environment variable.
    """

    ans_supported_schemes: Annotated[List[str], NoDecode] = list(DEFAULT_ANS_SCHEMES)
    """
    Endpoint URI schemes the ANS profile may select.
    Set with ANS_SUPPORTED_SCHEMES environment variable as comma-separated values.
    """

    aid_supported_schemes: Annotated[List[str], NoDecode] = list(DEFAULT_AID_SCHEMES)
    """
    Endpoint URI schemes accepted in _agent records.
    Set with AID_SUPPORTED_SCHEMES environment variable as comma-separated values.
    """

    @field_validator(
        "dns_nameservers", "ans_supported_schemes", "aid_supported_schemes", mode="before"
    )
    @classmethod
    def decode_comma_separated(cls, v) -> List[str]:
        """
        Accept a list or a comma-separated string.

        Raises:
            ValueError: If the input is neither a list nor a string
        """
        if isinstance(v, (list, tuple)):
            return [str(item).strip() for item in v if str(item).strip()]
        elif isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        raise ValueError("expected a list or a comma-separated string")


# Application context keys for dependency injection
SettingsAppKey: Final = web.AppKey("settings", Settings)
"""AppKey for accessing the application settings"""

SessionAppKey: Final = web.AppKey("http_session", ClientSession)
"""AppKey for accessing the shared aiohttp client session"""

UAIDClientAppKey: Final = web.AppKey("uaid_client", UAIDClient)
"""AppKey for accessing the UAID client"""
