"""API credential storage and validation."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass

from ..settings import (
    DEFAULT_API_CLIENT_ID,
    DEFAULT_API_KEY,
    DEFAULT_API_SECRET,
    DEFAULT_PEM_KEY_MARKER,
    CredentialsValidatorConfig,
)

logger = logging.getLogger(__name__)


@dataclass
class Credentials:
    key: str = ""
    secret: str = ""
    client_id: str = ""
    pem_key: str = ""


@dataclass
class CredentialRequirements:
    """Which credential fields an exchange needs. Fixed per adapter."""

    requires_key: bool = False
    requires_secret: bool = False
    requires_client_id: bool = False
    requires_pem: bool = False
    requires_base64_decode_secret: bool = False

    def to_config(self) -> CredentialsValidatorConfig:
        return CredentialsValidatorConfig(
            requires_key=self.requires_key,
            requires_secret=self.requires_secret,
            requires_client_id=self.requires_client_id,
            requires_pem=self.requires_pem,
            requires_base64_decode_secret=self.requires_base64_decode_secret,
        )


def decode_base64(value: str) -> bytes:
    """Strictly decode a base64 string.

    Raises:
        ValueError: If the value is not valid base64
    """
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64 value: {exc}") from exc


def validate_credentials(requirements: CredentialRequirements, credentials: Credentials) -> bool:
    """Check that every required credential is set and not a placeholder."""
    if requirements.requires_key:
        if not credentials.key or credentials.key == DEFAULT_API_KEY:
            return False

    if requirements.requires_secret:
        if not credentials.secret or credentials.secret == DEFAULT_API_SECRET:
            return False

    if requirements.requires_pem:
        if not credentials.pem_key or DEFAULT_PEM_KEY_MARKER in credentials.pem_key:
            return False

    if requirements.requires_client_id:
        if not credentials.client_id or credentials.client_id == DEFAULT_API_CLIENT_ID:
            return False

    if requirements.requires_base64_decode_secret:
        try:
            decode_base64(credentials.secret)
        except ValueError:
            return False

    return True
