"""Principal definitions and bearer token acquisition.

Each principal kind is its own dataclass holding exactly the fields it needs.
Required fields are validated at construction so a bad principal fails before
any request reaches the identity provider.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from azure.core.credentials import TokenCredential
from azure.core.exceptions import ClientAuthenticationError
from azure.identity import (
    ClientSecretCredential,
    InteractiveBrowserCredential,
    ManagedIdentityCredential,
)

from .config import DEFAULT_TOKEN_SCOPE
from .exceptions import AuthError

logger = logging.getLogger(__name__)


class PrincipalType(str, Enum):
    """Kinds of identity that can obtain a Fabric token."""

    USER_PRINCIPAL = "UserPrincipal"
    MANAGED_IDENTITY = "ManagedIdentity"
    SERVICE_PRINCIPAL = "ServicePrincipal"


def _require(value: Optional[str], field_name: str, principal: str) -> None:
    if not value or not value.strip():
        raise AuthError(f"{principal} requires {field_name}")


@dataclass(frozen=True)
class UserPrincipal:
    """Interactive user sign-in in the given tenant."""

    tenant_id: str
    subscription_id: str

    principal_type = PrincipalType.USER_PRINCIPAL

    def __post_init__(self):
        _require(self.tenant_id, "tenant_id", "UserPrincipal")
        _require(self.subscription_id, "subscription_id", "UserPrincipal")

    def build_credential(self) -> TokenCredential:
        return InteractiveBrowserCredential(tenant_id=self.tenant_id)


@dataclass(frozen=True)
class ManagedIdentity:
    """Managed identity of the host; client_id selects a user-assigned one."""

    tenant_id: str
    subscription_id: str
    client_id: Optional[str] = None

    principal_type = PrincipalType.MANAGED_IDENTITY

    def __post_init__(self):
        _require(self.tenant_id, "tenant_id", "ManagedIdentity")
        _require(self.subscription_id, "subscription_id", "ManagedIdentity")

    def build_credential(self) -> TokenCredential:
        if self.client_id:
            return ManagedIdentityCredential(client_id=self.client_id)
        return ManagedIdentityCredential()


@dataclass(frozen=True)
class ServicePrincipal:
    """App registration authenticating with a client secret."""

    tenant_id: str
    subscription_id: str
    client_id: str
    client_secret: str

    principal_type = PrincipalType.SERVICE_PRINCIPAL

    def __post_init__(self):
        _require(self.tenant_id, "tenant_id", "ServicePrincipal")
        _require(self.subscription_id, "subscription_id", "ServicePrincipal")
        _require(self.client_id, "client_id", "ServicePrincipal")
        _require(self.client_secret, "client_secret", "ServicePrincipal")

    def build_credential(self) -> TokenCredential:
        return ClientSecretCredential(
            tenant_id=self.tenant_id,
            client_id=self.client_id,
            client_secret=self.client_secret,
        )

    def __repr__(self):
        return (
            f"ServicePrincipal(tenant_id={self.tenant_id!r}, "
            f"subscription_id={self.subscription_id!r}, "
            f"client_id={self.client_id!r}, client_secret='***')"
        )


Principal = Union[UserPrincipal, ManagedIdentity, ServicePrincipal]


def build_principal(
    principal_type: Union[PrincipalType, str],
    tenant_id: str,
    subscription_id: str,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
) -> Principal:
    """Build the principal variant matching principal_type.

    Args:
        principal_type: PrincipalType value or its string name
        tenant_id: Entra ID tenant id
        subscription_id: Azure subscription id
        client_id: App or user-assigned identity client id
        client_secret: Client secret (service principal only)

    Returns:
        Validated principal

    Raises:
        AuthError: If the type is unknown or a required field is missing
    """
    try:
        kind = PrincipalType(principal_type)
    except ValueError:
        valid = ", ".join(p.value for p in PrincipalType)
        raise AuthError(f"Unknown principal type {principal_type!r}", f"Use {valid}")

    if kind is PrincipalType.USER_PRINCIPAL:
        return UserPrincipal(tenant_id=tenant_id, subscription_id=subscription_id)
    if kind is PrincipalType.MANAGED_IDENTITY:
        return ManagedIdentity(
            tenant_id=tenant_id, subscription_id=subscription_id, client_id=client_id
        )
    return ServicePrincipal(
        tenant_id=tenant_id,
        subscription_id=subscription_id,
        client_id=client_id or "",
        client_secret=client_secret or "",
    )


def acquire_token(principal: Principal, scope: str = DEFAULT_TOKEN_SCOPE) -> str:
    """Obtain a bearer token for scope as the given principal.

    Raises:
        AuthError: If the identity provider rejects the credential
    """
    logger.info(
        f"Authenticating as {principal.principal_type.value} in tenant "
        f"{principal.tenant_id} (subscription {principal.subscription_id})"
    )
    credential = principal.build_credential()
    try:
        access_token = credential.get_token(scope)
    except ClientAuthenticationError as e:
        raise AuthError(
            f"Authentication failed for {principal.principal_type.value}",
            e.message or str(e),
        )

    if not access_token or not access_token.token:
        raise AuthError("Identity provider returned no access token")

    logger.debug(f"Token acquired, expires at {access_token.expires_on}")
    return access_token.token
