import logging
from dataclasses import dataclass

from ccazure.errors import AuthenticationError, IdentityResolutionError
from ccazure.run import AzureCLI

logger = logging.getLogger(__name__)

LOGIN_HELP = (
    "Azure CLI is not logged in. Run 'az login' (or 'az login --service-principal ...') "
    "with an identity in the target tenant and re-run."
)


@dataclass(frozen=True)
class Principal:
    object_id: str
    principal_type: str  # "User" or "ServicePrincipal"
    name: str = ""

    @property
    def display(self) -> str:
        return f"{self.principal_type} {self.name or self.object_id}"


class AzureAccount:
    """
    Reads the signed-in Azure CLI context and resolves the calling principal.
    """

    @staticmethod
    def show(az: AzureCLI) -> dict:
        """
        Returns `az account show`.

        Raises:
            AuthenticationError: No login, or the CLI is missing.
        """
        account = az.query(["az", "account", "show"])
        if not isinstance(account, dict) or not account.get("id"):
            raise AuthenticationError(LOGIN_HELP, login_message="Run 'az login' and re-run.")
        return account

    @staticmethod
    def resolve_principal(az: AzureCLI, account: dict) -> Principal:
        """
        Resolves the object id of the user or service principal behind the CLI session.

        Raises:
            IdentityResolutionError: The directory lookup failed or returned nothing.
        """
        user = account.get("user") or {}
        name = user.get("name", "")
        kind = (user.get("type") or "").lower()

        if kind == "user":
            oid = az.query(["az", "ad", "signed-in-user", "show", "--query", "id"])
            principal_type = "User"
        elif kind == "serviceprincipal" and name:
            oid = az.query(["az", "ad", "sp", "show", "--id", name, "--query", "id"])
            principal_type = "ServicePrincipal"
        else:
            oid, principal_type = None, ""

        if not isinstance(oid, str) or not oid:
            raise IdentityResolutionError(
                f"Could not resolve the object id of the signed-in identity '{name or 'unknown'}' "
                f"(type '{user.get('type', 'unknown')}'). Make sure it exists in the tenant's directory."
            )

        logger.info("[AzureAccount] Signed in as %s %s (%s)", principal_type, name, oid)
        return Principal(object_id=oid, principal_type=principal_type, name=name)
