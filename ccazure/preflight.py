"""
Local preflight: every permission check is a direct Azure CLI / Graph query.

Order of checks:
  1. disabled               -> ok, nothing queried
  2. scope ids missing      -> fail, nothing queried
  3. CLI login              -> AuthenticationError
  4. calling principal      -> IdentityResolutionError
  5. management-group role  -> self-grant / AuthorizationError / GrantError
  6. persisted grant record -> consumed once after re-authentication
  7. subscription role and directory admin role

A run always returns a complete PreflightResult; nothing here raises.
"""
import logging
from typing import Optional

from ccazure.errors import AuthorizationError, ConfigurationError, GrantError, PreflightError
from ccazure.identity import AzureAccount, Principal
from ccazure.result import PreflightResult
from ccazure.roles import RoleAssignments
from ccazure.run import AzureCLI
from context.config import BootstrapConfig
from context.grant_store import GrantStore
from context.logger import log_func

logger = logging.getLogger(__name__)

MISSING_SCOPE_MESSAGE = "Management Group ID and Subscription ID are required for preflight checks."
REAUTH_MESSAGE = (
    "A temporary role was granted. Azure tokens only pick up new role assignments "
    "after a fresh login: run 'az logout && az login', then re-run."
)


class LocalPreflight:
    def __init__(self, az: AzureCLI, store: GrantStore, config: Optional[BootstrapConfig] = None):
        self.az = az
        self.store = store
        self.config = config or BootstrapConfig()
        self._foreign_record = None

    def run(
        self,
        target_id: str,
        subscription_id: str,
        enabled: bool = True,
        self_grant: bool = False,
    ) -> PreflightResult:
        """
        Runs the checks for one invocation.

        Args:
            target_id: Management group id (the tenant id for tenant-level onboarding).
            subscription_id: Subscription hosting the deployment.
            enabled: When False, returns ok without any external call.
            self_grant: Allow a temporary self-grant when the MG role is missing.

        Returns:
            PreflightResult
        """
        if not enabled:
            logger.info("[Preflight] Disabled; skipping permission checks")
            return PreflightResult.passed()

        self._foreign_record = None
        try:
            with log_func("preflight"):
                result = self._check(target_id, subscription_id, self_grant)
        except PreflightError as err:
            logger.warning("[Preflight] ❌ %s", err.message)
            result = PreflightResult.from_error(err)
        except Exception as err:
            logger.exception("[Preflight] Unexpected failure")
            result = PreflightResult(ok=False, error=f"Preflight checks could not complete: {err}")

        if self._foreign_record:
            note = (
                "A temporary role grant recorded for another scope was discarded; "
                f"remove it with: {RoleAssignments.cleanup_command(self._foreign_record)}"
            )
            result.error = f"{result.error} {note}" if result.error else note
        return result

    def _check(self, target_id: str, subscription_id: str, self_grant: bool) -> PreflightResult:
        if not target_id or not subscription_id:
            raise ConfigurationError(MISSING_SCOPE_MESSAGE)

        with log_func("identity"):
            account = AzureAccount.show(self.az)
            principal = AzureAccount.resolve_principal(self.az, account)

        mg_scope = RoleAssignments.management_group_scope(target_id)
        with log_func("management_group"):
            mg_roles = RoleAssignments.role_names(self.az, principal.object_id, mg_scope)
            mg_ok = RoleAssignments.has_any(mg_roles, self.config.mg_allowed_roles)

        with log_func("grant_record"):
            pending = self._consume_grant_record(mg_scope, mg_ok)
        if pending is not None:
            return pending

        if not mg_ok:
            if self_grant:
                with log_func("self_grant"):
                    return self._self_grant(principal, mg_scope)
            raise AuthorizationError(
                f"{principal.display} has none of the roles "
                f"{', '.join(self.config.mg_allowed_roles)} on management group '{target_id}'. "
                f"Ask an administrator to grant one, or re-run with self-grant enabled.",
                grant_command=RoleAssignments.manual_grant_command(
                    principal, self.config.self_grant_role, mg_scope
                ),
            )

        with log_func("subscription"):
            self._check_subscription(principal, subscription_id)
        with log_func("directory"):
            self._check_directory(principal)

        logger.info("[Preflight] ✅ All permission checks passed")
        return PreflightResult.passed()

    def _consume_grant_record(self, mg_scope: str, mg_ok: bool) -> Optional[PreflightResult]:
        """
        Handles a grant record left by an earlier run.

        Returns a result to short-circuit with, or None to continue the normal checks.
        """
        record = self.store.read()
        if not record:
            return None

        if not RoleAssignments.belongs_to(record, mg_scope):
            if RoleAssignments.is_assignment_id(record):
                # Never cleaned up here; the id is only reported.
                logger.warning("[Preflight] Discarding grant record for another scope %r", record)
                self._foreign_record = record.strip()
            else:
                logger.warning("[Preflight] Discarding malformed grant record %r", record)
            self.store.delete()
            return None

        cleanup = RoleAssignments.cleanup_command(record)
        if mg_ok:
            # Post re-authentication: the grant is effective, schedule its removal once.
            self.store.delete()
            logger.info("[Preflight] Temporary grant is active; cleanup scheduled")
            return PreflightResult.passed(granted_temp_role=True, cleanup_command=cleanup)

        logger.warning("[Preflight] Temporary grant recorded but not yet visible in the token")
        return PreflightResult(
            ok=False,
            error="A temporary role grant is pending re-authentication. " + REAUTH_MESSAGE,
            granted_temp_role=True,
            cleanup_command=cleanup,
            login_message=REAUTH_MESSAGE,
        )

    def _self_grant(self, principal: Principal, mg_scope: str) -> PreflightResult:
        role = self.config.self_grant_role
        manual = RoleAssignments.manual_grant_command(principal, role, mg_scope)

        assignment_id = RoleAssignments.create(self.az, principal, role, mg_scope)
        if not assignment_id:
            raise GrantError(
                f"Could not grant a temporary '{role}' role on '{mg_scope}' to {principal.display}. "
                f"Ask an administrator to run: {manual}",
                grant_command=manual,
            )

        cleanup = RoleAssignments.cleanup_command(assignment_id)
        try:
            self.store.write(assignment_id)
        except OSError as e:
            logger.error("[Preflight] Could not persist grant record: %s", e)
            return PreflightResult(
                ok=False,
                error=f"Temporary '{role}' role granted but could not be recorded ({e}). "
                      f"Remove it manually with: {cleanup}",
                granted_temp_role=True,
                cleanup_command=cleanup,
            )

        logger.info("[Preflight] Temporary '%s' granted on %s", role, mg_scope)
        return PreflightResult(
            ok=False,
            error=f"Temporary '{role}' role granted on '{mg_scope}'. {REAUTH_MESSAGE}",
            granted_temp_role=True,
            cleanup_command=cleanup,
            login_message=REAUTH_MESSAGE,
        )

    def _check_subscription(self, principal: Principal, subscription_id: str) -> None:
        scope = RoleAssignments.subscription_scope(subscription_id)
        roles = RoleAssignments.role_names(self.az, principal.object_id, scope)
        allowed = self.config.subscription_allowed_roles
        if not RoleAssignments.has_any(roles, allowed):
            raise AuthorizationError(
                f"{principal.display} needs one of {', '.join(allowed)} on subscription "
                f"'{subscription_id}'.",
                grant_command=RoleAssignments.manual_grant_command(principal, allowed[0], scope),
            )

    def _check_directory(self, principal: Principal) -> None:
        roles = RoleAssignments.directory_role_names(self.az, principal.object_id)
        allowed = self.config.directory_admin_roles
        if not RoleAssignments.has_any(roles, allowed):
            raise AuthorizationError(
                f"{principal.display} needs a directory role that can grant application role "
                f"assignments ({', '.join(allowed)}). Assign one in Entra ID > Roles and administrators."
            )
