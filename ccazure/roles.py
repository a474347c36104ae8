import logging
import re
import shlex
from typing import Iterable, List, Optional

from ccazure.identity import Principal
from ccazure.run import AzureCLI

logger = logging.getLogger(__name__)

GRAPH_ROLE_ASSIGNMENTS = "https://graph.microsoft.com/v1.0/roleManagement/directory/roleAssignments"
_ASSIGNMENT_ID = re.compile(
    r"^(?:/\S*)?/providers/Microsoft\.Authorization/roleAssignments/[^/\s]+$", re.IGNORECASE
)


class RoleAssignments:
    """
    Azure RBAC and Entra directory role lookups for one principal, plus the
    temporary self-grant lifecycle (create / validate / delete).
    """

    @staticmethod
    def management_group_scope(mg_id: str) -> str:
        return f"/providers/Microsoft.Management/managementGroups/{mg_id}"

    @staticmethod
    def subscription_scope(subscription_id: str) -> str:
        return f"/subscriptions/{subscription_id}"

    @staticmethod
    def assignment_prefix(scope: str) -> str:
        return f"{scope}/providers/Microsoft.Authorization/roleAssignments/"

    @staticmethod
    def belongs_to(assignment_id: Optional[str], scope: str) -> bool:
        """
        True when `assignment_id` is a role-assignment id directly under `scope`.
        Used to reject a malformed or foreign grant record before deleting anything.
        """
        if not assignment_id:
            return False
        prefix = RoleAssignments.assignment_prefix(scope).lower()
        candidate = assignment_id.strip()
        tail = candidate[len(prefix):]
        return candidate.lower().startswith(prefix) and bool(tail) and "/" not in tail and " " not in tail

    @staticmethod
    def is_assignment_id(value: Optional[str]) -> bool:
        """True when `value` has the shape of a role-assignment id at any scope."""
        return bool(value) and bool(_ASSIGNMENT_ID.match(value.strip()))

    @staticmethod
    def has_any(assigned: Iterable[str], allowed: Iterable[str]) -> bool:
        allowed_lower = {a.lower() for a in allowed}
        return any(isinstance(r, str) and r.lower() in allowed_lower for r in assigned)

    @staticmethod
    def role_names(az: AzureCLI, object_id: str, scope: str) -> List[str]:
        """
        Role definition names the principal holds at `scope`, inherited and
        group-based assignments included. A failed query yields [].
        """
        names = az.query(
            [
                "az", "role", "assignment", "list",
                "--assignee", object_id,
                "--scope", scope,
                "--include-inherited",
                "--include-groups",
                "--query", "[].roleDefinitionName",
            ],
            default=[],
        )
        if not isinstance(names, list):
            return []
        logger.debug("[RoleAssignments] %s holds %s at %s", object_id, names, scope)
        return names

    @staticmethod
    def directory_role_names(az: AzureCLI, object_id: str) -> List[str]:
        """
        Display names of the Entra directory roles directly assigned to the principal.
        A failed Graph call yields [].
        """
        uri = f"{GRAPH_ROLE_ASSIGNMENTS}?$filter=principalId eq '{object_id}'&$expand=roleDefinition"
        names = az.query(
            [
                "az", "rest",
                "--method", "GET",
                "--uri", uri,
                "--query", "value[].roleDefinition.displayName",
            ],
            default=[],
        )
        if not isinstance(names, list):
            return []
        logger.debug("[RoleAssignments] %s directory roles: %s", object_id, names)
        return names

    @staticmethod
    def create(az: AzureCLI, principal: Principal, role: str, scope: str) -> Optional[str]:
        """
        Assigns `role` at `scope` to the principal.

        Returns:
            The new role-assignment id, or None when the assignment failed.
        """
        logger.info("[RoleAssignments] Granting '%s' on '%s' to %s", role, scope, principal.display)
        assignment_id = az.query(
            [
                "az", "role", "assignment", "create",
                "--assignee-object-id", principal.object_id,
                "--assignee-principal-type", principal.principal_type,
                "--role", role,
                "--scope", scope,
                "--query", "id",
            ]
        )
        if not isinstance(assignment_id, str) or not assignment_id:
            logger.warning("[RoleAssignments] Grant of '%s' on '%s' failed", role, scope)
            return None
        return assignment_id

    @staticmethod
    def delete(az: AzureCLI, assignment_id: str) -> bool:
        """Deletes one role assignment by id."""
        logger.info("[RoleAssignments] Revoking %s", assignment_id)
        result = az.run(["az", "role", "assignment", "delete", "--ids", assignment_id], expect_json=False)
        return result.ok

    @staticmethod
    def cleanup_command(assignment_id: str) -> str:
        return f"az role assignment delete --ids {shlex.quote(assignment_id)}"

    @staticmethod
    def manual_grant_command(principal: Principal, role: str, scope: str) -> str:
        return (
            f"az role assignment create --assignee-object-id {shlex.quote(principal.object_id)} "
            f"--assignee-principal-type {principal.principal_type} "
            f"--role {shlex.quote(role)} --scope {shlex.quote(scope)}"
        )
