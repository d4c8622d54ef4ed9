from enum import Enum
from typing import List, Dict
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from carbonledger.core.database import get_db
from carbonledger.core.security import get_current_user
from carbonledger.core.logging import auth_logger
from carbonledger.models.user import User, UserRole
from carbonledger.models.emissions import EmissionRecord
from carbonledger.models.supplier import Supplier, SupplierLifecycle
from carbonledger.models.report import Report


class ResourceType(str, Enum):
    EMISSION = "emission"
    SUPPLIER = "supplier"
    REPORT = "report"
    DASHBOARD = "dashboard"


class Operation(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"
    EXECUTE = "execute"


_OWNER_CRUD = [Operation.CREATE, Operation.READ, Operation.UPDATE, Operation.DELETE, Operation.LIST]

# Permission matrix - which roles can perform which operations on which resources.
# EXECUTE covers bulk emission import, supplier invitations and report sharing.
ROLE_PERMISSIONS: Dict[UserRole, Dict[ResourceType, List[Operation]]] = {
    UserRole.admin: {
        # Admins can do everything
        resource_type: list(Operation)
        for resource_type in ResourceType
    },
    UserRole.manager: {
        ResourceType.EMISSION: _OWNER_CRUD + [Operation.EXECUTE],
        ResourceType.SUPPLIER: _OWNER_CRUD + [Operation.EXECUTE],
        ResourceType.REPORT: _OWNER_CRUD + [Operation.EXECUTE],
        ResourceType.DASHBOARD: [Operation.READ],
    },
    UserRole.user: {
        ResourceType.EMISSION: _OWNER_CRUD,  # no bulk import
        ResourceType.SUPPLIER: _OWNER_CRUD + [Operation.EXECUTE],
        ResourceType.REPORT: _OWNER_CRUD + [Operation.EXECUTE],
        ResourceType.DASHBOARD: [Operation.READ],
    },
}


def verify_permission(resource_type: ResourceType, operation: Operation):
    """
    Dependency for checking role permissions on a resource type

    Args:
        resource_type: Type of resource being accessed
        operation: Operation being performed

    Returns:
        Dependency function for FastAPI
    """
    async def check_permission(current_user: User = Depends(get_current_user)) -> User:
        allowed_operations = ROLE_PERMISSIONS.get(current_user.role, {}).get(resource_type, [])
        if operation not in allowed_operations:
            auth_logger.structured(
                "warning",
                f"Permission denied: {current_user.role.value} cannot {operation.value} on {resource_type.value}",
                {
                    "user_id": current_user.id,
                    "role": current_user.role,
                    "resource_type": resource_type,
                    "operation": operation,
                }
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )

        return current_user

    return check_permission


def manager_or_admin(current_user: User = Depends(get_current_user)):
    """Ensure only managers or admins can access the route"""
    if current_user.role not in [UserRole.admin, UserRole.manager]:
        auth_logger.structured(
            "warning",
            f"Manager access denied for {current_user.role.value}",
            {"user_id": current_user.id, "role": current_user.role}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Manager or admin access required"
        )
    return current_user


# ───────────────────────────────
# 🔒 Ownership-scoped loaders
# ───────────────────────────────
# A resource owned by someone else is reported as missing so ids are not leaked.
async def get_owned_emission(
    emission_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> EmissionRecord:
    record = await db.get(EmissionRecord, emission_id)
    if record is None or record.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Emission record not found")
    return record


async def get_owned_supplier(
    supplier_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Supplier:
    supplier = await db.get(Supplier, supplier_id)
    if (
        supplier is None
        or supplier.user_id != current_user.id
        or supplier.lifecycle != SupplierLifecycle.active
    ):
        raise HTTPException(status_code=404, detail="Supplier not found")
    return supplier


async def get_owned_report(
    report_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Report:
    report = await db.get(Report, report_id)
    if report is None or report.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Report not found")
    return report
