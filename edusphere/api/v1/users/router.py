"""Users router: create accounts one at a time or from an Excel upload, list a school's users."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.rbac import require_roles, school_scope
from edusphere.auth.schemas import CurrentUser
from edusphere.core.enums import UserRole
from edusphere.core.exceptions import ServiceError
from edusphere.db.session import get_db

from . import importer, service
from .schemas import UserCreate, UserImportResponse, UserResponse

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> UserResponse:
    try:
        return await service.create_user(db, current_user.role, current_user.school_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/import", response_model=UserImportResponse)
async def import_users(
    file: UploadFile = File(
        ...,
        description="Excel with columns: full_name, email, password, role (teacher or student), class_name, roll_number, phone",
    ),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
):
    """
    Bulk create teachers and students from Excel. Valid rows are created; if any row
    is rejected, returns an Excel file with the rejected rows and a reason column
    (X-Imported-Count carries the number of accounts created).
    """
    scope = school_scope(current_user, school_id)
    try:
        rows = importer.read_import_rows(file.filename, await file.read())
        created, failed = await service.import_users(db, current_user.role, scope, rows)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if failed:
        return Response(
            content=importer.build_error_workbook(failed),
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={
                "Content-Disposition": "attachment; filename=users_import_errors.xlsx",
                "X-Imported-Count": str(len(created)),
            },
        )
    return UserImportResponse(created=len(created), users=created)


@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[UserRole] = Query(None),
    class_id: Optional[UUID] = Query(None),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL, UserRole.TEACHER)),
) -> List[UserResponse]:
    scope = school_scope(current_user, school_id)
    return await service.list_users(db, scope, role=role, class_id=class_id)
