"""Garment model API endpoints: lifecycle, status transitions and field approvals."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from plm.core.auth import get_current_user, require_permission
from plm.core.database import get_db
from plm.core.permissions import Permission
from plm.models.user import User
from plm.schemas.garment_model import (
    AssignFactoryRequest,
    FieldApprovalRequest,
    GarmentModelCreate,
    GarmentModelResponse,
    GarmentModelUpdate,
    StatusHistoryResponse,
)
from plm.services.approval_service import ApprovalService
from plm.services.notification_dispatch import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from plm.services.status_transition import StatusTransitionService

router = APIRouter()


@router.get(
    "/",
    response_model=list[GarmentModelResponse],
    summary="List models",
    responses={400: {"description": "Invalid status"}},
)
async def list_models(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    collection_id: UUID | None = None,
    status: str | None = None,
    model_id: UUID | None = None,
    product_type: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.VIEW_MODELS)),
) -> list[GarmentModelResponse]:
    """List models newest first. Factory users only see their assigned, non-draft models."""
    models, total = StatusTransitionService(db).list_models(
        user,
        skip=skip,
        limit=limit,
        collection_id=collection_id,
        status=status,
        model_id=model_id,
        product_type=product_type,
    )
    response.headers["X-Total-Count"] = str(total)
    return [GarmentModelResponse.model_validate(m) for m in models]


@router.post(
    "/",
    response_model=GarmentModelResponse,
    status_code=201,
    summary="Create model",
    responses={400: {"description": "Model number already exists in this collection"}},
)
async def create_model(
    data: GarmentModelCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.CREATE_MODELS)),
) -> GarmentModelResponse:
    """Create a model in draft status."""
    service = StatusTransitionService(db)
    model = service.create_model(
        model_number=data.model_number,
        created_by=user.id,  # type: ignore[arg-type]
        actor_role=str(user.role),
        collection_id=data.collection_id,
        **data.model_dump(exclude={"model_number", "collection_id"}),
    )
    return GarmentModelResponse.model_validate(model)


@router.get(
    "/{model_id}",
    response_model=GarmentModelResponse,
    summary="Get model",
    responses={
        403: {"description": "Model not visible to this factory"},
        404: {"description": "Model not found"},
    },
)
async def get_model(
    model_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.VIEW_MODELS)),
) -> GarmentModelResponse:
    model = StatusTransitionService(db).get_model(model_id, viewer=user)
    return GarmentModelResponse.model_validate(model)


@router.patch(
    "/{model_id}",
    response_model=GarmentModelResponse,
    summary="Update model and optionally change its status",
    responses={
        400: {"description": "Invalid status"},
        403: {"description": "Role may not edit models"},
        404: {"description": "Model not found"},
    },
)
async def update_model(
    model_id: UUID,
    data: GarmentModelUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.EDIT_MODELS)),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> GarmentModelResponse:
    """Apply a partial update. A status change is logged and notified after commit."""
    service = StatusTransitionService(db, dispatcher)
    model = service.update_model(
        model_id,
        changed_by=user.id,  # type: ignore[arg-type]
        actor_role=str(user.role),
        new_status=data.status,
        comment=data.comment,
        **data.model_dump(exclude={"status", "comment"}),
    )
    return GarmentModelResponse.model_validate(model)


@router.delete(
    "/{model_id}",
    status_code=204,
    summary="Delete model",
    responses={404: {"description": "Model not found"}},
)
async def delete_model(
    model_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.DELETE_MODELS)),
) -> Response:
    StatusTransitionService(db).delete_model(model_id)
    return Response(status_code=204)


@router.put(
    "/{model_id}/assign-factory",
    response_model=GarmentModelResponse,
    summary="Assign factory",
    responses={404: {"description": "Model or factory not found"}},
)
async def assign_factory(
    model_id: UUID,
    data: AssignFactoryRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.EDIT_MODELS)),
) -> GarmentModelResponse:
    model = StatusTransitionService(db).assign_factory(model_id, data.factory_id)
    return GarmentModelResponse.model_validate(model)


def _update_field_approval(
    field_name: str,
    model_id: UUID,
    data: FieldApprovalRequest,
    db: Session,
    user: User,
    dispatcher: NotificationDispatcher,
) -> GarmentModelResponse:
    model = ApprovalService(db, dispatcher).update_field_approval(
        model_id,
        field_name,
        data.approval_status,
        data.comment,
        actor_id=user.id,  # type: ignore[arg-type]
        actor_role=str(user.role),
    )
    return GarmentModelResponse.model_validate(model)


@router.put(
    "/{model_id}/buyer-approval",
    response_model=GarmentModelResponse,
    summary="Update buyer approval",
    responses={
        400: {"description": "Invalid approval status"},
        403: {"description": "Only buyers can update buyer approval"},
        404: {"description": "Model not found"},
    },
)
async def update_buyer_approval(
    model_id: UUID,
    data: FieldApprovalRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> GarmentModelResponse:
    return _update_field_approval("buyer_approval", model_id, data, db, user, dispatcher)


@router.put(
    "/{model_id}/constructor-approval",
    response_model=GarmentModelResponse,
    summary="Update constructor approval",
    responses={
        400: {"description": "Invalid approval status"},
        403: {"description": "Only constructors can update constructor approval"},
        404: {"description": "Model not found"},
    },
)
async def update_constructor_approval(
    model_id: UUID,
    data: FieldApprovalRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> GarmentModelResponse:
    return _update_field_approval("constructor_approval", model_id, data, db, user, dispatcher)


@router.get(
    "/{model_id}/history",
    response_model=list[StatusHistoryResponse],
    summary="Get status history",
    responses={
        403: {"description": "Model not visible to this factory"},
        404: {"description": "Model not found"},
    },
)
async def get_history(
    model_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.VIEW_MODELS)),
) -> list[StatusHistoryResponse]:
    """History entries, newest first."""
    views = StatusTransitionService(db).get_history(model_id, viewer=user)
    return [
        StatusHistoryResponse(
            id=v.entry.id,  # type: ignore[arg-type]
            model_id=v.entry.model_id,  # type: ignore[arg-type]
            change_type=str(v.entry.change_type),
            from_status=v.entry.from_status,  # type: ignore[arg-type]
            to_status=str(v.entry.to_status),
            changed_by=v.entry.changed_by,  # type: ignore[arg-type]
            changed_by_name=v.changed_by_name,
            comment=v.entry.comment,  # type: ignore[arg-type]
            created_at=v.entry.created_at,  # type: ignore[arg-type]
        )
        for v in views
    ]
