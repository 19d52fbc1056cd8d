"""Pydantic schemas for garment models and their history."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class GarmentModelCreate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    collection_id: UUID | None = None
    model_number: str = Field(..., min_length=1, max_length=100)
    model_name: str | None = Field(default=None, max_length=255)
    product_type: str | None = None
    category: str | None = None
    fit_type: str | None = None
    product_group: str | None = None
    product_group_code: str | None = None


class GarmentModelUpdate(BaseModel):
    """Partial update; omitted or null fields keep their stored values."""

    model_config = ConfigDict(protected_namespaces=())

    model_name: str | None = Field(default=None, max_length=255)
    product_type: str | None = None
    category: str | None = None
    fit_type: str | None = None
    product_group: str | None = None
    product_group_code: str | None = None
    status: str | None = None
    comment: str | None = None


class AssignFactoryRequest(BaseModel):
    factory_id: UUID | None = None


class FieldApprovalRequest(BaseModel):
    approval_status: str
    comment: str | None = None


class GarmentModelResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: UUID
    collection_id: UUID | None = None
    model_number: str
    model_name: str | None = None
    product_type: str | None = None
    category: str | None = None
    fit_type: str | None = None
    product_group: str | None = None
    product_group_code: str | None = None
    status: str
    buyer_approval: str
    buyer_approval_comment: str | None = None
    buyer_approved_at: datetime | None = None
    constructor_approval: str
    constructor_approval_comment: str | None = None
    constructor_approved_at: datetime | None = None
    assigned_factory_id: UUID | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StatusHistoryResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: UUID
    model_id: UUID
    change_type: str
    from_status: str | None = None
    to_status: str
    changed_by: UUID | None = None
    changed_by_name: str | None = None
    comment: str | None = None
    created_at: datetime | None = None
