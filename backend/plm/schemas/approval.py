"""Pydantic schemas for PPS approvals."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PPSApprovalCreate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: UUID
    is_approved: bool
    comment: str | None = None


class ApprovalAttachmentCreate(BaseModel):
    file_url: str = Field(..., min_length=1, max_length=2048)
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str | None = None


class ApprovalAttachmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: UUID
    approval_id: UUID
    file_url: str
    file_name: str
    file_type: str | None = None
    uploaded_by: UUID | None = None
    created_at: datetime | None = None


class PPSApprovalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: UUID
    model_id: UUID
    approver_role: str
    approver_id: UUID | None = None
    is_approved: bool
    comment: str | None = None
    created_at: datetime | None = None


class PPSApprovalDetailResponse(PPSApprovalResponse):
    approver_name: str | None = None
    attachment_count: int = 0
    attachments: list[ApprovalAttachmentResponse] = []


class PPSApprovalResult(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    approval: PPSApprovalResponse
    created: bool
    model_status: str
