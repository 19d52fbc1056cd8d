from plm.models.collection import Collection
from plm.models.garment_model import FieldApprovalStatus, GarmentModel, ModelStatus
from plm.models.notification import Notification, NotificationStatus
from plm.models.pps_approval import ApprovalAttachment, ApproverRole, PPSApproval
from plm.models.stage_comment import CommentStage, StageComment
from plm.models.status_history import HistoryChangeType, StatusHistory
from plm.models.user import Factory, User, UserRole
from plm.models.user_permission import UserPermission

__all__ = [
    "ApprovalAttachment",
    "ApproverRole",
    "Collection",
    "CommentStage",
    "Factory",
    "FieldApprovalStatus",
    "GarmentModel",
    "HistoryChangeType",
    "ModelStatus",
    "Notification",
    "NotificationStatus",
    "PPSApproval",
    "StageComment",
    "StatusHistory",
    "User",
    "UserPermission",
    "UserRole",
]
