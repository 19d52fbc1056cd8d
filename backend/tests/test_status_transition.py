"""Tests for StatusTransitionService: status changes, history and model edits."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from plm.core.errors import ForbiddenError, InternalError, InvalidArgumentError, NotFoundError
from plm.models.garment_model import GarmentModel, ModelStatus
from plm.models.pps_approval import PPSApproval
from plm.models.stage_comment import StageComment
from plm.models.status_history import StatusHistory
from plm.models.user import Factory, UserRole
from plm.repositories.garment_model_repository import GarmentModelRepository
from plm.repositories.status_history_repository import StatusHistoryRepository
from plm.services.notification_dispatch import NotificationDispatcher
from plm.services.status_transition import StatusTransitionService, validate_status


@pytest.fixture
def dispatcher():
    return MagicMock(spec=NotificationDispatcher)


@pytest.fixture
def service(db_session, dispatcher):
    return StatusTransitionService(db_session, dispatcher)


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, name="Irina Admin")


@pytest.fixture
def other_factory(db_session):
    other = Factory(name="Ningbo Denim")
    db_session.add(other)
    db_session.commit()
    db_session.refresh(other)
    return other


def _history(db_session, model_id):
    return (
        db_session.query(StatusHistory)
        .filter(StatusHistory.model_id == model_id)
        .all()
    )


class TestValidateStatus:
    def test_valid(self):
        assert validate_status("pps_stage") == "pps_stage"

    def test_invalid(self):
        with pytest.raises(InvalidArgumentError, match="Invalid status: archived"):
            validate_status("archived")


class TestSetStatus:
    def test_transition_writes_one_history_row(self, service, db_session, make_model, admin):
        model = make_model(ModelStatus.APPROVED)

        updated = service.set_status(
            model.id, "ds_stage", admin.id, UserRole.ADMIN.value, comment="samples ordered"
        )

        assert updated.status == ModelStatus.DS_STAGE.value
        history = _history(db_session, model.id)
        assert len(history) == 1
        assert history[0].from_status == ModelStatus.APPROVED.value
        assert history[0].to_status == ModelStatus.DS_STAGE.value
        assert history[0].changed_by == admin.id
        assert history[0].comment == "samples ordered"
        assert history[0].change_type == "status_change"

    def test_same_status_writes_no_history(self, service, db_session, make_model, admin, dispatcher):
        model = make_model(ModelStatus.PPS_STAGE)

        service.set_status(model.id, "pps_stage", admin.id, UserRole.ADMIN.value)

        assert _history(db_session, model.id) == []
        dispatcher.status_changed.assert_not_called()

    def test_out_of_order_transition_allowed(self, service, make_model, admin):
        model = make_model(ModelStatus.SHIPPED)

        updated = service.set_status(model.id, "draft", admin.id, UserRole.ADMIN.value)

        assert updated.status == ModelStatus.DRAFT.value

    def test_dispatches_after_transition(self, service, make_model, admin, dispatcher):
        model = make_model(ModelStatus.DS_STAGE)

        service.set_status(model.id, "pps_stage", admin.id, UserRole.ADMIN.value)

        dispatcher.status_changed.assert_called_once_with(model.id, "pps_stage", admin.id)

    def test_dispatcher_failure_is_swallowed(
        self, service, db_session, make_model, admin, dispatcher
    ):
        dispatcher.status_changed.side_effect = RuntimeError("redis down")
        model = make_model(ModelStatus.DS_STAGE)

        updated = service.set_status(model.id, "pps_stage", admin.id, UserRole.ADMIN.value)

        assert updated.status == ModelStatus.PPS_STAGE.value
        assert len(_history(db_session, model.id)) == 1

    def test_invalid_status(self, service, db_session, make_model, admin, dispatcher):
        model = make_model(ModelStatus.DRAFT)

        with pytest.raises(InvalidArgumentError):
            service.set_status(model.id, "archived", admin.id, UserRole.ADMIN.value)

        db_session.refresh(model)
        assert model.status == ModelStatus.DRAFT.value
        assert _history(db_session, model.id) == []
        dispatcher.status_changed.assert_not_called()

    def test_model_not_found(self, service, admin):
        with pytest.raises(NotFoundError, match="Model not found"):
            service.set_status(uuid4(), "approved", admin.id, UserRole.ADMIN.value)

    def test_field_updates_keep_unspecified_values(self, service, make_model, admin):
        model = make_model(ModelStatus.DRAFT)

        updated = service.set_status(
            model.id,
            "approved",
            admin.id,
            UserRole.ADMIN.value,
            product_type="shirt",
            model_name=None,
        )

        assert updated.product_type == "shirt"
        assert updated.model_name == "Linen shirt 1"
        assert updated.status == ModelStatus.APPROVED.value

    def test_factory_role_rejected(
        self, service, db_session, make_model, make_user, factory, dispatcher
    ):
        user = make_user(UserRole.FACTORY, factory_id=factory.id)
        model = make_model(ModelStatus.IN_PRODUCTION, factory_id=factory.id)

        with pytest.raises(ForbiddenError):
            service.set_status(model.id, "shipped", user.id, UserRole.FACTORY.value)

        db_session.refresh(model)
        assert model.status == ModelStatus.IN_PRODUCTION.value
        dispatcher.status_changed.assert_not_called()

    def test_history_write_failure_rolls_back(
        self, service, db_session, make_model, admin, dispatcher
    ):
        model = make_model(ModelStatus.DS_STAGE)

        with patch.object(
            StatusHistoryRepository, "append", side_effect=SQLAlchemyError("disk full")
        ):
            with pytest.raises(InternalError):
                service.set_status(model.id, "pps_stage", admin.id, UserRole.ADMIN.value)

        db_session.refresh(model)
        assert model.status == ModelStatus.DS_STAGE.value
        assert _history(db_session, model.id) == []
        dispatcher.status_changed.assert_not_called()

    def test_status_write_failure_rolls_back_history(
        self, service, db_session, make_model, admin, dispatcher
    ):
        model = make_model(ModelStatus.DS_STAGE)

        with patch.object(
            GarmentModelRepository, "update_status", side_effect=SQLAlchemyError("deadlock")
        ):
            with pytest.raises(InternalError):
                service.update_model(
                    model.id, admin.id, UserRole.ADMIN.value, new_status="pps_stage"
                )

        db_session.refresh(model)
        assert model.status == ModelStatus.DS_STAGE.value
        assert _history(db_session, model.id) == []
        dispatcher.status_changed.assert_not_called()


class TestUpdateModel:
    def test_fields_only(self, service, db_session, make_model, make_user):
        designer = make_user(UserRole.DESIGNER)
        model = make_model(ModelStatus.DRAFT)

        updated = service.update_model(
            model.id, designer.id, "designer", category="tops", fit_type="relaxed"
        )

        assert updated.category == "tops"
        assert updated.fit_type == "relaxed"
        assert updated.status == ModelStatus.DRAFT.value
        assert _history(db_session, model.id) == []

    def test_factory_forbidden(self, service, make_model, make_user, factory):
        user = make_user(UserRole.FACTORY, factory_id=factory.id)
        model = make_model(ModelStatus.IN_PRODUCTION, factory_id=factory.id)

        with pytest.raises(ForbiddenError):
            service.update_model(model.id, user.id, "factory", new_status="shipped")

    def test_restricted_fields_ignored_for_standard_roles(self, service, make_model, make_user):
        designer = make_user(UserRole.DESIGNER)
        model = make_model()

        updated = service.update_model(
            model.id, designer.id, "designer", product_group="Basics", model_name="Oxford"
        )

        assert updated.product_group is None
        assert updated.model_name == "Oxford"

    def test_restricted_fields_written_by_buyer(self, service, make_model, make_user):
        buyer = make_user(UserRole.BUYER)
        model = make_model()

        updated = service.update_model(
            model.id, buyer.id, "buyer", product_group="Basics", product_group_code="BS"
        )

        assert updated.product_group == "Basics"
        assert updated.product_group_code == "BS"


class TestCreateModel:
    def test_creates_draft_with_initial_history(self, service, db_session, collection, make_user):
        designer = make_user(UserRole.DESIGNER)

        model = service.create_model(
            "SS26-001", designer.id, "designer", collection_id=collection.id, model_name="Wrap dress"
        )

        assert model.status == ModelStatus.DRAFT.value
        assert model.designer_id == designer.id
        assert model.buyer_approval == "not_approved"
        assert model.constructor_approval == "not_approved"
        history = _history(db_session, model.id)
        assert len(history) == 1
        assert history[0].from_status is None
        assert history[0].to_status == ModelStatus.DRAFT.value

    def test_duplicate_number_in_collection(self, service, collection, make_user):
        designer = make_user(UserRole.DESIGNER)
        service.create_model("SS26-001", designer.id, "designer", collection_id=collection.id)

        with pytest.raises(InvalidArgumentError):
            service.create_model("SS26-001", designer.id, "designer", collection_id=collection.id)

    def test_restricted_fields_dropped_for_designer(self, service, make_user):
        designer = make_user(UserRole.DESIGNER)

        model = service.create_model(
            "SS26-002", designer.id, "designer", product_group="Denim"
        )

        assert model.product_group is None


class TestAssignFactory:
    def test_assign(self, service, make_model, factory):
        model = make_model()

        updated = service.assign_factory(model.id, factory.id)

        assert updated.assigned_factory_id == factory.id

    def test_unassign(self, service, make_model, factory):
        model = make_model(factory_id=factory.id)

        updated = service.assign_factory(model.id, None)

        assert updated.assigned_factory_id is None

    def test_unknown_factory(self, service, make_model):
        model = make_model()

        with pytest.raises(NotFoundError, match="Factory not found"):
            service.assign_factory(model.id, uuid4())


class TestDeleteModel:
    def test_cascades_dependent_rows(self, service, db_session, make_model, make_user, admin):
        buyer = make_user(UserRole.BUYER)
        model = make_model(ModelStatus.DS_STAGE)
        service.set_status(model.id, "pps_stage", admin.id, UserRole.ADMIN.value)
        db_session.add(PPSApproval(model_id=model.id, approver_role="buyer", approver_id=buyer.id))
        db_session.add(
            StageComment(
                model_id=model.id,
                stage="pps",
                user_id=buyer.id,
                user_role="buyer",
                comment_text="check seams",
            )
        )
        db_session.commit()
        model_id = model.id

        service.delete_model(model_id)

        assert db_session.query(GarmentModel).filter(GarmentModel.id == model_id).first() is None
        assert _history(db_session, model_id) == []
        assert db_session.query(PPSApproval).filter(PPSApproval.model_id == model_id).count() == 0
        assert db_session.query(StageComment).filter(StageComment.model_id == model_id).count() == 0

    def test_missing(self, service):
        with pytest.raises(NotFoundError):
            service.delete_model(uuid4())


class TestGetHistory:
    def test_newest_first_with_names(self, service, make_model, admin):
        model = make_model(ModelStatus.DRAFT)
        service.set_status(model.id, "approved", admin.id, UserRole.ADMIN.value)
        service.set_status(model.id, "ds_stage", admin.id, UserRole.ADMIN.value)

        views = service.get_history(model.id)

        assert [v.entry.to_status for v in views] == ["ds_stage", "approved"]
        assert all(v.changed_by_name == "Irina Admin" for v in views)

    def test_missing_model(self, service):
        with pytest.raises(NotFoundError):
            service.get_history(uuid4())

    def test_factory_cannot_read_other_factory_history(
        self, service, make_model, make_user, factory, other_factory
    ):
        user = make_user(UserRole.FACTORY, factory_id=other_factory.id)
        model = make_model(ModelStatus.IN_PRODUCTION, factory_id=factory.id)

        with pytest.raises(ForbiddenError, match="Access denied"):
            service.get_history(model.id, viewer=user)


class TestGetModelVisibility:
    def test_staff_sees_drafts(self, service, make_model, make_user):
        designer = make_user(UserRole.DESIGNER)
        model = make_model(ModelStatus.DRAFT)

        assert service.get_model(model.id, viewer=designer).id == model.id

    def test_factory_sees_own_assigned_model(self, service, make_model, make_user, factory):
        user = make_user(UserRole.FACTORY, factory_id=factory.id)
        model = make_model(ModelStatus.PPS_STAGE, factory_id=factory.id)

        assert service.get_model(model.id, viewer=user).id == model.id

    def test_factory_denied_other_factory_model(
        self, service, make_model, make_user, factory, other_factory
    ):
        user = make_user(UserRole.FACTORY, factory_id=other_factory.id)
        model = make_model(ModelStatus.PPS_STAGE, factory_id=factory.id)

        with pytest.raises(ForbiddenError, match="Access denied"):
            service.get_model(model.id, viewer=user)

    def test_factory_denied_own_draft(self, service, make_model, make_user, factory):
        user = make_user(UserRole.FACTORY, factory_id=factory.id)
        model = make_model(ModelStatus.DRAFT, factory_id=factory.id)

        with pytest.raises(ForbiddenError):
            service.get_model(model.id, viewer=user)

    def test_factory_user_without_factory_denied(self, service, make_model, make_user):
        user = make_user(UserRole.FACTORY)
        model = make_model(ModelStatus.SHIPPED)

        with pytest.raises(ForbiddenError):
            service.get_model(model.id, viewer=user)

    def test_missing_model_is_not_found_before_access_check(self, service, make_user, factory):
        user = make_user(UserRole.FACTORY, factory_id=factory.id)

        with pytest.raises(NotFoundError):
            service.get_model(uuid4(), viewer=user)


class TestListModels:
    def test_filters_by_status_and_product_type(self, service, db_session, make_model, make_user):
        designer = make_user(UserRole.DESIGNER)
        shirt = make_model(ModelStatus.DS_STAGE)
        shirt.product_type = "shirt"
        dress = make_model(ModelStatus.DS_STAGE)
        dress.product_type = "dress"
        make_model(ModelStatus.DRAFT)
        db_session.commit()

        models, total = service.list_models(designer, status="ds_stage", product_type="shirt")

        assert [m.id for m in models] == [shirt.id]
        assert total == 1

    def test_filters_by_collection(self, service, db_session, make_model, make_user, collection):
        designer = make_user(UserRole.DESIGNER)
        in_collection = make_model()
        loose = make_model()
        loose.collection_id = None
        db_session.commit()

        models, total = service.list_models(designer, collection_id=collection.id)

        assert [m.id for m in models] == [in_collection.id]
        assert total == 1

    def test_factory_sees_only_assigned_non_draft(
        self, service, make_model, make_user, factory, other_factory
    ):
        user = make_user(UserRole.FACTORY, factory_id=factory.id)
        visible = make_model(ModelStatus.IN_PRODUCTION, factory_id=factory.id)
        make_model(ModelStatus.DRAFT, factory_id=factory.id)
        make_model(ModelStatus.IN_PRODUCTION, factory_id=other_factory.id)
        make_model(ModelStatus.APPROVED)

        models, total = service.list_models(user)

        assert [m.id for m in models] == [visible.id]
        assert total == 1

    def test_factory_user_without_factory_sees_nothing(self, service, make_model, make_user):
        user = make_user(UserRole.FACTORY)
        make_model(ModelStatus.SHIPPED)

        assert service.list_models(user) == ([], 0)

    def test_pagination_reports_full_total(self, service, make_model, make_user):
        admin = make_user(UserRole.ADMIN)
        for _ in range(3):
            make_model()

        models, total = service.list_models(admin, skip=1, limit=1)

        assert len(models) == 1
        assert total == 3

    def test_invalid_status_filter(self, service, make_user):
        admin = make_user(UserRole.ADMIN)

        with pytest.raises(InvalidArgumentError):
            service.list_models(admin, status="archived")
