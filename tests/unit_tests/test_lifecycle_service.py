"""Unit tests for the request lifecycle service."""

from datetime import date

import pytest

from labsoft_api.workflow.exceptions import AuthorizationDenied
from labsoft_api.workflow.exceptions import InvalidStatus
from labsoft_api.workflow.exceptions import InvalidStatusTransition
from labsoft_api.workflow.exceptions import RequestNotFound
from labsoft_api.workflow.service import RequestInput
from tests.consts import INSTRUCTOR_A
from tests.consts import INSTRUCTOR_B


class TestCreate:
    """Tests for RequestLifecycleService.create."""

    @pytest.mark.asyncio
    async def test_create_forces_pending_and_requester(self, lifecycle_service, request_input):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        assert created.id == 1
        assert created.status == "PENDING"
        assert created.requester_identity == INSTRUCTOR_A
        assert created.software_name == "VS Code"
        assert created.software_version == "latest"
        assert created.lab_id == "LAB-01"
        assert created.request_date == date(2024, 1, 10)

    @pytest.mark.asyncio
    async def test_create_assigns_increasing_ids(self, lifecycle_service, request_input):
        first = await lifecycle_service.create(request_input, INSTRUCTOR_A)
        second = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        assert second.id > first.id

    @pytest.mark.asyncio
    async def test_duplicate_submissions_are_distinct(self, lifecycle_service, request_input):
        await lifecycle_service.create(request_input, INSTRUCTOR_A)
        await lifecycle_service.create(request_input, INSTRUCTOR_A)

        assert len(await lifecycle_service.list_all()) == 2

    @pytest.mark.asyncio
    async def test_create_with_empty_fields(self, lifecycle_service):
        created = await lifecycle_service.create(RequestInput(), INSTRUCTOR_A)

        assert created.software_name is None
        assert created.lab_id is None
        assert created.status == "PENDING"

    @pytest.mark.asyncio
    async def test_create_is_logged(self, lifecycle_service, request_input, captured_logs):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        entries = [r for r in captured_logs if r["message"] == "Software request created"]
        assert len(entries) == 1
        assert entries[0]["extra"]["request_id"] == created.id
        assert entries[0]["extra"]["requester"] == INSTRUCTOR_A


class TestList:
    """Tests for list_all and list_own."""

    @pytest.mark.asyncio
    async def test_list_own_filters_by_requester(self, lifecycle_service, request_input):
        await lifecycle_service.create(request_input, INSTRUCTOR_A)
        await lifecycle_service.create(request_input, INSTRUCTOR_B)
        await lifecycle_service.create(request_input, INSTRUCTOR_A)

        own = await lifecycle_service.list_own(INSTRUCTOR_A)

        assert len(own) == 2
        assert all(r.requester_identity == INSTRUCTOR_A for r in own)

    @pytest.mark.asyncio
    async def test_list_own_is_subset_of_list_all(self, lifecycle_service, request_input):
        await lifecycle_service.create(request_input, INSTRUCTOR_A)
        await lifecycle_service.create(request_input, INSTRUCTOR_B)

        all_ids = {r.id for r in await lifecycle_service.list_all()}
        own_ids = {r.id for r in await lifecycle_service.list_own(INSTRUCTOR_B)}

        assert own_ids <= all_ids

    @pytest.mark.asyncio
    async def test_list_on_empty_store(self, lifecycle_service):
        assert await lifecycle_service.list_all() == []
        assert await lifecycle_service.list_own(INSTRUCTOR_A) == []


class TestGet:
    """Tests for get()."""

    @pytest.mark.asyncio
    async def test_owner_can_read(self, lifecycle_service, request_input, instructor_principal):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        assert await lifecycle_service.get(created.id, instructor_principal) == created

    @pytest.mark.asyncio
    async def test_admin_can_read_any(self, lifecycle_service, request_input, admin_principal):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        assert await lifecycle_service.get(created.id, admin_principal) == created

    @pytest.mark.asyncio
    async def test_other_instructor_sees_not_found(
        self, lifecycle_service, request_input, other_instructor_principal
    ):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        with pytest.raises(RequestNotFound):
            await lifecycle_service.get(created.id, other_instructor_principal)

    @pytest.mark.asyncio
    async def test_absent_id(self, lifecycle_service, admin_principal):
        with pytest.raises(RequestNotFound):
            await lifecycle_service.get(99, admin_principal)


class TestUpdateStatus:
    """Tests for update_status() with strict transitions (the default)."""

    @pytest.mark.asyncio
    async def test_approve_keeps_other_fields(self, lifecycle_service, request_input):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        updated = await lifecycle_service.update_status(created.id, "APPROVED")

        assert updated.status == "APPROVED"
        assert updated.model_dump(exclude={"status"}) == created.model_dump(exclude={"status"})

    @pytest.mark.asyncio
    async def test_full_happy_path(self, lifecycle_service, request_input):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        await lifecycle_service.update_status(created.id, "APPROVED")
        installed = await lifecycle_service.update_status(created.id, "INSTALLED")

        assert installed.status == "INSTALLED"

    @pytest.mark.asyncio
    async def test_reject(self, lifecycle_service, request_input):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        rejected = await lifecycle_service.update_status(created.id, "REJECTED")

        assert rejected.status == "REJECTED"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path,target",
        [
            ([], "INSTALLED"),
            (["REJECTED"], "APPROVED"),
            (["APPROVED", "INSTALLED"], "PENDING"),
            (["APPROVED"], "REJECTED"),
        ],
        ids=["pending_to_installed", "rejected_is_terminal", "installed_is_terminal", "approved_to_rejected"],
    )
    async def test_illegal_transition(self, lifecycle_service, request_input, path, target):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)
        for step in path:
            await lifecycle_service.update_status(created.id, step)

        with pytest.raises(InvalidStatusTransition) as exc_info:
            await lifecycle_service.update_status(created.id, target)

        assert exc_info.value.requested == target
        stored = await lifecycle_service.store.find_by_id(created.id)
        assert stored.status == (path[-1] if path else "PENDING")

    @pytest.mark.asyncio
    async def test_same_status_is_noop(self, lifecycle_service, request_input):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        updated = await lifecycle_service.update_status(created.id, "PENDING")

        assert updated == created

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, lifecycle_service, request_input):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        with pytest.raises(InvalidStatus):
            await lifecycle_service.update_status(created.id, "BANANA")

    @pytest.mark.asyncio
    async def test_absent_id_leaves_store_unchanged(self, lifecycle_service, request_input):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        with pytest.raises(RequestNotFound):
            await lifecycle_service.update_status(created.id + 1, "APPROVED")

        assert await lifecycle_service.list_all() == [created]


class TestUpdateStatusLegacy:
    """Tests for update_status() with strict transitions turned off."""

    @pytest.mark.asyncio
    async def test_any_string_persisted(self, legacy_lifecycle_service, request_input):
        created = await legacy_lifecycle_service.create(request_input, INSTRUCTOR_A)

        updated = await legacy_lifecycle_service.update_status(created.id, "ON_HOLD")

        assert updated.status == "ON_HOLD"

    @pytest.mark.asyncio
    async def test_any_move_allowed(self, legacy_lifecycle_service, request_input):
        created = await legacy_lifecycle_service.create(request_input, INSTRUCTOR_A)
        await legacy_lifecycle_service.update_status(created.id, "INSTALLED")

        updated = await legacy_lifecycle_service.update_status(created.id, "PENDING")

        assert updated.status == "PENDING"

    @pytest.mark.asyncio
    async def test_absent_id_still_not_found(self, legacy_lifecycle_service):
        with pytest.raises(RequestNotFound):
            await legacy_lifecycle_service.update_status(1, "APPROVED")


class TestDelete:
    """Tests for delete()."""

    @pytest.mark.asyncio
    async def test_owner_deletes(self, lifecycle_service, request_input, instructor_principal):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        await lifecycle_service.delete(created.id, instructor_principal)

        assert await lifecycle_service.list_all() == []

    @pytest.mark.asyncio
    async def test_deleted_id_no_longer_found(self, lifecycle_service, request_input, admin_principal):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        await lifecycle_service.delete(created.id, admin_principal)

        with pytest.raises(RequestNotFound):
            await lifecycle_service.get(created.id, admin_principal)
        with pytest.raises(RequestNotFound):
            await lifecycle_service.update_status(created.id, "APPROVED")

    @pytest.mark.asyncio
    async def test_absent_id_is_silent(self, lifecycle_service, admin_principal, captured_logs):
        await lifecycle_service.delete(42, admin_principal)

        assert any(r["message"] == "Delete of unknown request ignored" for r in captured_logs)

    @pytest.mark.asyncio
    async def test_ids_not_reused_after_delete(self, lifecycle_service, request_input, admin_principal):
        first = await lifecycle_service.create(request_input, INSTRUCTOR_A)
        await lifecycle_service.delete(first.id, admin_principal)

        second = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        assert second.id != first.id

    @pytest.mark.asyncio
    async def test_legacy_non_owner_delete_allowed_and_logged(
        self, lifecycle_service, request_input, other_instructor_principal, captured_logs
    ):
        created = await lifecycle_service.create(request_input, INSTRUCTOR_A)

        await lifecycle_service.delete(created.id, other_instructor_principal)

        assert await lifecycle_service.list_all() == []
        warnings = [r for r in captured_logs if "non-owner" in r["message"]]
        assert len(warnings) == 1
        assert warnings[0]["extra"]["owner"] == INSTRUCTOR_A

    @pytest.mark.asyncio
    async def test_enforced_non_owner_denied(
        self, enforcing_lifecycle_service, request_input, other_instructor_principal
    ):
        created = await enforcing_lifecycle_service.create(request_input, INSTRUCTOR_A)

        with pytest.raises(AuthorizationDenied):
            await enforcing_lifecycle_service.delete(created.id, other_instructor_principal)

        assert await enforcing_lifecycle_service.list_all() == [created]

    @pytest.mark.asyncio
    async def test_enforced_owner_allowed(self, enforcing_lifecycle_service, request_input, instructor_principal):
        created = await enforcing_lifecycle_service.create(request_input, INSTRUCTOR_A)

        await enforcing_lifecycle_service.delete(created.id, instructor_principal)

        assert await enforcing_lifecycle_service.list_all() == []

    @pytest.mark.asyncio
    async def test_enforced_admin_deletes_any(self, enforcing_lifecycle_service, request_input, admin_principal):
        created = await enforcing_lifecycle_service.create(request_input, INSTRUCTOR_A)

        await enforcing_lifecycle_service.delete(created.id, admin_principal)

        assert await enforcing_lifecycle_service.list_all() == []

    @pytest.mark.asyncio
    async def test_enforced_absent_id_is_silent(self, enforcing_lifecycle_service, other_instructor_principal):
        await enforcing_lifecycle_service.delete(5, other_instructor_principal)
