"""
Inquiry tests: public submission and the seller response workflow.
"""

import uuid
import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy import select

from marketplace.models.user import User
from marketplace.models.property import PropertyStatus
from marketplace.models.inquiry import Inquiry, InquiryStatus, InquiryPriority
from marketplace.repositories.inquiry import InquiryRepository
from tests.conftest import PropertyFactory, InquiryFactory, auth_headers

API = "/api/v1"


class TestSubmitInquiry:
    """POST /inquiries"""

    @pytest.mark.asyncio
    async def test_message_length_boundary(self, client: AsyncClient, active_property):
        too_short = await client.post(
            f"{API}/inquiries",
            json=InquiryFactory.create_inquiry_data(active_property.id, message="Too short")
        )
        long_enough = await client.post(
            f"{API}/inquiries",
            json=InquiryFactory.create_inquiry_data(active_property.id, message="Ten chars!")
        )

        assert too_short.status_code == status.HTTP_400_BAD_REQUEST
        assert too_short.json()["error"]["message"] == "Message must be at least 10 characters"
        assert long_enough.status_code == status.HTTP_201_CREATED

    @pytest.mark.asyncio
    async def test_anonymous_submission(self, client: AsyncClient, active_property):
        response = await client.post(
            f"{API}/inquiries", json=InquiryFactory.create_inquiry_data(active_property.id)
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["property_id"] == str(active_property.id)
        assert data["status"] == "new"
        assert data["message"] == "Inquiry submitted successfully"

    @pytest.mark.asyncio
    async def test_signed_in_buyer_is_linked(
        self, client: AsyncClient, active_property, buyer: User, seller: User
    ):
        response = await client.post(
            f"{API}/inquiries",
            json=InquiryFactory.create_inquiry_data(active_property.id),
            headers=auth_headers(buyer)
        )
        inquiry_id = response.json()["id"]

        detail = await client.get(f"{API}/seller/inquiries/{inquiry_id}", headers=auth_headers(seller))

        assert detail.status_code == status.HTTP_200_OK
        assert detail.json()["buyer_id"] == str(buyer.id)
        assert detail.json()["priority"] == "medium"

    @pytest.mark.asyncio
    async def test_inactive_listing_rejected(self, client: AsyncClient, db_session, seller: User):
        pending = await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING)

        response = await client.post(f"{API}/inquiries", json=InquiryFactory.create_inquiry_data(pending.id))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_unknown_listing_rejected(self, client: AsyncClient):
        response = await client.post(f"{API}/inquiries", json=InquiryFactory.create_inquiry_data(uuid.uuid4()))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_invalid_email(self, client: AsyncClient, active_property):
        response = await client.post(
            f"{API}/inquiries",
            json=InquiryFactory.create_inquiry_data(active_property.id, buyer_email="not-an-email")
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestSellerInquiries:
    """The /seller/inquiries workflow."""

    @pytest.mark.asyncio
    async def test_respond_once(self, client: AsyncClient, db_session, active_property, seller: User):
        inquiry = await InquiryFactory.create_inquiry(db_session, active_property.id)
        headers = auth_headers(seller)
        body = {"inquiry_id": str(inquiry.id), "response_message": "Yes, viewings are on Saturdays."}

        response = await client.post(f"{API}/seller/inquiries", json=body, headers=headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "responded"
        assert data["response_type"] == "accepted"
        assert data["responded_at"] is not None

        second = {"inquiry_id": str(inquiry.id), "response_message": "Actually, only on Sundays."}
        response = await client.post(f"{API}/seller/inquiries", json=second, headers=headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "Inquiry has already been responded to"

        detail = await client.get(f"{API}/seller/inquiries/{inquiry.id}", headers=headers)
        assert detail.json()["response_message"] == "Yes, viewings are on Saturdays."
        assert detail.json()["status"] == "responded"

    @pytest.mark.asyncio
    async def test_counter_offer_response(self, client: AsyncClient, db_session, active_property, seller: User):
        inquiry = await InquiryFactory.create_inquiry(db_session, active_property.id)

        response = await client.post(f"{API}/seller/inquiries", json={
            "inquiry_id": str(inquiry.id),
            "response_message": "I can do a little less.",
            "response_type": "counter_offer",
            "counter_offer_price": 240000,
        }, headers=auth_headers(seller))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["counter_offer_price"] == 240000

    @pytest.mark.asyncio
    async def test_update_after_response(self, client: AsyncClient, db_session, active_property, seller: User):
        inquiry = await InquiryFactory.create_inquiry(db_session, active_property.id, status=InquiryStatus.RESPONDED)

        response = await client.put(
            f"{API}/seller/inquiries/{inquiry.id}",
            json={"notes": "Called the buyer back", "priority": "high"},
            headers=auth_headers(seller)
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["notes"] == "Called the buyer back"
        assert data["priority"] == "high"
        assert data["status"] == "responded"

    @pytest.mark.asyncio
    async def test_delete_closes_inquiry(self, client: AsyncClient, db_session, active_property, seller: User):
        inquiry = await InquiryFactory.create_inquiry(db_session, active_property.id)

        response = await client.delete(f"{API}/seller/inquiries/{inquiry.id}", headers=auth_headers(seller))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "closed"

    @pytest.mark.asyncio
    async def test_other_seller_sees_not_found(
        self, client: AsyncClient, db_session, active_property, other_seller: User
    ):
        inquiry = await InquiryFactory.create_inquiry(db_session, active_property.id)
        headers = auth_headers(other_seller)

        read = await client.get(f"{API}/seller/inquiries/{inquiry.id}", headers=headers)
        respond = await client.post(f"{API}/seller/inquiries", json={
            "inquiry_id": str(inquiry.id), "response_message": "Not mine to answer",
        }, headers=headers)

        assert read.status_code == status.HTTP_404_NOT_FOUND
        assert read.json()["error"]["message"] == "Inquiry not found"
        assert respond.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_admin_is_not_the_owner(
        self, client: AsyncClient, db_session, active_property, admin: User, seller: User
    ):
        inquiry = await InquiryFactory.create_inquiry(db_session, active_property.id)
        headers = auth_headers(admin)
        url = f"{API}/seller/inquiries/{inquiry.id}"

        read = await client.get(url, headers=headers)
        respond = await client.post(f"{API}/seller/inquiries", json={
            "inquiry_id": str(inquiry.id), "response_message": "Answering on the seller's behalf",
        }, headers=headers)
        update = await client.put(url, json={"notes": "Escalated"}, headers=headers)
        close = await client.delete(url, headers=headers)
        listing = await client.get(f"{API}/seller/inquiries", headers=headers)

        for response in (read, respond, update, close):
            assert response.status_code == status.HTTP_404_NOT_FOUND
            assert response.json()["error"]["message"] == "Inquiry not found"
        assert listing.json()["pagination"]["total"] == 0

        detail = await client.get(url, headers=auth_headers(seller))
        assert detail.json()["status"] == "new"
        assert detail.json()["response_message"] is None
        assert detail.json()["notes"] is None

    @pytest.mark.asyncio
    async def test_list_pagination_and_filters(
        self, client: AsyncClient, db_session, active_property, seller: User, other_seller: User
    ):
        for _ in range(3):
            await InquiryFactory.create_inquiry(db_session, active_property.id)
        await InquiryFactory.create_inquiry(db_session, active_property.id, priority=InquiryPriority.URGENT)
        foreign = await PropertyFactory.create_property(db_session, other_seller.id)
        await InquiryFactory.create_inquiry(db_session, foreign.id)
        headers = auth_headers(seller)

        page = await client.get(f"{API}/seller/inquiries", params={"limit": 2}, headers=headers)
        urgent = await client.get(f"{API}/seller/inquiries", params={"priority": "urgent"}, headers=headers)

        assert page.status_code == status.HTTP_200_OK
        data = page.json()
        assert len(data["inquiries"]) == 2
        assert data["pagination"] == {"page": 1, "limit": 2, "total": 4, "total_pages": 2}
        assert data["inquiries"][0]["property"]["id"] == str(active_property.id)
        assert urgent.json()["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_list_rejects_bad_property_filter(self, client: AsyncClient, seller: User):
        response = await client.get(
            f"{API}/seller/inquiries", params={"property_id": "nope"}, headers=auth_headers(seller)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestBulkOperations:
    """PUT /seller/inquiries"""

    @pytest.mark.asyncio
    async def test_per_id_results_and_errors(
        self, client: AsyncClient, db_session, active_property, seller: User, other_seller: User
    ):
        own = await InquiryFactory.create_inquiry(db_session, active_property.id)
        foreign_property = await PropertyFactory.create_property(db_session, other_seller.id)
        foreign = await InquiryFactory.create_inquiry(db_session, foreign_property.id)
        missing = str(uuid.uuid4())

        response = await client.put(f"{API}/seller/inquiries", json={
            "action": "mark_priority",
            "inquiry_ids": [str(own.id), str(foreign.id), missing],
            "data": {"priority": "urgent"},
        }, headers=auth_headers(seller))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["summary"] == {"total": 3, "successful": 1, "failed": 2}
        assert data["results"][0]["id"] == str(own.id)
        assert {e["id"]: e["error"] for e in data["errors"]} == {
            str(foreign.id): "Access denied",
            missing: "Inquiry not found",
        }

        detail = await client.get(f"{API}/seller/inquiries/{own.id}", headers=auth_headers(seller))
        assert detail.json()["priority"] == "urgent"

    @pytest.mark.asyncio
    async def test_admin_gets_access_denied(
        self, client: AsyncClient, db_session, active_property, admin: User
    ):
        inquiry = await InquiryFactory.create_inquiry(db_session, active_property.id)

        response = await client.put(f"{API}/seller/inquiries", json={
            "action": "archive",
            "inquiry_ids": [str(inquiry.id)],
        }, headers=auth_headers(admin))

        data = response.json()
        assert data["summary"] == {"total": 1, "successful": 0, "failed": 1}
        assert data["errors"] == [{"id": str(inquiry.id), "error": "Access denied"}]

    @pytest.mark.asyncio
    async def test_failed_write_does_not_stop_the_batch(
        self, client: AsyncClient, db_session, active_property, seller: User, monkeypatch
    ):
        inquiries = [await InquiryFactory.create_inquiry(db_session, active_property.id) for _ in range(3)]
        ids = [inquiry.id for inquiry in inquiries]
        original_update = InquiryRepository.update
        calls = {"count": 0}

        async def failing_second_update(self, db_obj, obj_in):
            calls["count"] += 1
            if calls["count"] == 2:
                await self.db.rollback()
                raise RuntimeError("commit failed")
            return await original_update(self, db_obj, obj_in)

        monkeypatch.setattr(InquiryRepository, "update", failing_second_update)

        response = await client.put(f"{API}/seller/inquiries", json={
            "action": "mark_priority",
            "inquiry_ids": [str(inquiry_id) for inquiry_id in ids],
            "data": {"priority": "urgent"},
        }, headers=auth_headers(seller))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["summary"] == {"total": 3, "successful": 2, "failed": 1}
        assert [r["id"] for r in data["results"]] == [str(ids[0]), str(ids[2])]
        assert data["errors"] == [{"id": str(ids[1]), "error": "Failed to update inquiry"}]

        priorities = await db_session.execute(select(Inquiry.id, Inquiry.priority).where(Inquiry.id.in_(ids)))
        stored = dict(priorities.all())
        assert stored[ids[0]] == InquiryPriority.URGENT
        assert stored[ids[1]] == InquiryPriority.MEDIUM
        assert stored[ids[2]] == InquiryPriority.URGENT

    @pytest.mark.asyncio
    async def test_update_status_requires_status(
        self, client: AsyncClient, db_session, active_property, seller: User
    ):
        inquiry = await InquiryFactory.create_inquiry(db_session, active_property.id)

        response = await client.put(f"{API}/seller/inquiries", json={
            "action": "update_status",
            "inquiry_ids": [str(inquiry.id)],
        }, headers=auth_headers(seller))

        data = response.json()
        assert data["summary"]["failed"] == 1
        assert data["errors"][0]["error"] == "Status is required for update_status action"

    @pytest.mark.asyncio
    async def test_archive_closes_each_inquiry(
        self, client: AsyncClient, db_session, active_property, seller: User
    ):
        first = await InquiryFactory.create_inquiry(db_session, active_property.id)
        second = await InquiryFactory.create_inquiry(db_session, active_property.id)

        response = await client.put(f"{API}/seller/inquiries", json={
            "action": "archive",
            "inquiry_ids": [str(first.id), str(second.id)],
        }, headers=auth_headers(seller))

        data = response.json()
        assert data["summary"]["successful"] == 2
        assert {r["status"] for r in data["results"]} == {"closed"}

    @pytest.mark.asyncio
    async def test_unknown_action_rejected(self, client: AsyncClient, db_session, active_property, seller: User):
        inquiry = await InquiryFactory.create_inquiry(db_session, active_property.id)

        response = await client.put(f"{API}/seller/inquiries", json={
            "action": "delete_everything",
            "inquiry_ids": [str(inquiry.id)],
        }, headers=auth_headers(seller))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
