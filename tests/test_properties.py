"""
Listing lifecycle tests: creation, visibility, updates, status rules,
archive/soft/hard delete, search, view counting and favorites.
"""

import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy import select, func

from marketplace.models.user import User
from marketplace.models.property import Property, PropertyStatus
from marketplace.models.image import PropertyImage
from marketplace.models.inquiry import Inquiry
from tests.conftest import (
    PropertyFactory,
    InquiryFactory,
    auth_headers,
    create_test_image
)

API = "/api/v1"


class TestCreateProperty:
    """POST /properties"""

    @pytest.mark.asyncio
    async def test_create_and_read_back(self, client: AsyncClient, seller: User):
        headers = auth_headers(seller)

        response = await client.post(
            f"{API}/properties", json=PropertyFactory.create_property_data(), headers=headers
        )

        assert response.status_code == status.HTTP_201_CREATED
        created = response.json()
        assert created["status"] == "pending"
        assert created["seller_id"] == str(seller.id)
        assert created["price"] == 850000
        assert created["views_count"] == 0

        response = await client.get(f"{API}/properties/{created['id']}", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["title"] == "Three bedroom house in East Legon"
        assert data["owner"]["id"] == str(seller.id)
        assert data["inquiries"] == []

    @pytest.mark.asyncio
    async def test_create_draft(self, client: AsyncClient, agent: User):
        response = await client.post(
            f"{API}/properties",
            json=PropertyFactory.create_property_data(status="draft"),
            headers=auth_headers(agent)
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["status"] == "draft"

    @pytest.mark.asyncio
    async def test_buyer_cannot_create(self, client: AsyncClient, buyer: User):
        response = await client.post(
            f"{API}/properties", json=PropertyFactory.create_property_data(), headers=auth_headers(buyer)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"]["message"] == "Only agents and sellers can create properties"

    @pytest.mark.asyncio
    async def test_create_requires_authentication(self, client: AsyncClient):
        response = await client.post(f"{API}/properties", json=PropertyFactory.create_property_data())
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_invalid_price(self, client: AsyncClient, seller: User):
        response = await client.post(
            f"{API}/properties",
            json=PropertyFactory.create_property_data(price=0),
            headers=auth_headers(seller)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "Price must be greater than 0"

    @pytest.mark.asyncio
    async def test_missing_title(self, client: AsyncClient, seller: User):
        body = PropertyFactory.create_property_data()
        del body["title"]

        response = await client.post(f"{API}/properties", json=body, headers=auth_headers(seller))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "Missing required field: title"


class TestVisibility:
    """Who can read a listing in which state."""

    @pytest.mark.asyncio
    async def test_pending_listing_hidden_from_public(self, client: AsyncClient, db_session, seller: User):
        pending = await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING)

        response = await client.get(f"{API}/properties/{pending.id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = await client.get(f"{API}/properties/{pending.id}", headers=auth_headers(seller))
        assert response.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_pending_listing_hidden_from_other_users(
        self, client: AsyncClient, db_session, seller: User, buyer: User
    ):
        pending = await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING)

        response = await client.get(f"{API}/properties/{pending.id}", headers=auth_headers(buyer))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, client: AsyncClient):
        response = await client.get(f"{API}/properties/not-a-uuid")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_inquiries_only_shown_to_owner(
        self, client: AsyncClient, db_session, active_property, seller: User, buyer: User
    ):
        await InquiryFactory.create_inquiry(db_session, active_property.id)

        owner_view = await client.get(f"{API}/properties/{active_property.id}", headers=auth_headers(seller))
        buyer_view = await client.get(f"{API}/properties/{active_property.id}", headers=auth_headers(buyer))

        assert len(owner_view.json()["inquiries"]) == 1
        assert buyer_view.json().get("inquiries") is None


class TestUpdateProperty:
    """PUT/PATCH /properties/{id} and the seller-portal update."""

    @pytest.mark.asyncio
    async def test_edit_of_active_listing_returns_it_to_review(
        self, client: AsyncClient, active_property, seller: User
    ):
        """Requesting "active" alongside an edit does not keep the listing live."""
        response = await client.put(
            f"{API}/properties/{active_property.id}",
            json={"title": "Renovated family house", "status": "active"},
            headers=auth_headers(seller)
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["title"] == "Renovated family house"
        assert data["status"] == "pending"

    @pytest.mark.asyncio
    async def test_owner_cannot_activate(self, client: AsyncClient, db_session, seller: User):
        pending = await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING)

        response = await client.patch(
            f"{API}/properties/{pending.id}", json={"status": "active"}, headers=auth_headers(seller)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "Only administrators can activate properties"

    @pytest.mark.asyncio
    async def test_admin_activates(self, client: AsyncClient, db_session, seller: User, admin: User):
        pending = await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING)

        response = await client.patch(
            f"{API}/properties/{pending.id}", json={"status": "active"}, headers=auth_headers(admin)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "active"

    @pytest.mark.asyncio
    async def test_disallowed_transition(self, client: AsyncClient, db_session, seller: User):
        draft = await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.DRAFT)

        response = await client.patch(
            f"{API}/properties/{draft.id}", json={"status": "sold"}, headers=auth_headers(seller)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "Cannot change property status from draft to sold"

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, client: AsyncClient, active_property, seller: User):
        response = await client.put(
            f"{API}/properties/{active_property.id}", json={}, headers=auth_headers(seller)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "No valid fields provided for update"

    @pytest.mark.asyncio
    async def test_other_seller_forbidden_on_generic_route(
        self, client: AsyncClient, active_property, other_seller: User
    ):
        response = await client.put(
            f"{API}/properties/{active_property.id}",
            json={"title": "Hijacked"},
            headers=auth_headers(other_seller)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"]["message"] == "Insufficient permissions"

    @pytest.mark.asyncio
    async def test_other_seller_sees_not_found_on_portal_route(
        self, client: AsyncClient, active_property, other_seller: User
    ):
        response = await client.put(
            f"{API}/seller/properties/{active_property.id}",
            json={"title": "Hijacked"},
            headers=auth_headers(other_seller)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == "Property not found or access denied"


class TestDeleteProperty:
    """Archive, deactivate, soft delete, restore and hard delete."""

    @pytest.mark.asyncio
    async def test_active_listing_cannot_be_archived(self, client: AsyncClient, active_property, seller: User):
        response = await client.delete(f"{API}/properties/{active_property.id}", headers=auth_headers(seller))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "Cannot delete active properties. Please deactivate first."

    @pytest.mark.asyncio
    async def test_archive_inactive_listing(self, client: AsyncClient, db_session, seller: User):
        inactive = await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.INACTIVE)

        response = await client.delete(f"{API}/properties/{inactive.id}", headers=auth_headers(seller))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "archived"
        assert data["archived_by"] == str(seller.id)
        assert data["archived_at"] is not None

    @pytest.mark.asyncio
    async def test_portal_delete_deactivates(self, client: AsyncClient, db_session, seller: User):
        pending = await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING)

        response = await client.delete(f"{API}/seller/properties/{pending.id}", headers=auth_headers(seller))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "inactive"

    @pytest.mark.asyncio
    async def test_soft_delete_and_restore(self, client: AsyncClient, active_property, seller: User):
        headers = auth_headers(seller)
        url = f"{API}/properties/{active_property.id}/soft-delete"

        response = await client.patch(url, json={"reason": "Sold privately"}, headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["permanent"] is False

        response = await client.patch(url, json={}, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "Property is already deleted"

        # Soft-deleted listings disappear from public reads
        response = await client.get(f"{API}/properties/{active_property.id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = await client.delete(url, headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "active"
        assert response.json()["deleted_at"] is None

        response = await client.delete(url, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "Property is not deleted"

    @pytest.mark.asyncio
    async def test_soft_delete_other_owner_forbidden(
        self, client: AsyncClient, active_property, other_seller: User
    ):
        response = await client.patch(
            f"{API}/properties/{active_property.id}/soft-delete", json={}, headers=auth_headers(other_seller)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_restore_by_other_owner_forbidden(
        self, client: AsyncClient, active_property, seller: User, other_seller: User
    ):
        url = f"{API}/properties/{active_property.id}/soft-delete"
        await client.patch(url, json={"reason": "Paused"}, headers=auth_headers(seller))

        response = await client.delete(url, headers=auth_headers(other_seller))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"]["message"] == "Forbidden: You can only restore your own properties"

    @pytest.mark.asyncio
    async def test_restore_clears_deletion_reason(
        self, client: AsyncClient, db_session, active_property, seller: User
    ):
        headers = auth_headers(seller)
        url = f"{API}/properties/{active_property.id}/soft-delete"
        await client.patch(url, json={"reason": "Sold privately"}, headers=headers)

        reason = await db_session.execute(
            select(Property.deletion_reason).where(Property.id == active_property.id)
        )
        assert reason.scalar() == "Sold privately"

        response = await client.delete(url, headers=headers)
        assert response.status_code == status.HTTP_200_OK

        reason = await db_session.execute(
            select(Property.deletion_reason).where(Property.id == active_property.id)
        )
        assert reason.scalar() is None

    @pytest.mark.asyncio
    async def test_hard_delete_removes_dependents_and_files(
        self, client: AsyncClient, db_session, active_property, seller: User, storage
    ):
        headers = auth_headers(seller)
        property_id = active_property.id
        await InquiryFactory.create_inquiry(db_session, property_id)

        upload = await client.post(
            f"{API}/properties/{property_id}/images/upload",
            files=[("file", ("front.png", create_test_image(), "image/png"))],
            headers=headers
        )
        assert upload.status_code == status.HTTP_200_OK
        assert len([p for p in storage.base_dir.rglob("*") if p.is_file()]) == 1

        response = await client.delete(f"{API}/properties/{property_id}/permanent", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["permanent"] is True
        assert [p for p in storage.base_dir.rglob("*") if p.is_file()] == []

        images = await db_session.execute(
            select(func.count(PropertyImage.id)).where(PropertyImage.property_id == property_id)
        )
        inquiries = await db_session.execute(
            select(func.count(Inquiry.id)).where(Inquiry.property_id == property_id)
        )
        assert images.scalar() == 0
        assert inquiries.scalar() == 0

        response = await client.get(f"{API}/properties/{property_id}", headers=headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestSearch:
    """GET /properties"""

    @pytest.mark.asyncio
    async def test_only_active_listings_are_public(self, client: AsyncClient, db_session, seller: User):
        await PropertyFactory.create_property(db_session, seller.id, title="Live listing")
        await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING)
        await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.DRAFT)

        response = await client.get(f"{API}/properties")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 1
        assert data["properties"][0]["title"] == "Live listing"

    @pytest.mark.asyncio
    async def test_status_filter_ignored_for_non_admins(self, client: AsyncClient, db_session, seller: User):
        await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING)

        response = await client.get(f"{API}/properties", params={"status": "pending"}, headers=auth_headers(seller))

        assert response.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_admin_status_filter(self, client: AsyncClient, db_session, seller: User, admin: User):
        await PropertyFactory.create_property(db_session, seller.id)
        await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING)

        response = await client.get(f"{API}/properties", params={"status": "pending"}, headers=auth_headers(admin))

        data = response.json()
        assert data["total"] == 1
        assert data["properties"][0]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_filters_and_pagination(self, client: AsyncClient, db_session, seller: User):
        for price in (100000, 200000, 300000):
            await PropertyFactory.create_property(db_session, seller.id, price=price)
        await PropertyFactory.create_property(db_session, seller.id, city="Kumasi", price=150000)

        response = await client.get(f"{API}/properties", params={
            "city": "Accra", "min_price": 150000, "sort_by": "price", "sort_order": "asc", "page_size": 1
        })

        data = response.json()
        assert data["total"] == 2
        assert data["total_pages"] == 2
        assert data["has_next"] is True
        assert data["properties"][0]["price"] == 200000

    @pytest.mark.asyncio
    async def test_min_price_above_max_price(self, client: AsyncClient):
        response = await client.get(f"{API}/properties", params={"min_price": 500, "max_price": 100})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_seller_portal_lists_every_status(self, client: AsyncClient, db_session, seller: User, other_seller: User):
        await PropertyFactory.create_property(db_session, seller.id)
        await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.DRAFT)
        await PropertyFactory.create_property(db_session, other_seller.id)

        response = await client.get(f"{API}/seller/properties", headers=auth_headers(seller))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total"] == 2


class TestViewsAndFavorites:

    @pytest.mark.asyncio
    async def test_authenticated_reads_count_views(self, client: AsyncClient, active_property, buyer: User):
        url = f"{API}/properties/{active_property.id}"

        await client.get(url)
        first = await client.get(url, headers=auth_headers(buyer))
        second = await client.get(url, headers=auth_headers(buyer))

        assert first.json()["views_count"] == 1
        assert second.json()["views_count"] == 2

    @pytest.mark.asyncio
    async def test_favorite_is_idempotent(self, client: AsyncClient, active_property, buyer: User):
        url = f"{API}/properties/{active_property.id}/favorite"
        headers = auth_headers(buyer)

        assert (await client.post(url, headers=headers)).json()["is_favorite"] is True
        assert (await client.post(url, headers=headers)).json()["is_favorite"] is True

        response = await client.delete(url, headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_favorite"] is False

    @pytest.mark.asyncio
    async def test_cannot_favorite_hidden_listing(self, client: AsyncClient, db_session, seller: User, buyer: User):
        draft = await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.DRAFT)

        response = await client.post(f"{API}/properties/{draft.id}/favorite", headers=auth_headers(buyer))

        assert response.status_code == status.HTTP_404_NOT_FOUND
