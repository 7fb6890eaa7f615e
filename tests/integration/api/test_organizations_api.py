"""Integration tests for Organizations API."""

from collections.abc import Callable
from uuid import uuid4

import pytest
from httpx import AsyncClient

from infrastructure.auth.provider import TokenUser

ORGS = "/api/v1/organizations"


async def _create_org(
    client: AsyncClient, headers: dict[str, str], name: str = "Acme Inc", **extra: object
) -> dict:
    response = await client.post(ORGS, json={"name": name, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def colleague_headers(headers_for: Callable[[TokenUser], dict[str, str]]) -> dict[str, str]:
    """A user sharing the owner's email domain."""
    return headers_for(TokenUser(id=uuid4(), email="colleague@acme.com", display_name="Cole"))


class TestCreateOrganization:
    @pytest.mark.asyncio
    async def test_creator_becomes_admin(
        self, client: AsyncClient, owner_headers: dict[str, str]
    ) -> None:
        data = await _create_org(client, owner_headers)

        assert data["name"] == "Acme Inc"
        assert data["slug"] == "acme-inc"
        assert data["domain"] == "acme.com"
        assert data["role"] == "Admin"
        assert "invite_users" in data["permissions"]

        members = await client.get(f"{ORGS}/acme-inc/members", headers=owner_headers)
        assert [(m["email"], m["role"]) for m in members.json()["data"]] == [
            ("owner@acme.com", "Admin")
        ]

    @pytest.mark.asyncio
    async def test_public_mail_domain_is_not_claimed(
        self, client: AsyncClient, headers_for: Callable[[TokenUser], dict[str, str]]
    ) -> None:
        headers = headers_for(TokenUser(id=uuid4(), email="hobbyist@gmail.com"))

        data = await _create_org(client, headers, name="Weekend Club")

        assert data["domain"] is None

    @pytest.mark.asyncio
    async def test_taken_slug_is_rejected(
        self,
        client: AsyncClient,
        owner_headers: dict[str, str],
        stranger_headers: dict[str, str],
    ) -> None:
        await _create_org(client, owner_headers, slug="acme")

        response = await client.post(
            ORGS, json={"name": "Other Acme", "slug": "acme"}, headers=stranger_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "ORGANIZATION_SLUG_TAKEN"

    @pytest.mark.asyncio
    async def test_malformed_slug_is_rejected(
        self, client: AsyncClient, owner_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            ORGS, json={"name": "Acme", "slug": "acme inc!"}, headers=owner_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert response.json()["details"] == {"field": "slug"}

    @pytest.mark.asyncio
    async def test_blank_name_is_422(
        self, client: AsyncClient, owner_headers: dict[str, str]
    ) -> None:
        response = await client.post(ORGS, json={"name": "   "}, headers=owner_headers)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient) -> None:
        response = await client.post(ORGS, json={"name": "Acme"})

        assert response.status_code == 401


class TestLookups:
    @pytest.mark.asyncio
    async def test_check_slug(self, client: AsyncClient, owner_headers: dict[str, str]) -> None:
        before = await client.get(f"{ORGS}/check-slug/acme-inc", headers=owner_headers)
        await _create_org(client, owner_headers)
        after = await client.get(f"{ORGS}/check-slug/acme-inc", headers=owner_headers)

        assert before.json() == {"slug": "acme-inc", "available": True}
        assert after.json() == {"slug": "acme-inc", "available": False}

    @pytest.mark.asyncio
    async def test_find_by_domain(
        self, client: AsyncClient, owner_headers: dict[str, str]
    ) -> None:
        organization = await _create_org(client, owner_headers)

        found = await client.get(f"{ORGS}/domain/ACME.com", headers=owner_headers)
        missing = await client.get(f"{ORGS}/domain/globex-corp.io", headers=owner_headers)

        assert found.json()["data"]["id"] == organization["id"]
        assert missing.json() == {"data": None, "suggested_name": "Globex Corp"}


class TestGetAndUpdate:
    @pytest.mark.asyncio
    async def test_member_gets_organization_with_role(
        self, client: AsyncClient, owner_headers: dict[str, str]
    ) -> None:
        await _create_org(client, owner_headers)

        response = await client.get(f"{ORGS}/acme-inc", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "Admin"

    @pytest.mark.asyncio
    async def test_non_member_is_forbidden(
        self,
        client: AsyncClient,
        owner_headers: dict[str, str],
        stranger_headers: dict[str, str],
    ) -> None:
        await _create_org(client, owner_headers)

        response = await client.get(f"{ORGS}/acme-inc", headers=stranger_headers)

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_A_MEMBER"

    @pytest.mark.asyncio
    async def test_unknown_slug_is_404(
        self, client: AsyncClient, owner_headers: dict[str, str]
    ) -> None:
        response = await client.get(f"{ORGS}/nowhere", headers=owner_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "ORGANIZATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_admin_updates_name(
        self, client: AsyncClient, owner_headers: dict[str, str]
    ) -> None:
        await _create_org(client, owner_headers)

        response = await client.put(
            f"{ORGS}/acme-inc", json={"name": "Acme Corporation"}, headers=owner_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Acme Corporation"
        assert response.json()["data"]["slug"] == "acme-inc"

    @pytest.mark.asyncio
    async def test_member_cannot_update(
        self,
        client: AsyncClient,
        owner_headers: dict[str, str],
        colleague_headers: dict[str, str],
    ) -> None:
        organization = await _create_org(client, owner_headers)
        await client.post(
            f"{ORGS}/join", json={"organization_id": organization["id"]}, headers=colleague_headers
        )

        response = await client.put(
            f"{ORGS}/acme-inc", json={"name": "Hijacked"}, headers=colleague_headers
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "INSUFFICIENT_PERMISSIONS"


class TestJoin:
    @pytest.mark.asyncio
    async def test_matching_domain_joins_as_member(
        self,
        client: AsyncClient,
        owner_headers: dict[str, str],
        colleague_headers: dict[str, str],
    ) -> None:
        organization = await _create_org(client, owner_headers)

        response = await client.post(
            f"{ORGS}/join", json={"organization_id": organization["id"]}, headers=colleague_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "Member"
        again = await client.post(
            f"{ORGS}/join", json={"organization_id": organization["id"]}, headers=colleague_headers
        )
        assert again.status_code == 400
        assert again.json()["error_code"] == "ALREADY_A_MEMBER"

    @pytest.mark.asyncio
    async def test_other_domain_cannot_join(
        self,
        client: AsyncClient,
        owner_headers: dict[str, str],
        stranger_headers: dict[str, str],
    ) -> None:
        organization = await _create_org(client, owner_headers)

        response = await client.post(
            f"{ORGS}/join", json={"organization_id": organization["id"]}, headers=stranger_headers
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_unknown_organization_is_404(
        self, client: AsyncClient, colleague_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            f"{ORGS}/join", json={"organization_id": str(uuid4())}, headers=colleague_headers
        )

        assert response.status_code == 404


class TestAccessRequests:
    async def _request_access(
        self, client: AsyncClient, owner_headers: dict[str, str], headers: dict[str, str]
    ) -> dict:
        await _create_org(client, owner_headers)
        response = await client.post(f"{ORGS}/acme-inc/request-access", headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    @pytest.mark.asyncio
    async def test_request_is_listed_for_admins(
        self,
        client: AsyncClient,
        owner_headers: dict[str, str],
        stranger_headers: dict[str, str],
    ) -> None:
        request = await self._request_access(client, owner_headers, stranger_headers)

        listing = await client.get(f"{ORGS}/acme-inc/invitations", headers=owner_headers)

        assert request["status"] == "pending"
        assert request["email"] == "stranger@other.org"
        [row] = listing.json()["data"]
        assert row["id"] == request["id"]
        assert row["type"] == "REQUEST"
        assert row["invited_by"] is None

    @pytest.mark.asyncio
    async def test_second_request_while_pending_is_rejected(
        self,
        client: AsyncClient,
        owner_headers: dict[str, str],
        stranger_headers: dict[str, str],
    ) -> None:
        await self._request_access(client, owner_headers, stranger_headers)

        response = await client.post(f"{ORGS}/acme-inc/request-access", headers=stranger_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "DUPLICATE_INVITATION"

    @pytest.mark.asyncio
    async def test_member_cannot_request_access(
        self, client: AsyncClient, owner_headers: dict[str, str]
    ) -> None:
        await _create_org(client, owner_headers)

        response = await client.post(f"{ORGS}/acme-inc/request-access", headers=owner_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "ALREADY_A_MEMBER"

    @pytest.mark.asyncio
    async def test_approve_adds_requester_as_member(
        self,
        client: AsyncClient,
        owner_headers: dict[str, str],
        stranger_headers: dict[str, str],
    ) -> None:
        request = await self._request_access(client, owner_headers, stranger_headers)

        response = await client.post(
            f"{ORGS}/acme-inc/requests/{request['id']}/approve", headers=owner_headers
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Access request approved"}
        joined = await client.get(f"{ORGS}/acme-inc", headers=stranger_headers)
        assert joined.json()["data"]["role"] == "Member"

    @pytest.mark.asyncio
    async def test_reject_leaves_requester_outside(
        self,
        client: AsyncClient,
        owner_headers: dict[str, str],
        stranger_headers: dict[str, str],
    ) -> None:
        request = await self._request_access(client, owner_headers, stranger_headers)

        response = await client.post(
            f"{ORGS}/acme-inc/requests/{request['id']}/reject", headers=owner_headers
        )
        second = await client.post(
            f"{ORGS}/acme-inc/requests/{request['id']}/approve", headers=owner_headers
        )

        assert response.json() == {"message": "Access request rejected"}
        assert second.status_code == 400
        assert second.json()["details"] == {"status": "declined"}
        outside = await client.get(f"{ORGS}/acme-inc", headers=stranger_headers)
        assert outside.status_code == 403

    @pytest.mark.asyncio
    async def test_invitation_cannot_be_approved_as_request(
        self, client: AsyncClient, owner_headers: dict[str, str]
    ) -> None:
        await _create_org(client, owner_headers)
        invited = await client.post(
            f"{ORGS}/acme-inc/invitations",
            json={"email": "invitee@example.com"},
            headers=owner_headers,
        )

        response = await client.post(
            f"{ORGS}/acme-inc/requests/{invited.json()['data']['id']}/approve",
            headers=owner_headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_non_admin_cannot_approve(
        self,
        client: AsyncClient,
        owner_headers: dict[str, str],
        stranger_headers: dict[str, str],
        colleague_headers: dict[str, str],
    ) -> None:
        request = await self._request_access(client, owner_headers, stranger_headers)
        organization = (await client.get(f"{ORGS}/acme-inc", headers=owner_headers)).json()
        await client.post(
            f"{ORGS}/join",
            json={"organization_id": organization["data"]["id"]},
            headers=colleague_headers,
        )

        response = await client.post(
            f"{ORGS}/acme-inc/requests/{request['id']}/approve", headers=colleague_headers
        )

        assert response.status_code == 403
