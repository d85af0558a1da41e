"""
Tests de notificaciones in-app: listado, marcado y borrado.
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import auth_headers, create_patient_user
from dental_marketplace.models import NotificationType
from dental_marketplace.services.notification_service import notify

URL = "/api/v1/notifications"


async def seed(db: AsyncSession, user, count: int = 3) -> None:
    for i in range(count):
        await notify(
            db,
            user_id=user.id,
            type=NotificationType.SYSTEM_NOTIFICATION if i else NotificationType.CLINIC_UPDATE,
            title=f"Aviso {i}",
            message=f"Mensaje {i}",
        )
    await db.commit()


@pytest.mark.asyncio
async def test_list_with_unread_count(client: AsyncClient, db_session: AsyncSession, patient_user):
    await seed(db_session, patient_user)

    response = await client.get(URL, headers=auth_headers(patient_user))

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["unread_count"] == 3
    assert {n["title"] for n in data["notifications"]} == {"Aviso 0", "Aviso 1", "Aviso 2"}

    by_type = await client.get(
        URL, params={"type": "CLINIC_UPDATE"}, headers=auth_headers(patient_user)
    )
    assert [n["title"] for n in by_type.json()["notifications"]] == ["Aviso 0"]


@pytest.mark.asyncio
async def test_mark_one_read(client: AsyncClient, db_session: AsyncSession, patient_user):
    await seed(db_session, patient_user)
    headers = auth_headers(patient_user)
    first = (await client.get(URL, headers=headers)).json()["notifications"][0]

    response = await client.patch(f"{URL}/{first['id']}/read", headers=headers)
    assert response.status_code == 200
    assert response.json()["is_read"] is True

    unread = await client.get(URL, params={"unread_only": True}, headers=headers)
    assert unread.json()["total"] == 2
    assert unread.json()["unread_count"] == 2


@pytest.mark.asyncio
async def test_mark_all_read(client: AsyncClient, db_session: AsyncSession, patient_user):
    await seed(db_session, patient_user)
    headers = auth_headers(patient_user)

    response = await client.post(f"{URL}/mark-all-read", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"updated": 3}

    data = (await client.get(URL, headers=headers)).json()
    assert data["unread_count"] == 0
    assert data["total"] == 3


@pytest.mark.asyncio
async def test_delete_notification(client: AsyncClient, db_session: AsyncSession, patient_user):
    await seed(db_session, patient_user, count=1)
    headers = auth_headers(patient_user)
    notification = (await client.get(URL, headers=headers)).json()["notifications"][0]

    response = await client.delete(f"{URL}/{notification['id']}", headers=headers)
    assert response.status_code == 204

    assert (await client.get(URL, headers=headers)).json()["total"] == 0


@pytest.mark.asyncio
async def test_cannot_touch_other_users_notifications(client: AsyncClient, db_session: AsyncSession, patient_user):
    await seed(db_session, patient_user, count=1)
    other = await create_patient_user(db_session, "otro@test.com", "B7654321")
    notification = (
        await client.get(URL, headers=auth_headers(patient_user))
    ).json()["notifications"][0]
    other_headers = auth_headers(other)

    assert (await client.get(URL, headers=other_headers)).json()["total"] == 0
    assert (
        await client.patch(f"{URL}/{notification['id']}/read", headers=other_headers)
    ).status_code == 404
    assert (
        await client.delete(f"{URL}/{notification['id']}", headers=other_headers)
    ).status_code == 404
    assert (await client.patch(f"{URL}/{uuid4()}/read", headers=other_headers)).status_code == 404


@pytest.mark.asyncio
async def test_notifications_require_authentication(client: AsyncClient):
    assert (await client.get(URL)).status_code == 401
