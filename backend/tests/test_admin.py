"""Testes do painel administrativo e avisos."""

from datetime import UTC, datetime, timedelta

import pytest

from conftest import auth_headers, make_user
from flowify.models import ActivityLog, Announcement, ApprovedEmail, Plan, Sale, User


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


def _sale(owner_uid, valor, comissao):
    return Sale(
        user_id=owner_uid,
        cliente_nome="Cliente",
        cliente_telefone="11999998888",
        produto_id=1,
        plataforma="Hyppe",
        quantidade=1,
        valor_total=valor,
        comissao=comissao,
        status="Pago",
    )


class TestAdminUsers:
    def test_requires_admin(self, client, headers):
        assert client.get("/admin/users", headers=headers).status_code == 403

    def test_list_and_search(self, client, user, other_user, admin_headers):
        data = client.get("/admin/users", headers=admin_headers).json()
        assert data["total"] == 3

        found = client.get("/admin/users?search=bruno", headers=admin_headers).json()
        assert [u["uid"] for u in found["items"]] == [other_user.uid]

    def test_update_plan_and_expiry(self, client, db_session, user, admin_headers):
        expires = (datetime.now(UTC) + timedelta(days=30)).isoformat()
        response = client.put(
            f"/admin/users/{user.uid}",
            json={"plan": "bigode", "access_expires_at": expires},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["plan"] == "bigode"
        assert db_session.get(User, user.uid).plan == "bigode"
        entry = db_session.query(ActivityLog).filter(ActivityLog.action == "user.updated").one()
        assert entry.target_id == user.uid
        assert entry.actor_role == "admin"

    def test_update_unknown_plan(self, client, user, admin_headers):
        response = client.put(f"/admin/users/{user.uid}", json={"plan": "ouro"}, headers=admin_headers)
        assert response.status_code == 400

    def test_cannot_deactivate_self(self, client, admin_user, admin_headers):
        response = client.put(f"/admin/users/{admin_user.uid}", json={"active": False}, headers=admin_headers)
        assert response.status_code == 400

    def test_unknown_user(self, client, admin_headers):
        assert client.get("/admin/users/nao-existe", headers=admin_headers).status_code == 404


class TestRanking:
    def test_ordered_by_revenue(self, client, db_session, user, other_user, admin_headers):
        db_session.add_all([
            _sale(user.uid, 100.0, 30.0),
            _sale(other_user.uid, 400.0, 120.0),
            _sale(other_user.uid, 100.0, 30.0),
        ])
        db_session.commit()

        ranking = client.get("/admin/ranking", headers=admin_headers).json()

        assert [r["uid"] for r in ranking] == [other_user.uid, user.uid]
        assert ranking[0]["total_faturamento"] == 500.0
        assert ranking[0]["total_comissao"] == 150.0
        assert ranking[0]["total_vendas"] == 2

    def test_users_without_sales(self, client, user, admin_headers):
        ranking = client.get("/admin/ranking", headers=admin_headers).json()
        assert ranking == [
            {
                "uid": user.uid,
                "nome": user.nome,
                "email": user.email,
                "total_faturamento": 0.0,
                "total_comissao": 0.0,
                "total_vendas": 0,
            }
        ]


class TestApprovedEmails:
    def test_create_list_delete(self, client, db_session, admin_headers):
        created = client.post(
            "/admin/approved-emails",
            json={"email": "Novo@Example.com", "plan": "iniciante"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        assert created.json()["email"] == "novo@example.com"

        listed = client.get("/admin/approved-emails", headers=admin_headers).json()
        assert len(listed) == 1

        deleted = client.delete(f"/admin/approved-emails/{created.json()['id']}", headers=admin_headers)
        assert deleted.status_code == 200
        assert db_session.query(ApprovedEmail).count() == 0

    def test_unknown_plan(self, client, admin_headers):
        response = client.post(
            "/admin/approved-emails",
            json={"email": "novo@example.com", "plan": "ouro"},
            headers=admin_headers,
        )
        assert response.status_code == 400


class TestAdminPlans:
    def _plan(self, plan_id="ouro", **overrides):
        data = {
            "id": plan_id,
            "name": "Plano Ouro",
            "price": 149.0,
            "features": ["Tudo ilimitado"],
            "permissions": {
                "max_products": -1,
                "max_schedulings_per_month": -1,
                "max_pre_schedulings_per_month": -1,
                "max_whatsapp_confirmations_per_month": -1,
                "can_use_cep_checker": True,
            },
        }
        data.update(overrides)
        return data

    def test_public_listing(self, client, plans):
        response = client.get("/plans/")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == ["iniciante", "intermediario", "bigode"]

    def test_create_update_delete(self, client, db_session, admin_headers):
        created = client.post("/admin/plans", json=self._plan(), headers=admin_headers)
        assert created.status_code == 201
        assert created.json()["permissions"]["max_products"] == -1

        updated = client.put("/admin/plans/ouro", json=self._plan(price=199.0, active=False), headers=admin_headers)
        assert updated.status_code == 200
        assert updated.json()["price"] == 199.0
        assert "ouro" not in [p["id"] for p in client.get("/plans/").json()]

        deleted = client.delete("/admin/plans/ouro", headers=admin_headers)
        assert deleted.status_code == 200
        assert db_session.get(Plan, "ouro") is None

    def test_duplicate_id(self, client, admin_headers):
        client.post("/admin/plans", json=self._plan(), headers=admin_headers)
        assert client.post("/admin/plans", json=self._plan(), headers=admin_headers).status_code == 409

    def test_cannot_change_id(self, client, admin_headers):
        client.post("/admin/plans", json=self._plan(), headers=admin_headers)
        response = client.put("/admin/plans/ouro", json=self._plan("prata"), headers=admin_headers)
        assert response.status_code == 400

    def test_cannot_delete_plan_in_use(self, client, user, admin_headers):
        response = client.delete("/admin/plans/intermediario", headers=admin_headers)
        assert response.status_code == 409

    def test_seed_is_idempotent(self, client, db_session, admin_headers):
        db_session.delete(db_session.get(Plan, "bigode"))
        db_session.commit()

        first = client.post("/admin/plans/seed", headers=admin_headers).json()
        second = client.post("/admin/plans/seed", headers=admin_headers).json()

        assert [p["id"] for p in first] == ["bigode"]
        assert second == []


class TestActivityLog:
    def test_filter_by_action(self, client, user, admin_headers):
        client.put(f"/admin/users/{user.uid}", json={"plan": "bigode"}, headers=admin_headers)
        client.post("/admin/approved-emails", json={"email": "x@example.com", "plan": "bigode"}, headers=admin_headers)

        entries = client.get("/admin/activity?action=user.updated", headers=admin_headers).json()
        assert len(entries) == 1
        assert entries[0]["target_id"] == user.uid


class TestAnnouncements:
    def test_admin_crud(self, client, db_session, admin_headers):
        created = client.post(
            "/admin/announcements/",
            json={"title": "Manutenção", "content": "Sistema fora do ar às 2h"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        announcement_id = created.json()["id"]

        updated = client.put(
            f"/admin/announcements/{announcement_id}",
            json={"is_active": False},
            headers=admin_headers,
        )
        assert updated.json()["is_active"] is False

        assert client.delete(f"/admin/announcements/{announcement_id}", headers=admin_headers).status_code == 200
        assert db_session.query(Announcement).count() == 0

    def test_active_for_user(self, client, db_session, user, headers):
        now = datetime.now(UTC)
        db_session.add_all([
            Announcement(title="Para todos", content="a", target_plan="all"),
            Announcement(title="Para o plano", content="b", target_plan="intermediario"),
            Announcement(title="Outro plano", content="c", target_plan="bigode"),
            Announcement(title="Inativo", content="d", target_plan="all", is_active=False),
            Announcement(title="Expirado", content="e", target_plan="all", expires_at=now - timedelta(hours=1)),
            Announcement(title="Vigente", content="f", target_plan="all", expires_at=now + timedelta(days=1)),
        ])
        db_session.commit()

        titles = {a["title"] for a in client.get("/announcements/active", headers=headers).json()}
        assert titles == {"Para todos", "Para o plano", "Vigente"}
