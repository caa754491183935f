"""Testes de tickets de suporte."""

from conftest import auth_headers
from flowify.models import ActivityLog


def _open_ticket(client, headers, subject="Erro na conversão", message="Não consigo converter o agendamento"):
    response = client.post("/support/tickets", json={"subject": subject, "message": message}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestUserTickets:
    def test_create_with_first_message(self, client, user, headers):
        ticket = _open_ticket(client, headers)

        assert ticket["status"] == "open"
        assert ticket["user_id"] == user.uid
        assert ticket["user_name"] == "Ana Vendedora"
        assert len(ticket["messages"]) == 1
        assert ticket["messages"][0]["sender_role"] == "user"

    def test_list_only_own(self, client, headers, other_user):
        _open_ticket(client, headers)
        _open_ticket(client, auth_headers(other_user), subject="Dúvida sobre plano")

        tickets = client.get("/support/tickets", headers=headers).json()
        assert [t["subject"] for t in tickets] == ["Erro na conversão"]

    def test_other_user_cannot_read(self, client, headers, other_user):
        ticket = _open_ticket(client, headers)
        response = client.get(f"/support/tickets/{ticket['id']}", headers=auth_headers(other_user))
        assert response.status_code == 404

    def test_message_reopens_closed_ticket(self, client, headers, admin_user):
        ticket = _open_ticket(client, headers)
        client.put(
            f"/admin/support/tickets/{ticket['id']}/status",
            json={"status": "closed"},
            headers=auth_headers(admin_user),
        )

        response = client.post(
            f"/support/tickets/{ticket['id']}/messages",
            json={"message": "Voltou a acontecer"},
            headers=headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "open"
        assert len(data["messages"]) == 2


class TestAdminTickets:
    def test_reply_sets_in_progress(self, client, db_session, headers, admin_user):
        ticket = _open_ticket(client, headers)

        response = client.post(
            f"/admin/support/tickets/{ticket['id']}/messages",
            json={"message": "Estamos verificando"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "in-progress"
        assert data["messages"][-1]["sender_role"] == "admin"
        assert db_session.query(ActivityLog).filter(ActivityLog.action == "ticket.replied").count() == 1

    def test_list_filter_by_status(self, client, headers, admin_user):
        first = _open_ticket(client, headers)
        _open_ticket(client, headers, subject="Outro assunto")
        admin = auth_headers(admin_user)
        client.put(f"/admin/support/tickets/{first['id']}/status", json={"status": "closed"}, headers=admin)

        closed = client.get("/admin/support/tickets?status=closed", headers=admin).json()
        assert [t["id"] for t in closed] == [first["id"]]

    def test_user_cannot_use_admin_routes(self, client, headers):
        assert client.get("/admin/support/tickets", headers=headers).status_code == 403

    def test_invalid_status(self, client, headers, admin_user):
        ticket = _open_ticket(client, headers)
        response = client.put(
            f"/admin/support/tickets/{ticket['id']}/status",
            json={"status": "arquivado"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 422
