from timesheet_app.models import db


class TestLogin:
    def test_login_with_form_credentials(self, client, admin_user):
        response = client.post("/login", data={"username": "admin", "password": "adminpass123"})

        assert response.status_code == 200
        assert response.get_json()["username"] == "admin"

    def test_login_with_json_credentials(self, client, test_user):
        response = client.post("/login", json={"username": "testuser", "password": "testpass123"})
        assert response.status_code == 200

    def test_login_rejects_wrong_password(self, client, test_user):
        response = client.post("/login", data={"username": "testuser", "password": "nope"})
        assert response.status_code == 401

    def test_login_requires_both_fields(self, client):
        response = client.post("/login", data={"username": "admin"})
        assert response.status_code == 400

    def test_inactive_user_cannot_login(self, client, test_user):
        test_user.is_active = False
        db.session.commit()
        response = client.post("/login", data={"username": "testuser", "password": "testpass123"})
        assert response.status_code == 401


class TestLogout:
    def test_logout_requires_session(self, client):
        response = client.post("/logout")
        assert response.status_code == 401

    def test_logout_after_login(self, client, admin_user):
        client.post("/login", data={"username": "admin", "password": "adminpass123"})
        response = client.post("/logout")
        assert response.status_code == 200
        assert response.get_json() == {"status": "logged_out"}


def test_unknown_route_returns_json_404(client):
    response = client.get("/no-such-page")
    assert response.status_code == 404
    assert "error" in response.get_json()
