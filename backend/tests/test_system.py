# Overview: Pytest coverage for health/version endpoints and CLI bootstrap commands.

from retailpos.models import Store, User
from retailpos.services.auth_service import verify_password


class TestSystemEndpoints:
    def test_health_degraded_without_users(self, client, db_session, store_a):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "degraded"
        assert data["checks"]["database"]["details"]["stores"] == 1
        assert data["checks"]["configuration"]["details"]["unit_ratios"]["pack"] == 3

    def test_health_healthy(self, client, db_session, admin_a):
        assert client.get("/health").get_json()["status"] == "healthy"

    def test_version(self, client, db_session):
        data = client.get("/version").get_json()
        assert data["api_version"] == "1.0.0"
        assert data["server_time"].endswith("Z")

    def test_cors_allowed_origin(self, client, db_session):
        response = client.get("/version", headers={"Origin": "http://localhost:5173"})
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_cors_unknown_origin(self, client, db_session):
        response = client.get("/version", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in response.headers


class TestCliCommands:
    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init"])
        second = runner.invoke(args=["system", "init"])

        assert first.exit_code == 0
        assert "DONE RetailPOS initialized" in first.output
        assert "already exists, skipping" in second.output

        assert db_session.query(Store).filter_by(code="MAIN").count() == 1
        root = db_session.query(User).filter_by(username="superadmin").one()
        assert root.store_id is None
        assert verify_password("Password123!", root.password_hash)

    def test_stores_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()

        created = runner.invoke(args=["stores", "create", "--name", "Branch 2", "--code", "BR2"])
        duplicate = runner.invoke(args=["stores", "create", "--name", "Again", "--code", "BR2"])
        listing = runner.invoke(args=["stores", "list"])

        assert "PASS Created store: Branch 2" in created.output
        assert "already exists" in duplicate.output
        assert "BR2" in listing.output

    def test_users_create_requires_store(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "users", "create",
            "--username", "jane", "--email", "jane@retailpos.test",
            "--password", "Password123!", "--role", "manager",
        ])

        assert "FAIL" in result.output
        assert db_session.query(User).filter_by(username="jane").count() == 0

    def test_users_create(self, app, db_session, store_a):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "users", "create",
            "--username", "jane", "--email", "jane@retailpos.test",
            "--password", "Password123!", "--role", "manager",
            "--store-id", str(store_a.id),
        ])

        assert "PASS Created user: jane" in result.output
        listing = runner.invoke(args=["users", "list", "--store-id", str(store_a.id)])
        assert "jane" in listing.output
