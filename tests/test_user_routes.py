import os
import sys
from unittest.mock import patch

from flask import Flask

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from api.middleware.error_handler import ErrorHandler
from api.routes import user_routes
from core.exceptions import UserAlreadyExistsError, UserNotFoundError, ValidationError
from service.user_service import UNSET


def _create_app():
    app = Flask(__name__)
    ErrorHandler.init_app(app)
    app.register_blueprint(user_routes.user_bp, url_prefix="/api/users")
    return app


def test_list_users_returns_snapshot():
    client = _create_app().test_client()

    with patch.object(user_routes, "get_user_service") as mock_service:
        service = mock_service.return_value
        service.list_users.return_value = [{"username": "alice", "usage_gb": 1.5}]
        response = client.get("/api/users")

    assert response.status_code == 200
    assert response.get_json() == [{"username": "alice", "usage_gb": 1.5}]
    service.list_users.assert_called_once_with(refresh=False)


def test_list_users_refresh_and_raw_projection():
    client = _create_app().test_client()

    with patch.object(user_routes, "get_user_service") as mock_service:
        service = mock_service.return_value
        service.list_users.return_value = []
        service.list_users_raw.return_value = [{"id": 1, "username": "alice"}]

        client.get("/api/users?refresh=1")
        raw = client.get("/api/users?diag=raw")

    service.list_users.assert_called_once_with(refresh=True)
    assert raw.get_json() == [{"id": 1, "username": "alice"}]


def test_create_user_missing_username():
    client = _create_app().test_client()
    response = client.post("/api/users", json={"quota": 5})
    assert response.status_code == 400


def test_create_user_calls_service():
    client = _create_app().test_client()

    with patch.object(user_routes, "get_user_service") as mock_service:
        service = mock_service.return_value
        service.create_user.return_value = {"username": "alice", "user_id": 1, "uuid": "u-1"}
        response = client.post("/api/users", json={"username": "alice", "display_name": "Phone", "quota": 5})

    assert response.status_code == 201
    service.create_user.assert_called_once_with("alice", display_name="Phone", expiry=None, quota=5)


def test_create_user_conflict_maps_to_409():
    client = _create_app().test_client()

    with patch.object(user_routes, "get_user_service") as mock_service:
        mock_service.return_value.create_user.side_effect = UserAlreadyExistsError("alice")
        response = client.post("/api/users", json={"username": "alice"})

    assert response.status_code == 409
    assert response.get_json()["error"] == "User already exists"


def test_update_user_passes_expiry_only_when_present():
    client = _create_app().test_client()

    with patch.object(user_routes, "get_user_service") as mock_service:
        service = mock_service.return_value
        service.update_user.return_value = {"updated": "alice"}
        client.put("/api/users/alice", json={"quota": 3})
        client.put("/api/users/alice", json={"expiry": None})

    first, second = service.update_user.call_args_list
    assert first.kwargs["expiry"] is UNSET
    assert first.kwargs["quota"] == 3
    assert second.kwargs["expiry"] is None


def test_unknown_user_maps_to_404():
    client = _create_app().test_client()

    with patch.object(user_routes, "get_user_service") as mock_service:
        mock_service.return_value.delete_user.side_effect = UserNotFoundError("ghost")
        response = client.delete("/api/users/ghost")

    assert response.status_code == 404


def test_invalid_quota_maps_to_400():
    client = _create_app().test_client()

    with patch.object(user_routes, "get_user_service") as mock_service:
        mock_service.return_value.update_user.side_effect = ValidationError("quota", -5, "bad")
        response = client.put("/api/users/alice", json={"quota": -5})

    assert response.status_code == 400


def test_enable_disable_reset_and_sync():
    client = _create_app().test_client()

    with patch.object(user_routes, "get_user_service") as mock_service:
        service = mock_service.return_value
        service.set_enabled.return_value = {}
        service.reset_quota.return_value = {"quota_reset": "alice", "counters_reset": True, "failed_resets": 0}
        service.sync_clients.return_value = True

        assert client.post("/api/users/alice/enable").status_code == 200
        assert client.post("/api/users/alice/disable").status_code == 200
        reset = client.post("/api/users/alice/reset-quota")
        sync = client.post("/api/users/sync")

    assert service.set_enabled.call_args_list[0].args == ("alice", True)
    assert service.set_enabled.call_args_list[1].args == ("alice", False)
    assert reset.get_json()["counters_reset"] is True
    assert sync.get_json() == {"changed": True}
