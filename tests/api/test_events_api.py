"""
WebSocket Tests for project change notifications
"""
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from projecthub.main import create_app
from projecthub.services.change_notifier import WebSocketNotifier


@pytest.fixture
def ws_client(test_settings):
    """Sync client for an app wired with the WebSocket notifier"""
    app = create_app(test_settings)
    assert isinstance(app.state.notifier, WebSocketNotifier)
    with TestClient(app) as client:
        yield client


def signin(client: TestClient, user_data: dict) -> str:
    assert client.post('/api/register', json=user_data).status_code == 200
    response = client.post('/api/signin', json={
        'email': user_data['email'],
        'password': user_data['password'],
    })
    assert response.status_code == 200
    return response.json()['token']


class TestProjectEvents:

    def test_missing_token_closes_with_4001(self, ws_client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with ws_client.websocket_connect('/api/events') as ws:
                ws.receive_json()

        assert exc_info.value.code == 4001

    def test_invalid_token_closes_with_4001(self, ws_client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with ws_client.websocket_connect('/api/events?token=garbage') as ws:
                ws.receive_json()

        assert exc_info.value.code == 4001

    def test_connect_and_ping(self, ws_client, test_user_data):
        token = signin(ws_client, test_user_data)

        with ws_client.websocket_connect(f'/api/events?token={token}') as ws:
            greeting = ws.receive_json()
            assert greeting['type'] == 'connected'
            assert greeting['data'] == {'scope': 'projects'}

            ws.send_json({'type': 'ping'})
            assert ws.receive_json()['type'] == 'pong'

    def test_change_is_pushed_after_create(self, ws_client, test_user_data, project_data):
        token = signin(ws_client, test_user_data)
        headers = {'Authorization': f'Bearer {token}'}

        with ws_client.websocket_connect(f'/api/events?token={token}') as ws:
            ws.receive_json()

            response = ws_client.post('/api/projects', json=project_data, headers=headers)
            assert response.status_code == 201

            event = ws.receive_json()
            assert event['type'] == 'projects_changed'
            assert event['data'] == {'scope': 'projects', 'action': 'created'}
            assert 'timestamp' in event


class TestEventsDisabled:

    def test_recording_notifier_rejects_socket(self, app):
        with TestClient(app) as client:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                with client.websocket_connect('/api/events?token=anything') as ws:
                    ws.receive_json()

        assert exc_info.value.code == 4503
