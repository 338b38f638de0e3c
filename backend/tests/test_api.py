def test_health(client):
    res = client.get('/api/health')
    assert res.status_code == 200
    data = res.get_json()
    assert data['status'] == 'ok'
    assert 'timestamp' in data


def test_room_stats(client, flask_app):
    registry = flask_app.extensions['stopgame']
    room = registry.open_room('p1', 'Ana')
    registry.join_room(room.code, 'p2', 'Bia')
    res = client.get('/api/rooms')
    assert res.status_code == 200
    assert res.get_json() == {'totalRooms': 1, 'totalPlayers': 2}


def test_room_snapshot(client, flask_app):
    registry = flask_app.extensions['stopgame']
    room = registry.open_room('p1', 'Ana')
    res = client.get(f'/api/rooms/{room.code}')
    assert res.status_code == 200
    data = res.get_json()
    assert data['roomId'] == room.code
    assert data['hostId'] == 'p1'
    assert data['gameState'] == 'waiting'
    assert data['maxPlayers'] == 8


def test_unknown_room(client):
    res = client.get('/api/rooms/NOPE42')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'room_not_found'
