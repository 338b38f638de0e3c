try:
    from backend.stopgame.server import create_app
except ImportError:  # pragma: no cover
    from stopgame.server import create_app

app, socketio = create_app()
