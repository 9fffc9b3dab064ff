from config import settings

# Green the standard library before anything creates locks or sockets
if settings.SOCKETIO_ASYNC_MODE == 'eventlet':
    import eventlet
    eventlet.monkey_patch()

from app import create_app  # noqa: E402

app, socketio = create_app()

if __name__ == '__main__':
    socketio.run(app, debug=settings.DEBUG, port=settings.PORT, host='0.0.0.0')
