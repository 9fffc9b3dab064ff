import os
from dotenv import load_dotenv

# Only load the .env file if we're not on Render (i.e., we are in a local environment)
if os.environ.get("RENDER") != "true":
    load_dotenv()

# Flask Configuration
SECRET_KEY = os.getenv('SECRET_KEY', 'a_very_secret_key_that_should_be_changed')
CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

# Socket.IO Configuration
SOCKETIO_ASYNC_MODE = os.getenv('SOCKETIO_ASYNC_MODE', 'eventlet')

# Puzzle archive (JSON list of puzzles); defaults to the bundled archive
PUZZLE_ARCHIVE_PATH = os.getenv(
    'PUZZLE_ARCHIVE_PATH',
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'game', 'data', 'puzzles.json')
)

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# Server Configuration
PORT = int(os.getenv('PORT', 5000))
DEBUG = os.environ.get('RENDER', '') != 'true'

# Render Configuration
IS_RENDER = os.environ.get("RENDER", "") == "true"
