"""
API Route Handlers for Party Arcade.

Pure routing layer that delegates to the lobby manager.
Contains no business logic - only request/response handling.
"""

import logging
from flask import jsonify

logger = logging.getLogger(__name__)


def register_api_handlers(app, lobby_manager):
    """
    Register all API route handlers.

    Args:
        app: Flask application instance
        lobby_manager: Lobby management instance
    """

    @app.route('/api/health')
    def health_check():
        """Health check endpoint with lobby statistics."""
        try:
            return jsonify({
                'status': 'healthy',
                'message': 'Party Arcade server is running',
                'lobbies': lobby_manager.get_stats()
            })

        except Exception as e:
            logger.error(f"Error building health report: {e}")
            return jsonify({'status': 'degraded', 'error': 'Failed to collect stats'}), 500

    @app.route('/api/lobbies')
    def get_lobbies():
        """Get list of open lobbies."""
        try:
            lobbies = lobby_manager.get_lobby_list()
            return jsonify({'lobbies': [item.to_dict() for item in lobbies]})

        except Exception as e:
            logger.error(f"Error getting lobbies: {e}")
            return jsonify({'error': 'Failed to get lobbies'}), 500

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        return jsonify({'error': 'Internal server error'}), 500

    logger.info("API handlers registered successfully")
