"""
Flask Application Factory

Creates the Flask application that exposes the latest snapshot, the manual
refresh trigger and the stored artifacts.
"""

import logging
from datetime import datetime, timezone

from flask import Flask, Response, jsonify

from monitoring.exceptions import NotFoundError, StorageError

logger = logging.getLogger(__name__)


def create_app(application=None):
    """
    Create and configure the Flask application.

    Args:
        application (Application, optional): Initialized application lifecycle
            object. Built from the environment when omitted.
    """
    if application is None:
        from config.settings import Settings
        from services.application import Application
        application = Application(Settings.from_env()).init()

    app = Flask(__name__)
    app.config['MONITOR_APPLICATION'] = application

    @app.route('/admin/monitoring/status')
    def monitoring_status():
        """Health check endpoint for monitoring service."""
        daemon = application.daemon
        last = daemon.last_outcome
        return {
            'status': 'ok',
            'running': daemon.busy,
            'cycles': daemon.cycle_count,
            'last_run': last.summary() if last else None,
            'timestamp': datetime.now(timezone.utc).isoformat()
        }

    @app.route('/api/registrations')
    def get_registrations():
        """Latest persisted snapshot as JSON."""
        try:
            snapshot = application.snapshot_store.load()
        except NotFoundError:
            return jsonify({'error': 'No data available yet'}), 404
        except StorageError as e:
            logger.error(f"Error fetching snapshot: {e}")
            return jsonify({'error': 'Failed to fetch data'}), 500

        response = jsonify(snapshot.to_dict())
        response.headers['Cache-Control'] = 'no-cache'
        return response

    @app.route('/api/refresh', methods=['GET', 'POST'])
    def refresh():
        """Start a scrape in the background without waiting for it."""
        try:
            logger.info("Manual scrape initiated via API")
            started = application.daemon.trigger_async()
        except Exception as e:
            logger.error(f"Error triggering manual scrape: {e}")
            return jsonify({
                'status': 'error',
                'message': 'Failed to trigger basketball data refresh'
            }), 500

        message = ('Basketball data refresh initiated' if started
                   else 'A refresh is already in progress')
        return jsonify({'status': 'success', 'message': message})

    @app.route('/blobs/<path:name>')
    def get_blob(name):
        """Serve a stored artifact (snapshot JSON or error screenshot)."""
        try:
            blob = application.storage.get(name)
        except NotFoundError:
            return jsonify({'error': f'{name} not found'}), 404
        except StorageError as e:
            logger.error(f"Error fetching {name}: {e}")
            return jsonify({'error': 'Failed to fetch data'}), 500
        return Response(blob.content, mimetype=blob.content_type,
                        headers={'Cache-Control': 'no-cache'})

    return app
