#!/usr/bin/env python3
"""
casetrack Application Entry Point.

Run the development server:
    python run.py

Or with Flask CLI:
    FLASK_APP=run flask run

For production, use a proper WSGI server like Gunicorn:
    gunicorn -w 4 -b 0.0.0.0:5000 'run:app'
"""
import logging
import os
from casetrack import create_app

# Determine config from environment, default to development
config_name = os.environ.get('FLASK_ENV', 'development')

app = create_app(config_name)


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='casetrack development server')
    parser.add_argument('--port', type=int, default=5000,
                        help='Port to listen on (default: 5000)')
    parser.add_argument('--host', default='0.0.0.0',
                        help='Host to bind to (default: 0.0.0.0)')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if app.config.get('DEBUG') else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    print(f"Starting casetrack in {config_name} mode...")
    print(f"Database: {app.config['SQLALCHEMY_DATABASE_URI']}")
    print(f"Storage: {app.config['UPLOAD_FOLDER']}")

    app.run(
        host=args.host,
        port=args.port,
        debug=app.config.get('DEBUG', False),
        threaded=True,
    )
