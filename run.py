#!/usr/bin/env python
"""
tourengine entry point.
Run this file to start the development API server.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from tourengine import create_app

app = create_app(os.environ.get('FLASK_ENV', 'development'))

if __name__ == '__main__':
    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'

    print(f"""
    ============================================================
              tourengine - Pricing & Scheduling API
    ============================================================
      Running on: http://{host}:{port}/api/v1
      Environment: {os.environ.get('FLASK_ENV', 'development')}
      Rate table: {os.environ.get('RATE_TABLE_FILE') or 'built-in'}
    ============================================================
    """)

    app.run(host=host, port=port, debug=debug)
