# =============================================================================
# tourengine - Gunicorn Production Configuration
# Usage: gunicorn -c gunicorn.conf.py run:app
# =============================================================================
import os
import multiprocessing

bind = f"0.0.0.0:{os.environ.get('PORT', '8080')}"

# Quotes are CPU-light; drive-time lookups block on the network, hence threads
workers = min(multiprocessing.cpu_count() * 2 + 1, 4)
threads = int(os.environ.get('GUNICORN_THREADS', '4'))
worker_class = "gthread"

# Rate table is loaded once per process
preload_app = True

# Distance Matrix timeouts are 10s per leg
timeout = 60
graceful_timeout = 30
keepalive = 5

accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info")

max_requests = 1000
max_requests_jitter = 50

# JSON bodies only
limit_request_line = 8190
limit_request_fields = 100

forwarded_allow_ips = "*"
