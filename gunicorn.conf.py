# Gunicorn configuration for production deployments
# Run with: gunicorn -c gunicorn.conf.py levelminds.main:app

import os

# Bind to the port provided by the platform
bind = f"0.0.0.0:{os.getenv('PORT', '10000')}"

# Uvicorn workers serve the ASGI app
worker_class = "uvicorn.workers.UvicornWorker"

workers = int(os.getenv("WEB_CONCURRENCY", "2"))

# Bulk spreadsheet uploads can take a while
timeout = 120

# Graceful timeout
graceful_timeout = 60

# Keep alive
keepalive = 5

# Log level
loglevel = "info"

# Access log
accesslog = "-"

# Error log
errorlog = "-"
