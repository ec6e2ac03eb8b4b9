# gunicorn.conf.py

# Network
bind = "0.0.0.0:8000"
forwarded_allow_ips = "*"

# Workers
workers = 3
threads = 2
worker_class = "gthread"
timeout = 60
graceful_timeout = 30

# Logging
accesslog = "-"          # stdout
errorlog  = "-"          # stderr
loglevel  = "info"

# App
wsgi_app = "andaman_connect.wsgi:application"
