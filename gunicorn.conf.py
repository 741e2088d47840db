# CricTrack Gunicorn Configuration
#
# Score submissions are serialized per match with in-process locks; the
# derived-state write is also version-checked in the database, so running
# several workers is safe (a losing writer re-reads and retries).
#
#   gunicorn -c gunicorn.conf.py "app:create_app()"

bind = "127.0.0.1:5000"
workers = 2
threads = 4
timeout = 60
