# backend/wsgi.py
from ricemill import create_app

app = create_app()
