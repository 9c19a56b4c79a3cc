# backend/wsgi.py
from pharmatrack import create_app

app = create_app()
