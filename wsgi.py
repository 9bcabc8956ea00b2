# wsgi.py
"""
Production WSGI entry point, e.g. ``gunicorn --threads 8 wsgi:application``
"""

from dotenv import load_dotenv

from app import create_app

load_dotenv()

application = create_app()
