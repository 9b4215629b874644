"""WSGI entry point for Gunicorn (`gunicorn wsgi:app`)."""
import os

from pdv_web import create_app

app = create_app()

if __name__ == "__main__":
    app.run(port=int(os.getenv('PORT', '5000')))
