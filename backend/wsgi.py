# Overview: WSGI entry point (FLASK_APP=wsgi.py).

from imeitrack import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
