"""Local development entry point.

Usage:
    python run.py

Reads .env first so MYSQL*/DATABASE_URL settings are visible to the
config classes, then starts the dev server on PORT (default 3000).
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from dealdesk import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.debug, host="0.0.0.0", port=app.config["PORT"])
