import logging
import os

from flask import send_from_directory

from api._shared import load_settings
from api.index import create_app

SITE_DIR = os.path.abspath(os.environ.get('SITE_DIR', '.'))

settings = load_settings()
app = create_app(settings)


@app.route("/")
def root():
    return send_from_directory(SITE_DIR, "index.html")


@app.route("/<path:filename>")
def static_file(filename: str):
    return send_from_directory(SITE_DIR, filename)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    if not settings.page_token:
        logging.getLogger("api").warning("FB_PAGE_TOKEN is not set; feed endpoints will return empty items")
    port = int(os.environ.get("PORT", "8000"))
    app.run(host="0.0.0.0", port=port, debug=False)


if __name__ == "__main__":
    main()
