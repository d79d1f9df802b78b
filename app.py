"""Dev entrypoint: ``python app.py`` (or ``flask --app app run``)."""

import sys
from pathlib import Path

SRC = Path(__file__).resolve().parent / "src" / "clinic_billing"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from clinic_billing.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config.get("DEBUG", False))
