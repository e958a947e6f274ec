from __future__ import annotations
import os
from vendorhub import create_app
from vendorhub.storage import get_storage

def main() -> None:
    flask_app = create_app()

    with flask_app.app_context():
        flask_app.logger.info("Storage backend: %s", get_storage().mode)
    rules = sorted({rule.rule for rule in flask_app.url_map.iter_rules()})
    flask_app.logger.info("Mounted %d routes: %s", len(rules), ", ".join(rules))

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 5000))
    debug_enabled = os.environ.get("FLASK_DEBUG", "0").lower() in {"1", "true"}
    flask_app.run(host=host, port=port, debug=debug_enabled)

if __name__ == "__main__":
    main()
