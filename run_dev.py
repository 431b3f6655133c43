import logging
import os

from certguardian import database
from certguardian.app import create_app

logger = logging.getLogger("certguardian.run_dev")

app = create_app()

if __name__ == "__main__":
    # Local sqlite only; production databases are created with `flask init-db`
    database.create_all()
    port = int(os.environ.get("PORT", 8080))
    logger.info(f"🚀 Iniciando CertificadoGuardian na porta {port}")
    app.run(host="0.0.0.0", port=port, debug=True, use_reloader=False)
