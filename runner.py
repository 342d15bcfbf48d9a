import logging
import os
import sys
from registrar import create_app

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)

def main():
    """Starts the registrar API"""
    port = int(os.environ.get('PORT', '5000'))

    logger.info("=" * 50)
    logger.info("Starting registrar API")
    logger.info("=" * 50)

    try:
        flask_app = create_app()
        logger.info(f"Starting Flask application on port {port}...")
        flask_app.run(host='0.0.0.0', port=port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        logger.info("Stopping registrar API...")
        sys.exit(0)

if __name__ == '__main__':
    main()
