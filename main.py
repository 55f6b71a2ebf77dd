# main.py - YTDownloader API entry point
import logging
import os

from ytdownloader import create_app

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = create_app()


def main():
    port = int(os.environ.get('PORT', 3000))
    logger.info(f"Server running on port {port}")
    logger.info(f"Temp directory: {app.config['TEMP_DIR']}")
    app.run(host='0.0.0.0', port=port)


if __name__ == '__main__':
    main()
