import firebase_admin
from firebase_admin import credentials, firestore
import json
import logging
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

_db = None


def initialize_firebase():
    """Initialize Firebase Admin SDK with production-ready credential handling"""

    # Already initialized (e.g. app reload)
    try:
        firebase_admin.get_app()
        return
    except ValueError:
        pass

    # Method 1: Service Account Key from Environment Variable (Recommended for production)
    service_account_key_json = os.getenv('FIREBASE_SERVICE_ACCOUNT_KEY')

    if service_account_key_json:
        try:
            # Parse the JSON string from environment variable
            service_account_info = json.loads(service_account_key_json)
            cred = credentials.Certificate(service_account_info)
            firebase_admin.initialize_app(cred)
            logger.info("[ROSTER] Firebase Admin SDK initialized with Service Account Key from environment variable.")
            return
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"[ROSTER] Error parsing FIREBASE_SERVICE_ACCOUNT_KEY: {e}")

    # Method 2: Service Account Key File (for local development only)
    service_account_key_path = os.getenv('FIREBASE_SERVICE_ACCOUNT_KEY_PATH')
    if service_account_key_path and os.path.exists(service_account_key_path):
        cred = credentials.Certificate(service_account_key_path)
        firebase_admin.initialize_app(cred)
        logger.info("[ROSTER] Firebase Admin SDK initialized with Service Account Key from file path.")
        return

    # Method 3: GOOGLE_APPLICATION_CREDENTIALS / Application Default Credentials
    firebase_admin.initialize_app()
    if os.getenv('GOOGLE_APPLICATION_CREDENTIALS'):
        logger.info("[ROSTER] Firebase Admin SDK initialized with GOOGLE_APPLICATION_CREDENTIALS.")
    else:
        logger.warning("[ROSTER] Firebase Admin SDK initialized with default Application Default Credentials.")


def get_firestore_client():
    """Firestore client, initializing the Admin SDK on first use."""
    global _db
    if _db is None:
        initialize_firebase()
        _db = firestore.client()
    return _db
