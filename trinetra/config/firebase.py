"""
Firebase initialization.
Single-source-of-truth Firestore client and Storage bucket for Trinetra.
"""

import json
import logging
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore, storage, initialize_app

from trinetra.core.settings import settings

logger = logging.getLogger(__name__)

db: Optional[firestore.Client] = None
bucket = None


def initialize_firebase_app():
    """
    Initialize the Firebase Admin app once per process.

    Uses the service account file from FIREBASE_CREDENTIALS_PATH when set,
    otherwise Application Default Credentials.
    """
    if firebase_admin._apps:
        return firebase_admin.get_app()

    options = {}
    if settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID

    if not settings.FIREBASE_CREDENTIALS_PATH:
        print("[FIREBASE] No credentials path set, using Application Default Credentials")
        return initialize_app(options=options or None)

    cred_path = settings.FIREBASE_CREDENTIALS_PATH
    if not os.path.exists(cred_path):
        raise RuntimeError(
            f"Firebase initialization FAILED - Credentials file not found: {cred_path}\n"
            f"SOLUTION: Check your .env file and ensure FIREBASE_CREDENTIALS_PATH points to a valid service account JSON file."
        )

    try:
        with open(cred_path, "r") as f:
            cred_data = json.load(f)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"Firebase credentials file is not valid JSON: {e}\nPlease check the file at: {cred_path}")

    required_fields = ["type", "project_id", "private_key", "client_email"]
    missing_fields = [field for field in required_fields if field not in cred_data]
    if missing_fields:
        raise RuntimeError(
            f"Firebase credentials file is missing required fields: {missing_fields}\n"
            f"Please download a fresh service account key from Firebase Console."
        )

    print(f"[FIREBASE] Credentials file validated: {cred_path}")
    print(f"[FIREBASE] Project ID: {cred_data.get('project_id', 'N/A')}")
    return initialize_app(credentials.Certificate(cred_path), options=options or None)


def initialize_firestore() -> firestore.Client:
    global db

    if db is not None:
        return db

    if settings.USE_MOCK_DB:
        from trinetra.config.mock_firestore import get_mock_db
        db = get_mock_db(settings.MOCK_DB_PATH)
        print("[FIRESTORE] USING MOCK DATABASE")
        return db

    try:
        initialize_firebase_app()
        db = firestore.client()
        print("[FIRESTORE] USING REAL FIRESTORE DATABASE")
        print(f"[FIRESTORE] Project: {settings.FIREBASE_PROJECT_ID or 'default'}")
        return db
    except RuntimeError:
        raise
    except Exception as e:
        error_msg = str(e)
        if "Invalid JWT Signature" in error_msg or "invalid_grant" in error_msg:
            raise RuntimeError(
                f"Firestore initialization FAILED - Invalid JWT Signature.\n"
                f"The service account key has been revoked or belongs to a different project.\n"
                f"SOLUTION: Generate a NEW service account key in Firebase Console and restart the server.\n\n"
                f"Original error: {error_msg}"
            )
        raise RuntimeError(
            f"Firestore initialization FAILED. Error: {error_msg}\n"
            f"Please check your Firebase credentials and configuration."
        )


def get_db() -> firestore.Client:
    """
    Get the initialized Firestore client.

    Raises RuntimeError if Firestore has not been initialized and cannot be.
    """
    if db is None:
        try:
            initialize_firestore()
        except Exception as e:
            raise RuntimeError(
                f"Firestore not initialized and initialization failed: {e}. "
                "Please check your Firebase credentials and configuration."
            )
    return db


def get_bucket():
    """
    Get the Storage bucket that holds evidence photos.

    In mock DB mode an in-memory bucket is returned instead.
    """
    global bucket

    if bucket is not None:
        return bucket

    if settings.USE_MOCK_DB:
        from trinetra.config.mock_storage import get_mock_bucket
        bucket = get_mock_bucket(settings.FIREBASE_STORAGE_BUCKET)
        print("[STORAGE] USING MOCK BUCKET")
        return bucket

    if not settings.FIREBASE_STORAGE_BUCKET:
        raise RuntimeError("FIREBASE_STORAGE_BUCKET is not set. Evidence uploads need a storage bucket.")

    initialize_firebase_app()
    bucket = storage.bucket(settings.FIREBASE_STORAGE_BUCKET)
    logger.info(f"Storage bucket initialized: {settings.FIREBASE_STORAGE_BUCKET}")
    return bucket
