"""
Database Configuration and Management (SQLAlchemy)

Durable blob storage for the registration snapshot and the diagnostic
screenshot, plus the snapshot store built on top of it.
"""

import json
import logging
from collections import namedtuple
from pathlib import Path
from sqlalchemy import create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from config.models import Base, Blob
from monitoring.exceptions import StorageError, NotFoundError
from monitoring.models import Snapshot

logger = logging.getLogger(__name__)

SNAPSHOT_NAME = "basketball-registrations.json"
SCREENSHOT_NAME = "error-screenshot.png"

StoredBlob = namedtuple("StoredBlob", ["name", "content", "content_type"])


def _ensure_sqlite_dir(database_url):
    prefix = "sqlite:///"
    if database_url.startswith(prefix) and ":memory:" not in database_url:
        Path(database_url[len(prefix):]).parent.mkdir(parents=True, exist_ok=True)


class BlobStorage:
    """
    Named binary objects stored in a single SQL table.

    Each name holds exactly one object; a put replaces the previous content in a
    single transaction, so readers never observe a half-written value.
    """

    def __init__(self, database_url, public_base_url="http://localhost:5000"):
        _ensure_sqlite_dir(database_url)
        self.engine = create_engine(database_url, echo=False)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.public_base_url = public_base_url.rstrip("/")

    def get_db_session(self):
        """
        Get a new database session.

        Returns:
            sqlalchemy.orm.Session: Database session
        """
        return self.SessionLocal()

    def init(self):
        """Create the storage tables if they do not exist yet."""
        logger.info("Initializing blob storage...")
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Error initializing database: {e}")
            raise StorageError(f"Could not initialize storage: {e}") from e

    def dispose(self):
        self.engine.dispose()

    def url_for(self, name):
        return f"{self.public_base_url}/blobs/{name}"

    def put(self, name, data, content_type):
        """
        Store data under name, overwriting any previous content.

        Args:
            name (str): Fixed logical name
            data (bytes): Content to store
            content_type (str): MIME type served back with the content

        Returns:
            str: Public URL of the stored object
        """
        session = self.get_db_session()
        try:
            blob = session.get(Blob, name)
            if blob is None:
                session.add(Blob(name=name, content=data, content_type=content_type))
            else:
                blob.content = data
                blob.content_type = content_type
            session.commit()
            logger.info(f"Stored {name} ({len(data)} bytes)")
            return self.url_for(name)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error storing {name}: {e}")
            raise StorageError(f"Could not store {name}: {e}") from e
        finally:
            session.close()

    def get(self, name):
        """
        Retrieve the object stored under name.

        Raises:
            NotFoundError: Nothing was ever stored under name
            StorageError: The backend failed
        """
        session = self.get_db_session()
        try:
            blob = session.execute(select(Blob).where(Blob.name == name)).scalar_one_or_none()
            if blob is None:
                raise NotFoundError(f"No object stored as {name}")
            return StoredBlob(blob.name, bytes(blob.content), blob.content_type)
        except SQLAlchemyError as e:
            logger.error(f"Error reading {name}: {e}")
            raise StorageError(f"Could not read {name}: {e}") from e
        finally:
            session.close()


class SnapshotStore:
    """Persists the latest registration snapshot as a JSON document."""

    def __init__(self, storage, name=SNAPSHOT_NAME):
        self.storage = storage
        self.name = name

    def save(self, registrations, captured_at=None):
        snapshot = Snapshot.capture(registrations, captured_at)
        payload = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")
        try:
            url = self.storage.put(self.name, payload, "application/json")
        except StorageError as e:
            logger.error(f"✗ Error saving data: {e}")
            raise
        logger.info(f"✓ Data saved successfully to {url}")
        return url

    def load(self):
        blob = self.storage.get(self.name)
        try:
            return Snapshot.from_dict(json.loads(blob.content.decode("utf-8")))
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Stored snapshot is unreadable: {e}") from e
