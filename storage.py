import json
import logging

import psycopg2
from psycopg2.extras import RealDictCursor

from auth_context import make_password
from errors import StorageCorruption
from models import Account, Department, Snapshot, ROLE_ADMIN

logger = logging.getLogger(__name__)

RECORDS_KEY = 'records'
AUTH_TOKEN_KEY = 'auth-token'
PENDING_EMAIL_KEY = 'pending-verification-email'

DEFAULT_ADMIN_EMAIL = 'admin@example.com'
DEFAULT_ADMIN_PASSWORD = 'Password123!'


class PostgresStorage:
    """Key-value storage kept in a single PostgreSQL table"""

    def __init__(self, database_url, connect=psycopg2.connect):
        self.database_url = database_url
        self._connect = connect

    def get_db_connection(self):
        """Get database connection"""
        conn = self._connect(self.database_url)
        conn.autocommit = True
        return conn

    def init_db(self):
        """Create the key-value table if it is missing"""
        conn = self.get_db_connection()
        cursor = conn.cursor()
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS kv_store (
                key VARCHAR(255) PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')
        conn.close()

    def get(self, key):
        conn = self.get_db_connection()
        cursor = conn.cursor(cursor_factory=RealDictCursor)
        cursor.execute('SELECT value FROM kv_store WHERE key = %s', (key,))
        row = cursor.fetchone()
        conn.close()
        return row['value'] if row else None

    def set(self, key, value):
        conn = self.get_db_connection()
        cursor = conn.cursor()
        cursor.execute('''
            INSERT INTO kv_store (key, value) VALUES (%s, %s)
            ON CONFLICT (key) DO UPDATE
            SET value = EXCLUDED.value, updated_at = CURRENT_TIMESTAMP
        ''', (key, value))
        conn.close()

    def remove(self, key):
        conn = self.get_db_connection()
        cursor = conn.cursor()
        cursor.execute('DELETE FROM kv_store WHERE key = %s', (key,))
        conn.close()


class MemoryStorage:
    """Process-local storage used when no database is configured"""

    def __init__(self, initial=None):
        self._values = dict(initial or {})

    def get(self, key):
        return self._values.get(key)

    def set(self, key, value):
        self._values[key] = value

    def remove(self, key):
        self._values.pop(key, None)


def create_storage(database_url):
    if not database_url:
        logger.warning('DATABASE_URL not set, records are kept in memory only')
        return MemoryStorage()
    storage = PostgresStorage(database_url)
    storage.init_db()
    return storage


def seed_snapshot(hashed=False):
    """Default records written on first run or after corruption"""
    return Snapshot(
        accounts=[
            Account(id=1, first_name='Admin', last_name='User',
                    email=DEFAULT_ADMIN_EMAIL, password=make_password(DEFAULT_ADMIN_PASSWORD, hashed),
                    role=ROLE_ADMIN, verified=True),
        ],
        departments=[
            Department(id='d1', name='Engineering', description='Software and Hardware'),
            Department(id='d2', name='HR', description='Human Resources'),
        ],
    )


class RecordStore:
    """Loads and saves the records snapshot as one JSON blob"""

    def __init__(self, storage, hash_passwords=False):
        self.storage = storage
        self.hash_passwords = hash_passwords

    def load(self):
        raw = self.storage.get(RECORDS_KEY)
        if raw is None:
            logger.info('No records found, seeding defaults')
            return self.reseed()
        try:
            return self._parse(raw)
        except StorageCorruption as exc:
            logger.error('Corrupt storage, resetting: %s', exc)
            return self.reseed()

    def save(self, snapshot):
        self.storage.set(RECORDS_KEY, json.dumps(snapshot.to_dict()))

    def reseed(self):
        snapshot = seed_snapshot(self.hash_passwords)
        self.save(snapshot)
        return snapshot

    @staticmethod
    def _parse(raw):
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise StorageCorruption(f'unparsable records blob: {exc}') from exc
        if not isinstance(data, dict):
            raise StorageCorruption('records blob is not an object')
        try:
            return Snapshot.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise StorageCorruption(f'malformed record: {exc!r}') from exc


class SessionStore:
    """Per-browser session keys kept in a mutable mapping (Flask session)"""

    def __init__(self, mapping):
        self._mapping = mapping

    def get_token(self):
        return self._mapping.get(AUTH_TOKEN_KEY)

    def set_token(self, token):
        self._mapping[AUTH_TOKEN_KEY] = token

    def clear_token(self):
        self._mapping.pop(AUTH_TOKEN_KEY, None)

    def get_pending_email(self):
        return self._mapping.get(PENDING_EMAIL_KEY)

    def set_pending_email(self, email):
        self._mapping[PENDING_EMAIL_KEY] = email

    def clear_pending_email(self):
        self._mapping.pop(PENDING_EMAIL_KEY, None)
