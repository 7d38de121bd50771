import os

from storage import DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD, PostgresStorage, RecordStore


def init_postgresql_database():
    """Reset the PostgreSQL key-value table and write the default records"""

    DATABASE_URL = os.environ.get('DATABASE_URL')

    if not DATABASE_URL:
        print("Error: DATABASE_URL environment variable not found")
        return

    hash_passwords = os.environ.get('HASH_PASSWORDS', '').strip().lower() in ('1', 'true', 'yes', 'on')

    storage = PostgresStorage(DATABASE_URL)
    conn = storage.get_db_connection()
    cursor = conn.cursor()

    # Drop existing table if it exists
    cursor.execute('DROP TABLE IF EXISTS kv_store CASCADE')
    conn.close()

    storage.init_db()
    snapshot = RecordStore(storage, hash_passwords=hash_passwords).reseed()

    print("PostgreSQL database initialized successfully!")
    print(f"Admin credentials - Email: {DEFAULT_ADMIN_EMAIL}, Password: {DEFAULT_ADMIN_PASSWORD}")
    print(f"Departments: {', '.join(d.name for d in snapshot.departments)}")


if __name__ == '__main__':
    init_postgresql_database()
