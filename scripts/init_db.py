import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from models.catalog import Catalog
from models.db import DEFAULT_DB_PATH, EncounterStore

def init_db(db_path=DEFAULT_DB_PATH):
    if os.path.exists(db_path):
        print(f"Database already exists at {db_path}. Schema will be updated if needed.")
    else:
        print(f"Creating database at {db_path}")
    EncounterStore(db_path)
    print("Database initialized.")

def check_catalog(data_dir=None):
    catalog = Catalog.load(data_dir)
    print(
        f"Catalog OK: {len(catalog.dragons)} dragons, {len(catalog.legendary)} legendary, "
        f"{len(catalog.mounts)} mounts, {len(catalog.riders)} riders, {len(catalog.tarot)} tarot cards"
    )

if __name__ == '__main__':
    init_db()
    check_catalog()
