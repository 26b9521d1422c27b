"""ReadTrack - personal book tracking

This package contains the application modules:
- HTTP API (api.py)
- Book management logic (library.py)
- Data model and validation (book.py, validators.py)
- Database layer (database.py)
- API client and client-side store (client.py, store.py)
- CLI interface (cli.py, views.py)
"""

__version__ = "1.0.0"
