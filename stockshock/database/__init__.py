"""SQLite persistence for prices and basket cookies."""
