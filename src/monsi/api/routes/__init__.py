"""Route modules for the query API. Each exposes ``router(engine)``."""
