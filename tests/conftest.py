import os

# Settings are read once at import of the app; give the token signer a secret.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")
