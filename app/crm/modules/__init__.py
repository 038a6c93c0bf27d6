"""
Feature modules live under this package.

Each module owns its routes/models/service, while reusing platform
primitives (config, DB session, storage, security, errors).
"""
