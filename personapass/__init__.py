"""PersonaPass backend services: TOTP auth, DID issuance, chain status."""

__version__ = "1.0.0"
