def normalize_email(email: str) -> str:
    """Return the canonical form of an email address (trimmed, lower-cased)."""
    return (email or "").strip().lower()
