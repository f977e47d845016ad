"""
Domain key normalization.

Keys are domains with their labels reversed (``www.example.com`` becomes
``com.example.www``) so that sorting keys as text groups names by top-level
and registered domain. No label validation is done; any string is accepted.
"""


def reverse_domain(domain: str) -> str:
    """Reverse the dot-separated labels of ``domain``."""
    return ".".join(reversed(domain.split(".")))


def domain_from_key(key: str) -> str:
    """Recover the original label order from a key."""
    # Reversal is its own inverse
    return reverse_domain(key)
