"""
Link verification package.

Finds document links in generated text and checks that they resolve
to reachable documents of the expected type.
"""

from erpro.verification.extract import extract_links
from erpro.verification.links import LinkVerifier, VerificationReport

__all__ = [
    "LinkVerifier",
    "VerificationReport",
    "extract_links",
]
