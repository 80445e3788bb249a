"""
Password hashing helpers.

New hashes use pbkdf2_sha256. bcrypt hashes written by earlier releases
still verify and are replaced with pbkdf2_sha256 on the next login.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-02-10
"""

from typing import Optional, Tuple

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """Compare a plain password with a stored hash.

    Accounts migrated from an older schema may have no hash yet; those never
    match. Unrecognised hash formats are treated as a mismatch.
    """
    return verify_and_update(plain, hashed)[0]


def verify_and_update(plain: str, hashed: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Verify a password and produce a replacement hash when the stored one is deprecated.

    Args:
        plain: Password as typed.
        hashed: Stored hash, possibly None.

    Returns:
        Tuple of (matches, new_hash). new_hash is None unless the password
        matched a hash in a deprecated scheme.
    """
    if not plain or not hashed:
        return False, None
    try:
        return pwd_context.verify_and_update(plain, hashed)
    except ValueError:
        return False, None
