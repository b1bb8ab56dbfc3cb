from typing import Optional
import hashlib
import hmac
import secrets
import string

PBKDF2_ITERATIONS = 100_000

ALLOWED_UPLOAD_TYPES = [
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/svg+xml",
]


def hash_password(password: str) -> str:
    """Hash a password as ``salt:hash`` using PBKDF2-HMAC-SHA512."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha512", password.encode(), salt.encode(), PBKDF2_ITERATIONS
    ).hex()
    return f"{salt}:{digest}"


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    """Verify a password against a ``salt:hash`` digest."""
    if not stored_hash or ":" not in stored_hash:
        return False
    salt, expected = stored_hash.split(":", 1)
    digest = hashlib.pbkdf2_hmac(
        "sha512", password.encode(), salt.encode(), PBKDF2_ITERATIONS
    ).hex()
    return hmac.compare_digest(digest, expected)


def generate_access_token() -> str:
    """Generate an opaque bearer token."""
    # Format: lm_<32 random bytes as hex>
    return f"lm_{secrets.token_hex(32)}"


def hash_token(token: str) -> str:
    """Hash a bearer token for storage."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_secure_filename(original_filename: str) -> str:
    """Generate a secure filename with random prefix."""
    if "." in original_filename:
        name, ext = original_filename.rsplit(".", 1)
        ext = f".{ext.lower()}"
    else:
        name = original_filename
        ext = ""

    alphabet = string.ascii_letters + string.digits
    random_prefix = "".join(secrets.choice(alphabet) for _ in range(16))

    # Keep alphanumerics, dashes and underscores
    safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in name)[:50]

    return f"{random_prefix}_{safe_name}{ext}"


def validate_file_type(content_type: Optional[str]) -> bool:
    """Only PDFs and images may be uploaded."""
    return bool(content_type) and content_type.lower() in ALLOWED_UPLOAD_TYPES
