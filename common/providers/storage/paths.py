"""
Object key layout for uploaded files.

    users/{user_id}/files/{secure_filename}
    anonymous/{ip_hash}/files/{secure_filename}

Anonymous uploads are keyed by a hash of the caller IP so raw addresses never
end up in bucket listings.
"""

import hashlib


def get_user_file_path(user_id: int, filename: str) -> str:
    return f"users/{user_id}/files/{filename}"


def get_anonymous_file_path(ip_address: str, filename: str) -> str:
    ip_hash = hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return f"anonymous/{ip_hash}/files/{filename}"
