from common.core.security import (
    generate_access_token,
    generate_secure_filename,
    hash_password,
    hash_token,
    validate_file_type,
    verify_password,
)


class TestPasswords:
    def test_hash_is_salted(self):
        assert hash_password("hunter22") != hash_password("hunter22")

    def test_verify_round_trip(self):
        digest = hash_password("hunter22")
        assert verify_password("hunter22", digest)
        assert not verify_password("hunter23", digest)

    def test_verify_rejects_missing_or_malformed_digest(self):
        assert not verify_password("hunter22", None)
        assert not verify_password("hunter22", "no-separator")


class TestTokens:
    def test_token_format(self):
        token = generate_access_token()
        assert token.startswith("lm_")
        assert len(token) == 3 + 64

    def test_hash_is_stable_sha256(self):
        assert hash_token("abc") == hash_token("abc")
        assert len(hash_token("abc")) == 64


class TestUploads:
    def test_secure_filename_keeps_extension_and_strips_unsafe_chars(self):
        name = generate_secure_filename("My Report (final).PDF")
        prefix, rest = name.split("_", 1)
        assert len(prefix) == 16
        assert rest == "My_Report__final_.pdf"

    def test_only_pdf_and_images_allowed(self):
        assert validate_file_type("application/pdf")
        assert validate_file_type("IMAGE/PNG")
        assert not validate_file_type("text/plain")
        assert not validate_file_type(None)
