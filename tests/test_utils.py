"""Unit tests for password and file type helpers"""

import pytest

from bucket_panel.utils.file_types import classify_file, format_bytes, guess_content_type
from bucket_panel.utils.passwords import (
    CHARSETS,
    MIN_PASSWORD_LENGTH,
    generate_secure_password,
    hash_password,
    verify_password,
)


class TestGenerateSecurePassword:
    def test_length_and_character_classes(self):
        for _ in range(50):
            password = generate_secure_password()

            assert len(password) >= MIN_PASSWORD_LENGTH
            for charset in CHARSETS.values():
                assert any(char in charset for char in password)

    def test_never_shorter_than_minimum(self):
        assert len(generate_secure_password(4)) == MIN_PASSWORD_LENGTH

    def test_no_ambiguous_characters(self):
        password = "".join(generate_secure_password(64) for _ in range(20))

        for char in "0O1lI":
            assert char not in password

    def test_passwords_differ(self):
        assert generate_secure_password() != generate_secure_password()


class TestPasswordHashing:
    def test_hash_and_verify(self):
        password_hash = hash_password("correct horse")

        assert password_hash != "correct horse"
        assert verify_password("correct horse", password_hash) is True
        assert verify_password("wrong horse", password_hash) is False

    def test_malformed_hash_never_matches(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False
        assert verify_password("anything", "") is False

    def test_overlong_password_is_rejected(self):
        with pytest.raises(ValueError):
            hash_password("x" * 73)


class TestFileTypes:
    @pytest.mark.parametrize(
        "name,category",
        [
            ("photo.PNG", "image"),
            ("clip.mp4", "video"),
            ("song.mp3", "audio"),
            ("report.pdf", "pdf"),
            ("notes.md", "text"),
            ("archive.zip", "other"),
            ("no-extension", "other"),
        ],
    )
    def test_classify_file(self, name, category):
        assert classify_file(name) == category

    def test_format_bytes(self):
        assert format_bytes(0) == "0 B"
        assert format_bytes(512) == "512 B"
        assert format_bytes(250 * 1024 * 1024) == "250 MB"
        assert format_bytes(1536) == "1.5 KB"

    def test_guess_content_type(self):
        assert guess_content_type("photo.png") == "image/png"
        assert guess_content_type("unknown.panelxyz") == "application/octet-stream"
