"""Tests for password hashing and generation."""

import string

from saasbilling.security import PasswordSecurity


class TestPasswordHashing:
  def test_hash_and_verify(self):
    hashed = PasswordSecurity.hash_password("correct horse 1")

    assert hashed != "correct horse 1"
    assert PasswordSecurity.verify_password("correct horse 1", hashed)
    assert not PasswordSecurity.verify_password("wrong horse 1", hashed)

  def test_malformed_hash_is_false(self):
    assert not PasswordSecurity.verify_password("anything", "not-a-bcrypt-hash")
    assert not PasswordSecurity.verify_password("anything", None)


class TestTemporaryPassword:
  def test_temporary_password_character_classes(self):
    password = PasswordSecurity.generate_temporary_password()

    assert len(password) == 16
    assert any(c in string.ascii_uppercase for c in password)
    assert any(c in string.ascii_lowercase for c in password)
    assert any(c in string.digits for c in password)
    assert any(c in PasswordSecurity.SPECIAL_CHARS for c in password)

  def test_temporary_passwords_differ(self):
    assert (
      PasswordSecurity.generate_temporary_password()
      != PasswordSecurity.generate_temporary_password()
    )
