"""Password hashing tests."""

from notevault.auth.password import hash_password, verify_password


def test_hash_is_bcrypt_with_requested_cost():
    h = hash_password("hunter22", rounds=4)
    assert h.startswith("$2b$04$")
    assert "hunter22" not in h


def test_default_cost_is_ten():
    assert hash_password("hunter22").startswith("$2b$10$")


def test_verify_roundtrip():
    h = hash_password("correct horse", rounds=4)
    assert verify_password("correct horse", h) is True
    assert verify_password("wrong horse", h) is False


def test_same_password_gets_fresh_salt():
    assert hash_password("same", rounds=4) != hash_password("same", rounds=4)


def test_missing_hash_is_a_plain_no():
    """Google-only accounts have no password hash."""
    assert verify_password("anything", None) is False
    assert verify_password("anything", "") is False


def test_garbage_hash_is_a_plain_no():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_only_first_72_bytes_count():
    base = "x" * 72
    h = hash_password(base + "tail-one", rounds=4)
    assert verify_password(base + "tail-two", h) is True
