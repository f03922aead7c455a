from storefront.core.security import (
    generate_session_token,
    hash_password,
    is_password_hash,
    needs_rehash,
    verify_password,
)


def test_hash_password_produces_bcrypt_hash():
    hashed = hash_password("secret1")

    assert hashed != "secret1"
    assert is_password_hash(hashed)
    assert not needs_rehash(hashed)


def test_verify_password_against_hash():
    hashed = hash_password("secret1")

    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)


def test_verify_password_against_legacy_plaintext():
    assert verify_password("admin123", "admin123")
    assert not verify_password("admin124", "admin123")
    assert needs_rehash("admin123")


def test_malformed_hash_never_verifies():
    assert not verify_password("secret1", "$2b$not-a-real-hash")


def test_long_passwords_are_accepted():
    password = "x" * 100
    hashed = hash_password(password)

    assert verify_password(password, hashed)


def test_session_tokens_are_unique():
    tokens = {generate_session_token() for _ in range(50)}

    assert len(tokens) == 50
