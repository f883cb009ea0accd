from backend.auth import passwords


def test_hash_password_verifies_original_plaintext() -> None:
    digest = passwords.hash_password('secret1', rounds=4)

    assert digest != 'secret1'
    assert passwords.verify_password(digest, 'secret1') is True


def test_verify_password_rejects_other_plaintext() -> None:
    digest = passwords.hash_password('secret1', rounds=4)

    assert passwords.verify_password(digest, 'secret2') is False


def test_hash_password_salts_every_call() -> None:
    assert passwords.hash_password('secret1', rounds=4) != passwords.hash_password('secret1', rounds=4)


def test_verify_password_returns_false_for_malformed_digest() -> None:
    assert passwords.verify_password('not-a-bcrypt-hash', 'secret1') is False


def test_hash_password_uses_configured_rounds(monkeypatch) -> None:
    monkeypatch.setattr('backend.auth.passwords.config.BCRYPT_ROUNDS', 5)

    digest = passwords.hash_password('secret1')

    assert digest.startswith('$2b$05$')
