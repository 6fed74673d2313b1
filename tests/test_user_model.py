"""User document: password hashing happens on save, and only when needed."""

import pytest
from mongoengine import ValidationError

from app.models.user import User
from app.utils.hashing import verify_password


def test_new_user_password_is_hashed(mongo):
    user = User(name="Ann", email="ann@example.com", password="plaintext")
    user.save()
    assert user.password != "plaintext"
    assert verify_password("plaintext", user.password)


def test_unrelated_update_keeps_hash(mongo):
    User(name="Ann", email="ann@example.com", password="plaintext").save()
    user = User.objects(email="ann@example.com").first()
    stored_hash = user.password

    user.name = "Annie"
    user.save()

    reloaded = User.objects(email="ann@example.com").first()
    assert reloaded.name == "Annie"
    assert reloaded.password == stored_hash
    assert verify_password("plaintext", reloaded.password)


def test_changed_password_is_rehashed(mongo):
    User(name="Ann", email="ann@example.com", password="plaintext").save()
    user = User.objects(email="ann@example.com").first()

    user.password = "changed"
    user.save()

    reloaded = User.objects(email="ann@example.com").first()
    assert reloaded.password != "changed"
    assert verify_password("changed", reloaded.password)
    assert not verify_password("plaintext", reloaded.password)


def test_saving_twice_does_not_double_hash(mongo):
    user = User(name="Ann", email="ann@example.com", password="plaintext")
    user.save()
    user.save()
    assert verify_password("plaintext", user.password)


def test_empty_password_is_invalid(mongo):
    with pytest.raises(ValidationError):
        User(name="Ann", email="ann@example.com", password="").save()
    assert User.objects.count() == 0


def test_find_by_credentials(mongo):
    User(name="Ann", email="ann@example.com", password="plaintext").save()
    assert User.find_by_credentials("ann@example.com", "plaintext").name == "Ann"
    assert User.find_by_credentials("ann@example.com", "wrong") is None
    assert User.find_by_credentials("nobody@example.com", "plaintext") is None


def test_public_output_hides_private_fields(mongo):
    user = User(name="Ann", email="ann@example.com", password="plaintext")
    user.save()
    public = user.to_public()
    assert public["id"] == str(user.id)
    assert public["email"] == "ann@example.com"
    assert "password" not in public
    assert "token_version" not in public


def test_unknown_email_still_runs_a_password_check(mongo, monkeypatch):
    calls = []
    monkeypatch.setattr("app.models.user.dummy_verify", lambda: calls.append(1))
    User(name="Ann", email="ann@example.com", password="plaintext").save()

    assert User.find_by_credentials("nobody@example.com", "plaintext") is None
    assert calls == [1]

    assert User.find_by_credentials("ann@example.com", "wrong") is None
    assert calls == [1]
