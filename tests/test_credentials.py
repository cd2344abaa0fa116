"""
API key lifecycle: generation, validation, expiry and sweep.
"""

import threading
from datetime import timedelta

import pytest

from nash.core.credentials import CredentialManager
from nash.core.errors import StorageError


@pytest.fixture
def credentials(knowledge, db_path, clock):
    # knowledge fixture creates the tables
    return CredentialManager(db_path, clock=clock)


def test_generate_key_format(credentials, clock):
    key = credentials.generate()

    assert key.token.startswith("nsh-")
    assert len(key.token) == 4 + 32
    assert key.expires_at == clock() + timedelta(days=7)


def test_generated_keys_are_unique(credentials):
    tokens = {credentials.generate().token for _ in range(50)}
    assert len(tokens) == 50


def test_generated_key_is_valid(credentials):
    key = credentials.generate()

    assert credentials.is_valid(key.token) is True


def test_unknown_or_empty_key_is_invalid(credentials):
    credentials.generate()

    assert credentials.is_valid("nsh-doesnotexist") is False
    assert credentials.is_valid("") is False
    assert credentials.is_valid(None) is False


def test_key_expires_after_validity_window(credentials, clock):
    key = credentials.generate()

    clock.advance(days=6, hours=23)
    assert credentials.is_valid(key.token) is True

    clock.advance(hours=1)
    assert credentials.is_valid(key.token) is False


def test_expired_key_is_listed_until_sweep(credentials, clock):
    key = credentials.generate()
    clock.advance(days=8)

    assert [k.token for k in credentials.list_all()] == [key.token]
    assert credentials.list_all()[0].is_expired(clock()) is True


def test_sweep_removes_only_expired_keys(credentials, clock):
    old = credentials.generate()
    clock.advance(days=3)
    recent = credentials.generate()
    clock.advance(days=5)

    assert credentials.sweep() == 1

    remaining = credentials.list_all()
    assert [k.token for k in remaining] == [recent.token]
    assert credentials.is_valid(old.token) is False
    assert credentials.is_valid(recent.token) is True


def test_sweep_with_nothing_expired(credentials):
    credentials.generate()

    assert credentials.sweep() == 0
    assert credentials.count() == 1


def test_keys_persist_across_instances(credentials, db_path, clock):
    key = credentials.generate()

    reopened = CredentialManager(db_path, clock=clock)

    assert reopened.is_valid(key.token) is True
    assert reopened.list_all()[0].expires_at == key.expires_at


def test_list_all_reports_utc_expiration(credentials):
    key = credentials.generate()

    listed = credentials.list_all()[0]
    assert listed.expires_at.utcoffset() == timedelta(0)
    assert listed.expires_at == key.expires_at


def test_concurrent_generate_and_sweep(credentials, clock):
    """Keys issued while sweeps run are never removed before they expire."""
    issued = []
    lock = threading.Lock()

    def issue():
        for _ in range(20):
            key = credentials.generate()
            with lock:
                issued.append(key.token)

    def sweep():
        for _ in range(20):
            credentials.sweep()

    threads = [threading.Thread(target=issue) for _ in range(3)] + [threading.Thread(target=sweep) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert credentials.count() == 60
    assert all(credentials.is_valid(token) for token in issued)


def test_storage_failure(tmp_path, clock):
    manager = CredentialManager(str(tmp_path), clock=clock)

    with pytest.raises(StorageError) as exc_info:
        manager.generate()

    assert exc_info.value.operation == "generate_api_key"
