"""
SSCC generation and sequence source tests
"""

import threading
from unittest.mock import MagicMock

import pytest

from database.models import SSCCSequence
from gs1.sequences import (
    CounterSequence,
    DatabaseSequence,
    RedisSequence,
    TimestampSequence,
    sequence_for_company,
)
from gs1.sscc import (
    SSCCValidationError,
    build_sscc,
    build_sscc_payload,
    calculate_sscc_check_digit,
    make_sscc,
    make_ssccs,
    sscc_to_urn,
    validate_sscc,
)


def test_sscc_check_digit():
    """Test SSCC check digit uses the GS1 Mod-10 algorithm"""
    assert calculate_sscc_check_digit("30614141123456789") == "1"


def test_sscc_check_digit_requires_17_digits():
    """Test that the check digit input must be exactly 17 digits"""
    with pytest.raises(SSCCValidationError):
        calculate_sscc_check_digit("123")


def test_make_sscc_from_counter():
    """Test SSCC layout: extension + 16 sequence digits + check digit"""
    sscc = make_sscc(CounterSequence(start=42), extension_digit=3)
    assert sscc == "300000000000000421"


def test_make_sscc_derives_extension_from_value():
    """Test that the extension digit is 1 + value % 9 when not given"""
    sscc = make_sscc(CounterSequence(start=42))
    assert sscc[0] == "7"
    assert sscc == "700000000000000429"


def test_make_sscc_is_pure_for_a_given_value():
    """Test that the same sequence value always yields the same SSCC"""
    assert make_sscc(CounterSequence(start=1000), 5) == make_sscc(CounterSequence(start=1000), 5)


def test_generated_ssccs_are_valid_and_unique():
    """Test structure, check digit and uniqueness over a run of SSCCs"""
    ssccs = make_ssccs(CounterSequence(), 500)
    assert len(set(ssccs)) == 500
    for sscc in ssccs:
        assert len(sscc) == 18
        assert sscc.isdigit()
        assert "1" <= sscc[0] <= "9"
        assert validate_sscc(sscc)


def test_large_sequence_values_keep_rightmost_16_digits():
    """Test that values longer than 16 digits are truncated from the left"""
    sscc = make_sscc(CounterSequence(start=123456789012345678), extension_digit=1)
    assert sscc[1:17] == "3456789012345678"
    assert validate_sscc(sscc)


@pytest.mark.parametrize("extension", [0, 10, -1, "3"])
def test_make_sscc_rejects_bad_extension(extension):
    """Test that the extension digit must be an int 1-9"""
    with pytest.raises(SSCCValidationError):
        make_sscc(CounterSequence(), extension_digit=extension)


def test_make_ssccs_rejects_non_positive_quantity():
    """Test that quantity must be positive"""
    with pytest.raises(SSCCValidationError):
        make_ssccs(CounterSequence(), 0)


def test_negative_sequence_value_rejected():
    """Test that a misbehaving source cannot produce a negative serial"""
    source = MagicMock()
    source.next_value.return_value = -5
    with pytest.raises(SSCCValidationError):
        make_sscc(source, 1)


def test_build_sscc_with_company_prefix():
    """Test company-prefixed SSCC construction and AI (00) payload"""
    sscc = build_sscc("0614141", "123456789", extension_digit=3)
    assert sscc == "306141411234567891"
    assert build_sscc_payload("0614141", "123456789", 3) == "00306141411234567891"


def test_sscc_to_urn():
    """Test SSCC URN conversion"""
    assert sscc_to_urn("306141411234567891") == "urn:epc:id:sscc:0614141.3123456789"


def test_validate_sscc_rejects_tampered_values():
    """Test that a changed check digit or length fails validation"""
    assert validate_sscc("306141411234567891")
    assert not validate_sscc("306141411234567892")
    assert not validate_sscc("30614141123456789")
    assert not validate_sscc("30614141123456789X")


def test_counter_sequence_is_thread_safe():
    """Test that concurrent callers never receive the same value"""
    source = CounterSequence(start=1)
    results = []
    lock = threading.Lock()

    def worker():
        values = [source.next_value() for _ in range(200)]
        with lock:
            results.extend(values)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 1600
    assert len(set(results)) == 1600
    assert source.checkpoint == 1601


def test_counter_sequence_rejects_negative_start():
    """Test that a counter cannot start below zero"""
    with pytest.raises(ValueError):
        CounterSequence(start=-1)


def test_redis_sequence_uses_incr():
    """Test that RedisSequence increments a per-company key"""
    client = MagicMock()
    client.incr.side_effect = [1, 2]

    source = RedisSequence("acme", redis_client=client)
    assert source.next_value() == 1
    assert source.next_value() == 2
    client.incr.assert_called_with("sscc:seq:acme")


def test_database_sequence_increments_per_company(session_factory):
    """Test that DatabaseSequence persists a counter per company"""
    acme = DatabaseSequence("acme", session_factory=session_factory)
    other = DatabaseSequence("other", session_factory=session_factory)

    assert [acme.next_value() for _ in range(3)] == [1, 2, 3]
    assert other.next_value() == 1

    session = session_factory()
    row = session.query(SSCCSequence).filter(SSCCSequence.company_id == "acme").first()
    assert row.last_value == 3
    session.close()


def test_database_sequence_resumes_from_stored_value(session_factory):
    """Test that issuance continues after the last stored value"""
    session = session_factory()
    session.add(SSCCSequence(company_id="acme", last_value=41))
    session.commit()
    session.close()

    sscc = make_sscc(DatabaseSequence("acme", session_factory=session_factory), extension_digit=3)
    assert sscc == "300000000000000421"


def test_database_sequence_is_unique_across_threads(file_session_factory):
    """Test that concurrent issuers on separate connections never share a value"""
    results = []
    errors = []
    lock = threading.Lock()

    def worker():
        source = DatabaseSequence("acme", session_factory=file_session_factory)
        try:
            values = [source.next_value() for _ in range(25)]
        except Exception as e:
            with lock:
                errors.append(e)
            return
        with lock:
            results.extend(values)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert sorted(results) == list(range(1, 201))

    session = file_session_factory()
    row = session.query(SSCCSequence).filter(SSCCSequence.company_id == "acme").one()
    assert row.last_value == 200
    session.close()


def test_database_sequence_retries_when_row_created_concurrently(session_factory):
    """Test that losing the first-insert race retries the increment"""
    source = DatabaseSequence("acme", session_factory=session_factory)
    increment = source._increment
    calls = []

    def racing_increment(db):
        calls.append(db)
        if len(calls) == 1:
            # Another issuer creates the row between our update and insert
            other = session_factory()
            other.add(SSCCSequence(company_id="acme", last_value=7))
            other.commit()
            other.close()
            return None
        return increment(db)

    source._increment = racing_increment
    assert source.next_value() == 8
    assert len(calls) == 2


def test_timestamp_sequence_shape():
    """Test legacy timestamp source: 12 time digits + 4 random digits"""
    source = TimestampSequence(clock=lambda: 1767225600.5)
    value = source.next_value()
    assert str(value)[:12] == "767225600500"
    assert 0 <= value % 10000 <= 9999


def test_sequence_for_company_backends(monkeypatch):
    """Test backend selection from SSCC_SEQUENCE_BACKEND"""
    monkeypatch.setenv("SSCC_SEQUENCE_BACKEND", "timestamp")
    assert isinstance(sequence_for_company("acme"), TimestampSequence)

    assert isinstance(sequence_for_company("acme", backend="database"), DatabaseSequence)

    with pytest.raises(ValueError):
        sequence_for_company("acme", backend="carrier-pigeon")
