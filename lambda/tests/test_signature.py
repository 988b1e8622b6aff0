"""
Payment Signature Tests
=======================

Usage:
    pytest lambda/tests/test_signature.py -v
"""

import hashlib
import hmac

import pytest

from models import PaymentCallback
from utils.errors import SignatureMismatch, ValidationError
from utils.signature import generate_signature, verify, verify_callback

SECRET = "rzp_test_secret"
ORDER_ID = "order_NkA1b2C3d4E5f6"
PAYMENT_ID = "pay_NkA9z8Y7x6W5v4"


def _single_bit_mutations(signature: str):
    for index, char in enumerate(signature):
        for bit in range(8):
            mutated = chr(ord(char) ^ (1 << bit))
            yield signature[:index] + mutated + signature[index + 1:]


class TestVerify:
    """Tests for HMAC signature checks."""

    def test_matches_reference_hmac(self):
        expected = hmac.new(SECRET.encode(), f"{ORDER_ID}|{PAYMENT_ID}".encode(), hashlib.sha256).hexdigest()
        assert generate_signature(ORDER_ID, PAYMENT_ID, SECRET) == expected

    def test_valid_signature(self):
        signature = generate_signature(ORDER_ID, PAYMENT_ID, SECRET)
        assert verify(ORDER_ID, PAYMENT_ID, signature, SECRET) is True

    def test_every_single_bit_mutation_fails(self):
        signature = generate_signature(ORDER_ID, PAYMENT_ID, SECRET)
        for mutated in _single_bit_mutations(signature):
            assert verify(ORDER_ID, PAYMENT_ID, mutated, SECRET) is False, mutated

    def test_uppercase_hex_is_not_accepted(self):
        signature = generate_signature(ORDER_ID, PAYMENT_ID, SECRET)
        assert verify(ORDER_ID, PAYMENT_ID, signature.upper(), SECRET) is False

    def test_wrong_secret(self):
        signature = generate_signature(ORDER_ID, PAYMENT_ID, "another_secret")
        assert verify(ORDER_ID, PAYMENT_ID, signature, SECRET) is False

    def test_swapped_ids(self):
        signature = generate_signature(PAYMENT_ID, ORDER_ID, SECRET)
        assert verify(ORDER_ID, PAYMENT_ID, signature, SECRET) is False

    def test_truncated_signature(self):
        signature = generate_signature(ORDER_ID, PAYMENT_ID, SECRET)
        assert verify(ORDER_ID, PAYMENT_ID, signature[:-1], SECRET) is False

    def test_non_ascii_signature(self):
        assert verify(ORDER_ID, PAYMENT_ID, "é" * 64, SECRET) is False

    def test_uses_constant_time_comparison(self, monkeypatch):
        calls = []
        real_compare = hmac.compare_digest

        def recording_compare(a, b):
            calls.append((a, b))
            return real_compare(a, b)

        monkeypatch.setattr(hmac, "compare_digest", recording_compare)
        verify(ORDER_ID, PAYMENT_ID, "00" * 32, SECRET)
        assert len(calls) == 1
        assert all(isinstance(arg, bytes) for arg in calls[0])

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            verify(ORDER_ID, PAYMENT_ID, "00" * 32, "")


class TestVerifyCallback:
    """Tests for callback validation and the error taxonomy."""

    def test_valid_callback(self):
        callback = PaymentCallback(ORDER_ID, PAYMENT_ID, generate_signature(ORDER_ID, PAYMENT_ID, SECRET))
        assert verify_callback(callback, SECRET) is None

    @pytest.mark.parametrize("field", ["razorpay_order_id", "razorpay_payment_id", "razorpay_signature"])
    def test_missing_field_is_validation_error(self, field):
        body = {
            "razorpay_order_id": ORDER_ID,
            "razorpay_payment_id": PAYMENT_ID,
            "razorpay_signature": generate_signature(ORDER_ID, PAYMENT_ID, SECRET),
        }
        del body[field]

        with pytest.raises(ValidationError) as exc:
            verify_callback(PaymentCallback.from_body(body), SECRET)
        assert exc.value.status_code == 400
        assert exc.value.public_message == "All fields are Mandatory!"

    def test_blank_field_is_validation_error(self):
        callback = PaymentCallback(ORDER_ID, "   ", "ab" * 32)
        with pytest.raises(ValidationError):
            verify_callback(callback, SECRET)

    def test_bad_signature_is_signature_mismatch(self):
        callback = PaymentCallback(ORDER_ID, PAYMENT_ID, "ab" * 32)
        with pytest.raises(SignatureMismatch) as exc:
            verify_callback(callback, SECRET)
        assert exc.value.status_code == 400
        assert not isinstance(exc.value, ValidationError)
