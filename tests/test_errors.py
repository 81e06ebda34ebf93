from decimal import Decimal

import pytest
from sqlalchemy.exc import DataError, IntegrityError, OperationalError

from gamestore.errors import (
    ConstraintError,
    DuplicateIdentifierError,
    InvalidPaymentMethodError,
    TransactionError,
)
from gamestore.models import PaymentMethod
from gamestore.order_service import (
    card_last_four,
    map_payment_method,
    parse_client_price,
    translate_db_error,
)


def test_duplicate_order_id_is_retryable():
    exc = IntegrityError("INSERT INTO orders", {}, Exception("UNIQUE constraint failed: orders.id"))
    err = translate_db_error(exc, "ORD007", "PAY007")

    assert isinstance(err, DuplicateIdentifierError)
    assert "Duplicate Order ID" in err.message
    assert err.retryable
    assert err.status_code == 409


def test_duplicate_payment_id_from_postgres_message():
    exc = IntegrityError(
        "INSERT INTO payments", {},
        Exception('duplicate key value violates unique constraint "payments_pkey" DETAIL: Key (id)=(PAY007) already exists.'),
    )
    err = translate_db_error(exc, "ORD007", "PAY007")
    assert "Duplicate Payment ID" in err.message


def test_other_integrity_errors_are_constraint_errors():
    exc = IntegrityError("INSERT INTO orders", {}, Exception("FOREIGN KEY constraint failed"))
    err = translate_db_error(exc, "ORD001", "PAY001")
    assert isinstance(err, ConstraintError)
    assert not err.retryable


def test_data_too_long_is_a_constraint_error():
    exc = DataError("INSERT INTO orders", {}, Exception("value too long for type character varying(100)"))
    err = translate_db_error(exc, "ORD001", "PAY001")
    assert isinstance(err, ConstraintError)
    assert "Data too long" in err.message


def test_anything_else_is_a_transaction_error():
    exc = OperationalError("SELECT 1", {}, Exception("server closed the connection"))
    err = translate_db_error(exc, None, None)
    assert isinstance(err, TransactionError)
    assert err.status_code == 500


@pytest.mark.parametrize("token,expected", [
    ("creditcard", PaymentMethod.CREDIT_CARD),
    ("banktransfer", PaymentMethod.BANK_TRANSFER),
    ("promptpay", PaymentMethod.PROMPTPAY),
    ("TrueWallet", PaymentMethod.TRUE_WALLET),
])
def test_map_payment_method(token, expected):
    assert map_payment_method(token) is expected


def test_map_payment_method_rejects_unknown_tokens():
    with pytest.raises(InvalidPaymentMethodError):
        map_payment_method("paypal")


def test_client_price_parsing():
    assert parse_client_price("฿295.00") == Decimal("295.00")
    assert parse_client_price(149) == Decimal("149")
    assert parse_client_price("free") is None


def test_card_last_four():
    assert card_last_four("4111 1111 1111 1234") == "1234"
    assert card_last_four("1234") == "1234"
    assert card_last_four(None) is None
