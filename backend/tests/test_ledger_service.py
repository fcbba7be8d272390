"""
Test per il registro pagamenti e lo stato delle fatture.

Scenario ricorrente: auto a 19000 al giorno per 4 giorni, totale 76000.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.exceptions import AuthorizationError, BusinessValidationError, InvalidStateError
from app.models import Payment
from app.schemas.booking import BookingCreate
from app.schemas.invoice import PaymentMethod
from app.services.invoice_service import invoice_service

START = datetime(2026, 3, 20, 10, 0)
END = datetime(2026, 3, 24, 10, 0)


@pytest.fixture
def make_rental(db, booking_service, admin, make_car):
    """Crea una prenotazione da 76000 tramite il service."""
    async def _make_rental(owner=None):
        car = await make_car(owner=owner, daily_rate="19000")
        data = BookingCreate(customer_name="Wanjiku", car_id=car.id, start_date=START, end_date=END)
        return await booking_service.create(db, data, admin)

    return _make_rental


async def payments_of(db, booking_id, status=None):
    query = select(Payment).where(Payment.booking_id == booking_id).order_by(Payment.created_at)
    if status is not None:
        query = query.where(Payment.status == status)
    return list((await db.execute(query)).scalars().all())


async def invoice_status(db, booking_id):
    return (await invoice_service.get_for_booking(db, booking_id)).status


# ============================================================
# Incassi
# ============================================================


class TestRecordPayment:
    """Test per record_payment."""

    async def test_partial_payment_splits_outstanding(self, db, ledger, admin, make_rental):
        """Test incasso di 50000 su 76000: paid 50000 e pending 26000, fattura pending."""
        booking = await make_rental()
        assert booking.total_amount == Decimal("76000")

        settled = await ledger.record_payment(
            db, booking.id, Decimal("50000"), PaymentMethod.MPESA, admin
        )
        assert settled.status == "paid"
        assert settled.amount == Decimal("50000")
        assert settled.method == "mpesa"

        pending = await payments_of(db, booking.id, status="pending")
        assert [p.amount for p in pending] == [Decimal("26000")]
        assert await invoice_status(db, booking.id) == "pending"

    async def test_full_payment_settles_invoice(self, db, ledger, admin, make_rental):
        """Test incasso dell'intero importo: pagamento paid, fattura paid."""
        booking = await make_rental()

        settled = await ledger.record_payment(
            db, booking.id, Decimal("76000"), PaymentMethod.CASH, admin
        )
        assert settled.status == "paid"
        assert await payments_of(db, booking.id, status="pending") == []
        assert await invoice_status(db, booking.id) == "paid"

    async def test_payment_without_outstanding(self, db, ledger, admin, make_rental):
        """Test senza pagamenti da incassare si crea un pagamento paid con scadenza odierna."""
        booking = await make_rental()
        await ledger.record_payment(db, booking.id, Decimal("76000"), PaymentMethod.CASH, admin)

        extra = await ledger.record_payment(
            db, booking.id, Decimal("1000"), PaymentMethod.CARD, admin
        )
        assert extra.status == "paid"
        assert extra.due_date == date(2026, 3, 10)

        balance = await ledger.get_balance(db, booking.id, admin)
        assert balance.paid == Decimal("77000")
        assert balance.overpaid == Decimal("1000")

    @pytest.mark.parametrize("amount", ["0", "-10"])
    async def test_amount_must_be_positive(self, db, ledger, admin, make_rental, amount):
        """Test importo nullo o negativo -> BusinessValidationError sul campo amount."""
        booking = await make_rental()

        with pytest.raises(BusinessValidationError) as exc_info:
            await ledger.record_payment(db, booking.id, Decimal(amount), PaymentMethod.CASH, admin)
        assert "amount" in exc_info.value.field_errors

    async def test_cancelled_booking(self, db, ledger, booking_service, admin, make_rental):
        """Test nessun incasso su una prenotazione annullata."""
        booking = await make_rental()
        await booking_service.cancel(db, booking.id, admin)

        with pytest.raises(InvalidStateError):
            await ledger.record_payment(db, booking.id, Decimal("100"), PaymentMethod.CASH, admin)

    async def test_other_owner_denied(self, db, ledger, owner, other_owner, make_rental):
        """Test un proprietario non registra incassi su auto altrui."""
        booking = await make_rental(owner=owner)

        with pytest.raises(AuthorizationError):
            await ledger.record_payment(
                db, booking.id, Decimal("100"), PaymentMethod.CASH, other_owner
            )


class TestMarkPaymentPaid:
    """Test per mark_payment_paid."""

    async def test_mark_full_amount(self, db, ledger, admin, make_rental):
        """Test senza importo si incassa l'intero dovuto."""
        booking = await make_rental()
        [pending] = await payments_of(db, booking.id)

        settled = await ledger.mark_payment_paid(db, pending.id, PaymentMethod.BANK_TRANSFER, admin)
        assert settled.id == pending.id
        assert settled.status == "paid"
        assert settled.method == "bank_transfer"
        assert await invoice_status(db, booking.id) == "paid"

    async def test_mark_partial_then_rest(self, db, ledger, admin, make_rental):
        """Test incasso parziale e poi del residuo."""
        booking = await make_rental()
        [pending] = await payments_of(db, booking.id)

        await ledger.mark_payment_paid(
            db, pending.id, PaymentMethod.CASH, admin, amount=Decimal("50000")
        )
        assert pending.amount == Decimal("26000")
        assert pending.status == "pending"

        await ledger.mark_payment_paid(db, pending.id, PaymentMethod.CASH, admin)
        paid = await payments_of(db, booking.id, status="paid")
        assert sorted(p.amount for p in paid) == [Decimal("26000"), Decimal("50000")]
        assert await invoice_status(db, booking.id) == "paid"

    async def test_overpayment_is_reported(self, db, ledger, admin, make_rental):
        """Test importo superiore al dovuto: accettato e riportato come eccedenza."""
        booking = await make_rental()
        [pending] = await payments_of(db, booking.id)

        await ledger.mark_payment_paid(
            db, pending.id, PaymentMethod.CASH, admin, amount=Decimal("80000")
        )
        balance = await ledger.get_balance(db, booking.id, admin)
        assert balance.paid == Decimal("80000")
        assert balance.outstanding == Decimal("0")
        assert balance.overpaid == Decimal("4000")

    async def test_already_paid(self, db, ledger, admin, make_rental):
        """Test un pagamento già incassato -> InvalidStateError."""
        booking = await make_rental()
        [pending] = await payments_of(db, booking.id)
        await ledger.mark_payment_paid(db, pending.id, PaymentMethod.CASH, admin)

        with pytest.raises(InvalidStateError):
            await ledger.mark_payment_paid(db, pending.id, PaymentMethod.CASH, admin)


class TestMarkPaymentUnpaid:
    """Test per mark_payment_unpaid."""

    async def test_revert_only_payment(self, db, ledger, admin, make_rental):
        """Test storno dell'unico pagamento: torna pending senza metodo, fattura pending."""
        booking = await make_rental()
        [payment] = await payments_of(db, booking.id)
        await ledger.mark_payment_paid(db, payment.id, PaymentMethod.CASH, admin)

        reverted = await ledger.mark_payment_unpaid(db, payment.id, admin)
        assert reverted.id == payment.id
        assert reverted.status == "pending"
        assert reverted.method is None
        assert await invoice_status(db, booking.id) == "pending"

    async def test_revert_folds_into_outstanding(self, db, ledger, admin, make_rental):
        """Test storno con un pending esistente: l'importo vi confluisce, un solo pending."""
        booking = await make_rental()
        partial = await ledger.record_payment(
            db, booking.id, Decimal("50000"), PaymentMethod.CASH, admin
        )

        result = await ledger.mark_payment_unpaid(db, partial.id, admin)
        assert result.amount == Decimal("76000")

        payments = await payments_of(db, booking.id)
        assert [(p.status, p.amount) for p in payments] == [("pending", Decimal("76000"))]

    async def test_revert_pending_payment(self, db, ledger, admin, make_rental):
        """Test un pagamento non incassato non può essere stornato."""
        booking = await make_rental()
        [pending] = await payments_of(db, booking.id)

        with pytest.raises(InvalidStateError):
            await ledger.mark_payment_unpaid(db, pending.id, admin)


# ============================================================
# Riconciliazione
# ============================================================


class TestReconcile:
    """Test per reconcile e void."""

    async def test_reconcile_is_idempotent(self, db, ledger, admin, make_rental):
        """Test due riconciliazioni consecutive danno lo stesso stato."""
        booking = await make_rental()
        await ledger.record_payment(db, booking.id, Decimal("76000"), PaymentMethod.CASH, admin)

        first = (await ledger.reconcile(db, booking.id)).status
        second = (await ledger.reconcile(db, booking.id)).status
        assert first == second == "paid"

    async def test_void_invoice_is_untouched(self, db, ledger, booking_service, admin, make_rental):
        """Test una fattura void non cambia stato anche se coperta dai pagamenti."""
        booking = await make_rental()
        await ledger.record_payment(db, booking.id, Decimal("76000"), PaymentMethod.CASH, admin)
        await booking_service.cancel(db, booking.id, admin)

        invoice = await ledger.reconcile(db, booking.id)
        assert invoice.status == "void"

    async def test_balance_of_new_booking(self, db, ledger, admin, make_rental):
        """Test saldo di una prenotazione appena creata."""
        booking = await make_rental()

        balance = await ledger.get_balance(db, booking.id, admin)
        assert balance.total == Decimal("76000")
        assert balance.paid == Decimal("0")
        assert balance.outstanding == Decimal("76000")
        assert balance.overpaid == Decimal("0")
