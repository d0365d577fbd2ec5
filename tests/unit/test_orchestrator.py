from tracking import t
import uuid
from datetime import date
from decimal import Decimal

import pytest

from checkout.committer import BookingCommitter
from checkout.errors import BookingCreationError, CheckoutError, GatewayError, ValidationError
from checkout.orchestrator import PaymentOrchestrator
from checkout.reconciliation import ReconciliationReporter
from checkout.states import CheckoutState
from courts import Court
from infrastructure.constants import RECENT_ORDER_ID_WINDOW
from payments.gateway import CheckoutDisplay
from payments.outcomes import Cancelled, Failed, Succeeded
from reservations.contracts import BuyerContact
from reservations.selection import BookingSelection
from tests.helpers import DummyLogger, FakeBackend, ScriptedGateway, make_settings

COURT = Court(
    court_id="8",
    open_time="09:00",
    close_time="22:00",
    slot_duration_minutes=60,
    slot_price=Decimal("500"),
    name="Court 8",
    service_id="2",
    facility_id="1",
)
CONTACT = BuyerContact(name="Ravi", email="ravi@example.com", phone="9876543210")
DISPLAY = CheckoutDisplay(venue_name="Arena", court_name="Court 8", booking_date="2026-08-01", slot_count=3)


def _selection(*starts):
    return BookingSelection.from_starts(COURT, date(2026, 8, 1), starts or ("10:00", "11:00", "12:00"))


class Harness:
    def __init__(self, gateway, backend=None, **settings_overrides):
        t('tests.unit.test_orchestrator.Harness.__init__')
        self.gateway = gateway
        self.backend = backend or FakeBackend()
        self.settings = make_settings(**settings_overrides)
        self.reporter_logger = DummyLogger()
        self.logger = DummyLogger()
        self.reporter = ReconciliationReporter(self.settings.support_contact, logger=self.reporter_logger)
        self.committer = BookingCommitter(
            self.backend,
            self.reporter,
            timeout_seconds=self.settings.booking_timeout_seconds,
            logger=DummyLogger(),
        )
        self.orchestrator = PaymentOrchestrator(
            self.gateway,
            self.backend,
            self.committer,
            self.settings,
            logger=self.logger,
        )


@pytest.mark.asyncio
async def test_success_creates_bookings_and_reports_once():
    t('tests.unit.test_orchestrator.test_success_creates_bookings_and_reports_once')
    harness = Harness(ScriptedGateway(Succeeded("pay_777")))

    result = await harness.orchestrator.checkout(_selection(), CONTACT, DISPLAY)

    assert result.state is CheckoutState.BOOKING_CREATED
    assert len(result.bookings) == 3
    assert result.payment_id == "pay_777"
    assert result.settled is True
    assert harness.backend.success_reports == [(result.order_id, "pay_777")]
    assert harness.backend.failure_reports == []


@pytest.mark.asyncio
async def test_gateway_receives_minor_units_and_normalised_contact():
    gateway = ScriptedGateway(Succeeded("pay_1"))
    harness = Harness(gateway)

    await harness.orchestrator.checkout(_selection(), CONTACT, DISPLAY)

    intent, options = gateway.opened[0]
    assert intent.amount_minor == 150000
    assert intent.total == Decimal("1500.00")
    assert intent.contact.phone == "+919876543210"
    assert options.amount == 150000
    assert options.order_id == intent.order_id
    assert options.description == "3 slots at Arena"
    assert options.prefill["contact"] == "+919876543210"


@pytest.mark.asyncio
async def test_cancelled_makes_no_backend_calls():
    harness = Harness(ScriptedGateway(Cancelled()))

    result = await harness.orchestrator.checkout(_selection(), CONTACT, DISPLAY)

    assert result.state is CheckoutState.CANCELLED
    assert result.cancelled
    assert harness.backend.call_count == 0
    assert harness.reporter_logger.records == []


@pytest.mark.asyncio
async def test_failed_payment_reports_failure_and_raises_gateway_error():
    harness = Harness(ScriptedGateway(Failed("Card declined")))

    with pytest.raises(GatewayError) as excinfo:
        await harness.orchestrator.checkout(_selection(), CONTACT, DISPLAY)

    assert excinfo.value.reason == "Card declined"
    assert harness.backend.failure_reports == [excinfo.value.order_id]
    assert harness.backend.created == []


@pytest.mark.asyncio
async def test_failure_report_error_does_not_mask_gateway_error():
    harness = Harness(ScriptedGateway(Failed("declined")), FakeBackend(fail_failure_report=True))

    with pytest.raises(GatewayError):
        await harness.orchestrator.checkout(_selection("10:00"), CONTACT)

    assert any("Could not report payment failure" in str(message) for _, message in harness.logger.messages)


@pytest.mark.asyncio
async def test_gateway_timeout_is_a_failure():
    harness = Harness(ScriptedGateway(Succeeded("late"), delay=1.0), PAYMENT_TIMEOUT_SECONDS="0.05")

    with pytest.raises(GatewayError, match="not completed within"):
        await harness.orchestrator.checkout(_selection("10:00"), CONTACT)

    assert len(harness.backend.failure_reports) == 1
    assert harness.backend.created == []


@pytest.mark.asyncio
async def test_gateway_exception_is_a_failure():
    harness = Harness(ScriptedGateway(error=RuntimeError("browser crashed")))

    with pytest.raises(GatewayError, match="browser crashed"):
        await harness.orchestrator.checkout(_selection("10:00"), CONTACT)


@pytest.mark.asyncio
async def test_booking_failure_after_payment_raises_booking_creation_error():
    harness = Harness(ScriptedGateway(Succeeded("pay_9")), FakeBackend(fail_slots={"12:00"}))

    with pytest.raises(BookingCreationError) as excinfo:
        await harness.orchestrator.checkout(_selection(), CONTACT, DISPLAY)

    error = excinfo.value
    assert not isinstance(error, (ValidationError, GatewayError))
    assert error.payment_id == "pay_9"
    assert len(error.created) == 2
    assert "`pay_9`" in error.notice.message
    assert harness.backend.success_reports == []
    assert harness.backend.failure_reports == []


@pytest.mark.asyncio
async def test_missing_phone_never_contacts_gateway():
    gateway = ScriptedGateway()
    harness = Harness(gateway)

    with pytest.raises(ValidationError) as excinfo:
        await harness.orchestrator.checkout(
            _selection(), BuyerContact(name="Ravi", email="ravi@example.com", phone=""), DISPLAY
        )

    assert excinfo.value.field == "phone"
    assert gateway.opened == []
    assert harness.backend.call_count == 0


@pytest.mark.asyncio
async def test_empty_selection_never_contacts_gateway():
    gateway = ScriptedGateway()
    harness = Harness(gateway)

    with pytest.raises(CheckoutError):
        await harness.orchestrator.checkout(BookingSelection.empty(COURT, date(2026, 8, 1)), CONTACT)

    assert gateway.opened == []


@pytest.mark.asyncio
async def test_each_attempt_mints_a_new_order_id():
    gateway = ScriptedGateway(Cancelled())
    harness = Harness(gateway)
    selection = _selection()

    first = await harness.orchestrator.checkout(selection, CONTACT, DISPLAY)
    second = await harness.orchestrator.checkout(selection, CONTACT, DISPLAY)

    assert first.order_id != second.order_id
    assert first.order_id.startswith("order_")
    assert [intent.order_id for intent, _ in gateway.opened] == [first.order_id, second.order_id]


@pytest.mark.asyncio
async def test_default_display_uses_court_name():
    gateway = ScriptedGateway(Cancelled())
    harness = Harness(gateway)

    await harness.orchestrator.checkout(_selection("10:00"), CONTACT)

    _, options = gateway.opened[0]
    assert options.description == "Court 8 at Test Arena"
    assert options.notes["booking_date"] == "2026-08-01"


@pytest.mark.asyncio
async def test_gateway_precondition_failure_is_a_validation_error():
    from payments.telegram_checkout import TelegramInvoiceGateway

    class _Bot:
        def __init__(self):
            self.invoices = []

        async def send_invoice(self, **kwargs):
            self.invoices.append(kwargs)

    bot = _Bot()
    harness = Harness(TelegramInvoiceGateway(bot, provider_token="provider"))

    with pytest.raises(ValidationError) as excinfo:
        await harness.orchestrator.checkout(_selection("10:00"), CONTACT, DISPLAY)

    assert excinfo.value.field == "chat_id"
    assert bot.invoices == []
    assert harness.backend.call_count == 0


@pytest.mark.asyncio
async def test_display_is_checked_by_gateway_before_opening():
    gateway = ScriptedGateway(Cancelled())
    harness = Harness(gateway)

    await harness.orchestrator.checkout(_selection("10:00"), CONTACT, DISPLAY)

    assert gateway.validated == [DISPLAY]


@pytest.mark.asyncio
async def test_repeated_order_id_is_refused(monkeypatch):
    import checkout.orchestrator as orchestrator_module

    fixed = uuid.UUID("12345678123456781234567812345678")
    monkeypatch.setattr(orchestrator_module.uuid, "uuid4", lambda: fixed)
    monkeypatch.setattr(orchestrator_module.time, "time", lambda: 1_700_000_000.0)
    harness = Harness(ScriptedGateway(Cancelled()))

    await harness.orchestrator.checkout(_selection("10:00"), CONTACT, DISPLAY)
    with pytest.raises(RuntimeError, match="Order id collision"):
        await harness.orchestrator.checkout(_selection("10:00"), CONTACT, DISPLAY)


def test_issued_order_id_window_is_bounded():
    harness = Harness(ScriptedGateway())

    assert harness.orchestrator._recent_order_ids.maxlen == RECENT_ORDER_ID_WINDOW
