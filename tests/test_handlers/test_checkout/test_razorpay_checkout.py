import asyncio
import unittest
from datetime import date, time
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from spacebook.common.models.bookings import Booking, BookingStatus, CustomerDetails
from spacebook.common.models.payments import PaymentOrder, PaymentVerification
from spacebook.common.models.pricing import DiscountType, PromoCode
from spacebook.common.schemas.bookings import CreateBookingRequest, CustomerDetailsRequest
from spacebook.common.schemas.payments import GatewayCallback
from spacebook.common.services.payment_service import PaymentService
from spacebook.common.services.pricing_service import PricingService
from spacebook.common.utils.custom_exceptions import ApiError, GatewayError, VerificationFailed
from spacebook.common.utils.custom_response import ErrorResponse
from spacebook.handlers.checkout.razorpay_checkout import (
    GATEWAY_CRASHED,
    GATEWAY_NOT_LOADED,
    INITIATE_FAILED,
    VERIFY_FAILED,
    CheckoutDetails,
    CheckoutFlow,
    CheckoutStatus,
    GatewayEvent,
    GatewayOutcome,
    PaymentGateway,
)

CALLBACK = GatewayCallback(
    razorpay_order_id="order_1", razorpay_payment_id="pay_1", razorpay_signature="sig"
)


def make_booking(status=BookingStatus.PENDING):
    return Booking(
        booking_id="b1",
        booking_code="FP1A2B",
        space_id="s1",
        customer_id="c1",
        booking_date=None,
        start_time="10:00",
        end_time="12:00",
        duration=2,
        customer=CustomerDetails(name="Priya", email="priya@example.com", phone="9123456780"),
        status=status,
    )


class FakeGateway(PaymentGateway):
    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.opened = []
        self.load_calls = 0
        self.unload_calls = 0
        self.release = None
        self._loaded = False

    @property
    def loaded(self):
        return self._loaded

    async def load(self):
        self.load_calls += 1
        self._loaded = True

    async def unload(self):
        self.unload_calls += 1
        self._loaded = False

    async def open(self, options):
        self.opened.append(options)
        if self.release is not None:
            await self.release.wait()
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestCheckoutFlow(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.booking_service = MagicMock()
        self.booking_service.create_booking = AsyncMock(return_value=make_booking())
        self.booking_service.get_booking = AsyncMock(
            return_value=make_booking(BookingStatus.CONFIRMED)
        )
        self.payment_service = MagicMock()
        self.payment_service.create_order = AsyncMock(
            side_effect=[
                PaymentOrder("order_1", "b1", 100000, "INR", "rzp_server"),
                PaymentOrder("order_2", "b1", 100000, "INR", "rzp_server"),
            ]
        )
        self.payment_service.verify_payment = AsyncMock(
            return_value=PaymentVerification(
                success=True, booking=make_booking(BookingStatus.CONFIRMED)
            )
        )
        self.on_success = MagicMock()
        self.on_failure = MagicMock()

        self.details = CheckoutDetails(
            booking=CreateBookingRequest(
                space_id="s1",
                booking_date=date(2026, 11, 2),
                start_time=time(10, 0),
                end_time=time(12, 0),
                customer=CustomerDetailsRequest(
                    name="Priya", email="priya@example.com", phone="9123456780"
                ),
            ),
            total=1000.00,
            space_name="Rooftop Studio",
        )

    def _flow(self, gateway):
        return CheckoutFlow(
            self.booking_service,
            self.payment_service,
            gateway,
            key="rzp_default",
            on_success=self.on_success,
            on_failure=self.on_failure,
        )

    async def test_successful_payment_confirms_booking(self):
        gateway = FakeGateway([GatewayOutcome(GatewayEvent.SUCCEEDED, CALLBACK)])

        async with self._flow(gateway) as flow:
            booking = await flow.pay(self.details)

        self.assertEqual(CheckoutStatus.SUCCESS, flow.status)
        self.assertEqual(BookingStatus.CONFIRMED, booking.status)
        self.payment_service.verify_payment.assert_awaited_once_with(CALLBACK, "b1")

        options = gateway.opened[0]
        self.assertEqual("rzp_server", options.key)
        self.assertEqual("order_1", options.order_id)
        self.assertEqual(100000, options.amount)
        self.assertEqual("Booking for Rooftop Studio", options.description)
        self.assertEqual("9123456780", options.prefill["contact"])
        self.assertEqual(2.0, options.notes["duration"])

        self.on_success.assert_called_once()
        result = self.on_success.call_args.args[0]
        self.assertIs(CALLBACK, result.callback)
        self.on_failure.assert_not_called()

    async def test_dismissal_returns_to_idle_without_verifying(self):
        gateway = FakeGateway([GatewayOutcome(GatewayEvent.DISMISSED)])

        async with self._flow(gateway) as flow:
            result = await flow.pay(self.details)

        self.assertIsNone(result)
        self.assertEqual(CheckoutStatus.IDLE, flow.status)
        self.assertEqual("", flow.error)
        self.assertEqual(BookingStatus.PENDING, flow.booking.status)
        self.payment_service.verify_payment.assert_not_awaited()
        self.on_failure.assert_not_called()

    async def test_gateway_failure_reports_description(self):
        gateway = FakeGateway(
            [GatewayOutcome(GatewayEvent.FAILED, error_description="Card declined")]
        )

        async with self._flow(gateway) as flow:
            await flow.pay(self.details)

            self.assertEqual(CheckoutStatus.FAILED, flow.status)
            self.assertEqual("Card declined", flow.error)
            self.on_failure.assert_called_once()

            flow.dismiss_error()
            self.assertEqual(CheckoutStatus.IDLE, flow.status)
            self.assertEqual("", flow.error)

    async def test_verification_failure_then_retry_reuses_booking(self):
        self.payment_service.verify_payment.side_effect = [
            VerificationFailed(VERIFY_FAILED),
            PaymentVerification(success=True, booking=make_booking(BookingStatus.CONFIRMED)),
        ]
        gateway = FakeGateway(
            [
                GatewayOutcome(GatewayEvent.SUCCEEDED, CALLBACK),
                GatewayOutcome(GatewayEvent.SUCCEEDED, CALLBACK),
            ]
        )

        async with self._flow(gateway) as flow:
            await flow.pay(self.details)
            self.assertEqual(CheckoutStatus.FAILED, flow.status)
            self.assertEqual(VERIFY_FAILED, flow.error)
            self.on_success.assert_not_called()

            booking = await flow.pay(self.details)

        self.assertEqual(CheckoutStatus.SUCCESS, flow.status)
        self.assertEqual(BookingStatus.CONFIRMED, booking.status)
        self.booking_service.create_booking.assert_awaited_once()
        self.assertEqual(2, self.payment_service.create_order.await_count)
        self.assertEqual(["order_1", "order_2"], [o.order_id for o in gateway.opened])

    async def test_changed_details_create_new_booking(self):
        self.payment_service.verify_payment.side_effect = VerificationFailed(VERIFY_FAILED)
        gateway = FakeGateway(
            [
                GatewayOutcome(GatewayEvent.SUCCEEDED, CALLBACK),
                GatewayOutcome(GatewayEvent.SUCCEEDED, CALLBACK),
            ]
        )
        changed = CheckoutDetails(
            booking=self.details.booking.model_copy(update={"end_time": time(13, 0)}),
            total=1500.00,
        )

        async with self._flow(gateway) as flow:
            await flow.pay(self.details)
            await flow.pay(changed)

        self.assertEqual(2, self.booking_service.create_booking.await_count)

    async def test_duplicate_trigger_while_processing_is_ignored(self):
        gateway = FakeGateway([GatewayOutcome(GatewayEvent.SUCCEEDED, CALLBACK)])
        gateway.release = asyncio.Event()

        async with self._flow(gateway) as flow:
            first = asyncio.create_task(flow.pay(self.details))
            while not gateway.opened:
                await asyncio.sleep(0)

            self.assertTrue(flow.is_loading)
            self.assertFalse(flow.can_pay)
            self.assertIsNone(await flow.pay(self.details))

            gateway.release.set()
            await first

        self.booking_service.create_booking.assert_awaited_once()
        self.payment_service.create_order.assert_awaited_once()
        self.assertEqual(CheckoutStatus.SUCCESS, flow.status)

    async def test_pay_before_mount_reports_gateway_not_loaded(self):
        flow = self._flow(FakeGateway())

        self.assertIsNone(await flow.pay(self.details))

        self.assertEqual(GATEWAY_NOT_LOADED, flow.error)
        self.assertEqual(CheckoutStatus.IDLE, flow.status)
        self.booking_service.create_booking.assert_not_awaited()

    async def test_gateway_crash_is_a_failure(self):
        gateway = FakeGateway([GatewayError("widget threw")])

        async with self._flow(gateway) as flow:
            await flow.pay(self.details)

        self.assertEqual(CheckoutStatus.FAILED, flow.status)
        self.assertEqual(GATEWAY_CRASHED, flow.error)
        self.payment_service.verify_payment.assert_not_awaited()

    async def test_order_creation_error_uses_server_message(self):
        self.payment_service.create_order.side_effect = ApiError(
            ErrorResponse(
                status_code=400,
                message="Booking already paid",
                error="Bad Request",
                timestamp="2026-10-19T10:00:00+00:00",
                path="/payments/order",
            )
        )
        gateway = FakeGateway()

        async with self._flow(gateway) as flow:
            await flow.pay(self.details)

        self.assertEqual(CheckoutStatus.FAILED, flow.status)
        self.assertEqual("Booking already paid", flow.error)
        self.assertEqual([], gateway.opened)

    async def test_verification_without_booking_reloads_it(self):
        self.payment_service.verify_payment.return_value = PaymentVerification(success=True)
        gateway = FakeGateway([GatewayOutcome(GatewayEvent.SUCCEEDED, CALLBACK)])

        async with self._flow(gateway) as flow:
            booking = await flow.pay(self.details)

        self.booking_service.get_booking.assert_awaited_once_with("b1")
        self.assertEqual(BookingStatus.CONFIRMED, booking.status)

    async def test_gateway_loaded_once_per_mount(self):
        gateway = FakeGateway()
        flow = self._flow(gateway)

        await flow.mount()
        await flow.mount()
        await flow.unmount()
        await flow.unmount()

        self.assertEqual(1, gateway.load_calls)
        self.assertEqual(1, gateway.unload_calls)


    async def test_zero_total_fails_instead_of_hanging(self):
        promo = PromoCode(code="FREE", discount=Decimal("100"), type=DiscountType.PERCENTAGE)
        price = PricingService().breakdown(500, 2, promo)
        payment_repo = MagicMock()
        payment_repo.create_order = AsyncMock()
        self.payment_service = PaymentService(payment_repo)
        self.details.total = price.total
        gateway = FakeGateway()

        async with self._flow(gateway) as flow:
            self.assertIsNone(await flow.pay(self.details))

            self.assertEqual(CheckoutStatus.FAILED, flow.status)
            self.assertEqual(INITIATE_FAILED, flow.error)
            self.assertTrue(flow.can_pay)

        payment_repo.create_order.assert_not_awaited()
        self.assertEqual([], gateway.opened)
        self.on_failure.assert_called_once()

    async def test_unexpected_gateway_exception_fails(self):
        gateway = FakeGateway([RuntimeError("widget script threw")])

        async with self._flow(gateway) as flow:
            await flow.pay(self.details)

            self.assertEqual(CheckoutStatus.FAILED, flow.status)
            self.assertEqual(INITIATE_FAILED, flow.error)
            self.assertTrue(flow.can_pay)

        self.payment_service.verify_payment.assert_not_awaited()

    async def test_success_without_callback_fails(self):
        gateway = FakeGateway([GatewayOutcome(GatewayEvent.SUCCEEDED)])

        async with self._flow(gateway) as flow:
            await flow.pay(self.details)

        self.assertEqual(CheckoutStatus.FAILED, flow.status)
        self.assertEqual(GATEWAY_CRASHED, flow.error)
        self.payment_service.verify_payment.assert_not_awaited()

    async def test_unexpected_verification_exception_fails(self):
        self.payment_service.verify_payment.side_effect = KeyError("booking")
        gateway = FakeGateway([GatewayOutcome(GatewayEvent.SUCCEEDED, CALLBACK)])

        async with self._flow(gateway) as flow:
            await flow.pay(self.details)

        self.assertEqual(CheckoutStatus.FAILED, flow.status)
        self.assertEqual(VERIFY_FAILED, flow.error)
        self.on_success.assert_not_called()

    async def test_failed_reload_reports_success_without_booking(self):
        self.payment_service.verify_payment.return_value = PaymentVerification(success=True)
        self.booking_service.get_booking.side_effect = ApiError(
            ErrorResponse(
                status_code=503,
                message="Service unavailable",
                error="Service Unavailable",
                timestamp="2026-10-19T10:00:00+00:00",
                path="/bookings/b1",
            )
        )
        gateway = FakeGateway([GatewayOutcome(GatewayEvent.SUCCEEDED, CALLBACK)])

        async with self._flow(gateway) as flow:
            self.assertIsNone(await flow.pay(self.details))

        self.assertEqual(CheckoutStatus.SUCCESS, flow.status)
        self.assertIsNone(self.on_success.call_args.args[0].booking)


if __name__ == "__main__":
    unittest.main()
