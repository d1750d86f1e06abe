"""Checkout workflow.

1. ``create_order`` snapshots the cart into an order, applies the coupon and
   records the naira amount for Paystack customers.
2. Paystack customers get popup parameters; everyone else keeps a pending
   order and is sent to the confirmation page with an empty cart.
3. ``confirm_payment`` verifies the reference with Paystack. Anything other
   than ``success`` leaves the order pending and raises.
4. The post-payment steps run in order and each one is persisted in
   ``order_checkout_steps``. A failed step stops the run and is reported
   with the payment reference; ``resume`` re-runs whatever is not completed.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional

from libs.common.config import get_settings
from libs.common.currency import fetch_exchange_rate, naira_to_kobo, usd_to_ngn
from libs.common.datetime_utils import parse_datetime, utc_now
from libs.common.emails.client import EmailClient
from libs.common.logging import get_logger
from services.store_service.errors import (
    CartError,
    CouponError,
    NotFoundError,
    OrderStateError,
    PaymentVerificationError,
)
from services.store_service.models import (
    CheckoutStep,
    CheckoutStepName,
    CheckoutStepStatus,
    Coupon,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from services.store_service.paystack_client import (
    PaystackClient,
    PaystackError,
    PopupParams,
    TransactionVerification,
    build_popup_params,
    generate_payment_reference,
)
from services.store_service.repositories import (
    CartOwner,
    CartRepository,
    CheckoutStepRepository,
    CouponRepository,
    OrderRepository,
    PaymentTransactionRepository,
    ProductRepository,
)
from services.store_service.services.cart_state import CartLine, CartState
from services.store_service.services.notifications import send_order_notification
from services.store_service.services.pricing import (
    COUPON_LIMIT_REACHED,
    calculate_totals,
    subtotal_for,
    validate_coupon,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Seconds the client waits before following the redirect after a problem.
FAILURE_REDIRECT_DELAY = 3

# Steps whose failure is recorded but does not stop the run.
NON_BLOCKING_STEPS = frozenset({CheckoutStepName.SEND_CONFIRMATION})

RateFetcher = Callable[[], Awaitable[Decimal]]


def confirmation_path(order_id: uuid.UUID) -> str:
    return f"/order/confirmation/{order_id}"


def support_message(reference: str) -> str:
    return (
        "Your payment was received but we could not finish processing your "
        f"order. Please contact support with payment reference {reference}."
    )


NO_ONLINE_PAYMENT = "This order does not take online payment"


def verification_failed_message(reference: str) -> str:
    return (
        "We could not verify your payment. If you were charged, please "
        f"contact support with payment reference {reference}."
    )


# ============================================================================
# INPUT / RESULT TYPES
# ============================================================================


@dataclass
class CustomerInfo:
    email: str
    full_name: str
    phone: Optional[str] = None
    nationality: Optional[str] = None


@dataclass
class CheckoutResult:
    order: Order
    payment: Optional[PopupParams] = None
    redirect_url: Optional[str] = None

    @property
    def requires_payment(self) -> bool:
        return self.payment is not None


@dataclass
class PaymentOutcome:
    success: bool
    order_id: uuid.UUID
    reference: str
    redirect_url: str
    redirect_delay: int = 0
    message: Optional[str] = None
    failed_step: Optional[CheckoutStepName] = None
    steps: dict[str, str] = field(default_factory=dict)


class StepFailed(Exception):
    pass


def _snapshot(line: CartLine) -> OrderItem:
    variant = line.variant
    return OrderItem(
        product_id=line.product.id,
        variant_id=variant.id if variant else None,
        product_name=line.product.name,
        product_sku=(variant.sku if variant else None) or line.product.sku,
        variant_size=variant.size if variant else None,
        variant_color=variant.color if variant else None,
        price_usd=line.unit_price,
        quantity=line.quantity,
        subtotal_usd=line.line_total,
    )


# ============================================================================
# CHECKOUT SERVICE
# ============================================================================


class CheckoutService:
    def __init__(
        self,
        db: AsyncSession,
        cart: Optional[CartState] = None,
        paystack: Optional[PaystackClient] = None,
        email_client: Optional[EmailClient] = None,
        rate_fetcher: Optional[RateFetcher] = None,
    ):
        self.db = db
        self.cart = cart
        self._paystack = paystack
        self.email_client = email_client
        self.rate_fetcher = rate_fetcher or fetch_exchange_rate

        self.orders = OrderRepository(db)
        self.coupons = CouponRepository(db)
        self.products = ProductRepository(db)
        self.cart_items = CartRepository(db)
        self.transactions = PaymentTransactionRepository(db)
        self.steps = CheckoutStepRepository(db)

    @property
    def paystack(self) -> PaystackClient:
        if self._paystack is None:
            self._paystack = PaystackClient()
        return self._paystack

    @staticmethod
    def pays_with_paystack(nationality: Optional[str]) -> bool:
        return nationality == get_settings().PAYMENT_COUNTRY

    # ------------------------------------------------------------------
    # Order creation and payment branch
    # ------------------------------------------------------------------

    async def create_order(
        self,
        customer: CustomerInfo,
        shipping_address: dict,
        billing_address: Optional[dict] = None,
        coupon_code: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> CheckoutResult:
        if self.cart is None:
            raise CartError("Cart is required to create an order")

        lines = await self.cart.load()
        if not lines:
            raise CartError("Your cart is empty")
        for check in await self.cart.validate_items():
            if not check.valid:
                raise CartError(check.message)

        subtotal = subtotal_for((line.unit_price, line.quantity) for line in lines)

        coupon: Optional[Coupon] = None
        if coupon_code:
            coupon = validate_coupon(
                await self.coupons.get_active_by_code(coupon_code), subtotal
            )
        totals = calculate_totals(subtotal, coupon)

        order = Order(
            user_id=self.cart.user_id,
            guest_session_id=(
                self.cart.owner.session_id if self.cart.user_id is None else None
            ),
            customer_email=customer.email,
            customer_name=customer.full_name,
            customer_phone=customer.phone,
            customer_nationality=customer.nationality,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            coupon_code=coupon.code if coupon else None,
            coupon_id=coupon.id if coupon else None,
            subtotal_usd=totals.subtotal,
            discount_usd=totals.discount,
            shipping_usd=totals.shipping,
            tax_usd=totals.tax,
            total_usd=totals.total,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            notes=notes,
        )

        paystack = self.pays_with_paystack(customer.nationality)
        if paystack:
            rate = await self.rate_fetcher()
            order.exchange_rate = rate
            order.total_ngn = usd_to_ngn(totals.total, rate)
            order.currency_paid = "NGN"
            order.payment_reference = generate_payment_reference()

        items = [_snapshot(line) for line in lines]

        try:
            if coupon is not None and not await self.coupons.increment_usage(
                coupon.id
            ):
                raise CouponError(COUPON_LIMIT_REACHED)
            order = await self.orders.create(order, items)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Created order {order.order_number} "
            f"(total ${order.total_usd}, paystack={paystack})"
        )

        if paystack:
            popup = build_popup_params(
                email=customer.email,
                amount_ngn=order.total_ngn,
                reference=order.payment_reference,
                metadata={
                    "order_id": str(order.id),
                    "order_number": order.order_number,
                    "customer_name": customer.full_name,
                },
            )
            return CheckoutResult(order=order, payment=popup)

        # Deferred payment: the order stays pending and the cart is emptied.
        await self.cart.clear_cart()
        return CheckoutResult(order=order, redirect_url=confirmation_path(order.id))

    async def cancel_payment(self, order_id: uuid.UUID) -> Order:
        """Popup closed without paying. The order is left pending."""
        order = await self._caller_order(order_id)
        logger.info(
            f"Payment cancelled for order {order.order_number} "
            f"(reference {order.payment_reference})"
        )
        return order

    async def _caller_order(self, order_id: uuid.UUID) -> Order:
        """Load an order placed by the current caller.

        Signed-in orders belong to their user; guest orders to the cart
        session that placed them. Anyone else gets a plain not-found.
        """
        order = await self.orders.get(order_id)
        if self.cart is None:
            raise NotFoundError("Order not found")
        if order.user_id is not None:
            owned = order.user_id == self.cart.user_id
        else:
            session_id = self.cart.guest_sessions.get()
            owned = session_id is not None and order.guest_session_id == session_id
        if not owned:
            logger.warning(f"Order {order.order_number} requested by a non-owner")
            raise NotFoundError("Order not found")
        return order

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def confirm_payment(
        self, order_id: uuid.UUID, reference: str
    ) -> PaymentOutcome:
        order = await self._caller_order(order_id)

        # Deferred-payment orders have no reference or naira total to check
        # a gateway payment against.
        if order.payment_reference is None or order.total_ngn is None:
            logger.error(
                f"Payment confirmation attempted for order {order.order_number}, "
                f"which takes no online payment (reference {reference})"
            )
            raise OrderStateError(NO_ONLINE_PAYMENT)

        if order.payment_reference != reference:
            logger.error(
                f"Reference mismatch for order {order.order_number}: "
                f"expected {order.payment_reference}, got {reference}"
            )
            raise PaymentVerificationError(
                verification_failed_message(reference), reference=reference
            )

        if order.payment_status == PaymentStatus.PAID:
            return await self.resume(order.id)

        verification = await self._verify(order, reference)

        context = {
            "reference": reference,
            "exchange_rate": str(order.exchange_rate) if order.exchange_rate else None,
            "amount_ngn": str(order.total_ngn) if order.total_ngn else None,
            "channel": verification.channel,
            "paid_at": verification.paid_at,
            "gateway_response": verification.raw,
            "cart_owner": self._cart_owner_context(order),
        }
        await self.steps.ensure_steps(order.id, context)
        await self.db.commit()
        return await self._run_steps(order.id)

    async def _verify(self, order: Order, reference: str) -> TransactionVerification:
        try:
            verification = await self.paystack.verify_transaction(reference)
        except PaystackError as e:
            logger.error(f"Paystack verification error for {reference}: {e.message}")
            raise PaymentVerificationError(
                verification_failed_message(reference), reference=reference
            ) from e

        if not verification.is_successful:
            logger.error(
                f"Payment {reference} for order {order.order_number} "
                f"not successful: {verification.status}"
            )
            raise PaymentVerificationError(
                verification_failed_message(reference), reference=reference
            )

        if order.total_ngn is not None and verification.amount < naira_to_kobo(
            order.total_ngn
        ):
            logger.error(
                f"Payment {reference} amount {verification.amount} kobo is below "
                f"order total {order.total_ngn} NGN"
            )
            raise PaymentVerificationError(
                verification_failed_message(reference), reference=reference
            )

        return verification

    def _cart_owner_context(self, order: Order) -> Optional[dict]:
        if order.user_id is not None:
            return {"user_id": str(order.user_id)}
        if self.cart is not None:
            session_id = self.cart.guest_sessions.get()
            if session_id:
                return {"session_id": session_id}
        return None

    # ------------------------------------------------------------------
    # Post-payment steps
    # ------------------------------------------------------------------

    async def resume(self, order_id: uuid.UUID) -> PaymentOutcome:
        """Re-run the post-payment steps that have not completed."""
        steps = await self.steps.list_for_order(order_id)
        if not steps:
            order = await self.orders.get(order_id)
            raise PaymentVerificationError(
                "Payment has not been confirmed for this order",
                reference=order.payment_reference,
            )
        return await self._run_steps(order_id)

    async def _run_steps(self, order_id: uuid.UUID) -> PaymentOutcome:
        steps = await self.steps.list_for_order(order_id)
        context = next(
            (s.context for s in steps.values() if s.context), None
        ) or {}
        reference = context.get("reference") or ""
        failed_step: Optional[CheckoutStepName] = None

        handlers = {
            CheckoutStepName.MARK_PAID: self._mark_paid,
            CheckoutStepName.RECORD_TRANSACTION: self._record_transaction,
            CheckoutStepName.SEND_CONFIRMATION: self._send_confirmation,
            CheckoutStepName.DECREMENT_INVENTORY: self._decrement_inventory,
            CheckoutStepName.CLEAR_CART: self._clear_cart,
        }

        for name in CheckoutStepName:
            step = steps[name]
            if step.status == CheckoutStepStatus.COMPLETED:
                continue
            try:
                order = await self.orders.get(order_id)
                await handlers[name](order, context)
                await self.steps.mark(step, CheckoutStepStatus.COMPLETED)
                await self.db.commit()
                logger.info(f"Checkout step {name.value} completed for {order_id}")
            except Exception as e:
                await self.db.rollback()
                logger.error(
                    f"Checkout step {name.value} failed for order {order_id} "
                    f"(reference {reference}): {e}"
                )
                step = (await self.steps.list_for_order(order_id))[name]
                await self.steps.mark(step, CheckoutStepStatus.FAILED, str(e))
                await self.db.commit()
                if name in NON_BLOCKING_STEPS:
                    continue
                failed_step = name
                break

        final = await self.steps.list_for_order(order_id)
        summary = {name.value: step.status.value for name, step in final.items()}
        if failed_step is None:
            if self.cart is not None and final[CheckoutStepName.CLEAR_CART].status == (
                CheckoutStepStatus.COMPLETED
            ):
                self.cart.cart_items = []
            return PaymentOutcome(
                success=True,
                order_id=order_id,
                reference=reference,
                redirect_url=confirmation_path(order_id),
                message="Payment successful!",
                steps=summary,
            )

        return PaymentOutcome(
            success=False,
            order_id=order_id,
            reference=reference,
            redirect_url=confirmation_path(order_id),
            redirect_delay=FAILURE_REDIRECT_DELAY,
            message=support_message(reference),
            failed_step=failed_step,
            steps=summary,
        )

    async def _mark_paid(self, order: Order, context: dict[str, Any]) -> None:
        if order.payment_status == PaymentStatus.PAID:
            return
        await self.orders.update(
            order,
            {
                "payment_status": PaymentStatus.PAID,
                "status": OrderStatus.PROCESSING,
                "payment_reference": context["reference"],
                "paid_at": utc_now(),
            },
        )

    async def _record_transaction(self, order: Order, context: dict[str, Any]) -> None:
        reference = context["reference"]
        if await self.transactions.get_by_reference(reference) is not None:
            return
        await self.transactions.create(
            {
                "order_id": order.id,
                "paystack_reference": reference,
                "amount_ngn": Decimal(context["amount_ngn"])
                if context.get("amount_ngn")
                else None,
                "amount_usd": order.total_usd,
                "exchange_rate": Decimal(context["exchange_rate"])
                if context.get("exchange_rate")
                else None,
                "status": "success",
                "payment_channel": context.get("channel"),
                "customer_email": order.customer_email,
                "paid_at": parse_datetime(context.get("paid_at")) or utc_now(),
                "gateway_response": context.get("gateway_response"),
            }
        )

    async def _send_confirmation(self, order: Order, context: dict[str, Any]) -> None:
        sent = await send_order_notification(
            "order_confirmation", order, self.email_client
        )
        if not sent:
            raise StepFailed("Order confirmation email was not sent")

    async def _decrement_inventory(self, order: Order, context: dict[str, Any]) -> None:
        for item in order.items:
            if item.variant_id is not None:
                await self.products.decrement_variant_inventory(
                    item.variant_id, item.quantity
                )
            elif item.product_id is not None:
                await self.products.decrement_inventory(item.product_id, item.quantity)

    async def _clear_cart(self, order: Order, context: dict[str, Any]) -> None:
        owner = context.get("cart_owner")
        if not owner:
            return
        if owner.get("user_id"):
            cart_owner = CartOwner(user_id=uuid.UUID(owner["user_id"]))
        else:
            cart_owner = CartOwner(session_id=owner["session_id"])
        await self.cart_items.delete_for_owner(cart_owner)

    async def step_status(self, order_id: uuid.UUID) -> list[CheckoutStep]:
        steps = await self.steps.list_for_order(order_id)
        return [steps[name] for name in CheckoutStepName if name in steps]
