"""Payment transaction and checkout-step queries."""

import uuid
from typing import Optional

from services.store_service.models import (
    CheckoutStep,
    CheckoutStepName,
    CheckoutStepStatus,
    PaymentTransaction,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


class PaymentTransactionRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_reference(self, reference: str) -> Optional[PaymentTransaction]:
        result = await self.db.execute(
            select(PaymentTransaction).where(
                PaymentTransaction.paystack_reference == reference
            )
        )
        return result.scalar_one_or_none()

    async def create(self, data: dict) -> PaymentTransaction:
        transaction = PaymentTransaction(**data)
        self.db.add(transaction)
        await self.db.flush()
        return transaction


class CheckoutStepRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_order(
        self, order_id: uuid.UUID
    ) -> dict[CheckoutStepName, CheckoutStep]:
        result = await self.db.execute(
            select(CheckoutStep)
            .where(CheckoutStep.order_id == order_id)
            .execution_options(populate_existing=True)
        )
        return {step.step: step for step in result.scalars().all()}

    async def ensure_steps(
        self, order_id: uuid.UUID, context: Optional[dict] = None
    ) -> dict[CheckoutStepName, CheckoutStep]:
        """Create pending rows for any step the order does not have yet."""
        steps = await self.list_for_order(order_id)
        for name in CheckoutStepName:
            if name not in steps:
                step = CheckoutStep(
                    order_id=order_id,
                    step=name,
                    status=CheckoutStepStatus.PENDING,
                    attempts=0,
                    context=context,
                )
                self.db.add(step)
                steps[name] = step
        await self.db.flush()
        return steps

    async def mark(
        self,
        step: CheckoutStep,
        status: CheckoutStepStatus,
        error: Optional[str] = None,
    ) -> CheckoutStep:
        step.status = status
        step.attempts = (step.attempts or 0) + 1
        step.last_error = error
        await self.db.flush()
        return step
