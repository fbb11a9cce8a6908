"""
Loyalty counters.

A visit is recorded when the customer submits feedback. Customers are matched
on the exact (name, phone) pair typed into the form; unknown customers are
left alone, feedback never creates a customer record.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salon.app.models.customer_orm import CustomerORM

logger = logging.getLogger(__name__)


class LoyaltyUpdater:
    def __init__(self, threshold: int = 3):
        # Visits that earn a free one; used for reporting only, counters are
        # never reset here.
        self.threshold = threshold

    async def find_customer(self, session: AsyncSession, name: str, phone: str) -> Optional[CustomerORM]:
        result = await session.execute(
            select(CustomerORM).where(CustomerORM.name == name, CustomerORM.phone == phone)
        )
        return result.scalars().first()

    async def record_visit(
        self,
        session: AsyncSession,
        name: str,
        phone: str,
        amount: int = 0,
    ) -> Optional[CustomerORM]:
        """
        Increment visit counters and spending for an existing customer.

        Returns the updated customer, or None when no customer matches.
        """
        if not name or not phone:
            return None

        customer = await self.find_customer(session, name, phone)
        if customer is None:
            return None

        customer.total_visits = (customer.total_visits or 0) + 1
        customer.loyalty_visits = (customer.loyalty_visits or 0) + 1
        customer.total_spending = (customer.total_spending or 0) + max(int(amount or 0), 0)
        customer.last_visit = datetime.now(timezone.utc)
        await session.flush()

        logger.info(
            f"Loyalty updated for customer {customer.id}",
            extra={"extra_data": {
                "customer_id": customer.id,
                "loyalty_visits": customer.loyalty_visits,
                "ready_for_free": self.is_ready_for_free(customer),
            }},
        )
        return customer

    def is_ready_for_free(self, customer: CustomerORM) -> bool:
        return (customer.loyalty_visits or 0) == self.threshold
