"""
Pricing rules: base prices, bundle prices and prepaid credit discounts.
"""

from typing import Optional

from wellness_booking.catalog import Catalog
from wellness_booking.db_models import Customer


class PricingPolicy:
    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def _credit_applies(self, service_id: str, customer: Optional[Customer]) -> bool:
        return (
            self.catalog.credit_service_id is not None
            and service_id == self.catalog.credit_service_id
            and customer is not None
            and customer.credit_balance > 0
        )

    def price_for(self, service_id: str, customer: Optional[Customer] = None) -> int:
        """Charge in minor units for one service, given the customer's standing"""
        service = self.catalog.get_service(service_id)
        if self._credit_applies(service_id, customer):
            return self.catalog.credit_price
        return service.price

    def bundle_price(self, bundle_id: str) -> int:
        return self.catalog.get_bundle(bundle_id).price

    def consumes_credit(
        self, service_id: str, charge_amount: int, customer: Optional[Customer]
    ) -> bool:
        """A confirmed hold uses a credit only if it was priced at the credit rate"""
        return (
            self._credit_applies(service_id, customer)
            and charge_amount == self.catalog.credit_price
        )
