# wholesale_cart/services/policies.py
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Sequence

from wholesale_cart.domain.errors import RejectionReason, ValidationRejected
from wholesale_cart.domain.lines import (
    CartLineItem,
    Channel,
    CloseoutLineItem,
    PrebookLineItem,
)


class ChannelPolicy:
    """
    Validation rules of one channel.
    validate_* raise ValidationRejected and must not touch cart state.
    """

    channel: Channel

    def validate_add(
        self,
        incoming: Sequence[CartLineItem],
        existing: Sequence[CartLineItem],
        now: datetime,
    ) -> None:
        pass

    def validate_update(self, line: CartLineItem, quantity: int, now: datetime) -> None:
        pass

    def warnings(self, incoming: Sequence[CartLineItem]) -> List[str]:
        return []


def _require_eligible(line: CartLineItem, channel: Channel, label: str) -> None:
    if channel not in line.order_types:
        raise ValidationRejected(
            RejectionReason.NOT_ELIGIBLE,
            f"Product {line.product_id} is not available for {label} ordering",
        )


class AtOncePolicy(ChannelPolicy):
    channel = Channel.AT_ONCE


class PrebookPolicy(ChannelPolicy):
    channel = Channel.PREBOOK

    def validate_add(self, incoming, existing, now):
        for line in incoming:
            _require_eligible(line, self.channel, "prebook")

            minimum = line.metadata.minimum_units
            if minimum and line.quantity < minimum:
                raise ValidationRejected(
                    RejectionReason.BELOW_MINIMUM,
                    f"Minimum order quantity is {minimum} units",
                )

        self._validate_size_runs(incoming, existing)

    @staticmethod
    def _validate_size_runs(
        incoming: Sequence[PrebookLineItem],
        existing: Sequence[PrebookLineItem],
    ) -> None:
        groups: Dict[tuple, List[PrebookLineItem]] = defaultdict(list)
        for line in incoming:
            groups[(line.product_id, line.season)].append(line)

        for (product_id, season), lines in groups.items():
            metadata = lines[0].metadata
            if not metadata.requires_full_size_run or not metadata.required_sizes:
                continue

            #sizes already in the cart count towards the run
            covered = {line.size for line in lines}
            covered.update(
                line.size
                for line in existing
                if line.product_id == product_id and line.season == season
            )
            missing = [size for size in metadata.required_sizes if size not in covered]

            if missing:
                raise ValidationRejected(
                    RejectionReason.INCOMPLETE_SIZE_RUN,
                    f"Full size run required. Missing sizes: {', '.join(missing)}",
                )


class CloseoutPolicy(ChannelPolicy):
    """First failure wins: eligibility, expiry, minimum, caps."""

    channel = Channel.CLOSEOUT

    def validate_add(self, incoming, existing, now):
        requested: Dict[tuple, int] = defaultdict(int)
        for line in existing:
            requested[line.key] += line.quantity

        for line in incoming:
            _require_eligible(line, self.channel, "closeout")

            if line.is_expired_at(now):
                raise ValidationRejected(
                    RejectionReason.LIST_EXPIRED,
                    "This closeout offer has expired",
                )

            minimum = line.metadata.minimum_order_quantity
            if minimum and line.quantity < minimum:
                raise ValidationRejected(
                    RejectionReason.BELOW_MINIMUM,
                    f"Minimum order quantity is {minimum} units",
                )

            requested[line.key] += line.quantity
            self._check_caps(line, requested[line.key])

    def validate_update(self, line, quantity, now):
        self._check_caps(line, quantity)

    def warnings(self, incoming):
        if any(line.metadata.final_sale for line in incoming):
            return ["Final Sale - No returns or exchanges"]
        return []

    @staticmethod
    def _check_caps(line: CloseoutLineItem, total: int) -> None:
        available = line.metadata.available_quantity
        if available is not None and total > available:
            raise ValidationRejected(
                RejectionReason.EXCEEDS_AVAILABLE,
                f"Only {available} units available in this closeout",
            )

        maximum = line.metadata.maximum_per_customer
        if maximum and total > maximum:
            raise ValidationRejected(
                RejectionReason.EXCEEDS_CUSTOMER_MAX,
                f"Maximum {maximum} units per customer",
            )
