"""
Studio catalog: services, bundles and weekly business hours.
Built once at startup from configuration and passed to every component.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from wellness_booking.config import BookingConfig
from wellness_booking.errors import BookingValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Service:
    """A bookable studio service (prices in minor currency units)"""
    id: str
    name: str
    duration_minutes: int
    price: int
    buffer_minutes: int = 0


@dataclass(frozen=True)
class Bundle:
    """A fixed set of services sold and reserved together"""
    id: str
    label: str
    service_ids: Tuple[str, ...]
    price: int
    total_minutes: int


@dataclass(frozen=True)
class BusinessHours:
    """Opening hours for one weekday as "HH:MM" strings"""
    open: str
    close: str


# Weekday keys: 0=Sunday .. 6=Saturday, None means closed
DEFAULT_WEEKLY_HOURS: Dict[int, Optional[BusinessHours]] = {
    0: None,
    1: BusinessHours("07:00", "18:00"),
    2: BusinessHours("07:00", "12:00"),
    3: BusinessHours("07:00", "18:00"),
    4: BusinessHours("07:00", "12:00"),
    5: BusinessHours("07:00", "18:00"),
    6: None,
}

DEFAULT_SERVICES: Tuple[Service, ...] = (
    Service("sauna", "Infrared Sauna", 15, 1000, 0),
    Service("hbot", "Mild Hyperbaric Oxygen Therapy", 60, 7500, 30),
    Service("icebath", "Cold Plunge", 10, 1000, 0),
    Service("redlight", "Red Light Therapy", 15, 1000, 5),
    Service("hydrogen", "Hydrogen Therapy", 20, 2000, 5),
    Service("lymph", "Lymph Vibe Plate", 15, 1000, 5),
)

DEFAULT_BUNDLES: Tuple[Bundle, ...] = (
    Bundle(
        "bundle_alt_cold_sauna",
        "Cold Plunge + Sauna Alternating Therapy",
        ("icebath", "sauna"),
        2000,
        30,
    ),
    Bundle("bundle_red_lymph", "Red Light + Lymph Vibe Plate", ("redlight", "lymph"), 1500, 15),
    Bundle("bundle_hbot_sauna", "mHBOT + Sauna", ("hbot", "sauna"), 8000, 90),
    Bundle(
        "bundle_hbot_sauna_cold",
        "mHBOT + Sauna + Ice Bath",
        ("hbot", "sauna", "icebath"),
        8500,
        90,
    ),
    Bundle(
        "bundle_premium_rejuv",
        "Premium Rejuvenation Bundle",
        ("hbot", "sauna", "icebath", "redlight"),
        9500,
        105,
    ),
    Bundle(
        "bundle_platinum_rejuv",
        "Platinum Rejuvenation Bundle",
        ("hbot", "sauna", "icebath", "redlight", "hydrogen"),
        10500,
        120,
    ),
)


@dataclass(frozen=True)
class Catalog:
    """Immutable studio configuration shared by all components"""
    services: Dict[str, Service]
    bundles: Dict[str, Bundle]
    weekly_hours: Dict[int, Optional[BusinessHours]]
    timezone: str = "America/Chicago"
    slot_minutes: int = 15
    same_day_cutoff_minutes: int = 0
    hold_ttl_minutes: int = 12
    credit_service_id: Optional[str] = "hbot"
    credit_price: int = 6000
    credit_pack_size: int = 10
    currency: str = "usd"
    max_buffer_minutes: int = field(init=False, default=0)

    def __post_init__(self):
        for bundle in self.bundles.values():
            unknown = [sid for sid in bundle.service_ids if sid not in self.services]
            if unknown:
                raise ValueError(
                    f"Bundle {bundle.id} references unknown services: {', '.join(unknown)}"
                )
        widest = max((s.buffer_minutes for s in self.services.values()), default=0)
        object.__setattr__(self, "max_buffer_minutes", widest)

    def get_service(self, service_id: str) -> Service:
        """Look up a service, rejecting unknown ids as caller errors"""
        service = self.services.get(service_id)
        if service is None:
            raise BookingValidationError(f"Unknown service: {service_id!r}")
        return service

    def get_bundle(self, bundle_id: str) -> Bundle:
        """Look up a bundle, rejecting unknown ids as caller errors"""
        bundle = self.bundles.get(bundle_id)
        if bundle is None:
            raise BookingValidationError(f"Unknown bundle: {bundle_id!r}")
        return bundle

    def describe(self) -> Dict:
        """Public catalog metadata for clients"""
        return {
            "timezone": self.timezone,
            "slot": self.slot_minutes,
            "currency": self.currency,
            "services": {
                s.id: {"name": s.name, "duration": s.duration_minutes, "price": s.price}
                for s in self.services.values()
            },
            "buffers": {s.id: s.buffer_minutes for s in self.services.values()},
            "bundles": [
                {
                    "id": b.id,
                    "label": b.label,
                    "services": list(b.service_ids),
                    "price": b.price,
                    "totalMinutes": b.total_minutes,
                }
                for b in self.bundles.values()
            ],
        }


def build_catalog(
    config: BookingConfig,
    services: Tuple[Service, ...] = DEFAULT_SERVICES,
    bundles: Tuple[Bundle, ...] = DEFAULT_BUNDLES,
    weekly_hours: Optional[Dict[int, Optional[BusinessHours]]] = None,
) -> Catalog:
    """Combine configuration with the service, bundle and hours tables"""
    hours = dict(DEFAULT_WEEKLY_HOURS if weekly_hours is None else weekly_hours)
    missing_days = set(range(7)) - set(hours)
    for day in missing_days:
        hours[day] = None

    credit_service_id = config.credit_service_id
    service_map = {s.id: s for s in services}
    if credit_service_id not in service_map:
        logger.warning(
            f"Credit service {credit_service_id!r} not in catalog, credits disabled"
        )
        credit_service_id = None

    catalog = Catalog(
        services=service_map,
        bundles={b.id: b for b in bundles},
        weekly_hours=hours,
        timezone=config.timezone,
        slot_minutes=config.slot_minutes,
        same_day_cutoff_minutes=config.same_day_cutoff_minutes,
        hold_ttl_minutes=config.hold_ttl_minutes,
        credit_service_id=credit_service_id,
        credit_price=config.credit_price,
        credit_pack_size=config.credit_pack_size,
        currency=config.currency,
    )
    logger.info(
        f"Catalog built: {len(catalog.services)} services, {len(catalog.bundles)} bundles"
    )
    return catalog
