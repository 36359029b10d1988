"""Test doubles and sample records shared by the test modules."""

from datetime import date

from inventory_voice.contracts.catalog import Product
from inventory_voice.errors import OracleMalformedError

TODAY = date(2026, 10, 19)


class FakeOracle:
    """Scripted oracle: returns (or raises) the queued replies in order."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise OracleMalformedError("No scripted reply left", reason="empty")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def calls(self) -> int:
        return len(self.prompts)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


FRIDGE = Product(
    id="p1",
    name="Frigorifero farmaci",
    category="Apparecchiatura elettromedicale",
    location="Camera 12",
    brand="Liebherr",
    barcode="8001234567890",
    service_maintainer_id="m1",
    next_maintenance_due=date(2026, 10, 14),
)
VENTILATOR = Product(
    id="p2",
    name="Ventilatore BiPAP",
    category="Apparecchiatura elettromedicale",
    location="Camera 3",
    brand="Philips",
    barcode="8009876543210",
)
FREEZER = Product(
    id="p3",
    name="Frigorifero cucina",
    category="Arredo",
    location="Cucina",
)
