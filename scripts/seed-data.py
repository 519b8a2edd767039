# scripts/seed-data.py
"""Seed database with a demo vendor, menu and paid subscription"""
import asyncio
from decimal import Decimal

from kartly.core.constants import PlanName, VendorStatus
from kartly.core.security import get_password_hash
from kartly.db.database import async_session_local, init_db
from kartly.db.repositories.catalog_repository import CategoryRepository, MenuItemRepository
from kartly.db.repositories.vendor_repository import VendorRepository
from kartly.services.subscription_gate import SubscriptionGate

DEMO_EMAIL = "demo@kartly.app"
DEMO_PASSWORD = "Demo1234!"

MENU = {
    "Chaat": [("Pani Puri", "40.00"), ("Bhel Puri", "50.00")],
    "Drinks": [("Masala Chai", "15.00"), ("Nimbu Soda", "30.00")],
}


async def seed_data():
    """Seed database with demo data"""
    await init_db()

    async with async_session_local() as session:
        vendor_repo = VendorRepository(session)

        if await vendor_repo.get_by_email(DEMO_EMAIL):
            print(f"Vendor {DEMO_EMAIL} already exists, nothing to do")
            return

        vendor = await vendor_repo.create({
            "name": "Demo Owner",
            "shop_name": "Demo Chaat Corner",
            "phone": "9999999999",
            "email": DEMO_EMAIL,
            "password_hash": get_password_hash(DEMO_PASSWORD),
            "status": VendorStatus.ACTIVE.value,
        })
        print(f"Created vendor: {vendor.shop_name} ({vendor.id})")

        category_repo = CategoryRepository(session)
        item_repo = MenuItemRepository(session)
        for category_name, items in MENU.items():
            category = await category_repo.create({
                "vendor_id": vendor.id,
                "name": category_name,
            })
            for name, price in items:
                await item_repo.create({
                    "vendor_id": vendor.id,
                    "category_id": category.id,
                    "name": name,
                    "price": Decimal(price),
                })
        print(f"Created {len(MENU)} categories")

        # renew() commits everything above together with the subscription
        subscription = await SubscriptionGate(session).renew(vendor.id, PlanName.BASIC, "seed")
        print(f"Subscription active until {subscription.end_date:%Y-%m-%d}")

        print("\nLogin credentials:")
        print(f"Email: {DEMO_EMAIL}")
        print(f"Password: {DEMO_PASSWORD}")
        print(f"Customer menu: /q/{vendor.id}")


if __name__ == "__main__":
    asyncio.run(seed_data())
