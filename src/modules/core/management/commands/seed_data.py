from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import CreateOrderDTO, ShippingAddressDTO
from modules.orders.models import Order
from modules.orders.views import build_order_service
from modules.products.models import Product, ProductStatus


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders",
            type=int,
            default=5,
            help="Cash-on-delivery orders to place for the demo customer.",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        products = self._seed_products()
        orders_created = self._seed_orders(products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser(
                "admin", email="admin@example.com", password="admin123"
            )
            created += 1
        if not User.objects.filter(username="customer").exists():
            User.objects.create_user(
                "customer", email="customer@example.com", password="customer123"
            )
            created += 1
        return created

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("Sattu Ladoo", "Sweets", Decimal("299.00")),
            ("Makhana Mix", "Snacks", Decimal("199.00")),
            ("Ragi Cookies", "Bakery", Decimal("149.00")),
            ("Jaggery Chikki", "Sweets", Decimal("99.00")),
            ("Roasted Chana", "Snacks", Decimal("89.00")),
            ("Millet Namkeen", "Snacks", Decimal("129.00")),
            ("Dry Fruit Barfi", "Sweets", Decimal("549.00")),
            ("Multigrain Khakhra", "Bakery", Decimal("119.00")),
        ]
        for name, category, price in catalog:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": f"Homemade {name.lower()}.",
                    "category": category,
                    "price": price,
                    "stock": random.randint(3, 60),
                    "status": ProductStatus.ACTIVE,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, products: list[Product], count: int) -> int:
        self.stdout.write("Creating orders...")
        customer = get_user_model().objects.get(username="customer")
        user_id = str(customer.pk)
        if Order.objects.filter(user_id=user_id).exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        carts = CartDjangoRepository()
        service = build_order_service()
        address = ShippingAddressDTO(
            name="Demo Customer",
            phone="9876543210",
            street="12 MG Road",
            city="Bengaluru",
            state="Karnataka",
            zip_code="560001",
        )

        created = 0
        for _ in range(count):
            for product in random.sample(products, k=random.randint(1, 3)):
                if product.stock:
                    carts.upsert_item(user_id, str(product.id), 1)
            if not carts.get_items(user_id):
                break
            service.create_order(
                CreateOrderDTO(
                    user_id=user_id,
                    shipping_address=address,
                    payment_method=PaymentMethod.COD,
                )
            )
            for product in products:
                product.refresh_from_db(fields=["stock"])
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
