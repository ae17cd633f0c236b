from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.coupons.models import Coupon
from modules.coupons.repositories.django_repository import CouponDjangoRepository
from modules.coupons.services import CouponService
from modules.customers.models import Customer, CustomerRole
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders",
            type=int,
            default=10,
            help="Number of orders to place through checkout.",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        customers = self._seed_customers()
        products = self._seed_products()
        coupons = self._seed_coupons()
        orders_created = self._seed_orders(
            [c for c in customers if c.role == CustomerRole.USER],
            products,
            options["orders"],
        )

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"customers={len(customers)}, "
                f"products={len(products)}, "
                f"coupons={len(coupons)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_customers(self) -> list[Customer]:
        self.stdout.write("Creating customers...")
        User = get_user_model()
        seed = [
            ("admin", "Admin", "+9647700000001", CustomerRole.ADMIN, "0"),
            ("manager", "Mina Manager", "+9647700000002", CustomerRole.MANAGER, "0"),
            ("courier", "Karim Courier", "+9647700000003", CustomerRole.DELIVERY, "0"),
            ("layla", "Layla Hassan", "+9647700000004", CustomerRole.USER, "25.00"),
            ("omar", "Omar Saleh", "+9647700000005", CustomerRole.USER, "0"),
            ("noor", "Noor Ali", "+9647700000006", CustomerRole.USER, "100.00"),
        ]
        customers: list[Customer] = []
        for username, name, phone, role, wallet in seed:
            user = User.objects.filter(username=username).first()
            if user is None:
                if role == CustomerRole.ADMIN:
                    user = User.objects.create_superuser(username, password="admin123")
                else:
                    user = User.objects.create_user(username, password=f"{username}123")
            customer, _ = Customer.objects.get_or_create(
                user=user,
                defaults={
                    "name": name,
                    "phone": phone,
                    "role": role,
                    "wallet": Decimal(wallet),
                    "distance_km": Decimal(random.randint(1, 15)),
                },
            )
            customers.append(customer)
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        catalog = [
            ("Basmati Rice 5kg", Decimal("18.00"), Decimal("24.00"), None),
            ("Olive Oil 1L", Decimal("7.50"), Decimal("10.00"), Decimal("10")),
            ("Black Tea 500g", Decimal("3.00"), Decimal("4.50"), None),
            ("Dates 1kg", Decimal("5.00"), Decimal("8.00"), Decimal("25")),
            ("Lentils 1kg", Decimal("1.80"), Decimal("2.50"), None),
            ("Tomato Paste", Decimal("0.90"), Decimal("1.25"), None),
            ("Flatbread Pack", Decimal("0.60"), Decimal("1.00"), None),
            ("Cardamom 100g", Decimal("4.00"), Decimal("6.00"), Decimal("5")),
        ]
        products: list[Product] = []
        for name, price_org, price_net, discount in catalog:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": name,
                    "price_org": price_org,
                    "price_net": price_net,
                    "discount_percent": discount,
                    "amount": random.randint(5, 100),
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_coupons(self) -> list[Coupon]:
        self.stdout.write("Creating coupons...")
        now = timezone.now()
        seed = [
            ("WELCOME10", Decimal("10"), 100, now + timedelta(days=30), True),
            ("RAMADAN25", Decimal("25"), 5, now + timedelta(days=7), True),
            ("EXPIRED5", Decimal("5"), None, now - timedelta(days=1), True),
            ("PAUSED15", Decimal("15"), None, None, False),
        ]
        coupons: list[Coupon] = []
        for code, value, limit, expire, is_active in seed:
            coupon, _ = Coupon.objects.get_or_create(
                code=code,
                defaults={
                    "value": value,
                    "limit": limit,
                    "expire": expire,
                    "is_active": is_active,
                },
            )
            coupons.append(coupon)
        self.stdout.write(self.style.SUCCESS("Creating coupons... Done!"))
        return coupons

    def _seed_orders(
        self, customers: list[Customer], products: list[Product], count: int
    ) -> int:
        """Place orders through the real cart + checkout services."""
        self.stdout.write("Creating orders...")
        if not customers or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no customers/products)."))
            return 0

        product_repo = ProductDjangoRepository()
        cart_repo = CartDjangoRepository()
        coupon_service = CouponService(CouponDjangoRepository())
        carts = CartService(cart_repo, product_repo, coupon_service)
        orders = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            cart_repository=cart_repo,
            product_repository=product_repo,
            coupon_service=coupon_service,
        )

        created = 0
        for _ in range(count):
            customer = random.choice(customers)
            for product in random.sample(products, k=random.randint(1, 3)):
                product.refresh_from_db(fields=["amount"])
                if product.in_stock:
                    carts.add_product(customer.id, product.id, random.randint(1, 2))
            carts.sync(customer.id)
            if not cart_repo.lines(cart_repo.get_or_create_for_customer(customer.id)):
                continue
            orders.create_order(customer.id)
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
