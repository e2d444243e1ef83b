import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command

from modules.orders.models import Order
from modules.products.models import Product

pytestmark = pytest.mark.integration


class TestSeedData:
    def test_seeds_users_products_and_orders(self):
        call_command("seed_data", orders=2)

        User = get_user_model()
        assert User.objects.get(username="admin").is_staff
        assert User.objects.filter(username="customer").exists()
        assert Product.objects.count() == 8
        assert Order.objects.count() == 2
        for order in Order.objects.all():
            assert order.total_amount == order.expected_total
            assert order.status_history.count() == 1

    def test_is_idempotent(self):
        call_command("seed_data", orders=1)
        call_command("seed_data", orders=1)

        assert Product.objects.count() == 8
        assert Order.objects.count() == 1
