"""Pytest configuration and fixtures."""

from decimal import Decimal

import pytest
from django.core.cache import cache

from bureau.customers import CustomerDirectory
from bureau.events import InMemoryQueueEventPublisher
from bureau.models import Currency
from bureau.services import BranchWorkflow
from bureau.ticketing import TicketQueue


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def currencies(db):
    """USD with little stock, SAR with none, GBP near its low-stock threshold."""
    return {
        'USD': Currency.objects.create(
            code='USD', name='US Dollar', buy_rate=Decimal('2520'), sell_rate=Decimal('2480'),
            stock_amount=Decimal('100'), low_stock_threshold=Decimal('10'),
        ),
        'SAR': Currency.objects.create(
            code='SAR', name='Saudi Riyal', buy_rate=Decimal('672'), sell_rate=Decimal('660'),
            stock_amount=Decimal('0'), low_stock_threshold=Decimal('0'),
        ),
        'GBP': Currency.objects.create(
            code='GBP', name='British Pound', buy_rate=Decimal('3180'), sell_rate=Decimal('3120'),
            stock_amount=Decimal('1500'), low_stock_threshold=Decimal('1000'),
        ),
    }


@pytest.fixture
def teller(django_user_model):
    return django_user_model.objects.create_user(username='teller1', password='password123')


@pytest.fixture
def second_teller(django_user_model):
    return django_user_model.objects.create_user(username='teller2', password='password123')


@pytest.fixture
def customer(db):
    return CustomerDirectory().find_or_create('P1234567', 'Amina Juma', '+255700000001', 'passport')


@pytest.fixture
def queue(db):
    return TicketQueue()


@pytest.fixture
def make_entry(queue, customer, currencies):
    """Admit ``customer`` for a service; extra customers can be passed in."""
    def _make(service_type='buy', currency_code='USD', amount='50', who=None):
        return queue.admit(who or customer, service_type, currency_code, amount)
    return _make


@pytest.fixture
def publisher():
    return InMemoryQueueEventPublisher()


@pytest.fixture
def workflow(db, publisher):
    return BranchWorkflow(publisher=publisher)
