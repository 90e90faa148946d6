"""Shared pytest fixtures for the back-office test-suite."""

from __future__ import annotations

import datetime

import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def clear_page_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def admin_user(db):
    from apps.users.models import User

    return User.objects.create_user(email="admin@mishatravel.com", role=User.RoleChoices.ADMIN)


@pytest.fixture
def make_agency(db):
    from apps.agencies.models import Agency
    from apps.users.models import User

    def _make(email: str = "agenzia@example.com", status: str = Agency.Status.ACTIVE, **fields):
        user = User.objects.create_user(email=email, password="Password123")
        fields.setdefault("business_name", "Viaggi Srl")
        return Agency.objects.create(user=user, email=email, status=status, **fields)

    return _make


@pytest.fixture
def agency(make_agency):
    return make_agency()


@pytest.fixture
def tour_departure(db):
    from apps.catalog.models import Departure, Tour

    tour = Tour.objects.create(title="Giappone Classico", slug="giappone-classico")
    return Departure.objects.create(tour=tour, departure_date=datetime.date(2026, 4, 10))


@pytest.fixture
def make_quote(tour_departure):
    from apps.quotes.models import QuoteRequest

    def _make(agency, status: str = "sent", **fields):
        fields.setdefault("participants_adults", 2)
        return QuoteRequest.objects.create(
            agency=agency,
            request_type=QuoteRequest.RequestType.TOUR,
            tour=tour_departure.tour,
            departure=tour_departure,
            status=status,
            **fields,
        )

    return _make
