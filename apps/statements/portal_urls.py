from django.urls import path  # type: ignore

from .views import AgencyStatementListView

urlpatterns = [
    path("", AgencyStatementListView.as_view(), name="agency-statements"),
]
