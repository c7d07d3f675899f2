from django.urls import path
from .views import ValidateOfferView

app_name = "offers"

urlpatterns = [
    path("validate/", ValidateOfferView.as_view(), name="validate-offer"),
]
