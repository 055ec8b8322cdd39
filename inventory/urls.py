from rest_framework.routers import DefaultRouter
from django.urls import path
from .views import AccountMeView, DrugNameViewSet, DrugTypeViewSet, DrugViewSet

router = DefaultRouter()
router.register(r'drugs', DrugViewSet, basename='drug')
router.register(r'drug-types', DrugTypeViewSet, basename='drug-type')
router.register(r'drug-names', DrugNameViewSet, basename='drug-name')

urlpatterns = [
    path('accounts/me/', AccountMeView.as_view(), name='account-me'),
] + router.urls
