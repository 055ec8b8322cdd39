from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods


@require_http_methods(["GET"])
def home(request):
    """Index of the indent API."""
    return JsonResponse({
        'status': 'online',
        'service': 'Pharmacy Indent API',
        'version': '1.0.0',
        'endpoints': {
            'api': '/api/',
            'admin': '/admin/',
            'drugs': '/api/drugs/',
            'drug_import': '/api/drugs/import/',
            'cart': '/api/cart/',
            'pharmacy_orders': '/api/pharmacy/orders/',
            'health': '/health/',
        },
    })


@require_http_methods(["GET"])
def health_check(request):
    return JsonResponse({
        'status': 'healthy',
        'service': 'pharmacy-api'
    })


urlpatterns = [
    path('', home, name='home'),
    path('health/', health_check, name='health'),
    path('admin/', admin.site.urls),
    path('api/', include('inventory.urls')),
    path('api/', include('orders.urls')),
]
