# -*- coding: utf-8 -*-
"""
Passerelle d'envoi des commandes.

`submit_cart` is the only place a cart turns into an order: the cart is
validated first (nothing is sent if that fails), the payload goes out once,
and the cart is cleared only after the order service accepted it. A failed
submission is never retried here; the caller resubmits explicitly.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import requests
from django.conf import settings

from .cart import Cart
from .exceptions import GatewayFailure, OrderError
from .serializers import OrderCreateSerializer, first_error
from .services import create_pharmacy_order, order_created_body
from .validation import OrderPayload, build_order_payload

logger = logging.getLogger(__name__)


def _json_body(response) -> Dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {'data': body}


class OrderGateway(ABC):
    """Sends a validated OrderPayload to the order-creation service."""

    @abstractmethod
    def submit(self, payload: OrderPayload) -> Dict:
        """
        Returns the service response on success.

        Raises:
            GatewayFailure: for any refusal or transport error
        """
        raise NotImplementedError


class HttpOrderGateway(OrderGateway):
    """
    Client HTTP pour POST /pharmacy/orders/ d'un service distant.
    """

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None,
                 auth=None, timeout: Optional[int] = None):
        self.base_url = (base_url or settings.ORDER_GATEWAY_URL).rstrip('/')
        self.session = session or requests.Session()
        self.auth = auth
        self.timeout = timeout or settings.ORDER_GATEWAY_TIMEOUT

    @property
    def orders_url(self) -> str:
        return f"{self.base_url}/pharmacy/orders/"

    def submit(self, payload: OrderPayload) -> Dict:
        try:
            response = self.session.post(
                self.orders_url,
                json=payload.as_json(),
                auth=self.auth,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Erreur réseau lors de l'envoi de la commande: {str(e)}")
            raise GatewayFailure(f"Network error: {str(e)}") from e

        body = _json_body(response)
        if not 200 <= response.status_code < 300 or body.get('status') is False:
            message = body.get('message') or f"Order service returned HTTP {response.status_code}"
            logger.error(f"Commande refusée (HTTP {response.status_code}): {message}")
            raise GatewayFailure(message, status_code=response.status_code)

        return body


class LocalOrderGateway(OrderGateway):
    """
    Crée la commande dans ce même processus, avec les mêmes règles que l'endpoint.
    """

    def __init__(self, account):
        self.account = account

    def submit(self, payload: OrderPayload) -> Dict:
        serializer = OrderCreateSerializer(data=payload.as_json())
        if not serializer.is_valid():
            raise GatewayFailure(first_error(serializer.errors), status_code=400)

        try:
            order = create_pharmacy_order(self.account, **serializer.validated_data)
        except OrderError as e:
            raise GatewayFailure(e.message, status_code=e.http_status) from e

        return order_created_body(order)


class HttpDrugCatalog:
    """
    Lecture du catalogue d'un institut: GET /drugs/?created_by=<id>.
    Only drugs with stock left are returned.
    """

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None,
                 auth=None, timeout: Optional[int] = None):
        self.base_url = (base_url or settings.ORDER_GATEWAY_URL).rstrip('/')
        self.session = session or requests.Session()
        self.auth = auth
        self.timeout = timeout or settings.ORDER_GATEWAY_TIMEOUT

    def available_drugs(self, institute_id) -> List[Dict]:
        try:
            response = self.session.get(
                f"{self.base_url}/drugs/",
                params={'created_by': institute_id},
                auth=self.auth,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Erreur réseau lors du chargement des médicaments: {str(e)}")
            raise GatewayFailure(f"Network error: {str(e)}") from e

        if response.status_code != 200:
            raise GatewayFailure(
                f"Failed to load drugs (HTTP {response.status_code})", status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise GatewayFailure('Invalid response structure', status_code=response.status_code) from e

        if isinstance(body, dict):
            drugs = body.get('drugs') or []
        elif isinstance(body, list):
            drugs = body
        else:
            drugs = []

        return [drug for drug in drugs if (drug.get('stock') or 0) > 0]


def submit_cart(cart: Cart, institute, gateway: OrderGateway) -> Dict:
    """
    Valide puis envoie le panier.

    Raises EmptyCart, NoInstitute or InvalidCategory before anything is sent,
    and GatewayFailure with the cart left exactly as it was.
    """
    payload = build_order_payload(cart, institute)

    try:
        response = gateway.submit(payload)
    except GatewayFailure as e:
        logger.warning(f"Envoi de commande échoué, panier conservé ({len(cart.lines)} ligne(s)): {e.message}")
        raise

    cart.clear()
    logger.info(f"Commande envoyée à l'institut {payload.recipient_id}, panier vidé")
    return response
