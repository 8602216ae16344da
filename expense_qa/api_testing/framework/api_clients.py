"""
================================================================================
Expense API Clients
================================================================================

One client per resource of the expense tracking API. Clients only build
requests: they never assert, so tests stay in charge of expectations.

    - GastosUnicosClient        /api/gastos-unicos
    - GastosRecurrentesClient   /api/gastos-recurrentes
    - DebitosAutomaticosClient  /api/debitos-automaticos
    - AuthClient                /api/auth/*

Endpoint paths are resolved by name through ConfigLoader.endpoint().

================================================================================
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Optional, Tuple, Union

import allure
import httpx

from .config_loader import ConfigLoader
from .http_client import HttpClient
from .models import PayloadModel, User


Body = Union[PayloadModel, Dict[str, Any]]


def _as_payload(body: Body) -> Dict[str, Any]:
    if isinstance(body, PayloadModel):
        return body.to_payload()
    return dict(body)


def _drop_none(params: Dict[str, Any]) -> Dict[str, Any]:
    result = {}
    for key, value in params.items():
        if value is None:
            continue
        # The API expects lowercase booleans in query strings
        result[key] = str(value).lower() if isinstance(value, bool) else value
    return result


class ApiClient:
    """
    Base client: resolves its endpoint and wraps the HTTP verbs in Allure steps.

    Subclasses set ``endpoint_name`` to a key of ``api.endpoints``.
    """

    endpoint_name: ClassVar[str] = ""

    def __init__(self, http: HttpClient, config: ConfigLoader) -> None:
        self.http = http
        self.config = config
        self.base_endpoint = config.endpoint(self.endpoint_name) if self.endpoint_name else ""

    def _item(self, item_id: Any) -> str:
        return f"{self.base_endpoint}/{item_id}"

    @allure.step("Execute GET request to {endpoint}")
    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        return self.http.get(endpoint, params=params)

    @allure.step("Execute POST request to {endpoint}")
    def post(self, endpoint: str, body: Optional[Body] = None) -> httpx.Response:
        if body is None:
            return self.http.post(endpoint)
        return self.http.post(endpoint, json=_as_payload(body))

    @allure.step("Execute PUT request to {endpoint}")
    def put(self, endpoint: str, body: Body) -> httpx.Response:
        return self.http.put(endpoint, json=_as_payload(body))

    @allure.step("Execute PATCH request to {endpoint}")
    def patch(self, endpoint: str, body: Body) -> httpx.Response:
        return self.http.patch(endpoint, json=_as_payload(body))

    @allure.step("Execute DELETE request to {endpoint}")
    def delete(self, endpoint: str) -> httpx.Response:
        return self.http.delete(endpoint)


class _CrudClient(ApiClient):
    """List / get / create / update / delete against ``base_endpoint``."""

    def list_all(self) -> httpx.Response:
        return self.get(self.base_endpoint)

    def get_by_id(self, item_id: Any) -> httpx.Response:
        return self.get(self._item(item_id))

    def create(self, body: Body) -> httpx.Response:
        return self.post(self.base_endpoint, body)

    def update(self, item_id: Any, body: Body) -> httpx.Response:
        return self.put(self._item(item_id), body)

    def remove(self, item_id: Any) -> httpx.Response:
        return self.delete(self._item(item_id))


class _ActivatableClient(_CrudClient):
    """
    CRUD plus toggling ``activo``.

    The API validates the full record on PUT, so toggling reads the current
    record and sends its required fields back with the new flag.
    """

    required_fields: ClassVar[Tuple[str, ...]] = (
        "descripcion",
        "monto",
        "dia_de_pago",
        "frecuencia_gasto_id",
        "categoria_gasto_id",
        "importancia_gasto_id",
        "tipo_pago_id",
        "tarjeta_id",
    )

    @allure.step("Set activo={active} on {item_id}")
    def set_active(self, item_id: Any, active: bool) -> httpx.Response:
        current = self.get_by_id(item_id)
        if current.status_code != 200:
            return current

        data = current.json().get("data") or {}
        body = {
            field: data[field]
            for field in self.required_fields
            if data.get(field) is not None
        }
        body["activo"] = active
        return self.put(self._item(item_id), body)


class GastosUnicosClient(_CrudClient):
    """Client for one-off expenses."""

    endpoint_name = "gastos_unicos"

    @allure.step("Search gastos únicos with filters")
    def search(
        self,
        categoria_gasto_id: Optional[int] = None,
        fecha_desde: Optional[str] = None,
        fecha_hasta: Optional[str] = None,
        monto_min: Optional[float] = None,
        monto_max: Optional[float] = None,
        importancia_gasto_id: Optional[int] = None,
        tipo_pago_id: Optional[int] = None,
        procesado: Optional[bool] = None,
    ) -> httpx.Response:
        params = _drop_none({
            "categoria_gasto_id": categoria_gasto_id,
            "fecha_desde": fecha_desde,
            "fecha_hasta": fecha_hasta,
            "monto_min": monto_min,
            "monto_max": monto_max,
            "importancia_gasto_id": importancia_gasto_id,
            "tipo_pago_id": tipo_pago_id,
            "procesado": procesado,
        })
        return self.get(self.base_endpoint, params=params or None)


class GastosRecurrentesClient(_ActivatableClient):
    """Client for recurring expense templates."""

    endpoint_name = "gastos_recurrentes"

    @allure.step("Generate gastos from recurring templates")
    def generate_gastos(self) -> httpx.Response:
        return self.get(f"{self.config.endpoint('gastos')}/generate")


class DebitosAutomaticosClient(_ActivatableClient):
    """Client for automatic debits."""

    endpoint_name = "debitos_automaticos"

    def by_category(self, categoria_gasto_id: int) -> httpx.Response:
        return self.get(self.base_endpoint, params={"categoria_gasto_id": categoria_gasto_id})

    def active(self) -> httpx.Response:
        return self.get(self.base_endpoint, params={"activo": "true"})

    def inactive(self) -> httpx.Response:
        return self.get(self.base_endpoint, params={"activo": "false"})


class AuthClient(ApiClient):
    """
    Client for the authentication endpoints.

    Works with an unauthenticated request spec: every call that needs a
    token receives it explicitly.
    """

    @allure.step("Register test user")
    def register(self, user: User) -> httpx.Response:
        return self.post(
            self.config.endpoint("auth_register"),
            {"nombre": user.nombre, "email": user.email, "password": user.password},
        )

    @allure.step("Login test user")
    def login(self, user: User) -> httpx.Response:
        return self.post(self.config.endpoint("auth_login"), user.login_payload())

    def profile(self, token: str) -> httpx.Response:
        return self.http.get(
            self.config.endpoint("auth_profile"),
            headers={"Authorization": f"Bearer {token}"},
        )

    def logout(self, token: str) -> httpx.Response:
        return self.http.post(
            self.config.endpoint("auth_logout"),
            headers={"Authorization": f"Bearer {token}"},
        )

    @staticmethod
    def extract_token(response: httpx.Response) -> Optional[str]:
        """``data.token`` of a successful login, else None."""
        if response.status_code != 200:
            return None
        return (response.json().get("data") or {}).get("token")

    @staticmethod
    def extract_user_id(response: httpx.Response) -> Optional[Any]:
        if response.status_code not in (200, 201):
            return None
        data = response.json().get("data") or {}
        return (data.get("user") or {}).get("id")


__all__ = [
    "ApiClient",
    "AuthClient",
    "DebitosAutomaticosClient",
    "GastosRecurrentesClient",
    "GastosUnicosClient",
]
