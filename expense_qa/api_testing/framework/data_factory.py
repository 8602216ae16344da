"""
================================================================================
Test Data Factory
================================================================================

Factories generating valid expense payloads for API tests.

Features:
- Random data generation with reproducible seeds
- "with amount" / "for category" variants for targeted assertions
- Reference ids restricted to the ranges seeded in the API database

Reference data ranges:
    categoria_gasto_id    1-17
    importancia_gasto_id  1-4
    tipo_pago_id          1-4
    tarjeta_id            1-2
    frecuencia_gasto_id   1-3
    dia_de_pago           1-28

================================================================================
"""

import random
import string
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from .models import DebitoAutomatico, GastoRecurrente, GastoUnico, User


CATEGORIA_GASTO_IDS = range(1, 18)
IMPORTANCIA_GASTO_IDS = range(1, 5)
TIPO_PAGO_IDS = range(1, 5)
TARJETA_IDS = range(1, 3)
FRECUENCIA_GASTO_IDS = range(1, 4)
DIAS_DE_PAGO = range(1, 29)

PRODUCT_NAMES = [
    "Reparación auto", "Service heladera", "Zapatillas running", "Notebook",
    "Silla de escritorio", "Consulta médica", "Curso de inglés", "Regalo cumpleaños",
    "Pasajes de avión", "Lámpara de pie", "Auriculares", "Cortadora de césped",
]

RECURRING_NAMES = [
    "Alquiler", "Gimnasio", "Streaming", "Seguro del auto", "Internet",
    "Telefonía móvil", "Expensas", "Cuota del colegio",
]


# ================================================================================
# Factory Base
# ================================================================================

class DataFactoryBase:
    """
    Base class for test data factories.

    Each factory owns its own Random so seeding one factory never changes
    what another one generates.
    """

    # Prefix for all auto-generated test data
    PREFIX = "autotest_"

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: Random seed for reproducible data generation
        """
        self._random = random.Random(seed)

    def _generate_unique_id(self, prefix: str = "") -> str:
        """Generate a unique identifier."""
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        return f"{self.PREFIX}{prefix}{timestamp}_{uuid4().hex[:8]}"

    def _random_string(self, length: int = 10) -> str:
        """Generate random alphanumeric string."""
        chars = string.ascii_lowercase + string.digits
        return ''.join(self._random.choice(chars) for _ in range(length))

    def _random_amount(self, low: int, high: int) -> Decimal:
        """Random amount with two decimals in [low, high]."""
        cents = self._random.randint(low * 100, high * 100)
        return (Decimal(cents) / 100).quantize(Decimal("0.01"))

    def _random_past_date(self, max_days_ago: int) -> date:
        return date.today() - timedelta(days=self._random.randint(0, max_days_ago))

    def _pick(self, options):
        return self._random.choice(list(options))


# ================================================================================
# Gasto Único Factory
# ================================================================================

class GastoUnicoFactory(DataFactoryBase):
    """One-off expenses."""

    def create_random(self) -> GastoUnico:
        return GastoUnico(
            descripcion=self._pick(PRODUCT_NAMES),
            monto=self._random_amount(50, 2000),
            fecha=self._random_past_date(30),
            categoria_gasto_id=self._pick(CATEGORIA_GASTO_IDS),
            importancia_gasto_id=self._pick(IMPORTANCIA_GASTO_IDS),
            tipo_pago_id=self._pick(TIPO_PAGO_IDS),
        )

    def create_with_amount(self, amount: Decimal) -> GastoUnico:
        return GastoUnico(
            descripcion="Reparación auto",
            monto=Decimal(amount),
            fecha=date.today(),
            categoria_gasto_id=5,
            importancia_gasto_id=1,
            tipo_pago_id=1,
        )

    def create_for_category(self, categoria_gasto_id: int) -> GastoUnico:
        gasto = self.create_random()
        gasto.monto = self._random_amount(100, 1500)
        gasto.fecha = self._random_past_date(15)
        gasto.categoria_gasto_id = categoria_gasto_id
        return gasto

    def create_invalid(self) -> GastoUnico:
        """Empty description and negative amount: the API must reject it."""
        return GastoUnico(descripcion="", monto=Decimal("-100"))


# ================================================================================
# Gasto Recurrente Factory
# ================================================================================

class GastoRecurrenteFactory(DataFactoryBase):
    """Recurring expense templates."""

    def create_random(self) -> GastoRecurrente:
        return GastoRecurrente(
            descripcion=self._pick(RECURRING_NAMES),
            monto=self._random_amount(20, 500),
            dia_de_pago=self._pick(DIAS_DE_PAGO),
            fecha_inicio=self._random_past_date(365),
            frecuencia_gasto_id=self._pick(FRECUENCIA_GASTO_IDS),
            categoria_gasto_id=self._pick(CATEGORIA_GASTO_IDS),
            importancia_gasto_id=self._pick(IMPORTANCIA_GASTO_IDS),
            tipo_pago_id=self._pick(TIPO_PAGO_IDS),
            tarjeta_id=self._pick(TARJETA_IDS),
            activo=True,
        )

    def create_with_amount(self, amount: Decimal) -> GastoRecurrente:
        return GastoRecurrente(
            descripcion="test 2",
            monto=Decimal(amount),
            dia_de_pago=15,
            fecha_inicio=date(2024, 1, 1),
            frecuencia_gasto_id=2,
            categoria_gasto_id=3,
            importancia_gasto_id=2,
            tipo_pago_id=3,
            tarjeta_id=2,
            activo=True,
        )

    def create_for_category(self, categoria_gasto_id: int) -> GastoRecurrente:
        gasto = self.create_random()
        gasto.monto = self._random_amount(30, 300)
        gasto.fecha_inicio = self._random_past_date(180)
        gasto.categoria_gasto_id = categoria_gasto_id
        return gasto

    def create_invalid(self) -> GastoRecurrente:
        """Empty description, negative amount and a day past 31."""
        return GastoRecurrente(descripcion="", monto=Decimal("-50"), dia_de_pago=35)


# ================================================================================
# Débito Automático Factory
# ================================================================================

class DebitoAutomaticoFactory(DataFactoryBase):
    """Automatic debits."""

    def create_random(self) -> DebitoAutomatico:
        return DebitoAutomatico(
            descripcion=f"Débito {self._pick(RECURRING_NAMES)}",
            monto=self._random_amount(20, 800),
            dia_de_pago=self._pick(DIAS_DE_PAGO),
            categoria_gasto_id=self._pick(CATEGORIA_GASTO_IDS),
            importancia_gasto_id=self._pick(IMPORTANCIA_GASTO_IDS),
            frecuencia_gasto_id=self._pick(FRECUENCIA_GASTO_IDS),
            tipo_pago_id=self._pick(TIPO_PAGO_IDS),
            tarjeta_id=self._pick(TARJETA_IDS),
            activo=True,
        )

    def create_with_amount(self, amount: Decimal) -> DebitoAutomatico:
        return DebitoAutomatico(
            descripcion="Pago automático mensual",
            monto=Decimal(amount),
            dia_de_pago=15,
            categoria_gasto_id=4,
            importancia_gasto_id=1,
            frecuencia_gasto_id=2,
            tipo_pago_id=3,
            tarjeta_id=1,
            activo=True,
        )

    def create_for_category(self, categoria_gasto_id: int) -> DebitoAutomatico:
        debito = self.create_random()
        debito.categoria_gasto_id = categoria_gasto_id
        return debito

    def create_invalid(self) -> DebitoAutomatico:
        return DebitoAutomatico(descripcion="", monto=Decimal("-100"), dia_de_pago=35)


# ================================================================================
# User Factory
# ================================================================================

class UserFactory(DataFactoryBase):
    """Throwaway users for auth tests."""

    def create_valid(self) -> User:
        suffix = self._random_string(8)
        return User(
            nombre=f"Test User {suffix.upper()}",
            email=f"{self.PREFIX}{suffix}@test.example.com",
            password=f"Pw{self._random_string(10)}!1",
        )


# ================================================================================
# Composite Factory
# ================================================================================

class ExpenseDataFactory:
    """
    Composite factory providing access to all data factories.

    Usage:
        factory = ExpenseDataFactory(seed=42)
        gasto = factory.gasto_unico.create_random()
        debito = factory.debito_automatico.create_with_amount(Decimal("1500"))
    """

    def __init__(self, seed: Optional[int] = None):
        self.gasto_unico = GastoUnicoFactory(seed)
        self.gasto_recurrente = GastoRecurrenteFactory(seed)
        self.debito_automatico = DebitoAutomaticoFactory(seed)
        self.user = UserFactory(seed)


__all__ = [
    "DebitoAutomaticoFactory",
    "ExpenseDataFactory",
    "GastoRecurrenteFactory",
    "GastoUnicoFactory",
    "UserFactory",
]
