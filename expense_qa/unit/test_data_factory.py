from datetime import date
from decimal import Decimal

from expense_qa.api_testing.framework.data_factory import (
    CATEGORIA_GASTO_IDS,
    DIAS_DE_PAGO,
    FRECUENCIA_GASTO_IDS,
    IMPORTANCIA_GASTO_IDS,
    TARJETA_IDS,
    TIPO_PAGO_IDS,
    ExpenseDataFactory,
)


def test_same_seed_same_data():
    first = ExpenseDataFactory(seed=42)
    second = ExpenseDataFactory(seed=42)

    assert first.gasto_unico.create_random() == second.gasto_unico.create_random()
    assert first.debito_automatico.create_random() == second.debito_automatico.create_random()


def test_factories_do_not_share_random_state():
    factory = ExpenseDataFactory(seed=7)
    factory.gasto_unico.create_random()

    assert factory.gasto_recurrente.create_random() == (
        ExpenseDataFactory(seed=7).gasto_recurrente.create_random()
    )


def test_random_gastos_unicos_use_reference_ranges():
    factory = ExpenseDataFactory(seed=1)

    for _ in range(50):
        gasto = factory.gasto_unico.create_random()
        assert gasto.categoria_gasto_id in CATEGORIA_GASTO_IDS
        assert gasto.importancia_gasto_id in IMPORTANCIA_GASTO_IDS
        assert gasto.tipo_pago_id in TIPO_PAGO_IDS
        assert Decimal("50") <= gasto.monto <= Decimal("2000")
        assert gasto.monto == gasto.monto.quantize(Decimal("0.01"))
        assert gasto.fecha <= date.today()
        assert gasto.descripcion


def test_random_recurring_and_debits_use_reference_ranges():
    factory = ExpenseDataFactory(seed=2)

    for _ in range(50):
        for item in (
            factory.gasto_recurrente.create_random(),
            factory.debito_automatico.create_random(),
        ):
            assert item.dia_de_pago in DIAS_DE_PAGO
            assert item.frecuencia_gasto_id in FRECUENCIA_GASTO_IDS
            assert item.tarjeta_id in TARJETA_IDS
            assert item.categoria_gasto_id in CATEGORIA_GASTO_IDS
            assert item.activo is True


def test_specific_amount_and_category_variants():
    factory = ExpenseDataFactory(seed=3)

    gasto = factory.gasto_unico.create_with_amount(Decimal("500.00"))
    assert gasto.monto == Decimal("500.00")
    assert gasto.descripcion == "Reparación auto"

    recurrente = factory.gasto_recurrente.create_with_amount(Decimal("1500"))
    assert (recurrente.descripcion, recurrente.dia_de_pago, recurrente.frecuencia_gasto_id) == (
        "test 2", 15, 2
    )

    assert factory.gasto_unico.create_for_category(5).categoria_gasto_id == 5
    assert factory.gasto_recurrente.create_for_category(3).categoria_gasto_id == 3
    assert factory.debito_automatico.create_for_category(4).categoria_gasto_id == 4


def test_invalid_payloads_break_the_api_rules():
    factory = ExpenseDataFactory()

    for invalid in (
        factory.gasto_unico.create_invalid(),
        factory.gasto_recurrente.create_invalid(),
        factory.debito_automatico.create_invalid(),
    ):
        assert invalid.descripcion == ""
        assert invalid.monto < 0

    assert factory.debito_automatico.create_invalid().dia_de_pago > 31


def test_users_are_unique_and_prefixed():
    factory = ExpenseDataFactory()

    users = [factory.user.create_valid() for _ in range(20)]

    emails = {u.email for u in users}
    assert len(emails) == 20
    assert all(e.startswith("autotest_") for e in emails)
    assert all(len(u.password) >= 8 for u in users)
