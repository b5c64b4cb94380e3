"""
Tests for the Quantity Normalizer
Package-to-base-unit conversion and its display inverse
"""

import pytest
from decimal import Decimal
from sqlalchemy.orm import Session

from erp_inventory.core.exceptions import (
    ItemNotFound, InvalidPackage, InvalidConversionFactor, InvalidQuantity,
    MissingUnitOfMeasure
)
from erp_inventory.schemas.normalization import PackageConversionInput, StockTransactionItemInput
from erp_inventory.services.inventory.normalization import (
    NormalizationService, convert_quantity, denormalize_quantity, validate_quantity
)

from .conftest import COMPANY_ID


class TestConvertQuantity:
    """Pure conversion arithmetic"""

    def test_box_of_twelve(self):
        assert convert_quantity(Decimal("3"), Decimal("12")) == Decimal("36")

    def test_fractional_quantity_is_not_rounded(self):
        assert convert_quantity(Decimal("0.5"), Decimal("2.5")) == Decimal("1.25")

    @pytest.mark.parametrize("q1,q2", [("1", "2"), ("0.25", "7.75"), ("0", "13")])
    def test_linear_in_quantity(self, q1, q2):
        factor = Decimal("12")
        combined = convert_quantity(Decimal(q1) + Decimal(q2), factor)
        assert convert_quantity(Decimal(q1), factor) + convert_quantity(Decimal(q2), factor) == combined

    @pytest.mark.parametrize("factor", ["0", "-1", "Infinity", "NaN"])
    def test_bad_factor_rejected_whatever_the_quantity(self, factor):
        with pytest.raises(InvalidConversionFactor):
            convert_quantity(Decimal("5"), Decimal(factor))
        with pytest.raises(InvalidConversionFactor):
            convert_quantity(Decimal("-5"), Decimal(factor))

    @pytest.mark.parametrize("quantity", ["-0.0001", "-3", "Infinity", "NaN"])
    def test_bad_quantity_rejected(self, quantity):
        with pytest.raises(InvalidQuantity):
            convert_quantity(Decimal(quantity), Decimal("12"))

    def test_zero_quantity_allowed(self):
        assert validate_quantity(0) == Decimal("0")


class TestDenormalize:

    def test_whole_packages_and_remainder(self):
        result = denormalize_quantity(Decimal("40"), Decimal("12"))
        assert result.whole_packages == 3
        assert result.remainder == Decimal("4")
        assert result.package_qty * 12 == pytest.approx(Decimal("40"))

    @pytest.mark.parametrize("quantity", [1, 3, 17])
    def test_round_trip_integer_quantities(self, quantity):
        factor = Decimal("12")
        base = convert_quantity(Decimal(quantity), factor)
        result = denormalize_quantity(base, factor)
        assert result.package_qty == Decimal(quantity)
        assert result.whole_packages == quantity
        assert result.remainder == 0

    def test_invalid_factor(self):
        with pytest.raises(InvalidConversionFactor):
            denormalize_quantity(Decimal("10"), Decimal("0"))


class TestNormalizationService:
    """Catalog-backed normalization"""

    def test_normalize_selected_package(self, db_session: Session, builder):
        item = builder.item("X")
        box12 = builder.package(item, "BOX12", 12)

        result = NormalizationService(db_session).normalize(COMPANY_ID, PackageConversionInput(
            item_id=item.id, packaging_id=box12.id, input_qty=Decimal("3"),
        ))

        assert result.normalized_qty == Decimal("36")
        assert result.conversion_factor == Decimal("12")
        assert result.input_packaging_id == box12.id
        assert result.base_package_id == item.package_id
        assert result.metadata.input_package_name == "BOX12"
        assert result.metadata.base_package_name == "EA"

    def test_base_package_when_none_selected(self, db_session: Session, builder):
        item = builder.item("X")

        result = NormalizationService(db_session).normalize(COMPANY_ID, PackageConversionInput(
            item_id=item.id, input_qty=Decimal("7"),
        ))

        assert result.normalized_qty == Decimal("7")
        assert result.conversion_factor == Decimal("1")
        assert result.input_packaging_id == item.package_id

    @pytest.mark.parametrize("factor", ["0", "-1"])
    def test_stored_bad_factor(self, db_session: Session, builder, factor):
        item = builder.item("X")
        package = builder.package(item, "BROKEN", factor)

        with pytest.raises(InvalidConversionFactor):
            NormalizationService(db_session).normalize(COMPANY_ID, PackageConversionInput(
                item_id=item.id, packaging_id=package.id, input_qty=Decimal("1"),
            ))

    def test_item_not_found(self, db_session: Session):
        with pytest.raises(ItemNotFound):
            NormalizationService(db_session).normalize(COMPANY_ID, PackageConversionInput(
                item_id=999, input_qty=Decimal("1"),
            ))

    def test_item_of_other_company_not_found(self, db_session: Session, builder):
        item = builder.item("X")
        with pytest.raises(ItemNotFound):
            NormalizationService(db_session).normalize(COMPANY_ID + 1, PackageConversionInput(
                item_id=item.id, input_qty=Decimal("1"),
            ))

    def test_item_not_set_up(self, db_session: Session, builder):
        item = builder.item("X", setup_complete=False)
        with pytest.raises(ItemNotFound):
            NormalizationService(db_session).normalize(COMPANY_ID, PackageConversionInput(
                item_id=item.id, input_qty=Decimal("1"),
            ))

    def test_missing_base_package(self, db_session: Session, builder):
        item = builder.item("X", with_base=False)
        with pytest.raises(MissingUnitOfMeasure):
            NormalizationService(db_session).normalize(COMPANY_ID, PackageConversionInput(
                item_id=item.id, input_qty=Decimal("1"),
            ))

    def test_package_of_another_item(self, db_session: Session, builder):
        item = builder.item("X")
        other = builder.item("Y")
        foreign_box = builder.package(other, "BOX6", 6)

        with pytest.raises(InvalidPackage):
            NormalizationService(db_session).normalize(COMPANY_ID, PackageConversionInput(
                item_id=item.id, packaging_id=foreign_box.id, input_qty=Decimal("1"),
            ))

    def test_inactive_package(self, db_session: Session, builder):
        item = builder.item("X")
        box = builder.package(item, "BOX12", 12, is_active=False)

        with pytest.raises(InvalidPackage):
            NormalizationService(db_session).normalize(COMPANY_ID, PackageConversionInput(
                item_id=item.id, packaging_id=box.id, input_qty=Decimal("1"),
            ))


class TestNormalizeBatch:

    def test_batch_computes_total_cost(self, db_session: Session, builder):
        x = builder.item("X")
        box12 = builder.package(x, "BOX12", 12)
        y = builder.item("Y")

        results = NormalizationService(db_session).normalize_batch(COMPANY_ID, [
            StockTransactionItemInput(item_id=x.id, packaging_id=box12.id,
                                      input_qty=Decimal("2"), unit_cost=Decimal("0.50")),
            StockTransactionItemInput(item_id=y.id, input_qty=Decimal("5"), unit_cost=Decimal("3")),
        ])

        assert [r.normalized_qty for r in results] == [Decimal("24"), Decimal("5")]
        assert results[0].total_cost == Decimal("12")
        assert results[1].total_cost == Decimal("15")

    def test_batch_is_all_or_nothing(self, db_session: Session, builder):
        x = builder.item("X")

        with pytest.raises(ItemNotFound):
            NormalizationService(db_session).normalize_batch(COMPANY_ID, [
                StockTransactionItemInput(item_id=x.id, input_qty=Decimal("1")),
                StockTransactionItemInput(item_id=12345, input_qty=Decimal("1")),
            ])


class TestCheckStockAvailability:

    def test_shortfall_reported(self, db_session: Session, builder, warehouse):
        item = builder.item("X")
        builder.stock(item, warehouse, 10)

        result = NormalizationService(db_session).check_stock_availability(item.id, warehouse.id, Decimal("25"))

        assert result.is_available is False
        assert result.current_stock == Decimal("10")
        assert result.shortfall == Decimal("15")

    def test_no_balance_row_means_zero(self, db_session: Session, builder, warehouse):
        item = builder.item("X")

        result = NormalizationService(db_session).check_stock_availability(item.id, warehouse.id, Decimal("0"))

        assert result.is_available is True
        assert result.current_stock == Decimal("0")
