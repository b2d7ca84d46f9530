from __future__ import annotations

import pytest

from regionfix.domain import RegionReference
from tests.helpers.region_store import make_region


def test_region_validity_follows_soft_delete_marker() -> None:
    assert make_region("reg_a").is_valid
    assert not make_region("reg_b", deleted=True).is_valid


def test_region_describe_includes_currency() -> None:
    region = make_region("reg_a", "USD", name="United States")

    assert region.describe() == "United States (reg_a, usd)"


def test_region_reference_defaults_to_region_id_column() -> None:
    reference = RegionReference(table="cart")

    assert reference.column == "region_id"
    assert str(reference) == "cart.region_id"


@pytest.mark.parametrize(("table", "column"), [("", "region_id"), ("cart", "  ")])
def test_region_reference_rejects_blank_names(table: str, column: str) -> None:
    with pytest.raises(ValueError, match="must not be blank"):
        RegionReference(table=table, column=column)
