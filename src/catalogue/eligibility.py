"""Which packages a user may buy."""

from catalogue.catalog import INSTITUTION_LABELS, find_package
from catalogue.package import InstitutionType, PackageOption, SelectedCombo
from cart.selection import ComboCheck


def check_eligibility(package: PackageOption | SelectedCombo, institution: InstitutionType) -> ComboCheck:
    """A package is only offered to students of the institution it was priced for."""
    if package.institution is None:
        return ComboCheck.fail("This package is no longer offered. Please choose another package")
    if package.institution != institution:
        label = INSTITUTION_LABELS[package.institution]
        return ComboCheck.fail(f"This package is only available to {label}")
    return ComboCheck.passed()


def price_matches_catalog(combo: SelectedCombo) -> bool:
    """True when the combo carries the catalog price for its package id."""
    option = find_package(combo.id)
    return option is not None and abs(option.price - combo.price) < 0.01
