from dental_clinic.payroll.allowances import allowance_kind, allowances_total, non_taxable_amount
from dental_clinic.payroll.insurance import InsuranceOptions, estimate_insurance


def test_employee_share_of_four_insurances():
    ins = estimate_insurance(3_000_000)

    assert ins.national_pension == 135_000
    assert ins.health_insurance == 106_350
    assert ins.long_term_care == 13_772
    assert ins.employment_insurance == 27_000
    assert ins.total == 282_122


def test_pension_base_is_capped():
    assert estimate_insurance(7_000_000).national_pension == 265_500


def test_disabled_insurances_are_zero():
    ins = estimate_insurance(
        3_000_000,
        InsuranceOptions(national_pension=False, health_insurance=False, long_term_care=True, employment_insurance=False),
    )

    assert ins.total == 0


def test_negative_earnings_are_treated_as_zero():
    assert estimate_insurance(-100).total == 0


def test_non_taxable_allowances_respect_limits():
    allowances = {"식대": 250_000, "vehicle": 100_000, "직책수당": 300_000}

    assert non_taxable_amount(allowances) == 300_000
    assert allowances_total(allowances) == 650_000
    assert non_taxable_amount(None) == 0


def test_allowance_names_are_case_insensitive():
    assert allowance_kind("Meal_Allowance") == "meal"
    assert allowance_kind("자녀보육수당") == "childcare"
    assert allowance_kind("직책수당") is None
