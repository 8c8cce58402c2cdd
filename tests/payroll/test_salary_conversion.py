from dental_clinic.payroll.calculator import DeductionOptions, FlatRateCalculator, get_calculator
from dental_clinic.payroll.conversion import distribute_gross, gross_from_net, net_from_gross
from dental_clinic.payroll.insurance import InsuranceOptions


def test_net_from_gross():
    result = net_from_gross(3_000_000, {}, DeductionOptions())

    assert result.deductions.income_tax == 77_340
    assert result.deductions.local_income_tax == 7_734
    assert result.deductions.total == 367_196
    assert result.net_pay == 2_632_804


def test_non_taxable_meal_is_not_withheld():
    result = net_from_gross(3_200_000, {"식대": 200_000}, DeductionOptions())

    assert result.non_taxable == 200_000
    assert result.net_pay == 2_832_804


def test_other_deductions_reduce_net():
    result = net_from_gross(3_000_000, {}, DeductionOptions(), other_deductions=50_000)

    assert result.net_pay == 2_582_804


def test_gross_from_net_hits_target():
    options = DeductionOptions(income_tax_enabled=False)

    result = gross_from_net(2_500_000, {}, options)

    assert abs(result.net_pay - 2_500_000) <= 1
    assert net_from_gross(result.total_earnings, {}, options).net_pay == result.net_pay


def test_gross_from_net_with_tax_round_trips_through_the_same_tables():
    result = gross_from_net(3_000_000, {"식대": 200_000}, DeductionOptions())

    assert result.total_earnings > 3_000_000
    assert result.non_taxable == 200_000
    assert net_from_gross(result.total_earnings, {"식대": 200_000}, DeductionOptions()).net_pay == result.net_pay


def test_gross_from_zero_net():
    result = gross_from_net(0, {"식대": 200_000}, DeductionOptions())

    assert (result.total_earnings, result.net_pay, result.deductions.total) == (0, 0, 0)


def test_distribute_gross_keeps_non_taxable_parts():
    base, allowances = distribute_gross(2_000_000, {"식대": 200_000, "직책수당": 300_000}, 2_800_000, 200_000)

    assert base == 2_260_870
    assert allowances == {"식대": 200_000, "직책수당": 339_130}
    assert base + sum(allowances.values()) == 2_800_000


def test_flat_rate_calculator():
    options = DeductionOptions(insurance=InsuranceOptions(False, False, False, False), dependents_count=2)

    d = FlatRateCalculator().deductions(3_000_000, 0, options)

    assert d.income_tax == 90_750
    assert d.local_income_tax == 9_075


def test_unknown_calculator_name_falls_back_to_table():
    assert type(get_calculator("nope")).__name__ == "SimplifiedTableCalculator"
