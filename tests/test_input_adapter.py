"""Tests for building SimulationParameters from loose household records."""

import pytest

from models import AssetBalances, InvalidParameter, PersonProfile
from utils.currency import clean_currency, clean_fraction, clean_percent
from utils.input_adapter import build_simulation_parameters, classify_account


def record(**kwargs):
    values = {
        "current_age": 50,
        "retirement_age": 65,
        "life_expectancy": 90,
        "start_year": 2026,
        "accounts": [
            {"type": "401k", "balance": "$300,000"},
            {"type": "Roth IRA", "balance": 100_000},
            {"type": "brokerage", "balance": "80,000", "cost_basis": 60_000},
            {"type": "savings", "balance": 20_000},
            {"type": "HSA", "balance": 15_000},
        ],
    }
    values.update(kwargs)
    return values


class TestCleaners:
    def test_currency_strings(self):
        assert clean_currency("$1,200") == 1_200.0
        assert clean_currency("abc") == 0.0
        assert clean_currency("", default=None) is None
        assert clean_currency(float("nan"), default=5.0) == 5.0

    def test_percent_forms(self):
        assert clean_percent("2.5%") == pytest.approx(0.025)
        assert clean_percent(2.5) == pytest.approx(0.025)
        assert clean_percent(0.025) == pytest.approx(0.025)
        assert clean_percent("0.5%") == pytest.approx(0.005)
        assert clean_percent("n/a", default=0.07) == 0.07

    def test_fraction_forms(self):
        assert clean_fraction(1) == 1.0
        assert clean_fraction("0.35") == pytest.approx(0.35)
        assert clean_fraction("1%") == pytest.approx(0.01)
        assert clean_fraction(35) == pytest.approx(0.35)
        assert clean_fraction(None, default=0.7) == 0.7
        assert clean_fraction(True, default=0.7) == 0.7


class TestClassification:
    @pytest.mark.parametrize("account_type,bucket", [
        ("401(k)", "tax_deferred"),
        ("403b", "tax_deferred"),
        ("Traditional IRA", "tax_deferred"),
        ("SEP-IRA", "tax_deferred"),
        ("SIMPLE IRA", "tax_deferred"),
        ("Roth 401k", "tax_free"),
        ("roth_ira", "tax_free"),
        ("Money Market", "taxable"),
        ("CDs", "taxable"),
        ("hsa", "hsa"),
    ])
    def test_known_types(self, account_type, bucket):
        assert classify_account(account_type) == bucket

    def test_unknown_type_is_taxable(self):
        assert classify_account("crypto wallet") == "taxable"


class TestBuildParameters:
    def test_buckets_and_basis(self):
        params = build_simulation_parameters(record())
        assert params.balances.tax_deferred == 300_000
        assert params.balances.tax_free == 100_000
        assert params.balances.taxable == 100_000
        assert params.balances.hsa == 15_000
        # 60k reported on brokerage, 70% assumed on savings
        assert params.taxable_basis_ratio == pytest.approx((60_000 + 14_000) / 100_000)

    def test_defaults(self):
        params = build_simulation_parameters({"current_age": 40})
        assert params.annual_retirement_expense == 132_000
        assert params.subject.retirement_age == 65
        assert params.subject.life_expectancy == 93
        assert params.inflation_rate == pytest.approx(0.025)
        assert params.expected_return == pytest.approx(0.07)
        assert params.return_volatility == pytest.approx(0.15)
        assert params.iterations == 1_000
        assert params.filing_status == "single"
        assert params.state == "TX"

    def test_non_numeric_fields_fall_back(self):
        params = build_simulation_parameters(record(monthly_expense="lots", inflation="unknown", iterations="many"))
        assert params.annual_retirement_expense == 132_000
        assert params.inflation_rate == pytest.approx(0.025)
        assert params.iterations == 1_000

    def test_string_inputs(self):
        params = build_simulation_parameters(record(monthly_expense="$6,000", expected_return="6%", volatility=12))
        assert params.annual_retirement_expense == 72_000
        assert params.expected_return == pytest.approx(0.06)
        assert params.return_volatility == pytest.approx(0.12)

    def test_overrides(self):
        params = build_simulation_parameters(record(), iterations=100, seed=7, ltc_lifetime_probability=1.0)
        assert params.iterations == 100
        assert params.seed == 7
        assert params.ltc_lifetime_probability == 1.0

    @pytest.mark.parametrize("raw,expected", [(1, 1.0), ("1", 1.0), (1.0, 1.0), (0.6, 0.6), ("85%", 0.85), (85, 0.85)])
    def test_basis_ratio_fraction_or_percent(self, raw, expected):
        params = build_simulation_parameters({"current_age": 50, "taxable_basis_ratio": raw})
        assert params.taxable_basis_ratio == pytest.approx(expected)

    def test_keyword_overrides_are_cleaned(self):
        params = build_simulation_parameters(record(), expected_return=7, volatility="12%", iterations="250")
        assert params.expected_return == pytest.approx(0.07)
        assert params.return_volatility == pytest.approx(0.12)
        assert params.iterations == 250

    def test_subject_override_as_mapping_or_profile(self):
        parsed = build_simulation_parameters(record(), subject={"age": 55, "retirement_age": 60})
        assert isinstance(parsed.subject, PersonProfile)
        assert parsed.subject.current_age == 55
        assert parsed.subject.retirement_age == 60

        profile = PersonProfile(current_age=58, retirement_age=62, life_expectancy=92, birth_year=1968)
        given = build_simulation_parameters(record(), subject=profile, balances=AssetBalances(taxable=5_000))
        assert given.subject is profile
        assert given.balances.taxable == 5_000

    def test_retired_person_defaults_retirement_to_current_age(self):
        params = build_simulation_parameters({"current_age": 70})
        assert params.subject.retirement_age == 70

    def test_spouse_makes_joint_return(self):
        params = build_simulation_parameters(record(spouse={"age": 48, "ss_benefit": "1,800", "ss_claim_age": 70}))
        assert params.spouse.current_age == 48
        assert params.spouse.ss_benefit_fra == 1_800
        assert params.spouse.ss_claim_age == 70
        assert params.filing_status == "married_filing_jointly"

    def test_policy_and_annuities(self):
        params = build_simulation_parameters(record(
            ltc_insurance={"daily_benefit": "$200", "benefit_period": 3, "inflation_rider": "3 percent compound"},
            annuities=[{"payment": 1_000, "frequency": "Monthly", "payout_start_year": 2035}],
        ))
        policy = params.subject.ltc_policy
        assert policy.daily_benefit == 200
        assert policy.inflation_rider == "3_percent_compound"
        assert params.subject.annuities[0].payment == 1_000
        assert params.subject.annuities[0].frequency == "monthly"

    def test_birth_year_from_age(self):
        params = build_simulation_parameters(record())
        assert params.subject.birth_year == 1976


class TestInvalidInput:
    def test_negative_age(self):
        with pytest.raises(InvalidParameter):
            build_simulation_parameters({"current_age": -1})

    def test_retirement_before_current_age(self):
        with pytest.raises(InvalidParameter):
            build_simulation_parameters({"current_age": 60, "retirement_age": 55})

    def test_life_expectancy_not_after_age(self):
        with pytest.raises(InvalidParameter):
            build_simulation_parameters({"current_age": 80, "life_expectancy": 80})

    def test_non_positive_iterations(self):
        with pytest.raises(InvalidParameter):
            build_simulation_parameters(record(), iterations=0)

    def test_invalid_parameter_is_value_error(self):
        assert issubclass(InvalidParameter, ValueError)
