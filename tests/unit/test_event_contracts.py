"""
Tests for JSON Schema Contract Validators

Покрывает:
- Валидность самих схем
- Валидацию событий, записанных компонентами
- Валидацию экспортированных состояний
- Детекцию нарушений required / const / pattern / additionalProperties
"""

import pytest
from jsonschema import ValidationError

from src.collaborators import Token
from src.core.config import LedgerConfig
from src.core.contracts import (
    STATE_CONTRACTS,
    EventValidator,
    SchemaLoader,
    StateValidator,
    validate_event,
    validate_state,
)
from src.core.domain import ReserveMint, StabilizerParameterUpdate
from src.core.ledger import Ledger
from src.core.math.fixed_point import Decimal
from src.incentivizer import Incentivizer
from src.oracle import Oracle
from tests.conftest import ONE_UNIT, OWNER, USER


@pytest.fixture
def mint_event():
    return {
        "source": "reserve",
        "name": "Mint",
        "emitter": "reserve",
        "timestamp": 1_600_000_000,
        "account": USER,
        "mint_amount": ONE_UNIT,
        "cost_amount": 10**6,
    }


# =============================================================================
# SCHEMAS
# =============================================================================


class TestSchemas:
    """Схемы загружаются и проходят meta-validation"""

    @pytest.mark.parametrize("name", ["events", *STATE_CONTRACTS.values()])
    def test_schema_is_valid(self, name) -> None:
        schema = SchemaLoader().load_schema(name)
        assert schema["$schema"].endswith("2020-12/schema")

    def test_missing_schema(self) -> None:
        with pytest.raises(FileNotFoundError):
            SchemaLoader().load_schema("nonexistent")

    def test_missing_state_contract(self) -> None:
        with pytest.raises(KeyError):
            StateValidator("token")


# =============================================================================
# EVENTS
# =============================================================================


class TestEventContract:
    """events.json"""

    def test_valid_event(self, mint_event) -> None:
        validate_event(mint_event)

    def test_model_dump_is_valid(self) -> None:
        event = ReserveMint(
            emitter="reserve", timestamp=1, account=USER, mint_amount=ONE_UNIT, cost_amount=10**6
        )
        validate_event(event.model_dump(mode="json"))

    def test_decimal_serialized_as_raw_string(self) -> None:
        event = StabilizerParameterUpdate(
            emitter="stabilizer", timestamp=1, parameter="decay_rate", value=Decimal.parse("0.1")
        )

        data = event.model_dump(mode="json")

        assert data["value"] == str(10**17)
        validate_event(data)

    def test_missing_field(self, mint_event) -> None:
        del mint_event["cost_amount"]

        with pytest.raises(ValidationError):
            validate_event(mint_event)

    def test_wrong_source(self, mint_event) -> None:
        mint_event["source"] = "stabilizer"
        assert not EventValidator().is_valid(mint_event)

    def test_negative_amount(self, mint_event) -> None:
        mint_event["mint_amount"] = -1
        assert not EventValidator().is_valid(mint_event)

    def test_extra_field(self, mint_event) -> None:
        mint_event["memo"] = "x"
        assert not EventValidator().is_valid(mint_event)

    def test_decimal_pattern(self) -> None:
        data = {
            "source": "reserve",
            "name": "RedemptionTaxUpdate",
            "emitter": "reserve",
            "timestamp": 1,
            "tax": "0.05",
        }
        errors = list(EventValidator().iter_errors(data))
        assert errors

    def test_all_recorded_events_are_valid(self, ledger, deployment) -> None:
        deployment.mint(USER, 100)
        deployment.stable.approve(USER, deployment.reserve.address, 40 * ONE_UNIT)
        deployment.reserve.redeem(USER, 40 * ONE_UNIT)
        deployment.reserve.set_redemption_tax(OWNER, Decimal.parse("0.01"))

        assert ledger.events
        for event in ledger.events:
            validate_event(event.model_dump(mode="json"))

    def test_validation_can_be_disabled(self) -> None:
        ledger = Ledger(LedgerConfig(validate_events=False))
        token = Token(ledger, OWNER, "USD Coin", "USDC", 6)

        token.mint(OWNER, USER, 1)

        assert len(ledger.events_of(name="Transfer")) == 1


# =============================================================================
# STATES
# =============================================================================


class TestStateContracts:
    """*_state.json"""

    def test_reserve_export(self, deployment) -> None:
        deployment.mint(USER, 10)
        data = deployment.reserve.export_state()

        validate_state("reserve", data)
        assert data["schema_version"] == 2

    def test_stabilizer_export_before_and_after_setup(self, flywheel) -> None:
        validate_state("stabilizer", flywheel.stabilizer.export_state())

        flywheel.stabilizer.setup(OWNER)
        data = flywheel.stabilizer.export_state()

        assert data["ema"] == str(10**18)
        validate_state("stabilizer", data)

    def test_oracle_export(self, ledger, registry) -> None:
        oracle = Oracle(ledger, OWNER, registry=registry.address)
        validate_state("oracle", oracle.export_state())

    def test_incentivizer_export(self, ledger) -> None:
        underlying = Token(ledger, OWNER, "Uniswap V2", "UNI-V2", 18)
        incentivizer = Incentivizer(ledger, OWNER, underlying.address, underlying.address, "reserve")
        underlying.mint(OWNER, USER, ONE_UNIT)
        underlying.approve(USER, incentivizer.address, ONE_UNIT)
        incentivizer.stake(USER, ONE_UNIT)

        data = incentivizer.export_state()

        validate_state("incentivizer", data)
        assert data["balances"] == {USER: ONE_UNIT}

    def test_kind_without_contract_is_skipped(self) -> None:
        validate_state("token", {"anything": True})

    def test_tampered_reserve_state(self, deployment) -> None:
        data = deployment.reserve.export_state()
        data["redemption_tax"] = -1

        with pytest.raises(ValidationError):
            validate_state("reserve", data)

    def test_wrong_schema_version(self, deployment) -> None:
        data = deployment.reserve.export_state()
        data["schema_version"] = 1

        assert not StateValidator("reserve").is_valid(data)
