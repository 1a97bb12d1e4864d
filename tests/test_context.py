import pytest

from conftest import run_config
from pipeline.context import StepContext, promote, promotes
from pipeline.errors import ConfigurationError, MissingDependencyError, PromotionError
from pipeline.state import JobState


def test_only_declared_keys_are_promoted():
    local = StepContext(customer_group_id="cg-1", scratch="not shared")
    assert promote(JobState(), local, ["customer_group_id"]) == {"customer_group_id": "cg-1"}


def test_declared_key_never_set_is_an_error():
    with pytest.raises(PromotionError):
        promote(JobState(), StepContext(), ["customer_group_id"])


def test_promoted_keys_are_write_once():
    with pytest.raises(PromotionError):
        promote(JobState(customer_group_id="cg-1"), StepContext(customer_group_id="cg-2"), ["customer_group_id"])


def test_require_missing_key():
    with pytest.raises(MissingDependencyError) as err:
        JobState().require("tax_category")
    assert err.value.key == "tax_category"
    assert JobState(customer_group_id="cg-1").require("customer_group_id") == "cg-1"


def test_promotes_rejects_unknown_keys():
    with pytest.raises(ValueError):
        promotes("not_a_field")


@pytest.mark.asyncio
async def test_node_returns_increment(make_resources):
    @promotes("customer_group_id")
    async def step(state, local, res):
        local["customer_group_id"] = "cg-9"
        local["temporary"] = 42

    out = await step(JobState(), run_config(make_resources()))
    assert out == {"customer_group_id": "cg-9"}
    assert step.promotable == ("customer_group_id",)


@pytest.mark.asyncio
async def test_failed_step_promotes_nothing(make_resources):
    @promotes("customer_group_id")
    async def step(state, local, res):
        local["customer_group_id"] = "cg-9"
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await step(JobState(), run_config(make_resources()))


@pytest.mark.asyncio
async def test_node_without_resources():
    @promotes("customer_group_id")
    async def step(state, local, res):
        local["customer_group_id"] = "x"

    with pytest.raises(ConfigurationError):
        await step(JobState(), {})
