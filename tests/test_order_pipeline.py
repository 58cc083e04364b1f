import asyncio

import pytest

from conftest import ORDER_URL, FakeOrderApi
from core.cancellation import CancellationToken
from core.domain.errors import OrderApiError, PipelineError, RunCancelled
from core.domain.models import LogLevel, PipelineState
from core.services.events import EventLog
from core.services.order_pipeline import (
    DATACENTER_LABEL,
    OS_LABEL,
    REGION_LABEL,
    OrderPipeline,
    discover_region,
)


def _pipeline(api, token=None, attach_options=False):
    events = EventLog()
    pipeline = OrderPipeline(api, events, token or CancellationToken(), attach_options=attach_options)
    return pipeline, events


def _configured(api):
    return [(call[3], call[4]) for call in api.calls if call[0] == "configure_item"]


def test_happy_path_runs_every_step_in_order(task_spec, selection):
    api = FakeOrderApi()
    pipeline, events = _pipeline(api)

    result = asyncio.run(pipeline.run(task_spec, selection))

    assert api.names == [
        "create_cart",
        "assign_cart",
        "add_item",
        "get_required_configuration",
        "configure_item",
        "configure_item",
        "configure_item",
        "get_cart",
        "get_checkout",
        "checkout",
    ]
    assert api.calls[0] == ("create_cart", "IE")
    assert api.calls[2] == ("add_item", "cart-1", "24ska01", "P1M")
    assert _configured(api) == [
        (DATACENTER_LABEL, "gra"),
        (OS_LABEL, "none_64.en"),
        (REGION_LABEL, "europe"),
    ]
    assert pipeline.state is PipelineState.COMPLETED
    assert pipeline.cart.cart_id == "cart-1"
    assert pipeline.cart.item_id == 42
    assert result.order_id_display == "1234"
    assert result.url_display == ORDER_URL
    assert not [e for e in events.events if e.level is LogLevel.ERROR]


def test_datacenter_failure_aborts_the_run(task_spec, selection):
    api = FakeOrderApi(fail={("configure_item", DATACENTER_LABEL): OrderApiError("dc refused", status_code=400)})
    pipeline, events = _pipeline(api)

    with pytest.raises(PipelineError) as excinfo:
        asyncio.run(pipeline.run(task_spec, selection))

    assert excinfo.value.step == "configure"
    assert pipeline.state is PipelineState.FAILED
    assert _configured(api) == [(DATACENTER_LABEL, "gra")]
    assert "checkout" not in api.names
    assert any(e.level is LogLevel.ERROR and "dc refused" in e.message for e in events.events)


def test_os_failure_is_logged_and_the_run_continues(task_spec, selection):
    api = FakeOrderApi(fail={("configure_item", OS_LABEL): OrderApiError("bad os", status_code=400)})
    pipeline, events = _pipeline(api)

    result = asyncio.run(pipeline.run(task_spec, selection))

    assert pipeline.state is PipelineState.COMPLETED
    assert result.order_id_display == "1234"
    assert (REGION_LABEL, "europe") in _configured(api)
    errors = [e.message for e in events.events if e.level is LogLevel.ERROR]
    assert len(errors) == 1 and "dedicated_os" in errors[0]


def test_empty_entries_are_skipped_with_a_warning(task_spec, selection):
    api = FakeOrderApi()
    api.required_configuration = [{"label": "dedicated_os", "allowedValues": ["none_64.en"]}]
    spec = task_spec.model_copy(update={"os": ""})
    pipeline, events = _pipeline(api)

    asyncio.run(pipeline.run(spec, selection))

    assert _configured(api) == [(DATACENTER_LABEL, "gra")]
    warnings = [e.message for e in events.events if e.level is LogLevel.WARNING]
    assert len(warnings) == 2


def test_discover_region_takes_first_allowed_value():
    assert discover_region([{"label": "region", "allowedValues": ["canada", "europe"]}]) == "canada"
    assert discover_region([{"label": "region", "allowedValues": []}]) is None
    assert discover_region(None) is None


def test_missing_cart_id_is_fatal(task_spec, selection):
    api = FakeOrderApi()
    api.cart_payload = {}
    pipeline, _ = _pipeline(api)

    with pytest.raises(PipelineError) as excinfo:
        asyncio.run(pipeline.run(task_spec, selection))

    assert excinfo.value.step == "create_cart"
    assert api.names == ["create_cart"]


def test_missing_item_id_is_fatal(task_spec, selection):
    api = FakeOrderApi()
    api.item_payload = {"cartId": "cart-1"}
    pipeline, _ = _pipeline(api)

    with pytest.raises(PipelineError) as excinfo:
        asyncio.run(pipeline.run(task_spec, selection))

    assert excinfo.value.step == "add_item"
    assert pipeline.state is PipelineState.FAILED


def test_assign_failure_is_fatal(task_spec, selection):
    api = FakeOrderApi(fail={"assign_cart": OrderApiError("forbidden", status_code=403)})
    pipeline, _ = _pipeline(api)

    with pytest.raises(PipelineError) as excinfo:
        asyncio.run(pipeline.run(task_spec, selection))

    assert excinfo.value.step == "assign_cart"
    assert "forbidden" in str(excinfo.value)
    assert api.names == ["create_cart", "assign_cart"]


def test_unreadable_checkout_info_is_fatal(task_spec, selection):
    api = FakeOrderApi(fail={"get_checkout": OrderApiError("gone", status_code=404)})
    pipeline, _ = _pipeline(api)

    with pytest.raises(PipelineError):
        asyncio.run(pipeline.run(task_spec, selection))

    assert "checkout" not in api.names


def test_empty_checkout_answer_is_fatal(task_spec, selection):
    api = FakeOrderApi()
    api.checkout_payload = None
    pipeline, _ = _pipeline(api)

    with pytest.raises(PipelineError) as excinfo:
        asyncio.run(pipeline.run(task_spec, selection))

    assert excinfo.value.step == "checkout"
    assert pipeline.state is PipelineState.FAILED


def test_checkout_without_order_id_logs_marker(task_spec, selection):
    api = FakeOrderApi()
    api.checkout_payload = {"prices": {}}
    pipeline, events = _pipeline(api)

    result = asyncio.run(pipeline.run(task_spec, selection))

    assert result.order_id_display == "N/A"
    assert result.url_display == "N/A"
    messages = [e.message for e in events.events]
    assert "Order created! Order ID: N/A" in messages
    assert "Order URL: N/A" in messages


def test_cancel_before_start_makes_no_calls(task_spec, selection):
    api = FakeOrderApi()
    token = CancellationToken()
    token.cancel()
    pipeline, events = _pipeline(api, token)

    with pytest.raises(RunCancelled):
        asyncio.run(pipeline.run(task_spec, selection))

    assert api.calls == []
    assert pipeline.state is PipelineState.CANCELLED
    assert events.events == ()


def test_cancel_after_cart_created_never_checks_out(task_spec, selection):
    token = CancellationToken()
    api = FakeOrderApi(hooks={"create_cart": token.cancel})
    pipeline, events = _pipeline(api, token)

    with pytest.raises(RunCancelled):
        asyncio.run(pipeline.run(task_spec, selection))

    assert api.names == ["create_cart"]
    assert pipeline.cart is not None
    assert pipeline.state is PipelineState.CANCELLED
    assert not [e for e in events.events if e.level is LogLevel.ERROR]


def test_cancel_between_configuration_entries(task_spec, selection):
    token = CancellationToken()
    api = FakeOrderApi(hooks={"configure_item": token.cancel})
    pipeline, _ = _pipeline(api, token)

    with pytest.raises(RunCancelled):
        asyncio.run(pipeline.run(task_spec, selection))

    assert _configured(api) == [(DATACENTER_LABEL, "gra")]
    assert "checkout" not in api.names


def test_options_are_not_attached_by_default(task_spec, selection):
    api = FakeOrderApi()
    pipeline, _ = _pipeline(api)

    asyncio.run(pipeline.run(task_spec, selection))

    assert "add_option" not in api.names


def test_option_failures_do_not_abort(task_spec, selection):
    api = FakeOrderApi(fail={("add_option", "bandwidth-300-24sk"): OrderApiError("no such option")})
    pipeline, events = _pipeline(api, attach_options=True)

    asyncio.run(pipeline.run(task_spec, selection))

    options = [call[3] for call in api.calls if call[0] == "add_option"]
    assert options == ["bandwidth-300-24sk", "ram-64g-noecc-2133-24ska01"]
    assert api.names.index("add_option") > api.names.index("configure_item")
    assert pipeline.state is PipelineState.COMPLETED
    assert any(e.level is LogLevel.ERROR and "bandwidth-300-24sk" in e.message for e in events.events)
