"""Dropdown ordering integration steps.

Drives the HTTP API through ``context.client`` (in-process TestClient or a
live httpx client, see environment.py). The item ids of the background
category are kept in ``context.vars["ids"]`` by display text and the last
fetched list ETag in ``context.vars["etag"]``.
"""

from __future__ import annotations

from typing import Any, Dict, List

from behave import given, then, when


def _split(names: str) -> List[str]:
    return [n.strip() for n in names.split(",") if n.strip()]


def _items_url(context) -> str:
    return f"/api/v1/categories/{context.vars['category_id']}/items"


def _item_id(context, name: str) -> str:
    return context.vars["ids"][name]


def _current_items(context) -> List[Dict[str, Any]]:
    resp = context.client.get(_items_url(context))
    assert resp.status_code == 200, resp.text
    return resp.json()["items"]


@given('a dropdown category "{name}"')
def step_create_category(context, name: str) -> None:
    resp = context.client.post("/api/v1/categories", json={"name": name})
    assert resp.status_code == 201, resp.text
    context.vars["category_id"] = resp.json()["id"]


@given('the category has the items "{names}"')
def step_paste_items(context, names: str) -> None:
    resp = context.client.post(f"{_items_url(context)}/paste", json={"text": "\n".join(_split(names))})
    assert resp.status_code == 201, resp.text
    context.vars["ids"] = {row["display_text"]: row["id"] for row in resp.json()["created"]}


@given("I have fetched the category's items")
def step_fetch_items(context) -> None:
    resp = context.client.get(_items_url(context))
    assert resp.status_code == 200, resp.text
    context.vars["etag"] = resp.headers["ETag"]


@given('another administrator moves "{name}" to position {target:d}')
def step_concurrent_move(context, name: str, target: int) -> None:
    resp = context.client.patch(
        f"{_items_url(context)}/{_item_id(context, name)}/position",
        json={"target_order": target},
        headers={"If-Match": "*"},
    )
    assert resp.status_code == 200, resp.text


@given('"{name}" is deactivated')
def step_deactivate(context, name: str) -> None:
    resp = context.client.patch(f"{_items_url(context)}/{_item_id(context, name)}", json={"is_active": False})
    assert resp.status_code == 200, resp.text


@when('I move "{name}" to position {target:d}')
def step_move(context, name: str, target: int) -> None:
    context.response = context.client.patch(
        f"{_items_url(context)}/{_item_id(context, name)}/position",
        json={"target_order": target},
        headers={"If-Match": context.vars["etag"]},
    )


@when('I move "{name}" to position {target:d} without If-Match')
def step_move_without_if_match(context, name: str, target: int) -> None:
    context.response = context.client.patch(
        f"{_items_url(context)}/{_item_id(context, name)}/position",
        json={"target_order": target},
    )


@when('I move "{name}" {direction:w}')
def step_step(context, name: str, direction: str) -> None:
    context.response = context.client.post(
        f"{_items_url(context)}/{_item_id(context, name)}/move",
        json={"direction": direction},
        headers={"If-Match": context.vars["etag"]},
    )


@when('I delete "{name}"')
def step_delete(context, name: str) -> None:
    context.response = context.client.delete(f"{_items_url(context)}/{_item_id(context, name)}")


@when('I request the options for "{category_name}"')
def step_options(context, category_name: str) -> None:
    context.response = context.client.get(f"/api/v1/dropdowns/{category_name}/options")


@then("the response status is {status:d}")
def step_status(context, status: int) -> None:
    assert context.response.status_code == status, context.response.text


@then('the problem code is "{code}"')
def step_problem_code(context, code: str) -> None:
    assert context.response.headers["content-type"].startswith("application/problem+json")
    assert context.response.json()["code"] == code, context.response.text


@then("the response lists {count:d} changed items")
def step_changed_count(context, count: int) -> None:
    assert len(context.response.json()["deltas"]) == count, context.response.text


@then('the items are ordered "{names}"')
def step_order(context, names: str) -> None:
    actual = [row["display_text"] for row in _current_items(context)]
    assert actual == _split(names), actual


@then("the sort orders are 1 through {last:d}")
def step_dense(context, last: int) -> None:
    orders = [row["sort_order"] for row in _current_items(context)]
    assert orders == list(range(1, last + 1)), orders


@then('the options are "{names}"')
def step_options_are(context, names: str) -> None:
    assert context.response.status_code == 200, context.response.text
    assert context.response.json()["options"] == _split(names)


@then('a "{event_type}" event was published')
def step_event(context, event_type: str) -> None:
    events = context.client.get("/__test__/events").json()["events"]
    assert event_type in [e["type"] for e in events], events
