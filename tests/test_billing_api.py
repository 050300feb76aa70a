"""Pricing, discounts and subscriptions."""

from datetime import timedelta

import pytest
from bson import ObjectId

from coachhub.exceptions.exceptions import ValidationError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.admin.discount_service import DiscountService
from coachhub.services.admin.pricing_service import apply_discount
from coachhub.utils.time.timeutils import utc_now


def _discount_payload(**overrides):
    now = utc_now()
    payload = {
        "name": "Spring Sale",
        "discountPercentage": 20,
        "planTypes": ["6months"],
        "startDate": (now - timedelta(days=1)).isoformat(),
        "endDate": (now + timedelta(days=30)).isoformat()
    }
    payload.update(overrides)
    return payload


def _plan(pricing, plan_id):
    return next(p for p in pricing["plans"] if p["id"] == plan_id)


def test_apply_discount_rounds_to_whole_units():
    assert apply_discount(2400, 20) == 1920
    assert apply_discount(1500, 0) == 1500
    assert apply_discount(3600, 100) == 0


def test_pricing_without_discounts(client):
    response = client.get("/api/pricing")

    assert response.status_code == 200
    pricing = response.get_json()["data"]
    assert [p["id"] for p in pricing["plans"]] == ["3months", "6months", "12months"]
    assert _plan(pricing, "3months")["price"] == 1500
    assert _plan(pricing, "6months")["popular"] is True
    assert _plan(pricing, "12months")["discountPercentage"] == 0
    assert pricing["activeDiscounts"] == []


def test_created_discount_is_reflected_in_pricing(client, admin):
    _, headers = admin
    client.get("/api/pricing")

    created = client.post("/api/admin/discounts", json=_discount_payload(), headers=headers)
    pricing = client.get("/api/pricing").get_json()["data"]

    assert created.status_code == 201
    six = _plan(pricing, "6months")
    assert six["price"] == 1920
    assert six["originalPrice"] == 2400
    assert six["discountName"] == "Spring Sale"
    assert _plan(pricing, "3months")["price"] == 1500
    assert len(pricing["activeDiscounts"]) == 1


def test_best_discount_wins(client, admin):
    _, headers = admin
    client.post("/api/admin/discounts", json=_discount_payload(name="Small", discountPercentage=10), headers=headers)
    client.post("/api/admin/discounts", json=_discount_payload(name="Big", discountPercentage=30), headers=headers)

    six = _plan(client.get("/api/pricing").get_json()["data"], "6months")

    assert six["discountName"] == "Big"
    assert six["price"] == 1680


def test_discount_validation(client, admin):
    _, headers = admin
    now = utc_now()

    missing = client.post("/api/admin/discounts", json={"name": "x"}, headers=headers)
    too_big = client.post("/api/admin/discounts", json=_discount_payload(discountPercentage=150), headers=headers)
    not_a_number = client.post("/api/admin/discounts", json=_discount_payload(discountPercentage=float("nan")),
                               headers=headers)
    bad_plan = client.post("/api/admin/discounts", json=_discount_payload(planTypes=["weekly"]), headers=headers)
    backwards = client.post("/api/admin/discounts", json=_discount_payload(
        startDate=now.isoformat(), endDate=(now - timedelta(days=2)).isoformat()), headers=headers)

    assert missing.status_code == 400
    assert too_big.status_code == 400
    assert not_a_number.status_code == 400
    assert bad_plan.status_code == 400
    assert backwards.status_code == 400


def test_update_and_delete_discount(client, admin):
    _, headers = admin
    discount_id = client.post("/api/admin/discounts", json=_discount_payload(), headers=headers).get_json()["data"]["id"]

    updated = client.put(f"/api/admin/discounts/{discount_id}", json={"discountPercentage": 50}, headers=headers)
    deleted = client.delete(f"/api/admin/discounts/{discount_id}", headers=headers)
    missing = client.delete(f"/api/admin/discounts/{discount_id}", headers=headers)

    assert updated.get_json()["data"]["discountPercentage"] == 50
    assert deleted.get_json()["data"] == {"message": "Discount deleted", "id": discount_id}
    assert missing.status_code == 404


def test_discounts_require_admin(client, teacher):
    _, headers = teacher
    assert client.get("/api/admin/discounts", headers=headers).status_code == 403


def test_create_subscription_sets_end_date_and_price(client, admin, teacher):
    _, headers = admin
    teacher_user, _ = teacher

    response = client.post("/api/admin/subscriptions", json={
        "teacherId": str(teacher_user["_id"]),
        "planType": "3months",
        "startDate": "2026-01-31"
    }, headers=headers)

    assert response.status_code == 201
    subscription = response.get_json()["data"]
    assert subscription["endDate"].startswith("2026-04-30")
    assert subscription["originalPrice"] == 1500
    assert subscription["discountedPrice"] == 1500
    assert subscription["paymentStatus"] == "pending"


def test_subscription_with_discount_consumes_a_use(client, admin, teacher):
    _, headers = admin
    teacher_user, _ = teacher
    discount_id = client.post("/api/admin/discounts", json=_discount_payload(maxUses=1), headers=headers).get_json()["data"]["id"]
    payload = {"teacherId": str(teacher_user["_id"]), "planType": "6months", "discountId": discount_id}

    first = client.post("/api/admin/subscriptions", json=payload, headers=headers)
    second = client.post("/api/admin/subscriptions", json=payload, headers=headers)

    assert first.status_code == 201
    assert first.get_json()["data"]["discountedPrice"] == 1920
    assert second.status_code == 409
    stored = RepositoryFactory.get_discount_repo().find_by_id(ObjectId(discount_id))
    assert stored["currentUses"] == 1


def test_subscription_for_unknown_teacher(client, admin, student):
    _, headers = admin
    student_user, _ = student

    response = client.post("/api/admin/subscriptions", json={
        "teacherId": str(student_user["_id"]), "planType": "6months"
    }, headers=headers)

    assert response.status_code == 404


def test_subscription_list_is_paginated(client, admin, teacher):
    _, headers = admin
    teacher_user, _ = teacher
    for _ in range(3):
        client.post("/api/admin/subscriptions", json={
            "teacherId": str(teacher_user["_id"]), "planType": "12months"
        }, headers=headers)

    body = client.get("/api/admin/subscriptions?page=2&limit=2", headers=headers).get_json()

    assert len(body["data"]) == 1
    assert body["pagination"] == {
        "page": 2, "limit": 2, "total": 3, "totalPages": 2, "hasNext": False, "hasPrev": True
    }
    assert body["data"][0]["teacherName"] == f"{teacher_user['firstName']} {teacher_user['lastName']}"


def test_update_subscription_payment_status(client, admin, teacher):
    _, headers = admin
    teacher_user, _ = teacher
    sub_id = client.post("/api/admin/subscriptions", json={
        "teacherId": str(teacher_user["_id"]), "planType": "6months"
    }, headers=headers).get_json()["data"]["id"]

    paid = client.put(f"/api/admin/subscriptions/{sub_id}", json={"paymentStatus": "paid"}, headers=headers)
    invalid = client.put(f"/api/admin/subscriptions/{sub_id}", json={"paymentStatus": "maybe"}, headers=headers)
    empty = client.put(f"/api/admin/subscriptions/{sub_id}", json={}, headers=headers)

    assert paid.get_json()["data"]["paymentStatus"] == "paid"
    assert invalid.status_code == 400
    assert empty.status_code == 400


def test_redeem_expired_discount_is_rejected(app):
    now = utc_now()
    discount = RepositoryFactory.get_discount_repo().insert({
        "name": "Old", "discountPercentage": 10, "planTypes": ["3months"], "isActive": True,
        "startDate": now - timedelta(days=10), "endDate": now - timedelta(days=1),
        "maxUses": None, "currentUses": 0
    })

    with pytest.raises(ValidationError, match="not active"):
        DiscountService().redeem_discount(discount["_id"], "3months")
