from __future__ import annotations

from datetime import date

import pytest

from brochure_core.errors import PropertyValidationError
from brochure_core.schema import PropertyStatus, validate_property, validate_user


def messages_for(payload) -> list:
    with pytest.raises(PropertyValidationError) as info:
        validate_property(payload)
    return info.value.messages


class TestValidProperty:
    def test_camel_case_fields_are_mapped(self, payload):
        record = validate_property(payload)
        assert record.year_built == 2020
        assert record.contact_info == "+966 50 123 4567"
        assert record.property_type == "Villa"
        assert record.marketer.name == "Ahmed Mansour"

    def test_defaults(self, payload):
        for key in ("currency", "status", "bedrooms", "bathrooms", "parking", "country", "features", "companyLogos"):
            payload.pop(key)
        record = validate_property(payload)
        assert record.currency == "SAR"
        assert record.status is PropertyStatus.AVAILABLE
        assert (record.bedrooms, record.bathrooms, record.parking) == (0, 0, 0)
        assert record.country == "السعودية"
        assert record.features == []
        assert record.company_logos == []

    @pytest.mark.parametrize("raw,expected", [
        ("SOLD", PropertyStatus.SOLD),
        ("available", PropertyStatus.AVAILABLE),
        ("مباع", PropertyStatus.SOLD),
        ("متاح", PropertyStatus.AVAILABLE),
    ])
    def test_status_is_canonical(self, payload, raw, expected):
        payload["status"] = raw
        assert validate_property(payload).status is expected

    def test_round_trips_to_camel_case_payload(self, payload):
        out = validate_property(payload).to_payload()
        assert out["yearBuilt"] == 2020
        assert out["status"] == "AVAILABLE"
        assert out["type"] == "Villa"


class TestRejectedProperty:
    def test_empty_images_rejected(self, payload):
        payload["images"] = []
        assert "يجب إضافة صورة واحدة على الأقل" in messages_for(payload)

    def test_blank_list_items_rejected(self, payload):
        payload["images"] = [""]
        payload["features"] = ["Pool", ""]
        payload["companyLogos"] = [""]
        messages = messages_for(payload)
        assert "رابط الصورة لا يمكن أن يكون فارغاً" in messages
        assert "الميزة لا يمكن أن تكون فارغة" in messages
        assert "رابط الشعار لا يمكن أن يكون فارغاً" in messages

    def test_missing_images_rejected(self, payload):
        payload.pop("images")
        assert "الصور مطلوبة" in messages_for(payload)

    def test_negative_price_and_area(self, payload):
        payload["price"] = -1
        payload["area"] = -5
        msgs = messages_for(payload)
        assert "يجب أن يكون السعر أكبر من أو يساوي الصفر" in msgs
        assert "يجب أن تكون المساحة أكبر من أو تساوي الصفر" in msgs

    def test_non_numeric_price(self, payload):
        payload["price"] = "a lot"
        assert "يجب أن يكون السعر رقم" in messages_for(payload)

    def test_unknown_status(self, payload):
        payload["status"] = "PENDING"
        assert len(messages_for(payload)) == 1

    def test_year_bounds(self, payload):
        payload["yearBuilt"] = 1799
        assert "سنة البناء يجب أن تكون 1800 أو بعدها" in messages_for(payload)
        payload["yearBuilt"] = date.today().year + 1
        assert "سنة البناء لا يمكن أن تكون في المستقبل" in messages_for(payload)

    def test_current_year_is_allowed(self, payload):
        payload["yearBuilt"] = date.today().year
        assert validate_property(payload).year_built == date.today().year

    def test_empty_required_strings(self, payload):
        payload["title"] = ""
        payload["contactInfo"] = ""
        msgs = messages_for(payload)
        assert "عنوان العقار مطلوب" in msgs
        assert "معلومات التواصل مطلوبة" in msgs

    def test_marketer_fields_required(self, payload):
        payload["marketer"] = {}
        msgs = messages_for(payload)
        assert "اسم المسوق مطلوب" in msgs
        assert "دور المسوق مطلوب" in msgs

    def test_every_failure_is_reported(self, payload):
        for key in ("title", "description", "type", "location", "city"):
            payload.pop(key)
        assert len(messages_for(payload)) == 5

    def test_non_object_payload(self):
        assert messages_for(["not", "a", "dict"])


class TestUser:
    def test_absent_user_is_none(self):
        assert validate_user(None) is None

    def test_valid_user(self):
        user = validate_user({"name": "Sara", "email": "sara@example.com", "phone": "0500000000"})
        assert user.name == "Sara"

    def test_bad_email(self):
        with pytest.raises(PropertyValidationError) as info:
            validate_user({"name": "Sara", "email": "nope", "phone": "0500000000"})
        assert info.value.messages == ["البريد الإلكتروني غير صالح"]
