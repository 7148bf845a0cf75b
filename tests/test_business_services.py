import pytest

from intellibook.core.exceptions import FormatError, NotFoundError, ValidationError
from intellibook.schemas.business import AppointmentTypeCreate, AppointmentTypeUpdate, SettingsUpdateRequest
from intellibook.services.business.appointment_type_service import AppointmentTypeService
from intellibook.services.business.business_service import BusinessService, slugify_business_name
from intellibook.services.business.settings_service import SettingsService
from intellibook.services.business.storefront_service import StorefrontService


class TestBusinessService:

    @pytest.mark.parametrize("name,slug", [
        ("Acme Studio", "acme-studio"),
        ("  Dr. Ng's Clinic!! ", "dr-ng-s-clinic"),
        ("***", "business"),
    ])
    def test_slugify(self, name, slug):
        assert slugify_business_name(name) == slug

    def test_slug_collisions_get_suffix(self, db, context, business):
        second = BusinessService.create_business(db, context, name="Acme Studio")
        third = BusinessService.create_business(db, context, name="acme studio")
        assert (business.slug, second.slug, third.slug) == ("acme-studio", "acme-studio-2", "acme-studio-3")

    def test_blank_name(self, db, context):
        with pytest.raises(ValidationError):
            BusinessService.create_business(db, context, name="  ")

    def test_lookup_by_slug(self, db, business):
        assert BusinessService.get_by_slug(db, "acme-studio").id == business.id
        with pytest.raises(NotFoundError):
            BusinessService.get_by_slug(db, "missing")

    def test_malformed_id_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            BusinessService.get_business(db, "not-a-uuid")


class TestSettingsService:

    def test_defaults(self, db, context, business):
        settings = SettingsService.get_settings(db, context, business.id)
        assert settings["business_name"] == "Acme Studio"
        assert settings["owner_email"] == "owner@acme.test"
        assert (settings["open_time"], settings["close_time"]) == ("09:00", "18:00")
        assert settings["notify_owner_email"] is True

    def test_partial_update_keeps_other_fields(self, db, context, business):
        SettingsService.update_settings(db, context, business.id, SettingsUpdateRequest(open_time="08:30"))
        settings = SettingsService.update_settings(db, context, business.id, SettingsUpdateRequest(timezone="Europe/Paris"))

        assert settings["open_time"] == "08:30"
        assert settings["close_time"] == "18:00"
        assert settings["timezone"] == "Europe/Paris"
        assert BusinessService.get_business(db, business.id).timezone == "Europe/Paris"

    def test_rejects_bad_time(self, db, context, business):
        with pytest.raises(FormatError):
            SettingsService.update_settings(db, context, business.id, SettingsUpdateRequest(close_time="6pm"))

    def test_clearing_owner_email(self, db, context, business):
        settings = SettingsService.update_settings(db, context, business.id, SettingsUpdateRequest(owner_email=None))
        assert settings["owner_email"] is None


class TestAppointmentTypeService:

    def test_colors_cycle_through_palette(self, db, business, make_type):
        colors = [make_type(name=f"Type {i}")["color"] for i in range(5)]
        assert colors[0] == colors[4]
        assert len(set(colors[:4])) == 4

    @pytest.mark.parametrize("fields", [
        {"duration_minutes": 0},
        {"price_cents": -1},
        {"location_mode": "teleport"},
    ])
    def test_field_validation(self, db, business, fields):
        with pytest.raises(ValidationError):
            AppointmentTypeService.create_type(db, business.id, AppointmentTypeCreate(name="Bad", **fields))

    def test_update_is_partial(self, db, business, make_type):
        created = make_type(name="Consultation", duration_minutes=45, price_cents=1000)
        updated = AppointmentTypeService.update_type(
            db, business.id, created["id"], AppointmentTypeUpdate(name=" Intro Call ")
        )
        assert updated["name"] == "Intro Call"
        assert updated["duration_minutes"] == 45
        assert updated["formatted_price"] == "$10.00"

    def test_type_from_other_business(self, db, context, business, make_type):
        created = make_type()
        other = BusinessService.create_business(db, context, name="Other Shop")
        with pytest.raises(NotFoundError):
            AppointmentTypeService.deactivate_type(db, other.id, created["id"])

    def test_seed_defaults_once(self, db, business):
        seeded = AppointmentTypeService.seed_defaults(db, business.id)
        assert sorted(t["name"] for t in seeded) == ["Consultation", "Follow-up Call", "Review", "Strategy Session"]
        assert len(AppointmentTypeService.seed_defaults(db, business.id)) == 4


def test_storefront_lists_only_active_types(db, context, business, make_type):
    keep = make_type(name="Consultation")
    drop = make_type(name="Retired")
    AppointmentTypeService.deactivate_type(db, business.id, drop["id"])

    storefront = StorefrontService.get_storefront(db, context, business.slug)

    assert [t["id"] for t in storefront["types"]] == [keep["id"]]
    assert storefront["business_hours"]["mon"] == {"closed": False, "open_time": "09:00", "close_time": "18:00"}
