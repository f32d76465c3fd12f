"""Unit tests for filefield.model — Model field binding, validate and save flow."""

import pytest

from filefield.engine.errors import FileFieldValidationError
from filefield.fields.base import Field
from filefield.fields.file import FileField
from filefield.model import Model
from filefield.upload import UploadStatus
from filefield.validation import max_length, not_empty


@pytest.fixture
def profile_cls(upload_dir):
    class Profile(Model):
        name = Field(rules=[not_empty, (max_length, 20)])
        photo = FileField(path=str(upload_dir), types={"image/*"}, default="blank.png")

    return Profile


class TestDeclaration:
    def test_fields_collected(self, profile_cls):
        assert list(profile_cls.__fields__) == ["name", "photo"]
        photo = profile_cls.__fields__["photo"]
        assert photo.name == "photo"
        assert photo.column == "photo"
        assert photo.model is profile_cls
        assert photo.label == "Photo"

    def test_class_access_returns_field(self, profile_cls):
        assert isinstance(profile_cls.photo, FileField)

    def test_inherited_fields(self, profile_cls):
        class Admin(profile_cls):
            level = Field(default=1)

        assert list(Admin.__fields__) == ["name", "photo", "level"]


class TestValues:
    def test_defaults(self, profile_cls):
        p = profile_cls()
        assert p.photo == "blank.png"
        assert p.name is None
        assert not p.loaded

    def test_set_and_original(self, profile_cls):
        p = profile_cls({"name": "Ada"}, loaded=True)
        p.name = "Grace"
        assert p.name == "Grace"
        assert p.original("name") == "Ada"
        assert p.changed == {"name": "Grace"}

    def test_unknown_field(self, profile_cls):
        with pytest.raises(KeyError):
            profile_cls({"nope": 1})
        with pytest.raises(KeyError):
            profile_cls().get("nope")


class TestValidateAndSave:
    def test_upload_flow(self, profile_cls, upload_dir, make_upload):
        (upload_dir / "ada.png").write_bytes(b"old")
        p = profile_cls({"name": "Ada", "photo": "ada.png"}, loaded=True)

        v = p.validate({"name": "Ada L", "photo": make_upload("Ada New.PNG")})
        assert v.errors() == {}
        assert v.results["photo"].status is UploadStatus.PERSISTED
        # payload is not set on the record itself
        assert p.photo == "ada.png"

        values = p.save(v)

        assert values == {"name": "Ada L", "photo": "ada-new.png"}
        assert p.original("photo") == "ada-new.png"
        assert p.changed == {}
        assert not (upload_dir / "ada.png").exists()
        assert (upload_dir / "ada-new.png").exists()

    def test_no_upload_keeps_value(self, profile_cls):
        p = profile_cls({"name": "Ada", "photo": "ada.png"}, loaded=True)
        v = p.validate({"name": "Ada"})
        assert p.save(v) == {"name": "Ada", "photo": "ada.png"}

    def test_failing_rule_skips_upload(self, profile_cls, upload_dir, make_upload):
        p = profile_cls({"name": "Ada", "photo": "ada.png"}, loaded=True)

        v = p.validate({"name": "", "photo": make_upload("new.png")})

        assert v.errors() == {"name": "not_empty"}
        assert v.results["photo"].status is UploadStatus.SKIPPED
        assert list(upload_dir.iterdir()) == []

    def test_save_with_errors_raises(self, profile_cls, make_upload):
        p = profile_cls({"name": "Ada", "photo": "ada.png"}, loaded=True)
        v = p.validate({"photo": make_upload("doc.pdf", "application/pdf")})
        assert v.errors() == {"photo": "upload.type"}

        with pytest.raises(FileFieldValidationError) as exc_info:
            p.save(v)
        assert exc_info.value.validation_errors == [{"field": "photo", "error": "upload.type"}]
        assert p.original("photo") == "ada.png"

    def test_save_without_validation(self, profile_cls):
        p = profile_cls()
        p.name = "New"
        assert p.save() == {"name": "New", "photo": "blank.png"}
        assert p.loaded

    def test_empty_string_clears_file_column(self, profile_cls):
        p = profile_cls({"name": "Ada", "photo": "ada.png"}, loaded=True)

        v = p.validate({"photo": ""})

        assert v.results["photo"].status is UploadStatus.SKIPPED
        assert p.photo == ""
        assert p.save(v) == {"name": "Ada", "photo": ""}
        assert p.original("photo") == ""

    def test_plain_filename_sets_file_column(self, profile_cls):
        p = profile_cls({"name": "Ada", "photo": "ada.png"}, loaded=True)
        v = p.validate({"photo": "shared.png"})
        assert p.save(v)["photo"] == "shared.png"

    def test_is_payload(self, profile_cls, make_upload):
        photo = profile_cls.__fields__["photo"]
        assert photo.is_payload(make_upload("a.png"))
        assert not photo.is_payload("")
        assert not photo.is_payload(None)
        assert not profile_cls.__fields__["name"].is_payload({"x": 1})


class TestSaveValues:
    def test_does_not_mark_saved(self, profile_cls, make_upload):
        p = profile_cls({"name": "Ada", "photo": "ada.png"})
        v = p.validate({"photo": make_upload("new.png")})

        values = p.save_values(v)

        assert values == {"name": "Ada", "photo": "new.png"}
        assert not p.loaded
        assert p.original("photo") == "ada.png"

    def test_mark_saved(self, profile_cls):
        p = profile_cls({"name": "Ada"})
        p.name = "Grace"
        p.mark_saved({"name": "Grace", "photo": "g.png"})
        assert p.loaded
        assert p.changed == {}
        assert p.original("photo") == "g.png"
